"""Membership checkout: payment sessions, gateway callbacks and completion."""

import math
import uuid
from dataclasses import dataclass
from typing import Optional

from libs.common.config import get_settings
from libs.common.datetime_utils import ensure_utc, hours_from_now, utc_now
from libs.common.errors import (
    ConflictError,
    GatewayInitiationFailed,
    NotFoundError,
)
from libs.common.logging import get_logger
from services.members_service.models import (
    ApplicationStatus,
    Gender,
    MemberApplication,
    MemberPaymentMethod,
    MemberPaymentSession,
    MemberType,
)
from services.members_service.schemas import (
    FORM_FIELDS,
    MEMBER_TRANSACTION_PREFIX,
    BankApplicationRequest,
    OnlinePaymentRequest,
)
from services.payments_service.models import (
    CallbackOutcome,
    PaymentFlow,
    PaymentStatus,
    can_apply_callback,
    resolve_callback_status,
)
from services.payments_service.sslcommerz_client import (
    GatewaySessionRejected,
    GatewaySessionRequest,
    GatewayValidation,
    SSLCommerzClient,
)
from services.payments_service.transactions import callback_urls, generate_transaction_id
from sqlalchemy import func, or_, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)

TRANSACTION_PREFIX = MEMBER_TRANSACTION_PREFIX
CALLBACK_MODULE = "members"


@dataclass
class InitiatedMemberPayment:
    session: MemberPaymentSession
    redirect_url: str


@dataclass
class ApplicationFilters:
    application_status: Optional[ApplicationStatus] = None
    payment_status: Optional[PaymentStatus] = None
    type: Optional[MemberType] = None
    search_term: Optional[str] = None


# ---------------------------------------------------------------------------
# Online checkout
# ---------------------------------------------------------------------------


async def initiate_member_payment(
    db: AsyncSession,
    gateway: SSLCommerzClient,
    form: OnlinePaymentRequest,
) -> InitiatedMemberPayment:
    """Open a gateway session for a membership fee.

    The submitted form is parked on a pending MemberPaymentSession, written
    only once the gateway has accepted the session.
    """
    settings = get_settings()
    transaction_id = generate_transaction_id(TRANSACTION_PREFIX)
    urls = callback_urls(CALLBACK_MODULE)

    result = await gateway.initiate_session(
        GatewaySessionRequest(
            transaction_id=transaction_id,
            amount=form.amount,
            customer_name=form.name,
            customer_email=form.email or form.mobile,
            customer_phone=form.mobile,
            product_name=form.type.value,
            product_category="Membership",
            **urls,
        )
    )
    if isinstance(result, GatewaySessionRejected):
        logger.info(
            f"Member checkout refused by gateway: {result.reason}",
            extra={"extra_fields": {"tran_id": transaction_id}},
        )
        raise GatewayInitiationFailed(result.reason, result.raw)

    session = MemberPaymentSession(
        transaction_id=transaction_id,
        status=PaymentStatus.PENDING,
        form_data=form.form_data(),
        gateway_session_key=result.session_key,
        gateway_url=result.redirect_url,
        gateway_response=result.raw,
        expires_at=hours_from_now(settings.MEMBER_SESSION_TTL_HOURS),
        **urls,
    )
    db.add(session)
    try:
        await db.commit()
    except SQLAlchemyError:
        await db.rollback()
        logger.exception(
            "Failed to persist member payment session after gateway session was opened",
            extra={"extra_fields": {"tran_id": transaction_id}},
        )
        raise
    await db.refresh(session)

    logger.info(
        "Member payment initiated",
        extra={
            "extra_fields": {
                "session_id": str(session.id),
                "tran_id": transaction_id,
                "type": form.type.value,
            }
        },
    )
    return InitiatedMemberPayment(session=session, redirect_url=result.redirect_url)


async def get_payment_session(db: AsyncSession, transaction_id: str) -> MemberPaymentSession:
    result = await db.execute(
        select(MemberPaymentSession).where(
            MemberPaymentSession.transaction_id == transaction_id
        )
    )
    session = result.scalar_one_or_none()
    if not session:
        logger.error(f"Member payment session not found with tran_id: {transaction_id}")
        raise NotFoundError("Transaction not found", details={"tran_id": transaction_id})
    return session


async def get_application_by_transaction_id(
    db: AsyncSession, transaction_id: str
) -> Optional[MemberApplication]:
    result = await db.execute(
        select(MemberApplication).where(MemberApplication.transaction_id == transaction_id)
    )
    return result.scalar_one_or_none()


def _application_from_form(form_data: dict, **extra) -> MemberApplication:
    fields = {key: form_data.get(key) for key in FORM_FIELDS}
    fields["type"] = MemberType(fields["type"])
    fields["gender"] = Gender(fields["gender"])
    fields["is_overseas"] = bool(fields["is_overseas"])
    return MemberApplication(**fields, **extra)


async def _finalize_session(
    db: AsyncSession,
    session: MemberPaymentSession,
    validation: Optional[GatewayValidation],
    val_id: Optional[str],
) -> MemberApplication:
    """Consume a pending session and create its application in one commit."""
    claimed = await db.execute(
        update(MemberPaymentSession)
        .where(
            MemberPaymentSession.id == session.id,
            MemberPaymentSession.status == PaymentStatus.PENDING,
        )
        .values(
            status=PaymentStatus.COMPLETED,
            validation_data=validation.raw if validation else None,
        )
        .execution_options(synchronize_session=False)
    )
    if claimed.rowcount == 0:
        await db.rollback()
        await db.refresh(session)
        existing = await get_application_by_transaction_id(db, session.transaction_id)
        if existing:
            return existing
        raise ConflictError(
            "Transaction already processed",
            details={"tran_id": session.transaction_id, "status": session.status.value},
        )

    application = _application_from_form(
        session.form_data,
        payment_method=MemberPaymentMethod.ONLINE,
        transaction_id=session.transaction_id,
        payment_status=PaymentStatus.COMPLETED,
        application_status=ApplicationStatus.PENDING_APPROVAL,
        gateway_val_id=val_id,
        gateway_payload=validation.raw if validation else None,
    )
    db.add(application)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        logger.error(
            "Payment transaction id already used by another application",
            extra={"extra_fields": {"tran_id": session.transaction_id}},
        )
        raise ConflictError(
            "transactionId has already been used by another application",
            details={"tran_id": session.transaction_id},
        )
    except SQLAlchemyError:
        await db.rollback()
        logger.exception(
            "Failed to create member application from payment session",
            extra={"extra_fields": {"tran_id": session.transaction_id}},
        )
        raise
    await db.refresh(application)
    await db.refresh(session)

    logger.info(
        "Member application created from online payment",
        extra={
            "extra_fields": {
                "application_id": str(application.id),
                "tran_id": session.transaction_id,
            }
        },
    )
    return application


async def complete_member_payment(
    db: AsyncSession,
    gateway: SSLCommerzClient,
    transaction_id: str,
    val_id: str,
) -> MemberApplication:
    """Confirm a payment with the gateway and turn its session into an application.

    Repeating the call for a completed session returns the same application.

    Raises:
        NotFoundError: unknown transaction id
        ConflictError: session expired, failed or cancelled
        ValidationMismatch: gateway disagrees on status, transaction id or amount
    """
    settings = get_settings()
    session = await get_payment_session(db, transaction_id)

    if session.status == PaymentStatus.COMPLETED:
        existing = await get_application_by_transaction_id(db, transaction_id)
        if existing:
            return existing
        raise ConflictError("Transaction already processed", details={"tran_id": transaction_id})

    if not can_apply_callback(session.status):
        raise ConflictError(
            f"Payment session is {session.status.value}",
            details={"tran_id": transaction_id},
        )

    if ensure_utc(session.expires_at) <= utc_now():
        raise ConflictError("Payment session has expired", details={"tran_id": transaction_id})

    validation = await gateway.validate_transaction(val_id)
    validation.ensure_matches(
        session.transaction_id,
        session.form_data["amount"],
        settings.PAYMENT_AMOUNT_TOLERANCE,
    )

    return await _finalize_session(db, session, validation, val_id)


async def reconcile_member_callback(
    db: AsyncSession,
    gateway: SSLCommerzClient,
    transaction_id: str,
    outcome: CallbackOutcome,
    val_id: Optional[str] = None,
) -> MemberPaymentSession:
    """Apply a gateway callback to the member payment session it names.

    A success callback carrying ``val_id`` completes the payment straight
    away; without one the session stays pending for the frontend to complete
    via ``complete_member_payment``.

    Raises:
        NotFoundError: unknown transaction id
        ConflictError / ValidationMismatch: from completion on success
    """
    settings = get_settings()
    session = await get_payment_session(db, transaction_id)

    if not can_apply_callback(session.status):
        logger.warning(
            f"Ignoring {CallbackOutcome(outcome).value} callback for {transaction_id}: "
            f"already {session.status.value}",
            extra={"extra_fields": {"session_id": str(session.id)}},
        )
        return session

    target = resolve_callback_status(PaymentFlow.MEMBER, outcome)

    if target == PaymentStatus.COMPLETED:
        if val_id:
            await complete_member_payment(db, gateway, transaction_id, val_id)
        elif settings.SSLCOMMERZ_VERIFY_CALLBACKS:
            logger.info(
                f"Success callback for {transaction_id} without val_id; awaiting completion",
                extra={"extra_fields": {"session_id": str(session.id)}},
            )
        else:
            await _finalize_session(db, session, None, None)
        await db.refresh(session)
        return session

    result = await db.execute(
        update(MemberPaymentSession)
        .where(
            MemberPaymentSession.id == session.id,
            MemberPaymentSession.status == PaymentStatus.PENDING,
        )
        .values(status=target)
        .execution_options(synchronize_session=False)
    )
    await db.commit()
    await db.refresh(session)

    if result.rowcount == 0:
        logger.warning(
            f"Callback for {transaction_id} lost the race; status is {session.status.value}",
            extra={"extra_fields": {"session_id": str(session.id)}},
        )
    else:
        logger.info(
            f"Member payment {transaction_id} marked {target.value}",
            extra={"extra_fields": {"session_id": str(session.id)}},
        )
    return session


async def purge_expired_sessions(db: AsyncSession) -> int:
    """Delete pending sessions past their expiry. Returns the number removed."""
    result = await db.execute(
        MemberPaymentSession.__table__.delete().where(
            MemberPaymentSession.status == PaymentStatus.PENDING,
            MemberPaymentSession.expires_at <= utc_now(),
        )
    )
    await db.commit()
    return result.rowcount or 0


# ---------------------------------------------------------------------------
# Bank transfer / deposit
# ---------------------------------------------------------------------------


async def submit_bank_application(
    db: AsyncSession, form: BankApplicationRequest
) -> MemberApplication:
    """Record an application paid outside the gateway; an admin verifies the receipt."""
    application = _application_from_form(
        form.form_data(),
        payment_method=form.payment_method,
        transaction_id=form.transaction_id,
        payment_document_url=form.payment_document_url,
        payment_status=PaymentStatus.PENDING_VERIFICATION,
        application_status=ApplicationStatus.PENDING_APPROVAL,
    )
    db.add(application)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ConflictError(
            "transactionId has already been used",
            details={"transactionId": form.transaction_id},
        )
    await db.refresh(application)

    logger.info(
        "Bank member application submitted",
        extra={
            "extra_fields": {
                "application_id": str(application.id),
                "payment_method": form.payment_method.value,
            }
        },
    )
    return application


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


def _apply_filters(query, filters: ApplicationFilters):
    if filters.application_status:
        query = query.where(MemberApplication.application_status == filters.application_status)
    if filters.payment_status:
        query = query.where(MemberApplication.payment_status == filters.payment_status)
    if filters.type:
        query = query.where(MemberApplication.type == filters.type)
    if filters.search_term:
        pattern = f"%{filters.search_term}%"
        query = query.where(
            or_(
                MemberApplication.name.ilike(pattern),
                MemberApplication.email.ilike(pattern),
                MemberApplication.mobile.ilike(pattern),
                MemberApplication.transaction_id.ilike(pattern),
            )
        )
    return query


async def list_applications(
    db: AsyncSession,
    filters: ApplicationFilters,
    page: int = 1,
    limit: int = 10,
) -> tuple[list[MemberApplication], dict]:
    page = page if page and page > 0 else 1
    limit = min(limit, 100) if limit and limit > 0 else 10

    total = (
        await db.execute(_apply_filters(select(func.count(MemberApplication.id)), filters))
    ).scalar_one()
    query = (
        _apply_filters(select(MemberApplication), filters)
        .order_by(MemberApplication.created_at.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    applications = list((await db.execute(query)).scalars().all())

    pagination = {
        "currentPage": page,
        "totalPages": math.ceil(total / limit) or 1,
        "totalItems": total,
        "itemsPerPage": limit,
    }
    return applications, pagination


async def get_application(db: AsyncSession, application_id: uuid.UUID) -> MemberApplication:
    application = await db.get(MemberApplication, application_id)
    if not application:
        raise NotFoundError("Member application not found")
    return application
