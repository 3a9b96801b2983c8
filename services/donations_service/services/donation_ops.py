"""Donation checkout, callback reconciliation and donor account provisioning."""

import math
import re
import secrets
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from libs.common.config import get_settings
from libs.common.emails.donations import send_password_email
from libs.common.errors import GatewayInitiationFailed, NotFoundError, ValidationMismatch
from libs.common.logging import get_logger
from services.donations_service.models import Donation
from services.donations_service.schemas import DonationCreateRequest, is_email
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
    SSLCommerzClient,
)
from services.payments_service.transactions import callback_urls, generate_transaction_id
from services.users_service.models import User, UserRole
from services.users_service.services.user_ops import create_user, find_by_identifier
from sqlalchemy import func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)

TRANSACTION_PREFIX = "DON"
CALLBACK_MODULE = "donations"


@dataclass
class InitiatedDonation:
    donation: Donation
    redirect_url: str


@dataclass
class DonationFilters:
    status: Optional[PaymentStatus] = None
    transaction_id: Optional[str] = None
    purpose: Optional[str] = None
    contact: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None


# ---------------------------------------------------------------------------
# Initiation
# ---------------------------------------------------------------------------


async def initiate_donation(
    db: AsyncSession,
    gateway: SSLCommerzClient,
    payload: DonationCreateRequest,
) -> InitiatedDonation:
    """Open a gateway session and record the donation as pending.

    Nothing is persisted unless the gateway hands back a redirect URL.
    """
    transaction_id = generate_transaction_id(TRANSACTION_PREFIX)

    result = await gateway.initiate_session(
        GatewaySessionRequest(
            transaction_id=transaction_id,
            amount=payload.amount,
            customer_name=payload.name or "Donor",
            customer_email=payload.contact,
            customer_phone=payload.contact,
            product_name=payload.purpose,
            product_category="Donation",
            **callback_urls(CALLBACK_MODULE),
        )
    )
    if isinstance(result, GatewaySessionRejected):
        logger.info(
            f"Donation checkout refused by gateway: {result.reason}",
            extra={"extra_fields": {"tran_id": transaction_id}},
        )
        raise GatewayInitiationFailed(result.reason, result.raw)

    donation = Donation(
        transaction_id=transaction_id,
        purpose=payload.purpose,
        contact=payload.contact,
        amount=payload.amount,
        name=payload.name,
        behalf=payload.behalf,
        status=PaymentStatus.PENDING,
    )
    db.add(donation)
    try:
        await db.commit()
    except SQLAlchemyError:
        await db.rollback()
        logger.exception(
            "Failed to persist donation after gateway session was opened",
            extra={"extra_fields": {"tran_id": transaction_id, "contact": payload.contact}},
        )
        raise
    await db.refresh(donation)

    logger.info(
        "Donation initiated",
        extra={
            "extra_fields": {
                "donation_id": str(donation.id),
                "tran_id": transaction_id,
                "amount": donation.amount,
            }
        },
    )
    return InitiatedDonation(donation=donation, redirect_url=result.redirect_url)


# ---------------------------------------------------------------------------
# Callbacks
# ---------------------------------------------------------------------------


async def get_donation_by_transaction_id(db: AsyncSession, transaction_id: str) -> Donation:
    result = await db.execute(
        select(Donation).where(Donation.transaction_id == transaction_id)
    )
    donation = result.scalar_one_or_none()
    if not donation:
        logger.error(f"Donation not found with tran_id: {transaction_id}")
        raise NotFoundError(f"Donation not found with transaction ID: {transaction_id}")
    return donation


async def reconcile_donation_callback(
    db: AsyncSession,
    gateway: SSLCommerzClient,
    transaction_id: str,
    outcome: CallbackOutcome,
    val_id: Optional[str] = None,
) -> Donation:
    """Apply a gateway callback to the donation it names.

    Callbacks for donations that already left ``pending`` are ignored. A
    success callback is confirmed against the gateway's validation API when
    ``SSLCOMMERZ_VERIFY_CALLBACKS`` is on.

    Raises:
        NotFoundError: unknown transaction id
        ValidationMismatch: success could not be confirmed with the gateway
    """
    settings = get_settings()
    donation = await get_donation_by_transaction_id(db, transaction_id)

    if not can_apply_callback(donation.status):
        logger.warning(
            f"Ignoring {CallbackOutcome(outcome).value} callback for {transaction_id}: "
            f"already {donation.status.value}",
            extra={"extra_fields": {"donation_id": str(donation.id)}},
        )
        return donation

    target = resolve_callback_status(PaymentFlow.DONATION, outcome)
    values = {"status": target}

    if target == PaymentStatus.COMPLETED and settings.SSLCOMMERZ_VERIFY_CALLBACKS:
        if not val_id:
            raise ValidationMismatch(
                "val_id is required to confirm the payment",
                details={"tran_id": transaction_id},
            )
        validation = await gateway.validate_transaction(val_id)
        validation.ensure_matches(
            donation.transaction_id, donation.amount, settings.PAYMENT_AMOUNT_TOLERANCE
        )
        values.update(gateway_val_id=val_id, gateway_payload=validation.raw)
    elif val_id:
        values["gateway_val_id"] = val_id

    # Only a still-pending row may move; a concurrent callback that got here
    # first wins.
    result = await db.execute(
        update(Donation)
        .where(
            Donation.transaction_id == transaction_id,
            Donation.status == PaymentStatus.PENDING,
        )
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    await db.commit()
    await db.refresh(donation)

    if result.rowcount == 0:
        logger.warning(
            f"Callback for {transaction_id} lost the race; status is {donation.status.value}",
            extra={"extra_fields": {"donation_id": str(donation.id)}},
        )
        return donation

    logger.info(
        f"Donation {transaction_id} marked {target.value}",
        extra={"extra_fields": {"donation_id": str(donation.id), "outcome": outcome}},
    )

    if target == PaymentStatus.COMPLETED:
        await provision_donor_account(db, donation)

    return donation


# ---------------------------------------------------------------------------
# Donor accounts
# ---------------------------------------------------------------------------


def generate_donor_password(contact: str) -> str:
    """Memorable temporary password derived from the donor's contact.

    Email: capitalised first letters of the local part + last 4 digits + ``!``
    (e.g. ``John1234!``). Phone: ``User`` + last 6 digits + ``!``.
    """
    digits = "".join(re.findall(r"\d", contact))
    last_digits = digits[-4:] or str(1000 + secrets.randbelow(9000))

    if is_email(contact):
        local_part = contact.split("@")[0] or "user"
        letters = re.sub(r"[^a-zA-Z]", "", local_part) or "user"
        base = letters[:1].upper() + letters[1:6].lower()
        return f"{base}{last_digits}!"

    phone_tail = digits[-6:] or last_digits
    return f"User{phone_tail}!"


def donor_full_name(contact: str) -> str:
    if is_email(contact):
        local_part = re.sub(r"[._-]", " ", contact.split("@")[0])
        return re.sub(r"\b\w", lambda m: m.group().upper(), local_part)
    return f"User {contact[-4:]}"


async def provision_donor_account(db: AsyncSession, donation: Donation) -> Optional[User]:
    """Create a donor login for the donation's contact if none exists.

    Best-effort: any failure is logged and swallowed so the payment callback
    still succeeds.
    """
    contact = donation.contact.strip()
    context = {"contact": contact, "donation_id": str(donation.id)}

    try:
        existing = await find_by_identifier(db, contact)
        if existing:
            logger.info(
                "User already exists for donation",
                extra={"extra_fields": {**context, "user_id": str(existing.id)}},
            )
            return None

        email_contact = is_email(contact)
        password = generate_donor_password(contact)
        full_name = donor_full_name(contact)
        user = await create_user(
            db,
            full_name=full_name,
            email=contact.lower() if email_contact else None,
            phone=None if email_contact else contact,
            password=password,
            role=UserRole.DONORS,
        )
    except Exception:
        logger.exception(
            "Failed to create user for donation", extra={"extra_fields": context}
        )
        await db.rollback()
        # rollback expires loaded rows; callers still read the donation
        await db.refresh(donation)
        return None

    if email_contact:
        sent = await send_password_email(contact.lower(), password, full_name)
        if sent:
            logger.info("Password email sent to new user", extra={"extra_fields": context})
        else:
            logger.error("Failed to send password email", extra={"extra_fields": context})
    else:
        # No SMS channel yet; the password is only recoverable from the logs
        logger.info(
            "New user created with phone number",
            extra={
                "extra_fields": {
                    **context,
                    "user_id": str(user.id),
                    "password": password,
                }
            },
        )

    logger.info(
        "User created for donation",
        extra={"extra_fields": {**context, "user_id": str(user.id)}},
    )
    return user


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


def _apply_filters(query, filters: DonationFilters):
    if filters.status:
        query = query.where(Donation.status == filters.status)
    if filters.transaction_id:
        query = query.where(Donation.transaction_id == filters.transaction_id)
    if filters.purpose:
        query = query.where(Donation.purpose == filters.purpose)
    if filters.contact:
        query = query.where(Donation.contact == filters.contact)
    if filters.start_date:
        query = query.where(Donation.created_at >= filters.start_date)
    if filters.end_date:
        query = query.where(Donation.created_at <= filters.end_date)
    return query


async def list_donations(
    db: AsyncSession,
    filters: DonationFilters,
    page: int = 1,
    limit: int = 10,
) -> tuple[list[Donation], dict, float]:
    """Return (donations, pagination, total amount) for the filter set."""
    total = (
        await db.execute(_apply_filters(select(func.count(Donation.id)), filters))
    ).scalar_one()
    total_amount = (
        await db.execute(
            _apply_filters(select(func.coalesce(func.sum(Donation.amount), 0)), filters)
        )
    ).scalar_one()

    query = (
        _apply_filters(select(Donation), filters)
        .order_by(Donation.created_at.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    donations = list((await db.execute(query)).scalars().all())

    pagination = {
        "page": page,
        "limit": limit,
        "total": total,
        "totalPages": math.ceil(total / limit) if limit else 1,
    }
    return donations, pagination, float(total_amount or 0)


async def get_donation(db: AsyncSession, donation_id: uuid.UUID) -> Donation:
    donation = await db.get(Donation, donation_id)
    if not donation:
        raise NotFoundError("Donation not found")
    return donation


async def list_donations_for_contacts(
    db: AsyncSession, contacts: list[str]
) -> list[Donation]:
    """Donations recorded under any of the caller's email/phone, newest first.

    Contacts are compared case-insensitively.
    """
    if not contacts:
        return []
    result = await db.execute(
        select(Donation)
        .where(func.lower(Donation.contact).in_([c.strip().lower() for c in contacts]))
        .order_by(Donation.created_at.desc())
    )
    return list(result.scalars().all())
