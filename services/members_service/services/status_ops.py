"""Admin status changes on member applications, with applicant notification."""

import uuid

from libs.common.config import get_settings
from libs.common.emails.members import send_member_status_email
from libs.common.errors import ConflictError, ForbiddenError
from libs.common.logging import get_logger
from services.members_service.models import ApplicationStatus, MemberApplication
from services.members_service.services.member_ops import get_application
from services.payments_service.models import PaymentStatus
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)


async def _notify_status_change(
    application: MemberApplication, status_type: str, status: str
) -> None:
    """Email the applicant. Failures are logged, never raised."""
    context = {
        "application_id": str(application.id),
        "email": application.email,
        "status_type": status_type,
        "status": status,
    }
    try:
        sent = await send_member_status_email(
            application.email,
            application.name,
            status_type,
            status,
            member_type=application.type.value,
            amount=application.amount,
            transaction_id=application.transaction_id,
        )
    except Exception:
        logger.exception(
            f"Failed to send {status_type} status email", extra={"extra_fields": context}
        )
        return
    if not sent:
        logger.error(
            f"Failed to send {status_type} status email", extra={"extra_fields": context}
        )


def check_approval_allowed(application: MemberApplication) -> None:
    """Hook run before an application is approved.

    Application and payment status are independent unless
    ``REQUIRE_PAYMENT_FOR_APPROVAL`` is set, in which case approval needs a
    completed payment.
    """
    if (
        get_settings().REQUIRE_PAYMENT_FOR_APPROVAL
        and application.payment_status != PaymentStatus.COMPLETED
    ):
        raise ConflictError(
            "Payment must be completed before the application can be approved",
            details={"payment_status": application.payment_status.value},
        )


async def set_application_status(
    db: AsyncSession, application_id: uuid.UUID, status: ApplicationStatus
) -> MemberApplication:
    """Set the review outcome. Any value may follow any other (admin correction)."""
    application = await get_application(db, application_id)
    previous = application.application_status
    status = ApplicationStatus(status)

    if status == ApplicationStatus.APPROVED and previous != status:
        check_approval_allowed(application)

    application.application_status = status
    await db.commit()
    await db.refresh(application)

    logger.info(
        f"Application {application.id} status {previous.value} -> {status.value}"
    )
    if previous != status and application.email:
        await _notify_status_change(application, "application", status.value)
    return application


async def set_payment_status(
    db: AsyncSession, application_id: uuid.UUID, status: PaymentStatus
) -> MemberApplication:
    """Set the payment status, e.g. after checking a bank receipt."""
    application = await get_application(db, application_id)
    previous = application.payment_status
    status = PaymentStatus(status)

    application.payment_status = status
    await db.commit()
    await db.refresh(application)

    logger.info(
        f"Application {application.id} payment {previous.value} -> {status.value}"
    )
    if previous != status and application.email:
        await _notify_status_change(application, "payment", status.value)
    return application


async def delete_application(
    db: AsyncSession, application_id: uuid.UUID
) -> MemberApplication:
    """Delete an application unless it has been approved."""
    application = await get_application(db, application_id)
    if application.application_status == ApplicationStatus.APPROVED:
        raise ForbiddenError(
            "Cannot delete approved applications. Please reject the application instead."
        )

    await db.delete(application)
    await db.commit()
    logger.info(f"Application {application.id} deleted")
    return application
