"""Unit tests for admin status changes on member applications.

status_ops functions are called directly with the db_session fixture; the
email collaborator is mocked.
"""

import uuid
from unittest.mock import AsyncMock, patch

import pytest
from libs.common.errors import ConflictError, ForbiddenError, NotFoundError
from services.members_service.models import ApplicationStatus, MemberApplication
from services.members_service.services.status_ops import (
    delete_application,
    set_application_status,
    set_payment_status,
)
from services.payments_service.models import PaymentStatus
from tests.factories import MemberApplicationFactory

SEND_STATUS_EMAIL = "services.members_service.services.status_ops.send_member_status_email"


async def _make_application(db, **overrides) -> MemberApplication:
    application = MemberApplicationFactory.create(**overrides)
    db.add(application)
    await db.commit()
    await db.refresh(application)
    return application


# ---------------------------------------------------------------------------
# Notifications fire only on change
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.unit
async def test_same_application_status_sends_nothing(db_session):
    application = await _make_application(db_session)

    with patch(SEND_STATUS_EMAIL, new=AsyncMock(return_value=True)) as send:
        await set_application_status(
            db_session, application.id, ApplicationStatus.PENDING_APPROVAL
        )

    send.assert_not_awaited()


@pytest.mark.asyncio
@pytest.mark.unit
async def test_changed_application_status_sends_once(db_session):
    application = await _make_application(db_session, email="fatima@example.com")

    with patch(SEND_STATUS_EMAIL, new=AsyncMock(return_value=True)) as send:
        updated = await set_application_status(
            db_session, application.id, ApplicationStatus.REJECTED
        )

    assert updated.application_status == ApplicationStatus.REJECTED
    send.assert_awaited_once()
    args, kwargs = send.call_args
    assert args[:4] == ("fatima@example.com", "Fatima Begum", "application", "rejected")
    assert kwargs["member_type"] == "donor"


@pytest.mark.asyncio
@pytest.mark.unit
async def test_changed_payment_status_sends_once(db_session):
    application = await _make_application(db_session)

    with patch(SEND_STATUS_EMAIL, new=AsyncMock(return_value=True)) as send:
        await set_payment_status(db_session, application.id, PaymentStatus.COMPLETED)
        await set_payment_status(db_session, application.id, PaymentStatus.COMPLETED)

    send.assert_awaited_once()
    assert send.call_args.args[2:4] == ("payment", "completed")


@pytest.mark.asyncio
@pytest.mark.unit
async def test_no_email_address_means_no_notification(db_session):
    application = await _make_application(db_session, email=None)

    with patch(SEND_STATUS_EMAIL, new=AsyncMock(return_value=True)) as send:
        await set_application_status(db_session, application.id, ApplicationStatus.APPROVED)

    send.assert_not_awaited()


@pytest.mark.asyncio
@pytest.mark.unit
@pytest.mark.parametrize(
    "mock",
    [
        AsyncMock(return_value=False),
        AsyncMock(side_effect=RuntimeError("smtp exploded")),
    ],
)
async def test_email_failure_does_not_fail_update(db_session, mock):
    application = await _make_application(db_session)

    with patch(SEND_STATUS_EMAIL, new=mock):
        updated = await set_application_status(
            db_session, application.id, ApplicationStatus.APPROVED
        )

    assert updated.application_status == ApplicationStatus.APPROVED


@pytest.mark.asyncio
@pytest.mark.unit
async def test_any_status_may_follow_any_other(db_session):
    application = await _make_application(
        db_session, application_status=ApplicationStatus.REJECTED
    )

    with patch(SEND_STATUS_EMAIL, new=AsyncMock(return_value=True)):
        updated = await set_application_status(
            db_session, application.id, ApplicationStatus.PENDING_APPROVAL
        )

    assert updated.application_status == ApplicationStatus.PENDING_APPROVAL


# ---------------------------------------------------------------------------
# Approval hook
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.unit
async def test_approval_needs_payment_when_configured(db_session, settings, monkeypatch):
    monkeypatch.setattr(settings, "REQUIRE_PAYMENT_FOR_APPROVAL", True)
    unpaid = await _make_application(db_session)
    paid = await _make_application(db_session, payment_status=PaymentStatus.COMPLETED)

    with patch(SEND_STATUS_EMAIL, new=AsyncMock(return_value=True)):
        with pytest.raises(ConflictError):
            await set_application_status(db_session, unpaid.id, ApplicationStatus.APPROVED)
        approved = await set_application_status(
            db_session, paid.id, ApplicationStatus.APPROVED
        )

    await db_session.refresh(unpaid)
    assert unpaid.application_status == ApplicationStatus.PENDING_APPROVAL
    assert approved.application_status == ApplicationStatus.APPROVED


@pytest.mark.asyncio
@pytest.mark.unit
async def test_statuses_are_independent_by_default(db_session):
    application = await _make_application(db_session)

    with patch(SEND_STATUS_EMAIL, new=AsyncMock(return_value=True)):
        updated = await set_application_status(
            db_session, application.id, ApplicationStatus.APPROVED
        )

    assert updated.application_status == ApplicationStatus.APPROVED
    assert updated.payment_status == PaymentStatus.PENDING_VERIFICATION


# ---------------------------------------------------------------------------
# Deletion guard
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.unit
async def test_approved_application_cannot_be_deleted(db_session):
    application = await _make_application(
        db_session, application_status=ApplicationStatus.APPROVED
    )

    with pytest.raises(ForbiddenError):
        await delete_application(db_session, application.id)

    assert await db_session.get(MemberApplication, application.id) is not None


@pytest.mark.asyncio
@pytest.mark.unit
async def test_pending_application_can_be_deleted(db_session):
    application = await _make_application(db_session)

    await delete_application(db_session, application.id)

    db_session.expunge_all()
    assert await db_session.get(MemberApplication, application.id) is None


@pytest.mark.asyncio
@pytest.mark.unit
async def test_unknown_application(db_session):
    with pytest.raises(NotFoundError):
        await set_payment_status(db_session, uuid.uuid4(), PaymentStatus.FAILED)
