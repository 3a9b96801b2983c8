"""Integration tests for donation checkout, gateway callbacks and reporting."""

import uuid
from unittest.mock import AsyncMock, patch

import pytest
from libs.auth.dependencies import get_current_user
from libs.common.errors import GatewayUnavailable
from services.donations_service.models import Donation
from services.gateway_service.app.main import app
from services.payments_service.models import PaymentStatus
from services.payments_service.sslcommerz_client import (
    GatewaySessionCreated,
    GatewaySessionRejected,
)
from services.users_service.models import User
from sqlalchemy import func, select
from tests.factories import DonationFactory

SEND_PASSWORD_EMAIL = "services.donations_service.services.donation_ops.send_password_email"

DONATION = {"purpose": "zakat_fund", "contact": "donor@example.com", "amount": 500}


async def _donation_count(db) -> int:
    return (await db.execute(select(func.count(Donation.id)))).scalar_one()


async def _reload(db, transaction_id) -> Donation:
    result = await db.execute(
        select(Donation)
        .where(Donation.transaction_id == transaction_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one()


async def _initiate(client, api_prefix, body=None) -> str:
    response = await client.post(f"{api_prefix}/donations", json=body or DONATION)
    assert response.status_code == 200, response.text
    return response.json()["data"]["transactionId"]


# ---------------------------------------------------------------------------
# POST /donations
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_donation_checkout_then_success_callback(
    client, db_session, gateway, settings, monkeypatch, api_prefix
):
    """Initiate a donation, then settle it through the success callback."""
    monkeypatch.setattr(settings, "SSLCOMMERZ_VERIFY_CALLBACKS", False)
    gateway.init_result = GatewaySessionCreated(
        redirect_url="https://gw/pay/abc",
        session_key=None,
        raw={"GatewayPageURL": "https://gw/pay/abc"},
    )

    response = await client.post(f"{api_prefix}/donations", json=DONATION)

    assert response.status_code == 200, response.text
    body = response.json()
    assert body["success"] is True
    assert body["data"]["url"] == "https://gw/pay/abc"
    donations = (await db_session.execute(select(Donation))).scalars().all()
    assert len(donations) == 1
    donation = donations[0]
    assert str(donation.id) == body["data"]["id"]
    assert donation.status == PaymentStatus.PENDING
    assert donation.amount == 500

    with patch(SEND_PASSWORD_EMAIL, new=AsyncMock(return_value=True)):
        callback = await client.post(
            f"{api_prefix}/donations/payment/success",
            data={"tran_id": donation.transaction_id},
        )

    assert callback.status_code == 200
    assert callback.headers["content-type"].startswith("text/html")
    assert (
        f"{settings.FRONTEND_URL}/payment/success?tran_id={donation.transaction_id}"
        in callback.text
    )
    assert (await _reload(db_session, donation.transaction_id)).status == PaymentStatus.COMPLETED


@pytest.mark.asyncio
@pytest.mark.integration
async def test_gateway_request_built_from_server_config(client, gateway, api_prefix):
    await client.post(
        f"{api_prefix}/donations", json={**DONATION, "name": "Abu Bakr"}
    )

    sent = gateway.session_requests[0]
    assert sent.amount == 500
    assert sent.customer_name == "Abu Bakr"
    assert sent.product_name == "zakat_fund"
    assert sent.success_url == f"http://api.test{api_prefix}/donations/payment/success"
    assert sent.cancel_url == f"http://api.test{api_prefix}/donations/payment/cancel"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_gateway_rejection_leaves_no_record(client, db_session, gateway, api_prefix):
    gateway.init_result = GatewaySessionRejected(
        reason="Store Credential Error Or Store is De-active",
        raw={"status": "FAILED"},
    )

    response = await client.post(f"{api_prefix}/donations", json=DONATION)

    assert response.status_code == 400
    body = response.json()
    assert body["code"] == "GATEWAY_INITIATION_FAILED"
    assert body["message"] == "Store Credential Error Or Store is De-active"
    assert await _donation_count(db_session) == 0


@pytest.mark.asyncio
@pytest.mark.integration
async def test_gateway_unavailable_leaves_no_record(
    client, db_session, unavailable_gateway, api_prefix
):
    response = await client.post(f"{api_prefix}/donations", json=DONATION)

    assert response.status_code == 502
    assert response.json()["code"] == "GATEWAY_UNAVAILABLE"
    assert await _donation_count(db_session) == 0


@pytest.mark.asyncio
@pytest.mark.integration
async def test_invalid_donation_never_reaches_gateway(client, gateway, api_prefix):
    response = await client.post(
        f"{api_prefix}/donations", json={**DONATION, "contact": "nobody"}
    )

    assert response.status_code == 400
    body = response.json()
    assert body["code"] == "VALIDATION_ERROR"
    assert body["details"][0]["field"] == "contact"
    assert gateway.session_requests == []


# ---------------------------------------------------------------------------
# Callbacks
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_returned_transaction_id_matches_callbacks(
    client, db_session, gateway, api_prefix
):
    tran_id = await _initiate(client, api_prefix)
    assert tran_id == gateway.last_transaction_id

    response = await client.post(
        f"{api_prefix}/donations/payment/fail", data={"tran_id": tran_id}
    )

    assert response.status_code == 200
    assert f"/payment/fail?tran_id={tran_id}" in response.text
    assert (await _reload(db_session, tran_id)).status == PaymentStatus.FAILED


@pytest.mark.asyncio
@pytest.mark.integration
async def test_cancelled_donation_is_failed(client, db_session, api_prefix):
    tran_id = await _initiate(client, api_prefix)

    response = await client.post(
        f"{api_prefix}/donations/payment/cancel", data={"tran_id": tran_id}
    )

    assert "/payment/unsuccessfull?tran_id=" in response.text
    assert (await _reload(db_session, tran_id)).status == PaymentStatus.FAILED


@pytest.mark.asyncio
@pytest.mark.integration
async def test_completed_donation_ignores_later_fail(
    client, db_session, gateway, api_prefix
):
    """A terminal state is final: a late fail/cancel callback changes nothing."""
    tran_id = await _initiate(client, api_prefix)
    gateway.settle("VAL-1", tran_id, 500)

    with patch(SEND_PASSWORD_EMAIL, new=AsyncMock(return_value=True)):
        await client.post(
            f"{api_prefix}/donations/payment/success",
            data={"tran_id": tran_id, "val_id": "VAL-1"},
        )
    assert (await _reload(db_session, tran_id)).status == PaymentStatus.COMPLETED

    for path in ("fail", "cancel"):
        response = await client.post(
            f"{api_prefix}/donations/payment/{path}", data={"tran_id": tran_id}
        )
        assert response.status_code == 200
        assert "/payment/success?" in response.text

    assert (await _reload(db_session, tran_id)).status == PaymentStatus.COMPLETED


@pytest.mark.asyncio
@pytest.mark.integration
async def test_failed_donation_ignores_later_success(
    client, db_session, gateway, api_prefix
):
    tran_id = await _initiate(client, api_prefix)
    gateway.settle("VAL-1", tran_id, 500)
    await client.post(f"{api_prefix}/donations/payment/fail", data={"tran_id": tran_id})

    response = await client.post(
        f"{api_prefix}/donations/payment/success",
        data={"tran_id": tran_id, "val_id": "VAL-1"},
    )

    assert "/payment/fail?" in response.text
    assert (await _reload(db_session, tran_id)).status == PaymentStatus.FAILED
    assert gateway.validated == []


@pytest.mark.asyncio
@pytest.mark.integration
async def test_verified_success_callback_stores_validation(
    client, db_session, gateway, api_prefix
):
    tran_id = await _initiate(client, api_prefix)
    gateway.settle("VAL-OK", tran_id, 500.4)

    with patch(SEND_PASSWORD_EMAIL, new=AsyncMock(return_value=True)):
        response = await client.post(
            f"{api_prefix}/donations/payment/success",
            data={"tran_id": tran_id, "val_id": "VAL-OK"},
        )

    assert response.status_code == 200
    donation = await _reload(db_session, tran_id)
    assert donation.status == PaymentStatus.COMPLETED
    assert donation.gateway_val_id == "VAL-OK"
    assert donation.gateway_payload["tran_id"] == tran_id


@pytest.mark.asyncio
@pytest.mark.integration
@pytest.mark.parametrize(
    "form, settle",
    [
        pytest.param({}, None, id="no-val-id"),
        pytest.param({"val_id": "VAL-X"}, None, id="unknown-val-id"),
        pytest.param({"val_id": "VAL-X"}, ("other", 500), id="other-transaction"),
        pytest.param({"val_id": "VAL-X"}, ("self", 50), id="wrong-amount"),
    ],
)
async def test_unverified_success_callback_is_rejected(
    client, db_session, gateway, api_prefix, form, settle
):
    tran_id = await _initiate(client, api_prefix)
    if settle:
        settled_tran, amount = settle
        gateway.settle("VAL-X", tran_id if settled_tran == "self" else "DON-other", amount)

    response = await client.post(
        f"{api_prefix}/donations/payment/success", data={"tran_id": tran_id, **form}
    )

    assert response.status_code == 400
    assert "/payment/fail?" in response.text
    assert (await _reload(db_session, tran_id)).status == PaymentStatus.PENDING


@pytest.mark.asyncio
@pytest.mark.integration
async def test_validation_outage_keeps_donation_pending(
    client, db_session, gateway, api_prefix
):
    tran_id = await _initiate(client, api_prefix)
    gateway.validation_error = GatewayUnavailable("Payment gateway is unreachable")

    response = await client.post(
        f"{api_prefix}/donations/payment/success",
        data={"tran_id": tran_id, "val_id": "VAL-1"},
    )

    assert response.status_code == 502
    assert (await _reload(db_session, tran_id)).status == PaymentStatus.PENDING


@pytest.mark.asyncio
@pytest.mark.integration
async def test_callback_for_unknown_transaction(client, api_prefix):
    response = await client.post(
        f"{api_prefix}/donations/payment/fail", data={"tran_id": "DON-unknown"}
    )

    assert response.status_code == 404
    assert "/payment/fail?tran_id=DON-unknown" in response.text


@pytest.mark.asyncio
@pytest.mark.integration
async def test_callback_without_transaction_id(client, api_prefix):
    response = await client.post(f"{api_prefix}/donations/payment/success", data={})

    assert response.status_code == 400
    assert "/payment/fail" in response.text


@pytest.mark.asyncio
@pytest.mark.integration
async def test_success_callback_provisions_donor(
    client, db_session, gateway, api_prefix
):
    tran_id = await _initiate(
        client, api_prefix, {**DONATION, "contact": "New.Donor@example.com"}
    )
    gateway.settle("VAL-1", tran_id, 500)

    with patch(SEND_PASSWORD_EMAIL, new=AsyncMock(return_value=True)) as send:
        await client.post(
            f"{api_prefix}/donations/payment/success",
            data={"tran_id": tran_id, "val_id": "VAL-1"},
        )

    users = (await db_session.execute(select(User))).scalars().all()
    assert [u.email for u in users] == ["new.donor@example.com"]
    send.assert_awaited_once()


# ---------------------------------------------------------------------------
# Reporting
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_admin_lists_completed_donations_with_total(client, db_session, api_prefix):
    db_session.add_all(
        [
            DonationFactory.create(status=PaymentStatus.COMPLETED, amount=500),
            DonationFactory.create(status=PaymentStatus.COMPLETED, amount=1500),
            DonationFactory.create(
                status=PaymentStatus.COMPLETED, amount=200, purpose="iftar_program"
            ),
            DonationFactory.create(status=PaymentStatus.PENDING, amount=9999),
            DonationFactory.create(status=PaymentStatus.FAILED, amount=9999),
        ]
    )
    await db_session.commit()

    response = await client.get(f"{api_prefix}/donations", params={"limit": 2})

    assert response.status_code == 200, response.text
    body = response.json()
    assert len(body["data"]) == 2
    assert body["pagination"] == {"page": 1, "limit": 2, "total": 3, "totalPages": 2}
    assert body["totalDonationAmount"] == 2200

    filtered = await client.get(
        f"{api_prefix}/donations", params={"purpose": "zakat_fund"}
    )
    assert filtered.json()["totalDonationAmount"] == 2000


@pytest.mark.asyncio
@pytest.mark.integration
async def test_admin_donation_detail(client, db_session, api_prefix):
    donation = DonationFactory.create(status=PaymentStatus.COMPLETED)
    db_session.add(donation)
    await db_session.commit()

    response = await client.get(f"{api_prefix}/donations/{donation.id}")
    missing = await client.get(f"{api_prefix}/donations/{uuid.uuid4()}")

    assert response.status_code == 200
    assert response.json()["data"]["transaction_id"] == donation.transaction_id
    assert missing.status_code == 404


@pytest.mark.asyncio
@pytest.mark.integration
async def test_donation_reports_need_admin(client, donor_user, api_prefix):
    app.dependency_overrides[get_current_user] = lambda: donor_user

    response = await client.get(f"{api_prefix}/donations")

    assert response.status_code == 403


@pytest.mark.asyncio
@pytest.mark.integration
async def test_my_donations_match_email_or_phone(client, db_session, donor_user, api_prefix):
    db_session.add_all(
        [
            DonationFactory.create(contact="donor@example.com"),
            DonationFactory.create(contact="01712345678"),
            DonationFactory.create(contact="someone-else@example.com"),
        ]
    )
    await db_session.commit()
    app.dependency_overrides[get_current_user] = lambda: donor_user

    response = await client.get(f"{api_prefix}/donations/my")

    assert response.status_code == 200
    contacts = {d["contact"] for d in response.json()["data"]}
    assert contacts == {"donor@example.com", "01712345678"}


@pytest.mark.asyncio
@pytest.mark.integration
async def test_my_donations_ignore_email_case(client, db_session, donor_user, api_prefix):
    db_session.add_all(
        [
            DonationFactory.create(contact="Donor@Example.com"),
            DonationFactory.create(contact="DONOR@EXAMPLE.COM"),
        ]
    )
    await db_session.commit()
    app.dependency_overrides[get_current_user] = lambda: donor_user

    response = await client.get(f"{api_prefix}/donations/my")

    assert response.status_code == 200
    contacts = {d["contact"] for d in response.json()["data"]}
    assert contacts == {"Donor@Example.com", "DONOR@EXAMPLE.COM"}
