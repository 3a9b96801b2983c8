"""Public donation checkout, gateway callbacks and the donor's own history."""

from typing import Optional

from fastapi import APIRouter, Depends, Form, Request, status
from libs.auth.dependencies import get_current_user
from libs.auth.models import AuthUser
from libs.common.errors import GatewayUnavailable, NotFoundError, ValidationMismatch
from libs.common.logging import get_logger
from libs.common.rate_limit import PAYMENT_INIT_LIMIT, limiter
from libs.db.session import get_async_db
from services.donations_service.schemas import (
    DonationCreateRequest,
    DonationInitiated,
    DonationInitiatedResponse,
    DonationResponse,
    MyDonationsResponse,
)
from services.donations_service.services.donation_ops import (
    initiate_donation,
    list_donations_for_contacts,
    reconcile_donation_callback,
)
from services.payments_service.models import CallbackOutcome
from services.payments_service.redirects import page_outcome, redirect_page
from services.payments_service.sslcommerz_client import SSLCommerzClient, get_gateway_client
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/donations", tags=["donations"])
logger = get_logger(__name__)


@router.post("", response_model=DonationInitiatedResponse)
@router.post("/", response_model=DonationInitiatedResponse, include_in_schema=False)
@limiter.limit(PAYMENT_INIT_LIMIT)
async def create_donation(
    request: Request,
    payload: DonationCreateRequest,
    db: AsyncSession = Depends(get_async_db),
    gateway: SSLCommerzClient = Depends(get_gateway_client),
):
    """
    Start a donation checkout and return the gateway page to redirect to.
    """
    initiated = await initiate_donation(db, gateway, payload)
    return DonationInitiatedResponse(
        data=DonationInitiated(
            id=initiated.donation.id,
            url=initiated.redirect_url,
            transactionId=initiated.donation.transaction_id,
        )
    )


async def _handle_callback(
    outcome: CallbackOutcome,
    tran_id: Optional[str],
    val_id: Optional[str],
    db: AsyncSession,
    gateway: SSLCommerzClient,
):
    if not tran_id:
        logger.warning(f"Donation {outcome.value} callback without tran_id")
        return redirect_page(CallbackOutcome.FAIL, status_code=status.HTTP_400_BAD_REQUEST)

    try:
        donation = await reconcile_donation_callback(db, gateway, tran_id, outcome, val_id)
    except NotFoundError:
        return redirect_page(CallbackOutcome.FAIL, tran_id, status.HTTP_404_NOT_FOUND)
    except ValidationMismatch as exc:
        logger.warning(
            f"Rejected donation success callback for {tran_id}: {exc.message}",
            extra={"extra_fields": {"details": exc.details}},
        )
        return redirect_page(CallbackOutcome.FAIL, tran_id, status.HTTP_400_BAD_REQUEST)
    except GatewayUnavailable:
        return redirect_page(CallbackOutcome.FAIL, tran_id, status.HTTP_502_BAD_GATEWAY)

    return redirect_page(page_outcome(donation.status, outcome), tran_id)


@router.post("/payment/success", include_in_schema=False)
async def donation_payment_success(
    tran_id: Optional[str] = Form(None),
    val_id: Optional[str] = Form(None),
    db: AsyncSession = Depends(get_async_db),
    gateway: SSLCommerzClient = Depends(get_gateway_client),
):
    return await _handle_callback(CallbackOutcome.SUCCESS, tran_id, val_id, db, gateway)


@router.post("/payment/fail", include_in_schema=False)
async def donation_payment_fail(
    tran_id: Optional[str] = Form(None),
    val_id: Optional[str] = Form(None),
    db: AsyncSession = Depends(get_async_db),
    gateway: SSLCommerzClient = Depends(get_gateway_client),
):
    return await _handle_callback(CallbackOutcome.FAIL, tran_id, val_id, db, gateway)


@router.post("/payment/cancel", include_in_schema=False)
async def donation_payment_cancel(
    tran_id: Optional[str] = Form(None),
    val_id: Optional[str] = Form(None),
    db: AsyncSession = Depends(get_async_db),
    gateway: SSLCommerzClient = Depends(get_gateway_client),
):
    return await _handle_callback(CallbackOutcome.CANCEL, tran_id, val_id, db, gateway)


@router.get("/my", response_model=MyDonationsResponse)
async def get_my_donations(
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    """
    Donations made under the caller's email or phone number.
    """
    donations = await list_donations_for_contacts(db, current_user.contacts)
    return MyDonationsResponse(
        data=[DonationResponse.model_validate(d) for d in donations]
    )
