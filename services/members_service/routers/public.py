"""Public membership endpoints: online checkout, gateway callbacks, bank applications."""

from typing import Optional

from fastapi import APIRouter, Depends, Form, Request, status
from libs.common.errors import (
    ConflictError,
    GatewayUnavailable,
    NotFoundError,
    ValidationMismatch,
)
from libs.common.logging import get_logger
from libs.common.rate_limit import PAYMENT_INIT_LIMIT, limiter
from libs.db.session import get_async_db
from services.members_service.schemas import (
    ApplicationSummary,
    ApplicationSummaryResponse,
    BankApplicationRequest,
    CompletePaymentRequest,
    OnlinePaymentInitiated,
    OnlinePaymentInitiatedResponse,
    OnlinePaymentRequest,
)
from services.members_service.services.member_ops import (
    complete_member_payment,
    initiate_member_payment,
    reconcile_member_callback,
    submit_bank_application,
)
from services.payments_service.models import CallbackOutcome
from services.payments_service.redirects import page_outcome, redirect_page
from services.payments_service.sslcommerz_client import SSLCommerzClient, get_gateway_client
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/members", tags=["members"])
logger = get_logger(__name__)


@router.post("/online-payment", response_model=OnlinePaymentInitiatedResponse)
@limiter.limit(PAYMENT_INIT_LIMIT)
async def start_online_payment(
    request: Request,
    payload: OnlinePaymentRequest,
    db: AsyncSession = Depends(get_async_db),
    gateway: SSLCommerzClient = Depends(get_gateway_client),
):
    """
    Start a membership checkout and return the gateway page to redirect to.
    """
    initiated = await initiate_member_payment(db, gateway, payload)
    return OnlinePaymentInitiatedResponse(
        data=OnlinePaymentInitiated(
            url=initiated.redirect_url,
            transactionId=initiated.session.transaction_id,
        )
    )


@router.post("/complete-payment", response_model=ApplicationSummaryResponse)
async def complete_online_payment(
    payload: CompletePaymentRequest,
    db: AsyncSession = Depends(get_async_db),
    gateway: SSLCommerzClient = Depends(get_gateway_client),
):
    """
    Confirm a gateway payment and create the membership application.
    """
    application = await complete_member_payment(
        db, gateway, payload.transaction_id, payload.val_id
    )
    return ApplicationSummaryResponse(
        data=ApplicationSummary(
            id=application.id,
            type=application.type,
            status=application.application_status,
            paymentMethod=application.payment_method,
            transactionId=application.transaction_id,
        ),
        message="Member application submitted successfully",
    )


async def _handle_callback(
    outcome: CallbackOutcome,
    tran_id: Optional[str],
    val_id: Optional[str],
    db: AsyncSession,
    gateway: SSLCommerzClient,
):
    if not tran_id:
        logger.warning(f"Member {outcome.value} callback without tran_id")
        return redirect_page(CallbackOutcome.FAIL, status_code=status.HTTP_400_BAD_REQUEST)

    try:
        session = await reconcile_member_callback(db, gateway, tran_id, outcome, val_id)
    except NotFoundError:
        return redirect_page(CallbackOutcome.FAIL, tran_id, status.HTTP_404_NOT_FOUND)
    except (ValidationMismatch, ConflictError) as exc:
        logger.warning(
            f"Rejected member success callback for {tran_id}: {exc.message}",
            extra={"extra_fields": {"details": exc.details}},
        )
        return redirect_page(CallbackOutcome.FAIL, tran_id, exc.status_code)
    except GatewayUnavailable:
        return redirect_page(CallbackOutcome.FAIL, tran_id, status.HTTP_502_BAD_GATEWAY)

    return redirect_page(page_outcome(session.status, outcome), tran_id)


@router.post("/payment/success", include_in_schema=False)
async def member_payment_success(
    tran_id: Optional[str] = Form(None),
    val_id: Optional[str] = Form(None),
    db: AsyncSession = Depends(get_async_db),
    gateway: SSLCommerzClient = Depends(get_gateway_client),
):
    return await _handle_callback(CallbackOutcome.SUCCESS, tran_id, val_id, db, gateway)


@router.post("/payment/fail", include_in_schema=False)
async def member_payment_fail(
    tran_id: Optional[str] = Form(None),
    val_id: Optional[str] = Form(None),
    db: AsyncSession = Depends(get_async_db),
    gateway: SSLCommerzClient = Depends(get_gateway_client),
):
    return await _handle_callback(CallbackOutcome.FAIL, tran_id, val_id, db, gateway)


@router.post("/payment/cancel", include_in_schema=False)
async def member_payment_cancel(
    tran_id: Optional[str] = Form(None),
    val_id: Optional[str] = Form(None),
    db: AsyncSession = Depends(get_async_db),
    gateway: SSLCommerzClient = Depends(get_gateway_client),
):
    return await _handle_callback(CallbackOutcome.CANCEL, tran_id, val_id, db, gateway)


@router.post(
    "/apply",
    response_model=ApplicationSummaryResponse,
    status_code=status.HTTP_201_CREATED,
)
@limiter.limit(PAYMENT_INIT_LIMIT)
async def submit_application(
    request: Request,
    payload: BankApplicationRequest,
    db: AsyncSession = Depends(get_async_db),
):
    """
    Submit an application paid by bank transfer or deposit.

    ``paymentDocumentUrl`` points at the already-uploaded receipt.
    """
    application = await submit_bank_application(db, payload)
    return ApplicationSummaryResponse(
        data=ApplicationSummary(
            id=application.id,
            type=application.type,
            status=application.application_status,
            paymentMethod=application.payment_method,
            transactionId=application.transaction_id,
        ),
        message="Application submitted successfully",
    )
