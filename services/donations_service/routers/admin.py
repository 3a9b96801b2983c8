"""Admin donation reporting."""

import uuid
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from libs.auth.dependencies import require_admin
from libs.auth.models import AuthUser
from libs.db.session import get_async_db
from services.donations_service.schemas import (
    DonationDetailResponse,
    DonationListResponse,
    DonationResponse,
    Pagination,
)
from services.donations_service.services.donation_ops import (
    DonationFilters,
    get_donation,
    list_donations,
)
from services.payments_service.models import PaymentStatus
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/donations", tags=["admin-donations"])


@router.get("", response_model=DonationListResponse)
@router.get("/", response_model=DonationListResponse, include_in_schema=False)
async def list_completed_donations(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    tran_id: Optional[str] = Query(None),
    purpose: Optional[str] = Query(None),
    contact: Optional[str] = Query(None),
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
    _admin: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """
    Completed donations, newest first, with the total amount for the same filters.
    """
    filters = DonationFilters(
        status=PaymentStatus.COMPLETED,
        transaction_id=tran_id,
        purpose=purpose,
        contact=contact,
        start_date=start_date,
        end_date=end_date,
    )
    donations, pagination, total_amount = await list_donations(db, filters, page, limit)
    return DonationListResponse(
        data=[DonationResponse.model_validate(d) for d in donations],
        pagination=Pagination(**pagination),
        totalDonationAmount=total_amount,
    )


@router.get("/{donation_id}", response_model=DonationDetailResponse)
async def get_donation_detail(
    donation_id: uuid.UUID,
    _admin: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    donation = await get_donation(db, donation_id)
    return DonationDetailResponse(data=DonationResponse.model_validate(donation))
