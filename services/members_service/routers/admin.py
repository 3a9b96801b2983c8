"""Admin review of member applications."""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query
from libs.auth.dependencies import require_admin
from libs.auth.models import AuthUser
from libs.common.errors import ValidationError
from libs.db.session import get_async_db
from services.members_service.models import ApplicationStatus, MemberType
from services.members_service.schemas import (
    ApplicationPagination,
    ApplicationStatusUpdate,
    MemberApplicationDetailResponse,
    MemberApplicationListResponse,
    MemberApplicationResponse,
    MessageResponse,
    PaymentStatusUpdate,
)
from services.members_service.services.member_ops import (
    ApplicationFilters,
    get_application,
    list_applications,
)
from services.members_service.services.status_ops import (
    delete_application,
    set_application_status,
    set_payment_status,
)
from services.payments_service.models import PaymentStatus
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/members", tags=["admin-members"])


def _payment_status_filter(value: Optional[str]) -> Optional[PaymentStatus]:
    if not value:
        return None
    try:
        return PaymentStatus("cancelled" if value == "cancel" else value)
    except ValueError:
        raise ValidationError(
            "Invalid paymentStatus", details={"paymentStatus": value}
        )


@router.get("", response_model=MemberApplicationListResponse)
@router.get("/", response_model=MemberApplicationListResponse, include_in_schema=False)
async def list_member_applications(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    status: Optional[ApplicationStatus] = Query(None),
    payment_status: Optional[str] = Query(None, alias="paymentStatus"),
    type: Optional[MemberType] = Query(None),
    search_term: Optional[str] = Query(None, alias="searchTerm"),
    _admin: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    filters = ApplicationFilters(
        application_status=status,
        payment_status=_payment_status_filter(payment_status),
        type=type,
        search_term=search_term,
    )
    applications, pagination = await list_applications(db, filters, page, limit)
    return MemberApplicationListResponse(
        data=[MemberApplicationResponse.model_validate(a) for a in applications],
        pagination=ApplicationPagination(**pagination),
    )


@router.get("/{application_id}", response_model=MemberApplicationDetailResponse)
async def get_member_application(
    application_id: uuid.UUID,
    _admin: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    application = await get_application(db, application_id)
    return MemberApplicationDetailResponse(
        data=MemberApplicationResponse.model_validate(application)
    )


@router.patch("/{application_id}/status", response_model=MemberApplicationDetailResponse)
async def update_application_status(
    application_id: uuid.UUID,
    payload: ApplicationStatusUpdate,
    _admin: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    application = await set_application_status(db, application_id, payload.status)
    return MemberApplicationDetailResponse(
        data=MemberApplicationResponse.model_validate(application),
        message="Application status updated successfully",
    )


@router.patch(
    "/{application_id}/payment-status", response_model=MemberApplicationDetailResponse
)
async def update_application_payment_status(
    application_id: uuid.UUID,
    payload: PaymentStatusUpdate,
    _admin: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    application = await set_payment_status(db, application_id, payload.payment_status)
    return MemberApplicationDetailResponse(
        data=MemberApplicationResponse.model_validate(application),
        message="Application payment status updated successfully",
    )


@router.delete("/{application_id}", response_model=MessageResponse)
async def remove_member_application(
    application_id: uuid.UUID,
    _admin: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    await delete_application(db, application_id)
    return MessageResponse(message="Member application deleted successfully")
