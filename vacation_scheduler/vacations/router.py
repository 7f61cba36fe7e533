"""Vacation router — drafts, approval transitions, quotas, overlaps, dashboard.

All endpoints require authentication. Role checks live in the service so the
same rules apply to every caller.
"""


import uuid
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from vacation_scheduler.auth.dependencies import (
    get_app_settings,
    get_current_user,
    require_admin,
)
from vacation_scheduler.common.constants import MAX_PAGE_SIZE, VacationStatus
from vacation_scheduler.config import Settings
from vacation_scheduler.database import get_db
from vacation_scheduler.org.models import User
from vacation_scheduler.vacations.schemas import (
    IntersectionListOut,
    IntersectionNotifyOut,
    ManagerDashboardOut,
    UserQuotaListOut,
    VacationLimitOut,
    VacationLimitUpdate,
    VacationRejectRequest,
    VacationRequestCreate,
    VacationRequestListOut,
    VacationRequestOut,
    VacationRequestUpdate,
)
from vacation_scheduler.vacations.service import VacationService

router = APIRouter(prefix="", tags=["vacations"])


# ── POST /requests ──────────────────────────────────────────────────

@router.post(
    "/requests",
    response_model=VacationRequestOut,
    status_code=status.HTTP_201_CREATED,
)
async def create_request(
    body: VacationRequestCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Create a draft vacation plan for the authenticated user."""
    return await VacationService.create_request(db, user, body)


# ── GET /requests ───────────────────────────────────────────────────

@router.get("/requests", response_model=VacationRequestListOut)
async def list_requests(
    year: Optional[int] = Query(None),
    status_id: Optional[VacationStatus] = Query(None, alias="status"),
    user_id: Optional[uuid.UUID] = Query(None),
    unit_id: Optional[uuid.UUID] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=MAX_PAGE_SIZE),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """List requests visible to the caller (own, unit, or all for admins)."""
    return await VacationService.list_requests(
        db,
        user,
        year=year,
        status=status_id,
        user_id=user_id,
        unit_id=unit_id,
        page=page,
        page_size=page_size,
    )


# ── GET /requests/{request_id} ──────────────────────────────────────

@router.get("/requests/{request_id}", response_model=VacationRequestOut)
async def get_request(
    request_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await VacationService.get_request(db, user, request_id)


# ── PUT /requests/{request_id} ──────────────────────────────────────

@router.put("/requests/{request_id}", response_model=VacationRequestOut)
async def update_request(
    request_id: uuid.UUID,
    body: VacationRequestUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Edit a draft. Only the owner may edit, and only before submitting."""
    return await VacationService.update_request(db, user, request_id, body)


# ── POST /requests/{request_id}/submit ──────────────────────────────

@router.post("/requests/{request_id}/submit", response_model=VacationRequestOut)
async def submit_request(
    request_id: uuid.UUID,
    user: User = Depends(get_current_user),
    settings: Settings = Depends(get_app_settings),
    db: AsyncSession = Depends(get_db),
):
    """Submit a draft for approval after checking dates, stretch and quota."""
    return await VacationService.submit_request(db, user, request_id, settings)


# ── POST /requests/{request_id}/approve ─────────────────────────────

@router.post("/requests/{request_id}/approve", response_model=VacationRequestOut)
async def approve_request(
    request_id: uuid.UUID,
    user: User = Depends(get_current_user),
    settings: Settings = Depends(get_app_settings),
    db: AsyncSession = Depends(get_db),
):
    """Approve a pending request (admin or manager of the owner's unit)."""
    return await VacationService.approve_request(db, user, request_id, settings)


# ── POST /requests/{request_id}/reject ──────────────────────────────

@router.post("/requests/{request_id}/reject", response_model=VacationRequestOut)
async def reject_request(
    request_id: uuid.UUID,
    body: Optional[VacationRejectRequest] = None,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Reject a pending request with an optional reason."""
    return await VacationService.reject_request(
        db, user, request_id, reason=body.reason if body else None,
    )


# ── POST /requests/{request_id}/cancel ──────────────────────────────

@router.post("/requests/{request_id}/cancel", response_model=VacationRequestOut)
async def cancel_request(
    request_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Cancel a request. Approved days are returned to the quota."""
    return await VacationService.cancel_request(db, user, request_id)


# ── GET /limits ─────────────────────────────────────────────────────

@router.get("/limits", response_model=UserQuotaListOut)
async def list_limits(
    year: int = Query(...),
    unit_id: Optional[uuid.UUID] = Query(None),
    user: User = Depends(require_admin()),
    settings: Settings = Depends(get_app_settings),
    db: AsyncSession = Depends(get_db),
):
    """All users, or one unit's users, with their quota for a year (admin only)."""
    return await VacationService.list_quotas(db, user, year, settings, unit_id=unit_id)


# ── GET /limits/{user_id}/{year} ────────────────────────────────────

@router.get("/limits/{user_id}/{year}", response_model=VacationLimitOut)
async def get_limit(
    user_id: uuid.UUID,
    year: int,
    user: User = Depends(get_current_user),
    settings: Settings = Depends(get_app_settings),
    db: AsyncSession = Depends(get_db),
):
    return await VacationService.get_quota(db, user, user_id, year, settings)


# ── PUT /limits/{user_id}/{year} ────────────────────────────────────

@router.put("/limits/{user_id}/{year}", response_model=VacationLimitOut)
async def set_limit(
    user_id: uuid.UUID,
    year: int,
    body: VacationLimitUpdate,
    user: User = Depends(require_admin()),
    db: AsyncSession = Depends(get_db),
):
    """Set a user's yearly quota (admin only). Resets the used days."""
    return await VacationService.set_quota(db, user, user_id, year, body.total_days)


# ── POST /limits/{user_id}/{year}/reconcile ─────────────────────────

@router.post("/limits/{user_id}/{year}/reconcile", response_model=VacationLimitOut)
async def reconcile_limit(
    user_id: uuid.UUID,
    year: int,
    user: User = Depends(require_admin()),
    db: AsyncSession = Depends(get_db),
):
    """Compare used days with approved requests (admin only)."""
    return await VacationService.reconcile_quota(db, user, user_id, year)


# ── GET /intersections ──────────────────────────────────────────────

@router.get("/intersections", response_model=IntersectionListOut)
async def list_intersections(
    unit_id: uuid.UUID = Query(...),
    year: int = Query(...),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Overlapping approved vacations of different users in a unit."""
    return await VacationService.find_intersections(db, user, unit_id, year)


# ── POST /intersections/notify ──────────────────────────────────────

@router.post("/intersections/notify", response_model=IntersectionNotifyOut)
async def notify_intersections(
    unit_id: uuid.UUID = Query(...),
    year: int = Query(...),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Alert the unit manager when overlaps exist."""
    return await VacationService.notify_intersections(db, user, unit_id, year)


# ── GET /dashboard ──────────────────────────────────────────────────

@router.get("/dashboard", response_model=ManagerDashboardOut)
async def manager_dashboard(
    year: Optional[int] = Query(None),
    unit_id: Optional[uuid.UUID] = Query(None),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Unit overview for managers; admins may pass any unit."""
    today = date.today()
    return await VacationService.get_manager_dashboard(
        db, user, year or today.year, today, unit_id=unit_id,
    )
