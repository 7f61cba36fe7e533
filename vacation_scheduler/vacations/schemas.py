"""Vacation Pydantic v2 schemas — request / response validation.

Naming conventions:
  - *Create / *Update / *Request  → request bodies (write)
  - *Out                          → response bodies (read)
  - *Brief                        → compact embedded representations
"""

from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field, model_validator

from vacation_scheduler.common.constants import VacationStatus
from vacation_scheduler.common.pagination import PaginationMeta


# ═════════════════════════════════════════════════════════════════════
# Embedded / shared
# ═════════════════════════════════════════════════════════════════════


class UserBrief(BaseModel):
    """Minimal user info embedded in vacation responses."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    full_name: str
    organizational_unit_id: Optional[uuid.UUID] = None


# ═════════════════════════════════════════════════════════════════════
# Periods
# ═════════════════════════════════════════════════════════════════════


class PeriodCreate(BaseModel):
    """One inclusive date range. ``days_count`` is derived from the dates;
    a supplied value is only accepted when it agrees with them."""

    start_date: date = Field(..., description="First day off (inclusive)")
    end_date: date = Field(..., description="Last day off (inclusive)")
    days_count: Optional[int] = Field(
        None, ge=1, description="Optional; must equal the calendar days in the range",
    )

    @model_validator(mode="after")
    def check_days_count(self) -> "PeriodCreate":
        if self.days_count is not None and self.end_date >= self.start_date:
            span = (self.end_date - self.start_date).days + 1
            if self.days_count != span:
                raise ValueError(
                    f"days_count {self.days_count} does not match the "
                    f"{span} calendar days from {self.start_date} to {self.end_date}."
                )
        return self


class PeriodOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    start_date: date
    end_date: date
    days_count: int


# ═════════════════════════════════════════════════════════════════════
# Vacation Request — Create / Update
# ═════════════════════════════════════════════════════════════════════


class VacationRequestCreate(BaseModel):
    """Payload for creating a draft vacation plan."""

    year: int = Field(..., ge=2000, le=2100, description="Planning year")
    comment: Optional[str] = Field(None, max_length=1000)
    periods: list[PeriodCreate] = Field(default_factory=list, max_length=24)


class VacationRequestUpdate(BaseModel):
    """Payload for editing a draft. Omitted fields are left unchanged, an
    explicit ``"comment": null`` clears the comment; ``periods`` replaces the
    whole set when given."""

    comment: Optional[str] = Field(None, max_length=1000)
    periods: Optional[list[PeriodCreate]] = Field(None, max_length=24)


# ═════════════════════════════════════════════════════════════════════
# Vacation Request — Response
# ═════════════════════════════════════════════════════════════════════


class VacationRequestOut(BaseModel):
    """Full vacation request response."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    user_id: uuid.UUID
    year: int
    status_id: VacationStatus
    days_requested: int
    comment: Optional[str] = None
    reviewed_by: Optional[uuid.UUID] = None
    reviewed_at: Optional[datetime] = None
    reviewer_remarks: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    periods: list[PeriodOut] = Field(default_factory=list)

    # Enriched by service
    user: Optional[UserBrief] = None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def status_name(self) -> str:
        return self.status_id.name


class VacationRequestListOut(BaseModel):
    data: list[VacationRequestOut]
    meta: PaginationMeta


# ═════════════════════════════════════════════════════════════════════
# Review / Cancel
# ═════════════════════════════════════════════════════════════════════


class VacationRejectRequest(BaseModel):
    """Payload for rejecting a pending request."""

    reason: Optional[str] = Field(None, max_length=500)


# ═════════════════════════════════════════════════════════════════════
# Quota
# ═════════════════════════════════════════════════════════════════════


class VacationLimitOut(BaseModel):
    """Quota for one (user, year); ``persisted`` is False for a synthesized default."""

    model_config = ConfigDict(from_attributes=True)

    user_id: uuid.UUID
    year: int
    total_days: int
    used_days: int
    available_days: int
    persisted: bool = True


class VacationLimitUpdate(BaseModel):
    total_days: int = Field(..., le=366)


class UserQuotaOut(BaseModel):
    """One row of the admin quota overview."""

    user_id: uuid.UUID
    full_name: str
    organizational_unit_id: Optional[uuid.UUID] = None
    organizational_unit_name: Optional[str] = None
    year: int
    total_days: int
    used_days: int
    available_days: int
    persisted: bool


class UserQuotaListOut(BaseModel):
    year: int
    unit_id: Optional[uuid.UUID] = None
    total: int
    users: list[UserQuotaOut]


# ═════════════════════════════════════════════════════════════════════
# Intersections / Dashboard
# ═════════════════════════════════════════════════════════════════════


class IntersectionOut(BaseModel):
    """Overlap between approved periods of two different users."""

    model_config = ConfigDict(from_attributes=True)

    user_id_1: uuid.UUID
    user_name_1: str
    request_id_1: uuid.UUID
    user_id_2: uuid.UUID
    user_name_2: str
    request_id_2: uuid.UUID
    start_date: date
    end_date: date
    days_count: int


class IntersectionListOut(BaseModel):
    unit_id: uuid.UUID
    year: int
    total: int
    intersections: list[IntersectionOut]


class IntersectionNotifyOut(BaseModel):
    unit_id: uuid.UUID
    year: int
    total: int
    notified_user_id: Optional[uuid.UUID] = None


class ManagerDashboardOut(BaseModel):
    """Per-unit overview for managers (admins may pick any unit)."""

    unit_id: uuid.UUID
    year: int
    pending_requests_count: int
    approved_days: int
    rejected_days: int
    pending_days: int
    subordinate_user_count: int
    upcoming_conflicts: list[IntersectionOut]
