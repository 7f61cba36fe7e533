"""Vacation ORM models: VacationRequest, VacationPeriod, VacationLimit."""

from __future__ import annotations

import uuid
from datetime import date, datetime, timezone
from typing import Optional

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from vacation_scheduler.common.constants import VacationStatus
from vacation_scheduler.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class VacationLimit(Base):
    """Quota ledger row: yearly ceiling and days already committed."""

    __tablename__ = "vacation_limits"
    __table_args__ = (
        sa.UniqueConstraint("user_id", "year", name="uq_vacation_limit_user_year"),
        sa.CheckConstraint("used_days >= 0", name="ck_vacation_limit_used_non_negative"),
        sa.CheckConstraint("total_days >= 0", name="ck_vacation_limit_total_non_negative"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("users.id"), nullable=False
    )
    year: Mapped[int] = mapped_column(sa.Integer, nullable=False)
    total_days: Mapped[int] = mapped_column(sa.Integer, nullable=False)
    used_days: Mapped[int] = mapped_column(
        sa.Integer, nullable=False, default=0, server_default=sa.text("0")
    )
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), server_default=sa.func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), server_default=sa.func.now()
    )

    # Relationships
    user: Mapped["vacation_scheduler.org.models.User"] = relationship(
        back_populates="vacation_limits"
    )

    @property
    def available_days(self) -> int:
        return self.total_days - self.used_days


class VacationRequest(Base):
    __tablename__ = "vacation_requests"
    __table_args__ = (
        sa.Index("ix_vacation_requests_user_year", "user_id", "year"),
        sa.Index("ix_vacation_requests_status", "status_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("users.id"), nullable=False
    )
    year: Mapped[int] = mapped_column(sa.Integer, nullable=False)
    status_id: Mapped[int] = mapped_column(
        sa.SmallInteger,
        nullable=False,
        default=VacationStatus.draft.value,
        server_default=sa.text(str(VacationStatus.draft.value)),
    )
    days_requested: Mapped[int] = mapped_column(
        sa.Integer, nullable=False, default=0, server_default=sa.text("0")
    )
    comment: Mapped[Optional[str]] = mapped_column(sa.Text)
    reviewed_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("users.id")
    )
    reviewed_at: Mapped[Optional[datetime]] = mapped_column(
        sa.DateTime(timezone=True)
    )
    reviewer_remarks: Mapped[Optional[str]] = mapped_column(sa.Text)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=_utcnow, server_default=sa.func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=_utcnow, server_default=sa.func.now()
    )

    # Relationships
    user: Mapped["vacation_scheduler.org.models.User"] = relationship(
        back_populates="vacation_requests", foreign_keys=[user_id]
    )
    reviewer: Mapped[Optional["vacation_scheduler.org.models.User"]] = relationship(
        foreign_keys=[reviewed_by]
    )
    periods: Mapped[list[VacationPeriod]] = relationship(
        back_populates="request",
        cascade="all, delete-orphan",
        order_by="VacationPeriod.start_date",
        lazy="selectin",
    )

    @property
    def status(self) -> VacationStatus:
        return VacationStatus(self.status_id)


class VacationPeriod(Base):
    """One contiguous, inclusive date range of a request."""

    __tablename__ = "vacation_periods"
    __table_args__ = (
        sa.CheckConstraint("end_date >= start_date", name="ck_vacation_period_dates"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    request_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        sa.ForeignKey("vacation_requests.id", ondelete="CASCADE"),
        nullable=False,
    )
    start_date: Mapped[date] = mapped_column(sa.Date, nullable=False)
    end_date: Mapped[date] = mapped_column(sa.Date, nullable=False)
    days_count: Mapped[int] = mapped_column(sa.Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), server_default=sa.func.now()
    )

    # Relationships
    request: Mapped[VacationRequest] = relationship(back_populates="periods")
