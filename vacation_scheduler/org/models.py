"""Organisation ORM models: OrganizationalUnit, User.

Both tables are owned by the identity / admin tooling; the vacation core only
reads them (names for display, unit membership and role flags for guards).
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import TYPE_CHECKING, Optional

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from vacation_scheduler.database import Base

if TYPE_CHECKING:
    from vacation_scheduler.notifications.models import Notification
    from vacation_scheduler.vacations.models import VacationLimit, VacationRequest


# ═════════════════════════════════════════════════════════════════════
# OrganizationalUnit
# ═════════════════════════════════════════════════════════════════════


class OrganizationalUnit(Base):
    """Department / sub-department / sector (hierarchy via parent_id)."""

    __tablename__ = "organizational_units"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    name: Mapped[str] = mapped_column(sa.String(150), nullable=False)
    unit_type: Mapped[str] = mapped_column(
        sa.String(50), server_default="DEPARTMENT",
    )
    parent_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("organizational_units.id"),
    )
    manager_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        sa.ForeignKey("users.id", name="fk_unit_manager", use_alter=True),
    )
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), server_default=sa.func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), server_default=sa.func.now(),
    )

    # ── Relationships ───────────────────────────────────────────────
    users: Mapped[list[User]] = relationship(
        back_populates="organizational_unit",
        foreign_keys="User.organizational_unit_id",
    )
    manager: Mapped[Optional[User]] = relationship(foreign_keys=[manager_id])

    def __repr__(self) -> str:
        return f"<OrganizationalUnit {self.name!r}>"


# ═════════════════════════════════════════════════════════════════════
# User
# ═════════════════════════════════════════════════════════════════════


class User(Base):
    """Employee identity with independent admin / manager capability flags."""

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    login: Mapped[str] = mapped_column(sa.String(100), unique=True, nullable=False)
    full_name: Mapped[str] = mapped_column(sa.String(255), nullable=False)
    organizational_unit_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("organizational_units.id"),
    )
    is_admin: Mapped[bool] = mapped_column(
        sa.Boolean, default=False, server_default=sa.text("FALSE"),
    )
    is_manager: Mapped[bool] = mapped_column(
        sa.Boolean, default=False, server_default=sa.text("FALSE"),
    )
    # Ceiling used when no ledger row exists yet; NULL → settings default
    vacation_limit_default: Mapped[Optional[int]] = mapped_column(sa.Integer)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), server_default=sa.func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), server_default=sa.func.now(),
    )

    # ── Relationships ───────────────────────────────────────────────
    organizational_unit: Mapped[Optional[OrganizationalUnit]] = relationship(
        back_populates="users", foreign_keys=[organizational_unit_id],
    )
    vacation_requests: Mapped[list[VacationRequest]] = relationship(
        back_populates="user", foreign_keys="VacationRequest.user_id",
    )
    vacation_limits: Mapped[list[VacationLimit]] = relationship(
        back_populates="user",
    )
    notifications: Mapped[list[Notification]] = relationship(
        back_populates="user",
    )

    def __repr__(self) -> str:
        return f"<User {self.login!r}>"
