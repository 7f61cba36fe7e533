"""Quota ledger — yearly vacation ceiling and committed days per (user, year).

Rows are created lazily: reads synthesize the default ceiling without
writing anything, and ``ensure_limit`` persists it right before the first
debit.  All mutations go through the caller's session and are flushed by
the caller, so a ledger write always commits together with the status
change that caused it.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from vacation_scheduler.common.constants import VacationStatus
from vacation_scheduler.common.exceptions import (
    InvalidQuota,
    LedgerInconsistencyError,
    LimitNotFound,
)
from vacation_scheduler.vacations.models import VacationLimit, VacationRequest

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LimitSnapshot:
    """Read-only view of one ledger row (or of the default when none exists)."""

    user_id: uuid.UUID
    year: int
    total_days: int
    used_days: int
    persisted: bool

    @property
    def available_days(self) -> int:
        return self.total_days - self.used_days

    @classmethod
    def from_row(cls, row: VacationLimit) -> "LimitSnapshot":
        return cls(
            user_id=row.user_id,
            year=row.year,
            total_days=row.total_days,
            used_days=row.used_days,
            persisted=True,
        )


class QuotaLedger:
    """Async ledger operations. Every method takes the active session."""

    @staticmethod
    async def _load(
        db: AsyncSession,
        user_id: uuid.UUID,
        year: int,
        *,
        for_update: bool = False,
    ) -> Optional[VacationLimit]:
        query = select(VacationLimit).where(
            VacationLimit.user_id == user_id,
            VacationLimit.year == year,
        )
        if for_update:
            query = query.with_for_update()
        result = await db.execute(query)
        return result.scalars().first()

    @staticmethod
    async def get_limit(
        db: AsyncSession,
        user_id: uuid.UUID,
        year: int,
        default_total: int,
    ) -> LimitSnapshot:
        """Return the ledger entry, or a synthesized default that is not stored."""
        row = await QuotaLedger._load(db, user_id, year)
        if row is None:
            return LimitSnapshot(
                user_id=user_id,
                year=year,
                total_days=default_total,
                used_days=0,
                persisted=False,
            )
        return LimitSnapshot.from_row(row)

    @staticmethod
    async def set_limit(
        db: AsyncSession,
        user_id: uuid.UUID,
        year: int,
        total_days: int,
    ) -> VacationLimit:
        """Administrative reset: store a new ceiling and zero the used days."""
        if total_days < 0:
            raise InvalidQuota(total_days)

        row = await QuotaLedger._load(db, user_id, year, for_update=True)
        if row is None:
            row = VacationLimit(user_id=user_id, year=year, total_days=total_days, used_days=0)
            db.add(row)
        else:
            row.total_days = total_days
            row.used_days = 0
            row.updated_at = datetime.now(timezone.utc)

        await db.flush()
        logger.info("Quota for user %s in %d set to %d days", user_id, year, total_days)
        return row

    @staticmethod
    async def ensure_limit(
        db: AsyncSession,
        user_id: uuid.UUID,
        year: int,
        default_total: int,
    ) -> VacationLimit:
        """Insert the default ledger row when absent and return the row.

        Uses ``INSERT ... ON CONFLICT DO NOTHING`` so two first-time debits
        for the same (user, year) end up sharing one row instead of failing
        on the unique constraint.
        """
        row = await QuotaLedger._load(db, user_id, year)
        if row is not None:
            return row

        conn = await db.connection()
        insert = sqlite_insert if conn.dialect.name == "sqlite" else pg_insert
        result = await conn.execute(
            insert(VacationLimit.__table__)
            .values(
                id=uuid.uuid4(),
                user_id=user_id,
                year=year,
                total_days=default_total,
                used_days=0,
            )
            .on_conflict_do_nothing(index_elements=["user_id", "year"])
        )
        if result.rowcount:
            logger.info(
                "Created default quota of %d days for user %s in %d",
                default_total, user_id, year,
            )
        return await QuotaLedger.lock_limit(db, user_id, year)

    @staticmethod
    async def lock_limit(
        db: AsyncSession,
        user_id: uuid.UUID,
        year: int,
    ) -> VacationLimit:
        """Load the ledger row with ``SELECT ... FOR UPDATE``."""
        row = await QuotaLedger._load(db, user_id, year, for_update=True)
        if row is None:
            raise LimitNotFound(user_id, year)
        return row

    @staticmethod
    async def adjust_used(
        db: AsyncSession,
        user_id: uuid.UUID,
        year: int,
        delta: int,
    ) -> VacationLimit:
        """Apply *delta* to ``used_days`` on the locked row.

        The change is only staged on the session; the caller flushes it
        together with the matching status write.
        """
        row = await QuotaLedger.lock_limit(db, user_id, year)
        new_used = row.used_days + delta
        if new_used < 0:
            logger.error(
                "Refusing ledger adjustment for user %s in %d: used_days=%d delta=%d",
                user_id, year, row.used_days, delta,
            )
            raise LedgerInconsistencyError(
                user_id,
                year,
                used_days=row.used_days,
                expected_days=new_used,
                reason=f"applying {delta:+d} days would make used days negative.",
            )

        row.used_days = new_used
        row.updated_at = datetime.now(timezone.utc)
        return row

    @staticmethod
    async def reconcile(
        db: AsyncSession,
        user_id: uuid.UUID,
        year: int,
    ) -> LimitSnapshot:
        """Check ``used_days`` against the approved requests of the year."""
        expected = (
            await db.execute(
                select(func.coalesce(func.sum(VacationRequest.days_requested), 0)).where(
                    VacationRequest.user_id == user_id,
                    VacationRequest.year == year,
                    VacationRequest.status_id == VacationStatus.approved.value,
                )
            )
        ).scalar_one()

        row = await QuotaLedger._load(db, user_id, year)
        used = row.used_days if row is not None else 0
        if used != expected:
            logger.error(
                "Ledger drift for user %s in %d: used_days=%d, approved days=%d",
                user_id, year, used, expected,
            )
            raise LedgerInconsistencyError(
                user_id,
                year,
                used_days=used,
                expected_days=int(expected),
                reason=f"used days {used} differ from {expected} approved days.",
            )

        if row is None:
            return LimitSnapshot(
                user_id=user_id, year=year, total_days=0, used_days=0, persisted=False,
            )
        return LimitSnapshot.from_row(row)
