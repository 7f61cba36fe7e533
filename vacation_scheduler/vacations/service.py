"""Vacation service layer — approval state machine, quota, overlaps, dashboard.

Business logic:
  - Draft vacation plans made of several inclusive date periods
  - submit / approve / reject / cancel transitions with role guards
  - Quota debit on approval and refund on cancellation, written in the
    same flush as the status change
  - Notifications queued after that flush, each in its own savepoint
  - Overlap detection between approved vacations inside a unit
  - Manager dashboard with per-status day sums and upcoming conflicts

Guards always run in this order: load (404) → authorization (403) →
status (409) → validation / quota (422).  A failed guard leaves the
session untouched.
"""

from __future__ import annotations

import logging
import uuid
from datetime import date, datetime, timezone
from typing import Optional, Sequence

from sqlalchemy import and_, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from vacation_scheduler.common.constants import (
    CANCELLABLE_STATUSES,
    REVIEWABLE_STATUSES,
    SUBMITTABLE_STATUSES,
    VacationStatus,
)
from vacation_scheduler.common.exceptions import (
    ForbiddenException,
    InvalidStateException,
    NotFoundException,
    ValidationException,
)
from vacation_scheduler.common.pagination import PaginationMeta
from vacation_scheduler.config import Settings
from vacation_scheduler.notifications.service import (
    notify_intersections_found,
    notify_request_approved,
    notify_request_cancelled,
    notify_request_rejected,
    notify_request_submitted,
)
from vacation_scheduler.org.models import OrganizationalUnit, User
from vacation_scheduler.vacations import policy
from vacation_scheduler.vacations.intersections import (
    Intersection,
    find_intersections,
    find_period_conflicts,
)
from vacation_scheduler.vacations.ledger import LimitSnapshot, QuotaLedger
from vacation_scheduler.vacations.models import (
    VacationLimit,
    VacationPeriod,
    VacationRequest,
)
from vacation_scheduler.vacations.schemas import (
    IntersectionListOut,
    IntersectionNotifyOut,
    IntersectionOut,
    ManagerDashboardOut,
    PeriodCreate,
    PeriodOut,
    UserBrief,
    UserQuotaListOut,
    UserQuotaOut,
    VacationLimitOut,
    VacationRequestCreate,
    VacationRequestListOut,
    VacationRequestOut,
    VacationRequestUpdate,
)
from vacation_scheduler.vacations.validation import (
    PeriodInput,
    span_days,
    validate_periods,
)

logger = logging.getLogger(__name__)


# ═════════════════════════════════════════════════════════════════════
# VacationService
# ═════════════════════════════════════════════════════════════════════


class VacationService:
    """Async vacation operations: drafts, transitions, quota, overlaps."""

    # ─────────────────────────────────────────────────────────────────
    # Helpers
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    def _default_quota(owner: User, settings: Settings) -> int:
        if owner.vacation_limit_default is not None:
            return owner.vacation_limit_default
        return settings.DEFAULT_VACATION_DAYS

    @staticmethod
    def _build_periods(periods: Sequence[PeriodCreate]) -> list[VacationPeriod]:
        """ORM periods sorted by start date; day counts come from the dates."""
        for index, period in enumerate(periods, start=1):
            if period.end_date < period.start_date:
                raise ValidationException(
                    {
                        f"periods.{index}.end_date": [
                            f"Period {index} ends on {period.end_date.isoformat()}, "
                            f"before its start {period.start_date.isoformat()}."
                        ]
                    }
                )
        return [
            VacationPeriod(
                start_date=p.start_date,
                end_date=p.end_date,
                days_count=span_days(p.start_date, p.end_date),
            )
            for p in sorted(periods, key=lambda p: p.start_date)
        ]

    @staticmethod
    def _build_request_response(
        req: VacationRequest,
        *,
        owner: Optional[User] = None,
    ) -> VacationRequestOut:
        """Build VacationRequestOut without touching unloaded relationships."""
        return VacationRequestOut(
            id=req.id,
            user_id=req.user_id,
            year=req.year,
            status_id=req.status_id,
            days_requested=req.days_requested,
            comment=req.comment,
            reviewed_by=req.reviewed_by,
            reviewed_at=req.reviewed_at,
            reviewer_remarks=req.reviewer_remarks,
            created_at=req.created_at,
            updated_at=req.updated_at,
            periods=[PeriodOut.model_validate(p) for p in req.periods],
            user=UserBrief.model_validate(owner) if owner is not None else None,
        )

    @staticmethod
    def _build_limit_response(snapshot: LimitSnapshot) -> VacationLimitOut:
        return VacationLimitOut(
            user_id=snapshot.user_id,
            year=snapshot.year,
            total_days=snapshot.total_days,
            used_days=snapshot.used_days,
            available_days=snapshot.available_days,
            persisted=snapshot.persisted,
        )

    @staticmethod
    async def _get_request(
        db: AsyncSession,
        request_id: uuid.UUID,
        *,
        for_update: bool = False,
    ) -> VacationRequest:
        """Load a request with its owner.

        Transitions pass ``for_update=True``: the row is locked and reloaded
        from the database, so the status guard never sees a stale copy from
        the identity map.  The request row is always locked before the
        ledger row.
        """
        query = (
            select(VacationRequest)
            .where(VacationRequest.id == request_id)
            .options(selectinload(VacationRequest.user))
        )
        if for_update:
            query = query.with_for_update().execution_options(populate_existing=True)
        result = await db.execute(query)
        req = result.scalars().first()
        if req is None:
            raise NotFoundException("VacationRequest", str(request_id))
        return req

    @staticmethod
    async def _get_user(db: AsyncSession, user_id: uuid.UUID) -> User:
        user = await db.get(User, user_id)
        if user is None:
            raise NotFoundException("User", str(user_id))
        return user

    @staticmethod
    async def _get_unit(db: AsyncSession, unit_id: uuid.UUID) -> OrganizationalUnit:
        unit = await db.get(OrganizationalUnit, unit_id)
        if unit is None:
            raise NotFoundException("OrganizationalUnit", str(unit_id))
        return unit

    @staticmethod
    async def _reviewer_ids(db: AsyncSession, owner: User) -> list[uuid.UUID]:
        """Managers of the owner's unit, excluding the owner."""
        if owner.organizational_unit_id is None:
            return []
        result = await db.execute(
            select(User.id).where(
                User.organizational_unit_id == owner.organizational_unit_id,
                User.is_manager.is_(True),
                User.id != owner.id,
            )
        )
        reviewer_ids = set(result.scalars().all())

        unit = await db.get(OrganizationalUnit, owner.organizational_unit_id)
        if unit is not None and unit.manager_id and unit.manager_id != owner.id:
            reviewer_ids.add(unit.manager_id)
        return sorted(reviewer_ids, key=str)

    @staticmethod
    async def _approved_in_unit(
        db: AsyncSession,
        unit_id: uuid.UUID,
        year: int,
    ) -> list[VacationRequest]:
        result = await db.execute(
            select(VacationRequest)
            .where(
                VacationRequest.year == year,
                VacationRequest.status_id == VacationStatus.approved.value,
                VacationRequest.user_id.in_(
                    select(User.id).where(User.organizational_unit_id == unit_id)
                ),
            )
            .options(selectinload(VacationRequest.user))
            .order_by(VacationRequest.created_at)
        )
        return list(result.scalars().all())

    @staticmethod
    def _insufficient_quota(req: VacationRequest, available: int) -> ValidationException:
        logger.info(
            "Refusing approval of %s: %d days requested, %d available",
            req.id, req.days_requested, available,
        )
        return ValidationException(
            {
                "days_requested": [
                    f"Insufficient quota: {req.days_requested} days requested, "
                    f"{available} available."
                ]
            }
        )

    @staticmethod
    async def _flush_transition(
        db: AsyncSession,
        req: VacationRequest,
        action: str,
    ) -> None:
        """Write the staged status and ledger rows together."""
        request_id = req.id
        try:
            await db.flush()
        except SQLAlchemyError:
            logger.exception(
                "Failed to %s vacation request %s; rolling back", action, request_id
            )
            await db.rollback()
            raise

    # ─────────────────────────────────────────────────────────────────
    # Drafts
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def create_request(
        db: AsyncSession,
        actor: User,
        data: VacationRequestCreate,
    ) -> VacationRequestOut:
        """Create a draft plan owned by *actor*."""
        periods = VacationService._build_periods(data.periods)
        req = VacationRequest(
            user_id=actor.id,
            year=data.year,
            status_id=VacationStatus.draft.value,
            comment=data.comment,
            days_requested=sum(p.days_count for p in periods),
            periods=periods,
        )
        db.add(req)
        await db.flush()

        logger.info(
            "User %s created draft vacation request %s for %d (%d days)",
            actor.id, req.id, req.year, req.days_requested,
        )
        return VacationService._build_request_response(req, owner=actor)

    @staticmethod
    async def update_request(
        db: AsyncSession,
        actor: User,
        request_id: uuid.UUID,
        data: VacationRequestUpdate,
    ) -> VacationRequestOut:
        """Edit the comment or replace the periods of a draft."""
        req = await VacationService._get_request(db, request_id, for_update=True)
        if not policy.is_owner(actor, req):
            raise ForbiddenException("You can only edit your own vacation requests.")
        if req.status != VacationStatus.draft:
            raise InvalidStateException(req.id, req.status, "edit")

        if "comment" in data.model_fields_set:
            req.comment = data.comment
        if data.periods is not None:
            req.periods = VacationService._build_periods(data.periods)
            req.days_requested = sum(p.days_count for p in req.periods)
        req.updated_at = datetime.now(timezone.utc)

        await db.flush()
        return VacationService._build_request_response(req, owner=req.user)

    @staticmethod
    async def get_request(
        db: AsyncSession,
        actor: User,
        request_id: uuid.UUID,
    ) -> VacationRequestOut:
        req = await VacationService._get_request(db, request_id)
        if not policy.can_view_user(actor, req.user):
            raise ForbiddenException("You cannot view this vacation request.")
        return VacationService._build_request_response(req, owner=req.user)

    @staticmethod
    async def list_requests(
        db: AsyncSession,
        actor: User,
        *,
        year: Optional[int] = None,
        status: Optional[VacationStatus] = None,
        user_id: Optional[uuid.UUID] = None,
        unit_id: Optional[uuid.UUID] = None,
        page: int = 1,
        page_size: int = 50,
    ) -> VacationRequestListOut:
        """List vacation requests visible to *actor*.

        Scopes:
          - admin: every request
          - manager with a unit: requests of users in that unit
          - anyone else: own requests only
        """
        if unit_id is not None and not policy.can_view_unit(actor, unit_id):
            raise ForbiddenException("You cannot view requests of this unit.")

        query = select(VacationRequest)

        # Scope filtering
        if policy.is_admin(actor):
            pass
        elif actor.is_manager and actor.organizational_unit_id is not None:
            unit_id = actor.organizational_unit_id
        else:
            if user_id is not None and user_id != actor.id:
                raise ForbiddenException("You can only view your own vacation requests.")
            user_id = actor.id

        if unit_id is not None:
            query = query.where(
                VacationRequest.user_id.in_(
                    select(User.id).where(User.organizational_unit_id == unit_id)
                )
            )
        if user_id is not None:
            query = query.where(VacationRequest.user_id == user_id)
        if year is not None:
            query = query.where(VacationRequest.year == year)
        if status is not None:
            query = query.where(VacationRequest.status_id == int(status))

        # Count
        count_q = query.with_only_columns(func.count(), maintain_column_froms=True)
        total = (await db.execute(count_q)).scalar_one()

        # Paginate
        offset = (page - 1) * page_size
        result = await db.execute(
            query.options(selectinload(VacationRequest.user))
            .order_by(VacationRequest.created_at.desc())
            .offset(offset)
            .limit(page_size)
        )
        requests = result.scalars().all()

        return VacationRequestListOut(
            data=[
                VacationService._build_request_response(r, owner=r.user)
                for r in requests
            ],
            meta=PaginationMeta.build(page=page, page_size=page_size, total=total),
        )

    # ─────────────────────────────────────────────────────────────────
    # Transitions
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def submit_request(
        db: AsyncSession,
        actor: User,
        request_id: uuid.UUID,
        settings: Settings,
    ) -> VacationRequestOut:
        """draft → pending. Validates the periods against the owner's quota;
        nothing is debited until approval."""
        req = await VacationService._get_request(db, request_id, for_update=True)
        owner = req.user
        if not policy.is_owner(actor, req):
            raise ForbiddenException("You can only submit your own vacation requests.")
        if req.status not in SUBMITTABLE_STATUSES:
            raise InvalidStateException(req.id, req.status, "submit")

        snapshot = await QuotaLedger.get_limit(
            db, owner.id, req.year, VacationService._default_quota(owner, settings)
        )
        try:
            totals = validate_periods(
                [PeriodInput(p.start_date, p.end_date) for p in req.periods],
                req.year,
                snapshot,
                policy=settings.QUOTA_POLICY,
                long_stretch_days=settings.LONG_STRETCH_DAYS,
            )
        except ValidationException as exc:
            logger.info("Vacation request %s failed validation: %s", req.id, exc.errors)
            raise

        reviewer_ids = await VacationService._reviewer_ids(db, owner)

        req.days_requested = totals.total_days
        req.status_id = VacationStatus.pending.value
        req.updated_at = datetime.now(timezone.utc)
        await VacationService._flush_transition(db, req, "submit")
        await notify_request_submitted(db, req, reviewer_ids, owner.full_name)

        logger.info(
            "Vacation request %s submitted by %s (%d days, %d reviewer(s))",
            req.id, actor.id, req.days_requested, len(reviewer_ids),
        )
        return VacationService._build_request_response(req, owner=owner)

    @staticmethod
    async def approve_request(
        db: AsyncSession,
        actor: User,
        request_id: uuid.UUID,
        settings: Settings,
    ) -> VacationRequestOut:
        """pending → approved. Debits the quota under the (user, year) row lock."""
        req = await VacationService._get_request(db, request_id, for_update=True)
        owner = req.user
        if not policy.can_review(actor, owner):
            raise ForbiddenException(
                "You are not authorized to approve this vacation request."
            )
        if req.status not in REVIEWABLE_STATUSES:
            raise InvalidStateException(req.id, req.status, "approve")

        default_total = VacationService._default_quota(owner, settings)
        snapshot = await QuotaLedger.get_limit(db, owner.id, req.year, default_total)
        if req.days_requested > snapshot.available_days:
            raise VacationService._insufficient_quota(req, snapshot.available_days)

        # Re-check under the row lock; a concurrent approval may have debited
        await QuotaLedger.ensure_limit(db, owner.id, req.year, default_total)
        limit = await QuotaLedger.lock_limit(db, owner.id, req.year)
        if req.days_requested > limit.available_days:
            raise VacationService._insufficient_quota(req, limit.available_days)

        # Ledger first: its lock query must not autoflush the status change
        await QuotaLedger.adjust_used(db, owner.id, req.year, req.days_requested)

        now = datetime.now(timezone.utc)
        req.status_id = VacationStatus.approved.value
        req.reviewed_by = actor.id
        req.reviewed_at = now
        req.updated_at = now
        await VacationService._flush_transition(db, req, "approve")
        await notify_request_approved(db, req)

        logger.info(
            "Vacation request %s approved by %s; %d days debited for %s/%d",
            req.id, actor.id, req.days_requested, owner.id, req.year,
        )
        return VacationService._build_request_response(req, owner=owner)

    @staticmethod
    async def reject_request(
        db: AsyncSession,
        actor: User,
        request_id: uuid.UUID,
        *,
        reason: Optional[str] = None,
    ) -> VacationRequestOut:
        """pending → rejected. The quota is not touched."""
        req = await VacationService._get_request(db, request_id, for_update=True)
        owner = req.user
        if not policy.can_review(actor, owner):
            raise ForbiddenException(
                "You are not authorized to reject this vacation request."
            )
        if req.status not in REVIEWABLE_STATUSES:
            raise InvalidStateException(req.id, req.status, "reject")

        now = datetime.now(timezone.utc)
        req.status_id = VacationStatus.rejected.value
        req.reviewed_by = actor.id
        req.reviewed_at = now
        req.reviewer_remarks = reason
        req.updated_at = now

        await VacationService._flush_transition(db, req, "reject")
        await notify_request_rejected(db, req, reason)

        logger.info("Vacation request %s rejected by %s", req.id, actor.id)
        return VacationService._build_request_response(req, owner=owner)

    @staticmethod
    async def cancel_request(
        db: AsyncSession,
        actor: User,
        request_id: uuid.UUID,
    ) -> VacationRequestOut:
        """{draft, pending, approved} → cancelled. Refunds an approved plan."""
        req = await VacationService._get_request(db, request_id, for_update=True)
        owner = req.user
        if not (
            policy.is_admin(actor)
            or policy.is_manager_of(actor, owner)
            or policy.is_owner(actor, req)
        ):
            raise ForbiddenException("You cannot cancel this vacation request.")
        if req.status not in CANCELLABLE_STATUSES:
            raise InvalidStateException(req.id, req.status, "cancel")
        if not policy.can_cancel(actor, req, owner):
            raise ForbiddenException(
                "Approved vacations can only be cancelled by a manager or administrator."
            )

        was_approved = req.status == VacationStatus.approved
        if was_approved:
            await QuotaLedger.adjust_used(db, owner.id, req.year, -req.days_requested)

        req.status_id = VacationStatus.cancelled.value
        req.updated_at = datetime.now(timezone.utc)
        await VacationService._flush_transition(db, req, "cancel")
        if actor.id != owner.id:
            await notify_request_cancelled(db, req, actor.full_name)

        logger.info(
            "Vacation request %s cancelled by %s%s",
            req.id, actor.id,
            f"; {req.days_requested} days refunded" if was_approved else "",
        )
        return VacationService._build_request_response(req, owner=owner)

    # ─────────────────────────────────────────────────────────────────
    # Quota
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def get_quota(
        db: AsyncSession,
        actor: User,
        user_id: uuid.UUID,
        year: int,
        settings: Settings,
    ) -> VacationLimitOut:
        owner = await VacationService._get_user(db, user_id)
        if not policy.can_view_user(actor, owner):
            raise ForbiddenException("You cannot view this user's quota.")
        snapshot = await QuotaLedger.get_limit(
            db, owner.id, year, VacationService._default_quota(owner, settings)
        )
        return VacationService._build_limit_response(snapshot)

    @staticmethod
    async def set_quota(
        db: AsyncSession,
        actor: User,
        user_id: uuid.UUID,
        year: int,
        total_days: int,
    ) -> VacationLimitOut:
        """Administrative reset of a user's yearly quota."""
        if not policy.is_admin(actor):
            raise ForbiddenException("Only administrators can set vacation quotas.")
        owner = await VacationService._get_user(db, user_id)
        row = await QuotaLedger.set_limit(db, owner.id, year, total_days)
        return VacationService._build_limit_response(LimitSnapshot.from_row(row))

    @staticmethod
    async def reconcile_quota(
        db: AsyncSession,
        actor: User,
        user_id: uuid.UUID,
        year: int,
    ) -> VacationLimitOut:
        """Check the ledger row against the approved requests of the year."""
        if not policy.is_admin(actor):
            raise ForbiddenException("Only administrators can reconcile vacation quotas.")
        owner = await VacationService._get_user(db, user_id)
        snapshot = await QuotaLedger.reconcile(db, owner.id, year)
        return VacationService._build_limit_response(snapshot)

    @staticmethod
    async def list_quotas(
        db: AsyncSession,
        actor: User,
        year: int,
        settings: Settings,
        *,
        unit_id: Optional[uuid.UUID] = None,
    ) -> UserQuotaListOut:
        """Every user (or one unit's users) with their quota for *year*.

        Users without a ledger row get the synthesized default, nothing is
        written.
        """
        if not policy.is_admin(actor):
            raise ForbiddenException("Only administrators can view all vacation quotas.")

        query = (
            select(User, VacationLimit)
            .outerjoin(
                VacationLimit,
                and_(VacationLimit.user_id == User.id, VacationLimit.year == year),
            )
            .options(selectinload(User.organizational_unit))
            .order_by(User.full_name)
        )
        if unit_id is not None:
            unit = await VacationService._get_unit(db, unit_id)
            query = query.where(User.organizational_unit_id == unit.id)

        users: list[UserQuotaOut] = []
        for user, row in (await db.execute(query)).all():
            if row is not None:
                snapshot = LimitSnapshot.from_row(row)
            else:
                snapshot = LimitSnapshot(
                    user_id=user.id,
                    year=year,
                    total_days=VacationService._default_quota(user, settings),
                    used_days=0,
                    persisted=False,
                )
            unit_obj = user.organizational_unit
            users.append(
                UserQuotaOut(
                    user_id=user.id,
                    full_name=user.full_name,
                    organizational_unit_id=user.organizational_unit_id,
                    organizational_unit_name=unit_obj.name if unit_obj is not None else None,
                    year=year,
                    total_days=snapshot.total_days,
                    used_days=snapshot.used_days,
                    available_days=snapshot.available_days,
                    persisted=snapshot.persisted,
                )
            )

        return UserQuotaListOut(year=year, unit_id=unit_id, total=len(users), users=users)

    # ─────────────────────────────────────────────────────────────────
    # Intersections
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def _detect_intersections(
        db: AsyncSession,
        actor: User,
        unit_id: uuid.UUID,
        year: int,
    ) -> tuple[OrganizationalUnit, list[Intersection]]:
        unit = await VacationService._get_unit(db, unit_id)
        if not policy.can_view_unit(actor, unit.id):
            raise ForbiddenException("You cannot view vacations of this unit.")

        requests = await VacationService._approved_in_unit(db, unit.id, year)
        names = {r.user_id: r.user.full_name for r in requests}
        return unit, find_intersections(requests, names)

    @staticmethod
    async def find_intersections(
        db: AsyncSession,
        actor: User,
        unit_id: uuid.UUID,
        year: int,
    ) -> IntersectionListOut:
        """Overlapping approved vacations of different users in a unit."""
        unit, found = await VacationService._detect_intersections(db, actor, unit_id, year)
        return IntersectionListOut(
            unit_id=unit.id,
            year=year,
            total=len(found),
            intersections=[IntersectionOut.model_validate(i) for i in found],
        )

    @staticmethod
    async def notify_intersections(
        db: AsyncSession,
        actor: User,
        unit_id: uuid.UUID,
        year: int,
    ) -> IntersectionNotifyOut:
        """Alert the unit manager once when any overlap exists."""
        unit, found = await VacationService._detect_intersections(db, actor, unit_id, year)

        notified: Optional[uuid.UUID] = None
        if found and unit.manager_id is not None:
            note = await notify_intersections_found(
                db, unit.manager_id, unit.name, year, len(found)
            )
            if note is not None:
                notified = unit.manager_id
                logger.info(
                    "Notified manager %s of %d overlap(s) in unit %s for %d",
                    unit.manager_id, len(found), unit.id, year,
                )
        elif found:
            logger.warning(
                "Unit %s has %d overlap(s) in %d but no manager to notify",
                unit.id, len(found), year,
            )

        return IntersectionNotifyOut(
            unit_id=unit.id,
            year=year,
            total=len(found),
            notified_user_id=notified,
        )

    # ─────────────────────────────────────────────────────────────────
    # Manager dashboard
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def get_manager_dashboard(
        db: AsyncSession,
        actor: User,
        year: int,
        today: date,
        *,
        unit_id: Optional[uuid.UUID] = None,
    ) -> ManagerDashboardOut:
        """Per-status totals for a unit plus approved overlaps that have not ended."""
        unit_id = unit_id or actor.organizational_unit_id
        if unit_id is None:
            raise ValidationException(
                {"unit_id": ["A unit is required; you do not belong to one."]}
            )
        unit = await VacationService._get_unit(db, unit_id)
        if not policy.can_view_unit(actor, unit.id):
            raise ForbiddenException("You cannot view the dashboard of this unit.")

        unit_users = select(User.id).where(User.organizational_unit_id == unit.id)

        rows = (
            await db.execute(
                select(
                    VacationRequest.status_id,
                    func.count(VacationRequest.id),
                    func.coalesce(func.sum(VacationRequest.days_requested), 0),
                )
                .where(
                    VacationRequest.year == year,
                    VacationRequest.user_id.in_(unit_users),
                )
                .group_by(VacationRequest.status_id)
            )
        ).all()
        counts = {status_id: (count, days) for status_id, count, days in rows}

        subordinate_count = (
            await db.execute(
                select(func.count())
                .select_from(User)
                .where(User.organizational_unit_id == unit.id, User.id != actor.id)
            )
        ).scalar_one()

        approved = await VacationService._approved_in_unit(db, unit.id, year)
        names = {r.user_id: r.user.full_name for r in approved}
        upcoming: list[Intersection] = []
        for index, req in enumerate(approved):
            upcoming.extend(
                c
                for c in find_period_conflicts(req, approved[index + 1:], names)
                if c.end_date >= today
            )
        upcoming.sort(key=lambda c: c.start_date)

        def _days(status: VacationStatus) -> int:
            return int(counts.get(status.value, (0, 0))[1])

        return ManagerDashboardOut(
            unit_id=unit.id,
            year=year,
            pending_requests_count=int(counts.get(VacationStatus.pending.value, (0, 0))[0]),
            approved_days=_days(VacationStatus.approved),
            rejected_days=_days(VacationStatus.rejected),
            pending_days=_days(VacationStatus.pending),
            subordinate_user_count=subordinate_count,
            upcoming_conflicts=[IntersectionOut.model_validate(c) for c in upcoming],
        )
