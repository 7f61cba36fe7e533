"""Notification service — the one-way notification sink and inbox queries."""

from __future__ import annotations

import logging
import math
import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from vacation_scheduler.common.constants import NotificationType
from vacation_scheduler.common.exceptions import ForbiddenException, NotFoundException
from vacation_scheduler.common.pagination import PaginationParams
from vacation_scheduler.notifications.models import Notification
from vacation_scheduler.notifications.schemas import (
    NotificationListMeta,
    NotificationListResponse,
    NotificationResponse,
)

logger = logging.getLogger(__name__)


# ── Core service ────────────────────────────────────────────────────


class NotificationService:
    """Async notification operations."""

    @staticmethod
    async def notify(
        db: AsyncSession,
        user_id: uuid.UUID,
        title: str,
        message: str,
        *,
        type: NotificationType = NotificationType.info,
        entity_id: Optional[uuid.UUID] = None,
    ) -> Optional[Notification]:
        """Write a notification for *user_id* inside a savepoint.

        Delivery is fire-and-forget: a failed insert rolls back only the
        savepoint, is logged, and returns ``None``.  Callers flush their own
        changes first so the savepoint holds nothing but this row.
        """
        notification = Notification(
            user_id=user_id,
            type=type,
            title=title,
            message=message,
            entity_id=entity_id,
            is_read=False,
        )
        try:
            async with db.begin_nested():
                db.add(notification)
        except SQLAlchemyError:
            logger.warning(
                "Dropped notification %r for user %s", title, user_id, exc_info=True,
            )
            return None
        logger.debug("Stored notification %r for user %s", title, user_id)
        return notification

    @staticmethod
    async def get_notifications(
        db: AsyncSession,
        user_id: uuid.UUID,
        pagination: PaginationParams,
        *,
        is_read: Optional[bool] = None,
    ) -> NotificationListResponse:
        """Return paginated notifications for a user, newest first."""
        query = (
            select(Notification)
            .where(Notification.user_id == user_id)
            .order_by(Notification.created_at.desc())
        )
        if is_read is not None:
            query = query.where(Notification.is_read == is_read)

        count_q = query.with_only_columns(func.count(), maintain_column_froms=True).order_by(None)
        total: int = (await db.execute(count_q)).scalar_one()

        rows = (
            await db.execute(
                query.offset(pagination.offset).limit(pagination.page_size)
            )
        ).scalars().all()

        total_pages = math.ceil(total / pagination.page_size) if total else 0
        unread = await NotificationService.get_unread_count(db, user_id)

        return NotificationListResponse(
            data=[NotificationResponse.model_validate(n) for n in rows],
            meta=NotificationListMeta(
                page=pagination.page,
                page_size=pagination.page_size,
                total=total,
                total_pages=total_pages,
                has_next=pagination.page < total_pages,
                has_prev=pagination.page > 1,
                unread=unread,
            ),
        )

    @staticmethod
    async def mark_read(
        db: AsyncSession,
        notification_id: uuid.UUID,
        user_id: uuid.UUID,
    ) -> Notification:
        """Mark a single notification as read. Verifies ownership."""
        result = await db.execute(
            select(Notification).where(Notification.id == notification_id)
        )
        notification = result.scalars().first()
        if notification is None:
            raise NotFoundException("Notification", notification_id)
        if notification.user_id != user_id:
            raise ForbiddenException("You can only mark your own notifications as read.")

        notification.is_read = True
        notification.read_at = datetime.now(timezone.utc)
        await db.flush()
        return notification

    @staticmethod
    async def get_unread_count(db: AsyncSession, user_id: uuid.UUID) -> int:
        result = await db.execute(
            select(func.count())
            .select_from(Notification)
            .where(
                Notification.user_id == user_id,
                Notification.is_read.is_(False),
            )
        )
        return result.scalar_one()


# ── Vacation workflow dispatchers ───────────────────────────────────
# Take ORM objects directly so the vacation service does not depend on
# notification schemas.


def _period_summary(vacation_request) -> str:
    return ", ".join(
        f"{p.start_date.isoformat()} – {p.end_date.isoformat()}"
        for p in sorted(vacation_request.periods, key=lambda p: p.start_date)
    )


async def notify_request_submitted(
    db: AsyncSession,
    vacation_request,  # vacation_scheduler.vacations.models.VacationRequest
    reviewer_ids: list[uuid.UUID],
    owner_name: str,
) -> None:
    """Tell every reviewer of the owner's unit that a request awaits them."""
    for reviewer_id in reviewer_ids:
        await NotificationService.notify(
            db,
            reviewer_id,
            "New Vacation Request",
            (
                f"{owner_name} submitted a {vacation_request.days_requested}-day "
                f"vacation plan for {vacation_request.year} "
                f"({_period_summary(vacation_request)})."
            ),
            type=NotificationType.action_required,
            entity_id=vacation_request.id,
        )


async def notify_request_approved(db: AsyncSession, vacation_request) -> None:
    await NotificationService.notify(
        db,
        vacation_request.user_id,
        "Vacation Request Approved",
        (
            f"Your vacation plan for {vacation_request.year} "
            f"({_period_summary(vacation_request)}) has been approved."
        ),
        type=NotificationType.approval,
        entity_id=vacation_request.id,
    )


async def notify_request_rejected(
    db: AsyncSession,
    vacation_request,
    reason: Optional[str],
) -> None:
    message = f"Your vacation plan for {vacation_request.year} was rejected."
    if reason:
        message += f" Reason: {reason}"
    await NotificationService.notify(
        db,
        vacation_request.user_id,
        "Vacation Request Rejected",
        message,
        type=NotificationType.alert,
        entity_id=vacation_request.id,
    )


async def notify_request_cancelled(
    db: AsyncSession,
    vacation_request,
    cancelled_by_name: str,
) -> None:
    await NotificationService.notify(
        db,
        vacation_request.user_id,
        "Vacation Request Cancelled",
        (
            f"Your vacation plan for {vacation_request.year} was cancelled "
            f"by {cancelled_by_name}."
        ),
        type=NotificationType.info,
        entity_id=vacation_request.id,
    )


async def notify_intersections_found(
    db: AsyncSession,
    manager_id: uuid.UUID,
    unit_name: str,
    year: int,
    count: int,
) -> Optional[Notification]:
    """Alert a unit manager about overlapping approved vacations."""
    return await NotificationService.notify(
        db,
        manager_id,
        "Vacation Overlaps Detected",
        (
            f"{count} overlapping approved vacation period(s) found in "
            f"{unit_name} for {year}. Please review the schedule."
        ),
        type=NotificationType.alert,
    )
