"""Notification sink and inbox tests — queueing, pagination, read state."""

from __future__ import annotations

import uuid

import pytest

from vacation_scheduler.common.constants import NotificationType
from vacation_scheduler.common.exceptions import ForbiddenException, NotFoundException
from vacation_scheduler.common.pagination import PaginationParams
from vacation_scheduler.notifications.service import (
    NotificationService,
    notify_intersections_found,
)
from tests.conftest import auth_headers


async def _seed(db, user, count: int) -> None:
    for i in range(count):
        await NotificationService.notify(db, user.id, f"Note {i}", "Body")
    await db.flush()


class TestNotify:

    async def test_row_is_written_immediately(self, db, employee):
        note = await NotificationService.notify(
            db, employee.id, "Hello", "World", type=NotificationType.alert,
        )
        assert note is not None
        assert note not in db.new
        assert note.id is not None
        assert note.is_read is False

    async def test_failed_insert_is_dropped(self, db, employee, caplog):
        with caplog.at_level("WARNING", logger="vacation_scheduler.notifications.service"):
            note = await NotificationService.notify(db, employee.id, None, "No title")

        assert note is None
        assert any("Dropped notification" in r.getMessage() for r in caplog.records)

        # The surrounding transaction is still usable
        await _seed(db, employee, 1)
        inbox = await NotificationService.get_notifications(
            db, employee.id, PaginationParams(page=1, page_size=10)
        )
        assert inbox.meta.total == 1

    async def test_intersection_alert(self, db, manager):
        await notify_intersections_found(db, manager.id, "Engineering", 2026, 3)
        await db.flush()

        inbox = await NotificationService.get_notifications(
            db, manager.id, PaginationParams(page=1, page_size=10)
        )
        assert inbox.meta.total == 1
        assert inbox.data[0].type == NotificationType.alert
        assert inbox.data[0].message.startswith("3 overlapping")


class TestInbox:

    async def test_pagination_and_unread(self, db, employee):
        await _seed(db, employee, 5)

        first = await NotificationService.get_notifications(
            db, employee.id, PaginationParams(page=1, page_size=2)
        )

        assert len(first.data) == 2
        assert first.meta.total == 5
        assert first.meta.total_pages == 3
        assert first.meta.has_next is True
        assert first.meta.unread == 5

    async def test_read_filter(self, db, employee):
        await _seed(db, employee, 2)
        inbox = await NotificationService.get_notifications(
            db, employee.id, PaginationParams(page=1, page_size=10)
        )
        await NotificationService.mark_read(db, inbox.data[0].id, employee.id)

        read = await NotificationService.get_notifications(
            db, employee.id, PaginationParams(page=1, page_size=10), is_read=True
        )
        assert read.meta.total == 1
        assert read.meta.unread == 1

    async def test_cannot_mark_someone_elses(self, db, employee, colleague):
        await _seed(db, employee, 1)
        inbox = await NotificationService.get_notifications(
            db, employee.id, PaginationParams(page=1, page_size=10)
        )

        with pytest.raises(ForbiddenException):
            await NotificationService.mark_read(db, inbox.data[0].id, colleague.id)

    async def test_unknown_notification(self, db, employee):
        with pytest.raises(NotFoundException):
            await NotificationService.mark_read(db, uuid.uuid4(), employee.id)


class TestInboxEndpoint:

    async def test_only_own_notifications_listed(self, client, db, employee, colleague):
        await _seed(db, colleague, 3)
        await db.commit()

        resp = await client.get("/api/v1/notifications", headers=auth_headers(employee))

        assert resp.status_code == 200
        assert resp.json()["meta"]["total"] == 0
