"""Authorization predicate tests — plain objects, no database."""

from __future__ import annotations

import uuid
from types import SimpleNamespace

import pytest

from vacation_scheduler.common.constants import VacationStatus
from vacation_scheduler.vacations import policy

UNIT_A = uuid.uuid4()
UNIT_B = uuid.uuid4()


def _user(*, unit=UNIT_A, is_admin=False, is_manager=False) -> SimpleNamespace:
    return SimpleNamespace(
        id=uuid.uuid4(),
        organizational_unit_id=unit,
        is_admin=is_admin,
        is_manager=is_manager,
    )


def _request(owner, status: VacationStatus) -> SimpleNamespace:
    return SimpleNamespace(user_id=owner.id, status=status)


class TestManagerOf:

    def test_same_unit_manager(self):
        assert policy.is_manager_of(_user(is_manager=True), _user())

    def test_other_unit_manager(self):
        assert not policy.is_manager_of(_user(unit=UNIT_B, is_manager=True), _user())

    def test_both_without_unit(self):
        """Two unit-less users do not share a unit."""
        assert not policy.is_manager_of(_user(unit=None, is_manager=True), _user(unit=None))

    def test_flag_required(self):
        assert not policy.is_manager_of(_user(), _user())


class TestCanReview:

    def test_admin_reviews_anyone(self):
        assert policy.can_review(_user(unit=UNIT_B, is_admin=True), _user())

    def test_colleague_cannot_review(self):
        assert not policy.can_review(_user(), _user())

    def test_admin_and_manager_flags_are_independent(self):
        both = _user(unit=UNIT_B, is_admin=True, is_manager=True)
        assert policy.can_review(both, _user())


class TestCanCancel:

    @pytest.mark.parametrize(
        "status,expected",
        [
            (VacationStatus.draft, True),
            (VacationStatus.pending, True),
            (VacationStatus.approved, False),
        ],
    )
    def test_owner(self, status, expected):
        owner = _user()
        assert policy.can_cancel(owner, _request(owner, status), owner) is expected

    def test_manager_cancels_approved(self):
        owner = _user()
        assert policy.can_cancel(
            _user(is_manager=True), _request(owner, VacationStatus.approved), owner
        )

    def test_stranger_cannot_cancel(self):
        owner = _user()
        assert not policy.can_cancel(
            _user(unit=UNIT_B), _request(owner, VacationStatus.pending), owner
        )


class TestVisibility:

    def test_self(self):
        user = _user()
        assert policy.can_view_user(user, user)

    def test_colleague(self):
        assert not policy.can_view_user(_user(), _user())

    def test_unit_view_requires_own_unit(self):
        manager = _user(is_manager=True)
        assert policy.can_view_unit(manager, UNIT_A)
        assert not policy.can_view_unit(manager, UNIT_B)
        assert not policy.can_view_unit(_user(), UNIT_A)
        assert policy.can_view_unit(_user(unit=None, is_admin=True), UNIT_B)
