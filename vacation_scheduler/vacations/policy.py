"""Authorization predicates for vacation operations.

Pure functions over the acting user and the request owner; the service
raises ``ForbiddenException`` when one of them returns False.  Role flags
are independent, so a user may be both admin and manager.
"""

from __future__ import annotations

import uuid
from typing import Optional

from vacation_scheduler.common.constants import OWNER_CANCELLABLE_STATUSES
from vacation_scheduler.org.models import User
from vacation_scheduler.vacations.models import VacationRequest


def is_admin(actor: User) -> bool:
    return bool(actor.is_admin)


def is_owner(actor: User, request: VacationRequest) -> bool:
    return actor.id == request.user_id


def is_manager_of(actor: User, owner: User) -> bool:
    """Managers act on users of their own unit; both must belong to one."""
    return (
        bool(actor.is_manager)
        and actor.organizational_unit_id is not None
        and owner.organizational_unit_id is not None
        and actor.organizational_unit_id == owner.organizational_unit_id
    )


def can_review(actor: User, owner: User) -> bool:
    return is_admin(actor) or is_manager_of(actor, owner)


def can_cancel(actor: User, request: VacationRequest, owner: User) -> bool:
    if is_admin(actor) or is_manager_of(actor, owner):
        return True
    return is_owner(actor, request) and request.status in OWNER_CANCELLABLE_STATUSES


def can_view_user(actor: User, owner: User) -> bool:
    return is_admin(actor) or actor.id == owner.id or is_manager_of(actor, owner)


def can_view_unit(actor: User, unit_id: Optional[uuid.UUID]) -> bool:
    if is_admin(actor):
        return True
    return (
        bool(actor.is_manager)
        and unit_id is not None
        and actor.organizational_unit_id == unit_id
    )
