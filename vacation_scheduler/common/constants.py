"""Enums and constants for the vacation scheduler."""

from __future__ import annotations

import enum


# ── Vacation requests ───────────────────────────────────────────────

class VacationStatus(int, enum.Enum):
    """Request lifecycle. Values are the persisted ``status_id``."""

    draft = 1
    pending = 2
    approved = 3
    rejected = 4
    cancelled = 5


# Statuses from which each transition may start
SUBMITTABLE_STATUSES = frozenset({VacationStatus.draft})
REVIEWABLE_STATUSES = frozenset({VacationStatus.pending})
CANCELLABLE_STATUSES = frozenset({
    VacationStatus.draft,
    VacationStatus.pending,
    VacationStatus.approved,
})
# Owners may only withdraw requests nobody has approved yet
OWNER_CANCELLABLE_STATUSES = frozenset({
    VacationStatus.draft,
    VacationStatus.pending,
})


class QuotaPolicy(str, enum.Enum):
    """How a submitted total is compared with the remaining quota."""

    exact = "exact"            # total must equal available days
    not_exceed = "not_exceed"  # total must not exceed available days


# ── Notifications ───────────────────────────────────────────────────

class NotificationType(str, enum.Enum):
    info = "info"
    action_required = "action_required"
    approval = "approval"
    alert = "alert"


# ── Misc constants ──────────────────────────────────────────────────

DEFAULT_VACATION_DAYS = 28
LONG_STRETCH_DAYS = 14
DATE_FORMAT = "%Y-%m-%d"
MAX_PAGE_SIZE = 100
DEFAULT_PAGE_SIZE = 50
