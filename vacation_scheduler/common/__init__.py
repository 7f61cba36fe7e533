"""Common module — shared utilities for the vacation scheduler."""

from vacation_scheduler.common.constants import (
    CANCELLABLE_STATUSES,
    DATE_FORMAT,
    DEFAULT_PAGE_SIZE,
    DEFAULT_VACATION_DAYS,
    LONG_STRETCH_DAYS,
    MAX_PAGE_SIZE,
    NotificationType,
    QuotaPolicy,
    VacationStatus,
)
from vacation_scheduler.common.exceptions import (
    AppException,
    ForbiddenException,
    InvalidQuota,
    InvalidStateException,
    LedgerInconsistencyError,
    LimitNotFound,
    NotFoundException,
    ValidationException,
    register_exception_handlers,
)
from vacation_scheduler.common.pagination import (
    PaginationMeta,
    PaginationParams,
)

__all__ = [
    # Constants / Enums
    "CANCELLABLE_STATUSES",
    "NotificationType",
    "QuotaPolicy",
    "VacationStatus",
    "DATE_FORMAT",
    "DEFAULT_PAGE_SIZE",
    "DEFAULT_VACATION_DAYS",
    "LONG_STRETCH_DAYS",
    "MAX_PAGE_SIZE",
    # Exceptions
    "AppException",
    "ForbiddenException",
    "InvalidQuota",
    "InvalidStateException",
    "LedgerInconsistencyError",
    "LimitNotFound",
    "NotFoundException",
    "ValidationException",
    "register_exception_handlers",
    # Pagination
    "PaginationMeta",
    "PaginationParams",
]
