"""Custom exceptions and RFC 7807 Problem Detail error handlers."""

from __future__ import annotations

import logging
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

BASE_ERROR_URI = "https://vacations.example.org/errors"

logger = logging.getLogger(__name__)


# ── Exception hierarchy ─────────────────────────────────────────────

class AppException(Exception):
    """Base for all application exceptions → RFC 7807 JSON."""

    def __init__(
        self,
        status_code: int,
        error_type: str,
        title: str,
        detail: str,
        errors: Optional[dict[str, Any]] = None,
    ) -> None:
        self.status_code = status_code
        self.error_type = error_type
        self.title = title
        self.detail = detail
        self.errors = errors
        super().__init__(detail)


class NotFoundException(AppException):
    """404 — entity not found."""

    def __init__(self, entity_type: str, entity_id: Any) -> None:
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(
            status_code=404,
            error_type="not-found",
            title=f"{entity_type} Not Found",
            detail=f"{entity_type} with id '{entity_id}' does not exist.",
        )


class LimitNotFound(NotFoundException):
    """404 — no quota ledger row for a (user, year)."""

    def __init__(self, user_id: Any, year: int) -> None:
        super().__init__("VacationLimit", f"{user_id}/{year}")
        self.user_id = user_id
        self.year = year


class ForbiddenException(AppException):
    """403 — insufficient permissions."""

    def __init__(
        self,
        detail: str = "You do not have permission to perform this action.",
    ) -> None:
        super().__init__(
            status_code=403,
            error_type="forbidden",
            title="Forbidden",
            detail=detail,
        )


class ValidationException(AppException):
    """422 — business-logic validation failures."""

    def __init__(self, errors: dict[str, list[str]]) -> None:
        super().__init__(
            status_code=422,
            error_type="validation-error",
            title="Validation Error",
            detail="One or more fields failed validation.",
            errors=errors,
        )


class InvalidQuota(ValidationException):
    """422 — a quota ceiling that cannot be stored."""

    def __init__(self, total_days: int) -> None:
        self.total_days = total_days
        super().__init__(
            {"total_days": [f"Quota cannot be negative (got {total_days})."]}
        )


class InvalidStateException(AppException):
    """409 — transition attempted from a status that does not allow it."""

    def __init__(self, entity_id: Any, current: Any, action: str) -> None:
        self.entity_id = entity_id
        self.current = current
        self.action = action
        current_name = getattr(current, "name", current)
        super().__init__(
            status_code=409,
            error_type="invalid-state",
            title="Invalid State Transition",
            detail=(
                f"Cannot {action} request '{entity_id}' while it is "
                f"'{current_name}'."
            ),
            errors={"status": [str(current_name)]},
        )


class LedgerInconsistencyError(AppException):
    """500 — quota ledger no longer matches the approved requests.

    Raised only when drift is detected; an operator has to reconcile the
    (user, year) row by hand.
    """

    def __init__(
        self,
        user_id: Any,
        year: int,
        *,
        used_days: int,
        expected_days: int,
        reason: str,
    ) -> None:
        self.user_id = user_id
        self.year = year
        self.used_days = used_days
        self.expected_days = expected_days
        super().__init__(
            status_code=500,
            error_type="ledger-inconsistency",
            title="Ledger Inconsistency",
            detail=(
                f"Vacation ledger for user '{user_id}' in {year} needs "
                f"reconciliation: {reason}"
            ),
            errors={
                "used_days": [str(used_days)],
                "expected_days": [str(expected_days)],
            },
        )


# ── RFC 7807 builder ────────────────────────────────────────────────

def _build_problem_detail(exc: AppException, request: Request) -> dict[str, Any]:
    body: dict[str, Any] = {
        "type": f"{BASE_ERROR_URI}/{exc.error_type}",
        "title": exc.title,
        "status": exc.status_code,
        "detail": exc.detail,
        "instance": str(request.url.path),
    }
    if exc.errors:
        body["errors"] = exc.errors
    return body


# ── FastAPI handlers ────────────────────────────────────────────────

async def _handle_app_exception(
    request: Request,
    exc: AppException,
) -> JSONResponse:
    if isinstance(exc, LedgerInconsistencyError):
        logger.error(
            "Ledger inconsistency surfaced to client on %s: %s",
            request.url.path, exc.detail,
        )
    return JSONResponse(
        status_code=exc.status_code,
        content=_build_problem_detail(exc, request),
        media_type="application/problem+json",
    )


async def _handle_validation_error(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    field_errors: dict[str, list[str]] = {}
    for err in exc.errors():
        loc = err.get("loc", ())
        name = (
            ".".join(str(p) for p in loc[1:])
            if len(loc) > 1
            else str(loc[0]) if loc else "unknown"
        )
        field_errors.setdefault(name, []).append(err.get("msg", "Invalid value"))

    return JSONResponse(
        status_code=422,
        content={
            "type": f"{BASE_ERROR_URI}/validation-error",
            "title": "Validation Error",
            "status": 422,
            "detail": "Request validation failed.",
            "instance": str(request.url.path),
            "errors": field_errors,
        },
        media_type="application/problem+json",
    )


# ── Registration helper (called from main.py) ──────────────────────

def register_exception_handlers(app: FastAPI) -> None:
    """Attach all custom exception handlers to the FastAPI app."""
    app.add_exception_handler(AppException, _handle_app_exception)          # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _handle_validation_error)  # type: ignore[arg-type]
