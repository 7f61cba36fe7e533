"""Period validation for vacation plans.

Pure functions: no database access.  The quota snapshot is read by the
caller and passed in, so the same rules apply to a stored draft and to a
plan that has not been saved yet.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from itertools import combinations
from typing import Optional, Protocol, Sequence

from vacation_scheduler.common.constants import (
    DATE_FORMAT,
    LONG_STRETCH_DAYS,
    QuotaPolicy,
)
from vacation_scheduler.common.exceptions import ValidationException


class QuotaView(Protocol):
    total_days: int
    used_days: int


@dataclass(frozen=True)
class PeriodInput:
    start_date: Optional[date]
    end_date: Optional[date]

    @property
    def days_count(self) -> int:
        """Calendar days in the inclusive range."""
        return span_days(self.start_date, self.end_date)


@dataclass(frozen=True)
class ValidatedTotals:
    total_days: int
    has_long_stretch: bool
    available_days: int


def span_days(start_date: date, end_date: date) -> int:
    return (end_date - start_date).days + 1


def periods_intersect(
    start_1: date,
    end_1: date,
    start_2: date,
    end_2: date,
) -> bool:
    """Strict overlap test; ranges that only touch at an endpoint do not intersect."""
    return start_1 < end_2 and start_2 < end_1


def _fmt(d: date) -> str:
    return d.strftime(DATE_FORMAT)


def validate_periods(
    periods: Sequence[PeriodInput],
    year: int,
    quota: QuotaView,
    *,
    policy: QuotaPolicy = QuotaPolicy.exact,
    long_stretch_days: int = LONG_STRETCH_DAYS,
) -> ValidatedTotals:
    """Check a vacation plan and return its totals.

    Raises ``ValidationException`` on the first rule that fails, in this
    order: empty plan, bad dates, year bounds, overlapping periods, missing
    long stretch, quota policy.
    """
    if not periods:
        raise ValidationException(
            {"periods": ["At least one vacation period is required."]}
        )

    # Dates
    for index, period in enumerate(periods, start=1):
        if period.start_date is None or period.end_date is None:
            raise ValidationException(
                {f"periods.{index}": [f"Period {index} must have both a start and an end date."]}
            )
        if period.end_date < period.start_date:
            raise ValidationException(
                {
                    f"periods.{index}.end_date": [
                        f"Period {index} ends on {_fmt(period.end_date)}, "
                        f"before its start {_fmt(period.start_date)}."
                    ]
                }
            )

    # Planning year
    for index, period in enumerate(periods, start=1):
        if period.start_date.year != year or period.end_date.year != year:
            raise ValidationException(
                {
                    f"periods.{index}": [
                        f"Period {index} ({_fmt(period.start_date)} – "
                        f"{_fmt(period.end_date)}) is outside {year}."
                    ]
                }
            )

    # Overlaps within the plan
    for (i, first), (j, second) in combinations(enumerate(periods, start=1), 2):
        if periods_intersect(
            first.start_date, first.end_date, second.start_date, second.end_date
        ):
            raise ValidationException(
                {
                    "periods": [
                        f"Period {i} ({_fmt(first.start_date)} – {_fmt(first.end_date)}) "
                        f"overlaps period {j} ({_fmt(second.start_date)} – "
                        f"{_fmt(second.end_date)})."
                    ]
                }
            )

    total_days = sum(p.days_count for p in periods)
    has_long_stretch = any(p.days_count >= long_stretch_days for p in periods)
    if not has_long_stretch:
        longest = max(p.days_count for p in periods)
        raise ValidationException(
            {
                "periods": [
                    f"At least one period must last {long_stretch_days} days or "
                    f"more (longest is {longest})."
                ]
            }
        )

    available = quota.total_days - quota.used_days
    if policy == QuotaPolicy.exact and total_days != available:
        raise ValidationException(
            {
                "days_requested": [
                    f"Quota mismatch: requested {total_days} days but "
                    f"{available} days are available."
                ]
            }
        )
    if policy == QuotaPolicy.not_exceed and total_days > available:
        raise ValidationException(
            {
                "days_requested": [
                    f"Requested {total_days} days exceeds the {available} "
                    f"available days."
                ]
            }
        )

    return ValidatedTotals(
        total_days=total_days,
        has_long_stretch=has_long_stretch,
        available_days=available,
    )
