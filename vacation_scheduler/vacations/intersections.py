"""Overlap detection between approved vacations of different users.

Read-only and pure: the service loads the approved requests of a unit and
a name directory, this module compares them pairwise.  The cost is
O(n²·p²) in requests and periods per request; units are small enough
that a sweep over sorted endpoints has not been needed.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import date
from itertools import combinations
from typing import Iterable, Mapping, Optional, Protocol, Sequence

from vacation_scheduler.vacations.validation import periods_intersect, span_days


class _Period(Protocol):
    start_date: date
    end_date: date


class _Request(Protocol):
    id: uuid.UUID
    user_id: uuid.UUID
    periods: Sequence[_Period]


@dataclass(frozen=True)
class Intersection:
    user_id_1: uuid.UUID
    user_name_1: str
    request_id_1: uuid.UUID
    user_id_2: uuid.UUID
    user_name_2: str
    request_id_2: uuid.UUID
    start_date: date
    end_date: date
    days_count: int


def _overlap(first: _Period, second: _Period) -> Optional[tuple[date, date]]:
    if not periods_intersect(
        first.start_date, first.end_date, second.start_date, second.end_date
    ):
        return None
    return max(first.start_date, second.start_date), min(first.end_date, second.end_date)


def _pair_intersections(
    first: _Request,
    second: _Request,
    user_names: Mapping[uuid.UUID, str],
) -> list[Intersection]:
    found: list[Intersection] = []
    for p1 in first.periods:
        for p2 in second.periods:
            overlap = _overlap(p1, p2)
            if overlap is None:
                continue
            start, end = overlap
            found.append(
                Intersection(
                    user_id_1=first.user_id,
                    user_name_1=user_names.get(first.user_id, ""),
                    request_id_1=first.id,
                    user_id_2=second.user_id,
                    user_name_2=user_names.get(second.user_id, ""),
                    request_id_2=second.id,
                    start_date=start,
                    end_date=end,
                    days_count=span_days(start, end),
                )
            )
    return found


def find_intersections(
    requests: Sequence[_Request],
    user_names: Mapping[uuid.UUID, str],
) -> list[Intersection]:
    """Every overlap between periods of requests owned by different users.

    Requests of the same user are never compared with each other.
    """
    result: list[Intersection] = []
    for first, second in combinations(requests, 2):
        if first.user_id == second.user_id:
            continue
        result.extend(_pair_intersections(first, second, user_names))
    return result


def find_period_conflicts(
    request: _Request,
    others: Iterable[_Request],
    user_names: Mapping[uuid.UUID, str],
) -> list[Intersection]:
    """Overlaps between one request and other users' requests."""
    result: list[Intersection] = []
    for other in others:
        if other.user_id == request.user_id or other.id == request.id:
            continue
        result.extend(_pair_intersections(request, other, user_names))
    return result
