"""Monthly acquisition cohorts and their retention curves.

Users are grouped by the UTC calendar month in which they signed up. For
each cohort we measure, month by month, what share of its members placed at
least one order in that month.

Quick Start
-----------
>>> from datetime import datetime, timezone
>>> from commerce_insights.foundation.records import OrderRecord, UserAcquisition
>>> users = [UserAcquisition("U1", datetime(2024, 1, 5, tzinfo=timezone.utc))]
>>> orders = [OrderRecord(user_id="U1", created_at=datetime(2024, 2, 9, tzinfo=timezone.utc))]
>>> calculate_cohorts(users, orders, as_of=datetime(2024, 3, 1, tzinfo=timezone.utc))
[CohortRetention(cohort='2024-01', size=1, retention=(0, 100, 0))]
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional, Sequence

from commerce_insights.foundation.contract import ensure_utc
from commerce_insights.foundation.records import OrderRecord, UserAcquisition

MAX_MONTH_OFFSET = 12


@dataclass(frozen=True)
class CohortRetention:
    """Retention curve for one acquisition cohort.

    Attributes
    ----------
    cohort:
        Acquisition month, ``YYYY-MM``.
    size:
        Number of distinct users acquired in that month.
    retention:
        Percentage of the cohort active at month offset 0, 1, 2, ...
        (rounded to whole percent). Months after ``as_of`` are omitted.
    """

    cohort: str
    size: int
    retention: tuple[int, ...]

    def __post_init__(self) -> None:
        if self.size < 0:
            raise ValueError(f"size must be >= 0, got {self.size}")
        for pct in self.retention:
            if not 0 <= pct <= 100:
                raise ValueError(
                    f"retention values must be between 0 and 100, got {pct} (cohort={self.cohort})"
                )


def month_key(ts: datetime) -> str:
    """Return the UTC calendar month of ``ts`` as ``YYYY-MM``."""

    return ensure_utc(ts).strftime("%Y-%m")


def add_months(key: str, offset: int) -> str:
    """Advance a ``YYYY-MM`` key by ``offset`` calendar months.

    >>> add_months("2023-11", 3)
    '2024-02'
    """

    year, month = (int(part) for part in key.split("-"))
    index = year * 12 + (month - 1) + offset
    return f"{index // 12:04d}-{index % 12 + 1:02d}"


def _percentage(part: int, whole: int) -> int:
    if whole <= 0:
        return 0
    pct = Decimal(part) * 100 / Decimal(whole)
    return int(pct.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def calculate_cohorts(
    users: Sequence[UserAcquisition],
    orders: Sequence[OrderRecord],
    *,
    as_of: Optional[datetime] = None,
    max_offset: int = MAX_MONTH_OFFSET,
) -> list[CohortRetention]:
    """Compute retention curves for every monthly acquisition cohort.

    Parameters
    ----------
    users:
        Users with their signup timestamps. A user listed more than once in
        the same month is counted once.
    orders:
        Orders carrying ``user_id`` and ``created_at``; other orders are
        ignored.
    as_of:
        Reference "now". Offsets whose target month falls after the month of
        ``as_of`` are not reported. Defaults to the current UTC time.
    max_offset:
        Last month offset to report (inclusive).

    Returns
    -------
    list[CohortRetention]
        One entry per cohort, sorted chronologically.
    """
    current_month = month_key(as_of or datetime.now(timezone.utc))

    cohorts: dict[str, set[str]] = defaultdict(set)
    for user in users:
        cohorts[month_key(user.created_at)].add(user.user_id)

    active_months: dict[str, set[str]] = defaultdict(set)
    for order in orders:
        if order.user_id is None or order.created_at is None:
            continue
        active_months[order.user_id].add(month_key(order.created_at))

    results: list[CohortRetention] = []
    for cohort_month in sorted(cohorts):
        members = cohorts[cohort_month]
        retention: list[int] = []
        for offset in range(max_offset + 1):
            target_month = add_months(cohort_month, offset)
            if target_month > current_month:
                break
            active = sum(
                1
                for user_id in members
                if target_month in active_months.get(user_id, ())
            )
            retention.append(_percentage(active, len(members)))

        results.append(
            CohortRetention(
                cohort=cohort_month,
                size=len(members),
                retention=tuple(retention),
            )
        )
    return results
