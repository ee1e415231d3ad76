"""Storefront traffic analytics over tracking events.

Visitors are identified by ``PageEvent.visitor_id`` (the client address in
the tracking log), so every "unique" count here is per visitor, not per
signed-in user.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import Callable, Mapping, Optional, Sequence

from commerce_insights.foundation.contract import ensure_utc
from commerce_insights.foundation.records import PageEvent

CHECKOUT_PATH = "/checkout"
ORDER_SUCCESS_PATH = "/order-success"
PRODUCT_PATH_PREFIX = "/product/"


@dataclass(frozen=True)
class PathCount:
    path: str
    count: int


@dataclass(frozen=True)
class TrafficBucket:
    hour: str
    count: int


@dataclass(frozen=True)
class ActiveVisitors:
    active_users: int
    users_in_checkout: int


@dataclass(frozen=True)
class FunnelStep:
    step: str
    count: int


@dataclass(frozen=True)
class ElementClicks:
    element: str
    count: int


@dataclass(frozen=True)
class TrafficOverview:
    total_requests: int
    unique_visitors: int
    avg_session_duration: int
    active_users: int
    users_in_checkout: int


def _is_duration(value) -> bool:
    # Zero and non-numeric durations are ignored.
    return isinstance(value, (int, float)) and not isinstance(value, bool) and value != 0


def unique_visitors(events: Sequence[PageEvent]) -> int:
    return len({event.visitor_id for event in events})


def average_session_duration(events: Sequence[PageEvent]) -> int:
    """Mean ``duration_ms`` of ``page_leave`` events, in whole seconds."""

    durations = [
        event.metadata["duration_ms"]
        for event in events
        if event.event == "page_leave" and _is_duration(event.metadata.get("duration_ms"))
    ]
    if not durations:
        return 0
    seconds = Decimal(str(sum(durations))) / len(durations) / 1000
    return int(seconds.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def top_pages(events: Sequence[PageEvent], limit: int = 10) -> list[PathCount]:
    """Most viewed paths among ``page_view`` events."""

    counts = Counter(
        event.path for event in events if event.event == "page_view" and event.path
    )
    return [PathCount(path, count) for path, count in counts.most_common(limit)]


def top_exit_pages(events: Sequence[PageEvent], limit: int = 5) -> list[PathCount]:
    """Pages visitors most often left the site from."""

    counts = Counter(
        event.metadata["last_page"]
        for event in events
        if event.event == "website_exit" and event.metadata.get("last_page")
    )
    return [PathCount(path, count) for path, count in counts.most_common(limit)]


def hourly_traffic(
    events: Sequence[PageEvent],
    now: datetime,
    window: timedelta = timedelta(hours=24),
) -> list[TrafficBucket]:
    """Event counts per UTC hour of day over the trailing ``window``.

    Buckets appear in the order their hour is first seen.
    """
    since = ensure_utc(now) - window
    counts: Counter[str] = Counter()
    for event in events:
        created_at = ensure_utc(event.created_at)
        if created_at >= since:
            counts[f"{created_at.hour}:00"] += 1
    return [TrafficBucket(hour, count) for hour, count in counts.items()]


def active_visitors(
    events: Sequence[PageEvent],
    now: datetime,
    window_minutes: int = 5,
) -> ActiveVisitors:
    """Visitors seen in the last ``window_minutes`` and how many are checking out.

    A visitor counts as "in checkout" when their most recent event is on
    the checkout page.
    """
    since = ensure_utc(now) - timedelta(minutes=window_minutes)
    recent = sorted(
        (event for event in events if ensure_utc(event.created_at) >= since),
        key=lambda event: ensure_utc(event.created_at),
        reverse=True,
    )

    latest_path: dict[str, Optional[str]] = {}
    for event in recent:
        latest_path.setdefault(event.visitor_id, event.path)

    in_checkout = sum(1 for path in latest_path.values() if path == CHECKOUT_PATH)
    return ActiveVisitors(active_users=len(latest_path), users_in_checkout=in_checkout)


FUNNEL_STEPS: list[tuple[str, Callable[[PageEvent], bool]]] = [
    ("Visitors", lambda event: True),
    (
        "Product View",
        lambda event: bool(event.path and event.path.startswith(PRODUCT_PATH_PREFIX)),
    ),
    ("Add to Cart", lambda event: event.event == "add_to_cart"),
    ("Checkout", lambda event: event.path == CHECKOUT_PATH),
    ("Purchase", lambda event: event.path == ORDER_SUCCESS_PATH),
]


def conversion_funnel(events: Sequence[PageEvent], since: datetime) -> list[FunnelStep]:
    """Unique visitors reaching each purchase-funnel step since ``since``."""

    since = ensure_utc(since)
    window = [event for event in events if ensure_utc(event.created_at) >= since]
    return [
        FunnelStep(
            step=name,
            count=len({event.visitor_id for event in window if matches(event)}),
        )
        for name, matches in FUNNEL_STEPS
    ]


def _element_signature(element: object) -> Optional[str]:
    if not isinstance(element, Mapping):
        return None
    for key in ("text", "id", "className", "tagName"):
        if element.get(key):
            return str(element[key])
    return None


def click_heatmap(
    events: Sequence[PageEvent],
    path: str,
    limit: int = 20,
) -> list[ElementClicks]:
    """Most clicked elements on ``path``.

    Elements are identified by their text, falling back to id, class name and
    tag name. Elements reported as ``unknown`` are dropped.
    """
    counts: Counter[str] = Counter()
    for event in events:
        if event.event != "user_action" or event.path != path:
            continue
        if event.metadata.get("action") != "click":
            continue
        signature = _element_signature(event.metadata.get("element"))
        if signature and signature != "unknown":
            counts[signature] += 1
    return [ElementClicks(element, count) for element, count in counts.most_common(limit)]


def summarize_traffic(events: Sequence[PageEvent], now: datetime) -> TrafficOverview:
    active = active_visitors(events, now)
    return TrafficOverview(
        total_requests=len(events),
        unique_visitors=unique_visitors(events),
        avg_session_duration=average_session_duration(events),
        active_users=active.active_users,
        users_in_checkout=active.users_in_checkout,
    )
