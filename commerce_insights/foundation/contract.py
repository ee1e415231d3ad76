"""Normalization of raw storefront rows into canonical engine records.

The transactional store hands back loosely shaped JSON: line items keep
their product identifier under ``productId`` on some code paths and under
``id`` on others, item collections may still be JSON-encoded strings, and
timestamps arrive either as ``datetime`` objects or ISO-8601 text. The
contract resolves all of that once, so the analytics functions only ever
see one record type per concept.
"""

from __future__ import annotations

import json
import logging
from collections import defaultdict
from datetime import datetime, timedelta, timezone
from typing import Any, Iterable, Mapping, Optional, Sequence

from commerce_insights.foundation.records import (
    CustomerMetric,
    InventorySnapshot,
    LineItem,
    OrderRecord,
    PageEvent,
    SalesPoint,
    UserAcquisition,
)

logger = logging.getLogger(__name__)

#: Keys checked, in order, for a line item's product identifier.
PRODUCT_ID_KEYS = ("productId", "id", "product_id")


def ensure_utc(dt: datetime) -> datetime:
    """Return ``dt`` in UTC, treating naive datetimes as already UTC."""

    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def parse_timestamp(value: Any) -> datetime:
    """Parse a ``datetime`` or ISO-8601 string into an aware UTC datetime.

    Raises
    ------
    TypeError
        If ``value`` is neither a datetime nor a string.
    ValueError
        If the string is not valid ISO-8601.
    """

    if isinstance(value, datetime):
        return ensure_utc(value)
    if isinstance(value, str):
        return ensure_utc(datetime.fromisoformat(value.replace("Z", "+00:00")))
    raise TypeError(f"Expected datetime or ISO-8601 string, got {type(value).__name__}")


def _first_present(record: Mapping[str, Any], keys: Sequence[str]) -> Any:
    for key in keys:
        value = record.get(key)
        if value not in (None, ""):
            return value
    return None


class RecordContract:
    """Validate raw mappings and convert them to canonical records."""

    #: Required user fields (camelCase as stored, snake_case accepted).
    REQUIRED_USER_FIELDS = {"id", "createdAt"}

    def parse_line_items(self, raw: Any) -> list[LineItem]:
        """Parse an order's item collection.

        ``raw`` may be a list of mappings or its JSON-encoded form. Items
        without a recognisable identifier are kept with ``product_id=None``
        so downstream counting can skip them without failing the batch.
        """

        if raw is None:
            return []
        if isinstance(raw, str):
            raw = json.loads(raw) if raw.strip() else []
        if not isinstance(raw, list):
            raise TypeError(f"Line items must be a list, got {type(raw).__name__}")

        items: list[LineItem] = []
        for idx, entry in enumerate(raw):
            if not isinstance(entry, Mapping):
                raise TypeError(
                    "Line item must be a mapping",
                    {"item_index": idx, "value": entry},
                )
            product_id = _first_present(entry, PRODUCT_ID_KEYS)
            if product_id is None:
                logger.debug(f"Line item {idx} has no product identifier")
            quantity = entry.get("quantity")
            try:
                quantity = int(quantity) if quantity is not None else 1
            except (TypeError, ValueError) as exc:
                raise ValueError(
                    "Line item has an invalid quantity",
                    {"item_index": idx, "value": quantity},
                ) from exc
            items.append(
                LineItem(
                    product_id=str(product_id) if product_id is not None else None,
                    quantity=quantity,
                )
            )
        return items

    def orders_from_records(self, records: Iterable[Mapping[str, Any]]) -> list[OrderRecord]:
        """Convert raw order rows into :class:`OrderRecord` objects."""

        orders: list[OrderRecord] = []
        for idx, record in enumerate(records):
            created_raw = _first_present(record, ("createdAt", "created_at"))
            user_id = _first_present(record, ("userId", "user_id"))
            order_id = _first_present(record, ("id", "order_id"))
            try:
                created_at = parse_timestamp(created_raw) if created_raw is not None else None
            except ValueError as exc:
                raise ValueError(
                    "Order has an invalid timestamp",
                    {"record_index": idx, "value": created_raw},
                ) from exc
            orders.append(
                OrderRecord(
                    items=tuple(self.parse_line_items(record.get("items"))),
                    order_id=str(order_id) if order_id is not None else None,
                    user_id=str(user_id) if user_id is not None else None,
                    created_at=created_at,
                    status=record.get("status"),
                    total=float(record.get("total") or 0.0),
                )
            )
        return orders

    def users_from_records(self, records: Iterable[Mapping[str, Any]]) -> list[UserAcquisition]:
        """Convert raw user rows into :class:`UserAcquisition` objects."""

        users: list[UserAcquisition] = []
        for idx, record in enumerate(records):
            data = {
                "id": _first_present(record, ("id", "user_id")),
                "createdAt": _first_present(record, ("createdAt", "created_at")),
            }
            missing = sorted(name for name in self.REQUIRED_USER_FIELDS if data[name] is None)
            if missing:
                raise ValueError(
                    "Record missing required user fields",
                    {"missing_fields": missing, "record_index": idx},
                )
            users.append(
                UserAcquisition(
                    user_id=str(data["id"]),
                    created_at=parse_timestamp(data["createdAt"]),
                )
            )
        return users

    def products_from_records(
        self, records: Iterable[Mapping[str, Any]]
    ) -> list[InventorySnapshot]:
        """Convert raw product rows into :class:`InventorySnapshot` objects."""

        products: list[InventorySnapshot] = []
        for idx, record in enumerate(records):
            product_id = _first_present(record, ("id", "product_id"))
            name = record.get("name")
            missing = sorted(
                field
                for field, value in (("id", product_id), ("name", name))
                if value in (None, "")
            )
            if missing:
                raise ValueError(
                    "Record missing required product fields",
                    {"missing_fields": missing, "record_index": idx},
                )
            stock = int(record.get("stock") or 0)
            in_stock = record.get("inStock", record.get("in_stock"))
            threshold = record.get("lowStockThreshold", record.get("low_stock_threshold"))
            products.append(
                InventorySnapshot(
                    product_id=str(product_id),
                    name=str(name),
                    stock=stock,
                    price=float(record.get("price") or 0.0),
                    in_stock=bool(in_stock) if in_stock is not None else stock > 0,
                    low_stock_threshold=int(threshold or 0),
                )
            )
        return products

    def events_from_records(self, records: Iterable[Mapping[str, Any]]) -> list[PageEvent]:
        """Convert raw tracking-log rows into :class:`PageEvent` objects.

        Metadata stored as a JSON string is decoded; unparsable metadata is
        replaced by an empty mapping rather than rejecting the event.
        """

        events: list[PageEvent] = []
        for idx, record in enumerate(records):
            visitor = _first_present(record, ("ipAddress", "visitor_id", "ip_address"))
            created_raw = _first_present(record, ("createdAt", "created_at"))
            if record.get("event") is None or visitor is None or created_raw is None:
                raise ValueError(
                    "Record missing required event fields",
                    {"record_index": idx},
                )

            metadata = record.get("metadata") or {}
            if isinstance(metadata, str):
                try:
                    metadata = json.loads(metadata)
                except json.JSONDecodeError:
                    logger.debug(f"Event {idx} has unparsable metadata; ignoring it")
                    metadata = {}
            if not isinstance(metadata, Mapping):
                metadata = {}

            user_id = _first_present(record, ("userId", "user_id"))
            events.append(
                PageEvent(
                    event=str(record["event"]),
                    path=record.get("path"),
                    visitor_id=str(visitor),
                    created_at=parse_timestamp(created_raw),
                    metadata=metadata,
                    user_id=str(user_id) if user_id is not None else None,
                )
            )
        return events


def build_customer_metrics(
    orders: Sequence[OrderRecord],
    as_of: datetime,
    names: Optional[Mapping[str, str]] = None,
) -> list[CustomerMetric]:
    """Aggregate orders into one :class:`CustomerMetric` per purchasing user.

    Orders without a ``user_id`` or ``created_at`` are skipped. Customers
    with no orders never appear in the result.

    Raises
    ------
    ValueError
        If an order is dated after ``as_of``.
    """

    as_of = ensure_utc(as_of)
    names = names or {}

    totals: dict[str, dict[str, Any]] = {}
    for order in orders:
        if order.user_id is None or order.created_at is None:
            continue
        created_at = ensure_utc(order.created_at)
        if created_at > as_of:
            raise ValueError(
                f"Order timestamp ({created_at}) cannot be after as_of ({as_of}) "
                f"for customer {order.user_id}"
            )
        data = totals.setdefault(
            order.user_id, {"orders": 0, "spent": 0.0, "last": created_at}
        )
        data["orders"] += 1
        data["spent"] += order.total
        if created_at > data["last"]:
            data["last"] = created_at

    return [
        CustomerMetric(
            customer_id=customer_id,
            last_purchase_days=(as_of - data["last"]).days,
            total_orders=data["orders"],
            total_spent=data["spent"],
            name=names.get(customer_id),
        )
        for customer_id, data in totals.items()
    ]


def build_daily_sales(
    orders: Sequence[OrderRecord],
    as_of: datetime,
    days: int = 30,
) -> list[SalesPoint]:
    """Sum order totals per UTC calendar day over the trailing window.

    Returns points sorted chronologically, oldest first, which is the order
    :func:`~commerce_insights.analyses.forecast.forecast_sales` expects.
    """

    if days <= 0:
        raise ValueError(f"days must be positive, got {days}")

    as_of = ensure_utc(as_of)
    window_start = as_of - timedelta(days=days)
    revenue: dict[str, float] = defaultdict(float)
    for order in orders:
        if order.created_at is None:
            continue
        created_at = ensure_utc(order.created_at)
        if created_at < window_start or created_at > as_of:
            continue
        revenue[created_at.date().isoformat()] += order.total

    return [SalesPoint(date=day, sales=revenue[day]) for day in sorted(revenue)]
