"""Canonical input records consumed by the analytics engine.

Every engine function operates on these value records rather than on raw
JSON rows. Callers build them once per invocation (usually through
:class:`~commerce_insights.foundation.contract.RecordContract`) and discard
them afterwards; nothing here holds state across calls.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Mapping, Optional, Sequence


@dataclass(frozen=True)
class SalesPoint:
    """Revenue observed on a single calendar day.

    Attributes
    ----------
    date:
        Calendar day key (ISO ``YYYY-MM-DD`` when built by the contract).
    sales:
        Total sales for the day, non-negative.
    """

    date: str
    sales: float

    def __post_init__(self) -> None:
        if self.sales < 0:
            raise ValueError(f"Sales cannot be negative: {self.sales} (date={self.date})")


@dataclass(frozen=True)
class CustomerMetric:
    """Pre-aggregated purchase behaviour for one customer.

    Attributes
    ----------
    customer_id:
        Unique customer identifier
    last_purchase_days:
        Whole days since the customer's most recent order
    total_orders:
        Number of orders placed (at least one)
    total_spent:
        Lifetime spend across all orders
    name:
        Optional display name carried through to segmentation output
    """

    customer_id: str
    last_purchase_days: int
    total_orders: int
    total_spent: float
    name: Optional[str] = None

    def __post_init__(self) -> None:
        if self.last_purchase_days < 0:
            raise ValueError(
                f"Recency cannot be negative: {self.last_purchase_days} (customer_id={self.customer_id})"
            )
        if self.total_orders <= 0:
            raise ValueError(
                f"Order count must be positive: {self.total_orders} (customer_id={self.customer_id})"
            )
        if self.total_spent < 0:
            raise ValueError(
                f"Total spent cannot be negative: {self.total_spent} (customer_id={self.customer_id})"
            )


@dataclass(frozen=True)
class LineItem:
    """A product line within an order.

    ``product_id`` is ``None`` when the upstream row carried no recognisable
    identifier; such items are skipped by co-occurrence counting.
    """

    product_id: Optional[str]
    quantity: int = 1

    def __post_init__(self) -> None:
        if self.quantity <= 0:
            raise ValueError(
                f"Quantity must be positive: {self.quantity} (product_id={self.product_id})"
            )


@dataclass(frozen=True)
class OrderRecord:
    """An order as seen by the engine.

    Only ``items`` is needed for basket analysis; the remaining fields feed
    cohort retention, sales history and inventory velocity.
    """

    items: Sequence[LineItem] = ()
    order_id: Optional[str] = None
    user_id: Optional[str] = None
    created_at: Optional[datetime] = None
    status: Optional[str] = None
    total: float = 0.0

    def product_ids(self) -> list[str]:
        """Return distinct resolved product identifiers in first-seen order."""

        return list(
            dict.fromkeys(
                item.product_id for item in self.items if item.product_id is not None
            )
        )


@dataclass(frozen=True)
class UserAcquisition:
    """When a user joined; defines cohort membership."""

    user_id: str
    created_at: datetime


@dataclass(frozen=True)
class InventorySnapshot:
    """Current stock position of a product.

    Attributes
    ----------
    product_id:
        Unique product identifier
    name:
        Product display name
    stock:
        Units on hand
    price:
        Unit price used for valuation
    in_stock:
        Whether the product is currently listed as available
    low_stock_threshold:
        Per-product alert threshold; 0 means "use the global threshold"
    """

    product_id: str
    name: str
    stock: int
    price: float
    in_stock: bool = True
    low_stock_threshold: int = 0

    def __post_init__(self) -> None:
        if self.stock < 0:
            raise ValueError(
                f"Stock cannot be negative: {self.stock} (product_id={self.product_id})"
            )
        if self.price < 0:
            raise ValueError(
                f"Price cannot be negative: {self.price} (product_id={self.product_id})"
            )
        if self.low_stock_threshold < 0:
            raise ValueError(
                f"low_stock_threshold cannot be negative: {self.low_stock_threshold} "
                f"(product_id={self.product_id})"
            )


@dataclass(frozen=True)
class PageEvent:
    """A single storefront tracking event (page view, click, exit...)."""

    event: str
    path: Optional[str]
    visitor_id: str
    created_at: datetime
    metadata: Mapping[str, Any] = field(default_factory=dict)
    user_id: Optional[str] = None
