"""Inventory depletion risk, dead stock and valuation.

The pure functions in this module combine current stock snapshots with a
pre-aggregated view of recent sales. :class:`InventoryService` wires them to
an injected :class:`InventorySource` that performs those aggregations, so the
analytics themselves never touch storage.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, replace
from datetime import datetime, timedelta, timezone
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from typing import Iterable, Mapping, Optional, Protocol, Sequence

from commerce_insights.foundation.contract import ensure_utc
from commerce_insights.foundation.records import InventorySnapshot, OrderRecord

logger = logging.getLogger(__name__)

#: Reported when a product has no sales, so no depletion date can be estimated.
NO_DEPLETION_FORECAST = 999
#: Products with zero sales are still surfaced when stock is below this.
LOW_STOCK_SURFACE_LEVEL = 10
DEFAULT_LOW_STOCK_THRESHOLD = 5


class RiskLevel(str, Enum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


@dataclass(frozen=True)
class InventoryConfig:
    """Windows and thresholds used by :class:`InventoryService`.

    Attributes
    ----------
    days_of_history:
        Trailing window, in days, used to measure sales velocity.
    dead_stock_days:
        A product with no sales in this many days is dead stock.
    low_stock_threshold:
        Global low-stock threshold for products without their own.
    """

    days_of_history: int = 30
    dead_stock_days: int = 90
    low_stock_threshold: int = DEFAULT_LOW_STOCK_THRESHOLD

    def __post_init__(self) -> None:
        if self.days_of_history <= 0:
            raise ValueError(f"days_of_history must be positive, got {self.days_of_history}")
        if self.dead_stock_days <= 0:
            raise ValueError(f"dead_stock_days must be positive, got {self.dead_stock_days}")
        if self.low_stock_threshold < 0:
            raise ValueError(
                f"low_stock_threshold cannot be negative, got {self.low_stock_threshold}"
            )


@dataclass(frozen=True)
class InventoryPrediction:
    """Depletion estimate for one product."""

    product_id: str
    name: str
    stock: int
    total_sold: int
    daily_velocity: float
    days_remaining: int
    risk_level: RiskLevel


@dataclass(frozen=True)
class DeadStockItem:
    product_id: str
    name: str
    stock: int
    price: float
    value: float
    days_inactive: int


@dataclass(frozen=True)
class InventoryValuation:
    total_value: float
    total_items: int
    sku_count: int


def _round_half_up(value: float, places: int = 0) -> Decimal:
    quantum = Decimal(1).scaleb(-places)
    return Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP)


def classify_risk(days_remaining: int) -> RiskLevel:
    """Map days of stock remaining to a risk tier."""

    if days_remaining <= 7:
        return RiskLevel.CRITICAL
    if days_remaining <= 14:
        return RiskLevel.HIGH
    if days_remaining <= 30:
        return RiskLevel.MEDIUM
    return RiskLevel.LOW


def get_inventory_predictions(
    products: Sequence[InventorySnapshot],
    units_sold: Mapping[str, int],
    days_of_history: int = 30,
) -> list[InventoryPrediction]:
    """Estimate days until each in-stock product runs out.

    Parameters
    ----------
    products:
        Current stock snapshots; products not flagged ``in_stock`` are skipped.
    units_sold:
        Units sold per product over the trailing ``days_of_history`` window.
    days_of_history:
        Length of the window ``units_sold`` covers.

    Returns
    -------
    list[InventoryPrediction]
        Products with any sales, or with stock below
        :data:`LOW_STOCK_SURFACE_LEVEL`, most urgent first. Products without
        sales report :data:`NO_DEPLETION_FORECAST` days remaining.

    Examples
    --------
    >>> snap = InventorySnapshot("P1", "Mug", stock=50, price=8.0)
    >>> pred = get_inventory_predictions([snap], {"P1": 100}, days_of_history=30)[0]
    >>> pred.daily_velocity, pred.days_remaining, pred.risk_level.value
    (3.33, 15, 'medium')
    """
    if days_of_history <= 0:
        raise ValueError(f"days_of_history must be positive, got {days_of_history}")

    predictions: list[InventoryPrediction] = []
    for product in products:
        if not product.in_stock:
            continue
        total_sold = int(units_sold.get(product.product_id, 0))
        velocity = total_sold / days_of_history

        days_remaining = NO_DEPLETION_FORECAST
        if velocity > 0:
            days_remaining = int(_round_half_up(product.stock / velocity))

        if total_sold <= 0 and product.stock >= LOW_STOCK_SURFACE_LEVEL:
            continue

        predictions.append(
            InventoryPrediction(
                product_id=product.product_id,
                name=product.name,
                stock=product.stock,
                total_sold=total_sold,
                daily_velocity=float(_round_half_up(velocity, 2)),
                days_remaining=days_remaining,
                risk_level=classify_risk(days_remaining),
            )
        )

    predictions.sort(key=lambda p: p.days_remaining)
    return predictions


def get_dead_stock(
    products: Sequence[InventorySnapshot],
    active_product_ids: Iterable[str],
    days_threshold: int = 90,
) -> list[DeadStockItem]:
    """List in-stock products with no sales in the last ``days_threshold`` days.

    ``active_product_ids`` is the set of products sold within that window.
    ``days_inactive`` is a lower bound: the product has been idle for at
    least the threshold.
    """
    active = set(active_product_ids)
    return [
        DeadStockItem(
            product_id=product.product_id,
            name=product.name,
            stock=product.stock,
            price=product.price,
            value=product.stock * product.price,
            days_inactive=days_threshold,
        )
        for product in products
        if product.in_stock and product.stock > 0 and product.product_id not in active
    ]


def get_inventory_valuation(products: Sequence[InventorySnapshot]) -> InventoryValuation:
    """Total value, units and SKU count of in-stock, positive-stock products."""

    stocked = [p for p in products if p.in_stock and p.stock > 0]
    return InventoryValuation(
        total_value=sum(p.stock * p.price for p in stocked),
        total_items=sum(p.stock for p in stocked),
        sku_count=len(stocked),
    )


def is_low_stock(
    product: InventorySnapshot,
    global_threshold: int = DEFAULT_LOW_STOCK_THRESHOLD,
) -> bool:
    """Whether stock is at or below the product's threshold.

    A per-product threshold of 0 defers to ``global_threshold``.
    """
    threshold = (
        product.low_stock_threshold if product.low_stock_threshold > 0 else global_threshold
    )
    return product.stock <= threshold


def get_low_stock_items(
    products: Sequence[InventorySnapshot],
    global_threshold: int = DEFAULT_LOW_STOCK_THRESHOLD,
) -> list[InventorySnapshot]:
    """In-stock products at or below their low-stock threshold."""

    return [p for p in products if p.in_stock and is_low_stock(p, global_threshold)]


def apply_stock_change(product: InventorySnapshot, quantity_change: int) -> InventorySnapshot:
    """Return a snapshot with stock adjusted by ``quantity_change``.

    Stock never drops below zero, and ``in_stock`` follows whether any units
    remain.
    """
    new_stock = max(0, product.stock + quantity_change)
    return replace(product, stock=new_stock, in_stock=new_stock > 0)


def aggregate_units_sold(
    orders: Iterable[OrderRecord],
    since: datetime,
    statuses: Iterable[str] = ("completed",),
) -> dict[str, int]:
    """Sum line-item quantities per product for orders since ``since``.

    Only orders whose status is in ``statuses`` are counted.
    """
    since = ensure_utc(since)
    allowed = set(statuses)
    totals: Counter[str] = Counter()
    for order in orders:
        if order.created_at is None or ensure_utc(order.created_at) < since:
            continue
        if order.status not in allowed:
            continue
        for item in order.items:
            if item.product_id is not None:
                totals[item.product_id] += item.quantity
    return dict(totals)


def active_product_ids(
    orders: Iterable[OrderRecord],
    since: datetime,
    excluded_statuses: Iterable[str] = ("cancelled",),
) -> set[str]:
    """Products appearing in any non-excluded order since ``since``."""

    since = ensure_utc(since)
    excluded = set(excluded_statuses)
    active: set[str] = set()
    for order in orders:
        if order.created_at is None or ensure_utc(order.created_at) < since:
            continue
        if order.status in excluded:
            continue
        active.update(order.product_ids())
    return active


class InventorySourceError(RuntimeError):
    """Raised by an :class:`InventorySource` when an aggregation fails."""


class InventorySource(Protocol):
    """Storage access needed by :class:`InventoryService`."""

    def list_products(self) -> Sequence[InventorySnapshot]: ...

    def units_sold_since(self, since: datetime) -> Mapping[str, int]: ...

    def product_ids_sold_since(self, since: datetime) -> Iterable[str]: ...


class InMemoryInventorySource:
    """:class:`InventorySource` over already-loaded products and orders."""

    def __init__(
        self,
        products: Sequence[InventorySnapshot],
        orders: Sequence[OrderRecord],
    ) -> None:
        self.products = list(products)
        self.orders = list(orders)

    def list_products(self) -> Sequence[InventorySnapshot]:
        return self.products

    def units_sold_since(self, since: datetime) -> Mapping[str, int]:
        return aggregate_units_sold(self.orders, since)

    def product_ids_sold_since(self, since: datetime) -> Iterable[str]:
        return active_product_ids(self.orders, since)


class InventoryService:
    """Run the inventory analytics against an injected data source.

    Examples
    --------
    >>> source = InMemoryInventorySource(products, orders)  # doctest: +SKIP
    >>> service = InventoryService(source, InventoryConfig(days_of_history=14))  # doctest: +SKIP
    >>> service.predictions()  # doctest: +SKIP
    """

    def __init__(
        self,
        source: InventorySource,
        config: InventoryConfig = InventoryConfig(),
    ) -> None:
        self.source = source
        self.config = config

    def _window_start(self, days: int, now: Optional[datetime]) -> datetime:
        return ensure_utc(now or datetime.now(timezone.utc)) - timedelta(days=days)

    def predictions(self, now: Optional[datetime] = None) -> list[InventoryPrediction]:
        since = self._window_start(self.config.days_of_history, now)
        try:
            units_sold = self.source.units_sold_since(since)
        except InventorySourceError as exc:
            logger.warning(f"Could not aggregate sales velocity, assuming no sales: {exc}")
            units_sold = {}
        return get_inventory_predictions(
            self.source.list_products(), units_sold, self.config.days_of_history
        )

    def dead_stock(self, now: Optional[datetime] = None) -> list[DeadStockItem]:
        since = self._window_start(self.config.dead_stock_days, now)
        try:
            active = set(self.source.product_ids_sold_since(since))
        except InventorySourceError as exc:
            logger.warning(f"Could not aggregate recent sales for dead stock: {exc}")
            active = set()
        return get_dead_stock(self.source.list_products(), active, self.config.dead_stock_days)

    def valuation(self) -> InventoryValuation:
        return get_inventory_valuation(self.source.list_products())

    def low_stock(self) -> list[InventorySnapshot]:
        return get_low_stock_items(self.source.list_products(), self.config.low_stock_threshold)
