"""Assemble every analysis into a single dashboard report."""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field, is_dataclass
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Any, Optional, Sequence

from commerce_insights.analyses.basket import (
    BundleRecommendation,
    get_bundle_recommendations,
)
from commerce_insights.analyses.forecast import (
    ForecastPoint,
    TrendResult,
    calculate_trend,
    forecast_sales,
)
from commerce_insights.analyses.inventory import (
    DeadStockItem,
    InMemoryInventorySource,
    InventoryConfig,
    InventoryPrediction,
    InventoryService,
    InventoryValuation,
)
from commerce_insights.analyses.traffic import (
    FunnelStep,
    PathCount,
    TrafficOverview,
    conversion_funnel,
    summarize_traffic,
    top_exit_pages,
    top_pages,
)
from commerce_insights.foundation.cohorts import CohortRetention, calculate_cohorts
from commerce_insights.foundation.contract import (
    build_customer_metrics,
    build_daily_sales,
    ensure_utc,
)
from commerce_insights.foundation.records import (
    InventorySnapshot,
    OrderRecord,
    PageEvent,
    SalesPoint,
    UserAcquisition,
)
from commerce_insights.foundation.rfm import (
    SegmentedCustomer,
    segment_customers,
    summarize_segments,
)
from commerce_insights.models.clv import average_clv

logger = logging.getLogger(__name__)

#: Only delivered orders feed basket mining.
BASKET_ORDER_STATUS = "delivered"
#: Most recent orders considered for basket mining.
BASKET_ORDER_LIMIT = 1000


def to_serialisable(value: Any) -> Any:
    """Recursively convert records, enums and timestamps to JSON types."""

    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if is_dataclass(value) and not isinstance(value, type):
        return {key: to_serialisable(item) for key, item in asdict(value).items()}
    if isinstance(value, dict):
        return {str(key): to_serialisable(item) for key, item in value.items()}
    if isinstance(value, (list, tuple, set)):
        return [to_serialisable(item) for item in value]
    return value


@dataclass
class AnalyticsReport:
    """Container for every dashboard section."""

    generated_at: datetime
    historical_sales: list[SalesPoint] = field(default_factory=list)
    forecast: list[ForecastPoint] = field(default_factory=list)
    trend: Optional[TrendResult] = None
    segments: list[SegmentedCustomer] = field(default_factory=list)
    segment_counts: dict[str, int] = field(default_factory=dict)
    avg_clv: float = 0.0
    bundles: list[BundleRecommendation] = field(default_factory=list)
    cohorts: list[CohortRetention] = field(default_factory=list)
    inventory_predictions: list[InventoryPrediction] = field(default_factory=list)
    dead_stock: list[DeadStockItem] = field(default_factory=list)
    valuation: Optional[InventoryValuation] = None
    low_stock: list[InventorySnapshot] = field(default_factory=list)
    traffic: Optional[TrafficOverview] = None
    top_pages: list[PathCount] = field(default_factory=list)
    top_exit_pages: list[PathCount] = field(default_factory=list)
    funnel: list[FunnelStep] = field(default_factory=list)

    def as_dict(self) -> dict[str, Any]:
        """Return JSON-serialisable representation of the report."""

        payload = {
            "generated_at": self.generated_at,
            "forecast": {
                "historical": self.historical_sales,
                "predicted": self.forecast,
                "trend": self.trend,
            },
            "customer_intelligence": {
                "segments": self.segments,
                "segment_counts": self.segment_counts,
                "avg_clv": self.avg_clv,
            },
            "bundles": self.bundles,
            "cohorts": self.cohorts,
            "inventory": {
                "predictions": self.inventory_predictions,
                "dead_stock": self.dead_stock,
                "valuation": self.valuation,
                "low_stock": self.low_stock,
            },
            "traffic": {
                "overview": self.traffic,
                "top_pages": self.top_pages,
                "top_exit_pages": self.top_exit_pages,
                "funnel": self.funnel,
            },
        }
        return to_serialisable(payload)


def _basket_orders(orders: Sequence[OrderRecord]) -> list[OrderRecord]:
    delivered = [o for o in orders if o.status == BASKET_ORDER_STATUS]
    if len(delivered) <= BASKET_ORDER_LIMIT:
        return delivered
    dated = sorted(
        (o for o in delivered if o.created_at is not None),
        key=lambda o: ensure_utc(o.created_at),
        reverse=True,
    )
    return dated[:BASKET_ORDER_LIMIT]


def build_analytics_report(
    orders: Sequence[OrderRecord],
    *,
    users: Sequence[UserAcquisition] = (),
    products: Sequence[InventorySnapshot] = (),
    events: Sequence[PageEvent] = (),
    as_of: Optional[datetime] = None,
    forecast_days: int = 7,
    history_days: int = 30,
    inventory_config: InventoryConfig = InventoryConfig(),
) -> AnalyticsReport:
    """Run every analysis over already-normalised records.

    Parameters
    ----------
    orders:
        Order history; feeds the forecast, segmentation, CLV, basket,
        cohort and inventory sections.
    users:
        Signups for cohort retention. The cohort section is empty without them.
    products:
        Stock snapshots for the inventory section.
    events:
        Tracking events for the traffic section.
    as_of:
        Reference "now" for every trailing window. Defaults to the latest
        order timestamp, so replaying an export gives stable results.
    """
    if as_of is None:
        dated = [ensure_utc(o.created_at) for o in orders if o.created_at is not None]
        as_of = max(dated) if dated else datetime.now().astimezone()
    as_of = ensure_utc(as_of)
    report = AnalyticsReport(generated_at=as_of)

    replayed = [
        o for o in orders if o.created_at is None or ensure_utc(o.created_at) <= as_of
    ]
    if len(replayed) < len(orders):
        logger.info(f"Ignoring {len(orders) - len(replayed)} orders dated after {as_of}")
    orders = replayed

    report.historical_sales = build_daily_sales(orders, as_of, days=history_days)
    report.forecast = forecast_sales(
        report.historical_sales, forecast_days, today=as_of.date()
    )
    report.trend = calculate_trend([p.sales for p in report.historical_sales])
    logger.info(
        f"Forecast built from {len(report.historical_sales)} days of sales "
        f"(trend={report.trend.direction.value})"
    )

    customers = build_customer_metrics(orders, as_of)
    report.segments = segment_customers(customers)
    report.segment_counts = summarize_segments(report.segments)
    report.avg_clv = average_clv(customers)
    logger.info(f"Segmented {len(report.segments)} customers")

    report.bundles = get_bundle_recommendations(_basket_orders(orders))

    if users:
        report.cohorts = calculate_cohorts(users, orders, as_of=as_of)
        logger.info(f"Computed retention for {len(report.cohorts)} cohorts")

    if products:
        service = InventoryService(InMemoryInventorySource(products, orders), inventory_config)
        report.inventory_predictions = service.predictions(now=as_of)
        report.dead_stock = service.dead_stock(now=as_of)
        report.valuation = service.valuation()
        report.low_stock = service.low_stock()

    if events:
        report.traffic = summarize_traffic(events, as_of)
        report.top_pages = top_pages(events)
        report.top_exit_pages = top_exit_pages(events)
        report.funnel = conversion_funnel(events, as_of - timedelta(days=history_days))

    return report
