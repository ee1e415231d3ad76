"""Foundational building blocks for the analytics engine.

This package exposes the canonical input records, the contract that
normalises raw storefront rows into them, RFM segmentation and monthly
cohort retention.
"""

from .cohorts import CohortRetention, add_months, calculate_cohorts, month_key
from .contract import (
    RecordContract,
    build_customer_metrics,
    build_daily_sales,
    ensure_utc,
    parse_timestamp,
)
from .records import (
    CustomerMetric,
    InventorySnapshot,
    LineItem,
    OrderRecord,
    PageEvent,
    SalesPoint,
    UserAcquisition,
)
from .rfm import (
    CustomerSegment,
    SegmentedCustomer,
    assign_segment,
    segment_customers,
    summarize_segments,
)

__all__ = [
    "CohortRetention",
    "add_months",
    "calculate_cohorts",
    "month_key",
    "RecordContract",
    "build_customer_metrics",
    "build_daily_sales",
    "ensure_utc",
    "parse_timestamp",
    "CustomerMetric",
    "InventorySnapshot",
    "LineItem",
    "OrderRecord",
    "PageEvent",
    "SalesPoint",
    "UserAcquisition",
    "CustomerSegment",
    "SegmentedCustomer",
    "assign_segment",
    "segment_customers",
    "summarize_segments",
]
