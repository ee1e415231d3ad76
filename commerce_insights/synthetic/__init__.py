"""Synthetic data generation utilities.

This package produces realistic-but-fake store data (catalog, users and
orders) to exercise the analytics pipelines without production data.
"""

from .generator import (
    ScenarioConfig,
    generate_catalog,
    generate_orders,
    generate_users,
    orders_to_rows,
    products_to_rows,
    users_to_rows,
)
from .scenarios import (
    BASELINE_SCENARIO,
    BUNDLE_HEAVY_SCENARIO,
    HIGH_CHURN_SCENARIO,
    HOLIDAY_RUSH_SCENARIO,
)

__all__ = [
    "ScenarioConfig",
    "generate_catalog",
    "generate_orders",
    "generate_users",
    "orders_to_rows",
    "products_to_rows",
    "users_to_rows",
    "BASELINE_SCENARIO",
    "BUNDLE_HEAVY_SCENARIO",
    "HIGH_CHURN_SCENARIO",
    "HOLIDAY_RUSH_SCENARIO",
]
