"""Pre-configured scenario packs for synthetic store data.

Examples
--------
>>> from commerce_insights.synthetic import generate_catalog, generate_users, generate_orders
>>> from commerce_insights.synthetic.scenarios import HOLIDAY_RUSH_SCENARIO
>>> from datetime import date
>>>
>>> catalog = generate_catalog(40, seed=7)
>>> users = generate_users(500, date(2024, 1, 1), date(2024, 12, 31), seed=7)
>>> orders = generate_orders(
...     users, catalog, date(2024, 1, 1), date(2024, 12, 31),
...     scenario=HOLIDAY_RUSH_SCENARIO,
... )  # doctest: +SKIP
"""

from commerce_insights.synthetic.generator import ScenarioConfig

# Moderate behaviour, useful for general testing
BASELINE_SCENARIO = ScenarioConfig(seed=42)

# Struggling store: customers rarely come back, so cohorts decay fast
HIGH_CHURN_SCENARIO = ScenarioConfig(
    churn_hazard=0.30,
    base_orders_per_month=0.8,
    quantity_mean=1.1,
    seed=42,
)

# November peak with larger baskets
HOLIDAY_RUSH_SCENARIO = ScenarioConfig(
    promo_month=11,
    promo_uplift=3.0,
    churn_hazard=0.05,
    base_orders_per_month=1.5,
    quantity_mean=2.0,
    seed=42,
)

# Strong bundle pairs, for exercising basket recommendations
BUNDLE_HEAVY_SCENARIO = ScenarioConfig(
    bundle_affinity=0.9,
    base_orders_per_month=1.5,
    seed=42,
)

__all__ = [
    "BASELINE_SCENARIO",
    "HIGH_CHURN_SCENARIO",
    "HOLIDAY_RUSH_SCENARIO",
    "BUNDLE_HEAVY_SCENARIO",
]
