"""Analyses built on the canonical records.

- forecast: linear-regression sales forecast and trend direction
- basket: product co-occurrence (bundles and cart recommendations)
- inventory: depletion risk, dead stock, valuation and low-stock checks
- traffic: storefront visitor, funnel and click analytics
"""

from .basket import (
    BundleRecommendation,
    ProductRecommendation,
    get_bundle_recommendations,
    get_recommendations_for_products,
)
from .forecast import (
    ForecastPoint,
    LinearFit,
    TrendDirection,
    TrendResult,
    calculate_trend,
    fit_linear_trend,
    forecast_sales,
)
from .inventory import (
    DeadStockItem,
    InMemoryInventorySource,
    InventoryConfig,
    InventoryPrediction,
    InventoryService,
    InventorySourceError,
    InventoryValuation,
    RiskLevel,
    get_dead_stock,
    get_inventory_predictions,
    get_inventory_valuation,
    get_low_stock_items,
)
from .traffic import TrafficOverview, summarize_traffic

__all__ = [
    "BundleRecommendation",
    "ProductRecommendation",
    "get_bundle_recommendations",
    "get_recommendations_for_products",
    "ForecastPoint",
    "LinearFit",
    "TrendDirection",
    "TrendResult",
    "calculate_trend",
    "fit_linear_trend",
    "forecast_sales",
    "DeadStockItem",
    "InMemoryInventorySource",
    "InventoryConfig",
    "InventoryPrediction",
    "InventoryService",
    "InventorySourceError",
    "InventoryValuation",
    "RiskLevel",
    "get_dead_stock",
    "get_inventory_predictions",
    "get_inventory_valuation",
    "get_low_stock_items",
    "TrafficOverview",
    "summarize_traffic",
]
