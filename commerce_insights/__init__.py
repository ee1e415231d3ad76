"""Storefront analytics: sales forecasting, customer segmentation, CLV,
market basket recommendations, cohort retention and inventory risk."""

__version__ = "0.1.0"
