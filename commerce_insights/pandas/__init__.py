"""Pandas DataFrame adapters for engine inputs and outputs."""

from .frames import (
    PREDICTION_COLUMNS,
    SEGMENT_COLUMNS,
    cohorts_to_dataframe,
    dataframe_to_customer_metrics,
    dataframe_to_sales_points,
    forecast_to_dataframe,
    predictions_to_dataframe,
    segments_to_dataframe,
)

__all__ = [
    "PREDICTION_COLUMNS",
    "SEGMENT_COLUMNS",
    # Input adapters
    "dataframe_to_sales_points",
    "dataframe_to_customer_metrics",
    # Output adapters
    "segments_to_dataframe",
    "cohorts_to_dataframe",
    "forecast_to_dataframe",
    "predictions_to_dataframe",
]
