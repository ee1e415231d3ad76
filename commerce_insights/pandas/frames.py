"""Conversions between engine records and pandas DataFrames."""

from typing import List, Sequence

import pandas as pd  # type: ignore

from commerce_insights.analyses.forecast import ForecastPoint
from commerce_insights.analyses.inventory import InventoryPrediction
from commerce_insights.foundation.cohorts import CohortRetention
from commerce_insights.foundation.records import CustomerMetric, SalesPoint
from commerce_insights.foundation.rfm import SegmentedCustomer

SEGMENT_COLUMNS = [
    "customer_id",
    "name",
    "last_purchase_days",
    "total_orders",
    "total_spent",
    "r_score",
    "f_score",
    "m_score",
    "rfm_score",
    "segment",
]

PREDICTION_COLUMNS = [
    "product_id",
    "name",
    "stock",
    "total_sold",
    "daily_velocity",
    "days_remaining",
    "risk_level",
]


def _require_columns(df: pd.DataFrame, columns: Sequence[str]) -> None:
    missing_cols = set(columns) - set(df.columns)
    if missing_cols:
        raise ValueError(f"DataFrame missing required columns: {missing_cols}")

    null_cols = df[list(columns)].isnull().any()
    if null_cols.any():
        null_col_names = null_cols[null_cols].index.tolist()
        raise ValueError(f"Null/NaN values found in columns: {null_col_names}")


def dataframe_to_sales_points(
    sales_df: pd.DataFrame,
    date_col: str = "date",
    sales_col: str = "sales",
) -> List[SalesPoint]:
    """Convert a daily sales DataFrame to SalesPoint records.

    Rows are sorted by date so the result is ready for forecasting. Dates
    may be strings or datetime-like; datetime-like values become
    ``YYYY-MM-DD`` keys.

    Example:
        >>> df = pd.DataFrame({"date": ["2024-01-01", "2024-01-02"], "sales": [10.0, 12.5]})
        >>> [p.sales for p in dataframe_to_sales_points(df)]
        [10.0, 12.5]
    """
    _require_columns(sales_df, [date_col, sales_col])
    if sales_df.empty:
        return []

    ordered = sales_df.sort_values(date_col)
    points = []
    for record in ordered.to_dict("records"):
        day = record[date_col]
        if hasattr(day, "strftime"):
            day = day.strftime("%Y-%m-%d")
        points.append(SalesPoint(date=str(day), sales=float(record[sales_col])))
    return points


def dataframe_to_customer_metrics(
    customers_df: pd.DataFrame,
    customer_id_col: str = "customer_id",
    last_purchase_days_col: str = "last_purchase_days",
    total_orders_col: str = "total_orders",
    total_spent_col: str = "total_spent",
) -> List[CustomerMetric]:
    """Convert a per-customer DataFrame to CustomerMetric records.

    Rows with zero orders are dropped since they carry no RFM signal.

    Example with custom column names:
        >>> metrics = dataframe_to_customer_metrics(
        ...     df,
        ...     customer_id_col="client_id",
        ...     total_spent_col="revenue",
        ... )  # doctest: +SKIP
    """
    columns = [customer_id_col, last_purchase_days_col, total_orders_col, total_spent_col]
    _require_columns(customers_df, columns)

    metrics = []
    for record in customers_df.to_dict("records"):
        if int(record[total_orders_col]) <= 0:
            continue
        metrics.append(
            CustomerMetric(
                customer_id=str(record[customer_id_col]),
                last_purchase_days=int(record[last_purchase_days_col]),
                total_orders=int(record[total_orders_col]),
                total_spent=float(record[total_spent_col]),
            )
        )
    return metrics


def segments_to_dataframe(segmented: Sequence[SegmentedCustomer]) -> pd.DataFrame:
    """Convert segmented customers to a DataFrame, one row per customer."""

    if not segmented:
        return pd.DataFrame(columns=SEGMENT_COLUMNS)

    rows = [
        {
            "customer_id": c.customer_id,
            "name": c.name,
            "last_purchase_days": c.last_purchase_days,
            "total_orders": c.total_orders,
            "total_spent": c.total_spent,
            "r_score": c.r_score,
            "f_score": c.f_score,
            "m_score": c.m_score,
            "rfm_score": c.rfm_score,
            "segment": c.segment.value,
        }
        for c in segmented
    ]
    return pd.DataFrame(rows, columns=SEGMENT_COLUMNS)


def cohorts_to_dataframe(cohorts: Sequence[CohortRetention]) -> pd.DataFrame:
    """Pivot cohort retention into a matrix.

    Columns are ``cohort``, ``size`` and ``month_0`` .. ``month_N``. Offsets
    a cohort has not reached yet are NaN.

    Example:
        >>> matrix = cohorts_to_dataframe(calculate_cohorts(users, orders))  # doctest: +SKIP
        >>> matrix.set_index("cohort")["month_1"]  # doctest: +SKIP
    """
    width = max((len(c.retention) for c in cohorts), default=0)
    month_cols = [f"month_{i}" for i in range(width)]
    if not cohorts:
        return pd.DataFrame(columns=["cohort", "size", *month_cols])

    rows = []
    for cohort in cohorts:
        row = {"cohort": cohort.cohort, "size": cohort.size}
        for offset, pct in enumerate(cohort.retention):
            row[f"month_{offset}"] = pct
        rows.append(row)
    return pd.DataFrame(rows, columns=["cohort", "size", *month_cols])


def forecast_to_dataframe(
    history: Sequence[SalesPoint],
    forecast: Sequence[ForecastPoint],
) -> pd.DataFrame:
    """Stack historical and forecast points into one chartable frame.

    Columns: ``date``, ``sales``, ``is_forecast``.
    """
    rows = [{"date": p.date, "sales": p.sales, "is_forecast": False} for p in history]
    rows.extend(
        {"date": p.date, "sales": p.predicted_sales, "is_forecast": True} for p in forecast
    )
    return pd.DataFrame(rows, columns=["date", "sales", "is_forecast"])


def predictions_to_dataframe(predictions: Sequence[InventoryPrediction]) -> pd.DataFrame:
    """Convert inventory predictions to a DataFrame, most urgent first."""

    if not predictions:
        return pd.DataFrame(columns=PREDICTION_COLUMNS)

    rows = [
        {
            "product_id": p.product_id,
            "name": p.name,
            "stock": p.stock,
            "total_sold": p.total_sold,
            "daily_velocity": p.daily_velocity,
            "days_remaining": p.days_remaining,
            "risk_level": p.risk_level.value,
        }
        for p in predictions
    ]
    return pd.DataFrame(rows, columns=PREDICTION_COLUMNS)
