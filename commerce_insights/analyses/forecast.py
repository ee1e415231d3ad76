"""Sales forecasting and trend detection.

The forecast is an ordinary least-squares line fitted over the day index of
the historical series and extrapolated forward. It is deliberately simple:
a best-effort reporting aid for the dashboard, not a demand-planning model.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from enum import Enum
from typing import Optional, Sequence

import numpy as np

from commerce_insights.foundation.records import SalesPoint

#: Absolute percentage change below which a trend is reported as stable.
STABLE_THRESHOLD_PCT = 5.0


class TrendDirection(str, Enum):
    UP = "up"
    DOWN = "down"
    STABLE = "stable"


@dataclass(frozen=True)
class LinearFit:
    """Least-squares line ``y = slope * x + intercept``."""

    slope: float
    intercept: float

    def predict(self, x: float) -> float:
        return self.slope * x + self.intercept


@dataclass(frozen=True)
class ForecastPoint:
    """Predicted sales for one future day.

    Attributes
    ----------
    date:
        Short month/day label, e.g. ``"Oct 20"``.
    predicted_sales:
        Extrapolated sales, never negative.
    is_forecast:
        Always ``True``; lets callers mix forecast and historical points.
    """

    date: str
    predicted_sales: float
    is_forecast: bool = True


@dataclass(frozen=True)
class TrendResult:
    direction: TrendDirection
    strength: float


def fit_linear_trend(values: Sequence[float]) -> LinearFit:
    """Fit a least-squares line using each value's index as ``x``.

    Raises
    ------
    ValueError
        If fewer than two values are supplied.
    """
    if len(values) < 2:
        raise ValueError(f"At least 2 values are required to fit a line, got {len(values)}")

    y = np.asarray(values, dtype=float)
    x = np.arange(len(y), dtype=float)
    x_dev = x - x.mean()
    slope = float(np.sum(x_dev * (y - y.mean())) / np.sum(x_dev**2))
    intercept = float(y.mean() - slope * x.mean())
    return LinearFit(slope=slope, intercept=intercept)


def _short_date(day: date) -> str:
    return f"{day:%b} {day.day}"


def forecast_sales(
    history: Sequence[SalesPoint],
    horizon_days: int = 7,
    *,
    today: Optional[date] = None,
) -> list[ForecastPoint]:
    """Extrapolate daily sales ``horizon_days`` into the future.

    Parameters
    ----------
    history:
        Daily sales, oldest first. Ordering and uniqueness of dates are the
        caller's responsibility.
    horizon_days:
        Number of future days to predict.
    today:
        Anchor for the forecast date labels (day 1 is ``today + 1``).
        Defaults to :meth:`date.today`.

    Returns
    -------
    list[ForecastPoint]
        Exactly ``horizon_days`` points, or an empty list when fewer than two
        historical points are available.

    Examples
    --------
    >>> history = [SalesPoint(f"2024-01-0{i}", s) for i, s in enumerate([10, 20, 30, 40], 1)]
    >>> [p.predicted_sales for p in forecast_sales(history, 2, today=date(2024, 1, 4))]
    [50.0, 60.0]
    """
    if len(history) < 2:
        return []

    fit = fit_linear_trend([point.sales for point in history])
    anchor = today or date.today()
    n = len(history)

    return [
        ForecastPoint(
            date=_short_date(anchor + timedelta(days=step + 1)),
            predicted_sales=max(0.0, fit.predict(n + step)),
        )
        for step in range(horizon_days)
    ]


def calculate_trend(series: Sequence[float]) -> TrendResult:
    """Compare the average of the second half of ``series`` with the first.

    Odd-length series put the extra element in the second half. A change
    smaller than :data:`STABLE_THRESHOLD_PCT` percent is reported as stable.
    """
    if len(series) < 2:
        return TrendResult(TrendDirection.STABLE, 0.0)

    mid = len(series) // 2
    first_avg = float(np.mean(series[:mid]))
    second_avg = float(np.mean(series[mid:]))

    if first_avg == 0:
        if second_avg == 0:
            return TrendResult(TrendDirection.STABLE, 0.0)
        direction = TrendDirection.UP if second_avg > 0 else TrendDirection.DOWN
        return TrendResult(direction, 100.0)

    change = (second_avg - first_avg) / first_avg * 100
    strength = abs(change)
    if strength < STABLE_THRESHOLD_PCT:
        return TrendResult(TrendDirection.STABLE, strength)
    return TrendResult(
        TrendDirection.UP if change > 0 else TrendDirection.DOWN,
        strength,
    )
