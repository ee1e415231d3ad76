"""Customer lifetime value (CLV) estimation.

Key formula:
    CLV = Average Order Value × Purchase Frequency × Lifespan (years)

The estimator is multiplicative and assumption-driven; it does not fit a
probabilistic model. The caller decides what "purchase frequency" means.
The storefront dashboard passes each customer's lifetime order count with a
one-year lifespan, which :func:`average_clv` reproduces.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from commerce_insights.foundation.records import CustomerMetric

DEFAULT_LIFESPAN_YEARS = 3
DASHBOARD_LIFESPAN_YEARS = 1


@dataclass(frozen=True)
class CustomerCLV:
    """Projected value for one customer.

    Attributes
    ----------
    customer_id:
        Unique customer identifier
    avg_order_value:
        total_spent / total_orders
    purchase_frequency:
        Frequency fed into the projection (lifetime order count)
    clv:
        avg_order_value × purchase_frequency × lifespan_years
    """

    customer_id: str
    avg_order_value: float
    purchase_frequency: float
    clv: float


def predict_clv(
    avg_order_value: float,
    purchase_frequency: float,
    lifespan_years: float = DEFAULT_LIFESPAN_YEARS,
) -> float:
    """Project customer value as a plain product of its three inputs.

    >>> predict_clv(50.0, 4, 3)
    600.0
    """
    return avg_order_value * purchase_frequency * lifespan_years


def customer_clv(
    customers: Sequence[CustomerMetric],
    lifespan_years: float = DASHBOARD_LIFESPAN_YEARS,
) -> list[CustomerCLV]:
    """CLV per customer, using lifetime order count as the frequency."""

    scores: list[CustomerCLV] = []
    for customer in customers:
        avg_order_value = customer.total_spent / customer.total_orders
        frequency = float(customer.total_orders)
        scores.append(
            CustomerCLV(
                customer_id=customer.customer_id,
                avg_order_value=avg_order_value,
                purchase_frequency=frequency,
                clv=predict_clv(avg_order_value, frequency, lifespan_years),
            )
        )
    return scores


def average_clv(
    customers: Sequence[CustomerMetric],
    lifespan_years: float = DASHBOARD_LIFESPAN_YEARS,
) -> float:
    """Mean CLV across ``customers``; 0.0 for an empty batch."""

    if not customers:
        return 0.0
    scores = customer_clv(customers, lifespan_years)
    return sum(score.clv for score in scores) / len(scores)
