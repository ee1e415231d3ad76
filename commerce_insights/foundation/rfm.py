"""RFM (Recency-Frequency-Monetary) customer segmentation.

Each customer is scored 1-4 on three dimensions by ranking the whole batch:

- Recency: days since the last order, where fewer days score higher
- Frequency: number of orders placed
- Monetary: lifetime spend

Scores are relative to the batch that was supplied, so the same customer
can land in a different segment when the batch composition changes.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence

import numpy as np
import pandas as pd  # Used for rank-based quartile scoring

from commerce_insights.foundation.records import CustomerMetric

QUARTILES = 4


class CustomerSegment(str, Enum):
    """Segment labels assigned from RFM scores."""

    CHAMPIONS = "Champions"
    LOYAL = "Loyal"
    NEW = "New"
    AT_RISK = "At Risk"
    LOST = "Lost"
    REGULAR = "Regular"


@dataclass(frozen=True)
class SegmentedCustomer:
    """A customer metric augmented with its RFM scores and segment.

    Attributes
    ----------
    customer_id:
        Unique customer identifier
    last_purchase_days:
        Days since the most recent order
    total_orders:
        Number of orders placed
    total_spent:
        Lifetime spend
    r_score:
        Recency score (1-4, where 4 = most recent)
    f_score:
        Frequency score (1-4, where 4 = most frequent)
    m_score:
        Monetary score (1-4, where 4 = highest spend)
    segment:
        Label from the segment decision table
    rfm_score:
        r_score + f_score + m_score (3-12)
    name:
        Display name carried over from the input metric
    """

    customer_id: str
    last_purchase_days: int
    total_orders: int
    total_spent: float
    r_score: int
    f_score: int
    m_score: int
    segment: CustomerSegment
    rfm_score: int
    name: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate RFM scores."""
        for score_name, score_value in [
            ("r_score", self.r_score),
            ("f_score", self.f_score),
            ("m_score", self.m_score),
        ]:
            if not 1 <= score_value <= QUARTILES:
                raise ValueError(
                    f"{score_name} must be between 1 and {QUARTILES}: {score_value} "
                    f"(customer_id={self.customer_id})"
                )
        expected = self.r_score + self.f_score + self.m_score
        if self.rfm_score != expected:
            raise ValueError(
                f"rfm_score ({self.rfm_score}) does not match r+f+m ({expected}) "
                f"(customer_id={self.customer_id})"
            )


def assign_segment(r_score: int, f_score: int, m_score: int) -> CustomerSegment:
    """Map an (R, F, M) tuple to a segment; the first matching rule wins."""

    if r_score >= 4 and f_score >= 4 and m_score >= 4:
        return CustomerSegment.CHAMPIONS
    if r_score >= 3 and f_score >= 3 and m_score >= 3:
        return CustomerSegment.LOYAL
    if r_score >= 4 and f_score <= 2:
        return CustomerSegment.NEW
    if r_score <= 2 and f_score >= 3:
        return CustomerSegment.AT_RISK
    if r_score <= 2 and f_score <= 2:
        return CustomerSegment.LOST
    return CustomerSegment.REGULAR


def _quartile(values: pd.Series) -> pd.Series:
    """Bucket each value into quartile 1-4 by its ascending rank.

    A value's rank is the position of its first occurrence in the sorted
    batch, so ties share the lowest rank.
    """

    n = len(values)
    rank = values.rank(method="min").to_numpy() - 1
    quartile = np.floor((rank / n) * QUARTILES).astype(int) + 1
    return pd.Series(np.minimum(quartile, QUARTILES), index=values.index)


def segment_customers(customers: Sequence[CustomerMetric]) -> list[SegmentedCustomer]:
    """Score and label every customer in the batch.

    Parameters
    ----------
    customers:
        The full customer batch. Quartiles are computed across this batch,
        so it must be supplied in one call rather than per customer.

    Returns
    -------
    list[SegmentedCustomer]
        One record per input customer, in input order. An empty batch
        returns an empty list.

    Examples
    --------
    >>> metrics = [
    ...     CustomerMetric("C1", 2, 9, 900.0),
    ...     CustomerMetric("C2", 40, 3, 300.0),
    ...     CustomerMetric("C3", 90, 2, 150.0),
    ...     CustomerMetric("C4", 200, 1, 40.0),
    ... ]
    >>> segment_customers(metrics)[0].segment
    <CustomerSegment.CHAMPIONS: 'Champions'>
    """
    if not customers:
        return []

    df = pd.DataFrame(
        {
            "recency": [c.last_purchase_days for c in customers],
            "frequency": [c.total_orders for c in customers],
            "monetary": [float(c.total_spent) for c in customers],
        }
    )

    # Recency is inverted: the most recent purchasers sit in quartile 1
    df["r_score"] = (QUARTILES + 1) - _quartile(df["recency"])
    df["f_score"] = _quartile(df["frequency"])
    df["m_score"] = _quartile(df["monetary"])

    segmented: list[SegmentedCustomer] = []
    for customer, r, f, m in zip(
        customers, df["r_score"], df["f_score"], df["m_score"]
    ):
        r, f, m = int(r), int(f), int(m)
        segmented.append(
            SegmentedCustomer(
                customer_id=customer.customer_id,
                last_purchase_days=customer.last_purchase_days,
                total_orders=customer.total_orders,
                total_spent=customer.total_spent,
                r_score=r,
                f_score=f,
                m_score=m,
                segment=assign_segment(r, f, m),
                rfm_score=r + f + m,
                name=customer.name,
            )
        )
    return segmented


def summarize_segments(segmented: Sequence[SegmentedCustomer]) -> dict[str, int]:
    """Count customers per segment label; unused labels report zero."""

    counts = {segment.value: 0 for segment in CustomerSegment}
    for customer in segmented:
        counts[customer.segment.value] += 1
    return counts
