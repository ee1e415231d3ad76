"""Market basket analysis: products frequently bought together.

Two entry points share the same co-occurrence counting:

- :func:`get_bundle_recommendations` mines the strongest product pairs across
  all orders (bundle suggestions for merchandisers).
- :func:`get_recommendations_for_products` answers "customers who bought X
  also bought Y" for a fixed target set such as the current cart.

A product repeated within one order counts once for that order, and items
whose identifier could not be resolved are ignored.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from itertools import combinations
from typing import Iterable, Sequence

from commerce_insights.foundation.records import OrderRecord


@dataclass(frozen=True)
class BundleRecommendation:
    """A product pair that co-occurs across orders.

    Attributes
    ----------
    products:
        The two product identifiers, sorted.
    frequency:
        Number of orders containing both products.
    confidence:
        ``frequency / max(occurrences of either product)``. Dividing by the
        more common product keeps rare items from producing inflated scores.
    """

    products: tuple[str, str]
    frequency: int
    confidence: float


@dataclass(frozen=True)
class ProductRecommendation:
    product_id: str
    frequency: int


def count_co_occurrences(
    orders: Iterable[OrderRecord],
) -> tuple[Counter[str], Counter[tuple[str, str]]]:
    """Count per-product order occurrences and unordered pair co-occurrences.

    Pair keys are sorted tuples, so ``(A, B)`` and ``(B, A)`` share one count.
    """

    product_counts: Counter[str] = Counter()
    pair_counts: Counter[tuple[str, str]] = Counter()
    for order in orders:
        product_ids = order.product_ids()
        product_counts.update(product_ids)
        for first, second in combinations(product_ids, 2):
            pair_counts[tuple(sorted((first, second)))] += 1
    return product_counts, pair_counts


def get_bundle_recommendations(
    orders: Sequence[OrderRecord],
    *,
    min_pair_count: int = 2,
    min_confidence: float = 0.1,
    limit: int = 10,
) -> list[BundleRecommendation]:
    """Return the most frequent product pairs across ``orders``.

    Pairs seen fewer than ``min_pair_count`` times, or whose confidence does
    not exceed ``min_confidence``, are dropped. The survivors are sorted by
    frequency (highest first) and truncated to ``limit``.

    Examples
    --------
    >>> from commerce_insights.foundation.records import LineItem
    >>> ab = OrderRecord(items=(LineItem("A"), LineItem("B")))
    >>> ac = OrderRecord(items=(LineItem("A"), LineItem("C")))
    >>> [r.products for r in get_bundle_recommendations([ab, ab, ac])]
    [('A', 'B')]
    """
    product_counts, pair_counts = count_co_occurrences(orders)

    recommendations: list[BundleRecommendation] = []
    for pair, count in pair_counts.items():
        first, second = pair
        confidence = count / max(product_counts[first], product_counts[second])
        if count >= min_pair_count and confidence > min_confidence:
            recommendations.append(
                BundleRecommendation(products=pair, frequency=count, confidence=confidence)
            )

    recommendations.sort(key=lambda rec: rec.frequency, reverse=True)
    return recommendations[:limit]


def get_recommendations_for_products(
    orders: Sequence[OrderRecord],
    target_product_ids: Iterable[str],
    *,
    limit: int = 5,
) -> list[ProductRecommendation]:
    """Recommend products that co-occur with any of ``target_product_ids``.

    Every order containing at least one target contributes one count to each
    of its other products. Targets themselves are never recommended.
    """
    targets = set(target_product_ids)
    if not targets:
        return []

    counts: Counter[str] = Counter()
    for order in orders:
        product_ids = order.product_ids()
        if targets.isdisjoint(product_ids):
            continue
        counts.update(pid for pid in product_ids if pid not in targets)

    ranked = sorted(counts.items(), key=lambda item: item[1], reverse=True)
    return [
        ProductRecommendation(product_id=product_id, frequency=frequency)
        for product_id, frequency in ranked[:limit]
    ]
