"""Tests for market basket co-occurrence analysis."""

import pytest

from commerce_insights.analyses.basket import (
    BundleRecommendation,
    count_co_occurrences,
    get_bundle_recommendations,
    get_recommendations_for_products,
)
from commerce_insights.foundation.records import LineItem, OrderRecord


def _order(*product_ids):
    return OrderRecord(items=tuple(LineItem(pid) for pid in product_ids))


@pytest.fixture
def simple_orders():
    """{A, B} twice and {A, C} once."""
    return [_order("A", "B"), _order("A", "B"), _order("A", "C")]


class TestCountCoOccurrences:
    def test_counts_products_and_pairs(self, simple_orders):
        products, pairs = count_co_occurrences(simple_orders)

        assert products == {"A": 3, "B": 2, "C": 1}
        assert pairs == {("A", "B"): 2, ("A", "C"): 1}

    def test_pair_keys_are_order_independent(self):
        _, pairs = count_co_occurrences([_order("B", "A"), _order("A", "B")])
        assert pairs == {("A", "B"): 2}

    def test_repeated_product_counts_once_per_order(self):
        products, pairs = count_co_occurrences([_order("A", "A", "B")])
        assert products["A"] == 1
        assert pairs == {("A", "B"): 1}

    def test_unresolved_items_are_ignored(self):
        order = OrderRecord(items=(LineItem("A"), LineItem(None), LineItem("B")))
        products, pairs = count_co_occurrences([order])
        assert set(products) == {"A", "B"}
        assert pairs == {("A", "B"): 1}


class TestBundleRecommendations:
    """Mining the strongest product pairs."""

    def test_only_frequent_pairs_returned(self, simple_orders):
        (bundle,) = get_bundle_recommendations(simple_orders)

        assert isinstance(bundle, BundleRecommendation)
        assert bundle.products == ("A", "B")
        assert bundle.frequency == 2
        assert bundle.confidence == pytest.approx(2 / 3)

    def test_confidence_uses_more_common_product(self):
        orders = [_order("A", "B")] * 2 + [_order("A")] * 8
        (bundle,) = get_bundle_recommendations(orders)
        assert bundle.confidence == pytest.approx(0.2)

    def test_confidence_threshold_is_exclusive(self):
        # A appears in 20 orders, pair in 2 -> confidence exactly 0.1
        orders = [_order("A", "B")] * 2 + [_order("A")] * 18
        assert get_bundle_recommendations(orders) == []

    def test_sorted_by_frequency_and_limited(self):
        orders = (
            [_order("A", "B")] * 3
            + [_order("C", "D")] * 5
            + [_order("E", "F")] * 4
        )
        bundles = get_bundle_recommendations(orders, limit=2)
        assert [b.products for b in bundles] == [("C", "D"), ("E", "F")]

    def test_single_item_orders_produce_nothing(self):
        assert get_bundle_recommendations([_order("A")] * 5) == []

    def test_empty_orders(self):
        assert get_bundle_recommendations([]) == []

    def test_idempotent(self, simple_orders):
        assert get_bundle_recommendations(simple_orders) == get_bundle_recommendations(
            simple_orders
        )


class TestRecommendationsForProducts:
    """'Bought together' recommendations for a cart."""

    def test_ranks_co_purchased_products(self, simple_orders):
        recs = get_recommendations_for_products(simple_orders, ["A"])

        assert [(r.product_id, r.frequency) for r in recs] == [("B", 2), ("C", 1)]

    def test_targets_never_recommended(self, simple_orders):
        recs = get_recommendations_for_products(simple_orders, ["A", "B"])
        assert [r.product_id for r in recs] == ["C"]

    def test_order_with_several_targets_counts_once(self):
        recs = get_recommendations_for_products([_order("A", "B", "C")], ["A", "B"])
        assert [(r.product_id, r.frequency) for r in recs] == [("C", 1)]

    def test_empty_targets(self, simple_orders):
        assert get_recommendations_for_products(simple_orders, []) == []

    def test_unknown_target(self, simple_orders):
        assert get_recommendations_for_products(simple_orders, ["Z"]) == []

    def test_limit(self):
        orders = [_order("A", "B", "C", "D", "E")]
        assert len(get_recommendations_for_products(orders, ["A"], limit=2)) == 2
