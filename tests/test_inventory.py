"""Tests for inventory depletion risk, dead stock and valuation."""

import logging
from datetime import datetime, timedelta, timezone

import pytest

from commerce_insights.analyses.inventory import (
    NO_DEPLETION_FORECAST,
    InMemoryInventorySource,
    InventoryConfig,
    InventoryService,
    InventorySourceError,
    RiskLevel,
    active_product_ids,
    aggregate_units_sold,
    apply_stock_change,
    classify_risk,
    get_dead_stock,
    get_inventory_predictions,
    get_inventory_valuation,
    get_low_stock_items,
    is_low_stock,
)
from commerce_insights.foundation.records import InventorySnapshot, LineItem, OrderRecord

NOW = datetime(2024, 6, 30, 12, tzinfo=timezone.utc)


def _snap(pid, stock, price=10.0, **kwargs):
    return InventorySnapshot(pid, f"Product {pid}", stock=stock, price=price, **kwargs)


def _order(days_ago, status="completed", **quantities):
    return OrderRecord(
        items=tuple(LineItem(pid, qty) for pid, qty in quantities.items()),
        created_at=NOW - timedelta(days=days_ago),
        status=status,
    )


class TestClassifyRisk:
    @pytest.mark.parametrize(
        "days, expected",
        [
            (0, RiskLevel.CRITICAL),
            (7, RiskLevel.CRITICAL),
            (8, RiskLevel.HIGH),
            (14, RiskLevel.HIGH),
            (15, RiskLevel.MEDIUM),
            (30, RiskLevel.MEDIUM),
            (31, RiskLevel.LOW),
            (NO_DEPLETION_FORECAST, RiskLevel.LOW),
        ],
    )
    def test_tier_boundaries(self, days, expected):
        assert classify_risk(days) == expected


class TestInventoryPredictions:
    """Days-until-stockout estimates."""

    def test_velocity_and_days_remaining(self):
        (pred,) = get_inventory_predictions([_snap("P1", 50)], {"P1": 100}, 30)

        assert pred.daily_velocity == pytest.approx(3.33)
        assert pred.days_remaining == 15
        assert pred.risk_level == RiskLevel.MEDIUM
        assert pred.total_sold == 100

    def test_unsold_product_with_healthy_stock_excluded(self):
        assert get_inventory_predictions([_snap("P1", 10)], {}, 30) == []

    def test_unsold_low_stock_product_included_with_sentinel(self):
        (pred,) = get_inventory_predictions([_snap("P1", 9)], {}, 30)

        assert pred.days_remaining == NO_DEPLETION_FORECAST
        assert pred.daily_velocity == 0.0
        assert pred.risk_level == RiskLevel.LOW

    def test_out_of_stock_products_skipped(self):
        products = [_snap("P1", 0, in_stock=False)]
        assert get_inventory_predictions(products, {"P1": 30}, 30) == []

    def test_sorted_most_urgent_first(self):
        products = [_snap("SLOW", 100), _snap("FAST", 10), _snap("MID", 40)]
        sold = {"SLOW": 30, "FAST": 30, "MID": 30}
        preds = get_inventory_predictions(products, sold, 30)

        assert [p.product_id for p in preds] == ["FAST", "MID", "SLOW"]
        assert [p.days_remaining for p in preds] == [10, 40, 100]
        assert preds[0].risk_level == RiskLevel.HIGH

    def test_days_remaining_rounds_half_up(self):
        # velocity 2/day, stock 5 -> 2.5 days -> 3
        (pred,) = get_inventory_predictions([_snap("P1", 5)], {"P1": 60}, 30)
        assert pred.days_remaining == 3
        assert pred.risk_level == RiskLevel.CRITICAL

    def test_non_positive_window_raises(self):
        with pytest.raises(ValueError, match="days_of_history must be positive"):
            get_inventory_predictions([_snap("P1", 5)], {}, 0)


class TestDeadStockAndValuation:
    def test_dead_stock_lists_unsold_stocked_products(self):
        products = [_snap("P1", 5, price=4.0), _snap("P2", 3), _snap("P3", 0, in_stock=False)]
        (item,) = get_dead_stock(products, {"P2"}, days_threshold=90)

        assert item.product_id == "P1"
        assert item.value == pytest.approx(20.0)
        assert item.days_inactive == 90

    def test_every_product_active_gives_empty_list(self):
        assert get_dead_stock([_snap("P1", 5)], ["P1"]) == []

    def test_valuation(self):
        products = [
            _snap("P1", 10, price=10.0),
            _snap("P2", 5, price=20.0),
            _snap("P3", 4, price=99.0, in_stock=False),
        ]
        valuation = get_inventory_valuation(products)

        assert valuation.total_value == pytest.approx(200.0)
        assert valuation.total_items == 15
        assert valuation.sku_count == 2

    def test_empty_valuation(self):
        valuation = get_inventory_valuation([])
        assert (valuation.total_value, valuation.total_items, valuation.sku_count) == (0, 0, 0)


class TestLowStock:
    def test_product_threshold_wins(self):
        assert is_low_stock(_snap("P1", 8, low_stock_threshold=10), global_threshold=5)

    def test_zero_threshold_defers_to_global(self):
        assert is_low_stock(_snap("P1", 5), global_threshold=5)
        assert not is_low_stock(_snap("P1", 6), global_threshold=5)

    def test_low_stock_items_skip_unlisted_products(self):
        products = [_snap("P1", 2), _snap("P2", 0, in_stock=False), _snap("P3", 50)]
        assert [p.product_id for p in get_low_stock_items(products)] == ["P1"]

    def test_apply_stock_change(self):
        restocked = apply_stock_change(_snap("P1", 0, in_stock=False), 12)
        assert (restocked.stock, restocked.in_stock) == (12, True)

        emptied = apply_stock_change(_snap("P1", 3), -5)
        assert (emptied.stock, emptied.in_stock) == (0, False)


class TestSalesAggregation:
    def test_aggregate_units_sold_filters_window_and_status(self):
        orders = [
            _order(2, P1=3, P2=1),
            _order(5, P1=2),
            _order(45, P1=100),
            _order(1, status="cancelled", P2=50),
        ]
        totals = aggregate_units_sold(orders, NOW - timedelta(days=30))
        assert totals == {"P1": 5, "P2": 1}

    def test_active_product_ids_excludes_cancelled(self):
        orders = [_order(10, status="shipped", P1=1), _order(3, status="cancelled", P2=1)]
        assert active_product_ids(orders, NOW - timedelta(days=90)) == {"P1"}


class _FailingSource(InMemoryInventorySource):
    def units_sold_since(self, since):
        raise InventorySourceError("aggregation timed out")

    def product_ids_sold_since(self, since):
        raise InventorySourceError("aggregation timed out")


class TestInventoryService:
    """The service wires pure analytics to an injected data source."""

    def test_predictions_from_in_memory_source(self):
        source = InMemoryInventorySource(
            [_snap("P1", 50)], [_order(3, P1=60), _order(40, P1=500)]
        )
        (pred,) = InventoryService(source).predictions(now=NOW)

        assert pred.total_sold == 60
        assert pred.days_remaining == 25

    def test_failing_source_degrades_to_no_sales(self, caplog):
        service = InventoryService(_FailingSource([_snap("P1", 50), _snap("P2", 3)], []))

        with caplog.at_level(logging.WARNING):
            preds = service.predictions(now=NOW)
            dead = service.dead_stock(now=NOW)

        assert [p.product_id for p in preds] == ["P2"]
        assert preds[0].days_remaining == NO_DEPLETION_FORECAST
        assert {d.product_id for d in dead} == {"P1", "P2"}
        assert any("assuming no sales" in r.message for r in caplog.records)

    def test_config_thresholds_applied(self):
        source = InMemoryInventorySource([_snap("P1", 7), _snap("P2", 12)], [])
        service = InventoryService(source, InventoryConfig(low_stock_threshold=10))
        assert [p.product_id for p in service.low_stock()] == ["P1"]
        assert service.valuation().sku_count == 2

    def test_invalid_config_raises(self):
        with pytest.raises(ValueError, match="dead_stock_days must be positive"):
            InventoryConfig(dead_stock_days=0)
