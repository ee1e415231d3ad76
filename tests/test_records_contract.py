"""Tests for canonical records and the raw-row contract."""

import logging
from datetime import datetime, timedelta, timezone

import pytest

from commerce_insights.foundation.contract import (
    RecordContract,
    build_customer_metrics,
    build_daily_sales,
    ensure_utc,
    parse_timestamp,
)
from commerce_insights.foundation.records import (
    CustomerMetric,
    InventorySnapshot,
    LineItem,
    OrderRecord,
    SalesPoint,
)

UTC = timezone.utc


class TestRecordValidation:
    """Records reject impossible values at construction time."""

    def test_negative_sales_raises_error(self):
        with pytest.raises(ValueError, match="Sales cannot be negative"):
            SalesPoint(date="2024-01-01", sales=-1.0)

    def test_zero_orders_raises_error(self):
        with pytest.raises(ValueError, match="Order count must be positive"):
            CustomerMetric("C1", last_purchase_days=3, total_orders=0, total_spent=0.0)

    def test_negative_recency_raises_error(self):
        with pytest.raises(ValueError, match="Recency cannot be negative"):
            CustomerMetric("C1", last_purchase_days=-1, total_orders=1, total_spent=10.0)

    def test_negative_stock_raises_error(self):
        with pytest.raises(ValueError, match="Stock cannot be negative"):
            InventorySnapshot("P1", "Mug", stock=-2, price=5.0)

    def test_non_positive_quantity_raises_error(self):
        with pytest.raises(ValueError, match="Quantity must be positive"):
            LineItem("P1", quantity=-1)

    def test_product_ids_dedupes_and_skips_unresolved(self):
        """A product repeated in one order is reported once, in first-seen order."""
        order = OrderRecord(
            items=(LineItem("B"), LineItem(None), LineItem("A"), LineItem("B", quantity=3))
        )
        assert order.product_ids() == ["B", "A"]


class TestTimestamps:
    def test_naive_datetime_treated_as_utc(self):
        naive = datetime(2024, 3, 1, 12, 0)
        assert ensure_utc(naive) == datetime(2024, 3, 1, 12, 0, tzinfo=UTC)

    def test_offset_datetime_converted_to_utc(self):
        plus_two = timezone(timedelta(hours=2))
        aware = datetime(2024, 3, 1, 12, 0, tzinfo=plus_two)
        assert ensure_utc(aware) == datetime(2024, 3, 1, 10, 0, tzinfo=UTC)

    def test_parse_iso_string_with_z_suffix(self):
        assert parse_timestamp("2024-03-01T08:30:00Z") == datetime(
            2024, 3, 1, 8, 30, tzinfo=UTC
        )

    def test_parse_rejects_other_types(self):
        with pytest.raises(TypeError, match="Expected datetime or ISO-8601 string"):
            parse_timestamp(1700000000)


class TestLineItemParsing:
    """Line items arrive under several identifier keys and encodings."""

    def test_product_id_key_preferred_over_id(self):
        items = RecordContract().parse_line_items([{"productId": "P1", "id": "cart-7"}])
        assert items == [LineItem("P1", 1)]

    def test_falls_back_to_id_key(self):
        items = RecordContract().parse_line_items([{"id": "P2", "quantity": 3}])
        assert items == [LineItem("P2", 3)]

    def test_json_encoded_items_are_decoded(self):
        raw = '[{"productId": "P1", "quantity": 2}, {"id": "P3"}]'
        items = RecordContract().parse_line_items(raw)
        assert [i.product_id for i in items] == ["P1", "P3"]
        assert items[0].quantity == 2

    def test_missing_identifier_kept_as_none(self, caplog):
        with caplog.at_level(logging.DEBUG):
            items = RecordContract().parse_line_items([{"quantity": 1}])

        assert items == [LineItem(None, 1)]
        assert any("has no product identifier" in r.message for r in caplog.records)

    def test_none_and_empty_string_give_no_items(self):
        contract = RecordContract()
        assert contract.parse_line_items(None) == []
        assert contract.parse_line_items("") == []

    def test_invalid_quantity_reports_item_index(self):
        raw = [{"productId": "P1", "quantity": 1}, {"productId": "P2", "quantity": "two"}]
        with pytest.raises(ValueError, match="invalid quantity") as excinfo:
            RecordContract().parse_line_items(raw)

        assert excinfo.value.args[1] == {"item_index": 1, "value": "two"}

    def test_non_positive_quantity_rejected(self):
        with pytest.raises(ValueError, match="Quantity must be positive"):
            RecordContract().parse_line_items([{"productId": "P1", "quantity": 0}])

    def test_non_list_payload_raises_type_error(self):
        with pytest.raises(TypeError, match="Line items must be a list"):
            RecordContract().parse_line_items({"productId": "P1"})


class TestRecordConversion:
    def test_orders_from_records(self):
        rows = [
            {
                "id": "O1",
                "userId": "U1",
                "createdAt": "2024-05-01T10:00:00Z",
                "status": "delivered",
                "total": "42.50",
                "items": [{"productId": "P1", "quantity": 2}],
            }
        ]
        (order,) = RecordContract().orders_from_records(rows)

        assert order.order_id == "O1"
        assert order.user_id == "U1"
        assert order.created_at == datetime(2024, 5, 1, 10, tzinfo=UTC)
        assert order.total == pytest.approx(42.5)
        assert order.items == (LineItem("P1", 2),)

    def test_order_with_bad_timestamp_raises(self):
        with pytest.raises(ValueError, match="invalid timestamp"):
            RecordContract().orders_from_records([{"id": "O1", "createdAt": "yesterday"}])

    def test_users_missing_fields_raise(self):
        with pytest.raises(ValueError, match="Record missing required user fields"):
            RecordContract().users_from_records([{"id": "U1"}])

    def test_users_accept_snake_case(self):
        (user,) = RecordContract().users_from_records(
            [{"user_id": "U9", "created_at": "2024-01-02T00:00:00+00:00"}]
        )
        assert user.user_id == "U9"
        assert user.created_at.month == 1

    def test_products_default_in_stock_from_stock_level(self):
        rows = [
            {"id": "P1", "name": "Mug", "stock": 0, "price": 5},
            {"id": "P2", "name": "Cup", "stock": 4, "price": 3, "lowStockThreshold": 2},
        ]
        empty, stocked = RecordContract().products_from_records(rows)

        assert empty.in_stock is False
        assert stocked.in_stock is True
        assert stocked.low_stock_threshold == 2

    def test_products_missing_name_raise(self):
        with pytest.raises(ValueError, match="Record missing required product fields"):
            RecordContract().products_from_records([{"id": "P1", "stock": 3}])

    def test_events_with_bad_metadata_keep_event(self):
        rows = [
            {
                "event": "page_view",
                "path": "/",
                "ipAddress": "10.0.0.1",
                "createdAt": "2024-05-01T10:00:00Z",
                "metadata": "{not json",
            }
        ]
        (event,) = RecordContract().events_from_records(rows)
        assert event.metadata == {}
        assert event.visitor_id == "10.0.0.1"

    def test_events_missing_visitor_raise(self):
        with pytest.raises(ValueError, match="Record missing required event fields"):
            RecordContract().events_from_records(
                [{"event": "page_view", "createdAt": "2024-05-01T10:00:00Z"}]
            )


class TestAggregations:
    """Customer metrics and daily sales built from orders."""

    AS_OF = datetime(2024, 6, 30, 12, tzinfo=UTC)

    def _order(self, user, days_ago, total):
        return OrderRecord(
            user_id=user,
            created_at=self.AS_OF - timedelta(days=days_ago),
            total=total,
        )

    def test_build_customer_metrics(self):
        orders = [
            self._order("U1", 10, 20.0),
            self._order("U1", 3, 30.0),
            self._order("U2", 40, 15.0),
            OrderRecord(user_id=None, created_at=self.AS_OF, total=99.0),
        ]
        metrics = {m.customer_id: m for m in build_customer_metrics(orders, self.AS_OF)}

        assert set(metrics) == {"U1", "U2"}
        assert metrics["U1"].total_orders == 2
        assert metrics["U1"].total_spent == pytest.approx(50.0)
        assert metrics["U1"].last_purchase_days == 3
        assert metrics["U2"].last_purchase_days == 40

    def test_names_carried_through(self):
        metrics = build_customer_metrics(
            [self._order("U1", 1, 5.0)], self.AS_OF, names={"U1": "Ada"}
        )
        assert metrics[0].name == "Ada"

    def test_future_order_raises(self):
        future = OrderRecord(user_id="U1", created_at=self.AS_OF + timedelta(days=1))
        with pytest.raises(ValueError, match="cannot be after as_of"):
            build_customer_metrics([future], self.AS_OF)

    def test_build_daily_sales_sums_per_day_within_window(self):
        orders = [
            self._order("U1", 1, 10.0),
            self._order("U2", 1, 5.0),
            self._order("U1", 2, 7.0),
            self._order("U3", 45, 100.0),
        ]
        points = build_daily_sales(orders, self.AS_OF, days=30)

        assert [p.date for p in points] == ["2024-06-28", "2024-06-29"]
        assert [p.sales for p in points] == [pytest.approx(7.0), pytest.approx(15.0)]

    def test_build_daily_sales_excludes_orders_after_as_of(self):
        orders = [
            self._order("U1", 29, 10.0),
            self._order("U2", 20, 5.0),
            self._order("U3", -5, 8.0),
        ]
        points = build_daily_sales(orders, self.AS_OF, days=30)

        assert [p.date for p in points] == ["2024-06-01", "2024-06-10"]

    def test_build_daily_sales_rejects_non_positive_window(self):
        with pytest.raises(ValueError, match="days must be positive"):
            build_daily_sales([], self.AS_OF, days=0)
