"""Tests for the multiplicative CLV estimator."""

import pytest

from commerce_insights.foundation.records import CustomerMetric
from commerce_insights.models.clv import (
    DEFAULT_LIFESPAN_YEARS,
    average_clv,
    customer_clv,
    predict_clv,
)


class TestPredictCLV:
    def test_product_of_inputs(self):
        assert predict_clv(50.0, 4, 3) == pytest.approx(600.0)

    def test_default_lifespan(self):
        assert predict_clv(10.0, 2) == pytest.approx(20.0 * DEFAULT_LIFESPAN_YEARS)

    def test_zero_input_gives_zero(self):
        assert predict_clv(0.0, 12, 3) == 0.0
        assert predict_clv(80.0, 0, 3) == 0.0

    def test_idempotent(self):
        assert predict_clv(33.3, 2.5, 4) == predict_clv(33.3, 2.5, 4)


class TestCustomerCLV:
    """Per-customer and batch CLV from aggregated metrics."""

    def test_customer_clv_uses_order_count_as_frequency(self):
        (score,) = customer_clv([CustomerMetric("C1", 3, 4, 200.0)])

        assert score.avg_order_value == pytest.approx(50.0)
        assert score.purchase_frequency == pytest.approx(4.0)
        # one-year lifespan: AOV x orders == total spent
        assert score.clv == pytest.approx(200.0)

    def test_custom_lifespan(self):
        (score,) = customer_clv([CustomerMetric("C1", 3, 2, 100.0)], lifespan_years=3)
        assert score.clv == pytest.approx(300.0)

    def test_average_clv(self):
        customers = [
            CustomerMetric("C1", 3, 4, 200.0),
            CustomerMetric("C2", 10, 1, 100.0),
        ]
        assert average_clv(customers) == pytest.approx(150.0)

    def test_average_clv_empty_batch(self):
        assert average_clv([]) == 0.0
