"""Customer value models."""

from commerce_insights.models.clv import CustomerCLV, average_clv, customer_clv, predict_clv

__all__ = ["CustomerCLV", "average_clv", "customer_clv", "predict_clv"]
