"""Export analytics reports to JSON, CSV and Markdown.

These are the files handed to dashboards, spreadsheets and stakeholders.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Sequence

from commerce_insights.analyses.inventory import InventoryPrediction, RiskLevel
from commerce_insights.pandas.frames import predictions_to_dataframe
from commerce_insights.reporting.report import AnalyticsReport

logger = logging.getLogger(__name__)


def export_report_json(
    report: AnalyticsReport,
    output_path: str | Path,
    metadata: dict[str, Any] | None = None,
) -> None:
    """Export a full analytics report to JSON.

    Parameters
    ----------
    report:
        Report produced by :func:`build_analytics_report`
    output_path:
        Path where JSON file will be saved
    metadata:
        Optional metadata to include in report (e.g., store name, data source)

    Examples
    --------
    >>> report = build_analytics_report(orders, users=users, products=products)
    >>> export_report_json(report, "dashboard_2024-01-15.json", metadata={"store": "main"})
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    payload = {"metadata": metadata or {}, **report.as_dict()}
    with open(output_path, "w") as f:
        json.dump(payload, f, indent=2)

    logger.info(f"Analytics report exported to {output_path}")


def export_inventory_csv(
    predictions: Sequence[InventoryPrediction],
    output_path: str | Path,
) -> None:
    """Export inventory predictions to CSV, one row per product."""

    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    predictions_to_dataframe(predictions).to_csv(output_path, index=False)

    logger.info(f"Inventory predictions exported to {output_path}")


def get_inventory_summary(predictions: Sequence[InventoryPrediction]) -> dict[str, Any]:
    """Count predictions per risk tier.

    Returns
    -------
    dict[str, Any]
        ``total_products``, ``risk_counts`` keyed by tier, and
        ``at_risk_products`` (critical or high, most urgent first).

    Examples
    --------
    >>> summary = get_inventory_summary(report.inventory_predictions)
    >>> print(f"{summary['risk_counts']['critical']} products run out within a week")
    """
    risk_counts = {level.value: 0 for level in RiskLevel}
    for prediction in predictions:
        risk_counts[prediction.risk_level.value] += 1

    return {
        "total_products": len(predictions),
        "risk_counts": risk_counts,
        "at_risk_products": [
            p.product_id
            for p in predictions
            if p.risk_level in (RiskLevel.CRITICAL, RiskLevel.HIGH)
        ],
    }


def export_report_markdown(
    report: AnalyticsReport,
    output_path: str | Path,
    title: str = "Store Analytics Report",
) -> None:
    """Export a human-readable Markdown summary of a report."""

    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    lines = []
    lines.append(f"# {title}\n")
    lines.append(f"**Generated:** {report.generated_at.strftime('%Y-%m-%d %H:%M:%S')}\n")

    lines.append("## Sales Forecast\n")
    if report.trend is not None:
        lines.append(
            f"- **Trend:** {report.trend.direction.value} ({report.trend.strength:.1f}%)"
        )
    lines.append(f"- **Days of history:** {len(report.historical_sales)}\n")
    if report.forecast:
        lines.append("| Date | Predicted Sales |")
        lines.append("|------|-----------------|")
        for point in report.forecast:
            lines.append(f"| {point.date} | {point.predicted_sales:.2f} |")
        lines.append("")

    lines.append("## Customer Segments\n")
    lines.append(f"- **Customers:** {len(report.segments)}")
    lines.append(f"- **Average CLV:** {report.avg_clv:.2f}\n")
    if report.segment_counts:
        lines.append("| Segment | Customers |")
        lines.append("|---------|-----------|")
        for segment, count in report.segment_counts.items():
            lines.append(f"| {segment} | {count} |")
        lines.append("")

    if report.bundles:
        lines.append("## Frequently Bought Together\n")
        lines.append("| Products | Orders | Confidence |")
        lines.append("|----------|--------|------------|")
        for bundle in report.bundles:
            lines.append(
                f"| {' + '.join(bundle.products)} | {bundle.frequency} | {bundle.confidence:.2f} |"
            )
        lines.append("")

    if report.cohorts:
        lines.append("## Cohort Retention\n")
        lines.append("| Cohort | Size | Retention (%) |")
        lines.append("|--------|------|---------------|")
        for cohort in report.cohorts:
            retention = ", ".join(str(pct) for pct in cohort.retention)
            lines.append(f"| {cohort.cohort} | {cohort.size} | {retention} |")
        lines.append("")

    if report.valuation is not None:
        summary = get_inventory_summary(report.inventory_predictions)
        lines.append("## Inventory\n")
        lines.append(f"- **Stock value:** {report.valuation.total_value:.2f}")
        lines.append(f"- **Units in stock:** {report.valuation.total_items}")
        lines.append(f"- **SKUs:** {report.valuation.sku_count}")
        lines.append(f"- **Dead stock items:** {len(report.dead_stock)}")
        lines.append(f"- **Low stock items:** {len(report.low_stock)}\n")
        at_risk = [
            p
            for p in report.inventory_predictions
            if p.product_id in summary["at_risk_products"]
        ]
        if at_risk:
            lines.append("| Product | Stock | Days Left | Risk |")
            lines.append("|---------|-------|-----------|------|")
            for p in at_risk:
                lines.append(
                    f"| {p.name} | {p.stock} | {p.days_remaining} | {p.risk_level.value} |"
                )
            lines.append("")

    if report.traffic is not None:
        lines.append("## Traffic\n")
        lines.append(f"- **Requests:** {report.traffic.total_requests}")
        lines.append(f"- **Unique visitors:** {report.traffic.unique_visitors}")
        lines.append(f"- **Avg session (s):** {report.traffic.avg_session_duration}")
        if report.funnel:
            lines.append("")
            lines.append("| Funnel Step | Visitors |")
            lines.append("|-------------|----------|")
            for step in report.funnel:
                lines.append(f"| {step.step} | {step.count} |")
        lines.append("")

    with open(output_path, "w") as f:
        f.write("\n".join(lines))

    logger.info(f"Analytics report exported to {output_path}")
