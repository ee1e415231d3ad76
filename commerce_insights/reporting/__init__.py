"""Report assembly and export."""

from commerce_insights.reporting.exports import (
    export_inventory_csv,
    export_report_json,
    export_report_markdown,
    get_inventory_summary,
)
from commerce_insights.reporting.report import (
    AnalyticsReport,
    build_analytics_report,
    to_serialisable,
)

__all__ = [
    "AnalyticsReport",
    "build_analytics_report",
    "to_serialisable",
    "export_report_json",
    "export_inventory_csv",
    "export_report_markdown",
    "get_inventory_summary",
]
