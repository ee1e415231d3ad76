"""Command line entry points for the commerce insights engine."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any

from commerce_insights.analyses.basket import get_recommendations_for_products
from commerce_insights.analyses.inventory import (
    InMemoryInventorySource,
    InventoryConfig,
    InventoryService,
)
from commerce_insights.foundation.contract import RecordContract, parse_timestamp
from commerce_insights.reporting.exports import (
    export_inventory_csv,
    export_report_json,
    export_report_markdown,
    get_inventory_summary,
)
from commerce_insights.reporting.report import build_analytics_report, to_serialisable

logger = logging.getLogger(__name__)


MAX_INPUT_BYTES = 25 * 1024 * 1024  # 25 MiB cap to avoid accidental OOM


def _load_records(path: Path) -> list[dict[str, Any]]:
    resolved = path.resolve()
    size = resolved.stat().st_size
    if size > MAX_INPUT_BYTES:
        raise ValueError(
            f"Input file {resolved} is {size} bytes; exceeds limit of {MAX_INPUT_BYTES} bytes"
        )
    with path.open("r", encoding="utf-8") as fh:
        payload = json.load(fh)
    if not isinstance(payload, list):
        raise ValueError(f"Expected a list of records in {path}")
    return payload


def _resolve_output(path: Path) -> Path:
    output_path = path.resolve()
    cwd = Path.cwd().resolve()
    try:
        output_path.relative_to(cwd)
    except ValueError:
        raise ValueError(
            f"Output path {output_path} must reside within the current working directory"
        )
    return output_path


def build_report_cli(argv: list[str] | None = None) -> int:
    """Run every analysis over exported store data and write a report.

    Args:
        argv: Command line arguments (defaults to sys.argv)

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    parser = argparse.ArgumentParser(
        description="Build the store analytics report from JSON exports"
    )
    parser.add_argument("orders", type=Path, help="Path to JSON file with raw orders")
    parser.add_argument("--users", type=Path, help="JSON file with users (enables cohorts)")
    parser.add_argument(
        "--products", type=Path, help="JSON file with products (enables inventory)"
    )
    parser.add_argument(
        "--events", type=Path, help="JSON file with tracking events (enables traffic)"
    )
    parser.add_argument(
        "--as-of",
        type=str,
        help="Reference timestamp (ISO 8601). Defaults to the latest order.",
    )
    parser.add_argument(
        "--forecast-days",
        type=int,
        default=7,
        help="Days to forecast ahead (default: 7)",
    )
    parser.add_argument(
        "--history-days",
        type=int,
        default=30,
        help="Days of sales history to fit the forecast on (default: 30)",
    )
    parser.add_argument(
        "--format",
        choices=["json", "markdown"],
        default="json",
        help="Output format (default: json)",
    )
    parser.add_argument(
        "--output",
        type=Path,
        help="Optional output path. JSON is written to stdout when omitted.",
    )

    args = parser.parse_args(argv)
    contract = RecordContract()

    logger.info(f"Loading orders from {args.orders}")
    orders = contract.orders_from_records(_load_records(args.orders))
    if not orders:
        logger.error("No orders found in input file")
        return 1

    users = contract.users_from_records(_load_records(args.users)) if args.users else []
    products = (
        contract.products_from_records(_load_records(args.products)) if args.products else []
    )
    events = contract.events_from_records(_load_records(args.events)) if args.events else []
    logger.info(
        f"Loaded {len(orders)} orders, {len(users)} users, "
        f"{len(products)} products, {len(events)} events"
    )

    report = build_analytics_report(
        orders,
        users=users,
        products=products,
        events=events,
        as_of=parse_timestamp(args.as_of) if args.as_of else None,
        forecast_days=args.forecast_days,
        history_days=args.history_days,
    )

    if args.output:
        output_path = _resolve_output(args.output)
        if args.format == "markdown":
            export_report_markdown(report, output_path)
        else:
            export_report_json(report, output_path, metadata={"source": str(args.orders)})
    elif args.format == "markdown":
        logger.error("--format markdown requires --output")
        return 1
    else:  # stdout fallback enables piping in shell usage.
        json.dump(report.as_dict(), fp=sys.stdout, indent=2)
        print()

    return 0


def inventory_report_cli(argv: list[str] | None = None) -> int:
    """Export inventory depletion predictions to CSV."""

    parser = argparse.ArgumentParser(
        description="Predict stock depletion and export it to CSV"
    )
    parser.add_argument("products", type=Path, help="Path to JSON file with products")
    parser.add_argument(
        "--orders", type=Path, help="JSON file with orders used for sales velocity"
    )
    parser.add_argument(
        "--output", type=Path, required=True, help="Path for output CSV file"
    )
    parser.add_argument(
        "--days-of-history",
        type=int,
        default=30,
        help="Sales window for velocity, in days (default: 30)",
    )
    parser.add_argument(
        "--dead-stock-days",
        type=int,
        default=90,
        help="Days without sales before stock counts as dead (default: 90)",
    )
    parser.add_argument(
        "--low-stock-threshold",
        type=int,
        default=5,
        help="Global low-stock threshold (default: 5)",
    )
    parser.add_argument("--as-of", type=str, help="Reference timestamp (ISO 8601)")

    args = parser.parse_args(argv)
    contract = RecordContract()

    products = contract.products_from_records(_load_records(args.products))
    if not products:
        logger.error("No products found in input file")
        return 1
    orders = contract.orders_from_records(_load_records(args.orders)) if args.orders else []

    config = InventoryConfig(
        days_of_history=args.days_of_history,
        dead_stock_days=args.dead_stock_days,
        low_stock_threshold=args.low_stock_threshold,
    )
    service = InventoryService(InMemoryInventorySource(products, orders), config)
    now = parse_timestamp(args.as_of) if args.as_of else None

    predictions = service.predictions(now=now)
    export_inventory_csv(predictions, _resolve_output(args.output))

    summary = get_inventory_summary(predictions)
    summary["dead_stock_count"] = len(service.dead_stock(now=now))
    summary["low_stock_count"] = len(service.low_stock())
    summary["valuation"] = to_serialisable(service.valuation())
    logger.info(
        f"{summary['total_products']} products predicted, "
        f"{len(summary['at_risk_products'])} at critical or high risk"
    )
    json.dump(summary, fp=sys.stdout, indent=2)
    print()
    return 0


def recommend_cli(argv: list[str] | None = None) -> int:
    """Print products frequently bought with the given cart."""

    parser = argparse.ArgumentParser(
        description="Recommend products frequently bought together with a cart"
    )
    parser.add_argument("orders", type=Path, help="Path to JSON file with raw orders")
    parser.add_argument(
        "--product",
        dest="products",
        action="append",
        required=True,
        help="Product already in the cart (repeatable)",
    )
    parser.add_argument(
        "--limit", type=int, default=5, help="Maximum recommendations (default: 5)"
    )

    args = parser.parse_args(argv)
    orders = RecordContract().orders_from_records(_load_records(args.orders))
    if not orders:
        logger.error("No orders found in input file")
        return 1

    recommendations = get_recommendations_for_products(
        orders, args.products, limit=args.limit
    )
    json.dump(to_serialisable(recommendations), fp=sys.stdout, indent=2)
    print()
    return 0


def _run(command) -> None:
    logging.basicConfig(
        level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )
    raise SystemExit(command())


def main() -> None:
    _run(build_report_cli)


def inventory_main() -> None:
    _run(inventory_report_cli)


def recommend_main() -> None:
    _run(recommend_cli)


if __name__ == "__main__":  # pragma: no cover
    main()
