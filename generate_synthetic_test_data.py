#!/usr/bin/env python
"""
Generate synthetic store data for trying out the analytics CLI.

Usage:
    python generate_synthetic_test_data.py

Output (in ./synthetic_data/):
    orders.json, users.json, products.json
"""

import json
from datetime import date
from pathlib import Path

from commerce_insights.synthetic import (
    BASELINE_SCENARIO,
    generate_catalog,
    generate_orders,
    generate_users,
    orders_to_rows,
    products_to_rows,
    users_to_rows,
)


def main():
    """Generate a catalog, users and orders and save them as JSON."""
    print("Generating synthetic store data...")

    catalog = generate_catalog(40, seed=42)
    users = generate_users(
        n=2000,
        start=date(2024, 1, 1),
        end=date(2024, 12, 31),
        seed=42,  # Fixed seed for reproducibility
    )
    orders = generate_orders(
        users,
        catalog,
        start=date(2024, 1, 1),
        end=date(2025, 6, 30),  # 18 months of data
        scenario=BASELINE_SCENARIO,
    )

    output_dir = Path("synthetic_data")
    output_dir.mkdir(exist_ok=True)
    for filename, rows in (
        ("orders.json", orders_to_rows(orders)),
        ("users.json", users_to_rows(users)),
        ("products.json", products_to_rows(catalog)),
    ):
        with open(output_dir / filename, "w") as f:
            json.dump(rows, f, indent=2)

    print(f"\nSynthetic data saved to: {output_dir.absolute()}")
    print("\nStatistics:")
    print(f"  - Products: {len(catalog)}")
    print(f"  - Users: {len(users)}")
    print(f"  - Orders: {len(orders)}")
    print(f"  - Date range: {orders[0].created_at:%Y-%m-%d} to {orders[-1].created_at:%Y-%m-%d}")
    print(f"  - Total revenue: ${sum(o.total for o in orders):,.2f}")
    print("\nTry: commerce-insights-report synthetic_data/orders.json "
          "--users synthetic_data/users.json --products synthetic_data/products.json")


if __name__ == "__main__":
    main()
