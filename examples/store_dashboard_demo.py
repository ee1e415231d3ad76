"""Store dashboard demo with synthetic data.

This example walks through every analysis behind the storefront dashboard:
1. Generate a synthetic catalog, users and orders
2. Forecast daily sales and detect the trend
3. Segment customers with RFM and estimate CLV
4. Mine product bundles and cart recommendations
5. Compute monthly cohort retention
6. Score inventory depletion risk
"""

from datetime import date, datetime, timezone

from commerce_insights.analyses.basket import (
    get_bundle_recommendations,
    get_recommendations_for_products,
)
from commerce_insights.analyses.forecast import calculate_trend, forecast_sales
from commerce_insights.analyses.inventory import (
    InMemoryInventorySource,
    InventoryService,
)
from commerce_insights.foundation import (
    build_customer_metrics,
    build_daily_sales,
    calculate_cohorts,
    segment_customers,
    summarize_segments,
)
from commerce_insights.models import average_clv
from commerce_insights.pandas import cohorts_to_dataframe
from commerce_insights.synthetic import (
    BUNDLE_HEAVY_SCENARIO,
    generate_catalog,
    generate_orders,
    generate_users,
)


def main():
    """Run every dashboard analysis over one synthetic store."""
    print("=" * 80)
    print("Store Dashboard Demo")
    print("=" * 80)

    as_of = datetime(2024, 12, 31, 23, 59, tzinfo=timezone.utc)

    # Step 1: Generate synthetic data
    print("\n📊 Step 1: Generating synthetic store data...")
    catalog = generate_catalog(24, seed=42)
    users = generate_users(600, date(2024, 1, 1), date(2024, 10, 31), seed=42)
    orders = generate_orders(
        users,
        catalog,
        date(2024, 1, 1),
        as_of.date(),
        scenario=BUNDLE_HEAVY_SCENARIO,
    )
    print(f"✓ Generated {len(orders):,} orders from {len(users)} users")

    # Step 2: Forecast
    print("\n📈 Step 2: Forecasting sales...")
    history = build_daily_sales(orders, as_of, days=30)
    forecast = forecast_sales(history, 7, today=as_of.date())
    trend = calculate_trend([p.sales for p in history])
    print(f"✓ Trend: {trend.direction.value} ({trend.strength:.1f}%)")
    for point in forecast:
        print(f"  {point.date:>7}: ${point.predicted_sales:,.2f}")

    # Step 3: Customers
    print("\n👥 Step 3: Segmenting customers...")
    customers = build_customer_metrics(orders, as_of)
    segmented = segment_customers(customers)
    for segment, count in summarize_segments(segmented).items():
        print(f"  {segment:<10} {count:>5}")
    print(f"✓ Average CLV (1 year): ${average_clv(customers):,.2f}")

    # Step 4: Basket
    print("\n🛒 Step 4: Mining product bundles...")
    delivered = [o for o in orders if o.status == "delivered"]
    for bundle in get_bundle_recommendations(delivered, limit=5):
        print(
            f"  {' + '.join(bundle.products):<12} "
            f"orders={bundle.frequency:<5} confidence={bundle.confidence:.2f}"
        )
    cart = [catalog[0].product_id]
    recs = get_recommendations_for_products(orders, cart, limit=3)
    print(f"  Cart {cart} → {[r.product_id for r in recs]}")

    # Step 5: Cohorts
    print("\n📅 Step 5: Cohort retention...")
    matrix = cohorts_to_dataframe(calculate_cohorts(users, orders, as_of=as_of))
    print(matrix.iloc[:, :6].to_string(index=False))

    # Step 6: Inventory
    print("\n📦 Step 6: Inventory risk...")
    service = InventoryService(InMemoryInventorySource(catalog, orders))
    for prediction in service.predictions(now=as_of)[:5]:
        print(
            f"  {prediction.name:<12} stock={prediction.stock:<4} "
            f"days_left={prediction.days_remaining:<4} risk={prediction.risk_level.value}"
        )
    valuation = service.valuation()
    print(
        f"✓ {valuation.sku_count} SKUs, {valuation.total_items:,} units, "
        f"${valuation.total_value:,.2f} in stock"
    )
    print(f"  Dead stock: {len(service.dead_stock(now=as_of))} products")

    print("\n" + "=" * 80)
    print("Demo complete!")
    print("=" * 80)


if __name__ == "__main__":
    main()
