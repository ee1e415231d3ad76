from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
import math
import random
from typing import Any, Dict, List, Optional, Sequence

from commerce_insights.foundation.records import (
    InventorySnapshot,
    LineItem,
    OrderRecord,
    UserAcquisition,
)

ORDER_STATUSES = ("delivered", "completed", "shipped", "cancelled")


@dataclass(frozen=True)
class ScenarioConfig:
    """Configuration for scenario-based generators.

    Attributes
    ----------
    promo_month: A specific month that should see higher purchase activity.
    promo_uplift: Multiplicative uplift for purchase propensity during promo month.
    churn_hazard: Baseline monthly churn probability for existing customers.
    base_orders_per_month: Average orders per active customer per month.
    quantity_mean: Average quantity per order line.
    bundle_affinity: Probability that an order containing one half of a
        paired product also contains the other half.
    cancel_rate: Share of orders marked ``cancelled``.
    seed: Optional RNG seed for reproducibility.
    """

    promo_month: Optional[int] = None
    promo_uplift: float = 1.5
    churn_hazard: float = 0.08
    base_orders_per_month: float = 1.2
    quantity_mean: float = 1.3
    bundle_affinity: float = 0.6
    cancel_rate: float = 0.05
    seed: Optional[int] = None


def generate_catalog(
    n: int,
    *,
    mean_price: float = 30.0,
    seed: Optional[int] = None,
) -> List[InventorySnapshot]:
    """Generate ``n`` products with sampled stock levels and prices.

    Roughly one product in ten is out of stock and one in five sits below
    the low-stock surface level, so inventory reports have something to show.
    """

    if n <= 0:
        return []

    rng = random.Random(seed)
    products: List[InventorySnapshot] = []
    for i in range(n):
        roll = rng.random()
        if roll < 0.1:
            stock = 0
        elif roll < 0.3:
            stock = rng.randrange(1, 10)
        else:
            stock = rng.randrange(10, 200)
        products.append(
            InventorySnapshot(
                product_id=f"P-{i + 1}",
                name=f"Product {i + 1}",
                stock=stock,
                price=_sample_price(rng, mean_price, 0.4),
                in_stock=stock > 0,
                low_stock_threshold=rng.choice((0, 0, 5, 10)),
            )
        )
    return products


def generate_users(
    n: int,
    start: date,
    end: date,
    *,
    seed: Optional[int] = None,
) -> List[UserAcquisition]:
    """Generate ``n`` users with signup dates uniformly between start/end."""

    if n <= 0:
        return []
    if start > end:
        raise ValueError("start date must be <= end date")

    rng = random.Random(seed)
    total_days = (end - start).days + 1

    users: List[UserAcquisition] = []
    for i in range(n):
        signup = start + timedelta(days=rng.randrange(total_days))
        users.append(
            UserAcquisition(
                user_id=f"U-{i + 1}",
                created_at=datetime(
                    signup.year, signup.month, signup.day, 9, tzinfo=timezone.utc
                ),
            )
        )
    return users


def _next_month(d: date) -> date:
    if d.month == 12:
        return date(d.year + 1, 1, 1)
    return date(d.year, d.month + 1, 1)


def _orders_for_customer_month(
    rng: random.Random,
    base_orders_per_month: float,
    promo_multiplier: float,
) -> int:
    # Poisson draw via Knuth's algorithm for small lambdas
    lam = max(0.0, base_orders_per_month * promo_multiplier)
    if lam <= 0:
        return 0
    L = math.exp(-lam)
    k = 0
    p = 1.0
    while p > L:
        k += 1
        p *= rng.random()
    return max(0, k - 1)


def _sample_price(rng: random.Random, mean: float, variability: float) -> float:
    variability = min(max(variability, 0.01), 1.0)
    sigma = variability
    mu = math.log(max(mean, 0.01)) - 0.5 * sigma * sigma
    price = math.exp(rng.normalvariate(mu, sigma))
    return round(max(price, 0.01), 2)


def _sample_quantity(rng: random.Random, mean_q: float) -> int:
    q = max(1.0, rng.lognormvariate(mu=math.log(max(mean_q, 0.1)), sigma=0.5))
    return max(1, int(round(q)))


def _pair_catalog(product_ids: Sequence[str]) -> Dict[str, str]:
    # Neighbouring products are sold together: P-1 with P-2, P-3 with P-4...
    partners: Dict[str, str] = {}
    for first, second in zip(product_ids[::2], product_ids[1::2]):
        partners[first] = second
        partners[second] = first
    return partners


def generate_orders(
    users: Sequence[UserAcquisition],
    catalog: Sequence[InventorySnapshot],
    start: date,
    end: date,
    *,
    scenario: Optional[ScenarioConfig] = None,
) -> List[OrderRecord]:
    """Generate orders for ``users`` between ``start`` and ``end``.

    The generator applies three scenario effects:
    - Promo spike in a given calendar month.
    - Baseline churn reducing the number of active users over time.
    - Bundle affinity between paired catalog products, so market basket
      analysis finds real co-occurrences.
    """

    if start > end:
        raise ValueError("start date must be <= end date")
    if not catalog:
        raise ValueError("catalog must contain at least one product")
    scenario = scenario or ScenarioConfig()
    rng = random.Random(scenario.seed)

    product_ids = [p.product_id for p in catalog]
    prices = {p.product_id: p.price for p in catalog}
    partners = _pair_catalog(product_ids)

    month_start = date(start.year, start.month, 1)

    orders: List[OrderRecord] = []
    order_seq = 1
    active = {u.user_id: u for u in users if u.created_at.date() <= end}

    while month_start <= end:
        month_end = _next_month(month_start)
        promo_multiplier = (
            scenario.promo_uplift
            if (scenario.promo_month and month_start.month == scenario.promo_month)
            else 1.0
        )

        if scenario.churn_hazard > 0:
            to_remove = [
                uid
                for uid, user in active.items()
                if user.created_at.date() < month_start
                and rng.random() < scenario.churn_hazard
            ]
            for uid in to_remove:
                active.pop(uid, None)

        for user in list(active.values()):
            signup = user.created_at.date()
            if signup >= month_end:
                continue

            num_orders = _orders_for_customer_month(
                rng, scenario.base_orders_per_month, promo_multiplier
            )
            earliest = max(signup, month_start, start)
            latest = min(month_end - timedelta(days=1), end)
            if earliest > latest:
                continue
            span = (latest - earliest).days + 1

            for _ in range(num_orders):
                day = earliest + timedelta(days=rng.randrange(span))
                created_at = datetime(
                    day.year,
                    day.month,
                    day.day,
                    10 + rng.randrange(0, 9),
                    rng.randrange(0, 60),
                    tzinfo=timezone.utc,
                )

                picked = rng.sample(product_ids, min(len(product_ids), 1 + rng.randrange(2)))
                for product_id in list(picked):
                    partner = partners.get(product_id)
                    if (
                        partner
                        and partner not in picked
                        and rng.random() < scenario.bundle_affinity
                    ):
                        picked.append(partner)

                items = tuple(
                    LineItem(
                        product_id=pid,
                        quantity=_sample_quantity(rng, scenario.quantity_mean),
                    )
                    for pid in picked
                )
                status = (
                    "cancelled"
                    if rng.random() < scenario.cancel_rate
                    else rng.choice(ORDER_STATUSES[:3])
                )
                orders.append(
                    OrderRecord(
                        items=items,
                        order_id=f"O-{order_seq}",
                        user_id=user.user_id,
                        created_at=created_at,
                        status=status,
                        total=round(sum(prices[i.product_id] * i.quantity for i in items), 2),
                    )
                )
                order_seq += 1

        month_start = month_end

    orders.sort(key=lambda o: (o.created_at, o.order_id))
    return orders


def orders_to_rows(orders: Sequence[OrderRecord]) -> List[Dict[str, Any]]:
    """Render orders in the storefront's raw JSON row shape."""

    return [
        {
            "id": o.order_id,
            "userId": o.user_id,
            "createdAt": o.created_at.isoformat() if o.created_at else None,
            "status": o.status,
            "total": o.total,
            "items": [{"productId": i.product_id, "quantity": i.quantity} for i in o.items],
        }
        for o in orders
    ]


def users_to_rows(users: Sequence[UserAcquisition]) -> List[Dict[str, Any]]:
    return [{"id": u.user_id, "createdAt": u.created_at.isoformat()} for u in users]


def products_to_rows(products: Sequence[InventorySnapshot]) -> List[Dict[str, Any]]:
    return [
        {
            "id": p.product_id,
            "name": p.name,
            "stock": p.stock,
            "price": p.price,
            "inStock": p.in_stock,
            "lowStockThreshold": p.low_stock_threshold,
        }
        for p in products
    ]
