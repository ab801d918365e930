# Overview: Purchasable-quantity arithmetic from product and category stock ceilings.

"""
Stock Governor

ALGORITHM:
    product_ceiling  = product.stock            (None -> UNLIMITED)
    category_ceiling = category.current_stock   (None or no category -> UNLIMITED)
    raw_limit        = min(product_ceiling, category_ceiling)
    reserved         = 0 when editing an existing line, else quantity already held
    effective_limit  = max(0, raw_limit - reserved), UNLIMITED stays UNLIMITED

The category pool is shared by every product in the category, so when the
caller knows how much of the pool the cart already holds (across products)
it passes category_held; by default the product's own held quantity is used
for both ceilings.

POLICY: stock checked here is advisory (cart-time soft reservation). Durable
inventory is decremented only when an order is created; find_shortfalls is
pure and is re-run at that boundary under row locks (see order_service).
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, Mapping

UNLIMITED = math.inf


def _ceiling(value):
    if value is None:
        return UNLIMITED
    return max(0, int(value))


def product_ceiling(product):
    return _ceiling(getattr(product, "stock", None))


def category_ceiling(category):
    if category is None:
        return UNLIMITED
    return _ceiling(getattr(category, "current_stock", None))


def raw_limit(product, category=None):
    return min(product_ceiling(product), category_ceiling(category))


def effective_limit(
    product,
    category=None,
    held: int = 0,
    editing: bool = False,
    category_held: int | None = None,
):
    """Quantity still purchasable for product; UNLIMITED when neither ceiling applies."""
    if raw_limit(product, category) == UNLIMITED:
        return UNLIMITED

    if editing:
        held_product = held_category = 0
    else:
        held_product = max(0, held or 0)
        held_category = held_product if category_held is None else max(0, category_held)

    remaining = min(
        product_ceiling(product) - held_product,
        category_ceiling(category) - held_category,
    )
    return max(0, int(remaining))


def is_out_of_stock(product, category=None) -> bool:
    """Globally sold out, regardless of what any cart holds."""
    return raw_limit(product, category) == 0


def is_limited_by_category(product, category=None) -> bool:
    """True when the category pool, not the product, is the binding ceiling."""
    cat = category_ceiling(category)
    return cat != UNLIMITED and cat < product_ceiling(product)


@dataclass(frozen=True)
class StockShortfall:
    scope: str  # "product" or "category"
    id: int
    name: str
    requested: int
    available: int

    def to_dict(self) -> dict:
        return {
            "scope": self.scope,
            "id": self.id,
            "name": self.name,
            "requested": self.requested,
            "available": self.available,
        }


def aggregate_requested(lines: Iterable[tuple[int, int]]) -> dict[int, int]:
    """Sum (product_id, quantity) pairs per product."""
    totals: dict[int, int] = {}
    for product_id, qty in lines:
        totals[product_id] = totals.get(product_id, 0) + int(qty)
    return totals


def find_shortfalls(
    products: Mapping[int, object],
    categories: Mapping[int, object],
    requested: Mapping[int, int],
) -> list[StockShortfall]:
    """
    Compare requested quantities against product stock and category pools.

    requested maps product_id -> total quantity. Category demand is the sum
    over all requested products in the category. Idempotent: no state changes.
    """
    shortfalls = []
    category_demand: dict[int, int] = {}

    for product_id, qty in sorted(requested.items()):
        product = products.get(product_id)
        if product is None:
            continue
        ceiling = product_ceiling(product)
        if ceiling != UNLIMITED and qty > ceiling:
            shortfalls.append(StockShortfall("product", product_id, product.name, qty, int(ceiling)))
        if product.category_id is not None:
            category_demand[product.category_id] = category_demand.get(product.category_id, 0) + qty

    for category_id, qty in sorted(category_demand.items()):
        category = categories.get(category_id)
        ceiling = category_ceiling(category)
        if ceiling != UNLIMITED and qty > ceiling:
            shortfalls.append(StockShortfall("category", category_id, category.name, qty, int(ceiling)))

    return shortfalls
