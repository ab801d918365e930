# Overview: Checkout (cart -> order) with atomic stock decrement, and order queries.

"""
Order Service

WHY: The cart only soft-reserves stock. The durable decrement happens here,
at order creation, so two shoppers holding the last unit cannot both buy it.

CHECKOUT RULES (create_order):
1. Misuse checks: empty cart, unknown delivery type or payment method,
   missing customer name/phone, missing address for domicilio.
2. Paused stores take no orders.
3. Delivery type and payment method must be enabled for the tenant.
4. Touched product and category rows are locked, shortfalls are re-checked,
   then each counter is decremented with a conditional UPDATE. A zero-row
   update means someone else took the stock: everything rolls back.
5. The order and its item snapshots are inserted in the same transaction.
   total = round_money(sum of line totals).
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from flask import current_app

from ..extensions import db
from ..models import Category, Order, OrderItem, Product, Tenant
from . import payment_flags, stock_governor, store_config_service
from .cart_service import CartStore
from .concurrency import conditional_decrement, lock_for_update, run_with_retry
from .order_lifecycle import (
    DELIVERY_DOMICILIO,
    STATUS_PENDING,
    VALID_DELIVERY_TYPES,
    VALID_PAYMENT_METHODS,
    VALID_STATUSES,
    display_paid,
)
from .pricing_engine import ZERO, round_money
from .tenant_service import TenantAccessError

DEFAULT_LIST_LIMIT = 200


class OrderError(Exception):
    """Raised for checkout and order query errors."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


@dataclass(frozen=True)
class CustomerInfo:
    name: str
    phone: str
    address: str | None = None
    notes: str | None = None

    @classmethod
    def from_payload(cls, data) -> "CustomerInfo":
        data = data if isinstance(data, dict) else {}

        def _clean(key):
            value = data.get(key)
            if value is None:
                return None
            value = str(value).strip()
            return value or None

        return cls(
            name=_clean("name") or "",
            phone=_clean("phone") or "",
            address=_clean("address"),
            notes=_clean("notes"),
        )


def _check_request(cart: CartStore, customer: CustomerInfo, delivery_type: str, payment_method: str) -> None:
    if cart.is_empty():
        raise OrderError("Cart is empty")
    if not isinstance(delivery_type, str) or delivery_type not in VALID_DELIVERY_TYPES:
        raise OrderError(
            f"Invalid delivery type '{delivery_type}'",
            details={"allowed": sorted(VALID_DELIVERY_TYPES)},
        )
    if not isinstance(payment_method, str) or payment_method not in VALID_PAYMENT_METHODS:
        raise OrderError(
            f"Invalid payment method '{payment_method}'",
            details={"allowed": sorted(VALID_PAYMENT_METHODS)},
        )

    missing = []
    if not customer.name:
        missing.append("name")
    if not customer.phone:
        missing.append("phone")
    if delivery_type == DELIVERY_DOMICILIO and not customer.address:
        missing.append("address")
    if missing:
        raise OrderError("Missing customer information", details={"missing": missing})


def _check_store_open(tenant_id: int, delivery_type: str, payment_method: str) -> None:
    pause = store_config_service.get_pause_status(tenant_id)
    if pause["is_paused"]:
        raise OrderError(
            pause["message"] or "The store is not taking orders right now",
            details={"paused": True},
        )
    if not store_config_service.is_delivery_type_enabled(tenant_id, delivery_type):
        raise OrderError(f"Delivery type '{delivery_type}' is not available")
    if not store_config_service.is_payment_method_enabled(tenant_id, payment_method):
        raise OrderError(f"Payment method '{payment_method}' is not available")


def _reserve_stock(tenant_id: int, requested: dict[int, int]) -> None:
    """Lock, re-check and decrement product and category counters."""
    products = {
        p.id: p
        for p in lock_for_update(
            db.session.query(Product).filter(Product.tenant_id == tenant_id, Product.id.in_(list(requested)))
        ).all()
    }
    missing = sorted(set(requested) - set(products))
    if missing:
        raise OrderError("Some products no longer exist", details={"product_ids": missing})

    category_ids = {p.category_id for p in products.values() if p.category_id is not None}
    categories = {}
    if category_ids:
        categories = {
            c.id: c
            for c in lock_for_update(
                db.session.query(Category).filter(Category.tenant_id == tenant_id, Category.id.in_(sorted(category_ids)))
            ).all()
        }

    shortfalls = stock_governor.find_shortfalls(products, categories, requested)
    if shortfalls:
        raise OrderError(
            "Insufficient stock",
            details={"shortfalls": [s.to_dict() for s in shortfalls]},
        )

    category_demand: dict[int, int] = {}
    for product_id, qty in sorted(requested.items()):
        product = products[product_id]
        if not conditional_decrement(Product, product_id, "stock", qty):
            raise OrderError(
                "Insufficient stock",
                details={"shortfalls": [{"scope": "product", "id": product_id, "name": product.name, "requested": qty}]},
            )
        if product.category_id is not None:
            category_demand[product.category_id] = category_demand.get(product.category_id, 0) + qty

    for category_id, qty in sorted(category_demand.items()):
        category = categories.get(category_id)
        if category is None:
            continue
        if not conditional_decrement(Category, category_id, "current_stock", qty):
            raise OrderError(
                "Insufficient stock",
                details={"shortfalls": [{"scope": "category", "id": category_id, "name": category.name, "requested": qty}]},
            )


def create_order(
    tenant_id: int,
    cart: CartStore,
    customer: CustomerInfo,
    delivery_type: str,
    payment_method: str,
) -> Order:
    """Turn a validated cart into a pending order; stock is decremented atomically."""
    _check_request(cart, customer, delivery_type, payment_method)
    _check_store_open(tenant_id, delivery_type, payment_method)

    lines = cart.to_order_lines()
    requested = stock_governor.aggregate_requested((l["product_id"], l["quantity"]) for l in lines)
    places = current_app.config.get("CURRENCY_DECIMAL_PLACES", 2)

    def _op():
        tenant = db.session.query(Tenant).filter_by(id=tenant_id).first()
        if tenant is None:
            raise TenantAccessError(f"Tenant {tenant_id} not found")

        try:
            _reserve_stock(tenant_id, requested)

            order = Order(
                tenant_id=tenant_id,
                status=STATUS_PENDING,
                delivery_type=delivery_type,
                payment_method=payment_method,
                customer_name=customer.name,
                customer_phone=customer.phone,
                delivery_address=customer.address if delivery_type == DELIVERY_DOMICILIO else None,
                delivery_notes=customer.notes,
                currency=tenant.currency,
                total=round_money(sum((l["line_total"] for l in lines), ZERO), places),
            )
            for position, line in enumerate(lines):
                order.items.append(OrderItem(position=position, **line))

            db.session.add(order)
            db.session.commit()
        except OrderError:
            db.session.rollback()
            raise
        return order

    order = run_with_retry(_op)
    current_app.logger.info(
        "Order %s created for tenant %s (%s items, total %s)",
        order.id, tenant_id, cart.item_count, order.total,
    )
    return order


def serialize_order(order: Order, is_paid: bool) -> dict:
    data = order.to_dict()
    data["is_paid"] = bool(is_paid)
    data["display_paid"] = display_paid(order, is_paid)
    return data


def get_order(tenant_id: int, order_id: int) -> dict:
    order = db.session.query(Order).filter_by(id=order_id, tenant_id=tenant_id).first()
    if order is None:
        raise TenantAccessError(f"Order {order_id} not found")
    return serialize_order(order, payment_flags.get_flag(tenant_id, order.id))


def list_orders(
    tenant_id: int,
    status: str | None = None,
    since: datetime | None = None,
    limit: int = DEFAULT_LIST_LIMIT,
) -> list[dict]:
    """Newest first, with the payment flag merged in."""
    if status is not None and status not in VALID_STATUSES:
        raise OrderError(
            f"Invalid status '{status}'",
            details={"allowed": sorted(VALID_STATUSES)},
        )

    query = db.session.query(Order).filter(Order.tenant_id == tenant_id)
    if status is not None:
        query = query.filter(Order.status == status)
    if since is not None:
        query = query.filter(Order.created_at >= since)

    limit = max(1, min(int(limit or DEFAULT_LIST_LIMIT), 1000))
    orders = query.order_by(Order.created_at.desc(), Order.id.desc()).limit(limit).all()
    flags = payment_flags.flags_for(tenant_id, [o.id for o in orders])
    return [serialize_order(o, flags.get(o.id, False)) for o in orders]
