# Overview: Durable per-tenant "customer paid" flags keyed by order id.

"""
Payment Flags

Manual-payment confirmation is a business event distinct from order status,
so it lives in its own key-value table (order_payment_flags) and is read and
written independently of the lifecycle. Missing flag == not paid.
"""

from __future__ import annotations

from typing import Iterable

from ..extensions import db
from ..models import OrderPaymentFlag
from storefront.time_utils import utcnow


def get_flag(tenant_id: int, order_id: int) -> bool:
    row = db.session.query(OrderPaymentFlag).filter_by(tenant_id=tenant_id, order_id=order_id).first()
    return bool(row and row.is_paid)


def flags_for(tenant_id: int, order_ids: Iterable[int]) -> dict[int, bool]:
    order_ids = list(order_ids)
    result = {oid: False for oid in order_ids}
    if not order_ids:
        return result
    rows = (
        db.session.query(OrderPaymentFlag)
        .filter(OrderPaymentFlag.tenant_id == tenant_id, OrderPaymentFlag.order_id.in_(order_ids))
        .all()
    )
    for row in rows:
        result[row.order_id] = bool(row.is_paid)
    return result


def set_flag(tenant_id: int, order_id: int, is_paid: bool = True, *, commit: bool = True) -> OrderPaymentFlag:
    row = db.session.query(OrderPaymentFlag).filter_by(tenant_id=tenant_id, order_id=order_id).first()
    if row is None:
        row = OrderPaymentFlag(tenant_id=tenant_id, order_id=order_id)
        db.session.add(row)
    row.is_paid = bool(is_paid)
    row.paid_at = utcnow() if is_paid else None
    if commit:
        db.session.commit()
    return row


def clear_flag(tenant_id: int, order_id: int, *, commit: bool = True) -> None:
    db.session.query(OrderPaymentFlag).filter_by(tenant_id=tenant_id, order_id=order_id).delete(
        synchronize_session=False
    )
    if commit:
        db.session.commit()
