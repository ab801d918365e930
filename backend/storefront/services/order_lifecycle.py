# Overview: Order status state machine with manual-payment confirmation.

"""
Order Lifecycle

================================================================================
STATE MACHINE
================================================================================

    pending ──take──> in_progress ──finalize──> completed
       │                   │
       └──────cancel───────┴──────────────────> cancelled

    completed and cancelled are TERMINAL: nothing moves an order out of them.
    The only thing still allowed on a terminal order is deletion.

FINALIZE (in_progress -> completed):
- efectivo / transferencia (manual payment methods): the operator must answer
  "did the customer pay?" unless the order is already marked paid.
    payment_confirmed=None  -> PaymentConfirmationRequired, nothing changes
    payment_confirmed=False -> LifecycleError, order stays in_progress
    payment_confirmed=True  -> completed, and the paid flag is set
- tarjeta / qr: no confirmation step.
- domicilio orders notify the customer after the transition is committed.
  The notification is best-effort: its failure is logged, never raised.

PAID FLAG: kept in payment_flags, independent of status. Terminal orders are
shown as settled regardless of the flag (display_paid).

DELETE: allowed from any state, behind an explicit confirmation
(confirmed=True). It is a store operation, not a transition.
================================================================================
"""

from __future__ import annotations

from flask import current_app

from ..extensions import db
from ..models import Order
from storefront.time_utils import utcnow
from . import payment_flags
from .concurrency import lock_for_update, run_with_retry
from .notification_service import notify_order_dispatched
from .tenant_service import TenantAccessError


STATUS_PENDING = "pending"
STATUS_IN_PROGRESS = "in_progress"
STATUS_COMPLETED = "completed"
STATUS_CANCELLED = "cancelled"

VALID_STATUSES = {STATUS_PENDING, STATUS_IN_PROGRESS, STATUS_COMPLETED, STATUS_CANCELLED}
TERMINAL_STATUSES = {STATUS_COMPLETED, STATUS_CANCELLED}

DELIVERY_MOSTRADOR = "mostrador"
DELIVERY_DOMICILIO = "domicilio"
DELIVERY_MESA = "mesa"
VALID_DELIVERY_TYPES = {DELIVERY_MOSTRADOR, DELIVERY_DOMICILIO, DELIVERY_MESA}

PAYMENT_EFECTIVO = "efectivo"
PAYMENT_TARJETA = "tarjeta"
PAYMENT_QR = "qr"
PAYMENT_TRANSFERENCIA = "transferencia"
VALID_PAYMENT_METHODS = {PAYMENT_EFECTIVO, PAYMENT_TARJETA, PAYMENT_QR, PAYMENT_TRANSFERENCIA}
MANUAL_PAYMENT_METHODS = {PAYMENT_EFECTIVO, PAYMENT_TRANSFERENCIA}

_TRANSITIONS = {
    (STATUS_PENDING, STATUS_IN_PROGRESS),
    (STATUS_IN_PROGRESS, STATUS_COMPLETED),
    (STATUS_PENDING, STATUS_CANCELLED),
    (STATUS_IN_PROGRESS, STATUS_CANCELLED),
}


class LifecycleError(ValueError):
    """
    Raised when an invalid lifecycle transition is attempted.

    This is a domain error: the operator asked for something the state
    machine does not allow.
    """
    pass


class PaymentConfirmationRequired(LifecycleError):
    """Finalize needs the operator's answer to "did the customer pay?"."""

    def __init__(self, order_id: int, payment_method: str):
        super().__init__(
            f"Order {order_id} is paid by {payment_method}: confirm the customer paid before finalizing"
        )
        self.order_id = order_id
        self.payment_method = payment_method


class ConfirmationRequired(Exception):
    """A destructive action was requested without explicit confirmation."""
    pass


def validate_status(status: str) -> None:
    if status not in VALID_STATUSES:
        raise LifecycleError(
            f"Invalid status '{status}'. Must be one of: {', '.join(sorted(VALID_STATUSES))}"
        )


def is_terminal(status: str) -> bool:
    return status in TERMINAL_STATUSES


def can_transition(from_status: str, to_status: str) -> bool:
    validate_status(from_status)
    validate_status(to_status)
    return (from_status, to_status) in _TRANSITIONS


def requires_payment_confirmation(order, is_paid: bool) -> bool:
    return order.payment_method in MANUAL_PAYMENT_METHODS and not is_paid


def display_paid(order, is_paid: bool) -> bool:
    """Terminal orders count as settled for display, whatever the flag says."""
    return bool(is_paid) or is_terminal(order.status)


def _load_locked(tenant_id: int, order_id: int) -> Order:
    order = lock_for_update(
        db.session.query(Order).filter_by(id=order_id, tenant_id=tenant_id)
    ).first()
    if order is None:
        raise TenantAccessError(f"Order {order_id} not found")
    return order


def _require_transition(order: Order, to_status: str) -> None:
    if not can_transition(order.status, to_status):
        raise LifecycleError(
            f"Cannot move order {order.id} from '{order.status}' to '{to_status}'"
        )


def take_order(tenant_id: int, order_id: int) -> Order:
    """pending -> in_progress."""
    def _op():
        order = _load_locked(tenant_id, order_id)
        _require_transition(order, STATUS_IN_PROGRESS)
        order.status = STATUS_IN_PROGRESS
        db.session.commit()
        return order

    return run_with_retry(_op)


def finalize(tenant_id: int, order_id: int, *, payment_confirmed: bool | None = None) -> Order:
    """in_progress -> completed, with the manual-payment prompt where needed."""
    def _op():
        order = _load_locked(tenant_id, order_id)
        _require_transition(order, STATUS_COMPLETED)

        if requires_payment_confirmation(order, payment_flags.get_flag(tenant_id, order.id)):
            if payment_confirmed is None:
                raise PaymentConfirmationRequired(order.id, order.payment_method)
            if not payment_confirmed:
                raise LifecycleError(
                    f"Order {order.id} cannot be completed until the customer pays"
                )
            payment_flags.set_flag(tenant_id, order.id, True, commit=False)

        order.status = STATUS_COMPLETED
        order.completed_at = utcnow()
        db.session.commit()
        return order

    order = run_with_retry(_op)

    if order.delivery_type == DELIVERY_DOMICILIO:
        _notify_dispatched(order)
    return order


def _notify_dispatched(order: Order) -> None:
    try:
        notify_order_dispatched(order)
    except Exception:
        current_app.logger.warning(
            "Dispatch notification for order %s failed; status change kept", order.id, exc_info=True
        )


def cancel(tenant_id: int, order_id: int) -> Order:
    """pending|in_progress -> cancelled. No payment prompt."""
    def _op():
        order = _load_locked(tenant_id, order_id)
        _require_transition(order, STATUS_CANCELLED)
        order.status = STATUS_CANCELLED
        order.cancelled_at = utcnow()
        db.session.commit()
        return order

    return run_with_retry(_op)


def set_status(tenant_id: int, order_id: int, status: str, *, payment_confirmed: bool | None = None) -> Order:
    """Dispatch a requested target status to the matching transition."""
    validate_status(status)
    if status == STATUS_IN_PROGRESS:
        return take_order(tenant_id, order_id)
    if status == STATUS_COMPLETED:
        return finalize(tenant_id, order_id, payment_confirmed=payment_confirmed)
    if status == STATUS_CANCELLED:
        return cancel(tenant_id, order_id)
    raise LifecycleError("Orders cannot be moved back to 'pending'")


def mark_paid(tenant_id: int, order_id: int, paid: bool = True) -> bool:
    """Set the payment-confirmed flag; status is not touched."""
    exists = db.session.query(Order.id).filter_by(id=order_id, tenant_id=tenant_id).first()
    if exists is None:
        raise TenantAccessError(f"Order {order_id} not found")
    payment_flags.set_flag(tenant_id, order_id, paid)
    return bool(paid)


def delete_order(tenant_id: int, order_id: int, *, confirmed: bool = False) -> None:
    """Delete an order in any state; requires confirmed=True."""
    if not confirmed:
        raise ConfirmationRequired(f"Deleting order {order_id} requires confirmation")

    def _op():
        order = _load_locked(tenant_id, order_id)
        db.session.delete(order)
        payment_flags.clear_flag(tenant_id, order_id, commit=False)
        db.session.commit()

    run_with_retry(_op)
