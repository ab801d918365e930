# Overview: Flask API routes for checkout and order operations; parses input and returns JSON responses.

# backend/storefront/routes/orders.py
"""Order API routes (tenant-scoped)"""

from flask import Blueprint, request, jsonify, current_app

from ..decorators import require_tenant
from ..services import order_service, order_lifecycle, bulk_operations
from ..services.cart_service import CartStore
from ..services.notification_service import build_dispatch_message, whatsapp_link
from ..services.order_lifecycle import LifecycleError, PaymentConfirmationRequired, ConfirmationRequired
from ..services.order_service import CustomerInfo, OrderError
from ..services.tenant_service import TenantAccessError
from storefront.time_utils import parse_iso_datetime


orders_bp = Blueprint("orders", __name__, url_prefix="/api/tenants/<int:tenant_id>/orders")


def _order_response(tenant_id: int, order_id: int, status_code: int = 200):
    order = order_service.get_order(tenant_id, order_id)
    return jsonify({"order": order}), status_code


@orders_bp.post("")
@require_tenant
def create_order_route(tenant_id: int):
    """
    Checkout.

    Body: {"items": [...cart items...], "customer": {"name", "phone", "address"?, "notes"?},
           "delivery_type", "payment_method"}

    Any rejected cart item fails the whole checkout with 400 and the per-item
    reasons; nothing is written.
    """
    try:
        data = request.get_json(silent=True) or {}
        items = data.get("items")
        if not isinstance(items, list):
            return jsonify({"error": "items must be a list"}), 400

        cart, rejections = CartStore.from_payload(tenant_id, items)
        if rejections:
            return jsonify({"error": "Some items cannot be ordered", "rejections": rejections}), 400

        order = order_service.create_order(
            tenant_id,
            cart,
            CustomerInfo.from_payload(data.get("customer")),
            data.get("delivery_type"),
            data.get("payment_method"),
        )
        return _order_response(tenant_id, order.id, 201)

    except OrderError as e:
        return jsonify({"error": str(e), "details": e.details}), 400
    except Exception:
        current_app.logger.exception("Failed to create order")
        return jsonify({"error": "Internal server error"}), 500


@orders_bp.get("")
@require_tenant
def list_orders_route(tenant_id: int):
    """Query: status, since (ISO-8601), limit."""
    try:
        since = None
        if request.args.get("since"):
            try:
                since = parse_iso_datetime(request.args.get("since"))
            except ValueError:
                return jsonify({"error": "since must be an ISO-8601 datetime"}), 400

        limit = request.args.get("limit", default=order_service.DEFAULT_LIST_LIMIT, type=int)
        orders = order_service.list_orders(
            tenant_id,
            status=request.args.get("status") or None,
            since=since,
            limit=limit,
        )
        return jsonify({"items": orders, "count": len(orders)}), 200

    except OrderError as e:
        return jsonify({"error": str(e), "details": e.details}), 400
    except Exception:
        current_app.logger.exception("Failed to list orders")
        return jsonify({"error": "Internal server error"}), 500


@orders_bp.get("/<int:order_id>")
@require_tenant
def get_order_route(tenant_id: int, order_id: int):
    try:
        return _order_response(tenant_id, order_id)
    except TenantAccessError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to get order")
        return jsonify({"error": "Internal server error"}), 500


@orders_bp.post("/<int:order_id>/take")
@require_tenant
def take_order_route(tenant_id: int, order_id: int):
    try:
        order_lifecycle.take_order(tenant_id, order_id)
        return _order_response(tenant_id, order_id)
    except TenantAccessError as e:
        return jsonify({"error": str(e)}), 404
    except LifecycleError as e:
        return jsonify({"error": str(e)}), 409
    except Exception:
        current_app.logger.exception("Failed to take order")
        return jsonify({"error": "Internal server error"}), 500


@orders_bp.post("/<int:order_id>/finalize")
@require_tenant
def finalize_order_route(tenant_id: int, order_id: int):
    """
    Body: {"payment_confirmed": true|false} (only needed for efectivo/transferencia).

    409 with "confirmation_required" when the operator still has to answer
    whether the customer paid.
    """
    try:
        data = request.get_json(silent=True) or {}
        confirmed = data.get("payment_confirmed")
        if confirmed is not None and not isinstance(confirmed, bool):
            return jsonify({"error": "payment_confirmed must be true or false"}), 400

        order = order_lifecycle.finalize(tenant_id, order_id, payment_confirmed=confirmed)
        body = {"order": order_service.get_order(tenant_id, order_id)}
        if order.delivery_type == order_lifecycle.DELIVERY_DOMICILIO:
            body["notification_link"] = whatsapp_link(order.customer_phone, build_dispatch_message(order))
        return jsonify(body), 200

    except TenantAccessError as e:
        return jsonify({"error": str(e)}), 404
    except PaymentConfirmationRequired as e:
        return jsonify({
            "error": str(e),
            "confirmation_required": True,
            "payment_method": e.payment_method,
        }), 409
    except LifecycleError as e:
        return jsonify({"error": str(e)}), 409
    except Exception:
        current_app.logger.exception("Failed to finalize order")
        return jsonify({"error": "Internal server error"}), 500


@orders_bp.post("/<int:order_id>/cancel")
@require_tenant
def cancel_order_route(tenant_id: int, order_id: int):
    try:
        order_lifecycle.cancel(tenant_id, order_id)
        return _order_response(tenant_id, order_id)
    except TenantAccessError as e:
        return jsonify({"error": str(e)}), 404
    except LifecycleError as e:
        return jsonify({"error": str(e)}), 409
    except Exception:
        current_app.logger.exception("Failed to cancel order")
        return jsonify({"error": "Internal server error"}), 500


@orders_bp.post("/<int:order_id>/mark-paid")
@require_tenant
def mark_paid_route(tenant_id: int, order_id: int):
    """Body: {"paid": true|false} (default true). Status is not changed."""
    try:
        data = request.get_json(silent=True) or {}
        paid = data.get("paid", True)
        if not isinstance(paid, bool):
            return jsonify({"error": "paid must be true or false"}), 400
        order_lifecycle.mark_paid(tenant_id, order_id, paid)
        return _order_response(tenant_id, order_id)
    except TenantAccessError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to mark order paid")
        return jsonify({"error": "Internal server error"}), 500


@orders_bp.delete("/<int:order_id>")
@require_tenant
def delete_order_route(tenant_id: int, order_id: int):
    """Requires ?confirm=true."""
    try:
        confirmed = request.args.get("confirm", "").lower() == "true"
        order_lifecycle.delete_order(tenant_id, order_id, confirmed=confirmed)
        return jsonify({"deleted": order_id}), 200
    except ConfirmationRequired as e:
        return jsonify({"error": str(e), "confirmation_required": True}), 400
    except TenantAccessError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to delete order")
        return jsonify({"error": "Internal server error"}), 500


@orders_bp.post("/bulk")
@require_tenant
def bulk_route(tenant_id: int):
    """
    Apply one operation to many orders.

    Body: {"order_ids": [...], "operation": "set_status"|"delete"|"mark_paid",
           "status"?, "payment_confirmed"?, "paid"?, "confirm"?}

    Always 200 once the operation is accepted; per-id failures are reported
    in the outcomes, with the refreshed order list attached once.
    """
    try:
        data = request.get_json(silent=True) or {}
        order_ids = data.get("order_ids")
        if not isinstance(order_ids, list) or not all(
            isinstance(i, int) and not isinstance(i, bool) for i in order_ids
        ):
            return jsonify({"error": "order_ids must be a list of integers"}), 400

        try:
            operation = bulk_operations.operation_from_payload(data)
        except ConfirmationRequired as e:
            return jsonify({"error": str(e), "confirmation_required": True}), 400
        except ValueError as e:
            return jsonify({"error": str(e)}), 400

        refreshed = {}

        def _refresh(report):
            refreshed["items"] = order_service.list_orders(tenant_id)

        report = bulk_operations.apply_to_many(tenant_id, order_ids, operation, on_complete=_refresh)
        return jsonify({"report": report.to_dict(), "orders": refreshed.get("items", [])}), 200

    except Exception:
        current_app.logger.exception("Failed to run bulk operation")
        return jsonify({"error": "Internal server error"}), 500
