# Overview: Flask API route that prices and validates a proposed cart line.

from flask import Blueprint, request, jsonify, current_app

from ..decorators import require_tenant
from ..services.cart_service import CartStore
from ..services.selection_validator import Selections


cart_bp = Blueprint("cart", __name__, url_prefix="/api/tenants/<int:tenant_id>/cart")


@cart_bp.post("/quote")
@require_tenant
def quote_route(tenant_id: int):
    """
    Price and validate one line as the detail editor configures it.

    Body:
        product_id, quantity, toggled: [extra_id], options: {extra_id: option_id},
        cart: [items already in the cart, same shape],
        editing_index: position in cart of the line being edited; that line is
            left out so only the other lines count against stock

    Returns pricing, unmet groups, the effective limit and the rejection an
    add would get (null when it would be accepted).
    """
    try:
        data = request.get_json(silent=True) or {}
        if "product_id" not in data:
            return jsonify({"error": "product_id required"}), 400

        try:
            selections = Selections.from_payload(data.get("toggled"), data.get("options"))
        except (TypeError, ValueError, AttributeError):
            return jsonify({"error": "Malformed selections"}), 400

        items = data.get("cart") or []
        if not isinstance(items, list):
            return jsonify({"error": "cart must be a list"}), 400
        editing_index = data.get("editing_index")
        if editing_index is not None:
            if not isinstance(editing_index, int) or isinstance(editing_index, bool) or not 0 <= editing_index < len(items):
                return jsonify({"error": "editing_index must point at a cart item"}), 400
            items = items[:editing_index] + items[editing_index + 1:]

        cart, rejected = CartStore.from_payload(tenant_id, items)
        if editing_index is not None:
            for entry in rejected:
                if entry["index"] >= editing_index:
                    entry["index"] += 1
        quote = cart.quote(data["product_id"], selections, data.get("quantity", 1))
        quote["cart"] = cart.to_dict()
        quote["cart_rejections"] = rejected
        return jsonify(quote), 200

    except Exception:
        current_app.logger.exception("Failed to quote cart line")
        return jsonify({"error": "Internal server error"}), 500
