# Overview: Flask API routes for per-tenant store settings (delivery, pause, payment methods).

from flask import Blueprint, request, jsonify, current_app

from ..decorators import require_tenant
from ..services import store_config_service
from ..services.optimistic_setting import SettingWriteError
from ..services.store_config_service import SettingsValidationError


settings_bp = Blueprint("settings", __name__, url_prefix="/api/tenants/<int:tenant_id>/settings")


def _write_failed(e: SettingWriteError):
    return jsonify({"error": str(e), "value": e.previous}), 503


@settings_bp.get("/delivery")
@require_tenant
def get_delivery_route(tenant_id: int):
    try:
        return jsonify({"delivery": store_config_service.get_delivery_config(tenant_id)}), 200
    except Exception:
        current_app.logger.exception("Failed to load delivery config")
        return jsonify({"error": "Internal server error"}), 500


@settings_bp.put("/delivery")
@require_tenant
def put_delivery_route(tenant_id: int):
    """Body: any subset of {"mostrador", "domicilio", "mesa"} booleans."""
    try:
        value = store_config_service.update_delivery_config(tenant_id, request.get_json(silent=True))
        return jsonify({"delivery": value}), 200
    except SettingsValidationError as e:
        return jsonify({"error": str(e)}), 400
    except SettingWriteError as e:
        return _write_failed(e)
    except Exception:
        current_app.logger.exception("Failed to update delivery config")
        return jsonify({"error": "Internal server error"}), 500


@settings_bp.get("/pause")
@require_tenant
def get_pause_route(tenant_id: int):
    try:
        return jsonify({"pause": store_config_service.get_pause_status(tenant_id)}), 200
    except Exception:
        current_app.logger.exception("Failed to load pause status")
        return jsonify({"error": "Internal server error"}), 500


@settings_bp.put("/pause")
@require_tenant
def put_pause_route(tenant_id: int):
    """Body: {"is_paused": bool, "message"?: str}."""
    try:
        data = request.get_json(silent=True) or {}
        if "is_paused" not in data:
            return jsonify({"error": "is_paused required"}), 400
        value = store_config_service.set_pause_status(tenant_id, data["is_paused"], data.get("message"))
        return jsonify({"pause": value}), 200
    except SettingsValidationError as e:
        return jsonify({"error": str(e)}), 400
    except SettingWriteError as e:
        return _write_failed(e)
    except Exception:
        current_app.logger.exception("Failed to update pause status")
        return jsonify({"error": "Internal server error"}), 500


@settings_bp.get("/payment-methods")
@require_tenant
def get_payment_methods_route(tenant_id: int):
    try:
        return jsonify({"payment_methods": store_config_service.get_payment_methods(tenant_id)}), 200
    except Exception:
        current_app.logger.exception("Failed to load payment methods")
        return jsonify({"error": "Internal server error"}), 500


@settings_bp.put("/payment-methods")
@require_tenant
def put_payment_methods_route(tenant_id: int):
    """Body: any subset of {"efectivo", "tarjeta", "qr", "transferencia"} booleans."""
    try:
        value = store_config_service.update_payment_methods(tenant_id, request.get_json(silent=True))
        return jsonify({"payment_methods": value}), 200
    except SettingsValidationError as e:
        return jsonify({"error": str(e)}), 400
    except SettingWriteError as e:
        return _write_failed(e)
    except Exception:
        current_app.logger.exception("Failed to update payment methods")
        return jsonify({"error": "Internal server error"}), 500
