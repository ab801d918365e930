# Overview: Flask API routes for the storefront catalog and its administration.

# backend/storefront/routes/catalog.py
"""Catalog API routes (tenant-scoped)"""

from flask import Blueprint, request, jsonify, current_app

from ..decorators import require_tenant
from ..services import catalog_service
from ..services.catalog_service import CatalogError
from ..services.tenant_service import TenantAccessError
from ..validation import ValidationError, ConflictError


catalog_bp = Blueprint("catalog", __name__, url_prefix="/api/tenants/<int:tenant_id>")


@catalog_bp.get("/catalog")
@require_tenant
def get_catalog_route(tenant_id: int):
    """Active categories and products, each with stock flags and offered extras."""
    try:
        return jsonify(catalog_service.storefront_catalog(tenant_id)), 200
    except Exception:
        current_app.logger.exception("Failed to load catalog")
        return jsonify({"error": "Internal server error"}), 500


@catalog_bp.post("/extra-groups")
@require_tenant
def create_extra_group_route(tenant_id: int):
    try:
        group = catalog_service.create_extra_group(tenant_id, request.get_json(silent=True))
        return jsonify({"extra_group": group.to_dict()}), 201
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except Exception:
        current_app.logger.exception("Failed to create extra group")
        return jsonify({"error": "Internal server error"}), 500


@catalog_bp.patch("/extra-groups/<int:group_id>")
@require_tenant
def update_extra_group_route(tenant_id: int, group_id: int):
    try:
        group = catalog_service.update_extra_group(tenant_id, group_id, request.get_json(silent=True))
        return jsonify({"extra_group": group.to_dict()}), 200
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except TenantAccessError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to update extra group")
        return jsonify({"error": "Internal server error"}), 500


@catalog_bp.delete("/extra-groups/<int:group_id>")
@require_tenant
def delete_extra_group_route(tenant_id: int, group_id: int):
    try:
        catalog_service.delete_extra_group(tenant_id, group_id)
        return jsonify({"deleted": group_id}), 200
    except TenantAccessError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to delete extra group")
        return jsonify({"error": "Internal server error"}), 500


@catalog_bp.post("/extras")
@require_tenant
def create_extra_route(tenant_id: int):
    """
    Create an extra in a group.

    Body: {"group_id", "name", "price"?, "options"?: [{"label", "price"}]}
    """
    try:
        extra = catalog_service.create_extra(tenant_id, request.get_json(silent=True))
        return jsonify({"extra": extra.to_dict()}), 201
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except TenantAccessError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to create extra")
        return jsonify({"error": "Internal server error"}), 500


@catalog_bp.put("/products/<int:product_id>/extra-groups")
@require_tenant
def set_product_extra_groups_route(tenant_id: int, product_id: int):
    try:
        data = request.get_json(silent=True) or {}
        product = catalog_service.set_product_extra_groups(tenant_id, product_id, data.get("extra_group_ids"))
        return jsonify({"product": product.to_dict()}), 200
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except TenantAccessError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to set product extra groups")
        return jsonify({"error": "Internal server error"}), 500


@catalog_bp.delete("/products/<int:product_id>")
@require_tenant
def remove_product_route(tenant_id: int, product_id: int):
    try:
        product = catalog_service.remove_product(tenant_id, product_id)
        return jsonify({"product": product.to_dict()}), 200
    except TenantAccessError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to remove product")
        return jsonify({"error": "Internal server error"}), 500


@catalog_bp.put("/categories/<int:category_id>/stock")
@require_tenant
def set_category_stock_route(tenant_id: int, category_id: int):
    """Body: {"max_stock": int | null}; current_stock restarts at max_stock."""
    try:
        data = request.get_json(silent=True) or {}
        if "max_stock" not in data:
            return jsonify({"error": "max_stock required"}), 400
        category = catalog_service.set_category_stock(tenant_id, category_id, data["max_stock"])
        return jsonify({"category": category.to_dict()}), 200
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except TenantAccessError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to set category stock")
        return jsonify({"error": "Internal server error"}), 500


@catalog_bp.post("/categories/<int:category_id>/restock")
@require_tenant
def restock_category_route(tenant_id: int, category_id: int):
    try:
        category = catalog_service.restock_category(tenant_id, category_id)
        return jsonify({"category": category.to_dict()}), 200
    except CatalogError as e:
        return jsonify({"error": str(e)}), 409
    except TenantAccessError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to restock category")
        return jsonify({"error": "Internal server error"}), 500
