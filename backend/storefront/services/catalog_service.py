# Overview: Tenant-scoped catalog administration (extras, groups, stock pools) and the storefront view.

"""
Catalog Service

MULTI-TENANT: every write is scoped by tenant_id; rows of another tenant are
reported as missing (TenantAccessError).

- Extra groups: create / patch / delete, with 0 <= min <= max enforced here
  and by the table's check constraint.
- Extras: created inside a group, optionally with an ordered option list
  (has_options is derived from the presence of options).
- Products: extra groups attached per product; removal is soft (is_active)
  so order items keep pointing at something meaningful.
- Category stock pools: setting max_stock resets current_stock to it;
  restock refills current_stock to max_stock.
"""

from __future__ import annotations

from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import Category, Extra, ExtraGroup, ExtraOption, Product
from ..validation import (
    ConflictError,
    ModelValidationPolicy,
    ValidationError,
    enforce_rules_extra_group,
    enforce_rules_price,
    enforce_rules_stock,
    validate_payload,
)
from . import stock_governor
from .extras_catalog import ExtrasCatalog
from .tenant_service import require_owned


class CatalogError(Exception):
    """Raised for catalog operations that are valid input but not allowed."""
    pass


EXTRA_GROUP_POLICY = ModelValidationPolicy(
    writable_fields={"name", "description", "min_selections", "max_selections", "is_required", "sort_order", "is_active"},
    required_on_create={"name"},
)

EXTRA_POLICY = ModelValidationPolicy(
    writable_fields={"group_id", "name", "description", "price", "sort_order", "is_active"},
    required_on_create={"group_id", "name"},
)

EXTRA_OPTION_POLICY = ModelValidationPolicy(
    writable_fields={"label", "price", "sort_order"},
    required_on_create={"label"},
)

CATEGORY_POLICY = ModelValidationPolicy(
    writable_fields={"name", "sort_order", "is_active", "max_stock"},
    required_on_create={"name"},
)

PRODUCT_POLICY = ModelValidationPolicy(
    writable_fields={"category_id", "name", "description", "price", "stock", "is_active", "sort_order"},
    required_on_create={"name"},
)


def _commit_or_conflict(message: str) -> None:
    try:
        db.session.commit()
    except IntegrityError as exc:
        db.session.rollback()
        raise ConflictError(message) from exc


# =============================================================================
# EXTRA GROUPS
# =============================================================================

def create_extra_group(tenant_id: int, payload: dict) -> ExtraGroup:
    patch = validate_payload(model=ExtraGroup, payload=payload, policy=EXTRA_GROUP_POLICY, partial=False)
    enforce_rules_extra_group(patch)

    group = ExtraGroup(tenant_id=tenant_id, **patch)
    db.session.add(group)
    _commit_or_conflict("Extra group violates selection bounds")
    return group


def update_extra_group(tenant_id: int, group_id: int, payload: dict) -> ExtraGroup:
    group = require_owned(ExtraGroup, group_id, tenant_id)
    patch = validate_payload(model=ExtraGroup, payload=payload, policy=EXTRA_GROUP_POLICY, partial=True)
    enforce_rules_extra_group(patch, current=group)

    for key, value in patch.items():
        setattr(group, key, value)
    _commit_or_conflict("Extra group violates selection bounds")
    return group


def delete_extra_group(tenant_id: int, group_id: int) -> None:
    """Delete a group with its extras; products simply stop offering it."""
    group = require_owned(ExtraGroup, group_id, tenant_id)
    db.session.delete(group)
    db.session.commit()


# =============================================================================
# EXTRAS
# =============================================================================

def _validated_options(options) -> list[dict]:
    if options is None:
        return []
    if not isinstance(options, list):
        raise ValidationError("options must be a list")

    cleaned = []
    for index, raw in enumerate(options):
        patch = validate_payload(model=ExtraOption, payload=raw, policy=EXTRA_OPTION_POLICY, partial=False)
        enforce_rules_price(patch)
        patch.setdefault("sort_order", index)
        cleaned.append(patch)
    return cleaned


def create_extra(tenant_id: int, payload: dict) -> Extra:
    """
    Create an extra in one of the tenant's groups.

    payload may carry "options": [{"label", "price", "sort_order"}]; a
    non-empty list makes it an options extra (its own price is then unused).
    """
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")
    payload = dict(payload)
    options = _validated_options(payload.pop("options", None))

    patch = validate_payload(model=Extra, payload=payload, policy=EXTRA_POLICY, partial=False)
    enforce_rules_price(patch)
    require_owned(ExtraGroup, patch["group_id"], tenant_id)

    extra = Extra(tenant_id=tenant_id, has_options=bool(options), **patch)
    if options:
        extra.price = 0
    extra.options = [ExtraOption(**o) for o in options]
    db.session.add(extra)
    db.session.commit()
    return extra


# =============================================================================
# CATEGORIES AND PRODUCTS
# =============================================================================

def create_category(tenant_id: int, payload: dict) -> Category:
    patch = validate_payload(model=Category, payload=payload, policy=CATEGORY_POLICY, partial=False)
    enforce_rules_stock(patch, "max_stock")
    category = Category(tenant_id=tenant_id, current_stock=patch.get("max_stock"), **patch)
    db.session.add(category)
    _commit_or_conflict(f"Category '{patch['name']}' already exists")
    return category


def create_product(tenant_id: int, payload: dict, extra_group_ids=None) -> Product:
    patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=False)
    enforce_rules_price(patch)
    enforce_rules_stock(patch, "stock")
    if patch.get("category_id") is not None:
        require_owned(Category, patch["category_id"], tenant_id)

    product = Product(tenant_id=tenant_id, **patch)
    db.session.add(product)
    if extra_group_ids:
        product.extra_groups = _owned_groups(tenant_id, extra_group_ids)
    db.session.commit()
    return product


def _owned_groups(tenant_id: int, group_ids) -> list[ExtraGroup]:
    if not isinstance(group_ids, (list, tuple)):
        raise ValidationError("extra_group_ids must be a list")
    ids = []
    for gid in group_ids:
        if not isinstance(gid, int) or isinstance(gid, bool):
            raise ValidationError("extra_group_ids must contain integers")
        if gid not in ids:
            ids.append(gid)
    return [require_owned(ExtraGroup, gid, tenant_id) for gid in ids]


def set_product_extra_groups(tenant_id: int, product_id: int, group_ids) -> Product:
    """Replace the groups offered on a product."""
    product = require_owned(Product, product_id, tenant_id)
    product.extra_groups = _owned_groups(tenant_id, group_ids)
    db.session.commit()
    return product


def remove_product(tenant_id: int, product_id: int) -> Product:
    """Soft-remove: the product disappears from the storefront, orders keep their snapshot."""
    product = require_owned(Product, product_id, tenant_id)
    product.is_active = False
    db.session.commit()
    return product


def set_category_stock(tenant_id: int, category_id: int, max_stock) -> Category:
    """Set (or clear, with None) the shared pool; current_stock restarts at max_stock."""
    category = require_owned(Category, category_id, tenant_id)
    patch = validate_payload(
        model=Category,
        payload={"max_stock": max_stock},
        policy=CATEGORY_POLICY,
        partial=True,
    )
    enforce_rules_stock(patch, "max_stock")
    category.max_stock = patch["max_stock"]
    category.current_stock = patch["max_stock"]
    db.session.commit()
    return category


def restock_category(tenant_id: int, category_id: int) -> Category:
    category = require_owned(Category, category_id, tenant_id)
    if category.max_stock is None:
        raise CatalogError(f"Category '{category.name}' has no stock pool to refill")
    category.current_stock = category.max_stock
    db.session.commit()
    return category


# =============================================================================
# STOREFRONT VIEW
# =============================================================================

def _limit_value(limit):
    return None if limit == stock_governor.UNLIMITED else int(limit)


def storefront_catalog(tenant_id: int) -> dict:
    """
    Active catalog as shown to shoppers: categories, products with stock
    flags, and the groups/extras offered on each product.
    """
    catalog = ExtrasCatalog.for_tenant(tenant_id)
    categories = (
        db.session.query(Category)
        .filter_by(tenant_id=tenant_id, is_active=True)
        .order_by(Category.sort_order.asc(), Category.id.asc())
        .all()
    )
    by_id = {c.id: c for c in categories}
    products = (
        db.session.query(Product)
        .filter_by(tenant_id=tenant_id, is_active=True)
        .order_by(Product.sort_order.asc(), Product.id.asc())
        .all()
    )

    items = []
    for product in products:
        if product.category_id is not None and product.category_id not in by_id:
            continue
        category = by_id.get(product.category_id)
        data = product.to_dict()
        data["stock_limit"] = _limit_value(stock_governor.raw_limit(product, category))
        data["is_out_of_stock"] = stock_governor.is_out_of_stock(product, category)
        data["limited_by_category"] = stock_governor.is_limited_by_category(product, category)
        data["extra_groups"] = [
            {**group.to_dict(), "extras": [e.to_dict() for e in catalog.extras_for_group(group.id)]}
            for group in catalog.groups_for_product(product)
        ]
        items.append(data)

    return {
        "categories": [c.to_dict() for c in categories],
        "products": items,
    }
