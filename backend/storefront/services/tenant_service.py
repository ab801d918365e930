"""
Tenant Service: Tenant Validation and Scoping Helpers

WHY: Every catalog, order and settings operation is partitioned by tenant.
Routes resolve the tenant from the URL once, and services filter every
query by tenant_id; rows from another tenant are reported as missing, never
as forbidden (no existence leak).

USAGE:
    from storefront.services.tenant_service import require_tenant, require_owned

    tenant = require_tenant(tenant_id)
    order = require_owned(Order, order_id, tenant.id)
"""

from __future__ import annotations

from flask import current_app

from ..extensions import db
from ..models import Tenant


class TenantAccessError(Exception):
    """Raised when a tenant, or a row scoped to it, cannot be resolved."""
    pass


def require_tenant(tenant_id: int) -> Tenant:
    """Return the active tenant or raise TenantAccessError."""
    tenant = db.session.query(Tenant).filter_by(id=tenant_id).first()
    if tenant is None or not tenant.is_active:
        raise TenantAccessError(f"Tenant {tenant_id} not found")
    return tenant


def require_owned(model, row_id: int, tenant_id: int):
    """
    Load a tenant-scoped row by id.

    Rows that exist under a different tenant raise the same error as missing
    rows.
    """
    row = db.session.query(model).filter_by(id=row_id, tenant_id=tenant_id).first()
    if row is None:
        raise TenantAccessError(f"{model.__name__} {row_id} not found")
    return row


def create_tenant(name: str, slug: str, *, currency: str | None = None, contact_phone: str | None = None) -> Tenant:
    currency = currency or current_app.config.get("DEFAULT_CURRENCY", "ARS")
    tenant = Tenant(name=name, slug=slug, currency=currency, contact_phone=contact_phone, is_active=True)
    db.session.add(tenant)
    db.session.commit()
    return tenant
