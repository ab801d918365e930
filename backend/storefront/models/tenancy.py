from __future__ import annotations

from ..extensions import db
from storefront.time_utils import to_utc_z


class Tenant(db.Model):
    """
    Multi-tenant root: every restaurant is a Tenant.

    DESIGN:
    - Catalog, orders, settings and payment flags all carry tenant_id
    - All queries must be scoped by tenant_id
    - Tenants are deactivated, never hard-deleted while orders exist
    """
    __tablename__ = "tenants"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    slug = db.Column(db.String(64), nullable=False, unique=True, index=True)

    currency = db.Column(db.String(8), nullable=False, default="ARS")
    # Contact channel shown to customers (WhatsApp number)
    contact_phone = db.Column(db.String(32), nullable=True)

    is_active = db.Column(db.Boolean, nullable=False, default=True, index=True)

    created_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
    )

    def __repr__(self) -> str:
        return f"<Tenant id={self.id} slug={self.slug!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "slug": self.slug,
            "currency": self.currency,
            "contact_phone": self.contact_phone,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
        }


class TenantSetting(db.Model):
    """
    Durable key-value settings per tenant (delivery, pause, payment methods).

    Values are JSON documents; the shape of each key is owned by
    store_config_service.
    """
    __tablename__ = "tenant_settings"
    __table_args__ = (
        db.UniqueConstraint("tenant_id", "key", name="uq_tenant_settings_key"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    tenant_id = db.Column(db.Integer, db.ForeignKey("tenants.id"), nullable=False, index=True)
    key = db.Column(db.String(128), nullable=False)
    value = db.Column(db.JSON, nullable=True)

    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    tenant = db.relationship("Tenant", backref=db.backref("settings", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "tenant_id": self.tenant_id,
            "key": self.key,
            "value": self.value,
            "updated_at": to_utc_z(self.updated_at),
        }
