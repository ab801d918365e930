from __future__ import annotations

from ..extensions import db
from storefront.time_utils import to_utc_z


class Order(db.Model):
    """
    Customer order (document with a status lifecycle).

    WHY: Items are frozen snapshots (names and prices copied at checkout) so
    later catalog edits never rewrite what the customer bought.

    STATUS: pending -> in_progress -> completed, pending|in_progress -> cancelled.
    completed and cancelled are terminal (see order_lifecycle).
    """
    __tablename__ = "orders"
    __table_args__ = (
        db.Index("ix_orders_tenant_status_created", "tenant_id", "status", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    tenant_id = db.Column(db.Integer, db.ForeignKey("tenants.id"), nullable=False, index=True)

    status = db.Column(db.String(16), nullable=False, default="pending", index=True)
    delivery_type = db.Column(db.String(16), nullable=False)  # mostrador, domicilio, mesa
    payment_method = db.Column(db.String(16), nullable=False)  # efectivo, tarjeta, qr, transferencia

    customer_name = db.Column(db.String(120), nullable=False)
    customer_phone = db.Column(db.String(32), nullable=False)
    delivery_address = db.Column(db.String(255), nullable=True)
    delivery_notes = db.Column(db.Text, nullable=True)

    total = db.Column(db.Numeric(12, 2), nullable=False)
    currency = db.Column(db.String(8), nullable=False, default="ARS")

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )
    completed_at = db.Column(db.DateTime(timezone=True), nullable=True)
    cancelled_at = db.Column(db.DateTime(timezone=True), nullable=True)

    version_id = db.Column(db.Integer, nullable=False, default=1)

    items = db.relationship(
        "OrderItem",
        order_by="OrderItem.position",
        cascade="all, delete-orphan",
        lazy="selectin",
        backref="order",
    )
    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<Order id={self.id} status={self.status!r} tenant_id={self.tenant_id}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "tenant_id": self.tenant_id,
            "status": self.status,
            "delivery_type": self.delivery_type,
            "payment_method": self.payment_method,
            "customer_name": self.customer_name,
            "customer_phone": self.customer_phone,
            "delivery_address": self.delivery_address,
            "delivery_notes": self.delivery_notes,
            "total": str(self.total),
            "currency": self.currency,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
            "completed_at": to_utc_z(self.completed_at),
            "cancelled_at": to_utc_z(self.cancelled_at),
            "version_id": self.version_id,
            "items": [item.to_dict() for item in self.items],
        }


class OrderItem(db.Model):
    """Immutable line snapshot on an order."""
    __tablename__ = "order_items"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    position = db.Column(db.Integer, nullable=False, default=0)

    product_id = db.Column(db.Integer, db.ForeignKey("products.id", ondelete="SET NULL"), nullable=True)
    product_name = db.Column(db.String(255), nullable=False)

    unit_price = db.Column(db.Numeric(12, 2), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    line_total = db.Column(db.Numeric(12, 2), nullable=False)

    # [{"id": ..., "name": ..., "price": "..."}], copied from the cart line
    extras = db.Column(db.JSON, nullable=False, default=list)
    comment = db.Column(db.Text, nullable=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "order_id": self.order_id,
            "position": self.position,
            "product_id": self.product_id,
            "product_name": self.product_name,
            "unit_price": str(self.unit_price),
            "quantity": self.quantity,
            "line_total": str(self.line_total),
            "extras": list(self.extras or []),
            "comment": self.comment,
        }


class OrderPaymentFlag(db.Model):
    """
    Payment-confirmed flag per order, kept apart from the order status.

    Not a foreign key on purpose: it is a secondary key-value cache keyed by
    (tenant_id, order_id) and is written independently of status changes.
    """
    __tablename__ = "order_payment_flags"
    __table_args__ = (
        db.UniqueConstraint("tenant_id", "order_id", name="uq_order_payment_flags_order"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    tenant_id = db.Column(db.Integer, db.ForeignKey("tenants.id"), nullable=False, index=True)
    order_id = db.Column(db.Integer, nullable=False, index=True)

    is_paid = db.Column(db.Boolean, nullable=False, default=False)
    paid_at = db.Column(db.DateTime(timezone=True), nullable=True)
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    def to_dict(self) -> dict:
        return {
            "tenant_id": self.tenant_id,
            "order_id": self.order_id,
            "is_paid": self.is_paid,
            "paid_at": to_utc_z(self.paid_at),
        }
