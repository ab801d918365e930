from __future__ import annotations

from ..extensions import db
from storefront.time_utils import to_utc_z


def _money(value):
    return str(value) if value is not None else None


product_extra_groups = db.Table(
    "product_extra_groups",
    db.Column("product_id", db.Integer, db.ForeignKey("products.id", ondelete="CASCADE"), primary_key=True),
    db.Column("group_id", db.Integer, db.ForeignKey("extra_groups.id", ondelete="CASCADE"), primary_key=True),
)


class Category(db.Model):
    """
    Product category with an optional shared stock pool.

    STOCK POOL:
    - max_stock NULL: the category is not tracked (unlimited)
    - current_stock is shared by every product in the category; one unit of
      any of them consumes one unit of the pool
    """
    __tablename__ = "categories"
    __table_args__ = (
        db.UniqueConstraint("tenant_id", "name", name="uq_categories_tenant_name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    tenant_id = db.Column(db.Integer, db.ForeignKey("tenants.id"), nullable=False, index=True)
    name = db.Column(db.String(120), nullable=False)
    sort_order = db.Column(db.Integer, nullable=False, default=0)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    max_stock = db.Column(db.Integer, nullable=True)
    current_stock = db.Column(db.Integer, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def __repr__(self) -> str:
        return f"<Category id={self.id} name={self.name!r} current_stock={self.current_stock}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "tenant_id": self.tenant_id,
            "name": self.name,
            "sort_order": self.sort_order,
            "is_active": self.is_active,
            "max_stock": self.max_stock,
            "current_stock": self.current_stock,
        }


class Product(db.Model):
    """
    Sellable product.

    stock NULL means unlimited. Products referenced by orders are
    soft-removed (is_active=False), order items keep their own snapshot.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.Index("ix_products_tenant_active", "tenant_id", "is_active"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    tenant_id = db.Column(db.Integer, db.ForeignKey("tenants.id"), nullable=False, index=True)
    category_id = db.Column(db.Integer, db.ForeignKey("categories.id"), nullable=True, index=True)

    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)
    price = db.Column(db.Numeric(12, 2), nullable=True)
    stock = db.Column(db.Integer, nullable=True)

    is_active = db.Column(db.Boolean, nullable=False, default=True)
    sort_order = db.Column(db.Integer, nullable=False, default=0)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    category = db.relationship("Category", backref=db.backref("products", lazy=True))
    extra_groups = db.relationship(
        "ExtraGroup",
        secondary=product_extra_groups,
        lazy="selectin",
        backref=db.backref("products", lazy=True),
    )

    def __repr__(self) -> str:
        return f"<Product id={self.id} name={self.name!r} tenant_id={self.tenant_id}>"

    @property
    def extra_group_ids(self) -> list[int]:
        return [g.id for g in self.extra_groups]

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "tenant_id": self.tenant_id,
            "category_id": self.category_id,
            "name": self.name,
            "description": self.description,
            "price": _money(self.price),
            "stock": self.stock,
            "is_active": self.is_active,
            "sort_order": self.sort_order,
            "extra_group_ids": self.extra_group_ids,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class ExtraGroup(db.Model):
    """Group of extras with selection-count rules (min/max, required)."""
    __tablename__ = "extra_groups"
    __table_args__ = (
        db.CheckConstraint(
            "min_selections >= 0 AND max_selections >= min_selections",
            name="ck_extra_groups_selection_bounds",
        ),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    tenant_id = db.Column(db.Integer, db.ForeignKey("tenants.id"), nullable=False, index=True)
    name = db.Column(db.String(120), nullable=False)
    description = db.Column(db.String(255), nullable=True)

    min_selections = db.Column(db.Integer, nullable=False, default=0)
    max_selections = db.Column(db.Integer, nullable=False, default=10)
    is_required = db.Column(db.Boolean, nullable=False, default=False)

    sort_order = db.Column(db.Integer, nullable=False, default=0)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    def __repr__(self) -> str:
        return (
            f"<ExtraGroup id={self.id} name={self.name!r} "
            f"min={self.min_selections} max={self.max_selections}>"
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "tenant_id": self.tenant_id,
            "name": self.name,
            "description": self.description,
            "min_selections": self.min_selections,
            "max_selections": self.max_selections,
            "is_required": self.is_required,
            "sort_order": self.sort_order,
            "is_active": self.is_active,
        }


class Extra(db.Model):
    """
    Add-on inside an ExtraGroup.

    Either a flat toggle (has_options False, contributes its own price) or an
    options-bearing extra (exactly one option chosen, contributes the
    option's price).
    """
    __tablename__ = "extras"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    tenant_id = db.Column(db.Integer, db.ForeignKey("tenants.id"), nullable=False, index=True)
    group_id = db.Column(db.Integer, db.ForeignKey("extra_groups.id", ondelete="CASCADE"), nullable=False, index=True)

    name = db.Column(db.String(120), nullable=False)
    description = db.Column(db.String(255), nullable=True)
    price = db.Column(db.Numeric(12, 2), nullable=False, default=0)

    has_options = db.Column(db.Boolean, nullable=False, default=False)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    sort_order = db.Column(db.Integer, nullable=False, default=0)

    group = db.relationship("ExtraGroup", backref=db.backref("extras", lazy=True, cascade="all, delete-orphan"))
    options = db.relationship(
        "ExtraOption",
        order_by="ExtraOption.sort_order",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<Extra id={self.id} name={self.name!r} group_id={self.group_id}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "tenant_id": self.tenant_id,
            "group_id": self.group_id,
            "name": self.name,
            "description": self.description,
            "price": _money(self.price),
            "has_options": self.has_options,
            "is_active": self.is_active,
            "sort_order": self.sort_order,
            "options": [o.to_dict() for o in self.options],
        }


class ExtraOption(db.Model):
    __tablename__ = "extra_options"
    __table_args__ = (
        db.CheckConstraint("price >= 0", name="ck_extra_options_price"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    extra_id = db.Column(db.Integer, db.ForeignKey("extras.id", ondelete="CASCADE"), nullable=False, index=True)
    label = db.Column(db.String(120), nullable=False)
    price = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    sort_order = db.Column(db.Integer, nullable=False, default=0)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "label": self.label,
            "price": _money(self.price),
            "sort_order": self.sort_order,
        }
