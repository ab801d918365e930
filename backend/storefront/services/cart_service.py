# Overview: In-memory shopping cart; every mutation re-validates selections and stock.

"""
Cart Store

An ordered list of line items (product + quantity + frozen extras snapshot +
comment). Mutations are applied synchronously in call order.

RULES:
- add: rejected (no-op, with a reason) when a required group is unmet, the
  selections are not valid for the product, or quantity exceeds the
  effective stock limit. Every successful add creates a NEW line, even if an
  identical configuration is already in the cart.
- increment / decrement: quantity stepper on an existing line; decrement to
  zero removes the line, a zero-quantity line never exists.
- edit: re-validates with the edited line left out of the held counts, so
  its own quantity is not counted against itself but sibling lines are.

Rejections are values (CartRejection), never exceptions.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Mapping

from ..extensions import db
from ..models import Category, Product
from . import stock_governor
from .extras_catalog import ExtrasCatalog
from .pricing_engine import PricingEngine, ZERO, reprice
from .selection_validator import SelectionValidator, Selections

_UNSET = object()


@dataclass(frozen=True)
class CartRejection:
    code: str
    message: str
    details: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {"code": self.code, "message": self.message, "details": dict(self.details)}


@dataclass
class CartLine:
    line_id: str
    product_id: int
    product_name: str
    category_id: int | None
    base_price: Decimal
    quantity: int
    selections: Selections
    extras: tuple
    comment: str | None = None

    @property
    def priced(self):
        return reprice(self.base_price, self.extras, self.quantity)

    @property
    def unit_price(self) -> Decimal:
        return self.priced.unit_price

    @property
    def line_total(self) -> Decimal:
        return self.priced.line_total

    def to_dict(self) -> dict:
        return {
            "line_id": self.line_id,
            "product_id": self.product_id,
            "product_name": self.product_name,
            "quantity": self.quantity,
            "unit_price": str(self.unit_price),
            "line_total": str(self.line_total),
            "extras": [s.to_dict() for s in self.extras],
            "selections": self.selections.to_dict(),
            "comment": self.comment,
        }


@dataclass(frozen=True)
class CartResult:
    ok: bool
    line: CartLine | None = None
    rejection: CartRejection | None = None

    def to_dict(self) -> dict:
        return {
            "ok": self.ok,
            "line": self.line.to_dict() if self.line else None,
            "rejection": self.rejection.to_dict() if self.rejection else None,
        }


def _reject(code: str, message: str, **details) -> CartResult:
    return CartResult(False, None, CartRejection(code, message, details))


def _normalize_comment(comment) -> str | None:
    if comment is None:
        return None
    comment = str(comment).strip()
    return comment or None


def _valid_quantity(quantity) -> bool:
    return isinstance(quantity, int) and not isinstance(quantity, bool) and quantity >= 1


class CartStore:
    def __init__(
        self,
        products: Mapping[int, object],
        categories: Mapping[int, object],
        catalog: ExtrasCatalog,
    ):
        self.products = dict(products)
        self.categories = dict(categories)
        self.catalog = catalog
        self.validator = SelectionValidator(catalog)
        self.pricing = PricingEngine(catalog)
        self._lines: list[CartLine] = []

    @classmethod
    def for_tenant(cls, tenant_id: int) -> "CartStore":
        products = db.session.query(Product).filter_by(tenant_id=tenant_id).all()
        categories = db.session.query(Category).filter_by(tenant_id=tenant_id).all()
        return cls(
            {p.id: p for p in products},
            {c.id: c for c in categories},
            ExtrasCatalog.for_tenant(tenant_id),
        )

    @classmethod
    def from_payload(cls, tenant_id: int, items) -> tuple["CartStore", list[dict]]:
        """
        Rebuild a cart from client items:
        [{"product_id", "quantity", "toggled": [...], "options": {...}, "comment"}]

        Returns the cart and one entry per rejected item ({"index", **rejection}).
        """
        cart = cls.for_tenant(tenant_id)
        rejections = []
        for index, item in enumerate(items or []):
            if not isinstance(item, dict):
                rejections.append({"index": index, "code": "invalid_item", "message": "Item must be an object", "details": {}})
                continue
            try:
                selections = Selections.from_payload(item.get("toggled"), item.get("options"))
            except (TypeError, ValueError, AttributeError):
                rejections.append({"index": index, "code": "invalid_selection", "message": "Malformed selections", "details": {}})
                continue
            product_id = item.get("product_id")
            if isinstance(product_id, str) and product_id.strip().isdigit():
                product_id = int(product_id)
            result = cart.add(
                product_id,
                selections,
                item.get("quantity", 1),
                item.get("comment"),
            )
            if not result.ok:
                rejections.append({"index": index, **result.rejection.to_dict()})
        return cart, rejections

    # ------------------------------------------------------------------
    # Selectors
    # ------------------------------------------------------------------

    @property
    def lines(self) -> tuple:
        return tuple(self._lines)

    @property
    def item_count(self) -> int:
        return sum(line.quantity for line in self._lines)

    @property
    def total(self) -> Decimal:
        return sum((line.line_total for line in self._lines), ZERO)

    def is_empty(self) -> bool:
        return not self._lines

    def get_line(self, line_id: str) -> CartLine | None:
        for line in self._lines:
            if line.line_id == line_id:
                return line
        return None

    def quantity_held(self, product_id: int, exclude_line_id: str | None = None) -> int:
        return sum(
            line.quantity for line in self._lines
            if line.product_id == product_id and line.line_id != exclude_line_id
        )

    def category_quantity_held(self, category_id: int | None, exclude_line_id: str | None = None) -> int:
        if category_id is None:
            return 0
        return sum(
            line.quantity for line in self._lines
            if line.category_id == category_id and line.line_id != exclude_line_id
        )

    def limit_for(self, product, exclude_line_id: str | None = None):
        """Units still addable; exclude_line_id leaves one line (being edited) out of the held counts."""
        category = self.categories.get(product.category_id) if product.category_id is not None else None
        return stock_governor.effective_limit(
            product,
            category,
            held=self.quantity_held(product.id, exclude_line_id=exclude_line_id),
            category_held=self.category_quantity_held(product.category_id, exclude_line_id=exclude_line_id),
        )

    def to_order_lines(self) -> list[dict]:
        """Frozen line snapshots in cart order, ready to become order items."""
        return [
            {
                "product_id": line.product_id,
                "product_name": line.product_name,
                "unit_price": line.unit_price,
                "quantity": line.quantity,
                "line_total": line.line_total,
                "extras": [s.to_dict() for s in line.extras],
                "comment": line.comment,
            }
            for line in self._lines
        ]

    def to_dict(self) -> dict:
        return {
            "lines": [line.to_dict() for line in self._lines],
            "item_count": self.item_count,
            "total": str(self.total),
        }

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def _validate(self, product_id, selections: Selections, quantity, exclude_line_id: str | None = None):
        product = self.products.get(product_id)
        if product is None:
            return None, _reject("unknown_product", f"Product {product_id} not found", product_id=product_id)
        if not product.is_active:
            return None, _reject("inactive_product", f"'{product.name}' is not available", product_id=product_id)
        if not _valid_quantity(quantity):
            return None, _reject("invalid_quantity", "Quantity must be a whole number >= 1", quantity=quantity)

        groups = self.catalog.groups_for_product(product)
        problem = self.validator.check(groups, selections)
        if problem is not None:
            return None, _reject(problem.code, problem.message, group_id=problem.group_id)

        if not self.validator.all_groups_valid(groups, selections):
            unmet = [
                r.to_dict() for r in self.validator.unmet_requirements(groups, selections)
                if r.is_required
            ]
            return None, _reject("groups_unmet", "Required extras are missing", groups=unmet)

        category = self.categories.get(product.category_id) if product.category_id is not None else None
        if stock_governor.is_out_of_stock(product, category):
            return None, _reject("out_of_stock", f"'{product.name}' is out of stock", product_id=product.id)

        limit = self.limit_for(product, exclude_line_id=exclude_line_id)
        if quantity > limit:
            return None, _reject(
                "exceeds_stock",
                f"Only {limit} more of '{product.name}' available",
                product_id=product.id,
                requested=quantity,
                remaining=limit,
                limited_by_category=stock_governor.is_limited_by_category(product, category),
            )
        return product, None

    def quote(self, product_id, selections: Selections | None = None, quantity=1, line_id: str | None = None) -> dict:
        """
        What the detail editor shows for a proposed line, without mutating
        the cart: pricing, unmet group requirements, the effective limit and
        the rejection an add/edit would get (None when it would succeed).
        With line_id, the proposal replaces that line (edit semantics).
        """
        selections = selections or Selections()
        product = self.products.get(product_id)
        if product is None:
            return {"rejection": CartRejection("unknown_product", f"Product {product_id} not found").to_dict()}

        groups = self.catalog.groups_for_product(product)
        _, rejected = self._validate(product_id, selections, quantity, exclude_line_id=line_id)
        limit = self.limit_for(product, exclude_line_id=line_id)
        return {
            "product_id": product.id,
            "pricing": self.pricing.price(product, selections, quantity).to_dict(),
            "groups": [r.to_dict() for r in self.validator.unmet_requirements(groups, selections)],
            "all_groups_valid": self.validator.all_groups_valid(groups, selections),
            "effective_limit": None if limit == stock_governor.UNLIMITED else int(limit),
            "rejection": rejected.rejection.to_dict() if rejected is not None else None,
        }

    def add(self, product_id, selections: Selections | None = None, quantity=1, comment=None) -> CartResult:
        selections = selections or Selections()
        product, rejected = self._validate(product_id, selections, quantity)
        if rejected is not None:
            return rejected

        line = CartLine(
            line_id=uuid.uuid4().hex[:12],
            product_id=product.id,
            product_name=product.name,
            category_id=product.category_id,
            base_price=self.pricing.price(product, selections, quantity).base_price,
            quantity=quantity,
            selections=selections,
            extras=self.pricing.snapshot(selections),
            comment=_normalize_comment(comment),
        )
        self._lines.append(line)
        return CartResult(True, line)

    def increment(self, line_id: str) -> CartResult:
        line = self.get_line(line_id)
        if line is None:
            return _reject("unknown_line", f"Line {line_id} is not in the cart", line_id=line_id)

        product = self.products.get(line.product_id)
        if product is not None and self.limit_for(product) < 1:
            return _reject(
                "exceeds_stock",
                f"No more '{line.product_name}' available",
                product_id=line.product_id,
                requested=line.quantity + 1,
                remaining=0,
            )
        line.quantity += 1
        return CartResult(True, line)

    def decrement(self, line_id: str) -> CartResult:
        line = self.get_line(line_id)
        if line is None:
            return _reject("unknown_line", f"Line {line_id} is not in the cart", line_id=line_id)

        line.quantity -= 1
        if line.quantity <= 0:
            self._lines.remove(line)
            return CartResult(True, None)
        return CartResult(True, line)

    def remove(self, line_id: str) -> CartResult:
        line = self.get_line(line_id)
        if line is None:
            return _reject("unknown_line", f"Line {line_id} is not in the cart", line_id=line_id)
        self._lines.remove(line)
        return CartResult(True, None)

    def clear(self) -> None:
        self._lines.clear()

    def edit(self, line_id: str, selections: Selections, quantity, comment=_UNSET) -> CartResult:
        line = self.get_line(line_id)
        if line is None:
            return _reject("unknown_line", f"Line {line_id} is not in the cart", line_id=line_id)

        product, rejected = self._validate(line.product_id, selections, quantity, exclude_line_id=line.line_id)
        if rejected is not None:
            return rejected

        line.selections = selections
        line.extras = self.pricing.snapshot(selections)
        line.base_price = self.pricing.price(product, selections, quantity).base_price
        line.quantity = quantity
        if comment is not _UNSET:
            line.comment = _normalize_comment(comment)
        return CartResult(True, line)
