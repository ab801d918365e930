# Overview: Line pricing for configured products; pure arithmetic, never raises.

"""
Pricing Engine

    unit_price = base_price + sum(flat extra prices) + sum(chosen option prices)
    line_total = unit_price * quantity

Amounts are Decimal. Nothing is rounded per line: rounding to the currency
minor unit happens once, when an order total is aggregated (round_money).

The extras snapshot is a frozen {id, name, price} list. Option extras are
named "<extra name>: <option label>" so the snapshot stays readable once it
is detached from the live catalog, and a line can be re-derived from its
snapshot alone (reprice).
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Iterable

from .extras_catalog import ExtrasCatalog
from .selection_validator import Selections

ZERO = Decimal("0")


def to_money(value) -> Decimal:
    """Coerce to Decimal; missing, non-numeric, NaN or infinite values become 0."""
    if value is None or isinstance(value, bool):
        return ZERO
    if isinstance(value, Decimal):
        amount = value
    else:
        try:
            amount = Decimal(str(value).strip())
        except (InvalidOperation, ValueError):
            return ZERO
    if not amount.is_finite():
        return ZERO
    return amount


def round_money(amount, places: int = 2) -> Decimal:
    exponent = Decimal(1).scaleb(-places)
    return to_money(amount).quantize(exponent, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class ExtraSnapshot:
    id: int
    name: str
    price: Decimal

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name, "price": str(self.price)}

    @classmethod
    def from_dict(cls, data: dict) -> "ExtraSnapshot":
        return cls(id=data.get("id"), name=data.get("name") or "", price=to_money(data.get("price")))


@dataclass(frozen=True)
class PricedLine:
    base_price: Decimal
    extras_total: Decimal
    unit_price: Decimal
    quantity: int
    line_total: Decimal
    extras_snapshot: tuple

    def to_dict(self) -> dict:
        return {
            "base_price": str(self.base_price),
            "extras_total": str(self.extras_total),
            "unit_price": str(self.unit_price),
            "quantity": self.quantity,
            "line_total": str(self.line_total),
            "extras": [s.to_dict() for s in self.extras_snapshot],
        }


def _quantity(value) -> int:
    try:
        qty = int(value)
    except (TypeError, ValueError):
        return 0
    return max(0, qty)


def reprice(base_price, snapshot: Iterable[ExtraSnapshot], quantity) -> PricedLine:
    """Derive a priced line from a stored snapshot, without the live catalog."""
    snapshot = tuple(snapshot)
    base = to_money(base_price)
    extras_total = sum((to_money(s.price) for s in snapshot), ZERO)
    unit_price = base + extras_total
    qty = _quantity(quantity)
    return PricedLine(
        base_price=base,
        extras_total=extras_total,
        unit_price=unit_price,
        quantity=qty,
        line_total=unit_price * qty,
        extras_snapshot=snapshot,
    )


class PricingEngine:
    def __init__(self, catalog: ExtrasCatalog):
        self.catalog = catalog

    def snapshot(self, selections: Selections) -> tuple:
        """Flat extras first, then option extras; each in catalog display order."""
        flat = []
        for extra_id in selections.toggled:
            extra = self.catalog.extra(extra_id)
            if extra is None or self.catalog.is_option_extra(extra):
                continue
            flat.append(extra)

        chosen = []
        for extra_id, option_id in selections.options.items():
            extra = self.catalog.extra(extra_id)
            option = self.catalog.option(extra, option_id)
            if option is None:
                continue
            chosen.append((extra, option))

        order = self._display_order()
        flat.sort(key=lambda e: order.get(e.id, (0, 0, 0)))
        chosen.sort(key=lambda pair: order.get(pair[0].id, (0, 0, 0)))

        entries = [ExtraSnapshot(e.id, e.name, to_money(e.price)) for e in flat]
        entries.extend(
            ExtraSnapshot(e.id, f"{e.name}: {o.label}", to_money(o.price)) for e, o in chosen
        )
        return tuple(entries)

    def price(self, product, selections: Selections, quantity) -> PricedLine:
        return reprice(getattr(product, "price", None), self.snapshot(selections), quantity)

    def _display_order(self) -> dict:
        order = {}
        for gi, group in enumerate(self.catalog.active_groups()):
            for ei, extra in enumerate(self.catalog.extras_for_group(group.id)):
                order[extra.id] = (gi, ei, extra.id)
        return order
