# Overview: Apply one operation to many orders; partial failure is reported, never raised.

"""
Bulk Operation Runner

Each order id is an independent unit of work: it commits on its own and a
failure rolls back only that id. Successes are never undone because a later
id failed. The caller gets one outcome per id, in input order, and
on_complete(report) runs exactly once after every id has settled (the
single list refresh).

Operations:
    SetStatus(status)   -> order_lifecycle.set_status (payment prompt applies;
                           pass payment_confirmed to answer it for all ids)
    DeleteOrders()      -> order_lifecycle.delete_order(confirmed=True); the
                           caller's confirmation covers the whole batch
    MarkPaid(paid=True) -> payment flag write only
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Iterable

from flask import current_app

from ..extensions import db
from . import order_lifecycle

FULFILLED = "fulfilled"
REJECTED = "rejected"


@dataclass(frozen=True)
class SetStatus:
    status: str
    payment_confirmed: bool | None = None

    name = "set_status"

    def apply(self, tenant_id: int, order_id: int) -> None:
        order_lifecycle.set_status(
            tenant_id, order_id, self.status, payment_confirmed=self.payment_confirmed
        )


@dataclass(frozen=True)
class DeleteOrders:
    name = "delete"

    def apply(self, tenant_id: int, order_id: int) -> None:
        order_lifecycle.delete_order(tenant_id, order_id, confirmed=True)


@dataclass(frozen=True)
class MarkPaid:
    paid: bool = True

    name = "mark_paid"

    def apply(self, tenant_id: int, order_id: int) -> None:
        order_lifecycle.mark_paid(tenant_id, order_id, self.paid)


@dataclass(frozen=True)
class BulkOutcome:
    order_id: int
    outcome: str
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.outcome == FULFILLED

    def to_dict(self) -> dict:
        data = {"order_id": self.order_id, "outcome": self.outcome}
        if self.error is not None:
            data["error"] = self.error
        return data


@dataclass
class BulkReport:
    operation: str
    outcomes: list[BulkOutcome] = field(default_factory=list)

    @property
    def fulfilled(self) -> int:
        return sum(1 for o in self.outcomes if o.ok)

    @property
    def rejected(self) -> int:
        return sum(1 for o in self.outcomes if not o.ok)

    def to_dict(self) -> dict:
        return {
            "operation": self.operation,
            "fulfilled": self.fulfilled,
            "rejected": self.rejected,
            "outcomes": [o.to_dict() for o in self.outcomes],
        }


def operation_from_payload(data: dict):
    """Build an operation from {"operation": "set_status"|"delete"|"mark_paid", ...}."""
    kind = (data or {}).get("operation")
    if kind == SetStatus.name:
        status = data.get("status")
        if not isinstance(status, str):
            raise ValueError("set_status requires a 'status'")
        order_lifecycle.validate_status(status)
        confirmed = data.get("payment_confirmed")
        if confirmed is not None and not isinstance(confirmed, bool):
            raise ValueError("'payment_confirmed' must be true or false")
        return SetStatus(status, confirmed)
    if kind == DeleteOrders.name:
        if data.get("confirm") is not True:
            raise order_lifecycle.ConfirmationRequired("Bulk delete requires confirm=true")
        return DeleteOrders()
    if kind == MarkPaid.name:
        paid = data.get("paid", True)
        if not isinstance(paid, bool):
            raise ValueError("'paid' must be true or false")
        return MarkPaid(paid)
    raise ValueError(f"Unknown bulk operation '{kind}'")


def _unique(order_ids: Iterable[int]) -> list[int]:
    seen = set()
    result = []
    for oid in order_ids:
        if oid not in seen:
            seen.add(oid)
            result.append(oid)
    return result


def apply_to_many(
    tenant_id: int,
    order_ids: Iterable[int],
    operation,
    on_complete: Callable[[BulkReport], None] | None = None,
) -> BulkReport:
    report = BulkReport(operation=operation.name)

    for order_id in _unique(order_ids):
        try:
            operation.apply(tenant_id, order_id)
        except Exception as exc:
            db.session.rollback()
            current_app.logger.warning(
                "Bulk %s failed for order %s: %s", operation.name, order_id, exc
            )
            report.outcomes.append(BulkOutcome(order_id, REJECTED, str(exc) or exc.__class__.__name__))
        else:
            report.outcomes.append(BulkOutcome(order_id, FULFILLED))

    if on_complete is not None:
        on_complete(report)
    return report
