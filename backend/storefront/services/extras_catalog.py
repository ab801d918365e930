# Overview: Read-only view over a tenant's extra groups and extras.

"""
Extras Catalog

Holds the extras and the groups that own them, and answers the questions the
selection and pricing code needs: which groups a product offers, which
extras belong to a group (in display order), and lookups by id.

Inactive groups and extras are invisible here, so nothing downstream can
select or price them.

The catalog works over ORM rows, but only reads attributes, so transient
instances (or any object with the same attributes) work too.
"""

from __future__ import annotations

from typing import Iterable

from ..extensions import db
from ..models import ExtraGroup, Extra


def _display_key(row) -> tuple[int, int]:
    return (row.sort_order or 0, row.id or 0)


class ExtrasCatalog:
    def __init__(self, groups: Iterable = (), extras: Iterable = ()):
        self._groups = {g.id: g for g in groups if g.is_active is not False}
        self._extras = {
            e.id: e
            for e in extras
            if e.is_active is not False and e.group_id in self._groups
        }

    @classmethod
    def for_tenant(cls, tenant_id: int) -> "ExtrasCatalog":
        groups = db.session.query(ExtraGroup).filter_by(tenant_id=tenant_id, is_active=True).all()
        extras = db.session.query(Extra).filter_by(tenant_id=tenant_id, is_active=True).all()
        return cls(groups, extras)

    def group(self, group_id: int):
        return self._groups.get(group_id)

    def extra(self, extra_id: int):
        return self._extras.get(extra_id)

    def option(self, extra, option_id: int):
        """Return the option of an options-bearing extra, or None."""
        if extra is None or not extra.has_options:
            return None
        for opt in extra.options or []:
            if opt.id == option_id:
                return opt
        return None

    def active_groups(self, group_ids: Iterable[int] | None = None) -> list:
        if group_ids is None:
            groups = self._groups.values()
        else:
            groups = [self._groups[gid] for gid in group_ids if gid in self._groups]
        return sorted(groups, key=_display_key)

    def groups_for_product(self, product) -> list:
        group_ids = getattr(product, "extra_group_ids", None)
        if group_ids is None:
            group_ids = [g.id for g in getattr(product, "extra_groups", None) or []]
        return self.active_groups(group_ids)

    def extras_for_group(self, group_id: int) -> list:
        return sorted(
            (e for e in self._extras.values() if e.group_id == group_id),
            key=_display_key,
        )

    def is_option_extra(self, extra) -> bool:
        """Options-bearing extras with no options behave as flat toggles."""
        return bool(extra.has_options and extra.options)

    def __len__(self) -> int:
        return len(self._extras)
