# Overview: Selection-count rules for extra groups; pure predicates, no I/O.

"""
Selection Validator

RULES:
- A selection "qualifies" when a flat extra is toggled on, or when an
  options-bearing extra has an option chosen. Each extra counts at most once.
- is_group_valid: qualifying count >= group.min_selections
- can_select_more: qualifying count < group.max_selections
- all_groups_valid: every *required* group is valid. Non-required groups
  with unmet minimums block nothing (the UI may still show what is missing).

MUTATIONS:
- Turning something off always succeeds, even below the minimum.
- Turning something on is rejected once max_selections is reached, except
  when replacing the chosen option of an extra that already counts.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Mapping

from .extras_catalog import ExtrasCatalog


@dataclass(frozen=True)
class Selections:
    """Chosen extras for one line: flat toggles plus one option per options-extra."""
    toggled: frozenset = frozenset()
    options: Mapping[int, int] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, toggled: Iterable | None = None, options: Mapping | None = None) -> "Selections":
        if toggled is not None and not isinstance(toggled, (list, tuple, set, frozenset)):
            raise TypeError(f"toggled must be a list of extra ids, got {type(toggled).__name__}")
        return cls(
            toggled=frozenset(int(x) for x in (toggled or ())),
            options={int(k): int(v) for k, v in (options or {}).items() if v is not None},
        )

    def with_toggled(self, extra_id: int) -> "Selections":
        return Selections(self.toggled | {extra_id}, dict(self.options))

    def without_toggled(self, extra_id: int) -> "Selections":
        return Selections(self.toggled - {extra_id}, dict(self.options))

    def with_option(self, extra_id: int, option_id: int) -> "Selections":
        options = dict(self.options)
        options[extra_id] = option_id
        return Selections(self.toggled, options)

    def without_option(self, extra_id: int) -> "Selections":
        options = {k: v for k, v in self.options.items() if k != extra_id}
        return Selections(self.toggled, options)

    def is_empty(self) -> bool:
        return not self.toggled and not self.options

    def to_dict(self) -> dict:
        return {
            "toggled": sorted(self.toggled),
            "options": {str(k): v for k, v in sorted(self.options.items())},
        }


@dataclass(frozen=True)
class SelectionRejection:
    code: str
    message: str
    group_id: int | None = None


@dataclass(frozen=True)
class SelectionOutcome:
    accepted: bool
    selections: Selections
    reason: SelectionRejection | None = None


@dataclass(frozen=True)
class GroupRequirement:
    group_id: int
    name: str
    min_selections: int
    selected: int
    is_required: bool

    @property
    def remaining(self) -> int:
        return max(0, self.min_selections - self.selected)

    def to_dict(self) -> dict:
        return {
            "group_id": self.group_id,
            "name": self.name,
            "min_selections": self.min_selections,
            "selected": self.selected,
            "remaining": self.remaining,
            "is_required": self.is_required,
        }


class SelectionValidator:
    def __init__(self, catalog: ExtrasCatalog):
        self.catalog = catalog

    def _qualifies(self, extra, selections: Selections) -> bool:
        if self.catalog.is_option_extra(extra):
            option_id = selections.options.get(extra.id)
            return option_id is not None and self.catalog.option(extra, option_id) is not None
        return extra.id in selections.toggled

    def qualifying_count(self, group, selections: Selections) -> int:
        return sum(
            1 for extra in self.catalog.extras_for_group(group.id)
            if self._qualifies(extra, selections)
        )

    def is_group_valid(self, group, selections: Selections) -> bool:
        return self.qualifying_count(group, selections) >= (group.min_selections or 0)

    def can_select_more(self, group, selections: Selections) -> bool:
        return self.qualifying_count(group, selections) < (group.max_selections or 0)

    def all_groups_valid(self, groups: Iterable, selections: Selections) -> bool:
        return all(
            self.is_group_valid(group, selections)
            for group in groups
            if group.is_required
        )

    def unmet_requirements(self, groups: Iterable, selections: Selections) -> list[GroupRequirement]:
        unmet = []
        for group in groups:
            count = self.qualifying_count(group, selections)
            if count < (group.min_selections or 0):
                unmet.append(GroupRequirement(
                    group_id=group.id,
                    name=group.name,
                    min_selections=group.min_selections,
                    selected=count,
                    is_required=bool(group.is_required),
                ))
        return unmet

    def toggle_extra(self, selections: Selections, extra_id: int) -> SelectionOutcome:
        extra = self.catalog.extra(extra_id)
        if extra is None:
            return _rejected(selections, "unknown_extra", f"Extra {extra_id} is not available")
        if self.catalog.is_option_extra(extra):
            return _rejected(
                selections, "option_required",
                f"Extra '{extra.name}' requires choosing an option", extra.group_id,
            )

        if extra_id in selections.toggled:
            return SelectionOutcome(True, selections.without_toggled(extra_id))

        group = self.catalog.group(extra.group_id)
        if not self.can_select_more(group, selections):
            return _rejected(
                selections, "group_full",
                f"'{group.name}' allows at most {group.max_selections} selection(s)", group.id,
            )
        return SelectionOutcome(True, selections.with_toggled(extra_id))

    def choose_option(self, selections: Selections, extra_id: int, option_id: int | None) -> SelectionOutcome:
        """Choose (or with option_id=None, clear) the option of an options-bearing extra."""
        extra = self.catalog.extra(extra_id)
        if extra is None:
            return _rejected(selections, "unknown_extra", f"Extra {extra_id} is not available")

        if option_id is None:
            return SelectionOutcome(True, selections.without_option(extra_id))

        if not self.catalog.is_option_extra(extra):
            return _rejected(
                selections, "not_an_option_extra",
                f"Extra '{extra.name}' has no options", extra.group_id,
            )
        if self.catalog.option(extra, option_id) is None:
            return _rejected(
                selections, "unknown_option",
                f"Option {option_id} does not belong to '{extra.name}'", extra.group_id,
            )

        # Replacing an already-counted choice never adds to the group count
        if extra_id not in selections.options:
            group = self.catalog.group(extra.group_id)
            if not self.can_select_more(group, selections):
                return _rejected(
                    selections, "group_full",
                    f"'{group.name}' allows at most {group.max_selections} selection(s)", group.id,
                )
        return SelectionOutcome(True, selections.with_option(extra_id, option_id))

    def check(self, groups: Iterable, selections: Selections) -> SelectionRejection | None:
        """
        Verify selections that arrive whole (e.g. from a client payload).

        Every id must belong to one of the offered groups, chosen options must
        belong to their extra, and no group may exceed max_selections.
        """
        groups = list(groups)
        offered = {g.id for g in groups}

        for extra_id in selections.toggled:
            extra = self.catalog.extra(extra_id)
            if extra is None or extra.group_id not in offered:
                return SelectionRejection("unknown_extra", f"Extra {extra_id} is not offered for this product")
            if self.catalog.is_option_extra(extra):
                return SelectionRejection(
                    "option_required", f"Extra '{extra.name}' requires choosing an option", extra.group_id,
                )

        for extra_id, option_id in selections.options.items():
            extra = self.catalog.extra(extra_id)
            if extra is None or extra.group_id not in offered:
                return SelectionRejection("unknown_extra", f"Extra {extra_id} is not offered for this product")
            if self.catalog.option(extra, option_id) is None:
                return SelectionRejection(
                    "unknown_option", f"Option {option_id} does not belong to '{extra.name}'", extra.group_id,
                )

        for group in groups:
            if self.qualifying_count(group, selections) > (group.max_selections or 0):
                return SelectionRejection(
                    "group_full",
                    f"'{group.name}' allows at most {group.max_selections} selection(s)",
                    group.id,
                )
        return None


def _rejected(selections: Selections, code: str, message: str, group_id: int | None = None) -> SelectionOutcome:
    return SelectionOutcome(False, selections, SelectionRejection(code, message, group_id))
