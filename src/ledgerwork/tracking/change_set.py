"""
Identity map of the changes recorded during a single unit of work.
"""

from __future__ import annotations

import copy
from typing import Dict, Iterator, List, Optional, Tuple

from ..core.identity import Identifiable, Identifier, identifier_of
from .change import Change, EntityState

_APPLY_ORDER: Tuple[EntityState, ...] = (EntityState.NEW, EntityState.DIRTY, EntityState.DELETED)


class ChangeSet:
    """
    Ledger of everything registered during one unit of work.

    NEW, DIRTY and DELETED changes accumulate per identifier in registration
    order; registering the same entity under another state adds a change
    instead of replacing the earlier one. CLEAN entities live in a separate
    map holding one baseline per identifier, where the latest registration
    wins.

    Clean entities are stored by reference. Mutating an object after
    registering it as clean mutates the baseline too, so callers that need
    the pre-mutation state for delta computation must register a copy, or
    construct the change set with ``copy_clean=True``.
    """

    def __init__(self, *, copy_clean: bool = False) -> None:
        self.copy_clean = copy_clean
        self._changes: Dict[Identifier, List[Change]] = {}
        self._clean: Dict[Identifier, Identifiable] = {}

    # Registration methods ----------------------------------------------
    def register_change(self, change: Change) -> "ChangeSet":
        if change.is_clean:
            entity = copy.deepcopy(change.entity) if self.copy_clean else change.entity
            self._clean[identifier_of(entity)] = entity
            return self

        bucket = self._changes.setdefault(change.identifier, [])
        if change not in bucket:
            bucket.append(change)
        return self

    def register_new(self, entity: Identifiable) -> "ChangeSet":
        """Register an entity that does not exist in the backend yet."""
        return self.register_change(Change(entity, EntityState.NEW))

    def register_dirty(self, entity: Identifiable) -> "ChangeSet":
        """Register an entity in its state after an update."""
        return self.register_change(Change(entity, EntityState.DIRTY))

    def register_deleted(self, entity: Identifiable) -> "ChangeSet":
        """Register an entity for removal."""
        return self.register_change(Change(entity, EntityState.DELETED))

    def register_clean(self, entity: Identifiable) -> "ChangeSet":
        """
        Register an entity as freshly read from the backend, overwriting any
        previous baseline for its identifier. No copy is made unless the
        change set was built with ``copy_clean=True``.
        """
        return self.register_change(Change(entity, EntityState.CLEAN))

    # Lookup ------------------------------------------------------------
    def find_clean(self, identifier: Identifier) -> Optional[Identifiable]:
        return self._clean.get(identifier)

    def changes_for(self, identifier: Identifier) -> Tuple[Change, ...]:
        return tuple(self._changes.get(identifier, ()))

    def clean_entities(self) -> List[Identifiable]:
        return list(self._clean.values())

    # Consumption -------------------------------------------------------
    def stream(self, *states: EntityState) -> Iterator[Change]:
        """
        Yield every tracked change, optionally limited to ``states``.

        Clean entities are never part of the stream. Each call returns a new
        generator, so the stream can be consumed again.
        """
        wanted = set(states)
        for bucket in list(self._changes.values()):
            for change in list(bucket):
                if not wanted or change.state in wanted:
                    yield change

    def batches(self) -> Iterator[Tuple[EntityState, List[Change]]]:
        """Yield non-empty ``(state, changes)`` groups as NEW, DIRTY, DELETED."""
        for state in _APPLY_ORDER:
            batch = list(self.stream(state))
            if batch:
                yield state, batch

    def reset(self) -> None:
        """Drop every registered change and clean entity."""
        self._changes.clear()
        self._clean.clear()

    @property
    def is_empty(self) -> bool:
        return not self._changes and not self._clean

    def __bool__(self) -> bool:
        return not self.is_empty

    def __iter__(self) -> Iterator[Change]:
        return self.stream()

    def __len__(self) -> int:
        return sum(len(bucket) for bucket in self._changes.values())

    def __repr__(self) -> str:
        counts = {state.value: 0 for state in _APPLY_ORDER}
        for change in self.stream():
            counts[change.state.value] += 1
        summary = ", ".join(f"{name}={count}" for name, count in counts.items())
        return f"ChangeSet({summary}, clean={len(self._clean)})"
