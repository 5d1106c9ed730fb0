"""
Tracked entity states and the change records pairing them with entities.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from ..core.identity import Identifiable, Identifier, identifier_of


class EntityState(Enum):
    CLEAN = "clean"
    NEW = "new"
    DIRTY = "dirty"
    DELETED = "deleted"

    @property
    def is_clean(self) -> bool:
        return self is EntityState.CLEAN


@dataclass(frozen=True, eq=False)
class Change:
    """
    Immutable pairing of an entity with the state it was registered under.

    Two changes are equal when they wrap the very same object (not merely an
    equal one) in the same state.
    """

    entity: Identifiable
    state: EntityState

    @property
    def identifier(self) -> Identifier:
        return identifier_of(self.entity)

    @property
    def is_clean(self) -> bool:
        return self.state is EntityState.CLEAN

    @property
    def is_new(self) -> bool:
        return self.state is EntityState.NEW

    @property
    def is_dirty(self) -> bool:
        return self.state is EntityState.DIRTY

    @property
    def is_deleted(self) -> bool:
        return self.state is EntityState.DELETED

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Change):
            return NotImplemented
        return self.entity is other.entity and self.state is other.state

    def __hash__(self) -> int:
        return hash((id(self.entity), self.state))

    def __iter__(self):
        # Allows ``entity, state = change``.
        yield self.entity
        yield self.state
