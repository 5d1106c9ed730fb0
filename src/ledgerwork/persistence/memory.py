"""
In-process reference backend draining a change set into a dict-backed store.
"""

from __future__ import annotations

from enum import Enum
from threading import RLock
from typing import Dict, List, Optional, Set, Tuple, cast

from ..config import UnitOfWorkConfig
from ..core.identity import Identifiable, Identifier, identifier_of
from ..errors import UnitOfWorkCommitError, UnitOfWorkCompositionError, UnitOfWorkRollbackError
from ..hooks import AFTER_APPLY, AFTER_COMMIT, AFTER_ROLLBACK, BEFORE_APPLY, HookDispatcher, hooks
from ..tracking import Change, EntityState
from ..utils import bind_unit_of_work, get_logger, time_call
from .unit_of_work import AbstractUnitOfWork


class StoreError(LookupError):
    """Raised when a write conflicts with the current store contents."""


class InMemoryStore:
    """
    Stores entities keyed by identifier.

    Write methods return the entity they displaced (``None`` when there was
    none) so a caller can undo exactly its own writes with :meth:`revert`.
    """

    def __init__(self) -> None:
        self._store: Dict[Identifier, Identifiable] = {}
        self._lock = RLock()

    def get(self, identifier: Identifier) -> Optional[Identifiable]:
        with self._lock:
            return self._store.get(identifier)

    def insert(self, entity: Identifiable) -> None:
        identifier = identifier_of(entity)
        with self._lock:
            if identifier in self._store:
                raise StoreError(f"Entity {identifier!r} already exists")
            self._store[identifier] = entity

    def update(self, entity: Identifiable) -> Identifiable:
        identifier = identifier_of(entity)
        with self._lock:
            if identifier not in self._store:
                raise StoreError(f"Entity {identifier!r} does not exist")
            previous = self._store[identifier]
            self._store[identifier] = entity
            return previous

    def delete(self, identifier: Identifier) -> Optional[Identifiable]:
        with self._lock:
            return self._store.pop(identifier, None)

    def revert(self, identifier: Identifier, previous: Optional[Identifiable]) -> None:
        """Put ``previous`` back under ``identifier``, or drop the key when it is None."""
        with self._lock:
            if previous is None:
                self._store.pop(identifier, None)
            else:
                self._store[identifier] = previous

    def values(self) -> List[Identifiable]:
        with self._lock:
            return list(self._store.values())

    def __contains__(self, identifier: Identifier) -> bool:
        with self._lock:
            return identifier in self._store

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)

    def __bool__(self) -> bool:
        # An empty store is still a store.
        return True


UndoEntry = Tuple[InMemoryStore, Identifier, Optional[Identifiable]]


class UnitOfWorkState(Enum):
    OPEN = "open"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"
    FAILED = "failed"


class InMemoryUnitOfWork(AbstractUnitOfWork):
    """
    Applies inserts, then updates, then deletes to an :class:`InMemoryStore`.

    Children are committed before or after the parent's own changes depending
    on ``config.child_order``; a child reachable through several parents is
    applied once. Only in-memory children can be attached, since their writes
    must be undone together with the parent's.

    A failure anywhere in the tree reverses the writes this commit already
    made, leaving writes by other units of work to the same stores alone, and
    keeps the changes in place, so a FAILED unit of work may be committed
    again.
    """

    def __init__(
        self,
        store: InMemoryStore,
        *,
        config: Optional[UnitOfWorkConfig] = None,
        hook_dispatcher: Optional[HookDispatcher] = None,
    ) -> None:
        super().__init__(config=config)
        self.store = store
        self.state = UnitOfWorkState.OPEN
        self.hooks = hook_dispatcher if hook_dispatcher is not None else hooks
        self.logger = get_logger("persistence.memory")

    def add_child(self, child: AbstractUnitOfWork) -> "InMemoryUnitOfWork":
        if not isinstance(child, InMemoryUnitOfWork):
            raise UnitOfWorkCompositionError(
                f"{type(child).__name__} cannot be nested in an in-memory unit of work."
            )
        super().add_child(child)
        return self

    # ------------------------------------------------------------------ #
    def commit(self) -> None:
        if self.state not in (UnitOfWorkState.OPEN, UnitOfWorkState.FAILED):
            raise UnitOfWorkCommitError(f"Cannot commit a unit of work that is {self.state.value}.")

        nodes = self._apply_order(set())
        undo: List[UndoEntry] = []
        with bind_unit_of_work(self.unit_of_work_id), time_call(
            "unit_of_work.commit",
            self.logger,
            changes=sum(len(node.change_set) for node in nodes),
            threshold_ms=self.config.slow_commit_ms,
        ):
            try:
                for node in nodes:
                    node._apply_own(undo)
            except Exception as exc:
                for store, identifier, previous in reversed(undo):
                    store.revert(identifier, previous)
                self._mark(UnitOfWorkState.FAILED)
                self.logger.error(
                    "Commit failed after %d writes: %s",
                    len(undo),
                    exc,
                    extra={"unit_of_work_id": self.unit_of_work_id},
                )
                if isinstance(exc, UnitOfWorkCommitError):
                    raise
                raise UnitOfWorkCommitError(f"Commit failed: {exc}", cause=exc) from exc

        for node in nodes:
            node.change_set.reset()
        self._mark(UnitOfWorkState.COMMITTED)
        self.hooks.fire(AFTER_COMMIT, None, unit_of_work=self)

    def rollback(self) -> None:
        if self.state is UnitOfWorkState.COMMITTED:
            raise UnitOfWorkRollbackError("Cannot roll back a committed unit of work.")

        nodes = self._nodes()
        with bind_unit_of_work(self.unit_of_work_id), time_call(
            "unit_of_work.rollback", self.logger, changes=sum(len(node.change_set) for node in nodes)
        ):
            for node in nodes:
                node.change_set.reset()
        self._mark(UnitOfWorkState.ROLLED_BACK)
        self.hooks.fire(AFTER_ROLLBACK, None, unit_of_work=self)

    # ------------------------------------------------------------------ #
    def _apply_order(self, seen: Set[int]) -> List["InMemoryUnitOfWork"]:
        if id(self) in seen:
            return []
        seen.add(id(self))
        descendants: List[InMemoryUnitOfWork] = []
        for child in self.children:
            descendants.extend(cast(InMemoryUnitOfWork, child)._apply_order(seen))
        if self.config.child_order == "before":
            return descendants + [self]
        return [self] + descendants

    def _apply_own(self, undo: List[UndoEntry]) -> None:
        for _state, batch in self.change_set.batches():
            for change in batch:
                self._apply(change, undo)

    def _apply(self, change: Change, undo: List[UndoEntry]) -> None:
        self.hooks.fire(BEFORE_APPLY, change.entity, unit_of_work=self, state=change.state)
        if change.state is EntityState.NEW:
            self.store.insert(change.entity)
            undo.append((self.store, change.identifier, None))
        elif change.state is EntityState.DIRTY:
            previous = self.store.update(change.entity)
            undo.append((self.store, change.identifier, previous))
        elif change.state is EntityState.DELETED:
            removed = self.store.delete(change.identifier)
            if removed is not None:
                undo.append((self.store, change.identifier, removed))
        self.hooks.fire(AFTER_APPLY, change.entity, unit_of_work=self, state=change.state)

    def _nodes(self) -> List["InMemoryUnitOfWork"]:
        return [cast(InMemoryUnitOfWork, node) for node in self.walk()]

    def _mark(self, state: UnitOfWorkState) -> None:
        for node in self._nodes():
            node.state = state
