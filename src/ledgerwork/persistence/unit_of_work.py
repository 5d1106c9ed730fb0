"""
Unit of Work contract and the tracking base class concrete backends extend.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Iterator, List, Optional, Protocol, Set, Tuple, runtime_checkable

from ..config import UnitOfWorkConfig
from ..core.identity import Identifiable, Identifier
from ..errors import UnitOfWorkCompositionError
from ..tracking import ChangeSet
from ..utils import get_logger, new_unit_of_work_id


@runtime_checkable
class UnitOfWork(Protocol):
    """
    Transactional context whose recorded changes are committed or rolled
    back together.
    """

    def commit(self) -> None:
        """
        Persist every change recorded since the unit of work began.
        Raises UnitOfWorkCommitError when any underlying write fails.
        """

    def rollback(self) -> None:
        """
        Discard every recorded change without applying it.
        Raises UnitOfWorkRollbackError when the discard cannot complete.
        """


class AbstractUnitOfWork(UnitOfWork, ABC):
    """
    Tracks clean, new, dirty and deleted entities and supports nested units
    of work. Subclasses translate the change set into real writes in
    ``commit()`` and ``rollback()``, and decide whether to recurse into
    ``children``.

    Children own independent change sets; attaching one only marks it as
    non-root. Entities must have their identifier fully populated before
    registration, since nothing here validates it.
    """

    def __init__(self, *, config: Optional[UnitOfWorkConfig] = None) -> None:
        self.config = config or UnitOfWorkConfig()
        self._change_set = ChangeSet(copy_clean=self.config.copy_clean)
        self._children: Optional[List[AbstractUnitOfWork]] = None
        self._is_root = True
        self.unit_of_work_id = new_unit_of_work_id()
        self.logger = get_logger("persistence.unit_of_work")

    # ------------------------------------------------------------------ #
    # Context management
    # ------------------------------------------------------------------ #
    def __enter__(self) -> "AbstractUnitOfWork":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type:
            self.rollback()
        else:
            self.commit()

    # ------------------------------------------------------------------ #
    # Lifecycle
    # ------------------------------------------------------------------ #
    @abstractmethod
    def commit(self) -> None:
        raise NotImplementedError

    @abstractmethod
    def rollback(self) -> None:
        raise NotImplementedError

    # ------------------------------------------------------------------ #
    # Registration
    # ------------------------------------------------------------------ #
    def register_new(self, entity: Identifiable) -> "AbstractUnitOfWork":
        self._change_set.register_new(entity)
        self._log_registration("new", entity)
        return self

    def register_dirty(self, entity: Identifiable) -> "AbstractUnitOfWork":
        self._change_set.register_dirty(entity)
        self._log_registration("dirty", entity)
        return self

    def register_deleted(self, entity: Identifiable) -> "AbstractUnitOfWork":
        self._change_set.register_deleted(entity)
        self._log_registration("deleted", entity)
        return self

    def register_clean(self, entity: Identifiable) -> "AbstractUnitOfWork":
        """
        Register an entity as freshly read from the backend.

        The entity is kept by reference: mutating it afterwards also changes
        the registered baseline. Copy objects before registering them, or
        before mutating them, when the baseline matters.
        """
        self._change_set.register_clean(entity)
        self._log_registration("clean", entity)
        return self

    def read_clean(self, identifier: Identifier) -> Optional[Identifiable]:
        return self._change_set.find_clean(identifier)

    @property
    def change_set(self) -> ChangeSet:
        return self._change_set

    # ------------------------------------------------------------------ #
    # Composition
    # ------------------------------------------------------------------ #
    def add_child(self, child: "AbstractUnitOfWork") -> "AbstractUnitOfWork":
        if child is self or any(node is self for node in child.walk()):
            raise UnitOfWorkCompositionError(
                f"Attaching {child!r} to {self!r} would create a cycle."
            )
        if self._children is None:
            self._children = []

        child._is_root = False
        self._children.append(child)
        return self

    @property
    def is_root(self) -> bool:
        return self._is_root

    @property
    def children(self) -> Tuple["AbstractUnitOfWork", ...]:
        return tuple(self._children or ())

    def walk(self) -> Iterator["AbstractUnitOfWork"]:
        """
        Yield this unit of work and its descendants, parents first. A child
        reachable through several parents is yielded once.
        """
        return self._walk(set())

    def _walk(self, seen: Set[int]) -> Iterator["AbstractUnitOfWork"]:
        if id(self) in seen:
            return
        seen.add(id(self))
        yield self
        for child in self._children or ():
            yield from child._walk(seen)

    # ------------------------------------------------------------------ #
    def _log_registration(self, state: str, entity: Identifiable) -> None:
        identifier = getattr(entity, "identifier", None)
        self.logger.debug(
            "Registered %s entity %r",
            state,
            identifier,
            extra={"identifier": identifier, "state": state, "unit_of_work_id": self.unit_of_work_id},
        )
