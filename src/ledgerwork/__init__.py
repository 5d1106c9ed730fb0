"""
ledgerwork public package initialization.

Change tracking and unit-of-work composition for persistence backends.
"""

from .config import UnitOfWorkConfig  # noqa: F401
from .core import Identifiable, Identifier  # noqa: F401
from .errors import (  # noqa: F401
    ConfigurationError,
    UnitOfWorkCommitError,
    UnitOfWorkCompositionError,
    UnitOfWorkError,
    UnitOfWorkRollbackError,
)
from .hooks import hooks  # noqa: F401
from .persistence import AbstractUnitOfWork, InMemoryStore, InMemoryUnitOfWork, UnitOfWork  # noqa: F401
from .tracking import Change, ChangeSet, EntityState  # noqa: F401

__all__ = [
    "AbstractUnitOfWork",
    "Change",
    "ChangeSet",
    "ConfigurationError",
    "EntityState",
    "Identifiable",
    "Identifier",
    "InMemoryStore",
    "InMemoryUnitOfWork",
    "UnitOfWork",
    "UnitOfWorkCommitError",
    "UnitOfWorkCompositionError",
    "UnitOfWorkConfig",
    "UnitOfWorkError",
    "UnitOfWorkRollbackError",
    "hooks",
]
