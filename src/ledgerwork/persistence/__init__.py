"""
Persistence layer components: unit of work contract, tracking base class and
the in-memory reference backend.
"""

from .memory import InMemoryStore, InMemoryUnitOfWork, StoreError, UnitOfWorkState
from .unit_of_work import AbstractUnitOfWork, UnitOfWork

__all__ = [
    "AbstractUnitOfWork",
    "InMemoryStore",
    "InMemoryUnitOfWork",
    "StoreError",
    "UnitOfWork",
    "UnitOfWorkState",
]
