"""
Error hierarchy for ledgerwork.
"""

from __future__ import annotations

from typing import Optional


class UnitOfWorkError(RuntimeError):
    """Base error for unit-of-work failures."""

    def __init__(self, message: str = "", cause: Optional[BaseException] = None) -> None:
        super().__init__(message)
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause


class UnitOfWorkCommitError(UnitOfWorkError):
    """Raised when applying tracked changes to a backend fails."""


class UnitOfWorkRollbackError(UnitOfWorkError):
    """Raised when a transaction's effects cannot be discarded."""


class UnitOfWorkCompositionError(UnitOfWorkError):
    """Raised when a child unit of work cannot be attached."""


class ConfigurationError(UnitOfWorkError):
    """Raised when configuration values are invalid."""
