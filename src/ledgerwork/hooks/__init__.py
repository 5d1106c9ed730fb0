"""
Lifecycle hooks registry for ledgerwork backends.
"""

from .dispatcher import (
    AFTER_APPLY,
    AFTER_COMMIT,
    AFTER_ROLLBACK,
    BEFORE_APPLY,
    HookDispatcher,
    HookEvent,
    hooks,
)

__all__ = [
    "AFTER_APPLY",
    "AFTER_COMMIT",
    "AFTER_ROLLBACK",
    "BEFORE_APPLY",
    "HookDispatcher",
    "HookEvent",
    "hooks",
]
