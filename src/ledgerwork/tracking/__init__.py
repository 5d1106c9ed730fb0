"""
Change tracking: entity states, change records and the change set ledger.
"""

from .change import Change, EntityState
from .change_set import ChangeSet

__all__ = ["Change", "ChangeSet", "EntityState"]
