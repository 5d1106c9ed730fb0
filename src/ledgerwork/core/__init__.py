"""
Core identity types.
"""

from .identity import Identifiable, Identifier, identifier_of

__all__ = ["Identifiable", "Identifier", "identifier_of"]
