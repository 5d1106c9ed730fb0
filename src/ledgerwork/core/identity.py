"""
Identity primitives shared by the tracking layer.
"""

from __future__ import annotations

from typing import Hashable, Protocol, runtime_checkable

Identifier = Hashable


@runtime_checkable
class Identifiable(Protocol):
    """
    Any entity exposing an identifier that stays stable for the lifetime of a
    unit of work. Entity contents are never inspected beyond this attribute.
    """

    @property
    def identifier(self) -> Identifier: ...


def identifier_of(entity: Identifiable) -> Identifier:
    return entity.identifier
