"""
Hook dispatcher coordinating unit-of-work lifecycle events.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Type


HookHandler = Callable[..., None]


@dataclass(frozen=True)
class HookEvent:
    name: str


BEFORE_APPLY = HookEvent("before_apply")
AFTER_APPLY = HookEvent("after_apply")
AFTER_COMMIT = HookEvent("after_commit")
AFTER_ROLLBACK = HookEvent("after_rollback")


class HookDispatcher:
    """
    Maintains global and per-entity-type hook handlers.
    """

    def __init__(self) -> None:
        self._global_handlers: Dict[str, List[HookHandler]] = defaultdict(list)
        self._type_handlers: Dict[type, Dict[str, List[HookHandler]]] = defaultdict(
            lambda: defaultdict(list)
        )

    def register(self, event: str | HookEvent, handler: HookHandler, *, entity_type: Optional[Type[Any]] = None) -> None:
        name = event.name if isinstance(event, HookEvent) else event
        if entity_type:
            self._type_handlers[entity_type][name].append(handler)
        else:
            self._global_handlers[name].append(handler)

    def fire(self, event: str | HookEvent, entity: Optional[Any], **context: Any) -> None:
        name = event.name if isinstance(event, HookEvent) else event
        handlers = list(self._global_handlers.get(name, []))
        entity_type = entity.__class__ if entity is not None else None
        if entity_type:
            handlers.extend(self._type_handlers.get(entity_type, {}).get(name, []))
        for handler in handlers:
            handler(entity, **context)

    def clear(self) -> None:
        self._global_handlers.clear()
        self._type_handlers.clear()


hooks = HookDispatcher()
