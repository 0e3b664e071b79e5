"""
versionic.events  ──  ordered lifecycle hook slots for Record classes

Slots
-----
* ``before_save``   runs before the store write; returning ``False`` halts it
* ``after_create``  runs after the first successful insert of an instance
* ``after_update``  runs after a successful update of an instance
* ``after_migrate`` / ``after_upgrade``  run with the *class* after its
  table was migrated / upgraded

Handlers are looked up along the MRO (ancestors first) and run in the order
they were registered. Exceptions raised by a handler propagate to the caller.
"""

from __future__ import annotations

from collections import defaultdict
from typing import Any, Callable, Dict, List, Type

SLOTS = ("before_save", "after_create", "after_update", "after_migrate", "after_upgrade")

Handler = Callable[[Any], Any]


class HookRegistry:
    """Central registry for lifecycle handlers"""

    def __init__(self):
        # Maps slot -> record class -> ordered handlers
        self._handlers: Dict[str, Dict[type, List[Handler]]] = {
            slot: defaultdict(list) for slot in SLOTS
        }

    def register(
        self,
        slot: str,
        record_classes: tuple[type, ...],
        handler: Handler,
    ) -> None:
        """Register a handler for specific record classes"""
        if slot not in self._handlers:
            raise KeyError(f"unknown hook slot {slot!r}")
        for cls in record_classes:
            handlers = self._handlers[slot][cls]
            if handler not in handlers:
                handlers.append(handler)

    def handlers(self, slot: str, target_cls: type) -> List[Handler]:
        ordered: List[Handler] = []
        for cls in reversed(target_cls.__mro__):
            for handler in self._handlers[slot].get(cls, ()):
                if handler not in ordered:
                    ordered.append(handler)
        return ordered

    def emit(self, slot: str, target: Any) -> bool:
        """Run every handler for `target`; False as soon as one returns False."""
        target_cls = target if isinstance(target, type) else target.__class__
        for handler in self.handlers(slot, target_cls):
            if handler(target) is False:
                return False
        return True


# Global registry instance
_registry = HookRegistry()


class OnDecorator:
    """Namespace for hook decorators"""

    @staticmethod
    def _slot(slot: str, record_classes: tuple[Type[Any], ...]) -> Callable:
        def decorator(func: Handler) -> Handler:
            _registry.register(slot, record_classes, func)
            return func

        return decorator

    def save(self, *record_classes: Type[Any]) -> Callable:
        """Decorator for pre-commit handlers"""
        return self._slot("before_save", record_classes)

    def create(self, *record_classes: Type[Any]) -> Callable:
        """Decorator for handling record creation events"""
        return self._slot("after_create", record_classes)

    def update(self, *record_classes: Type[Any]) -> Callable:
        """Decorator for handling record update events"""
        return self._slot("after_update", record_classes)

    def migrate(self, *record_classes: Type[Any]) -> Callable:
        return self._slot("after_migrate", record_classes)

    def upgrade(self, *record_classes: Type[Any]) -> Callable:
        return self._slot("after_upgrade", record_classes)


# Export the decorator interface
on = OnDecorator()


def register(slot: str, record_cls: type, handler: Handler) -> None:
    _registry.register(slot, (record_cls,), handler)


def emit(slot: str, target: Any) -> bool:
    return _registry.emit(slot, target)
