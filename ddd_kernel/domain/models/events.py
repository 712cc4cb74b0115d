"""
Domain event contract and the process-wide event type registry.

Concrete events are frozen dataclasses that name their discriminator
explicitly when the class is declared::

    @dataclass(frozen=True)
    class OrderPlaced(DomainEvent, event_type="OrderPlaced"):
        order_id: str

The discriminator is the routing key used by the event dispatcher. It is
assigned by the class author, never derived from the class name, so
renaming a class does not reroute its events.
"""

import threading
import uuid
from dataclasses import dataclass, field, fields
from datetime import datetime, timezone
from typing import Any, ClassVar, Dict, Optional, Type, Union

from ddd_kernel.domain.exceptions import EventTypeError

_METADATA_FIELDS = frozenset({"event_id", "occurred_at"})

_registry: Dict[str, Type["DomainEvent"]] = {}
_registry_lock = threading.Lock()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class DomainEvent:
    """Base class for domain events: an immutable record of a fact."""

    event_type: ClassVar[Optional[str]] = None

    event_id: str = field(default_factory=lambda: str(uuid.uuid4()), kw_only=True)
    occurred_at: datetime = field(default_factory=_utcnow, kw_only=True)

    def __init_subclass__(cls, event_type: Optional[str] = None, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        # dataclass(slots=True) rebuilds the class without class keywords
        event_type = event_type or cls.__dict__.get("event_type")
        # Subclasses never inherit a parent's routing key
        cls.event_type = event_type
        if event_type is not None:
            _register_event_type(event_type, cls)

    def __new__(cls, *args: Any, **kwargs: Any) -> "DomainEvent":
        if cls.event_type is None:
            raise EventTypeError(
                f"{cls.__name__} has no event type; declare it with "
                f"'class {cls.__name__}(DomainEvent, event_type=...)'"
            )
        return super().__new__(cls)

    @property
    def payload(self) -> Dict[str, Any]:
        """The event's own data, without id and timestamp metadata."""
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if f.name not in _METADATA_FIELDS
        }


def _register_event_type(event_type: str, cls: Type[DomainEvent]) -> None:
    if not isinstance(event_type, str) or not event_type.strip():
        raise EventTypeError(f"Event type of {cls.__name__} must be a non-empty string", event_type=event_type)

    with _registry_lock:
        existing = _registry.get(event_type)
        if existing is not None and existing is not cls:
            same_definition = (
                existing.__module__ == cls.__module__
                and existing.__qualname__ == cls.__qualname__
            )
            if not same_definition:
                raise EventTypeError(
                    f"Event type '{event_type}' is already used by "
                    f"{existing.__module__}.{existing.__qualname__}",
                    event_type=event_type,
                )
        _registry[event_type] = cls


EventTypeRef = Union[str, Type[DomainEvent], DomainEvent]


def event_type_of(target: EventTypeRef) -> str:
    """Resolve the routing key of an event, an event class or a type name."""
    if isinstance(target, str):
        if not target.strip():
            raise EventTypeError("Event type must be a non-empty string", event_type=target)
        return target

    if isinstance(target, DomainEvent):
        return type(target).event_type

    if isinstance(target, type) and issubclass(target, DomainEvent):
        if target.event_type is None:
            raise EventTypeError(f"{target.__name__} has no event type")
        return target.event_type

    raise EventTypeError(f"Cannot resolve an event type from {type(target).__name__}")


def resolve_event_class(event_type: str) -> Type[DomainEvent]:
    """Look up the event class registered for ``event_type``."""
    with _registry_lock:
        cls = _registry.get(event_type)
    if cls is None:
        raise EventTypeError(f"Unknown event type: {event_type}", event_type=event_type)
    return cls


def registered_event_types() -> Dict[str, Type[DomainEvent]]:
    with _registry_lock:
        return dict(_registry)
