"""
Identity-bearing domain entities.
"""

import copy
import uuid
from typing import Any, List, Mapping, Optional

from ddd_kernel.domain.models.events import DomainEvent
from ddd_kernel.domain.models.schema import check_attributes, declared_fields


class Entity:
    """Base class for objects distinguished by identity rather than attributes.

    Subclasses declare their attributes with class annotations::

        class Customer(Entity):
            name: str
            email: Optional[str] = None

    ``Customer({"name": "Ada"})`` generates a new id; passing ``id=...``
    reconstructs an entity that already exists elsewhere. Two entities are
    equal when their ids are equal, whatever their other attributes.
    Deletion is logical: ``delete()`` only raises the ``deleted`` flag.
    """

    _RESERVED = frozenset({
        "id", "deleted", "equals", "delete", "is_deleted",
        "add_domain_event", "get_domain_events", "clear_events",
    })

    def __init__(self, attributes: Optional[Mapping[str, Any]] = None, id: Optional[str] = None):
        bundle = check_attributes(type(self), attributes, reserved=self._RESERVED)

        self._id = id if id not in (None, "") else str(uuid.uuid4())
        self._deleted = False
        self._domain_events: List[DomainEvent] = []

        # Mutable class-level defaults must not be shared between instances
        for name in declared_fields(type(self)):
            if name not in bundle and hasattr(type(self), name):
                setattr(self, name, copy.copy(getattr(type(self), name)))

        for name, value in bundle.items():
            setattr(self, name, value)

    @property
    def id(self) -> str:
        return self._id

    @property
    def deleted(self) -> bool:
        return self._deleted

    def equals(self, other: Any) -> bool:
        """Check identity equality; never raises."""
        if other is None:
            return False
        try:
            return getattr(other, "id") == self._id
        except AttributeError:
            return False

    def delete(self) -> None:
        """Mark the entity as logically deleted."""
        self._deleted = True

    def is_deleted(self) -> bool:
        return self._deleted

    def add_domain_event(self, event: DomainEvent) -> None:
        """Append an event to the pending events buffer."""
        if not isinstance(event, DomainEvent):
            raise TypeError(f"Expected a DomainEvent, got {type(event).__name__}")
        self._domain_events.append(event)

    def get_domain_events(self) -> List[DomainEvent]:
        """Return a snapshot of the pending events, oldest first.

        The returned list is a copy: a later ``clear_events()`` does not
        empty it.
        """
        return list(self._domain_events)

    def clear_events(self) -> None:
        """Drop every pending event."""
        self._domain_events.clear()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Entity):
            return NotImplemented
        return self.equals(other)

    def __hash__(self) -> int:
        return hash(self._id)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self._id!r}, deleted={self._deleted})"
