"""
Domain-modeling kernel: entities, value objects, aggregate roots, domain
events and an in-process event dispatcher.
"""

from ddd_kernel.domain.exceptions import (
    DomainKernelError, ConfigurationError, ConstructionError, EventTypeError,
    EventDispatchError, AsyncHandlerError, HandlerFailure
)
from ddd_kernel.domain.models.entity import Entity
from ddd_kernel.domain.models.value_object import ValueObject, FrozenDict
from ddd_kernel.domain.models.aggregate_root import AggregateRoot
from ddd_kernel.domain.models.events import DomainEvent, event_type_of, resolve_event_class
from ddd_kernel.domain.services.event_dispatcher import EventDispatcher, DispatchPolicy
from ddd_kernel.application.services.event_publisher import AggregateEventPublisher
from ddd_kernel.application.bootstrap import create_event_dispatcher, create_event_publisher

__version__ = "0.1.0"

__all__ = [
    "DomainKernelError", "ConfigurationError", "ConstructionError", "EventTypeError",
    "EventDispatchError", "AsyncHandlerError", "HandlerFailure",
    "Entity", "ValueObject", "FrozenDict", "AggregateRoot",
    "DomainEvent", "event_type_of", "resolve_event_class",
    "EventDispatcher", "DispatchPolicy", "AggregateEventPublisher",
    "create_event_dispatcher", "create_event_publisher",
]
