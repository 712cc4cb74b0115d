"""
Domain exceptions and error hierarchy.
"""

from dataclasses import dataclass
from typing import Optional, Dict, Any, List


class DomainKernelError(Exception):
    """Base exception for domain kernel errors."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{self.message} (Context: {context_str})"
        return self.message


class ConfigurationError(DomainKernelError):
    """Configuration related errors."""
    pass


class ConstructionError(DomainKernelError):
    """Attribute bundle is incompatible with the declared shape of an object."""

    def __init__(self, message: str, field: Optional[str] = None,
                 value: Optional[Any] = None, context: Optional[Dict[str, Any]] = None):
        super().__init__(message, context)
        self.field = field
        self.value = value


class EventTypeError(DomainKernelError):
    """Missing, unknown or colliding event type discriminator."""

    def __init__(self, message: str, event_type: Optional[str] = None,
                 context: Optional[Dict[str, Any]] = None):
        super().__init__(message, context)
        self.event_type = event_type


class AsyncHandlerError(DomainKernelError):
    """A handler returned an awaitable from a synchronous dispatch."""

    def __init__(self, message: str, handler_name: Optional[str] = None,
                 context: Optional[Dict[str, Any]] = None):
        super().__init__(message, context)
        self.handler_name = handler_name


@dataclass(frozen=True)
class HandlerFailure:
    """One handler failure collected during a dispatch."""

    event_type: str
    handler_name: str
    error: BaseException


class EventDispatchError(DomainKernelError):
    """One or more handlers failed while an event was being dispatched."""

    def __init__(self, message: str, event: Optional[Any] = None,
                 failures: Optional[List[HandlerFailure]] = None,
                 context: Optional[Dict[str, Any]] = None):
        super().__init__(message, context)
        self.event = event
        self.failures = list(failures or [])

    @property
    def errors(self) -> List[BaseException]:
        """The underlying handler exceptions, in invocation order."""
        return [failure.error for failure in self.failures]
