"""
Synchronous in-process event dispatcher.

Handlers are registered per event type and invoked one at a time, in
registration order, on the dispatching thread. There is no queue, retry or
deferred delivery.
"""

import inspect
import threading
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional, Tuple, Union

from ddd_kernel.domain.exceptions import AsyncHandlerError, EventDispatchError, HandlerFailure
from ddd_kernel.domain.interfaces.base import DomainService, IErrorHandler, ILogger
from ddd_kernel.domain.models.events import DomainEvent, EventTypeRef, event_type_of

EventHandler = Callable[[DomainEvent], Union[None, Awaitable[None]]]


class DispatchPolicy(Enum):
    """How a dispatch reacts to a failing handler."""
    FAIL_FAST = "fail_fast"
    CONTINUE = "continue"

    @classmethod
    def from_string(cls, value: str) -> 'DispatchPolicy':
        """Create DispatchPolicy from string value."""
        try:
            return cls(value.lower())
        except (ValueError, AttributeError):
            raise ValueError(f"Invalid dispatch policy: {value}. Valid options: {[p.value for p in cls]}")


def _handler_name(handler: Callable[..., Any]) -> str:
    return getattr(handler, "__qualname__", None) or repr(handler)


class EventDispatcher(DomainService):
    """Routes each domain event to the handlers registered for its type.

    With ``DispatchPolicy.FAIL_FAST`` the first failing handler aborts the
    dispatch and its exception propagates unchanged. With
    ``DispatchPolicy.CONTINUE`` every handler runs and the failures are
    raised together afterwards as an ``EventDispatchError``. Either way each
    failure is reported to the error handler, if one is configured.

    Registration and dispatch may happen from different threads. Handlers
    run outside the routing table lock and may themselves register or
    unregister handlers; such changes apply from the next dispatch on.
    """

    def __init__(
        self,
        logger: ILogger,
        error_handler: Optional[IErrorHandler] = None,
        policy: DispatchPolicy = DispatchPolicy.FAIL_FAST,
    ):
        super().__init__(logger)
        self.error_handler = error_handler
        self.policy = policy
        self._handlers: Dict[str, List[EventHandler]] = {}
        self._lock = threading.RLock()

    def register(self, event_type: EventTypeRef, handler: EventHandler) -> None:
        """Append ``handler`` to the subscribers of ``event_type``.

        Registering the same handler twice makes it run twice per dispatch.
        """
        if not callable(handler):
            raise TypeError(f"Event handler must be callable, got {type(handler).__name__}")

        key = event_type_of(event_type)
        with self._lock:
            self._handlers.setdefault(key, []).append(handler)
            count = len(self._handlers[key])

        self.logger.debug(
            "Handler registered",
            component="event_dispatcher",
            event_type=key,
            handler=_handler_name(handler),
            handler_count=count,
        )

    def unregister(self, event_type: EventTypeRef, handler: EventHandler) -> int:
        """Remove every registration of ``handler`` for ``event_type``.

        Returns the number of registrations removed.
        """
        key = event_type_of(event_type)
        with self._lock:
            handlers = self._handlers.get(key, [])
            remaining = [h for h in handlers if h != handler]
            removed = len(handlers) - len(remaining)
            if remaining:
                self._handlers[key] = remaining
            else:
                self._handlers.pop(key, None)

        if removed:
            self.logger.debug(
                "Handler unregistered",
                component="event_dispatcher",
                event_type=key,
                handler=_handler_name(handler),
                removed=removed,
            )
        return removed

    def reset(self, event_type: Optional[EventTypeRef] = None) -> None:
        """Drop the handlers of one event type, or of every type."""
        with self._lock:
            if event_type is None:
                self._handlers.clear()
            else:
                self._handlers.pop(event_type_of(event_type), None)

    def handlers_for(self, event_type: EventTypeRef) -> Tuple[EventHandler, ...]:
        key = event_type_of(event_type)
        with self._lock:
            return tuple(self._handlers.get(key, ()))

    def has_handlers(self, event_type: EventTypeRef) -> bool:
        return bool(self.handlers_for(event_type))

    def dispatch(self, event: DomainEvent) -> None:
        """Invoke every handler registered for the event's type, in order.

        A dispatch with no registered handlers does nothing. Handlers must be
        synchronous; one returning an awaitable fails with
        ``AsyncHandlerError`` (use ``dispatch_async`` for those).
        """
        key, handlers = self._prepare(event)
        failures: List[HandlerFailure] = []

        for handler in handlers:
            try:
                result = handler(event)
                if inspect.isawaitable(result):
                    if inspect.iscoroutine(result):
                        result.close()
                    raise AsyncHandlerError(
                        f"Handler {_handler_name(handler)} returned an awaitable; use dispatch_async",
                        handler_name=_handler_name(handler),
                    )
            except Exception as exc:
                self._on_failure(key, event, handler, exc, failures)

        self._finish(key, event, handlers, failures)

    async def dispatch_async(self, event: DomainEvent) -> None:
        """Like ``dispatch``, awaiting each awaitable result before the next handler."""
        key, handlers = self._prepare(event)
        failures: List[HandlerFailure] = []

        for handler in handlers:
            try:
                result = handler(event)
                if inspect.isawaitable(result):
                    await result
            except Exception as exc:
                self._on_failure(key, event, handler, exc, failures)

        self._finish(key, event, handlers, failures)

    def dispatch_all(self, events: Iterable[DomainEvent]) -> None:
        """Dispatch each event in order."""
        for event in events:
            self.dispatch(event)

    def _prepare(self, event: DomainEvent) -> Tuple[str, Tuple[EventHandler, ...]]:
        if not isinstance(event, DomainEvent):
            raise TypeError(f"Expected a DomainEvent, got {type(event).__name__}")

        key = event_type_of(event)
        with self._lock:
            handlers = tuple(self._handlers.get(key, ()))

        if not handlers:
            self.logger.debug("No handlers registered", component="event_dispatcher", event_type=key)
        return key, handlers

    def _on_failure(
        self,
        key: str,
        event: DomainEvent,
        handler: EventHandler,
        exc: Exception,
        failures: List[HandlerFailure],
    ) -> None:
        name = _handler_name(handler)
        context = {
            'component': 'event_dispatcher',
            'event_type': key,
            'event_id': event.event_id,
            'handler': name,
            'policy': self.policy.value,
        }
        report_error = None
        if self.error_handler is not None:
            try:
                self.error_handler.handle_error(exc, context)
            except Exception as e:
                report_error = e

        if self.error_handler is None or report_error is not None:
            extra = {}
            if report_error is not None:
                extra['report_error'] = f"{type(report_error).__name__}: {report_error}"
            self.logger.error(
                "Event handler failed",
                error_type=type(exc).__name__,
                error_message=str(exc),
                **context,
                **extra,
            )

        if self.policy is DispatchPolicy.FAIL_FAST:
            raise exc
        failures.append(HandlerFailure(event_type=key, handler_name=name, error=exc))

    def _finish(
        self,
        key: str,
        event: DomainEvent,
        handlers: Tuple[EventHandler, ...],
        failures: List[HandlerFailure],
    ) -> None:
        if failures:
            raise EventDispatchError(
                f"{len(failures)} of {len(handlers)} handlers failed for event '{key}'",
                event=event,
                failures=failures,
                context={'event_type': key, 'event_id': event.event_id},
            )

        if handlers:
            self.logger.debug(
                "Event dispatched",
                component="event_dispatcher",
                event_type=key,
                event_id=event.event_id,
                handler_count=len(handlers),
            )
