"""
Aggregate event publisher - drains aggregates at a transaction boundary.
"""

from typing import Iterable, Iterator, List

from ddd_kernel.domain.interfaces.base import ILogger
from ddd_kernel.domain.models.aggregate_root import AggregateRoot
from ddd_kernel.domain.models.events import DomainEvent
from ddd_kernel.domain.services.event_dispatcher import EventDispatcher


class AggregateEventPublisher:
    """Hands the pending events of aggregates to the dispatcher.

    Call ``publish`` after the aggregate's state change has been committed.
    Events raised by handlers on the same aggregate during publishing are
    dispatched in that same call.
    The aggregate's buffer is cleared only once every event was dispatched;
    if a dispatch fails the buffer keeps all its events and the error
    propagates, leaving the retry decision to the caller.
    """

    def __init__(self, dispatcher: EventDispatcher, logger: ILogger):
        self.dispatcher = dispatcher
        self.logger = logger

    def publish(self, aggregate: AggregateRoot) -> List[DomainEvent]:
        """Dispatch and clear the aggregate's pending events; return them.

        Events that handlers add to the aggregate while it is being published
        are dispatched in the same call, after the events already pending.
        """
        self._check(aggregate)
        published: List[DomainEvent] = []
        try:
            for event in self._drain(aggregate, published):
                self.dispatcher.dispatch(event)
        except Exception as e:
            self._log_failure(aggregate, e)
            raise

        aggregate.clear_events()
        self._log_published(aggregate, published)
        return published

    async def publish_async(self, aggregate: AggregateRoot) -> List[DomainEvent]:
        """Like ``publish``, awaiting asynchronous handlers."""
        self._check(aggregate)
        published: List[DomainEvent] = []
        try:
            for event in self._drain(aggregate, published):
                await self.dispatcher.dispatch_async(event)
        except Exception as e:
            self._log_failure(aggregate, e)
            raise

        aggregate.clear_events()
        self._log_published(aggregate, published)
        return published

    def publish_all(self, aggregates: Iterable[AggregateRoot]) -> List[DomainEvent]:
        """Publish each aggregate in order; return every published event."""
        published: List[DomainEvent] = []
        for aggregate in aggregates:
            published.extend(self.publish(aggregate))
        return published

    def _check(self, aggregate: AggregateRoot) -> None:
        if not isinstance(aggregate, AggregateRoot):
            raise TypeError(f"Only aggregate roots publish events, got {type(aggregate).__name__}")

    @staticmethod
    def _drain(aggregate: AggregateRoot, published: List[DomainEvent]) -> Iterator[DomainEvent]:
        # The buffer only grows until clear_events(), so unseen events are past the published prefix
        while True:
            pending = aggregate.get_domain_events()[len(published):]
            if not pending:
                return
            for event in pending:
                published.append(event)
                yield event

    def _log_published(self, aggregate: AggregateRoot, events: List[DomainEvent]) -> None:
        if events:
            self.logger.info(
                "Published aggregate events",
                component="event_publisher",
                aggregate=type(aggregate).__name__,
                aggregate_id=aggregate.id,
                event_count=len(events),
            )

    def _log_failure(self, aggregate: AggregateRoot, error: Exception) -> None:
        self.logger.warning(
            "Publishing aggregate events failed, events kept pending",
            component="event_publisher",
            aggregate=type(aggregate).__name__,
            aggregate_id=aggregate.id,
            event_count=len(aggregate.get_domain_events()),
            error_type=type(error).__name__,
        )
