"""
Unit tests for the aggregate event publisher.
"""

import asyncio
import pytest
from dataclasses import dataclass
from unittest.mock import Mock

from ddd_kernel.application.services.event_publisher import AggregateEventPublisher
from ddd_kernel.domain.models.aggregate_root import AggregateRoot
from ddd_kernel.domain.models.entity import Entity
from ddd_kernel.domain.models.events import DomainEvent


@dataclass(frozen=True)
class TicketOpened(DomainEvent, event_type="test_publisher.TicketOpened"):
    ticket_id: str


@dataclass(frozen=True)
class TicketAssigned(DomainEvent, event_type="test_publisher.TicketAssigned"):
    ticket_id: str
    assignee: str


class Ticket(AggregateRoot):
    title: str

    def assign(self, assignee: str) -> None:
        self.add_domain_event(TicketAssigned(ticket_id=self.id, assignee=assignee))


@pytest.fixture
def publisher(dispatcher, mock_logger):
    return AggregateEventPublisher(dispatcher, mock_logger)


def opened_ticket(title="Printer on fire"):
    ticket = Ticket({"title": title})
    ticket.add_domain_event(TicketOpened(ticket_id=ticket.id))
    return ticket


class TestAggregateEventPublisher:
    """Test draining aggregates into the dispatcher."""

    def test_publish_dispatches_in_order_and_clears(self, publisher, dispatcher):
        """Test the transaction-boundary flow."""
        seen = []
        dispatcher.register(TicketOpened, lambda e: seen.append(e.event_type))
        dispatcher.register(TicketAssigned, lambda e: seen.append(e.assignee))
        ticket = opened_ticket()
        ticket.assign("grace")

        published = publisher.publish(ticket)

        assert seen == ["test_publisher.TicketOpened", "grace"]
        assert [e.event_type for e in published] == [
            "test_publisher.TicketOpened", "test_publisher.TicketAssigned"
        ]
        assert ticket.get_domain_events() == []

    def test_publish_without_events(self, publisher, mock_logger):
        """Test publishing an aggregate with nothing pending."""
        assert publisher.publish(Ticket({"title": "quiet"})) == []
        mock_logger.info.assert_not_called()

    def test_failed_dispatch_keeps_events(self, publisher, dispatcher, mock_logger):
        """Test that a failing handler leaves the buffer intact."""
        dispatcher.register(TicketOpened, Mock(side_effect=RuntimeError("index down")))
        ticket = opened_ticket()
        pending = ticket.get_domain_events()

        with pytest.raises(RuntimeError, match="index down"):
            publisher.publish(ticket)

        assert ticket.get_domain_events() == pending
        mock_logger.warning.assert_called_once()

    def test_publish_rejects_plain_entities(self, publisher):
        """Test that only aggregate roots are drained."""
        with pytest.raises(TypeError, match="Only aggregate roots publish events"):
            publisher.publish(Entity())

    def test_publish_all(self, publisher, dispatcher):
        """Test publishing several aggregates in order."""
        handler = Mock()
        dispatcher.register(TicketOpened, handler)
        first = opened_ticket("first")
        second = opened_ticket("second")

        published = publisher.publish_all([first, second])

        assert [e.ticket_id for e in published] == [first.id, second.id]
        assert handler.call_count == 2
        assert first.get_domain_events() == []
        assert second.get_domain_events() == []

    def test_publish_async(self, publisher, dispatcher):
        """Test publishing with asynchronous handlers."""
        seen = []

        async def index(event):
            await asyncio.sleep(0)
            seen.append(event.ticket_id)

        dispatcher.register(TicketOpened, index)
        ticket = opened_ticket()

        published = asyncio.run(publisher.publish_async(ticket))

        assert seen == [ticket.id]
        assert len(published) == 1
        assert ticket.get_domain_events() == []

    def test_follow_up_events_raised_by_handlers_are_published(self, publisher, dispatcher):
        """Test that events added during publishing are dispatched, not dropped."""
        seen = []
        ticket = opened_ticket()
        dispatcher.register(TicketOpened, lambda e: ticket.assign("triage"))
        dispatcher.register(TicketAssigned, lambda e: seen.append(e.assignee))

        published = publisher.publish(ticket)

        assert seen == ["triage"]
        assert [type(e) for e in published] == [TicketOpened, TicketAssigned]
        assert ticket.get_domain_events() == []

    def test_follow_up_events_are_published_async(self, publisher, dispatcher):
        """Test follow-up events with asynchronous handlers."""
        seen = []
        ticket = opened_ticket()

        async def auto_assign(event):
            ticket.assign("triage")

        dispatcher.register(TicketOpened, auto_assign)
        dispatcher.register(TicketAssigned, lambda e: seen.append(e.assignee))

        published = asyncio.run(publisher.publish_async(ticket))

        assert seen == ["triage"]
        assert len(published) == 2
        assert ticket.get_domain_events() == []

    def test_failed_follow_up_keeps_every_event(self, publisher, dispatcher):
        """Test that a failing follow-up handler leaves all events pending."""
        ticket = opened_ticket()
        dispatcher.register(TicketOpened, lambda e: ticket.assign("triage"))
        dispatcher.register(TicketAssigned, Mock(side_effect=RuntimeError("no agents")))

        with pytest.raises(RuntimeError, match="no agents"):
            publisher.publish(ticket)

        assert [type(e) for e in ticket.get_domain_events()] == [TicketOpened, TicketAssigned]
