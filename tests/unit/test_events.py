"""
Unit tests for the domain event contract.
"""

import pytest
from dataclasses import FrozenInstanceError, dataclass
from datetime import datetime, timezone

from ddd_kernel.domain.exceptions import EventTypeError
from ddd_kernel.domain.models.events import (
    DomainEvent, event_type_of, registered_event_types, resolve_event_class
)


@dataclass(frozen=True)
class InvoiceIssued(DomainEvent, event_type="test_events.InvoiceIssued"):
    invoice_id: str
    total: int = 0


@dataclass(frozen=True)
class PaymentEvent(DomainEvent):
    """Abstract intermediate event without a discriminator."""
    payment_id: str


@dataclass(frozen=True)
class PaymentReceived(PaymentEvent, event_type="test_events.PaymentReceived"):
    amount: int = 0


@dataclass(frozen=True)
class PaymentReceivedLate(PaymentReceived):
    """Subclass of a concrete event that declares no discriminator."""


class TestDomainEvent:
    """Test DomainEvent construction."""

    def test_event_type_is_explicit(self):
        """Test that the discriminator is the declared one."""
        event = InvoiceIssued(invoice_id="inv-1")
        assert event.event_type == "test_events.InvoiceIssued"
        assert InvoiceIssued.event_type == "test_events.InvoiceIssued"

    def test_metadata_defaults(self):
        """Test generated id and timestamp."""
        event = InvoiceIssued(invoice_id="inv-1")
        assert event.event_id
        assert event.event_id != InvoiceIssued(invoice_id="inv-1").event_id
        assert isinstance(event.occurred_at, datetime)
        assert event.occurred_at.tzinfo == timezone.utc

    def test_metadata_can_be_supplied(self):
        """Test reconstructing an event with known metadata."""
        occurred_at = datetime(2024, 1, 1, tzinfo=timezone.utc)
        event = InvoiceIssued(invoice_id="inv-1", event_id="e-1", occurred_at=occurred_at)
        assert event.event_id == "e-1"
        assert event.occurred_at == occurred_at

    def test_payload_excludes_metadata(self):
        """Test that the payload holds only event data."""
        event = InvoiceIssued(invoice_id="inv-1", total=42)
        assert event.payload == {"invoice_id": "inv-1", "total": 42}

    def test_event_is_immutable(self):
        """Test that events cannot change after construction."""
        event = InvoiceIssued(invoice_id="inv-1")
        with pytest.raises(FrozenInstanceError):
            event.invoice_id = "inv-2"

    def test_base_event_cannot_be_instantiated(self):
        """Test that events without a discriminator are rejected."""
        with pytest.raises(EventTypeError, match="has no event type"):
            DomainEvent()

    def test_intermediate_event_cannot_be_instantiated(self):
        """Test that abstract intermediate events are rejected."""
        with pytest.raises(EventTypeError, match="PaymentEvent has no event type"):
            PaymentEvent(payment_id="p-1")

    def test_subclass_does_not_inherit_discriminator(self):
        """Test that subclasses must declare their own discriminator."""
        assert PaymentReceived(payment_id="p-1").payload == {"payment_id": "p-1", "amount": 0}
        assert PaymentReceivedLate.event_type is None
        with pytest.raises(EventTypeError):
            PaymentReceivedLate(payment_id="p-1")


class TestEventTypeRegistry:
    """Test discriminator registration and resolution."""

    def test_classes_are_registered(self):
        """Test lookup of registered classes."""
        assert resolve_event_class("test_events.InvoiceIssued") is InvoiceIssued
        assert "test_events.PaymentReceived" in registered_event_types()

    def test_unknown_event_type(self):
        """Test lookup of an unknown discriminator."""
        with pytest.raises(EventTypeError, match="Unknown event type") as exc_info:
            resolve_event_class("test_events.Nope")
        assert exc_info.value.event_type == "test_events.Nope"

    def test_colliding_discriminator_rejected(self):
        """Test that two event kinds cannot share a discriminator."""
        with pytest.raises(EventTypeError, match="already used by"):
            @dataclass(frozen=True)
            class OtherInvoiceIssued(DomainEvent, event_type="test_events.InvoiceIssued"):
                pass

        assert resolve_event_class("test_events.InvoiceIssued") is InvoiceIssued

    def test_empty_discriminator_rejected(self):
        """Test that discriminators must be non-empty."""
        with pytest.raises(EventTypeError, match="non-empty string"):
            class BlankEvent(DomainEvent, event_type="  "):
                pass

    def test_event_type_of_resolves_all_references(self):
        """Test routing key resolution from names, classes and instances."""
        event = InvoiceIssued(invoice_id="inv-1")
        assert event_type_of("test_events.InvoiceIssued") == "test_events.InvoiceIssued"
        assert event_type_of(InvoiceIssued) == "test_events.InvoiceIssued"
        assert event_type_of(event) == "test_events.InvoiceIssued"

    def test_event_type_of_rejects_other_objects(self):
        """Test resolution failures."""
        with pytest.raises(EventTypeError):
            event_type_of("")
        with pytest.raises(EventTypeError):
            event_type_of(PaymentEvent)
        with pytest.raises(EventTypeError):
            event_type_of(42)
