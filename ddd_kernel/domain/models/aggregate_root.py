"""
Aggregate roots.
"""

from ddd_kernel.domain.models.entity import Entity


class AggregateRoot(Entity):
    """Entity that is the consistency boundary of a cluster of domain objects.

    All state changes to the cluster go through the root, and the root is
    the only object whose pending domain events are drained and dispatched
    (see ``AggregateEventPublisher``). It has no operations of its own beyond
    those of ``Entity``.
    """
