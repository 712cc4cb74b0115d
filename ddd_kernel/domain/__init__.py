"""
Domain layer - entities, value objects, aggregates, domain events and the
event dispatcher. This layer is independent of external concerns.
"""
