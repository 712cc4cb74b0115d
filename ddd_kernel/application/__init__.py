"""Application layer - wiring and transaction-boundary services."""
