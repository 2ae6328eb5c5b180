"""Structured event emission and in-memory event store shared by gateway and client."""
