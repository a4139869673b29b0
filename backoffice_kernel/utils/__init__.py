"""Deterministic utilities (hashing, idempotency keys)."""
