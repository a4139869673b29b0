"""
Pytest fixtures for the back-office scheduling test suite.

Provides:
- Logging state reset between tests
- Template factory for the common expense shape
- An in-memory batch sink that enforces request-token idempotency
- A default SchedulingConfig that does not touch the filesystem
"""

from datetime import date

import pytest

from backoffice_config.schema import SchedulingConfig
from backoffice_kernel.domain.transactions import TransactionTemplate
from backoffice_kernel.exceptions import (
    BatchAlreadySubmittedError,
    BatchPayloadMismatchError,
)
from backoffice_kernel.logging_config import LogContext, reset_logging


@pytest.fixture(autouse=True)
def _clean_logging():
    """Reset logging state between tests."""
    reset_logging()
    LogContext.clear()
    yield
    LogContext.clear()
    reset_logging()


@pytest.fixture
def make_template():
    """Factory for expense templates; keyword overrides replace defaults."""

    def _make(**overrides) -> TransactionTemplate:
        values = {
            "type": "expense",
            "title": "Office rent",
            "amount": "1000.00",
            "due_date": date(2024, 1, 31),
            "chart_account_id": "coa-rent",
            "person_id": "landlord-1",
            "payment_method_id": "pm-transfer",
        }
        values.update(overrides)
        return TransactionTemplate(**values)

    return _make


@pytest.fixture
def scheduling_config() -> SchedulingConfig:
    return SchedulingConfig()


class RecordingSink:
    """In-memory sink: one committed batch per idempotency key."""

    def __init__(self):
        self.committed = {}
        self.attempts = 0

    def insert_batch(self, batch) -> None:
        self.attempts += 1
        existing = self.committed.get(batch.idempotency_key)
        if existing is not None:
            if existing.payload_hash == batch.payload_hash:
                raise BatchAlreadySubmittedError(batch.request_token)
            raise BatchPayloadMismatchError(
                batch.request_token, existing.payload_hash, batch.payload_hash
            )
        self.committed[batch.idempotency_key] = batch

    @property
    def record_count(self) -> int:
        return sum(len(b) for b in self.committed.values())


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


