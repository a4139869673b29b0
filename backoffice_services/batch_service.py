"""
backoffice_services.batch_service -- Build and submit scheduled transaction batches.

Responsibility:
    Runs the scheduling control flow for one user action: shape and
    validate the template's cost-center distribution, expand the template
    into occurrences, and hand the complete batch to a persistence sink
    keyed by the client's request token.  Also provides the edit path for
    replacing an existing transaction's distribution.

Architecture position:
    Services -- orchestration over engines + kernel.
    Reads configuration once at construction through
    ``backoffice_config.get_active_config()`` unless one is injected.

Invariants enforced:
    - All-or-nothing: the sink receives a batch only after every
      occurrence has been built and validated.
    - Create and edit use the same ``CostCenterAllocator`` gate.
    - At-most-once: a batch is identified by an idempotency key derived
      from the request token; a replay with the same payload is reported
      as success without a second insert.

Failure modes:
    - RecurrenceError subclasses from policy resolution.
    - AllocationError subclasses from distribution checks (user-correctable).
    - BatchPayloadMismatchError when a token is reused for different
      contents (raised by the sink, propagated unchanged).
    - Sink infrastructure errors propagate unchanged.

Audit relevance:
    Every submission logs the idempotency key, occurrence count and
    payload hash under the request token's log context.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol

from backoffice_config import SchedulingConfig, get_active_config
from backoffice_engines.cost_center import CostCenterAllocator, DistributionInput
from backoffice_engines.recurrence import RecurrenceGenerator
from backoffice_kernel.domain.repetition import RepetitionPolicy
from backoffice_kernel.domain.transactions import (
    GeneratedTransaction,
    TransactionTemplate,
)
from backoffice_kernel.exceptions import BatchAlreadySubmittedError
from backoffice_kernel.logging_config import LogContext, get_logger
from backoffice_kernel.utils.hashing import hash_batch
from backoffice_kernel.utils.idempotency import generate_idempotency_key

logger = get_logger("services.batch")

SCHEDULE_OPERATION = "transactions.schedule"


@dataclass(frozen=True)
class TransactionBatch:
    """
    A complete, validated set of occurrences ready for atomic insert.

    Guarantees:
        - ``occurrences`` is non-empty and in ascending due-date order.
        - ``payload_hash`` is deterministic for equal token and records.
    """

    request_token: str
    idempotency_key: str
    occurrences: tuple[GeneratedTransaction, ...]
    payload_hash: str

    @property
    def records(self) -> list[dict[str, Any]]:
        return [occ.to_dict() for occ in self.occurrences]

    def __len__(self) -> int:
        return len(self.occurrences)


@dataclass(frozen=True)
class BatchSubmission:
    """Result of ``TransactionBatchService.submit``."""

    batch: TransactionBatch
    replayed: bool = False


class TransactionBatchSink(Protocol):
    """
    Persistence collaborator for generated batches.

    Contract:
        ``insert_batch`` commits every record of the batch or none of them.
        A sink that has already committed ``batch.idempotency_key`` raises
        ``BatchAlreadySubmittedError`` when the payload hash matches, and
        ``BatchPayloadMismatchError`` when it does not.
    """

    def insert_batch(self, batch: TransactionBatch) -> None: ...


class TransactionBatchService:
    """
    Build scheduled transaction batches and hand them to a sink.

    Contract:
        Stateless between calls; idempotency is enforced by the sink using
        the key carried on each batch.
    """

    def __init__(
        self,
        sink: TransactionBatchSink,
        config: SchedulingConfig | None = None,
        company_id: str = "*",
    ):
        self._sink = sink
        self._config = config or get_active_config()
        self._company_id = company_id
        self._generator = RecurrenceGenerator(self._config.max_occurrences)
        self._allocator = CostCenterAllocator(
            self._config.duplicate_cost_center_policy,
            self._config.amount_places,
        )

    @property
    def allocator(self) -> CostCenterAllocator:
        return self._allocator

    def build_batch(
        self,
        template: TransactionTemplate,
        policy: RepetitionPolicy,
        request_token: str,
    ) -> TransactionBatch:
        """
        Validate and expand ``template`` without touching the sink.

        Occurrences clone the template's distribution, so it is shaped and
        validated once up front; nothing is generated if it fails.
        """
        key = generate_idempotency_key(self._company_id, SCHEDULE_OPERATION, request_token)
        with LogContext.bind(request_token=request_token, company_id=self._company_id):
            lines = self._allocator.check_for_create(template.cost_center_distributions)
            occurrences = self._generator.generate(template.with_distributions(lines), policy)
            records = [occ.to_dict() for occ in occurrences]
            batch = TransactionBatch(
                request_token=request_token,
                idempotency_key=key,
                occurrences=occurrences,
                payload_hash=hash_batch(request_token, records),
            )
            logger.info("batch_built", extra={
                "idempotency_key": key,
                "occurrence_count": len(batch),
                "payload_hash": batch.payload_hash,
            })
            return batch

    def submit(
        self,
        template: TransactionTemplate,
        policy: RepetitionPolicy,
        request_token: str,
    ) -> BatchSubmission:
        """Build a batch and hand it to the sink exactly once per token."""
        batch = self.build_batch(template, policy, request_token)
        with LogContext.bind(request_token=request_token, company_id=self._company_id):
            try:
                self._sink.insert_batch(batch)
            except BatchAlreadySubmittedError:
                logger.info("batch_replayed", extra={
                    "idempotency_key": batch.idempotency_key,
                    "payload_hash": batch.payload_hash,
                })
                return BatchSubmission(batch=batch, replayed=True)

            logger.info("batch_submitted", extra={
                "idempotency_key": batch.idempotency_key,
                "occurrence_count": len(batch),
            })
            return BatchSubmission(batch=batch)

    def update_distributions(
        self,
        transaction: GeneratedTransaction | TransactionTemplate,
        distributions: DistributionInput,
    ) -> GeneratedTransaction | TransactionTemplate:
        """Edit path: re-validate and return the record with new lines."""
        lines = self._allocator.check_for_edit(transaction, distributions)
        return transaction.with_distributions(lines)
