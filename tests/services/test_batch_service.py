"""
Tests for TransactionBatchService.

Verifies:
- A submitted template lands in the sink as one complete batch
- Replays with the same request token commit nothing new
- Token reuse with different contents is rejected
- Invalid distributions leave the sink untouched
- The edit path shares the create gate
"""

import json
import logging
from datetime import date
from decimal import Decimal
from io import StringIO

import pytest

from backoffice_config.schema import SchedulingConfig
from backoffice_kernel.domain.repetition import RepetitionPolicy
from backoffice_kernel.domain.transactions import CostCenterDistribution
from backoffice_kernel.exceptions import (
    BatchPayloadMismatchError,
    DistributionSumMismatchError,
    DuplicateCostCenterError,
    InvalidRepetitionPolicyError,
)
from backoffice_kernel.logging_config import StructuredFormatter, configure_logging
from backoffice_services.batch_service import SCHEDULE_OPERATION, TransactionBatchService


def _lines(*pairs):
    return [{"costCenterId": cc, "percentage": pct} for cc, pct in pairs]


class TestSubmit:
    @pytest.fixture(autouse=True)
    def _service(self, sink, scheduling_config):
        self.sink = sink
        self.service = TransactionBatchService(sink, scheduling_config, company_id="acme")

    def test_year_batch_committed_once(self, make_template):
        result = self.service.submit(make_template(), RepetitionPolicy.year(), "tok-1")

        assert not result.replayed
        assert len(result.batch) == 12
        assert self.sink.record_count == 12
        assert result.batch.idempotency_key == f"acme:{SCHEDULE_OPERATION}:tok-1"
        assert [o.due_date for o in result.batch.occurrences][:3] == [
            date(2024, 1, 31),
            date(2024, 2, 29),
            date(2024, 3, 31),
        ]

    def test_replay_reports_success_without_new_records(self, make_template):
        first = self.service.submit(make_template(), RepetitionPolicy.year(), "tok-1")
        second = self.service.submit(make_template(), RepetitionPolicy.year(), "tok-1")

        assert second.replayed
        assert second.batch.payload_hash == first.batch.payload_hash
        assert self.sink.attempts == 2
        assert self.sink.record_count == 12

    def test_new_token_is_a_new_batch(self, make_template):
        self.service.submit(make_template(), RepetitionPolicy.semester(), "tok-1")
        self.service.submit(make_template(), RepetitionPolicy.semester(), "tok-2")
        assert self.sink.record_count == 12

    def test_token_reuse_with_different_payload(self, make_template):
        self.service.submit(make_template(), RepetitionPolicy.year(), "tok-1")
        with pytest.raises(BatchPayloadMismatchError) as exc_info:
            self.service.submit(make_template(amount="999.00"), RepetitionPolicy.year(), "tok-1")
        assert exc_info.value.request_token == "tok-1"
        assert self.sink.record_count == 12

    def test_sum_mismatch_touches_nothing(self, make_template):
        template = make_template(cost_center_distributions=_lines(("A", 60), ("B", 39)))
        with pytest.raises(DistributionSumMismatchError) as exc_info:
            self.service.submit(template, RepetitionPolicy.year(), "tok-1")
        assert exc_info.value.actual_sum == Decimal("99")
        assert self.sink.attempts == 0

    def test_duplicate_cost_center_rejected_by_default(self, make_template):
        template = make_template(cost_center_distributions=_lines(("A", 50), ("A", 50)))
        with pytest.raises(DuplicateCostCenterError):
            self.service.submit(template, RepetitionPolicy.single_month(), "tok-1")
        assert self.sink.attempts == 0

    def test_policy_over_ceiling_touches_nothing(self, make_template):
        with pytest.raises(InvalidRepetitionPolicyError):
            self.service.submit(make_template(), RepetitionPolicy.months(121), "tok-1")
        assert self.sink.attempts == 0

    def test_occurrences_carry_shaped_distribution(self, make_template):
        template = make_template(
            cost_center_distributions=_lines(("A", 60), ("B", 40), ("C", 0))
        )
        result = self.service.submit(template, RepetitionPolicy.months(3), "tok-1")
        for occurrence in result.batch.occurrences:
            assert occurrence.cost_center_distributions == (
                CostCenterDistribution("A", 60),
                CostCenterDistribution("B", 40),
            )

    def test_records_are_plain_camel_case(self, make_template):
        batch = self.service.build_batch(make_template(), RepetitionPolicy.months(2), "tok-1")
        records = batch.records
        assert [r["dueDate"] for r in records] == ["2024-01-31", "2024-02-29"]
        assert records[0]["chartAccountId"] == "coa-rent"
        assert records[1]["occurrenceIndex"] == 1
        json.dumps(records)

    def test_build_batch_is_deterministic(self, make_template):
        a = self.service.build_batch(make_template(), RepetitionPolicy.year(), "tok-1")
        b = self.service.build_batch(make_template(), RepetitionPolicy.year(), "tok-1")
        assert a.payload_hash == b.payload_hash
        assert self.sink.attempts == 0

    def test_sink_failure_propagates(self, make_template):
        class BrokenSink:
            def insert_batch(self, batch):
                raise ConnectionError("database unavailable")

        service = TransactionBatchService(BrokenSink(), SchedulingConfig())
        with pytest.raises(ConnectionError):
            service.submit(make_template(), RepetitionPolicy.year(), "tok-1")

    def test_submission_logged_with_request_token(self, make_template):
        stream = StringIO()
        handler = logging.StreamHandler(stream)
        handler.setFormatter(StructuredFormatter())
        configure_logging(handler=handler)

        self.service.submit(make_template(), RepetitionPolicy.semester(), "tok-9")

        entries = [json.loads(line) for line in stream.getvalue().splitlines() if line]
        submitted = [e for e in entries if e["message"] == "batch_submitted"]
        assert len(submitted) == 1
        assert submitted[0]["request_token"] == "tok-9"
        assert submitted[0]["company_id"] == "acme"
        assert submitted[0]["occurrence_count"] == 6


class TestConfiguredService:
    def test_ceiling_from_config(self, sink, make_template):
        service = TransactionBatchService(sink, SchedulingConfig(max_occurrences=6))
        service.submit(make_template(), RepetitionPolicy.semester(), "tok-1")
        with pytest.raises(InvalidRepetitionPolicyError):
            service.submit(make_template(), RepetitionPolicy.year(), "tok-2")

    def test_merge_policy_from_config(self, sink, make_template):
        service = TransactionBatchService(
            sink, SchedulingConfig(duplicate_cost_center_policy="merge")
        )
        template = make_template(cost_center_distributions=_lines(("A", 50), ("A", 50)))
        result = service.submit(template, RepetitionPolicy.single_month(), "tok-1")
        assert result.batch.occurrences[0].cost_center_distributions == (
            CostCenterDistribution("A", 100),
        )


class TestUpdateDistributions:
    def setup_method(self):
        self.service = TransactionBatchService(sink=None, config=SchedulingConfig())

    def test_edit_replaces_lines(self, make_template):
        original = make_template(cost_center_distributions=_lines(("A", 100)))
        updated = self.service.update_distributions(original, _lines(("A", 25), ("B", 75)))
        assert [d.cost_center_id for d in updated.cost_center_distributions] == ["A", "B"]
        assert original.cost_center_distributions == (CostCenterDistribution("A", 100),)

    def test_edit_rejects_like_create(self, make_template):
        with pytest.raises(DistributionSumMismatchError, match="got 101%"):
            self.service.update_distributions(make_template(), _lines(("A", 60), ("B", 41)))

    def test_edit_to_empty(self, make_template):
        original = make_template(cost_center_distributions=_lines(("A", 100)))
        assert self.service.update_distributions(original, []).cost_center_distributions == ()
