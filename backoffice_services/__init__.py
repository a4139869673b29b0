"""
Services layer -- orchestration over the pure engines.

Services read configuration, compose engines, and hand complete results
to external collaborators. They hold no state between calls.
"""

from backoffice_services.batch_service import (
    BatchSubmission,
    TransactionBatch,
    TransactionBatchService,
    TransactionBatchSink,
)

__all__ = [
    "BatchSubmission",
    "TransactionBatch",
    "TransactionBatchService",
    "TransactionBatchSink",
]
