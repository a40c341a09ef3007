"""Batch status and payment status state machine.

``is_editable`` is the single authority on whether a batch's registrations
and pricing may change. Every mutating path goes through ``ensure_editable``.
"""

from batches.domain.errors import BatchLockedError, InvalidOperationError
from batches.domain.models import Batch, BatchStatus, PaymentStatus

BATCH_TRANSITIONS: dict[BatchStatus, frozenset[BatchStatus]] = {
    BatchStatus.DRAFT: frozenset({BatchStatus.SUBMITTED, BatchStatus.CANCELLED}),
    BatchStatus.SUBMITTED: frozenset({BatchStatus.CONFIRMED}),
    BatchStatus.CONFIRMED: frozenset(),
    BatchStatus.CANCELLED: frozenset(),
}

PAYMENT_TRANSITIONS: dict[PaymentStatus, frozenset[PaymentStatus]] = {
    PaymentStatus.PENDING: frozenset({PaymentStatus.PROCESSING}),
    PaymentStatus.PROCESSING: frozenset({PaymentStatus.COMPLETED, PaymentStatus.FAILED}),
    PaymentStatus.FAILED: frozenset({PaymentStatus.PENDING}),
    PaymentStatus.COMPLETED: frozenset(),
}

LOCKED_REASON = "Payment has been completed. Batch cannot be modified."


def is_editable(batch: Batch) -> bool:
    return batch.payment_status is not PaymentStatus.COMPLETED


def ensure_editable(batch: Batch, operation: str) -> None:
    """Raise BatchLockedError when ``batch`` is no longer editable."""
    if not is_editable(batch):
        raise BatchLockedError(batch.reference, operation)


def check_batch_transition(batch: Batch, target: BatchStatus) -> None:
    """Validate moving ``batch`` to ``target`` batch status.

    Confirmation additionally requires a completed payment.
    """
    if target not in BATCH_TRANSITIONS[batch.status]:
        raise InvalidOperationError(
            f"Cannot move batch from {batch.status.value} to {target.value}",
            batch.reference,
        )
    if target is BatchStatus.CONFIRMED and batch.payment_status is not PaymentStatus.COMPLETED:
        raise InvalidOperationError(
            "Batch can only be confirmed after payment is completed",
            batch.reference,
        )


def check_payment_transition(batch: Batch, target: PaymentStatus) -> None:
    if target not in PAYMENT_TRANSITIONS[batch.payment_status]:
        raise InvalidOperationError(
            f"Cannot move payment from {batch.payment_status.value} to {target.value}",
            batch.reference,
        )
