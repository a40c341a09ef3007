"""Status transitions of a batch and its payment.

Payment status changes are pushed by the external payment subsystem through
``apply_payment_status``; this service only validates and records them.
"""

import logging
from dataclasses import replace
from typing import Any

from batches.conf import get_setting
from batches.domain import Batch, BatchStatus, PaymentStatus, SchoolId
from batches.domain.errors import BatchNotFoundError
from batches.domain.lifecycle import (
    LOCKED_REASON,
    check_batch_transition,
    check_payment_transition,
    is_editable,
)
from batches.services.retry import run_with_retries
from batches.stores.interfaces import BatchStore

logger = logging.getLogger(__name__)


class LifecycleService:
    def __init__(self, store: BatchStore, max_retries: int | None = None) -> None:
        self._store = store
        self._max_retries = (
            max_retries if max_retries is not None else get_setting("MAX_EDIT_RETRIES")
        )

    def editable_status(self, reference: str, school_id: SchoolId) -> dict[str, Any]:
        batch = self._load(reference, school_id)
        editable = is_editable(batch)
        return {
            "editable": editable,
            "payment_status": batch.payment_status.value,
            "batch_status": batch.status.value,
            "reason": None if editable else LOCKED_REASON,
        }

    def apply_payment_status(self, reference: str, status: PaymentStatus) -> Batch:
        """Record a payment status reported by the payment subsystem."""

        def attempt() -> Batch:
            batch = self._load(reference)
            check_payment_transition(batch, status)
            return self._store.save_batch(replace(batch, payment_status=status), "payment_status")

        batch = run_with_retries(attempt, reference, "payment_status", self._max_retries)
        logger.info("Payment status of batch %s is now %s", reference, status.value)
        return batch

    def submit(self, reference: str, school_id: SchoolId) -> Batch:
        return self._transition(reference, BatchStatus.SUBMITTED, school_id)

    def confirm(self, reference: str) -> Batch:
        return self._transition(reference, BatchStatus.CONFIRMED)

    def cancel(self, reference: str, school_id: SchoolId | None = None) -> Batch:
        return self._transition(reference, BatchStatus.CANCELLED, school_id)

    def _transition(
        self, reference: str, target: BatchStatus, school_id: SchoolId | None = None
    ) -> Batch:
        def attempt() -> Batch:
            batch = self._load(reference, school_id)
            check_batch_transition(batch, target)
            return self._store.save_batch(replace(batch, status=target), f"batch_{target.value}")

        batch = run_with_retries(attempt, reference, f"batch_{target.value}", self._max_retries)
        logger.info("Batch %s moved to %s", reference, target.value)
        return batch

    def _load(self, reference: str, school_id: SchoolId | None = None) -> Batch:
        batch = self._store.get_batch(reference, school_id)
        if batch is None:
            raise BatchNotFoundError(reference)
        return batch
