"""Atomic creation and deletion of a batch with its registrations."""

import logging
from collections.abc import Callable, Sequence
from dataclasses import replace
from functools import partial

from django.db import DatabaseError

from events.domain import Event

from batches.domain import Batch, BatchStatus, Registration, School, SchoolId, StudentData
from batches.domain import pricing
from batches.domain.errors import (
    BatchNotFoundError,
    InvalidOperationError,
    PersistenceFailureError,
)
from batches.domain.lifecycle import ensure_editable
from batches.domain.value_objects import generate_batch_reference, generate_registration_id
from batches.stores.interfaces import BatchStore
from batches.stores.unit_of_work import UnitOfWork, unit_of_work_factory

logger = logging.getLogger(__name__)


class BatchPersister:
    """Writes a Batch and its Registrations as one unit of work."""

    def __init__(
        self,
        store: BatchStore,
        uow_factory: Callable[[], UnitOfWork] | None = None,
    ) -> None:
        self._store = store
        self._uow_factory = uow_factory or unit_of_work_factory()

    def create_batch(
        self,
        school: School,
        event: Event,
        rows: Sequence[StudentData],
        uploaded_file_url: str | None = None,
        reference: str | None = None,
    ) -> Batch:
        """Create a draft batch with one registration per row.

        Raises:
            InvalidOperationError: If there are no rows.
            PersistenceFailureError: If any write failed; nothing is kept.
        """
        if not rows:
            raise InvalidOperationError("No student data found in the uploaded file")

        fee = event.base_fee_for(school.currency)
        price = pricing.resolve(fee, len(rows), event.discount_rules)
        reference = reference or generate_batch_reference(school.school_code)

        registrations = [
            Registration(
                registration_id=generate_registration_id(),
                batch_reference=reference,
                school_id=school.id,
                event_id=event.id,
                student_name=row.student_name,
                grade=row.grade,
                section=row.section,
                student_email=row.student_email,
                exam_date=event.exam_date_for(row.exam_date),
                dynamic_data=dict(row.dynamic_data),
            )
            for row in rows
        ]
        batch = Batch(
            reference=reference,
            school_id=school.id,
            event_id=event.id,
            currency=school.currency,
            base_fee_per_student=fee.amount,
            student_count=len(rows),
            subtotal_amount=price.subtotal,
            discount_percentage=price.discount_percentage,
            discount_amount=price.discount_amount,
            total_amount=price.total,
            status=BatchStatus.DRAFT,
            uploaded_file_url=uploaded_file_url,
        )

        try:
            with self._uow_factory() as uow:
                batch = self._store.insert_batch(batch)
                uow.on_abort(partial(self._store.delete_batch, reference))
                for registration in registrations:
                    self._store.insert_registration(registration)
                    uow.on_abort(
                        partial(self._store.delete_registration, registration.registration_id)
                    )
                batch = self._store.save_batch(
                    replace(
                        batch,
                        registration_ids=tuple(r.registration_id for r in registrations),
                    ),
                    operation="create_batch",
                )
        except DatabaseError as exc:
            logger.error("Batch creation failed for %s: %s", reference, exc)
            raise PersistenceFailureError(reference, "create_batch") from exc

        logger.info(
            "Batch created: %s for school: %s, event: %s, students: %d",
            reference,
            school.school_code,
            event.slug,
            batch.student_count,
        )
        return batch

    def delete_batch(self, reference: str, school_id: SchoolId) -> None:
        """Delete a draft, unpaid batch together with its registrations.

        Raises:
            BatchNotFoundError: If the school has no such batch.
            BatchLockedError: If payment has completed.
            InvalidOperationError: If the batch is not a draft or has payments.
            ConflictingUpdateError: If the batch changed while deleting.
            PersistenceFailureError: If a write failed.
        """
        batch = self._store.get_batch(reference, school_id)
        if batch is None:
            raise BatchNotFoundError(reference)
        ensure_editable(batch, "delete_batch")
        if batch.status is not BatchStatus.DRAFT:
            raise InvalidOperationError("Only draft batches can be deleted", reference)
        if self._store.has_payment_records(reference):
            raise InvalidOperationError(
                "Cannot delete batch with associated payment records. Please contact support.",
                reference,
            )

        try:
            with self._uow_factory() as uow:
                # Claim the batch so a concurrent edit cannot slip in.
                self._store.save_batch(batch, operation="delete_batch")
                removed = self._store.delete_registrations(reference)
                uow.on_abort(partial(self._restore_registrations, removed))
                self._store.delete_batch(reference)
        except DatabaseError as exc:
            logger.error("Batch deletion failed for %s: %s", reference, exc)
            raise PersistenceFailureError(reference, "delete_batch") from exc

        logger.info("Batch deleted: %s by school: %s", reference, school_id)

    def _restore_registrations(self, registrations: list[Registration]) -> None:
        for registration in registrations:
            self._store.insert_registration(registration)
