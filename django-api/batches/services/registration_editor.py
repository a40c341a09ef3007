"""Add, update and remove single students in a batch before payment.

Each edit re-reads the batch, checks it is still editable, re-prices it from
the new student count and writes it back with a version check. A conflicting
write aborts the unit of work and the edit is retried from a fresh read.
"""

import logging
from collections.abc import Callable, Mapping
from dataclasses import replace
from datetime import date
from functools import partial
from typing import Any

from events.domain import Event, Money
from events.domain.errors import EventNotFoundError
from events.stores.interfaces import EventStore

from batches.conf import get_setting
from batches.domain import Batch, Registration, RowError, SchoolId
from batches.domain import pricing
from batches.domain.errors import (
    BatchNotFoundError,
    InvalidOperationError,
    RegistrationNotFoundError,
    ValidationFailedError,
)
from batches.domain.lifecycle import ensure_editable
from batches.domain.value_objects import generate_registration_id
from batches.services.retry import run_with_retries
from batches.services.spreadsheet import parse_date
from batches.stores.interfaces import BatchStore
from batches.stores.unit_of_work import UnitOfWork, unit_of_work_factory

logger = logging.getLogger(__name__)


def _text(value: Any) -> str:
    return "" if value is None else str(value).strip()


def _email(value: Any) -> str | None:
    return _text(value).lower() or None


def _exam_date(value: Any) -> date | None:
    try:
        return parse_date(value)
    except ValueError:
        raise ValidationFailedError(
            (RowError(row=0, field="exam_date", message="Invalid date"),),
            message="Exam date must be an ISO date",
        ) from None


class RegistrationEditor:
    """Pre-payment edits of individual students within a batch."""

    def __init__(
        self,
        store: BatchStore,
        event_store: EventStore,
        uow_factory: Callable[[], UnitOfWork] | None = None,
        max_retries: int | None = None,
    ) -> None:
        self._store = store
        self._event_store = event_store
        self._uow_factory = uow_factory or unit_of_work_factory()
        self._max_retries = (
            max_retries if max_retries is not None else get_setting("MAX_EDIT_RETRIES")
        )

    def add_student(
        self, reference: str, school_id: SchoolId, student_data: Mapping[str, Any]
    ) -> tuple[Registration, dict[str, Any]]:
        """Append a student and return the registration with the new totals."""
        name = _text(student_data.get("student_name"))
        grade = _text(student_data.get("grade"))
        if not name or not grade:
            missing = tuple(
                RowError(row=0, field=field, message="Required")
                for field, value in (("student_name", name), ("grade", grade))
                if not value
            )
            raise ValidationFailedError(missing, message="Student name and grade are required")
        requested_date = _exam_date(student_data.get("exam_date"))

        def attempt() -> tuple[Registration, dict[str, Any]]:
            batch = self._load(reference, school_id)
            ensure_editable(batch, "add_student")
            event = self._event_for(batch)
            registration = Registration(
                registration_id=generate_registration_id(),
                batch_reference=reference,
                school_id=batch.school_id,
                event_id=batch.event_id,
                student_name=name,
                grade=grade,
                section=_text(student_data.get("section")),
                student_email=_email(student_data.get("student_email")),
                exam_date=event.exam_date_for(requested_date),
                dynamic_data=dict(student_data.get("dynamic_data") or {}),
            )
            with self._uow_factory() as uow:
                registration = self._store.insert_registration(registration)
                uow.on_abort(
                    partial(self._store.delete_registration, registration.registration_id)
                )
                ids = batch.registration_ids + (registration.registration_id,)
                batch = self._store.save_batch(self._repriced(batch, event, ids), "add_student")
            return registration, batch.totals

        registration, totals = run_with_retries(
            attempt, reference, "add_student", self._max_retries
        )
        logger.info("Student added to batch %s: %s", reference, registration.registration_id)
        return registration, totals

    def update_student(
        self,
        reference: str,
        school_id: SchoolId,
        registration_id: str,
        patch: Mapping[str, Any],
    ) -> Registration:
        """Apply a partial update; dynamic data is merged into the existing map."""
        changes: dict[str, Any] = {}
        if _text(patch.get("student_name")):
            changes["student_name"] = _text(patch["student_name"])
        if _text(patch.get("grade")):
            changes["grade"] = _text(patch["grade"])
        if "section" in patch:
            changes["section"] = _text(patch["section"])
        if "student_email" in patch:
            changes["student_email"] = _email(patch["student_email"])
        if "exam_date" in patch:
            changes["exam_date"] = _exam_date(patch["exam_date"])
        new_dynamic = patch.get("dynamic_data") or {}

        def attempt() -> Registration:
            batch = self._load(reference, school_id)
            ensure_editable(batch, "update_student")
            existing = self._store.get_registration(reference, registration_id)
            if existing is None:
                raise RegistrationNotFoundError(reference, registration_id)
            updated = replace(
                existing,
                **changes,
                dynamic_data={**existing.dynamic_data, **new_dynamic},
            )
            with self._uow_factory() as uow:
                self._store.update_registration(updated)
                uow.on_abort(partial(self._store.update_registration, existing))
                self._store.save_batch(batch, "update_student")
            return updated

        registration = run_with_retries(attempt, reference, "update_student", self._max_retries)
        logger.info("Student updated in batch %s: %s", reference, registration_id)
        return registration

    def remove_student(
        self, reference: str, school_id: SchoolId, registration_id: str
    ) -> tuple[str, dict[str, Any]]:
        """Remove a student; the last remaining student cannot be removed."""

        def attempt() -> tuple[str, dict[str, Any]]:
            batch = self._load(reference, school_id)
            ensure_editable(batch, "remove_student")
            if batch.student_count <= 1:
                raise InvalidOperationError(
                    "Cannot remove the last student. Delete the batch instead.", reference
                )
            existing = self._store.get_registration(reference, registration_id)
            if existing is None:
                raise RegistrationNotFoundError(reference, registration_id)
            event = self._event_for(batch)
            ids = tuple(rid for rid in batch.registration_ids if rid != registration_id)
            with self._uow_factory() as uow:
                self._store.delete_registration(registration_id)
                uow.on_abort(partial(self._store.insert_registration, existing))
                batch = self._store.save_batch(
                    self._repriced(batch, event, ids), "remove_student"
                )
            return registration_id, batch.totals

        result = run_with_retries(attempt, reference, "remove_student", self._max_retries)
        logger.info("Student removed from batch %s: %s", reference, registration_id)
        return result

    def _load(self, reference: str, school_id: SchoolId) -> Batch:
        batch = self._store.get_batch(reference, school_id)
        if batch is None:
            raise BatchNotFoundError(reference)
        return batch

    def _event_for(self, batch: Batch) -> Event:
        event = self._event_store.get_event(batch.event_id)
        if event is None:
            raise EventNotFoundError(str(batch.event_id))
        return event

    @staticmethod
    def _repriced(batch: Batch, event: Event, ids: tuple[str, ...]) -> Batch:
        fee = Money(amount=batch.base_fee_per_student, currency=batch.currency)
        price = pricing.resolve(fee, len(ids), event.discount_rules)
        return batch.with_registrations(ids, price)
