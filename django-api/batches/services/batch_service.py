"""Batch service - the upload workflow and read projections.

Services:
- Depend only on interfaces (stores, parsers, storage, cache)
- Validate domain invariants
- Perform orchestration and error mapping
- Return domain models or domain errors
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from events.domain import FormField
from events.domain.errors import EventNotFoundError
from events.services.event_service import EventService

from batches.domain import (
    Batch,
    BatchExport,
    BatchStatus,
    PaymentStatus,
    School,
    SchoolId,
    ValidationResult,
)
from batches.domain.errors import (
    BatchNotFoundError,
    PersistenceFailureError,
    SchoolNotFoundError,
    SchoolNotVerifiedError,
    ValidationFailedError,
)
from batches.domain.value_objects import generate_batch_reference
from batches.handlers.serializers import BatchExportSerializer, ValidationResultSerializer
from batches.services.batch_persister import BatchPersister
from batches.services.spreadsheet import SpreadsheetValidator, UploadedSheet
from batches.services.storage import FileStorage
from batches.services.validation_cache import ValidationCache
from batches.stores.interfaces import BatchStore, SchoolStore

logger = logging.getLogger(__name__)

MAX_REPORTED_ERRORS = 50
RECENT_BATCHES = 5
EXPORT_COLUMNS = frozenset(
    {
        "Registration ID",
        "Student Name",
        "Grade",
        "Section",
        "Exam Date",
        "Batch Reference",
        "Payment Status",
        "Total Amount",
        "Currency",
    }
)


def _form_column(field: FormField) -> str:
    # Form fields never shadow a built-in export column.
    if field.field_label in EXPORT_COLUMNS:
        return f"{field.field_label} ({field.field_id})"
    return field.field_label


def _upload_name(upload: UploadedSheet, reference: str) -> str:
    return upload.filename or f"batch_{reference}.csv"


@dataclass(frozen=True)
class ValidationOutcome:
    validation_id: str
    result: ValidationResult
    currency: str


@dataclass(frozen=True)
class BatchPage:
    batches: tuple[Batch, ...]
    total: int
    page: int
    limit: int

    @property
    def total_pages(self) -> int:
        return -(-self.total // self.limit) if self.limit else 0


class BatchService:
    """Service for validating, committing and reading batches."""

    def __init__(
        self,
        store: BatchStore,
        school_store: SchoolStore,
        event_service: EventService,
        validator: SpreadsheetValidator,
        cache: ValidationCache,
        persister: BatchPersister,
        storage: FileStorage | None = None,
    ) -> None:
        self._store = store
        self._school_store = school_store
        self._event_service = event_service
        self._validator = validator
        self._cache = cache
        self._persister = persister
        self._storage = storage

    def validate_upload(
        self, school_id: SchoolId, event_slug: str, upload: UploadedSheet
    ) -> ValidationOutcome:
        """Parse and validate an upload without creating anything.

        Raises:
            SchoolNotFoundError: If the school does not exist.
            EventNotFoundError: If the event does not exist.
        """
        school = self._get_school(school_id)
        event = self._event_service.get_event_by_slug(event_slug)
        result = self._validator.validate(upload, event)
        validation_id = self._cache.put(school.id, event.id, result)
        return ValidationOutcome(
            validation_id=validation_id, result=result, currency=school.currency
        )

    def validation_report(self, outcome: ValidationOutcome) -> dict[str, Any]:
        """Serialize a validation outcome for the uploader, errors capped."""
        report = dict(ValidationResultSerializer(outcome.result).data)
        report["errors"] = report["errors"][:MAX_REPORTED_ERRORS]
        report["validation_id"] = outcome.validation_id
        report["currency"] = outcome.currency
        return report

    def commit_upload(
        self,
        school_id: SchoolId,
        event_slug: str,
        upload: UploadedSheet,
        validation_id: str | None = None,
    ) -> BatchExport:
        """Create a batch from an upload, reusing a cached validation when possible.

        Raises:
            SchoolNotFoundError: If the school does not exist.
            SchoolNotVerifiedError: If the school has not verified its account.
            EventNotFoundError: If the event does not exist.
            EventClosedError: If the event does not accept registrations now.
            ValidationFailedError: If the upload has invalid rows.
            PersistenceFailureError: If the batch could not be written.
        """
        school = self._get_school(school_id)
        if not school.is_verified:
            raise SchoolNotVerifiedError(str(school_id))
        event = self._event_service.get_open_event(event_slug)

        result = None
        if validation_id:
            cached = self._cache.get(validation_id, school.id, event.id)
            if cached is not None and cached.success:
                logger.info("Using cached validation for batch upload: %s", validation_id)
                result = cached
        if result is None:
            logger.info("Cache miss or no validation id, parsing uploaded file")
            result = self._validator.validate(upload, event)

        if not result.success:
            raise ValidationFailedError(result.errors[:MAX_REPORTED_ERRORS], result.summary)

        reference = generate_batch_reference(school.school_code)
        uploaded_file_url = self._store_upload(upload, reference)
        try:
            batch = self._persister.create_batch(
                school,
                event,
                result.rows,
                uploaded_file_url=uploaded_file_url,
                reference=reference,
            )
        except PersistenceFailureError:
            if uploaded_file_url is not None:
                self._discard_upload(upload, reference)
            raise
        return BatchExport(
            batch=batch,
            registrations=tuple(self._store.get_registrations(batch.reference)),
            form_schema=event.form_schema,
        )

    def delete_batch(self, reference: str, school_id: SchoolId) -> None:
        self._persister.delete_batch(reference, school_id)

    def get_batch(self, reference: str, school_id: SchoolId | None = None) -> BatchExport:
        """Return a batch with its registrations, scoped to a school when given."""
        batch = self._store.get_batch(reference, school_id)
        if batch is None:
            raise BatchNotFoundError(reference)
        try:
            form_schema = self._event_service.get_event(str(batch.event_id)).form_schema
        except EventNotFoundError:
            form_schema = ()
        return BatchExport(
            batch=batch,
            registrations=tuple(self._store.get_registrations(reference)),
            form_schema=form_schema,
        )

    def list_batches(
        self,
        school_id: SchoolId,
        status: BatchStatus | None = None,
        event_slug: str | None = None,
        page: int = 1,
        limit: int = 10,
    ) -> BatchPage:
        event_id = None
        if event_slug:
            event_id = self._event_service.get_event_by_slug(event_slug).id
        page = max(page, 1)
        batches, total = self._store.list_batches(
            school_id, status=status, event_id=event_id, offset=(page - 1) * limit, limit=limit
        )
        return BatchPage(batches=tuple(batches), total=total, page=page, limit=limit)

    def statistics(self, school_id: SchoolId) -> dict[str, Any]:
        batches, _ = self._store.list_batches(school_id)
        return {
            "total_batches": len(batches),
            "total_students": sum(batch.student_count for batch in batches),
            "by_status": {
                status.value: sum(1 for batch in batches if batch.status is status)
                for status in BatchStatus
            },
            "by_payment_status": {
                status.value: sum(1 for batch in batches if batch.payment_status is status)
                for status in PaymentStatus
            },
            "total_amount_paid": sum(
                (
                    batch.total_amount
                    for batch in batches
                    if batch.payment_status is PaymentStatus.COMPLETED
                ),
                Decimal(0),
            ),
            "recent_batches": [
                {
                    "batch_reference": batch.reference,
                    "student_count": batch.student_count,
                    "total_amount": batch.total_amount,
                    "payment_status": batch.payment_status.value,
                    "created_at": batch.created_at,
                }
                for batch in batches[:RECENT_BATCHES]
            ],
        }

    def export_batch(self, reference: str, school_id: SchoolId | None = None) -> dict[str, Any]:
        """Serialize a batch and its ordered registrations for report generation."""
        return BatchExportSerializer(self.get_batch(reference, school_id)).data

    def export_rows(
        self, reference: str, school_id: SchoolId | None = None
    ) -> list[dict[str, Any]]:
        """Flatten a batch into one row per student, one column per form field."""
        export = self.get_batch(reference, school_id)
        batch = export.batch
        rows = []
        for registration in export.registrations:
            row = {
                "Registration ID": registration.registration_id,
                "Student Name": registration.student_name,
                "Grade": registration.grade,
                "Section": registration.section,
                "Exam Date": registration.exam_date.isoformat() if registration.exam_date else "",
            }
            for field in export.form_schema:
                row[_form_column(field)] = registration.dynamic_data.get(field.field_id, "")
            row["Batch Reference"] = batch.reference
            row["Payment Status"] = batch.payment_status.value
            row["Total Amount"] = batch.total_amount
            row["Currency"] = batch.currency
            rows.append(row)
        return rows

    def _get_school(self, school_id: SchoolId) -> School:
        school = self._school_store.get_school(school_id)
        if school is None:
            raise SchoolNotFoundError(str(school_id))
        return school

    def _store_upload(self, upload: UploadedSheet, reference: str) -> str | None:
        if self._storage is None:
            return None
        try:
            url = self._storage.store(upload.content, _upload_name(upload, reference), reference)
        except Exception:
            logger.warning("Failed to store uploaded file for %s", reference, exc_info=True)
            return None
        logger.info("Uploaded file stored for %s", reference)
        return url

    def _discard_upload(self, upload: UploadedSheet, reference: str) -> None:
        try:
            self._storage.delete(_upload_name(upload, reference), reference)
        except Exception:
            logger.warning("Failed to remove uploaded file for %s", reference, exc_info=True)
            return
        logger.info("Removed uploaded file of failed batch %s", reference)
