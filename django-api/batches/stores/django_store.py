"""Django ORM implementation of the batch and school stores."""

from dataclasses import replace

from django.db.models import F
from django.utils import timezone

from events.domain import EventId

from batches import models
from batches.conf import get_setting
from batches.domain import (
    Batch,
    BatchStatus,
    PaymentStatus,
    Registration,
    School,
    SchoolId,
)
from batches.domain.errors import ConflictingUpdateError
from batches.stores.interfaces import BatchStore, SchoolStore


def school_to_domain(row: models.School) -> School:
    return School(
        id=SchoolId(value=row.id),
        name=row.name,
        school_code=row.school_code,
        currency=row.currency_pref or get_setting("DEFAULT_CURRENCY"),
        is_verified=row.is_verified,
    )


def batch_to_domain(row: models.Batch) -> Batch:
    return Batch(
        reference=row.batch_reference,
        school_id=SchoolId(value=row.school_id),
        event_id=EventId(value=row.event_id),
        currency=row.currency,
        base_fee_per_student=row.base_fee_per_student,
        student_count=row.student_count,
        subtotal_amount=row.subtotal_amount,
        discount_percentage=row.discount_percentage,
        discount_amount=row.discount_amount,
        total_amount=row.total_amount,
        status=BatchStatus(row.status),
        payment_status=PaymentStatus(row.payment_status),
        registration_ids=tuple(row.registration_ids),
        uploaded_file_url=row.uploaded_file_url,
        version=row.version,
        created_at=row.created_at,
    )


def registration_to_domain(row: models.Registration, reference: str) -> Registration:
    return Registration(
        registration_id=row.registration_id,
        batch_reference=reference,
        school_id=SchoolId(value=row.school_id),
        event_id=EventId(value=row.event_id),
        student_name=row.student_name,
        grade=row.grade,
        section=row.section,
        student_email=row.student_email,
        exam_date=row.exam_date,
        dynamic_data=dict(row.dynamic_data or {}),
        created_at=row.created_at,
    )


def _batch_fields(batch: Batch) -> dict:
    return {
        "registration_ids": list(batch.registration_ids),
        "student_count": batch.student_count,
        "currency": batch.currency,
        "base_fee_per_student": batch.base_fee_per_student,
        "subtotal_amount": batch.subtotal_amount,
        "discount_percentage": batch.discount_percentage,
        "discount_amount": batch.discount_amount,
        "total_amount": batch.total_amount,
        "status": batch.status.value,
        "payment_status": batch.payment_status.value,
        "uploaded_file_url": batch.uploaded_file_url,
    }


def _registration_fields(registration: Registration) -> dict:
    return {
        "student_name": registration.student_name,
        "grade": registration.grade,
        "section": registration.section,
        "student_email": registration.student_email,
        "exam_date": registration.exam_date,
        "dynamic_data": dict(registration.dynamic_data),
    }


class DjangoSchoolStore(SchoolStore):
    def get_school(self, school_id: SchoolId) -> School | None:
        row = models.School.objects.filter(id=school_id.value).first()
        return school_to_domain(row) if row else None


class DjangoBatchStore(BatchStore):
    """Relational batch store using Django ORM."""

    def get_batch(self, reference: str, school_id: SchoolId | None = None) -> Batch | None:
        query = models.Batch.objects.filter(batch_reference=reference)
        if school_id is not None:
            query = query.filter(school_id=school_id.value)
        row = query.first()
        return batch_to_domain(row) if row else None

    def list_batches(
        self,
        school_id: SchoolId,
        status: BatchStatus | None = None,
        event_id: EventId | None = None,
        offset: int = 0,
        limit: int | None = None,
    ) -> tuple[list[Batch], int]:
        query = models.Batch.objects.filter(school_id=school_id.value)
        if status is not None:
            query = query.filter(status=status.value)
        if event_id is not None:
            query = query.filter(event_id=event_id.value)
        total = query.count()
        query = query.order_by("-created_at")
        page = query[offset:offset + limit] if limit is not None else query[offset:]
        return [batch_to_domain(row) for row in page], total

    def get_registrations(self, reference: str) -> list[Registration]:
        batch = models.Batch.objects.filter(batch_reference=reference).first()
        if batch is None:
            return []
        rows = {
            row.registration_id: row
            for row in models.Registration.objects.filter(batch_id=batch.id)
        }
        return [
            registration_to_domain(rows[registration_id], reference)
            for registration_id in batch.registration_ids
            if registration_id in rows
        ]

    def get_registration(self, reference: str, registration_id: str) -> Registration | None:
        row = models.Registration.objects.filter(
            registration_id=registration_id,
            batch__batch_reference=reference,
        ).first()
        return registration_to_domain(row, reference) if row else None

    def insert_batch(self, batch: Batch) -> Batch:
        row = models.Batch.objects.create(
            batch_reference=batch.reference,
            school_id=batch.school_id.value,
            event_id=batch.event_id.value,
            version=0,
            **_batch_fields(batch),
        )
        return replace(batch, version=0, created_at=row.created_at)

    def save_batch(self, batch: Batch, operation: str) -> Batch:
        updated = models.Batch.objects.filter(
            batch_reference=batch.reference,
            version=batch.version,
        ).update(
            version=F("version") + 1,
            updated_at=timezone.now(),
            **_batch_fields(batch),
        )
        if updated == 0:
            raise ConflictingUpdateError(batch.reference, operation)
        return replace(batch, version=batch.version + 1)

    def delete_batch(self, reference: str) -> None:
        models.Batch.objects.filter(batch_reference=reference).delete()

    def insert_registration(self, registration: Registration) -> Registration:
        batch_pk = models.Batch.objects.values_list("id", flat=True).get(
            batch_reference=registration.batch_reference
        )
        row = models.Registration.objects.create(
            registration_id=registration.registration_id,
            batch_id=batch_pk,
            school_id=registration.school_id.value,
            event_id=registration.event_id.value,
            **_registration_fields(registration),
        )
        return replace(registration, created_at=row.created_at)

    def update_registration(self, registration: Registration) -> Registration:
        models.Registration.objects.filter(
            registration_id=registration.registration_id
        ).update(**_registration_fields(registration))
        return registration

    def delete_registration(self, registration_id: str) -> None:
        models.Registration.objects.filter(registration_id=registration_id).delete()

    def delete_registrations(self, reference: str) -> list[Registration]:
        removed = self.get_registrations(reference)
        models.Registration.objects.filter(batch__batch_reference=reference).delete()
        return removed

    def has_payment_records(self, reference: str) -> bool:
        return models.Payment.objects.filter(batch__batch_reference=reference).exists()
