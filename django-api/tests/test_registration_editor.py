"""Tests for single-student edits within a batch.

Run with: pytest tests/test_registration_editor.py -v
"""

from decimal import Decimal

import pytest
from django.db.models import F

from batches import models
from batches.domain import SchoolId
from batches.domain.errors import (
    BatchLockedError,
    BatchNotFoundError,
    ConflictingUpdateError,
    InvalidOperationError,
    RegistrationNotFoundError,
    ValidationFailedError,
)
from batches.services.registration_editor import RegistrationEditor
from batches.services.spreadsheet import UploadedSheet
from batches.stores.django_store import DjangoBatchStore
from batches.stores.unit_of_work import CompensatingUnitOfWork
from events.stores.django_store import DjangoEventStore


class RacingStore(DjangoBatchStore):
    """Simulates another writer bumping the batch right after each read."""

    def __init__(self, races: int) -> None:
        self.races = races

    def get_batch(self, reference, school_id=None):
        batch = super().get_batch(reference, school_id)
        if self.races:
            self.races -= 1
            models.Batch.objects.filter(batch_reference=reference).update(version=F("version") + 1)
        return batch


@pytest.fixture
def batch(services, school_id, event_row):
    upload = UploadedSheet(filename="roster.xlsx", content=b"...")
    return services.batches.commit_upload(school_id, event_row.slug, upload).batch


def editor(store=None, **kwargs) -> RegistrationEditor:
    return RegistrationEditor(store or DjangoBatchStore(), DjangoEventStore(), **kwargs)


def stored(reference: str) -> models.Batch:
    return models.Batch.objects.get(batch_reference=reference)


@pytest.mark.django_db
class TestAddStudent:
    def test_add_reprices_batch(self, batch, school_id):
        registration, totals = editor().add_student(
            batch.reference,
            school_id,
            {"student_name": "  Ravi  ", "grade": " 8 ", "student_email": "Ravi@Example.COM"},
        )

        assert registration.student_name == "Ravi"
        assert registration.grade == "8"
        assert registration.student_email == "ravi@example.com"
        assert totals["student_count"] == 4
        assert totals["subtotal_amount"] == Decimal("400")
        assert totals["discount_amount"] == Decimal("40")
        assert totals["total_amount"] == Decimal("360")

        row = stored(batch.reference)
        assert row.registration_ids[-1] == registration.registration_id
        assert row.registrations.count() == 4
        assert row.total_amount == row.subtotal_amount - row.discount_amount

    def test_name_and_grade_are_required(self, batch, school_id):
        with pytest.raises(ValidationFailedError) as excinfo:
            editor().add_student(batch.reference, school_id, {"student_name": "   ", "grade": "5"})
        assert [error.field for error in excinfo.value.errors] == ["student_name"]
        assert stored(batch.reference).student_count == 3

    def test_unknown_batch(self, school_id, db):
        with pytest.raises(BatchNotFoundError):
            editor().add_student("BATCH-NOPE", school_id, {"student_name": "A", "grade": "1"})

    def test_other_school_cannot_edit(self, batch, other_school_row):
        with pytest.raises(BatchNotFoundError):
            editor().add_student(
                batch.reference,
                SchoolId(value=other_school_row.id),
                {"student_name": "A", "grade": "1"},
            )


@pytest.mark.django_db
class TestUpdateStudent:
    def test_partial_update_merges_dynamic_data(self, batch, school_id):
        registration_id = batch.registration_ids[0]
        updated = editor().update_student(
            batch.reference,
            school_id,
            registration_id,
            {"section": " C ", "dynamic_data": {"club": "chess"}},
        )

        assert updated.section == "C"
        assert updated.student_name == "Student 1"
        assert updated.dynamic_data == {"tshirt": "M", "club": "chess"}
        row = models.Registration.objects.get(registration_id=registration_id)
        assert row.dynamic_data == {"tshirt": "M", "club": "chess"}
        assert row.grade == updated.grade

    def test_blank_name_is_ignored(self, batch, school_id):
        registration_id = batch.registration_ids[0]
        updated = editor().update_student(
            batch.reference, school_id, registration_id, {"student_name": "  "}
        )
        assert updated.student_name == "Student 1"

    def test_unknown_registration(self, batch, school_id):
        with pytest.raises(RegistrationNotFoundError):
            editor().update_student(batch.reference, school_id, "REG-MISSING", {"grade": "9"})


@pytest.mark.django_db
class TestRemoveStudent:
    def test_remove_reprices_batch(self, batch, school_id):
        editor().add_student(batch.reference, school_id, {"student_name": "Ravi", "grade": "8"})
        removed_id = batch.registration_ids[0]

        removed, totals = editor().remove_student(batch.reference, school_id, removed_id)

        assert removed == removed_id
        assert totals["student_count"] == 3
        assert totals["total_amount"] == Decimal("270")
        row = stored(batch.reference)
        assert removed_id not in row.registration_ids
        assert not models.Registration.objects.filter(registration_id=removed_id).exists()

    def test_dropping_below_discount_tier_removes_discount(self, batch, school_id):
        _, totals = editor().remove_student(batch.reference, school_id, batch.registration_ids[0])
        assert totals["discount_percentage"] == 0
        assert totals["total_amount"] == Decimal("200")

    def test_last_student_cannot_be_removed(self, batch, school_id):
        ids = batch.registration_ids
        editor().remove_student(batch.reference, school_id, ids[0])
        editor().remove_student(batch.reference, school_id, ids[1])

        with pytest.raises(InvalidOperationError):
            editor().remove_student(batch.reference, school_id, ids[2])
        assert models.Registration.objects.filter(registration_id=ids[2]).exists()
        assert stored(batch.reference).student_count == 1

    def test_unknown_registration(self, batch, school_id):
        with pytest.raises(RegistrationNotFoundError):
            editor().remove_student(batch.reference, school_id, "REG-MISSING")


@pytest.mark.django_db
class TestLockedBatch:
    @pytest.fixture
    def paid(self, batch):
        models.Batch.objects.filter(batch_reference=batch.reference).update(
            payment_status="completed"
        )
        return batch

    def snapshot(self, reference: str) -> tuple:
        row = stored(reference)
        return (
            row.student_count,
            row.subtotal_amount,
            row.discount_amount,
            row.total_amount,
            list(row.registration_ids),
            list(models.Registration.objects.filter(batch=row).values_list("student_name", flat=True)),
        )

    def test_every_mutation_is_rejected(self, paid, school_id, services):
        before = self.snapshot(paid.reference)
        target = paid.registration_ids[0]

        with pytest.raises(BatchLockedError):
            editor().add_student(paid.reference, school_id, {"student_name": "X", "grade": "1"})
        with pytest.raises(BatchLockedError):
            editor().update_student(paid.reference, school_id, target, {"student_name": "X"})
        with pytest.raises(BatchLockedError):
            editor().remove_student(paid.reference, school_id, target)
        with pytest.raises(BatchLockedError):
            services.batches.delete_batch(paid.reference, school_id)

        assert self.snapshot(paid.reference) == before


@pytest.mark.django_db
class TestConcurrentEdits:
    def test_conflict_is_retried_from_fresh_read(self, batch, school_id):
        store = RacingStore(races=1)
        _, totals = editor(store).add_student(
            batch.reference, school_id, {"student_name": "Ravi", "grade": "8"}
        )

        assert totals["student_count"] == 4
        row = stored(batch.reference)
        assert row.student_count == 4
        assert row.registrations.count() == 4

    @pytest.mark.parametrize("uow_factory", [None, CompensatingUnitOfWork])
    def test_conflict_surfaces_when_retries_run_out(self, batch, school_id, uow_factory):
        store = RacingStore(races=5)
        with pytest.raises(ConflictingUpdateError) as excinfo:
            editor(store, uow_factory=uow_factory, max_retries=2).add_student(
                batch.reference, school_id, {"student_name": "Ravi", "grade": "8"}
            )

        assert excinfo.value.retryable is True
        assert excinfo.value.batch_reference == batch.reference
        row = stored(batch.reference)
        assert row.student_count == 3
        assert row.registrations.count() == 3

    def test_payment_completing_mid_edit_is_not_overwritten(self, batch, school_id):
        class PayingStore(DjangoBatchStore):
            paid = False

            def get_batch(self, reference, school_id=None):
                batch = super().get_batch(reference, school_id)
                if not self.paid:
                    self.paid = True
                    models.Batch.objects.filter(batch_reference=reference).update(
                        payment_status="completed", version=F("version") + 1
                    )
                return batch

        with pytest.raises(BatchLockedError):
            editor(PayingStore()).remove_student(batch.reference, school_id, batch.registration_ids[0])
        assert stored(batch.reference).student_count == 3

    @pytest.mark.parametrize("uow_factory", [None, CompensatingUnitOfWork])
    def test_update_conflict_is_retried(self, batch, school_id, uow_factory):
        registration_id = batch.registration_ids[0]
        updated = editor(RacingStore(races=1), uow_factory=uow_factory).update_student(
            batch.reference, school_id, registration_id, {"grade": "9"}
        )

        assert updated.grade == "9"
        assert models.Registration.objects.get(registration_id=registration_id).grade == "9"

    @pytest.mark.parametrize("uow_factory", [None, CompensatingUnitOfWork])
    def test_update_restores_original_row_when_retries_run_out(
        self, batch, school_id, uow_factory
    ):
        registration_id = batch.registration_ids[0]
        with pytest.raises(ConflictingUpdateError):
            editor(RacingStore(races=5), uow_factory=uow_factory, max_retries=2).update_student(
                batch.reference,
                school_id,
                registration_id,
                {"student_name": "Renamed", "dynamic_data": {"tshirt": "XL"}},
            )

        row = models.Registration.objects.get(registration_id=registration_id)
        assert row.student_name == "Student 1"
        assert row.dynamic_data == {"tshirt": "M"}

    @pytest.mark.parametrize("uow_factory", [None, CompensatingUnitOfWork])
    def test_concurrent_removes_keep_one_student(self, batch, school_id, uow_factory):
        first, second, third = batch.registration_ids
        editor().remove_student(batch.reference, school_id, third)

        class InterleavingStore(DjangoBatchStore):
            """Lets another request remove ``second`` between our read and write."""

            interleaved = False

            def get_batch(self, reference, school_id=None):
                batch = super().get_batch(reference, school_id)
                if not self.interleaved:
                    self.interleaved = True
                    editor().remove_student(reference, school_id, second)
                return batch

        with pytest.raises(InvalidOperationError):
            editor(InterleavingStore(), uow_factory=uow_factory).remove_student(
                batch.reference, school_id, first
            )

        row = stored(batch.reference)
        assert row.student_count == 1
        assert list(row.registration_ids) == [first]
        assert list(row.registrations.values_list("registration_id", flat=True)) == [first]
        assert row.total_amount == Decimal("100")
