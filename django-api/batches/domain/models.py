"""Domain models for bulk registration batches.

These are pure domain objects. Django ORM models are in batches/models.py.
"""

from dataclasses import dataclass, field, replace
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Self

from events.domain import EventId, FormField
from batches.domain.pricing import PriceBreakdown
from batches.domain.value_objects import SchoolId


class BatchStatus(Enum):
    DRAFT = "draft"
    SUBMITTED = "submitted"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


class PaymentStatus(Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass(frozen=True)
class School:
    """The tenant submitting rosters."""

    id: SchoolId
    name: str
    school_code: str
    currency: str
    is_verified: bool


@dataclass(frozen=True)
class StudentData:
    """One validated student row, ready to become a Registration."""

    student_name: str
    grade: str
    section: str = ""
    student_email: str | None = None
    exam_date: date | None = None
    dynamic_data: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class RowError:
    row: int
    field: str
    message: str


@dataclass(frozen=True)
class ValidationSummary:
    valid: int
    invalid: int


@dataclass(frozen=True)
class ValidationResult:
    """Normalized outcome of parsing and validating an uploaded roster."""

    success: bool
    rows: tuple[StudentData, ...]
    errors: tuple[RowError, ...]
    summary: ValidationSummary


@dataclass(frozen=True)
class Registration:
    """Domain representation of one student's entry within a batch."""

    registration_id: str
    batch_reference: str
    school_id: SchoolId
    event_id: EventId
    student_name: str
    grade: str
    section: str = ""
    student_email: str | None = None
    exam_date: date | None = None
    dynamic_data: dict[str, Any] = field(default_factory=dict)
    created_at: datetime | None = None


@dataclass(frozen=True)
class Batch:
    """Aggregate root for one roster submission."""

    reference: str
    school_id: SchoolId
    event_id: EventId
    currency: str
    base_fee_per_student: Decimal
    student_count: int
    subtotal_amount: Decimal
    discount_percentage: Decimal
    discount_amount: Decimal
    total_amount: Decimal
    status: BatchStatus = BatchStatus.DRAFT
    payment_status: PaymentStatus = PaymentStatus.PENDING
    registration_ids: tuple[str, ...] = ()
    uploaded_file_url: str | None = None
    version: int = 0
    created_at: datetime | None = None

    def with_registrations(
        self, registration_ids: tuple[str, ...], price: PriceBreakdown
    ) -> Self:
        """Return a copy holding ``registration_ids`` priced by ``price``."""
        return replace(
            self,
            registration_ids=registration_ids,
            student_count=len(registration_ids),
            subtotal_amount=price.subtotal,
            discount_percentage=price.discount_percentage,
            discount_amount=price.discount_amount,
            total_amount=price.total,
        )

    @property
    def totals(self) -> dict[str, Any]:
        return {
            "student_count": self.student_count,
            "subtotal_amount": self.subtotal_amount,
            "discount_percentage": self.discount_percentage,
            "discount_amount": self.discount_amount,
            "total_amount": self.total_amount,
        }


@dataclass(frozen=True)
class BatchExport:
    """Read-only projection of a batch with its ordered registrations."""

    batch: Batch
    registrations: tuple[Registration, ...]
    form_schema: tuple[FormField, ...] = ()
