from batches.domain.models import (
    Batch,
    BatchExport,
    BatchStatus,
    PaymentStatus,
    Registration,
    RowError,
    School,
    StudentData,
    ValidationResult,
    ValidationSummary,
)
from batches.domain.pricing import PriceBreakdown
from batches.domain.value_objects import SchoolId

__all__ = [
    "Batch",
    "BatchExport",
    "BatchStatus",
    "PaymentStatus",
    "PriceBreakdown",
    "Registration",
    "RowError",
    "School",
    "SchoolId",
    "StudentData",
    "ValidationResult",
    "ValidationSummary",
]
