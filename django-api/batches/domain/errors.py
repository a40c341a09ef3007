"""Domain error codes for the batches module.

Validation and lock errors are actionable by the end user and are surfaced
verbatim. Conflict and persistence errors are retryable and carry the batch
reference and attempted operation.
"""

from enum import Enum

from events.domain.errors import DomainError

from batches.domain.models import RowError, ValidationSummary


class ErrorCode(Enum):
    """Domain error codes."""

    VALIDATION_FAILED = "VALIDATION_FAILED"
    SCHOOL_NOT_FOUND = "SCHOOL_NOT_FOUND"
    SCHOOL_NOT_VERIFIED = "SCHOOL_NOT_VERIFIED"
    BATCH_NOT_FOUND = "BATCH_NOT_FOUND"
    REGISTRATION_NOT_FOUND = "REGISTRATION_NOT_FOUND"
    BATCH_LOCKED = "BATCH_LOCKED"
    CONFLICTING_UPDATE = "CONFLICTING_UPDATE"
    PERSISTENCE_FAILURE = "PERSISTENCE_FAILURE"
    INVALID_OPERATION = "INVALID_OPERATION"


class ValidationFailedError(DomainError):
    """Raised when uploaded rows contain field-level errors."""

    retryable = False

    def __init__(
        self,
        errors: tuple[RowError, ...],
        summary: ValidationSummary | None = None,
        message: str = "File validation failed",
    ) -> None:
        super().__init__(code=ErrorCode.VALIDATION_FAILED, message=message)
        self.errors = errors
        self.summary = summary


class SchoolNotFoundError(DomainError):
    """Raised when the requesting school does not exist."""

    def __init__(self, school_id: str) -> None:
        super().__init__(code=ErrorCode.SCHOOL_NOT_FOUND, message="School not found")
        self.school_id = school_id


class SchoolNotVerifiedError(DomainError):
    """Raised when an unverified school tries to commit a batch."""

    def __init__(self, school_id: str) -> None:
        super().__init__(
            code=ErrorCode.SCHOOL_NOT_VERIFIED,
            message="Please verify your email before creating registrations",
        )
        self.school_id = school_id


class BatchNotFoundError(DomainError):
    """Raised when a batch does not exist or belongs to another school."""

    def __init__(self, batch_reference: str) -> None:
        super().__init__(code=ErrorCode.BATCH_NOT_FOUND, message="Batch not found")
        self.batch_reference = batch_reference


class RegistrationNotFoundError(DomainError):
    """Raised when a registration is not part of the given batch."""

    def __init__(self, batch_reference: str, registration_id: str) -> None:
        super().__init__(
            code=ErrorCode.REGISTRATION_NOT_FOUND,
            message="Registration not found in this batch",
        )
        self.batch_reference = batch_reference
        self.registration_id = registration_id


class BatchLockedError(DomainError):
    """Raised when a batch is mutated after its payment completed."""

    retryable = False

    def __init__(self, batch_reference: str, operation: str) -> None:
        super().__init__(
            code=ErrorCode.BATCH_LOCKED,
            message="Payment has been completed. Batch cannot be modified.",
        )
        self.batch_reference = batch_reference
        self.operation = operation


class ConflictingUpdateError(DomainError):
    """Raised when a batch changed between read and write."""

    retryable = True

    def __init__(self, batch_reference: str, operation: str) -> None:
        super().__init__(
            code=ErrorCode.CONFLICTING_UPDATE,
            message="Batch was modified concurrently, please retry",
        )
        self.batch_reference = batch_reference
        self.operation = operation


class PersistenceFailureError(DomainError):
    """Raised when a write failed and was rolled back."""

    retryable = True

    def __init__(self, batch_reference: str, operation: str) -> None:
        super().__init__(
            code=ErrorCode.PERSISTENCE_FAILURE,
            message="Failed to save batch registration, please retry",
        )
        self.batch_reference = batch_reference
        self.operation = operation


class InvalidOperationError(DomainError):
    """Raised when an operation is not allowed in the batch's current state."""

    retryable = False

    def __init__(self, message: str, batch_reference: str | None = None) -> None:
        super().__init__(code=ErrorCode.INVALID_OPERATION, message=message)
        self.batch_reference = batch_reference
