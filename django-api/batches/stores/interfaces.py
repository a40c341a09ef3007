"""Store interfaces (repository pattern).

Stores must be swappable and return domain models.
"""

from abc import ABC, abstractmethod

from events.domain import EventId

from batches.domain import Batch, BatchStatus, Registration, School, SchoolId


class SchoolStore(ABC):
    """Interface for tenant lookups."""

    @abstractmethod
    def get_school(self, school_id: SchoolId) -> School | None:
        """Return a school by ID, or None if not found."""
        ...


class BatchStore(ABC):
    """Interface for batch and registration persistence operations.

    Every write takes effect immediately; grouping writes is the job of a
    UnitOfWork.
    """

    @abstractmethod
    def get_batch(self, reference: str, school_id: SchoolId | None = None) -> Batch | None:
        """Return a batch by reference, optionally scoped to a school."""
        ...

    @abstractmethod
    def list_batches(
        self,
        school_id: SchoolId,
        status: BatchStatus | None = None,
        event_id: EventId | None = None,
        offset: int = 0,
        limit: int | None = None,
    ) -> tuple[list[Batch], int]:
        """Return a page of a school's batches, newest first, and the total count."""
        ...

    @abstractmethod
    def get_registrations(self, reference: str) -> list[Registration]:
        """Return a batch's registrations in the batch's registration order."""
        ...

    @abstractmethod
    def get_registration(self, reference: str, registration_id: str) -> Registration | None:
        """Return a registration only if it belongs to the given batch."""
        ...

    @abstractmethod
    def insert_batch(self, batch: Batch) -> Batch:
        """Persist a new batch at version 0."""
        ...

    @abstractmethod
    def save_batch(self, batch: Batch, operation: str) -> Batch:
        """Write ``batch`` if the stored version still equals ``batch.version``.

        Returns the batch with its incremented version.

        Raises:
            ConflictingUpdateError: If the stored version has moved on.
        """
        ...

    @abstractmethod
    def delete_batch(self, reference: str) -> None:
        ...

    @abstractmethod
    def insert_registration(self, registration: Registration) -> Registration:
        ...

    @abstractmethod
    def update_registration(self, registration: Registration) -> Registration:
        ...

    @abstractmethod
    def delete_registration(self, registration_id: str) -> None:
        ...

    @abstractmethod
    def delete_registrations(self, reference: str) -> list[Registration]:
        """Delete every registration of a batch and return what was removed."""
        ...

    @abstractmethod
    def has_payment_records(self, reference: str) -> bool:
        """Check if any payment record, of any status, exists for the batch."""
        ...
