"""Optimistic-concurrency retry loop for batch edits."""

import logging
from collections.abc import Callable
from typing import TypeVar

from django.db import DatabaseError

from batches.domain.errors import ConflictingUpdateError, PersistenceFailureError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def run_with_retries(
    attempt: Callable[[], T], reference: str, operation: str, max_retries: int
) -> T:
    """Run ``attempt`` until it commits without a version conflict.

    Each attempt must re-read the batch. Conflicts beyond ``max_retries``
    surface as ConflictingUpdateError; database failures as
    PersistenceFailureError.
    """
    retries = 0
    while True:
        try:
            return attempt()
        except ConflictingUpdateError:
            if retries >= max_retries:
                logger.warning(
                    "Giving up %s on batch %s after %d conflicting update(s)",
                    operation,
                    reference,
                    retries + 1,
                )
                raise
            retries += 1
            logger.info("Conflicting update on batch %s during %s, retrying", reference, operation)
        except DatabaseError as exc:
            logger.error("%s failed for batch %s: %s", operation, reference, exc)
            raise PersistenceFailureError(reference, operation) from exc
