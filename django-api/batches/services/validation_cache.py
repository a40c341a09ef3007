"""Short-lived, single-use store of parse-and-validate results.

A school validates an upload, then commits the same file; the commit reuses
the cached result instead of parsing again. The cache is advisory: a miss
(expired, consumed, superseded, wrong tenant or event, backend failure)
only means the caller parses the file again.

Keys:
    validation:<validation_id>        -> ValidationCacheEntry
    validation:latest:<school>:<event> -> validation_id
"""

import logging
import uuid
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta

from django.core.cache import BaseCache, caches
from django.utils import timezone

from events.domain import EventId

from batches.conf import get_setting
from batches.domain import SchoolId, ValidationResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ValidationCacheEntry:
    validation_id: str
    school_id: str
    event_id: str
    result: ValidationResult
    expires_at: datetime


def _entry_key(validation_id: str) -> str:
    return f"validation:{validation_id}"


def _latest_key(school_id: SchoolId, event_id: EventId) -> str:
    return f"validation:latest:{school_id}:{event_id}"


class ValidationCache:
    """TTL cache of validation results keyed by (school, event)."""

    def __init__(
        self,
        backend: BaseCache | None = None,
        ttl: int | None = None,
        enabled: bool | None = None,
        clock: Callable[[], datetime] = timezone.now,
    ) -> None:
        self._backend = backend or caches[get_setting("VALIDATION_CACHE_ALIAS")]
        self._ttl = ttl if ttl is not None else get_setting("VALIDATION_CACHE_TTL")
        self._enabled = enabled if enabled is not None else get_setting("VALIDATION_CACHE_ENABLED")
        self._clock = clock

    def put(self, school_id: SchoolId, event_id: EventId, result: ValidationResult) -> str:
        """Cache ``result`` and return its validation id.

        Supersedes any earlier entry for the same school and event.
        """
        validation_id = uuid.uuid4().hex
        if not self._enabled:
            return validation_id

        entry = ValidationCacheEntry(
            validation_id=validation_id,
            school_id=str(school_id),
            event_id=str(event_id),
            result=result,
            expires_at=self._clock() + timedelta(seconds=self._ttl),
        )
        latest_key = _latest_key(school_id, event_id)
        try:
            previous = self._backend.get(latest_key)
            if previous is not None:
                self._backend.delete(_entry_key(previous))
            self._backend.set(_entry_key(validation_id), entry, timeout=self._ttl)
            self._backend.set(latest_key, validation_id, timeout=self._ttl)
        except Exception:
            logger.exception("Validation cache write failed for %s", validation_id)
            return validation_id

        logger.info(
            "Validation cached: %s for school: %s, event: %s", validation_id, school_id, event_id
        )
        return validation_id

    def get(
        self, validation_id: str, school_id: SchoolId, event_id: EventId
    ) -> ValidationResult | None:
        """Consume and return a cached result, or None on any kind of miss."""
        if not self._enabled or not validation_id:
            return None

        try:
            entry = self._backend.get(_entry_key(validation_id))
            if entry is None:
                logger.warning("Validation cache miss: %s", validation_id)
                return None
            if entry.school_id != str(school_id) or entry.event_id != str(event_id):
                logger.warning(
                    "Validation %s presented for another school or event", validation_id
                )
                return None
            if self._clock() >= entry.expires_at:
                logger.warning("Validation cache entry expired: %s", validation_id)
                self._backend.delete(_entry_key(validation_id))
                return None
            # Whoever deletes the entry owns it; a concurrent reader gets a miss.
            if not self._backend.delete(_entry_key(validation_id)):
                logger.warning("Validation cache entry already consumed: %s", validation_id)
                return None
        except Exception:
            logger.exception("Validation cache read failed for %s", validation_id)
            return None

        logger.info("Validation cache hit: %s", validation_id)
        return entry.result

    def delete(self, validation_id: str) -> bool:
        if not self._enabled:
            return False
        try:
            return bool(self._backend.delete(_entry_key(validation_id)))
        except Exception:
            logger.exception("Validation cache delete failed for %s", validation_id)
            return False
