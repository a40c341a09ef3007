"""Identifiers for batches and registrations."""

import secrets
import string
import time
from dataclasses import dataclass
from typing import Self
from uuid import UUID

_BASE36 = string.digits + string.ascii_uppercase


def _base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(_BASE36[remainder])
    return "".join(reversed(digits))


def _random_suffix(length: int = 5) -> str:
    return "".join(secrets.choice(_BASE36) for _ in range(length))


def _timestamp_part(now: float | None = None) -> str:
    millis = int((time.time() if now is None else now) * 1000)
    return _base36(millis)


def generate_batch_reference(school_code: str, now: float | None = None) -> str:
    """Return ``BATCH-<SCHOOL>-<time>-<random>``, upper-cased."""
    code = "".join(ch for ch in school_code.upper() if ch.isalnum()) or "SCHOOL"
    return f"BATCH-{code}-{_timestamp_part(now)}-{_random_suffix()}"


def generate_registration_id(now: float | None = None) -> str:
    return f"REG-{_timestamp_part(now)}-{_random_suffix()}"


@dataclass(frozen=True)
class SchoolId:
    """Unique identifier for a School (the tenant)."""

    value: UUID

    @classmethod
    def from_string(cls, value: str) -> Self:
        return cls(value=UUID(value))

    def __str__(self) -> str:
        return str(self.value)
