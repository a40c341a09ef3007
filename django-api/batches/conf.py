"""Application settings with defaults, overridable via ``settings.BATCH_REGISTRATION``."""

from django.conf import settings

DEFAULTS = {
    "VALIDATION_CACHE_ALIAS": "default",
    "VALIDATION_CACHE_TTL": 1800,
    "VALIDATION_CACHE_ENABLED": True,
    "TRANSACTIONAL_WRITES": True,
    "MAX_EDIT_RETRIES": 3,
    "DEFAULT_CURRENCY": "INR",
}


def get_setting(name: str):
    overrides = getattr(settings, "BATCH_REGISTRATION", {})
    if name in overrides:
        return overrides[name]
    return DEFAULTS[name]
