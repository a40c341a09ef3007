"""Django settings for the bulk registration service.

Values are read from the environment so the same module serves local runs,
tests and deployments.
"""

import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent

SECRET_KEY = os.environ.get("DJANGO_SECRET_KEY", "insecure-dev-key")
DEBUG = os.environ.get("DJANGO_DEBUG", "false").lower() == "true"
ALLOWED_HOSTS = os.environ.get("DJANGO_ALLOWED_HOSTS", "localhost").split(",")

INSTALLED_APPS = [
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "rest_framework",
    "events",
    "batches",
]

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": os.environ.get("DATABASE_PATH", BASE_DIR / "db.sqlite3"),
    }
}

CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
        "LOCATION": "bulk-registration",
    }
}

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"
USE_TZ = True
TIME_ZONE = "UTC"

BATCH_REGISTRATION = {
    "VALIDATION_CACHE_ALIAS": "default",
    "VALIDATION_CACHE_TTL": int(os.environ.get("VALIDATION_CACHE_TTL", 1800)),
    "VALIDATION_CACHE_ENABLED": os.environ.get("VALIDATION_CACHE_ENABLED", "true").lower() == "true",
    "TRANSACTIONAL_WRITES": os.environ.get("TRANSACTIONAL_WRITES", "true").lower() == "true",
    "MAX_EDIT_RETRIES": 3,
    "DEFAULT_CURRENCY": "INR",
}

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "standard": {
            "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "standard",
        },
    },
    "loggers": {
        "events": {"handlers": ["console"], "level": os.environ.get("LOG_LEVEL", "INFO")},
        "batches": {"handlers": ["console"], "level": os.environ.get("LOG_LEVEL", "INFO")},
    },
}

MEDIA_ROOT = os.environ.get("MEDIA_ROOT", BASE_DIR / "media")
MEDIA_URL = "/media/"
