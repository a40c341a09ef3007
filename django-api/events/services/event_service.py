"""Event service - all business logic lives here.

Services:
- Depend only on interfaces (stores)
- Validate domain invariants
- Perform orchestration and error mapping
- Return domain models or domain errors
"""

import logging
from collections.abc import Callable
from datetime import datetime

from django.utils import timezone

from events.domain import Event, EventId
from events.domain.errors import EventClosedError, EventNotFoundError, InvalidEventIdError
from events.stores.interfaces import EventStore

logger = logging.getLogger(__name__)


class EventService:
    """Service for event configuration lookups."""

    def __init__(self, store: EventStore, clock: Callable[[], datetime] = timezone.now) -> None:
        self._store = store
        self._clock = clock

    def get_event(self, event_id: str) -> Event:
        """Return an event by ID.

        Raises:
            InvalidEventIdError: If the event_id is not a valid UUID.
            EventNotFoundError: If the event does not exist.
        """
        try:
            parsed = EventId.from_string(event_id)
        except (ValueError, AttributeError, TypeError):
            raise InvalidEventIdError() from None
        event = self._store.get_event(parsed)
        if event is None:
            raise EventNotFoundError(event_id)
        return event

    def get_event_by_slug(self, slug: str) -> Event:
        """Return an event by slug.

        Raises:
            EventNotFoundError: If the event does not exist.
        """
        event = self._store.get_event_by_slug(slug)
        if event is None:
            raise EventNotFoundError(slug)
        return event

    def get_open_event(self, slug: str) -> Event:
        """Return an event that currently accepts registrations.

        Raises:
            EventNotFoundError: If the event does not exist.
            EventClosedError: If the event is inactive or outside its window.
        """
        event = self.get_event_by_slug(slug)
        reason = event.registration_window_error(self._clock())
        if reason is not None:
            logger.warning("Registration rejected for event %s: %s", slug, reason)
            raise EventClosedError(slug, reason)
        return event
