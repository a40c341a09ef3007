"""Domain models representing persisted state.

These are pure domain objects with no API input rules.
Django ORM models are in events/models.py (persistence layer).
"""

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from enum import Enum

from events.domain.value_objects import DiscountRule, EventId, FormField, Money


class EventStatus(Enum):
    DRAFT = "draft"
    ACTIVE = "active"
    CLOSED = "closed"
    ARCHIVED = "archived"


class ScheduleType(Enum):
    SINGLE_DATE = "single_date"
    DATE_RANGE = "date_range"
    MULTIPLE_DATES = "multiple_dates"


@dataclass(frozen=True)
class Event:
    """Domain representation of an Event."""

    id: EventId
    slug: str
    title: str
    status: EventStatus
    schedule_type: ScheduleType
    event_start_date: date
    registration_start: datetime | None
    registration_deadline: datetime | None
    base_fees: tuple[Money, ...]
    discount_rules: tuple[DiscountRule, ...] = ()
    form_schema: tuple[FormField, ...] = ()

    def base_fee_for(self, currency: str) -> Money:
        """Return the per-student fee configured for ``currency``."""
        for fee in self.base_fees:
            if fee.currency == currency:
                return fee
        raise ValueError(f"No base fee configured for currency {currency}")

    def registration_window_error(self, now: datetime) -> str | None:
        """Return why registration is closed at ``now``, or None when open.

        The deadline is inclusive up to the end of its calendar day.
        """
        if self.status is not EventStatus.ACTIVE:
            return "This event is not currently accepting registrations"
        if self.registration_start and now < self.registration_start:
            return "Registration has not yet started"
        if self.registration_deadline:
            deadline_end = datetime.combine(
                self.registration_deadline.date() + timedelta(days=1),
                time.min,
                tzinfo=self.registration_deadline.tzinfo,
            )
            if now >= deadline_end:
                return "Registration period has ended"
        return None

    def exam_date_for(self, requested: date | None) -> date | None:
        """Single-date events always sit on the event start date."""
        if self.schedule_type is ScheduleType.SINGLE_DATE:
            return self.event_start_date
        return requested
