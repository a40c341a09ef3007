"""Django ORM implementation of the EventStore."""

from events import models
from events.domain import (
    DiscountRule,
    Event,
    EventId,
    EventStatus,
    FormField,
    Money,
    ScheduleType,
)
from events.stores.interfaces import EventStore


def to_domain(row: models.Event) -> Event:
    return Event(
        id=EventId(value=row.id),
        slug=row.slug,
        title=row.title,
        status=EventStatus(row.status),
        schedule_type=ScheduleType(row.schedule_type),
        event_start_date=row.event_start_date,
        registration_start=row.registration_start,
        registration_deadline=row.registration_deadline,
        base_fees=(
            Money(amount=row.base_fee_inr, currency="INR"),
            Money(amount=row.base_fee_usd, currency="USD"),
        ),
        discount_rules=tuple(
            DiscountRule(
                min_students=rule.min_students,
                discount_percentage=rule.discount_percentage,
            )
            for rule in row.discount_rules.all()
        ),
        form_schema=tuple(FormField.from_dict(field) for field in row.form_schema or ()),
    )


class DjangoEventStore(EventStore):
    """Relational event store using Django ORM."""

    def get_event(self, event_id: EventId) -> Event | None:
        row = (
            models.Event.objects.prefetch_related("discount_rules")
            .filter(id=event_id.value)
            .first()
        )
        return to_domain(row) if row else None

    def get_event_by_slug(self, slug: str) -> Event | None:
        row = (
            models.Event.objects.prefetch_related("discount_rules")
            .filter(slug=slug)
            .first()
        )
        return to_domain(row) if row else None
