from events.domain.models import Event, EventStatus, ScheduleType
from events.domain.value_objects import DiscountRule, EventId, FormField, Money

__all__ = [
    "Event",
    "EventStatus",
    "ScheduleType",
    "EventId",
    "Money",
    "DiscountRule",
    "FormField",
]
