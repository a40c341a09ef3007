"""Django ORM models (persistence layer).

These models handle database concerns. Domain logic lives in domain/models.py.
"""

import uuid

from django.db import models


class Event(models.Model):
    """Persistence model for events open to bulk registration."""

    class Status(models.TextChoices):
        DRAFT = "draft"
        ACTIVE = "active"
        CLOSED = "closed"
        ARCHIVED = "archived"

    class ScheduleType(models.TextChoices):
        SINGLE_DATE = "single_date"
        DATE_RANGE = "date_range"
        MULTIPLE_DATES = "multiple_dates"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    slug = models.SlugField(max_length=255, unique=True)
    title = models.CharField(max_length=255)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.DRAFT)
    schedule_type = models.CharField(
        max_length=20, choices=ScheduleType.choices, default=ScheduleType.DATE_RANGE
    )
    event_start_date = models.DateField()
    registration_start = models.DateTimeField(blank=True, null=True)
    registration_deadline = models.DateTimeField(blank=True, null=True)
    base_fee_inr = models.DecimalField(max_digits=12, decimal_places=2)
    base_fee_usd = models.DecimalField(max_digits=12, decimal_places=2)
    form_schema = models.JSONField(default=list, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["-created_at"]),
        ]

    def __str__(self) -> str:
        return self.title


class DiscountRule(models.Model):
    """Persistence model for bulk discount tiers."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    event = models.ForeignKey(
        Event, on_delete=models.CASCADE, related_name="discount_rules"
    )
    min_students = models.PositiveIntegerField()
    discount_percentage = models.DecimalField(max_digits=5, decimal_places=2)

    class Meta:
        ordering = ["min_students"]
        indexes = [
            models.Index(fields=["event", "min_students"]),
        ]

    def __str__(self) -> str:
        return f"{self.min_students}+ students: {self.discount_percentage}%"
