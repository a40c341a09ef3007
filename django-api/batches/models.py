"""Django ORM models (persistence layer).

These models handle database concerns. Domain logic lives in domain/models.py.
"""

import uuid

from django.db import models

from events.models import Event


class School(models.Model):
    """Persistence model for schools (tenants)."""

    class Currency(models.TextChoices):
        INR = "INR"
        USD = "USD"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=255)
    school_code = models.CharField(max_length=32, unique=True)
    currency_pref = models.CharField(
        max_length=3, choices=Currency.choices, default=Currency.INR, blank=True
    )
    is_verified = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self) -> str:
        return self.name


class Batch(models.Model):
    """Persistence model for a roster submission."""

    class Status(models.TextChoices):
        DRAFT = "draft"
        SUBMITTED = "submitted"
        CONFIRMED = "confirmed"
        CANCELLED = "cancelled"

    class PaymentStatus(models.TextChoices):
        PENDING = "pending"
        PROCESSING = "processing"
        COMPLETED = "completed"
        FAILED = "failed"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    batch_reference = models.CharField(max_length=64, unique=True)
    school = models.ForeignKey(School, on_delete=models.PROTECT, related_name="batches")
    event = models.ForeignKey(Event, on_delete=models.PROTECT, related_name="batches")
    registration_ids = models.JSONField(default=list)
    student_count = models.PositiveIntegerField()
    currency = models.CharField(max_length=3)
    base_fee_per_student = models.DecimalField(max_digits=12, decimal_places=2)
    subtotal_amount = models.DecimalField(max_digits=12, decimal_places=2)
    discount_percentage = models.DecimalField(max_digits=5, decimal_places=2, default=0)
    discount_amount = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    total_amount = models.DecimalField(max_digits=12, decimal_places=2)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.DRAFT)
    payment_status = models.CharField(
        max_length=20, choices=PaymentStatus.choices, default=PaymentStatus.PENDING
    )
    uploaded_file_url = models.URLField(max_length=500, blank=True, null=True)
    version = models.PositiveIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["school", "-created_at"]),
            models.Index(fields=["event", "status"]),
        ]

    def __str__(self) -> str:
        return self.batch_reference


class Registration(models.Model):
    """Persistence model for one student entry, owned by a batch."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    registration_id = models.CharField(max_length=64, unique=True)
    batch = models.ForeignKey(Batch, on_delete=models.CASCADE, related_name="registrations")
    school = models.ForeignKey(School, on_delete=models.PROTECT, related_name="registrations")
    event = models.ForeignKey(Event, on_delete=models.PROTECT, related_name="registrations")
    student_name = models.CharField(max_length=255)
    grade = models.CharField(max_length=32)
    section = models.CharField(max_length=32, blank=True, default="")
    student_email = models.EmailField(blank=True, null=True)
    exam_date = models.DateField(blank=True, null=True)
    dynamic_data = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [
            models.Index(fields=["batch"]),
        ]

    def __str__(self) -> str:
        return f"{self.registration_id} - {self.student_name}"


class Payment(models.Model):
    """Payment record written by the payment subsystem, read-only here."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    payment_reference = models.CharField(max_length=64, unique=True)
    batch = models.ForeignKey(Batch, on_delete=models.PROTECT, related_name="payments")
    status = models.CharField(max_length=20)
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    currency = models.CharField(max_length=3)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self) -> str:
        return self.payment_reference
