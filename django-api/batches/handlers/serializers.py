"""Serializers for transforming batch domain models to export payloads."""

from rest_framework import serializers


class PricingSerializer(serializers.Serializer):
    """Pricing fields of a Batch domain model."""

    base_fee_per_student = serializers.DecimalField(max_digits=12, decimal_places=2)
    subtotal_amount = serializers.DecimalField(max_digits=12, decimal_places=2)
    discount_percentage = serializers.DecimalField(max_digits=5, decimal_places=2)
    discount_amount = serializers.DecimalField(max_digits=12, decimal_places=2)
    total_amount = serializers.DecimalField(max_digits=12, decimal_places=2)


class BatchSerializer(serializers.Serializer):
    """Serializer for Batch domain model."""

    batch_reference = serializers.CharField(source="reference")
    school_id = serializers.CharField()
    event_id = serializers.CharField()
    student_count = serializers.IntegerField()
    currency = serializers.CharField()
    pricing = PricingSerializer(source="*")
    status = serializers.CharField(source="status.value")
    payment_status = serializers.CharField(source="payment_status.value")
    registration_ids = serializers.ListField(child=serializers.CharField())
    uploaded_file_url = serializers.CharField(allow_null=True)
    created_at = serializers.DateTimeField(allow_null=True)


class RegistrationSerializer(serializers.Serializer):
    """Serializer for Registration domain model."""

    registration_id = serializers.CharField()
    student_name = serializers.CharField()
    grade = serializers.CharField()
    section = serializers.CharField(allow_blank=True)
    student_email = serializers.CharField(allow_null=True)
    exam_date = serializers.DateField(allow_null=True)
    dynamic_data = serializers.DictField()


class BatchExportSerializer(serializers.Serializer):
    """Serializer for a batch with its ordered registrations."""

    batch = BatchSerializer()
    registrations = RegistrationSerializer(many=True)


class RowErrorSerializer(serializers.Serializer):
    row = serializers.IntegerField()
    field = serializers.CharField()
    message = serializers.CharField()


class ValidationResultSerializer(serializers.Serializer):
    """Serializer for a ValidationResult returned to the uploader."""

    valid = serializers.BooleanField(source="success")
    students = serializers.SerializerMethodField()
    errors = RowErrorSerializer(many=True)
    summary = serializers.SerializerMethodField()

    def get_students(self, result) -> list[dict]:
        return [
            {
                "student_name": row.student_name,
                "grade": row.grade,
                "section": row.section,
                "student_email": row.student_email,
                "exam_date": row.exam_date.isoformat() if row.exam_date else None,
                "dynamic_data": row.dynamic_data,
            }
            for row in result.rows
        ]

    def get_summary(self, result) -> dict:
        return {"valid": result.summary.valid, "invalid": result.summary.invalid}
