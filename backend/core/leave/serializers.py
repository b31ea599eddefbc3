from rest_framework import serializers

from leave.models import LeaveRequest


class LeaveRequestSerializer(serializers.ModelSerializer):
    student_name = serializers.CharField(source="student.full_name", read_only=True)
    student_number = serializers.CharField(source="student.student_number", read_only=True)
    requested_by_name = serializers.CharField(
        source="requested_by.full_name",
        read_only=True,
        default="",
    )
    approved_by_name = serializers.CharField(
        source="approved_by.full_name",
        read_only=True,
        default="",
    )
    days = serializers.IntegerField(read_only=True)

    class Meta:
        model = LeaveRequest
        fields = (
            "id",
            "student",
            "student_name",
            "student_number",
            "requested_by",
            "requested_by_name",
            "leave_type",
            "start_date",
            "end_date",
            "days",
            "reason",
            "description",
            "supporting_docs",
            "is_emergency",
            "status",
            "approved_by",
            "approved_by_name",
            "approved_at",
            "rejected_reason",
            "created_at",
            "updated_at",
        )
        read_only_fields = (
            "id",
            "requested_by",
            "status",
            "approved_by",
            "approved_at",
            "rejected_reason",
            "created_at",
            "updated_at",
        )

    def validate_supporting_docs(self, value):
        if not isinstance(value, list):
            raise serializers.ValidationError("Must be a list.")
        return value

    def validate(self, attrs):
        start = attrs.get("start_date", getattr(self.instance, "start_date", None))
        end = attrs.get("end_date", getattr(self.instance, "end_date", None))
        if start and end and start > end:
            raise serializers.ValidationError({"end_date": ["Start date cannot be after end date."]})
        return attrs


class LeaveRequestUpdateSerializer(LeaveRequestSerializer):
    """Edits of pending requests plus the status decision."""

    status = serializers.ChoiceField(
        choices=[
            LeaveRequest.STATUS_APPROVED,
            LeaveRequest.STATUS_REJECTED,
            LeaveRequest.STATUS_CANCELLED,
        ],
        required=False,
    )
    rejected_reason = serializers.CharField(required=False, allow_blank=True)

    class Meta(LeaveRequestSerializer.Meta):
        read_only_fields = (
            "id",
            "student",
            "requested_by",
            "approved_by",
            "approved_at",
            "created_at",
            "updated_at",
        )
