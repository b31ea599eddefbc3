from rest_framework import serializers

from hostel.models import Hostel, MaintenanceRequest


class HostelSerializer(serializers.ModelSerializer):
    open_maintenance_count = serializers.SerializerMethodField()

    class Meta:
        model = Hostel
        fields = (
            "id",
            "name",
            "description",
            "address",
            "gender",
            "total_capacity",
            "monthly_fee",
            "warden_name",
            "warden_phone",
            "warden_email",
            "status",
            "open_maintenance_count",
            "created_at",
            "updated_at",
        )
        read_only_fields = ("id", "created_at", "updated_at")
        validators = []

    def get_open_maintenance_count(self, obj: Hostel) -> int:
        return obj.maintenance_requests.exclude(
            status__in=(MaintenanceRequest.STATUS_RESOLVED, MaintenanceRequest.STATUS_CANCELLED)
        ).count()


class MaintenanceRequestSerializer(serializers.ModelSerializer):
    hostel_name = serializers.CharField(source="hostel.name", read_only=True)

    class Meta:
        model = MaintenanceRequest
        fields = (
            "id",
            "hostel",
            "hostel_name",
            "room_number",
            "maintenance_type",
            "title",
            "description",
            "priority",
            "status",
            "scheduled_date",
            "completed_at",
            "cost",
            "vendor",
            "notes",
            "reported_by",
            "resolved_by",
            "created_at",
            "updated_at",
        )
        read_only_fields = (
            "id",
            "status",
            "completed_at",
            "reported_by",
            "resolved_by",
            "created_at",
            "updated_at",
        )


class MaintenanceRequestUpdateSerializer(MaintenanceRequestSerializer):
    status = serializers.ChoiceField(choices=MaintenanceRequest.STATUS_CHOICES, required=False)

    class Meta(MaintenanceRequestSerializer.Meta):
        read_only_fields = (
            "id",
            "hostel",
            "completed_at",
            "reported_by",
            "resolved_by",
            "created_at",
            "updated_at",
        )
