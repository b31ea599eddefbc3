from rest_framework import serializers

from audit.models import AuditLog


class AuditLogSerializer(serializers.ModelSerializer):
    class Meta:
        model = AuditLog
        fields = (
            "id",
            "actor",
            "actor_email",
            "action",
            "resource",
            "resource_id",
            "status",
            "details",
            "data_before",
            "data_after",
            "occurred_at",
            "correlation_id",
            "request_method",
            "request_path",
            "ip_address",
            "user_agent",
        )
        read_only_fields = fields
