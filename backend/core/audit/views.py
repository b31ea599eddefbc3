from rest_framework import generics

from audit.models import AuditLog
from audit.serializers import AuditLogSerializer
from tenancy.rbac import Resource
from tenancy.views import TenantScopedAPIViewMixin


class AuditLogListAPIView(TenantScopedAPIViewMixin, generics.ListAPIView):
    model = AuditLog
    serializer_class = AuditLogSerializer
    tenant_resource = Resource.AUDIT_LOGS
    ordering = ("-occurred_at", "-id")
    page_size = 20
    search_fields = ("resource", "actor_email", "request_path")
    choice_filters = {"action": "action", "status": "status"}
    exact_filters = {
        "user_id": "actor_id",
        "resource": "resource__iexact",
        "resource_id": "resource_id",
        "correlation_id": "correlation_id",
    }
    date_range_field = "occurred_at__date"
