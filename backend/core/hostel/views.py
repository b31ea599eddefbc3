from django.db import transaction
from rest_framework import generics
from rest_framework.response import Response

from audit.models import AuditLog
from audit.services import snapshot_instance
from hostel.models import Hostel, MaintenanceRequest
from hostel.serializers import (
    HostelSerializer,
    MaintenanceRequestSerializer,
    MaintenanceRequestUpdateSerializer,
)
from hostel.services import transition_maintenance_request
from tenancy.exceptions import ConflictError
from tenancy.rbac import PermissionCode, build_permission_matrix
from tenancy.views import TenantScopedAPIViewMixin

HOSTEL_PERMISSIONS = build_permission_matrix(
    read=PermissionCode.HOSTEL_READ,
    create=PermissionCode.HOSTEL_MANAGE,
    update=PermissionCode.HOSTEL_MANAGE,
    delete=PermissionCode.HOSTEL_MANAGE,
)


class HostelListCreateAPIView(TenantScopedAPIViewMixin, generics.ListCreateAPIView):
    model = Hostel
    serializer_class = HostelSerializer
    required_permissions = HOSTEL_PERMISSIONS
    ordering = ("name", "id")
    search_fields = ("name", "address", "warden_name")
    choice_filters = {"status": "status", "gender": "gender"}

    def filter_queryset(self, queryset):
        queryset = super().filter_queryset(queryset)
        if not self.request.query_params.get("status"):
            queryset = queryset.exclude(status=Hostel.STATUS_INACTIVE)
        return queryset

    def perform_create(self, serializer):
        if Hostel.all_objects.filter(tenant=self.tenant, name=serializer.validated_data["name"]).exists():
            raise ConflictError("A hostel with this name already exists.")
        return super().perform_create(serializer)


class HostelDetailAPIView(TenantScopedAPIViewMixin, generics.RetrieveUpdateDestroyAPIView):
    model = Hostel
    serializer_class = HostelSerializer
    required_permissions = HOSTEL_PERMISSIONS


class MaintenanceRequestListCreateAPIView(TenantScopedAPIViewMixin, generics.ListCreateAPIView):
    model = MaintenanceRequest
    serializer_class = MaintenanceRequestSerializer
    required_permissions = HOSTEL_PERMISSIONS
    creator_field = "reported_by"
    ordering = ("-created_at", "-id")
    search_fields = ("title", "description", "room_number", "vendor")
    choice_filters = {
        "status": "status",
        "priority": "priority",
        "maintenance_type": "maintenance_type",
    }
    exact_filters = {"hostel_id": "hostel_id", "room_number": "room_number"}
    date_range_field = "scheduled_date"

    def get_queryset(self):
        return super().get_queryset().select_related("hostel")


class MaintenanceRequestDetailAPIView(TenantScopedAPIViewMixin, generics.RetrieveUpdateDestroyAPIView):
    model = MaintenanceRequest
    required_permissions = HOSTEL_PERMISSIONS

    def get_serializer_class(self):
        if self.request.method in ("PUT", "PATCH"):
            return MaintenanceRequestUpdateSerializer
        return MaintenanceRequestSerializer

    def get_queryset(self):
        return super().get_queryset().select_related("hostel")

    def update(self, request, *args, **kwargs):
        maintenance = self.get_object()
        if maintenance.status not in MaintenanceRequest.TRANSITIONS:
            raise ConflictError(f"Maintenance request is already {maintenance.status.lower()}.")

        serializer = self.get_serializer(maintenance, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        new_status = serializer.validated_data.pop("status", None)

        with transaction.atomic():
            if serializer.validated_data:
                maintenance = self.perform_update(serializer)
            if new_status is not None:
                before = snapshot_instance(maintenance)
                maintenance = transition_maintenance_request(
                    maintenance,
                    status=new_status,
                    actor=request.user,
                )
                self.record_audit(
                    AuditLog.ACTION_TRANSITION,
                    maintenance,
                    before=before,
                    after=snapshot_instance(maintenance),
                )

        return Response(
            {
                "success": True,
                "data": MaintenanceRequestSerializer(maintenance).data,
                "message": "Maintenance request updated successfully.",
            }
        )
