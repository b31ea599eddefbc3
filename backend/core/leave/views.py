from django.db import transaction
from rest_framework import exceptions, generics
from rest_framework.response import Response
from rest_framework.views import APIView

from audit.models import AuditLog
from audit.services import snapshot_instance
from leave.models import LeaveRequest
from leave.serializers import LeaveRequestSerializer, LeaveRequestUpdateSerializer
from leave.services import compute_leave_stats, transition_leave_request
from tenancy.exceptions import ConflictError, Forbidden
from tenancy.permissions import HasTenantPermission, get_request_permissions, get_request_tenant
from tenancy.rbac import PermissionCode, build_permission_matrix, is_granted
from tenancy.views import TenantScopedAPIViewMixin, parse_date_param


class LeaveRequestListCreateAPIView(TenantScopedAPIViewMixin, generics.ListCreateAPIView):
    model = LeaveRequest
    serializer_class = LeaveRequestSerializer
    required_permissions = build_permission_matrix(
        read=PermissionCode.LEAVE_READ,
        create=PermissionCode.LEAVE_CREATE,
    )
    creator_field = "requested_by"
    ordering = ("-created_at", "-id")
    search_fields = (
        "reason",
        "description",
        "student__user__first_name",
        "student__user__last_name",
        "student__student_number",
    )
    choice_filters = {"status": "status", "leave_type": "leave_type"}
    exact_filters = {"student_id": "student_id", "requested_by": "requested_by_id"}
    boolean_filters = {"is_emergency": "is_emergency"}
    date_range_field = "start_date"

    def get_queryset(self):
        return (
            super()
            .get_queryset()
            .select_related("student", "student__user", "requested_by", "approved_by")
        )


class LeaveRequestDetailAPIView(TenantScopedAPIViewMixin, generics.RetrieveUpdateDestroyAPIView):
    """Edit, decide on or delete a leave request.

    `status` in the body drives the state machine: APPROVED and REJECTED need
    `leave:approve`; CANCELLED is open to the requester or an approver.
    Other fields are editable while the request is pending.
    """

    model = LeaveRequest
    required_permissions = build_permission_matrix(
        read=PermissionCode.LEAVE_READ,
        update=(PermissionCode.LEAVE_UPDATE, PermissionCode.LEAVE_APPROVE),
        delete=PermissionCode.LEAVE_DELETE,
    )

    def get_serializer_class(self):
        if self.request.method in ("PUT", "PATCH"):
            return LeaveRequestUpdateSerializer
        return LeaveRequestSerializer

    def get_queryset(self):
        return (
            super()
            .get_queryset()
            .select_related("student", "student__user", "requested_by", "approved_by")
        )

    def has_permission_code(self, code) -> bool:
        if self.request.user.is_superuser:
            return True
        return is_granted(get_request_permissions(self.request), (code,))

    def update(self, request, *args, **kwargs):
        """Edit a pending request, or move it to another status.

        A status change carries at most `rejected_reason`; other fields must be
        sent in a separate edit.
        """

        leave_request = self.get_object()
        serializer = self.get_serializer(leave_request, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        new_status = serializer.validated_data.pop("status", None)
        has_reason = "rejected_reason" in serializer.validated_data
        rejected_reason = serializer.validated_data.pop("rejected_reason", "")

        if new_status is not None and serializer.validated_data:
            raise exceptions.ValidationError(
                {
                    field: ["Cannot be changed together with status."]
                    for field in sorted(serializer.validated_data)
                }
            )
        if new_status is None and has_reason:
            raise exceptions.ValidationError(
                {"rejected_reason": ["Only accepted together with status REJECTED."]}
            )

        if new_status is None:
            if not self.has_permission_code(PermissionCode.LEAVE_UPDATE):
                raise Forbidden()
            if leave_request.status != LeaveRequest.STATUS_PENDING:
                raise ConflictError("Only pending leave requests can be edited.")
            self.perform_update(serializer)
            message = "Leave request updated successfully."
        else:
            self.check_transition_allowed(leave_request, new_status)
            before = snapshot_instance(leave_request)
            with transaction.atomic():
                leave_request = transition_leave_request(
                    leave_request,
                    status=new_status,
                    actor=request.user,
                    rejected_reason=rejected_reason,
                )
                self.record_audit(
                    AuditLog.ACTION_TRANSITION,
                    leave_request,
                    before=before,
                    after=snapshot_instance(leave_request),
                )
            serializer.instance = leave_request
            message = f"Leave request {new_status.lower()} successfully."

        return Response(
            {
                "success": True,
                "data": LeaveRequestSerializer(serializer.instance).data,
                "message": message,
            }
        )

    def check_transition_allowed(self, leave_request, new_status):
        if self.has_permission_code(PermissionCode.LEAVE_APPROVE):
            return
        is_requester = leave_request.requested_by_id == self.request.user.pk
        if new_status == LeaveRequest.STATUS_CANCELLED and is_requester:
            return
        raise Forbidden()

    def perform_destroy(self, instance):
        if (
            instance.status != LeaveRequest.STATUS_PENDING
            and instance.requested_by_id != self.request.user.pk
        ):
            raise Forbidden("Only pending requests or your own requests can be deleted.")
        super().perform_destroy(instance)


class LeaveStatsAPIView(APIView):
    permission_classes = [HasTenantPermission]
    required_permissions = build_permission_matrix(read=PermissionCode.LEAVE_READ)

    def get(self, request):
        params = request.query_params
        stats = compute_leave_stats(
            get_request_tenant(request),
            date_from=parse_date_param(params.get("date_from"), "date_from"),
            date_to=parse_date_param(params.get("date_to"), "date_to"),
        )
        return Response(stats)
