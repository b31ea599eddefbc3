from django.db import transaction
from django.utils import timezone

from hostel.models import MaintenanceRequest
from tenancy.exceptions import ConflictError


def transition_maintenance_request(request: MaintenanceRequest, *, status: str, actor) -> MaintenanceRequest:
    """Apply `OPEN -> IN_PROGRESS -> RESOLVED` (or cancel) under a row lock."""

    with transaction.atomic():
        request = MaintenanceRequest.all_objects.select_for_update().get(pk=request.pk)
        if request.status == status:
            raise ConflictError(f"Maintenance request is already {status.lower().replace('_', ' ')}.")
        if not request.can_transition_to(status):
            raise ConflictError(
                f"Cannot move a maintenance request from {request.status} to {status}."
            )
        request.status = status
        update_fields = ["status", "updated_at"]
        if status == MaintenanceRequest.STATUS_RESOLVED:
            request.completed_at = timezone.now()
            request.resolved_by = actor
            update_fields += ["completed_at", "resolved_by"]
        request.save(update_fields=update_fields)
    return request
