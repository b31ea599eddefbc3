from __future__ import annotations

import logging

from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import Count, Q
from django.utils import timezone

from communication.models import Message
from communication.services import send_message
from leave.models import LeaveRequest
from tenancy.exceptions import ConflictError

logger = logging.getLogger(__name__)


def transition_leave_request(
    leave_request: LeaveRequest,
    *,
    status: str,
    actor,
    rejected_reason: str = "",
) -> LeaveRequest:
    """Move a pending request to APPROVED, REJECTED or CANCELLED.

    The row is locked first so concurrent decisions yield one transition and
    one conflict.
    """

    rejected_reason = (rejected_reason or "").strip()
    if status == LeaveRequest.STATUS_REJECTED and not rejected_reason:
        raise ValidationError({"rejected_reason": ["A reason is required to reject a leave request."]})

    with transaction.atomic():
        leave_request = LeaveRequest.all_objects.select_for_update().get(pk=leave_request.pk)
        if leave_request.status != LeaveRequest.STATUS_PENDING:
            raise ConflictError(
                f"Only pending leave requests can be updated; this one is {leave_request.status.lower()}."
            )

        leave_request.status = status
        update_fields = ["status", "updated_at"]
        if status == LeaveRequest.STATUS_APPROVED:
            leave_request.approved_by = actor
            leave_request.approved_at = timezone.now()
            update_fields += ["approved_by", "approved_at"]
        elif status == LeaveRequest.STATUS_REJECTED:
            leave_request.rejected_reason = rejected_reason
            update_fields.append("rejected_reason")
        leave_request.save(update_fields=update_fields)

        if status in LeaveRequest.DECISION_STATUSES:
            notify_requester(leave_request, actor=actor)

    logger.info(
        "leave request transitioned",
        extra={
            "tenant_id": leave_request.tenant_id,
            "leave_request_id": leave_request.pk,
            "status": status,
        },
    )
    return leave_request


def notify_requester(leave_request: LeaveRequest, *, actor):
    requester = leave_request.requested_by
    if requester is None or actor is None or requester.pk == actor.pk:
        return None

    decision = leave_request.status.lower()
    student_name = leave_request.student.full_name
    content = f"Leave request for {student_name} has been {decision}."
    if leave_request.status == LeaveRequest.STATUS_REJECTED:
        content = f"{content} Reason: {leave_request.rejected_reason}"
    return send_message(
        tenant=leave_request.tenant,
        sender=actor,
        recipient=requester,
        subject=f"Leave request {decision}",
        content=content,
        message_type=Message.TYPE_NOTIFICATION,
    )


def compute_leave_stats(tenant, *, date_from=None, date_to=None) -> dict:
    queryset = LeaveRequest.all_objects.filter(tenant=tenant)
    if date_from:
        queryset = queryset.filter(created_at__date__gte=date_from)
    if date_to:
        queryset = queryset.filter(created_at__date__lte=date_to)

    totals = queryset.aggregate(
        total=Count("id"),
        pending=Count("id", filter=Q(status=LeaveRequest.STATUS_PENDING)),
        approved=Count("id", filter=Q(status=LeaveRequest.STATUS_APPROVED)),
        rejected=Count("id", filter=Q(status=LeaveRequest.STATUS_REJECTED)),
        cancelled=Count("id", filter=Q(status=LeaveRequest.STATUS_CANCELLED)),
        emergency=Count("id", filter=Q(is_emergency=True)),
    )
    totals["by_type"] = {
        row["leave_type"]: row["total"]
        for row in queryset.values("leave_type").annotate(total=Count("id")).order_by("leave_type")
    }
    return totals
