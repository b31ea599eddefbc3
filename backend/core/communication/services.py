from __future__ import annotations

import logging
import re

from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import Count, F, Q
from django.utils import timezone

from accounts.models import User
from accounts.services import get_user_role_names
from communication.models import (
    AUDIENCE_ALL,
    AUDIENCE_PARENTS,
    AUDIENCE_STAFF,
    AUDIENCE_STUDENTS,
    AUDIENCE_TEACHERS,
    PRIORITY_NORMAL,
    Announcement,
    CommunicationLog,
    Message,
    MessageTemplate,
)
from tenancy.exceptions import ConflictError, NotFound
from tenancy.rbac import ROLE_PARENT, ROLE_STAFF, ROLE_STUDENT, ROLE_TEACHER

logger = logging.getLogger(__name__)


def render_template(text: str, variables: dict | None) -> str:
    """Substitute `{{ name }}` placeholders; unknown placeholders are kept."""

    rendered = text or ""
    for key, value in (variables or {}).items():
        pattern = re.compile(r"\{\{\s*" + re.escape(str(key)) + r"\s*\}\}")
        replacement = "" if value is None else str(value)
        rendered = pattern.sub(lambda _match: replacement, rendered)
    return rendered


def _delivery_state(scheduled_at, now):
    if scheduled_at is not None and scheduled_at > now:
        return Message.STATUS_SCHEDULED, None, CommunicationLog.STATUS_PENDING
    return Message.STATUS_SENT, now, CommunicationLog.STATUS_SENT


def get_tenant_recipient(tenant, recipient_id) -> User:
    recipient = User.objects.filter(pk=recipient_id, tenant=tenant, is_active=True).first()
    if recipient is None:
        raise NotFound("Recipient not found.")
    return recipient


def send_message(*, tenant, sender, recipient, content, subject="", scheduled_at=None, **extra) -> Message:
    now = timezone.now()
    status, sent_at, log_status = _delivery_state(scheduled_at, now)
    with transaction.atomic():
        message = Message.all_objects.create(
            tenant=tenant,
            sender=sender,
            recipient=recipient,
            subject=subject,
            content=content,
            status=status,
            scheduled_at=scheduled_at,
            sent_at=sent_at,
            **extra,
        )
        CommunicationLog.all_objects.create(
            tenant=tenant,
            user=sender,
            communication_type=CommunicationLog.TYPE_MESSAGE,
            message=message,
            recipient=recipient,
            status=log_status,
        )
    return message


def send_bulk_message(
    *,
    tenant,
    sender,
    recipient_ids,
    subject: str = "",
    content: str = "",
    message_type: str = Message.TYPE_BROADCAST,
    priority: str = PRIORITY_NORMAL,
    scheduled_at=None,
    template: MessageTemplate | None = None,
    variables: dict | None = None,
    strict: bool = False,
) -> dict:
    """Create one message and one log row per valid recipient, atomically.

    Recipients outside the tenant are skipped and reported back; with
    ``strict`` they fail the whole batch instead.
    """

    ordered_ids = list(dict.fromkeys(recipient_ids))
    recipients = {
        user.pk: user
        for user in User.objects.filter(pk__in=ordered_ids, tenant=tenant, is_active=True)
    }
    skipped = [recipient_id for recipient_id in ordered_ids if recipient_id not in recipients]
    if skipped and strict:
        raise ValidationError(
            {"recipient_ids": [f"Unknown recipients: {', '.join(str(pk) for pk in skipped)}."]}
        )

    if template is not None:
        content = render_template(template.content, variables)
        subject = render_template(template.subject, variables) if template.subject else subject
    else:
        content = render_template(content, variables)
        subject = render_template(subject, variables)

    now = timezone.now()
    status, sent_at, log_status = _delivery_state(scheduled_at, now)

    with transaction.atomic():
        if template is not None:
            MessageTemplate.all_objects.filter(pk=template.pk).update(
                usage_count=F("usage_count") + 1,
                last_used_at=now,
            )

        messages = []
        for recipient_id in ordered_ids:
            recipient = recipients.get(recipient_id)
            if recipient is None:
                continue
            messages.append(
                Message.all_objects.create(
                    tenant=tenant,
                    sender=sender,
                    recipient=recipient,
                    subject=subject,
                    content=content,
                    message_type=message_type,
                    priority=priority,
                    status=status,
                    scheduled_at=scheduled_at,
                    sent_at=sent_at,
                    template=template,
                )
            )

        CommunicationLog.all_objects.bulk_create(
            [
                CommunicationLog(
                    tenant=tenant,
                    user=sender,
                    communication_type=CommunicationLog.TYPE_BULK_MESSAGE,
                    message=message,
                    template=template,
                    recipient=message.recipient,
                    status=log_status,
                )
                for message in messages
            ]
        )

    if skipped:
        logger.warning(
            "bulk message skipped recipients",
            extra={"tenant_id": tenant.id, "skipped_recipient_ids": skipped},
        )
    return {
        "messages_sent": len(messages),
        "skipped_recipient_ids": skipped,
        "messages": messages,
    }


def reply_to_message(*, tenant, user, original: Message, content: str) -> Message:
    recipient = original.recipient if original.sender_id == user.pk else original.sender
    subject = original.subject or "Message"
    if not subject.lower().startswith("re:"):
        subject = f"Re: {subject}"
    return send_message(
        tenant=tenant,
        sender=user,
        recipient=recipient,
        subject=subject,
        content=content,
        message_type=Message.TYPE_DIRECT,
        thread_id=original.thread_id or original.pk,
        reply_to=original,
    )


def mark_message_read(*, tenant, message_id, user) -> Message:
    """Recipient-only `SCHEDULED|SENT|DELIVERED -> READ` transition."""

    now = timezone.now()
    with transaction.atomic():
        message = (
            Message.all_objects.select_for_update()
            .filter(
                pk=message_id,
                tenant=tenant,
                recipient=user,
                is_read=False,
                status__in=Message.READABLE_STATUSES,
            )
            .first()
        )
        if message is None:
            raise NotFound("Message not found or already read.")
        message.is_read = True
        message.read_at = now
        message.status = Message.STATUS_READ
        message.save(update_fields=["is_read", "read_at", "status", "updated_at"])
        CommunicationLog.all_objects.filter(tenant=tenant, message=message, recipient=user).update(
            status=CommunicationLog.STATUS_READ,
            read_at=now,
            updated_at=now,
        )
    return message


def get_unread_count(*, tenant, user) -> int:
    return Message.all_objects.filter(
        tenant=tenant,
        recipient=user,
        is_read=False,
        status__in=Message.UNREAD_STATUSES,
    ).count()


def publish_announcement(announcement: Announcement, *, user) -> Announcement:
    now = timezone.now()
    with transaction.atomic():
        announcement = Announcement.all_objects.select_for_update().get(pk=announcement.pk)
        if announcement.status not in (Announcement.STATUS_DRAFT, Announcement.STATUS_SCHEDULED):
            raise ConflictError(f"Announcement is already {announcement.status.lower()}.")
        announcement.status = Announcement.STATUS_PUBLISHED
        if announcement.publish_date is None or announcement.publish_date > now:
            announcement.publish_date = now
        announcement.save(update_fields=["status", "publish_date", "updated_at"])
        CommunicationLog.all_objects.create(
            tenant=announcement.tenant,
            user=user,
            communication_type=CommunicationLog.TYPE_ANNOUNCEMENT,
            announcement=announcement,
            recipient_type=announcement.target_audience,
            status=CommunicationLog.STATUS_SENT,
        )
    return announcement


def archive_announcement(announcement: Announcement) -> Announcement:
    with transaction.atomic():
        announcement = Announcement.all_objects.select_for_update().get(pk=announcement.pk)
        if announcement.status != Announcement.STATUS_PUBLISHED:
            raise ConflictError("Only published announcements can be archived.")
        announcement.status = Announcement.STATUS_ARCHIVED
        announcement.save(update_fields=["status", "updated_at"])
    return announcement


def record_announcement_view(announcement: Announcement, *, user) -> None:
    with transaction.atomic():
        Announcement.all_objects.filter(pk=announcement.pk).update(view_count=F("view_count") + 1)
        CommunicationLog.all_objects.create(
            tenant=announcement.tenant,
            user=user,
            communication_type=CommunicationLog.TYPE_ANNOUNCEMENT,
            announcement=announcement,
            recipient=user,
            status=CommunicationLog.STATUS_READ,
            read_at=timezone.now(),
        )


def dispatch_due_messages(*, now=None) -> dict:
    """Send scheduled messages and publish scheduled announcements that are due."""

    now = now or timezone.now()
    with transaction.atomic():
        due_ids = list(
            Message.all_objects.select_for_update()
            .filter(status=Message.STATUS_SCHEDULED, scheduled_at__lte=now)
            .values_list("id", flat=True)
        )
        messages = Message.all_objects.filter(pk__in=due_ids).update(
            status=Message.STATUS_SENT,
            sent_at=now,
            updated_at=now,
        )
        CommunicationLog.all_objects.filter(
            message_id__in=due_ids,
            status=CommunicationLog.STATUS_PENDING,
        ).update(status=CommunicationLog.STATUS_SENT, updated_at=now)
        announcements = Announcement.all_objects.filter(
            status=Announcement.STATUS_SCHEDULED,
            publish_date__lte=now,
        ).update(status=Announcement.STATUS_PUBLISHED, updated_at=now)
    return {"messages": messages, "announcements": announcements}


def _counts_by(queryset, field: str) -> dict:
    return {
        row[field]: row["total"]
        for row in queryset.values(field).annotate(total=Count("id")).order_by(field)
    }


def compute_communication_stats(tenant, *, date_from=None, date_to=None, communication_type="") -> dict:
    logs = CommunicationLog.all_objects.filter(tenant=tenant)
    announcements = Announcement.all_objects.filter(tenant=tenant)
    messages = Message.all_objects.filter(tenant=tenant)
    if date_from:
        logs = logs.filter(created_at__date__gte=date_from)
        announcements = announcements.filter(created_at__date__gte=date_from)
        messages = messages.filter(created_at__date__gte=date_from)
    if date_to:
        logs = logs.filter(created_at__date__lte=date_to)
        announcements = announcements.filter(created_at__date__lte=date_to)
        messages = messages.filter(created_at__date__lte=date_to)
    if communication_type:
        logs = logs.filter(communication_type=communication_type)

    message_totals = messages.aggregate(
        total=Count("id"),
        read=Count("id", filter=Q(is_read=True)),
        scheduled=Count("id", filter=Q(status=Message.STATUS_SCHEDULED)),
    )
    return {
        "total_communications": logs.count(),
        "by_type": _counts_by(logs, "communication_type"),
        "by_channel": _counts_by(logs, "channel"),
        "by_status": _counts_by(logs, "status"),
        "announcements_by_category": _counts_by(announcements, "category"),
        "messages": {
            "total": message_totals["total"],
            "read": message_totals["read"],
            "unread": message_totals["total"] - message_totals["read"],
            "scheduled": message_totals["scheduled"],
        },
    }


ROLE_AUDIENCES = {
    ROLE_STUDENT: AUDIENCE_STUDENTS,
    ROLE_TEACHER: AUDIENCE_TEACHERS,
    ROLE_PARENT: AUDIENCE_PARENTS,
    ROLE_STAFF: AUDIENCE_STAFF,
}


def get_user_audiences(user, tenant) -> set[str]:
    audiences = {AUDIENCE_ALL}
    for role_name in get_user_role_names(user, tenant):
        audience = ROLE_AUDIENCES.get(role_name)
        if audience:
            audiences.add(audience)
    return audiences
