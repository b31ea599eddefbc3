from django.db import transaction
from django.db.models import Q
from django.utils import timezone
from rest_framework import generics, status
from rest_framework.response import Response
from rest_framework.views import APIView

from audit.models import AuditLog
from audit.services import snapshot_instance
from communication.models import Announcement, CommunicationLog, Message, MessageTemplate
from communication.serializers import (
    AnnouncementSerializer,
    BulkMessageSerializer,
    CommunicationLogSerializer,
    MessageSerializer,
    MessageTemplateSerializer,
    MessageUpdateSerializer,
    ReplySerializer,
)
from communication.services import (
    archive_announcement,
    compute_communication_stats,
    get_tenant_recipient,
    get_unread_count,
    get_user_audiences,
    mark_message_read,
    publish_announcement,
    record_announcement_view,
    reply_to_message,
    send_bulk_message,
    send_message,
)
from tenancy.exceptions import ConflictError, Forbidden, NotFound
from tenancy.permissions import HasTenantPermission, get_request_permissions, get_request_tenant
from tenancy.rbac import PermissionCode, Resource, build_permission_matrix, is_granted
from tenancy.views import TenantScopedAPIViewMixin, parse_date_param

MESSAGE_PERMISSIONS = build_permission_matrix(
    read=PermissionCode.MESSAGES_READ,
    create=PermissionCode.MESSAGES_CREATE,
    update=PermissionCode.MESSAGES_CREATE,
    delete=PermissionCode.MESSAGES_DELETE,
)


class MessageQuerysetMixin(TenantScopedAPIViewMixin):
    """Messages are only visible to their sender and recipient."""

    model = Message
    required_permissions = MESSAGE_PERMISSIONS

    def get_queryset(self):
        user = self.request.user
        return (
            super()
            .get_queryset()
            .filter(Q(sender=user) | Q(recipient=user))
            .select_related("sender", "recipient")
        )


class MessageListCreateAPIView(MessageQuerysetMixin, generics.ListCreateAPIView):
    serializer_class = MessageSerializer
    ordering = ("-created_at", "-id")
    search_fields = ("subject", "content")
    choice_filters = {
        "status": "status",
        "message_type": "message_type",
        "priority": "priority",
    }
    boolean_filters = {"is_read": "is_read"}
    date_range_field = "created_at__date"

    def filter_queryset(self, queryset):
        queryset = super().filter_queryset(queryset)
        folder = (self.request.query_params.get("folder") or "").strip().lower()
        if folder == "inbox":
            queryset = queryset.filter(recipient=self.request.user)
        elif folder == "sent":
            queryset = queryset.filter(sender=self.request.user)
        return queryset

    def perform_create(self, serializer):
        data = dict(serializer.validated_data)
        recipient = get_tenant_recipient(self.tenant, data.pop("recipient_id"))
        with transaction.atomic():
            message = send_message(
                tenant=self.tenant,
                sender=self.request.user,
                recipient=recipient,
                **data,
            )
            self.record_audit(AuditLog.ACTION_CREATE, message, after=snapshot_instance(message))
        serializer.instance = message
        return message


class MessageDetailAPIView(MessageQuerysetMixin, generics.RetrieveUpdateDestroyAPIView):
    serializer_class = MessageSerializer

    def get_serializer_class(self):
        if self.request.method in ("PUT", "PATCH"):
            return MessageUpdateSerializer
        return MessageSerializer

    def _ensure_sender(self, message):
        if message.sender_id != self.request.user.pk:
            raise Forbidden("Only the sender can change this message.")

    def perform_update(self, serializer):
        message = serializer.instance
        self._ensure_sender(message)
        if message.status not in Message.EDITABLE_STATUSES:
            raise ConflictError("Only draft or scheduled messages can be edited.")
        return super().perform_update(serializer)

    def perform_destroy(self, instance):
        self._ensure_sender(instance)
        super().perform_destroy(instance)


class MessageReadAPIView(MessageQuerysetMixin, generics.GenericAPIView):
    required_permissions = build_permission_matrix(
        create=PermissionCode.MESSAGES_READ,
        update=PermissionCode.MESSAGES_READ,
    )

    def put(self, request, pk):
        message = mark_message_read(tenant=self.tenant, message_id=pk, user=request.user)
        return Response(
            {
                "success": True,
                "data": MessageSerializer(message).data,
                "message": "Message marked as read.",
            }
        )

    post = put


class MessageReplyAPIView(MessageQuerysetMixin, generics.GenericAPIView):
    serializer_class = ReplySerializer
    required_permissions = build_permission_matrix(create=PermissionCode.MESSAGES_CREATE)

    def post(self, request, pk):
        original = self.get_object()
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        with transaction.atomic():
            reply = reply_to_message(
                tenant=self.tenant,
                user=request.user,
                original=original,
                content=serializer.validated_data["content"],
            )
            self.record_audit(AuditLog.ACTION_CREATE, reply, after=snapshot_instance(reply))
        return Response(
            {
                "success": True,
                "data": MessageSerializer(reply).data,
                "message": "Reply sent successfully.",
            },
            status=status.HTTP_201_CREATED,
        )


class MessageThreadAPIView(MessageQuerysetMixin, generics.ListAPIView):
    serializer_class = MessageSerializer
    pagination_class = None

    def get_queryset(self):
        thread_id = self.kwargs["thread_id"]
        return (
            super()
            .get_queryset()
            .filter(Q(pk=thread_id) | Q(thread_id=thread_id))
            .order_by("created_at", "id")
        )

    def list(self, request, *args, **kwargs):
        messages = list(self.get_queryset())
        if not messages:
            raise NotFound("Thread not found.")
        return Response({"success": True, "data": MessageSerializer(messages, many=True).data})


class UnreadCountAPIView(APIView):
    permission_classes = [HasTenantPermission]
    required_permissions = build_permission_matrix(read=PermissionCode.MESSAGES_READ)

    def get(self, request):
        count = get_unread_count(tenant=get_request_tenant(request), user=request.user)
        return Response({"success": True, "data": {"unread_count": count}})


class BulkMessageAPIView(TenantScopedAPIViewMixin, generics.GenericAPIView):
    model = Message
    serializer_class = BulkMessageSerializer
    required_permissions = build_permission_matrix(create=PermissionCode.MESSAGES_CREATE)

    def post(self, request):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = dict(serializer.validated_data)

        template = None
        template_id = data.pop("template_id", None)
        if template_id:
            template = MessageTemplate.objects.filter(
                pk=template_id,
                tenant=self.tenant,
                is_active=True,
            ).first()
            if template is None:
                raise NotFound("Message template not found.")

        with transaction.atomic():
            result = send_bulk_message(
                tenant=self.tenant,
                sender=request.user,
                template=template,
                **data,
            )
            self.record_audit(
                AuditLog.ACTION_CREATE,
                None,
                details={
                    "bulk": True,
                    "messages_sent": result["messages_sent"],
                    "skipped_recipient_ids": result["skipped_recipient_ids"],
                },
            )

        sent = result["messages_sent"]
        return Response(
            {
                "success": True,
                "data": {
                    "messages_sent": sent,
                    "skipped_recipient_ids": result["skipped_recipient_ids"],
                    "message_ids": [message.pk for message in result["messages"]],
                },
                "message": f"Bulk message sent to {sent} recipient(s).",
            },
            status=status.HTTP_201_CREATED,
        )


class MessageTemplateListCreateAPIView(TenantScopedAPIViewMixin, generics.ListCreateAPIView):
    model = MessageTemplate
    serializer_class = MessageTemplateSerializer
    tenant_resource = Resource.MESSAGE_TEMPLATES
    creator_field = "created_by"
    ordering = ("name", "id")
    search_fields = ("name", "description", "subject", "content")
    choice_filters = {"category": "category"}
    boolean_filters = {"is_active": "is_active"}

    def perform_create(self, serializer):
        name = serializer.validated_data["name"]
        if MessageTemplate.all_objects.filter(tenant=self.tenant, name=name).exists():
            raise ConflictError("A template with this name already exists.")
        return super().perform_create(serializer)


class MessageTemplateDetailAPIView(TenantScopedAPIViewMixin, generics.RetrieveUpdateDestroyAPIView):
    model = MessageTemplate
    serializer_class = MessageTemplateSerializer
    tenant_resource = Resource.MESSAGE_TEMPLATES

    def perform_update(self, serializer):
        name = serializer.validated_data.get("name")
        if name and (
            MessageTemplate.all_objects.filter(tenant=self.tenant, name=name)
            .exclude(pk=serializer.instance.pk)
            .exists()
        ):
            raise ConflictError("A template with this name already exists.")
        return super().perform_update(serializer)


class AnnouncementQuerysetMixin(TenantScopedAPIViewMixin):
    model = Announcement
    serializer_class = AnnouncementSerializer
    tenant_resource = Resource.ANNOUNCEMENTS

    def can_manage_announcements(self) -> bool:
        if self.request.user.is_superuser:
            return True
        return is_granted(
            get_request_permissions(self.request),
            (PermissionCode.ANNOUNCEMENTS_UPDATE, PermissionCode.ANNOUNCEMENTS_PUBLISH),
        )

    def get_queryset(self):
        queryset = super().get_queryset().select_related("author")
        if self.can_manage_announcements():
            return queryset
        now = timezone.now()
        return queryset.filter(
            status=Announcement.STATUS_PUBLISHED,
            target_audience__in=get_user_audiences(self.request.user, self.tenant),
        ).filter(Q(expiry_date__isnull=True) | Q(expiry_date__gt=now))


class AnnouncementListCreateAPIView(AnnouncementQuerysetMixin, generics.ListCreateAPIView):
    ordering = ("-publish_date", "-created_at", "-id")
    search_fields = ("title", "content")
    choice_filters = {
        "category": "category",
        "priority": "priority",
        "status": "status",
        "target_audience": "target_audience",
    }
    date_range_field = "created_at__date"

    def perform_create(self, serializer):
        draft = serializer.validated_data.pop("draft", False)
        publish_date = serializer.validated_data.get("publish_date")
        now = timezone.now()
        if draft:
            announcement_status = Announcement.STATUS_DRAFT
        elif publish_date and publish_date > now:
            announcement_status = Announcement.STATUS_SCHEDULED
        else:
            announcement_status = Announcement.STATUS_PUBLISHED
            publish_date = publish_date or now

        with transaction.atomic():
            announcement = serializer.save(
                tenant=self.tenant,
                author=self.request.user,
                status=announcement_status,
                publish_date=publish_date,
            )
            self.record_audit(
                AuditLog.ACTION_CREATE,
                announcement,
                after=snapshot_instance(announcement),
            )
        return announcement


class AnnouncementDetailAPIView(AnnouncementQuerysetMixin, generics.RetrieveUpdateDestroyAPIView):
    def retrieve(self, request, *args, **kwargs):
        announcement = self.get_object()
        record_announcement_view(announcement, user=request.user)
        announcement.refresh_from_db(fields=["view_count"])
        return Response(self.get_serializer(announcement).data)

    def perform_update(self, serializer):
        serializer.validated_data.pop("draft", None)
        if serializer.instance.status == Announcement.STATUS_ARCHIVED:
            raise ConflictError("Archived announcements cannot be edited.")
        return super().perform_update(serializer)


class AnnouncementTransitionAPIView(AnnouncementQuerysetMixin, generics.GenericAPIView):
    required_permissions = build_permission_matrix(
        create=PermissionCode.ANNOUNCEMENTS_PUBLISH,
        update=PermissionCode.ANNOUNCEMENTS_PUBLISH,
    )
    success_message = ""

    def transition(self, announcement):
        raise NotImplementedError

    def post(self, request, pk):
        announcement = self.get_object()
        before = snapshot_instance(announcement)
        with transaction.atomic():
            announcement = self.transition(announcement)
            self.record_audit(
                AuditLog.ACTION_TRANSITION,
                announcement,
                before=before,
                after=snapshot_instance(announcement),
            )
        return Response(
            {
                "success": True,
                "data": AnnouncementSerializer(announcement).data,
                "message": self.success_message,
            }
        )

    put = post


class AnnouncementPublishAPIView(AnnouncementTransitionAPIView):
    success_message = "Announcement published successfully."

    def transition(self, announcement):
        return publish_announcement(announcement, user=self.request.user)


class AnnouncementArchiveAPIView(AnnouncementTransitionAPIView):
    success_message = "Announcement archived successfully."

    def transition(self, announcement):
        return archive_announcement(announcement)


class CommunicationLogListAPIView(TenantScopedAPIViewMixin, generics.ListAPIView):
    model = CommunicationLog
    serializer_class = CommunicationLogSerializer
    required_permissions = build_permission_matrix(read=PermissionCode.COMMUNICATION_READ)
    ordering = ("-created_at", "-id")
    choice_filters = {
        "communication_type": "communication_type",
        "channel": "channel",
        "status": "status",
        "recipient_type": "recipient_type",
    }
    exact_filters = {"user_id": "user_id", "recipient_id": "recipient_id"}
    date_range_field = "created_at__date"


class CommunicationStatsAPIView(APIView):
    permission_classes = [HasTenantPermission]
    required_permissions = build_permission_matrix(read=PermissionCode.COMMUNICATION_READ)

    def get(self, request):
        params = request.query_params
        stats = compute_communication_stats(
            get_request_tenant(request),
            date_from=parse_date_param(params.get("date_from"), "date_from"),
            date_to=parse_date_param(params.get("date_to"), "date_to"),
            communication_type=(params.get("communication_type") or "").strip().upper(),
        )
        return Response(stats)
