from rest_framework import serializers

from communication.models import Announcement, CommunicationLog, Message, MessageTemplate


class MessageSerializer(serializers.ModelSerializer):
    sender_name = serializers.CharField(source="sender.full_name", read_only=True)
    recipient = serializers.IntegerField(source="recipient_id")
    recipient_name = serializers.CharField(source="recipient.full_name", read_only=True)

    class Meta:
        model = Message
        fields = (
            "id",
            "sender",
            "sender_name",
            "recipient",
            "recipient_name",
            "subject",
            "content",
            "message_type",
            "priority",
            "status",
            "is_read",
            "read_at",
            "scheduled_at",
            "sent_at",
            "thread",
            "reply_to",
            "created_at",
            "updated_at",
        )
        read_only_fields = (
            "id",
            "sender",
            "status",
            "is_read",
            "read_at",
            "sent_at",
            "thread",
            "reply_to",
            "created_at",
            "updated_at",
        )


class MessageUpdateSerializer(serializers.ModelSerializer):
    class Meta:
        model = Message
        fields = ("id", "subject", "content", "priority", "scheduled_at", "status", "updated_at")
        read_only_fields = ("id", "status", "updated_at")


class ReplySerializer(serializers.Serializer):
    content = serializers.CharField()


class BulkMessageSerializer(serializers.Serializer):
    recipient_ids = serializers.ListField(
        child=serializers.IntegerField(min_value=1),
        allow_empty=False,
    )
    subject = serializers.CharField(required=False, allow_blank=True, max_length=255, default="")
    content = serializers.CharField(required=False, allow_blank=True, default="")
    message_type = serializers.ChoiceField(
        choices=Message.TYPE_CHOICES,
        default=Message.TYPE_BROADCAST,
    )
    priority = serializers.ChoiceField(choices=Message.PRIORITY_CHOICES, required=False)
    scheduled_at = serializers.DateTimeField(required=False, allow_null=True)
    template_id = serializers.IntegerField(required=False, allow_null=True)
    variables = serializers.DictField(required=False, default=dict)
    strict = serializers.BooleanField(required=False, default=False)

    def validate(self, attrs):
        if not attrs.get("content", "").strip() and not attrs.get("template_id"):
            raise serializers.ValidationError({"content": ["Provide content or a template."]})
        return attrs


class MessageTemplateSerializer(serializers.ModelSerializer):
    class Meta:
        model = MessageTemplate
        fields = (
            "id",
            "name",
            "description",
            "subject",
            "content",
            "category",
            "variables",
            "is_active",
            "usage_count",
            "last_used_at",
            "created_by",
            "created_at",
            "updated_at",
        )
        read_only_fields = (
            "id",
            "usage_count",
            "last_used_at",
            "created_by",
            "created_at",
            "updated_at",
        )
        validators = []

    def validate_variables(self, value):
        if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
            raise serializers.ValidationError("Must be a list of variable names.")
        return value


class AnnouncementSerializer(serializers.ModelSerializer):
    author_name = serializers.CharField(source="author.full_name", read_only=True, default="")
    draft = serializers.BooleanField(write_only=True, required=False, default=False)

    class Meta:
        model = Announcement
        fields = (
            "id",
            "title",
            "content",
            "category",
            "priority",
            "target_audience",
            "status",
            "publish_date",
            "expiry_date",
            "view_count",
            "author",
            "author_name",
            "draft",
            "created_at",
            "updated_at",
        )
        read_only_fields = ("id", "status", "view_count", "author", "created_at", "updated_at")

    def validate(self, attrs):
        instance = self.instance
        publish_date = attrs.get("publish_date", getattr(instance, "publish_date", None))
        expiry_date = attrs.get("expiry_date", getattr(instance, "expiry_date", None))
        if publish_date and expiry_date and expiry_date <= publish_date:
            raise serializers.ValidationError(
                {"expiry_date": ["Expiry date must be after the publish date."]}
            )
        return attrs


class CommunicationLogSerializer(serializers.ModelSerializer):
    class Meta:
        model = CommunicationLog
        fields = (
            "id",
            "user",
            "communication_type",
            "message",
            "announcement",
            "template",
            "recipient",
            "recipient_type",
            "channel",
            "status",
            "read_at",
            "created_at",
        )
        read_only_fields = fields
