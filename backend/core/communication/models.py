from django.conf import settings
from django.db import models

from tenancy.models import BaseTenantModel

PRIORITY_LOW = "LOW"
PRIORITY_NORMAL = "NORMAL"
PRIORITY_MEDIUM = "MEDIUM"
PRIORITY_HIGH = "HIGH"
PRIORITY_URGENT = "URGENT"

AUDIENCE_ALL = "ALL"
AUDIENCE_STUDENTS = "STUDENTS"
AUDIENCE_TEACHERS = "TEACHERS"
AUDIENCE_PARENTS = "PARENTS"
AUDIENCE_STAFF = "STAFF"
AUDIENCE_CHOICES = [
    (AUDIENCE_ALL, "Everyone"),
    (AUDIENCE_STUDENTS, "Students"),
    (AUDIENCE_TEACHERS, "Teachers"),
    (AUDIENCE_PARENTS, "Parents"),
    (AUDIENCE_STAFF, "Staff"),
]


class MessageTemplate(BaseTenantModel):
    CATEGORY_GENERAL = "GENERAL"
    CATEGORY_ACADEMIC = "ACADEMIC"
    CATEGORY_FINANCE = "FINANCE"
    CATEGORY_EVENT = "EVENT"
    CATEGORY_REMINDER = "REMINDER"
    CATEGORY_EMERGENCY = "EMERGENCY"
    CATEGORY_CHOICES = [
        (CATEGORY_GENERAL, "General"),
        (CATEGORY_ACADEMIC, "Academic"),
        (CATEGORY_FINANCE, "Finance"),
        (CATEGORY_EVENT, "Event"),
        (CATEGORY_REMINDER, "Reminder"),
        (CATEGORY_EMERGENCY, "Emergency"),
    ]

    name = models.CharField(max_length=150)
    description = models.CharField(max_length=255, blank=True)
    subject = models.CharField(max_length=255, blank=True)
    content = models.TextField(help_text="Placeholders use the {{ variable }} syntax.")
    category = models.CharField(max_length=20, choices=CATEGORY_CHOICES, default=CATEGORY_GENERAL)
    variables = models.JSONField(default=list, blank=True)
    is_active = models.BooleanField(default=True)
    usage_count = models.PositiveIntegerField(default=0)
    last_used_at = models.DateTimeField(null=True, blank=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        related_name="message_templates",
        null=True,
        blank=True,
    )

    class Meta:
        ordering = ("-created_at", "-id")
        constraints = [
            models.UniqueConstraint(
                fields=("tenant", "name"),
                name="uq_message_template_tenant_name",
            ),
        ]

    def __str__(self):
        return self.name


class Message(BaseTenantModel):
    TYPE_DIRECT = "DIRECT"
    TYPE_BROADCAST = "BROADCAST"
    TYPE_NOTIFICATION = "NOTIFICATION"
    TYPE_ALERT = "ALERT"
    TYPE_CHOICES = [
        (TYPE_DIRECT, "Direct"),
        (TYPE_BROADCAST, "Broadcast"),
        (TYPE_NOTIFICATION, "Notification"),
        (TYPE_ALERT, "Alert"),
    ]

    PRIORITY_CHOICES = [
        (PRIORITY_LOW, "Low"),
        (PRIORITY_NORMAL, "Normal"),
        (PRIORITY_HIGH, "High"),
        (PRIORITY_URGENT, "Urgent"),
    ]

    STATUS_DRAFT = "DRAFT"
    STATUS_SCHEDULED = "SCHEDULED"
    STATUS_SENT = "SENT"
    STATUS_DELIVERED = "DELIVERED"
    STATUS_READ = "READ"
    STATUS_FAILED = "FAILED"
    STATUS_CHOICES = [
        (STATUS_DRAFT, "Draft"),
        (STATUS_SCHEDULED, "Scheduled"),
        (STATUS_SENT, "Sent"),
        (STATUS_DELIVERED, "Delivered"),
        (STATUS_READ, "Read"),
        (STATUS_FAILED, "Failed"),
    ]
    READABLE_STATUSES = (STATUS_SCHEDULED, STATUS_SENT, STATUS_DELIVERED)
    UNREAD_STATUSES = (STATUS_SENT, STATUS_DELIVERED)
    EDITABLE_STATUSES = (STATUS_DRAFT, STATUS_SCHEDULED)

    sender = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="sent_messages",
    )
    recipient = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="received_messages",
    )
    subject = models.CharField(max_length=255, blank=True)
    content = models.TextField()
    message_type = models.CharField(max_length=20, choices=TYPE_CHOICES, default=TYPE_DIRECT)
    priority = models.CharField(max_length=20, choices=PRIORITY_CHOICES, default=PRIORITY_NORMAL)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_SENT)
    is_read = models.BooleanField(default=False)
    read_at = models.DateTimeField(null=True, blank=True)
    scheduled_at = models.DateTimeField(null=True, blank=True)
    sent_at = models.DateTimeField(null=True, blank=True)
    thread = models.ForeignKey(
        "self",
        on_delete=models.SET_NULL,
        related_name="thread_messages",
        null=True,
        blank=True,
    )
    reply_to = models.ForeignKey(
        "self",
        on_delete=models.SET_NULL,
        related_name="replies",
        null=True,
        blank=True,
    )
    template = models.ForeignKey(
        MessageTemplate,
        on_delete=models.SET_NULL,
        related_name="messages",
        null=True,
        blank=True,
    )

    class Meta:
        ordering = ("-created_at", "-id")
        indexes = [
            models.Index(fields=("tenant", "recipient", "is_read"), name="idx_message_inbox"),
        ]

    def __str__(self):
        return f"{self.sender_id}->{self.recipient_id}: {self.subject}"


class Announcement(BaseTenantModel):
    CATEGORY_GENERAL = "GENERAL"
    CATEGORY_ACADEMIC = "ACADEMIC"
    CATEGORY_EVENT = "EVENT"
    CATEGORY_HOLIDAY = "HOLIDAY"
    CATEGORY_SPORTS = "SPORTS"
    CATEGORY_EMERGENCY = "EMERGENCY"
    CATEGORY_CHOICES = [
        (CATEGORY_GENERAL, "General"),
        (CATEGORY_ACADEMIC, "Academic"),
        (CATEGORY_EVENT, "Event"),
        (CATEGORY_HOLIDAY, "Holiday"),
        (CATEGORY_SPORTS, "Sports"),
        (CATEGORY_EMERGENCY, "Emergency"),
    ]

    PRIORITY_CHOICES = [
        (PRIORITY_LOW, "Low"),
        (PRIORITY_MEDIUM, "Medium"),
        (PRIORITY_HIGH, "High"),
        (PRIORITY_URGENT, "Urgent"),
    ]

    STATUS_DRAFT = "DRAFT"
    STATUS_SCHEDULED = "SCHEDULED"
    STATUS_PUBLISHED = "PUBLISHED"
    STATUS_ARCHIVED = "ARCHIVED"
    STATUS_CHOICES = [
        (STATUS_DRAFT, "Draft"),
        (STATUS_SCHEDULED, "Scheduled"),
        (STATUS_PUBLISHED, "Published"),
        (STATUS_ARCHIVED, "Archived"),
    ]

    title = models.CharField(max_length=255)
    content = models.TextField()
    category = models.CharField(max_length=20, choices=CATEGORY_CHOICES, default=CATEGORY_GENERAL)
    priority = models.CharField(max_length=20, choices=PRIORITY_CHOICES, default=PRIORITY_MEDIUM)
    target_audience = models.CharField(max_length=20, choices=AUDIENCE_CHOICES, default=AUDIENCE_ALL)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_DRAFT)
    publish_date = models.DateTimeField(null=True, blank=True)
    expiry_date = models.DateTimeField(null=True, blank=True)
    view_count = models.PositiveIntegerField(default=0)
    author = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        related_name="announcements",
        null=True,
        blank=True,
    )

    class Meta:
        ordering = ("-created_at", "-id")

    def __str__(self):
        return self.title


class CommunicationLog(BaseTenantModel):
    TYPE_MESSAGE = "MESSAGE"
    TYPE_BULK_MESSAGE = "BULK_MESSAGE"
    TYPE_ANNOUNCEMENT = "ANNOUNCEMENT"
    TYPE_CHOICES = [
        (TYPE_MESSAGE, "Message"),
        (TYPE_BULK_MESSAGE, "Bulk message"),
        (TYPE_ANNOUNCEMENT, "Announcement"),
    ]

    RECIPIENT_INDIVIDUAL = "INDIVIDUAL"
    RECIPIENT_TYPE_CHOICES = [(RECIPIENT_INDIVIDUAL, "Individual")] + AUDIENCE_CHOICES

    CHANNEL_IN_APP = "IN_APP"
    CHANNEL_EMAIL = "EMAIL"
    CHANNEL_SMS = "SMS"
    CHANNEL_CHOICES = [
        (CHANNEL_IN_APP, "In app"),
        (CHANNEL_EMAIL, "Email"),
        (CHANNEL_SMS, "SMS"),
    ]

    STATUS_PENDING = "PENDING"
    STATUS_SENT = "SENT"
    STATUS_DELIVERED = "DELIVERED"
    STATUS_READ = "READ"
    STATUS_FAILED = "FAILED"
    STATUS_CHOICES = [
        (STATUS_PENDING, "Pending"),
        (STATUS_SENT, "Sent"),
        (STATUS_DELIVERED, "Delivered"),
        (STATUS_READ, "Read"),
        (STATUS_FAILED, "Failed"),
    ]

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        related_name="communication_logs",
        null=True,
        blank=True,
    )
    communication_type = models.CharField(max_length=20, choices=TYPE_CHOICES)
    message = models.ForeignKey(
        Message,
        on_delete=models.SET_NULL,
        related_name="logs",
        null=True,
        blank=True,
    )
    announcement = models.ForeignKey(
        Announcement,
        on_delete=models.SET_NULL,
        related_name="logs",
        null=True,
        blank=True,
    )
    template = models.ForeignKey(
        MessageTemplate,
        on_delete=models.SET_NULL,
        related_name="logs",
        null=True,
        blank=True,
    )
    recipient = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        related_name="received_communications",
        null=True,
        blank=True,
    )
    recipient_type = models.CharField(
        max_length=20,
        choices=RECIPIENT_TYPE_CHOICES,
        default=RECIPIENT_INDIVIDUAL,
    )
    channel = models.CharField(max_length=20, choices=CHANNEL_CHOICES, default=CHANNEL_IN_APP)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_SENT)
    read_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ("-created_at", "-id")

    def __str__(self):
        return f"{self.communication_type} {self.status}"
