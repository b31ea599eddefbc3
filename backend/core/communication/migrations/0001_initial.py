# Generated manually. Keep in sync with communication/models.py.

from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion

AUDIENCE_CHOICES = [
    ("ALL", "Everyone"),
    ("STUDENTS", "Students"),
    ("TEACHERS", "Teachers"),
    ("PARENTS", "Parents"),
    ("STAFF", "Staff"),
]


def tenant_field():
    return models.ForeignKey(
        on_delete=django.db.models.deletion.PROTECT,
        related_name="%(app_label)s_%(class)s_set",
        to="accounts.tenant",
    )


def user_field(related_name):
    return models.ForeignKey(
        blank=True,
        null=True,
        on_delete=django.db.models.deletion.SET_NULL,
        related_name=related_name,
        to=settings.AUTH_USER_MODEL,
    )


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        ("accounts", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="MessageTemplate",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("name", models.CharField(max_length=150)),
                ("description", models.CharField(blank=True, max_length=255)),
                ("subject", models.CharField(blank=True, max_length=255)),
                ("content", models.TextField(help_text="Placeholders use the {{ variable }} syntax.")),
                ("category", models.CharField(choices=[("GENERAL", "General"), ("ACADEMIC", "Academic"), ("FINANCE", "Finance"), ("EVENT", "Event"), ("REMINDER", "Reminder"), ("EMERGENCY", "Emergency")], default="GENERAL", max_length=20)),
                ("variables", models.JSONField(blank=True, default=list)),
                ("is_active", models.BooleanField(default=True)),
                ("usage_count", models.PositiveIntegerField(default=0)),
                ("last_used_at", models.DateTimeField(blank=True, null=True)),
                ("created_by", user_field("message_templates")),
                ("tenant", tenant_field()),
            ],
            options={"ordering": ("-created_at", "-id")},
        ),
        migrations.CreateModel(
            name="Message",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("subject", models.CharField(blank=True, max_length=255)),
                ("content", models.TextField()),
                ("message_type", models.CharField(choices=[("DIRECT", "Direct"), ("BROADCAST", "Broadcast"), ("NOTIFICATION", "Notification"), ("ALERT", "Alert")], default="DIRECT", max_length=20)),
                ("priority", models.CharField(choices=[("LOW", "Low"), ("NORMAL", "Normal"), ("HIGH", "High"), ("URGENT", "Urgent")], default="NORMAL", max_length=20)),
                ("status", models.CharField(choices=[("DRAFT", "Draft"), ("SCHEDULED", "Scheduled"), ("SENT", "Sent"), ("DELIVERED", "Delivered"), ("READ", "Read"), ("FAILED", "Failed")], default="SENT", max_length=20)),
                ("is_read", models.BooleanField(default=False)),
                ("read_at", models.DateTimeField(blank=True, null=True)),
                ("scheduled_at", models.DateTimeField(blank=True, null=True)),
                ("sent_at", models.DateTimeField(blank=True, null=True)),
                ("recipient", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="received_messages", to=settings.AUTH_USER_MODEL)),
                ("sender", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="sent_messages", to=settings.AUTH_USER_MODEL)),
                ("reply_to", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="replies", to="communication.message")),
                ("thread", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="thread_messages", to="communication.message")),
                ("template", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="messages", to="communication.messagetemplate")),
                ("tenant", tenant_field()),
            ],
            options={"ordering": ("-created_at", "-id")},
        ),
        migrations.CreateModel(
            name="Announcement",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("title", models.CharField(max_length=255)),
                ("content", models.TextField()),
                ("category", models.CharField(choices=[("GENERAL", "General"), ("ACADEMIC", "Academic"), ("EVENT", "Event"), ("HOLIDAY", "Holiday"), ("SPORTS", "Sports"), ("EMERGENCY", "Emergency")], default="GENERAL", max_length=20)),
                ("priority", models.CharField(choices=[("LOW", "Low"), ("MEDIUM", "Medium"), ("HIGH", "High"), ("URGENT", "Urgent")], default="MEDIUM", max_length=20)),
                ("target_audience", models.CharField(choices=AUDIENCE_CHOICES, default="ALL", max_length=20)),
                ("status", models.CharField(choices=[("DRAFT", "Draft"), ("SCHEDULED", "Scheduled"), ("PUBLISHED", "Published"), ("ARCHIVED", "Archived")], default="DRAFT", max_length=20)),
                ("publish_date", models.DateTimeField(blank=True, null=True)),
                ("expiry_date", models.DateTimeField(blank=True, null=True)),
                ("view_count", models.PositiveIntegerField(default=0)),
                ("author", user_field("announcements")),
                ("tenant", tenant_field()),
            ],
            options={"ordering": ("-created_at", "-id")},
        ),
        migrations.CreateModel(
            name="CommunicationLog",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("communication_type", models.CharField(choices=[("MESSAGE", "Message"), ("BULK_MESSAGE", "Bulk message"), ("ANNOUNCEMENT", "Announcement")], max_length=20)),
                ("recipient_type", models.CharField(choices=[("INDIVIDUAL", "Individual")] + AUDIENCE_CHOICES, default="INDIVIDUAL", max_length=20)),
                ("channel", models.CharField(choices=[("IN_APP", "In app"), ("EMAIL", "Email"), ("SMS", "SMS")], default="IN_APP", max_length=20)),
                ("status", models.CharField(choices=[("PENDING", "Pending"), ("SENT", "Sent"), ("DELIVERED", "Delivered"), ("READ", "Read"), ("FAILED", "Failed")], default="SENT", max_length=20)),
                ("read_at", models.DateTimeField(blank=True, null=True)),
                ("announcement", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="logs", to="communication.announcement")),
                ("message", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="logs", to="communication.message")),
                ("template", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="logs", to="communication.messagetemplate")),
                ("recipient", user_field("received_communications")),
                ("user", user_field("communication_logs")),
                ("tenant", tenant_field()),
            ],
            options={"ordering": ("-created_at", "-id")},
        ),
        migrations.AddIndex(
            model_name="message",
            index=models.Index(fields=["tenant", "recipient", "is_read"], name="idx_message_inbox"),
        ),
        migrations.AddConstraint(
            model_name="messagetemplate",
            constraint=models.UniqueConstraint(fields=("tenant", "name"), name="uq_message_template_tenant_name"),
        ),
    ]
