# Generated manually. Keep in sync with leave/models.py.

from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        ("accounts", "0001_initial"),
        ("academics", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="LeaveRequest",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("leave_type", models.CharField(choices=[("SICK", "Sick leave"), ("PERSONAL", "Personal"), ("FAMILY_EMERGENCY", "Family emergency"), ("MEDICAL_APPOINTMENT", "Medical appointment"), ("RELIGIOUS", "Religious"), ("VACATION", "Vacation"), ("OTHER", "Other")], max_length=30)),
                ("start_date", models.DateField()),
                ("end_date", models.DateField()),
                ("reason", models.CharField(max_length=255)),
                ("description", models.TextField(blank=True)),
                ("supporting_docs", models.JSONField(blank=True, default=list)),
                ("is_emergency", models.BooleanField(default=False)),
                ("status", models.CharField(choices=[("PENDING", "Pending"), ("APPROVED", "Approved"), ("REJECTED", "Rejected"), ("CANCELLED", "Cancelled")], default="PENDING", max_length=20)),
                ("approved_at", models.DateTimeField(blank=True, null=True)),
                ("rejected_reason", models.TextField(blank=True)),
                ("approved_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="approved_leave_requests", to=settings.AUTH_USER_MODEL)),
                ("requested_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="leave_requests", to=settings.AUTH_USER_MODEL)),
                ("student", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="leave_requests", to="academics.student")),
                ("tenant", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="%(app_label)s_%(class)s_set", to="accounts.tenant")),
            ],
            options={"verbose_name": "leave request", "ordering": ("-created_at", "-id")},
        ),
        migrations.AddIndex(
            model_name="leaverequest",
            index=models.Index(fields=["tenant", "status"], name="idx_leave_tenant_status"),
        ),
    ]
