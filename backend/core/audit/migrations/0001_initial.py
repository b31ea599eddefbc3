# Generated manually. Keep in sync with audit/models.py.

from django.conf import settings
import django.core.serializers.json
from django.db import migrations, models
import django.db.models.deletion
import django.utils.timezone


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        ("accounts", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="AuditLog",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("actor_email", models.EmailField(blank=True, max_length=254)),
                ("action", models.CharField(choices=[("CREATE", "Create"), ("UPDATE", "Update"), ("DELETE", "Delete"), ("TRANSITION", "Transition"), ("LOGIN", "Login"), ("EXPORT", "Export"), ("SYSTEM", "System")], default="SYSTEM", max_length=20)),
                ("resource", models.CharField(max_length=120)),
                ("resource_id", models.CharField(blank=True, max_length=64)),
                ("status", models.CharField(choices=[("SUCCESS", "Success"), ("FAILURE", "Failure")], default="SUCCESS", max_length=10)),
                ("details", models.JSONField(blank=True, default=dict, encoder=django.core.serializers.json.DjangoJSONEncoder)),
                ("data_before", models.JSONField(blank=True, encoder=django.core.serializers.json.DjangoJSONEncoder, null=True)),
                ("data_after", models.JSONField(blank=True, encoder=django.core.serializers.json.DjangoJSONEncoder, null=True)),
                ("occurred_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("correlation_id", models.CharField(blank=True, max_length=128)),
                ("request_method", models.CharField(blank=True, max_length=12)),
                ("request_path", models.CharField(blank=True, max_length=255)),
                ("ip_address", models.GenericIPAddressField(blank=True, null=True)),
                ("user_agent", models.TextField(blank=True)),
                ("actor", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="audit_logs", to=settings.AUTH_USER_MODEL)),
                ("tenant", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name="audit_logs", to="accounts.tenant")),
            ],
            options={
                "verbose_name": "Audit Log",
                "verbose_name_plural": "Audit Logs",
                "ordering": ("-occurred_at", "-id"),
            },
        ),
        migrations.AddIndex(
            model_name="auditlog",
            index=models.Index(fields=["tenant", "occurred_at"], name="idx_audit_tenant_occurred"),
        ),
        migrations.AddIndex(
            model_name="auditlog",
            index=models.Index(fields=["tenant", "resource", "resource_id"], name="idx_audit_resource"),
        ),
    ]
