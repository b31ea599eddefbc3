from __future__ import annotations

from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.serializers.json import DjangoJSONEncoder
from django.db import models
from django.utils import timezone

from tenancy.context import get_current_tenant
from tenancy.models import TenantManager


class AuditLog(models.Model):
    """Append-only record of who did what to which resource.

    Rows are immutable at the application boundary: updates and deletes raise.
    """

    ACTION_CREATE = "CREATE"
    ACTION_UPDATE = "UPDATE"
    ACTION_DELETE = "DELETE"
    ACTION_TRANSITION = "TRANSITION"
    ACTION_LOGIN = "LOGIN"
    ACTION_EXPORT = "EXPORT"
    ACTION_SYSTEM = "SYSTEM"
    ACTION_CHOICES = [
        (ACTION_CREATE, "Create"),
        (ACTION_UPDATE, "Update"),
        (ACTION_DELETE, "Delete"),
        (ACTION_TRANSITION, "Transition"),
        (ACTION_LOGIN, "Login"),
        (ACTION_EXPORT, "Export"),
        (ACTION_SYSTEM, "System"),
    ]

    STATUS_SUCCESS = "SUCCESS"
    STATUS_FAILURE = "FAILURE"
    STATUS_CHOICES = [
        (STATUS_SUCCESS, "Success"),
        (STATUS_FAILURE, "Failure"),
    ]

    tenant = models.ForeignKey(
        "accounts.Tenant",
        on_delete=models.PROTECT,
        related_name="audit_logs",
        null=True,
        blank=True,
    )
    actor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        related_name="audit_logs",
        null=True,
        blank=True,
    )
    actor_email = models.EmailField(blank=True)
    action = models.CharField(max_length=20, choices=ACTION_CHOICES, default=ACTION_SYSTEM)
    resource = models.CharField(max_length=120)
    resource_id = models.CharField(max_length=64, blank=True)
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default=STATUS_SUCCESS)
    details = models.JSONField(default=dict, blank=True, encoder=DjangoJSONEncoder)
    data_before = models.JSONField(null=True, blank=True, encoder=DjangoJSONEncoder)
    data_after = models.JSONField(null=True, blank=True, encoder=DjangoJSONEncoder)

    occurred_at = models.DateTimeField(default=timezone.now)
    correlation_id = models.CharField(max_length=128, blank=True)
    request_method = models.CharField(max_length=12, blank=True)
    request_path = models.CharField(max_length=255, blank=True)
    ip_address = models.GenericIPAddressField(null=True, blank=True)
    user_agent = models.TextField(blank=True)

    # Default manager is tenant-scoped to prevent accidental cross-tenant reads.
    objects = TenantManager()
    all_objects = models.Manager()

    class Meta:
        ordering = ("-occurred_at", "-id")
        indexes = [
            models.Index(fields=("tenant", "occurred_at"), name="idx_audit_tenant_occurred"),
            models.Index(fields=("tenant", "resource", "resource_id"), name="idx_audit_resource"),
        ]
        verbose_name = "Audit Log"
        verbose_name_plural = "Audit Logs"

    def __str__(self) -> str:  # pragma: no cover - admin/debug helper
        return f"{self.occurred_at:%Y-%m-%d %H:%M:%S} {self.resource}:{self.action} ({self.status})"

    def save(self, *args, **kwargs):
        if self.pk is not None:
            raise ValidationError("Audit log entries are immutable; updates are not allowed.")

        current_tenant = get_current_tenant()
        if self.tenant_id is None and current_tenant is not None:
            self.tenant = current_tenant
        if current_tenant is not None and self.tenant_id != current_tenant.id:
            raise ValidationError(
                "Cross-tenant audit write blocked: entry tenant does not match request tenant."
            )
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError("Audit log entries are immutable; deletes are not allowed.")
