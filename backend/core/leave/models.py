from django.conf import settings
from django.db import models

from tenancy.models import BaseTenantModel


class LeaveRequest(BaseTenantModel):
    TYPE_SICK = "SICK"
    TYPE_PERSONAL = "PERSONAL"
    TYPE_FAMILY_EMERGENCY = "FAMILY_EMERGENCY"
    TYPE_MEDICAL_APPOINTMENT = "MEDICAL_APPOINTMENT"
    TYPE_RELIGIOUS = "RELIGIOUS"
    TYPE_VACATION = "VACATION"
    TYPE_OTHER = "OTHER"
    TYPE_CHOICES = [
        (TYPE_SICK, "Sick leave"),
        (TYPE_PERSONAL, "Personal"),
        (TYPE_FAMILY_EMERGENCY, "Family emergency"),
        (TYPE_MEDICAL_APPOINTMENT, "Medical appointment"),
        (TYPE_RELIGIOUS, "Religious"),
        (TYPE_VACATION, "Vacation"),
        (TYPE_OTHER, "Other"),
    ]

    STATUS_PENDING = "PENDING"
    STATUS_APPROVED = "APPROVED"
    STATUS_REJECTED = "REJECTED"
    STATUS_CANCELLED = "CANCELLED"
    STATUS_CHOICES = [
        (STATUS_PENDING, "Pending"),
        (STATUS_APPROVED, "Approved"),
        (STATUS_REJECTED, "Rejected"),
        (STATUS_CANCELLED, "Cancelled"),
    ]
    DECISION_STATUSES = (STATUS_APPROVED, STATUS_REJECTED)

    student = models.ForeignKey(
        "academics.Student",
        on_delete=models.PROTECT,
        related_name="leave_requests",
    )
    requested_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        related_name="leave_requests",
        null=True,
        blank=True,
    )
    leave_type = models.CharField(max_length=30, choices=TYPE_CHOICES)
    start_date = models.DateField()
    end_date = models.DateField()
    reason = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    supporting_docs = models.JSONField(default=list, blank=True)
    is_emergency = models.BooleanField(default=False)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_PENDING)
    approved_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        related_name="approved_leave_requests",
        null=True,
        blank=True,
    )
    approved_at = models.DateTimeField(null=True, blank=True)
    rejected_reason = models.TextField(blank=True)

    class Meta:
        ordering = ("-created_at", "-id")
        verbose_name = "leave request"
        indexes = [
            models.Index(fields=("tenant", "status"), name="idx_leave_tenant_status"),
        ]

    def __str__(self):
        return f"{self.student_id} {self.leave_type} {self.start_date}"

    @property
    def days(self) -> int:
        return (self.end_date - self.start_date).days + 1
