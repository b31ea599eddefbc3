from decimal import Decimal

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models

from tenancy.models import BaseTenantModel


class Hostel(BaseTenantModel):
    GENDER_BOYS = "BOYS"
    GENDER_GIRLS = "GIRLS"
    GENDER_MIXED = "MIXED"
    GENDER_CHOICES = [
        (GENDER_BOYS, "Boys"),
        (GENDER_GIRLS, "Girls"),
        (GENDER_MIXED, "Mixed"),
    ]

    STATUS_ACTIVE = "ACTIVE"
    STATUS_INACTIVE = "INACTIVE"
    STATUS_CHOICES = [
        (STATUS_ACTIVE, "Active"),
        (STATUS_INACTIVE, "Inactive"),
    ]

    name = models.CharField(max_length=100)
    description = models.TextField(blank=True)
    address = models.CharField(max_length=255, blank=True)
    gender = models.CharField(max_length=10, choices=GENDER_CHOICES, default=GENDER_MIXED)
    total_capacity = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    monthly_fee = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        default=Decimal("0"),
        validators=[MinValueValidator(Decimal("0"))],
    )
    warden_name = models.CharField(max_length=100)
    warden_phone = models.CharField(max_length=40, blank=True)
    warden_email = models.EmailField()
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_ACTIVE)

    class Meta:
        ordering = ("name", "id")
        constraints = [
            models.UniqueConstraint(fields=("tenant", "name"), name="uq_hostel_tenant_name"),
        ]

    def __str__(self):
        return self.name


class MaintenanceRequest(BaseTenantModel):
    TYPE_PLUMBING = "PLUMBING"
    TYPE_ELECTRICAL = "ELECTRICAL"
    TYPE_CLEANING = "CLEANING"
    TYPE_FURNITURE = "FURNITURE"
    TYPE_STRUCTURAL = "STRUCTURAL"
    TYPE_OTHER = "OTHER"
    TYPE_CHOICES = [
        (TYPE_PLUMBING, "Plumbing"),
        (TYPE_ELECTRICAL, "Electrical"),
        (TYPE_CLEANING, "Cleaning"),
        (TYPE_FURNITURE, "Furniture"),
        (TYPE_STRUCTURAL, "Structural"),
        (TYPE_OTHER, "Other"),
    ]

    PRIORITY_LOW = "LOW"
    PRIORITY_MEDIUM = "MEDIUM"
    PRIORITY_HIGH = "HIGH"
    PRIORITY_URGENT = "URGENT"
    PRIORITY_CHOICES = [
        (PRIORITY_LOW, "Low"),
        (PRIORITY_MEDIUM, "Medium"),
        (PRIORITY_HIGH, "High"),
        (PRIORITY_URGENT, "Urgent"),
    ]

    STATUS_OPEN = "OPEN"
    STATUS_IN_PROGRESS = "IN_PROGRESS"
    STATUS_RESOLVED = "RESOLVED"
    STATUS_CANCELLED = "CANCELLED"
    STATUS_CHOICES = [
        (STATUS_OPEN, "Open"),
        (STATUS_IN_PROGRESS, "In progress"),
        (STATUS_RESOLVED, "Resolved"),
        (STATUS_CANCELLED, "Cancelled"),
    ]
    TRANSITIONS = {
        STATUS_OPEN: (STATUS_IN_PROGRESS, STATUS_CANCELLED),
        STATUS_IN_PROGRESS: (STATUS_RESOLVED, STATUS_CANCELLED),
    }

    hostel = models.ForeignKey(Hostel, on_delete=models.PROTECT, related_name="maintenance_requests")
    room_number = models.CharField(max_length=20, blank=True)
    maintenance_type = models.CharField(max_length=20, choices=TYPE_CHOICES, default=TYPE_OTHER)
    title = models.CharField(max_length=200)
    description = models.TextField(blank=True)
    priority = models.CharField(max_length=10, choices=PRIORITY_CHOICES, default=PRIORITY_MEDIUM)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_OPEN)
    scheduled_date = models.DateField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    cost = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        null=True,
        blank=True,
        validators=[MinValueValidator(Decimal("0"))],
    )
    vendor = models.CharField(max_length=150, blank=True)
    notes = models.TextField(blank=True)
    reported_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        related_name="reported_maintenance_requests",
        null=True,
        blank=True,
    )
    resolved_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        related_name="resolved_maintenance_requests",
        null=True,
        blank=True,
    )

    class Meta:
        ordering = ("-created_at", "-id")

    def __str__(self):
        return self.title

    def can_transition_to(self, status: str) -> bool:
        return status in self.TRANSITIONS.get(self.status, ())
