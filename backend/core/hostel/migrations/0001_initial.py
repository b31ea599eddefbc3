# Generated manually. Keep in sync with hostel/models.py.

from decimal import Decimal

from django.conf import settings
import django.core.validators
from django.db import migrations, models
import django.db.models.deletion


def tenant_field():
    return models.ForeignKey(
        on_delete=django.db.models.deletion.PROTECT,
        related_name="%(app_label)s_%(class)s_set",
        to="accounts.tenant",
    )


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        ("accounts", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Hostel",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("name", models.CharField(max_length=100)),
                ("description", models.TextField(blank=True)),
                ("address", models.CharField(blank=True, max_length=255)),
                ("gender", models.CharField(choices=[("BOYS", "Boys"), ("GIRLS", "Girls"), ("MIXED", "Mixed")], default="MIXED", max_length=10)),
                ("total_capacity", models.PositiveIntegerField(validators=[django.core.validators.MinValueValidator(1)])),
                ("monthly_fee", models.DecimalField(decimal_places=2, default=Decimal("0"), max_digits=14, validators=[django.core.validators.MinValueValidator(Decimal("0"))])),
                ("warden_name", models.CharField(max_length=100)),
                ("warden_phone", models.CharField(blank=True, max_length=40)),
                ("warden_email", models.EmailField(max_length=254)),
                ("status", models.CharField(choices=[("ACTIVE", "Active"), ("INACTIVE", "Inactive")], default="ACTIVE", max_length=20)),
                ("tenant", tenant_field()),
            ],
            options={"ordering": ("name", "id")},
        ),
        migrations.CreateModel(
            name="MaintenanceRequest",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("room_number", models.CharField(blank=True, max_length=20)),
                ("maintenance_type", models.CharField(choices=[("PLUMBING", "Plumbing"), ("ELECTRICAL", "Electrical"), ("CLEANING", "Cleaning"), ("FURNITURE", "Furniture"), ("STRUCTURAL", "Structural"), ("OTHER", "Other")], default="OTHER", max_length=20)),
                ("title", models.CharField(max_length=200)),
                ("description", models.TextField(blank=True)),
                ("priority", models.CharField(choices=[("LOW", "Low"), ("MEDIUM", "Medium"), ("HIGH", "High"), ("URGENT", "Urgent")], default="MEDIUM", max_length=10)),
                ("status", models.CharField(choices=[("OPEN", "Open"), ("IN_PROGRESS", "In progress"), ("RESOLVED", "Resolved"), ("CANCELLED", "Cancelled")], default="OPEN", max_length=20)),
                ("scheduled_date", models.DateField(blank=True, null=True)),
                ("completed_at", models.DateTimeField(blank=True, null=True)),
                ("cost", models.DecimalField(blank=True, decimal_places=2, max_digits=14, null=True, validators=[django.core.validators.MinValueValidator(Decimal("0"))])),
                ("vendor", models.CharField(blank=True, max_length=150)),
                ("notes", models.TextField(blank=True)),
                ("hostel", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="maintenance_requests", to="hostel.hostel")),
                ("reported_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="reported_maintenance_requests", to=settings.AUTH_USER_MODEL)),
                ("resolved_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="resolved_maintenance_requests", to=settings.AUTH_USER_MODEL)),
                ("tenant", tenant_field()),
            ],
            options={"ordering": ("-created_at", "-id")},
        ),
        migrations.AddConstraint(
            model_name="hostel",
            constraint=models.UniqueConstraint(fields=("tenant", "name"), name="uq_hostel_tenant_name"),
        ),
    ]
