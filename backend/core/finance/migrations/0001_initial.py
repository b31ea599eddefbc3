# Generated manually. Keep in sync with finance/models.py.

from decimal import Decimal

from django.conf import settings
import django.core.validators
from django.db import migrations, models
import django.db.models.deletion
import django.utils.timezone

import finance.models

EXPENSE_CATEGORY_CHOICES = [
    ("SALARIES", "Salaries"),
    ("UTILITIES", "Utilities"),
    ("SUPPLIES", "Supplies"),
    ("MAINTENANCE", "Maintenance"),
    ("TRANSPORT", "Transport"),
    ("EVENTS", "Events"),
    ("OTHER", "Other"),
]


def tenant_field():
    return models.ForeignKey(
        on_delete=django.db.models.deletion.PROTECT,
        related_name="%(app_label)s_%(class)s_set",
        to="accounts.tenant",
    )


def amount_field(**kwargs):
    return models.DecimalField(decimal_places=2, max_digits=14, **kwargs)


POSITIVE = [django.core.validators.MinValueValidator(Decimal("0.01"))]
NON_NEGATIVE = [django.core.validators.MinValueValidator(Decimal("0.00"))]


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        ("accounts", "0001_initial"),
        ("academics", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Fee",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("name", models.CharField(max_length=150)),
                ("fee_type", models.CharField(choices=[("TUITION", "Tuition"), ("TRANSPORT", "Transport"), ("HOSTEL", "Hostel"), ("LIBRARY", "Library"), ("EXAMINATION", "Examination"), ("OTHER", "Other")], default="TUITION", max_length=20)),
                ("amount", amount_field(validators=POSITIVE)),
                ("currency", models.CharField(default=finance.models.default_currency, max_length=3)),
                ("frequency", models.CharField(choices=[("ONE_TIME", "One time"), ("MONTHLY", "Monthly"), ("TERMLY", "Termly"), ("ANNUAL", "Annual")], default="TERMLY", max_length=20)),
                ("due_date", models.DateField(blank=True, null=True)),
                ("description", models.TextField(blank=True)),
                ("is_active", models.BooleanField(default=True)),
                ("academic_year", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="fees", to="academics.academicyear")),
                ("school_class", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="fees", to="academics.schoolclass")),
                ("tenant", tenant_field()),
            ],
            options={"ordering": ("name", "id")},
        ),
        migrations.CreateModel(
            name="FeeAssignment",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("assigned_amount", amount_field(validators=POSITIVE)),
                ("discount_amount", amount_field(default=Decimal("0.00"), validators=NON_NEGATIVE)),
                ("scholarship_amount", amount_field(default=Decimal("0.00"), validators=NON_NEGATIVE)),
                ("final_amount", amount_field(default=Decimal("0.00"))),
                ("due_date", models.DateField(blank=True, null=True)),
                ("status", models.CharField(choices=[("PENDING", "Pending"), ("PARTIAL", "Partially paid"), ("PAID", "Paid"), ("WAIVED", "Waived")], default="PENDING", max_length=20)),
                ("notes", models.TextField(blank=True)),
                ("assigned_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="assigned_fees", to=settings.AUTH_USER_MODEL)),
                ("fee", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="assignments", to="finance.fee")),
                ("student", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="fee_assignments", to="academics.student")),
                ("tenant", tenant_field()),
            ],
            options={"ordering": ("-created_at", "-id")},
        ),
        migrations.CreateModel(
            name="Invoice",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("invoice_number", models.CharField(editable=False, max_length=20)),
                ("issue_date", models.DateField(default=django.utils.timezone.localdate)),
                ("due_date", models.DateField()),
                ("total_amount", amount_field(validators=POSITIVE)),
                ("paid_amount", amount_field(default=Decimal("0.00"))),
                ("outstanding_amount", amount_field(default=Decimal("0.00"))),
                ("currency", models.CharField(default=finance.models.default_currency, max_length=3)),
                ("status", models.CharField(choices=[("PENDING", "Pending"), ("PARTIAL", "Partially paid"), ("PAID", "Paid"), ("OVERDUE", "Overdue"), ("CANCELLED", "Cancelled")], default="PENDING", max_length=20)),
                ("description", models.CharField(blank=True, max_length=255)),
                ("created_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="created_invoices", to=settings.AUTH_USER_MODEL)),
                ("fee_assignment", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="invoices", to="finance.feeassignment")),
                ("student", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="invoices", to="academics.student")),
                ("tenant", tenant_field()),
            ],
            options={"ordering": ("-issue_date", "-id")},
        ),
        migrations.CreateModel(
            name="Payment",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("receipt_number", models.CharField(editable=False, max_length=20)),
                ("amount", amount_field(validators=POSITIVE)),
                ("method", models.CharField(choices=[("CASH", "Cash"), ("BANK_TRANSFER", "Bank transfer"), ("MOBILE_MONEY", "Mobile money"), ("CHEQUE", "Cheque"), ("CARD", "Card")], default="CASH", max_length=20)),
                ("reference", models.CharField(blank=True, max_length=100)),
                ("paid_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("status", models.CharField(choices=[("COMPLETED", "Completed"), ("PENDING", "Pending"), ("FAILED", "Failed")], default="COMPLETED", max_length=20)),
                ("notes", models.TextField(blank=True)),
                ("invoice", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="payments", to="finance.invoice")),
                ("received_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="received_payments", to=settings.AUTH_USER_MODEL)),
                ("student", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="payments", to="academics.student")),
                ("tenant", tenant_field()),
            ],
            options={"ordering": ("-paid_at", "-id")},
        ),
        migrations.CreateModel(
            name="Budget",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("name", models.CharField(max_length=150)),
                ("category", models.CharField(blank=True, choices=EXPENSE_CATEGORY_CHOICES, max_length=20)),
                ("start_date", models.DateField()),
                ("end_date", models.DateField(blank=True)),
                ("allocated_amount", amount_field(validators=POSITIVE)),
                ("spent_amount", amount_field(default=Decimal("0.00"))),
                ("remaining_amount", amount_field(default=Decimal("0.00"))),
                ("status", models.CharField(choices=[("ACTIVE", "Active"), ("CLOSED", "Closed")], default="ACTIVE", max_length=20)),
                ("description", models.TextField(blank=True)),
                ("academic_year", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="budgets", to="academics.academicyear")),
                ("tenant", tenant_field()),
            ],
            options={"ordering": ("-start_date", "-id")},
        ),
        migrations.CreateModel(
            name="Expense",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("category", models.CharField(choices=EXPENSE_CATEGORY_CHOICES, max_length=20)),
                ("description", models.CharField(max_length=255)),
                ("amount", amount_field(validators=POSITIVE)),
                ("expense_date", models.DateField(default=django.utils.timezone.localdate)),
                ("vendor", models.CharField(blank=True, max_length=150)),
                ("reference", models.CharField(blank=True, max_length=100)),
                ("status", models.CharField(choices=[("PENDING", "Pending"), ("APPROVED", "Approved"), ("REJECTED", "Rejected")], default="PENDING", max_length=20)),
                ("approved_at", models.DateTimeField(blank=True, null=True)),
                ("rejection_reason", models.TextField(blank=True)),
                ("approved_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="approved_expenses", to=settings.AUTH_USER_MODEL)),
                ("budget", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name="expenses", to="finance.budget")),
                ("requested_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="requested_expenses", to=settings.AUTH_USER_MODEL)),
                ("tenant", tenant_field()),
            ],
            options={"ordering": ("-expense_date", "-id")},
        ),
        migrations.AddConstraint(
            model_name="feeassignment",
            constraint=models.UniqueConstraint(fields=("fee", "student"), name="uq_fee_assignment_student"),
        ),
        migrations.AddConstraint(
            model_name="invoice",
            constraint=models.UniqueConstraint(fields=("tenant", "invoice_number"), name="uq_invoice_tenant_number"),
        ),
        migrations.AddConstraint(
            model_name="payment",
            constraint=models.UniqueConstraint(fields=("tenant", "receipt_number"), name="uq_payment_tenant_receipt"),
        ),
    ]
