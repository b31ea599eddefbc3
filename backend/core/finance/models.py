from decimal import Decimal

from dateutil.relativedelta import relativedelta
from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone

from tenancy.models import BaseTenantModel

ZERO = Decimal("0.00")
POSITIVE_AMOUNT = [MinValueValidator(Decimal("0.01"))]
NON_NEGATIVE_AMOUNT = [MinValueValidator(ZERO)]


def default_currency() -> str:
    return settings.DEFAULT_CURRENCY


CATEGORY_SALARIES = "SALARIES"
CATEGORY_UTILITIES = "UTILITIES"
CATEGORY_SUPPLIES = "SUPPLIES"
CATEGORY_MAINTENANCE = "MAINTENANCE"
CATEGORY_TRANSPORT = "TRANSPORT"
CATEGORY_EVENTS = "EVENTS"
CATEGORY_OTHER = "OTHER"
EXPENSE_CATEGORY_CHOICES = [
    (CATEGORY_SALARIES, "Salaries"),
    (CATEGORY_UTILITIES, "Utilities"),
    (CATEGORY_SUPPLIES, "Supplies"),
    (CATEGORY_MAINTENANCE, "Maintenance"),
    (CATEGORY_TRANSPORT, "Transport"),
    (CATEGORY_EVENTS, "Events"),
    (CATEGORY_OTHER, "Other"),
]


class Fee(BaseTenantModel):
    TYPE_TUITION = "TUITION"
    TYPE_TRANSPORT = "TRANSPORT"
    TYPE_HOSTEL = "HOSTEL"
    TYPE_LIBRARY = "LIBRARY"
    TYPE_EXAMINATION = "EXAMINATION"
    TYPE_OTHER = "OTHER"
    TYPE_CHOICES = [
        (TYPE_TUITION, "Tuition"),
        (TYPE_TRANSPORT, "Transport"),
        (TYPE_HOSTEL, "Hostel"),
        (TYPE_LIBRARY, "Library"),
        (TYPE_EXAMINATION, "Examination"),
        (TYPE_OTHER, "Other"),
    ]

    FREQUENCY_ONE_TIME = "ONE_TIME"
    FREQUENCY_MONTHLY = "MONTHLY"
    FREQUENCY_TERMLY = "TERMLY"
    FREQUENCY_ANNUAL = "ANNUAL"
    FREQUENCY_CHOICES = [
        (FREQUENCY_ONE_TIME, "One time"),
        (FREQUENCY_MONTHLY, "Monthly"),
        (FREQUENCY_TERMLY, "Termly"),
        (FREQUENCY_ANNUAL, "Annual"),
    ]

    name = models.CharField(max_length=150)
    fee_type = models.CharField(max_length=20, choices=TYPE_CHOICES, default=TYPE_TUITION)
    amount = models.DecimalField(max_digits=14, decimal_places=2, validators=POSITIVE_AMOUNT)
    currency = models.CharField(max_length=3, default=default_currency)
    frequency = models.CharField(max_length=20, choices=FREQUENCY_CHOICES, default=FREQUENCY_TERMLY)
    academic_year = models.ForeignKey(
        "academics.AcademicYear",
        on_delete=models.SET_NULL,
        related_name="fees",
        null=True,
        blank=True,
    )
    school_class = models.ForeignKey(
        "academics.SchoolClass",
        on_delete=models.SET_NULL,
        related_name="fees",
        null=True,
        blank=True,
    )
    due_date = models.DateField(null=True, blank=True)
    description = models.TextField(blank=True)
    is_active = models.BooleanField(default=True)

    class Meta:
        ordering = ("name", "id")

    def __str__(self):
        return f"{self.name} ({self.amount} {self.currency})"


class FeeAssignment(BaseTenantModel):
    STATUS_PENDING = "PENDING"
    STATUS_PARTIAL = "PARTIAL"
    STATUS_PAID = "PAID"
    STATUS_WAIVED = "WAIVED"
    STATUS_CHOICES = [
        (STATUS_PENDING, "Pending"),
        (STATUS_PARTIAL, "Partially paid"),
        (STATUS_PAID, "Paid"),
        (STATUS_WAIVED, "Waived"),
    ]

    fee = models.ForeignKey(Fee, on_delete=models.PROTECT, related_name="assignments")
    student = models.ForeignKey(
        "academics.Student",
        on_delete=models.PROTECT,
        related_name="fee_assignments",
    )
    assigned_amount = models.DecimalField(max_digits=14, decimal_places=2, validators=POSITIVE_AMOUNT)
    discount_amount = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        default=ZERO,
        validators=NON_NEGATIVE_AMOUNT,
    )
    scholarship_amount = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        default=ZERO,
        validators=NON_NEGATIVE_AMOUNT,
    )
    final_amount = models.DecimalField(max_digits=14, decimal_places=2, default=ZERO)
    due_date = models.DateField(null=True, blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_PENDING)
    notes = models.TextField(blank=True)
    assigned_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        related_name="assigned_fees",
        null=True,
        blank=True,
    )

    class Meta:
        ordering = ("-created_at", "-id")
        constraints = [
            models.UniqueConstraint(fields=("fee", "student"), name="uq_fee_assignment_student"),
        ]

    def __str__(self):
        return f"{self.fee_id}:{self.student_id} {self.final_amount}"

    def compute_final_amount(self) -> Decimal:
        return self.assigned_amount - (self.discount_amount or ZERO) - (self.scholarship_amount or ZERO)

    def save(self, *args, **kwargs):
        self.final_amount = self.compute_final_amount()
        update_fields = kwargs.get("update_fields")
        if update_fields is not None and "final_amount" not in update_fields:
            kwargs["update_fields"] = [*update_fields, "final_amount"]
        return super().save(*args, **kwargs)


class Invoice(BaseTenantModel):
    STATUS_PENDING = "PENDING"
    STATUS_PARTIAL = "PARTIAL"
    STATUS_PAID = "PAID"
    STATUS_OVERDUE = "OVERDUE"
    STATUS_CANCELLED = "CANCELLED"
    STATUS_CHOICES = [
        (STATUS_PENDING, "Pending"),
        (STATUS_PARTIAL, "Partially paid"),
        (STATUS_PAID, "Paid"),
        (STATUS_OVERDUE, "Overdue"),
        (STATUS_CANCELLED, "Cancelled"),
    ]

    invoice_number = models.CharField(max_length=20, editable=False)
    student = models.ForeignKey("academics.Student", on_delete=models.PROTECT, related_name="invoices")
    fee_assignment = models.ForeignKey(
        FeeAssignment,
        on_delete=models.SET_NULL,
        related_name="invoices",
        null=True,
        blank=True,
    )
    issue_date = models.DateField(default=timezone.localdate)
    due_date = models.DateField()
    total_amount = models.DecimalField(max_digits=14, decimal_places=2, validators=POSITIVE_AMOUNT)
    paid_amount = models.DecimalField(max_digits=14, decimal_places=2, default=ZERO)
    outstanding_amount = models.DecimalField(max_digits=14, decimal_places=2, default=ZERO)
    currency = models.CharField(max_length=3, default=default_currency)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_PENDING)
    description = models.CharField(max_length=255, blank=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        related_name="created_invoices",
        null=True,
        blank=True,
    )

    class Meta:
        ordering = ("-issue_date", "-id")
        constraints = [
            models.UniqueConstraint(
                fields=("tenant", "invoice_number"),
                name="uq_invoice_tenant_number",
            ),
        ]

    def __str__(self):
        return self.invoice_number

    @property
    def is_overdue(self) -> bool:
        return (
            self.status in (self.STATUS_PENDING, self.STATUS_PARTIAL)
            and self.due_date < timezone.localdate()
        )


class Payment(BaseTenantModel):
    METHOD_CASH = "CASH"
    METHOD_BANK_TRANSFER = "BANK_TRANSFER"
    METHOD_MOBILE_MONEY = "MOBILE_MONEY"
    METHOD_CHEQUE = "CHEQUE"
    METHOD_CARD = "CARD"
    METHOD_CHOICES = [
        (METHOD_CASH, "Cash"),
        (METHOD_BANK_TRANSFER, "Bank transfer"),
        (METHOD_MOBILE_MONEY, "Mobile money"),
        (METHOD_CHEQUE, "Cheque"),
        (METHOD_CARD, "Card"),
    ]

    STATUS_COMPLETED = "COMPLETED"
    STATUS_PENDING = "PENDING"
    STATUS_FAILED = "FAILED"
    STATUS_CHOICES = [
        (STATUS_COMPLETED, "Completed"),
        (STATUS_PENDING, "Pending"),
        (STATUS_FAILED, "Failed"),
    ]

    receipt_number = models.CharField(max_length=20, editable=False)
    invoice = models.ForeignKey(Invoice, on_delete=models.PROTECT, related_name="payments")
    student = models.ForeignKey("academics.Student", on_delete=models.PROTECT, related_name="payments")
    amount = models.DecimalField(max_digits=14, decimal_places=2, validators=POSITIVE_AMOUNT)
    method = models.CharField(max_length=20, choices=METHOD_CHOICES, default=METHOD_CASH)
    reference = models.CharField(max_length=100, blank=True)
    paid_at = models.DateTimeField(default=timezone.now)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_COMPLETED)
    notes = models.TextField(blank=True)
    received_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        related_name="received_payments",
        null=True,
        blank=True,
    )

    class Meta:
        ordering = ("-paid_at", "-id")
        constraints = [
            models.UniqueConstraint(
                fields=("tenant", "receipt_number"),
                name="uq_payment_tenant_receipt",
            ),
        ]

    def __str__(self):
        return self.receipt_number


def default_budget_end(start_date):
    return start_date + relativedelta(years=1, days=-1)


class Budget(BaseTenantModel):
    STATUS_ACTIVE = "ACTIVE"
    STATUS_CLOSED = "CLOSED"
    STATUS_CHOICES = [
        (STATUS_ACTIVE, "Active"),
        (STATUS_CLOSED, "Closed"),
    ]

    name = models.CharField(max_length=150)
    category = models.CharField(max_length=20, choices=EXPENSE_CATEGORY_CHOICES, blank=True)
    academic_year = models.ForeignKey(
        "academics.AcademicYear",
        on_delete=models.SET_NULL,
        related_name="budgets",
        null=True,
        blank=True,
    )
    start_date = models.DateField()
    end_date = models.DateField(blank=True)
    allocated_amount = models.DecimalField(max_digits=14, decimal_places=2, validators=POSITIVE_AMOUNT)
    spent_amount = models.DecimalField(max_digits=14, decimal_places=2, default=ZERO)
    remaining_amount = models.DecimalField(max_digits=14, decimal_places=2, default=ZERO)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_ACTIVE)
    description = models.TextField(blank=True)

    class Meta:
        ordering = ("-start_date", "-id")

    def __str__(self):
        return self.name

    def save(self, *args, **kwargs):
        if self.end_date is None and self.start_date is not None:
            self.end_date = default_budget_end(self.start_date)
        self.remaining_amount = self.allocated_amount - (self.spent_amount or ZERO)
        update_fields = kwargs.get("update_fields")
        if update_fields is not None and "remaining_amount" not in update_fields:
            kwargs["update_fields"] = [*update_fields, "remaining_amount"]
        return super().save(*args, **kwargs)


class Expense(BaseTenantModel):
    STATUS_PENDING = "PENDING"
    STATUS_APPROVED = "APPROVED"
    STATUS_REJECTED = "REJECTED"
    STATUS_CHOICES = [
        (STATUS_PENDING, "Pending"),
        (STATUS_APPROVED, "Approved"),
        (STATUS_REJECTED, "Rejected"),
    ]

    category = models.CharField(max_length=20, choices=EXPENSE_CATEGORY_CHOICES)
    description = models.CharField(max_length=255)
    amount = models.DecimalField(max_digits=14, decimal_places=2, validators=POSITIVE_AMOUNT)
    expense_date = models.DateField(default=timezone.localdate)
    budget = models.ForeignKey(
        Budget,
        on_delete=models.PROTECT,
        related_name="expenses",
        null=True,
        blank=True,
    )
    vendor = models.CharField(max_length=150, blank=True)
    reference = models.CharField(max_length=100, blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_PENDING)
    requested_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        related_name="requested_expenses",
        null=True,
        blank=True,
    )
    approved_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        related_name="approved_expenses",
        null=True,
        blank=True,
    )
    approved_at = models.DateTimeField(null=True, blank=True)
    rejection_reason = models.TextField(blank=True)

    class Meta:
        ordering = ("-expense_date", "-id")

    def __str__(self):
        return f"{self.category} {self.amount}"
