from decimal import Decimal

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models
from django.db.models import Q
from django.utils import timezone

from tenancy.models import BaseTenantModel

BORROWER_STUDENT = "STUDENT"
BORROWER_TEACHER = "TEACHER"
BORROWER_STAFF = "STAFF"
BORROWER_TYPE_CHOICES = [
    (BORROWER_STUDENT, "Student"),
    (BORROWER_TEACHER, "Teacher"),
    (BORROWER_STAFF, "Staff"),
]


def default_max_renewals() -> int:
    return settings.LIBRARY_MAX_RENEWALS


class Book(BaseTenantModel):
    CONDITION_NEW = "NEW"
    CONDITION_GOOD = "GOOD"
    CONDITION_FAIR = "FAIR"
    CONDITION_POOR = "POOR"
    CONDITION_DAMAGED = "DAMAGED"
    CONDITION_CHOICES = [
        (CONDITION_NEW, "New"),
        (CONDITION_GOOD, "Good"),
        (CONDITION_FAIR, "Fair"),
        (CONDITION_POOR, "Poor"),
        (CONDITION_DAMAGED, "Damaged"),
    ]

    title = models.CharField(max_length=255)
    author = models.CharField(max_length=255)
    isbn = models.CharField(max_length=20, blank=True)
    publisher = models.CharField(max_length=255, blank=True)
    publication_year = models.PositiveIntegerField(null=True, blank=True)
    category = models.CharField(max_length=100)
    language = models.CharField(max_length=50, blank=True)
    location = models.CharField(max_length=100, blank=True, help_text="Shelf or section.")
    total_copies = models.PositiveIntegerField(default=1, validators=[MinValueValidator(1)])
    available_copies = models.PositiveIntegerField(default=1)
    condition = models.CharField(max_length=20, choices=CONDITION_CHOICES, default=CONDITION_GOOD)
    description = models.TextField(blank=True)
    is_active = models.BooleanField(default=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        related_name="catalogued_books",
        null=True,
        blank=True,
    )

    class Meta:
        ordering = ("title", "id")
        constraints = [
            models.UniqueConstraint(
                fields=("tenant", "isbn"),
                condition=~Q(isbn=""),
                name="uq_book_tenant_isbn",
            ),
            models.CheckConstraint(
                condition=Q(available_copies__lte=models.F("total_copies")),
                name="ck_book_available_le_total",
            ),
        ]

    def __str__(self):
        return self.title


class BookCirculation(BaseTenantModel):
    STATUS_ISSUED = "ISSUED"
    STATUS_RETURNED = "RETURNED"
    STATUS_CHOICES = [
        (STATUS_ISSUED, "Issued"),
        (STATUS_RETURNED, "Returned"),
    ]

    book = models.ForeignKey(Book, on_delete=models.PROTECT, related_name="circulations")
    borrower = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="book_circulations",
    )
    borrower_type = models.CharField(
        max_length=20,
        choices=BORROWER_TYPE_CHOICES,
        default=BORROWER_STUDENT,
    )
    issued_at = models.DateTimeField(default=timezone.now)
    due_date = models.DateField()
    returned_at = models.DateTimeField(null=True, blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_ISSUED)
    renewal_count = models.PositiveIntegerField(default=0)
    max_renewals = models.PositiveIntegerField(default=default_max_renewals)
    fine_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0"))
    issued_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        related_name="issued_circulations",
        null=True,
        blank=True,
    )
    returned_to = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        related_name="received_returns",
        null=True,
        blank=True,
    )
    notes = models.TextField(blank=True)

    class Meta:
        ordering = ("-issued_at", "-id")
        indexes = [
            models.Index(fields=("tenant", "status", "due_date"), name="idx_circulation_due"),
        ]

    def __str__(self):
        return f"{self.book_id} -> {self.borrower_id} ({self.status})"

    def days_overdue(self, as_of=None) -> int:
        as_of = as_of or timezone.localdate()
        return max((as_of - self.due_date).days, 0)

    @property
    def is_overdue(self) -> bool:
        return self.status == self.STATUS_ISSUED and self.days_overdue() > 0


class BookReservation(BaseTenantModel):
    STATUS_PENDING = "PENDING"
    STATUS_FULFILLED = "FULFILLED"
    STATUS_CANCELLED = "CANCELLED"
    STATUS_CHOICES = [
        (STATUS_PENDING, "Pending"),
        (STATUS_FULFILLED, "Fulfilled"),
        (STATUS_CANCELLED, "Cancelled"),
    ]

    book = models.ForeignKey(Book, on_delete=models.CASCADE, related_name="reservations")
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="book_reservations",
    )
    user_type = models.CharField(max_length=20, choices=BORROWER_TYPE_CHOICES, default=BORROWER_STUDENT)
    expiry_date = models.DateField()
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_PENDING)
    fulfilled_at = models.DateTimeField(null=True, blank=True)
    circulation = models.OneToOneField(
        BookCirculation,
        on_delete=models.SET_NULL,
        related_name="reservation",
        null=True,
        blank=True,
    )
    notes = models.TextField(blank=True)

    class Meta:
        ordering = ("created_at", "id")
        constraints = [
            models.UniqueConstraint(
                fields=("book", "user"),
                condition=Q(status="PENDING"),
                name="uq_reservation_pending_book_user",
            ),
        ]

    def __str__(self):
        return f"{self.book_id} reserved by {self.user_id}"
