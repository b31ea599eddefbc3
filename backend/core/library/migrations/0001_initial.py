# Generated manually. Keep in sync with library/models.py.

from decimal import Decimal

from django.conf import settings
import django.core.validators
from django.db import migrations, models
import django.db.models.deletion
import django.utils.timezone

import library.models

BORROWER_TYPE_CHOICES = [
    ("STUDENT", "Student"),
    ("TEACHER", "Teacher"),
    ("STAFF", "Staff"),
]


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
            name="Book",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("title", models.CharField(max_length=255)),
                ("author", models.CharField(max_length=255)),
                ("isbn", models.CharField(blank=True, max_length=20)),
                ("publisher", models.CharField(blank=True, max_length=255)),
                ("publication_year", models.PositiveIntegerField(blank=True, null=True)),
                ("category", models.CharField(max_length=100)),
                ("language", models.CharField(blank=True, max_length=50)),
                ("location", models.CharField(blank=True, help_text="Shelf or section.", max_length=100)),
                ("total_copies", models.PositiveIntegerField(default=1, validators=[django.core.validators.MinValueValidator(1)])),
                ("available_copies", models.PositiveIntegerField(default=1)),
                ("condition", models.CharField(choices=[("NEW", "New"), ("GOOD", "Good"), ("FAIR", "Fair"), ("POOR", "Poor"), ("DAMAGED", "Damaged")], default="GOOD", max_length=20)),
                ("description", models.TextField(blank=True)),
                ("is_active", models.BooleanField(default=True)),
                ("created_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="catalogued_books", to=settings.AUTH_USER_MODEL)),
                ("tenant", tenant_field()),
            ],
            options={"ordering": ("title", "id")},
        ),
        migrations.CreateModel(
            name="BookCirculation",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("borrower_type", models.CharField(choices=BORROWER_TYPE_CHOICES, default="STUDENT", max_length=20)),
                ("issued_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("due_date", models.DateField()),
                ("returned_at", models.DateTimeField(blank=True, null=True)),
                ("status", models.CharField(choices=[("ISSUED", "Issued"), ("RETURNED", "Returned")], default="ISSUED", max_length=20)),
                ("renewal_count", models.PositiveIntegerField(default=0)),
                ("max_renewals", models.PositiveIntegerField(default=library.models.default_max_renewals)),
                ("fine_amount", models.DecimalField(decimal_places=2, default=Decimal("0"), max_digits=12)),
                ("notes", models.TextField(blank=True)),
                ("book", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="circulations", to="library.book")),
                ("borrower", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="book_circulations", to=settings.AUTH_USER_MODEL)),
                ("issued_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="issued_circulations", to=settings.AUTH_USER_MODEL)),
                ("returned_to", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="received_returns", to=settings.AUTH_USER_MODEL)),
                ("tenant", tenant_field()),
            ],
            options={"ordering": ("-issued_at", "-id")},
        ),
        migrations.CreateModel(
            name="BookReservation",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("user_type", models.CharField(choices=BORROWER_TYPE_CHOICES, default="STUDENT", max_length=20)),
                ("expiry_date", models.DateField()),
                ("status", models.CharField(choices=[("PENDING", "Pending"), ("FULFILLED", "Fulfilled"), ("CANCELLED", "Cancelled")], default="PENDING", max_length=20)),
                ("fulfilled_at", models.DateTimeField(blank=True, null=True)),
                ("notes", models.TextField(blank=True)),
                ("book", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="reservations", to="library.book")),
                ("circulation", models.OneToOneField(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="reservation", to="library.bookcirculation")),
                ("user", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="book_reservations", to=settings.AUTH_USER_MODEL)),
                ("tenant", tenant_field()),
            ],
            options={"ordering": ("created_at", "id")},
        ),
        migrations.AddConstraint(
            model_name="book",
            constraint=models.UniqueConstraint(condition=models.Q(("isbn", ""), _negated=True), fields=("tenant", "isbn"), name="uq_book_tenant_isbn"),
        ),
        migrations.AddConstraint(
            model_name="book",
            constraint=models.CheckConstraint(condition=models.Q(("available_copies__lte", models.F("total_copies"))), name="ck_book_available_le_total"),
        ),
        migrations.AddIndex(
            model_name="bookcirculation",
            index=models.Index(fields=["tenant", "status", "due_date"], name="idx_circulation_due"),
        ),
        migrations.AddConstraint(
            model_name="bookreservation",
            constraint=models.UniqueConstraint(condition=models.Q(("status", "PENDING")), fields=("book", "user"), name="uq_reservation_pending_book_user"),
        ),
    ]
