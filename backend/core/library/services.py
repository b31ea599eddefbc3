from __future__ import annotations

import logging
from datetime import timedelta
from decimal import Decimal

from django.conf import settings
from django.db import transaction
from django.db.models import Count, F, Q, Sum
from django.utils import timezone

from library.models import BORROWER_STUDENT, Book, BookCirculation, BookReservation
from tenancy.exceptions import ConflictError

logger = logging.getLogger(__name__)

RESERVATION_HOLD_DAYS = 7


def default_due_date(start=None):
    start = start or timezone.localdate()
    return start + timedelta(days=settings.LIBRARY_LOAN_DAYS)


def calculate_fine(circulation: BookCirculation, as_of=None) -> Decimal:
    fine_per_day = Decimal(str(settings.LIBRARY_FINE_PER_DAY))
    return (fine_per_day * circulation.days_overdue(as_of)).quantize(Decimal("0.01"))


def _lock_book(book: Book) -> Book:
    return Book.all_objects.select_for_update().get(pk=book.pk)


def issue_book(
    *,
    tenant,
    book: Book,
    borrower,
    issued_by,
    borrower_type: str = BORROWER_STUDENT,
    due_date=None,
    notes: str = "",
) -> BookCirculation:
    """Lend one copy; the copy counter is decremented under a row lock."""

    with transaction.atomic():
        book = _lock_book(book)
        if not book.is_active:
            raise ConflictError("Book is not in circulation.")
        if book.available_copies <= 0:
            raise ConflictError("Book not available.")
        already_borrowed = BookCirculation.all_objects.filter(
            book=book,
            borrower=borrower,
            status=BookCirculation.STATUS_ISSUED,
        ).exists()
        if already_borrowed:
            raise ConflictError("This borrower already has a copy of the book.")

        circulation = BookCirculation.all_objects.create(
            tenant=tenant,
            book=book,
            borrower=borrower,
            borrower_type=borrower_type,
            due_date=due_date or default_due_date(),
            issued_by=issued_by,
            notes=notes,
        )
        book.available_copies = F("available_copies") - 1
        book.save(update_fields=["available_copies", "updated_at"])
        book.refresh_from_db(fields=["available_copies"])

    logger.info(
        "book issued",
        extra={"tenant_id": tenant.id, "book_id": book.pk, "circulation_id": circulation.pk},
    )
    return circulation


def return_book(
    circulation: BookCirculation,
    *,
    returned_to,
    condition: str = "",
    notes: str = "",
    as_of=None,
) -> BookCirculation:
    with transaction.atomic():
        circulation = BookCirculation.all_objects.select_for_update().get(pk=circulation.pk)
        if circulation.status != BookCirculation.STATUS_ISSUED:
            raise ConflictError("Book has already been returned.")

        circulation.status = BookCirculation.STATUS_RETURNED
        circulation.returned_at = timezone.now()
        circulation.returned_to = returned_to
        circulation.fine_amount = calculate_fine(circulation, as_of)
        if notes:
            circulation.notes = notes
        circulation.save(
            update_fields=[
                "status",
                "returned_at",
                "returned_to",
                "fine_amount",
                "notes",
                "updated_at",
            ]
        )

        book = _lock_book(circulation.book)
        book.available_copies = F("available_copies") + 1
        update_fields = ["available_copies", "updated_at"]
        if condition:
            book.condition = condition
            update_fields.append("condition")
        book.save(update_fields=update_fields)
        book.refresh_from_db(fields=["available_copies"])

    return circulation


def renew_book(circulation: BookCirculation, *, new_due_date=None, notes: str = "") -> BookCirculation:
    with transaction.atomic():
        circulation = BookCirculation.all_objects.select_for_update().get(pk=circulation.pk)
        if circulation.status != BookCirculation.STATUS_ISSUED:
            raise ConflictError("Only issued books can be renewed.")
        if circulation.renewal_count >= circulation.max_renewals:
            raise ConflictError("Maximum renewals exceeded.")
        if new_due_date is not None and new_due_date <= circulation.due_date:
            raise ConflictError("The new due date must be after the current one.")

        circulation.due_date = new_due_date or circulation.due_date + timedelta(
            days=settings.LIBRARY_LOAN_DAYS
        )
        circulation.renewal_count += 1
        if notes:
            circulation.notes = notes
        circulation.save(update_fields=["due_date", "renewal_count", "notes", "updated_at"])
    return circulation


def create_reservation(
    *,
    tenant,
    book: Book,
    user,
    user_type: str = BORROWER_STUDENT,
    expiry_date=None,
    notes: str = "",
) -> BookReservation:
    with transaction.atomic():
        book = _lock_book(book)
        if book.available_copies > 0:
            raise ConflictError("Book is available for immediate borrowing.")
        pending = BookReservation.all_objects.filter(
            book=book,
            user=user,
            status=BookReservation.STATUS_PENDING,
        )
        if pending.exists():
            raise ConflictError("User already has an active reservation for this book.")
        return BookReservation.all_objects.create(
            tenant=tenant,
            book=book,
            user=user,
            user_type=user_type,
            expiry_date=expiry_date or timezone.localdate() + timedelta(days=RESERVATION_HOLD_DAYS),
            notes=notes,
        )


def fulfill_reservation(reservation: BookReservation, *, issued_by, due_date=None) -> BookReservation:
    """Issue the reserved book to the reserving user."""

    with transaction.atomic():
        reservation = BookReservation.all_objects.select_for_update().get(pk=reservation.pk)
        if reservation.status != BookReservation.STATUS_PENDING:
            raise ConflictError(f"Reservation is already {reservation.status.lower()}.")

        circulation = issue_book(
            tenant=reservation.tenant,
            book=reservation.book,
            borrower=reservation.user,
            borrower_type=reservation.user_type,
            issued_by=issued_by,
            due_date=due_date,
            notes=f"Reservation #{reservation.pk}",
        )
        reservation.status = BookReservation.STATUS_FULFILLED
        reservation.fulfilled_at = timezone.now()
        reservation.circulation = circulation
        reservation.save(update_fields=["status", "fulfilled_at", "circulation", "updated_at"])
    return reservation


def cancel_reservation(reservation: BookReservation, *, reason: str = "") -> BookReservation:
    with transaction.atomic():
        reservation = BookReservation.all_objects.select_for_update().get(pk=reservation.pk)
        if reservation.status != BookReservation.STATUS_PENDING:
            raise ConflictError(f"Reservation is already {reservation.status.lower()}.")
        reservation.status = BookReservation.STATUS_CANCELLED
        if reason:
            reservation.notes = reason
        reservation.save(update_fields=["status", "notes", "updated_at"])
    return reservation


def compute_library_stats(tenant, today=None) -> dict:
    today = today or timezone.localdate()
    books = Book.all_objects.filter(tenant=tenant)
    circulations = BookCirculation.all_objects.filter(tenant=tenant)

    copies = books.aggregate(total=Sum("total_copies"), available=Sum("available_copies"))
    loans = circulations.aggregate(
        issued=Count("id", filter=Q(status=BookCirculation.STATUS_ISSUED)),
        overdue=Count(
            "id",
            filter=Q(status=BookCirculation.STATUS_ISSUED, due_date__lt=today),
        ),
        fines=Sum("fine_amount"),
    )
    popular = (
        circulations.values("book_id", "book__title", "book__author")
        .annotate(borrow_count=Count("id"))
        .order_by("-borrow_count", "book__title")[:5]
    )
    return {
        "total_books": books.count(),
        "total_copies": copies["total"] or 0,
        "available_copies": copies["available"] or 0,
        "issued_books": loans["issued"],
        "overdue_books": loans["overdue"],
        "pending_reservations": BookReservation.all_objects.filter(
            tenant=tenant,
            status=BookReservation.STATUS_PENDING,
        ).count(),
        "fines_charged": loans["fines"] or Decimal("0"),
        "popular_books": [
            {
                "book_id": row["book_id"],
                "title": row["book__title"],
                "author": row["book__author"],
                "borrow_count": row["borrow_count"],
            }
            for row in popular
        ],
    }
