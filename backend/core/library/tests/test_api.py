from datetime import date, timedelta
from decimal import Decimal

from django.test import TestCase, override_settings
from django.utils import timezone

from library.models import Book, BookCirculation, BookReservation
from library.services import calculate_fine, issue_book, return_book
from tenancy.rbac import PermissionCode
from tenancy.tests.factories import api_client_for, grant, make_tenant, make_user


@override_settings(LIBRARY_LOAN_DAYS=14, LIBRARY_MAX_RENEWALS=1, LIBRARY_FINE_PER_DAY=200)
class LibraryTestCase(TestCase):
    def setUp(self):
        self.tenant = make_tenant("alpha")
        self.librarian = make_user(self.tenant, "librarian@alpha.test")
        grant(self.librarian, PermissionCode.LIBRARY_READ, PermissionCode.LIBRARY_MANAGE)
        self.reader = make_user(self.tenant, "reader@alpha.test")
        grant(self.reader, PermissionCode.LIBRARY_READ)
        self.client = api_client_for(self.librarian)
        self.book = Book.all_objects.create(
            tenant=self.tenant,
            title="Things Fall Apart",
            author="Chinua Achebe",
            category="Fiction",
            total_copies=1,
            available_copies=1,
        )

    def issue(self, borrower=None, **extra):
        payload = {"book": self.book.pk, "borrower": (borrower or self.reader).pk}
        payload.update(extra)
        return self.client.post("/api/library/circulations/", payload, format="json")


class BookApiTests(LibraryTestCase):
    def test_new_book_starts_with_all_copies_available(self):
        response = self.client.post(
            "/api/library/books/",
            {"title": "Kiswahili Sanifu", "author": "TUKI", "category": "Language", "total_copies": 3},
            format="json",
        )

        self.assertEqual(response.status_code, 201)
        data = response.json()["data"]
        self.assertEqual(data["available_copies"], 3)
        self.assertEqual(data["created_by"], self.librarian.pk)

    def test_reader_cannot_catalogue_books(self):
        response = api_client_for(self.reader).post(
            "/api/library/books/",
            {"title": "X", "author": "Y", "category": "Z"},
            format="json",
        )
        self.assertEqual(response.status_code, 403)
        self.assertEqual(Book.all_objects.count(), 1)

    def test_available_filter(self):
        Book.all_objects.create(
            tenant=self.tenant,
            title="Out",
            author="A",
            category="Fiction",
            total_copies=1,
            available_copies=0,
        )

        response = self.client.get("/api/library/books/?available=true")

        self.assertEqual([item["id"] for item in response.json()["data"]], [self.book.pk])

    def test_book_on_loan_cannot_be_deleted(self):
        self.issue()
        response = self.client.delete(f"/api/library/books/{self.book.pk}/")
        self.assertEqual(response.status_code, 409)


class CirculationApiTests(LibraryTestCase):
    def test_issue_decrements_copies_and_defaults_due_date(self):
        response = self.issue()

        self.assertEqual(response.status_code, 201)
        data = response.json()["data"]
        self.assertEqual(data["status"], BookCirculation.STATUS_ISSUED)
        self.assertEqual(data["due_date"], (timezone.localdate() + timedelta(days=14)).isoformat())
        self.assertEqual(data["issued_by"], self.librarian.pk)
        self.book.refresh_from_db()
        self.assertEqual(self.book.available_copies, 0)

    def test_issue_without_copies_conflicts(self):
        self.issue()
        other = make_user(self.tenant, "other@alpha.test")
        response = self.issue(borrower=other)
        self.assertEqual(response.status_code, 409)

    def test_borrower_must_belong_to_tenant(self):
        outsider = make_user(make_tenant("beta"), "outsider@beta.test")
        response = self.issue(borrower=outsider)
        self.assertEqual(response.status_code, 400)
        self.assertIn("borrower", response.json()["errors"])

    def test_late_return_charges_fine_and_restores_copy(self):
        circulation_id = self.issue(due_date=(timezone.localdate() - timedelta(days=3)).isoformat()).json()["data"]["id"]

        response = self.client.post(
            f"/api/library/circulations/{circulation_id}/return/",
            {"condition": "FAIR"},
            format="json",
        )

        self.assertEqual(response.status_code, 200)
        data = response.json()["data"]
        self.assertEqual(data["status"], BookCirculation.STATUS_RETURNED)
        self.assertEqual(Decimal(str(data["fine_amount"])), Decimal("600.00"))
        self.book.refresh_from_db()
        self.assertEqual(self.book.available_copies, 1)
        self.assertEqual(self.book.condition, Book.CONDITION_FAIR)

        again = self.client.post(f"/api/library/circulations/{circulation_id}/return/", {}, format="json")
        self.assertEqual(again.status_code, 409)

    def test_renewal_limit(self):
        circulation_id = self.issue().json()["data"]["id"]
        first = self.client.post(f"/api/library/circulations/{circulation_id}/renew/", {}, format="json")
        second = self.client.post(f"/api/library/circulations/{circulation_id}/renew/", {}, format="json")

        self.assertEqual(first.status_code, 200)
        self.assertEqual(first.json()["data"]["renewal_count"], 1)
        self.assertEqual(
            first.json()["data"]["due_date"],
            (timezone.localdate() + timedelta(days=28)).isoformat(),
        )
        self.assertEqual(second.status_code, 409)

    def test_readers_only_see_their_own_loans(self):
        self.issue()
        second_book = Book.all_objects.create(
            tenant=self.tenant,
            title="Weep Not, Child",
            author="Ngugi wa Thiong'o",
            category="Fiction",
        )
        other = make_user(self.tenant, "other@alpha.test")
        issue_book(tenant=self.tenant, book=second_book, borrower=other, issued_by=self.librarian)

        response = api_client_for(self.reader).get("/api/library/circulations/")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["pagination"]["total"], 1)
        self.assertEqual(response.json()["data"][0]["borrower"], self.reader.pk)

    def test_fine_is_zero_when_returned_on_time(self):
        circulation = issue_book(
            tenant=self.tenant,
            book=self.book,
            borrower=self.reader,
            issued_by=self.librarian,
            due_date=date(2026, 5, 10),
        )
        self.assertEqual(calculate_fine(circulation, as_of=date(2026, 5, 10)), Decimal("0.00"))
        returned = return_book(circulation, returned_to=self.librarian, as_of=date(2026, 5, 12))
        self.assertEqual(returned.fine_amount, Decimal("400.00"))


class ReservationApiTests(LibraryTestCase):
    def test_reservation_only_when_no_copies_are_available(self):
        response = self.client.post(
            "/api/library/reservations/",
            {"book": self.book.pk, "user": self.reader.pk},
            format="json",
        )
        self.assertEqual(response.status_code, 409)

    def test_fulfill_after_return_issues_the_book(self):
        borrower = make_user(self.tenant, "first@alpha.test")
        circulation_id = self.issue(borrower=borrower).json()["data"]["id"]

        reserve = self.client.post(
            "/api/library/reservations/",
            {"book": self.book.pk, "user": self.reader.pk},
            format="json",
        )
        self.assertEqual(reserve.status_code, 201)
        reservation_id = reserve.json()["data"]["id"]
        self.assertEqual(reserve.json()["data"]["status"], BookReservation.STATUS_PENDING)

        early = self.client.post(f"/api/library/reservations/{reservation_id}/fulfill/")
        self.assertEqual(early.status_code, 409)

        self.client.post(f"/api/library/circulations/{circulation_id}/return/", {}, format="json")
        response = self.client.post(f"/api/library/reservations/{reservation_id}/fulfill/")

        self.assertEqual(response.status_code, 200)
        reservation = BookReservation.all_objects.get(pk=reservation_id)
        self.assertEqual(reservation.status, BookReservation.STATUS_FULFILLED)
        self.assertEqual(reservation.circulation.borrower, self.reader)
        self.book.refresh_from_db()
        self.assertEqual(self.book.available_copies, 0)

    def test_cancel_is_terminal(self):
        self.issue()
        reservation = BookReservation.all_objects.create(
            tenant=self.tenant,
            book=self.book,
            user=self.librarian,
            expiry_date=timezone.localdate() + timedelta(days=7),
        )

        response = self.client.post(
            f"/api/library/reservations/{reservation.pk}/cancel/",
            {"reason": "No longer needed"},
            format="json",
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["data"]["notes"], "No longer needed")
        again = self.client.post(f"/api/library/reservations/{reservation.pk}/cancel/")
        self.assertEqual(again.status_code, 409)

    def test_stats(self):
        self.issue()
        response = self.client.get("/api/library/stats/")

        self.assertEqual(response.status_code, 200)
        data = response.json()["data"]
        self.assertEqual(data["total_books"], 1)
        self.assertEqual(data["issued_books"], 1)
        self.assertEqual(data["available_copies"], 0)
        self.assertEqual(data["popular_books"][0]["title"], "Things Fall Apart")
