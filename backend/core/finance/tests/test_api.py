from datetime import date, timedelta
from decimal import Decimal

from django.test import TestCase
from django.utils import timezone

from academics.models import Student
from finance.models import Budget, Expense, Fee, FeeAssignment, Invoice, Payment
from finance.services import create_invoice
from tenancy.rbac import PermissionCode
from tenancy.tests.factories import api_client_for, grant, make_tenant, make_user


def make_student(tenant, email, number):
    return Student.all_objects.create(
        tenant=tenant,
        user=make_user(tenant, email),
        student_number=number,
        date_of_birth=date(2010, 5, 5),
        gender=Student.GENDER_MALE,
    )


class FinanceTestCase(TestCase):
    def setUp(self):
        self.tenant = make_tenant("alpha")
        self.bursar = make_user(self.tenant, "bursar@alpha.test")
        grant(
            self.bursar,
            PermissionCode.FEES_CREATE,
            PermissionCode.FEES_READ,
            PermissionCode.FEES_UPDATE,
            PermissionCode.INVOICES_CREATE,
            PermissionCode.INVOICES_READ,
            PermissionCode.INVOICES_UPDATE,
            PermissionCode.INVOICES_DELETE,
            PermissionCode.PAYMENTS_CREATE,
            PermissionCode.PAYMENTS_READ,
            PermissionCode.EXPENSES_CREATE,
            PermissionCode.EXPENSES_READ,
            PermissionCode.EXPENSES_APPROVE,
            PermissionCode.BUDGETS_CREATE,
            PermissionCode.FINANCE_READ,
        )
        self.client = api_client_for(self.bursar)
        self.student = make_student(self.tenant, "kid@alpha.test", "STU-1")


class FeeApiTests(FinanceTestCase):
    def test_create_then_get_round_trip_coerces_amount(self):
        created = self.client.post(
            "/api/finance/fees/",
            {"name": "Transport", "amount": "123.45", "due_date": "2026-02-01"},
            format="json",
        )

        self.assertEqual(created.status_code, 201)
        fee_id = created.json()["data"]["id"]
        fetched = self.client.get(f"/api/finance/fees/{fee_id}/").json()["data"]
        self.assertEqual(fetched["name"], "Transport")
        self.assertEqual(Decimal(fetched["amount"]), Decimal("123.45"))
        self.assertEqual(fetched["due_date"], "2026-02-01")
        self.assertEqual(fetched["currency"], "TZS")

    def test_missing_fields_are_named(self):
        response = self.client.post("/api/finance/fees/", {"name": "Transport"}, format="json")

        self.assertEqual(response.status_code, 400)
        self.assertIn("amount", response.json()["errors"])


class FeeAssignmentTests(FinanceTestCase):
    def setUp(self):
        super().setUp()
        self.fee = Fee.all_objects.create(tenant=self.tenant, name="Tuition", amount=Decimal("500000"))

    def test_final_amount_is_computed(self):
        response = self.client.post(
            "/api/finance/assignments/",
            {
                "fee": self.fee.pk,
                "student": self.student.pk,
                "discount_amount": "50000",
                "scholarship_amount": "100000.50",
            },
            format="json",
        )

        self.assertEqual(response.status_code, 201)
        data = response.json()["data"]
        self.assertEqual(data["assigned_amount"], "500000.00")
        self.assertEqual(data["final_amount"], "349999.50")
        self.assertEqual(data["assigned_by"], self.bursar.pk)

    def test_reductions_above_assigned_amount_are_rejected(self):
        response = self.client.post(
            "/api/finance/assignments/",
            {"fee": self.fee.pk, "student": self.student.pk, "discount_amount": "600000"},
            format="json",
        )
        self.assertEqual(response.status_code, 400)

    def test_duplicate_assignment_conflicts(self):
        payload = {"fee": self.fee.pk, "student": self.student.pk}
        self.client.post("/api/finance/assignments/", payload, format="json")
        response = self.client.post("/api/finance/assignments/", payload, format="json")
        self.assertEqual(response.status_code, 409)


class InvoicePaymentTests(FinanceTestCase):
    def _issue(self, total="300000"):
        return self.client.post(
            "/api/finance/invoices/",
            {
                "student": self.student.pk,
                "total_amount": total,
                "due_date": (timezone.localdate() + timedelta(days=30)).isoformat(),
            },
            format="json",
        )

    def test_invoice_numbers_are_sequential_per_tenant(self):
        first = self._issue().json()["data"]
        second = self._issue().json()["data"]

        other_tenant = make_tenant("beta")
        foreign = create_invoice(
            tenant=other_tenant,
            created_by=None,
            student=make_student(other_tenant, "x@beta.test", "B-1"),
            total_amount=Decimal("10"),
            due_date=timezone.localdate(),
        )

        self.assertEqual(first["invoice_number"], "INV-000001")
        self.assertEqual(second["invoice_number"], "INV-000002")
        self.assertEqual(first["outstanding_amount"], "300000.00")
        self.assertEqual(foreign.invoice_number, "INV-000001")

    def test_payments_reduce_outstanding_and_settle(self):
        invoice_id = self._issue().json()["data"]["id"]

        partial = self.client.post(
            "/api/finance/payments/",
            {"invoice": invoice_id, "amount": "100000", "method": "MOBILE_MONEY"},
            format="json",
        )
        self.assertEqual(partial.status_code, 201)
        self.assertEqual(partial.json()["data"]["receipt_number"], "RCP-000001")
        invoice = Invoice.all_objects.get(pk=invoice_id)
        self.assertEqual(invoice.status, Invoice.STATUS_PARTIAL)
        self.assertEqual(invoice.outstanding_amount, Decimal("200000.00"))

        self.client.post(
            "/api/finance/payments/",
            {"invoice": invoice_id, "amount": "200000"},
            format="json",
        )
        invoice.refresh_from_db()
        self.assertEqual(invoice.status, Invoice.STATUS_PAID)
        self.assertEqual(invoice.outstanding_amount, Decimal("0.00"))

        extra = self.client.post(
            "/api/finance/payments/",
            {"invoice": invoice_id, "amount": "1"},
            format="json",
        )
        self.assertEqual(extra.status_code, 409)

    def test_overpayment_is_rejected(self):
        invoice_id = self._issue("1000").json()["data"]["id"]

        response = self.client.post(
            "/api/finance/payments/",
            {"invoice": invoice_id, "amount": "1000.01"},
            format="json",
        )

        self.assertEqual(response.status_code, 400)
        self.assertFalse(Payment.all_objects.exists())

    def test_invoice_with_payments_cannot_be_deleted(self):
        invoice_id = self._issue().json()["data"]["id"]
        self.client.post("/api/finance/payments/", {"invoice": invoice_id, "amount": "10"}, format="json")

        response = self.client.delete(f"/api/finance/invoices/{invoice_id}/")

        self.assertEqual(response.status_code, 409)
        self.assertTrue(Invoice.all_objects.filter(pk=invoice_id).exists())

    def test_invoice_from_assignment_uses_final_amount(self):
        fee = Fee.all_objects.create(tenant=self.tenant, name="Hostel", amount=Decimal("200"))
        assignment = FeeAssignment.all_objects.create(
            tenant=self.tenant,
            fee=fee,
            student=self.student,
            assigned_amount=Decimal("200"),
            discount_amount=Decimal("20"),
        )

        response = self.client.post(
            "/api/finance/invoices/",
            {"fee_assignment": assignment.pk, "due_date": "2030-01-31"},
            format="json",
        )

        self.assertEqual(response.status_code, 201)
        data = response.json()["data"]
        self.assertEqual(data["total_amount"], "180.00")
        self.assertEqual(data["student"], self.student.pk)

        self.client.post("/api/finance/payments/", {"invoice": data["id"], "amount": "180"}, format="json")
        assignment.refresh_from_db()
        self.assertEqual(assignment.status, FeeAssignment.STATUS_PAID)


class ExpenseApprovalTests(FinanceTestCase):
    def setUp(self):
        super().setUp()
        self.budget = Budget.all_objects.create(
            tenant=self.tenant,
            name="Maintenance 2024",
            start_date=date(2024, 1, 1),
            allocated_amount=Decimal("1000"),
        )
        self.expense = Expense.all_objects.create(
            tenant=self.tenant,
            category="MAINTENANCE",
            description="Roof repair",
            amount=Decimal("400"),
            budget=self.budget,
        )

    def test_budget_end_defaults_to_one_year(self):
        self.assertEqual(self.budget.end_date, date(2024, 12, 31))
        self.assertEqual(self.budget.remaining_amount, Decimal("1000"))

    def test_approval_updates_budget_and_stamps_approver(self):
        response = self.client.post(f"/api/finance/expenses/{self.expense.pk}/approve/")

        self.assertEqual(response.status_code, 200)
        self.expense.refresh_from_db()
        self.budget.refresh_from_db()
        self.assertEqual(self.expense.status, Expense.STATUS_APPROVED)
        self.assertEqual(self.expense.approved_by, self.bursar)
        self.assertIsNotNone(self.expense.approved_at)
        self.assertEqual(self.budget.spent_amount, Decimal("400.00"))
        self.assertEqual(self.budget.remaining_amount, Decimal("600.00"))

    def test_second_transition_conflicts(self):
        self.client.post(f"/api/finance/expenses/{self.expense.pk}/approve/")

        response = self.client.post(
            f"/api/finance/expenses/{self.expense.pk}/reject/",
            {"rejection_reason": "Too late"},
            format="json",
        )

        self.assertEqual(response.status_code, 409)
        self.budget.refresh_from_db()
        self.assertEqual(self.budget.spent_amount, Decimal("400.00"))

    def test_reject_requires_reason(self):
        response = self.client.post(f"/api/finance/expenses/{self.expense.pk}/reject/", {}, format="json")

        self.assertEqual(response.status_code, 400)
        self.expense.refresh_from_db()
        self.assertEqual(self.expense.status, Expense.STATUS_PENDING)

    def test_approval_over_remaining_budget_conflicts(self):
        Expense.all_objects.filter(pk=self.expense.pk).update(amount=Decimal("1500"))

        response = self.client.post(f"/api/finance/expenses/{self.expense.pk}/approve/")

        self.assertEqual(response.status_code, 409)

    def test_approve_requires_permission(self):
        clerk = make_user(self.tenant, "clerk@alpha.test")
        grant(clerk, PermissionCode.EXPENSES_READ, PermissionCode.EXPENSES_CREATE)

        response = api_client_for(clerk).post(f"/api/finance/expenses/{self.expense.pk}/approve/")

        self.assertEqual(response.status_code, 403)
        self.expense.refresh_from_db()
        self.assertEqual(self.expense.status, Expense.STATUS_PENDING)

    def test_stats_summarise_tenant_finance(self):
        self.client.post(f"/api/finance/expenses/{self.expense.pk}/approve/")

        response = self.client.get("/api/finance/stats/")

        self.assertEqual(response.status_code, 200)
        data = response.json()["data"]
        self.assertEqual(Decimal(data["expenses"]["approved"]), Decimal("400"))
        self.assertEqual(Decimal(data["budgets"]["remaining"]), Decimal("600"))
        self.assertEqual(data["invoices"]["count"], 0)
