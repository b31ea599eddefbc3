from __future__ import annotations

import logging
from decimal import Decimal

from dateutil.relativedelta import relativedelta
from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import Count, Q, Sum
from django.utils import timezone

from accounts.models import Tenant
from finance.models import ZERO, Budget, Expense, FeeAssignment, Invoice, Payment
from tenancy.exceptions import ConflictError

logger = logging.getLogger(__name__)

INVOICE_PREFIX = "INV"
RECEIPT_PREFIX = "RCP"
NUMBER_WIDTH = 6


def next_document_number(model, field: str, prefix: str, tenant) -> str:
    """Next `PREFIX-000001` style number for `tenant`.

    Must run inside a transaction: the tenant row is locked so concurrent
    writers are serialised and never draw the same number.
    """

    Tenant.objects.select_for_update().filter(pk=tenant.pk).first()
    last_number = (
        model.all_objects.filter(tenant=tenant, **{f"{field}__startswith": f"{prefix}-"})
        .order_by(f"-{field}")
        .values_list(field, flat=True)
        .first()
    )
    sequence = 1
    if last_number:
        sequence = int(last_number.rsplit("-", 1)[-1]) + 1
    return f"{prefix}-{sequence:0{NUMBER_WIDTH}d}"


def create_invoice(*, tenant, created_by, **data) -> Invoice:
    assignment = data.get("fee_assignment")
    if assignment is not None:
        if data.get("student") is None:
            data["student"] = assignment.student
        elif data["student"].pk != assignment.student_id:
            raise ValidationError({"fee_assignment": ["Belongs to a different student."]})
        if data.get("total_amount") is None:
            data["total_amount"] = assignment.final_amount
    if data.get("student") is None:
        raise ValidationError({"student": ["This field is required."]})
    if data.get("total_amount") is None:
        raise ValidationError({"total_amount": ["This field is required."]})

    with transaction.atomic():
        invoice = Invoice(tenant=tenant, created_by=created_by, **data)
        invoice.outstanding_amount = invoice.total_amount - invoice.paid_amount
        invoice.invoice_number = next_document_number(Invoice, "invoice_number", INVOICE_PREFIX, tenant)
        invoice.save()
    logger.info(
        "invoice issued",
        extra={"tenant_id": tenant.id, "invoice_number": invoice.invoice_number},
    )
    return invoice


def _settle_status(paid: Decimal, total: Decimal, *, pending: str, partial: str, paid_status: str) -> str:
    if paid <= ZERO:
        return pending
    if paid < total:
        return partial
    return paid_status


def record_payment(*, tenant, received_by, invoice: Invoice, **data) -> Payment:
    """Record a payment against an invoice and move the invoice balance."""

    with transaction.atomic():
        invoice = Invoice.all_objects.select_for_update().get(pk=invoice.pk, tenant=tenant)
        if invoice.status in (Invoice.STATUS_CANCELLED, Invoice.STATUS_PAID):
            raise ConflictError(f"Invoice {invoice.invoice_number} is {invoice.status.lower()}.")

        amount = data["amount"]
        if amount > invoice.outstanding_amount:
            raise ValidationError(
                {"amount": [f"Exceeds the outstanding balance of {invoice.outstanding_amount}."]}
            )

        payment = Payment(
            tenant=tenant,
            invoice=invoice,
            student_id=invoice.student_id,
            received_by=received_by,
            **data,
        )
        payment.receipt_number = next_document_number(Payment, "receipt_number", RECEIPT_PREFIX, tenant)
        payment.save()

        if payment.status == Payment.STATUS_COMPLETED:
            invoice.paid_amount += amount
            invoice.outstanding_amount = invoice.total_amount - invoice.paid_amount
            invoice.status = _settle_status(
                invoice.paid_amount,
                invoice.total_amount,
                pending=Invoice.STATUS_PENDING,
                partial=Invoice.STATUS_PARTIAL,
                paid_status=Invoice.STATUS_PAID,
            )
            invoice.save(update_fields=["paid_amount", "outstanding_amount", "status", "updated_at"])
            if invoice.fee_assignment_id:
                sync_fee_assignment_status(invoice.fee_assignment)

    logger.info(
        "payment recorded",
        extra={"tenant_id": tenant.id, "receipt_number": payment.receipt_number},
    )
    return payment


def sync_fee_assignment_status(assignment: FeeAssignment) -> FeeAssignment:
    """Keep the assignment status consistent with payments on its invoices."""

    if assignment.status == FeeAssignment.STATUS_WAIVED:
        return assignment

    paid = (
        Invoice.all_objects.filter(fee_assignment=assignment)
        .exclude(status=Invoice.STATUS_CANCELLED)
        .aggregate(total=Sum("paid_amount"))["total"]
        or ZERO
    )
    next_status = _settle_status(
        paid,
        assignment.final_amount,
        pending=FeeAssignment.STATUS_PENDING,
        partial=FeeAssignment.STATUS_PARTIAL,
        paid_status=FeeAssignment.STATUS_PAID,
    )
    if assignment.status != next_status:
        assignment.status = next_status
        assignment.save(update_fields=["status", "updated_at"])
    return assignment


def _lock_pending_expense(expense: Expense) -> Expense:
    expense = Expense.all_objects.select_for_update().get(pk=expense.pk)
    if expense.status != Expense.STATUS_PENDING:
        raise ConflictError(f"Expense is already {expense.status.lower()}.")
    return expense


def approve_expense(expense: Expense, *, approver) -> Expense:
    with transaction.atomic():
        expense = _lock_pending_expense(expense)
        if expense.budget_id:
            budget = Budget.all_objects.select_for_update().get(pk=expense.budget_id)
            if budget.status != Budget.STATUS_ACTIVE:
                raise ConflictError("Budget is closed.")
            if expense.amount > budget.remaining_amount:
                raise ConflictError(
                    f"Expense exceeds the remaining budget of {budget.remaining_amount}."
                )
            budget.spent_amount += expense.amount
            budget.save(update_fields=["spent_amount", "updated_at"])

        expense.status = Expense.STATUS_APPROVED
        expense.approved_by = approver
        expense.approved_at = timezone.now()
        expense.save(update_fields=["status", "approved_by", "approved_at", "updated_at"])
    return expense


def reject_expense(expense: Expense, *, approver, reason: str) -> Expense:
    reason = (reason or "").strip()
    if not reason:
        raise ValidationError({"rejection_reason": ["This field is required."]})
    with transaction.atomic():
        expense = _lock_pending_expense(expense)
        expense.status = Expense.STATUS_REJECTED
        expense.approved_by = approver
        expense.approved_at = timezone.now()
        expense.rejection_reason = reason
        expense.save(
            update_fields=["status", "approved_by", "approved_at", "rejection_reason", "updated_at"]
        )
    return expense


def compute_finance_stats(tenant, *, today=None) -> dict:
    today = today or timezone.localdate()
    month_start = today.replace(day=1)
    month_end = month_start + relativedelta(months=1)

    invoices = Invoice.all_objects.filter(tenant=tenant).exclude(status=Invoice.STATUS_CANCELLED)
    invoice_totals = invoices.aggregate(
        invoiced=Sum("total_amount"),
        collected=Sum("paid_amount"),
        outstanding=Sum("outstanding_amount"),
        count=Count("id"),
        overdue=Count(
            "id",
            filter=Q(
                status__in=(Invoice.STATUS_PENDING, Invoice.STATUS_PARTIAL),
                due_date__lt=today,
            ),
        ),
    )

    payments = Payment.all_objects.filter(tenant=tenant, status=Payment.STATUS_COMPLETED)
    collected_this_month = payments.filter(
        paid_at__date__gte=month_start,
        paid_at__date__lt=month_end,
    ).aggregate(total=Sum("amount"))["total"]
    by_method = {
        row["method"]: row["total"]
        for row in payments.values("method").annotate(total=Sum("amount")).order_by("method")
    }

    expenses = Expense.all_objects.filter(tenant=tenant)
    expense_totals = expenses.aggregate(
        approved=Sum("amount", filter=Q(status=Expense.STATUS_APPROVED)),
        pending_count=Count("id", filter=Q(status=Expense.STATUS_PENDING)),
    )
    budget_totals = Budget.all_objects.filter(tenant=tenant, status=Budget.STATUS_ACTIVE).aggregate(
        allocated=Sum("allocated_amount"),
        spent=Sum("spent_amount"),
        remaining=Sum("remaining_amount"),
    )

    return {
        "invoices": {
            "count": invoice_totals["count"],
            "overdue": invoice_totals["overdue"],
            "invoiced": invoice_totals["invoiced"] or ZERO,
            "collected": invoice_totals["collected"] or ZERO,
            "outstanding": invoice_totals["outstanding"] or ZERO,
        },
        "payments": {
            "collected_this_month": collected_this_month or ZERO,
            "by_method": by_method,
        },
        "expenses": {
            "approved": expense_totals["approved"] or ZERO,
            "pending_count": expense_totals["pending_count"],
        },
        "budgets": {
            "allocated": budget_totals["allocated"] or ZERO,
            "spent": budget_totals["spent"] or ZERO,
            "remaining": budget_totals["remaining"] or ZERO,
        },
    }
