from django.db import transaction
from django.utils import timezone
from rest_framework import generics, status
from rest_framework.response import Response
from rest_framework.views import APIView

from audit.models import AuditLog
from audit.services import snapshot_instance
from finance.models import ZERO, Budget, Expense, Fee, FeeAssignment, Invoice, Payment
from finance.serializers import (
    BudgetSerializer,
    ExpenseRejectSerializer,
    ExpenseSerializer,
    FeeAssignmentSerializer,
    FeeSerializer,
    InvoiceSerializer,
    InvoiceUpdateSerializer,
    PaymentSerializer,
)
from finance.services import (
    approve_expense,
    compute_finance_stats,
    create_invoice,
    record_payment,
    reject_expense,
    sync_fee_assignment_status,
)
from tenancy.exceptions import ConflictError
from tenancy.permissions import HasTenantPermission, get_request_tenant
from tenancy.rbac import PermissionCode, Resource, build_permission_matrix
from tenancy.views import TenantScopedAPIViewMixin, is_truthy


class FeeListCreateAPIView(TenantScopedAPIViewMixin, generics.ListCreateAPIView):
    model = Fee
    serializer_class = FeeSerializer
    tenant_resource = Resource.FEES
    ordering = ("name", "id")
    search_fields = ("name", "description")
    choice_filters = {"fee_type": "fee_type", "frequency": "frequency"}
    exact_filters = {"academic_year_id": "academic_year_id", "class_id": "school_class_id"}
    boolean_filters = {"is_active": "is_active"}


class FeeDetailAPIView(TenantScopedAPIViewMixin, generics.RetrieveUpdateDestroyAPIView):
    model = Fee
    serializer_class = FeeSerializer
    tenant_resource = Resource.FEES


class FeeAssignmentListCreateAPIView(TenantScopedAPIViewMixin, generics.ListCreateAPIView):
    model = FeeAssignment
    serializer_class = FeeAssignmentSerializer
    tenant_resource = Resource.FEES
    creator_field = "assigned_by"
    ordering = ("-created_at", "-id")
    search_fields = ("fee__name", "student__user__first_name", "student__user__last_name", "notes")
    choice_filters = {"status": "status"}
    exact_filters = {"fee_id": "fee_id", "student_id": "student_id"}

    def get_queryset(self):
        return super().get_queryset().select_related("fee", "student", "student__user")

    def perform_create(self, serializer):
        data = serializer.validated_data
        if FeeAssignment.all_objects.filter(fee=data["fee"], student=data["student"]).exists():
            raise ConflictError("This fee is already assigned to the student.")
        return super().perform_create(serializer)


class FeeAssignmentDetailAPIView(TenantScopedAPIViewMixin, generics.RetrieveUpdateDestroyAPIView):
    model = FeeAssignment
    serializer_class = FeeAssignmentSerializer
    tenant_resource = Resource.FEES

    def perform_update(self, serializer):
        data = serializer.validated_data
        fee = data.get("fee", serializer.instance.fee)
        student = data.get("student", serializer.instance.student)
        duplicates = FeeAssignment.all_objects.filter(fee=fee, student=student).exclude(
            pk=serializer.instance.pk
        )
        if duplicates.exists():
            raise ConflictError("This fee is already assigned to the student.")
        with transaction.atomic():
            instance = super().perform_update(serializer)
            sync_fee_assignment_status(instance)
        return instance


class InvoiceListCreateAPIView(TenantScopedAPIViewMixin, generics.ListCreateAPIView):
    model = Invoice
    serializer_class = InvoiceSerializer
    tenant_resource = Resource.INVOICES
    ordering = ("-issue_date", "-id")
    search_fields = (
        "invoice_number",
        "description",
        "student__user__first_name",
        "student__user__last_name",
        "student__student_number",
    )
    choice_filters = {"status": "status"}
    exact_filters = {"student_id": "student_id", "fee_assignment_id": "fee_assignment_id"}
    date_range_field = "issue_date"

    def get_queryset(self):
        return super().get_queryset().select_related("student", "student__user")

    def filter_queryset(self, queryset):
        queryset = super().filter_queryset(queryset)
        if is_truthy(self.request.query_params.get("overdue")):
            queryset = queryset.filter(
                status__in=(Invoice.STATUS_PENDING, Invoice.STATUS_PARTIAL),
                due_date__lt=timezone.localdate(),
            )
        return queryset

    def perform_create(self, serializer):
        with transaction.atomic():
            invoice = create_invoice(
                tenant=self.tenant,
                created_by=self.request.user,
                **serializer.validated_data,
            )
            self.record_audit(AuditLog.ACTION_CREATE, invoice, after=snapshot_instance(invoice))
        serializer.instance = invoice
        return invoice


class InvoiceDetailAPIView(TenantScopedAPIViewMixin, generics.RetrieveUpdateDestroyAPIView):
    model = Invoice
    serializer_class = InvoiceUpdateSerializer
    tenant_resource = Resource.INVOICES

    def perform_update(self, serializer):
        cancelling = serializer.validated_data.get("status") == Invoice.STATUS_CANCELLED
        if cancelling and serializer.instance.paid_amount > ZERO:
            raise ConflictError("Invoices with recorded payments cannot be cancelled.")
        with transaction.atomic():
            instance = super().perform_update(serializer)
            if cancelling:
                instance.outstanding_amount = ZERO
                instance.save(update_fields=["outstanding_amount", "updated_at"])
        return instance


class PaymentListCreateAPIView(TenantScopedAPIViewMixin, generics.ListCreateAPIView):
    model = Payment
    serializer_class = PaymentSerializer
    tenant_resource = Resource.PAYMENTS
    ordering = ("-paid_at", "-id")
    search_fields = ("receipt_number", "reference", "invoice__invoice_number", "notes")
    choice_filters = {"method": "method", "status": "status"}
    exact_filters = {"invoice_id": "invoice_id", "student_id": "student_id"}
    date_range_field = "paid_at__date"

    def get_queryset(self):
        return super().get_queryset().select_related("invoice", "student", "student__user")

    def perform_create(self, serializer):
        data = dict(serializer.validated_data)
        invoice = data.pop("invoice")
        with transaction.atomic():
            payment = record_payment(
                tenant=self.tenant,
                received_by=self.request.user,
                invoice=invoice,
                **data,
            )
            self.record_audit(
                AuditLog.ACTION_CREATE,
                payment,
                after=snapshot_instance(payment),
                details={"invoice_number": payment.invoice.invoice_number},
            )
        serializer.instance = payment
        return payment


class PaymentDetailAPIView(TenantScopedAPIViewMixin, generics.RetrieveAPIView):
    model = Payment
    serializer_class = PaymentSerializer
    tenant_resource = Resource.PAYMENTS


class BudgetListCreateAPIView(TenantScopedAPIViewMixin, generics.ListCreateAPIView):
    model = Budget
    serializer_class = BudgetSerializer
    tenant_resource = Resource.BUDGETS
    ordering = ("-start_date", "-id")
    search_fields = ("name", "description")
    choice_filters = {"status": "status", "category": "category"}
    exact_filters = {"academic_year_id": "academic_year_id"}


class BudgetDetailAPIView(TenantScopedAPIViewMixin, generics.RetrieveUpdateDestroyAPIView):
    model = Budget
    serializer_class = BudgetSerializer
    tenant_resource = Resource.BUDGETS


class ExpenseListCreateAPIView(TenantScopedAPIViewMixin, generics.ListCreateAPIView):
    model = Expense
    serializer_class = ExpenseSerializer
    tenant_resource = Resource.EXPENSES
    creator_field = "requested_by"
    ordering = ("-expense_date", "-id")
    search_fields = ("description", "vendor", "reference")
    choice_filters = {"status": "status", "category": "category"}
    exact_filters = {"budget_id": "budget_id"}
    date_range_field = "expense_date"


class ExpenseDetailAPIView(TenantScopedAPIViewMixin, generics.RetrieveUpdateDestroyAPIView):
    model = Expense
    serializer_class = ExpenseSerializer
    tenant_resource = Resource.EXPENSES

    def _ensure_pending(self, instance):
        if instance.status != Expense.STATUS_PENDING:
            raise ConflictError(f"Expense is already {instance.status.lower()}.")

    def perform_update(self, serializer):
        self._ensure_pending(serializer.instance)
        return super().perform_update(serializer)

    def perform_destroy(self, instance):
        self._ensure_pending(instance)
        super().perform_destroy(instance)


class ExpenseTransitionAPIView(TenantScopedAPIViewMixin, generics.GenericAPIView):
    model = Expense
    serializer_class = ExpenseSerializer
    required_permissions = build_permission_matrix(
        create=PermissionCode.EXPENSES_APPROVE,
        update=PermissionCode.EXPENSES_APPROVE,
    )
    success_message = ""

    def transition(self, expense):
        raise NotImplementedError

    def post(self, request, pk):
        expense = self.get_object()
        before = snapshot_instance(expense)
        with transaction.atomic():
            expense = self.transition(expense)
            self.record_audit(
                AuditLog.ACTION_TRANSITION,
                expense,
                before=before,
                after=snapshot_instance(expense),
            )
        return Response(
            {
                "success": True,
                "data": ExpenseSerializer(expense).data,
                "message": self.success_message,
            }
        )

    put = post


class ExpenseApproveAPIView(ExpenseTransitionAPIView):
    success_message = "Expense approved successfully."

    def transition(self, expense):
        return approve_expense(expense, approver=self.request.user)


class ExpenseRejectAPIView(ExpenseTransitionAPIView):
    success_message = "Expense rejected successfully."

    def transition(self, expense):
        serializer = ExpenseRejectSerializer(data=self.request.data)
        serializer.is_valid(raise_exception=True)
        return reject_expense(
            expense,
            approver=self.request.user,
            reason=serializer.validated_data["rejection_reason"],
        )


class FinanceStatsAPIView(APIView):
    permission_classes = [HasTenantPermission]
    required_permissions = build_permission_matrix(read=PermissionCode.FINANCE_READ)

    def get(self, request):
        return Response(compute_finance_stats(get_request_tenant(request)))
