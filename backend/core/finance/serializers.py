from decimal import Decimal

from rest_framework import serializers

from finance.models import ZERO, Budget, Expense, Fee, FeeAssignment, Invoice, Payment


class FeeSerializer(serializers.ModelSerializer):
    class Meta:
        model = Fee
        fields = (
            "id",
            "name",
            "fee_type",
            "amount",
            "currency",
            "frequency",
            "academic_year",
            "school_class",
            "due_date",
            "description",
            "is_active",
            "created_at",
            "updated_at",
        )
        read_only_fields = ("id", "created_at", "updated_at")


class FeeAssignmentSerializer(serializers.ModelSerializer):
    fee_name = serializers.CharField(source="fee.name", read_only=True)
    student_name = serializers.CharField(source="student.full_name", read_only=True)
    assigned_amount = serializers.DecimalField(max_digits=14, decimal_places=2, required=False)

    class Meta:
        model = FeeAssignment
        fields = (
            "id",
            "fee",
            "fee_name",
            "student",
            "student_name",
            "assigned_amount",
            "discount_amount",
            "scholarship_amount",
            "final_amount",
            "due_date",
            "status",
            "notes",
            "assigned_by",
            "created_at",
            "updated_at",
        )
        read_only_fields = ("id", "final_amount", "assigned_by", "created_at", "updated_at")
        validators = []

    def validate(self, attrs):
        instance = self.instance
        fee = attrs.get("fee", getattr(instance, "fee", None))
        assigned = attrs.get("assigned_amount", getattr(instance, "assigned_amount", None))
        if assigned is None and fee is not None:
            assigned = fee.amount
            attrs["assigned_amount"] = assigned
        if assigned is not None and assigned <= ZERO:
            raise serializers.ValidationError({"assigned_amount": ["Must be greater than zero."]})

        discount = attrs.get("discount_amount", getattr(instance, "discount_amount", ZERO))
        scholarship = attrs.get("scholarship_amount", getattr(instance, "scholarship_amount", ZERO))
        if assigned is not None and (discount or ZERO) + (scholarship or ZERO) > assigned:
            raise serializers.ValidationError(
                {"discount_amount": ["Discount and scholarship cannot exceed the assigned amount."]}
            )

        return attrs


class InvoiceSerializer(serializers.ModelSerializer):
    student_name = serializers.CharField(source="student.full_name", read_only=True)
    total_amount = serializers.DecimalField(
        max_digits=14,
        decimal_places=2,
        min_value=Decimal("0.01"),
        required=False,
    )
    is_overdue = serializers.BooleanField(read_only=True)

    class Meta:
        model = Invoice
        fields = (
            "id",
            "invoice_number",
            "student",
            "student_name",
            "fee_assignment",
            "issue_date",
            "due_date",
            "total_amount",
            "paid_amount",
            "outstanding_amount",
            "currency",
            "status",
            "is_overdue",
            "description",
            "created_by",
            "created_at",
            "updated_at",
        )
        read_only_fields = (
            "id",
            "invoice_number",
            "paid_amount",
            "outstanding_amount",
            "status",
            "created_by",
            "created_at",
            "updated_at",
        )
        extra_kwargs = {"student": {"required": False}}


class InvoiceUpdateSerializer(InvoiceSerializer):
    """Only descriptive fields and cancellation may change after issue."""

    status = serializers.ChoiceField(choices=[(Invoice.STATUS_CANCELLED, "Cancelled")], required=False)
    total_amount = serializers.DecimalField(max_digits=14, decimal_places=2, read_only=True)

    class Meta(InvoiceSerializer.Meta):
        read_only_fields = (
            "id",
            "invoice_number",
            "student",
            "fee_assignment",
            "issue_date",
            "total_amount",
            "paid_amount",
            "outstanding_amount",
            "currency",
            "created_by",
            "created_at",
            "updated_at",
        )
        extra_kwargs = {}


class PaymentSerializer(serializers.ModelSerializer):
    invoice_number = serializers.CharField(source="invoice.invoice_number", read_only=True)
    student_name = serializers.CharField(source="student.full_name", read_only=True)

    class Meta:
        model = Payment
        fields = (
            "id",
            "receipt_number",
            "invoice",
            "invoice_number",
            "student",
            "student_name",
            "amount",
            "method",
            "reference",
            "paid_at",
            "status",
            "notes",
            "received_by",
            "created_at",
        )
        read_only_fields = ("id", "receipt_number", "student", "received_by", "created_at")


class BudgetSerializer(serializers.ModelSerializer):
    end_date = serializers.DateField(required=False)

    class Meta:
        model = Budget
        fields = (
            "id",
            "name",
            "category",
            "academic_year",
            "start_date",
            "end_date",
            "allocated_amount",
            "spent_amount",
            "remaining_amount",
            "status",
            "description",
            "created_at",
            "updated_at",
        )
        read_only_fields = ("id", "spent_amount", "remaining_amount", "created_at", "updated_at")

    def validate(self, attrs):
        start = attrs.get("start_date", getattr(self.instance, "start_date", None))
        end = attrs.get("end_date", getattr(self.instance, "end_date", None))
        if start and end and end < start:
            raise serializers.ValidationError({"end_date": ["Must be on or after start_date."]})
        allocated = attrs.get("allocated_amount")
        if self.instance is not None and allocated is not None and allocated < self.instance.spent_amount:
            raise serializers.ValidationError(
                {"allocated_amount": ["Cannot be lower than the amount already spent."]}
            )
        return attrs


class ExpenseSerializer(serializers.ModelSerializer):
    budget_name = serializers.CharField(source="budget.name", read_only=True)

    class Meta:
        model = Expense
        fields = (
            "id",
            "category",
            "description",
            "amount",
            "expense_date",
            "budget",
            "budget_name",
            "vendor",
            "reference",
            "status",
            "requested_by",
            "approved_by",
            "approved_at",
            "rejection_reason",
            "created_at",
            "updated_at",
        )
        read_only_fields = (
            "id",
            "status",
            "requested_by",
            "approved_by",
            "approved_at",
            "rejection_reason",
            "created_at",
            "updated_at",
        )


class ExpenseRejectSerializer(serializers.Serializer):
    rejection_reason = serializers.CharField(allow_blank=True, required=False, default="")
