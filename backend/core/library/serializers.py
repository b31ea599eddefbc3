from rest_framework import serializers

from accounts.models import User
from library.models import BORROWER_TYPE_CHOICES, Book, BookCirculation, BookReservation


class TenantUserField(serializers.PrimaryKeyRelatedField):
    """Active users of the request's tenant."""

    def get_queryset(self):
        view = self.context.get("view")
        tenant = getattr(view, "tenant", None)
        if tenant is None:
            return User.objects.none()
        return User.objects.filter(tenant=tenant, is_active=True)


class BookSerializer(serializers.ModelSerializer):
    available_copies = serializers.IntegerField(required=False, min_value=0)

    class Meta:
        model = Book
        fields = (
            "id",
            "title",
            "author",
            "isbn",
            "publisher",
            "publication_year",
            "category",
            "language",
            "location",
            "total_copies",
            "available_copies",
            "condition",
            "description",
            "is_active",
            "created_by",
            "created_at",
            "updated_at",
        )
        read_only_fields = ("id", "created_by", "created_at", "updated_at")
        validators = []

    def validate(self, attrs):
        instance = self.instance
        total = attrs.get("total_copies", getattr(instance, "total_copies", None))
        if instance is None:
            total = total or 1
            attrs.setdefault("available_copies", total)
        elif "total_copies" in attrs and "available_copies" not in attrs:
            on_loan = instance.total_copies - instance.available_copies
            attrs["available_copies"] = total - on_loan
        available = attrs.get("available_copies", getattr(instance, "available_copies", None))
        if available is not None and total is not None and not 0 <= available <= total:
            raise serializers.ValidationError(
                {"total_copies": ["Copies on loan cannot exceed the total number of copies."]}
            )
        return attrs


class BookCirculationSerializer(serializers.ModelSerializer):
    book_title = serializers.CharField(source="book.title", read_only=True)
    borrower = TenantUserField()
    borrower_name = serializers.CharField(source="borrower.full_name", read_only=True)
    is_overdue = serializers.BooleanField(read_only=True)

    class Meta:
        model = BookCirculation
        fields = (
            "id",
            "book",
            "book_title",
            "borrower",
            "borrower_name",
            "borrower_type",
            "issued_at",
            "due_date",
            "returned_at",
            "status",
            "is_overdue",
            "renewal_count",
            "max_renewals",
            "fine_amount",
            "issued_by",
            "returned_to",
            "notes",
            "created_at",
            "updated_at",
        )
        read_only_fields = (
            "id",
            "issued_at",
            "returned_at",
            "status",
            "renewal_count",
            "max_renewals",
            "fine_amount",
            "issued_by",
            "returned_to",
            "created_at",
            "updated_at",
        )
        extra_kwargs = {"due_date": {"required": False}}


class ReturnBookSerializer(serializers.Serializer):
    condition = serializers.ChoiceField(choices=Book.CONDITION_CHOICES, required=False)
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class RenewBookSerializer(serializers.Serializer):
    new_due_date = serializers.DateField(required=False, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class BookReservationSerializer(serializers.ModelSerializer):
    book_title = serializers.CharField(source="book.title", read_only=True)
    user = TenantUserField()
    user_name = serializers.CharField(source="user.full_name", read_only=True)
    user_type = serializers.ChoiceField(choices=BORROWER_TYPE_CHOICES, required=False)

    class Meta:
        model = BookReservation
        fields = (
            "id",
            "book",
            "book_title",
            "user",
            "user_name",
            "user_type",
            "expiry_date",
            "status",
            "fulfilled_at",
            "circulation",
            "notes",
            "created_at",
            "updated_at",
        )
        read_only_fields = (
            "id",
            "status",
            "fulfilled_at",
            "circulation",
            "created_at",
            "updated_at",
        )
        extra_kwargs = {"expiry_date": {"required": False}}
        validators = []


class CancelReservationSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, default="")
