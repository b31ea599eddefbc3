from django.db import transaction
from django.utils import timezone
from rest_framework import generics
from rest_framework.response import Response
from rest_framework.views import APIView

from audit.models import AuditLog
from audit.services import snapshot_instance
from library.models import Book, BookCirculation, BookReservation
from library.serializers import (
    BookCirculationSerializer,
    BookReservationSerializer,
    BookSerializer,
    CancelReservationSerializer,
    RenewBookSerializer,
    ReturnBookSerializer,
)
from library.services import (
    cancel_reservation,
    compute_library_stats,
    create_reservation,
    fulfill_reservation,
    issue_book,
    renew_book,
    return_book,
)
from tenancy.exceptions import ConflictError
from tenancy.permissions import HasTenantPermission, get_request_permissions, get_request_tenant
from tenancy.rbac import PermissionCode, build_permission_matrix, is_granted
from tenancy.views import TenantScopedAPIViewMixin, is_truthy

LIBRARY_PERMISSIONS = build_permission_matrix(
    read=PermissionCode.LIBRARY_READ,
    create=PermissionCode.LIBRARY_MANAGE,
    update=PermissionCode.LIBRARY_MANAGE,
    delete=PermissionCode.LIBRARY_MANAGE,
)


class LibraryViewMixin(TenantScopedAPIViewMixin):
    required_permissions = LIBRARY_PERMISSIONS

    def can_manage_library(self) -> bool:
        if self.request.user.is_superuser:
            return True
        return is_granted(get_request_permissions(self.request), (PermissionCode.LIBRARY_MANAGE,))


class BookListCreateAPIView(LibraryViewMixin, generics.ListCreateAPIView):
    model = Book
    serializer_class = BookSerializer
    creator_field = "created_by"
    ordering = ("title", "id")
    search_fields = ("title", "author", "isbn", "publisher")
    choice_filters = {"condition": "condition"}
    exact_filters = {"category": "category__iexact", "author": "author__icontains"}
    boolean_filters = {"is_active": "is_active"}

    def filter_queryset(self, queryset):
        queryset = super().filter_queryset(queryset)
        if is_truthy(self.request.query_params.get("available")):
            queryset = queryset.filter(available_copies__gt=0)
        return queryset


class BookDetailAPIView(LibraryViewMixin, generics.RetrieveUpdateDestroyAPIView):
    model = Book
    serializer_class = BookSerializer

    def perform_destroy(self, instance):
        active = BookCirculation.all_objects.filter(
            book=instance,
            status=BookCirculation.STATUS_ISSUED,
        )
        if active.exists():
            raise ConflictError("Cannot delete a book with copies on loan.")
        super().perform_destroy(instance)


class CirculationQuerysetMixin(LibraryViewMixin):
    """Borrowers without `library:manage` only see their own loans."""

    model = BookCirculation

    def get_queryset(self):
        queryset = super().get_queryset().select_related("book", "borrower")
        if not self.can_manage_library():
            queryset = queryset.filter(borrower=self.request.user)
        return queryset


class BookCirculationListCreateAPIView(CirculationQuerysetMixin, generics.ListCreateAPIView):
    serializer_class = BookCirculationSerializer
    ordering = ("-issued_at", "-id")
    search_fields = ("book__title", "borrower__first_name", "borrower__last_name", "borrower__email")
    choice_filters = {"status": "status", "borrower_type": "borrower_type"}
    exact_filters = {"book_id": "book_id", "borrower_id": "borrower_id"}
    date_range_field = "due_date"

    def filter_queryset(self, queryset):
        queryset = super().filter_queryset(queryset)
        if is_truthy(self.request.query_params.get("overdue")):
            queryset = queryset.filter(
                status=BookCirculation.STATUS_ISSUED,
                due_date__lt=timezone.localdate(),
            )
        return queryset

    def create(self, request, *args, **kwargs):
        response = super().create(request, *args, **kwargs)
        response.data["message"] = "Book issued successfully."
        return response

    def perform_create(self, serializer):
        with transaction.atomic():
            circulation = issue_book(
                tenant=self.tenant,
                issued_by=self.request.user,
                **serializer.validated_data,
            )
            self.record_audit(
                AuditLog.ACTION_CREATE,
                circulation,
                after=snapshot_instance(circulation),
            )
        serializer.instance = circulation
        return circulation


class BookCirculationDetailAPIView(CirculationQuerysetMixin, generics.RetrieveAPIView):
    serializer_class = BookCirculationSerializer


class CirculationTransitionAPIView(CirculationQuerysetMixin, generics.GenericAPIView):
    required_permissions = build_permission_matrix(
        create=PermissionCode.LIBRARY_MANAGE,
        update=PermissionCode.LIBRARY_MANAGE,
    )
    success_message = ""

    def transition(self, circulation, data):
        raise NotImplementedError

    def post(self, request, pk):
        circulation = self.get_object()
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        before = snapshot_instance(circulation)
        with transaction.atomic():
            circulation = self.transition(circulation, serializer.validated_data)
            self.record_audit(
                AuditLog.ACTION_TRANSITION,
                circulation,
                before=before,
                after=snapshot_instance(circulation),
            )
        return Response(
            {
                "success": True,
                "data": BookCirculationSerializer(circulation).data,
                "message": self.success_message,
            }
        )

    put = post


class ReturnBookAPIView(CirculationTransitionAPIView):
    serializer_class = ReturnBookSerializer
    success_message = "Book returned successfully."

    def transition(self, circulation, data):
        return return_book(
            circulation,
            returned_to=self.request.user,
            condition=data.get("condition", ""),
            notes=data["notes"],
        )


class RenewBookAPIView(CirculationTransitionAPIView):
    serializer_class = RenewBookSerializer
    success_message = "Book renewed successfully."

    def transition(self, circulation, data):
        return renew_book(
            circulation,
            new_due_date=data.get("new_due_date"),
            notes=data["notes"],
        )


class ReservationQuerysetMixin(LibraryViewMixin):
    model = BookReservation

    def get_queryset(self):
        queryset = super().get_queryset().select_related("book", "user")
        if not self.can_manage_library():
            queryset = queryset.filter(user=self.request.user)
        return queryset


class BookReservationListCreateAPIView(ReservationQuerysetMixin, generics.ListCreateAPIView):
    serializer_class = BookReservationSerializer
    ordering = ("-created_at", "-id")
    search_fields = ("book__title", "user__first_name", "user__last_name", "user__email")
    choice_filters = {"status": "status"}
    exact_filters = {"book_id": "book_id", "user_id": "user_id"}

    def perform_create(self, serializer):
        with transaction.atomic():
            reservation = create_reservation(tenant=self.tenant, **serializer.validated_data)
            self.record_audit(
                AuditLog.ACTION_CREATE,
                reservation,
                after=snapshot_instance(reservation),
            )
        serializer.instance = reservation
        return reservation


class BookReservationDetailAPIView(ReservationQuerysetMixin, generics.RetrieveAPIView):
    serializer_class = BookReservationSerializer


class ReservationTransitionAPIView(ReservationQuerysetMixin, generics.GenericAPIView):
    required_permissions = build_permission_matrix(
        create=PermissionCode.LIBRARY_MANAGE,
        update=PermissionCode.LIBRARY_MANAGE,
    )
    success_message = ""

    def transition(self, reservation):
        raise NotImplementedError

    def post(self, request, pk):
        reservation = self.get_object()
        before = snapshot_instance(reservation)
        with transaction.atomic():
            reservation = self.transition(reservation)
            self.record_audit(
                AuditLog.ACTION_TRANSITION,
                reservation,
                before=before,
                after=snapshot_instance(reservation),
            )
        return Response(
            {
                "success": True,
                "data": BookReservationSerializer(reservation).data,
                "message": self.success_message,
            },
        )

    put = post


class FulfillReservationAPIView(ReservationTransitionAPIView):
    success_message = "Reservation fulfilled and book issued."

    def transition(self, reservation):
        return fulfill_reservation(reservation, issued_by=self.request.user)


class CancelReservationAPIView(ReservationTransitionAPIView):
    success_message = "Reservation cancelled successfully."

    def transition(self, reservation):
        serializer = CancelReservationSerializer(data=self.request.data)
        serializer.is_valid(raise_exception=True)
        return cancel_reservation(reservation, reason=serializer.validated_data["reason"])


class LibraryStatsAPIView(APIView):
    permission_classes = [HasTenantPermission]
    required_permissions = build_permission_matrix(read=PermissionCode.LIBRARY_READ)

    def get(self, request):
        return Response(compute_library_stats(get_request_tenant(request)))
