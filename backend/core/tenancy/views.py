from django.db import transaction
from django.db.models import Q
from django.utils.dateparse import parse_date
from rest_framework import exceptions, status
from rest_framework.response import Response

from audit.services import record_audit_event, snapshot_instance
from tenancy.exceptions import NotFound
from tenancy.pagination import EnvelopePagination
from tenancy.permissions import HasTenantPermission, get_request_tenant
from tenancy.rbac import get_resource_permission_matrix


def is_truthy(value: str | None) -> bool:
    return str(value or "").strip().lower() in {"1", "true", "yes", "y"}


def parse_date_param(raw_value, name: str):
    if not raw_value:
        return None
    try:
        parsed = parse_date(str(raw_value).strip())
    except ValueError:
        parsed = None
    if parsed is None:
        raise exceptions.ValidationError({name: ["Use the YYYY-MM-DD format."]})
    return parsed


class TenantScopedAPIViewMixin:
    """Shared list/get/create/update/delete behaviour for tenant-owned models.

    Every query is filtered by the tenant resolved from the bearer token. Rows
    of other tenants are indistinguishable from missing rows (404).
    """

    permission_classes = [HasTenantPermission]
    pagination_class = EnvelopePagination
    model = None
    ordering = ()
    tenant_resource = None
    required_permissions = None
    creator_field = None
    search_fields = ()
    choice_filters = {}
    exact_filters = {}
    boolean_filters = {}
    date_range_field = None

    @property
    def tenant(self):
        return get_request_tenant(self.request)

    def get_required_permissions(self, method: str):
        matrix = self.required_permissions
        if matrix is None and self.tenant_resource is not None:
            matrix = get_resource_permission_matrix(self.tenant_resource)
        if matrix is None:
            return None
        return matrix.get(method)

    def get_queryset(self):
        tenant = self.tenant
        if tenant is None:
            return self.model.objects.none()

        queryset = self.model.objects.filter(tenant=tenant)
        if self.ordering:
            return queryset.order_by(*self.ordering)
        return queryset

    def filter_queryset(self, queryset):
        params = self.request.query_params

        search = (params.get("search") or "").strip()
        if search and self.search_fields:
            condition = Q()
            for field_name in self.search_fields:
                condition |= Q(**{f"{field_name}__icontains": search})
            queryset = queryset.filter(condition)

        for param, lookup in self.choice_filters.items():
            value = (params.get(param) or "").strip().upper()
            if value and value != "ALL":
                queryset = queryset.filter(**{lookup: value})

        for param, lookup in self.exact_filters.items():
            value = (params.get(param) or "").strip()
            if value:
                queryset = queryset.filter(**{lookup: value})

        for param, lookup in self.boolean_filters.items():
            value = params.get(param)
            if value not in (None, ""):
                queryset = queryset.filter(**{lookup: is_truthy(value)})

        if self.date_range_field:
            date_from = parse_date_param(params.get("date_from"), "date_from")
            if date_from:
                queryset = queryset.filter(**{f"{self.date_range_field}__gte": date_from})
            date_to = parse_date_param(params.get("date_to"), "date_to")
            if date_to:
                queryset = queryset.filter(**{f"{self.date_range_field}__lte": date_to})

        return queryset

    def get_object(self):
        lookup_url_kwarg = self.lookup_url_kwarg or self.lookup_field
        instance = (
            self.get_queryset()
            .filter(**{self.lookup_field: self.kwargs[lookup_url_kwarg]})
            .first()
        )
        if instance is None:
            raise NotFound(f"{self.get_resource_name()} not found.")
        self.check_object_permissions(self.request, instance)
        return instance

    def get_locked_object(self):
        """Re-read the target row under `select_for_update` (call inside a transaction)."""

        instance = self.get_object()
        return self.model.all_objects.select_for_update().get(pk=instance.pk)

    def get_resource_name(self) -> str:
        if self.model is None:
            return "Resource"
        return str(self.model._meta.verbose_name).capitalize()

    def get_create_stamps(self) -> dict:
        stamps = {"tenant": self.tenant}
        if self.creator_field:
            stamps[self.creator_field] = self.request.user
        return stamps

    def record_audit(self, action: str, instance, *, before=None, after=None, details=None):
        return record_audit_event(
            tenant=self.tenant,
            actor=self.request.user,
            action=action,
            resource=self.get_resource_name(),
            resource_id=getattr(instance, "pk", ""),
            request=self.request,
            data_before=before,
            data_after=after,
            details=details,
        )

    def perform_create(self, serializer):
        with transaction.atomic():
            instance = serializer.save(**self.get_create_stamps())
            self.record_audit("CREATE", instance, after=snapshot_instance(instance))
        return instance

    def perform_update(self, serializer):
        with transaction.atomic():
            before = snapshot_instance(serializer.instance)
            instance = serializer.save()
            self.record_audit(
                "UPDATE",
                instance,
                before=before,
                after=snapshot_instance(instance),
            )
        return instance

    def perform_destroy(self, instance):
        with transaction.atomic():
            before = snapshot_instance(instance)
            pk = instance.pk
            instance.delete()
            instance.pk = pk
            self.record_audit("DELETE", instance, before=before)

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        self.perform_create(serializer)
        return Response(
            {
                "success": True,
                "data": serializer.data,
                "message": f"{self.get_resource_name()} created successfully.",
            },
            status=status.HTTP_201_CREATED,
        )

    def update(self, request, *args, **kwargs):
        instance = self.get_object()
        serializer = self.get_serializer(instance, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        self.perform_update(serializer)
        return Response(
            {
                "success": True,
                "data": serializer.data,
                "message": f"{self.get_resource_name()} updated successfully.",
            }
        )

    def destroy(self, request, *args, **kwargs):
        instance = self.get_object()
        self.perform_destroy(instance)
        return Response(
            {
                "success": True,
                "data": None,
                "message": f"{self.get_resource_name()} deleted successfully.",
            }
        )
