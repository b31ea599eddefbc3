from rest_framework.permissions import BasePermission

from accounts.services import get_effective_permissions
from tenancy.exceptions import Forbidden
from tenancy.rbac import is_granted


def get_request_tenant(request):
    return getattr(request.auth, "tenant", None)


def get_request_permissions(request) -> frozenset[str]:
    cached = getattr(request, "_tenant_permissions", None)
    if cached is None:
        cached = get_effective_permissions(request.user, get_request_tenant(request))
        request._tenant_permissions = cached
    return cached


def get_view_required_permissions(view, method: str):
    resolver = getattr(view, "get_required_permissions", None)
    if resolver is not None:
        return resolver(method)
    matrix = getattr(view, "required_permissions", None) or {}
    return matrix.get(method)


class IsAuthenticatedTenantMember(BasePermission):
    message = "Tenant context not found or invalid."

    def has_permission(self, request, view):
        user = request.user
        if not user or not user.is_authenticated:
            return False
        return get_request_tenant(request) is not None


class HasTenantPermission(IsAuthenticatedTenantMember):
    """Any-of check of the view's required permissions for the request method."""

    def has_permission(self, request, view):
        if not super().has_permission(request, view):
            return False

        self.message = Forbidden.default_detail
        required = get_view_required_permissions(view, request.method)
        if required is None:
            return False
        if not required:
            return True
        if request.user.is_superuser:
            return True
        return is_granted(get_request_permissions(request), required)
