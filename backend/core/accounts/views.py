import logging

from django.contrib.auth.models import update_last_login
from django.db import transaction
from rest_framework import generics, status
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from accounts.authentication import BearerTokenAuthentication
from accounts.models import Permission, Role, User
from accounts.serializers import (
    LoginSerializer,
    PermissionSerializer,
    RolePermissionsSerializer,
    RoleSerializer,
    TenantSerializer,
    UserCreateSerializer,
    UserRoleAssignSerializer,
    UserSerializer,
)
from accounts.services import (
    assign_role,
    authenticate_credentials,
    create_tenant_user,
    get_effective_permissions,
    get_user_role_names,
    revoke_role,
    set_role_permissions,
)
from accounts.tokens import issue_access_token
from audit.models import AuditLog
from audit.services import record_audit_event, snapshot_instance
from tenancy.exceptions import ConflictError, InvalidCredential, NotFound
from tenancy.permissions import HasTenantPermission, get_request_permissions
from tenancy.rbac import PermissionCode, Resource, build_permission_matrix
from tenancy.views import TenantScopedAPIViewMixin

logger = logging.getLogger(__name__)


def _build_profile(user: User, permissions) -> dict:
    tenant = user.tenant
    return {
        "user": UserSerializer(user).data,
        "tenant": TenantSerializer(tenant).data if tenant is not None else None,
        "roles": get_user_role_names(user, tenant),
        "permissions": sorted(permissions),
        "is_superuser": user.is_superuser,
    }


def _token_payload(user: User) -> dict:
    issued = issue_access_token(user)
    return {
        "token": issued.token,
        "token_type": "Bearer",
        "expires_at": issued.expires_at,
        "expires_in": issued.expires_in,
    }


class LoginAPIView(APIView):
    authentication_classes = []
    permission_classes = [AllowAny]

    def get_authenticate_header(self, request):
        return BearerTokenAuthentication().authenticate_header(request)

    def post(self, request):
        serializer = LoginSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        email = serializer.validated_data["email"]

        try:
            user = authenticate_credentials(
                email=email,
                password=serializer.validated_data["password"],
                tenant_code=serializer.validated_data.get("tenant", ""),
            )
        except InvalidCredential as exc:
            record_audit_event(
                tenant=None,
                actor=None,
                actor_email=email,
                action=AuditLog.ACTION_LOGIN,
                resource="Session",
                request=request,
                status=AuditLog.STATUS_FAILURE,
                details={"reason": str(exc.detail)},
            )
            logger.warning(
                "login rejected",
                extra={"correlation_id": getattr(request, "correlation_id", "")},
            )
            raise

        update_last_login(None, user)
        record_audit_event(
            tenant=user.tenant,
            actor=user,
            action=AuditLog.ACTION_LOGIN,
            resource="Session",
            resource_id=user.pk,
            request=request,
        )
        payload = _token_payload(user)
        payload["profile"] = _build_profile(user, get_effective_permissions(user, user.tenant))
        return Response(
            {"success": True, "data": payload, "message": "Login successful."},
        )


class ProfileAPIView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        return Response(_build_profile(request.user, get_request_permissions(request)))


class TokenRefreshAPIView(APIView):
    permission_classes = [IsAuthenticated]

    def post(self, request):
        return Response(_token_payload(request.user))


class PermissionListAPIView(APIView):
    permission_classes = [HasTenantPermission]
    required_permissions = build_permission_matrix(read=PermissionCode.ROLES_READ)

    def get(self, request):
        permissions = Permission.objects.all().order_by("resource", "action")
        return Response(PermissionSerializer(permissions, many=True).data)


class RoleListCreateAPIView(TenantScopedAPIViewMixin, generics.ListCreateAPIView):
    model = Role
    serializer_class = RoleSerializer
    tenant_resource = Resource.ROLES
    ordering = ("name",)
    search_fields = ("name", "description")

    def perform_create(self, serializer):
        codes = serializer.validated_data.pop("permissions", [])
        with transaction.atomic():
            instance = serializer.save(tenant=self.tenant)
            set_role_permissions(instance, codes)
            self.record_audit(
                "CREATE",
                instance,
                after=snapshot_instance(instance),
                details={"permissions": [code.value for code in codes]},
            )
        return instance


class RoleDetailAPIView(TenantScopedAPIViewMixin, generics.RetrieveUpdateDestroyAPIView):
    model = Role
    serializer_class = RoleSerializer
    tenant_resource = Resource.ROLES

    def perform_update(self, serializer):
        codes = serializer.validated_data.pop("permissions", None)
        with transaction.atomic():
            before = snapshot_instance(serializer.instance)
            instance = serializer.save()
            if codes is not None:
                set_role_permissions(instance, codes)
            self.record_audit("UPDATE", instance, before=before, after=snapshot_instance(instance))
        return instance

    def perform_destroy(self, instance):
        if instance.is_system:
            raise ConflictError("System roles cannot be deleted.")
        super().perform_destroy(instance)


class RolePermissionsAPIView(TenantScopedAPIViewMixin, generics.GenericAPIView):
    model = Role
    serializer_class = RolePermissionsSerializer
    required_permissions = build_permission_matrix(
        read=PermissionCode.ROLES_READ,
        update=PermissionCode.ROLES_UPDATE,
    )

    def get(self, request, pk):
        role = self.get_object()
        return Response(sorted(role.permissions.values_list("name", flat=True)))

    def put(self, request, pk):
        role = self.get_object()
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        with transaction.atomic():
            before = sorted(role.permissions.values_list("name", flat=True))
            names = set_role_permissions(role, serializer.validated_data["permissions"])
            self.record_audit(
                "UPDATE",
                role,
                before={"permissions": before},
                after={"permissions": names},
            )
        return Response(
            {"success": True, "data": names, "message": "Role permissions updated successfully."}
        )


class UserListCreateAPIView(TenantScopedAPIViewMixin, generics.ListCreateAPIView):
    model = User
    serializer_class = UserSerializer
    tenant_resource = Resource.USERS
    search_fields = ("email", "first_name", "last_name", "phone")
    choice_filters = {"status": "status"}
    boolean_filters = {"is_active": "is_active"}

    def get_queryset(self):
        tenant = self.tenant
        if tenant is None:
            return User.objects.none()
        queryset = User.objects.filter(tenant=tenant).select_related("tenant")
        role_id = self.request.query_params.get("role_id")
        if role_id:
            queryset = queryset.filter(user_roles__role_id=role_id, user_roles__tenant=tenant)
        return queryset.order_by("first_name", "last_name", "id").distinct()

    def create(self, request, *args, **kwargs):
        serializer = UserCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        role_ids = set(data.get("role_ids") or [])
        roles = list(Role.all_objects.filter(tenant=self.tenant, id__in=role_ids))
        if len(roles) != len(role_ids):
            raise NotFound("Role not found.")

        with transaction.atomic():
            user = create_tenant_user(
                tenant=self.tenant,
                email=data["email"],
                password=data.get("password") or None,
                first_name=data["first_name"],
                last_name=data["last_name"],
                phone=data.get("phone", ""),
                address=data.get("address", ""),
                roles=roles,
                assigned_by=request.user,
            )
            self.record_audit("CREATE", user, after=snapshot_instance(user))

        return Response(
            {
                "success": True,
                "data": UserSerializer(user).data,
                "message": "User created successfully.",
            },
            status=status.HTTP_201_CREATED,
        )


class UserDetailAPIView(TenantScopedAPIViewMixin, generics.RetrieveUpdateDestroyAPIView):
    model = User
    serializer_class = UserSerializer
    tenant_resource = Resource.USERS

    def get_queryset(self):
        tenant = self.tenant
        if tenant is None:
            return User.objects.none()
        return User.objects.filter(tenant=tenant).select_related("tenant")

    def perform_destroy(self, instance):
        if instance.pk == self.request.user.pk:
            raise ConflictError("You cannot delete your own account.")
        super().perform_destroy(instance)


class UserRoleAssignmentMixin(TenantScopedAPIViewMixin):
    model = User
    serializer_class = UserRoleAssignSerializer
    required_permissions = build_permission_matrix(
        read=PermissionCode.ROLES_READ,
        create=PermissionCode.ROLES_UPDATE,
        delete=PermissionCode.ROLES_UPDATE,
    )

    def get_queryset(self):
        tenant = self.tenant
        if tenant is None:
            return User.objects.none()
        return User.objects.filter(tenant=tenant)

    def get_role(self, role_id) -> Role:
        role = Role.all_objects.filter(tenant=self.tenant, pk=role_id).first()
        if role is None:
            raise NotFound("Role not found.")
        return role


class UserRolesAPIView(UserRoleAssignmentMixin, generics.GenericAPIView):
    def get(self, request, pk):
        user = self.get_object()
        return Response(get_user_role_names(user, self.tenant))

    def post(self, request, pk):
        user = self.get_object()
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        role = self.get_role(serializer.validated_data["role_id"])

        with transaction.atomic():
            _user_role, created = assign_role(user, role, assigned_by=request.user)
            if created:
                self.record_audit("UPDATE", user, details={"assigned_role": role.name})

        return Response(
            {
                "success": True,
                "data": get_user_role_names(user, self.tenant),
                "message": "Role assigned successfully." if created else "Role already assigned.",
            },
            status=status.HTTP_201_CREATED if created else status.HTTP_200_OK,
        )


class UserRoleRevokeAPIView(UserRoleAssignmentMixin, generics.GenericAPIView):
    def delete(self, request, pk, role_id):
        user = self.get_object()
        role = self.get_role(role_id)
        with transaction.atomic():
            if not revoke_role(user, role):
                raise NotFound("Role is not assigned to this user.")
            self.record_audit("UPDATE", user, details={"revoked_role": role.name})
        return Response(
            {
                "success": True,
                "data": get_user_role_names(user, self.tenant),
                "message": "Role revoked successfully.",
            }
        )
