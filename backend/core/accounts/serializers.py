from django.core.exceptions import ValidationError as DjangoValidationError
from rest_framework import serializers

from accounts.models import Permission, Role, Tenant, User
from accounts.services import get_user_role_names
from tenancy.rbac import validate_permission_names


class LoginSerializer(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True, trim_whitespace=False)
    tenant = serializers.CharField(required=False, allow_blank=True, max_length=63)


class TenantSerializer(serializers.ModelSerializer):
    class Meta:
        model = Tenant
        fields = ("id", "name", "code", "email", "phone", "address", "is_active")
        read_only_fields = fields


class UserSerializer(serializers.ModelSerializer):
    full_name = serializers.CharField(read_only=True)
    roles = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = (
            "id",
            "email",
            "first_name",
            "last_name",
            "full_name",
            "phone",
            "address",
            "status",
            "is_active",
            "roles",
            "last_login",
            "date_joined",
        )
        read_only_fields = (
            "id",
            "email",
            "full_name",
            "roles",
            "last_login",
            "date_joined",
        )

    def get_roles(self, obj: User) -> list[str]:
        return get_user_role_names(obj, obj.tenant)


class UserCreateSerializer(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField(
        write_only=True,
        required=False,
        allow_blank=True,
        min_length=8,
        trim_whitespace=False,
    )
    first_name = serializers.CharField(max_length=150)
    last_name = serializers.CharField(max_length=150)
    phone = serializers.CharField(max_length=40, required=False, allow_blank=True)
    address = serializers.CharField(required=False, allow_blank=True)
    role_ids = serializers.ListField(
        child=serializers.IntegerField(min_value=1),
        required=False,
        default=list,
    )


class PermissionSerializer(serializers.ModelSerializer):
    class Meta:
        model = Permission
        fields = ("id", "name", "resource", "action", "description")
        read_only_fields = fields


class RoleSerializer(serializers.ModelSerializer):
    permissions = serializers.ListField(
        child=serializers.CharField(max_length=80),
        required=False,
        write_only=True,
    )
    permission_names = serializers.SerializerMethodField()
    user_count = serializers.SerializerMethodField()

    class Meta:
        model = Role
        fields = (
            "id",
            "name",
            "description",
            "is_system",
            "permissions",
            "permission_names",
            "user_count",
            "created_at",
            "updated_at",
        )
        read_only_fields = (
            "id",
            "is_system",
            "permission_names",
            "user_count",
            "created_at",
            "updated_at",
        )

    def validate_name(self, value: str) -> str:
        value = value.strip()
        tenant = self.context["view"].tenant
        queryset = Role.all_objects.filter(tenant=tenant, name__iexact=value)
        if self.instance is not None:
            queryset = queryset.exclude(pk=self.instance.pk)
        if queryset.exists():
            raise serializers.ValidationError("A role with this name already exists.")
        return value

    def validate_permissions(self, value):
        try:
            return validate_permission_names(value)
        except DjangoValidationError as exc:
            raise serializers.ValidationError(exc.messages)

    def get_permission_names(self, obj: Role) -> list[str]:
        return sorted(obj.permissions.values_list("name", flat=True))

    def get_user_count(self, obj: Role) -> int:
        return obj.user_roles.count()


class RolePermissionsSerializer(serializers.Serializer):
    permissions = serializers.ListField(child=serializers.CharField(max_length=80))

    def validate_permissions(self, value):
        try:
            return validate_permission_names(value)
        except DjangoValidationError as exc:
            raise serializers.ValidationError(exc.messages)


class UserRoleAssignSerializer(serializers.Serializer):
    role_id = serializers.IntegerField(min_value=1)
