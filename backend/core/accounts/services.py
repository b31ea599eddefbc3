from __future__ import annotations

import logging

from django.db import transaction

from accounts.models import Permission, Role, RolePermission, Tenant, User, UserRole
from tenancy.exceptions import ConflictError, InvalidCredential
from tenancy.rbac import DEFAULT_ROLE_PERMISSIONS, PermissionCode

logger = logging.getLogger(__name__)


def build_username(tenant: Tenant | None, email: str) -> str:
    normalized_email = (email or "").strip().lower()
    if tenant is None:
        return normalized_email[:150]
    return f"{tenant.code}+{normalized_email}"[:150]


def get_effective_permissions(user, tenant) -> frozenset[str]:
    """Union of permission names over the user's roles in `tenant` (one query)."""

    if user is None or tenant is None or not getattr(user, "is_authenticated", False):
        return frozenset()
    if user.tenant_id != tenant.id:
        return frozenset()

    names = (
        Permission.objects.filter(
            role_permissions__role__tenant=tenant,
            role_permissions__role__user_roles__user=user,
            role_permissions__role__user_roles__tenant=tenant,
        )
        .values_list("name", flat=True)
        .distinct()
    )
    return frozenset(names)


def get_user_role_names(user, tenant) -> list[str]:
    if tenant is None:
        return []
    return list(
        UserRole.all_objects.filter(user=user, tenant=tenant)
        .order_by("role__name")
        .values_list("role__name", flat=True)
    )


def sync_permission_table(*, prune: bool = False) -> dict:
    """Upsert one `Permission` row per vocabulary member."""

    created = 0
    updated = 0
    with transaction.atomic():
        for code in PermissionCode:
            permission, was_created = Permission.objects.get_or_create(
                name=code.value,
                defaults={
                    "resource": code.resource.value,
                    "action": code.action.value,
                    "description": str(code.label),
                },
            )
            if was_created:
                created += 1
                continue
            changed = False
            for field, value in (
                ("resource", code.resource.value),
                ("action", code.action.value),
                ("description", str(code.label)),
            ):
                if getattr(permission, field) != value:
                    setattr(permission, field, value)
                    changed = True
            if changed:
                permission.save(update_fields=["resource", "action", "description"])
                updated += 1

        pruned = 0
        if prune:
            _total, details = Permission.objects.exclude(name__in=PermissionCode.values).delete()
            pruned = details.get(Permission._meta.label, 0)

    return {"created": created, "updated": updated, "pruned": pruned}


def set_role_permissions(role: Role, codes) -> list[str]:
    """Replace the grant set of `role` with exactly `codes`."""

    names = sorted({PermissionCode(code).value for code in codes})
    with transaction.atomic():
        permissions = list(Permission.objects.filter(name__in=names))
        found = {permission.name for permission in permissions}
        missing = [name for name in names if name not in found]
        if missing:
            raise ConflictError(
                f"Permissions are not seeded: {', '.join(missing)}. Run sync_permissions."
            )
        RolePermission.objects.filter(role=role).exclude(permission__in=permissions).delete()
        existing = set(
            RolePermission.objects.filter(role=role).values_list("permission_id", flat=True)
        )
        RolePermission.objects.bulk_create(
            [
                RolePermission(role=role, permission=permission)
                for permission in permissions
                if permission.id not in existing
            ]
        )
    return names


def bootstrap_tenant_roles(tenant: Tenant) -> dict[str, Role]:
    """Create or refresh the system roles of a tenant with their default grants."""

    roles = {}
    with transaction.atomic():
        for role_name, codes in DEFAULT_ROLE_PERMISSIONS.items():
            role, _created = Role.all_objects.get_or_create(
                tenant=tenant,
                name=role_name,
                defaults={"is_system": True, "description": f"Default {role_name} role"},
            )
            if not role.is_system:
                role.is_system = True
                role.save(update_fields=["is_system", "updated_at"])
            set_role_permissions(role, codes)
            roles[role_name] = role
    logger.info(
        "tenant roles bootstrapped",
        extra={"tenant_id": tenant.id, "roles": sorted(roles)},
    )
    return roles


def assign_role(user: User, role: Role, *, assigned_by=None) -> tuple[UserRole, bool]:
    if user.tenant_id != role.tenant_id:
        raise ConflictError("User and role belong to different tenants.")
    return UserRole.all_objects.get_or_create(
        tenant_id=role.tenant_id,
        user=user,
        role=role,
        defaults={"assigned_by": assigned_by},
    )


def revoke_role(user: User, role: Role) -> bool:
    deleted, _details = UserRole.all_objects.filter(
        tenant_id=role.tenant_id,
        user=user,
        role=role,
    ).delete()
    return bool(deleted)


def create_tenant_user(
    *,
    tenant: Tenant,
    email: str,
    password: str | None,
    first_name: str = "",
    last_name: str = "",
    phone: str = "",
    address: str = "",
    roles=(),
    assigned_by=None,
) -> User:
    normalized_email = (email or "").strip().lower()
    with transaction.atomic():
        if User.objects.filter(tenant=tenant, email__iexact=normalized_email).exists():
            raise ConflictError("A user with this email already exists.")
        user = User(
            tenant=tenant,
            username=build_username(tenant, normalized_email),
            email=normalized_email,
            first_name=first_name,
            last_name=last_name,
            phone=phone,
            address=address,
        )
        if password:
            user.set_password(password)
        else:
            user.set_unusable_password()
        user.save()
        for role in roles:
            assign_role(user, role, assigned_by=assigned_by)
    return user


def authenticate_credentials(*, email: str, password: str, tenant_code: str = "") -> User:
    """Resolve a login to exactly one active user or raise `InvalidCredential`."""

    normalized_email = (email or "").strip().lower()
    candidates = User.objects.select_related("tenant").filter(
        email__iexact=normalized_email,
        is_active=True,
    )
    tenant_code = (tenant_code or "").strip().lower()
    if tenant_code:
        candidates = candidates.filter(tenant__code=tenant_code)

    users = list(candidates[:2])
    if len(users) > 1:
        raise InvalidCredential("Email is registered in several schools; send the tenant code.")

    user = users[0] if users else None
    if user is None:
        # Run the hasher once so unknown emails cost the same as bad passwords.
        User().set_password(password)
        raise InvalidCredential("Invalid email or password.")
    if not user.check_password(password):
        raise InvalidCredential("Invalid email or password.")
    if user.status != User.STATUS_ACTIVE:
        raise InvalidCredential("User account is not active.")
    if user.tenant is not None and not user.tenant.is_active:
        raise InvalidCredential("Tenant is inactive.")
    return user
