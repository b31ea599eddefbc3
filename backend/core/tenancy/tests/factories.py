"""Helpers that build tenants, users and authenticated API clients for tests."""

import itertools

from rest_framework.test import APIClient

from accounts.models import Role, Tenant, User
from accounts.services import (
    assign_role,
    build_username,
    set_role_permissions,
    sync_permission_table,
)
from accounts.tokens import issue_access_token

DEFAULT_PASSWORD = "Str0ng-pass!"

_role_sequence = itertools.count(1)


def make_tenant(code: str = "alpha", name: str | None = None, **extra) -> Tenant:
    return Tenant.objects.create(code=code, name=name or f"{code.title()} School", **extra)


def make_user(tenant: Tenant, email: str, *, password: str = DEFAULT_PASSWORD, **extra) -> User:
    extra.setdefault("first_name", email.split("@", 1)[0].title())
    extra.setdefault("last_name", "Tester")
    user = User(
        tenant=tenant,
        username=build_username(tenant, email),
        email=email,
        **extra,
    )
    user.set_password(password)
    user.save()
    return user


def make_role(tenant: Tenant, name: str, permissions=()) -> Role:
    sync_permission_table()
    role = Role.all_objects.create(tenant=tenant, name=name)
    set_role_permissions(role, permissions)
    return role


def grant(user: User, *permissions, role_name: str | None = None) -> Role:
    role = make_role(user.tenant, role_name or f"role-{next(_role_sequence)}", permissions)
    assign_role(user, role)
    return role


def api_client_for(user: User | None = None, **headers) -> APIClient:
    client = APIClient()
    if user is not None:
        client.credentials(
            HTTP_AUTHORIZATION=f"Bearer {issue_access_token(user).token}",
            **headers,
        )
    return client
