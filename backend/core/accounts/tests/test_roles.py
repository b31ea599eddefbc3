from io import StringIO

from django.core.management import call_command
from django.test import TestCase

from accounts.models import Permission, Role, Tenant, User
from accounts.services import bootstrap_tenant_roles, get_effective_permissions, sync_permission_table
from tenancy.rbac import ROLE_TENANT_ADMIN, PermissionCode
from tenancy.tests.factories import api_client_for, grant, make_role, make_tenant, make_user


class RoleApiTests(TestCase):
    def setUp(self):
        self.tenant = make_tenant("alpha")
        self.admin = make_user(self.tenant, "admin@alpha.test")
        grant(
            self.admin,
            PermissionCode.ROLES_CREATE,
            PermissionCode.ROLES_READ,
            PermissionCode.ROLES_UPDATE,
            PermissionCode.ROLES_DELETE,
        )
        self.client = api_client_for(self.admin)

    def test_create_role_with_permissions(self):
        response = self.client.post(
            "/api/roles/",
            {"name": "Librarian", "permissions": ["library:read", "library:manage"]},
            format="json",
        )

        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()["data"]["permission_names"], ["library:manage", "library:read"])

    def test_unknown_permission_is_rejected(self):
        response = self.client.post(
            "/api/roles/",
            {"name": "Wizard", "permissions": ["spells:cast"]},
            format="json",
        )

        self.assertEqual(response.status_code, 400)
        self.assertIn("permissions", response.json()["errors"])

    def test_system_role_cannot_be_deleted(self):
        roles = bootstrap_tenant_roles(self.tenant)

        response = self.client.delete(f"/api/roles/{roles[ROLE_TENANT_ADMIN].pk}/")

        self.assertEqual(response.status_code, 409)

    def test_permissions_are_the_union_over_roles(self):
        user = make_user(self.tenant, "both@alpha.test")
        grant(user, PermissionCode.STUDENTS_READ)
        grant(user, PermissionCode.GRADES_READ, PermissionCode.STUDENTS_READ)

        self.assertEqual(
            get_effective_permissions(user, self.tenant),
            frozenset({"students:read", "grades:read"}),
        )

    def test_assign_and_revoke_role(self):
        user = make_user(self.tenant, "teacher@alpha.test")
        role = make_role(self.tenant, "Teacher", [PermissionCode.STUDENTS_READ])

        assigned = self.client.post(f"/api/users/{user.pk}/roles/", {"role_id": role.pk}, format="json")
        revoked = self.client.delete(f"/api/users/{user.pk}/roles/{role.pk}/")

        self.assertEqual(assigned.status_code, 201)
        self.assertEqual(assigned.json()["data"], ["Teacher"])
        self.assertEqual(revoked.status_code, 200)
        self.assertEqual(revoked.json()["data"], [])

    def test_role_of_another_tenant_cannot_be_assigned(self):
        user = make_user(self.tenant, "teacher@alpha.test")
        foreign = make_role(make_tenant("beta"), "Teacher")

        response = self.client.post(f"/api/users/{user.pk}/roles/", {"role_id": foreign.pk}, format="json")

        self.assertEqual(response.status_code, 404)


class MaintenanceCommandTests(TestCase):
    def test_sync_permissions_prunes_unknown_names(self):
        sync_permission_table()
        Permission.objects.create(name="legacy:thing", resource="legacy", action="thing")

        call_command("sync_permissions", "--prune", stdout=StringIO())

        self.assertFalse(Permission.objects.filter(name="legacy:thing").exists())
        self.assertEqual(Permission.objects.count(), len(PermissionCode))

    def test_bootstrap_tenant_creates_roles_and_admin(self):
        call_command(
            "bootstrap_tenant",
            "gamma",
            "--name",
            "Gamma Secondary",
            "--admin-email",
            "head@gamma.test",
            "--admin-password",
            "Str0ng-pass!",
            stdout=StringIO(),
        )

        tenant = Tenant.objects.get(code="gamma")
        admin = User.objects.get(tenant=tenant, email="head@gamma.test")
        self.assertEqual(Role.all_objects.filter(tenant=tenant, is_system=True).count(), 5)
        self.assertEqual(get_effective_permissions(admin, tenant), frozenset(PermissionCode.values))
