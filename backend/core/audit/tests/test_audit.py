from django.core.exceptions import ValidationError
from django.test import TestCase

from audit.models import AuditLog
from audit.services import record_audit_event, snapshot_instance
from tenancy.rbac import PermissionCode
from tenancy.tests.factories import api_client_for, grant, make_tenant, make_user


class AuditLogModelTests(TestCase):
    def setUp(self):
        self.tenant = make_tenant("alpha")
        self.user = make_user(self.tenant, "admin@alpha.test")

    def test_entries_cannot_be_updated(self):
        entry = record_audit_event(
            tenant=self.tenant,
            actor=self.user,
            action=AuditLog.ACTION_SYSTEM,
            resource="Tenant",
        )
        entry.resource = "Changed"

        with self.assertRaises(ValidationError):
            entry.save()

    def test_entries_cannot_be_deleted(self):
        entry = record_audit_event(
            tenant=self.tenant,
            actor=self.user,
            action=AuditLog.ACTION_SYSTEM,
            resource="Tenant",
        )

        with self.assertRaises(ValidationError):
            entry.delete()
        self.assertTrue(AuditLog.all_objects.filter(pk=entry.pk).exists())

    def test_actor_email_is_copied_from_the_actor(self):
        entry = record_audit_event(
            tenant=self.tenant,
            actor=self.user,
            action=AuditLog.ACTION_SYSTEM,
            resource="Tenant",
        )
        self.assertEqual(entry.actor_email, "admin@alpha.test")

    def test_snapshot_leaves_out_password_and_tenant(self):
        snapshot = snapshot_instance(self.user)

        self.assertNotIn("password", snapshot)
        self.assertNotIn("tenant", snapshot)
        self.assertEqual(snapshot["email"], "admin@alpha.test")


class AuditLogApiTests(TestCase):
    def setUp(self):
        self.tenant = make_tenant("alpha")
        self.admin = make_user(self.tenant, "admin@alpha.test")
        grant(self.admin, PermissionCode.AUDIT_LOGS_READ, PermissionCode.ROLES_CREATE)
        self.client = api_client_for(self.admin)

    def test_api_writes_are_recorded_with_correlation_id(self):
        self.client.post(
            "/api/roles/",
            {"name": "Bursar", "permissions": ["fees:read"]},
            format="json",
            HTTP_X_CORRELATION_ID="corr-audit-1",
        )

        entry = AuditLog.all_objects.get(action=AuditLog.ACTION_CREATE)
        self.assertEqual(entry.tenant, self.tenant)
        self.assertEqual(entry.actor, self.admin)
        self.assertEqual(entry.resource, "Role")
        self.assertEqual(entry.correlation_id, "corr-audit-1")
        self.assertEqual(entry.request_method, "POST")
        self.assertEqual(entry.data_after["name"], "Bursar")

    def test_listing_filters_by_action_and_hides_other_tenants(self):
        other = make_tenant("beta")
        record_audit_event(tenant=other, actor=None, action=AuditLog.ACTION_SYSTEM, resource="Tenant")
        record_audit_event(tenant=self.tenant, actor=self.admin, action=AuditLog.ACTION_EXPORT, resource="Grade")
        record_audit_event(tenant=self.tenant, actor=self.admin, action=AuditLog.ACTION_SYSTEM, resource="Tenant")

        everything = self.client.get("/api/audit-logs/").json()
        exports = self.client.get("/api/audit-logs/?action=export").json()

        self.assertEqual(everything["pagination"]["total"], 2)
        self.assertEqual([item["resource"] for item in exports["data"]], ["Grade"])

    def test_reading_requires_audit_permission(self):
        clerk = make_user(self.tenant, "clerk@alpha.test")
        grant(clerk, PermissionCode.ROLES_READ)

        response = api_client_for(clerk).get("/api/audit-logs/")

        self.assertEqual(response.status_code, 403)
