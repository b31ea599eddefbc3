from django.test import TestCase, override_settings

from academics.models import SchoolClass
from accounts.services import assign_role, bootstrap_tenant_roles, sync_permission_table
from tenancy.rbac import ROLE_TEACHER, PermissionCode
from tenancy.tests.factories import api_client_for, grant, make_tenant, make_user


class CorrelationIdTests(TestCase):
    def test_incoming_correlation_id_is_echoed(self):
        response = self.client.get("/healthz/", HTTP_X_CORRELATION_ID="corr-test-001")
        self.assertEqual(response["X-Correlation-ID"], "corr-test-001")

    def test_malformed_correlation_id_is_replaced(self):
        response = self.client.get("/healthz/", HTTP_X_CORRELATION_ID="bad id with spaces")
        self.assertNotEqual(response["X-Correlation-ID"], "bad id with spaces")
        self.assertTrue(response["X-Correlation-ID"])


class AuthenticationTests(TestCase):
    def setUp(self):
        self.tenant = make_tenant("alpha")
        self.user = make_user(self.tenant, "teacher@alpha.test")
        grant(self.user, PermissionCode.CLASSES_READ)

    def test_missing_token_is_unauthorized(self):
        response = api_client_for().get("/api/classes/")

        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()["success"], False)

    def test_garbage_token_is_unauthorized(self):
        client = api_client_for()
        client.credentials(HTTP_AUTHORIZATION="Bearer not-a-token")

        response = client.get("/api/classes/")

        self.assertEqual(response.status_code, 401)

    def test_tenant_header_matching_token_is_accepted(self):
        response = api_client_for(self.user, HTTP_X_TENANT_ID="alpha").get("/api/classes/")
        self.assertEqual(response.status_code, 200)

    def test_tenant_header_for_another_tenant_is_forbidden(self):
        make_tenant("beta")

        response = api_client_for(self.user, HTTP_X_TENANT_ID="beta").get("/api/classes/")

        self.assertEqual(response.status_code, 403)
        self.assertFalse(response.json()["success"])

    def test_inactive_tenant_rejects_valid_token(self):
        client = api_client_for(self.user)
        self.tenant.is_active = False
        self.tenant.save()

        response = client.get("/api/classes/")

        self.assertEqual(response.status_code, 401)


class PaginationTests(TestCase):
    def setUp(self):
        self.tenant = make_tenant("alpha")
        self.user = make_user(self.tenant, "admin@alpha.test")
        grant(self.user, PermissionCode.CLASSES_READ)
        self.client = api_client_for(self.user)
        for index in range(5):
            SchoolClass.all_objects.create(tenant=self.tenant, name=f"Form {index}", code=f"F{index}")

    def test_page_math(self):
        response = self.client.get("/api/classes/?page=2&limit=2")

        body = response.json()
        self.assertEqual(body["pagination"], {"page": 2, "limit": 2, "total": 5, "pages": 3})
        self.assertEqual([item["name"] for item in body["data"]], ["Form 2", "Form 3"])

    def test_page_past_the_end_is_empty(self):
        body = self.client.get("/api/classes/?page=9&limit=2").json()

        self.assertEqual(body["data"], [])
        self.assertEqual(body["pagination"]["total"], 5)

    @override_settings(API_MAX_PAGE_SIZE=3)
    def test_limit_is_capped(self):
        body = self.client.get("/api/classes/?limit=50").json()

        self.assertEqual(body["pagination"]["limit"], 3)
        self.assertEqual(len(body["data"]), 3)

    def test_invalid_page_is_rejected(self):
        response = self.client.get("/api/classes/?page=0")
        self.assertEqual(response.status_code, 400)


class TenantIsolationTests(TestCase):
    def test_rows_of_other_tenants_are_invisible(self):
        alpha = make_tenant("alpha")
        beta = make_tenant("beta")
        user = make_user(alpha, "admin@alpha.test")
        grant(user, PermissionCode.CLASSES_READ)
        SchoolClass.all_objects.create(tenant=alpha, name="Alpha One", code="A1")
        foreign = SchoolClass.all_objects.create(tenant=beta, name="Beta One", code="B1")
        client = api_client_for(user)

        listing = client.get("/api/classes/").json()
        detail = client.get(f"/api/classes/{foreign.pk}/")

        self.assertEqual([item["name"] for item in listing["data"]], ["Alpha One"])
        self.assertEqual(detail.status_code, 404)


class TeacherRoleTests(TestCase):
    def setUp(self):
        sync_permission_table()
        self.tenant = make_tenant("alpha")
        roles = bootstrap_tenant_roles(self.tenant)
        self.teacher = make_user(self.tenant, "teacher@alpha.test")
        assign_role(self.teacher, roles[ROLE_TEACHER])
        self.client = api_client_for(self.teacher)

    def test_teacher_can_list_students(self):
        response = self.client.get("/api/students/")
        self.assertEqual(response.status_code, 200)

    def test_teacher_cannot_delete_classes(self):
        school_class = SchoolClass.all_objects.create(tenant=self.tenant, name="Form One", code="F1")

        response = self.client.delete(f"/api/classes/{school_class.pk}/")

        self.assertEqual(response.status_code, 403)
        self.assertTrue(SchoolClass.all_objects.filter(pk=school_class.pk).exists())
