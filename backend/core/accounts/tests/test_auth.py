import time
from unittest import mock

from django.test import TestCase, override_settings

from accounts.models import User
from accounts.tokens import issue_access_token, verify_access_token
from audit.models import AuditLog
from tenancy.exceptions import CredentialExpired, InvalidCredential
from tenancy.rbac import PermissionCode
from tenancy.tests.factories import DEFAULT_PASSWORD, api_client_for, grant, make_tenant, make_user


class LoginTests(TestCase):
    def setUp(self):
        self.tenant = make_tenant("alpha")
        self.user = make_user(self.tenant, "teacher@alpha.test")
        grant(self.user, PermissionCode.STUDENTS_READ, role_name="Teacher")

    def login(self, **payload):
        payload.setdefault("email", "teacher@alpha.test")
        payload.setdefault("password", DEFAULT_PASSWORD)
        return api_client_for().post("/api/auth/login/", payload, format="json")

    def test_login_returns_token_and_profile(self):
        response = self.login()

        self.assertEqual(response.status_code, 200)
        data = response.json()["data"]
        self.assertEqual(data["token_type"], "Bearer")
        self.assertEqual(data["profile"]["tenant"]["code"], "alpha")
        self.assertEqual(data["profile"]["roles"], ["Teacher"])
        self.assertEqual(data["profile"]["permissions"], ["students:read"])
        claims = verify_access_token(data["token"])
        self.assertEqual(claims.user_id, self.user.pk)
        self.assertEqual(claims.tenant_id, self.tenant.pk)

    def test_wrong_password_is_unauthorized_and_audited(self):
        response = self.login(password="nope")

        self.assertEqual(response.status_code, 401)
        self.assertEqual(response["WWW-Authenticate"], 'Bearer realm="api"')
        self.assertEqual(response.json()["message"], "Invalid email or password.")
        entry = AuditLog.all_objects.get(action=AuditLog.ACTION_LOGIN)
        self.assertEqual(entry.status, AuditLog.STATUS_FAILURE)
        self.assertEqual(entry.actor_email, "teacher@alpha.test")

    def test_unknown_email_gets_the_same_answer(self):
        response = self.login(email="ghost@alpha.test")

        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()["message"], "Invalid email or password.")

    def test_email_in_two_schools_needs_tenant_code(self):
        beta = make_tenant("beta")
        make_user(beta, "teacher@alpha.test")

        ambiguous = self.login()
        scoped = self.login(tenant="beta")

        self.assertEqual(ambiguous.status_code, 401)
        self.assertEqual(scoped.status_code, 200)
        self.assertEqual(scoped.json()["data"]["profile"]["tenant"]["code"], "beta")

    def test_suspended_user_cannot_login(self):
        self.user.status = User.STATUS_SUSPENDED
        self.user.save()

        self.assertEqual(self.login().status_code, 401)


class ProfileTests(TestCase):
    def setUp(self):
        self.tenant = make_tenant("alpha")
        self.user = make_user(self.tenant, "clerk@alpha.test")
        grant(self.user, PermissionCode.FEES_READ, PermissionCode.INVOICES_READ)

    def test_profile_lists_effective_permissions(self):
        response = api_client_for(self.user).get("/api/auth/profile/")

        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertTrue(body["success"])
        self.assertEqual(body["data"]["permissions"], ["fees:read", "invoices:read"])
        self.assertEqual(body["data"]["user"]["email"], "clerk@alpha.test")

    def test_refresh_issues_a_new_token(self):
        response = api_client_for(self.user).post("/api/auth/refresh/")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(verify_access_token(response.json()["data"]["token"]).user_id, self.user.pk)


class TokenVerificationTests(TestCase):
    def setUp(self):
        self.tenant = make_tenant("alpha")
        self.user = make_user(self.tenant, "user@alpha.test")

    def test_tampered_token_is_rejected(self):
        token = issue_access_token(self.user).token
        tampered = token[:-1] + ("A" if token[-1] != "A" else "B")

        with self.assertRaises(InvalidCredential):
            verify_access_token(tampered)

    @override_settings(ACCESS_TOKEN_TTL_SECONDS=60)
    def test_expired_token_is_rejected(self):
        with mock.patch("django.core.signing.time.time", return_value=time.time() - 3600):
            token = issue_access_token(self.user).token

        with self.assertRaises(CredentialExpired):
            verify_access_token(token)

    @override_settings(ACCESS_TOKEN_TTL_SECONDS=60)
    def test_expired_token_maps_to_unauthorized(self):
        with mock.patch("django.core.signing.time.time", return_value=time.time() - 3600):
            token = issue_access_token(self.user).token
        client = api_client_for()
        client.credentials(HTTP_AUTHORIZATION=f"Bearer {token}")

        response = client.get("/api/auth/profile/")

        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()["message"], "Session expired. Please sign in again.")

    def test_token_of_deactivated_user_is_rejected(self):
        client = api_client_for(self.user)
        self.user.is_active = False
        self.user.save()

        self.assertEqual(client.get("/api/auth/profile/").status_code, 401)
