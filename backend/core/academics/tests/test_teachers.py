from django.test import TestCase

from academics.models import Subject, Teacher, TeacherSubject
from accounts.models import User, UserRole
from tenancy.rbac import PermissionCode
from tenancy.tests.factories import api_client_for, grant, make_role, make_tenant, make_user


class TeacherApiTests(TestCase):
    def setUp(self):
        self.tenant = make_tenant("alpha")
        self.other_tenant = make_tenant("beta")
        self.admin = make_user(self.tenant, "admin@alpha.test")
        grant(
            self.admin,
            PermissionCode.TEACHERS_CREATE,
            PermissionCode.TEACHERS_READ,
            PermissionCode.TEACHERS_UPDATE,
            PermissionCode.TEACHERS_DELETE,
        )
        self.client = api_client_for(self.admin)
        self.maths = Subject.all_objects.create(tenant=self.tenant, name="Mathematics", code="MATH")

    def _payload(self, **overrides):
        payload = {
            "first_name": "Neema",
            "last_name": "Kileo",
            "email": "Neema@Alpha.test",
            "employee_number": "EMP-001",
            "gender": "FEMALE",
            "qualification": "BSc Education",
            "specialization": "Mathematics",
            "experience_years": "4",
        }
        payload.update(overrides)
        return payload

    def create_teacher(self, **overrides):
        return self.client.post("/api/teachers/", self._payload(**overrides), format="json")

    def test_create_teacher_creates_user_and_grants_teacher_role(self):
        role = make_role(self.tenant, "Teacher", [PermissionCode.STUDENTS_READ])

        response = self.create_teacher()

        self.assertEqual(response.status_code, 201)
        body = response.json()
        self.assertEqual(body["message"], "Teacher created successfully.")
        self.assertEqual(body["data"]["full_name"], "Neema Kileo")
        self.assertEqual(body["data"]["experience_years"], 4)
        self.assertEqual(body["data"]["subjects"], [])
        teacher = Teacher.all_objects.get(pk=body["data"]["id"])
        self.assertEqual(teacher.tenant, self.tenant)
        self.assertEqual(teacher.user.email, "neema@alpha.test")
        self.assertTrue(UserRole.all_objects.filter(user=teacher.user, role=role).exists())

    def test_duplicate_employee_number_conflicts_without_creating_user(self):
        self.create_teacher()
        response = self.create_teacher(email="other@alpha.test")

        self.assertEqual(response.status_code, 409)
        self.assertFalse(User.objects.filter(email="other@alpha.test").exists())

    def test_update_changes_user_and_profile_fields(self):
        teacher_id = self.create_teacher().json()["data"]["id"]

        response = self.client.patch(
            f"/api/teachers/{teacher_id}/",
            {"last_name": "Mushi", "status": "ON_LEAVE"},
            format="json",
        )

        self.assertEqual(response.status_code, 200)
        teacher = Teacher.all_objects.select_related("user").get(pk=teacher_id)
        self.assertEqual(teacher.user.last_name, "Mushi")
        self.assertEqual(teacher.status, Teacher.STATUS_ON_LEAVE)

    def test_delete_removes_profile_and_user(self):
        teacher_id = self.create_teacher().json()["data"]["id"]
        user_id = Teacher.all_objects.get(pk=teacher_id).user_id

        response = self.client.delete(f"/api/teachers/{teacher_id}/")

        self.assertEqual(response.status_code, 200)
        self.assertFalse(Teacher.all_objects.filter(pk=teacher_id).exists())
        self.assertFalse(User.objects.filter(pk=user_id).exists())

    def test_subject_assignment_lifecycle(self):
        teacher_id = self.create_teacher().json()["data"]["id"]
        url = f"/api/teachers/{teacher_id}/subjects/"

        assigned = self.client.post(url, {"subject": self.maths.pk}, format="json")
        again = self.client.post(url, {"subject": self.maths.pk}, format="json")
        listed = self.client.get(url)
        detail = self.client.get(f"/api/teachers/{teacher_id}/")

        self.assertEqual(assigned.status_code, 201)
        self.assertEqual(again.status_code, 409)
        self.assertEqual([row["code"] for row in listed.json()["data"]], ["MATH"])
        self.assertEqual(detail.json()["data"]["subjects"][0]["id"], self.maths.pk)

        removed = self.client.delete(f"{url}{self.maths.pk}/")
        missing = self.client.delete(f"{url}{self.maths.pk}/")

        self.assertEqual(removed.status_code, 200)
        self.assertEqual(missing.status_code, 404)
        self.assertFalse(TeacherSubject.all_objects.exists())

    def test_foreign_subject_cannot_be_assigned(self):
        teacher_id = self.create_teacher().json()["data"]["id"]
        foreign = Subject.all_objects.create(tenant=self.other_tenant, name="Physics", code="PHY")

        response = self.client.post(
            f"/api/teachers/{teacher_id}/subjects/",
            {"subject": foreign.pk},
            format="json",
        )

        self.assertEqual(response.status_code, 400)
        self.assertIn("subject", response.json()["errors"])

    def test_list_filters_by_subject(self):
        first_id = self.create_teacher().json()["data"]["id"]
        self.create_teacher(email="juma@alpha.test", employee_number="EMP-002", first_name="Juma")
        self.client.post(f"/api/teachers/{first_id}/subjects/", {"subject": self.maths.pk}, format="json")

        response = self.client.get("/api/teachers/", {"subject_id": self.maths.pk})

        self.assertEqual(response.status_code, 200)
        self.assertEqual([row["id"] for row in response.json()["data"]], [first_id])
        self.assertEqual(response.json()["pagination"]["total"], 1)

    def test_cross_tenant_teacher_is_not_found(self):
        outsider = make_user(self.other_tenant, "t@beta.test")
        foreign = Teacher.all_objects.create(
            tenant=self.other_tenant,
            user=outsider,
            employee_number="EMP-001",
        )

        self.assertEqual(self.client.get(f"/api/teachers/{foreign.pk}/").status_code, 404)
        self.assertEqual(
            self.client.post(
                f"/api/teachers/{foreign.pk}/subjects/",
                {"subject": self.maths.pk},
                format="json",
            ).status_code,
            404,
        )

    def test_reading_requires_teachers_read(self):
        reader = make_user(self.tenant, "clerk@alpha.test")
        grant(reader, PermissionCode.STUDENTS_READ)

        response = api_client_for(reader).get("/api/teachers/")

        self.assertEqual(response.status_code, 403)
