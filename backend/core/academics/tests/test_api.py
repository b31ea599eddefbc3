import csv
import io
from datetime import date
from decimal import Decimal

from django.test import TestCase

from academics.models import Examination, Grade, SchoolClass, Student, Subject
from accounts.models import User
from tenancy.rbac import PermissionCode
from tenancy.tests.factories import api_client_for, grant, make_tenant, make_user


class StudentApiTests(TestCase):
    def setUp(self):
        self.tenant = make_tenant("alpha")
        self.other_tenant = make_tenant("beta")
        self.admin = make_user(self.tenant, "admin@alpha.test")
        grant(
            self.admin,
            PermissionCode.STUDENTS_CREATE,
            PermissionCode.STUDENTS_READ,
            PermissionCode.STUDENTS_UPDATE,
            PermissionCode.STUDENTS_DELETE,
        )
        self.client = api_client_for(self.admin)
        self.school_class = SchoolClass.all_objects.create(tenant=self.tenant, name="Form One", code="F1")

    def _payload(self, **overrides):
        payload = {
            "first_name": "Asha",
            "last_name": "Mrema",
            "email": "asha@alpha.test",
            "student_number": "STU-001",
            "date_of_birth": "2010-04-12",
            "gender": "FEMALE",
            "current_class": self.school_class.pk,
        }
        payload.update(overrides)
        return payload

    def test_create_student_creates_user_and_profile(self):
        response = self.client.post("/api/students/", self._payload(), format="json")

        self.assertEqual(response.status_code, 201)
        body = response.json()
        self.assertTrue(body["success"])
        self.assertEqual(body["message"], "Student created successfully.")
        self.assertEqual(body["data"]["full_name"], "Asha Mrema")
        student = Student.all_objects.get(pk=body["data"]["id"])
        self.assertEqual(student.tenant, self.tenant)
        self.assertEqual(student.user.tenant, self.tenant)
        self.assertEqual(student.user.email, "asha@alpha.test")

    def test_duplicate_student_number_conflicts(self):
        self.client.post("/api/students/", self._payload(), format="json")
        response = self.client.post(
            "/api/students/",
            self._payload(email="other@alpha.test"),
            format="json",
        )

        self.assertEqual(response.status_code, 409)
        self.assertFalse(response.json()["success"])
        self.assertEqual(User.objects.filter(email="other@alpha.test").count(), 0)

    def test_foreign_class_reference_is_rejected(self):
        foreign_class = SchoolClass.all_objects.create(tenant=self.other_tenant, name="Std 7", code="S7")
        response = self.client.post(
            "/api/students/",
            self._payload(current_class=foreign_class.pk),
            format="json",
        )

        self.assertEqual(response.status_code, 400)
        self.assertIn("current_class", response.json()["errors"])

    def test_list_search_and_pagination(self):
        for index, first_name in enumerate(("Asha", "Baraka", "Chausiku")):
            self.client.post(
                "/api/students/",
                self._payload(
                    first_name=first_name,
                    email=f"s{index}@alpha.test",
                    student_number=f"STU-{index}",
                ),
                format="json",
            )

        response = self.client.get("/api/students/", {"search": "BARAKA"})
        body = response.json()
        self.assertEqual(response.status_code, 200)
        self.assertEqual([item["first_name"] for item in body["data"]], ["Baraka"])

        response = self.client.get("/api/students/", {"page": 2, "limit": 2})
        body = response.json()
        self.assertEqual(len(body["data"]), 1)
        self.assertEqual(body["pagination"], {"page": 2, "limit": 2, "total": 3, "pages": 2})

    def test_other_tenant_student_is_not_found(self):
        outsider = make_user(self.other_tenant, "kid@beta.test")
        foreign = Student.all_objects.create(
            tenant=self.other_tenant,
            user=outsider,
            student_number="B-1",
            date_of_birth=date(2011, 1, 1),
            gender=Student.GENDER_MALE,
        )

        self.assertEqual(self.client.get(f"/api/students/{foreign.pk}/").status_code, 404)
        self.assertEqual(self.client.delete(f"/api/students/{foreign.pk}/").status_code, 404)
        self.assertTrue(Student.all_objects.filter(pk=foreign.pk).exists())

    def test_delete_removes_student_and_user(self):
        created = self.client.post("/api/students/", self._payload(), format="json").json()["data"]

        response = self.client.delete(f"/api/students/{created['id']}/")

        self.assertEqual(response.status_code, 200)
        self.assertIsNone(response.json()["data"])
        self.assertFalse(Student.all_objects.filter(pk=created["id"]).exists())
        self.assertFalse(User.objects.filter(email="asha@alpha.test").exists())

    def test_class_students_accepts_classes_read_alone(self):
        teacher = make_user(self.tenant, "teacher@alpha.test")
        grant(teacher, PermissionCode.CLASSES_READ)
        self.client.post("/api/students/", self._payload(), format="json")

        response = api_client_for(teacher).get(f"/api/classes/{self.school_class.pk}/students/")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["pagination"]["total"], 1)

    def test_missing_permission_is_forbidden(self):
        clerk = make_user(self.tenant, "clerk@alpha.test")
        grant(clerk, PermissionCode.SUBJECTS_READ)

        response = api_client_for(clerk).get("/api/students/")

        self.assertEqual(response.status_code, 403)
        self.assertFalse(response.json()["success"])


class GradeApiTests(TestCase):
    def setUp(self):
        self.tenant = make_tenant("alpha")
        self.teacher = make_user(self.tenant, "teacher@alpha.test")
        grant(
            self.teacher,
            PermissionCode.GRADES_CREATE,
            PermissionCode.GRADES_READ,
            PermissionCode.GRADES_UPDATE,
            PermissionCode.EXAMINATIONS_UPDATE,
        )
        self.client = api_client_for(self.teacher)
        self.subject = Subject.all_objects.create(tenant=self.tenant, name="Mathematics", code="MATH")
        self.exam = Examination.all_objects.create(
            tenant=self.tenant,
            name="Mid-term Maths",
            exam_type=Examination.TYPE_MID_TERM,
            subject=self.subject,
            start_date=date(2024, 6, 3),
            max_marks=50,
        )
        student_user = make_user(self.tenant, "pupil@alpha.test", first_name="Neema", last_name="Juma")
        self.student = Student.all_objects.create(
            tenant=self.tenant,
            user=student_user,
            student_number="STU-9",
            date_of_birth=date(2010, 2, 2),
            gender=Student.GENDER_FEMALE,
        )

    def _record(self, raw_marks="41"):
        return self.client.post(
            "/api/examinations/grades/",
            {"examination": self.exam.pk, "student": self.student.pk, "raw_marks": raw_marks},
            format="json",
        )

    def test_grade_is_scored_from_raw_marks(self):
        response = self._record()

        self.assertEqual(response.status_code, 201)
        grade = Grade.all_objects.get()
        self.assertEqual(grade.percentage, Decimal("82.00"))
        self.assertEqual(grade.grade, "A")
        self.assertEqual(grade.points, Decimal("7.00"))
        self.assertEqual(grade.created_by, self.teacher)

    def test_duplicate_grade_conflicts(self):
        self._record()
        self.assertEqual(self._record("30").status_code, 409)

    def test_marks_above_maximum_are_rejected(self):
        response = self._record("51")

        self.assertEqual(response.status_code, 400)
        self.assertIn("raw_marks", response.json()["errors"])
        self.assertFalse(Grade.all_objects.exists())

    def test_update_rescores(self):
        grade_id = self._record().json()["data"]["id"]

        response = self.client.patch(
            f"/api/examinations/grades/{grade_id}/",
            {"raw_marks": "25"},
            format="json",
        )

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["data"]["grade"], "C")

    def test_changing_max_marks_rescores_existing_grades(self):
        self._record()

        response = self.client.patch(
            f"/api/examinations/{self.exam.pk}/",
            {"max_marks": 100},
            format="json",
        )

        self.assertEqual(response.status_code, 200)
        grade = Grade.all_objects.get()
        self.assertEqual(grade.percentage, Decimal("41.00"))
        self.assertEqual(grade.grade, "C")

    def test_export_writes_csv(self):
        self._record()

        response = self.client.get("/api/examinations/grades/export/", {"examination_id": self.exam.pk})

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response["Content-Type"], "text/csv")
        self.assertIn("grades-export-", response["Content-Disposition"])
        rows = list(csv.reader(io.StringIO(response.content.decode())))
        self.assertEqual(rows[0][0], "Student Name")
        self.assertEqual(rows[1][0], "Neema Juma")
        self.assertEqual(rows[1][6], "82.0")
        self.assertEqual(len(rows), 2)
