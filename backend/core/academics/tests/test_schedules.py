import csv
import io
from datetime import time, timedelta

from django.test import TestCase
from django.utils import timezone

from academics.models import Schedule, SchoolClass, Subject, Teacher
from audit.models import AuditLog
from tenancy.rbac import PermissionCode
from tenancy.tests.factories import api_client_for, grant, make_tenant, make_user


class ScheduleApiTests(TestCase):
    def setUp(self):
        self.tenant = make_tenant("alpha")
        self.other_tenant = make_tenant("beta")
        self.planner = make_user(self.tenant, "planner@alpha.test")
        grant(
            self.planner,
            PermissionCode.SCHEDULES_CREATE,
            PermissionCode.SCHEDULES_READ,
            PermissionCode.SCHEDULES_UPDATE,
            PermissionCode.SCHEDULES_DELETE,
        )
        self.client = api_client_for(self.planner)
        self.teacher = Teacher.all_objects.create(
            tenant=self.tenant,
            user=make_user(self.tenant, "neema@alpha.test", first_name="Neema", last_name="Kileo"),
            employee_number="EMP-001",
        )
        self.subject = Subject.all_objects.create(tenant=self.tenant, name="Mathematics", code="MATH")
        self.school_class = SchoolClass.all_objects.create(tenant=self.tenant, name="Form One", code="F1")
        self.day = timezone.localdate() + timedelta(days=2)

    def create_schedule(self, **overrides):
        payload = {
            "title": "Algebra",
            "schedule_type": "CLASS",
            "date": self.day.isoformat(),
            "start_time": "08:00",
            "end_time": "09:00",
            "teacher": self.teacher.pk,
            "subject": self.subject.pk,
            "school_class": self.school_class.pk,
            "location": "Room 4",
        }
        payload.update(overrides)
        return self.client.post("/api/schedules/", payload, format="json")

    def test_create_stamps_creator_and_names(self):
        response = self.create_schedule()

        self.assertEqual(response.status_code, 201)
        data = response.json()["data"]
        self.assertEqual(data["status"], Schedule.STATUS_ACTIVE)
        self.assertEqual(data["teacher_name"], "Neema Kileo")
        self.assertEqual(data["created_by"], self.planner.pk)

    def test_end_must_follow_start(self):
        response = self.create_schedule(start_time="10:00", end_time="09:30")

        self.assertEqual(response.status_code, 400)
        self.assertIn("end_time", response.json()["errors"])

    def test_overlapping_slot_for_same_teacher_conflicts(self):
        self.create_schedule()

        overlap = self.create_schedule(title="Geometry", start_time="08:30", end_time="09:30")
        adjacent = self.create_schedule(title="Geometry", start_time="09:00", end_time="10:00")
        cancelled = self.create_schedule(
            title="Statistics",
            start_time="08:15",
            end_time="08:45",
            status="CANCELLED",
        )

        self.assertEqual(overlap.status_code, 409)
        self.assertEqual(adjacent.status_code, 201)
        self.assertEqual(cancelled.status_code, 201)
        self.assertEqual(Schedule.all_objects.count(), 3)

    def test_moving_into_an_occupied_slot_conflicts(self):
        self.create_schedule()
        later_id = self.create_schedule(start_time="11:00", end_time="12:00").json()["data"]["id"]

        response = self.client.patch(
            f"/api/schedules/{later_id}/",
            {"start_time": "08:45"},
            format="json",
        )
        retimed = self.client.patch(
            f"/api/schedules/{later_id}/",
            {"start_time": "10:30"},
            format="json",
        )

        self.assertEqual(response.status_code, 409)
        self.assertEqual(retimed.status_code, 200)
        self.assertEqual(Schedule.all_objects.get(pk=later_id).start_time, time(10, 30))

    def test_foreign_teacher_is_rejected(self):
        foreign = Teacher.all_objects.create(
            tenant=self.other_tenant,
            user=make_user(self.other_tenant, "t@beta.test"),
            employee_number="EMP-001",
        )

        response = self.create_schedule(teacher=foreign.pk)

        self.assertEqual(response.status_code, 400)
        self.assertIn("teacher", response.json()["errors"])

    def test_stats_counts_by_type_and_status(self):
        self.create_schedule()
        self.create_schedule(title="Staff meeting", schedule_type="MEETING", teacher=None, status="DRAFT")
        Schedule.all_objects.create(
            tenant=self.other_tenant,
            title="Elsewhere",
            date=self.day,
            start_time=time(8),
            end_time=time(9),
        )

        response = self.client.get("/api/schedules/stats/")

        self.assertEqual(response.status_code, 200)
        data = response.json()["data"]
        self.assertEqual(data["total"], 2)
        self.assertEqual(data["active"], 1)
        self.assertEqual(data["upcoming"], 2)
        self.assertEqual(data["today"], 0)
        self.assertEqual(data["by_type"], {"CLASS": 1, "MEETING": 1})
        self.assertEqual(data["by_status"], {"ACTIVE": 1, "DRAFT": 1})

    def test_export_is_a_csv_attachment_and_audited(self):
        self.create_schedule()

        response = self.client.get("/api/schedules/export/", {"type": "CLASS"})

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response["Content-Type"], "text/csv")
        self.assertIn("attachment;", response["Content-Disposition"])
        rows = list(csv.reader(io.StringIO(response.content.decode())))
        self.assertEqual(rows[0][0], "Title")
        self.assertEqual(rows[1][:5], ["Algebra", "CLASS", self.day.isoformat(), "08:00", "09:00"])
        self.assertEqual(rows[1][5], "Mathematics (MATH)")
        self.assertTrue(AuditLog.all_objects.filter(tenant=self.tenant, action=AuditLog.ACTION_EXPORT).exists())
