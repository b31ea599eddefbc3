from django.test import TestCase

from audit.models import AuditLog
from hostel.models import Hostel, MaintenanceRequest
from tenancy.rbac import PermissionCode
from tenancy.tests.factories import api_client_for, grant, make_tenant, make_user


class HostelTestCase(TestCase):
    def setUp(self):
        self.tenant = make_tenant("alpha")
        self.manager = make_user(self.tenant, "warden@alpha.test")
        grant(self.manager, PermissionCode.HOSTEL_READ, PermissionCode.HOSTEL_MANAGE)
        self.viewer = make_user(self.tenant, "viewer@alpha.test")
        grant(self.viewer, PermissionCode.HOSTEL_READ)
        self.client = api_client_for(self.manager)
        self.hostel = Hostel.all_objects.create(
            tenant=self.tenant,
            name="Kilimanjaro House",
            gender=Hostel.GENDER_BOYS,
            total_capacity=40,
            warden_name="Juma Ally",
            warden_email="juma@alpha.test",
        )

    def make_request(self, **extra):
        extra.setdefault("title", "Leaking tap")
        return MaintenanceRequest.all_objects.create(
            tenant=self.tenant,
            hostel=self.hostel,
            reported_by=self.manager,
            **extra,
        )


class HostelApiTests(HostelTestCase):
    def test_create_hostel(self):
        response = self.client.post(
            "/api/hostel/hostels/",
            {
                "name": "Serengeti House",
                "gender": "GIRLS",
                "total_capacity": 30,
                "warden_name": "Asha Said",
                "warden_email": "asha@alpha.test",
            },
            format="json",
        )

        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()["data"]["status"], Hostel.STATUS_ACTIVE)

    def test_duplicate_name_is_a_conflict(self):
        response = self.client.post(
            "/api/hostel/hostels/",
            {
                "name": "Kilimanjaro House",
                "total_capacity": 10,
                "warden_name": "X",
                "warden_email": "x@alpha.test",
            },
            format="json",
        )
        self.assertEqual(response.status_code, 409)

    def test_inactive_hostels_hidden_unless_filtered(self):
        Hostel.all_objects.create(
            tenant=self.tenant,
            name="Closed Wing",
            total_capacity=5,
            warden_name="Y",
            warden_email="y@alpha.test",
            status=Hostel.STATUS_INACTIVE,
        )

        default = self.client.get("/api/hostel/hostels/").json()
        inactive = self.client.get("/api/hostel/hostels/?status=inactive").json()

        self.assertEqual([item["name"] for item in default["data"]], ["Kilimanjaro House"])
        self.assertEqual([item["name"] for item in inactive["data"]], ["Closed Wing"])

    def test_viewer_cannot_change_hostel(self):
        response = api_client_for(self.viewer).patch(
            f"/api/hostel/hostels/{self.hostel.pk}/",
            {"total_capacity": 1},
            format="json",
        )
        self.assertEqual(response.status_code, 403)

    def test_hostel_with_maintenance_history_cannot_be_deleted(self):
        self.make_request()
        response = self.client.delete(f"/api/hostel/hostels/{self.hostel.pk}/")
        self.assertEqual(response.status_code, 409)
        self.assertTrue(Hostel.all_objects.filter(pk=self.hostel.pk).exists())

    def test_other_tenant_hostel_is_not_found(self):
        other = make_tenant("beta")
        foreign = Hostel.all_objects.create(
            tenant=other,
            name="Foreign",
            total_capacity=5,
            warden_name="Z",
            warden_email="z@beta.test",
        )
        response = self.client.get(f"/api/hostel/hostels/{foreign.pk}/")
        self.assertEqual(response.status_code, 404)


class MaintenanceApiTests(HostelTestCase):
    def test_report_defaults_to_open(self):
        response = self.client.post(
            "/api/hostel/maintenance/",
            {"hostel": self.hostel.pk, "title": "Broken bulb", "maintenance_type": "ELECTRICAL"},
            format="json",
        )

        self.assertEqual(response.status_code, 201)
        data = response.json()["data"]
        self.assertEqual(data["status"], MaintenanceRequest.STATUS_OPEN)
        self.assertEqual(data["reported_by"], self.manager.pk)

    def test_progress_then_resolve(self):
        maintenance = self.make_request()
        url = f"/api/hostel/maintenance/{maintenance.pk}/"

        started = self.client.patch(url, {"status": "IN_PROGRESS", "vendor": "Fundi Co"}, format="json")
        resolved = self.client.patch(url, {"status": "RESOLVED"}, format="json")

        self.assertEqual(started.status_code, 200)
        self.assertEqual(resolved.status_code, 200)
        maintenance.refresh_from_db()
        self.assertEqual(maintenance.status, MaintenanceRequest.STATUS_RESOLVED)
        self.assertEqual(maintenance.vendor, "Fundi Co")
        self.assertEqual(maintenance.resolved_by, self.manager)
        self.assertIsNotNone(maintenance.completed_at)
        self.assertEqual(
            AuditLog.all_objects.filter(action=AuditLog.ACTION_TRANSITION, resource_id=str(maintenance.pk)).count(),
            2,
        )

    def test_cannot_skip_to_resolved(self):
        maintenance = self.make_request()
        response = self.client.patch(
            f"/api/hostel/maintenance/{maintenance.pk}/",
            {"status": "RESOLVED"},
            format="json",
        )
        self.assertEqual(response.status_code, 409)

    def test_closed_request_cannot_be_edited(self):
        maintenance = self.make_request(status=MaintenanceRequest.STATUS_CANCELLED)
        response = self.client.patch(
            f"/api/hostel/maintenance/{maintenance.pk}/",
            {"notes": "late"},
            format="json",
        )
        self.assertEqual(response.status_code, 409)

    def test_filter_by_priority(self):
        urgent = self.make_request(priority=MaintenanceRequest.PRIORITY_URGENT)
        self.make_request(priority=MaintenanceRequest.PRIORITY_LOW)

        response = self.client.get("/api/hostel/maintenance/?priority=urgent")

        self.assertEqual([item["id"] for item in response.json()["data"]], [urgent.pk])
