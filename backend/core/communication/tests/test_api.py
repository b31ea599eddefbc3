from datetime import timedelta

from django.test import TestCase
from django.utils import timezone

from communication.models import Announcement, CommunicationLog, Message, MessageTemplate
from communication.services import send_message
from tenancy.rbac import ROLE_STUDENT, ROLE_TEACHER, PermissionCode
from tenancy.tests.factories import api_client_for, grant, make_tenant, make_user


class MessagingTestCase(TestCase):
    def setUp(self):
        self.tenant = make_tenant("alpha")
        self.other_tenant = make_tenant("beta")
        self.teacher = make_user(self.tenant, "teacher@alpha.test")
        self.parent = make_user(self.tenant, "parent@alpha.test")
        self.student = make_user(self.tenant, "student@alpha.test")
        self.outsider = make_user(self.other_tenant, "outsider@beta.test")
        for user in (self.teacher, self.parent, self.student):
            grant(
                user,
                PermissionCode.MESSAGES_CREATE,
                PermissionCode.MESSAGES_READ,
                PermissionCode.MESSAGES_DELETE,
            )
        self.client = api_client_for(self.teacher)

    def send(self, sender, recipient, **extra):
        extra.setdefault("content", "Hello")
        return send_message(tenant=self.tenant, sender=sender, recipient=recipient, **extra)


class BulkMessageTests(MessagingTestCase):
    def test_foreign_recipient_is_skipped_and_reported(self):
        response = self.client.post(
            "/api/messages/bulk/",
            {
                "recipient_ids": [self.parent.pk, self.student.pk, self.outsider.pk],
                "subject": "Trip",
                "content": "Bus leaves at 8.",
            },
            format="json",
        )

        self.assertEqual(response.status_code, 201)
        data = response.json()["data"]
        self.assertEqual(data["messages_sent"], 2)
        self.assertEqual(data["skipped_recipient_ids"], [self.outsider.pk])
        messages = Message.all_objects.filter(tenant=self.tenant)
        self.assertEqual(messages.count(), 2)
        self.assertEqual(
            set(messages.values_list("recipient_id", flat=True)),
            {self.parent.pk, self.student.pk},
        )
        self.assertTrue(all(m.message_type == Message.TYPE_BROADCAST for m in messages))
        logs = CommunicationLog.all_objects.filter(tenant=self.tenant)
        self.assertEqual(logs.count(), 2)
        self.assertTrue(all(log.communication_type == CommunicationLog.TYPE_BULK_MESSAGE for log in logs))
        self.assertFalse(Message.all_objects.filter(recipient=self.outsider).exists())

    def test_strict_mode_rejects_the_whole_batch(self):
        response = self.client.post(
            "/api/messages/bulk/",
            {
                "recipient_ids": [self.parent.pk, self.outsider.pk],
                "content": "Hello",
                "strict": True,
            },
            format="json",
        )

        self.assertEqual(response.status_code, 400)
        self.assertIn("recipient_ids", response.json()["errors"])
        self.assertFalse(Message.all_objects.exists())
        self.assertFalse(CommunicationLog.all_objects.exists())

    def test_template_variables_are_substituted(self):
        template = MessageTemplate.all_objects.create(
            tenant=self.tenant,
            name="Fee reminder",
            subject="Fees for {{ term }}",
            content="Please pay {{amount}} before {{ term }} starts.",
        )

        response = self.client.post(
            "/api/messages/bulk/",
            {
                "recipient_ids": [self.parent.pk],
                "template_id": template.pk,
                "variables": {"term": "Term 2", "amount": "TZS 50,000"},
            },
            format="json",
        )

        self.assertEqual(response.status_code, 201)
        message = Message.all_objects.get(recipient=self.parent)
        self.assertEqual(message.subject, "Fees for Term 2")
        self.assertEqual(message.content, "Please pay TZS 50,000 before Term 2 starts.")
        template.refresh_from_db()
        self.assertEqual(template.usage_count, 1)
        self.assertIsNotNone(template.last_used_at)

    def test_content_or_template_is_required(self):
        response = self.client.post(
            "/api/messages/bulk/",
            {"recipient_ids": [self.parent.pk]},
            format="json",
        )
        self.assertEqual(response.status_code, 400)

    def test_scheduled_bulk_send_keeps_logs_pending(self):
        response = self.client.post(
            "/api/messages/bulk/",
            {
                "recipient_ids": [self.parent.pk],
                "content": "Reminder",
                "scheduled_at": (timezone.now() + timedelta(days=1)).isoformat(),
            },
            format="json",
        )

        self.assertEqual(response.status_code, 201)
        message = Message.all_objects.get(recipient=self.parent)
        self.assertEqual(message.status, Message.STATUS_SCHEDULED)
        self.assertIsNone(message.sent_at)
        self.assertEqual(
            CommunicationLog.all_objects.get(message=message).status,
            CommunicationLog.STATUS_PENDING,
        )


class MessageApiTests(MessagingTestCase):
    def test_send_direct_message(self):
        response = self.client.post(
            "/api/messages/",
            {"recipient": self.parent.pk, "subject": "Homework", "content": "Please check."},
            format="json",
        )

        self.assertEqual(response.status_code, 201)
        data = response.json()["data"]
        self.assertEqual(data["sender"], self.teacher.pk)
        self.assertEqual(data["status"], Message.STATUS_SENT)
        self.assertEqual(CommunicationLog.all_objects.filter(message_id=data["id"]).count(), 1)

    def test_recipient_from_another_tenant_is_not_found(self):
        response = self.client.post(
            "/api/messages/",
            {"recipient": self.outsider.pk, "content": "Hi"},
            format="json",
        )
        self.assertEqual(response.status_code, 404)
        self.assertFalse(Message.all_objects.exists())

    def test_list_only_contains_own_messages(self):
        mine = self.send(self.parent, self.teacher)
        self.send(self.parent, self.student)

        response = self.client.get("/api/messages/")

        self.assertEqual(response.status_code, 200)
        ids = [item["id"] for item in response.json()["data"]]
        self.assertEqual(ids, [mine.pk])

    def test_mark_read_is_recipient_only_and_once(self):
        message = self.send(self.teacher, self.parent)
        parent_client = api_client_for(self.parent)

        self.assertEqual(self.client.put(f"/api/messages/{message.pk}/read/").status_code, 404)

        response = parent_client.put(f"/api/messages/{message.pk}/read/")
        self.assertEqual(response.status_code, 200)
        message.refresh_from_db()
        self.assertTrue(message.is_read)
        self.assertEqual(message.status, Message.STATUS_READ)
        self.assertIsNotNone(message.read_at)
        self.assertEqual(
            CommunicationLog.all_objects.get(message=message).status,
            CommunicationLog.STATUS_READ,
        )

        again = parent_client.put(f"/api/messages/{message.pk}/read/")
        self.assertEqual(again.status_code, 404)
        self.assertEqual(again.json()["message"], "Message not found or already read.")

    def test_unread_count(self):
        self.send(self.teacher, self.parent)
        self.send(self.student, self.parent)
        self.send(
            self.teacher,
            self.parent,
            scheduled_at=timezone.now() + timedelta(days=1),
        )

        response = api_client_for(self.parent).get("/api/messages/unread/count/")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["data"], {"unread_count": 2})

    def test_reply_threads_to_the_original(self):
        original = self.send(self.teacher, self.parent, subject="Homework")
        parent_client = api_client_for(self.parent)

        response = parent_client.post(
            f"/api/messages/{original.pk}/reply/",
            {"content": "Thanks"},
            format="json",
        )

        self.assertEqual(response.status_code, 201)
        reply = Message.all_objects.get(pk=response.json()["data"]["id"])
        self.assertEqual(reply.recipient, self.teacher)
        self.assertEqual(reply.subject, "Re: Homework")
        self.assertEqual(reply.thread_id, original.pk)
        self.assertEqual(reply.reply_to_id, original.pk)

        thread = self.client.get(f"/api/messages/thread/{original.pk}/")
        self.assertEqual(thread.status_code, 200)
        self.assertEqual([item["id"] for item in thread.json()["data"]], [original.pk, reply.pk])

    def test_sent_message_cannot_be_edited(self):
        message = self.send(self.teacher, self.parent)
        response = self.client.patch(
            f"/api/messages/{message.pk}/",
            {"content": "Changed"},
            format="json",
        )
        self.assertEqual(response.status_code, 409)

    def test_scheduled_message_can_be_edited_by_sender_only(self):
        message = self.send(
            self.teacher,
            self.parent,
            scheduled_at=timezone.now() + timedelta(days=1),
        )

        forbidden = api_client_for(self.parent).patch(
            f"/api/messages/{message.pk}/",
            {"content": "Changed"},
            format="json",
        )
        self.assertEqual(forbidden.status_code, 403)

        response = self.client.patch(
            f"/api/messages/{message.pk}/",
            {"content": "Changed"},
            format="json",
        )
        self.assertEqual(response.status_code, 200)
        message.refresh_from_db()
        self.assertEqual(message.content, "Changed")

    def test_foreign_message_is_not_found(self):
        foreign_sender = make_user(self.other_tenant, "other@beta.test")
        foreign = send_message(
            tenant=self.other_tenant,
            sender=foreign_sender,
            recipient=self.outsider,
            content="Private",
        )
        self.assertEqual(self.client.get(f"/api/messages/{foreign.pk}/").status_code, 404)


class AnnouncementApiTests(TestCase):
    def setUp(self):
        self.tenant = make_tenant("alpha")
        self.admin = make_user(self.tenant, "admin@alpha.test")
        grant(
            self.admin,
            PermissionCode.ANNOUNCEMENTS_CREATE,
            PermissionCode.ANNOUNCEMENTS_READ,
            PermissionCode.ANNOUNCEMENTS_UPDATE,
            PermissionCode.ANNOUNCEMENTS_PUBLISH,
            PermissionCode.COMMUNICATION_READ,
        )
        self.student = make_user(self.tenant, "student@alpha.test")
        grant(self.student, PermissionCode.ANNOUNCEMENTS_READ, role_name=ROLE_STUDENT)
        self.client = api_client_for(self.admin)

    def create(self, **data):
        data.setdefault("title", "Sports day")
        data.setdefault("content", "Friday on the main field.")
        response = self.client.post("/api/announcements/", data, format="json")
        self.assertEqual(response.status_code, 201)
        return Announcement.all_objects.get(pk=response.json()["data"]["id"])

    def test_create_publishes_immediately_unless_draft_or_future(self):
        published = self.create()
        draft = self.create(title="Draft", draft=True)
        scheduled = self.create(
            title="Later",
            publish_date=(timezone.now() + timedelta(days=3)).isoformat(),
        )

        self.assertEqual(published.status, Announcement.STATUS_PUBLISHED)
        self.assertIsNotNone(published.publish_date)
        self.assertEqual(published.author, self.admin)
        self.assertEqual(draft.status, Announcement.STATUS_DRAFT)
        self.assertEqual(scheduled.status, Announcement.STATUS_SCHEDULED)

    def test_students_only_see_published_announcements_for_them(self):
        visible = self.create(target_audience="STUDENTS")
        everyone = self.create(title="All", target_audience="ALL")
        self.create(title="Teachers only", target_audience="TEACHERS")
        self.create(title="Draft", draft=True)

        response = api_client_for(self.student).get("/api/announcements/")

        self.assertEqual(response.status_code, 200)
        ids = {item["id"] for item in response.json()["data"]}
        self.assertEqual(ids, {visible.pk, everyone.pk})

    def test_detail_counts_views(self):
        announcement = self.create()
        student_client = api_client_for(self.student)

        student_client.get(f"/api/announcements/{announcement.pk}/")
        response = student_client.get(f"/api/announcements/{announcement.pk}/")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["data"]["view_count"], 2)
        self.assertEqual(
            CommunicationLog.all_objects.filter(
                announcement=announcement,
                status=CommunicationLog.STATUS_READ,
            ).count(),
            2,
        )

    def test_publish_then_archive_and_refuse_repeats(self):
        draft = self.create(draft=True)

        publish = self.client.post(f"/api/announcements/{draft.pk}/publish/")
        self.assertEqual(publish.status_code, 200)
        self.assertEqual(publish.json()["data"]["status"], Announcement.STATUS_PUBLISHED)
        self.assertEqual(self.client.post(f"/api/announcements/{draft.pk}/publish/").status_code, 409)

        archive = self.client.post(f"/api/announcements/{draft.pk}/archive/")
        self.assertEqual(archive.status_code, 200)
        self.assertEqual(self.client.post(f"/api/announcements/{draft.pk}/archive/").status_code, 409)

    def test_publish_requires_permission(self):
        draft = self.create(draft=True)
        teacher = make_user(self.tenant, "teacher@alpha.test")
        grant(
            teacher,
            PermissionCode.ANNOUNCEMENTS_READ,
            PermissionCode.ANNOUNCEMENTS_UPDATE,
            role_name=ROLE_TEACHER,
        )

        response = api_client_for(teacher).post(f"/api/announcements/{draft.pk}/publish/")

        self.assertEqual(response.status_code, 403)
        draft.refresh_from_db()
        self.assertEqual(draft.status, Announcement.STATUS_DRAFT)

    def test_stats_summarise_logs(self):
        self.create(category="SPORTS")
        response = self.client.get("/api/communication/stats/")

        self.assertEqual(response.status_code, 200)
        data = response.json()["data"]
        self.assertEqual(data["announcements_by_category"], {"SPORTS": 1})
        self.assertEqual(data["total_communications"], 0)
