from datetime import timedelta

from django.test import SimpleTestCase, TestCase
from django.utils import timezone

from communication.models import CommunicationLog, Message
from communication.services import dispatch_due_messages, render_template, send_message
from tenancy.tests.factories import make_tenant, make_user


class RenderTemplateTests(SimpleTestCase):
    def test_placeholders_allow_inner_whitespace(self):
        rendered = render_template("Dear {{name}}, fees due {{ due_date }}.", {"name": "Asha", "due_date": "1 May"})
        self.assertEqual(rendered, "Dear Asha, fees due 1 May.")

    def test_unknown_placeholders_are_left_alone(self):
        self.assertEqual(render_template("Hi {{ name }}", {"other": "x"}), "Hi {{ name }}")

    def test_keys_are_matched_literally(self):
        rendered = render_template("{{ a.b }} {{ axb }}", {"a.b": "dot"})
        self.assertEqual(rendered, "dot {{ axb }}")

    def test_replacement_text_is_not_interpreted(self):
        self.assertEqual(render_template("{{ x }}", {"x": r"\1 \g<0>"}), r"\1 \g<0>")


class DispatchScheduledMessagesTests(TestCase):
    def setUp(self):
        tenant = make_tenant("alpha")
        self.sender = make_user(tenant, "sender@alpha.test")
        self.recipient = make_user(tenant, "recipient@alpha.test")
        self.tenant = tenant

    def test_due_messages_are_sent_and_logs_follow(self):
        due = send_message(
            tenant=self.tenant,
            sender=self.sender,
            recipient=self.recipient,
            content="Later",
            scheduled_at=timezone.now() + timedelta(minutes=5),
        )
        future = send_message(
            tenant=self.tenant,
            sender=self.sender,
            recipient=self.recipient,
            content="Much later",
            scheduled_at=timezone.now() + timedelta(days=2),
        )
        self.assertEqual(due.status, Message.STATUS_SCHEDULED)

        result = dispatch_due_messages(now=timezone.now() + timedelta(hours=1))

        self.assertEqual(result["messages"], 1)
        due.refresh_from_db()
        future.refresh_from_db()
        self.assertEqual(due.status, Message.STATUS_SENT)
        self.assertIsNotNone(due.sent_at)
        self.assertEqual(future.status, Message.STATUS_SCHEDULED)
        self.assertEqual(
            CommunicationLog.all_objects.get(message=due).status,
            CommunicationLog.STATUS_SENT,
        )
        self.assertEqual(
            CommunicationLog.all_objects.get(message=future).status,
            CommunicationLog.STATUS_PENDING,
        )
