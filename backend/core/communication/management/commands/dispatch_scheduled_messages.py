from django.core.management.base import BaseCommand

from communication.services import dispatch_due_messages


class Command(BaseCommand):
    help = "Send scheduled messages and publish scheduled announcements that are due."

    def handle(self, *args, **options):
        result = dispatch_due_messages()
        self.stdout.write(
            self.style.SUCCESS(
                f"dispatch_scheduled_messages: messages={result['messages']} "
                f"announcements={result['announcements']}"
            )
        )
