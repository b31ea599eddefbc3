from __future__ import annotations

from django.core.management.base import BaseCommand

from accounts.services import sync_permission_table


class Command(BaseCommand):
    help = "Upsert the Permission table from the permission vocabulary."

    def add_arguments(self, parser):
        parser.add_argument(
            "--prune",
            action="store_true",
            help="Delete permission rows that are no longer part of the vocabulary.",
        )

    def handle(self, *args, **options):
        result = sync_permission_table(prune=options["prune"])
        self.stdout.write(
            self.style.SUCCESS(
                "sync_permissions: created={created}, updated={updated}, pruned={pruned}".format(
                    **result
                )
            )
        )
