from __future__ import annotations

from django.core.management.base import BaseCommand, CommandError
from django.db import transaction

from accounts.models import Tenant, User
from accounts.services import (
    assign_role,
    bootstrap_tenant_roles,
    build_username,
    sync_permission_table,
)
from tenancy.rbac import ROLE_TENANT_ADMIN


class Command(BaseCommand):
    help = "Create or refresh a tenant with its default roles and, optionally, an admin user."

    def add_arguments(self, parser):
        parser.add_argument("code", help="Tenant code (slug) used at login and in X-Tenant-ID.")
        parser.add_argument("--name", default="", help="Display name of the school.")
        parser.add_argument("--admin-email", default="")
        parser.add_argument("--admin-password", default="")

    def handle(self, *args, **options):
        code = (options["code"] or "").strip().lower()
        if not code:
            raise CommandError("Tenant code is required.")

        admin_email = (options["admin_email"] or "").strip().lower()
        admin_password = options["admin_password"] or ""
        if admin_email and not admin_password:
            raise CommandError("--admin-password is required together with --admin-email.")

        with transaction.atomic():
            sync_permission_table()
            tenant, created = Tenant.objects.get_or_create(
                code=code,
                defaults={"name": options["name"] or code},
            )
            if options["name"] and tenant.name != options["name"]:
                tenant.name = options["name"]
                tenant.save(update_fields=["name", "updated_at"])

            roles = bootstrap_tenant_roles(tenant)

            if admin_email:
                admin = User.objects.filter(tenant=tenant, email__iexact=admin_email).first()
                if admin is None:
                    admin = User(
                        tenant=tenant,
                        username=build_username(tenant, admin_email),
                        email=admin_email,
                        first_name="School",
                        last_name="Administrator",
                    )
                admin.set_password(admin_password)
                admin.save()
                assign_role(admin, roles[ROLE_TENANT_ADMIN])

        self.stdout.write(
            self.style.SUCCESS(
                f"bootstrap_tenant: tenant={tenant.code} created={created} roles={len(roles)}"
                + (f" admin={admin_email}" if admin_email else "")
            )
        )
