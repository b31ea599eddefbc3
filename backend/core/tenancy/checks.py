from django.core.checks import Tags, Warning, register
from django.db import DatabaseError

from tenancy.rbac import PermissionCode


@register(Tags.database)
def check_permission_vocabulary(app_configs=None, **kwargs):
    """Compare the permission vocabulary with the seeded `Permission` table."""

    from accounts.models import Permission

    try:
        seeded = set(Permission.objects.values_list("name", flat=True))
    except DatabaseError:
        return [
            Warning(
                "Permission table is not available; vocabulary was not verified.",
                hint="Run `manage.py migrate` and `manage.py sync_permissions`.",
                id="tenancy.W001",
            )
        ]

    issues = []
    missing = sorted(set(PermissionCode.values) - seeded)
    if missing:
        issues.append(
            Warning(
                f"Permissions missing from the database: {', '.join(missing)}.",
                hint="Run `manage.py sync_permissions`.",
                id="tenancy.W002",
            )
        )
    unknown = sorted(seeded - set(PermissionCode.values))
    if unknown:
        issues.append(
            Warning(
                f"Permissions in the database are not part of the vocabulary: {', '.join(unknown)}.",
                hint="Run `manage.py sync_permissions --prune` to remove them.",
                id="tenancy.W003",
            )
        )
    return issues
