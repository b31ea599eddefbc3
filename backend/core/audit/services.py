from __future__ import annotations

import json
import logging

from django.core.serializers.json import DjangoJSONEncoder
from django.forms.models import model_to_dict

from audit.models import AuditLog

logger = logging.getLogger(__name__)

_SNAPSHOT_EXCLUDED_FIELDS = {"tenant", "password"}


def snapshot_instance(instance) -> dict:
    """JSON-safe dict of a model row's concrete fields."""

    fields = [
        field.name
        for field in instance._meta.concrete_fields
        if field.name not in _SNAPSHOT_EXCLUDED_FIELDS
    ]
    payload = model_to_dict(instance, fields=fields)
    for field in instance._meta.concrete_fields:
        if field.name in ("created_at", "updated_at") and hasattr(instance, field.name):
            payload[field.name] = getattr(instance, field.name)
    return json.loads(json.dumps(payload, cls=DjangoJSONEncoder))


def _extract_ip(request) -> str:
    if request is None:
        return ""
    # If behind a LB, X-Forwarded-For might contain a chain. We only keep the left-most.
    forwarded_for = (request.META.get("HTTP_X_FORWARDED_FOR") or "").strip()
    if forwarded_for:
        return forwarded_for.split(",", 1)[0].strip()
    return (request.META.get("REMOTE_ADDR") or "").strip()


def record_audit_event(
    *,
    tenant,
    actor,
    action: str,
    resource: str,
    resource_id="",
    request=None,
    status: str = AuditLog.STATUS_SUCCESS,
    data_before: dict | None = None,
    data_after: dict | None = None,
    details: dict | None = None,
    actor_email: str = "",
) -> AuditLog:
    """Append an immutable audit entry for a tenant action."""

    request_method = ""
    request_path = ""
    ip_address = ""
    user_agent = ""
    correlation_id = ""
    if request is not None:
        request_method = (getattr(request, "method", "") or "").upper()
        request_path = (getattr(request, "path", "") or "")[:255]
        ip_address = _extract_ip(request)
        user_agent = (request.META.get("HTTP_USER_AGENT") or "").strip()
        correlation_id = getattr(request, "correlation_id", "") or ""

    actor_obj = actor if getattr(actor, "is_authenticated", False) else None
    if actor_obj is not None and not actor_email:
        actor_email = (getattr(actor_obj, "email", "") or "").strip()

    entry = AuditLog(
        tenant=tenant,
        actor=actor_obj,
        actor_email=actor_email,
        action=action,
        resource=resource,
        resource_id=str(resource_id or ""),
        status=status,
        details=details if isinstance(details, dict) else {},
        data_before=data_before,
        data_after=data_after,
        correlation_id=correlation_id,
        request_method=request_method,
        request_path=request_path,
        ip_address=ip_address or None,
        user_agent=user_agent,
    )
    entry.save(force_insert=True)
    logger.info(
        "audit %s %s:%s",
        status,
        resource,
        action,
        extra={
            "tenant_id": getattr(tenant, "id", None),
            "resource_id": entry.resource_id,
            "correlation_id": correlation_id,
        },
    )
    return entry
