import logging

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import IntegrityError
from django.db.models import ProtectedError, RestrictedError
from rest_framework import exceptions, status
from rest_framework.response import Response
from rest_framework.views import exception_handler, set_rollback

from tenancy.exceptions import ConflictError, InternalError

logger = logging.getLogger(__name__)


def _django_validation_detail(exc: DjangoValidationError):
    if hasattr(exc, "error_dict"):
        return exc.message_dict
    return exc.messages


def _flatten_messages(value) -> list[str]:
    if isinstance(value, dict):
        messages = []
        for item in value.values():
            messages.extend(_flatten_messages(item))
        return messages
    if isinstance(value, (list, tuple)):
        messages = []
        for item in value:
            messages.extend(_flatten_messages(item))
        return messages
    return [str(value)]


def build_error_payload(data) -> dict:
    if isinstance(data, dict) and set(data) == {"detail"}:
        return {"success": False, "message": str(data["detail"])}

    if isinstance(data, dict):
        fields = [key for key in data if key != "non_field_errors"]
        if fields:
            message = f"Invalid or missing fields: {', '.join(fields)}."
        else:
            message = " ".join(_flatten_messages(data))
        return {"success": False, "message": message, "errors": data}

    messages = _flatten_messages(data)
    return {"success": False, "message": " ".join(messages), "errors": messages}


def api_exception_handler(exc, context):
    """Render every API failure as ``{success: false, message, errors?}``."""

    if isinstance(exc, DjangoValidationError):
        exc = exceptions.ValidationError(_django_validation_detail(exc))
    elif isinstance(exc, (ProtectedError, RestrictedError)):
        exc = ConflictError("Resource is referenced by other records and cannot be removed.")
    elif isinstance(exc, IntegrityError):
        exc = ConflictError("Resource conflicts with an existing record.")

    response = exception_handler(exc, context)
    if response is None:
        request = context.get("request")
        logger.error(
            "unhandled api error",
            exc_info=exc,
            extra={
                "correlation_id": getattr(request, "correlation_id", ""),
                "path": getattr(request, "path", ""),
                "view": context.get("view").__class__.__name__,
            },
        )
        set_rollback()
        return Response(
            {"success": False, "message": InternalError.default_detail},
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    response.data = build_error_payload(response.data)
    return response
