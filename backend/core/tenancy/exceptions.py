"""Error taxonomy shared by authentication, permissions and views.

This module must not import `rest_framework.views`: DRF resolves the default
authentication classes while loading it, and those import these exceptions.
The handler that renders them lives in `tenancy.handlers`.
"""

from rest_framework import exceptions, status


class InvalidCredential(exceptions.AuthenticationFailed):
    default_detail = "Invalid or malformed credentials."
    default_code = "invalid_credential"


class CredentialExpired(exceptions.AuthenticationFailed):
    default_detail = "Session expired. Please sign in again."
    default_code = "credential_expired"


class Forbidden(exceptions.PermissionDenied):
    default_detail = "You do not have permission to perform this action."
    default_code = "forbidden"


class TenantMismatch(exceptions.PermissionDenied):
    default_detail = "Tenant header does not match the authenticated tenant."
    default_code = "tenant_mismatch"


class NotFound(exceptions.NotFound):
    default_detail = "Resource not found."
    default_code = "not_found"


class ConflictError(exceptions.APIException):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Request conflicts with the current state of the resource."
    default_code = "conflict"


class InternalError(exceptions.APIException):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = "Internal server error."
    default_code = "internal_error"
