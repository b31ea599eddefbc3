import logging
from dataclasses import dataclass

from django.conf import settings
from rest_framework.authentication import BaseAuthentication, get_authorization_header

from accounts.models import Tenant, User
from accounts.tokens import TokenClaims, verify_access_token
from tenancy.context import bind_tenant
from tenancy.exceptions import InvalidCredential, TenantMismatch

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AccessContext:
    """What `request.auth` holds for bearer-authenticated requests."""

    claims: TokenClaims
    tenant: Tenant | None


class BearerTokenAuthentication(BaseAuthentication):
    """Authenticate `Authorization: Bearer <token>` and bind the tenant.

    The tenant always comes from the verified token; the optional tenant header
    is only cross-checked against it.
    """

    keyword = "Bearer"

    def authenticate(self, request):
        auth = get_authorization_header(request).split()
        if not auth or auth[0].lower() != self.keyword.lower().encode():
            return None
        if len(auth) != 2:
            raise InvalidCredential("Invalid Authorization header. Expected 'Bearer <token>'.")

        try:
            raw_token = auth[1].decode("ascii")
        except UnicodeError:
            raise InvalidCredential()

        claims = verify_access_token(raw_token)
        user = (
            User.objects.select_related("tenant")
            .filter(pk=claims.user_id, is_active=True)
            .first()
        )
        if user is None or user.tenant_id != claims.tenant_id:
            raise InvalidCredential()
        if user.status != User.STATUS_ACTIVE:
            raise InvalidCredential("User account is not active.")

        tenant = user.tenant
        if tenant is not None and not tenant.is_active:
            raise InvalidCredential("Tenant is inactive.")

        self._check_tenant_hint(request, tenant)
        bind_tenant(tenant)
        return user, AccessContext(claims=claims, tenant=tenant)

    def authenticate_header(self, request):
        return f'{self.keyword} realm="api"'

    @staticmethod
    def _check_tenant_hint(request, tenant):
        header_name = getattr(settings, "TENANT_ID_HEADER", "X-Tenant-ID")
        hint = (request.headers.get(header_name) or "").strip().lower()
        if not hint:
            return
        if tenant is not None and hint in {str(tenant.id), tenant.code}:
            return
        logger.warning(
            "tenant header mismatch",
            extra={
                "correlation_id": getattr(request, "correlation_id", ""),
                "tenant_id": getattr(tenant, "id", None),
                "path": request.path,
            },
        )
        raise TenantMismatch()
