import logging
import re
import uuid

from tenancy.context import tenant_scope

_CORRELATION_ID_RE = re.compile(r"^[A-Za-z0-9._:-]{1,128}$")


class TenantContextMiddleware:
    """Scope the tenant context variable and the correlation id to one request.

    The tenant itself is bound later, by bearer authentication, from the
    verified token; this middleware guarantees it never leaks past the request.
    """

    def __init__(self, get_response):
        self.get_response = get_response
        self.logger = logging.getLogger(__name__)

    def __call__(self, request):
        request.correlation_id = self._resolve_correlation_id(request)
        with tenant_scope():
            response = self.get_response(request)
        response["X-Correlation-ID"] = request.correlation_id
        return response

    def _resolve_correlation_id(self, request) -> str:
        header_value = (request.headers.get("X-Correlation-ID", "") or "").strip()
        if header_value and _CORRELATION_ID_RE.match(header_value):
            return header_value
        if header_value:
            self.logger.warning(
                "discarding malformed correlation id",
                extra={"path": request.path},
            )
        return str(uuid.uuid4())
