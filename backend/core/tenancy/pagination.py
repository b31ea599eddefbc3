from django.conf import settings
from rest_framework import exceptions
from rest_framework.pagination import BasePagination
from rest_framework.response import Response


def _positive_int(raw_value, *, name: str, default: int) -> int:
    if raw_value in (None, ""):
        return default
    try:
        value = int(str(raw_value).strip())
    except ValueError:
        raise exceptions.ValidationError({name: ["Must be a positive integer."]})
    if value < 1:
        raise exceptions.ValidationError({name: ["Must be a positive integer."]})
    return value


class EnvelopePagination(BasePagination):
    """`page`/`limit` pagination returning `{success, data, pagination}`.

    Pages past the end yield an empty list rather than a 404.
    """

    page_query_param = "page"
    limit_query_param = "limit"

    def paginate_queryset(self, queryset, request, view=None):
        default_limit = getattr(view, "page_size", None) or settings.API_DEFAULT_PAGE_SIZE
        self.page = _positive_int(
            request.query_params.get(self.page_query_param),
            name=self.page_query_param,
            default=1,
        )
        self.limit = min(
            _positive_int(
                request.query_params.get(self.limit_query_param),
                name=self.limit_query_param,
                default=default_limit,
            ),
            settings.API_MAX_PAGE_SIZE,
        )
        self.total = queryset.count()
        offset = (self.page - 1) * self.limit
        return list(queryset[offset : offset + self.limit])

    def get_pagination_payload(self) -> dict:
        return {
            "page": self.page,
            "limit": self.limit,
            "total": self.total,
            "pages": (self.total + self.limit - 1) // self.limit,
        }

    def get_paginated_response(self, data):
        return Response(
            {
                "success": True,
                "data": data,
                "pagination": self.get_pagination_payload(),
            }
        )
