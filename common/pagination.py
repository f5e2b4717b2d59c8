"""Page/limit pagination for seller list endpoints."""

from django.conf import settings
from rest_framework.pagination import PageNumberPagination
from rest_framework.response import Response

from .exceptions import ValidationFailed


class SellerPagination(PageNumberPagination):
    """``?page=&limit=`` pagination reporting ``{page, limit, total, pages}``.

    A page past the end is empty rather than a 404. ``limit`` is capped at
    ``LEDGER_MAX_PAGE_SIZE``; a non-positive or non-numeric ``page`` or
    ``limit`` is a validation error.
    """

    page_size_query_param = "limit"
    page_size_setting = "LEDGER_PAGE_SIZE"
    results_key = "results"

    @property
    def page_size(self) -> int:
        return int(getattr(settings, self.page_size_setting))

    @property
    def max_page_size(self) -> int:
        return int(settings.LEDGER_MAX_PAGE_SIZE)

    def _positive_param(self, request, name: str, default: int) -> int:
        raw = request.query_params.get(name, "").strip()
        if not raw:
            return default
        try:
            value = int(raw)
        except ValueError:
            value = 0
        if value < 1:
            raise ValidationFailed({name: ["A positive integer is required."]})
        return value

    def get_page_size(self, request):
        return min(self._positive_param(request, self.page_size_query_param, self.page_size), self.max_page_size)

    def get_page_number(self, request, paginator):
        return self._positive_param(request, self.page_query_param, 1)

    def paginate_queryset(self, queryset, request, view=None):
        self.request = request
        self.limit = self.get_page_size(request)
        paginator = self.django_paginator_class(queryset, self.limit)
        self.page_number = self.get_page_number(request, paginator)
        self.total = paginator.count
        self.pages = paginator.num_pages if self.total else 0
        if self.page_number > self.pages:
            return []
        self.page = paginator.page(self.page_number)
        return list(self.page)

    def get_pagination_meta(self) -> dict:
        return {"page": self.page_number, "limit": self.limit, "total": self.total, "pages": self.pages}

    def get_paginated_response(self, data):
        return Response({"success": True, self.results_key: data, "pagination": self.get_pagination_meta()})

    def get_paginated_response_schema(self, schema):
        return {
            "type": "object",
            "required": ["success", self.results_key, "pagination"],
            "properties": {
                "success": {"type": "boolean"},
                self.results_key: schema,
                "pagination": {
                    "type": "object",
                    "properties": {key: {"type": "integer"} for key in ("page", "limit", "total", "pages")},
                },
            },
        }
