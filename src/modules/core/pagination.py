from __future__ import annotations

from typing import Any, List

from rest_framework.pagination import PageNumberPagination
from rest_framework.response import Response


class EnvelopePagination(PageNumberPagination):
    """Page-number pagination rendered as a named collection envelope.

    ``{"orders": [...], "pagination": {"page": 1, ...}}``; the collection
    key comes from the view's ``collection_name``.  The metadata pipeline
    treats the first list-valued field of this envelope as the collection.
    """

    page_size_query_param = "limit"
    max_page_size = 100

    def get_paginated_response(self, data: List[Any]) -> Response:
        view = getattr(self, "_view", None)
        collection = getattr(view, "collection_name", "results")
        return Response(
            {
                collection: data,
                "pagination": {
                    "page": self.page.number,
                    "limit": self.get_page_size(self.request),
                    "total": self.page.paginator.count,
                    "total_pages": self.page.paginator.num_pages,
                    "next": self.get_next_link(),
                    "previous": self.get_previous_link(),
                },
            }
        )

    def paginate_queryset(self, queryset, request, view=None):
        self._view = view
        return super().paginate_queryset(queryset, request, view)

    def get_paginated_response_schema(self, schema):
        return {
            "type": "object",
            "properties": {
                "results": schema,
                "pagination": {
                    "type": "object",
                    "properties": {
                        "page": {"type": "integer"},
                        "limit": {"type": "integer"},
                        "total": {"type": "integer"},
                        "total_pages": {"type": "integer"},
                        "next": {"type": "string", "nullable": True},
                        "previous": {"type": "string", "nullable": True},
                    },
                },
            },
        }
