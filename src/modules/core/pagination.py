"""Page-number pagination wrapped in the standard response envelope."""

from __future__ import annotations

import math

from rest_framework.pagination import PageNumberPagination

from modules.core.responses import success_response


class StandardResultsSetPagination(PageNumberPagination):
    """``?page=N&page_size=M`` pagination, ``page_size`` capped at 100.

    ``results_key`` names the list inside ``data`` so each resource reads
    naturally (``data.orders``, ``data.products``).
    """

    page_size = 20
    page_size_query_param = "page_size"
    max_page_size = 100
    results_key = "results"

    def __init__(self, results_key: str | None = None) -> None:
        if results_key:
            self.results_key = results_key

    def get_paginated_response(self, data):
        total = self.page.paginator.count
        page_size = self.get_page_size(self.request) or self.page_size
        return success_response(
            {
                self.results_key: data,
                "pagination": {
                    "page": self.page.number,
                    "pageSize": page_size,
                    "total": total,
                    "totalPages": math.ceil(total / page_size) if page_size else 0,
                    "next": self.get_next_link(),
                    "previous": self.get_previous_link(),
                },
            }
        )
