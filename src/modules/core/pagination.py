"""Shared DRF pagination classes."""

from __future__ import annotations

from django.conf import settings
from rest_framework.pagination import PageNumberPagination


class StandardResultsSetPagination(PageNumberPagination):
    page_size = settings.ORDER_PAGE_SIZE
    page_size_query_param = "page_size"
    max_page_size = 100
