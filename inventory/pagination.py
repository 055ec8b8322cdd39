from rest_framework.pagination import PageNumberPagination
from rest_framework.response import Response


class PageLimitPagination(PageNumberPagination):
    """
    Pagination `?page=&limit=` utilisée par l'historique et les listes d'expiration.
    The list is returned under `results_key` with the original envelope
    (`status`, `total`, `page`, `limit`, `total_pages`).
    """
    page_size = 10
    page_size_query_param = 'limit'
    max_page_size = 100
    results_key = 'results'

    def get_paginated_response(self, data):
        return Response({
            'status': True,
            self.results_key: data,
            'total': self.page.paginator.count,
            'page': self.page.number,
            'limit': self.get_page_size(self.request),
            'total_pages': self.page.paginator.num_pages,
            'next': self.get_next_link(),
            'previous': self.get_previous_link(),
        })


class DrugPagination(PageLimitPagination):
    results_key = 'drugs'


class OrderPagination(PageLimitPagination):
    results_key = 'orders'


class OrderItemPagination(PageLimitPagination):
    results_key = 'items'
