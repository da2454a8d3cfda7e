from django.core.paginator import Page
from rest_framework.exceptions import NotFound
from rest_framework.pagination import PageNumberPagination
from rest_framework.response import Response


class AdminListPagination(PageNumberPagination):
    """Page number pagination for admin listings.

    Query params: ``page`` (1-indexed) and ``limit`` (default 20). A page
    past the end still answers with the envelope and an empty ``items``.
    """

    page_size = 20
    page_size_query_param = 'limit'
    max_page_size = 100

    def paginate_queryset(self, queryset, request, view=None):
        try:
            return super().paginate_queryset(queryset, request, view)
        except NotFound:
            page_number = self._requested_page(request)
            if page_number is None:
                raise
            paginator = self.django_paginator_class(queryset, self.get_page_size(request))
            self.page = Page([], page_number, paginator)
            self.request = request
            return []

    def _requested_page(self, request):
        try:
            number = int(request.query_params.get(self.page_query_param, 1))
        except (TypeError, ValueError):
            return None
        return number if number > 1 else None

    def get_paginated_response(self, data):
        return Response({
            'items': data,
            'pagination': {
                'total': self.page.paginator.count,
                'page': self.page.number,
                'limit': self.get_page_size(self.request),
                'pages': self.page.paginator.num_pages,
            },
        })
