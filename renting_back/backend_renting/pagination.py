from rest_framework.pagination import LimitOffsetPagination

from .responses import api_response


class EnvelopeLimitOffsetPagination(LimitOffsetPagination):
    default_limit = 20
    max_limit = 100

    def get_paginated_response(self, data, message="OK"):
        return api_response({
            "results": data,
            "pagination": {
                "count": self.count,
                "limit": self.limit,
                "offset": self.offset,
                "next": self.get_next_link(),
                "previous": self.get_previous_link(),
            },
        }, message=message)
