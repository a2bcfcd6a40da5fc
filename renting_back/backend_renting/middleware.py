# backend_renting/middleware.py
from django.utils.deprecation import MiddlewareMixin
import logging
import time
import uuid

logger = logging.getLogger(__name__)


class SecurityHeadersMiddleware(MiddlewareMixin):
    def process_request(self, request):
        request.request_id = request.headers.get('X-Request-ID') or uuid.uuid4().hex[:16]
        request._started_at = time.monotonic()

    def process_response(self, request, response):
        response['X-Content-Type-Options'] = 'nosniff'
        response['X-Frame-Options'] = 'DENY'
        response['Referrer-Policy'] = 'strict-origin-when-cross-origin'

        request_id = getattr(request, 'request_id', None)
        if request_id:
            response['X-Request-ID'] = request_id

        started = getattr(request, '_started_at', None)
        if started is not None and response.status_code >= 500:
            logger.error(
                f"{request.method} {request.path} -> {response.status_code} "
                f"({(time.monotonic() - started) * 1000:.0f}ms, request {request_id})")

        return response
