import logging
import time

logger = logging.getLogger(__name__)


class RequestLogMiddleware:
    """Log method, path, status and duration of each API request."""
    SKIP_PREFIXES = ('/static/', '/metrics', '/healthz')

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        path = request.path or ''
        if any(path.startswith(p) for p in self.SKIP_PREFIXES):
            return self.get_response(request)
        started = time.monotonic()
        response = self.get_response(request)
        elapsed_ms = (time.monotonic() - started) * 1000
        user = getattr(request, 'user', None)
        logger.info(
            'request method=%s path=%s status=%s duration_ms=%.1f user=%s',
            request.method, path, response.status_code, elapsed_ms,
            getattr(user, 'pk', None) or '-',
        )
        return response
