import logging

from django.conf import settings
from django.db import DatabaseError
from django.http import HttpResponse, JsonResponse

from .exceptions import HealthDecodeError

logger = logging.getLogger(__name__)

ALLOWED_METHODS = "GET, POST, PUT, DELETE, OPTIONS"
ALLOWED_HEADERS = "Accept, Content-Type, X-CSRFToken, Authorization, X-Requested-With"


class CorsMiddleware:
    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        # Handle preflight OPTIONS requests
        if request.method == "OPTIONS":
            response = HttpResponse()
            self._add_headers(response)
            response["Access-Control-Max-Age"] = "86400"  # 24 hours
            return response

        response = self.get_response(request)
        self._add_headers(response)
        return response

    @staticmethod
    def _add_headers(response):
        # Specific origin, credentials (the token cookie) are allowed
        response["Access-Control-Allow-Origin"] = settings.CORS_ALLOWED_ORIGIN
        response["Access-Control-Allow-Methods"] = ALLOWED_METHODS
        response["Access-Control-Allow-Headers"] = ALLOWED_HEADERS
        response["Access-Control-Allow-Credentials"] = "true"


class ApiErrorMiddleware:
    """Renders exceptions escaping the API views as JSON error bodies."""

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        return self.get_response(request)

    def process_exception(self, request, exception):
        if isinstance(exception, HealthDecodeError):
            logger.info("API: %s on %s %s: %s", type(exception).__name__, request.method, request.path,
                        exception.message)
            return JsonResponse(
                {"status": "error", "error": exception.message, "retryable": exception.retryable},
                status=exception.status_code,
            )

        if isinstance(exception, DatabaseError):
            logger.error("API: database unavailable on %s %s: %s", request.method, request.path, exception)
            return JsonResponse(
                {"status": "error", "error": "Service temporarily unavailable. Please try again.",
                 "retryable": True},
                status=503,
            )

        logger.exception("API: unhandled error on %s %s", request.method, request.path)
        return JsonResponse(
            {"status": "error", "error": "Internal server error", "retryable": False},
            status=500,
        )
