import logging

from django.db import DatabaseError, connection
from django.http import JsonResponse
from django.utils import timezone
from django.views.decorators.http import require_GET

logger = logging.getLogger(__name__)


@require_GET
def health(request):
    try:
        connection.ensure_connection()
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
    except DatabaseError as e:
        logger.error("HEALTH: database check failed: %s", e)
        return JsonResponse({"status": "error", "error": "Database unavailable", "retryable": True}, status=503)

    return JsonResponse({
        "status": "success",
        "message": "API is working",
        "timestamp": timezone.now().isoformat(),
    })
