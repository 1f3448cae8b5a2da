# medassist/views.py

import logging

from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_http_methods, require_POST

from accounts.auth import token_required
from healthdecode.exceptions import ValidationError
from healthdecode.http import parse_json_body

from . import history, reports
from .ai_service import get_generative_client
from .chat import ChatSessionManager
from .reports import ReportService

logger = logging.getLogger(__name__)


@csrf_exempt
@require_http_methods(["GET", "POST"])
@token_required
def reports_api(request):
    if request.method == 'GET':
        logger.debug(f"VIEW: listing reports for user {request.user.pk}")
        items = [report.to_dict() for report in reports.list_reports(request.user)]
        return JsonResponse({"status": "success", "reports": items})

    uploaded_file = request.FILES.get('file')
    if uploaded_file is None:
        raise ValidationError("No file uploaded")
    logger.info(f"VIEW: upload '{uploaded_file.name}' ({uploaded_file.size} bytes) from user {request.user.pk}")

    service = ReportService(get_generative_client())
    report, warnings = service.upload(request.user, uploaded_file, request.POST.get('report_type', 'other'))

    if report.analysis_status == report.STATUS_COMPLETED:
        message = "Report uploaded and analyzed successfully"
    else:
        message = "Report uploaded, but the AI analysis failed. Please try again later."
    return JsonResponse({
        "status": "success",
        "message": message,
        "report": report.to_dict(),
        "warnings": warnings,
    }, status=201)


@csrf_exempt
@require_http_methods(["GET", "DELETE"])
@token_required
def report_detail_api(request, report_id):
    if request.method == 'GET':
        report = reports.get_report(request.user, report_id)
        return JsonResponse({"status": "success", "report": report.to_dict(include_text=True)})

    reports.delete_report(request.user, report_id)
    return JsonResponse({"status": "success", "message": "Report deleted successfully"})


@csrf_exempt
@require_POST
@token_required
def chat_api(request):
    data = parse_json_body(request)
    session_id = data.get('session_id')
    logger.info(f"VIEW: chat message for session '{session_id}' from user {request.user.pk}")

    manager = ChatSessionManager(get_generative_client())
    result = manager.send(request.user, session_id, data.get('message'), data.get('type') or None)

    payload = {
        "status": "degraded" if result.degraded else "success",
        "response": result.message.content,
        "session_id": result.session.session_id,
        "title": result.session.title,
        "type": result.session.type,
        "usage": result.usage,
    }
    if result.degraded:
        payload["error"] = "The AI service is temporarily unavailable."
        payload["retryable"] = True
    return JsonResponse(payload)


@require_GET
@token_required
def chat_session_api(request, session_id):
    return JsonResponse({"status": "success", "session": history.get_session(request.user, session_id)})


@csrf_exempt
@require_http_methods(["GET", "DELETE"])
@token_required
def history_api(request):
    session_type = request.GET.get('type')
    if request.method == 'GET':
        return JsonResponse({"status": "success", "sessions": history.list_sessions(request.user, session_type)})

    cleared = history.clear_sessions(request.user, session_type)
    return JsonResponse({"status": "success", "message": f"Cleared {cleared} conversation(s)", "cleared": cleared})


@csrf_exempt
@require_http_methods(["DELETE"])
@token_required
def history_session_api(request, session_id):
    history.delete_session(request.user, session_id)
    return JsonResponse({"status": "success", "message": "Chat session deleted successfully"})
