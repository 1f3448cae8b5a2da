import json

from django.contrib import admin
from django.db import DatabaseError
from django.test import RequestFactory

from healthdecode import views
from healthdecode.exceptions import AIServiceError, NotFound
from healthdecode.middleware import ApiErrorMiddleware
from medassist.models import ChatMessage, ChatSession, MedicalReport


class BrokenConnection:
    def ensure_connection(self):
        raise DatabaseError("could not connect to server")


def handle(exception):
    request = RequestFactory().get('/api/ai/history')
    response = ApiErrorMiddleware(lambda r: None).process_exception(request, exception)
    return response.status_code, json.loads(response.content)


def test_health(client, db):
    response = client.get('/api/health')
    assert response.status_code == 200
    assert response.json()["status"] == "success"


def test_health_reports_database_outage(client, db, monkeypatch):
    monkeypatch.setattr(views, 'connection', BrokenConnection())
    response = client.get('/api/health')
    assert response.status_code == 503
    assert response.json()["status"] == "error"


def test_domain_errors_map_to_status_codes():
    assert handle(NotFound("Report not found")) == (
        404, {"status": "error", "error": "Report not found", "retryable": False})
    status, body = handle(AIServiceError())
    assert status == 503
    assert body["retryable"] is True


def test_database_errors_do_not_leak_details():
    status, body = handle(DatabaseError("password authentication failed for user postgres"))
    assert status == 503
    assert body["error"] == "Service temporarily unavailable. Please try again."
    assert "postgres" not in json.dumps(body)


def test_unexpected_errors_are_generic():
    status, body = handle(KeyError("secret"))
    assert status == 500
    assert body == {"status": "error", "error": "Internal server error", "retryable": False}


def test_cors_preflight(client, settings):
    settings.CORS_ALLOWED_ORIGIN = 'https://app.example.com'
    response = client.options('/api/ai/chat')
    assert response.status_code == 200
    assert response['Access-Control-Allow-Origin'] == 'https://app.example.com'
    assert response['Access-Control-Allow-Credentials'] == 'true'


def test_models_are_registered_in_admin():
    for model in (MedicalReport, ChatSession, ChatMessage):
        assert admin.site.is_registered(model)
