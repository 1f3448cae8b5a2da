import pytest
from django.contrib.auth.models import User
from django.test import Client

from accounts import tokens
from healthdecode.exceptions import AIServiceError
from medassist.ai_service import OFFLINE_ANALYSIS, AIResponse, GenerativeClient, build_usage, get_generative_client


class FakeClient(GenerativeClient):
    """Scripted generative client: replies are handed out in order, every call is recorded."""

    model = 'fake-model'

    def __init__(self, replies=None, analysis=None, error=None):
        self.replies = list(replies or [])
        self.analysis = analysis
        self.error = error
        self.calls = []

    def complete(self, messages):
        self.calls.append(messages)
        if self.error is not None:
            raise self.error
        content = self.replies.pop(0) if self.replies else "Fake reply"
        return AIResponse(content=content, usage=build_usage("prompt", content), model=self.model)

    def analyze_document(self, text, report_type=None):
        self.calls.append([{"role": "user", "content": text}])
        if self.error is not None:
            raise self.error
        content = self.analysis if self.analysis is not None else OFFLINE_ANALYSIS.format(report_type=report_type)
        return AIResponse(content=content, usage=build_usage(text, content), model=self.model)


@pytest.fixture(autouse=True)
def offline_ai(settings):
    settings.AI_PROVIDER = 'offline'
    settings.OCR_API_KEY = 'test-ocr-key'
    get_generative_client.cache_clear()
    yield
    get_generative_client.cache_clear()


@pytest.fixture
def make_client():
    return FakeClient


@pytest.fixture
def fake_client():
    return FakeClient()


@pytest.fixture
def failing_client():
    return FakeClient(error=AIServiceError())


@pytest.fixture
def user(db):
    return User.objects.create_user(
        username='ana@example.com', email='ana@example.com', password='correct-horse',
        first_name='Ana', last_name='Silva',
    )


@pytest.fixture
def other_user(db):
    return User.objects.create_user(
        username='ben@example.com', email='ben@example.com', password='battery-staple',
        first_name='Ben', last_name='Okafor',
    )


@pytest.fixture
def auth_client(user):
    client = Client()
    client.cookies['token'] = tokens.issue_session_token(user)
    return client
