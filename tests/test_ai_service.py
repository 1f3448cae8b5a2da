import pytest

from healthdecode.exceptions import AIServiceError
from medassist import ai_service
from medassist.ai_service import (OFFLINE_MODEL, LiveGenerativeClient, OfflineGenerativeClient,
                                  build_generative_client, estimate_tokens, flatten_messages,
                                  get_generative_client)
from medassist.analysis import parse_analysis


class FakeLLM:
    def __init__(self, content=None, error=None):
        self.content = content
        self.error = error
        self.prompts = []

    def invoke(self, messages):
        self.prompts.append(messages)
        if self.error is not None:
            raise self.error
        return type('FakeAIMessage', (), {'content': self.content})()


def test_flatten_messages_builds_single_prompt():
    prompt = flatten_messages([
        {"role": "system", "content": "Be helpful."},
        {"role": "user", "content": "Is 14.2 hemoglobin ok?"},
        {"role": "assistant", "content": "Yes."},
        {"role": "user", "content": "Thanks"},
    ])
    assert prompt == (
        "Be helpful.\n\n"
        "Human: Is 14.2 hemoglobin ok?\n\n"
        "Assistant: Yes.\n\n"
        "Human: Thanks\n\n"
        "Assistant:"
    )


def test_token_estimate_rounds_up():
    assert estimate_tokens("") == 0
    assert estimate_tokens("abcd") == 1
    assert estimate_tokens("abcde") == 2


def test_offline_client_is_deterministic():
    client = OfflineGenerativeClient()
    messages = [{"role": "user", "content": "Hello there"}]
    first = client.complete(messages)
    assert first.content == client.complete(messages).content
    assert first.content.startswith("Hello!")
    assert first.model == OFFLINE_MODEL
    assert first.usage["total_tokens"] == first.usage["prompt_tokens"] + first.usage["completion_tokens"]


def test_offline_greeting_matches_whole_words_only():
    reply = OfflineGenerativeClient().complete([{"role": "user", "content": "this thing worries me"}])
    assert reply.content.startswith("I understand your question about")


def test_offline_client_answers_latest_message():
    reply = OfflineGenerativeClient().complete([
        {"role": "user", "content": "hello"},
        {"role": "assistant", "content": "Hi!"},
        {"role": "user", "content": "Which drug interacts with ibuprofen?"},
    ])
    assert "medication interactions" in reply.content


def test_offline_client_rejects_empty_conversation():
    with pytest.raises(AIServiceError):
        OfflineGenerativeClient().complete([])


def test_offline_analysis_is_parseable():
    reply = OfflineGenerativeClient().analyze_document("Hemoglobin 14.2", "Blood Test")
    parsed = parse_analysis(reply.content)
    assert len(parsed["key_findings"]) == 4
    assert len(parsed["recommendations"]) == 4
    assert len(parsed["risk_factors"]) == 2


@pytest.mark.parametrize("provider, api_key", [
    ('offline', 'sk-test'),
    ('openai', ''),
    ('something-else', 'sk-test'),
])
def test_factory_falls_back_to_offline(provider, api_key):
    assert isinstance(build_generative_client(provider=provider, api_key=api_key), OfflineGenerativeClient)


def test_factory_builds_live_client_with_key():
    client = build_generative_client(provider='openai', api_key='sk-test', model='gpt-4o-mini')
    assert isinstance(client, LiveGenerativeClient)
    assert client.model == 'gpt-4o-mini'


def test_live_client_requires_key():
    with pytest.raises(ValueError):
        LiveGenerativeClient(api_key='')


def test_live_client_sends_flattened_prompt():
    client = LiveGenerativeClient(api_key='sk-test')
    client.chat_llm = FakeLLM(content="Your results look normal.")

    response = client.complete([
        {"role": "system", "content": "Be brief."},
        {"role": "user", "content": "How are my labs?"},
    ])

    assert response.content == "Your results look normal."
    sent = client.chat_llm.prompts[0]
    assert len(sent) == 1
    assert sent[0].content == "Be brief.\n\nHuman: How are my labs?\n\nAssistant:"
    assert response.usage_metadata()["estimated"] is True


def test_live_client_wraps_provider_errors():
    client = LiveGenerativeClient(api_key='sk-test')
    client.analysis_llm = FakeLLM(error=RuntimeError("rate limited"))
    with pytest.raises(AIServiceError) as exc_info:
        client.analyze_document("Hemoglobin 14.2", "Blood Test")
    assert exc_info.value.retryable is True


def test_shared_client_is_built_once():
    assert get_generative_client() is get_generative_client()
    assert isinstance(get_generative_client(), OfflineGenerativeClient)


def test_factory_falls_back_when_live_client_cannot_be_built(monkeypatch):
    def broken_chat_openai(**kwargs):
        raise RuntimeError("invalid model configuration")

    monkeypatch.setattr(ai_service, 'ChatOpenAI', broken_chat_openai)

    client = build_generative_client(provider='openai', api_key='sk-test')

    assert isinstance(client, OfflineGenerativeClient)
