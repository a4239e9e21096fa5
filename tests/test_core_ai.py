import pytest

from quizwith.core.ai import (
    AIService,
    AIUnavailableError,
    Ready,
    Unavailable,
    load_client,
)

VALID_KEY = "sk-test-0123456789abcdef"


def test_load_client_passes_key_and_options(openai_factory):
    client = load_client(
        env={"OPENAI_API_KEY": VALID_KEY},
        api_base="http://localhost:1234/v1",
        timeout=12.0,
    )
    assert client is openai_factory.last
    assert client.init_kwargs == {
        "api_key": VALID_KEY,
        "base_url": "http://localhost:1234/v1",
        "timeout": 12.0,
    }


def test_load_client_minimal_kwargs(openai_factory):
    load_client(env={"OPENAI_API_KEY": f"  {VALID_KEY}  "})
    assert openai_factory.last.init_kwargs == {"api_key": VALID_KEY}


@pytest.mark.parametrize(
    "env, message",
    [
        ({}, "not found"),
        ({"OPENAI_API_KEY": "   "}, "not found"),
        ({"OPENAI_API_KEY": "your_openai_api_key"}, "placeholder"),
        ({"OPENAI_API_KEY": "short"}, "too short"),
    ],
)
def test_load_client_rejects_missing_or_placeholder_keys(
    openai_factory, env, message
):
    with pytest.raises(AIUnavailableError, match=message):
        load_client(env=env)
    assert openai_factory.instances == []


def test_load_client_reads_dotenv_when_env_not_given(
    openai_factory, monkeypatch
):
    calls = []
    monkeypatch.setattr("quizwith.core.ai.load_dotenv", lambda: calls.append(1))
    monkeypatch.setenv("OPENAI_API_KEY", VALID_KEY)
    load_client()
    assert calls == [1]
    assert openai_factory.last.init_kwargs["api_key"] == VALID_KEY


def test_service_from_environment_ready(openai_factory):
    service = AIService.from_environment(env={"OPENAI_API_KEY": VALID_KEY})
    assert service.available is True
    assert isinstance(service.status, Ready)
    assert service.reason is None
    assert service.require_client() is openai_factory.last


def test_service_from_environment_unavailable(openai_factory):
    service = AIService.from_environment(env={})
    assert service.available is False
    assert isinstance(service.status, Unavailable)
    assert "OPENAI_API_KEY" in service.reason
    with pytest.raises(AIUnavailableError):
        service.require_client()


def test_service_captures_client_construction_failure(monkeypatch):
    def broken(**kwargs):
        raise ValueError("bad base url")

    monkeypatch.setattr("quizwith.core.ai.OpenAI", broken)
    service = AIService.from_environment(env={"OPENAI_API_KEY": VALID_KEY})
    assert service.available is False
    assert "bad base url" in service.reason
