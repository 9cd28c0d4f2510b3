import pytest

from interview_readiness.config import Settings
from interview_readiness.llm import LLMUnavailableError, OpenAICompleter


def test_settings_from_env(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-abc")
    monkeypatch.setenv("OPENAI_MODEL", "gpt-4o-mini")
    monkeypatch.setenv("MOCK_MODE", "true")
    monkeypatch.setenv("LLM_TIMEOUT", "12.5")
    monkeypatch.setenv("LOG_FORMAT", "json")
    s = Settings.from_env(load_env_file=False)
    assert s.openai_api_key == "sk-abc"
    assert s.model == "gpt-4o-mini"
    assert s.offline_mode is True
    assert s.request_timeout == 12.5
    assert s.log_format == "json"


def test_settings_defaults(monkeypatch):
    for var in ("OPENAI_API_KEY", "OPENAI_MODEL", "MOCK_MODE", "LLM_TIMEOUT", "LLM_MAX_RETRIES"):
        monkeypatch.delenv(var, raising=False)
    s = Settings.from_env(load_env_file=False)
    assert s.openai_api_key is None
    assert s.model == "gpt-4o"
    assert s.offline_mode is False
    assert s.max_retries == 1


def test_completer_without_key_is_unavailable():
    completer = OpenAICompleter(Settings())
    assert completer.status() == {"configured": False, "model": "gpt-4o", "offline_mode": False}
    with pytest.raises(LLMUnavailableError):
        completer.complete("hello")
