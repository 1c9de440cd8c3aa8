"""Tests for boothill_gm.config."""

import os

import pytest

from boothill_gm.config import Settings, load_settings
from boothill_gm.errors import ConfigError
from boothill_gm.llm import HttpLLM


def test_defaults_from_empty_env():
    settings = load_settings(env={})
    assert settings == Settings()
    assert settings.provider_format == "koboldcpp"
    assert settings.max_response_chars == 200_000


def test_values_read_from_env():
    settings = load_settings(env={
        "LLM_PROVIDER_URL": "http://gm.local:8080",
        "LLM_PROVIDER_FORMAT": "OpenAI",
        "LLM_MODEL": "mistral-7b",
        "LLM_TIMEOUT": "30",
        "LLM_MAX_TOKENS": "400",
        "MAX_RESPONSE_CHARS": "5000",
        "LOG_LEVEL": "debug",
    })
    assert settings.provider_url == "http://gm.local:8080"
    assert settings.provider_format == "openai"
    assert settings.timeout == 30.0
    assert settings.max_tokens == 400
    assert settings.max_response_chars == 5000
    assert settings.log_level == "DEBUG"


def test_blank_values_use_defaults():
    assert load_settings(env={"LLM_TIMEOUT": "  ", "LLM_MODEL": ""}) == Settings()


@pytest.mark.parametrize("key,value", [
    ("LLM_PROVIDER_FORMAT", "gemini"),
    ("LLM_TIMEOUT", "soon"),
    ("LLM_TIMEOUT", "-1"),
    ("MAX_RESPONSE_CHARS", "0"),
    ("LOG_LEVEL", "VERBOSE"),
])
def test_invalid_values_name_the_key(key, value):
    with pytest.raises(ConfigError, match=key) as exc:
        load_settings(env={key: value})
    assert exc.value.key == key


def test_dotenv_file_loaded(tmp_path, monkeypatch):
    monkeypatch.delenv("LLM_MODEL", raising=False)
    env_file = tmp_path / ".env"
    env_file.write_text("LLM_MODEL=from-dotenv\n")
    try:
        assert load_settings(dotenv_path=env_file).model == "from-dotenv"
    finally:
        os.environ.pop("LLM_MODEL", None)


def test_build_llm():
    llm = load_settings(env={"LLM_PROVIDER_FORMAT": "openai"}).build_llm()
    assert isinstance(llm, HttpLLM)
