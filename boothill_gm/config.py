"""Runtime settings, read from the environment (and a .env file, if present).

  LLM_PROVIDER_URL     base URL of the completion backend  (http://localhost:5001)
  LLM_API_KEY          bearer token                         ("")
  LLM_PROVIDER_FORMAT  koboldcpp | openai                   (koboldcpp)
  LLM_MODEL            model name for the openai format     ("")
  LLM_TIMEOUT          request timeout, seconds             (120)
  LLM_MAX_TOKENS       completion cap, 0 = backend default  (0)
  MAX_RESPONSE_CHARS   longest model output handed to the parser (200000)
  LOG_LEVEL            logging level for the CLI            (INFO)

The parser itself has no runtime settings; its tables live in
boothill_gm.parser.vocabulary.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from boothill_gm.errors import ConfigError
from boothill_gm.llm import HttpLLM, ProviderFormat

_ENV_KEYS = {
    "provider_url": "LLM_PROVIDER_URL",
    "api_key": "LLM_API_KEY",
    "provider_format": "LLM_PROVIDER_FORMAT",
    "model": "LLM_MODEL",
    "timeout": "LLM_TIMEOUT",
    "max_tokens": "LLM_MAX_TOKENS",
    "max_response_chars": "MAX_RESPONSE_CHARS",
    "log_level": "LOG_LEVEL",
}


class Settings(BaseModel):
    model_config = ConfigDict(frozen=True)

    provider_url: str = "http://localhost:5001"
    api_key: str = ""
    provider_format: ProviderFormat = "koboldcpp"
    model: str = ""
    timeout: float = Field(default=120.0, gt=0)
    max_tokens: int = Field(default=0, ge=0)
    max_response_chars: int = Field(default=200_000, gt=0)
    log_level: str = "INFO"

    def build_llm(self) -> HttpLLM:
        return HttpLLM(
            provider_url=self.provider_url,
            api_key=self.api_key,
            provider_format=self.provider_format,
            model=self.model,
            timeout=self.timeout,
            max_tokens=self.max_tokens,
        )


def load_settings(
    env: Mapping[str, str] | None = None, dotenv_path: Path | None = None
) -> Settings:
    """Build Settings from `env` (default: os.environ after loading .env)."""
    if env is None:
        load_dotenv(dotenv_path)
        env = os.environ

    fields = {
        name: env[key].strip() for name, key in _ENV_KEYS.items() if env.get(key, "").strip()
    }
    if "provider_format" in fields:
        fields["provider_format"] = fields["provider_format"].lower()
    if "log_level" in fields:
        level = fields["log_level"].upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ConfigError(_ENV_KEYS["log_level"], f"unknown level {level!r}")
        fields["log_level"] = level

    try:
        return Settings.model_validate(fields)
    except ValidationError as e:
        error = e.errors()[0]
        name = str(error["loc"][0]) if error["loc"] else ""
        raise ConfigError(_ENV_KEYS.get(name, name), error["msg"]) from e
