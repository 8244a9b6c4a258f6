"""Provider table and per-request config resolution."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import os
from typing import Mapping


OPENAI_COMPATIBLE_BASE_URL = "https://api.openai.com/v1"


class ConfigError(ValueError):
    pass


class UnknownProviderError(ConfigError):
    pass


class Provider(str, Enum):
    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    GEMINI = "gemini"
    BEDROCK = "bedrock"
    GROQ = "groq"
    DEEPSEEK = "deepseek"
    OLLAMA = "ollama"
    COHERE = "cohere"

    @classmethod
    def parse(cls, name: str) -> "Provider":
        key = name.strip().lower()
        key = _SYNONYMS.get(key, key)
        try:
            return cls(key)
        except ValueError:
            raise UnknownProviderError(f"Unknown provider: {name}") from None

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES[self]

    @property
    def requires_credential(self) -> bool:
        return bool(CREDENTIAL_ENV_VARS[self])


_SYNONYMS = {"google": "gemini"}

_DISPLAY_NAMES = {
    Provider.OPENAI: "OpenAI",
    Provider.ANTHROPIC: "Anthropic",
    Provider.GEMINI: "Gemini",
    Provider.BEDROCK: "Bedrock",
    Provider.GROQ: "Groq",
    Provider.DEEPSEEK: "DeepSeek",
    Provider.OLLAMA: "Ollama",
    Provider.COHERE: "Cohere",
}

# Checked in order; the first variable that is set wins.
CREDENTIAL_ENV_VARS: dict[Provider, tuple[str, ...]] = {
    Provider.OPENAI: ("OPENAI_API_KEY",),
    Provider.ANTHROPIC: ("ANTHROPIC_API_KEY",),
    Provider.GEMINI: ("GEMINI_API_KEY", "GOOGLE_GENERATIVE_AI_API_KEY"),
    Provider.BEDROCK: (),
    Provider.GROQ: ("GROQ_API_KEY",),
    Provider.DEEPSEEK: ("DEEPSEEK_API_KEY",),
    Provider.OLLAMA: (),
    Provider.COHERE: ("COHERE_API_KEY",),
}

BASE_URL_ENV_VARS: dict[Provider, str] = {
    Provider.OPENAI: "OPENAI_BASE_URL",
    Provider.ANTHROPIC: "ANTHROPIC_BASE_URL",
    Provider.DEEPSEEK: "DEEPSEEK_BASE_URL",
    Provider.OLLAMA: "OLLAMA_BASE_URL",
}

DEFAULT_BASE_URLS: dict[Provider, str] = {
    Provider.OPENAI: OPENAI_COMPATIBLE_BASE_URL,
    Provider.ANTHROPIC: "https://api.anthropic.com/v1",
    Provider.DEEPSEEK: "https://api.deepseek.com/v1",
    Provider.GROQ: "https://api.groq.com/openai/v1",
    Provider.OLLAMA: "http://localhost:11434/v1",
}


@dataclass(frozen=True)
class ResolvedConfig:
    provider: Provider
    model: str
    credential: str | None
    base_url: str

    def __repr__(self) -> str:
        masked = "***" if self.credential else None
        return (
            f"ResolvedConfig(provider={self.provider.value!r}, model={self.model!r}, "
            f"credential={masked!r}, base_url={self.base_url!r})"
        )


def _first_set(env: Mapping[str, str], names: tuple[str, ...]) -> str | None:
    for name in names:
        value = env.get(name)
        if value:
            return value
    return None


def resolve_config(
    provider: str | None = None,
    model: str | None = None,
    credential: str | None = None,
    base_url: str | None = None,
    env: Mapping[str, str] | None = None,
) -> ResolvedConfig:
    """Merge per-request overrides with the environment.

    Overrides always win. A missing credential is not an error here; callers
    that need one use ``require_credential``.
    """
    env = os.environ if env is None else env

    provider_name = provider or env.get("AI_PROVIDER")
    if not provider_name:
        raise ConfigError("AI_PROVIDER not configured")
    resolved_provider = Provider.parse(provider_name)

    model_id = model or env.get("AI_MODEL")
    if not model_id:
        raise ConfigError("AI_MODEL not configured")

    api_key = credential or _first_set(env, CREDENTIAL_ENV_VARS[resolved_provider])

    url = base_url
    if not url and resolved_provider in BASE_URL_ENV_VARS:
        url = env.get(BASE_URL_ENV_VARS[resolved_provider])
    if not url:
        url = DEFAULT_BASE_URLS.get(resolved_provider, OPENAI_COMPATIBLE_BASE_URL)

    return ResolvedConfig(
        provider=resolved_provider,
        model=model_id,
        credential=api_key,
        base_url=url.rstrip("/"),
    )


def require_credential(config: ResolvedConfig) -> None:
    if config.credential is None and config.provider.requires_credential:
        raise ConfigError(f"{config.provider.display_name} API key not configured")
