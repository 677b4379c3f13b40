"""LLM provider loader.

Centralises construction of chat models so we can swap providers via env vars.
Settings are read once into an explicit ``LLMSettings`` object and handed to
``create_chat_model``; a bad configuration raises ``LLMConfigError`` at first
use instead of crashing the process at import.
Supports Groq by default, NVIDIA and OpenAI when their LangChain packages are
installed.
"""

from __future__ import annotations

import os
from typing import Optional

from dotenv import load_dotenv
from langchain_core.language_models.chat_models import BaseChatModel
from pydantic import BaseModel

DEFAULT_NVIDIA_BASE = "https://integrate.api.nvidia.com/v1"

DEFAULT_MODELS = {
    "groq": "llama-3.3-70b-versatile",
    "nvidia": "meta/llama-3.1-8b-instruct",
    "openai": "gpt-4o-mini",
}

_PROVIDER_ALIASES = {
    "groq": "groq",
    "nvidia": "nvidia",
    "nv": "nvidia",
    "nvcf": "nvidia",
    "openai": "openai",
    "oa": "openai",
}

_API_KEY_VARS = {
    "groq": ("GROQ_API_KEY",),
    "nvidia": ("NVIDIA_API_KEY", "NVCF_API_KEY"),
    "openai": ("OPENAI_API_KEY",),
}


class LLMConfigError(RuntimeError):
    """Raised when the requested LLM provider cannot be initialised."""


def _env(key: str, default: Optional[str] = None) -> Optional[str]:
    value = os.getenv(key)
    if value is None:
        return default
    return value.strip() or default


class LLMSettings(BaseModel):
    provider: str = "groq"
    model: Optional[str] = None
    api_key: Optional[str] = None
    base_url: Optional[str] = None
    temperature: float = 0.1
    max_tokens: int = 300

    @classmethod
    def from_env(cls) -> "LLMSettings":
        """Read LLM_* (and provider-specific key) variables, loading .env first."""
        load_dotenv()
        provider = (_env("LLM_PROVIDER", "groq") or "groq").lower()
        canonical = _PROVIDER_ALIASES.get(provider, provider)

        api_key = _env("LLM_API_KEY")
        for var in _API_KEY_VARS.get(canonical, ()):
            api_key = api_key or _env(var)

        base_url = _env("LLM_BASE_URL")
        if canonical == "openai":
            base_url = base_url or _env("OPENAI_BASE_URL")

        try:
            temperature = float(_env("LLM_TEMPERATURE", "0.1"))
            max_tokens = int(_env("LLM_MAX_TOKENS", "300"))
        except ValueError as exc:
            raise LLMConfigError(f"Invalid LLM_TEMPERATURE / LLM_MAX_TOKENS: {exc}") from exc

        return cls(
            provider=provider,
            model=_env("LLM_MODEL"),
            api_key=api_key,
            base_url=base_url,
            temperature=temperature,
            max_tokens=max_tokens,
        )

    @property
    def canonical_provider(self) -> str:
        return _PROVIDER_ALIASES.get(self.provider.lower(), self.provider.lower())

    def resolve_model(self) -> str:
        return self.model or DEFAULT_MODELS.get(self.canonical_provider, "")


def create_chat_model(settings: LLMSettings) -> BaseChatModel:
    """Return a LangChain chat model for the configured provider."""

    provider = settings.canonical_provider
    if provider not in DEFAULT_MODELS:
        raise LLMConfigError(
            f"Unsupported LLM_PROVIDER '{settings.provider}'. Expected 'groq', 'nvidia' or 'openai'."
        )

    if not settings.api_key:
        keys = " or ".join(("LLM_API_KEY",) + _API_KEY_VARS[provider])
        raise LLMConfigError(
            f"{provider.capitalize()} provider selected but no API key found. Set {keys}."
        )

    model = settings.resolve_model()

    if provider == "groq":
        try:
            from langchain_groq import ChatGroq  # type: ignore
        except ImportError as exc:  # pragma: no cover - optional dependency
            raise LLMConfigError(
                "Groq provider selected but langchain-groq is not installed. "
                "Run `pip install langchain-groq` or switch LLM_PROVIDER."
            ) from exc

        return ChatGroq(
            model=model,
            temperature=settings.temperature,
            max_tokens=settings.max_tokens,
            groq_api_key=settings.api_key,
        )

    if provider == "nvidia":
        try:
            from langchain_nvidia_ai_endpoints import ChatNVIDIA  # type: ignore
        except ImportError as exc:  # pragma: no cover - optional dependency
            raise LLMConfigError(
                "NVIDIA provider selected but langchain-nvidia-ai-endpoints is not installed. "
                "Run `pip install langchain-nvidia-ai-endpoints` or switch LLM_PROVIDER."
            ) from exc

        base_url = settings.base_url or DEFAULT_NVIDIA_BASE
        return ChatNVIDIA(
            model=model,
            temperature=settings.temperature,
            max_tokens=settings.max_tokens,
            base_url=base_url.rstrip("/"),
            api_key=settings.api_key,
        )

    try:
        from langchain_openai import ChatOpenAI  # type: ignore
    except ImportError as exc:  # pragma: no cover - optional dependency
        raise LLMConfigError(
            "OpenAI provider selected but langchain-openai is not installed. "
            "Run `pip install langchain-openai` or switch LLM_PROVIDER back to 'groq'."
        ) from exc

    kwargs = {
        "model": model,
        "temperature": settings.temperature,
        "max_tokens": settings.max_tokens,
        "api_key": settings.api_key,
    }
    if settings.base_url:
        kwargs["base_url"] = settings.base_url.rstrip("/")

    return ChatOpenAI(**kwargs)
