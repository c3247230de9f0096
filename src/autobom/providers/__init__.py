"""Provider clients that turn a prompt and drawings into raw BOM JSON."""
from __future__ import annotations

from typing import Optional

from ..config import RuntimeConfig
from ..settings import PROVIDER_GEMINI, PROVIDER_GROQ, ProviderSettings
from .base import BOMProvider
from .gemini import GeminiProvider
from .groq import GroqProvider


def create_provider(settings: ProviderSettings, config: RuntimeConfig) -> BOMProvider:
    """Return the provider client selected by ``settings.provider``."""

    api_key: Optional[str] = settings.resolve_api_key()
    if settings.provider == PROVIDER_GEMINI:
        return GeminiProvider(api_key, model=config.gemini_model)
    if settings.provider == PROVIDER_GROQ:
        return GroqProvider(
            api_key,
            model=settings.model_override,
            base_url=config.groq_base_url,
            max_tokens=config.max_tokens,
            temperature=config.temperature,
        )
    raise ValueError(f"Unknown provider {settings.provider!r}")


__all__ = ["BOMProvider", "GeminiProvider", "GroqProvider", "create_provider"]
