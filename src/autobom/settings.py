"""Persisted provider settings and business details."""
from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Dict, Mapping, Optional

from .config import DEFAULT_GROQ_MODEL

LOGGER = logging.getLogger(__name__)

PROVIDER_GEMINI = "gemini"
PROVIDER_GROQ = "groq"
PROVIDERS = (PROVIDER_GEMINI, PROVIDER_GROQ)

PROVIDER_LABELS = {PROVIDER_GEMINI: "Gemini", PROVIDER_GROQ: "Groq"}
API_KEY_ENV = {PROVIDER_GEMINI: "GEMINI_API_KEY", PROVIDER_GROQ: "GROQ_API_KEY"}

# Persisted record keys, mapped to dataclass attributes.
_FIELD_KEYS = {
    "provider": "provider",
    "geminiApiKey": "gemini_api_key",
    "groqApiKey": "groq_api_key",
    "groqModel": "groq_model",
    "businessName": "business_name",
    "businessAddress": "business_address",
    "businessContact": "business_contact",
}
LEGACY_API_KEY = "apiKey"


@dataclass(frozen=True)
class ProviderSettings:
    provider: str = PROVIDER_GEMINI
    gemini_api_key: str = ""
    groq_api_key: str = ""
    groq_model: str = ""
    business_name: str = ""
    business_address: str = ""
    business_contact: str = ""

    @property
    def model_override(self) -> str:
        return self.groq_model.strip() or DEFAULT_GROQ_MODEL

    def stored_api_key(self, provider: str | None = None) -> str:
        target = provider or self.provider
        if target == PROVIDER_GEMINI:
            return self.gemini_api_key
        if target == PROVIDER_GROQ:
            return self.groq_api_key
        return ""

    def resolve_api_key(
        self, provider: str | None = None, env: Mapping[str, str] | None = None
    ) -> Optional[str]:
        """Return the stored key for ``provider`` or its environment fallback."""

        target = provider or self.provider
        token = self.stored_api_key(target).strip()
        if token:
            return token
        source = os.environ if env is None else env
        env_name = API_KEY_ENV.get(target)
        if env_name and env_name in source:
            token = str(source[env_name]).strip()
            if token:
                return token
        return None

    def has_business_details(self) -> bool:
        return bool(self.business_name.strip())

    def updated(self, **changes: str) -> "ProviderSettings":
        if "provider" in changes and changes["provider"] not in PROVIDERS:
            raise ValueError(f"Unknown provider {changes['provider']!r}; expected one of {PROVIDERS}")
        return replace(self, **changes)

    def to_record(self) -> Dict[str, str]:
        return {key: getattr(self, attr) for key, attr in _FIELD_KEYS.items()}

    @classmethod
    def from_record(cls, raw: Mapping[str, object]) -> "ProviderSettings":
        values: Dict[str, str] = {}
        for key, attr in _FIELD_KEYS.items():
            value = raw.get(key)
            if value is not None:
                values[attr] = str(value)

        legacy = str(raw.get(LEGACY_API_KEY) or "").strip()
        if legacy and not values.get("gemini_api_key", "").strip():
            LOGGER.info("Migrating legacy API key into the %s key slot", PROVIDER_LABELS[PROVIDER_GEMINI])
            values["gemini_api_key"] = legacy

        provider = values.get("provider", PROVIDER_GEMINI)
        if provider not in PROVIDERS:
            LOGGER.warning("Unknown provider %r in settings; falling back to %s", provider, PROVIDER_GEMINI)
            values["provider"] = PROVIDER_GEMINI
        return cls(**values)


class SettingsStore:
    """Loads and saves :class:`ProviderSettings` as a JSON record."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def load(self) -> ProviderSettings:
        if not self.path.exists():
            LOGGER.debug("No settings stored at %s; using defaults", self.path)
            return ProviderSettings()
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            LOGGER.warning("Unable to read settings from %s (%s); using defaults", self.path, exc)
            return ProviderSettings()
        if not isinstance(raw, dict):
            LOGGER.warning("Settings file %s does not hold an object; using defaults", self.path)
            return ProviderSettings()
        return ProviderSettings.from_record(raw)

    def save(self, settings: ProviderSettings) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("w", encoding="utf-8") as f:
            json.dump(settings.to_record(), f, indent=2)
        LOGGER.debug("Settings saved to %s", self.path)


def mask_secret(value: str) -> str:
    """Return ``value`` with everything except the last four characters hidden."""

    if not value:
        return ""
    if len(value) <= 4:
        return "*" * len(value)
    return "*" * (len(value) - 4) + value[-4:]


__all__ = [
    "API_KEY_ENV",
    "PROVIDERS",
    "PROVIDER_GEMINI",
    "PROVIDER_GROQ",
    "ProviderSettings",
    "SettingsStore",
    "mask_secret",
]
