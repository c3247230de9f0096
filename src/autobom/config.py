from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from types import SimpleNamespace
from typing import Mapping, Optional


_BOOLEAN_TRUE = {"1", "true", "yes", "on"}

DEFAULT_TIMEOUT_SECONDS = 180.0
DEFAULT_GEMINI_MODEL = "gemini-3-pro-preview"
DEFAULT_GROQ_MODEL = "llama-3.2-11b-vision-preview"
DEFAULT_GROQ_BASE_URL = "https://api.groq.com/openai/v1"
DEFAULT_MAX_TOKENS = 8000
DEFAULT_TEMPERATURE = 0.1
DEFAULT_CURRENCY = "INR"


@dataclass(frozen=True)
class RuntimeConfig:
    """Runtime configuration assembled from environment variables and CLI options."""

    settings_path: Path
    output_dir: Path
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    currency: str = DEFAULT_CURRENCY
    gemini_model: str = DEFAULT_GEMINI_MODEL
    groq_base_url: str = DEFAULT_GROQ_BASE_URL
    max_tokens: int = DEFAULT_MAX_TOKENS
    temperature: float = DEFAULT_TEMPERATURE
    verbose: bool = False


def _to_path(value: object | None) -> Optional[Path]:
    if value is None:
        return None
    if isinstance(value, Path):
        return value.expanduser().resolve()
    text = str(value).strip()
    if not text:
        return None
    return Path(text).expanduser().resolve()


def _to_float(value: object | None) -> Optional[float]:
    if value is None:
        return None
    text = str(value).replace(",", "").strip()
    if not text:
        return None
    try:
        return float(text)
    except ValueError:
        return None


def _flag(value: object | None) -> bool:
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in _BOOLEAN_TRUE


def _namespace(cli_args: object | None) -> SimpleNamespace:
    if cli_args is None:
        return SimpleNamespace()
    if isinstance(cli_args, SimpleNamespace):
        return cli_args
    if hasattr(cli_args, "__dict__"):
        return SimpleNamespace(**{k: v for k, v in vars(cli_args).items()})
    return SimpleNamespace()


def default_settings_path() -> Path:
    return (Path.home() / ".autobom" / "settings.json").resolve()


def load_config(env: Mapping[str, str], cli_args: object | None = None) -> RuntimeConfig:
    """Build a :class:`RuntimeConfig` from environment variables and CLI options."""

    default_output_dir = (Path.cwd() / "outputs").resolve()

    settings_path = _to_path(env.get("AUTOBOM_SETTINGS_PATH")) or default_settings_path()
    output_dir = _to_path(env.get("AUTOBOM_OUTPUT_DIR")) or default_output_dir
    timeout_seconds = _to_float(env.get("AUTOBOM_TIMEOUT_SECONDS")) or DEFAULT_TIMEOUT_SECONDS
    currency = (env.get("AUTOBOM_CURRENCY") or "").strip() or DEFAULT_CURRENCY
    gemini_model = (env.get("GEMINI_MODEL") or "").strip() or DEFAULT_GEMINI_MODEL
    groq_base_url = (env.get("GROQ_BASE_URL") or "").strip() or DEFAULT_GROQ_BASE_URL
    max_tokens = int(_to_float(env.get("AUTOBOM_MAX_TOKENS")) or DEFAULT_MAX_TOKENS)
    temperature = _to_float(env.get("AUTOBOM_TEMPERATURE"))
    if temperature is None:
        temperature = DEFAULT_TEMPERATURE
    verbose = _flag(env.get("AUTOBOM_VERBOSE"))

    cli_ns = _namespace(cli_args)
    if getattr(cli_ns, "settings_path", None):
        settings_path = _to_path(cli_ns.settings_path) or settings_path
    if getattr(cli_ns, "output_dir", None):
        output_dir = _to_path(cli_ns.output_dir) or output_dir
    if getattr(cli_ns, "timeout", None) is not None:
        timeout_seconds = max(1.0, float(cli_ns.timeout))
    if getattr(cli_ns, "currency", None):
        currency = str(cli_ns.currency).strip().upper()
    if getattr(cli_ns, "verbose", False):
        verbose = bool(cli_ns.verbose)

    return RuntimeConfig(
        settings_path=settings_path,
        output_dir=output_dir,
        timeout_seconds=timeout_seconds,
        currency=currency,
        gemini_model=gemini_model,
        groq_base_url=groq_base_url,
        max_tokens=max_tokens,
        temperature=temperature,
        verbose=verbose,
    )


__all__ = [
    "DEFAULT_CURRENCY",
    "DEFAULT_GEMINI_MODEL",
    "DEFAULT_GROQ_BASE_URL",
    "DEFAULT_GROQ_MODEL",
    "RuntimeConfig",
    "default_settings_path",
    "load_config",
]
