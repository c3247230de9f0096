"""Exception hierarchy for BOM generation."""
from __future__ import annotations

from typing import Optional


GENERIC_FAILURE_MESSAGE = "Failed to generate BOM. Please check your API Key and try again."


class BOMError(RuntimeError):
    """Base class for every failure raised by the generation pipeline."""


class SubmissionError(BOMError):
    """Raised when the rate list or project input cannot be submitted."""


class ReadError(BOMError):
    """Raised when an attached file cannot be read."""

    def __init__(self, message: str, path: object | None = None) -> None:
        super().__init__(message)
        self.path = path


class AuthError(BOMError):
    """Raised when the selected provider has no usable API key."""

    def __init__(self, message: str, provider: str | None = None) -> None:
        super().__init__(message)
        self.provider = provider


class ProviderError(BOMError):
    """Raised when the provider call does not return a usable response."""

    def __init__(
        self,
        message: str,
        *,
        provider: str | None = None,
        status: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.provider = provider
        self.status = status


class ProviderTimeoutError(ProviderError):
    """Raised when the provider does not answer before the deadline."""


class EmptyResponseError(ProviderError):
    """Raised when the provider answers without any text content."""


class MalformedResponseError(BOMError):
    """Raised when the provider text cannot be read as a BOM payload."""

    def __init__(self, message: str, raw_text: str | None = None) -> None:
        super().__init__(message)
        self.raw_text = raw_text


class GenerationCancelled(BOMError):
    """Raised when the user aborts a generation that is still in flight."""


def user_message(exc: BaseException) -> str:
    """Return the single message shown to the user for ``exc``."""

    if isinstance(exc, (EmptyResponseError, MalformedResponseError)):
        return GENERIC_FAILURE_MESSAGE
    if isinstance(exc, GenerationCancelled):
        return "Generation cancelled."
    if isinstance(exc, BOMError):
        text = str(exc).strip()
        return text or GENERIC_FAILURE_MESSAGE
    return GENERIC_FAILURE_MESSAGE


__all__ = [
    "AuthError",
    "BOMError",
    "EmptyResponseError",
    "GENERIC_FAILURE_MESSAGE",
    "GenerationCancelled",
    "MalformedResponseError",
    "ProviderError",
    "ProviderTimeoutError",
    "ReadError",
    "SubmissionError",
    "user_message",
]
