"""Chat-completion provider using Groq's OpenAI-compatible endpoint."""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence

import httpx
import openai
from openai import OpenAI

from ..config import DEFAULT_GROQ_BASE_URL, DEFAULT_GROQ_MODEL, DEFAULT_MAX_TOKENS, DEFAULT_TEMPERATURE
from ..errors import EmptyResponseError, ProviderError, ProviderTimeoutError
from ..models import EncodedFile
from .base import BOMProvider

LOGGER = logging.getLogger(__name__)


class GroqProvider(BOMProvider):
    name = "groq"
    label = "Groq"

    def __init__(
        self,
        api_key: Optional[str],
        model: str = DEFAULT_GROQ_MODEL,
        *,
        base_url: str = DEFAULT_GROQ_BASE_URL,
        max_tokens: int = DEFAULT_MAX_TOKENS,
        temperature: float = DEFAULT_TEMPERATURE,
        http_client: Optional[httpx.Client] = None,
    ) -> None:
        super().__init__(api_key)
        self.model = model or DEFAULT_GROQ_MODEL
        self.base_url = base_url
        self.max_tokens = max_tokens
        self.temperature = temperature
        self._http_client = http_client

    def build_messages(self, prompt: str, files: Sequence[EncodedFile]) -> List[Dict[str, Any]]:
        content: List[Dict[str, Any]] = [{"type": "text", "text": prompt}]
        for encoded in files:
            if not encoded.mime_type.startswith("image/"):
                LOGGER.debug("Sending %s (%s) as an image part", encoded.name or "attachment", encoded.mime_type)
            content.append({"type": "image_url", "image_url": {"url": encoded.data_uri()}})
        return [{"role": "user", "content": content}]

    def generate(
        self,
        prompt: str,
        files: Sequence[EncodedFile],
        *,
        timeout: Optional[float] = None,
    ) -> str:
        api_key = self.require_api_key()
        client = OpenAI(
            api_key=api_key,
            base_url=self.base_url,
            max_retries=0,
            timeout=timeout,
            http_client=self._http_client,
        )
        LOGGER.info("Requesting BOM from Groq model %s with %d file(s)", self.model, len(files))
        try:
            response = client.chat.completions.create(
                messages=self.build_messages(prompt, files),
                model=self.model,
                temperature=self.temperature,
                max_tokens=self.max_tokens,
                response_format={"type": "json_object"},
            )
        except openai.APITimeoutError as exc:
            raise ProviderTimeoutError(
                "Groq API Error: request timed out", provider=self.name
            ) from exc
        except openai.APIStatusError as exc:
            message = _status_error_message(exc)
            raise ProviderError(
                f"Groq API Error: {message}", provider=self.name, status=exc.status_code
            ) from exc
        except openai.APIConnectionError as exc:
            raise ProviderError(f"Groq API Error: {exc}", provider=self.name) from exc
        finally:
            # An injected http_client belongs to the caller and stays open.
            if self._http_client is None:
                client.close()

        content = _first_choice_content(response)
        if not content:
            raise EmptyResponseError("No content returned from Groq", provider=self.name)
        return content


def _status_error_message(exc: "openai.APIStatusError") -> str:
    body = exc.body
    if isinstance(body, dict):
        message = body.get("message")
        if not message and isinstance(body.get("error"), dict):
            message = body["error"].get("message")
        if message:
            return str(message)
    reason = getattr(exc.response, "reason_phrase", "") if exc.response is not None else ""
    return reason or f"HTTP {exc.status_code}"


def _first_choice_content(response: object) -> Optional[str]:
    choices = getattr(response, "choices", None)
    if not choices:
        return None
    message = getattr(choices[0], "message", None)
    text = getattr(message, "content", None) if message is not None else None
    if isinstance(text, list):
        # Some models return a list of content parts
        text = "\n".join(part.get("text", "") if isinstance(part, dict) else str(part) for part in text)
    return text.strip() if text else None


__all__ = ["GroqProvider"]
