"""Schema-constrained provider backed by the Gemini API."""
from __future__ import annotations

import logging
from typing import Any, Callable, List, Optional, Sequence

import httpx
from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from ..config import DEFAULT_GEMINI_MODEL
from ..errors import EmptyResponseError, ProviderError, ProviderTimeoutError
from ..models import EncodedFile
from .base import BOMProvider

LOGGER = logging.getLogger(__name__)

ClientFactory = Callable[[str, types.HttpOptions], Any]


def _string(description: str | None = None) -> types.Schema:
    return types.Schema(type=types.Type.STRING, description=description)


def _number(description: str | None = None) -> types.Schema:
    return types.Schema(type=types.Type.NUMBER, description=description)


BOM_RESPONSE_SCHEMA = types.Schema(
    type=types.Type.OBJECT,
    properties={
        "metadata": types.Schema(
            type=types.Type.OBJECT,
            properties={
                "projectName": _string(),
                "drawingNumber": _string(),
                "client": _string(),
                "date": _string(),
                "totalWeight": _string(),
            },
        ),
        "items": types.Schema(
            type=types.Type.ARRAY,
            items=types.Schema(
                type=types.Type.OBJECT,
                properties={
                    "category": _string("Numbered Category"),
                    "item": _string("Item Name"),
                    "description": _string("Technical specs"),
                    "unit": _string("Unit"),
                    "quantity": _number("Billable Quantity"),
                    "rate": _number("Unit Rate"),
                    "amount": _number("Total Cost"),
                },
                required=["category", "item", "quantity", "rate", "amount", "unit", "description"],
            ),
        ),
        "totalCost": _number(),
        "currency": _string(),
    },
    required=["items"],
)


def _default_client_factory(api_key: str, http_options: types.HttpOptions) -> genai.Client:
    return genai.Client(api_key=api_key, http_options=http_options)


class GeminiProvider(BOMProvider):
    name = "gemini"
    label = "Gemini"

    def __init__(
        self,
        api_key: Optional[str],
        model: str = DEFAULT_GEMINI_MODEL,
        *,
        client_factory: Optional[ClientFactory] = None,
    ) -> None:
        super().__init__(api_key)
        self.model = model or DEFAULT_GEMINI_MODEL
        self._client_factory = client_factory or _default_client_factory

    def build_contents(self, prompt: str, files: Sequence[EncodedFile]) -> List[Any]:
        parts: List[Any] = [
            types.Part.from_bytes(data=encoded.raw_bytes(), mime_type=encoded.mime_type)
            for encoded in files
        ]
        parts.append(prompt)
        return parts

    def generate(
        self,
        prompt: str,
        files: Sequence[EncodedFile],
        *,
        timeout: Optional[float] = None,
    ) -> str:
        api_key = self.require_api_key()
        http_options = types.HttpOptions(timeout=int(timeout * 1000) if timeout else None)
        client = self._client_factory(api_key, http_options)
        LOGGER.info("Requesting BOM from Gemini model %s with %d file(s)", self.model, len(files))
        try:
            response = client.models.generate_content(
                model=self.model,
                contents=self.build_contents(prompt, files),
                config=types.GenerateContentConfig(
                    response_mime_type="application/json",
                    response_schema=BOM_RESPONSE_SCHEMA,
                ),
            )
        except genai_errors.APIError as exc:
            message = getattr(exc, "message", None) or getattr(exc, "status", None) or str(exc)
            raise ProviderError(
                f"Gemini API Error: {message}", provider=self.name, status=getattr(exc, "code", None)
            ) from exc
        except httpx.TimeoutException as exc:
            raise ProviderTimeoutError("Gemini API Error: request timed out", provider=self.name) from exc
        except httpx.HTTPError as exc:
            raise ProviderError(f"Gemini API Error: {exc}", provider=self.name) from exc

        text = getattr(response, "text", None)
        if not text or not text.strip():
            raise EmptyResponseError("No response from Gemini", provider=self.name)
        return text


__all__ = ["BOM_RESPONSE_SCHEMA", "GeminiProvider"]
