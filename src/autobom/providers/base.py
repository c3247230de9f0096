from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional, Sequence

from ..errors import AuthError
from ..models import EncodedFile


class BOMProvider(ABC):
    """Sends the prompt and encoded files to one inference service."""

    name: str = ""
    label: str = ""

    def __init__(self, api_key: Optional[str]) -> None:
        self.api_key = (api_key or "").strip()

    def require_api_key(self) -> str:
        if not self.api_key:
            raise AuthError(
                f"{self.label} API Key is missing. Please add your API Key in Settings.",
                provider=self.name,
            )
        return self.api_key

    @abstractmethod
    def generate(
        self,
        prompt: str,
        files: Sequence[EncodedFile],
        *,
        timeout: Optional[float] = None,
    ) -> str:
        """Return the raw JSON text produced by the provider."""
