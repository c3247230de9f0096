from __future__ import annotations

import json
import threading
from pathlib import Path
from typing import Callable, List, Optional, Sequence

import pytest
from reportlab.pdfgen import canvas

from autobom.config import RuntimeConfig
from autobom.models import EncodedFile
from autobom.providers.base import BOMProvider

# Smallest valid PNG: 1x1 transparent pixel.
PNG_BYTES = bytes.fromhex(
    "89504e470d0a1a0a0000000d4948445200000001000000010806000000"
    "1f15c4890000000d49444154789c6360000002000154a24f5d0000000049454e44ae426082"
)


class FakeProvider(BOMProvider):
    """Provider double that records calls instead of touching the network."""

    name = "fake"
    label = "Fake"

    def __init__(self, response: object, api_key: Optional[str] = "test-key") -> None:
        super().__init__(api_key)
        self.response = response
        self.calls: List[dict] = []

    def generate(self, prompt: str, files: Sequence[EncodedFile], *, timeout: Optional[float] = None) -> str:
        self.calls.append({"prompt": prompt, "files": list(files), "timeout": timeout})
        if isinstance(self.response, Exception):
            raise self.response
        return self.response  # type: ignore[return-value]


class BlockingProvider(FakeProvider):
    """Provider double whose request hangs until ``release`` is set."""

    def __init__(self, response: object) -> None:
        super().__init__(response)
        self.started = threading.Event()
        self.release = threading.Event()

    def generate(self, prompt: str, files: Sequence[EncodedFile], *, timeout: Optional[float] = None) -> str:
        self.started.set()
        self.release.wait(5)
        return super().generate(prompt, files, timeout=timeout)


@pytest.fixture
def runtime_config(tmp_path: Path) -> RuntimeConfig:
    return RuntimeConfig(
        settings_path=tmp_path / "settings.json",
        output_dir=tmp_path / "outputs",
        timeout_seconds=5.0,
    )


@pytest.fixture
def bom_payload() -> dict:
    return {
        "metadata": {
            "projectName": "Line 2 Guarding",
            "drawingNumber": "DWG-101",
            "client": "Acme Automation",
            "date": "2024-05-01",
            "totalWeight": "120 kg",
        },
        "items": [
            {
                "category": "1. Aluminum Profiles",
                "item": "Profile 45x90",
                "description": "L=1000mm x 4",
                "unit": "m",
                "quantity": 4.0,
                "rate": 450.0,
                "amount": 1800.0,
            },
            {
                "category": "5. Hardware & Accessories",
                "item": "Hinge",
                "description": "Zinc die-cast",
                "unit": "nos",
                "quantity": 8,
                "rate": 120,
                "amount": 960,
            },
        ],
        "totalCost": 2760,
        "currency": "INR",
    }


@pytest.fixture
def bom_json(bom_payload: dict) -> str:
    return json.dumps(bom_payload)


@pytest.fixture
def fake_provider() -> Callable[..., FakeProvider]:
    def _create(response: object, api_key: Optional[str] = "test-key") -> FakeProvider:
        return FakeProvider(response, api_key=api_key)

    return _create


@pytest.fixture
def blocking_provider():
    providers: List[BlockingProvider] = []

    def _create(response: object) -> BlockingProvider:
        provider = BlockingProvider(response)
        providers.append(provider)
        return provider

    yield _create
    for provider in providers:
        provider.release.set()


@pytest.fixture
def png_factory(tmp_path: Path) -> Callable[[str], Path]:
    def _create(filename: str) -> Path:
        path = tmp_path / filename
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(PNG_BYTES)
        return path

    return _create


@pytest.fixture
def pdf_factory(tmp_path: Path) -> Callable[[str, str], Path]:
    def _create(filename: str, text: str) -> Path:
        pdf_path = tmp_path / filename
        pdf_path.parent.mkdir(parents=True, exist_ok=True)
        canv = canvas.Canvas(str(pdf_path))
        y = 800
        for line in text.splitlines():
            canv.drawString(72, y, line)
            y -= 18
        canv.save()
        return pdf_path

    return _create
