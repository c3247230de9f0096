"""Bill of Materials estimation from drawings, a rate list and an AI provider."""

from .errors import (
    AuthError,
    BOMError,
    EmptyResponseError,
    GenerationCancelled,
    MalformedResponseError,
    ProviderError,
    ReadError,
)
from .models import BOMLineItem, BOMMetadata, BOMResult, ProjectInput
from .pipeline import generate_bom
from .session import EstimateSession
from .settings import ProviderSettings, SettingsStore

__all__ = [
    "AuthError",
    "BOMError",
    "BOMLineItem",
    "BOMMetadata",
    "BOMResult",
    "EmptyResponseError",
    "EstimateSession",
    "GenerationCancelled",
    "MalformedResponseError",
    "ProjectInput",
    "ProviderError",
    "ProviderSettings",
    "ReadError",
    "SettingsStore",
    "generate_bom",
]
