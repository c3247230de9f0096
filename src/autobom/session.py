"""Headless state for the three-step estimate wizard."""
from __future__ import annotations

import logging
from enum import IntEnum
from pathlib import Path
from typing import Callable, List, Optional

from .cancellation import CancelToken
from .config import RuntimeConfig
from .encoding import attach_file
from .errors import BOMError, ReadError, user_message
from .models import AttachedFile, BOMResult, BOMSummary, ProjectInput
from .pipeline import generate_bom
from .presenter import summarize
from .providers import BOMProvider, create_provider
from .settings import ProviderSettings, SettingsStore

LOGGER = logging.getLogger(__name__)

ProviderFactory = Callable[[ProviderSettings, RuntimeConfig], BOMProvider]


class Step(IntEnum):
    RATE_LIST = 0
    PROJECT_INPUT = 1
    RESULTS = 2


class EstimateSession:
    """Holds one generate -> view -> reset cycle.

    Errors from a generation attempt are converted into a single message on
    ``error``; a failed attempt never leaves a partial result behind.
    """

    def __init__(
        self,
        settings: ProviderSettings,
        config: RuntimeConfig,
        *,
        provider_factory: ProviderFactory = create_provider,
    ) -> None:
        self.settings = settings
        self.config = config
        self._provider_factory = provider_factory
        self.step = Step.RATE_LIST
        self.rate_list = ""
        self.description = ""
        self.files: List[AttachedFile] = []
        self.result: Optional[BOMResult] = None
        self.error: Optional[str] = None
        self.is_loading = False
        self._cancel: Optional[CancelToken] = None

    # Navigation ---------------------------------------------------------------
    def next_step(self) -> bool:
        if self.step == Step.RATE_LIST:
            if not self.rate_list.strip():
                self.error = "Please provide a rate list before continuing."
                return False
            self.step = Step.PROJECT_INPUT
            return True
        return False

    def back(self) -> None:
        if self.step == Step.PROJECT_INPUT and not self.is_loading:
            self.step = Step.RATE_LIST

    # Project input ------------------------------------------------------------
    def attach(self, path: str | Path) -> Optional[AttachedFile]:
        try:
            attached = attach_file(path)
        except ReadError as exc:
            LOGGER.warning("Unable to attach %s: %s", path, exc)
            self.error = user_message(exc)
            return None
        self.files.append(attached)
        return attached

    def remove_file(self, index: int) -> None:
        if 0 <= index < len(self.files):
            del self.files[index]

    @property
    def project(self) -> ProjectInput:
        return ProjectInput(description=self.description, files=list(self.files))

    @property
    def can_submit(self) -> bool:
        return bool(self.rate_list.strip()) and not self.project.is_empty() and not self.is_loading

    # Generation ---------------------------------------------------------------
    def generate(self) -> bool:
        """Run one generation attempt; return ``True`` when a BOM is ready."""

        if self.is_loading:
            LOGGER.debug("Generation already in progress; ignoring request")
            return False
        self.is_loading = True
        self.error = None
        self._cancel = CancelToken(self.config.timeout_seconds)
        try:
            provider = self._provider_factory(self.settings, self.config)
            self.result = generate_bom(
                self.rate_list,
                self.project,
                self.settings,
                self.config,
                cancel=self._cancel,
                provider=provider,
            )
        except BOMError as exc:
            LOGGER.error("BOM generation failed: %s", exc)
            self.result = None
            self.error = user_message(exc)
            return False
        except Exception as exc:
            LOGGER.exception("Unexpected error during BOM generation")
            self.result = None
            self.error = user_message(exc)
            return False
        finally:
            self.is_loading = False
            self._cancel = None
        self.step = Step.RESULTS
        return True

    def cancel(self) -> None:
        if self._cancel is not None:
            self._cancel.cancel()

    def dismiss_error(self) -> None:
        self.error = None

    def summary(self) -> Optional[BOMSummary]:
        if self.result is None:
            return None
        return summarize(self.result)

    # Settings -----------------------------------------------------------------
    def save_settings(self, settings: ProviderSettings, store: SettingsStore) -> None:
        store.save(settings)
        self.settings = settings

    def reset(self) -> None:
        """Start a new estimate; the rate list is kept because users reuse it."""

        self.step = Step.RATE_LIST
        self.result = None
        self.files = []
        self.description = ""
        self.error = None


__all__ = ["EstimateSession", "Step"]
