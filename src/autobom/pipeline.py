"""BOM generation pipeline: encode, prompt, call the provider, parse."""
from __future__ import annotations

import logging
import queue
import threading
import time
from dataclasses import dataclass
from typing import Callable, List, Optional, TypeVar

from .cancellation import CancelToken
from .config import RuntimeConfig
from .encoding import encode_files
from .errors import GenerationCancelled, ProviderTimeoutError, SubmissionError
from .models import BOMResult, EncodedFile, ProjectInput
from .parser import parse_bom_response
from .prompts import build_prompt
from .providers import BOMProvider, create_provider
from .settings import ProviderSettings

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")

POLL_INTERVAL_SECONDS = 0.1


@dataclass
class _WorkerResult:
    """Container for the outcome communicated from the worker thread."""

    ok: bool
    value: object


def validate_submission(rate_list_text: str, project: ProjectInput) -> None:
    if not (rate_list_text or "").strip():
        raise SubmissionError("Please provide a rate list before generating the BOM.")
    if project.is_empty():
        raise SubmissionError("Please add a project description or attach at least one drawing.")


def run_cancellable(
    action: Callable[[], T],
    token: CancelToken,
    *,
    description: str,
    poll_interval: float = POLL_INTERVAL_SECONDS,
) -> T:
    """Run ``action`` on a worker thread until it settles, is cancelled, or expires.

    A result that arrives after cancellation or expiry is discarded.
    """

    results: "queue.Queue[_WorkerResult]" = queue.Queue(maxsize=1)

    def worker() -> None:
        try:
            results.put(_WorkerResult(True, action()))
        except Exception as exc:  # re-raised on the caller thread
            results.put(_WorkerResult(False, exc))

    thread = threading.Thread(target=worker, name=f"autobom-{description}", daemon=True)
    thread.start()
    while True:
        if token.cancelled:
            LOGGER.info("%s cancelled by user; discarding any late response", description)
            raise GenerationCancelled(f"{description} cancelled")
        if token.expired:
            raise ProviderTimeoutError(f"{description} timed out; the provider did not respond in time")
        wait = poll_interval
        remaining = token.remaining()
        if remaining is not None:
            wait = min(wait, max(remaining, 0.0))
        try:
            outcome = results.get(timeout=wait)
        except queue.Empty:
            continue
        if token.cancelled:
            raise GenerationCancelled(f"{description} cancelled")
        if outcome.ok:
            return outcome.value  # type: ignore[return-value]
        raise outcome.value  # type: ignore[misc]


def generate_bom(
    rate_list_text: str,
    project: ProjectInput,
    settings: ProviderSettings,
    config: RuntimeConfig,
    *,
    cancel: Optional[CancelToken] = None,
    provider: Optional[BOMProvider] = None,
) -> BOMResult:
    """Generate a priced BOM for ``project`` with the provider chosen in ``settings``."""

    stage_counter = 0

    def log_stage(message: str) -> None:
        nonlocal stage_counter
        stage_counter += 1
        LOGGER.info("[pipeline:%02d] %s", stage_counter, message)

    token = cancel or CancelToken()
    token.ensure_deadline(config.timeout_seconds)

    log_stage("Validating submission")
    validate_submission(rate_list_text, project)

    client = provider or create_provider(settings, config)
    client.require_api_key()

    if token.cancelled:
        raise GenerationCancelled("Generation cancelled")
    log_stage(f"Encoding {len(project.files)} attached file(s)")
    encoded: List[EncodedFile] = encode_files(project.files)

    log_stage("Building prompt")
    prompt = build_prompt(rate_list_text, project.description, currency=config.currency)
    LOGGER.debug("Prompt length: %d characters", len(prompt))

    log_stage(f"Requesting BOM from {client.label}")
    started = time.monotonic()
    raw_text = run_cancellable(
        lambda: client.generate(prompt, encoded, timeout=token.remaining()),
        token,
        description=f"{client.label} request",
    )
    LOGGER.info("           %s responded in %.1fs (%d characters)", client.label, time.monotonic() - started, len(raw_text))

    log_stage("Parsing response")
    result = parse_bom_response(raw_text)
    LOGGER.info("           %d line item(s), total %s %.2f", len(result.items), result.currency, result.total_cost)
    return result


__all__ = ["generate_bom", "run_cancellable", "validate_submission"]
