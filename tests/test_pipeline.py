import logging
import threading
from dataclasses import replace

import pytest

from autobom import pipeline
from autobom.cancellation import CancelToken
from autobom.encoding import attach_file
from autobom.errors import (
    AuthError,
    GenerationCancelled,
    ProviderError,
    ProviderTimeoutError,
    SubmissionError,
)
from autobom.models import ProjectInput
from autobom.pipeline import generate_bom, run_cancellable
from autobom.settings import ProviderSettings

RATE_LIST = "Profile 45x90 - 450/m\nHinge - 120/nos"


def test_generate_bom_end_to_end(runtime_config, fake_provider, bom_json, png_factory, caplog):
    caplog.set_level(logging.INFO, logger="autobom.pipeline")
    provider = fake_provider(bom_json)
    project = ProjectInput(description="Line 2 guarding", files=[attach_file(png_factory("front.png"))])

    result = generate_bom(RATE_LIST, project, ProviderSettings(), runtime_config, provider=provider)

    assert result.total_cost == pytest.approx(2760.0)
    assert len(provider.calls) == 1
    call = provider.calls[0]
    assert RATE_LIST in call["prompt"]
    assert "Line 2 guarding" in call["prompt"]
    assert [encoded.mime_type for encoded in call["files"]] == ["image/png"]
    assert 0 < call["timeout"] <= runtime_config.timeout_seconds
    messages = [record.getMessage() for record in caplog.records]
    assert any(message.startswith("[pipeline:01]") for message in messages)
    assert any("Parsing response" in message for message in messages)


def test_missing_key_fails_before_any_network_call(runtime_config, monkeypatch):
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)

    def no_encoding(files):
        raise AssertionError("files should not be encoded")

    def no_client(*args, **kwargs):
        raise AssertionError("no client should be created")

    monkeypatch.setattr(pipeline, "encode_files", no_encoding)
    monkeypatch.setattr("autobom.providers.gemini.genai.Client", no_client)

    with pytest.raises(AuthError) as excinfo:
        generate_bom(RATE_LIST, ProjectInput(description="scope"), ProviderSettings(), runtime_config)
    assert "Gemini API Key is missing" in str(excinfo.value)


@pytest.mark.parametrize(
    "rate_list, project",
    [
        ("", ProjectInput(description="scope")),
        ("   ", ProjectInput(description="scope")),
        (RATE_LIST, ProjectInput(description="  ")),
    ],
)
def test_incomplete_submission_is_rejected(runtime_config, fake_provider, rate_list, project):
    provider = fake_provider("{}")

    with pytest.raises(SubmissionError):
        generate_bom(rate_list, project, ProviderSettings(), runtime_config, provider=provider)
    assert provider.calls == []


def test_provider_error_is_not_retried(runtime_config, fake_provider):
    provider = fake_provider(ProviderError("Groq API Error: rate limited", provider="groq", status=429))

    with pytest.raises(ProviderError, match="rate limited"):
        generate_bom(RATE_LIST, ProjectInput(description="scope"), ProviderSettings(), runtime_config, provider=provider)
    assert len(provider.calls) == 1


def test_cancel_discards_late_response(runtime_config, bom_json, blocking_provider):
    provider = blocking_provider(bom_json)
    token = CancelToken()
    canceller = threading.Thread(target=lambda: provider.started.wait(5) and token.cancel())
    canceller.start()
    try:
        with pytest.raises(GenerationCancelled):
            generate_bom(
                RATE_LIST,
                ProjectInput(description="scope"),
                ProviderSettings(),
                runtime_config,
                cancel=token,
                provider=provider,
            )
    finally:
        provider.release.set()
        canceller.join()


def test_deadline_raises_timeout(runtime_config, bom_json, blocking_provider):
    provider = blocking_provider(bom_json)
    config = replace(runtime_config, timeout_seconds=0.2)

    with pytest.raises(ProviderTimeoutError):
        generate_bom(RATE_LIST, ProjectInput(description="scope"), ProviderSettings(), config, provider=provider)


def test_run_cancellable_reraises_worker_errors():
    def boom():
        raise ValueError("bad drawing")

    with pytest.raises(ValueError, match="bad drawing"):
        run_cancellable(boom, CancelToken(5), description="test")


def test_run_cancellable_returns_value():
    assert run_cancellable(lambda: 42, CancelToken(5), description="test") == 42


def test_cancel_token_deadline_uses_clock():
    now = [100.0]
    token = CancelToken(10, clock=lambda: now[0])

    assert token.remaining() == 10
    now[0] = 111.0
    assert token.expired
    assert token.remaining() == 0

    untimed = CancelToken(clock=lambda: now[0])
    assert untimed.remaining() is None
    untimed.ensure_deadline(5)
    assert untimed.deadline == 116.0
