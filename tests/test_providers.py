import json
from types import SimpleNamespace

import httpx
import pytest
from google.genai import errors as genai_errors
from google.genai import types

from autobom.config import RuntimeConfig
from autobom.errors import AuthError, EmptyResponseError, ProviderError
from autobom.models import EncodedFile
from autobom.providers import GeminiProvider, GroqProvider, create_provider
from autobom.providers import groq as groq_module
from autobom.settings import ProviderSettings

PNG = EncodedFile(mime_type="image/png", data="iVBORw0KGgo=", name="front.png")


def _completion(content):
    return {
        "id": "chatcmpl-1",
        "object": "chat.completion",
        "created": 1700000000,
        "model": "llama-3.2-11b-vision-preview",
        "choices": [
            {
                "index": 0,
                "finish_reason": "stop",
                "message": {"role": "assistant", "content": content},
            }
        ],
    }


def _groq(handler, api_key="gsk_test"):
    client = httpx.Client(transport=httpx.MockTransport(handler))
    return GroqProvider(api_key, http_client=client)


def test_groq_sends_prompt_and_images_as_json_request():
    seen = {}

    def handler(request):
        seen["url"] = str(request.url)
        seen["auth"] = request.headers["Authorization"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json=_completion('{"items": []}'))

    text = _groq(handler).generate("Build the BOM", [PNG], timeout=5)

    assert text == '{"items": []}'
    assert seen["url"] == "https://api.groq.com/openai/v1/chat/completions"
    assert seen["auth"] == "Bearer gsk_test"
    body = seen["body"]
    assert body["model"] == "llama-3.2-11b-vision-preview"
    assert body["temperature"] == 0.1
    assert body["max_tokens"] == 8000
    assert body["response_format"] == {"type": "json_object"}
    content = body["messages"][0]["content"]
    assert content[0] == {"type": "text", "text": "Build the BOM"}
    assert content[1] == {"type": "image_url", "image_url": {"url": "data:image/png;base64,iVBORw0KGgo="}}


def test_groq_error_message_comes_from_response_body():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(429, json={"error": {"message": "rate limited"}})

    with pytest.raises(ProviderError) as excinfo:
        _groq(handler).generate("prompt", [], timeout=5)

    assert "rate limited" in str(excinfo.value)
    assert excinfo.value.status == 429
    assert len(calls) == 1


def test_groq_error_without_json_body_uses_reason_phrase():
    def handler(request):
        return httpx.Response(500, text="boom")

    with pytest.raises(ProviderError) as excinfo:
        _groq(handler).generate("prompt", [], timeout=5)

    assert str(excinfo.value) == "Groq API Error: Internal Server Error"


@pytest.mark.parametrize("payload", [{**_completion(None)}, {**_completion("x"), "choices": []}])
def test_groq_without_content_raises_empty_response(payload):
    def handler(request):
        return httpx.Response(200, json=payload)

    with pytest.raises(EmptyResponseError):
        _groq(handler).generate("prompt", [], timeout=5)


def test_groq_keeps_injected_http_client_open():
    def handler(request):
        return httpx.Response(200, json=_completion('{"items": []}'))

    provider = _groq(handler)

    assert provider.generate("first", [], timeout=5) == '{"items": []}'
    assert provider.generate("second", [], timeout=5) == '{"items": []}'


def test_groq_closes_client_it_creates(monkeypatch):
    closed = []

    def handler(request):
        return httpx.Response(429, json={"error": {"message": "rate limited"}})

    class RecordingOpenAI(groq_module.OpenAI):
        def __init__(self, **kwargs):
            kwargs["http_client"] = httpx.Client(transport=httpx.MockTransport(handler))
            super().__init__(**kwargs)

        def close(self):
            closed.append(True)
            super().close()

    monkeypatch.setattr(groq_module, "OpenAI", RecordingOpenAI)

    with pytest.raises(ProviderError):
        GroqProvider("gsk_test").generate("prompt", [], timeout=5)
    assert closed == [True]


def test_groq_without_key_never_sends_request():
    def handler(request):
        raise AssertionError("request should not be sent")

    with pytest.raises(AuthError) as excinfo:
        _groq(handler, api_key="").generate("prompt", [])
    assert str(excinfo.value) == "Groq API Key is missing. Please add your API Key in Settings."


class FakeModels:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.kwargs = None

    def generate_content(self, **kwargs):
        self.kwargs = kwargs
        if self.error is not None:
            raise self.error
        return self.response


def _gemini(models, api_key="g-key"):
    created = {}

    def factory(key, http_options):
        created["key"] = key
        created["http_options"] = http_options
        return SimpleNamespace(models=models)

    return GeminiProvider(api_key, model="gemini-test", client_factory=factory), created


def test_gemini_requests_schema_constrained_json():
    models = FakeModels(response=SimpleNamespace(text='{"items": []}'))
    provider, created = _gemini(models)

    text = provider.generate("Build the BOM", [PNG], timeout=2.5)

    assert text == '{"items": []}'
    assert created["key"] == "g-key"
    assert created["http_options"].timeout == 2500
    assert models.kwargs["model"] == "gemini-test"
    contents = models.kwargs["contents"]
    assert isinstance(contents[0], types.Part)
    assert contents[0].inline_data.mime_type == "image/png"
    assert contents[-1] == "Build the BOM"
    config = models.kwargs["config"]
    assert config.response_mime_type == "application/json"
    assert config.response_schema.required == ["items"]


@pytest.mark.parametrize("text", [None, "", "   "])
def test_gemini_empty_text_raises_empty_response(text):
    provider, _ = _gemini(FakeModels(response=SimpleNamespace(text=text)))

    with pytest.raises(EmptyResponseError) as excinfo:
        provider.generate("prompt", [])
    assert str(excinfo.value) == "No response from Gemini"


def test_gemini_api_error_is_wrapped():
    error = genai_errors.ClientError(
        429, {"error": {"code": 429, "message": "rate limited", "status": "RESOURCE_EXHAUSTED"}}
    )
    provider, _ = _gemini(FakeModels(error=error))

    with pytest.raises(ProviderError) as excinfo:
        provider.generate("prompt", [])

    assert "rate limited" in str(excinfo.value)
    assert excinfo.value.status == 429


def test_gemini_without_key_raises_auth_error(monkeypatch):
    def factory(key, http_options):
        raise AssertionError("client should not be created")

    provider = GeminiProvider("", client_factory=factory)

    with pytest.raises(AuthError) as excinfo:
        provider.generate("prompt", [])
    assert excinfo.value.provider == "gemini"


def test_create_provider_selects_client(tmp_path, monkeypatch):
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    config = RuntimeConfig(settings_path=tmp_path / "s.json", output_dir=tmp_path, gemini_model="gemini-x")

    gemini = create_provider(ProviderSettings(gemini_api_key="g"), config)
    groq = create_provider(ProviderSettings(provider="groq", groq_api_key="q", groq_model="llama-custom"), config)

    assert isinstance(gemini, GeminiProvider)
    assert gemini.model == "gemini-x"
    assert gemini.api_key == "g"
    assert isinstance(groq, GroqProvider)
    assert groq.model == "llama-custom"
    assert groq.max_tokens == config.max_tokens
