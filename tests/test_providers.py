"""Tests for the GenerationProvider protocol and provider adapters."""

from __future__ import annotations

import asyncio
import json
from types import SimpleNamespace
from typing import Any
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from usersense.core.config import ProviderConfig
from usersense.core.extractor import MALFORMED_OUTPUT_ERROR
from usersense.core.orchestrator import INSIGHTS_FALLBACK, TAGS_FALLBACK
from usersense.providers import (
    GeminiProvider,
    GenerationProvider,
    GenerationResult,
    LLMAPIError,
    MockProvider,
    OllamaProvider,
    build_provider,
)
from usersense.providers.base import JSON_ONLY_INSTRUCTION
from usersense.providers.gemini import MISSING_KEY_ERROR, _is_rate_limit

FALLBACK = {"tags": []}


# -- helpers -------------------------------------------------------------


def _ollama(handler) -> OllamaProvider:
    return OllamaProvider(base_url="http://ollama.test", model="llama3", transport=httpx.MockTransport(handler))


def _gemini_with(side_effect: Any) -> tuple[GeminiProvider, AsyncMock]:
    """GeminiProvider whose SDK client is a mock with the given generate side effect."""
    generate = AsyncMock(side_effect=side_effect)
    inner = MagicMock()
    inner.aio.models.generate_content = generate

    provider = GeminiProvider(api_key="test-key", model="gemini-test", retry_delay=0)
    provider._client = inner
    return provider, generate


def _gemini_response(text: str) -> Any:
    return SimpleNamespace(text=text)


# -- GenerationResult / LLMAPIError ----------------------------------------


class TestGenerationResult:
    def test_from_fallback_copies_shape(self):
        shape = {"tags": []}
        result = GenerationResult.from_fallback(shape, "boom")
        assert result.fallback is True
        assert result.error == "boom"
        assert result.data == shape
        assert result.data is not shape

    def test_llm_api_error_attributes(self):
        e = LLMAPIError("rate limited", status_code=429, is_rate_limit=True)
        assert e.status_code == 429
        assert e.is_rate_limit is True


# -- protocol check --------------------------------------------------------


class TestProtocol:
    @pytest.mark.parametrize(
        "provider",
        [OllamaProvider(), GeminiProvider(api_key="k"), MockProvider()],
    )
    def test_adapters_satisfy_protocol(self, provider):
        assert isinstance(provider, GenerationProvider)


# -- provider selection ----------------------------------------------------


class TestBuildProvider:
    def test_default_is_ollama(self):
        provider = build_provider(ProviderConfig())
        assert isinstance(provider, OllamaProvider)

    def test_local_alias(self):
        provider = build_provider(ProviderConfig(provider="local", ollama_url="http://box:11434", ollama_model="m"))
        assert isinstance(provider, OllamaProvider)
        assert provider.base_url == "http://box:11434"
        assert provider.model == "m"

    def test_hosted_selects_gemini(self):
        provider = build_provider(ProviderConfig(provider="hosted", gemini_api_key="k", gemini_model="g"))
        assert isinstance(provider, GeminiProvider)
        assert provider.model == "g"
        assert provider.retry_delay == 2.0

    def test_mock_flag_wins(self):
        provider = build_provider(ProviderConfig(provider="gemini", mock=True))
        assert isinstance(provider, MockProvider)

    def test_unknown_name_defaults_to_local(self):
        provider = build_provider(ProviderConfig(provider="something-else"))
        assert isinstance(provider, OllamaProvider)


# -- OllamaProvider --------------------------------------------------------


class TestOllamaProvider:
    @pytest.mark.asyncio
    async def test_success_parses_response_text(self):
        seen: dict[str, Any] = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"response": 'Sure! {"tags": ["billing", "support"]}'})

        provider = _ollama(handler)
        result = await provider.generate("Extract tags", FALLBACK)

        assert result == GenerationResult(data={"tags": ["billing", "support"]})
        assert seen["path"] == "/api/generate"
        assert seen["body"]["model"] == "llama3"
        assert seen["body"]["stream"] is False
        assert seen["body"]["prompt"].startswith(JSON_ONLY_INSTRUCTION)
        assert "Extract tags" in seen["body"]["prompt"]

    @pytest.mark.asyncio
    async def test_http_error_status_falls_back_without_retry(self):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(500, text="model not loaded")

        result = await _ollama(handler).generate("p", FALLBACK)

        assert result.fallback is True
        assert result.data == FALLBACK
        assert "500" in result.error
        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_transport_failure_falls_back(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        result = await _ollama(handler).generate("p", FALLBACK)

        assert result.fallback is True
        assert "connection refused" in result.error

    @pytest.mark.asyncio
    async def test_malformed_output_falls_back_with_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"response": "I cannot comply"})

        result = await _ollama(handler).generate("p", FALLBACK)

        assert result.fallback is True
        assert result.data == FALLBACK
        assert result.error == MALFORMED_OUTPUT_ERROR

    @pytest.mark.asyncio
    async def test_non_json_body_falls_back(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text="<html>proxy error</html>")

        result = await _ollama(handler).generate("p", FALLBACK)

        assert result.fallback is True
        assert result.error

    @pytest.mark.asyncio
    async def test_probe(self):
        def ok(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/api/tags"
            return httpx.Response(200, json={"models": []})

        def down(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("down", request=request)

        assert await _ollama(ok).probe() == "reachable"
        assert await _ollama(down).probe() == "unreachable"
        assert await _ollama(lambda r: httpx.Response(503)).probe() == "unreachable"

    @pytest.mark.asyncio
    async def test_probe_with_invalid_url_is_unreachable(self):
        def invalid(request: httpx.Request) -> httpx.Response:
            raise httpx.InvalidURL("Invalid port: 'abc'")

        assert not issubclass(httpx.InvalidURL, httpx.HTTPError)
        assert await _ollama(invalid).probe() == "unreachable"

    @pytest.mark.asyncio
    async def test_lazy_client_and_aclose(self):
        provider = _ollama(lambda r: httpx.Response(200, json={"response": "{}"}))
        assert provider._client is None
        await provider.generate("p", FALLBACK)
        assert provider._client is not None
        await provider.aclose()
        assert provider._client is None


# -- GeminiProvider --------------------------------------------------------


class TestGeminiProvider:
    @patch("google.genai.Client")
    def test_lazy_client_creation(self, mock_cls):
        provider = GeminiProvider(api_key="key123")
        assert provider._client is None
        inner = provider._get_client()
        mock_cls.assert_called_once_with(api_key="key123")
        assert inner is mock_cls.return_value

    @pytest.mark.asyncio
    async def test_missing_key_falls_back_immediately(self):
        provider = GeminiProvider(api_key="")
        provider._client = MagicMock()

        result = await provider.generate("p", FALLBACK)

        assert result.fallback is True
        assert result.error == MISSING_KEY_ERROR
        provider._client.aio.models.generate_content.assert_not_called()

    @pytest.mark.asyncio
    async def test_success(self):
        provider, generate = _gemini_with([_gemini_response('```json\n{"tags": ["a"]}\n```')])

        result = await provider.generate("Extract tags", FALLBACK)

        assert result == GenerationResult(data={"tags": ["a"]})
        kwargs = generate.call_args.kwargs
        assert kwargs["model"] == "gemini-test"
        assert kwargs["contents"].startswith(JSON_ONLY_INSTRUCTION)

    @pytest.mark.asyncio
    async def test_rate_limit_then_success(self):
        provider, generate = _gemini_with([
            Exception("429 Too Many Requests"),
            _gemini_response('{"tags": ["a", "b"]}'),
        ])

        with patch("usersense.providers.gemini.asyncio.sleep", new=AsyncMock()) as sleep:
            result = await provider.generate("p", FALLBACK)

        assert result.fallback is False
        assert result.data == {"tags": ["a", "b"]}
        assert generate.await_count == 2
        sleep.assert_awaited_once_with(0)

    @pytest.mark.asyncio
    async def test_two_rate_limits_fall_back(self):
        provider, generate = _gemini_with([
            Exception("429 Too Many Requests"),
            Exception("429 Too Many Requests"),
        ])

        result = await provider.generate("p", FALLBACK)

        assert result.fallback is True
        assert result.data == FALLBACK
        assert "429" in result.error
        assert generate.await_count == 2

    @pytest.mark.asyncio
    async def test_rate_limit_detected_from_status_code(self):
        error = Exception("RESOURCE_EXHAUSTED")
        error.code = 429
        provider, generate = _gemini_with([error, _gemini_response('{"tags": []}')])

        result = await provider.generate("p", FALLBACK)

        assert result.fallback is False
        assert generate.await_count == 2

    @pytest.mark.asyncio
    async def test_other_error_is_not_retried(self):
        provider, generate = _gemini_with([Exception("400 API key not valid")])

        result = await provider.generate("p", FALLBACK)

        assert result.fallback is True
        assert result.error == "400 API key not valid"
        assert generate.await_count == 1

    @pytest.mark.asyncio
    async def test_digits_inside_model_id_are_not_a_rate_limit(self):
        provider, generate = _gemini_with([Exception("404 models/gemini-exp-0429 is not found")])

        result = await provider.generate("p", FALLBACK)

        assert result.fallback is True
        assert generate.await_count == 1

    @pytest.mark.parametrize(
        "message,expected",
        [
            ("429 Too Many Requests", True),
            ("HTTP 429", True),
            ("Error (429): quota", True),
            ("RESOURCE_EXHAUSTED", True),
            ("Rate limit reached", True),
            ("models/gemini-exp-0429 not found", False),
            ("request id 14290 failed", False),
            ("400 API key not valid", False),
        ],
    )
    def test_rate_limit_detection(self, message, expected):
        assert _is_rate_limit(Exception(message)) is expected

    @pytest.mark.asyncio
    async def test_error_reading_response_text_falls_back(self):
        class BrokenResponse:
            @property
            def text(self):
                raise ValueError("response has no text parts")

        provider, generate = _gemini_with([BrokenResponse()])

        result = await provider.generate("p", FALLBACK)

        assert result.fallback is True
        assert result.data == FALLBACK
        assert "no text parts" in result.error
        assert generate.await_count == 1

    @pytest.mark.asyncio
    async def test_default_backoff_is_two_seconds(self):
        provider = GeminiProvider(api_key="k")
        provider._client = MagicMock()
        provider._client.aio.models.generate_content = AsyncMock(
            side_effect=[Exception("429 Too Many Requests"), _gemini_response("{}")]
        )

        with patch("usersense.providers.gemini.asyncio.sleep", new=AsyncMock()) as sleep:
            await provider.generate("p", FALLBACK)

        sleep.assert_awaited_once_with(2.0)

    @pytest.mark.asyncio
    async def test_cancellation_propagates_without_retry(self):
        started = asyncio.Event()

        async def hang(**kwargs):
            started.set()
            await asyncio.sleep(60)

        provider, generate = _gemini_with(hang)

        task = asyncio.create_task(provider.generate("p", FALLBACK))
        await started.wait()
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task
        assert generate.await_count == 1

    @pytest.mark.asyncio
    async def test_probe(self):
        assert await GeminiProvider(api_key="k").probe() == "configured"
        assert await GeminiProvider(api_key="").probe() == "missing_key"


# -- MockProvider ----------------------------------------------------------


class TestMockProvider:
    @pytest.mark.asyncio
    async def test_always_fallback_without_error(self):
        result = await MockProvider().generate("anything", {"sentimentScore": 0, "label": "Neutral"})

        assert result.fallback is True
        assert result.error is None
        assert result.data == {"sentimentScore": 0, "label": "Neutral"}

    @pytest.mark.asyncio
    async def test_probe_not_applicable(self):
        assert await MockProvider().probe() == "n/a"

    @pytest.mark.asyncio
    async def test_mutating_result_leaves_fallback_constants_intact(self):
        result = await MockProvider().generate("anything", INSIGHTS_FALLBACK)
        result.data["recommendedActions"].append("leak")

        tags = await MockProvider().generate("anything", TAGS_FALLBACK)
        tags.data["tags"].append("leak")

        assert INSIGHTS_FALLBACK["recommendedActions"] == []
        assert TAGS_FALLBACK["tags"] == []
