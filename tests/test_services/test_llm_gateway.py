"""
Tests for LLMGateway.

The HTTP side is served by httpx.MockTransport, so no network is involved.
"""

import json

import httpx
import pytest

from rwalens.config import Settings
from rwalens.services.llm_gateway import LLMError, LLMGateway
from rwalens.services.resilience import CircuitBreaker


def _settings(**overrides) -> Settings:
    values = dict(llm_api_key="sk-test", llm_model="gpt-test", llm_timeout_seconds=2.0)
    values.update(overrides)
    return Settings(**values)


def _gateway(handler, **overrides) -> LLMGateway:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return LLMGateway(_settings(**overrides), http_client=client)


class TestOpenAIProvider:
    @pytest.mark.asyncio
    async def test_returns_message_content(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["auth"] = request.headers["Authorization"]
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"choices": [{"message": {"content": '{"ok": true}'}}]})

        gateway = _gateway(handler)
        assert await gateway.complete_json("hello") == '{"ok": true}'

        assert seen["auth"] == "Bearer sk-test"
        assert seen["body"]["model"] == "gpt-test"
        assert seen["body"]["response_format"] == {"type": "json_object"}
        assert seen["body"]["messages"] == [{"role": "user", "content": "hello"}]
        await gateway.aclose()

    @pytest.mark.asyncio
    async def test_non_200_raises(self):
        gateway = _gateway(lambda request: httpx.Response(503, text="overloaded"))
        with pytest.raises(LLMError):
            await gateway.complete_json("hello")

    @pytest.mark.asyncio
    async def test_empty_content_raises(self):
        gateway = _gateway(lambda request: httpx.Response(200, json={"choices": []}))
        with pytest.raises(LLMError):
            await gateway.complete_json("hello")

    @pytest.mark.asyncio
    async def test_timeout_raises(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("slow", request=request)

        gateway = _gateway(handler)
        with pytest.raises(LLMError, match="timed out"):
            await gateway.complete_json("hello")

    @pytest.mark.asyncio
    async def test_missing_key_raises_without_calling(self):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(200, json={})

        gateway = _gateway(handler, llm_api_key="")
        with pytest.raises(LLMError):
            await gateway.complete_json("hello")
        assert calls == []


class TestAnthropicProvider:
    @pytest.mark.asyncio
    async def test_joins_text_blocks(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.headers["x-api-key"] == "sk-test"
            body = json.loads(request.content)
            assert "JSON" in body["system"]
            return httpx.Response(
                200,
                json={"content": [{"type": "text", "text": '{"a": '}, {"type": "text", "text": "1}"}]},
            )

        gateway = _gateway(handler, llm_provider="anthropic")
        assert await gateway.complete_json("hello") == '{"a": 1}'


class TestBreakerIntegration:
    @pytest.mark.asyncio
    async def test_open_breaker_rejects_as_llm_error(self):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(500)

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        gateway = LLMGateway(
            _settings(),
            http_client=client,
            breaker=CircuitBreaker("llm-test", failure_threshold=2, recovery_timeout=600),
        )
        for _ in range(3):
            with pytest.raises(LLMError):
                await gateway.complete_json("hello")

        assert len(calls) == 2


def test_unknown_provider_rejected():
    with pytest.raises(ValueError):
        LLMGateway(_settings(llm_provider="mystery"))
