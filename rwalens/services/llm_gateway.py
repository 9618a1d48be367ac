"""
LLM Gateway: text completion with a strict-JSON request.

Two wire formats are supported, selected by ``settings.llm_provider``:
- openai: Chat Completions with ``response_format={"type": "json_object"}``
- anthropic: Messages API, JSON requested through the system prompt

The gateway raises ``LLMError`` on every failure. Callers decide what a
failure means; the risk analysis engine turns it into a fallback result.
"""

from typing import Optional, Protocol

import httpx
import structlog

from rwalens.config import Settings
from rwalens.services.resilience import CircuitBreaker, CircuitOpenError

logger = structlog.get_logger(__name__)

OPENAI_API_URL = "https://api.openai.com/v1/chat/completions"
ANTHROPIC_API_URL = "https://api.anthropic.com/v1/messages"
ANTHROPIC_VERSION = "2023-06-01"

JSON_SYSTEM_PROMPT = "You are a JSON API. Respond with a single valid JSON object and nothing else."


class LLMError(Exception):
    """The completion service could not produce a response."""

    pass


class CompletionClient(Protocol):
    """Anything that turns a prompt into a JSON string."""

    model: str

    async def complete_json(self, prompt: str) -> str:
        ...


class LLMGateway:
    """HTTP client for the configured completion provider."""

    def __init__(
        self,
        settings: Settings,
        http_client: Optional[httpx.AsyncClient] = None,
        breaker: Optional[CircuitBreaker] = None,
    ):
        self.provider = settings.llm_provider.lower()
        if self.provider not in ("openai", "anthropic"):
            raise ValueError(f"Unsupported LLM provider: {settings.llm_provider!r}")

        self.api_key = settings.llm_api_key
        self.model = settings.llm_model
        self.max_tokens = settings.llm_max_tokens
        self.timeout = settings.llm_timeout_seconds
        self.url = settings.llm_base_url or (
            OPENAI_API_URL if self.provider == "openai" else ANTHROPIC_API_URL
        )
        self._client = http_client
        self._breaker = breaker or CircuitBreaker(
            name="llm",
            failure_threshold=settings.llm_breaker_failure_threshold,
            recovery_timeout=settings.llm_breaker_recovery_seconds,
        )

        if not self.api_key:
            logger.warning("llm_api_key_missing", msg="Analyses will use the fallback result")

    async def complete_json(self, prompt: str) -> str:
        """
        Send ``prompt`` and return the raw JSON text of the reply.

        Raises:
            LLMError: missing key, transport error, timeout, non-2xx status,
                empty content, or open circuit breaker
        """
        if not self.api_key:
            raise LLMError("LLM API key is not configured")

        try:
            return await self._breaker.call(self._post, prompt)
        except CircuitOpenError as e:
            raise LLMError(str(e)) from e

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _post(self, prompt: str) -> str:
        headers, payload = self._build_request(prompt)
        client = self._client or httpx.AsyncClient(timeout=self.timeout)
        try:
            response = await client.post(self.url, json=payload, headers=headers, timeout=self.timeout)
            if response.status_code != 200:
                logger.error(
                    "llm_api_error",
                    provider=self.provider,
                    status=response.status_code,
                    body=response.text[:500],
                )
                raise LLMError(f"LLM API returned HTTP {response.status_code}")
            content = self._extract_text(response.json())
        except httpx.TimeoutException as e:
            logger.error("llm_timeout", provider=self.provider, timeout=self.timeout)
            raise LLMError("LLM request timed out") from e
        except httpx.HTTPError as e:
            logger.error("llm_transport_error", provider=self.provider, error=str(e))
            raise LLMError(f"LLM transport error: {e}") from e
        except ValueError as e:
            # Body was not JSON at all
            raise LLMError(f"LLM returned an unreadable body: {e}") from e
        finally:
            if self._client is None:
                await client.aclose()

        if not content:
            raise LLMError("LLM returned no content")
        return content

    def _build_request(self, prompt: str) -> tuple[dict, dict]:
        if self.provider == "openai":
            headers = {
                "Authorization": f"Bearer {self.api_key}",
                "content-type": "application/json",
            }
            payload = {
                "model": self.model,
                "messages": [{"role": "user", "content": prompt}],
                "response_format": {"type": "json_object"},
                "max_completion_tokens": self.max_tokens,
            }
        else:
            headers = {
                "x-api-key": self.api_key,
                "anthropic-version": ANTHROPIC_VERSION,
                "content-type": "application/json",
            }
            payload = {
                "model": self.model,
                "max_tokens": self.max_tokens,
                "system": JSON_SYSTEM_PROMPT,
                "messages": [{"role": "user", "content": prompt}],
            }
        return headers, payload

    def _extract_text(self, data: dict) -> str:
        if self.provider == "openai":
            choices = data.get("choices") or []
            if not choices:
                return ""
            return (choices[0].get("message") or {}).get("content") or ""

        # Anthropic: concatenate text content blocks
        return "".join(
            block.get("text", "")
            for block in data.get("content", [])
            if block.get("type") == "text"
        )
