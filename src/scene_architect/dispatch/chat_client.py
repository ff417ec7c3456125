"""Clients that send one scene request to the OpenAI chat completions API."""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Mapping, Sequence

import aiohttp
import openai

from scene_architect.utils.openai_client import OpenAIClient

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ChatRequest:
    """Single chat completion task built from one payload."""

    request_id: str
    messages: Sequence[Mapping[str, str]]
    model: str
    temperature: float = 0.7


class ChatRequestError(RuntimeError):
    """Raised when a chat request fails; ``retryable`` tells the dispatcher what to do."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        error_type: str = "chat_request_error",
        retryable: bool = False,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.error_type = error_type
        self.retryable = retryable
        self.attempts: int = 0


_RETRYABLE_STATUS = frozenset({408, 429})


def is_retryable_status(status: int) -> bool:
    """Rate limiting, request timeouts and server errors are worth another attempt."""

    return status in _RETRYABLE_STATUS or status >= 500


def extract_content(data: Mapping[str, Any]) -> str:
    """Return the first choice's message content, trimmed (``""`` when absent)."""

    choices = data.get("choices")
    if not isinstance(choices, Sequence) or isinstance(choices, str) or not choices:
        return ""
    first = choices[0]
    if not isinstance(first, Mapping):
        return ""
    message = first.get("message")
    if not isinstance(message, Mapping):
        return ""
    content = message.get("content")
    if isinstance(content, str):
        return content.strip()
    # Content-part arrays: concatenate the text parts.
    if isinstance(content, list):
        parts = [
            str(part.get("text", ""))
            for part in content
            if isinstance(part, Mapping) and part.get("type", "text") == "text"
        ]
        return "".join(parts).strip()
    return ""


def request_body(request: ChatRequest) -> dict[str, Any]:
    body: dict[str, Any] = {
        "model": request.model,
        "messages": [dict(message) for message in request.messages],
        "temperature": request.temperature,
    }
    return body


class AsyncChatClient:
    """Async context manager posting chat completions over a shared aiohttp session.

    Use ``client.send`` as the dispatcher's ``send`` callable while the
    context is open.
    """

    def __init__(
        self,
        llm_client: OpenAIClient,
        *,
        concurrency: int = 4,
        timeout_seconds: float = 30.0,
        api_base: str | None = None,
    ) -> None:
        self._client = llm_client
        self._timeout = aiohttp.ClientTimeout(total=timeout_seconds)
        self._concurrency = max(1, int(concurrency))
        base = api_base or getattr(llm_client, "api_base", "https://api.openai.com/v1")
        self._endpoint = f"{base.rstrip('/')}/chat/completions"
        headers = {
            "Authorization": f"Bearer {llm_client.api_key}",
            "Content-Type": "application/json",
        }
        if getattr(llm_client, "org_id", None):
            headers["OpenAI-Organization"] = llm_client.org_id  # type: ignore[assignment]
        self._headers = headers
        self._session: aiohttp.ClientSession | None = None

    @property
    def endpoint(self) -> str:
        return self._endpoint

    async def __aenter__(self) -> "AsyncChatClient":
        connector = aiohttp.TCPConnector(
            limit=self._concurrency * 2, limit_per_host=self._concurrency
        )
        self._session = aiohttp.ClientSession(timeout=self._timeout, connector=connector)
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        if self._session is not None:
            await self._session.close()
            self._session = None

    async def send(self, request: ChatRequest) -> str:
        if self._session is None:
            raise RuntimeError("AsyncChatClient.send called outside of 'async with'.")
        start = time.perf_counter()
        async with self._session.post(
            self._endpoint, headers=self._headers, json=request_body(request)
        ) as resp:
            latency_ms = (time.perf_counter() - start) * 1000.0
            status = resp.status
            if status >= 300:
                body = await resp.text()
                logger.error(
                    "Chat request %s failed with HTTP %d: %s",
                    request.request_id,
                    status,
                    body[:200],
                )
                raise ChatRequestError(
                    f"Status {status} for {request.request_id}: {body[:200]}",
                    status_code=status,
                    error_type=f"http_{status}",
                    retryable=is_retryable_status(status),
                )
            data = await resp.json(content_type=None)
        logger.info(
            "Chat request %s succeeded in %.0f ms (status %d)",
            request.request_id,
            latency_ms,
            status,
        )
        return extract_content(data if isinstance(data, Mapping) else {})


class SdkChatClient:
    """Chat completions through the official ``openai`` SDK, run on worker threads.

    A worker thread cannot be interrupted, so ``timeout_seconds`` bounds the
    SDK call itself and ``send`` only returns once that call has ended, even
    when the awaiting coroutine was cancelled by a timeout. A retry therefore
    never overlaps the attempt it replaces.
    """

    def __init__(self, llm_client: OpenAIClient, *, timeout_seconds: float | None = None) -> None:
        self._client = llm_client
        sdk = llm_client.sdk_client
        if timeout_seconds is not None:
            sdk = sdk.with_options(timeout=float(timeout_seconds))
        self._sdk = sdk

    def submit(self, request: ChatRequest) -> str:
        start = time.perf_counter()
        try:
            response = self._sdk.chat.completions.create(**request_body(request))
        except Exception as exc:
            raise self._wrap_exception(request, exc) from exc
        latency_ms = (time.perf_counter() - start) * 1000.0
        logger.info("Chat request %s succeeded in %.0f ms (sdk)", request.request_id, latency_ms)
        return extract_content(response.model_dump(mode="json"))

    async def send(self, request: ChatRequest) -> str:
        call = asyncio.ensure_future(asyncio.to_thread(self.submit, request))
        try:
            return await asyncio.shield(call)
        except asyncio.CancelledError:
            await asyncio.wait({call})
            if not call.cancelled() and call.exception() is not None:
                logger.debug(
                    "Abandoned chat request %s ended with %r", request.request_id, call.exception()
                )
            raise

    @staticmethod
    def _wrap_exception(request: ChatRequest, exc: Exception) -> ChatRequestError:
        if isinstance(exc, openai.APITimeoutError):
            return ChatRequestError(
                f"Request timeout for {request.request_id}",
                error_type="timeout",
                retryable=True,
            )
        if isinstance(exc, openai.APIConnectionError):
            return ChatRequestError(
                f"{exc.__class__.__name__} for {request.request_id}: {exc}",
                error_type="connection_error",
                retryable=True,
            )
        status = getattr(exc, "status_code", None)
        response = getattr(exc, "response", None)
        if status is None and response is not None:
            status = getattr(response, "status_code", None)
        retryable = bool(status is not None and is_retryable_status(status))
        return ChatRequestError(
            f"{exc.__class__.__name__} for {request.request_id}: {exc}",
            status_code=status,
            error_type=f"http_{status}" if status is not None else exc.__class__.__name__,
            retryable=retryable,
        )


__all__ = [
    "AsyncChatClient",
    "ChatRequest",
    "ChatRequestError",
    "SdkChatClient",
    "extract_content",
    "is_retryable_status",
    "request_body",
]
