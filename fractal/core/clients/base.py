"""Shared plumbing for the httpx-based backend clients.

A backend call is one upstream HTTP request. For streaming, its decoded SSE
payloads are recorded once and replayed into two views:

- ``full_stream()``: typed StreamEvents (text-delta, finish, error, ...)
- ``text_stream()``: plain text fragments

Switching views never re-invokes the backend.
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from collections.abc import AsyncGenerator, AsyncIterator, Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

import httpx

logger = logging.getLogger(__name__)

Payload = dict[str, Any]


class StreamMode(str, Enum):
    """Stream flavors, listed in the order they are tried."""

    FULL = "full"
    TEXT = "text"


class EventType(str, Enum):
    TEXT_DELTA = "text-delta"
    FINISH = "finish"
    ERROR = "error"
    START = "start"
    STEP_FINISH = "finish-step"


@dataclass(frozen=True, slots=True)
class TokenUsage:
    input_tokens: int | None = None
    output_tokens: int | None = None
    total_tokens: int | None = None


@dataclass(frozen=True, slots=True)
class StreamEvent:
    type: str  # noqa: A003
    text: str = ""
    usage: TokenUsage | None = None
    error: Any = None


@dataclass(frozen=True, slots=True)
class BackendCompletion:
    text: str
    usage: TokenUsage | None = None


class UpstreamError(Exception):
    """Non-2xx answer from a backend.

    Attributes:
        status_code: HTTP status returned by the backend
        detail: Parsed error body, or raw text when it was not JSON
    """

    def __init__(self, provider: str, status_code: int, detail: Any) -> None:
        self.provider = provider
        self.status_code = status_code
        self.detail = detail
        super().__init__(f"{provider} API error {status_code}: {_describe(detail)}")


def _describe(detail: Any) -> str:
    if isinstance(detail, dict):
        error = detail.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        if isinstance(error, str):
            return error
    return str(detail)


def _error_detail(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text or response.reason_phrase


class GenerationStream:
    """One in-flight streamed generation exposing both event views.

    Payloads are pulled from the upstream iterator on demand and kept, so a
    second view replays what the first one already consumed before reading
    further.
    """

    def __init__(
        self,
        payloads: AsyncGenerator[Payload, None],
        *,
        full_events: Callable[[AsyncIterator[Payload]], AsyncIterator[StreamEvent]] | None,
        text_of: Callable[[Payload], str | None],
    ) -> None:
        self._source = payloads
        self._full_events = full_events
        self._text_of = text_of
        self._seen: list[Payload] = []
        self._exhausted = False

    @property
    def capabilities(self) -> frozenset[StreamMode]:
        if self._full_events is None:
            return frozenset({StreamMode.TEXT})
        return frozenset({StreamMode.FULL, StreamMode.TEXT})

    async def _replay(self) -> AsyncGenerator[Payload, None]:
        index = 0
        while True:
            if index < len(self._seen):
                yield self._seen[index]
                index += 1
                continue
            if self._exhausted:
                return
            try:
                payload = await self._source.__anext__()
            except StopAsyncIteration:
                self._exhausted = True
                return
            self._seen.append(payload)

    def full_stream(self) -> AsyncIterator[StreamEvent]:
        if self._full_events is None:
            raise NotImplementedError("This backend does not expose a full event stream")
        return self._full_events(self._replay())

    async def text_stream(self) -> AsyncGenerator[str, None]:
        async for payload in self._replay():
            text = self._text_of(payload)
            if text:
                yield text

    async def aclose(self) -> None:
        """Release the upstream connection."""
        await self._source.aclose()


class BaseLLMClient(ABC):
    """httpx client for one backend and one model."""

    provider_id: str = ""

    def __init__(
        self,
        api_key: str,
        model: str,
        base_url: str,
        timeout: int = 90,
        custom_headers: dict[str, str] | None = None,
    ) -> None:
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

        headers = {"content-type": "application/json"}
        headers.update(self._auth_headers())
        headers.update(custom_headers or {})

        self.client = httpx.AsyncClient(timeout=timeout, headers=headers)

    @abstractmethod
    def _auth_headers(self) -> dict[str, str]: ...

    @abstractmethod
    def _completion_request(
        self, prompt: str, temperature: float, max_tokens: int
    ) -> tuple[str, Payload]:
        """Return (url, json body) for a blocking completion."""

    @abstractmethod
    def _stream_request(
        self, prompt: str, temperature: float, max_tokens: int
    ) -> tuple[str, Payload]:
        """Return (url, json body) for a streamed completion."""

    @abstractmethod
    def _parse_completion(self, data: Payload) -> BackendCompletion: ...

    @abstractmethod
    def _full_events(self, payloads: AsyncIterator[Payload]) -> AsyncIterator[StreamEvent]:
        """Map decoded payloads to typed events. Expected to be strict about shape."""

    @abstractmethod
    def _text_of(self, payload: Payload) -> str | None:
        """Extract text from one payload. Expected to be lenient about shape."""

    async def generate(
        self, prompt: str, *, temperature: float, max_tokens: int
    ) -> BackendCompletion:
        url, body = self._completion_request(prompt, temperature, max_tokens)
        logger.debug(f"📤 {self.provider_id.upper()} REQUEST | Model: {self.model}")

        response = await self.client.post(url, json=body)
        if response.is_error:
            raise UpstreamError(self.provider_id, response.status_code, _error_detail(response))

        return self._parse_completion(response.json())

    def stream(self, prompt: str, *, temperature: float, max_tokens: int) -> GenerationStream:
        """Prepare a streamed completion. The request is sent on first read."""
        url, body = self._stream_request(prompt, temperature, max_tokens)
        return GenerationStream(
            self._sse_payloads(url, body),
            full_events=self._full_events,
            text_of=self._text_of,
        )

    async def _sse_payloads(self, url: str, body: Payload) -> AsyncGenerator[Payload, None]:
        logger.debug(f"📤 {self.provider_id.upper()} STREAM | Model: {self.model}")

        async with self.client.stream("POST", url, json=body) as response:
            if response.is_error:
                await response.aread()
                raise UpstreamError(
                    self.provider_id, response.status_code, _error_detail(response)
                )

            async for line in response.aiter_lines():
                data = parse_sse_data(line)
                if data is None:
                    continue
                try:
                    payload = json.loads(data)
                except json.JSONDecodeError:
                    logger.warning(f"Skipping malformed SSE data from {self.provider_id}: {data[:80]}")
                    continue
                if isinstance(payload, dict):
                    yield payload

    async def aclose(self) -> None:
        await self.client.aclose()


def parse_sse_data(line: str) -> str | None:
    """Return the payload of a ``data:`` line, or None for anything else.

    ``event:`` lines, comments, blank keep-alives and the ``[DONE]`` sentinel
    are all dropped; every backend repeats the event name inside its JSON.
    """
    if not line.startswith("data:"):
        return None
    data = line[5:].strip()
    if not data or data == "[DONE]":
        return None
    return data
