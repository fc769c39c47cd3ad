"""Anthropic Messages API client."""

from collections.abc import AsyncIterator

from fractal.core.clients.base import (
    BackendCompletion,
    BaseLLMClient,
    EventType,
    Payload,
    StreamEvent,
    TokenUsage,
)

ANTHROPIC_VERSION = "2023-06-01"


class AnthropicClient(BaseLLMClient):
    provider_id = "anthropic"

    def _auth_headers(self) -> dict[str, str]:
        return {
            "x-api-key": self.api_key,
            "anthropic-version": ANTHROPIC_VERSION,
        }

    def _body(self, prompt: str, temperature: float, max_tokens: int) -> Payload:
        return {
            "model": self.model,
            "max_tokens": max_tokens,
            "temperature": temperature,
            "messages": [{"role": "user", "content": prompt}],
        }

    def _completion_request(
        self, prompt: str, temperature: float, max_tokens: int
    ) -> tuple[str, Payload]:
        return f"{self.base_url}/v1/messages", self._body(prompt, temperature, max_tokens)

    def _stream_request(
        self, prompt: str, temperature: float, max_tokens: int
    ) -> tuple[str, Payload]:
        body = self._body(prompt, temperature, max_tokens)
        body["stream"] = True
        return f"{self.base_url}/v1/messages", body

    def _parse_completion(self, data: Payload) -> BackendCompletion:
        blocks = data.get("content") or []
        text = "".join(
            block.get("text", "") for block in blocks if block.get("type") == "text"
        )
        usage = data.get("usage") or {}
        input_tokens = usage.get("input_tokens")
        output_tokens = usage.get("output_tokens")
        total = (
            input_tokens + output_tokens
            if input_tokens is not None and output_tokens is not None
            else None
        )
        return BackendCompletion(
            text=text,
            usage=TokenUsage(
                input_tokens=input_tokens, output_tokens=output_tokens, total_tokens=total
            ),
        )

    async def _full_events(self, payloads: AsyncIterator[Payload]) -> AsyncIterator[StreamEvent]:
        input_tokens: int | None = None
        output_tokens: int | None = None

        async for payload in payloads:
            event_type = payload["type"]

            if event_type == "message_start":
                input_tokens = payload["message"]["usage"].get("input_tokens")
                yield StreamEvent(EventType.START)
            elif event_type == "content_block_delta":
                delta = payload["delta"]
                if delta["type"] == "text_delta":
                    yield StreamEvent(EventType.TEXT_DELTA, text=delta["text"])
                else:
                    yield StreamEvent(delta["type"])
            elif event_type == "message_delta":
                output_tokens = payload["usage"].get("output_tokens", output_tokens)
                yield StreamEvent(EventType.STEP_FINISH)
            elif event_type == "message_stop":
                total = None
                if input_tokens is not None and output_tokens is not None:
                    total = input_tokens + output_tokens
                yield StreamEvent(
                    EventType.FINISH,
                    usage=TokenUsage(
                        input_tokens=input_tokens,
                        output_tokens=output_tokens,
                        total_tokens=total,
                    ),
                )
            elif event_type == "error":
                yield StreamEvent(EventType.ERROR, error=payload.get("error"))
            else:
                # ping, content_block_start, content_block_stop
                yield StreamEvent(event_type)

    def _text_of(self, payload: Payload) -> str | None:
        if payload.get("type") != "content_block_delta":
            return None
        delta = payload.get("delta")
        if not isinstance(delta, dict):
            return None
        return delta.get("text")
