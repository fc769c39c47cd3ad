"""OpenAI Chat Completions client."""

from collections.abc import AsyncIterator

from fractal.core.clients.base import (
    BackendCompletion,
    BaseLLMClient,
    EventType,
    Payload,
    StreamEvent,
    TokenUsage,
)


def _usage(data: object) -> TokenUsage | None:
    if not isinstance(data, dict):
        return None
    return TokenUsage(
        input_tokens=data.get("prompt_tokens"),
        output_tokens=data.get("completion_tokens"),
        total_tokens=data.get("total_tokens"),
    )


class OpenAIClient(BaseLLMClient):
    provider_id = "openai"

    def _auth_headers(self) -> dict[str, str]:
        return {"authorization": f"Bearer {self.api_key}"}

    def _body(self, prompt: str, temperature: float, max_tokens: int) -> Payload:
        return {
            "model": self.model,
            "messages": [{"role": "user", "content": prompt}],
            "temperature": temperature,
            "max_tokens": max_tokens,
        }

    def _completion_request(
        self, prompt: str, temperature: float, max_tokens: int
    ) -> tuple[str, Payload]:
        return f"{self.base_url}/chat/completions", self._body(prompt, temperature, max_tokens)

    def _stream_request(
        self, prompt: str, temperature: float, max_tokens: int
    ) -> tuple[str, Payload]:
        body = self._body(prompt, temperature, max_tokens)
        body["stream"] = True
        # Ask for a trailing usage chunk so token counts are authoritative
        body["stream_options"] = {"include_usage": True}
        return f"{self.base_url}/chat/completions", body

    def _parse_completion(self, data: Payload) -> BackendCompletion:
        choices = data.get("choices") or []
        text = ""
        if choices:
            text = (choices[0].get("message") or {}).get("content") or ""
        return BackendCompletion(text=text, usage=_usage(data.get("usage")))

    async def _full_events(self, payloads: AsyncIterator[Payload]) -> AsyncIterator[StreamEvent]:
        async for payload in payloads:
            if "error" in payload:
                yield StreamEvent(EventType.ERROR, error=payload["error"])
                continue

            # The usage chunk arrives last with an empty choices list
            if payload.get("usage"):
                yield StreamEvent(EventType.FINISH, usage=_usage(payload["usage"]))
                continue

            choice = payload["choices"][0]
            delta = choice["delta"]
            content = delta.get("content")
            if content:
                yield StreamEvent(EventType.TEXT_DELTA, text=content)
            elif choice.get("finish_reason"):
                yield StreamEvent(EventType.STEP_FINISH)
            else:
                yield StreamEvent(EventType.START)

    def _text_of(self, payload: Payload) -> str | None:
        choices = payload.get("choices")
        if not isinstance(choices, list) or not choices:
            return None
        first = choices[0]
        if not isinstance(first, dict):
            return None
        delta = first.get("delta") or {}
        return delta.get("content") if isinstance(delta, dict) else None
