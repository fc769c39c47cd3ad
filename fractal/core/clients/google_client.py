"""Google Gemini (Generative Language API) client."""

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
        input_tokens=data.get("promptTokenCount"),
        output_tokens=data.get("candidatesTokenCount"),
        total_tokens=data.get("totalTokenCount"),
    )


def _candidate_text(candidate: dict) -> str:
    parts = (candidate.get("content") or {}).get("parts") or []
    return "".join(part.get("text", "") for part in parts if isinstance(part, dict))


class GoogleClient(BaseLLMClient):
    provider_id = "google"

    def _auth_headers(self) -> dict[str, str]:
        return {"x-goog-api-key": self.api_key}

    def _body(self, prompt: str, temperature: float, max_tokens: int) -> Payload:
        return {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": {
                "temperature": temperature,
                "maxOutputTokens": max_tokens,
            },
        }

    def _completion_request(
        self, prompt: str, temperature: float, max_tokens: int
    ) -> tuple[str, Payload]:
        url = f"{self.base_url}/v1beta/models/{self.model}:generateContent"
        return url, self._body(prompt, temperature, max_tokens)

    def _stream_request(
        self, prompt: str, temperature: float, max_tokens: int
    ) -> tuple[str, Payload]:
        url = f"{self.base_url}/v1beta/models/{self.model}:streamGenerateContent?alt=sse"
        return url, self._body(prompt, temperature, max_tokens)

    def _parse_completion(self, data: Payload) -> BackendCompletion:
        candidates = data.get("candidates") or []
        text = _candidate_text(candidates[0]) if candidates else ""
        return BackendCompletion(text=text, usage=_usage(data.get("usageMetadata")))

    async def _full_events(self, payloads: AsyncIterator[Payload]) -> AsyncIterator[StreamEvent]:
        async for payload in payloads:
            if "error" in payload:
                yield StreamEvent(EventType.ERROR, error=payload["error"])
                continue

            candidate = payload["candidates"][0]
            text = "".join(part["text"] for part in candidate["content"]["parts"])
            if text:
                yield StreamEvent(EventType.TEXT_DELTA, text=text)

            # Every chunk repeats running usage; the one with finishReason is final
            if candidate.get("finishReason"):
                yield StreamEvent(EventType.FINISH, usage=_usage(payload.get("usageMetadata")))

    def _text_of(self, payload: Payload) -> str | None:
        candidates = payload.get("candidates")
        if not isinstance(candidates, list) or not candidates:
            return None
        first = candidates[0]
        return _candidate_text(first) if isinstance(first, dict) else None
