"""Value types exchanged between the generation core and its host shells.

Python attributes are snake_case; ``to_dict()`` renders the camelCase wire
shape the viewer consumes.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True, slots=True)
class GenerationOptions:
    """Optional per-request sampling settings."""

    temperature: float | None = None
    max_tokens: int | None = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None) -> GenerationOptions:
        if not data:
            return cls()
        max_tokens = data.get("maxTokens", data.get("max_tokens"))
        return cls(temperature=data.get("temperature"), max_tokens=max_tokens)

    def to_dict(self) -> dict[str, Any]:
        """Wire form with unset fields dropped."""
        result: dict[str, Any] = {}
        if self.temperature is not None:
            result["temperature"] = self.temperature
        if self.max_tokens is not None:
            result["maxTokens"] = self.max_tokens
        return result


@dataclass(frozen=True, slots=True)
class GenerationRequest:
    """A single page generation request.

    ``provider`` defaults to the first enabled provider when omitted.
    """

    url: str
    provider: str | None = None
    options: GenerationOptions = field(default_factory=GenerationOptions)


@dataclass(frozen=True, slots=True)
class ResponseMetadata:
    tokens_used: int | None = None
    input_tokens: int | None = None
    output_tokens: int | None = None
    response_time: int | None = None  # ms

    def to_dict(self) -> dict[str, Any]:
        return {
            "tokensUsed": self.tokens_used,
            "inputTokens": self.input_tokens,
            "outputTokens": self.output_tokens,
            "responseTime": self.response_time,
        }


@dataclass(frozen=True, slots=True)
class GenerationResponse:
    """Result of a blocking generation. Never mutated after creation."""

    content: str
    provider: str
    model: str
    timestamp: int  # ms since epoch
    metadata: ResponseMetadata = field(default_factory=ResponseMetadata)

    def to_dict(self) -> dict[str, Any]:
        return {
            "content": self.content,
            "provider": self.provider,
            "model": self.model,
            "timestamp": self.timestamp,
            "metadata": self.metadata.to_dict(),
        }


@dataclass(frozen=True, slots=True)
class StreamMetadata:
    tokens_used: int = 0
    input_tokens: int = 0
    output_tokens: int = 0
    response_time: int = 0  # ms since the stream started
    token_speed: float = 0.0  # tokens/sec

    def to_dict(self) -> dict[str, Any]:
        return {
            "tokensUsed": self.tokens_used,
            "inputTokens": self.input_tokens,
            "outputTokens": self.output_tokens,
            "responseTime": self.response_time,
            "tokenSpeed": self.token_speed,
        }


@dataclass(frozen=True, slots=True)
class StreamChunk:
    """One streamed delta, or the terminal ``done`` chunk with empty content."""

    content: str
    done: bool
    metadata: StreamMetadata = field(default_factory=StreamMetadata)

    def to_dict(self) -> dict[str, Any]:
        return {
            "content": self.content,
            "done": self.done,
            "metadata": self.metadata.to_dict(),
        }
