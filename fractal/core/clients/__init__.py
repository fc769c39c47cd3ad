"""Backend clients, one per supported LLM vendor."""

from fractal.core.clients.anthropic_client import AnthropicClient
from fractal.core.clients.base import (
    BackendCompletion,
    BaseLLMClient,
    EventType,
    GenerationStream,
    StreamEvent,
    StreamMode,
    TokenUsage,
    UpstreamError,
)
from fractal.core.clients.google_client import GoogleClient
from fractal.core.clients.openai_client import OpenAIClient

__all__ = [
    "AnthropicClient",
    "BackendCompletion",
    "BaseLLMClient",
    "EventType",
    "GenerationStream",
    "GoogleClient",
    "OpenAIClient",
    "StreamEvent",
    "StreamMode",
    "TokenUsage",
    "UpstreamError",
]
