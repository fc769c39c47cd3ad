"""Top-level generation entry point.

Per request: cache check -> provider validation -> prompt -> backend call ->
cache store (blocking path only). Streaming never reads or writes the cache.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncGenerator, Mapping
from typing import Any

from fractal.core.clients import BaseLLMClient
from fractal.core.config import Settings
from fractal.core.errors import FractalError, NoProvidersAvailable, wrap_generation_error
from fractal.core.logging import ConversationLogger, conversation_logger, new_request_id
from fractal.core.provider import (
    ClientFactory,
    CredentialLoader,
    Provider,
    ProviderRegistry,
)
from fractal.models import (
    GenerationOptions,
    GenerationRequest,
    GenerationResponse,
    ResponseMetadata,
    StreamChunk,
)
from fractal.services.cache import ResponseCache
from fractal.services.prompt import PromptBuilder
from fractal.services.streaming import StreamMultiplexer

logger = logging.getLogger(__name__)


class GenerationOrchestrator:
    """Coordinates registry, cache, prompt builder and stream multiplexer.

    All collaborators are injected; ``build_orchestrator`` does the default
    wiring from Settings.
    """

    def __init__(
        self,
        registry: ProviderRegistry,
        cache: ResponseCache,
        prompt_builder: PromptBuilder | None = None,
        multiplexer: StreamMultiplexer | None = None,
        *,
        default_temperature: float = 0.7,
        default_max_tokens: int = 4000,
        streaming_max_tokens: int = 60000,
    ) -> None:
        self.registry = registry
        self.cache = cache
        self.prompt_builder = prompt_builder or PromptBuilder()
        self.multiplexer = multiplexer or StreamMultiplexer()
        self.default_temperature = default_temperature
        self.default_max_tokens = default_max_tokens
        self.streaming_max_tokens = streaming_max_tokens

    def _temperature(self, options: GenerationOptions) -> float:
        if options.temperature is not None:
            return options.temperature
        return self.default_temperature

    async def generate(self, request: GenerationRequest) -> GenerationResponse:
        """Blocking generation; cached by (url, provider, options).

        Raises:
            NoProvidersAvailable: If no provider was given and none is configured
            ProviderNotFound / CredentialMissing: If the provider cannot be used
            ContentGenerationFailed: If the backend call fails
        """
        provider_id = request.provider or self.registry.default_provider()
        request_id = new_request_id("gen")

        with ConversationLogger.correlation_context(request_id):
            logger.info(f"Starting website generation | URL: {request.url} | Provider: {provider_id}")

            cache_key = self.cache.key(request.url, provider_id, request.options)
            cached = self.cache.get(cache_key)
            if cached is not None:
                return cached

            provider = self.registry.resolve(provider_id)
            client = self.registry.model_handle(provider_id, provider.model)
            prompt = self.prompt_builder.generate_prompt(request.url)

            conversation_logger.info(
                f"📤 AI REQUEST | Provider: {provider_id} | Model: {provider.model} | URL: {request.url}"
            )
            logger.debug(f"Generated prompt ({len(prompt)} chars)")

            start = time.monotonic()
            try:
                completion = await client.generate(
                    prompt,
                    temperature=self._temperature(request.options),
                    max_tokens=request.options.max_tokens or self.default_max_tokens,
                )
            except FractalError:
                raise
            except Exception as e:
                logger.error(f"Generation failed | URL: {request.url} | Provider: {provider_id} | {e!r}")
                raise wrap_generation_error(
                    e, provider=provider_id, prefix="Failed to generate content"
                ) from e

            response_time = int((time.monotonic() - start) * 1000)
            usage = completion.usage
            conversation_logger.info(
                f"📥 AI RESPONSE | Provider: {provider_id} | "
                f"Tokens: {usage.total_tokens if usage else 'unknown'} | Time: {response_time}ms"
            )

            response = GenerationResponse(
                content=completion.text,
                provider=provider.id,
                model=provider.model,
                timestamp=int(time.time() * 1000),
                metadata=ResponseMetadata(
                    tokens_used=usage.total_tokens if usage else None,
                    input_tokens=usage.input_tokens if usage else None,
                    output_tokens=usage.output_tokens if usage else None,
                    response_time=response_time,
                ),
            )
            self.cache.put(cache_key, response)
            logger.info(f"Website generation completed | URL: {request.url} | {len(completion.text)} chars")
            return response

    def stream(self, request: GenerationRequest) -> AsyncGenerator[StreamChunk, None]:
        """Validate eagerly, then return the lazy chunk sequence.

        Validation errors are raised here, before anything is yielded or any
        network call is made.

        Raises:
            NoProvidersAvailable: If no provider is configured at all
            ProviderNotFound / CredentialMissing / UnsupportedProvider
        """
        if not self.registry.has_providers():
            logger.error("No AI providers configured")
            raise NoProvidersAvailable()

        provider_id = request.provider or self.registry.default_provider()
        provider = self.registry.resolve(provider_id)
        client = self.registry.model_handle(provider_id, provider.model)
        prompt = self.prompt_builder.generate_prompt(request.url)
        return self._stream(request, provider, client, prompt)

    async def _stream(
        self,
        request: GenerationRequest,
        provider: Provider,
        client: BaseLLMClient,
        prompt: str,
    ) -> AsyncGenerator[StreamChunk, None]:
        # The correlation id is only set while this generator runs, never
        # across a yield, so the consumer's context is left untouched.
        request_id = new_request_id("stream")
        with ConversationLogger.correlation_context(request_id):
            conversation_logger.info(
                f"📤 AI STREAM | Provider: {provider.id} | Model: {provider.model} | URL: {request.url}"
            )
            logger.debug(f"Generated prompt for streaming ({len(prompt)} chars)")

            backend_stream = client.stream(
                prompt,
                temperature=self._temperature(request.options),
                max_tokens=request.options.max_tokens or self.streaming_max_tokens,
            )
            chunks = self.multiplexer.run(backend_stream, prompt=prompt, provider_id=provider.id)

        try:
            while True:
                with ConversationLogger.correlation_context(request_id):
                    try:
                        chunk = await anext(chunks)
                    except StopAsyncIteration:
                        return
                yield chunk
        finally:
            with ConversationLogger.correlation_context(request_id):
                await chunks.aclose()

    def list_providers(self) -> list[dict[str, Any]]:
        return self.registry.list_providers()

    def default_provider(self) -> str:
        return self.registry.default_provider()

    def has_providers(self) -> bool:
        return self.registry.has_providers()

    def provider_status(self) -> dict[str, dict[str, bool]]:
        return self.registry.provider_status()

    def clear_cache(self) -> None:
        self.cache.clear()

    def cache_stats(self) -> dict[str, int]:
        return self.cache.stats()

    async def aclose(self) -> None:
        await self.registry.aclose()


def build_orchestrator(
    settings: Settings | None = None,
    environ: Mapping[str, str] | None = None,
) -> GenerationOrchestrator:
    """Default wiring: Settings -> registry -> cache -> multiplexer -> orchestrator."""
    settings = settings or Settings.load()
    credentials = CredentialLoader(environ).load()
    registry = ProviderRegistry.from_credentials(
        credentials, ClientFactory(timeout=settings.request_timeout)
    )
    return GenerationOrchestrator(
        registry,
        ResponseCache(settings.cache_max_size),
        PromptBuilder(),
        StreamMultiplexer(stream_mode=settings.stream_mode),
        default_temperature=settings.default_temperature,
        default_max_tokens=settings.default_max_tokens,
        streaming_max_tokens=settings.streaming_max_tokens,
    )
