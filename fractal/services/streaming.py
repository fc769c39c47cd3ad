"""Turns a backend GenerationStream into StreamChunks with throughput metrics.

Stream flavors are tried in a fixed order chosen up front from the stream's
capabilities and the configured mode: ``full`` (typed events with usage)
then ``text`` (plain fragments). Moving on to ``text`` only happens when the
full view fails on payload shape before any content was produced; both views
replay the same upstream response, so the backend is called once.
"""

from __future__ import annotations

import logging
import math
import time
from collections.abc import AsyncGenerator, Callable
from contextlib import aclosing
from dataclasses import dataclass

from fractal.core.clients import EventType, GenerationStream, StreamMode, TokenUsage
from fractal.core.constants import CHARS_PER_TOKEN
from fractal.core.error_types import ErrorType
from fractal.core.errors import ContentGenerationFailed, FractalError, wrap_generation_error
from fractal.models import StreamChunk, StreamMetadata

logger = logging.getLogger(__name__)

# Failures that mean "the event payloads did not look like we expected"
SHAPE_ERRORS: tuple[type[Exception], ...] = (
    KeyError,
    IndexError,
    TypeError,
    ValueError,
    AttributeError,
    NotImplementedError,
)


def estimate_tokens(text: str) -> int:
    return math.ceil(len(text) / CHARS_PER_TOKEN)


@dataclass
class StreamAccounting:
    """Running token counts and speed samples for one stream."""

    input_tokens: int
    start_time: float
    last_chunk_time: float
    output_tokens: int = 0
    total_tokens: int = 0
    chunk_count: int = 0
    content_received: bool = False
    speed_samples: int = 0
    cumulative_speed: float = 0.0

    def __post_init__(self) -> None:
        self.total_tokens = self.input_tokens + self.output_tokens

    @property
    def average_speed(self) -> float:
        if self.speed_samples == 0:
            return 0.0
        return self.cumulative_speed / self.speed_samples

    def _elapsed_ms(self, now: float) -> int:
        return int((now - self.start_time) * 1000)

    def record(self, text: str, now: float) -> StreamChunk:
        """Account for one non-empty delta and build its chunk."""
        self.content_received = True
        delta_tokens = estimate_tokens(text)
        self.output_tokens += delta_tokens
        self.total_tokens = self.input_tokens + self.output_tokens

        seconds = now - self.last_chunk_time
        speed = delta_tokens / seconds if seconds > 0 else 0.0
        if speed > 0:
            self.speed_samples += 1
            self.cumulative_speed += speed
        self.last_chunk_time = now

        return StreamChunk(
            content=text,
            done=False,
            metadata=StreamMetadata(
                tokens_used=self.total_tokens,
                input_tokens=self.input_tokens,
                output_tokens=self.output_tokens,
                response_time=self._elapsed_ms(now),
                token_speed=speed,
            ),
        )

    def apply_usage(self, usage: TokenUsage) -> None:
        """Backend-reported totals replace the estimates where present."""
        if usage.input_tokens is not None:
            self.input_tokens = usage.input_tokens
        if usage.output_tokens is not None:
            self.output_tokens = usage.output_tokens
        if usage.total_tokens is not None:
            self.total_tokens = usage.total_tokens
        else:
            self.total_tokens = self.input_tokens + self.output_tokens

    def terminal(self, now: float) -> StreamChunk:
        return StreamChunk(
            content="",
            done=True,
            metadata=StreamMetadata(
                tokens_used=self.total_tokens,
                input_tokens=self.input_tokens,
                output_tokens=self.output_tokens,
                response_time=self._elapsed_ms(now),
                token_speed=self.average_speed,
            ),
        )


class StreamMultiplexer:
    """Produces a single-pass chunk sequence from a GenerationStream."""

    def __init__(
        self,
        stream_mode: str = "auto",
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.stream_mode = stream_mode
        self.clock = clock

    def strategies(self, stream: GenerationStream) -> list[StreamMode]:
        """Stream flavors to try, in order."""
        if self.stream_mode == StreamMode.TEXT or StreamMode.FULL not in stream.capabilities:
            return [StreamMode.TEXT]
        if self.stream_mode == StreamMode.FULL:
            return [StreamMode.FULL]
        return [StreamMode.FULL, StreamMode.TEXT]

    async def run(
        self,
        stream: GenerationStream,
        *,
        prompt: str,
        provider_id: str,
    ) -> AsyncGenerator[StreamChunk, None]:
        """Yield one chunk per non-empty delta, then one terminal chunk.

        The upstream connection is released however the consumer leaves:
        exhaustion, an exception, or ``aclose()`` on this generator.
        """
        now = self.clock()
        accounting = StreamAccounting(
            input_tokens=estimate_tokens(prompt), start_time=now, last_chunk_time=now
        )

        try:
            strategies = self.strategies(stream)
            for index, mode in enumerate(strategies):
                consume = self._consume_full if mode is StreamMode.FULL else self._consume_text
                try:
                    async with aclosing(consume(stream, accounting, provider_id)) as chunks:
                        async for chunk in chunks:
                            yield chunk
                    break
                except SHAPE_ERRORS as e:
                    if accounting.content_received or index == len(strategies) - 1:
                        raise
                    logger.error(
                        f"Error with {mode.value} stream, falling back to "
                        f"{strategies[index + 1].value} stream: {e!r}"
                    )

            if not accounting.content_received:
                logger.warning(
                    f"No content received from {provider_id} "
                    f"({accounting.chunk_count} events)"
                )

            end = self.clock()
            logger.info(
                f"✅ Streaming completed | Provider: {provider_id} | "
                f"Tokens: {accounting.total_tokens} | "
                f"Time: {int((end - accounting.start_time) * 1000)}ms | "
                f"Avg speed: {accounting.average_speed:.2f} tok/s"
            )
            yield accounting.terminal(end)
        except FractalError as e:
            logger.error(f"Streaming failed for {provider_id}: {e}")
            raise
        except Exception as e:
            logger.error(f"Streaming failed for {provider_id}: {e!r}")
            raise wrap_generation_error(
                e, provider=provider_id, prefix="Failed to stream content"
            ) from e
        finally:
            await stream.aclose()

    async def _consume_full(
        self,
        stream: GenerationStream,
        accounting: StreamAccounting,
        provider_id: str,
    ) -> AsyncGenerator[StreamChunk, None]:
        async with aclosing(stream.full_stream()) as events:
            async for event in events:
                accounting.chunk_count += 1

                if event.type == EventType.TEXT_DELTA:
                    text = event.text
                elif event.type == EventType.FINISH:
                    if event.usage is not None:
                        accounting.apply_usage(event.usage)
                    logger.debug(
                        f"Stream finished | In: {accounting.input_tokens} | "
                        f"Out: {accounting.output_tokens} | Total: {accounting.total_tokens}"
                    )
                    return
                elif event.type == EventType.ERROR:
                    logger.error(f"Stream error received from {provider_id}: {event.error}")
                    raise ContentGenerationFailed(
                        "An error occurred while generating content.",
                        provider=provider_id,
                        original_message=str(event.error),
                        error_type=ErrorType.STREAMING_ERROR,
                    )
                else:
                    logger.debug(f"Ignoring chunk type: {event.type}")
                    continue

                if text:
                    chunk = accounting.record(text, self.clock())
                    logger.debug(
                        f"📥 Stream chunk #{accounting.chunk_count}: {len(text)} chars, "
                        f"{accounting.total_tokens} tokens total"
                    )
                    yield chunk

    async def _consume_text(
        self,
        stream: GenerationStream,
        accounting: StreamAccounting,
        provider_id: str,
    ) -> AsyncGenerator[StreamChunk, None]:
        async with aclosing(stream.text_stream()) as fragments:
            async for text in fragments:
                accounting.chunk_count += 1
                if text:
                    chunk = accounting.record(text, self.clock())
                    logger.debug(
                        f"📥 {provider_id} text chunk #{accounting.chunk_count}: "
                        f"{len(text)} chars, {accounting.total_tokens} tokens total"
                    )
                    yield chunk
