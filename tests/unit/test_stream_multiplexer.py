import logging

import pytest

from fractal.core.clients import GenerationStream, StreamMode, UpstreamError
from fractal.core.error_types import ErrorType
from fractal.core.errors import ContentGenerationFailed
from fractal.services.streaming import StreamMultiplexer, estimate_tokens
from tests.fixtures.fakes import (
    FakeClock,
    PayloadSource,
    delta,
    finish,
    make_stream,
    shape_drifted_events,
    text_of,
)

PROMPT = "p" * 400


async def _collect(multiplexer, stream, prompt=PROMPT):
    return [chunk async for chunk in multiplexer.run(stream, prompt=prompt, provider_id="openai")]


@pytest.mark.unit
def test_estimate_tokens_rounds_up():
    assert estimate_tokens("") == 0
    assert estimate_tokens("abc") == 1
    assert estimate_tokens("abcd") == 1
    assert estimate_tokens("abcde") == 2


@pytest.mark.unit
@pytest.mark.asyncio
async def test_token_accounting_and_average_speed():
    clock = FakeClock()
    source = PayloadSource(
        [(1.0, delta("a" * 40)), (1.5, delta("b" * 80)), (2.0, delta(""))], clock=clock
    )
    multiplexer = StreamMultiplexer(clock=clock)

    chunks = await _collect(multiplexer, make_stream(source))

    first, second, terminal = chunks
    assert first.content == "a" * 40
    assert first.metadata.input_tokens == 100
    assert first.metadata.output_tokens == 10
    assert first.metadata.tokens_used == 110
    assert first.metadata.token_speed == pytest.approx(10.0)

    assert second.metadata.output_tokens == 30
    assert second.metadata.tokens_used == 130
    assert second.metadata.token_speed == pytest.approx(40.0)
    assert second.metadata.response_time == 1500

    assert terminal.done is True
    assert terminal.content == ""
    assert terminal.metadata.tokens_used == 130
    # Mean of the two instantaneous readings, not the last one
    assert terminal.metadata.token_speed == pytest.approx(25.0)
    assert terminal.metadata.response_time == 2000


@pytest.mark.unit
@pytest.mark.asyncio
async def test_finish_usage_overrides_estimates_and_ends_stream():
    source = PayloadSource(
        [(None, delta("<html>")), (None, finish(40, 15, 55)), (None, delta("after finish"))]
    )

    chunks = await _collect(StreamMultiplexer(clock=FakeClock()), make_stream(source))

    assert [c.content for c in chunks] == ["<html>", ""]
    terminal = chunks[-1].metadata
    assert (terminal.input_tokens, terminal.output_tokens, terminal.tokens_used) == (40, 15, 55)


@pytest.mark.unit
@pytest.mark.asyncio
async def test_finish_without_total_sums_corrected_counts():
    source = PayloadSource([(None, delta("abcdefgh")), (None, finish(input_tokens=50))])

    chunks = await _collect(StreamMultiplexer(clock=FakeClock()), make_stream(source))

    terminal = chunks[-1].metadata
    assert terminal.input_tokens == 50
    assert terminal.output_tokens == 2
    assert terminal.tokens_used == 52


@pytest.mark.unit
@pytest.mark.asyncio
async def test_zero_valued_finish_usage_is_authoritative():
    source = PayloadSource([(None, delta("x" * 40)), (None, finish(100, 0, 100))])

    chunks = await _collect(StreamMultiplexer(clock=FakeClock()), make_stream(source))

    assert chunks[0].metadata.output_tokens == 10
    terminal = chunks[-1].metadata
    assert (terminal.input_tokens, terminal.output_tokens, terminal.tokens_used) == (100, 0, 100)


@pytest.mark.unit
@pytest.mark.asyncio
async def test_other_event_types_are_ignored():
    source = PayloadSource(
        [(None, {"type": "start"}), (None, delta("hi")), (None, {"type": "finish-step"})]
    )

    chunks = await _collect(StreamMultiplexer(clock=FakeClock()), make_stream(source))

    assert [c.content for c in chunks] == ["hi", ""]


@pytest.mark.unit
@pytest.mark.asyncio
async def test_error_event_aborts_without_terminal_chunk():
    source = PayloadSource(
        [(None, delta("partial")), (None, {"type": "error", "error": "overloaded"})]
    )
    received = []

    with pytest.raises(ContentGenerationFailed) as exc_info:
        async for chunk in StreamMultiplexer(clock=FakeClock()).run(
            make_stream(source), prompt=PROMPT, provider_id="anthropic"
        ):
            received.append(chunk)

    assert [c.content for c in received] == ["partial"]
    assert exc_info.value.provider == "anthropic"
    assert exc_info.value.error_type is ErrorType.STREAMING_ERROR
    assert exc_info.value.original_message == "overloaded"
    assert source.closed


@pytest.mark.unit
@pytest.mark.asyncio
async def test_error_event_before_content_does_not_fall_back():
    source = PayloadSource([(None, {"type": "error", "error": "bad", "text": "text view"})])

    with pytest.raises(ContentGenerationFailed):
        await _collect(StreamMultiplexer(clock=FakeClock()), make_stream(source))


@pytest.mark.unit
@pytest.mark.asyncio
async def test_empty_stream_still_emits_terminal_chunk(caplog):
    source = PayloadSource([(None, {"type": "start"})])

    with caplog.at_level(logging.WARNING):
        chunks = await _collect(StreamMultiplexer(clock=FakeClock()), make_stream(source))

    assert len(chunks) == 1
    assert chunks[0].done is True
    assert chunks[0].metadata.output_tokens == 0
    assert chunks[0].metadata.token_speed == 0.0
    assert "No content received" in caplog.text


@pytest.mark.unit
@pytest.mark.asyncio
async def test_shape_failure_falls_back_to_text_view_without_new_request():
    source = PayloadSource([(None, delta("hello ")), (None, delta("world"))])
    stream = make_stream(source, full_events=shape_drifted_events)

    chunks = await _collect(StreamMultiplexer(clock=FakeClock()), stream)

    assert [c.content for c in chunks] == ["hello ", "world", ""]
    assert source.started == 1
    assert source.pulled == 2


@pytest.mark.unit
@pytest.mark.asyncio
async def test_shape_failure_after_content_is_not_masked():
    async def drifts_after_first(payloads):
        from fractal.core.clients import StreamEvent

        seen = 0
        async for payload in payloads:
            seen += 1
            if seen > 1:
                raise KeyError("choices")
            yield StreamEvent("text-delta", text=payload["text"])

    source = PayloadSource([(None, delta("one")), (None, delta("two"))])
    stream = make_stream(source, full_events=drifts_after_first)

    with pytest.raises(ContentGenerationFailed, match="Failed to stream content"):
        await _collect(StreamMultiplexer(clock=FakeClock()), stream)


@pytest.mark.unit
@pytest.mark.asyncio
async def test_upstream_error_is_wrapped_and_not_retried():
    source = PayloadSource([], error=UpstreamError("openai", 429, {"error": {"message": "slow down"}}))

    with pytest.raises(ContentGenerationFailed) as exc_info:
        await _collect(StreamMultiplexer(clock=FakeClock()), make_stream(source))

    assert source.started == 1
    assert exc_info.value.status_code == 429
    assert exc_info.value.error_type is ErrorType.RATE_LIMIT
    assert "slow down" in str(exc_info.value)


@pytest.mark.unit
@pytest.mark.asyncio
async def test_text_mode_skips_full_view():
    source = PayloadSource([(None, {"type": "unknown", "text": "plain"})])

    chunks = await _collect(StreamMultiplexer("text", clock=FakeClock()), make_stream(source))

    assert [c.content for c in chunks] == ["plain", ""]


@pytest.mark.unit
def test_strategy_selection():
    full_capable = make_stream(PayloadSource([]))
    text_only = GenerationStream(PayloadSource([]).generate(), full_events=None, text_of=text_of)

    assert StreamMultiplexer("auto").strategies(full_capable) == [StreamMode.FULL, StreamMode.TEXT]
    assert StreamMultiplexer("full").strategies(full_capable) == [StreamMode.FULL]
    assert StreamMultiplexer("text").strategies(full_capable) == [StreamMode.TEXT]
    assert StreamMultiplexer("auto").strategies(text_only) == [StreamMode.TEXT]


@pytest.mark.unit
@pytest.mark.asyncio
async def test_abandoned_stream_releases_connection():
    source = PayloadSource([(None, delta("a")), (None, delta("b")), (None, delta("c"))])
    chunks = StreamMultiplexer(clock=FakeClock()).run(
        make_stream(source), prompt=PROMPT, provider_id="openai"
    )

    first = await chunks.__anext__()
    await chunks.aclose()

    assert first.content == "a"
    assert source.closed
    assert source.pulled == 1
