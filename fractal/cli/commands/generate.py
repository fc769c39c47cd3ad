"""Page generation commands for the fractal CLI."""

import asyncio
from pathlib import Path

import typer
from rich.console import Console
from rich.live import Live
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from fractal.core.config import Settings
from fractal.core.errors import FractalError
from fractal.models import GenerationOptions, GenerationRequest, GenerationResponse, StreamChunk
from fractal.services.extraction import ExtractionState, extract, extract_explanation
from fractal.services.navigation import normalize_url
from fractal.services.orchestrator import build_orchestrator

UrlArgument = typer.Argument(..., help="Address to generate, e.g. example.com/about")
ProviderOption = typer.Option(None, "--provider", "-p", help="openai, anthropic or google")
TemperatureOption = typer.Option(None, "--temperature", "-t", min=0.0, max=2.0)
MaxTokensOption = typer.Option(None, "--max-tokens", min=1)
OutputOption = typer.Option(None, "--output", "-o", help="Write the HTML document here")


def _settings(ctx: typer.Context) -> Settings:
    return ctx.obj if isinstance(ctx.obj, Settings) else Settings.load()


def _build_request(
    console: Console,
    url: str,
    provider: str | None,
    temperature: float | None,
    max_tokens: int | None,
) -> GenerationRequest:
    try:
        normalized = normalize_url(url)
    except FractalError as e:
        console.print(f"[red]❌ {e}[/red]")
        raise typer.Exit(1) from e
    return GenerationRequest(
        url=normalized,
        provider=provider,
        options=GenerationOptions(temperature=temperature, max_tokens=max_tokens),
    )


def _emit_document(console: Console, document: str, output: Path | None) -> None:
    if not document:
        console.print("[red]❌ Could not extract an HTML document from the response[/red]")
        raise typer.Exit(1)
    if output is None:
        typer.echo(document)
        return
    output.write_text(document, encoding="utf-8")
    console.print(f"[green]✅ Wrote {len(document)} chars to {output}[/green]")


def generate(
    ctx: typer.Context,
    url: str = UrlArgument,
    provider: str = ProviderOption,
    temperature: float = TemperatureOption,
    max_tokens: int = MaxTokensOption,
    output: Path = OutputOption,
) -> None:
    """Generate a page in one blocking call."""
    console = Console(stderr=True)
    request = _build_request(console, url, provider, temperature, max_tokens)
    orchestrator = build_orchestrator(_settings(ctx))

    async def _run() -> GenerationResponse:
        try:
            return await orchestrator.generate(request)
        finally:
            await orchestrator.aclose()

    try:
        with console.status(f"Generating {request.url}..."):
            response = asyncio.run(_run())
    except FractalError as e:
        console.print(f"[red]❌ {e.code.value}: {e}[/red]")
        raise typer.Exit(1) from e

    table = Table(title="Generation")
    table.add_column("Field", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("URL", request.url)
    table.add_row("Provider", response.provider)
    table.add_row("Model", response.model)
    table.add_row("Tokens", str(response.metadata.tokens_used))
    table.add_row("Response time", f"{response.metadata.response_time}ms")
    console.print(table)

    extraction = extract(response.content)
    reasoning = extraction.reasoning or extract_explanation(response.content)
    if reasoning:
        console.print(Panel(reasoning, title="Reasoning", expand=False))
    _emit_document(console, extraction.document, output)


def _progress(chunk: StreamChunk, state: ExtractionState) -> Text:
    meta = chunk.metadata
    return Text(
        f"⚡ {meta.token_speed:6.1f} tok/s | {meta.output_tokens} out / "
        f"{meta.tokens_used} total | {len(state.buffer)} chars | {state.source.value}"
    )


def stream(
    ctx: typer.Context,
    url: str = UrlArgument,
    provider: str = ProviderOption,
    temperature: float = TemperatureOption,
    max_tokens: int = MaxTokensOption,
    output: Path = OutputOption,
) -> None:
    """Stream a page with live token speed."""
    console = Console(stderr=True)
    request = _build_request(console, url, provider, temperature, max_tokens)
    settings = _settings(ctx)
    orchestrator = build_orchestrator(settings)
    state = ExtractionState(min_render_length=settings.min_render_length)

    async def _run() -> StreamChunk | None:
        final: StreamChunk | None = None
        try:
            chunks = orchestrator.stream(request)
            with Live(Text("Waiting for first token..."), console=console, transient=True) as live:
                async for chunk in chunks:
                    if chunk.done:
                        final = chunk
                        continue
                    state.feed(chunk.content)
                    live.update(_progress(chunk, state))
        finally:
            await orchestrator.aclose()
        return final

    try:
        final = asyncio.run(_run())
    except FractalError as e:
        console.print(f"[red]❌ {e.code.value}: {e}[/red]")
        raise typer.Exit(1) from e

    if final is not None:
        meta = final.metadata
        table = Table(title="Stream")
        table.add_column("Field", style="cyan")
        table.add_column("Value", style="green")
        table.add_row("URL", request.url)
        table.add_row("Input tokens", str(meta.input_tokens))
        table.add_row("Output tokens", str(meta.output_tokens))
        table.add_row("Total tokens", str(meta.tokens_used))
        table.add_row("Response time", f"{meta.response_time}ms")
        table.add_row("Average speed", f"{meta.token_speed:.2f} tok/s")
        table.add_row("Document source", state.source.value)
        console.print(table)

    reasoning = state.finalize()
    if reasoning:
        console.print(Panel(reasoning, title="Reasoning", expand=False))
    _emit_document(console, state.document, output)
