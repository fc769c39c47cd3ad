"""Main CLI entry point for fractal."""

import typer
from rich.console import Console

from fractal.cli.commands import config, generate, providers, server
from fractal.core.config import ConfigError, Settings
from fractal.core.logging import configure_root_logging

app = typer.Typer(
    name="fractal",
    help="Fractal CLI - browse a web generated on demand by LLMs",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

app.command("generate")(generate.generate)
app.command("stream")(generate.stream)
app.command("providers")(providers.providers)
app.command("templates")(providers.templates)
app.command("start")(server.start)
app.add_typer(config.app, name="config")


@app.command()
def version() -> None:
    """Show version information."""
    from fractal import __version__

    console = Console()
    console.print(f"[bold cyan]fractal[/bold cyan] version [green]{__version__}[/green]")


@app.callback()
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
) -> None:
    """Fractal CLI."""
    if ctx.invoked_subcommand == "config":
        # config commands report bad settings themselves
        configure_root_logging("DEBUG" if verbose else "INFO")
        return

    try:
        settings = Settings.load()
    except ConfigError as e:
        Console(stderr=True).print(f"[red]❌ {e}[/red]")
        raise typer.Exit(2) from e

    configure_root_logging("DEBUG" if verbose else settings.log_level)
    ctx.obj = settings


if __name__ == "__main__":
    app()
