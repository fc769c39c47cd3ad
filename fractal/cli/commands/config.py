"""Configuration inspection commands for the fractal CLI."""

import typer
from rich.console import Console
from rich.table import Table

from fractal.core.config import ConfigSchema, validate_all

app = typer.Typer(help="Inspect Fractal configuration", no_args_is_help=True)


@app.command()
def check() -> None:
    """Validate every environment variable Fractal reads."""
    console = Console()
    errors = validate_all()
    if not errors:
        console.print("[green]✅ Configuration is valid[/green]")
        return

    table = Table(title="Configuration errors")
    table.add_column("Variable", style="cyan")
    table.add_column("Value")
    table.add_column("Problem", style="red")
    for error in errors:
        table.add_row(error.env_var, error.value, error.message)
    console.print(table)
    raise typer.Exit(2)


@app.command()
def docs() -> None:
    """Print Markdown reference docs for all settings."""
    typer.echo(ConfigSchema.generate_markdown_docs())
