"""Provider and template listing commands for the fractal CLI."""

import typer
from rich.console import Console
from rich.table import Table

from fractal.core.constants import BACKENDS
from fractal.core.provider import CredentialLoader, ProviderRegistry
from fractal.services.prompt import PromptBuilder


def providers() -> None:
    """Show which backends are configured."""
    console = Console()
    registry = ProviderRegistry.from_credentials(CredentialLoader().load())
    status = registry.provider_status()

    table = Table(title="AI Providers")
    table.add_column("Provider", style="cyan")
    table.add_column("Name")
    table.add_column("Model", style="green")
    table.add_column("Status")
    table.add_column("Credential", style="dim")

    for backend in BACKENDS:
        provider = registry.get(backend.id)
        configured = status[backend.id]["configured"]
        table.add_row(
            backend.id,
            backend.name,
            provider.model if provider else backend.default_model,
            "[green]✅ configured[/green]" if configured else "[red]❌ missing[/red]",
            backend.credential_env_var,
        )
    console.print(table)

    if registry.has_providers():
        console.print(f"Default provider: [bold cyan]{registry.default_provider()}[/bold cyan]")
    else:
        console.print("[yellow]No AI providers configured. Please set up API keys.[/yellow]")
        raise typer.Exit(1)


def templates() -> None:
    """List the website template catalog."""
    console = Console()
    table = Table(title="Website Templates")
    table.add_column("Type", style="cyan")
    table.add_column("Name", style="green")
    table.add_column("Description")
    for template in PromptBuilder.available_templates():
        table.add_row(template.type, template.name, template.description)
    console.print(table)
