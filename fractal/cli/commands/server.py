"""HTTP server command for the fractal CLI."""

import typer
import uvicorn
from rich.console import Console
from rich.table import Table

from fractal.core.config import Settings
from fractal.core.constants import APP_NAME


def start(
    ctx: typer.Context,
    host: str = typer.Option(None, "--host", help="Override host"),
    port: int = typer.Option(None, "--port", help="Override port"),
    reload: bool = typer.Option(False, "--reload", help="Enable auto-reload for development"),
) -> None:
    """Start the HTTP server."""
    console = Console()
    settings = ctx.obj if isinstance(ctx.obj, Settings) else Settings.load()

    server_host = host or settings.host
    server_port = port or settings.port

    table = Table(title=f"{APP_NAME} Configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("Server URL", f"http://{server_host}:{server_port}")
    table.add_row("Stream mode", settings.stream_mode)
    table.add_row("Cache size", str(settings.cache_max_size))
    table.add_row("Request timeout", f"{settings.request_timeout}s")
    console.print(table)

    uvicorn.run(
        "fractal.main:create_app",
        factory=True,
        host=server_host,
        port=server_port,
        reload=reload,
        log_level=settings.log_level.lower(),
    )
