"""firstweek web: Start the plan-generation server."""

import typer
from rich.console import Console

from ..core.config import load_config
from ..core.log import setup_logging

console = Console()


def web(
    port: int = typer.Option(
        None,
        "--port",
        help="HTTP port (default from [server] config)",
    ),
    host: str = typer.Option(
        None,
        "--host",
        help="Host to bind to (default from [server] config)",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    """Start the First Week API server (FastAPI + SSE)."""
    import uvicorn

    server_cfg = load_config().get("server", {})
    host = host or server_cfg.get("host", "0.0.0.0")
    port = port or int(server_cfg.get("port", 8000))

    setup_logging(verbose)

    console.print("[bold]Starting First Week server[/bold]")
    console.print(f"URL: http://localhost:{port}")
    console.print()

    uvicorn.run(
        "firstweek.web.app:app",
        host=host,
        port=port,
        reload=False,
        log_config=None,
    )
