"""firstweek chat: Ask the onboarding agent questions."""

import typer
from rich.console import Console

from ..client.api import ApiError, stream_chat
from ..client.progress import display_name
from ..core.config import load_config

console = Console()

EXIT_WORDS = ("", "exit", "quit")


def chat(
    message: str = typer.Option(None, "--message", "-m", help="Ask one question and exit"),
    api_url: str = typer.Option(
        None,
        "--api-url",
        help="Server URL (default from [client] config)",
    ),
) -> None:
    """Chat with the onboarding agent about the handbook, the codebase, or your first week."""
    client_cfg = load_config().get("client", {})
    url = api_url or client_cfg.get("api_url", "http://localhost:8000")
    timeout = float(client_cfg.get("timeout_s", 120.0))
    history: list[dict] = []

    if message:
        _turn(url, history, message, timeout)
        return

    console.print("[bold]Chat with your onboarding buddy[/bold] (empty line or 'exit' to quit)")
    while True:
        try:
            text = typer.prompt("You", default="", show_default=False)
        except typer.Abort:
            break
        if text.strip().lower() in EXIT_WORDS:
            break
        _turn(url, history, text, timeout)


def _turn(url: str, history: list[dict], text: str, timeout: float) -> None:
    history.append({"role": "user", "content": text})
    try:
        reply = stream_chat(
            url, history,
            on_delta=lambda delta: console.print(delta, end="", markup=False, highlight=False),
            on_tool=lambda name: console.print(f"\n[dim]({display_name(name)})[/dim]"),
            timeout=timeout,
        )
    except ApiError as e:
        console.print(f"\n[red]Chat failed:[/red] {e}")
        raise typer.Exit(1)
    console.print()
    history.append({"role": "assistant", "content": reply})
