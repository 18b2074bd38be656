"""firstweek status / check / finish-day: Track progress through a saved plan."""

from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from ..client.api import ApiError, send_daily_summary, summary_payload
from ..client.tracker import PlanTracker
from ..core.config import load_config
from ..core.plan import PlanValidationError

console = Console()

PRIORITY_STYLES = {
    "high": "[red]high[/red]",
    "medium": "[yellow]medium[/yellow]",
    "low": "[dim]low[/dim]",
}


def status(
    plan: Path = typer.Argument(..., help="Saved plan JSON"),
) -> None:
    """Show days and tasks of a plan with their completion."""
    tracker = _load(plan)
    onboarding = tracker.plan

    console.print(f"\n[bold]{onboarding.employee_name}[/bold], {onboarding.role}")
    console.print(f"Current day: {tracker.current_day}")
    console.print()

    for day in onboarding.days:
        done, total = tracker.day_progress(day.day)
        marker = " [green](finished)[/green]" if tracker.is_day_completed(day.day) else ""
        table = Table(
            title=f"Day {day.day}: {day.title}  {done}/{total}{marker}",
            title_justify="left",
            show_header=True,
            header_style="bold",
        )
        table.add_column("", width=3)
        table.add_column("Task", style="cyan")
        table.add_column("Priority")
        table.add_column("Id", style="dim")
        for task in day.tasks:
            check = "[green]x[/green]" if tracker.is_task_completed(task.id) else " "
            table.add_row(check, task.title, PRIORITY_STYLES.get(task.priority, task.priority), task.id)
        console.print(table)
        console.print()


def check(
    plan: Path = typer.Argument(..., help="Saved plan JSON"),
    task_id: str = typer.Argument(..., help="Task id to toggle"),
) -> None:
    """Toggle a task between done and not done."""
    tracker = _load(plan)
    try:
        done = tracker.toggle_task(task_id)
    except KeyError as e:
        console.print(f"[red]{e.args[0]}[/red]")
        raise typer.Exit(1)

    state = "[green]done[/green]" if done else "[yellow]not done[/yellow]"
    console.print(f"{task_id}: {state}")


def finish_day(
    plan: Path = typer.Argument(..., help="Saved plan JSON"),
    day: int = typer.Argument(..., help="Day number (1-5)"),
    feedback: str = typer.Option("", "--feedback", "-f", help="How the day went"),
    send: bool = typer.Option(
        False,
        "--send",
        help="Ask the server to email a summary of the day",
    ),
    email: str = typer.Option(None, "--email", help="Summary recipient (default from server config)"),
    api_url: str = typer.Option(None, "--api-url", help="Server URL (default from [client] config)"),
) -> None:
    """Record a day as finished, optionally emailing a summary."""
    tracker = _load(plan)
    try:
        tracker.complete_day(day, feedback)
    except KeyError as e:
        console.print(f"[red]{e.args[0]}[/red]")
        raise typer.Exit(1)

    done, total = tracker.day_progress(day)
    console.print(f"[green]Day {day} finished[/green] ({done}/{total} tasks)")
    if day == tracker.current_day:
        tracker.next_day()

    if not send:
        return

    client_cfg = load_config().get("client", {})
    try:
        result = send_daily_summary(
            api_url or client_cfg.get("api_url", "http://localhost:8000"),
            summary_payload(tracker, day, email),
            timeout=float(client_cfg.get("timeout_s", 120.0)),
        )
    except ApiError as e:
        console.print(f"[red]Summary email failed:[/red] {e}")
        raise typer.Exit(1)
    console.print(f"Summary email sent (id: {result.get('emailId', '?')})")


def _load(plan_path: Path) -> PlanTracker:
    if not plan_path.exists():
        console.print(f"[red]Plan file not found: {plan_path}[/red]")
        raise typer.Exit(1)
    tracker = PlanTracker(plan_path)
    try:
        tracker.plan
    except (ValueError, PlanValidationError) as e:
        console.print(f"[red]Not a valid plan file:[/red] {e}")
        raise typer.Exit(1)
    return tracker
