"""firstweek plan: Generate an onboarding plan with live progress."""

import asyncio
import json
from pathlib import Path

import typer
from rich.console import Console, Group
from rich.live import Live
from rich.table import Table
from rich.text import Text

from ..agent.registry import get_agent
from ..client.api import stream_plan
from ..client.progress import PlanProgress, PlanStreamError, ProgressSnapshot
from ..client.sse import aconsume_plan_stream
from ..core.config import load_config, load_env
from ..core.constants import STATUS_COMPLETE, STATUS_IN_PROGRESS
from ..core.log import setup_logging
from ..core.plan import OnboardingPlan, PlanRequest, PlanValidationError, build_plan_prompt
from ..web.emitter import plan_sse_bytes

console = Console()

STEP_ICONS = {
    STATUS_IN_PROGRESS: "[yellow]...[/yellow]",
    STATUS_COMPLETE: "[green]OK[/green]",
}


def plan(
    name: str = typer.Option(..., "--name", "-n", help="New hire's name"),
    role: str = typer.Option(..., "--role", "-r", help="New hire's role"),
    goals: str = typer.Option(None, "--goals", "-g", help="Personal goals for the first week"),
    local: bool = typer.Option(
        False,
        "--local",
        help="Run the agent in-process instead of calling the server",
    ),
    output: Path = typer.Option(
        Path("onboarding-plan.json"),
        "--output", "-o",
        help="Where to save the plan JSON",
    ),
    api_url: str = typer.Option(
        None,
        "--api-url",
        help="Server URL (default from [client] config)",
    ),
) -> None:
    """Generate a 5-day onboarding plan, showing agent activity as it happens."""
    config = load_config()
    progress = PlanProgress()

    with Live(render_progress(progress.snapshot()), console=console, transient=False) as live:
        unsubscribe = progress.subscribe(lambda snap: live.update(render_progress(snap)))
        try:
            if local:
                setup_logging()
                env = load_env()
                request = PlanRequest(name=name, role=role, goals=goals or None)
                asyncio.run(_generate_local(request, config, env, progress))
            else:
                client_cfg = config.get("client", {})
                stream_plan(
                    api_url or client_cfg.get("api_url", "http://localhost:8000"),
                    name, role, goals,
                    progress=progress,
                    timeout=float(client_cfg.get("timeout_s", 120.0)),
                )
        except (PlanStreamError, ValueError, KeyError) as e:
            live.stop()
            console.print(f"[red]Plan generation failed:[/red] {e}")
            raise typer.Exit(1)
        except KeyboardInterrupt:
            progress.cancel()
            live.stop()
            console.print("\n[yellow]Cancelled.[/yellow]")
            raise typer.Exit(1)
        finally:
            unsubscribe()

    data = progress.plan
    output.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")

    try:
        print_plan(OnboardingPlan.from_dict(data))
    except PlanValidationError as e:
        console.print(f"[yellow]Plan saved but does not match the expected shape:[/yellow] {e}")

    console.print(f"\n[green]Plan saved to {output}[/green]")
    console.print(f"Track it with: [cyan]firstweek status {output}[/cyan]")


async def _generate_local(
    request: PlanRequest, config: dict, env: dict, progress: PlanProgress,
) -> PlanProgress:
    agent = get_agent("onboarding", config, env)
    run = agent.stream(build_plan_prompt(request))
    return await aconsume_plan_stream(plan_sse_bytes(run), progress)


def render_progress(snap: ProgressSnapshot) -> Group:
    """Renderable for the live activity panel."""
    lines = [Text.from_markup(f"[bold]Generating plan[/bold] ({snap.status})")]
    for step in snap.steps:
        icon = STEP_ICONS.get(step.status, "[dim]-[/dim]")
        lines.append(Text.from_markup(f"  {icon} {step.message}"))
    if snap.error:
        lines.append(Text.from_markup(f"  [red]{snap.error}[/red]"))
    return Group(*lines)


def print_plan(onboarding: OnboardingPlan) -> None:
    console.print(f"\n[bold]{onboarding.employee_name}[/bold], {onboarding.role}")
    if onboarding.welcome_message:
        console.print(f"[italic]{onboarding.welcome_message}[/italic]")

    for day in onboarding.days:
        table = Table(
            title=f"Day {day.day}: {day.title}",
            title_justify="left",
            show_header=True,
            header_style="bold",
        )
        table.add_column("Task", style="cyan")
        table.add_column("Type")
        table.add_column("Priority")
        table.add_column("Id", style="dim")
        for task in day.tasks:
            table.add_row(task.title, task.type, task.priority, task.id)
        console.print()
        console.print(table)

    if onboarding.suggested_first_issue:
        issue = onboarding.suggested_first_issue
        console.print(f"\n[bold]Suggested first issue:[/bold] #{issue.number} {issue.title}")
        if issue.url:
            console.print(f"  {issue.url}")
