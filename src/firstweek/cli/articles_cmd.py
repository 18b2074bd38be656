"""firstweek articles: List the bundled handbook articles."""

import typer
from rich.console import Console
from rich.table import Table

from ..agent.handbook import CATEGORIES, list_articles

console = Console()


def articles(
    category: str = typer.Option(
        None,
        "--category", "-c",
        help=f"Only this category ({', '.join(CATEGORIES)})",
    ),
) -> None:
    """List handbook articles the onboarding agent can read."""
    if category and category != "all" and category not in CATEGORIES:
        console.print(f"[red]Unknown category: {category!r}[/red]")
        raise typer.Exit(1)

    rows = list_articles(category)

    table = Table(show_header=True, header_style="bold")
    table.add_column("Category", style="cyan")
    table.add_column("Title")
    table.add_column("Slug", style="dim")
    for a in rows:
        table.add_row(a["category"], a["title"], a["slug"])

    console.print(table)
    console.print(f"\n{len(rows)} articles")
