"""First Week CLI: Typer application with subcommands."""

import typer

from .articles_cmd import articles
from .chat_cmd import chat
from .plan_cmd import plan
from .status_cmd import check, finish_day, status
from .web_cmd import web

app = typer.Typer(
    name="firstweek",
    help="Personalized first-week onboarding plans from a tool-using agent.",
    no_args_is_help=True,
)

app.command()(web)
app.command()(plan)
app.command()(articles)
app.command()(chat)
app.command()(status)
app.command()(check)
app.command(name="finish-day")(finish_day)


if __name__ == "__main__":
    app()
