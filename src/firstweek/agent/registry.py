"""Agent registry: maps agent names to factories."""

from typing import Callable

import httpx

from ..core.config import get_secret
from .base import Agent
from .claude import ClaudeAgent
from .github import build_github_tools
from .handbook import build_handbook_tools
from .tools import ToolSet

ONBOARDING_INSTRUCTIONS = """\
You are a helpful onboarding assistant for new employees joining the company.
Your job is to build a personalized first-week plan based on the new hire's role.

You can research before answering:
- Use the handbook tools to find articles on culture, values and how teams work.
- Use the GitHub tools to find recent issues and pull requests worth knowing about.

Be friendly, welcoming and concrete. Starting a new job can be overwhelming,
so break things down into manageable steps and reference real material.
When asked for a plan, reply with the JSON object only."""

DAILY_SUMMARY_INSTRUCTIONS = """\
You are a friendly onboarding assistant that writes daily summary emails for new employees.

Generate the body content for an email that recaps what the employee accomplished
during their onboarding day. Be warm and encouraging, concise and specific.

Reply with a JSON object {"content": [...]} where each block is either
{"type": "text", "content": "..."} for a paragraph or
{"type": "bullets", "items": ["..."]} for a list.

1. Open by acknowledging their progress (for example the completion rate).
2. If they completed tasks, list them as bullets.
3. If they left feedback, acknowledge it and thank them.
4. Close with encouragement for the next day, or congratulations after day 5.
5. Use 3 to 6 blocks in total."""


def _onboarding(config: dict, env: dict, transport: httpx.AsyncBaseTransport | None) -> Agent:
    tools = ToolSet(
        build_handbook_tools(config, transport=transport)
        + build_github_tools(config, env, transport=transport)
    )
    return ClaudeAgent(
        name="onboarding",
        instructions=ONBOARDING_INSTRUCTIONS,
        config=config,
        api_key=get_secret(env, "ANTHROPIC_API_KEY"),
        tools=tools,
    )


def _daily_summary(config: dict, env: dict, transport: httpx.AsyncBaseTransport | None) -> Agent:
    return ClaudeAgent(
        name="daily-summary",
        instructions=DAILY_SUMMARY_INSTRUCTIONS,
        config=config,
        api_key=get_secret(env, "ANTHROPIC_API_KEY"),
    )


AGENTS: dict[str, Callable[..., Agent]] = {
    "onboarding": _onboarding,
    "daily-summary": _daily_summary,
}


def get_agent(
    name: str,
    config: dict,
    env: dict,
    transport: httpx.AsyncBaseTransport | None = None,
) -> Agent:
    """Get an agent instance by name.

    Raises KeyError if the agent name is unknown, ValueError if the API key
    is not configured.
    """
    factory = AGENTS.get(name)
    if factory is None:
        available = ", ".join(AGENTS.keys())
        raise KeyError(f"Unknown agent: {name!r}. Available: {available}")
    return factory(config, env, transport)


def list_agents() -> list[str]:
    """Return available agent names."""
    return list(AGENTS.keys())
