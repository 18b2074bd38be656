"""Shared test fixtures."""

import json

import pytest
from sse_starlette.sse import AppStatus

from firstweek.agent.base import Agent, AgentRun
from firstweek.core.events import encode_sse


def make_plan(name: str = "Ada Lovelace", role: str = "Software Engineer") -> dict:
    """A minimal valid 5-day plan in wire form."""
    days = []
    for n in range(1, 6):
        days.append({
            "day": n,
            "title": f"Day {n} theme",
            "summary": f"What day {n} is about",
            "tasks": [
                {
                    "id": f"d{n}-read",
                    "title": f"Read something on day {n}",
                    "description": "Read a handbook article",
                    "type": "reading",
                    "priority": "high",
                    "estimatedMinutes": 30,
                    "handbookArticle": {"slug": "how-we-work", "title": "How We Work"},
                },
                {
                    "id": f"d{n}-meet",
                    "title": f"Meet someone on day {n}",
                    "description": "Say hello",
                    "type": "meeting",
                    "priority": "medium",
                },
            ],
        })
    return {
        "employeeName": name,
        "role": role,
        "createdAt": "2026-01-05T09:00:00+00:00",
        "welcomeMessage": "Welcome aboard!",
        "days": days,
        "suggestedFirstIssue": {
            "number": 42,
            "title": "Fix the thing",
            "url": "https://github.com/resend/react-email/issues/42",
            "reason": "Small and well scoped",
        },
    }


def sse_body(*payloads: dict) -> bytes:
    """Frame raw payload dicts as an SSE body."""
    return b"".join(
        f"data: {json.dumps(p)}\n\n".encode("utf-8") for p in payloads
    )


def sse_events(*events) -> bytes:
    return b"".join(encode_sse(e) for e in events)


class ScriptedAgent(Agent):
    """Agent that replays a fixed list of chunks and a final text."""

    def __init__(self, chunks: list, final_text: str | None = None, fail_after: int | None = None,
                 agent_name: str = "onboarding"):
        self.chunks = chunks
        self.final_text = final_text
        self.fail_after = fail_after
        self.prompts: list[str] = []
        self.histories: list[list[dict]] = []
        self._name = agent_name

    @property
    def name(self) -> str:
        return self._name

    def stream_messages(self, messages: list[dict]) -> AgentRun:
        self.histories.append(messages)
        self.prompts.append(messages[-1]["content"])

        async def produce(run: AgentRun):
            for i, chunk in enumerate(self.chunks):
                if self.fail_after is not None and i == self.fail_after:
                    raise RuntimeError("upstream exploded")
                yield chunk
            if self.fail_after is not None and self.fail_after >= len(self.chunks):
                raise RuntimeError("upstream exploded")
            run.final_text = self.final_text

        return AgentRun(produce)


@pytest.fixture
def plan_dict():
    return make_plan()


@pytest.fixture(autouse=True)
def reset_sse_app_status():
    """sse_starlette keeps a module-level exit event bound to the first event loop."""
    if hasattr(AppStatus, "should_exit_event"):
        AppStatus.should_exit_event = None
    yield
    if hasattr(AppStatus, "should_exit_event"):
        AppStatus.should_exit_event = None


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    """Keep real secrets and override configs out of tests."""
    for key in ("ANTHROPIC_API_KEY", "GITHUB_TOKEN", "RESEND_API_KEY", "FIRSTWEEK_CONFIG"):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setattr("firstweek.core.config.ENV_PATH", tmp_path / "missing.env")
