"""Tests for web route endpoints using FastAPI TestClient."""

import json
from datetime import datetime, timezone

import pytest
from starlette.testclient import TestClient

from firstweek.client.progress import PlanProgress, PlanStreamError
from firstweek.client.sse import consume_plan_stream
from firstweek.web.app import app

from conftest import ScriptedAgent


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def use_agent(monkeypatch):
    """Route get_agent to a ScriptedAgent; returns a setter."""
    holder = {}

    def install(agent):
        holder["agent"] = agent

        def fake_get_agent(name, config, env, transport=None):
            holder["name"] = name
            return agent

        monkeypatch.setattr("firstweek.web.routes.plan.get_agent", fake_get_agent)
        monkeypatch.setattr("firstweek.web.routes.email.get_agent", fake_get_agent)
        monkeypatch.setattr("firstweek.web.routes.chat.get_agent", fake_get_agent)
        return holder

    return install


def _data_lines(text: str) -> list[dict]:
    return [json.loads(line[len("data: "):]) for line in text.splitlines() if line.startswith("data: ")]


class TestIndex:
    def test_index_lists_routes(self, client):
        resp = client.get("/")
        assert resp.status_code == 200
        paths = [r["path"] for r in resp.json()["routes"]]
        assert "/api/generate-plan-stream" in paths
        assert "/api/chat" in paths


class TestPlanStream:
    def test_streams_events(self, client, use_agent, plan_dict):
        holder = use_agent(ScriptedAgent(
            [
                {"type": "tool-call", "toolName": "list-handbook-articles"},
                {"type": "tool-result", "toolName": "list-handbook-articles", "result": {"articles": []}},
            ],
            final_text=json.dumps(plan_dict),
        ))
        resp = client.post("/api/generate-plan-stream", json={"name": "Ada", "role": "Engineer"})

        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("text/event-stream")
        assert resp.headers["cache-control"] == "no-cache"
        assert resp.headers["connection"] == "keep-alive"
        assert "data: " in resp.text
        assert "\n\n" in resp.text

        events = _data_lines(resp.text)
        assert [e["type"] for e in events] == ["start", "tool-call", "tool-result", "complete"]
        assert events[0]["message"] == "Starting plan generation..."
        assert events[2]["result"] == {"type": "article-list", "count": 0, "preview": []}
        assert events[3]["plan"] == plan_dict
        assert holder["name"] == "onboarding"
        assert "Name: Ada" in holder["agent"].prompts[0]

    def test_body_folds_into_progress(self, client, use_agent, plan_dict):
        use_agent(ScriptedAgent(
            [{"type": "tool-call", "toolName": "list-github-issues"},
             {"type": "tool-result", "toolName": "list-github-issues", "result": {"issues": []}}],
            final_text=json.dumps(plan_dict),
        ))
        resp = client.post("/api/generate-plan-stream", json={"name": "Ada", "role": "Engineer"})
        progress = consume_plan_stream([resp.content])
        assert progress.plan == plan_dict
        assert len(progress.steps) == 2

    def test_handbook_and_issues_run_end_to_end(self, client, use_agent, plan_dict):
        holder = use_agent(ScriptedAgent(
            [
                {"type": "tool-call", "toolName": "list-handbook-articles", "args": {"category": "all"}},
                {"type": "tool-result", "toolName": "list-handbook-articles", "result": {"articles": [
                    {"title": "How We Work", "category": "company", "slug": "how-we-work"},
                ]}},
                {"type": "tool-call", "toolName": "list-github-issues", "args": {"labels": "good first issue"}},
                {"type": "tool-result", "toolName": "list-github-issues", "result": {
                    "success": True,
                    "issues": [{"number": 42, "title": "Fix the thing"}],
                    "totalCount": 1,
                }},
                {"type": "text-delta", "textDelta": "Here is the plan"},
                {"type": "finish"},
            ],
            final_text="Here is the plan:\n" + json.dumps(plan_dict),
        ))
        resp = client.post("/api/generate-plan-stream", json={"name": "Ada", "role": "Software Engineer"})
        assert resp.status_code == 200
        assert [e["type"] for e in _data_lines(resp.text)] == [
            "start", "tool-call", "tool-result", "tool-call", "tool-result", "complete",
        ]

        progress = consume_plan_stream(resp.iter_bytes())
        steps = progress.steps
        assert len(steps) == 3
        assert all(s.status == "complete" for s in steps)
        assert [s.tool_name for s in steps] == ["list-handbook-articles", "list-github-issues", None]
        assert steps[1].result == {
            "type": "issue-list", "count": 1, "preview": [{"number": 42, "title": "Fix the thing"}],
        }
        assert len(progress.plan["days"]) == 5
        assert progress.plan["suggestedFirstIssue"]["number"] == 42
        prompt = holder["agent"].prompts[0]
        assert "Name: Ada" in prompt
        assert "Software Engineer" in prompt

    def test_non_json_tool_result_still_completes(self, client, use_agent, plan_dict):
        use_agent(ScriptedAgent(
            [{"type": "tool-call", "toolName": "get-github-issue"},
             {"type": "tool-result", "toolName": "get-github-issue",
              "result": {"fetchedAt": datetime(2026, 1, 5, tzinfo=timezone.utc)}}],
            final_text=json.dumps(plan_dict),
        ))
        resp = client.post("/api/generate-plan-stream", json={"name": "Ada", "role": "Engineer"})
        events = _data_lines(resp.text)
        assert events[2]["result"]["type"] == "raw"
        assert events[-1]["type"] == "complete"

    def test_upstream_error_event(self, client, use_agent):
        use_agent(ScriptedAgent([{"type": "finish"}], fail_after=0))
        resp = client.post("/api/generate-plan-stream", json={"name": "Ada", "role": "Engineer"})
        assert resp.status_code == 200
        events = _data_lines(resp.text)
        assert events[-1] == {"type": "error", "message": "upstream exploded"}
        with pytest.raises(PlanStreamError):
            consume_plan_stream([resp.content], PlanProgress())

    @pytest.mark.parametrize("body, message", [
        ({"role": "Engineer"}, "Name is required"),
        ({"name": "Ada"}, "Role is required"),
    ])
    def test_validation_errors(self, client, use_agent, body, message):
        holder = use_agent(ScriptedAgent([]))
        resp = client.post("/api/generate-plan-stream", json=body)
        assert resp.status_code == 400
        assert resp.json() == {"error": message}
        assert holder["agent"].prompts == []

    def test_malformed_json_body(self, client):
        resp = client.post(
            "/api/generate-plan-stream",
            content=b"{not json",
            headers={"content-type": "application/json"},
        )
        assert resp.status_code == 400
        assert resp.json() == {"error": "Request body must be a JSON object"}

    def test_agent_construction_failure_is_500(self, client, monkeypatch):
        def broken(name, config, env, transport=None):
            raise ValueError("Secret not configured: ANTHROPIC_API_KEY")

        monkeypatch.setattr("firstweek.web.routes.plan.get_agent", broken)
        resp = client.post("/api/generate-plan-stream", json={"name": "Ada", "role": "Engineer"})
        assert resp.status_code == 500
        assert "ANTHROPIC_API_KEY" in resp.json()["error"]


class TestGeneratePlan:
    def test_success(self, client, use_agent, plan_dict):
        use_agent(ScriptedAgent([], final_text="Plan:\n" + json.dumps(plan_dict)))
        resp = client.post("/api/generate-plan", json={"name": "Ada", "role": "Engineer"})
        assert resp.status_code == 200
        assert resp.json() == {"success": True, "plan": plan_dict}

    def test_validation(self, client):
        resp = client.post("/api/generate-plan", json={"name": "Ada"})
        assert resp.status_code == 400
        assert resp.json() == {"success": False, "error": "Role is required"}

    def test_invalid_plan_is_500(self, client, use_agent, plan_dict):
        plan_dict["days"] = plan_dict["days"][:2]
        use_agent(ScriptedAgent([], final_text=json.dumps(plan_dict)))
        resp = client.post("/api/generate-plan", json={"name": "Ada", "role": "Engineer"})
        assert resp.status_code == 500
        body = resp.json()
        assert body["success"] is False
        assert "exactly 5 days" in body["error"]

    def test_no_json_is_500(self, client, use_agent):
        use_agent(ScriptedAgent([], final_text="no plan"))
        resp = client.post("/api/generate-plan", json={"name": "Ada", "role": "Engineer"})
        assert resp.status_code == 500
        assert resp.json()["error"].startswith("Failed to generate plan")


class TestSendWelcome:
    @pytest.fixture
    def sent(self, monkeypatch):
        calls = []

        async def fake_send(message, api_key, from_address):
            calls.append((message, api_key, from_address))
            return "email-123"

        monkeypatch.setattr("firstweek.web.routes.email.send_email", fake_send)
        monkeypatch.setenv("RESEND_API_KEY", "re_test")
        return calls

    def test_sends(self, client, sent):
        resp = client.post("/api/send-welcome", json={"email": "ada@example.com", "name": "Ada", "role": "Eng"})
        assert resp.status_code == 200
        assert resp.json() == {
            "success": True, "message": "Welcome email sent successfully", "emailId": "email-123",
        }
        message, api_key, _ = sent[0]
        assert message.to == "ada@example.com"
        assert "Hello Ada!" in message.html
        assert " in Eng" in message.html
        assert api_key == "re_test"

    @pytest.mark.parametrize("body, message", [
        ({}, "Email is required"),
        ({"email": "not-an-email"}, "Invalid email format"),
        ({"email": "a b@c.d"}, "Invalid email format"),
    ])
    def test_validation(self, client, sent, body, message):
        resp = client.post("/api/send-welcome", json=body)
        assert resp.status_code == 400
        assert resp.json() == {"success": False, "message": message}
        assert sent == []

    def test_key_read_from_current_env_file(self, client, sent, monkeypatch, tmp_path):
        env_file = tmp_path / "route.env"
        env_file.write_text("RESEND_API_KEY=re_from_file\n")
        monkeypatch.setattr("firstweek.core.config.ENV_PATH", env_file)

        resp = client.post("/api/send-welcome", json={"email": "ada@example.com"})
        assert resp.status_code == 200
        _, api_key, _ = sent[0]
        assert api_key == "re_from_file"

    def test_missing_api_key_is_500(self, client, sent, monkeypatch):
        monkeypatch.delenv("RESEND_API_KEY")
        resp = client.post("/api/send-welcome", json={"email": "ada@example.com"})
        assert resp.status_code == 500
        assert resp.json()["success"] is False


class TestSendDailySummary:
    BODY = {
        "firstName": "Ada",
        "dayNumber": 2,
        "dayTitle": "Meet the team",
        "feedback": "Lots of coffee",
        "completedTasks": [{"title": "Read How We Work", "description": "Handbook"}],
        "totalTasks": 3,
        "email": "ada@example.com",
    }

    @pytest.fixture
    def sent(self, monkeypatch):
        calls = []

        async def fake_send(message, api_key, from_address):
            calls.append(message)
            return "email-456"

        monkeypatch.setattr("firstweek.web.routes.email.send_email", fake_send)
        monkeypatch.setenv("RESEND_API_KEY", "re_test")
        return calls

    def test_sends_generated_summary(self, client, use_agent, sent):
        content = {"content": [
            {"type": "text", "content": "Great day two!"},
            {"type": "bullets", "items": ["Read How We Work"]},
        ]}
        holder = use_agent(ScriptedAgent([], final_text=json.dumps(content), agent_name="daily-summary"))
        resp = client.post("/api/send-daily-summary", json=self.BODY)

        assert resp.status_code == 200
        assert resp.json()["emailId"] == "email-456"
        assert holder["name"] == "daily-summary"
        prompt = holder["agent"].prompts[0]
        assert "Tasks completed: 1 out of 3" in prompt
        assert '"Lots of coffee"' in prompt

        message = sent[0]
        assert message.to == "ada@example.com"
        assert message.subject.startswith("Day 2 Complete!")
        assert "Great day two!" in message.html
        assert "<li" in message.html

    def test_missing_first_name(self, client, sent):
        resp = client.post("/api/send-daily-summary", json={"dayNumber": 1})
        assert resp.status_code == 400
        assert resp.json()["message"] == "First name is required"

    def test_no_recipient(self, client, sent):
        body = dict(self.BODY)
        del body["email"]
        resp = client.post("/api/send-daily-summary", json=body)
        assert resp.status_code == 400

    def test_agent_without_blocks_is_500(self, client, use_agent, sent):
        use_agent(ScriptedAgent([], final_text='{"content": []}'))
        resp = client.post("/api/send-daily-summary", json=self.BODY)
        assert resp.status_code == 500
        assert sent == []


class TestChat:
    HISTORY = [
        {"role": "user", "content": "Where do I find the on-call rota?"},
        {"role": "assistant", "content": "Check the On-call article."},
        {"role": "user", "parts": [{"type": "text", "text": "Can you summarize it?"}]},
    ]

    def test_streams_reply(self, client, use_agent):
        holder = use_agent(ScriptedAgent(
            [
                {"type": "tool-call", "toolName": "fetch-handbook-article"},
                {"type": "tool-result", "toolName": "fetch-handbook-article",
                 "result": {"success": True, "title": "On-call", "category": "engineering", "content": "Rota"}},
                {"type": "text-delta", "textDelta": "Weekly "},
                {"type": "text-delta", "textDelta": "rotation."},
            ],
            final_text="Weekly rotation.",
        ))
        resp = client.post("/api/chat", json={"messages": self.HISTORY})

        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("text/event-stream")
        events = _data_lines(resp.text)
        assert [e["type"] for e in events] == ["tool-call", "tool-result", "text-delta", "text-delta", "finish"]
        assert events[-1] == {"type": "finish", "text": "Weekly rotation."}

        assert holder["name"] == "onboarding"
        history = holder["agent"].histories[0]
        assert [m["role"] for m in history] == ["user", "assistant", "user"]
        assert history[-1]["content"] == "Can you summarize it?"

    def test_upstream_error(self, client, use_agent):
        use_agent(ScriptedAgent([], fail_after=0))
        resp = client.post("/api/chat", json={"messages": [{"role": "user", "content": "hi"}]})
        assert _data_lines(resp.text) == [{"type": "error", "message": "upstream exploded"}]

    @pytest.mark.parametrize("body, message", [
        ({}, "Messages are required"),
        ({"messages": [{"role": "assistant", "content": "hello"}]}, "The last message must be from the user"),
    ])
    def test_validation(self, client, use_agent, body, message):
        holder = use_agent(ScriptedAgent([]))
        resp = client.post("/api/chat", json=body)
        assert resp.status_code == 400
        assert resp.json() == {"error": message}
        assert holder["agent"].histories == []

    def test_missing_key_is_500(self, client):
        resp = client.post("/api/chat", json={"messages": [{"role": "user", "content": "hi"}]})
        assert resp.status_code == 500
        assert "ANTHROPIC_API_KEY" in resp.json()["error"]
