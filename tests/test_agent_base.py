"""Tests for chunk normalization, AgentRun and the tool set."""

import asyncio

import pytest

from firstweek.agent.base import (
    AgentRun,
    FinishChunk,
    OtherChunk,
    TextDeltaChunk,
    ToolCallChunk,
    ToolResultChunk,
    normalize_chunk,
)
from firstweek.agent.tools import Tool, ToolSet

from conftest import ScriptedAgent


class TestNormalizeChunk:
    @pytest.mark.parametrize("raw", [
        {"type": "tool-call", "toolName": "list-github-issues"},
        {"type": "tool-call", "payload": {"toolName": "list-github-issues"}},
        {"type": "tool-call", "name": "list-github-issues"},
        {"type": "tool-call", "payload": {"name": "list-github-issues"}},
    ])
    def test_tool_name_shapes(self, raw):
        assert normalize_chunk(raw) == ToolCallChunk(tool_name="list-github-issues")

    def test_flat_name_wins_over_payload(self):
        chunk = normalize_chunk({"type": "tool-call", "toolName": "a", "payload": {"toolName": "b"}})
        assert chunk.tool_name == "a"

    def test_unknown_tool_fallback(self):
        assert normalize_chunk({"type": "tool-result", "result": {"x": 1}}) == ToolResultChunk(
            tool_name="unknown-tool", result={"x": 1},
        )

    def test_result_from_payload(self):
        chunk = normalize_chunk({"type": "tool-result", "payload": {"toolName": "t", "result": [1]}})
        assert chunk == ToolResultChunk(tool_name="t", result=[1])

    @pytest.mark.parametrize("raw, text", [
        ({"type": "text-delta", "textDelta": "hi"}, "hi"),
        ({"type": "text-delta", "payload": {"text": "hi"}}, "hi"),
        ({"type": "text-delta", "text": "hi"}, "hi"),
        ({"type": "text-delta"}, ""),
    ])
    def test_text_delta_shapes(self, raw, text):
        assert normalize_chunk(raw) == TextDeltaChunk(text=text)

    def test_finish_and_other(self):
        assert normalize_chunk({"type": "finish", "finishReason": "stop"}) == FinishChunk("stop")
        assert normalize_chunk({"type": "step-finish"}) == OtherChunk("step-finish")
        assert isinstance(normalize_chunk("garbage"), OtherChunk)


class TestAgentRun:
    def test_stream_is_lazy_and_shared(self):
        calls = []

        async def produce(run):
            calls.append(1)
            yield {"type": "text-delta", "textDelta": "x"}
            run.final_text = "x"

        run = AgentRun(produce)
        assert calls == []
        assert run.full_stream is run.full_stream

    def test_text_drains_stream(self):
        agent = ScriptedAgent([{"type": "text-delta", "textDelta": "a"}], final_text="final")
        assert asyncio.run(agent.generate("prompt")) == "final"
        assert agent.prompts == ["prompt"]

    def test_text_after_stream_consumed(self):
        agent = ScriptedAgent([{"type": "finish"}], final_text="done")
        run = agent.stream("p")

        async def go():
            chunks = [c async for c in run.full_stream]
            return chunks, await run.text()

        chunks, text = asyncio.run(go())
        assert chunks == [{"type": "finish"}]
        assert text == "done"

    def test_missing_final_text_is_empty(self):
        agent = ScriptedAgent([], final_text=None)
        assert asyncio.run(agent.generate("p")) == ""


class TestToolSet:
    def _tool(self, tool_id):
        async def execute(args):
            return {"id": tool_id, "args": args}
        return Tool(id=tool_id, description=f"{tool_id} tool", execute=execute)

    def test_lookup_and_schema(self):
        tools = ToolSet([self._tool("a"), self._tool("b")])
        assert len(tools) == 2
        assert tools.ids() == ["a", "b"]
        assert tools.get("a").id == "a"
        assert tools.to_anthropic()[0] == {
            "name": "a",
            "description": "a tool",
            "input_schema": {"type": "object", "properties": {}},
        }

    def test_unknown_tool(self):
        with pytest.raises(KeyError, match="Unknown tool"):
            ToolSet([self._tool("a")]).get("zzz")
