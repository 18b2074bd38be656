"""Claude-backed agent: a streaming tool-use loop over the Messages API."""

import json
import logging
from typing import AsyncIterator

from anthropic import AsyncAnthropic

from ..core.constants import CHUNK_FINISH, CHUNK_TEXT_DELTA, CHUNK_TOOL_CALL, CHUNK_TOOL_RESULT
from .base import Agent, AgentRun
from .tools import ToolSet

logger = logging.getLogger(__name__)

CHUNK_STEP_FINISH = "step-finish"


class ClaudeAgent(Agent):
    """Agent that runs Claude with tools until it stops asking for them.

    Each model turn is one step. Text of the last step becomes the run's
    final text. ``max_steps`` bounds the number of turns.
    """

    def __init__(
        self,
        name: str,
        instructions: str,
        config: dict,
        api_key: str | None = None,
        tools: ToolSet | None = None,
        client=None,
    ):
        agent_cfg = config.get("agent", {})
        self._name = name
        self.instructions = instructions
        self.model = agent_cfg.get("model", "claude-sonnet-4-20250514")
        self.max_tokens = int(agent_cfg.get("max_tokens", 8192))
        self.max_steps = int(agent_cfg.get("max_steps", 15))
        self.tools = tools if tools is not None else ToolSet()
        self._api_key = api_key
        self._client = client

    @property
    def name(self) -> str:
        return self._name

    @property
    def client(self):
        if self._client is None:
            self._client = AsyncAnthropic(api_key=self._api_key)
        return self._client

    def stream_messages(self, messages: list[dict]) -> AgentRun:
        # The loop appends tool turns; the caller's history stays untouched
        history = [{"role": m["role"], "content": m["content"]} for m in messages]
        return AgentRun(lambda run: self._run(run, history))

    async def _run(self, run: AgentRun, messages: list[dict]) -> AsyncIterator[dict]:
        params = {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "system": self.instructions,
        }
        if len(self.tools):
            params["tools"] = self.tools.to_anthropic()

        step_text = ""
        stop_reason = None
        for step in range(self.max_steps):
            step_text = ""
            tool_uses: list[dict] = []
            current: dict | None = None
            stop_reason = None

            async with self.client.messages.stream(messages=messages, **params) as stream:
                async for event in stream:
                    if event.type == "content_block_start":
                        block = event.content_block
                        if getattr(block, "type", None) == "tool_use":
                            current = {"id": block.id, "name": block.name, "json": ""}

                    elif event.type == "content_block_delta":
                        delta = event.delta
                        if getattr(delta, "type", None) == "text_delta":
                            step_text += delta.text
                            yield {"type": CHUNK_TEXT_DELTA, "textDelta": delta.text}
                        elif getattr(delta, "type", None) == "input_json_delta" and current:
                            current["json"] += delta.partial_json

                    elif event.type == "content_block_stop":
                        if current:
                            current["input"] = _parse_input(current.pop("json"))
                            tool_uses.append(current)
                            current = None

                    elif event.type == "message_delta":
                        stop_reason = getattr(event.delta, "stop_reason", None) or stop_reason

            yield {"type": CHUNK_STEP_FINISH, "step": step, "finishReason": stop_reason}

            if stop_reason != "tool_use" or not tool_uses:
                break

            assistant_content = []
            if step_text:
                assistant_content.append({"type": "text", "text": step_text})
            results_content = []
            for use in tool_uses:
                yield {
                    "type": CHUNK_TOOL_CALL,
                    "toolCallId": use["id"],
                    "toolName": use["name"],
                    "args": use["input"],
                }
                result = await self._execute(use["name"], use["input"])
                yield {
                    "type": CHUNK_TOOL_RESULT,
                    "toolCallId": use["id"],
                    "toolName": use["name"],
                    "result": result,
                }
                assistant_content.append({
                    "type": "tool_use",
                    "id": use["id"],
                    "name": use["name"],
                    "input": use["input"],
                })
                results_content.append({
                    "type": "tool_result",
                    "tool_use_id": use["id"],
                    "content": json.dumps(result, default=str),
                })

            messages.append({"role": "assistant", "content": assistant_content})
            messages.append({"role": "user", "content": results_content})
        else:
            logger.warning("Agent %s hit max_steps=%d", self.name, self.max_steps)

        run.final_text = step_text
        yield {"type": CHUNK_FINISH, "finishReason": stop_reason}

    async def _execute(self, tool_name: str, args: dict) -> dict:
        """Run one tool. Failures are returned to the model as error results."""
        try:
            tool = self.tools.get(tool_name)
        except KeyError as e:
            return {"success": False, "error": e.args[0]}
        try:
            return await tool.execute(args)
        except Exception as e:
            logger.exception("Tool %s failed", tool_name)
            return {"success": False, "error": f"{type(e).__name__}: {e}"}


def _parse_input(raw: str) -> dict:
    if not raw:
        return {}
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError:
        return {}
    return parsed if isinstance(parsed, dict) else {}
