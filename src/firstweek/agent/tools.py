"""Tool definitions the agent can call."""

from dataclasses import dataclass, field
from typing import Awaitable, Callable


@dataclass
class Tool:
    """A callable capability exposed to the model."""
    id: str
    description: str
    execute: Callable[[dict], Awaitable[dict]]
    input_schema: dict = field(default_factory=lambda: {"type": "object", "properties": {}})

    def to_anthropic(self) -> dict:
        return {
            "name": self.id,
            "description": self.description,
            "input_schema": self.input_schema,
        }


class ToolSet:
    """Tools available to one agent, looked up by id."""

    def __init__(self, tools: list[Tool] | None = None):
        self._tools: dict[str, Tool] = {}
        for tool in tools or []:
            self.add(tool)

    def add(self, tool: Tool) -> None:
        self._tools[tool.id] = tool

    def get(self, tool_id: str) -> Tool:
        """Get a tool by id.

        Raises KeyError if the tool id is unknown.
        """
        tool = self._tools.get(tool_id)
        if tool is None:
            available = ", ".join(self._tools.keys())
            raise KeyError(f"Unknown tool: {tool_id!r}. Available: {available}")
        return tool

    def ids(self) -> list[str]:
        return list(self._tools.keys())

    def to_anthropic(self) -> list[dict]:
        return [t.to_anthropic() for t in self._tools.values()]

    def __len__(self) -> int:
        return len(self._tools)
