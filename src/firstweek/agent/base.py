"""Agent abstraction: an async chunk stream plus the final aggregated text.

Upstream chunks arrive as loosely-shaped dicts. ``normalize_chunk`` is the
single place that maps them onto typed variants.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, AsyncIterator, Callable, Union

from ..core.constants import (
    CHUNK_FINISH,
    CHUNK_TEXT_DELTA,
    CHUNK_TOOL_CALL,
    CHUNK_TOOL_RESULT,
    UNKNOWN_TOOL,
)


@dataclass(frozen=True)
class ToolCallChunk:
    tool_name: str
    args: Any = None


@dataclass(frozen=True)
class ToolResultChunk:
    tool_name: str
    result: Any = None


@dataclass(frozen=True)
class TextDeltaChunk:
    text: str


@dataclass(frozen=True)
class FinishChunk:
    reason: str | None = None


@dataclass(frozen=True)
class OtherChunk:
    """Any chunk type the emitter does not act on (step markers, reasoning, ...)."""
    type: str


AgentChunk = Union[ToolCallChunk, ToolResultChunk, TextDeltaChunk, FinishChunk, OtherChunk]


def normalize_chunk(raw: dict) -> AgentChunk:
    """Map one upstream chunk onto a typed variant.

    Upstream shapes handled:
      - flat:    {"type": "tool-call", "toolName": ..., "args": ...}
      - nested:  {"type": "tool-call", "payload": {"toolName": ..., "args": ...}}
      - named:   {"type": "tool-call", "name": ...}, or "name" inside "payload"
    Text deltas carry "textDelta" (flat), "payload.text" (nested) or "text".
    """
    if not isinstance(raw, dict):
        return OtherChunk(type=type(raw).__name__)

    chunk_type = raw.get("type")
    payload = raw.get("payload")
    if not isinstance(payload, dict):
        payload = {}

    if chunk_type == CHUNK_TOOL_CALL:
        return ToolCallChunk(
            tool_name=_resolve_tool_name(raw, payload),
            args=raw.get("args") or payload.get("args"),
        )
    if chunk_type == CHUNK_TOOL_RESULT:
        return ToolResultChunk(
            tool_name=_resolve_tool_name(raw, payload),
            result=raw.get("result") or payload.get("result") or None,
        )
    if chunk_type == CHUNK_TEXT_DELTA:
        text = raw.get("textDelta") or payload.get("text") or raw.get("text") or ""
        return TextDeltaChunk(text=str(text))
    if chunk_type == CHUNK_FINISH:
        return FinishChunk(reason=raw.get("finishReason") or payload.get("finishReason"))
    return OtherChunk(type=str(chunk_type))


def _resolve_tool_name(raw: dict, payload: dict) -> str:
    for candidate in (raw.get("toolName"), payload.get("toolName"), raw.get("name"), payload.get("name")):
        if candidate:
            return str(candidate)
    return UNKNOWN_TOOL


class AgentRun:
    """One agent invocation.

    ``full_stream`` yields raw chunk dicts; ``await text()`` returns the text
    of the final model step, draining the stream first if needed. The
    producer sets ``final_text`` before it finishes.
    """

    def __init__(self, produce: Callable[["AgentRun"], AsyncIterator[dict]]):
        self._produce = produce
        self._stream: AsyncIterator[dict] | None = None
        self.final_text: str | None = None

    @property
    def full_stream(self) -> AsyncIterator[dict]:
        if self._stream is None:
            self._stream = self._produce(self)
        return self._stream

    async def text(self) -> str:
        if self.final_text is None:
            async for _ in self.full_stream:
                pass
        return self.final_text or ""


class Agent(ABC):
    """Base for hosted-model agents."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Registry identifier for this agent."""

    @abstractmethod
    def stream_messages(self, messages: list[dict]) -> AgentRun:
        """Start a run over a conversation of ``{"role", "content"}`` messages.

        Must not do network I/O until the stream is iterated.
        """

    def stream(self, prompt: str) -> AgentRun:
        """Start a single-turn run."""
        return self.stream_messages([{"role": "user", "content": prompt}])

    async def generate(self, prompt: str) -> str:
        """Run to completion and return the final text."""
        return await self.stream(prompt).text()
