"""Plan-generation event protocol shared by the SSE emitter and consumer.

Each event is one JSON object on one ``data:`` line, terminated by a blank
line. The ``type`` field tags the variant.
"""

import json
from dataclasses import dataclass
from typing import ClassVar, Iterable, Iterator, Union

from .constants import (
    EVENT_COMPLETE,
    EVENT_ERROR,
    EVENT_FINISH,
    EVENT_START,
    EVENT_TEXT_DELTA,
    EVENT_TOOL_CALL,
    EVENT_TOOL_RESULT,
    START_MESSAGE,
    UNKNOWN_TOOL,
)

SSE_PREFIX = "data: "
SSE_SEPARATOR = "\n\n"


@dataclass(frozen=True)
class StartEvent:
    type: ClassVar[str] = EVENT_START
    message: str = START_MESSAGE

    def to_dict(self) -> dict:
        return {"type": self.type, "message": self.message}


@dataclass(frozen=True)
class ToolCallEvent:
    type: ClassVar[str] = EVENT_TOOL_CALL
    tool_name: str

    def to_dict(self) -> dict:
        return {"type": self.type, "toolName": self.tool_name}


@dataclass(frozen=True)
class ToolResultEvent:
    type: ClassVar[str] = EVENT_TOOL_RESULT
    tool_name: str
    result: dict | None = None

    def to_dict(self) -> dict:
        return {"type": self.type, "toolName": self.tool_name, "result": self.result}


@dataclass(frozen=True)
class CompleteEvent:
    """Terminal success event. ``plan`` is None when no JSON could be extracted."""
    type: ClassVar[str] = EVENT_COMPLETE
    plan: dict | None
    text: str = ""

    def to_dict(self) -> dict:
        return {"type": self.type, "plan": self.plan, "text": self.text}


@dataclass(frozen=True)
class ErrorEvent:
    type: ClassVar[str] = EVENT_ERROR
    message: str

    def to_dict(self) -> dict:
        return {"type": self.type, "message": self.message}


PlanEvent = Union[StartEvent, ToolCallEvent, ToolResultEvent, CompleteEvent, ErrorEvent]


# Chat streams reuse tool-call, tool-result and error, forward the model's
# text as it arrives, and end with finish instead of complete.


@dataclass(frozen=True)
class TextDeltaEvent:
    type: ClassVar[str] = EVENT_TEXT_DELTA
    delta: str

    def to_dict(self) -> dict:
        return {"type": self.type, "delta": self.delta}


@dataclass(frozen=True)
class FinishEvent:
    """Terminal chat event carrying the assistant's final reply."""
    type: ClassVar[str] = EVENT_FINISH
    text: str = ""

    def to_dict(self) -> dict:
        return {"type": self.type, "text": self.text}


ChatEvent = Union[ToolCallEvent, ToolResultEvent, TextDeltaEvent, FinishEvent, ErrorEvent]


def decode_chat_event(data: dict) -> ChatEvent | None:
    """Like decode_event, for chat payloads. Plan-only types decode to None."""
    if not isinstance(data, dict):
        return None
    event_type = data.get("type")
    if event_type == EVENT_TEXT_DELTA:
        return TextDeltaEvent(delta=str(data.get("delta") or ""))
    if event_type == EVENT_FINISH:
        return FinishEvent(text=str(data.get("text") or ""))
    if event_type in (EVENT_TOOL_CALL, EVENT_TOOL_RESULT, EVENT_ERROR):
        return decode_event(data)
    return None


def decode_event(data: dict) -> PlanEvent | None:
    """Build an event from a decoded ``data:`` payload.

    Returns None for payloads that are not objects or carry an unknown type.
    """
    if not isinstance(data, dict):
        return None

    event_type = data.get("type")
    if event_type == EVENT_START:
        return StartEvent(message=str(data.get("message") or START_MESSAGE))
    if event_type == EVENT_TOOL_CALL:
        return ToolCallEvent(tool_name=str(data.get("toolName") or UNKNOWN_TOOL))
    if event_type == EVENT_TOOL_RESULT:
        result = data.get("result")
        return ToolResultEvent(
            tool_name=str(data.get("toolName") or UNKNOWN_TOOL),
            result=result if isinstance(result, dict) else None,
        )
    if event_type == EVENT_COMPLETE:
        plan = data.get("plan")
        return CompleteEvent(
            plan=plan if isinstance(plan, dict) else None,
            text=str(data.get("text") or ""),
        )
    if event_type == EVENT_ERROR:
        return ErrorEvent(message=str(data.get("message") or "Unknown error"))
    return None


def to_json(event: PlanEvent | ChatEvent) -> str:
    """Serialize an event payload (no SSE framing).

    Values JSON cannot represent (datetimes, sets, ...) are sent as strings.
    """
    return json.dumps(event.to_dict(), ensure_ascii=False, default=str)


def encode_sse(event: PlanEvent | ChatEvent) -> bytes:
    """Frame one event as an SSE ``data:`` line plus separator."""
    return f"{SSE_PREFIX}{to_json(event)}{SSE_SEPARATOR}".encode("utf-8")


def iter_sse_bytes(events: Iterable[PlanEvent]) -> Iterator[bytes]:
    """Frame a sequence of events as SSE byte chunks."""
    for event in events:
        yield encode_sse(event)
