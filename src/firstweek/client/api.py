"""HTTP client for the plan server."""

from typing import Callable

import httpx

from ..core.events import ErrorEvent, FinishEvent, TextDeltaEvent, ToolCallEvent, decode_chat_event
from .progress import PlanProgress, PlanStreamError
from .sse import SSELineDecoder, consume_plan_stream

STREAM_PATH = "/api/generate-plan-stream"
SUMMARY_PATH = "/api/send-daily-summary"
CHAT_PATH = "/api/chat"


class ApiError(Exception):
    """A server call (summary email or chat) failed."""


def stream_plan(
    api_url: str,
    name: str,
    role: str,
    goals: str | None = None,
    *,
    progress: PlanProgress | None = None,
    timeout: float = 120.0,
    transport: httpx.BaseTransport | None = None,
) -> PlanProgress:
    """POST a plan request and fold the SSE response into ``progress``.

    Raises PlanStreamError for non-2xx responses and stream-level errors.
    """
    body = {"name": name, "role": role}
    if goals:
        body["goals"] = goals

    progress = progress if progress is not None else PlanProgress()
    url = api_url.rstrip("/") + STREAM_PATH

    try:
        with httpx.Client(timeout=timeout, transport=transport) as client:
            with client.stream("POST", url, json=body) as response:
                if response.status_code >= 400:
                    response.read()
                    raise PlanStreamError(_error_message(response))
                return consume_plan_stream(response.iter_bytes(), progress)
    except httpx.HTTPError as e:
        progress.on_error(str(e))
        raise PlanStreamError(f"Plan stream failed: {e}") from e


def _error_message(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        return f"HTTP {response.status_code}: {response.text[:200]}"
    if isinstance(data, dict) and data.get("error"):
        return str(data["error"])
    return f"HTTP {response.status_code}"


def send_daily_summary(
    api_url: str,
    payload: dict,
    *,
    timeout: float = 120.0,
    transport: httpx.BaseTransport | None = None,
) -> dict:
    """POST an end-of-day summary request. Returns the JSON response body.

    Raises ApiError with the server's message on failure.
    """
    url = api_url.rstrip("/") + SUMMARY_PATH
    with httpx.Client(timeout=timeout, transport=transport) as client:
        try:
            response = client.post(url, json=payload)
        except httpx.HTTPError as e:
            raise ApiError(f"Server unreachable: {e}") from e
    try:
        data = response.json()
    except ValueError:
        data = {}
    if not isinstance(data, dict):
        data = {}
    if response.status_code >= 400 or not data.get("success"):
        raise ApiError(data.get("message") or f"HTTP {response.status_code}")
    return data


def summary_payload(tracker, day: int, email: str | None = None) -> dict:
    """Request body for the daily summary route, built from tracked progress."""
    plan = tracker.plan
    plan_day = plan.get_day(day)
    completed = [
        {"title": t.title, "description": t.description}
        for t in plan_day.tasks
        if tracker.is_task_completed(t.id)
    ]
    payload = {
        "firstName": plan.employee_name.split()[0] if plan.employee_name.strip() else plan.employee_name,
        "dayNumber": day,
        "dayTitle": plan_day.title,
        "completedTasks": completed,
        "totalTasks": len(plan_day.tasks),
    }
    feedback = tracker.day_feedback(day)
    if feedback:
        payload["feedback"] = feedback
    if email:
        payload["email"] = email
    return payload


def stream_chat(
    api_url: str,
    messages: list[dict],
    *,
    on_delta: Callable[[str], None] | None = None,
    on_tool: Callable[[str], None] | None = None,
    timeout: float = 120.0,
    transport: httpx.BaseTransport | None = None,
) -> str:
    """POST a conversation to the chat route and return the assistant's reply.

    ``on_delta`` receives reply text as it streams; ``on_tool`` receives the
    name of each tool the agent calls. Raises ApiError on HTTP failure, an
    ``error`` event, or a stream that ends without ``finish``.
    """
    url = api_url.rstrip("/") + CHAT_PATH
    decoder = SSELineDecoder()
    try:
        with httpx.Client(timeout=timeout, transport=transport) as client:
            with client.stream("POST", url, json={"messages": messages}) as response:
                if response.status_code >= 400:
                    response.read()
                    raise ApiError(_error_message(response))
                for chunk in response.iter_bytes():
                    for data in decoder.feed(chunk):
                        reply = _apply_chat_event(decode_chat_event(data), on_delta, on_tool)
                        if reply is not None:
                            return reply
                for data in decoder.close():
                    reply = _apply_chat_event(decode_chat_event(data), on_delta, on_tool)
                    if reply is not None:
                        return reply
    except httpx.HTTPError as e:
        raise ApiError(f"Chat request failed: {e}") from e
    raise ApiError("Chat stream ended before the reply was complete")


def _apply_chat_event(event, on_delta, on_tool) -> str | None:
    """Dispatch one chat event. Returns the reply once the stream is finished."""
    if isinstance(event, TextDeltaEvent):
        if on_delta:
            on_delta(event.delta)
    elif isinstance(event, ToolCallEvent):
        if on_tool:
            on_tool(event.tool_name)
    elif isinstance(event, FinishEvent):
        return event.text
    elif isinstance(event, ErrorEvent):
        raise ApiError(event.message)
    return None
