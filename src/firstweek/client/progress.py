"""Progress reducer for one plan-generation request.

Events are folded in arrival order through explicit transitions
(``on_start``, ``on_tool_call``, ``on_tool_result``, ``on_complete``,
``on_error``). Readers take immutable snapshots or subscribe to them; they
never touch the step list directly.
"""

import time
import uuid
from dataclasses import dataclass, replace
from typing import Callable

from ..core.constants import (
    KIND_INFO,
    KIND_TOOL_CALL,
    NO_PLAN_MESSAGE,
    PLAN_READY_MESSAGE,
    STATUS_COMPLETE,
    STATUS_IN_PROGRESS,
    STREAM_ENDED_MESSAGE,
    TOOL_DISPLAY_NAMES,
)
from ..core.events import (
    CompleteEvent,
    ErrorEvent,
    PlanEvent,
    StartEvent,
    ToolCallEvent,
    ToolResultEvent,
)

# Request-level states
IDLE = "idle"
GENERATING = "generating"
COMPLETE = "complete"
FAILED = "failed"
CANCELLED = "cancelled"

FINISHED_STATES = {COMPLETE, FAILED, CANCELLED}


class PlanStreamError(Exception):
    """Raised when a plan stream ends with a request-level error."""


@dataclass(frozen=True)
class ProgressStep:
    """One observable unit of agent activity."""
    id: str
    kind: str          # "tool-call" | "tool-result" | "info"
    message: str
    status: str        # "pending" | "in-progress" | "complete"
    timestamp: float
    tool_name: str | None = None
    result: dict | None = None


@dataclass(frozen=True)
class ProgressSnapshot:
    """Immutable view of the reducer state."""
    status: str
    steps: tuple[ProgressStep, ...]
    plan: dict | None
    error: str | None

    @property
    def done(self) -> bool:
        return self.status in FINISHED_STATES


def display_name(tool_name: str) -> str:
    """Human-readable label for a tool, falling back to the raw name."""
    return TOOL_DISPLAY_NAMES.get(tool_name, tool_name)


class PlanProgress:
    """Single-owner state machine driving the plan-generation UI."""

    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock
        self._subscribers: list[Callable[[ProgressSnapshot], None]] = []
        self._status = IDLE
        self._steps: list[ProgressStep] = []
        # tool name -> id of its most recent open step
        self._open_calls: dict[str, str] = {}
        self._plan: dict | None = None
        self._error: str | None = None
        self._last_timestamp = 0.0

    # ── Reading ───────────────────────────────────────────────────

    @property
    def status(self) -> str:
        return self._status

    @property
    def done(self) -> bool:
        return self._status in FINISHED_STATES

    @property
    def plan(self) -> dict | None:
        return self._plan

    @property
    def error(self) -> str | None:
        return self._error

    @property
    def steps(self) -> tuple[ProgressStep, ...]:
        return tuple(self._steps)

    def snapshot(self) -> ProgressSnapshot:
        return ProgressSnapshot(
            status=self._status,
            steps=tuple(self._steps),
            plan=self._plan,
            error=self._error,
        )

    def subscribe(self, callback: Callable[[ProgressSnapshot], None]) -> Callable[[], None]:
        """Call ``callback`` with a snapshot after every change. Returns an unsubscribe function."""
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def raise_for_error(self) -> None:
        if self._error is not None:
            raise PlanStreamError(self._error)

    # ── Lifecycle ─────────────────────────────────────────────────

    def begin(self) -> None:
        """Start a new request: all previous steps, plan and error are dropped."""
        self._steps = []
        self._open_calls = {}
        self._plan = None
        self._error = None
        self._status = GENERATING
        self._notify()

    def cancel(self) -> None:
        """Stop applying updates (client aborted the request)."""
        if self.done:
            return
        self._status = CANCELLED
        self._notify()

    def finish(self) -> None:
        """Mark the end of the byte stream. A missing terminal event is an error."""
        if self._status == GENERATING:
            self.on_error(STREAM_ENDED_MESSAGE)

    def apply(self, event: PlanEvent) -> None:
        """Fold one event. Events arriving after a terminal state are ignored."""
        if self.done:
            return
        if isinstance(event, StartEvent):
            self.on_start(event.message)
        elif isinstance(event, ToolCallEvent):
            self.on_tool_call(event.tool_name)
        elif isinstance(event, ToolResultEvent):
            self.on_tool_result(event.tool_name, event.result)
        elif isinstance(event, CompleteEvent):
            self.on_complete(event.plan)
        elif isinstance(event, ErrorEvent):
            self.on_error(event.message)

    # ── Transitions ───────────────────────────────────────────────

    def on_start(self, message: str = "") -> None:
        if self._status == IDLE:
            self._status = GENERATING
            self._notify()

    def on_tool_call(self, tool_name: str) -> None:
        step = self._new_step(KIND_TOOL_CALL, display_name(tool_name), STATUS_IN_PROGRESS, tool_name)
        # Overwrites any unresolved call for the same tool
        self._open_calls[tool_name] = step.id
        self._steps.append(step)
        self._notify()

    def on_tool_result(self, tool_name: str, result: dict | None) -> None:
        step_id = self._open_calls.pop(tool_name, None)
        if step_id is None:
            return
        for i, step in enumerate(self._steps):
            if step.id == step_id and step.status == STATUS_IN_PROGRESS:
                self._steps[i] = replace(step, status=STATUS_COMPLETE, result=result)
                self._notify()
                return

    def on_complete(self, plan: dict | None) -> None:
        if plan is None:
            self.on_error(NO_PLAN_MESSAGE)
            return
        self._plan = plan
        self._steps.append(self._new_step(KIND_INFO, PLAN_READY_MESSAGE, STATUS_COMPLETE))
        self._open_calls = {}
        self._status = COMPLETE
        self._notify()

    def on_error(self, message: str) -> None:
        self._error = message
        self._open_calls = {}
        self._status = FAILED
        self._notify()

    # ── Internals ─────────────────────────────────────────────────

    def _new_step(
        self, kind: str, message: str, status: str, tool_name: str | None = None,
    ) -> ProgressStep:
        timestamp = max(self._clock(), self._last_timestamp)
        self._last_timestamp = timestamp
        return ProgressStep(
            id=f"step-{int(timestamp * 1000)}-{uuid.uuid4().hex[:9]}",
            kind=kind,
            message=message,
            status=status,
            timestamp=timestamp,
            tool_name=tool_name,
        )

    def _notify(self) -> None:
        if not self._subscribers:
            return
        snap = self.snapshot()
        for callback in list(self._subscribers):
            callback(snap)
