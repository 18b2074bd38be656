"""Client-local task and day completion, layered on top of a saved plan.

State lives in a JSON file beside the plan (``<plan>.progress.json``); the
plan file itself is never modified.
"""

import json
from datetime import datetime, timezone
from pathlib import Path

from ..core.constants import PLAN_DAYS
from ..core.plan import OnboardingPlan


class PlanTracker:
    """Tracks completed tasks (by id), finished days and the current day."""

    def __init__(self, plan_path: Path):
        self.plan_path = Path(plan_path)
        self.state_path = self.plan_path.with_suffix(".progress.json")
        self._plan: OnboardingPlan | None = None
        self._state: dict | None = None

    @property
    def plan(self) -> OnboardingPlan:
        if self._plan is None:
            data = json.loads(self.plan_path.read_text(encoding="utf-8"))
            self._plan = OnboardingPlan.from_dict(data)
        return self._plan

    @property
    def state(self) -> dict:
        if self._state is None:
            if self.state_path.exists():
                self._state = json.loads(self.state_path.read_text(encoding="utf-8"))
            else:
                self._state = {"current_day": 1, "completed_tasks": [], "day_completions": {}}
        return self._state

    def save(self) -> None:
        self.state_path.write_text(json.dumps(self.state, indent=2), encoding="utf-8")

    # ── Days ──────────────────────────────────────────────────────

    @property
    def current_day(self) -> int:
        return self.state.get("current_day", 1)

    def set_current_day(self, day: int) -> None:
        if 1 <= day <= PLAN_DAYS:
            self.state["current_day"] = day
            self.save()

    def next_day(self) -> None:
        self.set_current_day(self.current_day + 1)

    def previous_day(self) -> None:
        self.set_current_day(self.current_day - 1)

    def complete_day(self, day: int, feedback: str = "") -> None:
        if self.plan.get_day(day) is None:
            raise KeyError(f"Day {day} is not in the plan")
        self.state["day_completions"][str(day)] = {
            "feedback": feedback,
            "completed_at": datetime.now(timezone.utc).isoformat(),
        }
        self.save()

    def is_day_completed(self, day: int) -> bool:
        return str(day) in self.state["day_completions"]

    def day_feedback(self, day: int) -> str | None:
        entry = self.state["day_completions"].get(str(day))
        return entry["feedback"] if entry else None

    # ── Tasks ─────────────────────────────────────────────────────

    def toggle_task(self, task_id: str) -> bool:
        """Flip a task's completion. Returns the new state."""
        if task_id not in self.plan.task_ids():
            raise KeyError(f"Unknown task: {task_id!r}")
        completed = self.state["completed_tasks"]
        if task_id in completed:
            completed.remove(task_id)
            done = False
        else:
            completed.append(task_id)
            done = True
        self.save()
        return done

    def is_task_completed(self, task_id: str) -> bool:
        return task_id in self.state["completed_tasks"]

    def day_progress(self, day: int) -> tuple[int, int]:
        """(completed, total) task counts for a day."""
        plan_day = self.plan.get_day(day)
        if plan_day is None:
            return (0, 0)
        done = sum(1 for t in plan_day.tasks if self.is_task_completed(t.id))
        return (done, len(plan_day.tasks))
