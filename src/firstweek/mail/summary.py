"""Daily summary email: request validation, agent prompt, content blocks."""

from dataclasses import dataclass, field

from ..core.constants import PLAN_DAYS
from ..core.plan import extract_plan


@dataclass(frozen=True)
class CompletedTask:
    title: str
    description: str = ""


@dataclass(frozen=True)
class DailySummaryRequest:
    first_name: str
    day_number: int
    day_title: str = ""
    feedback: str | None = None
    completed_tasks: list[CompletedTask] = field(default_factory=list)
    total_tasks: int = 0
    email: str | None = None

    @classmethod
    def from_body(cls, body) -> "DailySummaryRequest":
        """Validate a decoded JSON body. Raises ValueError with a client-facing message."""
        if not isinstance(body, dict):
            raise ValueError("Request body must be a JSON object")
        first_name = body.get("firstName")
        if not first_name or not isinstance(first_name, str):
            raise ValueError("First name is required")
        day_number = body.get("dayNumber")
        if isinstance(day_number, bool) or not isinstance(day_number, int) or day_number < 1:
            raise ValueError("Day number is required")

        tasks = []
        for item in body.get("completedTasks") or []:
            if isinstance(item, dict) and item.get("title"):
                tasks.append(CompletedTask(
                    title=str(item["title"]),
                    description=str(item.get("description") or ""),
                ))

        total = body.get("totalTasks")
        feedback = body.get("feedback")
        email = body.get("email")
        return cls(
            first_name=first_name,
            day_number=day_number,
            day_title=str(body.get("dayTitle") or ""),
            feedback=feedback.strip() if isinstance(feedback, str) and feedback.strip() else None,
            completed_tasks=tasks,
            total_tasks=total if isinstance(total, int) and total >= 0 else len(tasks),
            email=email if isinstance(email, str) and email else None,
        )

    @property
    def subject(self) -> str:
        return f"Day {self.day_number} Complete! Here's your summary"


def build_summary_prompt(req: DailySummaryRequest) -> str:
    done = len(req.completed_tasks)
    if done:
        tasks = "## Completed Tasks\n" + "\n".join(
            f"- {t.title}: {t.description}" for t in req.completed_tasks
        )
    else:
        tasks = "## No tasks were marked as completed today."
    feedback = f'## Employee Feedback\n"{req.feedback}"' if req.feedback else "## No feedback was provided."

    steps = [
        f"Acknowledges their progress for Day {req.day_number}",
        "Lists what they accomplished (use bullet points)" if done
        else "Encourages them without being condescending",
    ]
    if req.feedback:
        steps.append("Thanks them for their feedback")
    steps.append(
        f"Looks forward to Day {req.day_number + 1}" if req.day_number < PLAN_DAYS
        else "Congratulates them on completing their first week!"
    )
    numbered = "\n".join(f"{i}. {s}" for i, s in enumerate(steps, 1))

    return f"""Generate the email body content for a daily onboarding summary email.

## Context
- Employee name: {req.first_name}
- Day number: {req.day_number} of {PLAN_DAYS}
- Day theme: "{req.day_title}"
- Tasks completed: {done} out of {req.total_tasks}

{tasks}

{feedback}

## Instructions
Generate warm, encouraging email content that:
{numbered}

Keep it concise, warm, and celebratory. Return ONLY the JSON object."""


def parse_content_blocks(text: str) -> list[dict]:
    """Pull ``{"content": [...]}`` out of agent text.

    Keeps well-formed ``text`` and ``bullets`` blocks. Raises ValueError if
    none survive.
    """
    extraction = extract_plan(text)
    if not extraction.found:
        raise ValueError(extraction.error)

    blocks = []
    for block in extraction.plan.get("content") or []:
        if not isinstance(block, dict):
            continue
        if block.get("type") == "text" and isinstance(block.get("content"), str):
            blocks.append({"type": "text", "content": block["content"]})
        elif block.get("type") == "bullets" and isinstance(block.get("items"), list):
            items = [str(i) for i in block["items"] if i]
            if items:
                blocks.append({"type": "bullets", "items": items})

    if not blocks:
        raise ValueError("Agent did not return any content blocks")
    return blocks
