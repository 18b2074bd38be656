"""Onboarding plan model, request validation, prompt building, JSON extraction."""

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone

from .constants import PLAN_DAYS, TASK_PRIORITIES, TASK_TYPES


class PlanValidationError(ValueError):
    """Raised when a plan payload does not match the plan schema."""


# ── Request ───────────────────────────────────────────────────────


@dataclass(frozen=True)
class PlanRequest:
    """A validated plan-generation request."""
    name: str
    role: str
    goals: str | None = None

    @classmethod
    def from_body(cls, body) -> "PlanRequest":
        """Validate a decoded JSON body. Raises ValueError with a client-facing message."""
        if not isinstance(body, dict):
            raise ValueError("Request body must be a JSON object")
        name = body.get("name")
        role = body.get("role")
        if not name or not isinstance(name, str):
            raise ValueError("Name is required")
        if not role or not isinstance(role, str):
            raise ValueError("Role is required")
        goals = body.get("goals")
        if not isinstance(goals, str) or not goals.strip():
            goals = None
        return cls(name=name, role=role, goals=goals)

    @property
    def is_engineer(self) -> bool:
        return is_engineering_role(self.role)


def is_engineering_role(role: str) -> bool:
    role = role.lower()
    return "engineer" in role or "developer" in role or "swe" in role


# ── Plan ──────────────────────────────────────────────────────────


@dataclass
class Reference:
    """Cross-reference from a task to a handbook article, issue, or PR."""
    title: str
    slug: str | None = None
    number: int | None = None
    url: str | None = None

    def to_dict(self) -> dict:
        return {k: v for k, v in (
            ("slug", self.slug), ("number", self.number),
            ("title", self.title), ("url", self.url),
        ) if v is not None}


@dataclass
class OnboardingTask:
    id: str
    title: str
    description: str
    type: str
    priority: str
    estimated_minutes: int | None = None
    handbook_article: Reference | None = None
    github_issue: Reference | None = None
    github_pr: Reference | None = None

    @classmethod
    def from_dict(cls, data: dict) -> "OnboardingTask":
        _require(data, ("id", "title", "description", "type", "priority"), "task")
        if data["type"] not in TASK_TYPES:
            raise PlanValidationError(f"Unknown task type: {data['type']!r}")
        if data["priority"] not in TASK_PRIORITIES:
            raise PlanValidationError(f"Unknown task priority: {data['priority']!r}")
        return cls(
            id=str(data["id"]),
            title=str(data["title"]),
            description=str(data["description"]),
            type=data["type"],
            priority=data["priority"],
            estimated_minutes=data.get("estimatedMinutes"),
            handbook_article=_article_ref(data.get("handbookArticle")),
            github_issue=_numbered_ref(data.get("githubIssue")),
            github_pr=_numbered_ref(data.get("githubPR")),
        )

    def to_dict(self) -> dict:
        out = {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "type": self.type,
            "priority": self.priority,
        }
        if self.estimated_minutes is not None:
            out["estimatedMinutes"] = self.estimated_minutes
        if self.handbook_article:
            out["handbookArticle"] = self.handbook_article.to_dict()
        if self.github_issue:
            out["githubIssue"] = self.github_issue.to_dict()
        if self.github_pr:
            out["githubPR"] = self.github_pr.to_dict()
        return out


@dataclass
class OnboardingDay:
    day: int
    title: str
    summary: str
    tasks: list[OnboardingTask] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict) -> "OnboardingDay":
        _require(data, ("day", "title", "summary", "tasks"), "day")
        day = data["day"]
        if not isinstance(day, int) or not 1 <= day <= PLAN_DAYS:
            raise PlanValidationError(f"Day number out of range: {day!r}")
        if not isinstance(data["tasks"], list):
            raise PlanValidationError(f"Day {day} tasks must be a list")
        return cls(
            day=day,
            title=str(data["title"]),
            summary=str(data["summary"]),
            tasks=[OnboardingTask.from_dict(t) for t in data["tasks"]],
        )

    def to_dict(self) -> dict:
        return {
            "day": self.day,
            "title": self.title,
            "summary": self.summary,
            "tasks": [t.to_dict() for t in self.tasks],
        }


@dataclass
class SuggestedIssue:
    number: int
    title: str
    url: str
    reason: str


@dataclass
class KeyContact:
    role: str
    purpose: str


@dataclass
class OnboardingPlan:
    """The complete 5-day plan. Created once per successful generation."""
    employee_name: str
    role: str
    created_at: str
    days: list[OnboardingDay]
    welcome_message: str = ""
    suggested_first_issue: SuggestedIssue | None = None
    key_contacts: list[KeyContact] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict) -> "OnboardingPlan":
        """Validate and build a plan from its JSON form."""
        if not isinstance(data, dict):
            raise PlanValidationError("Plan must be a JSON object")
        _require(data, ("employeeName", "role", "createdAt", "days"), "plan")
        days = data["days"]
        if not isinstance(days, list) or len(days) != PLAN_DAYS:
            count = len(days) if isinstance(days, list) else 0
            raise PlanValidationError(f"Plan must have exactly {PLAN_DAYS} days, got {count}")

        issue = data.get("suggestedFirstIssue")
        suggested = None
        if isinstance(issue, dict):
            _require(issue, ("number", "title", "url", "reason"), "suggestedFirstIssue")
            suggested = SuggestedIssue(
                number=int(issue["number"]),
                title=str(issue["title"]),
                url=str(issue["url"]),
                reason=str(issue["reason"]),
            )

        contacts = [
            KeyContact(role=str(c.get("role", "")), purpose=str(c.get("purpose", "")))
            for c in (data.get("keyContacts") or [])
            if isinstance(c, dict)
        ]

        return cls(
            employee_name=str(data["employeeName"]),
            role=str(data["role"]),
            created_at=str(data["createdAt"]),
            days=[OnboardingDay.from_dict(d) for d in days],
            welcome_message=str(data.get("welcomeMessage") or ""),
            suggested_first_issue=suggested,
            key_contacts=contacts,
        )

    def to_dict(self) -> dict:
        out = {
            "employeeName": self.employee_name,
            "role": self.role,
            "createdAt": self.created_at,
            "welcomeMessage": self.welcome_message,
            "days": [d.to_dict() for d in self.days],
        }
        if self.suggested_first_issue:
            i = self.suggested_first_issue
            out["suggestedFirstIssue"] = {
                "number": i.number, "title": i.title, "url": i.url, "reason": i.reason,
            }
        if self.key_contacts:
            out["keyContacts"] = [{"role": c.role, "purpose": c.purpose} for c in self.key_contacts]
        return out

    def task_ids(self) -> list[str]:
        return [t.id for d in self.days for t in d.tasks]

    def get_day(self, day: int) -> OnboardingDay | None:
        for d in self.days:
            if d.day == day:
                return d
        return None


def _require(data, keys: tuple[str, ...], what: str) -> None:
    if not isinstance(data, dict):
        raise PlanValidationError(f"{what} must be a JSON object")
    missing = [k for k in keys if k not in data]
    if missing:
        raise PlanValidationError(f"{what} is missing: {', '.join(missing)}")


def _article_ref(data) -> Reference | None:
    if not isinstance(data, dict):
        return None
    _require(data, ("slug", "title"), "handbookArticle")
    return Reference(title=str(data["title"]), slug=str(data["slug"]))


def _numbered_ref(data) -> Reference | None:
    if not isinstance(data, dict):
        return None
    _require(data, ("number", "title", "url"), "github reference")
    return Reference(title=str(data["title"]), number=int(data["number"]), url=str(data["url"]))


# ── Extraction ────────────────────────────────────────────────────


@dataclass(frozen=True)
class PlanExtraction:
    """Outcome of pulling a JSON object out of free-form agent text.

    Exactly one of ``plan`` and ``error`` is set.
    """
    plan: dict | None = None
    error: str | None = None

    @property
    def found(self) -> bool:
        return self.plan is not None


def extract_plan(text: str) -> PlanExtraction:
    """Parse the span from the first ``{`` to the last ``}`` as a JSON object."""
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end < start:
        return PlanExtraction(error="No JSON object found in agent response")
    try:
        data = json.loads(text[start:end + 1])
    except json.JSONDecodeError as e:
        return PlanExtraction(error=f"Invalid JSON in agent response: {e}")
    if not isinstance(data, dict):
        return PlanExtraction(error="Agent response JSON is not an object")
    return PlanExtraction(plan=data)


# ── Prompt ────────────────────────────────────────────────────────


def build_plan_prompt(request: PlanRequest, now: datetime | None = None) -> str:
    """Build the agent prompt asking for a JSON onboarding plan."""
    created_at = (now or datetime.now(timezone.utc)).isoformat()
    engineer = request.is_engineer
    goals_line = f"Personal goals for first week: {request.goals}" if request.goals else ""
    step2 = (
        "Use list-github-issues to find a good first issue for them to work on"
        if engineer else "Focus on role-specific handbook content"
    )
    step5 = (
        "Include a suggested first issue from GitHub with the issue number, title, URL, "
        "and why it's a good fit"
        if engineer else "Include key people they should connect with"
    )
    skeleton = {
        "employeeName": request.name,
        "role": request.role,
        "createdAt": created_at,
        "welcomeMessage": "A short, personal welcome",
        "days": [{
            "day": 1,
            "title": "Day theme",
            "summary": "Brief summary",
            "tasks": [{
                "id": "unique-id",
                "title": "Task title",
                "description": "Task description",
                "type": "|".join(TASK_TYPES),
                "priority": "|".join(TASK_PRIORITIES),
                "handbookArticle": {"slug": "article-slug", "title": "Article Title"},
            }],
        }],
        "suggestedFirstIssue": {
            "number": 123,
            "title": "Issue title",
            "url": "https://github.com/...",
            "reason": "Why this is good for a first contribution",
        },
    }

    return f"""Create a personalized {PLAN_DAYS}-day onboarding plan for a new employee.

Name: {request.name}
Role: {request.role}
{goals_line}

Instructions:
1. First, use list-handbook-articles to discover relevant articles for their role
2. {step2}
3. Create a comprehensive {PLAN_DAYS}-day plan with specific, actionable tasks
4. Include references to actual handbook articles you found (use the slug)
5. {step5}

IMPORTANT: Your response MUST be a valid JSON object matching this structure:
{json.dumps(skeleton, indent=2)}

Make sure each day has 3-5 tasks. Return ONLY the JSON object, no additional text."""
