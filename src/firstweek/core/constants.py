"""Constants shared by the plan-generation emitter and consumer."""


# Wire event types (the "type" field of each SSE data payload)
EVENT_START = "start"
EVENT_TOOL_CALL = "tool-call"
EVENT_TOOL_RESULT = "tool-result"
EVENT_COMPLETE = "complete"
EVENT_ERROR = "error"

# Chat-only event types
EVENT_TEXT_DELTA = "text-delta"
EVENT_FINISH = "finish"

START_MESSAGE = "Starting plan generation..."

# Upstream agent chunk types
CHUNK_TOOL_CALL = "tool-call"
CHUNK_TOOL_RESULT = "tool-result"
CHUNK_TEXT_DELTA = "text-delta"
CHUNK_FINISH = "finish"

UNKNOWN_TOOL = "unknown-tool"

# Tool ids
TOOL_LIST_ARTICLES = "list-handbook-articles"
TOOL_FETCH_ARTICLE = "fetch-handbook-article"
TOOL_LIST_ISSUES = "list-github-issues"
TOOL_GET_ISSUE = "get-github-issue"
TOOL_LIST_PRS = "list-github-prs"
TOOL_GET_PR = "get-github-pr"

TOOL_DISPLAY_NAMES = {
    TOOL_LIST_ARTICLES: "Browsing handbook articles",
    TOOL_FETCH_ARTICLE: "Reading a handbook article",
    TOOL_LIST_ISSUES: "Scanning GitHub issues",
    TOOL_GET_ISSUE: "Reading a GitHub issue",
    TOOL_LIST_PRS: "Reviewing recent pull requests",
    TOOL_GET_PR: "Inspecting a pull request",
}

# Result summary limits
PREVIEW_ITEMS = 5
ARTICLE_PREVIEW_CHARS = 300
RAW_PREVIEW_CHARS = 500
ELLIPSIS = "..."

# Progress step kinds and statuses
KIND_TOOL_CALL = "tool-call"
KIND_TOOL_RESULT = "tool-result"
KIND_INFO = "info"

STATUS_PENDING = "pending"
STATUS_IN_PROGRESS = "in-progress"
STATUS_COMPLETE = "complete"

PLAN_READY_MESSAGE = "Your onboarding plan is ready"
NO_PLAN_MESSAGE = "No plan in response"
STREAM_ENDED_MESSAGE = "Stream ended before the plan was complete"

# Plan shape
PLAN_DAYS = 5
TASK_TYPES = ("reading", "meeting", "task", "exploration", "contribution")
TASK_PRIORITIES = ("high", "medium", "low")
