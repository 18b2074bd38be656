"""GitHub tools: recent issues and pull requests from one repository."""

import asyncio
import logging

import httpx

from ..core.constants import TOOL_GET_ISSUE, TOOL_GET_PR, TOOL_LIST_ISSUES, TOOL_LIST_PRS
from .tools import Tool

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 10
MAX_LIMIT = 30
ISSUE_COMMENTS = 10
PR_FILES = 30

STATES = ("open", "closed", "all")


def clamp_limit(limit) -> int:
    """Page size for list calls: default 10, never above 30."""
    try:
        limit = int(limit or DEFAULT_LIMIT)
    except (TypeError, ValueError):
        limit = DEFAULT_LIMIT
    return max(1, min(limit, MAX_LIMIT))


def _as_number(value) -> int | None:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _login(item: dict) -> str:
    user = item.get("user") or {}
    return user.get("login") or "unknown"


def _label_names(labels: list) -> list[str]:
    return [label if isinstance(label, str) else (label.get("name") or "") for label in labels or []]


class GitHubClient:
    """Thin async REST client scoped to ``owner/repo``."""

    def __init__(
        self,
        owner: str,
        repo: str,
        token: str | None = None,
        api_url: str = "https://api.github.com",
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.owner = owner
        self.repo = repo
        self.api_url = api_url.rstrip("/")
        self.transport = transport
        self.headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }
        if token:
            self.headers["Authorization"] = f"Bearer {token}"

    @property
    def repo_path(self) -> str:
        return f"/repos/{self.owner}/{self.repo}"

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.api_url,
            headers=self.headers,
            timeout=30.0,
            transport=self.transport,
        )

    @staticmethod
    async def _get(client: httpx.AsyncClient, path: str, params: dict | None = None):
        response = await client.get(path, params=params)
        response.raise_for_status()
        return response.json()

    async def list_issues(
        self,
        state: str = "open",
        labels: str | None = None,
        search: str | None = None,
        limit=None,
    ) -> dict:
        """Recently updated issues, excluding pull requests."""
        params = {
            "state": state or "open",
            "per_page": clamp_limit(limit),
            "sort": "updated",
            "direction": "desc",
        }
        if labels:
            params["labels"] = labels
        try:
            async with self._client() as client:
                data = await self._get(client, f"{self.repo_path}/issues", params)
        except httpx.HTTPError as e:
            logger.warning("GitHub issue list failed: %s", e)
            return {"success": False, "error": f"Failed to fetch issues: {e}"}

        # The issues endpoint also returns pull requests
        issues = [i for i in data if not i.get("pull_request")]
        if search:
            needle = search.lower()
            issues = [
                i for i in issues
                if needle in (i.get("title") or "").lower()
                or needle in (i.get("body") or "").lower()
            ]

        return {
            "success": True,
            "issues": [
                {
                    "number": i["number"],
                    "title": i.get("title", ""),
                    "state": i.get("state", ""),
                    "author": _login(i),
                    "labels": _label_names(i.get("labels")),
                    "createdAt": i.get("created_at"),
                    "commentsCount": i.get("comments", 0),
                    "url": i.get("html_url"),
                }
                for i in issues
            ],
            "totalCount": len(issues),
        }

    async def get_issue(self, number: int) -> dict:
        """One issue with its first comments."""
        path = f"{self.repo_path}/issues/{int(number)}"
        try:
            async with self._client() as client:
                issue, comments = await asyncio.gather(
                    self._get(client, path),
                    self._get(client, f"{path}/comments", {"per_page": ISSUE_COMMENTS}),
                )
        except httpx.HTTPError as e:
            logger.warning("GitHub issue #%s failed: %s", number, e)
            return {"success": False, "error": f"Failed to fetch issue: {e}"}

        return {
            "success": True,
            "issue": {
                "number": issue["number"],
                "title": issue.get("title", ""),
                "state": issue.get("state", ""),
                "author": _login(issue),
                "body": issue.get("body") or "",
                "labels": _label_names(issue.get("labels")),
                "createdAt": issue.get("created_at"),
                "updatedAt": issue.get("updated_at"),
                "commentsCount": issue.get("comments", 0),
                "url": issue.get("html_url"),
                "comments": [
                    {
                        "author": _login(c),
                        "body": c.get("body") or "",
                        "createdAt": c.get("created_at"),
                    }
                    for c in comments
                ],
            },
        }

    async def list_pull_requests(self, state: str = "open", limit=None) -> dict:
        params = {
            "state": state or "open",
            "per_page": clamp_limit(limit),
            "sort": "updated",
            "direction": "desc",
        }
        try:
            async with self._client() as client:
                data = await self._get(client, f"{self.repo_path}/pulls", params)
        except httpx.HTTPError as e:
            logger.warning("GitHub PR list failed: %s", e)
            return {"success": False, "error": f"Failed to fetch pull requests: {e}"}

        return {
            "success": True,
            "pullRequests": [
                {
                    "number": pr["number"],
                    "title": pr.get("title", ""),
                    "state": pr.get("state", ""),
                    "author": _login(pr),
                    "createdAt": pr.get("created_at"),
                    "updatedAt": pr.get("updated_at"),
                    "draft": bool(pr.get("draft")),
                    "url": pr.get("html_url"),
                    "additions": pr.get("additions") or 0,
                    "deletions": pr.get("deletions") or 0,
                    "changedFiles": pr.get("changed_files") or 0,
                }
                for pr in data
            ],
            "totalCount": len(data),
        }

    async def get_pull_request(self, number: int) -> dict:
        """One pull request with its changed files."""
        path = f"{self.repo_path}/pulls/{int(number)}"
        try:
            async with self._client() as client:
                pr, files = await asyncio.gather(
                    self._get(client, path),
                    self._get(client, f"{path}/files", {"per_page": PR_FILES}),
                )
        except httpx.HTTPError as e:
            logger.warning("GitHub PR #%s failed: %s", number, e)
            return {"success": False, "error": f"Failed to fetch pull request: {e}"}

        return {
            "success": True,
            "pullRequest": {
                "number": pr["number"],
                "title": pr.get("title", ""),
                "state": pr.get("state", ""),
                "author": _login(pr),
                "body": pr.get("body") or "",
                "createdAt": pr.get("created_at"),
                "updatedAt": pr.get("updated_at"),
                "mergedAt": pr.get("merged_at"),
                "draft": bool(pr.get("draft")),
                "url": pr.get("html_url"),
                "additions": pr.get("additions") or 0,
                "deletions": pr.get("deletions") or 0,
                "changedFiles": pr.get("changed_files") or 0,
                "files": [
                    {
                        "filename": f.get("filename"),
                        "status": f.get("status"),
                        "additions": f.get("additions", 0),
                        "deletions": f.get("deletions", 0),
                    }
                    for f in files
                ],
            },
        }


def build_github_tools(
    config: dict,
    env: dict | None = None,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> list[Tool]:
    """GitHub tools bound to the configured repository."""
    gh = config.get("github", {})
    client = GitHubClient(
        owner=gh.get("owner", "resend"),
        repo=gh.get("repo", "react-email"),
        token=(env or {}).get("GITHUB_TOKEN"),
        api_url=gh.get("api_url", "https://api.github.com"),
        transport=transport,
    )
    slug = f"{client.owner}/{client.repo}"

    async def list_issues_tool(args: dict) -> dict:
        args = args or {}
        return await client.list_issues(
            state=args.get("state", "open"),
            labels=args.get("labels"),
            search=args.get("search"),
            limit=args.get("limit"),
        )

    async def get_issue_tool(args: dict) -> dict:
        number = _as_number((args or {}).get("issueNumber"))
        if number is None:
            return {"success": False, "error": "issueNumber must be an integer"}
        return await client.get_issue(number)

    async def list_prs_tool(args: dict) -> dict:
        args = args or {}
        return await client.list_pull_requests(state=args.get("state", "open"), limit=args.get("limit"))

    async def get_pr_tool(args: dict) -> dict:
        number = _as_number((args or {}).get("prNumber"))
        if number is None:
            return {"success": False, "error": "prNumber must be an integer"}
        return await client.get_pull_request(number)

    state_schema = {
        "type": "string",
        "enum": list(STATES),
        "description": "Filter by state. Defaults to 'open'.",
    }
    limit_schema = {
        "type": "integer",
        "description": f"Maximum number of results. Defaults to {DEFAULT_LIMIT}, max {MAX_LIMIT}.",
    }

    return [
        Tool(
            id=TOOL_LIST_ISSUES,
            description=(
                f"Lists recent GitHub issues from the {slug} repository. "
                "Use this to understand what problems users are facing, feature requests, "
                "and ongoing discussions."
            ),
            input_schema={
                "type": "object",
                "properties": {
                    "state": state_schema,
                    "labels": {
                        "type": "string",
                        "description": "Comma-separated label names to filter by (e.g. 'bug,help wanted')",
                    },
                    "search": {"type": "string", "description": "Search term matched against title and body"},
                    "limit": limit_schema,
                },
            },
            execute=list_issues_tool,
        ),
        Tool(
            id=TOOL_GET_ISSUE,
            description=(
                "Gets the full details of a specific GitHub issue including its description "
                "and recent comments. Use this after listing issues to dive deeper."
            ),
            input_schema={
                "type": "object",
                "properties": {"issueNumber": {"type": "integer", "description": "The issue number to fetch"}},
                "required": ["issueNumber"],
            },
            execute=get_issue_tool,
        ),
        Tool(
            id=TOOL_LIST_PRS,
            description=(
                f"Lists recent pull requests from the {slug} repository. "
                "Use this to see what engineers have been building lately."
            ),
            input_schema={
                "type": "object",
                "properties": {"state": state_schema, "limit": limit_schema},
            },
            execute=list_prs_tool,
        ),
        Tool(
            id=TOOL_GET_PR,
            description=(
                "Gets the full details of a specific pull request including description "
                "and files changed."
            ),
            input_schema={
                "type": "object",
                "properties": {"prNumber": {"type": "integer", "description": "The pull request number to fetch"}},
                "required": ["prNumber"],
            },
            execute=get_pr_tool,
        ),
    ]
