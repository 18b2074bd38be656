"""Size-bounded digests of tool results, computed before they go on the wire."""

import json

from .constants import ARTICLE_PREVIEW_CHARS, ELLIPSIS, PREVIEW_ITEMS, RAW_PREVIEW_CHARS


def summarize_tool_result(result) -> dict | None:
    """Reduce a raw tool result to a tagged summary.

    Variants: article-list, article-content, issue-list, issue-detail,
    pr-list, and raw as the fallback.
    """
    if not result:
        return None

    if isinstance(result, dict):
        articles = result.get("articles")
        if isinstance(articles, list):
            return {
                "type": "article-list",
                "count": len(articles),
                "preview": [
                    {"title": a.get("title"), "category": a.get("category")}
                    for a in articles[:PREVIEW_ITEMS]
                    if isinstance(a, dict)
                ],
            }

        if result.get("success") and result.get("content"):
            return {
                "type": "article-content",
                "title": result.get("title"),
                "category": result.get("category"),
                "contentPreview": truncate(str(result["content"]), ARTICLE_PREVIEW_CHARS),
            }

        issues = result.get("issues")
        if isinstance(issues, list):
            return {
                "type": "issue-list",
                "count": len(issues),
                "preview": _numbered_preview(issues),
            }

        issue = result.get("issue")
        if isinstance(issue, dict) and issue.get("number"):
            return {
                "type": "issue-detail",
                "number": issue["number"],
                "title": issue.get("title"),
                "state": issue.get("state"),
            }

        pulls = result.get("pullRequests")
        if isinstance(pulls, list):
            return {
                "type": "pr-list",
                "count": len(pulls),
                "preview": _numbered_preview(pulls),
            }

    # Size is measured on the compact, unescaped form (as JSON.stringify)
    serialized = json.dumps(result, default=str, separators=(",", ":"), ensure_ascii=False)
    if len(serialized) > RAW_PREVIEW_CHARS:
        return {"type": "raw", "preview": serialized[:RAW_PREVIEW_CHARS] + ELLIPSIS}
    return {"type": "raw", "data": result}


def truncate(text: str, limit: int) -> str:
    """Cut text to ``limit`` characters, appending an ellipsis only if cut."""
    if len(text) > limit:
        return text[:limit] + ELLIPSIS
    return text


def _numbered_preview(items: list) -> list[dict]:
    return [
        {"number": item.get("number"), "title": item.get("title")}
        for item in items[:PREVIEW_ITEMS]
        if isinstance(item, dict)
    ]
