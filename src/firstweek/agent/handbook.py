"""Handbook tools: list the bundled article index, fetch an article as text."""

import html
import json
import logging
import re
from pathlib import Path

import httpx

from ..core.constants import TOOL_FETCH_ARTICLE, TOOL_LIST_ARTICLES
from .tools import Tool

logger = logging.getLogger(__name__)

INDEX_PATH = Path(__file__).parent.parent / "data" / "handbook_links.json"

CATEGORIES = ("company", "design", "engineering", "marketing", "people", "sales", "success")


def load_articles(path: Path = INDEX_PATH) -> list[dict]:
    """Flatten the category -> articles index into one list."""
    with open(path, encoding="utf-8") as f:
        index = json.load(f)
    return [
        {
            "category": category,
            "title": article["title"],
            "slug": article["slug"],
            "path": article["path"],
        }
        for category, articles in index.items()
        for article in articles
    ]


def list_articles(category: str | None = None, articles: list[dict] | None = None) -> list[dict]:
    """Articles (category, title, slug) filtered by category; "all" or None for everything."""
    articles = articles if articles is not None else load_articles()
    category = category or "all"
    return [
        {"category": a["category"], "title": a["title"], "slug": a["slug"]}
        for a in articles
        if category == "all" or a["category"] == category
    ]


def find_article(slug: str, articles: list[dict] | None = None) -> dict | None:
    articles = articles if articles is not None else load_articles()
    for a in articles:
        if a["slug"] == slug:
            return a
    return None


# (pattern, replacement) pairs, applied in order
_MARKDOWN_RULES = [
    (r"<h1[^>]*>(.*?)</h1>", r"\n# \1\n"),
    (r"<h2[^>]*>(.*?)</h2>", r"\n## \1\n"),
    (r"<h3[^>]*>(.*?)</h3>", r"\n### \1\n"),
    (r"<h4[^>]*>(.*?)</h4>", r"\n#### \1\n"),
    (r"<p[^>]*>(.*?)</p>", r"\n\1\n"),
    (r"<br\s*/?>", "\n"),
    (r"<li[^>]*>(.*?)</li>", "\u2022 \\1\n"),
    (r"</?ul[^>]*>", "\n"),
    (r"</?ol[^>]*>", "\n"),
    (r'<a[^>]*href="([^"]*)"[^>]*>(.*?)</a>', r"\2 (\1)"),
    (r"<strong[^>]*>(.*?)</strong>", r"**\1**"),
    (r"<b[^>]*>(.*?)</b>", r"**\1**"),
    (r"<em[^>]*>(.*?)</em>", r"*\1*"),
    (r"<i[^>]*>(.*?)</i>", r"*\1*"),
    (r"<code[^>]*>(.*?)</code>", r"`\1`"),
    (r"<[^>]+>", ""),
]


def extract_article_content(page: str) -> str:
    """Reduce a handbook HTML page to markdown-ish text."""
    content = re.sub(r"<script[^>]*>.*?</script>", "", page, flags=re.I | re.S)
    content = re.sub(r"<style[^>]*>.*?</style>", "", content, flags=re.I | re.S)

    match = (
        re.search(r"<article[^>]*>(.*?)</article>", content, flags=re.I | re.S)
        or re.search(r"<main[^>]*>(.*?)</main>", content, flags=re.I | re.S)
    )
    if match:
        content = match.group(1)

    for pattern, replacement in _MARKDOWN_RULES:
        content = re.sub(pattern, replacement, content, flags=re.I)

    content = html.unescape(content)
    content = re.sub(r"\n{3,}", "\n\n", content)
    return content.strip()


async def fetch_article(
    slug: str,
    base_url: str,
    *,
    articles: list[dict] | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> dict:
    """Fetch one article by slug. Failures come back as ``success: False``."""
    article = find_article(slug, articles)
    if article is None:
        return {
            "success": False,
            "error": f'Article with slug "{slug}" not found. '
                     f"Use {TOOL_LIST_ARTICLES} to see available articles.",
        }

    url = base_url.rstrip("/") + article["path"]
    try:
        async with httpx.AsyncClient(timeout=30.0, transport=transport, follow_redirects=True) as client:
            response = await client.get(url)
    except httpx.HTTPError as e:
        logger.warning("Handbook fetch failed for %s: %s", url, e)
        return {"success": False, "error": f"Failed to fetch article: {e}"}

    if response.status_code >= 400:
        return {"success": False, "error": f"Failed to fetch article: HTTP {response.status_code}"}

    return {
        "success": True,
        "title": article["title"],
        "category": article["category"],
        "content": extract_article_content(response.text),
    }


def build_handbook_tools(
    config: dict,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> list[Tool]:
    """Handbook tools bound to the configured handbook site."""
    base_url = config.get("handbook", {}).get("base_url", "https://resend.com")
    articles = load_articles()

    async def list_tool(args: dict) -> dict:
        return {"articles": list_articles((args or {}).get("category"), articles)}

    async def fetch_tool(args: dict) -> dict:
        return await fetch_article(
            str((args or {}).get("slug", "")), base_url,
            articles=articles, transport=transport,
        )

    return [
        Tool(
            id=TOOL_LIST_ARTICLES,
            description=(
                "Lists all available handbook articles organized by category. "
                "Use this to discover what articles are available before fetching specific ones. "
                f"Categories include: {', '.join(CATEGORIES)}."
            ),
            input_schema={
                "type": "object",
                "properties": {
                    "category": {
                        "type": "string",
                        "enum": [*CATEGORIES, "all"],
                        "description": "Filter by category, or 'all' to see everything. Defaults to 'all'.",
                    },
                },
            },
            execute=list_tool,
        ),
        Tool(
            id=TOOL_FETCH_ARTICLE,
            description=(
                "Fetches the full content of a specific handbook article by its slug. "
                f"Use {TOOL_LIST_ARTICLES} first to discover available slugs."
            ),
            input_schema={
                "type": "object",
                "properties": {
                    "slug": {"type": "string", "description": "The slug of the article to fetch"},
                },
                "required": ["slug"],
            },
            execute=fetch_tool,
        ),
    ]
