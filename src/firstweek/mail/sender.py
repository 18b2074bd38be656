"""Render email templates and send them through the Resend REST API."""

import logging
import re
from dataclasses import dataclass
from pathlib import Path

import httpx
from jinja2 import Environment, FileSystemLoader, select_autoescape

logger = logging.getLogger(__name__)

TEMPLATES_DIR = Path(__file__).parent / "templates"

RESEND_URL = "https://api.resend.com/emails"

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

templates = Environment(
    loader=FileSystemLoader(str(TEMPLATES_DIR)),
    autoescape=select_autoescape(["html"]),
)


class EmailError(Exception):
    """The provider rejected the message or could not be reached."""


@dataclass(frozen=True)
class Email:
    to: str
    subject: str
    html: str


def is_valid_email(address) -> bool:
    return isinstance(address, str) and bool(EMAIL_RE.match(address))


def render(template_name: str, **context) -> str:
    return templates.get_template(template_name).render(**context)


def render_welcome(name: str | None = None, role: str | None = None) -> str:
    greeting = (name or "").strip() or "there"
    return render("welcome.html", greeting=greeting, role=role or None)


def render_daily_summary(first_name: str, day_number: int, content: list[dict], base_url: str) -> str:
    return render(
        "daily_summary.html",
        first_name=first_name,
        day_number=day_number,
        content=content,
        base_url=base_url.rstrip("/"),
    )


async def send_email(
    message: Email,
    api_key: str,
    from_address: str,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> str:
    """POST one message to Resend. Returns the provider message id.

    Raises EmailError on transport failure or a non-2xx response.
    """
    payload = {
        "from": from_address,
        "to": [message.to],
        "subject": message.subject,
        "html": message.html,
    }
    try:
        async with httpx.AsyncClient(timeout=30.0, transport=transport) as client:
            response = await client.post(
                RESEND_URL,
                json=payload,
                headers={"Authorization": f"Bearer {api_key}"},
            )
    except httpx.HTTPError as e:
        raise EmailError(f"Email provider unreachable: {e}") from e

    if response.status_code >= 400:
        try:
            detail = response.json().get("message", response.text)
        except ValueError:
            detail = response.text
        raise EmailError(f"Email provider error (HTTP {response.status_code}): {detail}")

    email_id = response.json().get("id", "")
    logger.info("Sent %r to %s (id=%s)", message.subject, message.to, email_id)
    return email_id
