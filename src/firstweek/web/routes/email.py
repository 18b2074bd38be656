"""Transactional email routes: welcome and end-of-day summary."""

import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from ...agent.registry import get_agent
from ...core.config import get_secret, load_config, load_env
from ...mail.sender import Email, EmailError, is_valid_email, render_daily_summary, render_welcome, send_email
from ...mail.summary import DailySummaryRequest, build_summary_prompt, parse_content_blocks
from .plan import read_json

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["email"])

WELCOME_SUBJECT = "Welcome aboard! Your First Week Starts Now"
SEND_FAILED = "Failed to send email. Please try again later."


def _fail(message: str, status_code: int) -> JSONResponse:
    return JSONResponse({"success": False, "message": message}, status_code=status_code)


async def _deliver(config: dict, env: dict, message: Email) -> str:
    api_key = get_secret(env, "RESEND_API_KEY")
    from_address = config.get("email", {}).get("from_address", "")
    return await send_email(message, api_key, from_address)


@router.post("/send-welcome")
async def send_welcome(request: Request):
    body = await read_json(request)
    if not isinstance(body, dict):
        return _fail("Request body must be a JSON object", 400)

    address = body.get("email")
    if not address or not isinstance(address, str):
        return _fail("Email is required", 400)
    if not is_valid_email(address):
        return _fail("Invalid email format", 400)

    name = body.get("name") if isinstance(body.get("name"), str) else None
    role = body.get("role") if isinstance(body.get("role"), str) else None
    message = Email(to=address, subject=WELCOME_SUBJECT, html=render_welcome(name, role))

    try:
        email_id = await _deliver(load_config(), load_env(), message)
    except (EmailError, ValueError) as e:
        logger.error("Welcome email failed: %s", e)
        return _fail(SEND_FAILED, 500)

    return {"success": True, "message": "Welcome email sent successfully", "emailId": email_id}


@router.post("/send-daily-summary")
async def send_daily_summary(request: Request):
    try:
        req = DailySummaryRequest.from_body(await read_json(request))
    except ValueError as e:
        return _fail(str(e), 400)

    config = load_config()
    email_cfg = config.get("email", {})
    to = req.email or email_cfg.get("summary_to")
    if not to or not is_valid_email(to):
        return _fail("No valid recipient email configured", 400)

    env = load_env()
    try:
        agent = get_agent("daily-summary", config, env)
        text = await agent.generate(build_summary_prompt(req))
        content = parse_content_blocks(text)
    except Exception as e:
        logger.exception("Daily summary generation failed")
        return _fail(f"Failed to generate email content: {e}", 500)

    logger.info("Daily summary for day %d: %d blocks", req.day_number, len(content))

    html = render_daily_summary(
        req.first_name, req.day_number, content,
        base_url=email_cfg.get("base_url", ""),
    )
    try:
        email_id = await _deliver(config, env, Email(to=to, subject=req.subject, html=html))
    except (EmailError, ValueError) as e:
        logger.error("Daily summary email failed: %s", e)
        return _fail(SEND_FAILED, 500)

    return {"success": True, "message": "Daily summary email sent successfully", "emailId": email_id}
