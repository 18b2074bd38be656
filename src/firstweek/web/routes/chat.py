"""Multi-turn chat with the onboarding agent, streamed as SSE."""

import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from sse_starlette.sse import EventSourceResponse

from ...agent.registry import get_agent
from ...core.chat import ChatRequest
from ...core.config import load_config, load_env
from ...core.events import to_json
from ..emitter import chat_event_stream
from .plan import SSE_HEADERS, read_json

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["chat"])


@router.post("/chat")
async def chat(request: Request):
    """Answer the latest user message given the conversation so far."""
    try:
        chat_request = ChatRequest.from_body(await read_json(request))
    except ValueError as e:
        return JSONResponse({"error": str(e)}, status_code=400)

    logger.info("Chat turn with %d messages", len(chat_request.messages))

    try:
        agent = get_agent("onboarding", load_config(), load_env())
        run = agent.stream_messages(list(chat_request.messages))
    except Exception as e:
        logger.exception("Could not start chat")
        return JSONResponse({"error": str(e)}, status_code=500)

    async def event_generator():
        async for event in chat_event_stream(run):
            yield {"data": to_json(event)}

    return EventSourceResponse(event_generator(), headers=SSE_HEADERS, sep="\n")
