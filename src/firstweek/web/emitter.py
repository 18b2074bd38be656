"""Translate agent runs into wire event sequences (plan generation and chat).

Plan streams always yield ``start`` first and exactly one terminal event
(``complete`` or ``error``) last. Chat streams end with ``finish`` or ``error``.
"""

import logging
from typing import AsyncIterator

from ..agent.base import AgentRun, TextDeltaChunk, ToolCallChunk, ToolResultChunk, normalize_chunk
from ..core.events import (
    ChatEvent,
    CompleteEvent,
    ErrorEvent,
    FinishEvent,
    PlanEvent,
    StartEvent,
    TextDeltaEvent,
    ToolCallEvent,
    ToolResultEvent,
    encode_sse,
)
from ..core.plan import extract_plan
from ..core.summaries import summarize_tool_result

logger = logging.getLogger(__name__)


async def plan_event_stream(run: AgentRun) -> AsyncIterator[PlanEvent]:
    """Consume ``run.full_stream`` and yield wire events."""
    try:
        yield StartEvent()

        buffered = []
        async for raw in run.full_stream:
            chunk = normalize_chunk(raw)
            if isinstance(chunk, ToolCallChunk):
                logger.info("Tool call: %s", chunk.tool_name)
                yield ToolCallEvent(tool_name=chunk.tool_name)
            elif isinstance(chunk, ToolResultChunk):
                logger.info("Tool result: %s", chunk.tool_name)
                yield ToolResultEvent(
                    tool_name=chunk.tool_name,
                    result=summarize_tool_result(chunk.result),
                )
            elif isinstance(chunk, TextDeltaChunk):
                buffered.append(chunk.text)

        final_text = await run.text() or "".join(buffered)
        logger.info("Agent finished, final text is %d chars", len(final_text))

        extraction = extract_plan(final_text)
        if not extraction.found:
            logger.warning("Plan extraction failed: %s", extraction.error)
        yield CompleteEvent(plan=extraction.plan, text=final_text)

    except Exception as e:
        logger.exception("Plan generation failed")
        yield ErrorEvent(message=str(e) or type(e).__name__)


async def plan_sse_bytes(run: AgentRun) -> AsyncIterator[bytes]:
    """The same event sequence, framed as SSE bytes."""
    async for event in plan_event_stream(run):
        yield encode_sse(event)


async def chat_event_stream(run: AgentRun) -> AsyncIterator[ChatEvent]:
    """Consume a chat run: tool activity and text as it arrives, then ``finish``.

    Always ends with exactly one ``finish`` or ``error`` event.
    """
    try:
        async for raw in run.full_stream:
            chunk = normalize_chunk(raw)
            if isinstance(chunk, ToolCallChunk):
                logger.info("Chat tool call: %s", chunk.tool_name)
                yield ToolCallEvent(tool_name=chunk.tool_name)
            elif isinstance(chunk, ToolResultChunk):
                yield ToolResultEvent(
                    tool_name=chunk.tool_name,
                    result=summarize_tool_result(chunk.result),
                )
            elif isinstance(chunk, TextDeltaChunk) and chunk.text:
                yield TextDeltaEvent(delta=chunk.text)

        yield FinishEvent(text=await run.text())

    except Exception as e:
        logger.exception("Chat run failed")
        yield ErrorEvent(message=str(e) or type(e).__name__)
