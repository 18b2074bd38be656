"""Plan generation routes: streamed (SSE) and one-shot JSON."""

import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from sse_starlette.sse import EventSourceResponse

from ...agent.registry import get_agent
from ...core.config import load_config, load_env
from ...core.events import to_json
from ...core.plan import OnboardingPlan, PlanRequest, PlanValidationError, build_plan_prompt, extract_plan
from ..emitter import plan_event_stream

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["plan"])

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
}


async def read_json(request: Request):
    """Decoded request body, or None when it is not valid JSON."""
    try:
        return await request.json()
    except ValueError:
        return None


@router.post("/generate-plan-stream")
async def generate_plan_stream(request: Request):
    """Stream plan-generation progress as SSE ``data:`` events."""
    try:
        plan_request = PlanRequest.from_body(await read_json(request))
    except ValueError as e:
        return JSONResponse({"error": str(e)}, status_code=400)

    logger.info("Plan stream requested for %s (%s)", plan_request.name, plan_request.role)

    try:
        agent = get_agent("onboarding", load_config(), load_env())
        run = agent.stream(build_plan_prompt(plan_request))
    except Exception as e:
        logger.exception("Could not start plan generation")
        return JSONResponse({"error": str(e)}, status_code=500)

    async def event_generator():
        async for event in plan_event_stream(run):
            yield {"data": to_json(event)}

    return EventSourceResponse(event_generator(), headers=SSE_HEADERS, sep="\n")


@router.post("/generate-plan")
async def generate_plan(request: Request):
    """Run the agent to completion and return a validated plan."""
    try:
        plan_request = PlanRequest.from_body(await read_json(request))
    except ValueError as e:
        return JSONResponse({"success": False, "error": str(e)}, status_code=400)

    logger.info("Plan requested for %s (%s)", plan_request.name, plan_request.role)

    try:
        agent = get_agent("onboarding", load_config(), load_env())
        text = await agent.generate(build_plan_prompt(plan_request))
        extraction = extract_plan(text)
        if not extraction.found:
            raise PlanValidationError(extraction.error)
        plan = OnboardingPlan.from_dict(extraction.plan)
    except Exception as e:
        logger.exception("Plan generation failed")
        return JSONResponse(
            {"success": False, "error": f"Failed to generate plan: {e}"},
            status_code=500,
        )

    logger.info("Plan ready: %d days, %d tasks", len(plan.days), len(plan.task_ids()))
    return {"success": True, "plan": plan.to_dict()}
