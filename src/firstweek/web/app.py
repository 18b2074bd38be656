"""FastAPI application for onboarding plan generation."""

from fastapi import FastAPI

from .routes import chat, email, plan

app = FastAPI(title="First Week", docs_url=None, redoc_url=None)

# Include route modules
app.include_router(plan.router)
app.include_router(email.router)
app.include_router(chat.router)


@app.get("/")
async def index():
    """Service info and available routes."""
    return {
        "name": "firstweek",
        "routes": [
            {"method": "POST", "path": "/api/generate-plan-stream"},
            {"method": "POST", "path": "/api/generate-plan"},
            {"method": "POST", "path": "/api/send-welcome"},
            {"method": "POST", "path": "/api/send-daily-summary"},
            {"method": "POST", "path": "/api/chat"},
        ],
    }
