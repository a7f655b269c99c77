"""FastAPI entry point for the rigging solver backend."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from rigging.logging_utils import get_logger
from rigging.models.settings import settings
from rigging.routers import rigging, scenarios

get_logger("rigging", settings.LOG_LEVEL)

app = FastAPI(title="Rigging Solver API", version="1.0.0")

# CORS middleware - must be added before routes
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ALLOW_ORIGINS or ["http://localhost:5173"],
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
    max_age=3600,  # Cache preflight for 1 hour
)

app.include_router(rigging.router)    # Validate / chains / solve
app.include_router(scenarios.router)  # Canned scenarios


@app.get("/health", tags=["health"])
async def health() -> dict[str, str]:
    """Basic health-check endpoint."""
    return {"status": "ok", "env": settings.APP_ENV}
