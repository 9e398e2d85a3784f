"""
RepairClip Worker
FastAPI application receiving Pub/Sub push deliveries for uploaded
diagnostic videos and restitch directives.

This is the main entry point that wires together routes and services.
"""

import asyncio
import os
import shutil
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, HTTPException
from sqlalchemy.exc import SQLAlchemyError

from .config import API_TITLE, API_DESCRIPTION, API_VERSION, GEMINI_API_KEY, PipelineSettings
from .core import (
    REQUIRED_MEDIA_TOOLS,
    get_logger,
    parse_bool_env,
    run_startup_runtime_checks,
    setup_logging,
)
from .routes import pubsub_router
from .services.infrastructure.db import get_database

# Initialize logging
log_level = os.getenv("LOG_LEVEL", "INFO")
log_file = os.getenv("LOG_FILE")
use_json_logs = parse_bool_env(os.getenv("JSON_LOGS"), default=False)

setup_logging(
    level=log_level,
    log_file=Path(log_file) if log_file else None,
    use_json=use_json_logs,
)

logger = get_logger(__name__, component="api")
logger.info("Starting RepairClip Worker", extra={
    "log_level": log_level,
    "json_logs": use_json_logs,
})


async def _run_startup() -> None:
    strict_runtime = parse_bool_env(
        os.getenv("STARTUP_STRICT_RUNTIME_CHECKS"),
        default=os.getenv("ENV", "").lower() == "production",
    )
    runtime_report = run_startup_runtime_checks(
        workspace_root=PipelineSettings.from_env().workspace_root,
        strict_tools=strict_runtime,
    )
    app.state.runtime_report = runtime_report
    logger.info("Startup runtime checks complete", extra={"runtime_report": runtime_report})

    if parse_bool_env(os.getenv("DATABASE_CREATE_TABLES"), default=True):
        try:
            await asyncio.to_thread(get_database().create_all)
        except SQLAlchemyError as exc:
            logger.error("Failed to create database tables", extra={"error": str(exc)}, exc_info=True)


@asynccontextmanager
async def lifespan(_app: FastAPI):
    await _run_startup()
    try:
        yield
    finally:
        get_database().dispose()


# Create FastAPI app
app = FastAPI(
    title=API_TITLE,
    description=API_DESCRIPTION,
    version=API_VERSION,
    lifespan=lifespan,
)

app.include_router(pubsub_router)


@app.get("/health")
async def health_check():
    """
    Health check endpoint for container orchestration.

    Validates the worker's dependencies:
    - External tools (ffmpeg, ffprobe)
    - Gemini API key
    - Database connectivity

    Returns 200 if healthy, 503 if any check fails.
    """
    checks = {
        "status": "healthy",
        "checks": {}
    }
    all_healthy = True

    for tool in REQUIRED_MEDIA_TOOLS:
        location = shutil.which(tool)
        checks["checks"][tool] = {"available": location is not None, "path": location}
        if location is None:
            all_healthy = False
            logger.warning(f"Health check: {tool} not found in PATH")

    checks["checks"]["gemini_api_key"] = {"configured": bool(GEMINI_API_KEY)}
    if not GEMINI_API_KEY:
        all_healthy = False
        logger.warning("Health check: GEMINI_API_KEY not configured")

    try:
        await asyncio.to_thread(get_database().ping)
        checks["checks"]["database"] = {"reachable": True}
    except SQLAlchemyError as e:
        all_healthy = False
        checks["checks"]["database"] = {"reachable": False, "error": str(e)}
        logger.error(f"Health check: database unreachable: {e}")

    runtime_report = getattr(app.state, "runtime_report", None)
    if runtime_report is not None:
        checks["checks"]["runtime_startup"] = runtime_report

    if not all_healthy:
        checks["status"] = "unhealthy"
        raise HTTPException(status_code=503, detail=checks)

    return checks


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=int(os.getenv("PORT", "8080")))
