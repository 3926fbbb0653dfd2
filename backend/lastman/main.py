"""
backend/lastman/main.py

Purpose:
    FastAPI application bootstrap, middleware/router wiring, scheduler
    lifecycle for the deadline and pick-resolution workers.

Dependencies:
    - lastman.database
    - lastman.workers.deadline_worker
    - lastman.workers.pick_resolver
"""

import logging
from contextlib import asynccontextmanager

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from bson.errors import InvalidId
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pymongo.errors import (
    ConnectionFailure,
    DuplicateKeyError,
    OperationFailure,
    ServerSelectionTimeoutError,
)

import lastman.database as _db
from lastman.config import settings
from lastman.database import close_db, connect_db
from lastman.middleware.logging import StructuredLoggingMiddleware, setup_logging

logger = logging.getLogger("lastman")
scheduler = AsyncIOScheduler()


def _build_automated_job_specs() -> list[dict]:
    from lastman.workers.deadline_worker import check_deadlines
    from lastman.workers.pick_resolver import resolve_pending_picks

    return [
        {
            "id": "deadline_check",
            "func": check_deadlines,
            "trigger": "interval",
            "trigger_kwargs": {"seconds": settings.DEADLINE_CHECK_INTERVAL_SECONDS},
        },
        {
            "id": "pick_resolver",
            "func": resolve_pending_picks,
            "trigger": "interval",
            "trigger_kwargs": {"minutes": settings.PICK_RESOLVER_INTERVAL_MINUTES},
        },
    ]


def _register_automated_jobs() -> int:
    added = 0
    for spec in _build_automated_job_specs():
        if scheduler.get_job(spec["id"]):
            continue
        scheduler.add_job(
            spec["func"],
            spec["trigger"],
            id=spec["id"],
            replace_existing=True,
            max_instances=1,
            **spec["trigger_kwargs"],
        )
        added += 1
    return added


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    await connect_db()

    if settings.AUTOMATION_ENABLED:
        added = _register_automated_jobs()
        scheduler.start()
        logger.info("Background scheduler started with %d jobs", added)
    else:
        logger.info("Automated workers disabled via config")

    yield

    if scheduler.running:
        scheduler.shutdown(wait=False)
    await close_db()


app = FastAPI(
    title="Last Man Standing",
    description="Last-man-standing football prediction game",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.BACKEND_CORS_ORIGINS.split(","),
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "X-Admin-Key"],
)

# Structured logging
app.add_middleware(StructuredLoggingMiddleware)

# Routers
from lastman.routers.admin import router as admin_router
from lastman.routers.picks import router as picks_router
from lastman.routers.standings import router as standings_router

app.include_router(picks_router)
app.include_router(standings_router)
app.include_router(admin_router)


# Storage errors that escape the repositories' retries: (status, detail, log level)
_DB_ERRORS = {
    ServerSelectionTimeoutError: (503, "Service temporarily unavailable.", logging.ERROR),
    ConnectionFailure: (503, "Service temporarily unavailable.", logging.ERROR),
    OperationFailure: (500, "An internal error occurred.", logging.ERROR),
    DuplicateKeyError: (409, "Duplicate entry.", logging.WARNING),
}


def _db_error_handler(exc_type: type[Exception]):
    status_code, detail, level = _DB_ERRORS[exc_type]

    async def handler(request: Request, exc: Exception):
        logger.log(
            level, "%s on %s %s: %s", exc_type.__name__, request.method, request.url.path, exc,
        )
        return JSONResponse(status_code=status_code, content={"detail": detail})

    return handler


for _exc_type in _DB_ERRORS:
    app.add_exception_handler(_exc_type, _db_error_handler(_exc_type))


@app.exception_handler(InvalidId)
async def invalid_object_id_handler(request: Request, exc: InvalidId):
    return JSONResponse(status_code=400, content={"detail": "Invalid ID."})


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    """Flatten validation errors to field/message pairs."""
    errors = []
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ())]
        # Drop the "body" / "query" / "path" source prefix
        field = ".".join(loc[1:] or loc) or "unknown"
        errors.append({"field": field, "message": err.get("msg", "Invalid value.")})
    return JSONResponse(status_code=422, content={"detail": "Validation error.", "errors": errors})


@app.exception_handler(ValueError)
async def value_error_handler(request: Request, exc: ValueError):
    logger.warning("ValueError on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=400, content={"detail": "Invalid input."})


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"detail": "An internal error occurred."})


@app.get("/health")
async def health():
    """Database reachability and scheduler state."""
    db_ok = await _db.ping()
    return {
        "status": "healthy" if db_ok else "degraded",
        "db": "connected" if db_ok else "disconnected",
        "scheduler_running": scheduler.running,
    }
