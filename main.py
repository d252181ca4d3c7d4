# type: ignore
# pyright: reportGeneralTypeIssues=false
# pyright: reportOptionalMemberAccess=false
"""
Binome Rotation Service
=======================
Pairs eligible members of a section by age bracket and gender, keeps one
active cycle per section, rotates it every three months while avoiding
recent pairs, and reports joint attendance per pair.

Port: 8005
"""
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from binomes.controllers import age_bracket_controller, binome_controller, system_controller
from binomes.core.config import settings
from binomes.core.database import create_schema, engine
from binomes.core.dependencies import get_age_bracket_repo, get_rotation_job
from binomes.core.errors import CycleConflictError
from binomes.core.logging import get_logger
from binomes.middleware import MetricsMiddleware, RequestIDMiddleware
from binomes.services.age_brackets import DEFAULT_BRACKETS

logger = get_logger(__name__)


# ── Lifespan ──────────────────────────────────────────────────────────────
@asynccontextmanager
async def lifespan(application: FastAPI):
    """Prepare the schema, seed the catalog and start the rotation ticker."""
    try:
        if settings.CREATE_SCHEMA_ON_STARTUP:
            create_schema(engine)
        if settings.SEED_DEFAULT_AGE_BRACKETS:
            get_age_bracket_repo().seed_if_empty(DEFAULT_BRACKETS)
        logger.info("Database schema verified")
    except SQLAlchemyError as exc:
        logger.error("Database setup FAILED, requests will fail until it recovers: %s", exc)

    job = get_rotation_job()
    if settings.ROTATION_JOB_ENABLED:
        job.start()
    yield
    await job.stop()
    engine.dispose()
    logger.info("Shutting down, connection pool disposed")


# ── FastAPI App ───────────────────────────────────────────────────────────
app = FastAPI(
    title="Binome Rotation Service",
    description="Pairs section members and rotates the pairs every three months.",
    version=settings.SERVICE_VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(MetricsMiddleware)
app.add_middleware(RequestIDMiddleware)

app.include_router(system_controller.router)
app.include_router(binome_controller.router)
app.include_router(age_bracket_controller.router)


# ── Exception handlers ────────────────────────────────────────────────────
@app.exception_handler(CycleConflictError)
async def cycle_conflict_handler(request: Request, exc: CycleConflictError):
    return JSONResponse(status_code=409, content={"error": "cycle_conflict", "detail": str(exc)})


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError):
    req_id = getattr(request.state, "request_id", None)
    logger.exception("Database error", extra={"request_id": req_id})
    return JSONResponse(
        status_code=503,
        content={
            "error": "database_unavailable",
            "detail": str(exc),
            "retryable": True,
            "request_id": req_id,
        },
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    req_id = getattr(request.state, "request_id", None)
    logger.exception("Unhandled exception", extra={"request_id": req_id})
    return JSONResponse(
        status_code=500,
        content={"error": "internal_server_error", "detail": str(exc), "request_id": req_id},
    )


# ── Entrypoint ────────────────────────────────────────────────────────────
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=settings.SERVICE_PORT, log_level="info")
