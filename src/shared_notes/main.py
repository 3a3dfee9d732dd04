"""
Shared Notes Backend Application

FastAPI application entrypoint with async lifespan management.
Opens the blob store at startup (failing fast if Redis is unreachable)
and closes it on shutdown.

Start locally:
    uvicorn shared_notes.main:app --host 0.0.0.0 --port 8000 --reload
"""

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from shared_notes.api.v1.notes import router as notes_router
from shared_notes.core.config import settings
from shared_notes.core.logging import setup_logging
from shared_notes.storage.blob_store import create_blob_store

# Initialize logging before any log statements
setup_logging()
logger = logging.getLogger(__name__)

NO_STORE = {"Cache-Control": "no-store"}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Startup:
        - Builds the blob store selected by STORE_BACKEND
        - Verifies store connectivity (required, blocks startup on failure)

    Shutdown:
        - Closes store connections
    """
    logger.info("Starting %s...", settings.PROJECT_NAME)
    logger.info("Log Level: %s", settings.LOG_LEVEL)

    store = create_blob_store(settings)
    if not await store.ping():
        logger.critical("Could not reach the blob store. Shutting down.")
        await store.close()
        raise RuntimeError("Blob store connection failed")
    app.state.store = store

    yield  # Application runs here

    await store.close()
    logger.info("Shutting down %s...", settings.PROJECT_NAME)


app = FastAPI(title=settings.PROJECT_NAME, lifespan=lifespan)

app.include_router(notes_router, prefix=settings.API_PREFIX, tags=["Notes"])


# ---------------------------------------------------------------------------
# Response shaping
# ---------------------------------------------------------------------------


@app.middleware("http")
async def disable_caching(request: Request, call_next):
    """Every response carries ``Cache-Control: no-store``."""
    response = await call_next(request)
    response.headers["Cache-Control"] = "no-store"
    return response


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Render HTTP errors as ``{"error": message}``."""
    if exc.status_code == status.HTTP_405_METHOD_NOT_ALLOWED:
        message = "Method not allowed."
    else:
        message = str(exc.detail)
    headers = {**NO_STORE, **(exc.headers or {})}
    return JSONResponse({"error": message}, status_code=exc.status_code, headers=headers)


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Generic 500; the traceback goes to the log, never to the caller."""
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse({"error": "Internal server error."}, status_code=500, headers=NO_STORE)


@app.get("/health")
async def health_check():
    """
    Health check endpoint for load balancers and orchestrators.

    Probes the blob store live; reports ``degraded`` if it is unreachable.
    """
    store_ok = await app.state.store.ping()
    return {
        "status": "ok" if store_ok else "degraded",
        "service": "shared-notes",
        "environment": os.getenv("ENVIRONMENT", "unknown"),
        "store": settings.STORE_BACKEND.lower(),
    }
