"""
REST + WebSocket API for clubhouse.
Thin wrappers around the service layer; service errors become HTTP status codes here.
"""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from clubhouse import __version__
from clubhouse.config import configure_logging, get_settings
from clubhouse.persistence import get_db_path, init_db
from clubhouse.routes import api_router
from clubhouse.services.errors import (
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    ServiceError,
    ValidationFailedError,
)

logger = logging.getLogger(__name__)


# ---------- Lifespan ----------
@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    configure_logging()
    init_db()
    logger.info("Clubhouse API ready (db=%s)", get_db_path())
    yield


# ---------- FastAPI app ----------
app = FastAPI(
    title="Clubhouse API",
    description="Clubs, teams, tournaments, live matches and admin analytics",
    version=__version__,
    lifespan=lifespan,
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------- Error mapping ----------
_STATUS_FOR: list[tuple[type[ServiceError], int]] = [
    (NotFoundError, 404),
    (PermissionDeniedError, 403),
    (ConflictError, 409),
]


@app.exception_handler(ValidationFailedError)
async def _validation_failed(request: Request, exc: ValidationFailedError) -> JSONResponse:
    return JSONResponse(status_code=400, content={"detail": str(exc), "validation": exc.result.to_dict()})


@app.exception_handler(ServiceError)
async def _service_error(request: Request, exc: ServiceError) -> JSONResponse:
    status = next((code for cls, code in _STATUS_FOR if isinstance(exc, cls)), 400)
    if status == 403:
        logger.warning("%s %s denied: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=status, content={"detail": str(exc)})


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok", "version": __version__}


app.include_router(api_router)


# ---------- Run with: uvicorn clubhouse.api:app --reload ----------
