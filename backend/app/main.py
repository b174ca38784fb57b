from __future__ import annotations

import logging
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .api import api_router
from .core.config import settings
from .core.errors import KioskError, ValidationError, http_status_for
from .dependencies import KioskServiceManager

logging.basicConfig(level=settings.log_level.upper(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Load the config document and open the backend client up front
    try:
        KioskServiceManager.get_client()
        logger.info("Kiosk services initialised")
    except Exception as exc:  # pragma: no cover - startup failure logging
        logger.warning("Failed to initialise kiosk services: %s", exc)
    yield
    await KioskServiceManager.close()


app = FastAPI(title=settings.project_name, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router, prefix=settings.api_prefix)


@app.exception_handler(KioskError)
async def kiosk_error_handler(_request: Request, exc: KioskError) -> JSONResponse:
    content = {"detail": exc.message}
    if isinstance(exc, ValidationError):
        content["field"] = exc.field_id
    return JSONResponse(status_code=http_status_for(exc), content=content)


@app.exception_handler(httpx.HTTPError)
async def backend_unreachable_handler(_request: Request, exc: httpx.HTTPError) -> JSONResponse:
    logger.error("Record backend request failed: %s", exc)
    return JSONResponse(status_code=http_status_for(exc), content={"detail": "Record backend unavailable."})
