"""FastAPI Application Entry Point.

Configures the app, lifespan, CORS, and includes the route modules.
"""

from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from devicegen.logging_config import get_api_logger

from .pipeline import close_pipeline, init_pipeline

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open and close the configuration source."""
    get_api_logger()
    source = await init_pipeline()
    if not await source.check_reachable():
        logger.warning(
            "Device configuration source is not reachable; generation endpoints "
            "will answer 502 until it is"
        )
    yield
    await close_pipeline()


app = FastAPI(title="Device Page Generator API", version="1.0.0", lifespan=lifespan)

# CORS configuration, comma-separated CORS_ORIGINS env var
_default_origins = "http://localhost:3000,http://127.0.0.1:3000,http://localhost:5173"
CORS_ORIGINS = [
    o.strip() for o in os.getenv("CORS_ORIGINS", _default_origins).split(",") if o.strip()
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

from .routes.generation import router as generation_router  # noqa: E402

app.include_router(generation_router)


@app.get("/health")
async def health_check():
    """Health check endpoint for container orchestration."""
    return {"status": "ok"}
