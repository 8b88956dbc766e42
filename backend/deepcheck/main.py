"""
FastAPI application entrypoint: reference Analysis / Upload Service.
"""
from __future__ import annotations
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from deepcheck.core.config import get_settings
from deepcheck.core.logging import setup_logging, get_logger
from deepcheck.db.repo import init_db
from deepcheck.api import analyses

settings = get_settings()
setup_logging(settings.DEBUG)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup / shutdown."""
    logger.info("Starting %s v%s", settings.APP_NAME, settings.VERSION)
    await init_db()
    yield
    logger.info("Shutting down.")


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.VERSION,
    description="Asynchronous deepfake-likelihood analysis of uploaded videos.",
    lifespan=lifespan,
)

# CORS: allow localhost frontends
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:3000",
        "http://localhost:5173",
        "http://localhost:8080",
        "http://127.0.0.1:3000",
        "http://127.0.0.1:5173",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(analyses.router, tags=["Analyses"])


@app.get("/health", tags=["System"])
async def health():
    return {"status": "ok", "version": settings.VERSION}
