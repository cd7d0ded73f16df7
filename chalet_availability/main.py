from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
import logging

from . import __version__
from .config import settings
from .routers import calendar, health
from .utils.dependencies import get_feed_loader
from .utils.logging_config import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events"""
    setup_logging(level=settings.log_level, json_format=settings.log_json)

    logger.info(f"Starting chalet-availability ({settings.environment})")
    logger.info(f"CORS Origins: {settings.cors_origins}")

    if settings.sync_on_startup:
        loader = get_feed_loader()
        if not loader.sync():
            # The calendar stays up with empty rows until the next sync
            logger.warning(f"Initial feed sync failed: {loader.error}")
    else:
        logger.info("Initial feed sync disabled")

    yield

    logger.info("Shutting down chalet-availability")


app = FastAPI(
    title="Chalet Availability API",
    description="Availability calendar for rental properties",
    version=__version__,
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(calendar.router)


@app.get("/")
async def root():
    return {
        "name": "Chalet Availability API",
        "version": __version__,
        "docs": "/docs"
    }
