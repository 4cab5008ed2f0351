"""
NoTouch - FastAPI Application Entry Point
Face-touch habit monitoring service
"""

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.core.config import settings
from app.core.database import init_db
from app.utils.logger import setup_logging

# Setup logging
setup_logging("DEBUG" if settings.DEBUG else "INFO")
logger = logging.getLogger("notouch.main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifecycle manager"""
    logger.info("=" * 60)
    logger.info("  NoTouch Habit Monitor - Starting")
    logger.info("=" * 60)

    init_db()
    logger.info("Database initialized")

    logger.info(f"Environment: {settings.NOTOUCH_ENV}")
    logger.info(f"CORS Origins: {settings.cors_origins_list}")
    logger.info(f"Enabled zones: {[z.value for z in settings.enabled_zones]}")
    logger.info("NoTouch is ready!")
    logger.info("=" * 60)

    yield

    logger.info("NoTouch shutting down...")


# Create FastAPI app
app = FastAPI(
    title="NoTouch - Face-Touch Habit Monitor",
    description="Detects hands near the face and tracks the touching habit over time",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
from app.routers import proximity, statistics
from app.services.websocket_manager import ws_manager

app.include_router(statistics.router)
app.include_router(proximity.router)


# Health check endpoint
@app.get("/health")
def health_check():
    return {
        "status": "healthy",
        "service": "NoTouch",
        "version": "1.0.0",
        "connections": ws_manager.total_connections,
    }


@app.get("/api/info")
def api_info():
    return {
        "name": "NoTouch API",
        "version": "1.0.0",
        "description": "Face-touch habit monitoring",
        "endpoints": {
            "statistics": "/api/statistics",
            "websocket_proximity": "/ws/proximity",
            "websocket_alerts": "/ws/alerts",
            "health": "/health",
        }
    }
