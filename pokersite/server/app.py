"""
FastAPI Application Entry Point for Pokersite.

This module creates and configures the FastAPI application with:
- HTTP routes for table and seat management
- WebSocket endpoint for real-time play
- CORS middleware for development
"""

import os
import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from pokersite import __version__
from pokersite.server.routes import router
from pokersite.server.websocket import websocket_endpoint

# Configure logging
logging.basicConfig(
    level=os.environ.get("POKERSITE_LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance
    """
    app = FastAPI(
        title="Pokersite",
        description="Texas Hold'em table server with WebSocket API",
        version=__version__,
    )

    # CORS middleware for development
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Configure appropriately for production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(router)
    app.websocket("/ws/{table_id}")(websocket_endpoint)

    @app.get("/health")
    async def health():
        return {"status": "ok", "version": __version__}

    return app


# Create the application instance
app = create_app()
