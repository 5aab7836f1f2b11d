"""
Pokersite Server - FastAPI + WebSocket Table Layer
"""

from pokersite.server.app import app, create_app

__all__ = ["app", "create_app"]
