"""FastAPI dependencies for Santalink routes."""

from __future__ import annotations

from fastapi import Request

from santalink.service import SantaService


def get_service(request: Request) -> SantaService:
    """Get the draw service from app state."""
    return request.app.state.service
