"""Admin endpoints — exports, reset, health."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse, Response

from santalink.deps import get_service
from santalink.errors import StoreUnavailable
from santalink.service import SantaService

logger = logging.getLogger("santalink")

router = APIRouter(prefix="/admin", tags=["admin"])


def _csv(body: str, filename: str) -> Response:
    return Response(
        content=body,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/links.csv")
def links_csv(service: SantaService = Depends(get_service)):
    return _csv(service.links_csv(), "links.csv")


@router.get("/export.csv")
def export_csv(service: SantaService = Depends(get_service)):
    return _csv(service.assignments_csv(), "assignments.csv")


@router.post("/reset")
def reset(service: SantaService = Depends(get_service)):
    service.reset()
    return {"ok": True}


@router.get("/health")
def health(service: SantaService = Depends(get_service)):
    try:
        return service.health()
    except StoreUnavailable as exc:
        logger.error("Health check failed: %s", exc)
        return JSONResponse(
            status_code=503,
            content={"ok": False, "mode": service.store.mode, "error": str(exc)},
        )
