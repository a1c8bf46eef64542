"""Participant endpoints — reveal an assignment, check who a link belongs to.

The token in the claim link is the only credential.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from santalink.deps import get_service
from santalink.service import SantaService

router = APIRouter(prefix="/api", tags=["claim"])


class AssignRequest(BaseModel):
    token: str = Field(min_length=1)


@router.post("/assign")
def assign(body: AssignRequest, service: SantaService = Depends(get_service)):
    assignee = service.reveal(body.token.strip())
    return {"assignee": assignee.model_dump(mode="json")}


@router.get("/whoami/{token}")
def whoami(token: str, service: SantaService = Depends(get_service)):
    me = service.whoami(token.strip())
    return {"me": me.model_dump(mode="json")}
