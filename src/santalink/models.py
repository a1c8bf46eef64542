"""Participant and assignment records."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class Participant(BaseModel):
    """One member of the group. The token is the claim-link capability."""

    model_config = ConfigDict(frozen=True)

    name: str
    birthday: str = ""
    anniversary: str = ""
    token: str


class Assignment(BaseModel):
    """Giver → receiver pairing, keyed by the giver's token."""

    model_config = ConfigDict(frozen=True)

    giver_token: str
    giver_name: str
    receiver_token: str
    receiver_name: str
