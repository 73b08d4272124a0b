"""Caller identity for API routes.

The studio sits behind a gateway that authenticates users and forwards
their id (and account tier) as headers.
"""

from dataclasses import dataclass

from fastapi import Header, HTTPException

from studio.models.graph import GraphTier

SYSTEM_OWNER = "system"


@dataclass
class CurrentUser:
    user_id: str
    tier: int = GraphTier.free


def get_current_user(
    x_user_id: str | None = Header(default=None),
    x_user_tier: int | None = Header(default=None),
) -> CurrentUser:
    """FastAPI dependency; 401 when no user id was forwarded."""
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Unauthorized")
    tier = GraphTier.free if x_user_tier is None else x_user_tier
    return CurrentUser(user_id=x_user_id, tier=tier)
