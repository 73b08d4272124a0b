"""API routes for tools and neurons."""

import logging

from fastapi import APIRouter, Depends, HTTPException

from studio.models.tool import CUSTOM_SOURCE, GLOBAL_SOURCE, ToolListing, ToolSources
from studio.tools import group_by_server
from studio_server.auth import CurrentUser, get_current_user
from studio_server.registry import Registry, get_registry

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/tools")
def list_tools(
    source: str | None = None,
    user: CurrentUser = Depends(get_current_user),
    registry: Registry = Depends(get_registry),
) -> ToolListing:
    """list tools, optionally filtered by source ("global" or "custom")."""
    try:
        tools = registry.list_tools(user.user_id)
    except (OSError, ValueError) as e:
        logger.exception("failed to read tool registry")
        raise HTTPException(
            status_code=500,
            detail={"error": "Failed to fetch tools", "message": str(e)},
        ) from e

    sources = ToolSources(
        global_=sorted({t.server for t in tools if t.source == GLOBAL_SOURCE}),
        custom=sorted({t.server for t in tools if t.source == CUSTOM_SOURCE}),
    )
    if source in (GLOBAL_SOURCE, CUSTOM_SOURCE):
        tools = [t for t in tools if t.source == source]

    return ToolListing(tools=tools, tools_by_server=group_by_server(tools), sources=sources)


@router.get("/neurons")
def list_neurons(
    user: CurrentUser = Depends(get_current_user),
    registry: Registry = Depends(get_registry),
) -> dict:
    """list the LLM identities neuron steps can use."""
    try:
        neurons = registry.list_neurons()
    except (OSError, ValueError) as e:
        logger.exception("failed to read neuron registry")
        raise HTTPException(
            status_code=500,
            detail={"error": "Failed to fetch neurons", "message": str(e)},
        ) from e
    return {"neurons": [n.to_wire() for n in neurons]}
