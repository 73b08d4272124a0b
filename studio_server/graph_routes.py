"""API routes for graph documents."""

import logging
import re
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import Field

from studio.models.base import StudioModel
from studio.models.graph import (
    ForkResult,
    Graph,
    GraphEdge,
    GraphNodeInstance,
    GraphTier,
    GraphType,
    is_accessible_to,
)
from studio.utils.identifiers import generate_instance_id, slugify, utc_timestamp
from studio.validation import editability_reason
from studio_server.auth import SYSTEM_OWNER, CurrentUser, get_current_user
from studio_server.graph_db import (
    GraphRow,
    delete_graph as db_delete_graph,
    get_graph as db_get_graph,
    list_graphs as db_list_graphs,
    upsert_graph as db_upsert_graph,
)

logger = logging.getLogger(__name__)

router = APIRouter()

GRAPH_ID_PATTERN = re.compile(r"^[a-z0-9-]+$")
INVALID_GRAPH_ID = "newGraphId must contain only lowercase letters, numbers, and hyphens"


class CreateGraphRequest(StudioModel):
    """request body for creating a graph."""

    graph_id: str | None = None
    name: str = ""
    description: str | None = None
    graph_type: GraphType = GraphType.workflow
    tier: int | None = Field(default=None, ge=GraphTier.admin, le=GraphTier.free)
    tags: list[str] = Field(default_factory=list)
    nodes: list[GraphNodeInstance] = Field(default_factory=list)
    edges: list[GraphEdge] = Field(default_factory=list)
    config: dict[str, Any] | None = None


class UpdateGraphRequest(StudioModel):
    """request body for PATCH; only the fields sent are changed."""

    name: str | None = None
    description: str | None = None
    graph_type: GraphType | None = None
    tier: int | None = Field(default=None, ge=GraphTier.admin, le=GraphTier.free)
    tags: list[str] | None = None
    nodes: list[GraphNodeInstance] | None = None
    edges: list[GraphEdge] | None = None
    config: dict[str, Any] | None = None


class ForkGraphRequest(StudioModel):
    new_graph_id: str | None = None
    name: str | None = None


def _for_user(row: GraphRow, user: CurrentUser) -> Graph:
    is_system = row.graph.is_system or row.owner_id == SYSTEM_OWNER
    return row.graph.model_copy(
        update={
            "is_system": is_system,
            "is_owned": row.owner_id == user.user_id and not is_system,
        }
    )


def _load(graph_id: str) -> GraphRow:
    row = db_get_graph(graph_id)
    if not row:
        raise HTTPException(status_code=404, detail="Graph not found")
    return row


def _check_readable(row: GraphRow, user: CurrentUser) -> None:
    graph = row.graph
    shared = row.owner_id in (SYSTEM_OWNER, user.user_id) or graph.graph_type == GraphType.agent
    if not shared:
        raise HTTPException(
            status_code=403,
            detail="Access denied - you can only view your own graphs or system graphs",
        )
    if not is_accessible_to(graph.tier, user.tier):
        raise HTTPException(
            status_code=403,
            detail=f"This graph requires tier {graph.tier} or higher (you have tier {user.tier})",
        )


def _check_tier(tier: int, user: CurrentUser) -> None:
    if not is_accessible_to(tier, user.tier):
        raise HTTPException(
            status_code=403,
            detail=f"Tier {tier} requires account level {tier} or higher (you have tier {user.tier})",
        )


@router.get("/graphs")
def list_graphs(
    graph_type: GraphType | None = Query(default=None, alias="graphType"),
    user: CurrentUser = Depends(get_current_user),
) -> dict:
    """list system graphs the caller's tier allows plus the caller's own graphs."""
    rows = db_list_graphs(SYSTEM_OWNER, min_tier=user.tier) + db_list_graphs(user.user_id)
    graphs = [_for_user(row, user) for row in rows]
    if graph_type is not None:
        graphs = [g for g in graphs if g.graph_type == graph_type]
    return {"graphs": [g.to_info().to_wire() for g in graphs]}


@router.post("/graphs", status_code=201)
def create_graph(
    request: CreateGraphRequest,
    user: CurrentUser = Depends(get_current_user),
) -> Graph:
    """create a graph owned by the caller."""
    if not request.name.strip():
        raise HTTPException(status_code=400, detail="Graph name is required")
    if not request.nodes:
        raise HTTPException(status_code=400, detail="nodes must be a non-empty array")

    tier = user.tier if request.tier is None else request.tier
    _check_tier(tier, user)

    graph_id = request.graph_id or f"{slugify(request.name) or 'graph'}-{generate_instance_id()[:6]}"
    if not GRAPH_ID_PATTERN.match(graph_id):
        raise HTTPException(
            status_code=400,
            detail="graphId must contain only lowercase letters, numbers, and hyphens",
        )
    if db_get_graph(graph_id):
        raise HTTPException(status_code=409, detail=f'A graph with ID "{graph_id}" already exists')

    now = utc_timestamp()
    graph = Graph(
        graph_id=graph_id,
        name=request.name.strip(),
        description=request.description,
        graph_type=request.graph_type,
        tier=tier,
        tags=request.tags,
        nodes=request.nodes,
        edges=request.edges,
        config=request.config,
        created_at=now,
        updated_at=now,
    )
    db_upsert_graph(graph, owner_id=user.user_id)
    return graph


@router.get("/graphs/{graph_id}")
def get_graph(graph_id: str, user: CurrentUser = Depends(get_current_user)) -> Graph:
    """get a full graph document."""
    row = _load(graph_id)
    _check_readable(row, user)
    return _for_user(row, user)


@router.patch("/graphs/{graph_id}")
def update_graph(
    graph_id: str,
    request: UpdateGraphRequest,
    user: CurrentUser = Depends(get_current_user),
) -> Graph:
    """update the fields sent; system, immutable and foreign graphs must be forked first."""
    row = _load(graph_id)
    graph = _for_user(row, user)
    reason = editability_reason(graph)
    if reason:
        raise HTTPException(status_code=403, detail=reason)

    if request.tier is not None:
        _check_tier(request.tier, user)
    if request.nodes is not None and not request.nodes:
        raise HTTPException(status_code=400, detail="nodes must be a non-empty array")

    updates = {
        name: getattr(request, name)
        for name in request.model_fields_set
        if getattr(request, name) is not None
    }
    updates["updated_at"] = utc_timestamp()
    graph = graph.model_copy(update=updates)
    db_upsert_graph(graph, owner_id=row.owner_id)
    return graph


@router.delete("/graphs/{graph_id}")
def delete_graph(graph_id: str, user: CurrentUser = Depends(get_current_user)) -> dict:
    """delete one of the caller's graphs."""
    row = _load(graph_id)
    graph = _for_user(row, user)
    if graph.is_system:
        raise HTTPException(status_code=403, detail="Cannot delete system graphs")
    if not graph.is_owned:
        raise HTTPException(status_code=403, detail="You can only delete your own graphs")
    db_delete_graph(graph_id)
    return {"deleted": graph_id}


@router.post("/graphs/{graph_id}/fork", status_code=201)
def fork_graph(
    graph_id: str,
    request: ForkGraphRequest | None = None,
    user: CurrentUser = Depends(get_current_user),
) -> ForkResult:
    """copy a graph into the caller's account.

    The new id defaults to ``<graphId>-<last 6 chars of the user id>``.
    """
    request = request or ForkGraphRequest()
    row = _load(graph_id)
    _check_readable(row, user)

    fork_id = request.new_graph_id or f"{graph_id}-{user.user_id[-6:]}"
    if not GRAPH_ID_PATTERN.match(fork_id):
        raise HTTPException(status_code=400, detail=INVALID_GRAPH_ID)
    if db_get_graph(fork_id):
        raise HTTPException(status_code=409, detail=f'A graph with ID "{fork_id}" already exists')

    now = utc_timestamp()
    fork = row.graph.fork(fork_id, name=request.name, now=now)
    db_upsert_graph(fork, owner_id=user.user_id)

    parent = row.graph.model_copy(update={"fork_count": row.graph.fork_count + 1})
    db_upsert_graph(parent, owner_id=row.owner_id)
    logger.info("forked graph %s into %s for %s", graph_id, fork_id, user.user_id)

    return ForkResult(
        graph_id=fork.graph_id,
        parent_graph_id=graph_id,
        name=fork.name,
        created_at=fork.created_at,
    )
