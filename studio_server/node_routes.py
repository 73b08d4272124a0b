"""API routes for node definitions."""

import re

from fastapi import APIRouter, Depends, HTTPException
from pydantic import Field, ValidationError

from studio.errors import NodeValidationError
from studio.models.base import StudioModel
from studio.models.graph import GraphTier
from studio.models.node import NodeDefinition, NodeList, NodeMetadata, NodeSummary
from studio.models.parameter import ParameterDefinition
from studio.models.step import Step
from studio.utils.identifiers import utc_timestamp
from studio.validation import editability_reason, validate_node
from studio_server.auth import SYSTEM_OWNER, CurrentUser, get_current_user
from studio_server.errors import validation_message
from studio_server.node_db import (
    NodeRow,
    get_node as db_get_node,
    list_nodes as db_list_nodes,
    upsert_node as db_upsert_node,
)

router = APIRouter()

NODE_ID_PATTERN = re.compile(r"^[a-z0-9-]+$")


class NodeBody(StudioModel):
    """Editable fields of a node (the PUT body)."""

    name: str = ""
    description: str = ""
    tags: list[str] = Field(default_factory=list)
    steps: list[Step] = Field(default_factory=list)
    parameters: dict[str, ParameterDefinition] = Field(default_factory=dict)
    metadata: NodeMetadata = Field(default_factory=NodeMetadata)


class CreateNodeRequest(NodeBody):
    node_id: str = ""


def _for_user(row: NodeRow, user: CurrentUser) -> NodeDefinition:
    return row.node.model_copy(update={"is_owned": row.owner_id == user.user_id})


def _matches(node: NodeDefinition, query: str | None, tags: list[str]) -> bool:
    if tags and not all(tag in node.tags for tag in tags):
        return False
    if not query:
        return True
    q = query.lower()
    return (
        q in node.name.lower()
        or q in node.description.lower()
        or any(q in tag for tag in node.tags)
    )


def _build_node(node_id: str, body: NodeBody, **fields) -> NodeDefinition:
    try:
        validate_node(body.name, body.steps)
    except NodeValidationError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    try:
        return NodeDefinition(
            node_id=node_id,
            name=body.name.strip(),
            description=body.description.strip(),
            tags=body.tags,
            metadata=body.metadata,
            steps=body.steps,
            parameters=body.parameters,
            **fields,
        )
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=validation_message(e)) from e


@router.get("/nodes")
def list_nodes(
    q: str | None = None,
    tags: str | None = None,
    owner: str | None = None,
    limit: int = 50,
    offset: int = 0,
    user: CurrentUser = Depends(get_current_user),
) -> NodeList:
    """list system nodes and the caller's own nodes.

    ``owner`` narrows to "me" or "system"; ``tags`` is comma-separated and
    every tag must be present.
    """
    if owner == "me":
        owners = [user.user_id]
    elif owner == "system":
        owners = [SYSTEM_OWNER]
    else:
        owners = [SYSTEM_OWNER, user.user_id]

    rows = db_list_nodes(owners)
    available_tags = sorted({tag for row in rows for tag in row.node.tags})
    wanted = [t.strip().lower() for t in tags.split(",") if t.strip()] if tags else []
    matches = [row for row in rows if _matches(row.node, q, wanted)]

    summaries = [
        NodeSummary.from_definition(
            _for_user(row, user),
            tier=GraphTier.free if row.owner_id == SYSTEM_OWNER else user.tier,
        )
        for row in matches[offset:offset + limit]
    ]
    return NodeList(
        nodes=summaries,
        total=len(matches),
        offset=offset,
        limit=limit,
        available_tags=available_tags,
    )


@router.post("/nodes", status_code=201)
def create_node(
    request: CreateNodeRequest,
    user: CurrentUser = Depends(get_current_user),
) -> NodeDefinition:
    """create a node owned by the caller."""
    node_id = request.node_id.strip()
    now = utc_timestamp()
    node = _build_node(node_id, request, created_at=now, updated_at=now)

    if not NODE_ID_PATTERN.match(node_id):
        raise HTTPException(
            status_code=400,
            detail="nodeId must contain only lowercase letters, numbers, and hyphens",
        )
    if db_get_node(node_id):
        raise HTTPException(status_code=409, detail="A node with this ID already exists")

    db_upsert_node(node, owner_id=user.user_id)
    return node


@router.get("/nodes/{node_id}")
def get_node(node_id: str, user: CurrentUser = Depends(get_current_user)) -> NodeDefinition:
    """get a full node definition."""
    row = db_get_node(node_id)
    if not row:
        raise HTTPException(status_code=404, detail="Node not found")
    return _for_user(row, user)


@router.put("/nodes/{node_id}")
def update_node(
    node_id: str,
    request: NodeBody,
    user: CurrentUser = Depends(get_current_user),
) -> NodeDefinition:
    """replace a node's editable fields.

    System, immutable and other users' nodes are rejected; fork them instead.
    """
    row = db_get_node(node_id)
    if not row:
        raise HTTPException(status_code=404, detail="Node not found")

    current = _for_user(row, user)
    reason = editability_reason(current)
    if reason:
        raise HTTPException(status_code=403, detail=reason)

    node = _build_node(
        node_id,
        request,
        category=current.category,
        parent_node_id=current.parent_node_id,
        owner_name=current.owner_name,
        created_at=current.created_at,
        updated_at=utc_timestamp(),
    )
    db_upsert_node(node, owner_id=row.owner_id)
    return node
