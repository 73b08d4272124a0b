"""API routes for persistent namespaced state.

Workflows read these values through ``{{globalState.<namespace>.<key>}}``.
Namespaces are private to the user that created them.
"""

import sqlite3
from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from pydantic import ValidationError

from studio.models.base import StudioModel
from studio.models.namespace import Namespace, NamespaceCreate, StateValue
from studio_server.auth import CurrentUser, get_current_user
from studio_server.errors import validation_message
from studio_server.state_db import (
    create_namespace as db_create_namespace,
    delete_namespace as db_delete_namespace,
    delete_value as db_delete_value,
    get_namespace as db_get_namespace,
    get_value as db_get_value,
    list_namespaces as db_list_namespaces,
    list_values as db_list_values,
    set_value as db_set_value,
)

router = APIRouter()


class UpdateValueRequest(StudioModel):
    value: Any
    description: str | None = None
    ttl_seconds: int | None = None


def _check_namespace_name(namespace: str) -> None:
    """Values may create their namespace, so its name is checked first."""
    try:
        NamespaceCreate(namespace=namespace)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=validation_message(e)) from e


def _require_namespace(user: CurrentUser, namespace: str) -> Namespace:
    ns = db_get_namespace(user.user_id, namespace)
    if ns is None:
        raise HTTPException(status_code=404, detail="Namespace not found")
    return ns


@router.get("/state/namespaces")
def list_namespaces(user: CurrentUser = Depends(get_current_user)) -> dict:
    namespaces = db_list_namespaces(user.user_id)
    return {"namespaces": [ns.to_wire() for ns in namespaces], "count": len(namespaces)}


@router.post("/state/namespaces", status_code=201)
def create_namespace(
    request: NamespaceCreate,
    user: CurrentUser = Depends(get_current_user),
) -> Namespace:
    try:
        return db_create_namespace(user.user_id, request.namespace, request.description)
    except sqlite3.IntegrityError as e:
        raise HTTPException(status_code=409, detail="Namespace already exists") from e


@router.get("/state/namespaces/{namespace}")
def get_namespace(namespace: str, user: CurrentUser = Depends(get_current_user)) -> Namespace:
    return _require_namespace(user, namespace)


@router.delete("/state/namespaces/{namespace}")
def delete_namespace(namespace: str, user: CurrentUser = Depends(get_current_user)) -> dict:
    _require_namespace(user, namespace)
    db_delete_namespace(user.user_id, namespace)
    return {"success": True, "namespace": namespace}


@router.get("/state/namespaces/{namespace}/values")
def list_values(namespace: str, user: CurrentUser = Depends(get_current_user)) -> dict:
    """all live values as a plain object."""
    return {"values": db_list_values(user.user_id, namespace)}


@router.post("/state/namespaces/{namespace}/values")
def set_value(
    namespace: str,
    entry: StateValue,
    user: CurrentUser = Depends(get_current_user),
) -> dict:
    _check_namespace_name(namespace)
    db_set_value(user.user_id, namespace, entry)
    return {"success": True, "namespace": namespace, "key": entry.key}


@router.get("/state/namespaces/{namespace}/values/{key}")
def get_value(namespace: str, key: str, user: CurrentUser = Depends(get_current_user)) -> dict:
    entry = db_get_value(user.user_id, namespace, key)
    if entry is None:
        raise HTTPException(status_code=404, detail="Key not found")
    return {"key": entry.key, "value": entry.value}


@router.put("/state/namespaces/{namespace}/values/{key}")
def update_value(
    namespace: str,
    key: str,
    request: UpdateValueRequest,
    user: CurrentUser = Depends(get_current_user),
) -> dict:
    _check_namespace_name(namespace)
    try:
        entry = StateValue(
            key=key,
            value=request.value,
            description=request.description,
            ttl_seconds=request.ttl_seconds,
        )
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=validation_message(e)) from e
    db_set_value(user.user_id, namespace, entry)
    return {"success": True, "namespace": namespace, "key": key}


@router.delete("/state/namespaces/{namespace}/values/{key}")
def delete_value(namespace: str, key: str, user: CurrentUser = Depends(get_current_user)) -> dict:
    if not db_delete_value(user.user_id, namespace, key):
        raise HTTPException(status_code=404, detail="Key not found")
    return {"success": True}
