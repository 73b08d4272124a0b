"""SQLite storage for node definitions."""

import sqlite3
from dataclasses import dataclass

from studio.models.node import NodeDefinition
from studio_server import config


@dataclass
class NodeRow:
    node: NodeDefinition
    owner_id: str


def _connect() -> sqlite3.Connection:
    config.STUDIO_DB_PATH.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(config.STUDIO_DB_PATH)
    conn.row_factory = sqlite3.Row
    return conn


def init_db() -> None:
    with _connect() as conn:
        conn.execute(
            """
            create table if not exists nodes (
                node_id text primary key,
                owner_id text not null,
                name text not null,
                node_json text not null,
                updated_at text
            )
            """
        )
        conn.execute("create index if not exists idx_nodes_owner_id on nodes(owner_id)")
        conn.commit()


def upsert_node(node: NodeDefinition, owner_id: str) -> None:
    """insert or update a node definition."""
    with _connect() as conn:
        conn.execute(
            """
            insert into nodes (node_id, owner_id, name, node_json, updated_at)
            values (?, ?, ?, ?, ?)
            on conflict(node_id) do update set
                name = excluded.name,
                node_json = excluded.node_json,
                updated_at = excluded.updated_at
            """,
            (
                node.node_id,
                owner_id,
                node.name,
                node.model_dump_json(),
                node.updated_at,
            ),
        )
        conn.commit()


def get_node(node_id: str) -> NodeRow | None:
    with _connect() as conn:
        row = conn.execute(
            "select node_json, owner_id from nodes where node_id = ?",
            (node_id,),
        ).fetchone()
    if not row:
        return None
    return NodeRow(
        node=NodeDefinition.model_validate_json(row["node_json"]),
        owner_id=row["owner_id"],
    )


def list_nodes(owner_ids: list[str]) -> list[NodeRow]:
    """Nodes belonging to any of ``owner_ids``, ordered by name."""
    if not owner_ids:
        return []
    placeholders = ", ".join("?" for _ in owner_ids)
    with _connect() as conn:
        rows = conn.execute(
            f"select node_json, owner_id from nodes where owner_id in ({placeholders}) "
            "order by lower(name), node_id",
            owner_ids,
        ).fetchall()
    return [
        NodeRow(
            node=NodeDefinition.model_validate_json(row["node_json"]),
            owner_id=row["owner_id"],
        )
        for row in rows
    ]
