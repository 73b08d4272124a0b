"""SQLite storage for graph documents."""

import sqlite3
from dataclasses import dataclass

from studio.models.graph import Graph
from studio_server import config


@dataclass
class GraphRow:
    graph: Graph
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
            create table if not exists graphs (
                graph_id text primary key,
                owner_id text not null,
                name text not null,
                tier integer not null,
                graph_json text not null,
                created_at text,
                updated_at text
            )
            """
        )
        conn.execute("create index if not exists idx_graphs_owner_id on graphs(owner_id)")
        conn.commit()


def upsert_graph(graph: Graph, owner_id: str) -> None:
    """insert or update a graph document."""
    with _connect() as conn:
        conn.execute(
            """
            insert into graphs (graph_id, owner_id, name, tier, graph_json, created_at, updated_at)
            values (?, ?, ?, ?, ?, ?, ?)
            on conflict(graph_id) do update set
                name = excluded.name,
                tier = excluded.tier,
                graph_json = excluded.graph_json,
                updated_at = excluded.updated_at
            """,
            (
                graph.graph_id,
                owner_id,
                graph.name,
                graph.tier,
                graph.model_dump_json(),
                graph.created_at,
                graph.updated_at,
            ),
        )
        conn.commit()


def get_graph(graph_id: str) -> GraphRow | None:
    with _connect() as conn:
        row = conn.execute(
            "select graph_json, owner_id from graphs where graph_id = ?",
            (graph_id,),
        ).fetchone()
    if not row:
        return None
    return GraphRow(graph=Graph.model_validate_json(row["graph_json"]), owner_id=row["owner_id"])


def list_graphs(owner_id: str, min_tier: int | None = None) -> list[GraphRow]:
    """Graphs of one owner, optionally only those at ``min_tier`` or above.

    Ordered by tier then name.
    """
    query = "select graph_json, owner_id from graphs where owner_id = ?"
    params: list = [owner_id]
    if min_tier is not None:
        query += " and tier >= ?"
        params.append(min_tier)
    query += " order by tier, lower(name)"
    with _connect() as conn:
        rows = conn.execute(query, params).fetchall()
    return [
        GraphRow(graph=Graph.model_validate_json(row["graph_json"]), owner_id=row["owner_id"])
        for row in rows
    ]


def delete_graph(graph_id: str) -> None:
    with _connect() as conn:
        conn.execute("delete from graphs where graph_id = ?", (graph_id,))
        conn.commit()
