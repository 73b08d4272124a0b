"""SQLite storage for namespaced persistent state."""

import json
import sqlite3
from datetime import datetime, timedelta, timezone
from typing import Any

from studio.models.namespace import Namespace, StateValue
from studio.utils.identifiers import utc_timestamp
from studio_server import config


def _connect() -> sqlite3.Connection:
    config.STUDIO_DB_PATH.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(config.STUDIO_DB_PATH)
    conn.row_factory = sqlite3.Row
    return conn


def init_db() -> None:
    with _connect() as conn:
        conn.execute(
            """
            create table if not exists namespaces (
                owner_id text not null,
                namespace text not null,
                description text,
                created_at text not null,
                updated_at text not null,
                primary key (owner_id, namespace)
            )
            """
        )
        conn.execute(
            """
            create table if not exists state_values (
                owner_id text not null,
                namespace text not null,
                key text not null,
                value_json text not null,
                description text,
                expires_at text,
                updated_at text not null,
                primary key (owner_id, namespace, key)
            )
            """
        )
        conn.commit()


def _expires_at(ttl_seconds: int | None) -> str | None:
    if not ttl_seconds:
        return None
    return (datetime.now(timezone.utc) + timedelta(seconds=ttl_seconds)).isoformat()


def _live_values_clause() -> str:
    return "(expires_at is null or expires_at > ?)"


def _row_to_namespace(conn: sqlite3.Connection, row: sqlite3.Row) -> Namespace:
    count = conn.execute(
        f"""
        select count(*) from state_values
        where owner_id = ? and namespace = ? and {_live_values_clause()}
        """,
        (row["owner_id"], row["namespace"], utc_timestamp()),
    ).fetchone()[0]
    return Namespace(
        namespace=row["namespace"],
        description=row["description"],
        key_count=count,
        last_updated=row["updated_at"],
        created_at=row["created_at"],
    )


def create_namespace(owner_id: str, namespace: str, description: str | None = None) -> Namespace:
    now = utc_timestamp()
    with _connect() as conn:
        conn.execute(
            """
            insert into namespaces (owner_id, namespace, description, created_at, updated_at)
            values (?, ?, ?, ?, ?)
            """,
            (owner_id, namespace, description, now, now),
        )
        conn.commit()
    return Namespace(namespace=namespace, description=description, created_at=now, last_updated=now)


def get_namespace(owner_id: str, namespace: str) -> Namespace | None:
    with _connect() as conn:
        row = conn.execute(
            "select * from namespaces where owner_id = ? and namespace = ?",
            (owner_id, namespace),
        ).fetchone()
        if not row:
            return None
        return _row_to_namespace(conn, row)


def list_namespaces(owner_id: str) -> list[Namespace]:
    with _connect() as conn:
        rows = conn.execute(
            "select * from namespaces where owner_id = ? order by namespace",
            (owner_id,),
        ).fetchall()
        return [_row_to_namespace(conn, row) for row in rows]


def delete_namespace(owner_id: str, namespace: str) -> None:
    with _connect() as conn:
        conn.execute(
            "delete from state_values where owner_id = ? and namespace = ?",
            (owner_id, namespace),
        )
        conn.execute(
            "delete from namespaces where owner_id = ? and namespace = ?",
            (owner_id, namespace),
        )
        conn.commit()


def list_values(owner_id: str, namespace: str) -> dict[str, Any]:
    """Unexpired values of a namespace as a plain key/value mapping."""
    with _connect() as conn:
        rows = conn.execute(
            f"""
            select key, value_json from state_values
            where owner_id = ? and namespace = ? and {_live_values_clause()}
            order by key
            """,
            (owner_id, namespace, utc_timestamp()),
        ).fetchall()
    return {row["key"]: json.loads(row["value_json"]) for row in rows}


def get_value(owner_id: str, namespace: str, key: str) -> StateValue | None:
    with _connect() as conn:
        row = conn.execute(
            f"""
            select key, value_json, description, updated_at from state_values
            where owner_id = ? and namespace = ? and key = ? and {_live_values_clause()}
            """,
            (owner_id, namespace, key, utc_timestamp()),
        ).fetchone()
    if not row:
        return None
    return StateValue(
        key=row["key"],
        value=json.loads(row["value_json"]),
        description=row["description"],
        updated_at=row["updated_at"],
    )


def set_value(owner_id: str, namespace: str, entry: StateValue) -> None:
    """insert or update a value; the namespace is created if missing."""
    now = utc_timestamp()
    with _connect() as conn:
        conn.execute(
            """
            insert into namespaces (owner_id, namespace, description, created_at, updated_at)
            values (?, ?, null, ?, ?)
            on conflict(owner_id, namespace) do update set updated_at = excluded.updated_at
            """,
            (owner_id, namespace, now, now),
        )
        conn.execute(
            """
            insert into state_values
                (owner_id, namespace, key, value_json, description, expires_at, updated_at)
            values (?, ?, ?, ?, ?, ?, ?)
            on conflict(owner_id, namespace, key) do update set
                value_json = excluded.value_json,
                description = coalesce(excluded.description, state_values.description),
                expires_at = excluded.expires_at,
                updated_at = excluded.updated_at
            """,
            (
                owner_id,
                namespace,
                entry.key,
                json.dumps(entry.value),
                entry.description,
                _expires_at(entry.ttl_seconds),
                now,
            ),
        )
        conn.commit()


def delete_value(owner_id: str, namespace: str, key: str) -> bool:
    """Returns False when the key did not exist."""
    with _connect() as conn:
        cursor = conn.execute(
            "delete from state_values where owner_id = ? and namespace = ? and key = ?",
            (owner_id, namespace, key),
        )
        conn.commit()
    return cursor.rowcount > 0
