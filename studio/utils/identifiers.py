"""ID generation and timestamp utilities."""

import re
import uuid
from datetime import datetime, timezone

_NON_SLUG = re.compile(r"[^a-z0-9]+")


def generate_node_id() -> str:
    """Generate a random node ID (UUID4)."""
    return str(uuid.uuid4())


def generate_instance_id() -> str:
    """Generate a short ID for a node placement or edge."""
    return uuid.uuid4().hex[:8]


def slugify(name: str) -> str:
    """Derive a lowercase, hyphen-delimited ID from a display name."""
    return _NON_SLUG.sub("-", name.lower()).strip("-")


def utc_timestamp() -> str:
    """Generate an ISO8601 UTC timestamp."""
    return datetime.now(timezone.utc).isoformat()
