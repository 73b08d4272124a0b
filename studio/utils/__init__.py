"""Utility functions for the node studio."""

from studio.utils.identifiers import (
    generate_instance_id,
    generate_node_id,
    slugify,
    utc_timestamp,
)

__all__ = [
    "generate_instance_id",
    "generate_node_id",
    "slugify",
    "utc_timestamp",
]
