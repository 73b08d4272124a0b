"""Namespaced persistent key-value state shared across workflows."""

import re
from typing import Any

from pydantic import Field, field_validator

from studio.models.base import StudioModel

NAMESPACE_PATTERN = re.compile(r"^[a-zA-Z][a-zA-Z0-9_-]*$")
STATE_KEY_PATTERN = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_]*$")
MAX_KEY_LENGTH = 100


class Namespace(StudioModel):
    """Summary of one namespace. Values carry no schema."""

    namespace: str
    description: str | None = None
    key_count: int = 0
    last_updated: str | None = None
    created_at: str | None = None
    is_archived: bool = False


class NamespaceCreate(StudioModel):
    namespace: str
    description: str | None = Field(default=None, max_length=500)

    @field_validator("namespace")
    @classmethod
    def check_name(cls, value: str) -> str:
        if len(value) > MAX_KEY_LENGTH:
            raise ValueError(f"Namespace name must be {MAX_KEY_LENGTH} characters or less")
        if not NAMESPACE_PATTERN.match(value):
            raise ValueError(
                "Namespace must start with a letter and contain only letters, "
                "numbers, hyphens, and underscores"
            )
        return value


class StateValue(StudioModel):
    """A single key in a namespace."""

    key: str
    value: Any
    description: str | None = None
    ttl_seconds: int | None = None
    updated_at: str | None = None

    @field_validator("key")
    @classmethod
    def check_key(cls, value: str) -> str:
        if len(value) > MAX_KEY_LENGTH:
            raise ValueError(f"Key must be {MAX_KEY_LENGTH} characters or less")
        if not STATE_KEY_PATTERN.match(value):
            raise ValueError(
                "Key must start with a letter or underscore and contain only "
                "letters, numbers, and underscores"
            )
        return value
