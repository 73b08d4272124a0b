"""Node definitions: reusable, named units of workflow logic."""

from typing import Any, Self

from pydantic import Field, field_validator, model_validator

from studio.models.base import StudioModel
from studio.models.parameter import ParameterDefinition, is_valid_parameter_key
from studio.models.step import Step

# every node reads and writes graph state
STATE_PORT = "state"

DEFAULT_ICON = "brain"
DEFAULT_COLOR = "#a855f7"


def _with_state_port(ports: list[str]) -> list[str]:
    seen: list[str] = []
    for port in ports:
        port = port.strip()
        if port and port not in seen:
            seen.append(port)
    if STATE_PORT not in seen:
        seen.insert(0, STATE_PORT)
    return seen


def normalize_tags(tags: list[str]) -> list[str]:
    """Trim, lowercase and de-duplicate tags, keeping first-seen order."""
    result: list[str] = []
    for tag in tags:
        tag = tag.strip().lower()
        if tag and tag not in result:
            result.append(tag)
    return result


class NodeMetadata(StudioModel):
    """Presentation metadata and declared ports."""

    icon: str = DEFAULT_ICON
    color: str = DEFAULT_COLOR
    inputs: list[str] = Field(default_factory=lambda: [STATE_PORT])
    outputs: list[str] = Field(default_factory=lambda: [STATE_PORT])

    @field_validator("inputs", "outputs")
    @classmethod
    def include_state_port(cls, value: list[str]) -> list[str]:
        return _with_state_port(value)


class NodeDefinition(StudioModel):
    """A node as stored and edited in the studio.

    ``steps`` may be empty on a stored document; the save path rejects
    empty step lists before anything is written.
    """

    node_id: str
    name: str
    description: str = ""
    tags: list[str] = Field(default_factory=list)
    category: str | None = None
    metadata: NodeMetadata = Field(default_factory=NodeMetadata)
    steps: list[Step] = Field(default_factory=list)
    parameters: dict[str, ParameterDefinition] = Field(default_factory=dict)

    is_system: bool = False
    is_immutable: bool = False
    is_owned: bool = True

    parent_node_id: str | None = None  # set on forks
    owner_name: str | None = None
    created_at: str | None = None
    updated_at: str | None = None

    @model_validator(mode="before")
    @classmethod
    def accept_full_config(cls, data: Any) -> Any:
        """Older API responses carry the steps under ``fullConfig``."""
        if isinstance(data, dict) and "steps" not in data and "fullConfig" in data:
            data = dict(data)
            data["steps"] = data.pop("fullConfig")
        return data

    @field_validator("tags")
    @classmethod
    def clean_tags(cls, value: list[str]) -> list[str]:
        return normalize_tags(value)

    @field_validator("parameters")
    @classmethod
    def check_parameter_keys(
        cls, value: dict[str, ParameterDefinition]
    ) -> dict[str, ParameterDefinition]:
        for key in value:
            if not is_valid_parameter_key(key):
                raise ValueError(
                    f"parameter key {key!r} must be lowercase with underscores"
                )
        return value

    @property
    def is_editable(self) -> bool:
        return self.is_owned and not self.is_immutable and not self.is_system


class NodeSummary(StudioModel):
    """Listing entry for the node palette and explore views."""

    node_id: str
    name: str
    description: str | None = None
    tags: list[str] = Field(default_factory=list)
    is_system: bool = False
    is_immutable: bool = False
    is_owned: bool = False
    parent_node_id: str | None = None
    owner_name: str | None = None
    tier: int = 4
    icon: str | None = None
    color: str | None = None
    inputs: list[str] = Field(default_factory=lambda: [STATE_PORT])
    outputs: list[str] = Field(default_factory=lambda: [STATE_PORT])
    created_at: str | None = None
    updated_at: str | None = None

    @classmethod
    def from_definition(cls, node: NodeDefinition, tier: int = 4) -> Self:
        return cls(
            node_id=node.node_id,
            name=node.name,
            description=node.description,
            tags=node.tags,
            is_system=node.is_system,
            is_immutable=node.is_immutable,
            is_owned=node.is_owned,
            parent_node_id=node.parent_node_id,
            owner_name=node.owner_name,
            tier=tier,
            icon=node.metadata.icon,
            color=node.metadata.color,
            inputs=node.metadata.inputs,
            outputs=node.metadata.outputs,
            created_at=node.created_at,
            updated_at=node.updated_at,
        )


class NodeList(StudioModel):
    """Response of ``GET /nodes``."""

    nodes: list[NodeSummary] = Field(default_factory=list)
    total: int = 0
    offset: int = 0
    limit: int = 50
    available_tags: list[str] = Field(default_factory=list)
