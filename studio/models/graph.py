"""Graph documents, node placements and listing entries."""

from enum import Enum, IntEnum
from typing import Any, Self

from pydantic import ConfigDict, Field

from studio.models.base import StudioModel
from studio.models.step import Step


class GraphTier(IntEnum):
    """Access tiers. Lower is more privileged."""

    admin = 0
    ultimate = 1
    advanced = 2
    basic = 3
    free = 4

    @property
    def label(self) -> str:
        return self.name.capitalize()


def is_accessible_to(resource_tier: int, user_tier: int) -> bool:
    """A user sees resources at their own tier or any less privileged one."""
    return resource_tier >= user_tier


class GraphType(str, Enum):
    agent = "agent"
    workflow = "workflow"


class Position(StudioModel):
    x: float = 0
    y: float = 0


class GraphNodeData(StudioModel):
    """Per-placement data of a node on the canvas.

    ``steps`` replaces the definition's steps wholesale for this graph;
    ``parameters`` overrides individual parameter values. Absent means
    inherit from the node definition.
    """

    model_config = ConfigDict(extra="allow")

    node_type: str | None = None  # NodeDefinition.node_id
    label: str = ""
    steps: list[Step] | None = None
    parameters: dict[str, Any] | None = None


class GraphNodeInstance(StudioModel):
    """A node placed inside a graph."""

    model_config = ConfigDict(extra="allow")

    id: str
    type: str = "studio"  # "studio", "startNode", "endNode"
    position: Position = Field(default_factory=Position)
    data: GraphNodeData = Field(default_factory=GraphNodeData)

    @property
    def node_id(self) -> str | None:
        return self.data.node_type


class GraphEdge(StudioModel):
    """A directed edge between two node placements."""

    model_config = ConfigDict(extra="allow")

    id: str
    source: str
    target: str
    source_handle: str | None = None
    target_handle: str | None = None
    label: str | None = None


class Graph(StudioModel):
    """A full graph document."""

    graph_id: str
    name: str
    description: str | None = None
    graph_type: GraphType = GraphType.workflow
    tier: int = Field(default=GraphTier.free, ge=GraphTier.admin, le=GraphTier.free)
    version: str = "1.0.0"
    tags: list[str] = Field(default_factory=list)

    is_default: bool = False
    is_system: bool = False
    is_immutable: bool = False
    is_owned: bool = True
    is_public: bool = False

    parent_graph_id: str | None = None
    fork_count: int = 0

    nodes: list[GraphNodeInstance] = Field(default_factory=list)
    edges: list[GraphEdge] = Field(default_factory=list)
    config: dict[str, Any] | None = None

    created_at: str | None = None
    updated_at: str | None = None

    @property
    def is_editable(self) -> bool:
        return self.is_owned and not self.is_immutable and not self.is_system

    def get_node(self, instance_id: str) -> GraphNodeInstance | None:
        for node in self.nodes:
            if node.id == instance_id:
                return node
        return None

    def replace_node(self, instance: GraphNodeInstance) -> None:
        """Swap in an updated placement with the same id."""
        for index, node in enumerate(self.nodes):
            if node.id == instance.id:
                self.nodes[index] = instance
                return
        raise KeyError(instance.id)

    def to_info(self) -> "GraphInfo":
        return GraphInfo(
            graph_id=self.graph_id,
            name=self.name,
            description=self.description,
            graph_type=self.graph_type,
            tier=self.tier,
            version=self.version,
            tags=self.tags,
            is_default=self.is_default,
            is_system=self.is_system,
            is_immutable=self.is_immutable,
            is_owned=self.is_owned,
            is_public=self.is_public,
            parent_graph_id=self.parent_graph_id,
            fork_count=self.fork_count,
            node_count=len(self.nodes),
            edge_count=len(self.edges),
            created_at=self.created_at,
            updated_at=self.updated_at,
        )

    def fork(self, new_graph_id: str, name: str | None = None, now: str | None = None) -> Self:
        """Copy this graph under a new id, owned by the caller.

        The copy starts its own lineage: it is never system or immutable,
        points back at this graph and has no forks of its own.
        """
        return self.model_copy(
            deep=True,
            update={
                "graph_id": new_graph_id,
                "name": name or f"{self.name} (Fork)",
                "is_default": False,
                "is_system": False,
                "is_immutable": False,
                "is_owned": True,
                "is_public": False,
                "parent_graph_id": self.graph_id,
                "fork_count": 0,
                "version": "1.0.0",
                "created_at": now,
                "updated_at": now,
            },
        )


class GraphInfo(StudioModel):
    """Listing entry for a graph."""

    graph_id: str
    name: str
    description: str | None = None
    graph_type: GraphType = GraphType.workflow
    tier: int = GraphTier.free
    version: str = "1.0.0"
    tags: list[str] = Field(default_factory=list)

    is_default: bool = False
    is_system: bool = False
    is_immutable: bool = False
    is_owned: bool = False
    is_public: bool = False

    parent_graph_id: str | None = None
    fork_count: int = 0
    node_count: int = 0
    edge_count: int = 0

    created_at: str | None = None
    updated_at: str | None = None

    @property
    def tier_label(self) -> str:
        return GraphTier(self.tier).label


class ForkResult(StudioModel):
    """Response of ``POST /graphs/:id/fork``."""

    graph_id: str
    parent_graph_id: str
    name: str
    created_at: str | None = None
