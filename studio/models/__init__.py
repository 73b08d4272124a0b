"""Core data models for the node studio."""

from studio.models.graph import (
    ForkResult,
    Graph,
    GraphEdge,
    GraphInfo,
    GraphNodeData,
    GraphNodeInstance,
    GraphTier,
    GraphType,
    Position,
)
from studio.models.library import (
    Document,
    DocumentChunk,
    Library,
    ProcessingStatus,
    ProcessingStatusReport,
    SearchResult,
)
from studio.models.namespace import (
    Namespace,
    NamespaceCreate,
    StateValue,
)
from studio.models.neuron import NeuronInfo
from studio.models.node import (
    NodeDefinition,
    NodeList,
    NodeMetadata,
    NodeSummary,
)
from studio.models.parameter import (
    ParameterDefinition,
    ParameterType,
    normalize_parameter_name,
)
from studio.models.step import (
    ConditionalConfig,
    ConditionalStep,
    LoopConfig,
    LoopStep,
    NeuronConfig,
    NeuronStep,
    Step,
    StepKind,
    ToolConfig,
    ToolStep,
    TransformConfig,
    TransformOperation,
    TransformStep,
    new_step,
    parse_step,
    parse_steps,
)
from studio.models.tool import (
    ToolInfo,
    ToolInputSchema,
    ToolListing,
)

__all__ = [
    # Steps
    "ConditionalConfig",
    "ConditionalStep",
    "LoopConfig",
    "LoopStep",
    "NeuronConfig",
    "NeuronStep",
    "Step",
    "StepKind",
    "ToolConfig",
    "ToolStep",
    "TransformConfig",
    "TransformOperation",
    "TransformStep",
    "new_step",
    "parse_step",
    "parse_steps",
    # Parameters
    "ParameterDefinition",
    "ParameterType",
    "normalize_parameter_name",
    # Nodes
    "NodeDefinition",
    "NodeList",
    "NodeMetadata",
    "NodeSummary",
    # Graphs
    "ForkResult",
    "Graph",
    "GraphEdge",
    "GraphInfo",
    "GraphNodeData",
    "GraphNodeInstance",
    "GraphTier",
    "GraphType",
    "Position",
    # Tools and neurons
    "ToolInfo",
    "ToolInputSchema",
    "ToolListing",
    "NeuronInfo",
    # Libraries
    "Document",
    "DocumentChunk",
    "Library",
    "ProcessingStatus",
    "ProcessingStatusReport",
    "SearchResult",
    # Namespaces
    "Namespace",
    "NamespaceCreate",
    "StateValue",
]
