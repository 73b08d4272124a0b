"""Node Studio - node definitions, per-graph overrides and a client for the studio API."""

from studio.models.graph import (
    Graph,
    GraphInfo,
    GraphNodeInstance,
    GraphTier,
)
from studio.models.node import (
    NodeDefinition,
    NodeMetadata,
)
from studio.models.parameter import (
    ParameterDefinition,
    ParameterType,
)
from studio.models.step import (
    Step,
    StepKind,
    parse_step,
    parse_steps,
)
from studio.models.tool import ToolInfo
from studio.draft import NodeDraft
from studio.overrides import StepOverrideSession
from studio.templates import TemplateContext, resolve_template
from studio.tools import rank_tools
from studio.sdk.client import StudioClient
from studio.sdk.polling import DocumentStatusPoller

__all__ = [
    # Steps and parameters
    "Step",
    "StepKind",
    "parse_step",
    "parse_steps",
    "ParameterDefinition",
    "ParameterType",
    # Nodes
    "NodeDefinition",
    "NodeMetadata",
    "NodeDraft",
    # Graphs
    "Graph",
    "GraphInfo",
    "GraphNodeInstance",
    "GraphTier",
    "StepOverrideSession",
    # Tools and templates
    "ToolInfo",
    "rank_tools",
    "TemplateContext",
    "resolve_template",
    # High-level APIs
    "StudioClient",
    "DocumentStatusPoller",
]
