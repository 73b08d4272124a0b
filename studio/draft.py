"""Form state for creating or editing a node definition.

A draft is edited locally and written with a single request on ``save``:
a create for a new node, a full replace for an existing one. Nothing is
sent when validation fails.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Literal, Protocol

from studio.errors import PermissionDeniedError
from studio.models.node import (
    DEFAULT_COLOR,
    DEFAULT_ICON,
    STATE_PORT,
    NodeDefinition,
    NodeMetadata,
    normalize_tags,
)
from studio.models.parameter import (
    ParameterDefinition,
    add_parameter,
    remove_parameter,
    update_parameter,
)
from studio.models.step import Step, StepKind, ToolStep, dump_steps, new_step, with_config_field
from studio.models.tool import ToolInfo
from studio.tools import bind_tool
from studio.utils.identifiers import generate_node_id, slugify
from studio.validation import editability_reason, validate_node

logger = logging.getLogger(__name__)


class NodeWriter(Protocol):
    """The part of StudioClient a draft needs to save itself."""

    def create_node(self, payload: dict[str, Any]) -> NodeDefinition:
        ...

    def update_node(self, node_id: str, payload: dict[str, Any]) -> NodeDefinition:
        ...


@dataclass
class NodeDraft:
    name: str = ""
    description: str = ""
    tags: list[str] = field(default_factory=list)
    icon: str = DEFAULT_ICON
    color: str = DEFAULT_COLOR
    inputs: list[str] = field(default_factory=lambda: [STATE_PORT])
    outputs: list[str] = field(default_factory=lambda: [STATE_PORT])
    steps: list[Step] = field(default_factory=list)
    parameters: dict[str, ParameterDefinition] = field(default_factory=dict)
    node_id: str = field(default_factory=generate_node_id)
    existing: NodeDefinition | None = None  # set when editing a stored node

    @classmethod
    def from_node(cls, node: NodeDefinition) -> NodeDraft:
        """Start an edit session for a stored node."""
        return cls(
            name=node.name,
            description=node.description,
            tags=list(node.tags),
            icon=node.metadata.icon,
            color=node.metadata.color,
            inputs=list(node.metadata.inputs),
            outputs=list(node.metadata.outputs),
            steps=[step.model_copy(deep=True) for step in node.steps],
            parameters={key: p.model_copy() for key, p in node.parameters.items()},
            node_id=node.node_id,
            existing=node,
        )

    @property
    def is_new(self) -> bool:
        return self.existing is None

    def slug_id(self) -> str:
        """Use a slug of the current name as the node id (new drafts only)."""
        if not self.is_new:
            raise ValueError("node id cannot change after creation")
        slug = slugify(self.name)
        if slug:
            self.node_id = slug
        return self.node_id

    # --- tags and ports ---

    def add_tag(self, tag: str) -> None:
        self.tags = normalize_tags([*self.tags, tag])

    def remove_tag(self, tag: str) -> None:
        self.tags = [t for t in self.tags if t != tag]

    def add_input(self, name: str) -> None:
        name = name.strip()
        if name and name not in self.inputs:
            self.inputs.append(name)

    def remove_input(self, name: str) -> None:
        if name != STATE_PORT:
            self.inputs = [i for i in self.inputs if i != name]

    def add_output(self, name: str) -> None:
        name = name.strip()
        if name and name not in self.outputs:
            self.outputs.append(name)

    def remove_output(self, name: str) -> None:
        if name != STATE_PORT:
            self.outputs = [o for o in self.outputs if o != name]

    # --- steps ---

    def add_step(self, kind: StepKind | str) -> Step:
        step = new_step(kind)
        self.steps.append(step)
        return step

    def remove_step(self, index: int) -> None:
        del self.steps[index]

    def move_step(self, index: int, direction: Literal["up", "down"]) -> bool:
        """Swap a step with its neighbour. Returns False at either end."""
        target = index - 1 if direction == "up" else index + 1
        if target < 0 or target >= len(self.steps):
            return False
        self.steps[index], self.steps[target] = self.steps[target], self.steps[index]
        return True

    def update_step_config(self, index: int, field_name: str, value: Any) -> Step:
        step = with_config_field(self.steps[index], field_name, value)
        self.steps[index] = step
        return step

    def bind_tool(self, index: int, tool: ToolInfo | None, tool_name: str | None = None) -> Step:
        """Point a tool step at ``tool`` (or a typed name with no known tool)."""
        step = self.steps[index]
        if not isinstance(step, ToolStep):
            raise TypeError(f"step {index} is a {step.type} step, not a tool step")
        config = bind_tool(step.config, tool, tool_name)
        step = step.model_copy(update={"config": config})
        self.steps[index] = step
        return step

    # --- parameters ---

    def add_parameter(self, name: str) -> str:
        return add_parameter(self.parameters, name)

    def remove_parameter(self, key: str) -> None:
        remove_parameter(self.parameters, key)

    def update_parameter(self, key: str, **updates: Any) -> ParameterDefinition:
        return update_parameter(self.parameters, key, **updates)

    # --- saving ---

    def validate(self) -> None:
        validate_node(self.name, self.steps)

    def to_payload(self) -> dict[str, Any]:
        """Request body for create (POST) or full replace (PUT)."""
        metadata = NodeMetadata(
            icon=self.icon,
            color=self.color,
            inputs=self.inputs,
            outputs=self.outputs,
        )
        payload: dict[str, Any] = {
            "name": self.name.strip(),
            "description": self.description.strip(),
            "tags": list(self.tags),
            "steps": dump_steps(self.steps),
            "metadata": metadata.to_wire(),
        }
        if self.is_new:
            payload["nodeId"] = self.node_id.strip()
            if self.parameters:
                payload["parameters"] = self._dump_parameters()
        else:
            # full replace: an empty map clears the stored parameters
            payload["parameters"] = self._dump_parameters()
        return payload

    def _dump_parameters(self) -> dict[str, Any]:
        return {
            key: definition.model_dump(mode="json", by_alias=True, exclude_none=True)
            for key, definition in self.parameters.items()
        }

    def save(self, client: NodeWriter) -> NodeDefinition:
        """Validate and write the draft with one request.

        Raises NameRequiredError / AtLeastOneStepRequiredError without
        touching the network, and PermissionDeniedError for a stored node
        the caller may not edit.
        """
        self.validate()
        if self.existing is not None:
            reason = editability_reason(self.existing)
            if reason:
                raise PermissionDeniedError(reason, status_code=None)

        payload = self.to_payload()
        if self.existing is None:
            node = client.create_node(payload)
            logger.info("created node %s", node.node_id)
        else:
            node = client.update_node(self.existing.node_id, payload)
            logger.info("updated node %s", node.node_id)

        self.existing = node
        self.node_id = node.node_id
        return node
