"""Per-graph overrides of a node's steps and parameter values.

A node placed in a graph inherits everything from its definition. The
placement may carry a full replacement of the steps and/or individual
parameter values; anything it does not set falls back to the definition.
"""

import copy
from enum import Enum
from typing import Any

from studio.errors import ParameterValueError, StepsLockedError
from studio.models.graph import GraphNodeInstance
from studio.models.node import NodeDefinition
from studio.models.step import LoopStep, Step, with_config_field


def _with_data(instance: GraphNodeInstance, **updates: Any) -> GraphNodeInstance:
    data = instance.data.model_copy(update=updates)
    return instance.model_copy(update={"data": data})


def _copy_steps(steps: list[Step]) -> list[Step]:
    return [step.model_copy(deep=True) for step in steps]


def resolve_steps(instance: GraphNodeInstance, node: NodeDefinition) -> list[Step]:
    """Steps that run for this placement."""
    if instance.data.steps is not None:
        return instance.data.steps
    return node.steps


def resolve_parameters(instance: GraphNodeInstance, node: NodeDefinition) -> dict[str, Any]:
    """Parameter values for this placement.

    Shallow per-key merge: an override wins for its key, every other key
    takes the definition's default. Override keys the node does not
    declare are ignored.
    """
    overrides = instance.data.parameters or {}
    values: dict[str, Any] = {}
    for name, definition in node.parameters.items():
        if name in overrides:
            values[name] = overrides[name]
        else:
            values[name] = copy.deepcopy(definition.default)
    return values


def set_parameter_override(
    instance: GraphNodeInstance,
    node: NodeDefinition,
    name: str,
    value: Any,
) -> GraphNodeInstance:
    """Return a copy of ``instance`` overriding one parameter."""
    definition = node.parameters.get(name)
    if definition is None:
        raise ParameterValueError(f"Node '{node.node_id}' has no parameter '{name}'")
    definition.check_value(value)

    parameters = dict(instance.data.parameters or {})
    parameters[name] = value
    return _with_data(instance, parameters=parameters)


def reset_parameter_override(instance: GraphNodeInstance, name: str) -> GraphNodeInstance:
    """Drop one override so the parameter inherits its default again."""
    parameters = dict(instance.data.parameters or {})
    parameters.pop(name, None)
    return _with_data(instance, parameters=parameters or None)


def reset_steps_override(instance: GraphNodeInstance) -> GraphNodeInstance:
    """Drop the step override so the placement follows its definition again."""
    return _with_data(instance, steps=None)


class OverrideState(str, Enum):
    locked = "locked"
    unlocked = "unlocked"


class StepOverrideSession:
    """Edit session for the steps of one node placement.

    Starts locked, showing the inherited steps read-only. Unlocking allows
    edits; locking again keeps them. ``save`` writes the edited steps into
    the placement. Nothing is persisted until then.
    """

    def __init__(self, instance: GraphNodeInstance, node: NodeDefinition) -> None:
        self.instance = instance
        self.node = node
        self.state = OverrideState.locked
        self.edited_steps = _copy_steps(resolve_steps(instance, node))
        self.has_step_changes = False

    @property
    def is_locked(self) -> bool:
        return self.state == OverrideState.locked

    def unlock(self) -> None:
        self.state = OverrideState.unlocked

    def lock(self) -> None:
        self.state = OverrideState.locked

    def _require_unlocked(self) -> None:
        if self.is_locked:
            raise StepsLockedError("Unlock the steps before editing them")

    def update_step_config(self, index: int, field: str, value: Any) -> Step:
        self._require_unlocked()
        step = with_config_field(self.edited_steps[index], field, value)
        self.edited_steps[index] = step
        self.has_step_changes = True
        return step

    def update_nested_step_config(
        self,
        index: int,
        nested_index: int,
        field: str,
        value: Any,
    ) -> Step:
        """Edit one step inside a loop's body."""
        self._require_unlocked()
        loop = self.edited_steps[index]
        if not isinstance(loop, LoopStep):
            raise TypeError(f"step {index} is a {loop.type} step, not a loop")

        nested = list(loop.config.steps)
        nested[nested_index] = with_config_field(nested[nested_index], field, value)
        config = loop.config.model_copy(update={"steps": nested})
        updated = loop.model_copy(update={"config": config})
        self.edited_steps[index] = updated
        self.has_step_changes = True
        return updated

    def save(self) -> GraphNodeInstance:
        """Commit the edited steps into the placement."""
        self._require_unlocked()
        self.instance = _with_data(self.instance, steps=_copy_steps(self.edited_steps))
        self.has_step_changes = False
        return self.instance

    def discard(self) -> None:
        """Throw away unsaved edits."""
        self.edited_steps = _copy_steps(resolve_steps(self.instance, self.node))
        self.has_step_changes = False
