"""Save-time checks for node definitions.

Only structural requirements are enforced here. Template expressions inside
step configs are accepted as-is; the execution engine resolves them.
"""

from collections.abc import Sequence

from studio.errors import AtLeastOneStepRequiredError, NameRequiredError
from studio.models.graph import Graph
from studio.models.node import NodeDefinition


def validate_node(name: str | None, steps: Sequence) -> None:
    """Check a candidate node before it is written.

    Raises NameRequiredError for a blank name, then
    AtLeastOneStepRequiredError for an empty step list.
    """
    if not name or not name.strip():
        raise NameRequiredError()
    if len(steps) == 0:
        raise AtLeastOneStepRequiredError()


def validate_definition(node: NodeDefinition) -> None:
    validate_node(node.name, node.steps)


def editability_reason(resource: NodeDefinition | Graph) -> str | None:
    """Why a node or graph cannot be edited in place, or None if it can."""
    if resource.is_system:
        return "System resources are read-only. Fork it to make changes."
    if resource.is_immutable:
        return "This resource is immutable. Fork it to make changes."
    if not resource.is_owned:
        return "You don't own this resource. Fork it to make changes."
    return None
