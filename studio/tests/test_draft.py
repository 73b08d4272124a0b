"""Tests for the node create/edit draft."""

import pytest

from studio.draft import NodeDraft
from studio.errors import (
    AtLeastOneStepRequiredError,
    DuplicateParameterError,
    NameRequiredError,
    PermissionDeniedError,
)
from studio.models.node import NodeDefinition
from studio.models.parameter import ParameterType
from studio.models.step import StepKind, new_step
from studio.models.tool import ToolInfo, ToolInputSchema


class FakeClient:
    """Records writes instead of sending them."""

    def __init__(self):
        self.created = []
        self.updated = []

    def create_node(self, payload):
        self.created.append(payload)
        return NodeDefinition.model_validate(payload)

    def update_node(self, node_id, payload):
        self.updated.append((node_id, payload))
        return NodeDefinition.model_validate({**payload, "nodeId": node_id})


class TestSave:
    """Test the save path."""

    def test_blank_name_makes_no_request(self):
        """A draft without a name should fail before any request."""
        client = FakeClient()
        draft = NodeDraft(name="  ")
        draft.add_step("neuron")
        with pytest.raises(NameRequiredError):
            draft.save(client)
        assert client.created == []
        assert client.updated == []

    def test_no_steps_makes_no_request(self):
        """A draft without steps should fail before any request."""
        client = FakeClient()
        draft = NodeDraft(name="Summarize")
        with pytest.raises(AtLeastOneStepRequiredError):
            draft.save(client)
        assert client.created == []

    def test_new_draft_creates(self):
        """A new draft should be written with one create request."""
        client = FakeClient()
        draft = NodeDraft(name=" Summarize ", description="Short summary")
        draft.add_step("neuron")
        node = draft.save(client)

        assert len(client.created) == 1
        payload = client.created[0]
        assert payload["nodeId"] == draft.node_id
        assert payload["name"] == "Summarize"
        assert payload["steps"][0]["type"] == "neuron"
        assert "parameters" not in payload
        assert payload["metadata"]["inputs"] == ["state"]
        assert node.name == "Summarize"
        assert not draft.is_new

    def test_parameters_sent_when_present(self):
        """Declared parameters should be part of the create payload."""
        client = FakeClient()
        draft = NodeDraft(name="Search")
        draft.add_step("tool")
        key = draft.add_parameter("Result Count")
        draft.update_parameter(key, type="number", default=5)
        draft.save(client)

        params = client.created[0]["parameters"]
        assert params == {"result_count": {"type": "number", "default": 5, "description": ""}}

    def test_existing_node_updates(self):
        """A draft loaded from a node should be written with one full replace."""
        stored = NodeDefinition(node_id="summarize", name="Summarize", steps=[new_step("neuron")])
        client = FakeClient()
        draft = NodeDraft.from_node(stored)
        draft.name = "Summarize v2"
        draft.save(client)

        assert client.created == []
        assert len(client.updated) == 1
        node_id, payload = client.updated[0]
        assert node_id == "summarize"
        assert "nodeId" not in payload
        assert payload["parameters"] == {}
        assert payload["name"] == "Summarize v2"

    def test_non_editable_node_makes_no_request(self):
        """Saving a system node should be refused locally."""
        stored = NodeDefinition(
            node_id="router",
            name="Router",
            steps=[new_step("conditional")],
            is_system=True,
        )
        client = FakeClient()
        draft = NodeDraft.from_node(stored)
        with pytest.raises(PermissionDeniedError):
            draft.save(client)
        assert client.updated == []


class TestFormOperations:
    """Test the form editing helpers."""

    def test_tags(self):
        """Tags should be trimmed, lowercased and de-duplicated."""
        draft = NodeDraft()
        draft.add_tag(" Research ")
        draft.add_tag("research")
        draft.add_tag("Web")
        assert draft.tags == ["research", "web"]
        draft.remove_tag("research")
        assert draft.tags == ["web"]

    def test_state_port_cannot_be_removed(self):
        """The state port should survive removal attempts."""
        draft = NodeDraft()
        draft.add_input("query")
        draft.add_output("summary")
        draft.add_output("summary")
        assert draft.outputs == ["state", "summary"]
        draft.remove_output("summary")
        draft.remove_input("state")
        draft.remove_output("state")
        assert draft.inputs == ["state", "query"]
        assert draft.outputs == ["state"]
        draft.remove_input("query")
        assert draft.inputs == ["state"]

    def test_move_step(self):
        """Steps should swap with neighbours; moves past either end do nothing."""
        draft = NodeDraft()
        draft.add_step("neuron")
        draft.add_step("tool")
        assert draft.move_step(0, "up") is False
        assert draft.move_step(1, "down") is False
        assert draft.move_step(0, "down") is True
        assert [s.kind for s in draft.steps] == [StepKind.tool, StepKind.neuron]

    def test_remove_step(self):
        """Removing a step should shift the rest up."""
        draft = NodeDraft()
        draft.add_step("neuron")
        draft.add_step("transform")
        draft.remove_step(0)
        assert [s.kind for s in draft.steps] == [StepKind.transform]

    def test_update_step_config(self):
        """A config edit should replace the step in place."""
        draft = NodeDraft()
        draft.add_step("neuron")
        draft.update_step_config(0, "temperature", 0.2)
        assert draft.steps[0].config.temperature == 0.2

    def test_bind_tool(self):
        """Binding a tool should re-key the parameters to its schema."""
        draft = NodeDraft()
        draft.add_step("tool")
        tool = ToolInfo(
            name="web_search",
            input_schema=ToolInputSchema(properties={"query": {}, "count": {}}),
        )
        step = draft.bind_tool(0, tool)
        assert step.config.tool_name == "web_search"
        assert step.config.parameters == {"query": "", "count": ""}

    def test_bind_tool_requires_tool_step(self):
        """Only tool steps can be bound."""
        draft = NodeDraft()
        draft.add_step("neuron")
        with pytest.raises(TypeError):
            draft.bind_tool(0, ToolInfo(name="web_search"))

    def test_duplicate_parameter(self):
        """A duplicate parameter name should raise and keep the map."""
        draft = NodeDraft()
        draft.add_parameter("depth")
        with pytest.raises(DuplicateParameterError):
            draft.add_parameter("Depth")
        assert list(draft.parameters) == ["depth"]
        assert draft.parameters["depth"].type == ParameterType.string

    def test_slug_id(self):
        """New drafts may take their id from the name; stored nodes may not."""
        draft = NodeDraft(name="My Research Node")
        assert draft.slug_id() == "my-research-node"
        assert draft.node_id == "my-research-node"

        stored = NodeDraft.from_node(NodeDefinition(node_id="n", name="N"))
        with pytest.raises(ValueError):
            stored.slug_id()
