"""Step definitions: the ordered units of work inside a node.

A step is a tagged union over five kinds. The wire tag is ``type``; each
kind carries its own config record. Config records keep keys they do not
know about so that data written by newer editors survives a round-trip.
"""

import json
from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import ConfigDict, Field, TypeAdapter, field_validator, model_validator

from studio.models.base import StudioModel


class StepKind(str, Enum):
    """Kinds of steps a node can contain."""

    neuron = "neuron"
    tool = "tool"
    transform = "transform"
    conditional = "conditional"
    loop = "loop"


# kinds offered inside a loop body; loops do not nest
NESTED_STEP_KINDS = (
    StepKind.neuron,
    StepKind.tool,
    StepKind.transform,
    StepKind.conditional,
)


def _dump_given_nulls(model: StudioModel) -> dict:
    """Wire dump that keeps an explicit ``null``.

    Only declared fields left unset at ``None`` are dropped; extra keys are
    always kept, null or not.
    """
    data = model.model_dump(mode="json", by_alias=True)
    for name, info in type(model).model_fields.items():
        if getattr(model, name) is None and name not in model.model_fields_set:
            data.pop(info.alias or name, None)
    return data


class StepConfig(StudioModel):
    """Common base for per-kind config records."""

    model_config = ConfigDict(extra="allow")

    @property
    def extra_fields(self) -> dict[str, Any]:
        """Keys carried through without interpretation."""
        return dict(self.__pydantic_extra__ or {})

    def to_wire(self) -> dict:
        return _dump_given_nulls(self)


# --- neuron ---


class StructuredOutput(StudioModel):
    """JSON-Schema-like description of the expected LLM output."""

    model_config = ConfigDict(extra="allow")

    json_schema: dict[str, Any] = Field(default_factory=dict, alias="schema")


class NeuronConfig(StepConfig):
    """Call an LLM identity ("neuron")."""

    neuron_id: str | None = None
    system_prompt: str = ""
    user_prompt: str = "{{state.messages}}"
    temperature: float = Field(default=0.7, ge=0.0, le=1.0)
    max_tokens: int = Field(default=4096, ge=100, le=32000)
    stream: bool = True
    output_field: str = "response"
    structured_output: StructuredOutput | None = None


# --- tool ---


class ToolConfig(StepConfig):
    """Invoke an external tool.

    ``parameters`` maps each input property of the tool's schema to a
    template string. ``input_mapping`` is the freeform fallback used when
    the tool declares no schema.
    """

    tool_name: str = ""
    parameters: dict[str, str] = Field(default_factory=dict)
    input_mapping: str | None = None
    output_field: str = "toolResult"

    @model_validator(mode="before")
    @classmethod
    def normalize_legacy_mapping(cls, data: Any) -> Any:
        """Coerce the legacy object-shaped ``inputMapping`` into ``parameters``."""
        if not isinstance(data, dict):
            return data

        key = "inputMapping" if "inputMapping" in data else "input_mapping"
        mapping = data.get(key)
        if mapping is None:
            return data

        data = dict(data)
        if isinstance(mapping, dict):
            del data[key]
            if not data.get("parameters"):
                data["parameters"] = {
                    name: value if isinstance(value, str) else json.dumps(value)
                    for name, value in mapping.items()
                }
        elif mapping == "":
            del data[key]
        return data


# --- transform ---


class TransformOperation(str, Enum):
    """Data transform operations."""

    set = "set"
    map = "map"
    filter = "filter"
    select = "select"
    json = "json"
    append = "append"
    concat = "concat"
    increment = "increment"
    decrement = "decrement"


# optional fields each operation reads
OPERATION_FIELDS: dict[TransformOperation, tuple[str, ...]] = {
    TransformOperation.set: ("value",),
    TransformOperation.map: ("transform",),
    TransformOperation.filter: ("filter_condition",),
    TransformOperation.select: ("transform",),
    TransformOperation.json: (),
    TransformOperation.append: ("value", "condition"),
    TransformOperation.concat: ("value",),
    TransformOperation.increment: ("value",),
    TransformOperation.decrement: ("value",),
}


class TransformConfig(StepConfig):
    """Transform data between fields."""

    operation: TransformOperation = TransformOperation.set
    input_field: str = ""
    output_field: str = ""
    value: Any = None
    transform: str | None = None
    filter_condition: str | None = None
    condition: str | None = None

    def relevant_fields(self) -> tuple[str, ...]:
        """Names of the optional fields the current operation reads."""
        return OPERATION_FIELDS[self.operation]


# --- conditional ---


class ConditionalConfig(StepConfig):
    """Ternary assignment: ``set_field = condition ? true_value : false_value``."""

    condition: str = ""
    set_field: str = ""
    true_value: Any = ""
    false_value: Any = ""


# --- steps (loop bodies first, loops reference them) ---


class _StepBase(StudioModel):
    model_config = ConfigDict(extra="allow")

    @property
    def kind(self) -> StepKind:
        return StepKind(self.type)

    def to_wire(self) -> dict:
        data = _dump_given_nulls(self)
        data["config"] = self.config.to_wire()
        return data


class NeuronStep(_StepBase):
    type: Literal["neuron"] = "neuron"
    config: NeuronConfig = Field(default_factory=NeuronConfig)


class ToolStep(_StepBase):
    type: Literal["tool"] = "tool"
    config: ToolConfig = Field(default_factory=ToolConfig)


class TransformStep(_StepBase):
    type: Literal["transform"] = "transform"
    config: TransformConfig = Field(default_factory=TransformConfig)


class ConditionalStep(_StepBase):
    type: Literal["conditional"] = "conditional"
    config: ConditionalConfig = Field(default_factory=ConditionalConfig)


NestedStep = Annotated[
    Union[NeuronStep, ToolStep, TransformStep, ConditionalStep],
    Field(discriminator="type"),
]


class LoopConfig(StepConfig):
    """Run nested steps until ``exit_condition`` holds or the cap is hit.

    ``iterator_field`` is the legacy way of driving a loop; it is still
    accepted when no ``exit_condition`` is set.
    """

    exit_condition: str | None = ""
    iterator_field: str | None = None
    max_iterations: int = Field(default=10, ge=1, le=100)
    accumulator_field: str | None = None
    output_field: str | None = None
    steps: list[NestedStep] = Field(default_factory=list)

    @field_validator("steps", mode="before")
    @classmethod
    def reject_nested_loops(cls, value: Any) -> Any:
        if value is None:
            return []
        for item in value:
            if isinstance(item, dict):
                kind = item.get("type")
            else:
                kind = getattr(item, "type", None)
            if kind == StepKind.loop.value:
                raise ValueError("a loop cannot contain another loop step")
        return value

    @property
    def uses_legacy_iterator(self) -> bool:
        return bool(self.iterator_field) and not self.exit_condition

    def to_wire(self) -> dict:
        data = super().to_wire()
        data["steps"] = [step.to_wire() for step in self.steps]
        return data


class LoopStep(_StepBase):
    type: Literal["loop"] = "loop"
    config: LoopConfig = Field(default_factory=LoopConfig)


Step = Annotated[
    Union[NeuronStep, ToolStep, TransformStep, ConditionalStep, LoopStep],
    Field(discriminator="type"),
]

STEP_CLASSES: dict[StepKind, type[_StepBase]] = {
    StepKind.neuron: NeuronStep,
    StepKind.tool: ToolStep,
    StepKind.transform: TransformStep,
    StepKind.conditional: ConditionalStep,
    StepKind.loop: LoopStep,
}

_step_adapter = TypeAdapter(Step)
_step_list_adapter = TypeAdapter(list[Step])


def parse_step(data: Any) -> Step:
    """Validate one step from its wire shape."""
    return _step_adapter.validate_python(data)


def parse_steps(data: Any) -> list[Step]:
    """Validate an ordered list of steps from their wire shape."""
    return _step_list_adapter.validate_python(data)


def dump_steps(steps: list[Step]) -> list[dict]:
    """Dump steps to their wire shape."""
    return [step.to_wire() for step in steps]


def new_step(kind: StepKind | str) -> Step:
    """Create a step of ``kind`` with the editor's default config."""
    return STEP_CLASSES[StepKind(kind)]()


def with_config_field(step: Step, field: str, value: Any) -> Step:
    """Return a copy of ``step`` with one config field replaced.

    ``field`` may be given in snake_case or as its wire name. The result is
    re-validated so bounds still apply.
    """
    data = step.to_wire()
    config = data.setdefault("config", {})
    config.pop(field, None)
    config[_wire_name(type(step), field)] = value
    return parse_step(data)


def _wire_name(step_class: type[_StepBase], field: str) -> str:
    config_class = step_class.model_fields["config"].annotation
    info = config_class.model_fields.get(field)
    if info is not None and info.alias:
        return info.alias
    return field
