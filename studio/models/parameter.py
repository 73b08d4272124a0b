"""Parameter definitions: typed knobs a node exposes for per-graph override."""

import re
from enum import Enum
from typing import Any, Self

from pydantic import model_validator

from studio.errors import DuplicateParameterError, InvalidParameterNameError, ParameterValueError
from studio.models.base import StudioModel


class ParameterType(str, Enum):
    """Value types a parameter can hold."""

    string = "string"
    number = "number"
    boolean = "boolean"
    select = "select"
    json = "json"


_WHITESPACE = re.compile(r"\s+")


def normalize_parameter_name(name: str) -> str:
    """Turn a user-typed name into a parameter key.

    Trims, collapses whitespace runs into ``_`` and lowercases.
    """
    return _WHITESPACE.sub("_", name.strip()).lower()


def default_for_type(param_type: ParameterType | str) -> Any:
    """Default value a freshly typed parameter starts with."""
    param_type = ParameterType(param_type)
    if param_type == ParameterType.number:
        return 0
    if param_type == ParameterType.boolean:
        return False
    if param_type == ParameterType.json:
        return {}
    return ""


class ParameterDefinition(StudioModel):
    """A single exposed parameter."""

    type: ParameterType = ParameterType.string
    default: Any = None
    description: str = ""
    min: float | None = None  # number only
    max: float | None = None  # number only
    enum: list[str] | None = None  # select only

    @model_validator(mode="after")
    def fill_default_and_check_bounds(self) -> Self:
        given = self.default is not None
        if not given:
            self.default = default_for_type(self.type)

        if self.type == ParameterType.number:
            if self.min is not None and self.max is not None and self.min > self.max:
                raise ValueError(f"min ({self.min}) must not exceed max ({self.max})")

        # a blank select default means "no option chosen yet"
        blank_select = self.type == ParameterType.select and self.default == ""
        if given and not blank_select:
            try:
                self.check_value(self.default)
            except ParameterValueError as e:
                raise ValueError(f"invalid default: {e}") from e
        return self

    def check_value(self, value: Any) -> Any:
        """Validate an override value against this definition.

        Returns the value (numbers normalized to int/float as given).
        Raises ParameterValueError when it does not fit.
        """
        if self.type == ParameterType.string:
            if not isinstance(value, str):
                raise ParameterValueError(f"expected a string, got {type(value).__name__}")
        elif self.type == ParameterType.number:
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ParameterValueError(f"expected a number, got {type(value).__name__}")
            if self.min is not None and value < self.min:
                raise ParameterValueError(f"{value} is below the minimum of {self.min}")
            if self.max is not None and value > self.max:
                raise ParameterValueError(f"{value} is above the maximum of {self.max}")
        elif self.type == ParameterType.boolean:
            if not isinstance(value, bool):
                raise ParameterValueError(f"expected a boolean, got {type(value).__name__}")
        elif self.type == ParameterType.select:
            if not isinstance(value, str):
                raise ParameterValueError(f"expected a string, got {type(value).__name__}")
            if self.enum is not None and value not in self.enum:
                raise ParameterValueError(f"{value!r} is not one of {self.enum}")
        # json accepts any JSON-compatible value
        return value


def is_valid_parameter_key(key: str) -> bool:
    return bool(key) and normalize_parameter_name(key) == key


def add_parameter(
    parameters: dict[str, ParameterDefinition],
    name: str,
    definition: ParameterDefinition | None = None,
) -> str:
    """Add a parameter under the normalized form of ``name``.

    Returns the key used. The map is left untouched when the name is blank
    (InvalidParameterNameError) or already taken (DuplicateParameterError).
    """
    key = normalize_parameter_name(name)
    if not key:
        raise InvalidParameterNameError("Parameter name is required")
    if key in parameters:
        raise DuplicateParameterError(f"Parameter '{key}' already exists")
    parameters[key] = definition or ParameterDefinition()
    return key


def remove_parameter(parameters: dict[str, ParameterDefinition], key: str) -> None:
    parameters.pop(key, None)


def update_parameter(
    parameters: dict[str, ParameterDefinition],
    key: str,
    **updates: Any,
) -> ParameterDefinition:
    """Merge ``updates`` into an existing parameter.

    Changing ``type`` without giving a ``default`` resets the default to the
    new type's starting value.
    """
    current = parameters[key]
    data = current.model_dump()
    if "type" in updates and "default" not in updates:
        updates["default"] = default_for_type(updates["type"])
    data.update(updates)
    updated = ParameterDefinition.model_validate(data)
    parameters[key] = updated
    return updated
