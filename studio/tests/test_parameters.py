"""Tests for parameter definitions and the parameter map helpers."""

import pytest
from pydantic import ValidationError

from studio.errors import DuplicateParameterError, InvalidParameterNameError, ParameterValueError
from studio.models.parameter import (
    ParameterDefinition,
    ParameterType,
    add_parameter,
    normalize_parameter_name,
    remove_parameter,
    update_parameter,
)


class TestNormalizeParameterName:
    """Test user-typed names becoming keys."""

    def test_normalizes(self):
        """Whitespace runs become underscores and the result is lowercased."""
        assert normalize_parameter_name("  Max Tokens ") == "max_tokens"
        assert normalize_parameter_name("A\tB   C") == "a_b_c"

    @pytest.mark.parametrize("name", ["Max Tokens", "  x  ", "already_ok", "Tab\tSeparated Name", ""])
    def test_idempotent(self, name):
        """Normalizing twice should equal normalizing once."""
        once = normalize_parameter_name(name)
        assert normalize_parameter_name(once) == once


class TestAddParameter:
    """Test adding parameters to a map."""

    def test_adds_under_normalized_key(self):
        """The key used should be the normalized name."""
        params = {}
        key = add_parameter(params, "Search Depth")
        assert key == "search_depth"
        assert params["search_depth"].type == ParameterType.string

    def test_duplicate_leaves_map_untouched(self):
        """A duplicate name should raise and leave the existing entry in place."""
        existing = ParameterDefinition(type="number", default=3)
        params = {"depth": existing}
        with pytest.raises(DuplicateParameterError):
            add_parameter(params, " Depth ")
        assert len(params) == 1
        assert params["depth"] is existing

    def test_blank_name_rejected(self):
        """A blank name should be rejected."""
        params = {}
        with pytest.raises(InvalidParameterNameError):
            add_parameter(params, "   ")
        assert params == {}

    def test_remove(self):
        """Removing a missing key should be a no-op."""
        params = {"depth": ParameterDefinition()}
        remove_parameter(params, "depth")
        remove_parameter(params, "depth")
        assert params == {}


class TestParameterDefinition:
    """Test parameter definition rules."""

    def test_default_filled_from_type(self):
        """An absent default should start at the type's empty value."""
        assert ParameterDefinition(type="string").default == ""
        assert ParameterDefinition(type="number").default == 0
        assert ParameterDefinition(type="boolean").default is False
        assert ParameterDefinition(type="select").default == ""
        assert ParameterDefinition(type="json").default == {}

    def test_min_above_max_rejected(self):
        """min must not exceed max."""
        with pytest.raises(ValidationError):
            ParameterDefinition(type="number", min=10, max=1)

    def test_select_default_must_be_option(self):
        """A select default must be one of its options."""
        with pytest.raises(ValidationError):
            ParameterDefinition(type="select", enum=["fast", "thorough"], default="slow")
        ParameterDefinition(type="select", enum=["fast", "thorough"], default="fast")

    @pytest.mark.parametrize(
        "fields",
        [
            {"type": "number", "default": "abc"},
            {"type": "number", "default": 5, "min": 0, "max": 1},
            {"type": "number", "default": True},
            {"type": "boolean", "default": "yes"},
            {"type": "string", "default": 3},
        ],
    )
    def test_default_must_fit_type(self, fields):
        """An explicit default should pass the same check as an override."""
        with pytest.raises(ValidationError):
            ParameterDefinition(**fields)

    def test_valid_defaults(self):
        """Defaults that fit their definition should be kept."""
        assert ParameterDefinition(type="number", default=0.5, min=0, max=1).default == 0.5
        assert ParameterDefinition(type="json", default=[1, 2]).default == [1, 2]
        assert ParameterDefinition(type="select", enum=["fast"], default="").default == ""

    def test_check_number(self):
        """Numbers should respect min and max; booleans are not numbers."""
        param = ParameterDefinition(type="number", min=0, max=1)
        assert param.check_value(0.5) == 0.5
        with pytest.raises(ParameterValueError):
            param.check_value(-0.1)
        with pytest.raises(ParameterValueError):
            param.check_value(2)
        with pytest.raises(ParameterValueError):
            param.check_value(True)

    def test_check_select(self):
        """Select values must be one of the options."""
        param = ParameterDefinition(type="select", enum=["fast", "thorough"])
        param.check_value("fast")
        with pytest.raises(ParameterValueError):
            param.check_value("slow")

    def test_check_json_accepts_anything(self):
        """JSON parameters accept any value."""
        param = ParameterDefinition(type="json")
        assert param.check_value({"a": [1, 2]}) == {"a": [1, 2]}


class TestUpdateParameter:
    """Test merging updates into a parameter."""

    def test_type_change_resets_default(self):
        """Changing the type without a default should reset the default."""
        params = {"mode": ParameterDefinition(type="string", default="quick")}
        updated = update_parameter(params, "mode", type="number")
        assert updated.type == ParameterType.number
        assert updated.default == 0
        assert params["mode"] is updated

    def test_explicit_default_kept(self):
        """A default given with the update should be used."""
        params = {"mode": ParameterDefinition(type="string")}
        updated = update_parameter(params, "mode", type="boolean", default=True)
        assert updated.default is True

    def test_description_only(self):
        """Other fields should be left alone."""
        params = {"mode": ParameterDefinition(type="string", default="quick")}
        updated = update_parameter(params, "mode", description="How hard to try")
        assert updated.default == "quick"
        assert updated.description == "How hard to try"
