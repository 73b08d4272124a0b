"""Template references embedded in step config strings.

Steps point at runtime data with ``{{...}}`` tokens::

    {{state.messages}}              graph state, dotted path
    {{parameters.temperature}}      node parameter (after graph overrides)
    {{globalState.crm.last_sync}}   persistent namespace value
    {{item}} / {{item.url}}         current loop element
    {{index}}                       current loop position

``item`` and ``index`` only exist inside a loop's nested steps.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from typing import Any, Iterator

from studio.errors import TemplateReferenceError, UnresolvedReferenceError
from studio.models.node import NodeDefinition
from studio.models.step import LoopStep, Step

TOKEN_PATTERN = re.compile(r"\{\{(.*?)\}\}")
_SINGLE_TOKEN = re.compile(r"^\{\{(.*?)\}\}$")
_SEGMENT = re.compile(r"^[^\s{}.]+$")

STATE = "state"
PARAMETERS = "parameters"
GLOBAL_STATE = "globalState"
ITEM = "item"
INDEX = "index"

ROOTS = (STATE, PARAMETERS, GLOBAL_STATE, ITEM, INDEX)
LOOP_ONLY_ROOTS = (ITEM, INDEX)

_MISSING = object()


@dataclass(frozen=True)
class TemplateReference:
    """A parsed ``{{root.path}}`` token."""

    raw: str
    root: str
    path: tuple[str, ...] = ()

    @property
    def parameter_name(self) -> str | None:
        return self.path[0] if self.root == PARAMETERS else None

    @property
    def namespace(self) -> str | None:
        return self.path[0] if self.root == GLOBAL_STATE else None

    @property
    def key(self) -> str | None:
        return self.path[1] if self.root == GLOBAL_STATE else None

    @property
    def loop_only(self) -> bool:
        return self.root in LOOP_ONLY_ROOTS


def parse_reference(expression: str) -> TemplateReference:
    """Parse the inside of a ``{{...}}`` token.

    Raises TemplateReferenceError for an unknown root or a path that does
    not fit the root.
    """
    expr = expression.strip()
    if not expr:
        raise TemplateReferenceError("empty template reference")

    segments = expr.split(".")
    for segment in segments:
        if not _SEGMENT.match(segment):
            raise TemplateReferenceError(f"malformed template reference: {{{{{expr}}}}}")

    root, path = segments[0], tuple(segments[1:])
    if root not in ROOTS:
        raise TemplateReferenceError(
            f"unknown template root {root!r} (expected one of {', '.join(ROOTS)})"
        )
    if root == PARAMETERS and not path:
        raise TemplateReferenceError("parameters reference needs a parameter name")
    if root == GLOBAL_STATE and len(path) < 2:
        raise TemplateReferenceError("globalState reference needs a namespace and a key")
    if root == INDEX and path:
        raise TemplateReferenceError("index reference takes no path")

    return TemplateReference(raw=expr, root=root, path=path)


def iter_tokens(text: str) -> Iterator[str]:
    """Yield the inside of every ``{{...}}`` token in ``text``."""
    for match in TOKEN_PATTERN.finditer(text):
        yield match.group(1)


def find_references(text: str) -> list[TemplateReference]:
    """Parse every token in ``text``; raises on the first malformed one."""
    return [parse_reference(token) for token in iter_tokens(text)]


# --- linting ---


@dataclass
class TemplateIssue:
    """A problem found with one token."""

    location: str  # e.g. "steps[2].config.steps[0].config.userPrompt"
    token: str
    message: str


def _walk_strings(value: Any, location: str) -> Iterator[tuple[str, str]]:
    if isinstance(value, str):
        yield location, value
    elif isinstance(value, dict):
        for key, item in value.items():
            yield from _walk_strings(item, f"{location}.{key}")
    elif isinstance(value, list):
        for index, item in enumerate(value):
            yield from _walk_strings(item, f"{location}[{index}]")


def _check_text(
    text: str,
    location: str,
    parameter_names: set[str],
    in_loop: bool,
) -> list[TemplateIssue]:
    issues: list[TemplateIssue] = []
    for token in iter_tokens(text):
        try:
            ref = parse_reference(token)
        except TemplateReferenceError as e:
            issues.append(TemplateIssue(location, token, str(e)))
            continue
        if ref.parameter_name is not None and ref.parameter_name not in parameter_names:
            issues.append(
                TemplateIssue(location, token, f"unknown parameter {ref.parameter_name!r}")
            )
        if ref.loop_only and not in_loop:
            issues.append(
                TemplateIssue(location, token, f"{ref.root} is only available inside a loop")
            )
    return issues


def check_step_references(
    step: Step,
    parameter_names: set[str],
    location: str = "step",
    in_loop: bool = False,
) -> list[TemplateIssue]:
    """Lint every string in a step's config (and a loop's nested steps)."""
    config = step.config.to_wire()
    if isinstance(step, LoopStep):
        config.pop("steps", None)

    issues: list[TemplateIssue] = []
    for where, text in _walk_strings(config, f"{location}.config"):
        issues.extend(_check_text(text, where, parameter_names, in_loop))

    if isinstance(step, LoopStep):
        for index, child in enumerate(step.config.steps):
            issues.extend(
                check_step_references(
                    child,
                    parameter_names,
                    location=f"{location}.config.steps[{index}]",
                    in_loop=True,
                )
            )
    return issues


def check_node_references(
    node: NodeDefinition,
    steps: list[Step] | None = None,
) -> list[TemplateIssue]:
    """Lint all template tokens of a node.

    ``steps`` lets callers check a per-graph override against the node's
    parameters. Nothing here blocks saving.
    """
    parameter_names = set(node.parameters)
    issues: list[TemplateIssue] = []
    for index, step in enumerate(node.steps if steps is None else steps):
        issues.extend(check_step_references(step, parameter_names, location=f"steps[{index}]"))
    return issues


# --- resolution ---


@dataclass
class TemplateContext:
    """Runtime values tokens resolve against."""

    state: dict[str, Any] = field(default_factory=dict)
    parameters: dict[str, Any] = field(default_factory=dict)
    global_state: dict[str, dict[str, Any]] = field(default_factory=dict)
    item: Any = _MISSING
    index: int | None = None

    def for_iteration(self, item: Any, index: int) -> TemplateContext:
        """Context for one pass through a loop body."""
        return TemplateContext(
            state=self.state,
            parameters=self.parameters,
            global_state=self.global_state,
            item=item,
            index=index,
        )

    def lookup(self, ref: TemplateReference) -> Any:
        """Value for ``ref`` or ``_MISSING``."""
        if ref.root == STATE:
            return _get_path(self.state, ref.path)
        if ref.root == PARAMETERS:
            return _get_path(self.parameters, ref.path)
        if ref.root == GLOBAL_STATE:
            return _get_path(self.global_state, ref.path)
        if ref.root == ITEM:
            if self.item is _MISSING:
                return _MISSING
            return _get_path(self.item, ref.path)
        if ref.root == INDEX:
            return _MISSING if self.index is None else self.index
        return _MISSING


def _get_path(value: Any, path: tuple[str, ...]) -> Any:
    for segment in path:
        if isinstance(value, dict):
            if segment not in value:
                return _MISSING
            value = value[segment]
        elif isinstance(value, list) and segment.isdigit():
            position = int(segment)
            if position >= len(value):
                return _MISSING
            value = value[position]
        else:
            return _MISSING
    return value


def _render(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, (dict, list, bool)):
        return json.dumps(value)
    return str(value)


def _resolve_token(token: str, context: TemplateContext, strict: bool) -> Any:
    ref = parse_reference(token)
    value = context.lookup(ref)
    if value is _MISSING:
        if strict:
            raise UnresolvedReferenceError(f"nothing found for {{{{{ref.raw}}}}}")
        return None
    return value


def resolve_template(text: str, context: TemplateContext, strict: bool = False) -> Any:
    """Substitute tokens in ``text``.

    A string that is exactly one token yields the raw value (a list stays a
    list). Otherwise tokens are rendered into the text, with objects and
    arrays as JSON. Missing values render as empty (or None for a lone
    token) unless ``strict``, which raises UnresolvedReferenceError.
    Malformed tokens always raise TemplateReferenceError.
    """
    single = _SINGLE_TOKEN.match(text)
    if single and "{{" not in single.group(1):
        return _resolve_token(single.group(1), context, strict)

    def replace(match: re.Match) -> str:
        return _render(_resolve_token(match.group(1), context, strict))

    return TOKEN_PATTERN.sub(replace, text)


def resolve_value(value: Any, context: TemplateContext, strict: bool = False) -> Any:
    """Resolve tokens in every string nested inside ``value``."""
    if isinstance(value, str):
        return resolve_template(value, context, strict)
    if isinstance(value, dict):
        return {key: resolve_value(item, context, strict) for key, item in value.items()}
    if isinstance(value, list):
        return [resolve_value(item, context, strict) for item in value]
    return value
