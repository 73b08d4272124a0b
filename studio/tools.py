"""Tool search ranking and tool-step parameter binding."""

from collections.abc import Iterable

from studio.models.step import ToolConfig
from studio.models.tool import ToolInfo, ToolsByServer, ToolSummary

# relevance weights
EXACT_NAME = 1000
NAME_PREFIX = 500
NAME_TOKEN = 300
NAME_SUBSTRING = 200
EXACT_SERVER = 150
SERVER_SUBSTRING = 50
DESCRIPTION_SUBSTRING = 25
CUSTOM_BOOST = 10


def score_tool(tool: ToolInfo, query: str) -> int:
    """Score how well ``tool`` matches ``query``. Empty query scores 0.

    Name tiers are exclusive (exact, prefix, ``_``-token, substring); the
    server, description and custom-source bonuses add on top.
    """
    if not query:
        return 0
    q = query.lower()
    name = tool.name.lower()
    server = tool.server.lower()
    description = tool.description.lower()

    score = 0
    if name == q:
        score += EXACT_NAME
    elif name.startswith(q):
        score += NAME_PREFIX
    elif f"_{q}" in name or f"{q}_" in name or q in name.split("_"):
        score += NAME_TOKEN
    elif q in name:
        score += NAME_SUBSTRING

    if server == q:
        score += EXACT_SERVER
    elif q in server:
        score += SERVER_SUBSTRING

    if q in description:
        score += DESCRIPTION_SUBSTRING

    if tool.is_custom:
        score += CUSTOM_BOOST

    return score


def _matches_any_field(tool: ToolInfo, q: str) -> bool:
    return q in tool.name.lower() or q in tool.description.lower() or q in tool.server.lower()


def rank_tools(tools: Iterable[ToolInfo], query: str) -> list[ToolInfo]:
    """Filter and order tools for a search box.

    Highest score first, then custom tools, then by name. With an empty
    query every tool is kept.
    """
    q = query.lower()
    scored = [(tool, score_tool(tool, query)) for tool in tools]
    if query:
        scored = [
            (tool, score) for tool, score in scored
            if score > 0 or _matches_any_field(tool, q)
        ]
    scored.sort(
        key=lambda pair: (
            -pair[1],
            0 if pair[0].is_custom else 1,
            pair[0].name.casefold(),
            pair[0].name,
        )
    )
    return [tool for tool, _ in scored]


def find_tool(tools: Iterable[ToolInfo], name: str) -> ToolInfo | None:
    for tool in tools:
        if tool.name == name:
            return tool
    return None


def required_parameters(tool: ToolInfo) -> list[str]:
    return [name for name in tool.input_schema.required if name in tool.input_schema.properties]


def sync_tool_parameters(existing: dict[str, str], tool: ToolInfo) -> dict[str, str]:
    """Re-key parameter bindings to ``tool``'s input schema.

    Keys still in the schema keep their value, new keys start empty and
    keys the schema no longer declares are dropped. Schema order wins.
    """
    return {name: existing.get(name) or "" for name in tool.input_schema.properties}


def bind_tool(config: ToolConfig, tool: ToolInfo | None, tool_name: str | None = None) -> ToolConfig:
    """Point a tool step at another tool.

    With a schema-bearing ``tool`` the parameters are re-synced; otherwise
    only the name changes and the freeform ``input_mapping`` stays in use.
    """
    name = tool.name if tool is not None else (tool_name or "")
    update: dict = {"tool_name": name}
    if tool is not None and tool.has_schema:
        update["parameters"] = sync_tool_parameters(config.parameters, tool)
    return config.model_copy(update=update)


def missing_required_parameters(config: ToolConfig, tool: ToolInfo) -> list[str]:
    """Required schema inputs that have no binding yet."""
    return [name for name in required_parameters(tool) if not config.parameters.get(name)]


def group_by_server(tools: Iterable[ToolInfo]) -> list[ToolsByServer]:
    """Group tools by (server, source) in first-seen order."""
    groups: dict[tuple[str, str], ToolsByServer] = {}
    for tool in tools:
        key = (tool.server, tool.source)
        group = groups.get(key)
        if group is None:
            group = ToolsByServer(
                server=tool.server,
                source=tool.source,
                connection_id=tool.connection_id,
            )
            groups[key] = group
        group.tools.append(ToolSummary(name=tool.name, description=tool.description))
        group.count += 1
    return list(groups.values())
