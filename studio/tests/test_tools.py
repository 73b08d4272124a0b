"""Tests for tool search ranking and tool-step binding."""

from studio.models.step import ToolConfig
from studio.models.tool import ToolInfo, ToolInputSchema
from studio.tools import (
    bind_tool,
    find_tool,
    group_by_server,
    missing_required_parameters,
    rank_tools,
    required_parameters,
    score_tool,
    sync_tool_parameters,
)


def _tool(name, server="s1", description="", source="global", properties=(), required=()):
    return ToolInfo(
        name=name,
        server=server,
        description=description,
        source=source,
        input_schema=ToolInputSchema(
            properties={p: {"type": "string"} for p in properties},
            required=list(required),
        ),
    )


class TestScoreTool:
    """Test individual relevance scores."""

    def test_prefix_beats_token(self):
        """A custom prefix match should outrank a token match."""
        web_search = _tool("web_search", source="builtin")
        search_web = _tool("search_web", source="custom")

        assert score_tool(search_web, "search") == 510
        assert score_tool(web_search, "search") == 300
        assert rank_tools([web_search, search_web], "search") == [search_web, web_search]

    def test_exact_name(self):
        """An exact name match should score 1000 plus bonuses."""
        assert score_tool(_tool("scrape", server="scrape"), "scrape") == 1000 + 150
        assert score_tool(_tool("Scrape"), "SCRAPE") == 1000

    def test_substring_and_description(self):
        """Plain substrings and description hits add their weights."""
        assert score_tool(_tool("research"), "search") == 200
        assert score_tool(_tool("fetch", description="Search engine proxy"), "search") == 25

    def test_server_match(self):
        """Server names add 150 for exact and 50 for substring matches."""
        assert score_tool(_tool("query", server="websearch"), "search") == 50

    def test_empty_query(self):
        """An empty query scores zero."""
        assert score_tool(_tool("web_search"), "") == 0


class TestRankTools:
    """Test ordering and filtering."""

    def test_empty_query_keeps_all_custom_first(self):
        """Without a query every tool is listed, custom first, then by name."""
        tools = [_tool("beta"), _tool("alpha"), _tool("zeta", source="custom")]
        assert [t.name for t in rank_tools(tools, "")] == ["zeta", "alpha", "beta"]

    def test_non_matching_dropped(self):
        """Tools with no match anywhere should be filtered out."""
        tools = [_tool("web_search"), _tool("send_email", server="mail")]
        assert [t.name for t in rank_tools(tools, "search")] == ["web_search"]

    def test_tie_broken_by_source_then_name(self):
        """Equal scores should order custom first, then by name."""
        tools = [
            _tool("search_b"),
            _tool("search_a"),
            _tool("search_c", source="custom", server="x"),
        ]
        # search_c: 500 + 10; the others: 500
        assert [t.name for t in rank_tools(tools, "search")] == ["search_c", "search_a", "search_b"]

    def test_find_tool(self):
        """Tools should be found by exact name."""
        tools = [_tool("a"), _tool("b")]
        assert find_tool(tools, "b").name == "b"
        assert find_tool(tools, "c") is None


class TestParameterBinding:
    """Test re-keying tool parameters to a schema."""

    def test_resync_keeps_shared_keys(self):
        """Shared keys keep their value, new keys start empty, stale keys go."""
        tool = _tool("new_tool", properties=("b", "c"))
        assert sync_tool_parameters({"a": "x", "b": "y"}, tool) == {"b": "y", "c": ""}

    def test_bind_tool_with_schema(self):
        """Binding a schema-bearing tool should resync the parameters."""
        config = ToolConfig(tool_name="old_tool", parameters={"a": "x", "b": "y"})
        bound = bind_tool(config, _tool("new_tool", properties=("b", "c")))
        assert bound.tool_name == "new_tool"
        assert bound.parameters == {"b": "y", "c": ""}
        assert config.tool_name == "old_tool"

    def test_bind_tool_without_schema(self):
        """Without a schema only the name changes and the freeform mapping stays."""
        config = ToolConfig(tool_name="old_tool", input_mapping="{{state.payload}}")
        bound = bind_tool(config, _tool("raw_tool"))
        assert bound.tool_name == "raw_tool"
        assert bound.input_mapping == "{{state.payload}}"
        assert bound.parameters == {}

    def test_bind_unknown_tool_name(self):
        """A typed name with no known tool should still be recorded."""
        bound = bind_tool(ToolConfig(), None, "typed_tool")
        assert bound.tool_name == "typed_tool"

    def test_missing_required(self):
        """Required inputs without a binding should be reported."""
        tool = _tool("web_search", properties=("query", "count"), required=("query",))
        assert required_parameters(tool) == ["query"]
        assert missing_required_parameters(ToolConfig(parameters={"query": ""}), tool) == ["query"]
        assert missing_required_parameters(ToolConfig(parameters={"query": "{{state.q}}"}), tool) == []


class TestGroupByServer:
    """Test the per-server listing."""

    def test_groups_in_first_seen_order(self):
        """Tools should be grouped by server and source in order of appearance."""
        tools = [
            _tool("web_search", server="web"),
            _tool("send_email", server="mail"),
            _tool("scrape_url", server="web"),
        ]
        groups = group_by_server(tools)
        assert [g.server for g in groups] == ["web", "mail"]
        assert groups[0].count == 2
        assert [t.name for t in groups[0].tools] == ["web_search", "scrape_url"]
