"""Tools available to tool steps, as reported by ``GET /tools``."""

from typing import Any

from pydantic import ConfigDict, Field

from studio.models.base import StudioModel

CUSTOM_SOURCE = "custom"
GLOBAL_SOURCE = "global"


class ToolInputSchema(StudioModel):
    """JSON-Schema object describing a tool's inputs."""

    model_config = ConfigDict(extra="allow")

    type: str = "object"
    properties: dict[str, dict[str, Any]] = Field(default_factory=dict)
    required: list[str] = Field(default_factory=list)


class ToolInfo(StudioModel):
    """A single tool exposed by an MCP server."""

    server: str = ""
    name: str
    description: str = ""
    input_schema: ToolInputSchema = Field(default_factory=ToolInputSchema)
    source: str = GLOBAL_SOURCE  # "global" or "custom"
    connection_id: str | None = None

    @property
    def is_custom(self) -> bool:
        return self.source == CUSTOM_SOURCE

    @property
    def has_schema(self) -> bool:
        return bool(self.input_schema.properties)


class ToolSummary(StudioModel):
    name: str
    description: str = ""


class ToolsByServer(StudioModel):
    server: str
    source: str = GLOBAL_SOURCE
    connection_id: str | None = None
    count: int = 0
    tools: list[ToolSummary] = Field(default_factory=list)


class ToolSources(StudioModel):
    global_: list[str] = Field(default_factory=list, alias="global")
    custom: list[str] = Field(default_factory=list)


class ToolListing(StudioModel):
    """Response of ``GET /tools``."""

    tools: list[ToolInfo] = Field(default_factory=list)
    tools_by_server: list[ToolsByServer] = Field(default_factory=list)
    sources: ToolSources = Field(default_factory=ToolSources)
