"""File-backed registry of tools and neurons.

Tool servers register what they expose out of band; the studio only reads
the resulting JSON files. Custom tools carry an ``ownerId`` and are only
listed for that user.
"""

import json
import logging
from pathlib import Path
from typing import Any

from studio.models.neuron import NeuronInfo
from studio.models.tool import CUSTOM_SOURCE, ToolInfo
from studio_server import config

logger = logging.getLogger(__name__)


def _read_entries(path: Path, key: str) -> list[dict[str, Any]]:
    """Entries of a registry file: a list, or an object holding one under ``key``."""
    if not path.exists():
        logger.debug("registry file %s not found, treating as empty", path)
        return []
    data = json.loads(path.read_text(encoding="utf-8"))
    if isinstance(data, dict):
        data = data.get(key, [])
    if not isinstance(data, list):
        raise ValueError(f"{path} must contain a list of {key}")
    return data


class Registry:
    def __init__(self, tools_file: Path, neurons_file: Path) -> None:
        self.tools_file = tools_file
        self.neurons_file = neurons_file

    def list_tools(self, user_id: str) -> list[ToolInfo]:
        """Global tools plus the caller's custom tools.

        Raises OSError / ValueError when the registry cannot be read.
        """
        tools = []
        for entry in _read_entries(self.tools_file, "tools"):
            if entry.get("source") == CUSTOM_SOURCE and entry.get("ownerId") != user_id:
                continue
            tools.append(ToolInfo.model_validate(entry))
        return tools

    def list_neurons(self) -> list[NeuronInfo]:
        return [NeuronInfo.model_validate(e) for e in _read_entries(self.neurons_file, "neurons")]


def get_registry() -> Registry:
    """FastAPI dependency; tests override it."""
    return Registry(config.STUDIO_TOOLS_FILE, config.STUDIO_NEURONS_FILE)
