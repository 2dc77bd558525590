"""The advisor tool catalog, built once at import time."""

from types import MappingProxyType

from .canvas_tools import CANVAS_TOOLS
from .knowledge_tools import KNOWLEDGE_TOOLS
from .meta_tools import META_TOOLS
from .types import ToolDefinition


def _build_registry(*groups: tuple[ToolDefinition, ...]) -> MappingProxyType:
    registry: dict[str, ToolDefinition] = {}
    for group in groups:
        for definition in group:
            if definition.name in registry:
                raise ValueError(f"Duplicate tool name: {definition.name}")
            registry[definition.name] = definition
    return MappingProxyType(registry)


TOOL_REGISTRY = _build_registry(CANVAS_TOOLS, META_TOOLS, KNOWLEDGE_TOOLS)

MUTATING_TOOLS = frozenset(name for name, definition in TOOL_REGISTRY.items() if definition.modifies_canvas)


def tool_specs() -> list[dict]:
    """Describe every registered tool for an LLM or a client."""
    return [definition.describe() for definition in TOOL_REGISTRY.values()]
