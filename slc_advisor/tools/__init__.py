"""Advisor tools: canvas writes, canvas reads, knowledge search and thread context."""

from .executor import ToolExecutor
from .registry import MUTATING_TOOLS, TOOL_REGISTRY, tool_specs
from .types import ToolContext, ToolDefinition, ToolInput

__all__ = [
    "MUTATING_TOOLS",
    "TOOL_REGISTRY",
    "ToolContext",
    "ToolDefinition",
    "ToolExecutor",
    "ToolInput",
    "tool_specs",
]
