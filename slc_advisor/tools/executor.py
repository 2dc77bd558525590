"""Tool lookup, input validation, execution and broadcast.

Unknown tools and invalid input are hard errors raised before any handler
runs. Rule violations inside a handler (unmet dependency, short content) are
ordinary results and are returned to the caller as data.
"""

import logging
from collections.abc import Callable, Mapping
from typing import Any

from pydantic import BaseModel, ValidationError

from slc_advisor.errors import ToolInputError, UnknownToolError
from slc_advisor.telemetry.spans import tool_span

from .registry import TOOL_REGISTRY
from .types import ToolContext, ToolDefinition

logger = logging.getLogger(__name__)


class ToolExecutor:
    """Runs advisor tools against a context.

    Args:
        registry: Tool definitions keyed by name. Defaults to the full catalog.
    """

    def __init__(self, registry: Mapping[str, ToolDefinition] | None = None):
        self.registry = registry if registry is not None else TOOL_REGISTRY

    def get_tool(self, name: str) -> ToolDefinition:
        """Look up a tool by name.

        Raises:
            UnknownToolError: If no tool has this name
        """
        definition = self.registry.get(name)
        if definition is None:
            raise UnknownToolError(name)
        return definition

    def validate_input(self, definition: ToolDefinition, raw_input: Any) -> BaseModel:
        """Validate raw input against the tool's input model.

        Raises:
            ToolInputError: Listing every offending field
        """
        try:
            return definition.input_model.model_validate(raw_input if raw_input is not None else {})
        except ValidationError as e:
            fields = []
            for error in e.errors():
                path = ".".join(str(part) for part in error["loc"]) or "input"
                if path not in fields:
                    fields.append(path)
            details = "; ".join(error["msg"] for error in e.errors())
            raise ToolInputError(definition.name, fields, details) from e

    def execute(self, name: str, raw_input: Any, ctx: ToolContext) -> dict[str, Any]:
        """Look up, validate and run a tool."""
        definition = self.get_tool(name)
        data = self.validate_input(definition, raw_input)

        logger.info(f"Executing tool: {name}")
        with tool_span(name, definition.modifies_canvas):
            return definition.handler(ctx, data)

    def execute_with_broadcast(
        self,
        name: str,
        raw_input: Any,
        ctx: ToolContext,
        broadcast: Callable[[], None],
    ) -> dict[str, Any]:
        """Run a tool and broadcast the canvas once if the tool mutates it.

        The broadcast is skipped when lookup, validation or the handler
        raises. Read-only tools never broadcast.
        """
        result = self.execute(name, raw_input, ctx)
        if self.get_tool(name).modifies_canvas:
            broadcast()
        return result
