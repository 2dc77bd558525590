"""Tool definitions and the context handed to tool handlers.

A tool is data: a name, a description for the LLM, a pydantic input model
and a handler. Whether a tool mutates the canvas is a property of its
definition, which is what the executor uses to decide on broadcasts.
"""

from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from slc_advisor.config import AgentStatus

if TYPE_CHECKING:
    from slc_advisor.canvas.aggregate import CanvasAggregate
    from slc_advisor.knowledge.search import KnowledgeSearch
    from slc_advisor.session.threads import ThreadStore


class ToolInput(BaseModel):
    """Base class for tool input models. Field names are camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


@dataclass
class ToolContext:
    """Everything a tool handler may touch.

    Attributes:
        canvas: The canvas this session is bound to
        set_status: Updates the session status shown to clients
        knowledge: Knowledge search, or None when no index is configured
        threads: Thread store of the canvas, for cross-thread reads
        thread_id: Thread the current turn belongs to
    """

    canvas: "CanvasAggregate"
    set_status: Callable[[AgentStatus, str], None]
    knowledge: "KnowledgeSearch | None" = None
    threads: "ThreadStore | None" = None
    thread_id: str | None = None


ToolHandler = Callable[[ToolContext, Any], dict[str, Any]]


@dataclass(frozen=True)
class ToolDefinition:
    """One advisor tool.

    Attributes:
        name: snake_case tool name the LLM calls
        description: Shown to the LLM
        input_model: Pydantic model validating the raw input
        handler: Called with the context and the validated input
        modifies_canvas: True when a successful call may change the canvas
    """

    name: str
    description: str
    input_model: type[ToolInput]
    handler: ToolHandler
    modifies_canvas: bool = False

    def input_schema(self) -> dict[str, Any]:
        """JSON schema of the input, with camelCase property names."""
        return self.input_model.model_json_schema(by_alias=True)

    def describe(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.input_schema(),
            "modifiesCanvas": self.modifies_canvas,
        }
