"""Knowledge-base search tools.

All three tools share one response shape: ``success`` plus either the
results or a message telling the agent how to rephrase.
"""

import logging
from typing import Any, Literal

from pydantic import BaseModel, Field

from slc_advisor.config import (
    EXAMPLE_SEARCH_DEFAULT,
    KNOWLEDGE_SEARCH_DEFAULT,
    KNOWLEDGE_SEARCH_MAX,
    METHODOLOGY_SEARCH_DEFAULT,
    SEARCH_MAX_LIMIT,
    AgentStatus,
    ContentType,
)
from slc_advisor.knowledge.search import (
    SearchRequest,
    SearchResponse,
    dimension_filter,
    example_filters,
    parse_query_intent,
)

from .types import ToolContext, ToolDefinition, ToolInput

logger = logging.getLogger(__name__)

NO_KNOWLEDGE_MESSAGE = "The knowledge base is not configured for this session."
NO_CONTENT_MESSAGE = (
    "Found matching documents but content is unavailable. The knowledge base may need to be re-indexed."
)


class MethodologySearchInput(ToolInput):
    query: str = Field(..., min_length=1, description="Natural language query about SLC methodology")
    limit: int = Field(default=METHODOLOGY_SEARCH_DEFAULT, ge=1, le=SEARCH_MAX_LIMIT)


class ExampleFilters(ToolInput):
    stage: Literal["idea", "validation", "growth", "scale"] | None = Field(
        default=None, description="Venture development stage"
    )
    impact_area: str | None = Field(
        default=None, description="Primary impact area (e.g., health, education, environment)"
    )
    mechanism: Literal["product", "service", "platform", "hybrid"] | None = Field(
        default=None, description="How impact is delivered"
    )
    legal_structure: Literal["nonprofit", "forprofit", "hybrid", "cooperative"] | None = Field(
        default=None, description="Legal/organizational structure"
    )
    revenue_source: Literal["earned", "grants", "donations", "mixed"] | None = Field(
        default=None, description="Primary revenue source"
    )
    funding_source: Literal["bootstrapped", "angel", "vc", "grants", "crowdfunding"] | None = Field(
        default=None, description="Primary funding source"
    )
    industry: str | None = Field(default=None, description="Industry vertical")


class ExampleSearchInput(ToolInput):
    query: str = Field(..., min_length=1, description="Natural language query about venture examples")
    filters: ExampleFilters | None = Field(default=None, description="Venture dimension filters")
    limit: int = Field(default=EXAMPLE_SEARCH_DEFAULT, ge=1, le=SEARCH_MAX_LIMIT)


class KnowledgeSearchInput(ToolInput):
    query: str = Field(..., min_length=1, description="Natural language search query")
    content_type: Literal["methodology", "example", "reference", "all"] = Field(
        default="all", description="Filter by content type (default: all)"
    )
    limit: int = Field(default=KNOWLEDGE_SEARCH_DEFAULT, ge=1, le=KNOWLEDGE_SEARCH_MAX)


def shape_search_response(response: SearchResponse, empty_message: str) -> dict[str, Any]:
    """Turn a search response into the payload the agent sees."""
    if not response.results:
        return {"success": False, "message": empty_message, "results": []}

    if not any(doc.content for doc in response.results):
        return {
            "success": False,
            "message": NO_CONTENT_MESSAGE,
            "metadata": [doc.metadata for doc in response.results],
            "warning": response.warning,
        }

    payload: dict[str, Any] = {
        "success": True,
        "results": [doc.model_dump(mode="json") for doc in response.results],
        "totalFound": response.total_found,
    }
    if response.warning:
        payload["warning"] = response.warning
    return payload


def _wire_filters(model: BaseModel | None) -> dict[str, str | None]:
    if model is None:
        return {}
    return model.model_dump(by_alias=True)


# -----------------------------------------------------------------------------
# Handlers
# -----------------------------------------------------------------------------


def _search_methodology(ctx: ToolContext, data: MethodologySearchInput) -> dict[str, Any]:
    ctx.set_status(AgentStatus.SEARCHING, "Searching methodology...")
    if ctx.knowledge is None:
        return {"success": False, "message": NO_KNOWLEDGE_MESSAGE, "results": []}

    intent = parse_query_intent(data.query)
    response = ctx.knowledge.search(
        SearchRequest(
            query=data.query,
            content_type=ContentType.METHODOLOGY.value,
            canvas_section=intent.target_section,
            venture_model=None if intent.target_section else intent.target_model,
            limit=data.limit,
        )
    )
    return shape_search_response(
        response,
        "No methodology documents found matching your query. Try rephrasing or using broader terms.",
    )


def _search_examples(ctx: ToolContext, data: ExampleSearchInput) -> dict[str, Any]:
    ctx.set_status(AgentStatus.SEARCHING, "Searching examples...")
    if ctx.knowledge is None:
        return {"success": False, "message": NO_KNOWLEDGE_MESSAGE, "results": []}

    # Explicit filters win over the ones inferred from the venture profile
    filters = dimension_filter(ctx.canvas.get_dimensions_for_filtering())
    filters.update(example_filters(_wire_filters(data.filters)))
    logger.debug(f"Example search filters: {filters}")

    response = ctx.knowledge.search(
        SearchRequest(
            query=data.query,
            content_type=ContentType.EXAMPLE.value,
            filters=filters,
            limit=data.limit,
        )
    )
    return shape_search_response(
        response,
        "No example ventures found matching your query. Try broader search terms or fewer filters.",
    )


def _search_knowledge_base(ctx: ToolContext, data: KnowledgeSearchInput) -> dict[str, Any]:
    ctx.set_status(AgentStatus.SEARCHING, "Searching knowledge base...")
    if ctx.knowledge is None:
        return {"success": False, "message": NO_KNOWLEDGE_MESSAGE, "results": []}

    response = ctx.knowledge.search(
        SearchRequest(
            query=data.query,
            content_type=None if data.content_type == "all" else data.content_type,
            limit=data.limit,
        )
    )
    return shape_search_response(response, "No documents found matching your query. Try different search terms.")


# -----------------------------------------------------------------------------
# Definitions
# -----------------------------------------------------------------------------

SEARCH_METHODOLOGY = ToolDefinition(
    name="search_methodology",
    description=(
        "Search the Social Lean Canvas methodology documentation. Use this to find guidance on how to "
        "fill canvas sections, best practices, and conceptual explanations."
    ),
    input_model=MethodologySearchInput,
    handler=_search_methodology,
)

SEARCH_EXAMPLES = ToolDefinition(
    name="search_examples",
    description=(
        "Search venture examples from the knowledge base. Use venture dimensions to filter for relevant "
        "examples matching the current venture profile."
    ),
    input_model=ExampleSearchInput,
    handler=_search_examples,
)

SEARCH_KNOWLEDGE_BASE = ToolDefinition(
    name="search_knowledge_base",
    description=(
        "General semantic search across the entire knowledge base including methodology docs, examples, "
        "and reference materials."
    ),
    input_model=KnowledgeSearchInput,
    handler=_search_knowledge_base,
)

KNOWLEDGE_TOOLS = (SEARCH_METHODOLOGY, SEARCH_EXAMPLES, SEARCH_KNOWLEDGE_BASE)
