"""Knowledge search contract and query shaping.

``KnowledgeSearch`` is the capability the tools call. This module also holds
the pure helpers that turn a user message and a venture profile into
metadata filters, and retrieved documents into prompt context.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, Field

from slc_advisor.canvas.sections import SECTION_TO_MODEL
from slc_advisor.config import ContentType

# Stored ``content_type`` metadata values, keyed by ContentType value
CONTENT_TYPE_METADATA: dict[str, str] = {
    ContentType.METHODOLOGY.value: "methodology",
    ContentType.EXAMPLE.value: "canvas-example",
    ContentType.REFERENCE.value: "reference",
}

# Example-search filter names mapped to document metadata keys
EXAMPLE_FILTER_METADATA: dict[str, str] = {
    "stage": "venture_stage",
    "impactArea": "primary_impact_area",
    "mechanism": "impact_mechanism",
    "legalStructure": "legal_structure",
    "revenueSource": "revenue_source",
    "fundingSource": "funding_source",
    "industry": "primary_industry",
}


class SearchRequest(BaseModel):
    """One knowledge-base query.

    ``filters`` holds venture-dimension filters. They are dropped on a retry
    when the filtered query finds nothing; the content type, section and
    model restrictions are always kept.
    """

    query: str = Field(..., min_length=1)
    content_type: str | None = Field(default=None, description="ContentType value, None for all")
    canvas_section: str | None = None
    venture_model: str | None = None
    filters: dict[str, str] = Field(default_factory=dict)
    limit: int = Field(default=5, ge=1)


class RetrievedDocument(BaseModel):
    id: str
    score: float
    content: str = ""
    metadata: dict[str, Any] = Field(default_factory=dict)


class SearchResponse(BaseModel):
    results: list[RetrievedDocument] = Field(default_factory=list)
    total_found: int = 0
    warning: str | None = None


class KnowledgeSearch(ABC):
    """Semantic search over methodology, examples and reference material."""

    @abstractmethod
    def search(self, request: SearchRequest) -> SearchResponse:
        """Run a query.

        Raises:
            UpstreamError: If the embedding service or index is unavailable.
        """
        pass


# =============================================================================
# Query intent
# =============================================================================


@dataclass(frozen=True)
class QueryIntent:
    """What a user message is looking for.

    Attributes:
        type: "methodology", "examples" or "general"
        target_section: Most specific canvas section the message mentions
        target_model: Sub-model of that section, or one named outright
    """

    type: str = "general"
    target_section: str | None = None
    target_model: str | None = None


_EXAMPLE_KEYWORDS = ("example", "show me", "case study", "how did", "ventures like")
_METHODOLOGY_KEYWORDS = ("how do i", "how to", "what is", "explain", "help me understand")

# Checked in order; the first section with a matching keyword wins.
_SECTION_KEYWORDS: dict[str, tuple[str, ...]] = {
    "purpose": ("purpose", "mission", "why"),
    "customers": ("customer", "target audience", "who"),
    "jobsToBeDone": ("job", "jobs to be done", "jtbd", "task", "problem"),
    "valueProposition": ("value proposition", "uvp", "unique value", "why choose"),
    "solution": ("solution", "product", "service", "offering"),
    "channels": ("channel", "distribution", "reach", "marketing"),
    "revenue": ("revenue", "pricing", "monetization", "income", "business model"),
    "costs": ("cost", "expense", "budget", "overhead"),
    "keyMetrics": ("metric", "kpi", "measure", "track", "success"),
    "advantage": ("advantage", "moat", "competitive", "differentiation"),
    "impact": ("impact", "outcome", "change", "social", "environmental"),
}


def parse_query_intent(message: str) -> QueryIntent:
    """Classify a message by keyword tables."""
    lower = message.lower()

    if any(kw in lower for kw in _EXAMPLE_KEYWORDS):
        intent_type = "examples"
    elif any(kw in lower for kw in _METHODOLOGY_KEYWORDS):
        intent_type = "methodology"
    else:
        intent_type = "general"

    target_section = None
    for section, keywords in _SECTION_KEYWORDS.items():
        if any(kw in lower for kw in keywords):
            target_section = section
            break

    target_model = None
    if target_section is not None:
        model = SECTION_TO_MODEL[target_section]
        target_model = model.value if model else None

    if target_model is None:
        if "customer model" in lower:
            target_model = "customer"
        elif "economic model" in lower or "business model" in lower:
            target_model = "economic"
        elif "impact model" in lower or "theory of change" in lower:
            target_model = "impact"

    return QueryIntent(type=intent_type, target_section=target_section, target_model=target_model)


# =============================================================================
# Metadata filters
# =============================================================================


def dimension_filter(dimensions: dict[str, Any]) -> dict[str, str]:
    """Metadata filters derived from venture dimensions.

    Multi-valued dimensions filter on their first (primary) value.
    """
    result: dict[str, str] = {}
    if dimensions.get("ventureStage"):
        result["venture_stage"] = dimensions["ventureStage"]
    if dimensions.get("impactAreas"):
        result["primary_impact_area"] = dimensions["impactAreas"][0]
    if dimensions.get("industries"):
        result["primary_industry"] = dimensions["industries"][0]
    return result


_INTENT_CONTENT_TYPES: dict[str, str] = {
    "examples": ContentType.EXAMPLE.value,
    "methodology": ContentType.METHODOLOGY.value,
}


def request_for_intent(query: str, intent: QueryIntent, dimensions: dict[str, Any], limit: int) -> SearchRequest:
    """Search request for a user message.

    The intent restricts content type and section (or model); the venture
    dimensions become the droppable filters.
    """
    return SearchRequest(
        query=query,
        content_type=_INTENT_CONTENT_TYPES.get(intent.type),
        canvas_section=intent.target_section,
        venture_model=None if intent.target_section else intent.target_model,
        filters=dimension_filter(dimensions),
        limit=limit,
    )


def example_filters(filters: dict[str, str | None] | None) -> dict[str, str]:
    """Translate explicit example-search filters to metadata keys."""
    if not filters:
        return {}
    return {EXAMPLE_FILTER_METADATA[key]: value for key, value in filters.items() if value}


# =============================================================================
# Prompt context
# =============================================================================


def build_rag_context(documents: list[RetrievedDocument]) -> str:
    """Format retrieved documents as a prompt context block."""
    parts = []
    for index, doc in enumerate(documents, 1):
        title = doc.metadata.get("title") or f"Document {index}"
        content_type = doc.metadata.get("content_type") or "unknown"
        section = doc.metadata.get("canvas_section") or ""
        stage = doc.metadata.get("venture_stage") or ""

        header = f"[{title}]"
        if content_type == "canvas-example":
            header += f" (Example, {stage} stage)" if stage else " (Example)"
        elif content_type == "methodology":
            header += f" (Methodology, {section})" if section else " (Methodology)"

        parts.append(f"{header}\n{doc.content}")
    return "\n\n---\n\n".join(parts)
