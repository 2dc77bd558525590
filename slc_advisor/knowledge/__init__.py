"""Knowledge-base search: query shaping, LanceDB retrieval and prompt context."""

from .search import (
    KnowledgeSearch,
    QueryIntent,
    RetrievedDocument,
    SearchRequest,
    SearchResponse,
    build_rag_context,
    dimension_filter,
    example_filters,
    parse_query_intent,
    request_for_intent,
)

__all__ = [
    "KnowledgeSearch",
    "QueryIntent",
    "RetrievedDocument",
    "SearchRequest",
    "SearchResponse",
    "build_rag_context",
    "dimension_filter",
    "example_filters",
    "parse_query_intent",
    "request_for_intent",
]
