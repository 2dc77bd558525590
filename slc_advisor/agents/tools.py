"""Strands tool functions bound to one agent session.

Every function here is a thin ``@tool`` wrapper: it forwards its arguments
to ``ToolRunner.run_tool`` so that lookup, validation, status updates and
broadcasts all go through the ``ToolExecutor``. Results go back to the LLM
as JSON strings; advisor errors are narrated back the same way so the agent
can recover.
"""

import json
import logging
from typing import Any, Protocol

from strands import tool

from slc_advisor.errors import AdvisorError

logger = logging.getLogger(__name__)

CANCELLED_MESSAGE = "The user stopped this turn. No further changes were made; do not call more tools."


class ToolRunner(Protocol):
    """What the wrappers need from a session."""

    @property
    def cancelled(self) -> bool: ...

    def run_tool(self, name: str, raw_input: dict[str, Any]) -> dict[str, Any]: ...


def _invoke(runner: ToolRunner, name: str, raw_input: dict[str, Any]) -> str:
    if runner.cancelled:
        logger.info(f"Skipping tool {name}: turn cancelled")
        return json.dumps({"success": False, "error": CANCELLED_MESSAGE})
    try:
        result = runner.run_tool(name, raw_input)
    except AdvisorError as e:
        logger.warning(f"Tool {name} failed: {e}")
        return json.dumps({"success": False, "error": str(e)})
    return json.dumps(result, default=str)


def build_advisor_tools(runner: ToolRunner) -> list:
    """Create the advisor's Strands tools bound to ``runner``."""

    @tool
    def update_purpose(content: str) -> str:
        """Update the Purpose section of the canvas.

        Purpose should explain why the venture exists and what problem it solves.

        Args:
            content: The purpose statement (at least 20 characters)
        """
        return _invoke(runner, "update_purpose", {"content": content})

    @tool
    def update_customer_section(section: str, content: str) -> str:
        """Update a Customer Model section.

        Sections: customers (who you serve), jobsToBeDone (their problems),
        valueProposition (your unique solution), solution (your product/service).
        jobsToBeDone needs customers; valueProposition needs customers and
        jobsToBeDone; solution needs valueProposition.

        Args:
            section: One of customers, jobsToBeDone, valueProposition, solution
            content: New section content (at least 20 characters)
        """
        return _invoke(runner, "update_customer_section", {"section": section, "content": content})

    @tool
    def update_economic_section(section: str, content: str) -> str:
        """Update an Economic Model section.

        Sections: channels (how you reach customers), revenue (how you make
        money), costs (major expenses), advantage (competitive moat).

        Args:
            section: One of channels, revenue, costs, advantage
            content: New section content (at least 20 characters)
        """
        return _invoke(runner, "update_economic_section", {"section": section, "content": content})

    @tool
    def update_impact_field(field: str, content: str) -> str:
        """Update an Impact Model field in the causality chain.

        The chain flows: issue -> participants -> activities -> outputs ->
        shortTermOutcomes -> mediumTermOutcomes -> longTermOutcomes -> impact.
        A field can only be written once every earlier field is filled in.

        Args:
            field: The impact chain field to update
            content: New field content (at least 10 characters)
        """
        return _invoke(runner, "update_impact_field", {"field": field, "content": content})

    @tool
    def update_key_metrics(content: str) -> str:
        """Update the Key Metrics section. Complete this last, after other sections.

        Args:
            content: How the venture measures success (at least 20 characters)
        """
        return _invoke(runner, "update_key_metrics", {"content": content})

    @tool
    def get_canvas() -> str:
        """Get the current canvas state to see what is filled in and what is missing."""
        return _invoke(runner, "get_canvas", {})

    @tool
    def get_venture_profile() -> str:
        """Get the venture dimension profile and the dimensions used to filter search."""
        return _invoke(runner, "get_venture_profile", {})

    @tool
    def get_completion_status() -> str:
        """Get completion percentage, completed and incomplete sections, and the next section to work on."""
        return _invoke(runner, "get_completion_status", {})

    @tool
    def search_methodology(query: str, limit: int = 5) -> str:
        """Search the Social Lean Canvas methodology documentation.

        Use this for guidance on filling canvas sections, best practices and
        conceptual explanations.

        Args:
            query: Natural language query about SLC methodology
            limit: Maximum number of results (1-10)
        """
        return _invoke(runner, "search_methodology", {"query": query, "limit": limit})

    @tool
    def search_examples(query: str, filters: dict[str, str] | None = None, limit: int = 3) -> str:
        """Search venture examples from the knowledge base.

        Filters are optional; the current venture profile is applied
        automatically.

        Args:
            query: Natural language query about venture examples
            filters: Optional keys: stage, impactArea, mechanism, legalStructure,
                revenueSource, fundingSource, industry
            limit: Maximum number of results (1-10)
        """
        return _invoke(runner, "search_examples", {"query": query, "filters": filters, "limit": limit})

    @tool
    def search_knowledge_base(query: str, content_type: str = "all", limit: int = 5) -> str:
        """General semantic search across methodology docs, examples and reference materials.

        Args:
            query: Natural language search query
            content_type: methodology, example, reference or all
            limit: Maximum number of results (1-20)
        """
        return _invoke(
            runner,
            "search_knowledge_base",
            {"query": query, "contentType": content_type, "limit": limit},
        )

    @tool
    def get_thread_context(mode: str, thread_id: str | None = None, limit: int = 10) -> str:
        """Get context from the user's other conversations about this canvas.

        Args:
            mode: "summaries" for an overview of every other thread, or
                "messages" for recent messages from one thread
            thread_id: Required when mode is "messages"
            limit: Maximum number of messages (1-50)
        """
        return _invoke(
            runner,
            "get_thread_context",
            {"mode": mode, "threadId": thread_id, "limit": limit},
        )

    return [
        update_purpose,
        update_customer_section,
        update_economic_section,
        update_impact_field,
        update_key_metrics,
        get_canvas,
        get_venture_profile,
        get_completion_status,
        search_methodology,
        search_examples,
        search_knowledge_base,
        get_thread_context,
    ]
