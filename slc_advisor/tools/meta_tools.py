"""Read-only tools: venture profile, completion status and sibling threads."""

from typing import Any, Literal

from pydantic import Field

from slc_advisor.config import THREAD_CONTEXT_DEFAULT, THREAD_CONTEXT_MAX, AgentStatus

from .canvas_tools import EmptyInput
from .types import ToolContext, ToolDefinition, ToolInput


class ThreadContextInput(ToolInput):
    mode: Literal["summaries", "messages"] = Field(
        ...,
        description=(
            'Mode: "summaries" returns all sibling thread summaries, "messages" fetches recent messages '
            "from a specific thread"
        ),
    )
    thread_id: str | None = Field(
        default=None,
        description='Required when mode is "messages": The ID of the sibling thread to fetch messages from',
    )
    limit: int = Field(
        default=THREAD_CONTEXT_DEFAULT,
        ge=1,
        le=THREAD_CONTEXT_MAX,
        description='Maximum number of messages to return (only for "messages" mode)',
    )


def _get_venture_profile(ctx: ToolContext, data: EmptyInput) -> dict[str, Any]:
    ctx.set_status(AgentStatus.SEARCHING, "Getting venture profile...")
    profile = ctx.canvas.get_venture_profile()
    return {**profile.to_wire(), "filteringDimensions": profile.filtering_dimensions()}


def _get_completion_status(ctx: ToolContext, data: EmptyInput) -> dict[str, Any]:
    ctx.set_status(AgentStatus.SEARCHING, "Getting completion status...")
    completion = ctx.canvas.get_overall_completion()
    return {
        "completionPercentage": completion.percentage,
        "completedSections": completion.completed_sections,
        "incompleteSections": completion.missing_sections,
        "impactModelComplete": "impact" in completion.completed_sections,
        "suggestedNextSection": completion.missing_sections[0] if completion.missing_sections else None,
    }


def _get_thread_context(ctx: ToolContext, data: ThreadContextInput) -> dict[str, Any]:
    ctx.set_status(AgentStatus.SEARCHING, "Getting thread context...")
    if ctx.threads is None:
        return {"error": "Thread history is not available for this session"}

    if data.mode == "summaries":
        summaries = ctx.threads.summaries(exclude_thread_id=ctx.thread_id)
        return {"mode": "summaries", "threadCount": len(summaries), "threads": summaries}

    if not data.thread_id:
        return {"error": 'threadId is required when mode is "messages"'}
    if data.thread_id == ctx.thread_id:
        return {"error": "threadId is the current thread; use the conversation history instead"}

    thread = ctx.threads.get_thread(data.thread_id)
    if thread is None:
        return {"error": "Thread not found or does not belong to this canvas"}
    if thread.archived:
        return {"error": "Thread is archived"}

    return {
        "mode": "messages",
        "threadId": thread.id,
        "threadTitle": thread.name or "Untitled",
        "messages": ctx.threads.recent_messages(thread.id, data.limit),
    }


GET_VENTURE_PROFILE = ToolDefinition(
    name="get_venture_profile",
    description=(
        "Get the current venture dimension profile from the canvas. Returns the inferred dimensions "
        "and the subset trusted enough to filter knowledge search."
    ),
    input_model=EmptyInput,
    handler=_get_venture_profile,
)

GET_COMPLETION_STATUS = ToolDefinition(
    name="get_completion_status",
    description=(
        "Get the current canvas completion status including percentage, completed sections, "
        "incomplete sections, and suggested next section to work on."
    ),
    input_model=EmptyInput,
    handler=_get_completion_status,
)

GET_THREAD_CONTEXT = ToolDefinition(
    name="get_thread_context",
    description=(
        "Get context from sibling threads within the same canvas. Use it when the user refers to "
        'something discussed in another conversation. "summaries" gives a quick overview of every '
        'other thread; "messages" fetches recent messages from one thread.'
    ),
    input_model=ThreadContextInput,
    handler=_get_thread_context,
)

META_TOOLS = (GET_VENTURE_PROFILE, GET_COMPLETION_STATUS, GET_THREAD_CONTEXT)
