"""Custom spans for agent turns and tool executions.

Span Hierarchy:
    turn_span (one user message)
    └── agent span (created by Strands)
        └── tool_span (one advisor tool execution)

Without a configured tracer provider the OpenTelemetry API hands out
non-recording spans, so these helpers are always safe to use.
"""

import logging
from collections.abc import Generator
from contextlib import contextmanager
from typing import Any

from opentelemetry import trace
from opentelemetry.trace import Span, StatusCode

logger = logging.getLogger(__name__)

_TRACER_NAME = "slc_advisor.session"


def get_tracer() -> trace.Tracer:
    """Get the tracer used for advisor spans."""
    return trace.get_tracer(_TRACER_NAME)


@contextmanager
def _traced(name: str, attributes: dict[str, Any]) -> Generator[Span, None, None]:
    with get_tracer().start_as_current_span(name=name, attributes=attributes) as span:
        try:
            yield span
            span.set_status(StatusCode.OK)
        except Exception as e:
            span.record_exception(e)
            span.set_status(StatusCode.ERROR, str(e))
            raise


@contextmanager
def turn_span(canvas_id: str, message: str, **attributes: Any) -> Generator[Span, None, None]:
    """Create the root span for one conversational turn.

    Args:
        canvas_id: Canvas the session is bound to
        message: The user message that started the turn
        **attributes: Additional span attributes
    """
    span_attributes = {
        "canvas.id": canvas_id,
        "turn.message_length": len(message),
    }
    span_attributes.update(attributes)
    with _traced("turn", span_attributes) as span:
        yield span


@contextmanager
def tool_span(tool_name: str, modifies_canvas: bool, **attributes: Any) -> Generator[Span, None, None]:
    """Create a span around one tool execution."""
    span_attributes = {
        "tool.name": tool_name,
        "tool.modifies_canvas": modifies_canvas,
    }
    span_attributes.update(attributes)
    with _traced(f"tool:{tool_name}", span_attributes) as span:
        yield span


def record_error(span: Span, error: Exception) -> None:
    """Record an error on a span with structured attributes."""
    span.set_attribute("error", True)
    span.set_attribute("error.type", type(error).__name__)
    span.set_attribute("error.message", str(error)[:500])
