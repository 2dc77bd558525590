"""Agent lifecycle hooks for observability.

Provides a HookProvider that times each advisor turn, records which tools
the agent called and annotates the current OTEL span. Injected by
``create_advisor_agent``.
"""

import logging
import time

from opentelemetry import trace
from strands.hooks import (
    AfterInvocationEvent,
    AfterToolCallEvent,
    BeforeInvocationEvent,
    BeforeToolCallEvent,
    HookProvider,
    HookRegistry,
)

from slc_advisor.tools.registry import MUTATING_TOOLS

logger = logging.getLogger(__name__)


def _tool_name(event) -> str:
    return event.tool_use.get("name", "unknown") if event.tool_use else "unknown"


class AdvisorAgentHooks(HookProvider):
    """Observability hooks for advisor agent invocations.

    Purely observational: tool gating and cancellation live in the tool
    wrappers, not here.
    """

    def __init__(self):
        self._start_time: float | None = None
        self._tool_start: dict[str, float] = {}
        self.execution_time: float = 0.0
        self.tool_calls: list[str] = []

    def register_hooks(self, registry: HookRegistry, **kwargs) -> None:
        registry.add_callback(BeforeInvocationEvent, self._on_before_invocation)
        registry.add_callback(AfterInvocationEvent, self._on_after_invocation)
        registry.add_callback(BeforeToolCallEvent, self._on_before_tool)
        registry.add_callback(AfterToolCallEvent, self._on_after_tool)

    @property
    def canvas_writes(self) -> int:
        """Number of canvas-mutating tool calls in the last turn."""
        return sum(1 for name in self.tool_calls if name in MUTATING_TOOLS)

    def _on_before_invocation(self, event: BeforeInvocationEvent) -> None:
        self._start_time = time.time()
        self.tool_calls = []
        agent_name = getattr(event.agent, "name", "unknown")
        logger.info(f"Agent {agent_name} turn started")

    def _on_after_invocation(self, event: AfterInvocationEvent) -> None:
        self.execution_time = time.time() - (self._start_time or time.time())
        agent_name = getattr(event.agent, "name", "unknown")

        if event.result:
            stop_reason = getattr(event.result, "stop_reason", "unknown")
            logger.info(
                f"Agent {agent_name} turn completed in {self.execution_time:.2f}s "
                f"(stop_reason={stop_reason}, tools={len(self.tool_calls)}, writes={self.canvas_writes})"
            )
            self._record_span_attributes(agent_name, stop_reason)
        else:
            logger.warning(f"Agent {agent_name} turn completed in {self.execution_time:.2f}s with no result")

    def _on_before_tool(self, event: BeforeToolCallEvent) -> None:
        tool_name = _tool_name(event)
        self._tool_start[tool_name] = time.time()
        self.tool_calls.append(tool_name)
        logger.debug(f"Agent calling tool: {tool_name}")

    def _on_after_tool(self, event: AfterToolCallEvent) -> None:
        tool_name = _tool_name(event)
        elapsed = time.time() - self._tool_start.pop(tool_name, time.time())
        logger.debug(f"Tool {tool_name} completed in {elapsed:.2f}s")

    def _record_span_attributes(self, agent_name: str, stop_reason: str) -> None:
        span = trace.get_current_span()
        span.set_attribute("agent.name", agent_name)
        span.set_attribute("agent.execution_time_seconds", self.execution_time)
        span.set_attribute("agent.stop_reason", str(stop_reason))
        span.set_attribute("agent.tool_calls", len(self.tool_calls))
        span.set_attribute("agent.canvas_writes", self.canvas_writes)
