"""One conversational agent bound to one canvas thread.

Status Flow:
    idle -> thinking          a message arrives
    thinking -> searching     context is gathered, or a read tool runs
    thinking -> updating      a mutating tool runs
    searching/updating -> thinking   the tool returned
    thinking -> idle          the turn finished
    any -> error              a tool or the turn failed

Only one turn runs at a time; a message that arrives while a turn is in
flight is rejected with ``SessionBusyError``. Every mutating tool call is
followed by exactly one canvas broadcast.
"""

import logging
import threading
from collections.abc import Callable
from typing import Any

from slc_advisor.agents.factory import create_advisor_agent
from slc_advisor.agents.prompts import DEFAULT_TONE_PROFILE, build_system_prompt
from slc_advisor.canvas.aggregate import CanvasAggregate
from slc_advisor.config import RAG_CONTEXT_LIMIT, AgentStatus
from slc_advisor.errors import SessionBusyError, UpstreamError
from slc_advisor.knowledge.search import (
    KnowledgeSearch,
    build_rag_context,
    parse_query_intent,
    request_for_intent,
)
from slc_advisor.telemetry.spans import record_error, turn_span
from slc_advisor.tools.executor import ToolExecutor
from slc_advisor.tools.types import ToolContext

from .broadcast import BroadcastHub, BroadcastMessage, ClientCallback
from .threads import ThreadStore

logger = logging.getLogger(__name__)

UPSTREAM_APOLOGY = "Sorry, I couldn't reach the AI service just now. Please try again in a moment."
GENERIC_APOLOGY = "Sorry, something went wrong while working on your canvas. Please try again."


class AgentSession:
    """Owns the agent status, the turn lock and the broadcast channel.

    Args:
        canvas: Canvas this session reads and writes
        knowledge: Knowledge search, or None to run without retrieval
        threads: Thread store. Defaults to the canvas directory's store.
        thread_id: Thread this session talks in. Defaults to the main thread.
        executor: Tool executor. Defaults to the full tool catalog.
        agent_factory: Called as ``agent_factory(system_prompt=..., runner=self)``
        tone: Tone profile for the system prompt
    """

    def __init__(
        self,
        canvas: CanvasAggregate,
        knowledge: KnowledgeSearch | None = None,
        threads: ThreadStore | None = None,
        thread_id: str | None = None,
        executor: ToolExecutor | None = None,
        agent_factory: Callable[..., Any] = create_advisor_agent,
        tone: str = DEFAULT_TONE_PROFILE,
    ):
        self.canvas = canvas
        self.knowledge = knowledge
        self.threads = threads or ThreadStore(canvas.canvas_dir)
        self.thread_id = thread_id or self.threads.ensure_main_thread().id
        self.executor = executor or ToolExecutor()
        self.tone = tone
        self.hub = BroadcastHub()

        self.status = AgentStatus.IDLE
        self.status_message = ""
        self.canvas_updated_at: str | None = None

        self._agent_factory = agent_factory
        self._agent = None
        self._turn_lock = threading.Lock()
        self._cancel = threading.Event()

        self.tool_context = ToolContext(
            canvas=canvas,
            set_status=self.set_status,
            knowledge=knowledge,
            threads=self.threads,
            thread_id=self.thread_id,
        )

    # =========================================================================
    # Status and broadcast
    # =========================================================================

    def set_status(self, status: AgentStatus, message: str = "") -> None:
        """Change the status and tell every client."""
        self.status = status
        self.status_message = message
        logger.debug(f"Session status -> {status.value} ({message})")
        self.hub.publish(self._message())

    def _message(self, canvas: dict[str, Any] | None = None) -> BroadcastMessage:
        return BroadcastMessage(
            status=self.status,
            status_message=self.status_message,
            canvas=canvas,
            canvas_updated_at=self.canvas_updated_at,
        )

    def _snapshot(self) -> dict[str, Any]:
        state = self.canvas.get_full_canvas()
        self.canvas_updated_at = state.updated_at
        return state.to_wire()

    def broadcast_canvas(self) -> None:
        """Push the current canvas to every client."""
        self.hub.publish(self._message(self._snapshot()))

    def connect(self, callback: ClientCallback) -> str:
        """Register a client and send it the current canvas."""
        client_id = self.hub.connect(callback)
        self.hub.send(client_id, self._message(self._snapshot()))
        return client_id

    def disconnect(self, client_id: str) -> None:
        self.hub.disconnect(client_id)

    # =========================================================================
    # Tools
    # =========================================================================

    @property
    def cancelled(self) -> bool:
        return self._cancel.is_set()

    @property
    def busy(self) -> bool:
        return self._turn_lock.locked()

    def run_tool(self, name: str, raw_input: dict[str, Any]) -> dict[str, Any]:
        """Execute one tool call issued by the agent.

        A failing tool puts the session into ``error`` and re-raises so the
        wrapper can hand the error text back to the agent.
        """
        try:
            result = self.executor.execute_with_broadcast(name, raw_input, self.tool_context, self.broadcast_canvas)
        except Exception as e:
            logger.warning(f"Tool {name} failed on canvas {self.canvas.canvas_id}: {e}")
            self.set_status(AgentStatus.ERROR, str(e))
            raise
        if self.status in (AgentStatus.SEARCHING, AgentStatus.UPDATING):
            self.set_status(AgentStatus.THINKING, "Thinking...")
        return result

    def cancel(self) -> None:
        """Stop issuing tools for the current turn. Completed writes stay."""
        if self.busy:
            logger.info(f"Cancelling turn on canvas {self.canvas.canvas_id}")
            self._cancel.set()

    # =========================================================================
    # Turns
    # =========================================================================

    def _get_agent(self, system_prompt: str):
        if self._agent is None:
            self._agent = self._agent_factory(system_prompt=system_prompt, runner=self)
        else:
            self._agent.system_prompt = system_prompt
        return self._agent

    def _gather_context(self, message: str) -> str:
        if self.knowledge is None:
            return ""
        self.set_status(AgentStatus.SEARCHING, "Gathering context...")
        request = request_for_intent(
            message,
            parse_query_intent(message),
            self.canvas.get_dimensions_for_filtering(),
            RAG_CONTEXT_LIMIT,
        )
        try:
            response = self.knowledge.search(request)
        except UpstreamError as e:
            logger.warning(f"Continuing without retrieved context: {e}")
            return ""
        finally:
            self.set_status(AgentStatus.THINKING, "Thinking...")
        return build_rag_context([doc for doc in response.results if doc.content])

    def handle_message(self, message: str) -> str:
        """Run one turn and return the agent's reply.

        Raises:
            SessionBusyError: If a turn is already in flight
        """
        if not self._turn_lock.acquire(blocking=False):
            raise SessionBusyError("The advisor is still working on the previous message")

        try:
            self._cancel.clear()
            self.set_status(AgentStatus.THINKING, "Thinking...")
            self.threads.append_message(self.thread_id, "user", message)

            with turn_span(self.canvas.canvas_id, message, **{"thread.id": self.thread_id}) as span:
                try:
                    rag_context = self._gather_context(message)
                    prompt = build_system_prompt(self.canvas.get_full_canvas(), rag_context, self.tone)
                    result = self._get_agent(prompt)(message)
                except Exception as e:
                    record_error(span, e)
                    raise

            reply = str(result).strip()
            self.threads.append_message(self.thread_id, "assistant", reply)
            self.set_status(AgentStatus.IDLE, "")
            return reply
        except UpstreamError as e:
            logger.exception(f"Upstream failure on canvas {self.canvas.canvas_id}: {e}")
            self.set_status(AgentStatus.ERROR, str(e))
            return UPSTREAM_APOLOGY
        except Exception as e:
            logger.exception(f"Turn failed on canvas {self.canvas.canvas_id}: {e}")
            self.set_status(AgentStatus.ERROR, f"{type(e).__name__}: {e}")
            return GENERIC_APOLOGY
        finally:
            self._turn_lock.release()
