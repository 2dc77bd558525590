"""Status and canvas broadcast channel.

Connected clients register a callback and receive every ``BroadcastMessage``
the session publishes. A client whose callback raises is disconnected; the
other clients still receive the message.
"""

import logging
import threading
import uuid
from collections.abc import Callable
from typing import Any

from pydantic import Field

from slc_advisor.canvas.models import CamelModel
from slc_advisor.config import AgentStatus

logger = logging.getLogger(__name__)


class BroadcastMessage(CamelModel):
    """What clients receive.

    ``canvas`` is None for status-only updates. ``canvas_updated_at`` is the
    change token; clients skip a re-render when it has not moved.
    """

    status: AgentStatus
    status_message: str = ""
    canvas: dict[str, Any] | None = None
    canvas_updated_at: str | None = Field(default=None, description="updatedAt of the canvas snapshot")


ClientCallback = Callable[[BroadcastMessage], None]


class BroadcastHub:
    """Fan-out of broadcast messages to connected clients."""

    def __init__(self) -> None:
        self._clients: dict[str, ClientCallback] = {}
        self._lock = threading.Lock()

    def connect(self, callback: ClientCallback) -> str:
        client_id = uuid.uuid4().hex
        with self._lock:
            self._clients[client_id] = callback
        logger.debug(f"Client {client_id} connected ({len(self._clients)} total)")
        return client_id

    def disconnect(self, client_id: str) -> None:
        with self._lock:
            self._clients.pop(client_id, None)

    @property
    def client_count(self) -> int:
        with self._lock:
            return len(self._clients)

    def send(self, client_id: str, message: BroadcastMessage) -> None:
        """Deliver a message to one client."""
        with self._lock:
            callback = self._clients.get(client_id)
        if callback is not None:
            self._deliver(client_id, callback, message)

    def publish(self, message: BroadcastMessage) -> None:
        """Deliver a message to every connected client."""
        with self._lock:
            clients = list(self._clients.items())
        for client_id, callback in clients:
            self._deliver(client_id, callback, message)

    def _deliver(self, client_id: str, callback: ClientCallback, message: BroadcastMessage) -> None:
        try:
            callback(message)
        except Exception as e:
            logger.warning(f"Dropping client {client_id} after failed delivery: {e}")
            self.disconnect(client_id)
