"""Client-side copy of a canvas kept in sync with session broadcasts.

The mirror holds the last canvas the server sent plus local drafts for the
fields the user is editing. Broadcasts replace the server copy; drafts are
never overwritten, so a field under edit keeps the user's text until the
edit is committed or cancelled.
"""

import logging
from typing import Any

from slc_advisor.canvas.models import CanvasState
from slc_advisor.canvas.sections import CANVAS_SECTIONS, IMPACT_FIELDS
from slc_advisor.config import AgentStatus, EditSource
from slc_advisor.session.broadcast import BroadcastMessage

from .history import CanvasSnapshot, ClientHistory

logger = logging.getLogger(__name__)


def _field_value(canvas: CanvasState | None, key: str) -> str:
    if canvas is None:
        return ""
    if key in CANVAS_SECTIONS:
        return canvas.section_content(key)
    return canvas.impact_model.get_field(key)


class CanvasMirror:
    """Merges broadcasts into a local view of the canvas.

    Args:
        history: If given, remote changes are pushed as AI edits and committed
            local edits as user edits.
    """

    def __init__(self, history: ClientHistory | None = None):
        self.history = history
        self.remote: CanvasState | None = None
        self.updated_at: str | None = None
        self.status = AgentStatus.IDLE
        self.status_message = ""
        self._drafts: dict[str, str] = {}

    @property
    def editing(self) -> frozenset[str]:
        return frozenset(self._drafts)

    def apply(self, message: BroadcastMessage | dict[str, Any]) -> bool:
        """Apply one broadcast. Returns True when the canvas view changed."""
        if isinstance(message, dict):
            message = BroadcastMessage.model_validate(message)

        self.status = message.status
        self.status_message = message.status_message

        if message.canvas is None:
            return False
        if self.remote is not None and message.canvas_updated_at == self.updated_at:
            logger.debug(f"Skipping broadcast with unchanged token {self.updated_at}")
            return False

        first = self.remote is None
        self.remote = CanvasState.model_validate(message.canvas)
        self.updated_at = message.canvas_updated_at

        if self.history is not None:
            if first:
                self.history.initialize(self._snapshot(EditSource.AI))
            else:
                self.history.push(self._snapshot(EditSource.AI))
        return True

    def value(self, key: str) -> str:
        """What the user sees for a section or impact field."""
        if key in self._drafts:
            return self._drafts[key]
        return _field_value(self.remote, key)

    def view(self) -> dict[str, str]:
        keys = dict.fromkeys((*CANVAS_SECTIONS, *IMPACT_FIELDS))
        return {key: self.value(key) for key in keys}

    # =========================================================================
    # Local edits
    # =========================================================================

    def begin_edit(self, key: str) -> str:
        """Start editing a field; returns its current text."""
        if key not in CANVAS_SECTIONS and key not in IMPACT_FIELDS:
            raise ValueError(f"Unknown canvas field: {key}")
        self._drafts.setdefault(key, _field_value(self.remote, key))
        return self._drafts[key]

    def update_draft(self, key: str, text: str) -> None:
        if key not in self._drafts:
            raise KeyError(f"Field is not being edited: {key}")
        self._drafts[key] = text

    def commit_edit(self, key: str) -> str:
        """Finish editing and return the text to send to the server."""
        text = self._drafts.pop(key)
        if self.history is not None and self.remote is not None:
            snapshot = self._snapshot(EditSource.USER)
            if key in CANVAS_SECTIONS:
                snapshot = snapshot.model_copy(update={"sections": {**snapshot.sections, key: text}})
            if key in IMPACT_FIELDS:
                snapshot = snapshot.model_copy(update={"impact_chain": {**snapshot.impact_chain, key: text}})
            self.history.push(snapshot)
        return text

    def cancel_edit(self, key: str) -> str:
        """Drop the draft and return the server's text for the field."""
        self._drafts.pop(key, None)
        return _field_value(self.remote, key)

    def _snapshot(self, source: EditSource) -> CanvasSnapshot:
        return CanvasSnapshot.from_canvas(self.remote, source)
