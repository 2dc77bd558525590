"""Client-side undo/redo history for a canvas.

History State:
    entries   oldest first; entry 0 is always a full snapshot
    index     position of the current state, -1 when empty

The 20 most recent entries are full snapshots; older ones are stored as
diffs against the entry before them. At most 500 entries are kept. User and
AI edits share one stack, but consecutive AI edits less than 30 seconds
apart collapse into a single entry.

The state is an immutable tuple replaced in a single assignment, so readers
never observe a half-applied push.
"""

import json
import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

from pydantic import ConfigDict, Field, ValidationError

from slc_advisor.canvas.models import CamelModel, CanvasState
from slc_advisor.canvas.sections import IMPACT_FIELDS
from slc_advisor.config import AI_BATCH_WINDOW_SECONDS, FULL_SNAPSHOT_COUNT, HISTORY_LIMIT, EditSource

logger = logging.getLogger(__name__)


class CanvasSnapshot(CamelModel):
    """Full content of a canvas at one point in time."""

    model_config = ConfigDict(frozen=True)

    sections: dict[str, str] = Field(default_factory=dict)
    impact_chain: dict[str, str] = Field(default_factory=dict)
    timestamp: float
    source: EditSource

    @classmethod
    def from_canvas(cls, canvas: CanvasState, source: EditSource, timestamp: float | None = None) -> "CanvasSnapshot":
        return cls(
            sections={section.section_key: section.content for section in canvas.sections},
            impact_chain=canvas.impact_model.as_field_map(),
            timestamp=time.time() if timestamp is None else timestamp,
            source=source,
        )

    def same_content(self, other: "CanvasSnapshot") -> bool:
        """Structural equality, ignoring timestamp and source."""
        return self.sections == other.sections and self.impact_chain == other.impact_chain


class CanvasDiff(CamelModel):
    """Changes relative to the preceding history entry."""

    model_config = ConfigDict(frozen=True)

    section_changes: dict[str, str] = Field(default_factory=dict)
    impact_changes: dict[str, str] = Field(default_factory=dict)
    timestamp: float
    source: EditSource


HistoryEntry = CanvasSnapshot | CanvasDiff


def calculate_diff(previous: CanvasSnapshot, current: CanvasSnapshot) -> CanvasDiff:
    return CanvasDiff(
        section_changes={
            key: value for key, value in current.sections.items() if previous.sections.get(key) != value
        },
        impact_changes={
            key: value
            for key in IMPACT_FIELDS
            if (value := current.impact_chain.get(key, "")) != previous.impact_chain.get(key, "")
        },
        timestamp=current.timestamp,
        source=current.source,
    )


def apply_diff(base: CanvasSnapshot, diff: CanvasDiff) -> CanvasSnapshot:
    return CanvasSnapshot(
        sections={**base.sections, **diff.section_changes},
        impact_chain={**base.impact_chain, **diff.impact_changes},
        timestamp=diff.timestamp,
        source=diff.source,
    )


def rebuild_snapshot(entries: tuple[HistoryEntry, ...] | list[HistoryEntry], index: int) -> CanvasSnapshot | None:
    """Materialize the state at ``index`` from the nearest snapshot before it."""
    if not 0 <= index < len(entries):
        return None

    base = index
    while base >= 0 and not isinstance(entries[base], CanvasSnapshot):
        base -= 1
    if base < 0:
        return None

    snapshot = entries[base]
    for entry in entries[base + 1 : index + 1]:
        snapshot = apply_diff(snapshot, entry) if isinstance(entry, CanvasDiff) else entry
    return snapshot


@dataclass(frozen=True)
class _HistoryState:
    entries: tuple[HistoryEntry, ...] = ()
    index: int = -1
    last_ai_push: float | None = None


class ClientHistory:
    """Undo/redo stack of canvas snapshots.

    Args:
        clock: Returns the current time in seconds; used for AI batching
    """

    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock
        self._state = _HistoryState()
        self._lock = threading.Lock()

    # =========================================================================
    # Queries
    # =========================================================================

    def __len__(self) -> int:
        return len(self._state.entries)

    @property
    def index(self) -> int:
        return self._state.index

    @property
    def entries(self) -> tuple[HistoryEntry, ...]:
        return self._state.entries

    @property
    def can_undo(self) -> bool:
        return self._state.index > 0

    @property
    def can_redo(self) -> bool:
        state = self._state
        return state.index < len(state.entries) - 1

    def current(self) -> CanvasSnapshot | None:
        state = self._state
        return rebuild_snapshot(state.entries, state.index)

    # =========================================================================
    # Mutations
    # =========================================================================

    def initialize(self, snapshot: CanvasSnapshot) -> None:
        """Seed an empty history with the loaded canvas."""
        with self._lock:
            if not self._state.entries:
                self._state = _HistoryState(entries=(snapshot,), index=0)

    def push(self, snapshot: CanvasSnapshot) -> bool:
        """Record a new state. Returns False when nothing changed."""
        with self._lock:
            state = self._state
            current = rebuild_snapshot(state.entries, state.index)
            if current is not None and current.same_content(snapshot):
                return False

            now = self._clock()
            is_ai = snapshot.source is EditSource.AI
            head = state.entries[state.index] if state.index >= 0 else None

            if (
                is_ai
                and isinstance(head, CanvasSnapshot)
                and head.source is EditSource.AI
                and state.last_ai_push is not None
                and now - state.last_ai_push < AI_BATCH_WINDOW_SECONDS
            ):
                entries = state.entries[: state.index] + (snapshot,)
                self._state = replace(state, entries=entries, last_ai_push=now)
                logger.debug(f"Collapsed AI edit into history entry {state.index}")
                return True

            entries = list(state.entries[: state.index + 1])
            entries.append(snapshot)

            if len(entries) > HISTORY_LIMIT:
                removed = len(entries) - HISTORY_LIMIT
                oldest = rebuild_snapshot(entries, removed)
                entries = entries[removed:]
                entries[0] = oldest

            convert = len(entries) - FULL_SNAPSHOT_COUNT - 1
            if convert > 0 and isinstance(entries[convert], CanvasSnapshot):
                previous = rebuild_snapshot(entries, convert - 1)
                entries[convert] = calculate_diff(previous, entries[convert])

            self._state = _HistoryState(
                entries=tuple(entries),
                index=len(entries) - 1,
                last_ai_push=now if is_ai else state.last_ai_push,
            )
            return True

    def undo(self) -> CanvasSnapshot | None:
        """Step back one entry. Returns None at the oldest entry."""
        return self._move(-1)

    def redo(self) -> CanvasSnapshot | None:
        """Step forward one entry. Returns None at the newest entry."""
        return self._move(1)

    def _move(self, step: int) -> CanvasSnapshot | None:
        with self._lock:
            state = self._state
            target = state.index + step
            if target < 0 or target >= len(state.entries) or state.index < 0:
                return None
            snapshot = rebuild_snapshot(state.entries, target)
            if snapshot is None:
                return None
            self._state = replace(state, index=target)
            return snapshot

    def clear(self) -> None:
        with self._lock:
            self._state = _HistoryState()

    # =========================================================================
    # Persistence
    # =========================================================================

    def to_dict(self) -> dict[str, Any]:
        state = self._state
        return {
            "entries": [
                {"type": "snapshot" if isinstance(entry, CanvasSnapshot) else "diff", "data": entry.to_wire()}
                for entry in state.entries
            ],
            "currentIndex": state.index,
        }

    def save(self, path: Path) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(self.to_dict()), encoding="utf-8")

    @classmethod
    def load(cls, path: Path, clock: Callable[[], float] = time.time) -> "ClientHistory":
        """Load a saved history.

        A missing or unreadable file yields an empty history. Entries that
        fail validation are dropped, together with the diffs that follow them
        up to the next full snapshot.
        """
        history = cls(clock=clock)
        if not path.exists():
            return history
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
            raw_entries = data["entries"]
            index = int(data["currentIndex"])
            if not isinstance(raw_entries, list):
                raise TypeError("entries is not a list")
        except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
            logger.warning(f"Discarding unreadable history at {path}: {e}")
            return history

        entries: list[HistoryEntry] = []
        kept_up_to_index = 0
        # Diffs after a dropped entry, or before the first snapshot, have no base
        chain_broken = True
        for position, raw in enumerate(raw_entries):
            entry = _parse_entry(raw)
            if entry is None:
                chain_broken = True
                continue
            if isinstance(entry, CanvasSnapshot):
                chain_broken = False
            elif chain_broken:
                continue
            entries.append(entry)
            if position <= index:
                kept_up_to_index += 1
        if len(entries) != len(raw_entries):
            logger.warning(f"Dropped {len(raw_entries) - len(entries)} unusable history entries from {path}")

        if entries:
            index = max(0, min(kept_up_to_index - 1, len(entries) - 1))
            history._state = _HistoryState(entries=tuple(entries), index=index)
        return history


def _parse_entry(raw: Any) -> HistoryEntry | None:
    if not isinstance(raw, dict) or not isinstance(raw.get("data"), dict):
        return None
    model = {"snapshot": CanvasSnapshot, "diff": CanvasDiff}.get(raw.get("type"))
    if model is None:
        return None
    try:
        return model.model_validate(raw["data"])
    except ValidationError:
        return None
