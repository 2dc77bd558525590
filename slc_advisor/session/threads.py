"""Conversation threads for a canvas.

Each canvas can hold several chat threads. Thread metadata lives in one file
and each thread's messages in their own file:

    <canvas_dir>/
    ├── threads.json
    └── messages/
        └── <thread_id>.json

Threads only ever read each other through ``get_thread_context``.
"""

import json
import logging
import threading
import uuid
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

from slc_advisor.canvas.sections import SECTION_LABELS
from slc_advisor.canvas.store import _atomic_write, utc_now
from slc_advisor.errors import StoreCorruptedError, ThreadNotFoundError

logger = logging.getLogger(__name__)

MAIN_THREAD_NAME = "Main"

THREAD_FILTERS = ("all", "active", "starred", "archived")


@dataclass
class Thread:
    """Metadata for one conversation thread."""

    id: str
    name: str
    starred: bool = False
    archived: bool = False
    created_at: str | None = None
    last_message_at: str | None = None
    summary: str | None = None

    def to_wire(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "starred": self.starred,
            "archived": self.archived,
            "createdAt": self.created_at,
            "lastMessageAt": self.last_message_at,
            "summary": self.summary,
        }


@dataclass
class ThreadMessage:
    role: str
    content: str
    created_at: str = field(default_factory=utc_now)

    def to_wire(self) -> dict[str, str]:
        return {"role": self.role, "content": self.content, "createdAt": self.created_at}


def generate_thread_name(context: str | None, existing: list[Thread]) -> str:
    """Name a new thread after the section it discusses, or number it."""
    if context == "impact":
        return "Impact Model"
    if context in SECTION_LABELS:
        return f"{SECTION_LABELS[context]} Discussion"
    chat_count = sum(1 for thread in existing if thread.name.startswith("Chat "))
    return f"Chat {chat_count + 2}"


class ThreadStore:
    """Threads and their messages for one canvas."""

    FILENAME = "threads.json"

    def __init__(self, canvas_dir: Path) -> None:
        self.canvas_dir = canvas_dir
        self.messages_dir = canvas_dir / "messages"
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self.canvas_dir / self.FILENAME

    def _read_threads(self) -> list[Thread]:
        """Read thread metadata. Caller must hold self._lock."""
        if not self.path.exists():
            return []
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
            return [Thread(**item) for item in data.get("threads", [])]
        except (json.JSONDecodeError, TypeError, AttributeError) as e:
            raise StoreCorruptedError(f"Corrupted {self.path}: {e}") from e

    def _write_threads(self, threads: list[Thread]) -> None:
        """Write thread metadata. Caller must hold self._lock."""
        _atomic_write(self.path, json.dumps({"threads": [asdict(t) for t in threads]}, indent=2))

    def _messages_path(self, thread_id: str) -> Path:
        return self.messages_dir / f"{thread_id}.json"

    def _find(self, threads: list[Thread], thread_id: str) -> Thread:
        for thread in threads:
            if thread.id == thread_id:
                return thread
        raise ThreadNotFoundError(f"Thread not found: {thread_id}")

    # =========================================================================
    # Threads
    # =========================================================================

    def ensure_main_thread(self) -> Thread:
        """Return the oldest thread, creating "Main" if there is none."""
        with self._lock:
            threads = self._read_threads()
            if threads:
                return threads[0]
            main = Thread(id=uuid.uuid4().hex, name=MAIN_THREAD_NAME, created_at=utc_now())
            self._write_threads([main])
        logger.info(f"Created main thread {main.id} in {self.canvas_dir.name}")
        return main

    def create_thread(self, name: str | None = None, context: str | None = None) -> Thread:
        """Create a thread, generating a name from ``context`` when none is given."""
        with self._lock:
            threads = self._read_threads()
            thread = Thread(
                id=uuid.uuid4().hex,
                name=name or generate_thread_name(context, threads),
                created_at=utc_now(),
            )
            threads.append(thread)
            self._write_threads(threads)
        logger.info(f"Created thread '{thread.name}' ({thread.id})")
        return thread

    def list_threads(self, thread_filter: str = "all") -> list[Thread]:
        """List threads, starred first, then by most recent activity."""
        if thread_filter not in THREAD_FILTERS:
            raise ValueError(f"Unknown thread filter: {thread_filter}. Valid: {', '.join(THREAD_FILTERS)}")
        with self._lock:
            threads = self._read_threads()

        if thread_filter == "active":
            threads = [t for t in threads if not t.archived]
        elif thread_filter == "starred":
            threads = [t for t in threads if t.starred and not t.archived]
        elif thread_filter == "archived":
            threads = [t for t in threads if t.archived]

        threads.sort(key=lambda t: t.last_message_at or t.created_at or "", reverse=True)
        threads.sort(key=lambda t: not t.starred)
        return threads

    def get_thread(self, thread_id: str) -> Thread | None:
        with self._lock:
            threads = self._read_threads()
        for thread in threads:
            if thread.id == thread_id:
                return thread
        return None

    def _update(self, thread_id: str, **changes: Any) -> Thread:
        with self._lock:
            threads = self._read_threads()
            thread = self._find(threads, thread_id)
            for key, value in changes.items():
                setattr(thread, key, value)
            self._write_threads(threads)
        return thread

    def rename(self, thread_id: str, name: str) -> Thread:
        if not name.strip():
            raise ValueError("Thread name cannot be empty")
        return self._update(thread_id, name=name.strip())

    def set_starred(self, thread_id: str, starred: bool) -> Thread:
        return self._update(thread_id, starred=starred)

    def set_archived(self, thread_id: str, archived: bool) -> Thread:
        return self._update(thread_id, archived=archived)

    def set_summary(self, thread_id: str, summary: str) -> Thread:
        return self._update(thread_id, summary=summary)

    def summaries(self, exclude_thread_id: str | None = None) -> list[dict[str, str]]:
        """Summaries of the active threads other than ``exclude_thread_id``."""
        return [
            {
                "id": thread.id,
                "title": thread.name or "Untitled",
                "summary": thread.summary or "No summary available",
            }
            for thread in self.list_threads("active")
            if thread.id != exclude_thread_id
        ]

    # =========================================================================
    # Messages
    # =========================================================================

    def append_message(self, thread_id: str, role: str, content: str) -> ThreadMessage:
        """Append a message and bump the thread's last activity."""
        message = ThreadMessage(role=role, content=content)
        with self._lock:
            threads = self._read_threads()
            thread = self._find(threads, thread_id)
            messages = self._read_messages(thread_id)
            messages.append(message.to_wire())
            _atomic_write(self._messages_path(thread_id), json.dumps(messages, indent=2))
            thread.last_message_at = message.created_at
            self._write_threads(threads)
        return message

    def recent_messages(self, thread_id: str, limit: int = 10) -> list[dict[str, str]]:
        with self._lock:
            self._find(self._read_threads(), thread_id)
            messages = self._read_messages(thread_id)
        return messages[-limit:] if limit > 0 else []

    def _read_messages(self, thread_id: str) -> list[dict[str, str]]:
        """Read a thread's messages. Caller must hold self._lock."""
        path = self._messages_path(thread_id)
        if not path.exists():
            return []
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise StoreCorruptedError(f"Corrupted {path}: {e}") from e
        if not isinstance(data, list):
            raise StoreCorruptedError(f"Corrupted {path}: expected a list")
        return data
