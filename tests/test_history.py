"""Tests for the client undo/redo history."""

import json

import pytest

from slc_advisor.client.history import CanvasDiff, CanvasSnapshot, ClientHistory, rebuild_snapshot
from slc_advisor.config import FULL_SNAPSHOT_COUNT, HISTORY_LIMIT, EditSource


def snap(purpose, source=EditSource.USER, timestamp=0.0, **sections):
    return CanvasSnapshot(sections={"purpose": purpose, **sections}, timestamp=timestamp, source=source)


class FakeClock:
    def __init__(self, start=100.0):
        self.now = start

    def __call__(self):
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def history(clock):
    history = ClientHistory(clock=clock)
    history.initialize(snap("v0"))
    return history


def purpose(snapshot):
    return snapshot.sections["purpose"]


class TestUndoRedo:
    def test_undo_and_redo(self, history):
        """Undo walks back to the first entry and redo walks forward again."""
        history.push(snap("v1"))
        history.push(snap("v2"))

        assert purpose(history.undo()) == "v1"
        assert purpose(history.undo()) == "v0"
        assert history.undo() is None
        assert history.can_undo is False

        assert purpose(history.redo()) == "v1"
        assert purpose(history.redo()) == "v2"
        assert history.redo() is None

    def test_empty_history(self):
        """An empty history has no current state and nothing to undo or redo."""
        history = ClientHistory()
        assert history.current() is None
        assert history.undo() is None
        assert history.redo() is None

    def test_initialize_only_once(self, history):
        """Initialize does nothing once the history has entries."""
        history.initialize(snap("other"))
        assert purpose(history.current()) == "v0"

    def test_unchanged_content_not_recorded(self, history):
        """A push with identical content is not recorded."""
        assert history.push(snap("v0", timestamp=99.0, source=EditSource.AI)) is False
        assert len(history) == 1

    def test_push_after_undo_drops_redo(self, history):
        """Pushing after an undo discards the redo entries."""
        history.push(snap("v1"))
        history.push(snap("v2"))
        history.undo()

        history.push(snap("v3"))

        assert [purpose(rebuild_snapshot(history.entries, i)) for i in range(len(history))] == ["v0", "v1", "v3"]
        assert history.can_redo is False


class TestAIBatching:
    def test_close_ai_edits_collapse(self, history, clock):
        """AI edits inside the batch window collapse into one entry."""
        history.push(snap("ai-1", EditSource.AI))
        clock.now = 110.0
        history.push(snap("ai-2", EditSource.AI))

        assert len(history) == 2
        assert purpose(history.current()) == "ai-2"
        assert purpose(history.undo()) == "v0"

    def test_distant_ai_edits_kept(self, history, clock):
        """AI edits outside the batch window get separate entries."""
        history.push(snap("ai-1", EditSource.AI))
        clock.now = 150.0
        history.push(snap("ai-2", EditSource.AI))
        assert len(history) == 3

    def test_user_edit_breaks_batch(self, history, clock):
        """A user edit between AI edits ends the batch."""
        history.push(snap("ai-1", EditSource.AI))
        clock.now = 105.0
        history.push(snap("user-1"))
        clock.now = 110.0
        history.push(snap("ai-2", EditSource.AI))
        assert len(history) == 4


class TestStorage:
    def test_old_entries_become_diffs(self, history):
        """Entries older than the snapshot window are stored as diffs."""
        for i in range(1, 26):
            history.push(snap(f"v{i}", costs=f"costs {i % 3}"))

        entries = history.entries
        assert len(entries) == 26
        assert isinstance(entries[0], CanvasSnapshot)
        assert all(isinstance(entry, CanvasDiff) for entry in entries[1:6])
        assert all(isinstance(entry, CanvasSnapshot) for entry in entries[6:])
        assert len(entries[6:]) == FULL_SNAPSHOT_COUNT

        # Walking back through the diffs restores every state
        seen = [purpose(history.current())]
        while (previous := history.undo()) is not None:
            seen.append(purpose(previous))
        assert seen == [f"v{i}" for i in range(25, -1, -1)]

    def test_diff_holds_only_changes(self, history):
        """A diff records only the sections that changed."""
        for i in range(1, 23):
            history.push(snap(f"v{i}", costs="steady"))
        diff = history.entries[2]
        assert isinstance(diff, CanvasDiff)
        assert diff.section_changes == {"purpose": "v2"}

    def test_capped(self, history):
        """The oldest entries are dropped once the limit is reached."""
        for i in range(1, 506):
            history.push(snap(f"v{i}"))

        assert len(history) == HISTORY_LIMIT
        assert isinstance(history.entries[0], CanvasSnapshot)
        assert purpose(history.entries[0]) == "v6"
        assert purpose(history.current()) == "v505"
        assert history.index == HISTORY_LIMIT - 1


class TestPersistence:
    def test_round_trip(self, history, tmp_path):
        """A saved history loads back with the same entries and index."""
        history.push(snap("v1", impact="Fewer meals wasted"))
        history.push(snap("v2"))
        history.undo()
        path = tmp_path / "history.json"
        history.save(path)

        loaded = ClientHistory.load(path)

        assert len(loaded) == 3
        assert loaded.index == 1
        assert loaded.current().sections == history.current().sections
        assert loaded.entries[1].source is EditSource.USER

    def test_missing_file(self, tmp_path):
        """A missing file loads as an empty history."""
        assert len(ClientHistory.load(tmp_path / "missing.json")) == 0

    def test_unreadable_file(self, tmp_path):
        """A file that is not JSON loads as an empty history."""
        path = tmp_path / "history.json"
        path.write_text("not json", encoding="utf-8")
        assert len(ClientHistory.load(path)) == 0

    def test_invalid_entry_dropped(self, tmp_path):
        """An entry that fails validation is dropped on load."""
        path = tmp_path / "history.json"
        path.write_text(
            json.dumps(
                {
                    "entries": [
                        {"type": "snapshot", "data": snap("v0").to_wire()},
                        {"type": "bogus", "data": {}},
                        {"type": "snapshot", "data": snap("v2").to_wire()},
                    ],
                    "currentIndex": 2,
                }
            ),
            encoding="utf-8",
        )

        loaded = ClientHistory.load(path)

        assert len(loaded) == 2
        assert loaded.index == 1
        assert purpose(loaded.current()) == "v2"

    def test_diffs_after_invalid_diff_dropped(self, history, tmp_path):
        """Diffs chained on a dropped diff are dropped up to the next snapshot."""
        for i in range(1, 26):
            history.push(snap(f"v{i}", costs="c0" if i < 2 else "c-new"))
        path = tmp_path / "history.json"
        history.save(path)
        data = json.loads(path.read_text(encoding="utf-8"))
        assert data["entries"][2]["type"] == "diff"
        assert data["entries"][2]["data"]["sectionChanges"]["costs"] == "c-new"
        data["entries"][2]["data"] = {"bogus": True}
        path.write_text(json.dumps(data), encoding="utf-8")

        loaded = ClientHistory.load(path)

        kept = [0, 1, *range(6, 26)]
        assert len(loaded) == len(kept)
        for position, original in enumerate(kept):
            rebuilt = rebuild_snapshot(loaded.entries, position)
            assert rebuilt.sections == rebuild_snapshot(history.entries, original).sections
        assert loaded.index == len(loaded) - 1
        assert loaded.current().sections["costs"] == "c-new"

    def test_leading_diff_dropped(self, tmp_path):
        """A diff with no snapshot before it is dropped on load."""
        diff = CanvasDiff(section_changes={"purpose": "v0"}, timestamp=0.0, source=EditSource.AI)
        path = tmp_path / "history.json"
        path.write_text(
            json.dumps(
                {
                    "entries": [
                        {"type": "diff", "data": diff.to_wire()},
                        {"type": "snapshot", "data": snap("v1").to_wire()},
                        {"type": "snapshot", "data": snap("v2").to_wire()},
                    ],
                    "currentIndex": 2,
                }
            ),
            encoding="utf-8",
        )

        loaded = ClientHistory.load(path)

        assert len(loaded) == 2
        assert loaded.index == 1
        assert purpose(loaded.entries[0]) == "v1"
