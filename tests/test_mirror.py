"""Tests for the client canvas mirror."""

import pytest
from conftest import SECTION_TEXT

from slc_advisor.client import CanvasMirror, ClientHistory
from slc_advisor.config import AgentStatus, EditSource
from slc_advisor.session.broadcast import BroadcastMessage


def broadcast(canvas, status=AgentStatus.IDLE):
    state = canvas.get_full_canvas()
    return BroadcastMessage(status=status, canvas=state.to_wire(), canvas_updated_at=state.updated_at)


@pytest.fixture
def mirror():
    return CanvasMirror(history=ClientHistory())


class TestApply:
    def test_first_broadcast_initializes_history(self, mirror, canvas):
        assert mirror.apply(broadcast(canvas)) is True
        assert mirror.remote.id == canvas.canvas_id
        assert len(mirror.history) == 1

    def test_unchanged_token_skipped(self, mirror, canvas):
        mirror.apply(broadcast(canvas))
        assert mirror.apply(broadcast(canvas, AgentStatus.UPDATING)) is False
        assert mirror.status is AgentStatus.UPDATING
        assert len(mirror.history) == 1

    def test_status_only_message(self, mirror):
        message = BroadcastMessage(status=AgentStatus.SEARCHING, status_message="Searching knowledge base...")
        assert mirror.apply(message) is False
        assert mirror.status is AgentStatus.SEARCHING
        assert mirror.status_message == "Searching knowledge base..."

    def test_remote_change_recorded_as_ai_edit(self, mirror, canvas):
        mirror.apply(broadcast(canvas))
        canvas.update_section("purpose", SECTION_TEXT["purpose"])

        assert mirror.apply(broadcast(canvas)) is True
        assert mirror.value("purpose") == SECTION_TEXT["purpose"]
        assert len(mirror.history) == 2
        assert mirror.history.current().source is EditSource.AI

    def test_accepts_wire_dicts(self, mirror, canvas):
        canvas.update_section("purpose", SECTION_TEXT["purpose"])
        assert mirror.apply(broadcast(canvas).to_wire()) is True
        assert mirror.value("purpose") == SECTION_TEXT["purpose"]


class TestDrafts:
    def test_draft_survives_broadcast(self, mirror, canvas):
        mirror.apply(broadcast(canvas))
        mirror.begin_edit("purpose")
        mirror.update_draft("purpose", "My half-written purpose")

        canvas.update_section("purpose", SECTION_TEXT["purpose"])
        mirror.apply(broadcast(canvas))

        assert mirror.value("purpose") == "My half-written purpose"
        assert mirror.editing == frozenset({"purpose"})

    def test_cancel_returns_remote_text(self, mirror, canvas):
        canvas.update_section("purpose", SECTION_TEXT["purpose"])
        mirror.apply(broadcast(canvas))
        mirror.begin_edit("purpose")
        mirror.update_draft("purpose", "Something else entirely")

        assert mirror.cancel_edit("purpose") == SECTION_TEXT["purpose"]
        assert mirror.value("purpose") == SECTION_TEXT["purpose"]

    def test_commit_records_user_edit(self, mirror, canvas):
        mirror.apply(broadcast(canvas))
        mirror.begin_edit("issue")
        mirror.update_draft("issue", "Food waste in cities")

        assert mirror.commit_edit("issue") == "Food waste in cities"
        current = mirror.history.current()
        assert current.source is EditSource.USER
        assert current.impact_chain["issue"] == "Food waste in cities"
        assert mirror.editing == frozenset()

    def test_unknown_field(self, mirror):
        with pytest.raises(ValueError, match="Unknown canvas field"):
            mirror.begin_edit("mission")

    def test_draft_requires_edit(self, mirror):
        with pytest.raises(KeyError):
            mirror.update_draft("purpose", "text")

    def test_view_lists_every_field(self, mirror, canvas):
        mirror.apply(broadcast(canvas))
        view = mirror.view()
        assert len(view) == 18
        assert set(view.values()) == {""}
