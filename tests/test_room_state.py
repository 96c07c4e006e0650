"""Tests for the in-memory room registry, call sessions, task board and voice buffer."""

import re

import pytest

from synapse.websocket import (
    CallKind,
    CallSessionManager,
    CollaborationState,
    GroupTask,
    GroupTaskBoard,
    NoActiveCallError,
    RoomRegistry,
    VoiceMessage,
    VoiceMessageBuffer,
)


class TestRoomRegistry:
    """Tests for RoomRegistry."""

    def test_join_keeps_order(self):
        registry = RoomRegistry()

        assert registry.join("AB12CD", "c1", "alice") is None
        assert registry.join("AB12CD", "c2", "bob") is None

        assert registry.list_names("AB12CD") == ["alice", "bob"]
        assert registry.participant_count("AB12CD") == 2
        assert "AB12CD" in registry

    def test_same_name_replaces_stale_entry(self):
        """Test a reconnect under the same name leaves no ghost."""
        registry = RoomRegistry()
        registry.join("AB12CD", "c1", "alice")
        registry.join("AB12CD", "c2", "bob")

        replaced = registry.join("AB12CD", "c3", "alice")

        assert replaced.connection_id == "c1"
        assert registry.list_names("AB12CD") == ["bob", "alice"]
        assert registry.display_name_for("AB12CD", "c3") == "alice"
        assert registry.display_name_for("AB12CD", "c1") is None

    def test_leave_removes_empty_room(self):
        registry = RoomRegistry()
        registry.join("AB12CD", "c1", "alice")

        removed = registry.leave("AB12CD", "c1")

        assert removed.display_name == "alice"
        assert "AB12CD" not in registry
        assert registry.room_codes() == []

    def test_rejoin_under_new_name_renames(self):
        """Test one connection never holds two entries in a room."""
        registry = RoomRegistry()
        registry.join("AB12CD", "c1", "alice")
        registry.join("AB12CD", "c2", "bob")

        assert registry.join("AB12CD", "c1", "alice2") is None
        assert registry.list_names("AB12CD") == ["bob", "alice2"]

        registry.leave("AB12CD", "c1")
        registry.leave("AB12CD", "c2")

        assert "AB12CD" not in registry

    def test_leave_unknown(self):
        registry = RoomRegistry()
        registry.join("AB12CD", "c1", "alice")

        assert registry.leave("AB12CD", "c9") is None
        assert registry.leave("NOPE00", "c1") is None
        assert registry.list_names("AB12CD") == ["alice"]

    def test_unknown_room_lists_nothing(self):
        assert RoomRegistry().list_names("NOPE00") == []

    def test_rooms_for_connection(self):
        registry = RoomRegistry()
        registry.join("R1", "c1", "alice")
        registry.join("R2", "c1", "alice")
        registry.join("R3", "c2", "bob")

        assert sorted(registry.rooms_for_connection("c1")) == ["R1", "R2"]


class TestCallSessionManager:
    """Tests for CallSessionManager."""

    def test_start_makes_starter_only_participant(self):
        calls = CallSessionManager()

        call, previous = calls.start("AB12CD", CallKind.VIDEO, "c1", "alice")

        assert previous is None
        assert call.kind == CallKind.VIDEO
        assert call.initiator == "alice"
        assert call.participants == {"c1"}
        assert calls.active_call_count == 1

    def test_last_start_wins(self):
        calls = CallSessionManager()
        first, _ = calls.start("AB12CD", CallKind.VIDEO, "c1", "alice")
        calls.join("AB12CD", "c2")

        second, previous = calls.start("AB12CD", CallKind.VOICE, "c3", "carol")

        assert previous is first
        assert calls.get("AB12CD") is second
        assert second.participants == {"c3"}
        assert calls.active_call_count == 1

    def test_join_without_call(self):
        calls = CallSessionManager()

        with pytest.raises(NoActiveCallError) as exc_info:
            calls.join("AB12CD", "c1")

        assert str(exc_info.value) == "No active call in this room"
        assert calls.active_call_count == 0

    def test_leave_ends_call_once(self):
        calls = CallSessionManager()
        calls.start("AB12CD", CallKind.VOICE, "c1", "alice")
        calls.join("AB12CD", "c2")

        first = calls.leave("AB12CD", "c1")
        second = calls.leave("AB12CD", "c2")
        third = calls.leave("AB12CD", "c2")

        assert (first.removed, first.ended) == (True, False)
        assert (second.removed, second.ended) == (True, True)
        assert (third.removed, third.ended) == (False, False)
        assert calls.get("AB12CD") is None

    def test_remove_from_all_calls(self):
        calls = CallSessionManager()
        calls.start("R1", CallKind.VIDEO, "c1", "alice")
        calls.start("R2", CallKind.VIDEO, "c2", "bob")
        calls.join("R2", "c1")
        calls.start("R3", CallKind.VOICE, "c3", "carol")

        results = calls.remove_from_all_calls("c1")

        assert {(r.room_code, r.ended) for r in results} == {("R1", True), ("R2", False)}
        assert calls.get("R1") is None
        assert calls.get("R2").participants == {"c2"}
        assert calls.get("R3") is not None

    def test_to_dict(self):
        calls = CallSessionManager()
        call, _ = calls.start("AB12CD", CallKind.VIDEO, "c2", "bob")
        calls.join("AB12CD", "c1")

        assert call.to_dict() == {
            "roomCode": "AB12CD",
            "kind": "video",
            "initiator": "bob",
            "participants": ["c1", "c2"],
        }


class TestGroupTaskBoard:
    """Tests for GroupTask and GroupTaskBoard."""

    def test_from_payload(self):
        task = GroupTask.from_payload({"id": 7, "title": "review", "due": "friday"}, "alice")

        assert task.to_dict() == {
            "due": "friday",
            "id": 7,
            "text": "review",
            "completed": False,
            "createdBy": "alice",
        }

    def test_from_payload_requires_id(self):
        with pytest.raises(ValueError):
            GroupTask.from_payload({"text": "no id"})

    def test_add_returns_full_list(self):
        board = GroupTaskBoard()
        board.add("AB12CD", GroupTask(id="t1", text="one"))

        tasks = board.add("AB12CD", GroupTask(id="t2", text="two"))

        assert [t.id for t in tasks] == ["t1", "t2"]

    def test_toggle(self):
        board = GroupTaskBoard()
        board.add("AB12CD", GroupTask(id="t1", text="one"))

        assert board.toggle("AB12CD", "t1", True).completed is True
        assert board.toggle("AB12CD", "missing", True) is None
        assert board.toggle("OTHER1", "t1", True) is None

    def test_numeric_ids_are_kept(self):
        board = GroupTaskBoard()
        board.add("AB12CD", GroupTask.from_payload({"id": 1729123456789.5, "text": "one"}))

        assert board.toggle("AB12CD", 1729123456789.5, True).id == 1729123456789.5
        assert board.toggle("AB12CD", "1729123456789.5", True) is None
        assert board.delete("AB12CD", 1729123456789.5) == []

    def test_delete(self):
        board = GroupTaskBoard()
        for task_id in ("t1", "t2", "t3"):
            board.add("AB12CD", GroupTask(id=task_id, text=task_id))

        assert [t.id for t in board.delete("AB12CD", "t2")] == ["t1", "t3"]
        assert board.delete("AB12CD", "t2") is None
        assert board.delete("OTHER1", "t1") is None
        assert [t.id for t in board.tasks_for("AB12CD")] == ["t1", "t3"]


class TestVoiceAndState:
    def test_voice_buffer_is_append_only(self):
        buffer = VoiceMessageBuffer()
        buffer.append("AB12CD", VoiceMessage(id="1", sender="alice", audio="aaa", duration=1.5))
        buffer.append("AB12CD", VoiceMessage(id="2", sender="bob", audio="bbb", duration=None))

        assert [m.id for m in buffer.messages_for("AB12CD")] == ["1", "2"]
        assert buffer.messages_for("OTHER1") == []

    def test_message_ids_are_unique(self):
        state = CollaborationState()

        ids = {state.next_message_id() for _ in range(100)}

        assert len(ids) == 100
        assert all(re.fullmatch(r"\d+-\d+", i) for i in ids)

    def test_clear(self):
        state = CollaborationState()
        state.registry.join("AB12CD", "c1", "alice")
        state.calls.start("AB12CD", CallKind.VIDEO, "c1", "alice")
        state.tasks.add("AB12CD", GroupTask(id="t1", text="x"))

        state.clear()

        assert state.registry.room_codes() == []
        assert state.calls.active_call_count == 0
        assert state.tasks.tasks_for("AB12CD") == []
