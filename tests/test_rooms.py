"""Tests for the room endpoints and room service."""

from unittest.mock import patch

import pytest
from fastapi import HTTPException
from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from synapse.models import Room, RoomMember, User
from synapse.services import room_service
from synapse.services.room_service import ROOM_CODE_ALPHABET, generate_room_code


class TestRoomCodes:
    """Tests for room code generation."""

    def test_code_shape(self):
        code = generate_room_code()

        assert len(code) == 6
        assert all(ch in ROOM_CODE_ALPHABET for ch in code)

    def test_custom_length(self):
        assert len(generate_room_code(8)) == 8


@pytest.mark.asyncio
class TestCreateRoom:
    """Tests for POST /api/rooms."""

    async def test_create_room(
        self, client: AsyncClient, auth_headers: dict, db_session: AsyncSession, test_user: User
    ):
        """Test the host becomes the first participant."""
        response = await client.post("/api/rooms", headers=auth_headers)

        assert response.status_code == 201
        data = response.json()
        assert data["message"] == "Room created successfully"
        assert len(data["roomCode"]) == 6
        assert data["participants"] == [str(test_user.id)]

        room = await room_service.get_room_by_code(db_session, data["roomCode"])
        assert room is not None
        assert room.host_id == test_user.id

    async def test_create_room_requires_auth(self, client: AsyncClient):
        response = await client.post("/api/rooms")

        assert response.status_code == 401

    async def test_create_room_retries_on_collision(
        self, db_session: AsyncSession, test_room: Room, test_user: User
    ):
        """Test a taken code is skipped in favour of a fresh one."""
        with patch.object(
            room_service, "generate_room_code", side_effect=[test_room.code, "ZZ99ZZ"]
        ):
            room = await room_service.create_room(db_session, test_user.id)

        assert room.code == "ZZ99ZZ"

    async def test_create_room_gives_up(
        self, db_session: AsyncSession, test_room: Room, test_user: User
    ):
        """Test 503 once every attempt collides."""
        with patch.object(room_service, "generate_room_code", return_value=test_room.code):
            with pytest.raises(HTTPException) as exc_info:
                await room_service.create_room(db_session, test_user.id)

        assert exc_info.value.status_code == 503


@pytest.mark.asyncio
class TestJoinRoom:
    """Tests for POST /api/rooms/join."""

    async def test_join_room(
        self,
        client: AsyncClient,
        auth_headers_2: dict,
        db_session: AsyncSession,
        test_room: Room,
        test_user_2: User,
    ):
        """Test a second user is added to the participants."""
        response = await client.post(
            "/api/rooms/join", json={"roomCode": test_room.code}, headers=auth_headers_2
        )

        assert response.status_code == 200
        data = response.json()
        assert data["message"] == "Joined room successfully"
        assert data["alreadyMember"] is False

        result = await db_session.execute(
            select(RoomMember).where(RoomMember.room_id == test_room.id)
        )
        assert {m.user_id for m in result.scalars()} == {test_room.host_id, test_user_2.id}

    async def test_join_room_twice(
        self, client: AsyncClient, auth_headers_2: dict, test_room: Room
    ):
        """Test joining again is harmless."""
        await client.post(
            "/api/rooms/join", json={"roomCode": test_room.code}, headers=auth_headers_2
        )
        response = await client.post(
            "/api/rooms/join", json={"roomCode": test_room.code}, headers=auth_headers_2
        )

        assert response.status_code == 200
        assert response.json()["message"] == "Already in the room"
        assert response.json()["alreadyMember"] is True

    async def test_host_is_already_member(
        self, client: AsyncClient, auth_headers: dict, test_room: Room
    ):
        response = await client.post(
            "/api/rooms/join", json={"roomCode": test_room.code}, headers=auth_headers
        )

        assert response.json()["alreadyMember"] is True

    async def test_join_unknown_room(self, client: AsyncClient, auth_headers: dict):
        response = await client.post(
            "/api/rooms/join", json={"roomCode": "NOPE00"}, headers=auth_headers
        )

        assert response.status_code == 404


@pytest.mark.asyncio
class TestRoomAnalysis:
    """Tests for room analysis snapshots."""

    async def test_no_analysis(self, client: AsyncClient, auth_headers: dict, test_room: Room):
        response = await client.get(f"/api/rooms/{test_room.code}/analysis", headers=auth_headers)

        assert response.status_code == 404

    async def test_upsert_replaces_snapshot(
        self, client: AsyncClient, auth_headers: dict, db_session: AsyncSession, test_room: Room
    ):
        """Test one snapshot per room; the latest upload wins."""
        await room_service.upsert_room_analysis(
            db_session, test_room.code, "first.pdf", {"summary": {"overview": "one"}}
        )
        await room_service.upsert_room_analysis(
            db_session, test_room.code, "second.pdf", {"summary": {"overview": "two"}}
        )

        response = await client.get(f"/api/rooms/{test_room.code}/analysis", headers=auth_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["fileName"] == "second.pdf"
        assert data["analysis"]["summary"]["overview"] == "two"

    async def test_snapshot_loader(self, session_maker, db_session: AsyncSession):
        """Test the join catch-up loader reads through its own session."""
        await room_service.upsert_room_analysis(db_session, "QQ11QQ", "doc.pdf", {"tasks": []})
        await db_session.commit()

        load = room_service.make_snapshot_loader(session_maker)

        snapshot = await load("QQ11QQ")
        assert snapshot["roomCode"] == "QQ11QQ"
        assert snapshot["fileName"] == "doc.pdf"
        assert snapshot["analysis"] == {"tasks": []}
        assert await load("OTHER1") is None
