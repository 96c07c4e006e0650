"""Shared pytest fixtures for backend tests."""

import os
import sys
from typing import AsyncGenerator
from unittest.mock import AsyncMock
from uuid import uuid4

# Settings are read at import time; configure them before importing the app.
os.environ.setdefault("JWT_SECRET", "test-secret-key-for-unit-tests")
os.environ.setdefault("DB_WARMUP_CONNECTIONS", "0")
os.environ["GEMINI_API_KEY"] = ""

# Add project root to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import bcrypt
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from synapse.database import Base, get_db
from synapse.main import app
from synapse.models import Roadmap, Room, RoomMember, User
from synapse.services.auth_service import create_access_token
from synapse.websocket import CollaborationState, ConnectionManager, EventContext


def get_test_password_hash(password: str) -> str:
    """
    Generate a password hash for testing.

    Uses bcrypt directly to avoid passlib version detection issues.
    """
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


# Use in-memory SQLite for testing
SQLALCHEMY_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture
async def engine():
    """Create a test database engine with SQLite."""
    engine = create_async_engine(
        SQLALCHEMY_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # Enable foreign key support for SQLite
    @event.listens_for(engine.sync_engine, "connect")
    def set_sqlite_pragma(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def session_maker(engine) -> async_sessionmaker:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest_asyncio.fixture
async def db_session(session_maker) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    async with session_maker() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Create a test client with database dependency override."""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def test_user(db_session: AsyncSession) -> User:
    """Create a student test user."""
    user = User(
        id=uuid4(),
        username="alice",
        email="alice@example.com",
        password_hash=get_test_password_hash("TestPassword123!"),
        role="student",
        points=0,
    )
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest_asyncio.fixture
async def test_user_2(db_session: AsyncSession) -> User:
    """Create a teacher test user."""
    user = User(
        id=uuid4(),
        username="bob",
        email="bob@example.com",
        password_hash=get_test_password_hash("TestPassword456!"),
        role="teacher",
        points=0,
    )
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


def _token_for(user: User) -> str:
    return create_access_token(
        data={"sub": str(user.id), "email": user.email, "role": user.role}
    )


@pytest.fixture
def auth_token(test_user: User) -> str:
    """Create an authentication token for the test user."""
    return _token_for(test_user)


@pytest.fixture
def auth_headers(auth_token: str) -> dict:
    """Create authorization headers."""
    return {"Authorization": f"Bearer {auth_token}"}


@pytest.fixture
def auth_headers_2(test_user_2: User) -> dict:
    """Create authorization headers for the second user."""
    return {"Authorization": f"Bearer {_token_for(test_user_2)}"}


@pytest_asyncio.fixture
async def test_room(db_session: AsyncSession, test_user: User) -> Room:
    """Create a room hosted by the test user."""
    room = Room(id=uuid4(), code="AB12CD", host_id=test_user.id)
    room.members = [RoomMember(user_id=test_user.id)]
    db_session.add(room)
    await db_session.commit()
    await db_session.refresh(room)
    return room


@pytest_asyncio.fixture
async def test_roadmap(db_session: AsyncSession, test_user: User) -> Roadmap:
    """Create a roadmap with two milestones of tasks."""
    roadmap = Roadmap(
        id=uuid4(),
        room_code="AB12CD",
        created_by=test_user.id,
        document_title="notes.pdf",
        summary="Intro to graphs",
        data={
            "learningObjectives": ["Understand BFS"],
            "roadmap": [
                {
                    "milestone_id": "m1",
                    "title": "Basics",
                    "tasks": [
                        {"task_id": "t1", "title": "Read chapter 1", "points": 20},
                        {"task_id": "t2", "title": "Exercises", "estimated_hours": 3},
                    ],
                },
                {
                    "milestone_id": "m2",
                    "title": "Traversal",
                    "tasks": [{"taskId": "t3", "title": "Implement BFS"}],
                },
            ],
            "hints": [],
            "confidence": 0.8,
        },
    )
    db_session.add(roadmap)
    await db_session.commit()
    await db_session.refresh(roadmap)
    return roadmap


# =============================================================================
# Real-time fixtures
# =============================================================================


@pytest.fixture
def ws_manager() -> ConnectionManager:
    return ConnectionManager()


@pytest.fixture
def collab_state() -> CollaborationState:
    return CollaborationState()


def sent_messages(websocket: AsyncMock) -> list[dict]:
    """Every envelope sent to a mocked websocket, in order."""
    return [call.args[0] for call in websocket.send_json.await_args_list]


def sent_of_type(websocket: AsyncMock, message_type: str) -> list:
    """Payloads of the envelopes of one type sent to a mocked websocket."""
    return [m["data"] for m in sent_messages(websocket) if m["type"] == message_type]


@pytest.fixture
def make_client(ws_manager: ConnectionManager, collab_state: CollaborationState):
    """
    Factory for connected clients backed by AsyncMock websockets.

    Returns (EventContext, websocket mock). The connect greeting is cleared
    so assertions only see room traffic.
    """

    async def _make(snapshot_loader=None) -> tuple[EventContext, AsyncMock]:
        websocket = AsyncMock()
        connection = await ws_manager.connect(websocket)
        websocket.send_json.reset_mock()
        ctx = EventContext(
            state=collab_state,
            connection=connection,
            manager=ws_manager,
        )
        if snapshot_loader is not None:
            ctx.snapshot_loader = snapshot_loader
        return ctx, websocket

    return _make


@pytest.fixture
def outbox():
    """``outbox(websocket, type)`` -> payloads of that type sent to the socket."""
    return sent_of_type
