"""Active call sessions: at most one audio/video call per room."""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

logger = logging.getLogger(__name__)


class CallKind(str, Enum):
    """Kind of call, fixed for the life of the session."""

    VIDEO = "video"
    VOICE = "voice"


class CallError(Exception):
    """Base class for invalid call state transitions."""


class NoActiveCallError(CallError):
    """Raised when joining a call in a room that has none."""

    def __init__(self, room_code: str) -> None:
        self.room_code = room_code
        super().__init__("No active call in this room")


@dataclass
class ActiveCall:
    """The ongoing call of a room."""

    room_code: str
    kind: CallKind
    initiator: str
    participants: set[str] = field(default_factory=set)

    def to_dict(self) -> dict:
        return {
            "roomCode": self.room_code,
            "kind": self.kind.value,
            "initiator": self.initiator,
            "participants": sorted(self.participants),
        }


@dataclass
class CallLeaveResult:
    """Outcome of removing a connection from a room's call."""

    room_code: str
    removed: bool
    ended: bool


class CallSessionManager:
    """
    Room code -> ActiveCall.

    State per room: NO_CALL -> ACTIVE(kind, initiator, participants).
    A session is deleted the moment its participant set becomes empty.
    """

    def __init__(self) -> None:
        self._calls: dict[str, ActiveCall] = {}

    @property
    def active_call_count(self) -> int:
        return len(self._calls)

    def get(self, room_code: str) -> Optional[ActiveCall]:
        return self._calls.get(room_code)

    def start(
        self,
        room_code: str,
        kind: CallKind,
        starter_id: str,
        starter_name: str,
    ) -> tuple[ActiveCall, Optional[ActiveCall]]:
        """
        Start a call with the starter as its only participant.

        Starting while a call is active replaces it (last start wins).

        Returns:
            (new call, discarded call or None)
        """
        previous = self._calls.get(room_code)
        call = ActiveCall(
            room_code=room_code,
            kind=CallKind(kind),
            initiator=starter_name,
            participants={starter_id},
        )
        self._calls[room_code] = call

        if previous is not None:
            logger.warning(
                f"[CALL {room_code}] {starter_name} started a {call.kind.value} call, "
                f"discarding the {previous.kind.value} call started by {previous.initiator}"
            )
        else:
            logger.info(f"[CALL {room_code}] {starter_name} started {call.kind.value} call")
        return call, previous

    def join(self, room_code: str, connection_id: str) -> ActiveCall:
        """
        Add a connection to the room's call.

        Raises:
            NoActiveCallError: If the room has no active call
        """
        call = self._calls.get(room_code)
        if call is None:
            raise NoActiveCallError(room_code)
        call.participants.add(connection_id)
        logger.info(f"[CALL {room_code}] {connection_id} joined call")
        return call

    def leave(self, room_code: str, connection_id: str) -> CallLeaveResult:
        """Remove a connection from the room's call, ending it when empty."""
        call = self._calls.get(room_code)
        if call is None or connection_id not in call.participants:
            return CallLeaveResult(room_code=room_code, removed=False, ended=False)

        call.participants.discard(connection_id)
        ended = not call.participants
        if ended:
            del self._calls[room_code]
            logger.info(f"[CALL {room_code}] Call ended - no participants")
        return CallLeaveResult(room_code=room_code, removed=True, ended=ended)

    def remove_from_all_calls(self, connection_id: str) -> list[CallLeaveResult]:
        """Remove a connection from every call it is in (disconnect cleanup)."""
        return [
            self.leave(room_code, connection_id)
            for room_code, call in list(self._calls.items())
            if connection_id in call.participants
        ]

    def clear(self) -> None:
        self._calls.clear()
