"""Live room roster: which connections are currently joined to which room."""

import logging
from dataclasses import dataclass
from typing import Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LiveParticipant:
    """A connection currently joined to a room."""

    connection_id: str
    display_name: str


class RoomRegistry:
    """
    Mapping of room code -> live participants, in join order.

    Display names are unique within a room: a second join under the same
    name replaces the stale entry, which is how a page refresh or reconnect
    avoids leaving a ghost behind. Rooms whose live set empties are removed.
    """

    def __init__(self) -> None:
        self._rooms: dict[str, list[LiveParticipant]] = {}

    def __contains__(self, room_code: object) -> bool:
        return room_code in self._rooms

    def room_codes(self) -> list[str]:
        return list(self._rooms)

    def participant_count(self, room_code: str) -> int:
        return len(self._rooms.get(room_code, []))

    def join(
        self,
        room_code: str,
        connection_id: str,
        display_name: str,
    ) -> Optional[LiveParticipant]:
        """
        Upsert a participant by display name.

        A connection holds at most one entry per room, so joining again under
        a new name renames it.

        Returns:
            The entry that was replaced, if the name was already live.
        """
        participants = self._rooms.setdefault(room_code, [])

        replaced = None
        for participant in list(participants):
            if participant.display_name == display_name:
                replaced = participant
                participants.remove(participant)
            elif participant.connection_id == connection_id:
                participants.remove(participant)

        participants.append(LiveParticipant(connection_id, display_name))

        if replaced is not None:
            logger.info(
                f"[ROOM {room_code}] {display_name} reconnected: "
                f"{replaced.connection_id} -> {connection_id}"
            )
        else:
            logger.info(f"[ROOM {room_code}] Added {display_name} ({connection_id})")
        return replaced

    def leave(self, room_code: str, connection_id: str) -> Optional[LiveParticipant]:
        """
        Remove a connection from a room.

        Returns:
            The removed entry, or None if the connection was not live there.
        """
        participants = self._rooms.get(room_code)
        if participants is None:
            return None

        removed = None
        for index, participant in enumerate(participants):
            if participant.connection_id == connection_id:
                removed = participants.pop(index)
                break

        if not participants:
            del self._rooms[room_code]
            logger.info(f"[ROOM {room_code}] Room deleted - no participants")

        return removed

    def list_names(self, room_code: str) -> list[str]:
        return [p.display_name for p in self._rooms.get(room_code, [])]

    def display_name_for(self, room_code: str, connection_id: str) -> Optional[str]:
        for participant in self._rooms.get(room_code, []):
            if participant.connection_id == connection_id:
                return participant.display_name
        return None

    def rooms_for_connection(self, connection_id: str) -> list[str]:
        """Every room in which ``connection_id`` is live."""
        return [
            room_code
            for room_code, participants in self._rooms.items()
            if any(p.connection_id == connection_id for p in participants)
        ]

    def clear(self) -> None:
        self._rooms.clear()
