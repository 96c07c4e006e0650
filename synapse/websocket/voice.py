"""Append-only per-room buffer of voice notes."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional


@dataclass
class VoiceMessage:
    id: str
    sender: str
    audio: str
    duration: Optional[float]
    timestamp: datetime = field(default_factory=datetime.utcnow)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "sender": self.sender,
            "audio": self.audio,
            "duration": self.duration,
            "timestamp": self.timestamp.isoformat(),
        }


class VoiceMessageBuffer:
    def __init__(self) -> None:
        self._messages: dict[str, list[VoiceMessage]] = {}

    def append(self, room_code: str, message: VoiceMessage) -> VoiceMessage:
        self._messages.setdefault(room_code, []).append(message)
        return message

    def messages_for(self, room_code: str) -> list[VoiceMessage]:
        return list(self._messages.get(room_code, []))

    def clear(self) -> None:
        self._messages.clear()
