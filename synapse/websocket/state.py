"""Single-writer store for all in-memory collaboration state."""

import asyncio
import itertools
import time
from dataclasses import dataclass, field

from .calls import CallSessionManager
from .registry import RoomRegistry
from .task_board import GroupTaskBoard
from .voice import VoiceMessageBuffer


@dataclass
class CollaborationState:
    """
    Everything the real-time layer keeps in process memory.

    Created once per process and handed to the event dispatcher. Mutations
    and the broadcasts they trigger run under ``lock`` so that each event is
    applied and announced before the next one touches the same structures.
    Nothing here survives a restart.
    """

    registry: RoomRegistry = field(default_factory=RoomRegistry)
    calls: CallSessionManager = field(default_factory=CallSessionManager)
    tasks: GroupTaskBoard = field(default_factory=GroupTaskBoard)
    voice: VoiceMessageBuffer = field(default_factory=VoiceMessageBuffer)
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    _counter: itertools.count = field(default_factory=itertools.count, repr=False)

    def next_message_id(self) -> str:
        """Process-local unique id: epoch milliseconds plus a counter."""
        return f"{int(time.time() * 1000)}-{next(self._counter)}"

    def clear(self) -> None:
        self.registry.clear()
        self.calls.clear()
        self.tasks.clear()
        self.voice.clear()
