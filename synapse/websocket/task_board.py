"""Shared per-room task lists."""

import logging
from dataclasses import dataclass, field
from typing import Any, Optional

logger = logging.getLogger(__name__)


@dataclass
class GroupTask:
    """A to-do item shared by everyone in a room."""

    id: Any
    text: str
    completed: bool = False
    created_by: Optional[str] = None
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload: dict[str, Any], created_by: Optional[str] = None) -> "GroupTask":
        """
        Build a task from a client payload.

        The id is kept exactly as sent (clients use numeric ids). Unknown
        keys are kept and echoed back so clients can attach their own
        metadata (due dates, colours and the like).

        Raises:
            ValueError: If the payload has no id
        """
        task_id = payload.get("id")
        if task_id is None or task_id == "":
            raise ValueError("task payload has no id")

        extra = {
            key: value
            for key, value in payload.items()
            if key not in ("id", "text", "title", "completed", "createdBy")
        }
        return cls(
            id=task_id,
            text=str(payload.get("text") or payload.get("title") or ""),
            completed=bool(payload.get("completed", False)),
            created_by=payload.get("createdBy") or created_by,
            extra=extra,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            **self.extra,
            "id": self.id,
            "text": self.text,
            "completed": self.completed,
            "createdBy": self.created_by,
        }


class GroupTaskBoard:
    """Room code -> ordered task list (insertion order minus deletions)."""

    def __init__(self) -> None:
        self._tasks: dict[str, list[GroupTask]] = {}

    def tasks_for(self, room_code: str) -> list[GroupTask]:
        return list(self._tasks.get(room_code, []))

    def add(self, room_code: str, task: GroupTask) -> list[GroupTask]:
        """Append a task and return the room's full list."""
        tasks = self._tasks.setdefault(room_code, [])
        tasks.append(task)
        logger.info(f"[TASK {room_code}] Added {task.id}")
        return list(tasks)

    def toggle(self, room_code: str, task_id: Any, completed: bool) -> Optional[GroupTask]:
        """
        Set a task's completion flag.

        Returns:
            The updated task, or None if the id is not on the board.
        """
        for task in self._tasks.get(room_code, []):
            if task.id == task_id:
                task.completed = completed
                logger.info(f"[TASK {room_code}] Toggled {task_id} -> {completed}")
                return task
        return None

    def delete(self, room_code: str, task_id: Any) -> Optional[list[GroupTask]]:
        """
        Remove a task.

        Returns:
            The remaining list, or None if the id is not on the board.
        """
        tasks = self._tasks.get(room_code)
        if not tasks:
            return None

        remaining = [task for task in tasks if task.id != task_id]
        if len(remaining) == len(tasks):
            return None

        self._tasks[room_code] = remaining
        logger.info(f"[TASK {room_code}] Deleted {task_id}")
        return list(remaining)

    def clear(self) -> None:
        self._tasks.clear()
