import time
from typing import Callable, List

from pydantic import BaseModel, ConfigDict


class Message(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    text: str


class MessageStore:
    """Append-only, in-memory message log. Lost when the process exits."""

    def __init__(self, clock: Callable[[], float] = time.time):
        self._messages: List[Message] = []
        self._clock = clock
        self._last_id = 0

    def append(self, text: str) -> Message:
        # ids are wall-clock milliseconds, clamped so they never go backwards
        msg_id = max(int(self._clock() * 1000), self._last_id)
        self._last_id = msg_id
        message = Message(id=msg_id, text=text)
        self._messages.append(message)
        return message

    def snapshot(self) -> List[Message]:
        return list(self._messages)

    def __len__(self) -> int:
        return len(self._messages)
