import logging
import re
from typing import Any, Optional, Protocol, Set

from config import LOGGER_NAME
from store import Message, MessageStore

logger = logging.getLogger(LOGGER_NAME)

# event types
LOAD_MESSAGES = "load_messages"
NEW_MESSAGE = "new_message"
DISPLAY_MESSAGE = "display_message"

# str.strip() keeps the byte order mark; browsers' trim() drops it
_EDGE_BLANKS = re.compile(r"^[\s\ufeff]+|[\s\ufeff]+$")


class Channel(Protocol):
    async def send_json(self, data: Any) -> None: ...


def envelope(event: str, data: Any) -> dict:
    return {"type": event, "data": data}


def clean_text(raw: Any) -> Optional[str]:
    """Return the trimmed submission, or None if it should be dropped."""
    if not isinstance(raw, str):
        return None
    text = _EDGE_BLANKS.sub("", raw)
    return text or None


class Broker:
    """Relays accepted messages from the store to every connected channel."""

    def __init__(self, store: MessageStore):
        self.store = store
        self._clients: Set[Channel] = set()

    @property
    def clients(self) -> int:
        return len(self._clients)

    async def connect(self, client: Channel):
        # snapshot and register together so nothing is missed or replayed twice
        backlog = [m.model_dump() for m in self.store.snapshot()]
        self._clients.add(client)
        logger.info(f"Client connected ({len(self._clients)} connected)")
        await self.send(client, LOAD_MESSAGES, backlog)

    def disconnect(self, client: Channel):
        if client in self._clients:
            self._clients.discard(client)
            logger.info(f"Client disconnected ({len(self._clients)} connected)")

    async def submit(self, raw: Any) -> Optional[Message]:
        text = clean_text(raw)
        if text is None:
            logger.debug(f"Dropped blank submission: {raw!r}")
            return None
        message = self.store.append(text)
        logger.info(f"Message received: {message.text}")
        await self.broadcast(DISPLAY_MESSAGE, message.model_dump())
        return message

    async def send(self, client: Channel, event: str, data: Any) -> bool:
        try:
            await client.send_json(envelope(event, data))
            return True
        except Exception as e:
            logger.warning(f"Failed to send {event}: {e}")
            self._clients.discard(client)
            return False

    async def broadcast(self, event: str, data: Any):
        for client in list(self._clients):
            await self.send(client, event, data)
