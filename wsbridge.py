from websocket import create_connection, WebSocketConnectionClosedException, WebSocketException
import json, logging, threading, queue

from broker import DISPLAY_MESSAGE, LOAD_MESSAGES, NEW_MESSAGE, envelope
from config import LOGGER_NAME, RELAY_URL

logger = logging.getLogger(LOGGER_NAME)

RELAY_EVENTS = (LOAD_MESSAGES, DISPLAY_MESSAGE)


class WSBridge:
    """Relay connection for the terminal client.

    A daemon thread reads frames and queues the relay events (backlog and live
    messages); submissions go out from the caller's thread under a lock.
    """
    def __init__(self, url=RELAY_URL):
        self.url = url
        self.ws = create_connection(url)
        self.lock = threading.Lock()
        self.event_q = queue.Queue(maxsize=100)
        self.closed = threading.Event()
        self.thread = threading.Thread(target=self._receive_events, daemon=True)
        self.thread.start()

    def _receive_events(self):
        try:
            while not self.closed.is_set():
                try:
                    frame = self.ws.recv()
                except WebSocketConnectionClosedException:
                    break
                except (WebSocketException, OSError) as e:
                    logger.warning(f"Lost relay connection to {self.url}: {e}")
                    break
                try:
                    event = json.loads(frame)
                except ValueError:
                    logger.debug(f"Ignored non-JSON frame from {self.url}")
                    continue
                if isinstance(event, dict) and event.get("type") in RELAY_EVENTS:
                    self.event_q.put(event)
        finally:
            self.closed.set()

    def submit(self, text: str) -> bool:
        frame = json.dumps(envelope(NEW_MESSAGE, text), ensure_ascii=False)
        with self.lock:
            try:
                self.ws.send(frame)
                return True
            except WebSocketConnectionClosedException:
                logger.warning(f"Relay at {self.url} is closed, message not sent")
                return False

    def get_event(self, timeout=None) -> dict:
        return self.event_q.get(timeout=timeout)

    def close(self):
        self.closed.set()
        with self.lock:
            try:
                self.ws.close()
            except WebSocketException as e:
                logger.debug(f"Error closing relay connection: {e}")
