import queue
import signal
import sys
import threading

from broker import DISPLAY_MESSAGE, LOAD_MESSAGES
from config import RELAY_URL, setup_logging
from wsbridge import WSBridge

logger = setup_logging()

# Graceful shutdown event
stop_event = threading.Event()
def should_stop() -> bool:
    return stop_event.is_set()


def format_message(message: dict) -> str:
    return f"[{message.get('id')}] {message.get('text', '')}"


def handle_event(event: dict) -> list:
    """Turn one relay event into the lines to print."""
    t = event.get("type")
    data = event.get("data")
    if t == LOAD_MESSAGES and isinstance(data, list):
        return [format_message(m) for m in data]
    if t == DISPLAY_MESSAGE and isinstance(data, dict):
        return [format_message(data)]
    return []


# Audience loop: print backlog and live messages
def display_loop(ws: WSBridge):
    while not should_stop():
        try:
            event = ws.get_event(timeout=0.1)
        except queue.Empty:
            if ws.closed.is_set():
                print("Disconnected from server.")
                stop_event.set()
            continue
        for line in handle_event(event):
            print(line)


# Participant loop: every non-blank stdin line is submitted
def input_loop(ws: WSBridge, stream=sys.stdin):
    for line in stream:
        if should_stop():
            break
        text = line.strip()
        if text:
            ws.submit(text)
    stop_event.set()


def request_shutdown(*_):
    print("\nShutting down...")
    stop_event.set()


def main(argv=None):
    argv = sys.argv[1:] if argv is None else argv
    if len(argv) > 1:
        print("Usage: python main.py [ws_url]")
        return 1
    url = argv[0] if argv else RELAY_URL

    try:
        ws = WSBridge(url)
    except ConnectionRefusedError:
        print("Error: Start the relay server first `python server.py`")
        return 1
    except Exception as e:
        print("WebSocket connection error: ", e)
        return 1

    for sig in (signal.SIGINT, signal.SIGTERM):
        signal.signal(sig, request_shutdown)

    logger.info(f"Connected to {url}. Type a message and press Enter.")
    t1 = threading.Thread(target=display_loop, args=(ws,), daemon=True)
    t2 = threading.Thread(target=input_loop, args=(ws,), daemon=True)
    t1.start()
    t2.start()

    try:
        while not should_stop():
            stop_event.wait(1)
    except KeyboardInterrupt:
        request_shutdown()

    ws.close()
    t1.join(timeout=1.0)
    print("Shutdown complete")
    return 0


if __name__ == "__main__":
    sys.exit(main())
