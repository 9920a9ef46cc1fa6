import json
from typing import Optional

import uvicorn
from fastapi import FastAPI, WebSocket
from fastapi.responses import FileResponse
from fastapi.staticfiles import StaticFiles

from broker import NEW_MESSAGE, Broker
from config import HOST, PORT, PUBLIC_DIR, setup_logging
from store import MessageStore

logger = setup_logging()


def create_app(store: Optional[MessageStore] = None) -> FastAPI:
    app = FastAPI()
    broker = Broker(store if store is not None else MessageStore())
    app.state.broker = broker

    # static file serving
    app.mount("/public", StaticFiles(directory=PUBLIC_DIR), name="public")

    @app.get("/")
    def audience():
        return FileResponse(PUBLIC_DIR / "index.html")

    @app.get("/submit")
    def submit_page():
        return FileResponse(PUBLIC_DIR / "submit.html")

    @app.websocket("/ws")
    async def ws_endpoint(ws: WebSocket):
        await ws.accept()
        await broker.connect(ws)
        try:
            while True:
                message = await ws.receive()
                if message["type"] == "websocket.disconnect":
                    break
                frame = message.get("text")
                if frame is None:
                    logger.debug("Ignored binary frame")
                    continue
                try:
                    event = json.loads(frame)
                except ValueError:
                    logger.debug(f"Ignored non-JSON frame: {frame[:80]!r}")
                    continue
                if not isinstance(event, dict) or event.get("type") != NEW_MESSAGE:
                    logger.debug(f"Ignored frame: {frame[:80]!r}")
                    continue
                await broker.submit(event.get("data"))
        finally:
            broker.disconnect(ws)

    return app


app = create_app()


if __name__ == "__main__":
    logger.info(f"Server listening on *:{PORT}")
    uvicorn.run(app, host=HOST, port=PORT)
