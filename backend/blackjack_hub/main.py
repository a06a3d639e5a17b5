"""
Blackjack Hub API и WebSocket.
"""
import logging

from fastapi import FastAPI, WebSocket
from fastapi.middleware.cors import CORSMiddleware

from .config import get_config
from .ws_handlers import Hub, ws_session_loop

config = get_config()

logging.basicConfig(
    level=logging.DEBUG if config.debug else logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)


def create_app(hub: Hub | None = None) -> FastAPI:
    """Собрать приложение; hub можно передать снаружи (тесты)."""
    hub = hub or Hub.from_config()
    app = FastAPI(title="Blackjack Hub API")
    app.state.hub = hub

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health")
    def health():
        return {"status": "ok"}

    @app.get("/rooms")
    async def rooms():
        """Список комнат для лобби."""
        summaries = []
        for name in hub.store.names():
            room = hub.store.get(name)
            summaries.append({
                "name": room.name,
                "players": len(room.players),
                "roundActive": room.round_active,
            })
        return summaries

    @app.websocket("/ws")
    async def websocket_endpoint(ws: WebSocket):
        logger.info("WS: connection attempt from %s", ws.client)
        await ws_session_loop(ws, hub)

    logger.info("Blackjack Hub ready: rooms=%s", hub.store.names())
    return app


app = create_app()
