"""
Менеджер WebSocket: подписки соединений на комнаты и рассылка событий комнаты.
"""
import logging
from dataclasses import dataclass
from typing import Any

from fastapi import WebSocket

from .rooms import RoomStore, room_payload

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Session:
    room_name: str
    player_id: str


@dataclass(frozen=True)
class OutboundEvent:
    room_name: str
    payload: dict[str, Any]

    @property
    def type(self) -> str:
        return self.payload["type"]


class ConnectionRegistry:
    """
    Соединения по connection_id. Сам WebSocket не хранит состояния игры:
    привязка к комнате и игроку живёт здесь.
    """

    def __init__(self):
        self._sockets: dict[str, WebSocket] = {}
        self._sessions: dict[str, Session] = {}

    def attach(self, conn_id: str, ws: WebSocket) -> None:
        self._sockets[conn_id] = ws

    def detach(self, conn_id: str) -> None:
        self._sockets.pop(conn_id, None)

    def socket(self, conn_id: str) -> WebSocket | None:
        return self._sockets.get(conn_id)

    def subscribe(self, conn_id: str, room_name: str, player_id: str) -> None:
        self._sessions[conn_id] = Session(room_name, player_id)

    def unsubscribe(self, conn_id: str) -> Session | None:
        return self._sessions.pop(conn_id, None)

    def session_of(self, conn_id: str) -> Session | None:
        return self._sessions.get(conn_id)

    def members_of(self, room_name: str) -> set[str]:
        return {cid for cid, s in self._sessions.items() if s.room_name == room_name}

    def seat_holders(self, room_name: str, player_id: str) -> set[str]:
        seat = Session(room_name, player_id)
        return {cid for cid, s in self._sessions.items() if s == seat}

    def holds_seat(self, room_name: str, player_id: str) -> bool:
        """Есть ли ещё соединение, сидящее на этом месте (например, вторая вкладка)."""
        return bool(self.seat_holders(room_name, player_id))


class BroadcastService:
    def __init__(self, store: RoomStore, registry: ConnectionRegistry):
        self.store = store
        self.registry = registry

    # Payload собирается в момент создания события, то есть уже после мутации.
    def room_state(self, room_name: str) -> OutboundEvent:
        room = self.store.get_or_create(room_name)
        return OutboundEvent(room_name, {
            "type": "room_update",
            "roomName": room_name,
            "room": room_payload(room),
        })

    def round_start(self, room_name: str) -> OutboundEvent:
        return OutboundEvent(room_name, {"type": "round_start", "roomName": room_name})

    def round_end(
        self,
        room_name: str,
        results: dict[str, tuple[str, int]] | None = None,
    ) -> OutboundEvent:
        return OutboundEvent(room_name, {
            "type": "round_end",
            "roomName": room_name,
            "results": {
                player_id: {"outcome": outcome, "delta": delta}
                for player_id, (outcome, delta) in (results or {}).items()
            },
        })

    async def publish(self, events: list[OutboundEvent]) -> None:
        for event in events:
            await self._broadcast(event.room_name, event.payload)

    async def _broadcast(self, room_name: str, payload: dict[str, Any]) -> None:
        # Мёртвые соединения убирает их собственный цикл приёма при отключении.
        for conn_id in sorted(self.registry.members_of(room_name)):
            ws = self.registry.socket(conn_id)
            if ws is None:
                continue
            try:
                await ws.send_json(payload)
            except Exception as e:
                logger.warning("broadcast to %s in %s failed: %s", conn_id, room_name, e)
