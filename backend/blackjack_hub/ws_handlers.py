"""
Обработка сообщений WebSocket: join, start_round, bet, hit, stand и отключение.
Роутер только мутирует состояние и возвращает список событий для рассылки;
отправку делает BroadcastService.
"""
import asyncio
import logging
import random
import uuid

from fastapi import WebSocket
from starlette.websockets import WebSocketDisconnect

from .config import get_config
from .exceptions import DeckExhausted, MalformedMessage
from .rooms import Player, Room, RoomStore
from .round_engine import RoundEngine
from .schemas import (
    BetMessage,
    HitMessage,
    JoinMessage,
    StandMessage,
    StartRoundMessage,
    parse_inbound,
)
from .ws_manager import BroadcastService, ConnectionRegistry, OutboundEvent

logger = logging.getLogger(__name__)


class MessageRouter:
    def __init__(
        self,
        store: RoomStore,
        registry: ConnectionRegistry,
        engine: RoundEngine,
        broadcaster: BroadcastService,
        starting_credits: int = 1000,
    ):
        self.store = store
        self.registry = registry
        self.engine = engine
        self.broadcaster = broadcaster
        self.starting_credits = starting_credits

    def handle_message(self, conn_id: str, raw: str | bytes) -> list[OutboundEvent]:
        """
        Обрабатывает одно сообщение от соединения.
        Нераспознанные сообщения отбрасываются, ответ клиенту не отправляется.
        """
        try:
            msg = parse_inbound(raw)
        except MalformedMessage as e:
            logger.warning("WS: dropped message from %s: %s", conn_id, e.reason)
            return []
        logger.info("WS: msg from %s type=%s room=%s", conn_id, msg.type, msg.roomName)
        if isinstance(msg, JoinMessage):
            return self._join(conn_id, msg)
        if isinstance(msg, StartRoundMessage):
            return self._start_round(msg)
        if isinstance(msg, BetMessage):
            return self._bet(msg)
        if isinstance(msg, HitMessage):
            return self._hit(msg)
        if isinstance(msg, StandMessage):
            return self._stand(msg)
        return []

    def handle_disconnect(self, conn_id: str) -> list[OutboundEvent]:
        """Игрок уходит из комнаты; это может завершить активный раунд."""
        return self._release_seat(conn_id)

    def _join(self, conn_id: str, msg: JoinMessage) -> list[OutboundEvent]:
        events: list[OutboundEvent] = []
        current = self.registry.session_of(conn_id)
        if current and (current.room_name, current.player_id) != (msg.roomName, msg.playerId):
            # Соединение пересаживается: старое место освобождается
            events += self._release_seat(conn_id)
        events += self._evict_elsewhere(msg.roomName, msg.playerId)
        room = self.store.get_or_create(msg.roomName)
        if msg.playerId not in room.players:
            room.players[msg.playerId] = Player(name=msg.name, credits=self.starting_credits)
            logger.info("Player %s joined %s", msg.playerId, room.name)
        self.registry.subscribe(conn_id, room.name, msg.playerId)
        events.append(self.broadcaster.room_state(room.name))
        return events

    def _start_round(self, msg: StartRoundMessage) -> list[OutboundEvent]:
        room = self.store.get_or_create(msg.roomName)
        if room.round_active:
            logger.info("start_round ignored: round already active in %s", room.name)
            return []
        events = [self.broadcaster.round_start(room.name)]
        try:
            self.engine.start_round(room)
        except DeckExhausted as e:
            logger.warning("%s while dealing, settling immediately", e)
            return events + self._settle(room)
        events.append(self.broadcaster.room_state(room.name))
        return events

    def _bet(self, msg: BetMessage) -> list[OutboundEvent]:
        room = self.store.get_or_create(msg.roomName)
        player = room.players.get(msg.playerId)
        if room.round_active and player is not None:
            # Клиенту не доверяем: ставка в пределах [0, credits]
            player.bet = max(0, min(msg.betAmount, player.credits))
            if player.bet != msg.betAmount:
                logger.info(
                    "Bet from %s clamped %d -> %d", msg.playerId, msg.betAmount, player.bet
                )
        return [self.broadcaster.room_state(room.name)]

    def _hit(self, msg: HitMessage) -> list[OutboundEvent]:
        room = self.store.get_or_create(msg.roomName)
        try:
            self.engine.hit(room, msg.playerId)
        except DeckExhausted as e:
            logger.warning("%s on hit by %s, ending round early", e, msg.playerId)
            return [self.broadcaster.room_state(room.name)] + self._settle(room)
        return [self.broadcaster.room_state(room.name)] + self._settle_if_complete(room)

    def _stand(self, msg: StandMessage) -> list[OutboundEvent]:
        room = self.store.get_or_create(msg.roomName)
        self.engine.stand(room, msg.playerId)
        return [self.broadcaster.room_state(room.name)] + self._settle_if_complete(room)

    def _evict_elsewhere(self, room_name: str, player_id: str) -> list[OutboundEvent]:
        """playerId сидит не больше чем в одной комнате: из остальных его убираем."""
        events: list[OutboundEvent] = []
        for other in self.store.names():
            if other == room_name:
                continue
            for conn_id in self.registry.seat_holders(other, player_id):
                self.registry.unsubscribe(conn_id)
            events += self._remove_player(other, player_id)
        return events

    def _release_seat(self, conn_id: str) -> list[OutboundEvent]:
        session = self.registry.unsubscribe(conn_id)
        if session is None or self.registry.holds_seat(session.room_name, session.player_id):
            return []
        return self._remove_player(session.room_name, session.player_id)

    def _remove_player(self, room_name: str, player_id: str) -> list[OutboundEvent]:
        room = self.store.get(room_name)
        if room is None or room.players.pop(player_id, None) is None:
            return []
        logger.info("Player %s left %s", player_id, room.name)
        events = [self.broadcaster.room_state(room.name)]
        if room.round_active and not room.players:
            logger.info("Round in %s abandoned by all players", room.name)
            events += self._settle(room)
        else:
            events += self._settle_if_complete(room)
        return events

    def _settle_if_complete(self, room: Room) -> list[OutboundEvent]:
        if room.round_active and self.engine.is_round_complete(room):
            return self._settle(room)
        return []

    def _settle(self, room: Room) -> list[OutboundEvent]:
        results = self.engine.end_round(room)
        return [
            self.broadcaster.round_end(room.name, results),
            self.broadcaster.room_state(room.name),
        ]


class Hub:
    """
    Связка сервисов одного процесса. Каждое событие (сообщение, отключение)
    обрабатывается и рассылается целиком до начала следующего.
    """

    def __init__(self, store: RoomStore, engine: RoundEngine, starting_credits: int = 1000):
        self.store = store
        self.engine = engine
        self.registry = ConnectionRegistry()
        self.broadcaster = BroadcastService(store, self.registry)
        self.router = MessageRouter(
            store, self.registry, engine, self.broadcaster, starting_credits
        )
        self._lock = asyncio.Lock()

    @classmethod
    def from_config(cls) -> "Hub":
        config = get_config()
        return cls(
            store=RoomStore(config.seed_rooms),
            engine=RoundEngine(random.Random(config.shuffle_seed)),
            starting_credits=config.starting_credits,
        )

    async def on_message(self, conn_id: str, raw: str | bytes) -> None:
        async with self._lock:
            await self.broadcaster.publish(self.router.handle_message(conn_id, raw))

    async def on_disconnect(self, conn_id: str) -> None:
        async with self._lock:
            await self.broadcaster.publish(self.router.handle_disconnect(conn_id))


async def _receive_frame(ws: WebSocket) -> str | bytes:
    message = await ws.receive()
    if message["type"] == "websocket.disconnect":
        raise WebSocketDisconnect(message.get("code", 1000), message.get("reason"))
    text = message.get("text")
    if text is None:
        # Бинарный кадр декодирует parse_inbound
        return message.get("bytes") or b""
    return text


async def ws_session_loop(ws: WebSocket, hub: Hub) -> None:
    """Цикл приёма сообщений одного соединения до отключения."""
    conn_id = uuid.uuid4().hex
    try:
        await ws.accept()
        hub.registry.attach(conn_id, ws)
        logger.info("WS: accepted conn_id=%s from %s", conn_id, ws.client)
        while True:
            raw = await _receive_frame(ws)
            await hub.on_message(conn_id, raw)
    except WebSocketDisconnect as e:
        logger.info("WS: client disconnected code=%s reason=%s conn_id=%s", e.code, e.reason or "", conn_id)
    except Exception as e:
        logger.exception("WS: error conn_id=%s: %s", conn_id, e)
    finally:
        hub.registry.detach(conn_id)
        await hub.on_disconnect(conn_id)
        logger.info("WS: disconnected conn_id=%s", conn_id)
