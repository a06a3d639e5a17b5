"""
Комнаты и игроки (in-memory).
Комнаты живут всё время работы процесса и не удаляются.
"""
from dataclasses import dataclass, field

from .constants import CardPayload, PlayerPayload, RoomPayload


@dataclass(frozen=True)
class Card:
    rank: str
    suit: str


@dataclass
class Player:
    name: str
    credits: int
    bet: int = 0
    hand: list[Card] = field(default_factory=list)
    done: bool = False


@dataclass
class Room:
    name: str
    players: dict[str, Player] = field(default_factory=dict)
    dealer_hand: list[Card] = field(default_factory=list)
    deck: list[Card] = field(default_factory=list)  # верх колоды — конец списка
    round_active: bool = False


class RoomStore:
    """Владелец отображения имя комнаты -> Room."""

    def __init__(self, seed_names: list[str] | None = None):
        self._rooms: dict[str, Room] = {}
        for name in seed_names or []:
            self.get_or_create(name)

    def get_or_create(self, name: str) -> Room:
        room = self._rooms.get(name)
        if room is None:
            room = Room(name=name)
            self._rooms[name] = room
        return room

    def get(self, name: str) -> Room | None:
        return self._rooms.get(name)

    def names(self) -> list[str]:
        return list(self._rooms)


def card_payload(card: Card) -> CardPayload:
    return {"rank": card.rank, "suit": card.suit}


def room_payload(room: Room) -> RoomPayload:
    """
    Полный снимок комнаты для room_update.
    Все руки, включая дилерскую, видны всем участникам комнаты.
    """
    players: dict[str, PlayerPayload] = {
        player_id: {
            "name": p.name,
            "credits": p.credits,
            "bet": p.bet,
            "hand": [card_payload(c) for c in p.hand],
            "done": p.done,
        }
        for player_id, p in room.players.items()
    }
    return {
        "name": room.name,
        "players": players,
        "dealerHand": [card_payload(c) for c in room.dealer_hand],
        "roundActive": room.round_active,
    }
