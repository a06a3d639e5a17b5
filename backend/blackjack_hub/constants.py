"""Константы колоды и формы исходящих сообщений."""
from typing import TypedDict

SUITS = ["♠", "♥", "♦", "♣"]
RANKS = ["A", "2", "3", "4", "5", "6", "7", "8", "9", "10", "J", "Q", "K"]

FACE_RANKS = ("J", "Q", "K")
BLACKJACK = 21
DEALER_STANDS_ON = 17


class CardPayload(TypedDict):
    rank: str
    suit: str


class PlayerPayload(TypedDict):
    name: str
    credits: int
    bet: int
    hand: list[CardPayload]
    done: bool


class RoomPayload(TypedDict):
    name: str
    players: dict[str, PlayerPayload]
    dealerHand: list[CardPayload]
    roundActive: bool


class SettlementPayload(TypedDict):
    outcome: str  # "win" | "lose" | "push"
    delta: int
