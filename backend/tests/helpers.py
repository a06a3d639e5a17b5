"""
Shared helpers for Blackjack Hub tests.
"""
import json

from blackjack_hub.rooms import Card

SEED_ROOMS = ["Room 1", "Room 2", "Room 3"]


def cards(*ranks: str, suit: str = "♠") -> list[Card]:
    """cards("A", "K") -> [A♠, K♠]"""
    return [Card(rank=r, suit=suit) for r in ranks]


def msg(**fields) -> str:
    return json.dumps(fields)


class FakeSocket:
    """Stands in for a WebSocket: records every payload sent to it."""

    def __init__(self):
        self.sent: list[dict] = []

    async def send_json(self, payload):
        self.sent.append(payload)

    def types(self) -> list[str]:
        return [p["type"] for p in self.sent]
