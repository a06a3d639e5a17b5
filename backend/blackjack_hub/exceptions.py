"""
Исключения ядра.

Клиенту ошибки не отправляются: роутер их логирует и либо отбрасывает
сообщение, либо доводит раунд до расчёта.
"""


class HubError(Exception):
    """Базовое исключение Blackjack Hub."""


class DeckExhausted(HubError):
    """В колоде не осталось карт."""

    def __init__(self, room_name: str):
        self.room_name = room_name
        super().__init__(f"Deck exhausted in room {room_name!r}")


class MalformedMessage(HubError):
    """Входящее сообщение не разбирается как JSON или не проходит схему."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Malformed message: {reason}")
