"""
Логика раунда: колода, раздача, подсчёт руки, игра дилера и расчёт ставок.
Источник случайности передаётся снаружи, чтобы раздачу можно было воспроизвести.
"""
import logging
import random

from .constants import BLACKJACK, DEALER_STANDS_ON, FACE_RANKS, RANKS, SUITS
from .exceptions import DeckExhausted
from .rooms import Card, Room

logger = logging.getLogger(__name__)

WIN = "win"
LOSE = "lose"
PUSH = "push"


def card_value(card: Card) -> int:
    """Туз считается как 11, понижение до 1 делает hand_value."""
    if card.rank == "A":
        return 11
    if card.rank in FACE_RANKS:
        return 10
    return int(card.rank)


def hand_value(hand: list[Card]) -> int:
    """
    Очки руки: тузы по одному понижаются с 11 до 1, пока сумма больше 21.
    Результат может остаться больше 21, если понижать уже нечего (перебор).
    """
    total = sum(card_value(c) for c in hand)
    aces = sum(1 for c in hand if c.rank == "A")
    while total > BLACKJACK and aces:
        total -= 10
        aces -= 1
    return total


def is_bust(hand: list[Card]) -> bool:
    return hand_value(hand) > BLACKJACK


class RoundEngine:
    def __init__(self, rng: random.Random | None = None):
        self.rng = rng or random.Random()

    def build_shuffled_deck(self) -> list[Card]:
        deck = [Card(rank=rank, suit=suit) for suit in SUITS for rank in RANKS]
        # Фишер–Йетс: i от последнего до 1, обмен с равномерным j из [0, i]
        self.rng.shuffle(deck)
        return deck

    def _draw(self, room: Room) -> Card:
        if not room.deck:
            raise DeckExhausted(room.name)
        return room.deck.pop()

    def start_round(self, room: Room) -> None:
        """
        Новая перетасовка, сброс рук и ставок, две раздачи по кругу:
        игрок1, игрок2, ..., дилер, и так дважды.
        """
        room.deck = self.build_shuffled_deck()
        room.dealer_hand = []
        room.round_active = True
        for player in room.players.values():
            player.hand = []
            player.bet = 0
            player.done = False
        for _ in range(2):
            for player in room.players.values():
                player.hand.append(self._draw(room))
            room.dealer_hand.append(self._draw(room))
        logger.info(
            "Round started in %s: players=%d deck_left=%d",
            room.name, len(room.players), len(room.deck),
        )

    def hit(self, room: Room, player_id: str) -> bool:
        """
        Взять карту. Возвращает False, если действие неприменимо.
        При пустой колоде — DeckExhausted.
        """
        player = room.players.get(player_id)
        if not room.round_active or player is None or player.done:
            return False
        player.hand.append(self._draw(room))
        if is_bust(player.hand):
            player.done = True
        return True

    def stand(self, room: Room, player_id: str) -> bool:
        player = room.players.get(player_id)
        if not room.round_active or player is None:
            return False
        player.done = True
        return True

    def is_round_complete(self, room: Room) -> bool:
        return bool(room.players) and all(p.done for p in room.players.values())

    def end_round(self, room: Room) -> dict[str, tuple[str, int]]:
        """
        Дилер добирает до 17 (на мягких 17 тоже стоит), затем расчёт.
        Возвращает {player_id: (исход, изменение кредитов)} для игроков со ставкой.
        """
        while hand_value(room.dealer_hand) < DEALER_STANDS_ON and room.deck:
            room.dealer_hand.append(room.deck.pop())
        dealer_value = hand_value(room.dealer_hand)
        dealer_bust = dealer_value > BLACKJACK

        results: dict[str, tuple[str, int]] = {}
        for player_id, player in room.players.items():
            if player.bet <= 0:
                continue
            value = hand_value(player.hand)
            if value > BLACKJACK:
                outcome, delta = LOSE, -player.bet
            elif dealer_bust or value > dealer_value:
                outcome, delta = WIN, player.bet
            elif value < dealer_value:
                outcome, delta = LOSE, -player.bet
            else:
                outcome, delta = PUSH, 0
            player.credits += delta
            results[player_id] = (outcome, delta)

        room.round_active = False
        logger.info(
            "Round settled in %s: dealer=%d results=%s",
            room.name, dealer_value, results,
        )
        return results
