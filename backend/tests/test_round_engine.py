"""
Tests for the round engine: deck, hand values, dealing, dealer play, settlement.
"""
import random

import pytest

from tests.helpers import cards
from blackjack_hub.constants import RANKS, SUITS
from blackjack_hub.exceptions import DeckExhausted
from blackjack_hub.rooms import Card, Player, Room
from blackjack_hub.round_engine import LOSE, PUSH, WIN, RoundEngine, hand_value


def _active_room(**players: Player) -> Room:
    room = Room(name="Room 1", players=dict(players), round_active=True)
    return room


class TestDeck:
    def test_deck_has_52_unique_cards(self, engine):
        for _ in range(5):
            deck = engine.build_shuffled_deck()
            assert len(deck) == 52
            assert len(set(deck)) == 52
            assert {c.rank for c in deck} == set(RANKS)
            assert {c.suit for c in deck} == set(SUITS)

    def test_same_seed_same_order(self):
        a = RoundEngine(random.Random(42)).build_shuffled_deck()
        b = RoundEngine(random.Random(42)).build_shuffled_deck()
        assert a == b

    def test_cards_are_immutable(self):
        card = Card("A", "♠")
        with pytest.raises(AttributeError):
            card.rank = "K"


class TestHandValue:
    @pytest.mark.parametrize("ranks,expected", [
        (("A", "K"), 21),
        (("A", "6"), 17),
        (("A", "6", "K"), 17),
        (("A", "A"), 12),
        (("A", "A", "A", "K"), 13),
        (("K", "Q", "5"), 25),
        (("10", "J"), 20),
        (("2", "3", "4"), 9),
        ((), 0),
    ])
    def test_values(self, ranks, expected):
        assert hand_value(cards(*ranks)) == expected


class TestStartRound:
    def test_consumes_two_cards_per_seat(self, engine):
        room = Room(name="Room 1", players={
            "a": Player(name="A", credits=1000, bet=50, done=True),
            "b": Player(name="B", credits=1000),
            "c": Player(name="C", credits=1000),
        })
        engine.start_round(room)

        assert room.round_active
        assert len(room.deck) == 52 - 2 * (3 + 1)
        assert len(room.dealer_hand) == 2
        for p in room.players.values():
            assert len(p.hand) == 2
            assert p.bet == 0
            assert p.done is False

    def test_dealt_cards_partition_the_deck(self, engine):
        room = Room(name="Room 1", players={"a": Player(name="A", credits=1000)})
        engine.start_round(room)
        dealt = room.players["a"].hand + room.dealer_hand + room.deck
        assert len(set(dealt)) == 52

    def test_deal_order_players_then_dealer_twice(self):
        expected = RoundEngine(random.Random(7)).build_shuffled_deck()
        room = Room(name="Room 1", players={
            "p1": Player(name="P1", credits=1000),
            "p2": Player(name="P2", credits=1000),
        })
        RoundEngine(random.Random(7)).start_round(room)

        assert room.players["p1"].hand == [expected[-1], expected[-4]]
        assert room.players["p2"].hand == [expected[-2], expected[-5]]
        assert room.dealer_hand == [expected[-3], expected[-6]]

    def test_empty_room_deals_dealer_only(self, engine):
        room = Room(name="Room 1")
        engine.start_round(room)
        assert len(room.dealer_hand) == 2
        assert len(room.deck) == 50


class TestHitAndStand:
    def test_hit_takes_top_card(self, engine):
        room = _active_room(a=Player(name="A", credits=1000, hand=cards("2", "3")))
        room.deck = cards("9", "4")
        assert engine.hit(room, "a") is True
        assert room.players["a"].hand[-1] == Card("4", "♠")
        assert room.deck == cards("9")
        assert room.players["a"].done is False

    def test_bust_marks_done(self, engine):
        room = _active_room(a=Player(name="A", credits=1000, hand=cards("10", "6")))
        room.deck = cards("K")
        engine.hit(room, "a")
        assert hand_value(room.players["a"].hand) == 26
        assert room.players["a"].done is True

    def test_hit_when_done_is_noop(self, engine):
        room = _active_room(a=Player(name="A", credits=1000, hand=cards("10"), done=True))
        room.deck = cards("K")
        assert engine.hit(room, "a") is False
        assert room.deck == cards("K")

    def test_hit_outside_round_is_noop(self, engine):
        room = Room(name="Room 1", players={"a": Player(name="A", credits=1000)})
        room.deck = cards("K")
        assert engine.hit(room, "a") is False
        assert room.players["a"].hand == []

    def test_hit_unknown_player_is_noop(self, engine):
        room = _active_room()
        room.deck = cards("K")
        assert engine.hit(room, "ghost") is False

    def test_hit_on_empty_deck_raises(self, engine):
        room = _active_room(a=Player(name="A", credits=1000, hand=cards("2")))
        room.deck = []
        with pytest.raises(DeckExhausted):
            engine.hit(room, "a")

    def test_stand_sets_done_regardless_of_value(self, engine):
        room = _active_room(a=Player(name="A", credits=1000, hand=cards("2", "3")))
        assert engine.stand(room, "a") is True
        assert room.players["a"].done is True

    def test_stand_outside_round_is_noop(self, engine):
        room = Room(name="Room 1", players={"a": Player(name="A", credits=1000)})
        assert engine.stand(room, "a") is False
        assert room.players["a"].done is False

    def test_round_complete_needs_players(self, engine):
        room = _active_room()
        assert engine.is_round_complete(room) is False
        room.players["a"] = Player(name="A", credits=1000, done=True)
        room.players["b"] = Player(name="B", credits=1000)
        assert engine.is_round_complete(room) is False
        room.players["b"].done = True
        assert engine.is_round_complete(room) is True


class TestEndRound:
    def test_dealer_draws_to_17(self, engine):
        room = _active_room()
        room.dealer_hand = cards("10", "2")
        room.deck = cards("9", "5")
        engine.end_round(room)
        assert hand_value(room.dealer_hand) == 17
        assert room.deck == cards("9")
        assert room.round_active is False

    def test_dealer_stands_on_soft_17(self, engine):
        room = _active_room()
        room.dealer_hand = cards("A", "6")
        room.deck = cards("K")
        engine.end_round(room)
        assert len(room.dealer_hand) == 2

    def test_dealer_stops_when_deck_runs_dry(self, engine):
        room = _active_room()
        room.dealer_hand = cards("2", "3")
        room.deck = cards("4")
        engine.end_round(room)
        assert hand_value(room.dealer_hand) == 9
        assert room.round_active is False

    def test_settlement_outcomes(self, engine):
        room = _active_room(
            win=Player(name="W", credits=1000, bet=100, hand=cards("K", "Q")),
            lose=Player(name="L", credits=1000, bet=100, hand=cards("K", "8")),
            push=Player(name="P", credits=1000, bet=100, hand=cards("K", "9")),
            bust=Player(name="B", credits=1000, bet=100, hand=cards("K", "Q", "5")),
            idle=Player(name="I", credits=1000, bet=0, hand=cards("K", "Q", "5")),
        )
        room.dealer_hand = cards("10", "9")

        results = engine.end_round(room)

        assert results == {
            "win": (WIN, 100),
            "lose": (LOSE, -100),
            "push": (PUSH, 0),
            "bust": (LOSE, -100),
        }
        credits = {pid: p.credits for pid, p in room.players.items()}
        assert credits == {"win": 1100, "lose": 900, "push": 1000, "bust": 900, "idle": 1000}

    def test_dealer_bust_pays_standing_players_only(self, engine):
        room = _active_room(
            low=Player(name="L", credits=500, bet=50, hand=cards("5", "7")),
            bust=Player(name="B", credits=500, bet=50, hand=cards("K", "Q", "2")),
        )
        room.dealer_hand = cards("10", "6")
        room.deck = cards("K")

        engine.end_round(room)

        assert hand_value(room.dealer_hand) == 26
        assert room.players["low"].credits == 550
        assert room.players["bust"].credits == 450

    def test_delta_is_never_partial(self, engine):
        for seed in range(20):
            eng = RoundEngine(random.Random(seed))
            room = Room(name="Room 1", players={
                "a": Player(name="A", credits=1000),
                "b": Player(name="B", credits=1000),
            })
            eng.start_round(room)
            room.players["a"].bet = 37
            for pid in room.players:
                eng.stand(room, pid)
            eng.end_round(room)
            assert room.players["a"].credits in (1000 - 37, 1000, 1000 + 37)
            assert room.players["b"].credits == 1000
