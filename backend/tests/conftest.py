"""
Pytest fixtures for Blackjack Hub tests.
"""
import random

import pytest

from blackjack_hub.rooms import RoomStore
from blackjack_hub.round_engine import RoundEngine
from blackjack_hub.ws_handlers import Hub
from tests.helpers import SEED_ROOMS


@pytest.fixture
def engine() -> RoundEngine:
    return RoundEngine(random.Random(1234))


@pytest.fixture
def store() -> RoomStore:
    return RoomStore(SEED_ROOMS)


@pytest.fixture
def hub(store, engine) -> Hub:
    return Hub(store, engine, starting_credits=1000)


@pytest.fixture
def router(hub):
    return hub.router
