"""Конфигурация приложения."""
import os
from functools import lru_cache


def _seed_rooms() -> list[str]:
    raw = os.environ.get("SEED_ROOMS", "Room 1,Room 2,Room 3")
    return [name.strip() for name in raw.split(",") if name.strip()]


def _shuffle_seed() -> int | None:
    raw = os.environ.get("SHUFFLE_SEED", "")
    return int(raw) if raw else None


@lru_cache
def get_config():
    return type("Config", (), {
        "debug": os.environ.get("DEBUG", "0").lower() in ("1", "true", "yes"),
        "allowed_origins": os.environ.get("ALLOWED_ORIGINS", "*").split(","),
        "seed_rooms": _seed_rooms(),
        "starting_credits": int(os.environ.get("STARTING_CREDITS", "1000")),
        "shuffle_seed": _shuffle_seed(),
        "host": os.environ.get("HOST", "0.0.0.0"),
        "port": int(os.environ.get("PORT", "8000")),
    })()
