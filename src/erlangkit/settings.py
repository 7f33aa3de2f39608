# src/erlangkit/settings.py
from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

CHANNELS = ("voice", "chat", "email", "video", "social", "sms")


@dataclass(frozen=True)
class Settings:
    # Seed used by simulations whose config carries none; None draws fresh entropy.
    simulation_seed: Optional[int] = None
    default_channel: str = "voice"


def _seed_from_env() -> Optional[int]:
    """
    Optional ERLANGKIT_SIMULATION_SEED, e.g. ERLANGKIT_SIMULATION_SEED=42
    for reproducible runs in regression tests.
    """
    raw = os.getenv("ERLANGKIT_SIMULATION_SEED", "").strip()
    if not raw:
        return None
    try:
        return int(raw)
    except ValueError:
        raise RuntimeError(
            f"ERLANGKIT_SIMULATION_SEED must be an integer, got {raw!r}."
        ) from None


def _channel_from_env() -> str:
    raw = os.getenv("ERLANGKIT_DEFAULT_CHANNEL", "").strip().lower()
    if not raw:
        return "voice"
    if raw not in CHANNELS:
        raise RuntimeError(
            f"ERLANGKIT_DEFAULT_CHANNEL must be one of {list(CHANNELS)}, got {raw!r}."
        )
    return raw


@lru_cache(maxsize=1)
def load_settings() -> Settings:
    """
    Reads settings from the environment once per process.
    Call `load_settings.cache_clear()` after changing the environment.
    """
    return Settings(
        simulation_seed=_seed_from_env(),
        default_channel=_channel_from_env(),
    )


__all__ = ["CHANNELS", "Settings", "load_settings"]
