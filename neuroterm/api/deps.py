from __future__ import annotations

import random
from collections.abc import Generator

import redis
from fastapi import Depends

from neuroterm.infra.redis_client import create_redis
from neuroterm.riddles.factory import create_riddle_provider
from neuroterm.riddles.provider import RiddleProvider
from neuroterm.settings import TerminalSettings, settings_from_env

_REDIS: redis.Redis | None = None
_PROVIDER: RiddleProvider | None = None
_RNG = random.SystemRandom()


def get_redis() -> Generator[redis.Redis, None, None]:
    # One pool-backed client for the process: boot banner tasks keep writing
    # after the response is sent, so the client must outlive the request.
    global _REDIS
    if _REDIS is None:
        _REDIS = create_redis()
    yield _REDIS


def get_settings() -> TerminalSettings:
    return settings_from_env()


def get_riddle_provider(settings: TerminalSettings = Depends(get_settings)) -> RiddleProvider:
    global _PROVIDER
    if _PROVIDER is None:
        _PROVIDER = create_riddle_provider(settings)
    return _PROVIDER


def get_rng() -> random.Random:
    return _RNG
