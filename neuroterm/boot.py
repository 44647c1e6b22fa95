from __future__ import annotations

import asyncio
import logging
import random
from collections.abc import Awaitable, Callable
from uuid import UUID

import redis

from neuroterm.actions import append_system_line
from neuroterm.settings import TerminalSettings

logger = logging.getLogger(__name__)

BOOT_SEQUENCE: tuple[str, ...] = (
    "Initializing NeuroTerm v1.0...",
    "Loading core modules...",
    "Connecting to Neural Network...",
    "Connection established.",
    "Type 'help' for available commands.",
)


def boot_schedule(*, count: int, base_s: float, jitter_s: float, rng: random.Random) -> list[float]:
    """Cumulative offsets (seconds from boot start) for each banner line."""

    offsets: list[float] = []
    at = 0.0
    for _ in range(count):
        at += base_s + rng.random() * jitter_s
        offsets.append(at)
    return offsets


async def play_boot_sequence(
    *,
    r: redis.Redis,
    session_id: UUID,
    boot_generation: int,
    settings: TerminalSettings,
    rng: random.Random,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> int:
    """Append the boot banner to a session, one paced line at a time.

    Purely cosmetic: user input may land between banner lines. Stops early if
    the session expires or is rebooted (newer boot generation). Returns the
    number of lines appended.
    """

    offsets = boot_schedule(
        count=len(BOOT_SEQUENCE),
        base_s=settings.boot_delay_s,
        jitter_s=settings.boot_jitter_s,
        rng=rng,
    )

    elapsed = 0.0
    appended = 0
    for text, at in zip(BOOT_SEQUENCE, offsets):
        if at > elapsed:
            await sleep(at - elapsed)
        elapsed = at

        ok = await append_system_line(
            r=r,
            session_id=session_id,
            text=text,
            boot_generation=boot_generation,
            settings=settings,
        )
        if not ok:
            logger.debug("boot sequence stopped session=%s generation=%d", session_id, boot_generation)
            break
        appended += 1
    return appended
