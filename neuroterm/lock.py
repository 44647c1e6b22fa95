from __future__ import annotations

from contextlib import contextmanager

import redis


class SessionBusyError(ValueError):
    """Raised when a session cannot accept input right now."""


@contextmanager
def session_lock(*, r: redis.Redis, session_id: str, ttl_ms: int = 5_000):
    """Best-effort per-session lock around a read-modify-write.

    Holders must not await slow work (the riddle provider) while holding it.
    The TTL bounds how long a crashed holder can block the session.
    """

    key = f"neuroterm:lock:session:{session_id}"
    acquired = r.set(key, "1", nx=True, px=ttl_ms)
    if not acquired:
        raise SessionBusyError("Terminal is busy")
    try:
        yield
    finally:
        r.delete(key)
