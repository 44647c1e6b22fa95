from __future__ import annotations

from datetime import UTC, datetime
from uuid import UUID, uuid4

import redis

from neuroterm.api.models import IdleState, TerminalSession

SESSION_KEY_PREFIX = "neuroterm:session:"  # + {uuid}
DEFAULT_SESSION_TTL_S = 3600


class SessionNotFoundError(ValueError):
    pass


def _now() -> datetime:
    return datetime.now(tz=UTC)


def _session_key(session_id: UUID) -> str:
    return f"{SESSION_KEY_PREFIX}{session_id}"


def save_session(*, r: redis.Redis, session: TerminalSession, ttl_s: int = DEFAULT_SESSION_TTL_S) -> None:
    # Sessions are scratch state for one browser tab; the TTL is refreshed on every write.
    session.last_updated_at = _now()
    r.set(_session_key(session.session_id), session.model_dump_json(), ex=ttl_s)


def get_session(*, r: redis.Redis, session_id: UUID) -> TerminalSession | None:
    raw = r.get(_session_key(session_id))
    if not raw:
        return None
    return TerminalSession.model_validate_json(raw)


def require_session(*, r: redis.Redis, session_id: UUID) -> TerminalSession:
    session = get_session(r=r, session_id=session_id)
    if session is None:
        raise SessionNotFoundError("Session not found")
    return session


def create_session(*, r: redis.Redis, ttl_s: int = DEFAULT_SESSION_TTL_S) -> TerminalSession:
    now = _now()
    session = TerminalSession(session_id=uuid4(), created_at=now, last_updated_at=now)
    save_session(r=r, session=session, ttl_s=ttl_s)
    return session


def reset_session(*, session: TerminalSession) -> TerminalSession:
    """Return a fresh session under the same id, as if the process had just started."""

    now = _now()
    return TerminalSession(
        session_id=session.session_id,
        created_at=now,
        last_updated_at=now,
        game=IdleState(),
        log=[],
        busy=False,
        boot_generation=session.boot_generation + 1,
    )


def delete_session(*, r: redis.Redis, session_id: UUID) -> None:
    r.delete(_session_key(session_id))
