from __future__ import annotations

import asyncio
import logging
import random
from collections.abc import Callable
from dataclasses import dataclass
from uuid import UUID

import redis
from statemachine.exceptions import TransitionNotAllowed

from neuroterm.api.models import LineCategory, LogEntry, TerminalSession
from neuroterm.core.log import LineLog
from neuroterm.core.outcome import Outcome
from neuroterm.core.shell import riddle_failed, riddle_ready, route_line
from neuroterm.fsm import TerminalFSM
from neuroterm.lock import SessionBusyError, session_lock
from neuroterm.riddles.provider import RiddleProvider
from neuroterm.session_store import get_session, require_session, reset_session, save_session
from neuroterm.settings import TerminalSettings
from neuroterm.websocket_hub import hub

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class SubmitResult:
    session: TerminalSession
    # True when the line was `exit` at the shell: the caller replays the boot banner.
    rebooted: bool = False


def _apply_outcome(*, session: TerminalSession, log: LineLog, outcome: Outcome) -> None:
    """Validate the mode change, then replace game state and extend the log."""

    TerminalFSM(session).advance_to(outcome.state.mode)
    if outcome.clear_log:
        log.clear()
    log.extend(outcome.lines)
    session.game = outcome.state
    session.log = log.entries


async def _update_with_retry(
    *,
    r: redis.Redis,
    session_id: UUID,
    update: Callable[[TerminalSession], list[LogEntry] | None],
    ttl_s: int,
    attempts: int = 20,
    delay_s: float = 0.05,
) -> tuple[TerminalSession, list[LogEntry]] | None:
    """Locked read-modify-write for internal writers (boot banner, riddle completion).

    Unlike user submissions these must not be dropped on contention, so they
    wait for the lock. Returns None if the session is gone or `update` declines.
    """

    for _ in range(attempts):
        try:
            with session_lock(r=r, session_id=str(session_id)):
                session = get_session(r=r, session_id=session_id)
                if session is None:
                    return None
                appended = update(session)
                if appended is None:
                    return None
                save_session(r=r, session=session, ttl_s=ttl_s)
                return session, appended
        except SessionBusyError:
            await asyncio.sleep(delay_s)
    raise SessionBusyError("Timed out waiting for session lock")


async def append_system_line(
    *,
    r: redis.Redis,
    session_id: UUID,
    text: str,
    boot_generation: int,
    settings: TerminalSettings,
) -> bool:
    """Append one system line unless the session was rebooted since `boot_generation`."""

    def _update(session: TerminalSession) -> list[LogEntry] | None:
        if session.boot_generation != boot_generation:
            return None
        log = LineLog(list(session.log))
        entry = log.append(text, LineCategory.system)
        session.log = log.entries
        return [entry]

    result = await _update_with_retry(r=r, session_id=session_id, update=_update, ttl_s=settings.session_ttl_s)
    if result is None:
        return False
    session, appended = result
    await hub.publish(session, appended)
    return True


def _abandon_riddle(*, r: redis.Redis, session_id: UUID, settings: TerminalSettings) -> None:
    """Clear busy and log the failure line without awaiting anything.

    Runs while a cancellation is propagating, so it takes the lock once and
    gives up (logged) if another writer holds it.
    """

    try:
        with session_lock(r=r, session_id=str(session_id)):
            session = get_session(r=r, session_id=session_id)
            if session is None or not session.busy:
                return
            log = LineLog(list(session.log))
            log.extend(riddle_failed().lines)
            session.log = log.entries
            session.busy = False
            save_session(r=r, session=session, ttl_s=settings.session_ttl_s)
    except SessionBusyError:
        logger.error("could not clear busy after cancelled riddle session=%s", session_id)
        return
    logger.warning("riddle request cancelled, busy cleared session=%s", session_id)


async def _finish_riddle(
    *,
    r: redis.Redis,
    session_id: UUID,
    riddles: RiddleProvider,
    settings: TerminalSettings,
) -> TerminalSession:
    try:
        riddle = await riddles()
    except Exception:
        logger.exception("riddle provider failed session=%s", session_id)
        finished = riddle_failed()
    except BaseException:
        # Cancelled mid-request: busy must not outlive the request.
        _abandon_riddle(r=r, session_id=session_id, settings=settings)
        raise
    else:
        finished = riddle_ready(riddle)

    def _update(session: TerminalSession) -> list[LogEntry]:
        log = LineLog(list(session.log))
        try:
            _apply_outcome(session=session, log=log, outcome=finished)
        except TransitionNotAllowed:
            logger.error("riddle arrived outside idle mode session=%s mode=%s", session_id, session.game.mode)
            fallback = riddle_failed()
            log.extend(fallback.lines)
            session.log = log.entries
            session.busy = False
            return fallback.lines
        session.busy = False
        return finished.lines

    result = await _update_with_retry(r=r, session_id=session_id, update=_update, ttl_s=settings.session_ttl_s)
    if result is None:
        logger.warning("session vanished while a riddle was pending session=%s", session_id)
        return require_session(r=r, session_id=session_id)

    session, appended = result
    await hub.publish(session, appended)
    return session


async def submit_line(
    *,
    r: redis.Redis,
    session_id: UUID,
    line: str,
    riddles: RiddleProvider,
    settings: TerminalSettings,
    rng: random.Random,
) -> SubmitResult:
    """Entry point for a submitted terminal line.

    - blank lines are ignored
    - the raw line is echoed as an `input` entry
    - idle sessions dispatch shell commands, active ones feed the game
    - the outcome is validated by the FSM and persisted under the session lock
    - `riddle` marks the session busy, awaits the provider outside the lock,
      then applies the result and clears busy
    """

    if not line.strip():
        return SubmitResult(session=require_session(r=r, session_id=session_id))

    with session_lock(r=r, session_id=str(session_id)):
        session = require_session(r=r, session_id=session_id)
        if session.busy:
            raise SessionBusyError("Terminal is busy")

        log = LineLog(list(session.log))
        echo = log.append(line, LineCategory.input)
        mode_before = session.game.mode
        outcome = route_line(state=session.game, line=line, rng=rng)

        if outcome.reboot:
            TerminalFSM(session).send("reboot")
            session = reset_session(session=session)
            appended: list[LogEntry] = []
        else:
            _apply_outcome(session=session, log=log, outcome=outcome)
            session.busy = outcome.needs_riddle
            appended = list(outcome.lines) if outcome.clear_log else [echo, *outcome.lines]

        save_session(r=r, session=session, ttl_s=settings.session_ttl_s)

    logger.info(
        "line session=%s mode=%s->%s reboot=%s riddle=%s",
        session_id,
        mode_before,
        session.game.mode,
        outcome.reboot,
        outcome.needs_riddle,
    )
    await hub.publish(session, appended, cleared=outcome.clear_log or outcome.reboot)

    if outcome.needs_riddle:
        session = await _finish_riddle(r=r, session_id=session_id, riddles=riddles, settings=settings)

    return SubmitResult(session=session, rebooted=outcome.reboot)
