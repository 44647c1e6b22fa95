from __future__ import annotations

from datetime import UTC, datetime
from typing import Any
from uuid import uuid4

import pytest

from neuroterm.api.models import LineCategory, NumberGuessState, TerminalSession
from neuroterm.core.log import make_entry
from neuroterm.websocket_hub import TerminalWebSocketHub


class _FakeSocket:
    def __init__(self, *, broken: bool = False) -> None:
        self.accepted = False
        self.sent: list[dict[str, Any]] = []
        self.broken = broken

    async def accept(self) -> None:
        self.accepted = True

    async def send_json(self, payload: dict[str, Any]) -> None:
        if self.broken and self.sent:
            raise RuntimeError("socket closed")
        self.sent.append(payload)


def _session() -> TerminalSession:
    now = datetime.now(tz=UTC)
    return TerminalSession(
        session_id=uuid4(),
        created_at=now,
        last_updated_at=now,
        game=NumberGuessState(target_number=42, attempts=1),
        log=[make_entry("Loading core modules...", LineCategory.system)],
    )


@pytest.mark.asyncio
async def test_attach_sends_a_snapshot_without_hidden_state() -> None:
    hub = TerminalWebSocketHub()
    session = _session()
    ws = _FakeSocket()

    await hub.attach(session, ws)  # type: ignore[arg-type]

    assert ws.accepted
    assert hub.listener_count(str(session.session_id)) == 1
    (snapshot,) = ws.sent
    assert snapshot["type"] == "terminal_snapshot"
    assert snapshot["mode"] == "number_guess"
    assert snapshot["prompt"] == "? "
    assert [e["text"] for e in snapshot["log"]] == ["Loading core modules..."]
    assert "target_number" not in str(snapshot)


@pytest.mark.asyncio
async def test_publish_sends_only_new_entries_and_drops_closed_sockets() -> None:
    hub = TerminalWebSocketHub()
    session = _session()
    alive, broken = _FakeSocket(), _FakeSocket(broken=True)
    await hub.attach(session, alive)  # type: ignore[arg-type]
    await hub.attach(session, broken)  # type: ignore[arg-type]

    entry = make_entry("Too low! (Attempt 2)", LineCategory.output)
    await hub.publish(session, [entry])

    update = alive.sent[-1]
    assert update["type"] == "terminal_updated"
    assert update["cleared"] is False
    assert [e["text"] for e in update["entries"]] == ["Too low! (Attempt 2)"]
    assert update["entries"][0]["prefix"] == ""
    assert update["busy"] is False
    assert hub.listener_count(str(session.session_id)) == 1


@pytest.mark.asyncio
async def test_detach_forgets_the_session() -> None:
    hub = TerminalWebSocketHub()
    session = _session()
    ws = _FakeSocket()
    sid = str(session.session_id)
    await hub.attach(session, ws)  # type: ignore[arg-type]

    await hub.detach(sid, ws)  # type: ignore[arg-type]
    await hub.publish(session, [make_entry("ignored", LineCategory.output)])

    assert hub.listener_count(sid) == 0
    assert len(ws.sent) == 1
