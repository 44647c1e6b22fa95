from __future__ import annotations

from uuid import UUID

import fakeredis
import pytest
from fastapi.testclient import TestClient

from neuroterm.api.models import GameMode, NumberGuessState, RiddleGuessState
from neuroterm.boot import BOOT_SEQUENCE
from neuroterm.session_store import get_session, save_session


def _new_session(client: TestClient) -> str:
    resp = client.post("/session")
    assert resp.status_code == 201
    return resp.json()["session_id"]


def _submit(client: TestClient, sid: str, line: str) -> dict:
    resp = client.post(f"/session/{sid}/input", json={"line": line})
    assert resp.status_code == 200, resp.text
    return resp.json()


def _texts(view: dict) -> list[str]:
    return [e["text"] for e in view["log"]]


def test_create_session_plays_boot_banner(client_and_redis: tuple[TestClient, fakeredis.FakeRedis]) -> None:
    client, _ = client_and_redis

    resp = client.post("/session")
    assert resp.status_code == 201
    created = resp.json()
    assert created["mode"] == "idle"
    assert created["prompt"] == "> "
    assert created["status"] == "IDLE"
    assert created["busy"] is False

    view = client.get(f"/session/{created['session_id']}").json()
    assert _texts(view) == list(BOOT_SEQUENCE)
    assert {e["category"] for e in view["log"]} == {"system"}


def test_unknown_session_is_404(client_and_redis: tuple[TestClient, fakeredis.FakeRedis]) -> None:
    client, _ = client_and_redis
    missing = "00000000-0000-0000-0000-000000000000"

    assert client.get(f"/session/{missing}").status_code == 404
    assert client.post(f"/session/{missing}/input", json={"line": "help"}).status_code == 404
    assert client.delete(f"/session/{missing}").status_code == 404


def test_blank_line_is_ignored(client_and_redis: tuple[TestClient, fakeredis.FakeRedis]) -> None:
    client, _ = client_and_redis
    sid = _new_session(client)
    before = client.get(f"/session/{sid}").json()

    after = _submit(client, sid, "   ")
    assert after["log"] == before["log"]


def test_echo_keeps_raw_text_and_help_keeps_state(client_and_redis: tuple[TestClient, fakeredis.FakeRedis]) -> None:
    client, r = client_and_redis
    sid = _new_session(client)

    view = _submit(client, sid, "  HeLP ")
    new = view["log"][len(BOOT_SEQUENCE) :]
    assert new[0] == {**new[0], "category": "input", "text": "  HeLP ", "prefix": "> "}
    assert new[1]["text"] == "--- AVAILABLE COMMANDS ---"
    assert view["mode"] == "idle"

    session = get_session(r=r, session_id=UUID(sid))
    assert session is not None
    assert session.game.mode == GameMode.idle
    assert session.game.attempts == 0


def test_unknown_command_reports_error(client_and_redis: tuple[TestClient, fakeredis.FakeRedis]) -> None:
    client, _ = client_and_redis
    sid = _new_session(client)

    view = _submit(client, sid, "Dance")
    last = view["log"][-1]
    assert last["category"] == "error"
    assert last["text"] == "Command not found: 'dance'. Type 'help' for list."
    assert view["mode"] == "idle"


def test_clear_leaves_only_the_confirmation(client_and_redis: tuple[TestClient, fakeredis.FakeRedis]) -> None:
    client, _ = client_and_redis
    sid = _new_session(client)
    _submit(client, sid, "help")

    view = _submit(client, sid, "clear")
    assert [(e["category"], e["text"]) for e in view["log"]] == [("system", "Terminal cleared.")]


def test_number_game_end_to_end(client_and_redis: tuple[TestClient, fakeredis.FakeRedis]) -> None:
    client, r = client_and_redis
    sid = _new_session(client)

    view = _submit(client, sid, "number")
    assert view["mode"] == "number_guess"
    assert view["prompt"] == "? "
    assert view["status"] == "ACTIVE_PROCESS"
    assert "NUMBER GUESS MODE INITIALIZED" in _texts(view)
    assert "I have selected a number between 1 and 100." in _texts(view)
    # The target never leaves the server.
    assert "target_number" not in view

    session = get_session(r=r, session_id=UUID(sid))
    assert session is not None
    assert isinstance(session.game, NumberGuessState)
    target = session.game.target_number
    assert 1 <= target <= 100
    assert session.game.attempts == 0

    view = _submit(client, sid, "50")
    if target == 50:
        assert view["mode"] == "idle"
        assert "CORRECT! The number was 50." in _texts(view)
        return

    assert view["mode"] == "number_guess"
    assert view["attempts"] == 1
    assert _texts(view)[-1] in {"Too low! (Attempt 1)", "Too high! (Attempt 1)"}

    view = _submit(client, sid, "not a number")
    assert view["attempts"] == 1
    assert view["log"][-1]["text"] == "Please enter a valid number."

    view = _submit(client, sid, str(target))
    assert view["mode"] == "idle"
    assert view["attempts"] == 0
    assert _texts(view)[-3:] == [f"CORRECT! The number was {target}.", "You won in 2 attempts.", "Returning to shell..."]


def test_riddle_game_end_to_end(client_and_redis: tuple[TestClient, fakeredis.FakeRedis]) -> None:
    client, r = client_and_redis
    sid = _new_session(client)

    view = _submit(client, sid, "riddle")
    assert view["mode"] == "riddle_guess"
    assert view["busy"] is False
    tail = [(e["category"], e["text"]) for e in view["log"][-5:]]
    assert tail[0] == ("input", "riddle")
    assert tail[1] == ("system", "Contacting AI for a new riddle...")
    assert tail[2] == ("success", "RIDDLE GENERATED SUCCESSFULLY")
    assert tail[3][0] == "ai" and "What am I?" in tail[3][1]
    assert tail[4] == ("system", "(Type 'hint' for a clue, or 'giveup' to forfeit)")

    view = _submit(client, sid, "hint")
    assert view["attempts"] == 1
    assert view["log"][-1]["text"] == "HINT: It involves sound reflection."

    session = get_session(r=r, session_id=UUID(sid))
    assert session is not None and isinstance(session.game, RiddleGuessState)

    view = _submit(client, sid, "the ECHO of a voice")
    assert view["mode"] == "idle"
    assert _texts(view)[-2:] == ["CORRECT! The answer is indeed 'Echo'.", "Solved in 2 attempts."]


def test_riddle_giveup(client_and_redis: tuple[TestClient, fakeredis.FakeRedis]) -> None:
    client, _ = client_and_redis
    sid = _new_session(client)
    _submit(client, sid, "riddle")

    view = _submit(client, sid, "giveup")
    assert view["mode"] == "idle"
    assert view["log"][-1]["text"] == "You gave up! The answer was: Echo"


def test_riddle_provider_failure_stays_idle(client_and_redis: tuple[TestClient, fakeredis.FakeRedis]) -> None:
    client, _ = client_and_redis
    from neuroterm.api.deps import get_riddle_provider
    from neuroterm.main import app

    class _Failing:
        async def __call__(self):  # type: ignore[no-untyped-def]
            raise RuntimeError("provider down")

    app.dependency_overrides[get_riddle_provider] = lambda: _Failing()
    sid = _new_session(client)

    view = _submit(client, sid, "riddle")
    assert view["mode"] == "idle"
    assert view["busy"] is False
    assert view["log"][-1] == {**view["log"][-1], "category": "error", "text": "Failed to generate riddle. Try again."}


def test_busy_session_refuses_input(client_and_redis: tuple[TestClient, fakeredis.FakeRedis]) -> None:
    client, r = client_and_redis
    sid = _new_session(client)

    session = get_session(r=r, session_id=UUID(sid))
    assert session is not None
    session.busy = True
    save_session(r=r, session=session)

    resp = client.post(f"/session/{sid}/input", json={"line": "help"})
    assert resp.status_code == 409
    assert "busy" in resp.json()["detail"].lower()


def test_held_lock_refuses_input(client_and_redis: tuple[TestClient, fakeredis.FakeRedis]) -> None:
    client, r = client_and_redis
    sid = _new_session(client)

    r.set(f"neuroterm:lock:session:{sid}", "1", px=5_000)
    resp = client.post(f"/session/{sid}/input", json={"line": "help"})
    assert resp.status_code == 409


def test_exit_reboots_session(client_and_redis: tuple[TestClient, fakeredis.FakeRedis]) -> None:
    client, r = client_and_redis
    sid = _new_session(client)
    _submit(client, sid, "help")

    resp = client.post(f"/session/{sid}/input", json={"line": "exit"})
    assert resp.status_code == 200
    assert resp.json()["log"] == []

    view = client.get(f"/session/{sid}").json()
    assert _texts(view) == list(BOOT_SEQUENCE)
    assert view["mode"] == "idle"

    session = get_session(r=r, session_id=UUID(sid))
    assert session is not None
    assert session.boot_generation == 1


def test_exit_inside_a_game_only_aborts(client_and_redis: tuple[TestClient, fakeredis.FakeRedis]) -> None:
    client, _ = client_and_redis
    sid = _new_session(client)
    _submit(client, sid, "number")

    view = _submit(client, sid, "exit")
    assert view["mode"] == "idle"
    assert view["log"][-1]["text"] == "Game aborted. Returning to idle."
    assert list(BOOT_SEQUENCE)[0] in _texts(view)


def test_delete_session(client_and_redis: tuple[TestClient, fakeredis.FakeRedis]) -> None:
    client, _ = client_and_redis
    sid = _new_session(client)

    assert client.delete(f"/session/{sid}").status_code == 204
    assert client.get(f"/session/{sid}").status_code == 404


@pytest.mark.parametrize("path", ["/healthcheck", "/info"])
def test_service_endpoints(client_and_redis: tuple[TestClient, fakeredis.FakeRedis], path: str) -> None:
    client, _ = client_and_redis
    assert client.get(path).status_code == 200
