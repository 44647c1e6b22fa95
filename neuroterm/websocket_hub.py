from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from collections.abc import Iterable

from fastapi import WebSocket

from neuroterm.api.models import LogEntry, TerminalSession, TerminalView

logger = logging.getLogger(__name__)


class TerminalWebSocketHub:
    """Pushes terminal output to the pages watching a session.

    A page gets one `terminal_snapshot` (the full `TerminalView`) when it
    connects, then a `terminal_updated` event per change carrying only the new
    entries plus the mode/prompt/busy flags the input line depends on.

    Listeners live in this process only.
    """

    def __init__(self) -> None:
        self._listeners: dict[str, set[WebSocket]] = defaultdict(set)
        self._lock = asyncio.Lock()

    def listener_count(self, session_id: str) -> int:
        return len(self._listeners.get(session_id, ()))

    async def attach(self, session: TerminalSession, websocket: WebSocket) -> None:
        """Accept the socket, register it, then send the current screen.

        Registering before the snapshot means a line appended in between is
        at worst delivered twice, never lost; the page dedupes by entry id.
        """

        sid = str(session.session_id)
        await websocket.accept()
        async with self._lock:
            self._listeners[sid].add(websocket)
        snapshot = TerminalView.from_session(session).model_dump(mode="json")
        await websocket.send_json({"type": "terminal_snapshot", **snapshot})

    async def detach(self, session_id: str, websocket: WebSocket) -> None:
        async with self._lock:
            listeners = self._listeners.get(session_id)
            if listeners is None:
                return
            listeners.discard(websocket)
            if not listeners:
                del self._listeners[session_id]

    async def publish(self, session: TerminalSession, entries: Iterable[LogEntry], *, cleared: bool = False) -> None:
        sid = str(session.session_id)
        async with self._lock:
            listeners = list(self._listeners.get(sid, ()))
        if not listeners:
            return

        view = TerminalView.from_session(session)
        payload = {
            "type": "terminal_updated",
            "session_id": sid,
            "cleared": cleared,
            "entries": [e.model_dump(mode="json") for e in entries],
            "mode": str(view.mode),
            "prompt": view.prompt,
            "status": view.status,
            "busy": view.busy,
        }

        gone: list[WebSocket] = []
        for ws in listeners:
            try:
                await ws.send_json(payload)
            except Exception:
                gone.append(ws)

        for ws in gone:
            logger.info("dropping closed terminal socket session=%s", sid)
            await self.detach(sid, ws)


hub = TerminalWebSocketHub()
