from __future__ import annotations

from dataclasses import dataclass, field

from neuroterm.api.models import GameState, LineCategory, LogEntry
from neuroterm.core.log import make_entry


@dataclass(frozen=True, slots=True)
class Outcome:
    """Result of interpreting one submitted line.

    - `state`: the whole next game state (never a partial update).
    - `lines`: entries to append, in order.
    - `clear_log`: drop every existing entry before appending `lines`.
    - `reboot`: discard the session entirely and replay the boot banner.
    - `needs_riddle`: the caller must fetch a riddle and then apply
      `riddle_ready()` / `riddle_failed()`.
    """

    state: GameState
    lines: list[LogEntry] = field(default_factory=list)
    clear_log: bool = False
    reboot: bool = False
    needs_riddle: bool = False


def lines(*pairs: tuple[LineCategory, str]) -> list[LogEntry]:
    return [make_entry(text, category) for category, text in pairs]
