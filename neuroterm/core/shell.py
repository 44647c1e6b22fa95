from __future__ import annotations

import random

from neuroterm.api.models import (
    GameState,
    IdleState,
    LineCategory,
    NumberGuessState,
    Riddle,
    RiddleGuessState,
)
from neuroterm.core.games import handle_game_input
from neuroterm.core.outcome import Outcome, lines

NUMBER_MIN = 1
NUMBER_MAX = 100

HELP_TEXT: list[tuple[LineCategory, str]] = [
    (LineCategory.system, "--- AVAILABLE COMMANDS ---"),
    (LineCategory.output, "  riddle  - Start AI Riddle Mode"),
    (LineCategory.output, f"  number  - Start Number Guessing ({NUMBER_MIN}-{NUMBER_MAX})"),
    (LineCategory.output, "  clear   - Clear terminal"),
    (LineCategory.output, "  exit    - Reboot terminal"),
]


def normalize(line: str) -> str:
    return line.strip().lower()


def dispatch_command(*, state: IdleState, line: str, rng: random.Random) -> Outcome:
    """Interpret a line typed at the idle shell prompt.

    `riddle` only announces the request; the caller owns the async provider call
    and finishes with `riddle_ready()` or `riddle_failed()`.
    """

    cmd = normalize(line)

    if cmd == "help":
        return Outcome(state=state, lines=lines(*HELP_TEXT))

    if cmd == "clear":
        return Outcome(state=state, clear_log=True, lines=lines((LineCategory.system, "Terminal cleared.")))

    if cmd == "exit":
        return Outcome(state=IdleState(), reboot=True)

    if cmd == "number":
        target = rng.randint(NUMBER_MIN, NUMBER_MAX)
        return Outcome(
            state=NumberGuessState(target_number=target, attempts=0),
            lines=lines(
                (LineCategory.success, "NUMBER GUESS MODE INITIALIZED"),
                (LineCategory.output, f"I have selected a number between {NUMBER_MIN} and {NUMBER_MAX}."),
                (LineCategory.system, "Enter your guess:"),
            ),
        )

    if cmd == "riddle":
        return Outcome(
            state=state,
            needs_riddle=True,
            lines=lines((LineCategory.system, "Contacting AI for a new riddle...")),
        )

    return Outcome(
        state=state,
        lines=lines((LineCategory.error, f"Command not found: '{cmd}'. Type 'help' for list.")),
    )


def riddle_ready(riddle: Riddle) -> Outcome:
    return Outcome(
        state=RiddleGuessState(riddle=riddle, attempts=0),
        lines=lines(
            (LineCategory.success, "RIDDLE GENERATED SUCCESSFULLY"),
            (LineCategory.ai, riddle.question),
            (LineCategory.system, "(Type 'hint' for a clue, or 'giveup' to forfeit)"),
        ),
    )


def riddle_failed() -> Outcome:
    return Outcome(state=IdleState(), lines=lines((LineCategory.error, "Failed to generate riddle. Try again.")))


def route_line(*, state: GameState, line: str, rng: random.Random) -> Outcome:
    """Send a line to the shell when idle, otherwise to the active game."""

    if isinstance(state, IdleState):
        return dispatch_command(state=state, line=line, rng=rng)
    return handle_game_input(state=state, line=line)
