from __future__ import annotations

import re

from neuroterm.api.models import IdleState, LineCategory, NumberGuessState, RiddleGuessState
from neuroterm.core.outcome import Outcome, lines

ABORT_WORDS = frozenset({"quit", "exit"})

# Leading ASCII integer, the way a lenient terminal reads "42", "+7" or "50 please".
_LEADING_INT = re.compile(r"[+-]?[0-9]+")


def parse_guess(text: str) -> int | None:
    m = _LEADING_INT.match(text.strip())
    if m is None:
        return None
    return int(m.group(0))


def handle_game_input(*, state: NumberGuessState | RiddleGuessState, line: str) -> Outcome:
    """Interpret a line while a game is active.

    `quit`/`exit` abort any game before the mode-specific rules run.
    """

    guess = line.strip()

    if guess.lower() in ABORT_WORDS:
        return Outcome(state=IdleState(), lines=lines((LineCategory.system, "Game aborted. Returning to idle.")))

    if isinstance(state, NumberGuessState):
        return _number_guess(state=state, guess=guess)
    return _riddle_guess(state=state, guess=guess)


def _number_guess(*, state: NumberGuessState, guess: str) -> Outcome:
    num = parse_guess(guess)
    if num is None:
        # Unparseable input is not an attempt.
        return Outcome(state=state, lines=lines((LineCategory.error, "Please enter a valid number.")))

    attempts = state.attempts + 1
    target = state.target_number

    if num == target:
        return Outcome(
            state=IdleState(),
            lines=lines(
                (LineCategory.success, f"CORRECT! The number was {target}."),
                (LineCategory.success, f"You won in {attempts} attempts."),
                (LineCategory.system, "Returning to shell..."),
            ),
        )

    updated = NumberGuessState(target_number=target, attempts=attempts)
    if num < target:
        return Outcome(state=updated, lines=lines((LineCategory.output, f"Too low! (Attempt {attempts})")))
    return Outcome(state=updated, lines=lines((LineCategory.output, f"Too high! (Attempt {attempts})")))


def _riddle_guess(*, state: RiddleGuessState, guess: str) -> Outcome:
    riddle = state.riddle
    # Every riddle input counts, including `hint` and `giveup`.
    attempts = state.attempts + 1
    lowered = guess.lower()

    if lowered == "giveup":
        return Outcome(
            state=IdleState(),
            lines=lines((LineCategory.system, f"You gave up! The answer was: {riddle.answer}")),
        )

    updated = RiddleGuessState(riddle=riddle, attempts=attempts)

    if lowered == "hint":
        return Outcome(state=updated, lines=lines((LineCategory.ai, f"HINT: {riddle.hint}")))

    if riddle.answer.lower() in lowered:
        return Outcome(
            state=IdleState(),
            lines=lines(
                (LineCategory.success, f"CORRECT! The answer is indeed '{riddle.answer}'."),
                (LineCategory.success, f"Solved in {attempts} attempts."),
            ),
        )

    return Outcome(state=updated, lines=lines((LineCategory.error, "Incorrect. Try again.")))
