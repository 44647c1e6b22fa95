from __future__ import annotations

from statemachine import State, StateMachine

from neuroterm.api.models import GameMode, TerminalSession


class TerminalFSM(StateMachine):
    """FSM guard around a session's game mode.

    The pure handlers in `neuroterm.core` compute the next state; this machine
    only checks the mode change is legal before the session is saved:
    idle -> number_guess | riddle_guess -> idle, plus reboot from anywhere.
    """

    idle = State(GameMode.idle.value, value=GameMode.idle.value, initial=True)
    number_guess = State(GameMode.number_guess.value, value=GameMode.number_guess.value)
    riddle_guess = State(GameMode.riddle_guess.value, value=GameMode.riddle_guess.value)

    start_number = idle.to(number_guess)
    start_riddle = idle.to(riddle_guess)
    finish = number_guess.to(idle) | riddle_guess.to(idle)
    reboot = idle.to.itself() | number_guess.to(idle) | riddle_guess.to(idle)

    def __init__(self, session: TerminalSession):
        super().__init__(start_value=GameMode(session.game.mode).value)

    @property
    def mode(self) -> GameMode:
        return GameMode(str(self.current_state.value))

    def advance_to(self, mode: GameMode) -> None:
        """Fire the event that moves to `mode`; staying put is always allowed.

        Raises `statemachine.exceptions.TransitionNotAllowed` for illegal moves
        such as number_guess -> riddle_guess.
        """

        if mode == self.mode:
            return
        if mode == GameMode.number_guess:
            self.send("start_number")
        elif mode == GameMode.riddle_guess:
            self.send("start_riddle")
        else:
            self.send("finish")
