from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from typing import Annotated, Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, computed_field


class LineCategory(StrEnum):
    input = "input"
    output = "output"
    error = "error"
    success = "success"
    system = "system"
    ai = "ai"


# Display prefix per category; styling itself lives in the static UI.
CATEGORY_PREFIX: dict[LineCategory, str] = {
    LineCategory.input: "> ",
    LineCategory.output: "",
    LineCategory.error: "ERR >> ",
    LineCategory.success: "OK >> ",
    LineCategory.system: "SYS >> ",
    LineCategory.ai: "AI@CORE: ",
}


class LogEntry(BaseModel):
    """A single displayed terminal line. Immutable once appended."""

    model_config = ConfigDict(frozen=True)

    id: str
    category: LineCategory
    text: str
    created_at: datetime

    @computed_field  # type: ignore[prop-decorator]
    @property
    def prefix(self) -> str:
        return CATEGORY_PREFIX[self.category]


class Riddle(BaseModel):
    model_config = ConfigDict(frozen=True)

    question: str
    answer: str
    hint: str


class GameMode(StrEnum):
    idle = "idle"
    number_guess = "number_guess"
    riddle_guess = "riddle_guess"


class IdleState(BaseModel):
    model_config = ConfigDict(frozen=True)

    mode: Literal[GameMode.idle] = GameMode.idle
    # Attempts only mean something inside a game.
    attempts: Literal[0] = 0


class NumberGuessState(BaseModel):
    model_config = ConfigDict(frozen=True)

    mode: Literal[GameMode.number_guess] = GameMode.number_guess
    target_number: int = Field(..., ge=1, le=100)
    attempts: int = Field(0, ge=0)


class RiddleGuessState(BaseModel):
    model_config = ConfigDict(frozen=True)

    mode: Literal[GameMode.riddle_guess] = GameMode.riddle_guess
    riddle: Riddle
    attempts: int = Field(0, ge=0)


GameState = Annotated[IdleState | NumberGuessState | RiddleGuessState, Field(discriminator="mode")]


class TerminalSession(BaseModel):
    session_id: UUID
    created_at: datetime
    last_updated_at: datetime

    game: GameState = Field(default_factory=IdleState)

    # Append-only line log; only the `clear` command and a reboot empty it.
    log: list[LogEntry] = Field(default_factory=list)

    # Set while a riddle request is in flight; submissions are refused meanwhile.
    busy: bool = False

    # Bumped on every reboot so stale boot banners stop appending.
    boot_generation: int = 0


class TerminalView(BaseModel):
    """What the browser sees of a session.

    The target number and the riddle answer/hint stay server-side.
    """

    session_id: UUID
    mode: GameMode
    attempts: int
    busy: bool
    prompt: str
    status: str
    log: list[LogEntry]

    @classmethod
    def from_session(cls, session: TerminalSession) -> "TerminalView":
        idle = session.game.mode == GameMode.idle
        return cls(
            session_id=session.session_id,
            mode=session.game.mode,
            attempts=session.game.attempts,
            busy=session.busy,
            prompt="> " if idle else "? ",
            status="IDLE" if idle else "ACTIVE_PROCESS",
            log=session.log,
        )


class SubmitLineRequest(BaseModel):
    line: str = Field(..., max_length=2000)
