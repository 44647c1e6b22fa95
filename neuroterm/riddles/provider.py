from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Protocol

from neuroterm.api.models import Riddle
from neuroterm.riddles.base import Agent, RenderedContext
from neuroterm.riddles.riddle_maker import RiddleGenerationError, generate_riddle_with_agent

logger = logging.getLogger(__name__)


FALLBACK_RIDDLE = Riddle(
    question=(
        "I speak without a mouth and hear without ears. I have no body, "
        "but I come alive with wind. What am I?"
    ),
    answer="Echo",
    hint="It involves sound reflection.",
)


class RiddleProvider(Protocol):
    async def __call__(self) -> Riddle:  # pragma: no cover
        ...


@dataclass(frozen=True, slots=True)
class StaticRiddleProvider:
    """Always hands out the same riddle. No network calls."""

    riddle: Riddle = FALLBACK_RIDDLE

    async def __call__(self) -> Riddle:
        return self.riddle


@dataclass(slots=True)
class AgentRiddleProvider:
    """Riddles from an LLM agent, bounded by a timeout.

    With `fallback_on_error` every failure (timeout, transport error, malformed
    replies) is logged and replaced by `fallback`, so callers always get a riddle.
    Without it the failure surfaces as `RiddleGenerationError`.
    """

    agent: Agent
    ctx: RenderedContext
    timeout_s: float = 30.0
    max_attempts: int = 3
    fallback_on_error: bool = True
    fallback: Riddle = FALLBACK_RIDDLE

    async def _generate(self) -> Riddle:
        try:
            return await asyncio.wait_for(
                generate_riddle_with_agent(agent=self.agent, ctx=self.ctx, max_attempts=self.max_attempts),
                timeout=self.timeout_s,
            )
        except TimeoutError as e:
            raise RiddleGenerationError(f"Riddle agent timed out after {self.timeout_s}s") from e

    async def __call__(self) -> Riddle:
        try:
            return await self._generate()
        except Exception as e:
            if not self.fallback_on_error:
                if isinstance(e, RiddleGenerationError):
                    raise
                raise RiddleGenerationError(str(e)) from e
            logger.warning("riddle generation failed, using fallback riddle: %s", e)
            return self.fallback
