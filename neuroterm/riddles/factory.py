from __future__ import annotations

import logging
import os
from typing import cast

from neuroterm.prompts import load_prompt
from neuroterm.riddles.ag2_backend import Ag2ChatAgent
from neuroterm.riddles.autogen_config import DEFAULT_MODEL
from neuroterm.riddles.base import Agent, RenderedContext
from neuroterm.riddles.provider import AgentRiddleProvider, RiddleProvider, StaticRiddleProvider
from neuroterm.settings import TerminalSettings

logger = logging.getLogger(__name__)


def create_default_agent(*, name: str = "riddle-master") -> Agent:
    """Create the default LLM-backed agent.

    Uses AG2/autogen and reads model configuration from env.
    """

    model = os.environ.get("OPENAI_MODEL", DEFAULT_MODEL)
    return cast(Agent, Ag2ChatAgent(name=name, model=model))


def create_riddle_provider(settings: TerminalSettings) -> RiddleProvider:
    if settings.riddle_backend == "static":
        logger.info("riddle backend: static")
        return StaticRiddleProvider()

    logger.info("riddle backend: agent (timeout=%ss, fallback=%s)", settings.riddle_timeout_s, settings.riddle_fallback)
    return AgentRiddleProvider(
        agent=create_default_agent(),
        ctx=RenderedContext(system_prompt=load_prompt("riddle_master.txt")),
        timeout_s=settings.riddle_timeout_s,
        max_attempts=settings.riddle_max_attempts,
        fallback_on_error=settings.riddle_fallback,
    )
