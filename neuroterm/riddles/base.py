from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol

from neuroterm.riddles.json_schema import JsonSchema


@dataclass(frozen=True, slots=True)
class RenderedContext:
    """System prompt handed to the LLM agent."""

    system_prompt: str


@dataclass(frozen=True, slots=True)
class AgentReply:
    kind: str
    content: str
    metadata: dict[str, Any] = field(default_factory=dict)


class Agent(Protocol):
    name: str

    async def ask(
        self,
        *,
        prompt: str,
        ctx: RenderedContext,
        structured_output: JsonSchema | None = None,
    ) -> AgentReply:  # pragma: no cover
        ...
