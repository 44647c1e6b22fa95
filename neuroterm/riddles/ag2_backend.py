from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any

from autogen import ConversableAgent

from neuroterm.riddles.autogen_config import llm_config_from_env
from neuroterm.riddles.base import AgentReply, RenderedContext
from neuroterm.riddles.json_schema import JsonSchema

logger = logging.getLogger(__name__)


def _extract_last_content(messages: object) -> str:
    """Extract the last non-empty message content from AG2 chat history."""

    if not isinstance(messages, list):
        return ""

    for msg in reversed(messages):
        if isinstance(msg, dict):
            content = msg.get("content")
            if isinstance(content, str) and content.strip():
                return content.strip()
    return ""


@dataclass(slots=True)
class Ag2ChatAgent:
    """Single-turn AG2 chat used to ask the model for a riddle.

    Environment variables supported:
    - OPENAI_MODEL
    - OPENAI_API_KEY (optional if OPENAI_BASE_URL is set)
    - OPENAI_BASE_URL (for OpenAI-compatible servers like Ollama, e.g. http://127.0.0.1:11434/v1)
    """

    name: str
    model: str

    def _run_blocking(self, prompt: str, ctx: RenderedContext, structured_output: JsonSchema | None) -> str:
        llm_config = llm_config_from_env(default_model=self.model)

        agent = ConversableAgent(
            name=self.name,
            system_message=ctx.system_prompt,
            llm_config=llm_config,
            human_input_mode="NEVER",
        )

        # AG2 forwards unknown kwargs through to the OpenAI client.
        extra: dict[str, Any] = {}
        if structured_output is not None:
            extra["response_format"] = structured_output.as_response_format()

        result = agent.run(message=prompt, max_turns=1, **extra)
        result.process()

        text = _extract_last_content(list(result.messages))
        if not text:
            summary = result.summary
            if isinstance(summary, str):
                text = summary.strip()
        return text

    async def ask(
        self,
        *,
        prompt: str,
        ctx: RenderedContext,
        structured_output: JsonSchema | None = None,
    ) -> AgentReply:
        """Send one prompt and return the model's last reply.

        AG2's `run()` blocks, so it runs in a worker thread to keep the event
        loop serving other sessions while the model thinks.
        """

        logger.debug("ag2 ask agent=%s model=%s structured=%s", self.name, self.model, structured_output is not None)
        text = await asyncio.to_thread(self._run_blocking, prompt, ctx, structured_output)
        logger.debug("ag2 reply agent=%s len=%d", self.name, len(text))

        metadata: dict[str, Any] = {"model": self.model}
        if structured_output is not None:
            metadata["structured"] = True
        return AgentReply(kind="chat", content=text, metadata=metadata)
