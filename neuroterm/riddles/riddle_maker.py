from __future__ import annotations

import json
import logging

from neuroterm.api.models import Riddle
from neuroterm.riddles.base import Agent, RenderedContext
from neuroterm.riddles.json_schema import JsonSchema

logger = logging.getLogger(__name__)


class RiddleGenerationError(RuntimeError):
    pass


RIDDLE_PROMPT = (
    "Generate a clever, challenging riddle with a single-word answer. "
    "The answer should be a common object or concept.\n\n"
    "Return ONLY strict JSON matching the required schema. No explanation."
)


RIDDLE_SCHEMA = JsonSchema(
    name="riddle",
    schema={
        "type": "object",
        "additionalProperties": False,
        "properties": {
            "question": {"type": "string", "description": "The riddle text itself."},
            "answer": {"type": "string", "description": "The single word answer."},
            "hint": {"type": "string", "description": "A subtle hint to help the user if they are stuck."},
        },
        "required": ["question", "answer", "hint"],
    },
    strict=True,
)


def _strip_code_fence(text: str) -> str:
    stripped = text.strip()
    if stripped.startswith("```") and stripped.endswith("```"):
        body = stripped[3:-3]
        # Drop a language tag such as ```json
        first_newline = body.find("\n")
        if first_newline != -1 and not body[:first_newline].strip().startswith("{"):
            body = body[first_newline + 1 :]
        return body.strip()
    return stripped


def parse_riddle(text: str) -> Riddle:
    """Parse the model's JSON reply into a Riddle.

    Expected: {"question": "...", "answer": "...", "hint": "..."}; every field
    must be a non-empty string. Markdown code fences around the JSON are tolerated.
    """

    try:
        data = json.loads(_strip_code_fence(text))
    except json.JSONDecodeError as e:
        raise RiddleGenerationError(f"Invalid JSON: {e}") from e

    if not isinstance(data, dict):
        raise RiddleGenerationError("Expected a JSON object")

    fields: dict[str, str] = {}
    for key in ("question", "answer", "hint"):
        value = data.get(key)
        if not isinstance(value, str) or not value.strip():
            raise RiddleGenerationError(f"Missing/invalid '{key}' field")
        fields[key] = value.strip()

    return Riddle(**fields)


async def generate_riddle_with_agent(
    *,
    agent: Agent,
    ctx: RenderedContext,
    max_attempts: int = 3,
) -> Riddle:
    """Ask an agent for a riddle, retrying on malformed replies."""

    last_err: Exception | None = None
    for attempt in range(1, max_attempts + 1):
        reply = await agent.ask(prompt=RIDDLE_PROMPT, ctx=ctx, structured_output=RIDDLE_SCHEMA)
        try:
            return parse_riddle(reply.content)
        except RiddleGenerationError as e:
            logger.info("riddle reply rejected agent=%s attempt=%d err=%s", agent.name, attempt, e)
            last_err = e

    raise RiddleGenerationError(f"Failed to get a valid riddle after {max_attempts} attempts: {last_err}")
