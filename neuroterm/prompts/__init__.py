from __future__ import annotations

from pathlib import Path


class PromptLoadError(RuntimeError):
    pass


def prompts_dir() -> Path:
    # Shipped as package data next to this module, so installs outside the repo find it too.
    return Path(__file__).resolve().parent


def load_prompt(name: str) -> str:
    """Load a prompt text file bundled in `neuroterm/prompts/`.

    Example:
        load_prompt("riddle_master.txt")
    """

    path = prompts_dir() / name
    try:
        return path.read_text(encoding="utf-8").strip() + "\n"
    except FileNotFoundError as e:
        raise PromptLoadError(f"Prompt not found: {path}") from e
