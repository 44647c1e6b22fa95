from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Literal

RiddleBackend = Literal["agent", "static"]


@dataclass(frozen=True, slots=True)
class TerminalSettings:
    # Where riddles come from: an LLM agent, or the built-in fixed riddle.
    riddle_backend: RiddleBackend = "agent"
    riddle_timeout_s: float = 30.0
    # If true, provider failures are replaced by the built-in riddle.
    riddle_fallback: bool = True
    riddle_max_attempts: int = 3

    # Boot banner pacing: each line waits delay + random() * jitter after the previous one.
    boot_delay_s: float = 0.4
    boot_jitter_s: float = 0.3

    session_ttl_s: int = 3600


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def settings_from_env() -> TerminalSettings:
    backend = os.environ.get("NEUROTERM_RIDDLE_BACKEND", "agent").strip().lower()
    if backend not in ("agent", "static"):
        raise RuntimeError(f"NEUROTERM_RIDDLE_BACKEND must be 'agent' or 'static', got {backend!r}")

    return TerminalSettings(
        riddle_backend=backend,  # type: ignore[arg-type]
        riddle_timeout_s=float(os.environ.get("NEUROTERM_RIDDLE_TIMEOUT_S", "30")),
        riddle_fallback=_env_bool("NEUROTERM_RIDDLE_FALLBACK", True),
        riddle_max_attempts=int(os.environ.get("NEUROTERM_RIDDLE_MAX_ATTEMPTS", "3")),
        boot_delay_s=float(os.environ.get("NEUROTERM_BOOT_DELAY_S", "0.4")),
        boot_jitter_s=float(os.environ.get("NEUROTERM_BOOT_JITTER_S", "0.3")),
        session_ttl_s=int(os.environ.get("NEUROTERM_SESSION_TTL_S", "3600")),
    )
