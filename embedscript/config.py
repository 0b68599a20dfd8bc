"""Central configuration for embedscript.

Tunable engine parameters live here (nesting limit, shuffle behaviour, save
directory). Every value has a sensible default and can be overridden through
environment variables.
"""
from __future__ import annotations
import os
from pathlib import Path


def _get_int_env(name: str, default: int, minval: int | None = None) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        v = int(raw)
        if minval is not None and v < minval:
            return default
        return v
    except ValueError:
        return default


def _get_bool_env(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    val = raw.strip().lower()
    return val in {"1", "true", "yes", "on"}


# ---------------- Parser ----------------
# Maximum number of directives nested inside each other
DEFAULT_MAX_DEPTH: int = 64
# Hard ceiling; each nesting level costs several interpreter frames
MAX_SAFE_DEPTH: int = 100

ENV_MAX_DEPTH = "ES_MAX_DEPTH"


def clamp_max_depth(value: int) -> int:
    """Keep a nesting limit within 1..MAX_SAFE_DEPTH."""
    return max(1, min(value, MAX_SAFE_DEPTH))


def get_max_depth() -> int:
    """Return the nesting limit used by the parser.

    Order of precedence:
    1. Environment variable ES_MAX_DEPTH (if a valid integer >= 1)
    2. DEFAULT_MAX_DEPTH

    Values above MAX_SAFE_DEPTH are lowered to it.
    """
    return clamp_max_depth(_get_int_env(ENV_MAX_DEPTH, DEFAULT_MAX_DEPTH, minval=1))


# ---------------- Selection ----------------
ENV_SHUFFLE_AVOID_REPEAT = "ES_SHUFFLE_AVOID_REPEAT"


def get_shuffle_avoid_repeat() -> bool:
    """Avoid repeating the last shuffle entry across a reshuffle. Var: ES_SHUFFLE_AVOID_REPEAT (default True)."""
    return _get_bool_env(ENV_SHUFFLE_AVOID_REPEAT, True)


# ---------------- Persistence ----------------
DEFAULT_SAVES_DIR = "data/sequence_saves"

ENV_SAVES_DIR = "ES_SAVES_DIR"


def get_saves_dir() -> Path:
    """Directory for session save files. Var: ES_SAVES_DIR (default data/sequence_saves)."""
    raw = os.getenv(ENV_SAVES_DIR, "").strip()
    return Path(raw or DEFAULT_SAVES_DIR)


__all__ = [
    "DEFAULT_MAX_DEPTH", "MAX_SAFE_DEPTH", "ENV_MAX_DEPTH", "clamp_max_depth", "get_max_depth",
    "ENV_SHUFFLE_AVOID_REPEAT", "get_shuffle_avoid_repeat",
    "DEFAULT_SAVES_DIR", "ENV_SAVES_DIR", "get_saves_dir",
]
