"""
Process configuration read from the environment (and `.env` when present).
"""
from dotenv import load_dotenv
load_dotenv()

import os
from typing import Mapping, Optional

DEFAULT_PORT = 8000
DEFAULT_HOST = "0.0.0.0"


def resolve_port(env: Optional[Mapping[str, str]] = None) -> int:
    """Port from PORT, falling back to 8000 when unset or blank."""
    env = os.environ if env is None else env
    raw = (env.get("PORT") or "").strip()
    if not raw:
        return DEFAULT_PORT
    try:
        port = int(raw)
    except ValueError:
        raise ValueError(f"PORT must be an integer, got {raw!r}")
    if not 0 < port < 65536:
        raise ValueError(f"PORT out of range: {port}")
    return port


def resolve_host(env: Optional[Mapping[str, str]] = None) -> str:
    env = os.environ if env is None else env
    return env.get("HOST") or DEFAULT_HOST


def is_debug(env: Optional[Mapping[str, str]] = None) -> bool:
    env = os.environ if env is None else env
    return (env.get("DEBUG") or "").strip().lower() in ("1", "true", "yes", "on")
