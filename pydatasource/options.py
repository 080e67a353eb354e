"""
Runtime options for datasource resolution.

Centralizes tunables so callers can adjust defaults without touching core
logic. ``ResolverOptions.from_env()`` applies environment overrides:

  PYDATASOURCE_USER_AGENT        default User-Agent header for HTTP(S)
  PYDATASOURCE_BODY_EXCERPT_MAX  characters of an error body kept for diagnostics
  PYDATASOURCE_CHUNK_SIZE        streaming read size in bytes
  PYDATASOURCE_MAX_WORKERS       threads used to issue HTTP requests
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, replace

from . import __version__

LOGGER = logging.getLogger(__name__)

DEFAULT_USER_AGENT = f"pydatasource/{__version__}"


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError:
        LOGGER.warning("Ignoring %s=%r: not an integer", name, raw)
        return default
    if value <= 0:
        LOGGER.warning("Ignoring %s=%r: must be positive", name, raw)
        return default
    return value


@dataclass(frozen=True)
class ResolverOptions:
    user_agent: str = DEFAULT_USER_AGENT

    # Upper bound on the response body prefix attached to HTTPStatusError
    body_excerpt_limit: int = 256

    chunk_size: int = 65_536

    max_workers: int = 8

    @classmethod
    def from_env(cls) -> "ResolverOptions":
        base = cls()
        return replace(
            base,
            user_agent=os.getenv("PYDATASOURCE_USER_AGENT") or base.user_agent,
            body_excerpt_limit=_env_int(
                "PYDATASOURCE_BODY_EXCERPT_MAX", base.body_excerpt_limit
            ),
            chunk_size=_env_int("PYDATASOURCE_CHUNK_SIZE", base.chunk_size),
            max_workers=_env_int("PYDATASOURCE_MAX_WORKERS", base.max_workers),
        )
