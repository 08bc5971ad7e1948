"""Reading secrets from .env files."""

from __future__ import annotations

import os
from collections.abc import Callable, Sequence

KNOWN_ENV_FILES = (
    ".env.production",
    ".env",
    ".env.staging",
    ".env.development",
    ".env.local",
    ".env.test",
)


def parse_env_file(file: str | os.PathLike) -> dict[str, str]:
    """Read KEY=VALUE lines, skipping comments and lines without '='."""
    env: dict[str, str] = {}
    with open(file, encoding="utf-8") as fh:
        for raw in fh:
            line = raw.removesuffix("\n").removesuffix("\r")
            if line.startswith("#"):
                continue
            key, sep, value = line.partition("=")
            if not sep:
                continue
            value = value.strip().strip("\"'").split("#", 1)[0]
            env[key.strip()] = value
    return env


def detect_env_file(
    maybe_file: str | None,
    choose: Callable[[Sequence[str]], str | None] | None = None,
) -> tuple[str | None, dict[str, str] | None]:
    """Find the secrets file to use and parse it.

    An explicit ``maybe_file`` is used as given. Otherwise the known .env files
    in the current directory are offered to ``choose``, which returns one of
    them, or None or '' for none; without ``choose`` the first one is taken.
    Returns ``(None, None)`` when no file is used.
    """
    if maybe_file:
        return maybe_file, parse_env_file(maybe_file)

    existing = [name for name in KNOWN_ENV_FILES if os.path.exists(name)]
    if not existing:
        return None, None

    selected = choose(existing) if choose is not None else existing[0]
    if not selected:
        return None, None
    return selected, parse_env_file(selected)