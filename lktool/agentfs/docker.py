"""Dockerfile detection and entrypoint rewriting for agent projects."""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Callable, Sequence

logger = logging.getLogger(__name__)

_SUFFIXES = {"python": ".py", "node": ".js"}


def has_dockerfile(directory: str | os.PathLike) -> bool:
    """True if ``directory`` holds an entry named Dockerfile."""
    return "Dockerfile" in os.listdir(directory)


def resolve_entrypoint(
    directory: str | os.PathLike,
    entrypoint: str,
    project_type: str = "python",
    choose: Callable[[Sequence[str]], str] | None = None,
) -> str:
    """Return ``entrypoint`` if it is a file in ``directory``, else pick another.

    Candidates are the entries ending in the project type's suffix, in name
    order; ``choose`` picks one of them (the first when it is None). Returns
    '' when there is no candidate.
    """
    with os.scandir(directory) as it:
        entries = sorted(it, key=lambda e: e.name)
    files = {e.name for e in entries if not e.is_dir(follow_symlinks=False)}
    if entrypoint in files:
        return entrypoint

    suffix = _SUFFIXES.get(project_type, "")
    options = [e.name for e in entries if e.name.endswith(suffix)]
    if not options:
        return ""
    if choose is None:
        return options[0]
    return choose(options)


def _marshal(values: list[str] | None) -> str:
    text = json.dumps(values, separators=(",", ":"), ensure_ascii=False)
    for char, escaped in (
        ("<", "\\u003c"),
        (">", "\\u003e"),
        ("&", "\\u0026"),
        ("\u2028", "\\u2028"),
        ("\u2029", "\\u2029"),
    ):
        text = text.replace(char, escaped)
    return text


def _parse_string_array(text: str, context: str) -> list[str] | None:
    try:
        value = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ValueError(f"{context}: {exc}") from exc
    if value is None:
        return None
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ValueError(f"{context}: expected an array of strings")
    return value


def _rewrite_entrypoint_line(trimmed: str, new_entrypoint: str) -> str:
    parts = trimmed.split()
    if len(parts) < 2:
        raise ValueError("invalid ENTRYPOINT format")
    if parts[1].startswith("["):
        array = _parse_string_array(" ".join(parts[1:]), "invalid ENTRYPOINT JSON format")
        if not array:
            raise ValueError("invalid ENTRYPOINT format")
        logger.debug("found entrypoint %s", array[-1])
        array[-1] = new_entrypoint
        return f"ENTRYPOINT {_marshal(array)}\n"
    logger.debug("found entrypoint %s", parts[-1])
    parts[-1] = new_entrypoint
    return " ".join(parts) + "\n"


def _rewrite_cmd_line(trimmed: str, new_entrypoint: str) -> str:
    parts = trimmed.split()
    if len(parts) < 2 or not parts[1].startswith("["):
        # shell-form CMD lines are dropped
        return ""
    array = _parse_string_array(" ".join(parts[1:]), "invalid CMD JSON format")
    if array is not None:
        for i, arg in enumerate(array):
            if arg.endswith(".py"):
                array[i] = new_entrypoint
                break
    return f"CMD {_marshal(array)}\n"


def rewrite_entrypoint(
    dockerfile_content: str, python_entrypoint: str, new_entrypoint: str
) -> str:
    """Point a Dockerfile's ENTRYPOINT, CMD and 'RUN python' lines at ``new_entrypoint``."""
    lines = dockerfile_content.split("\n")
    last = len(lines) - 1
    out: list[str] = []
    run_prefix = f"RUN python {python_entrypoint}"
    for index, line in enumerate(lines):
        trimmed = line.strip()
        ending = "\n" if index < last else ""
        if trimmed.startswith("ENTRYPOINT"):
            out.append(_rewrite_entrypoint_line(trimmed, new_entrypoint))
        elif trimmed.startswith("CMD"):
            out.append(_rewrite_cmd_line(trimmed, new_entrypoint))
        elif trimmed.startswith(run_prefix):
            out.append(line.replace(python_entrypoint, new_entrypoint) + ending)
        else:
            out.append(line + ending)
    return "".join(out)