"""Small string helpers used across the command-line tool."""

from __future__ import annotations

import hashlib
import re
from collections.abc import Callable, Iterable
from urllib.parse import urlsplit

_ELLIPSIS = "..."
_SUBDOMAIN_PATTERN = re.compile(r"^(?:https?|wss?)://([^.]+)\.")


def map_strings(strs: Iterable[str], fn: Callable[[str], str]) -> list[str]:
    """Apply ``fn`` to every string and return the results as a list."""
    return [fn(s) for s in strs]


def wrap_with(wrap: str) -> Callable[[str], str]:
    """Return a function that surrounds its argument with ``wrap``."""

    def wrapper(text: str) -> str:
        return f"{wrap}{text}{wrap}"

    return wrapper


def ellipsize_to(text: str, max_length: int) -> str:
    """Shorten ``text`` to at most ``max_length`` characters, ending in '...'."""
    if len(text) <= max_length:
        return text
    content_len = max(0, min(len(text), max_length - len(_ELLIPSIS)))
    return text[:content_len] + _ELLIPSIS


def wrap_to_lines(text: str, max_line_length: int) -> list[str]:
    """Greedily wrap the words of ``text`` into lines of bounded length."""
    lines: list[str] = []
    current = ""
    for word in text.split():
        if len(current) + len(word) + 1 > max_line_length:
            lines.append(current)
            current = ""
        current = f"{current} {word}" if current else word
    if current:
        lines.append(current)
    return lines


def hash_string(text: str) -> str:
    """Return the hex-encoded SHA-256 digest of ``text``."""
    return hashlib.sha256(text.encode()).hexdigest()


def _hostname(netloc: str) -> str:
    host = netloc.rpartition("@")[2]
    if host.startswith("["):
        end = host.find("]")
        return host[1:end] if end != -1 else host[1:]
    return host.partition(":")[0]


def url_safe_name(project_url: str) -> str:
    """Derive a name from a project URL's subdomain, dropping its last '-' part."""
    try:
        parsed = urlsplit(project_url)
    except ValueError as exc:
        raise ValueError("invalid URL") from exc
    subdomain = _hostname(parsed.netloc).split(".")[0]
    last_hyphen = subdomain.rfind("-")
    if last_hyphen == -1:
        return subdomain
    return subdomain[:last_hyphen]


def extract_subdomain(url: str) -> str:
    """Return the first host label of an http(s)/ws(s) URL, or '' if none."""
    match = _SUBDOMAIN_PATTERN.match(url)
    return match.group(1) if match else ""