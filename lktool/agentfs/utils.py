"""Helpers for agent projects: project detection, resource quantities, URLs."""

from __future__ import annotations

import math
import os
import re
from collections.abc import Iterable, Mapping
from decimal import Decimal
from fractions import Fraction

_NUMBER = re.compile(r"([+-]?)(\d+(?:\.\d*)?|\.\d+)(.*)", re.S)
_EXPONENT = re.compile(r"[eE]([+-]?\d+)")
_BINARY = {"Ki": 2**10, "Mi": 2**20, "Gi": 2**30, "Ti": 2**40, "Pi": 2**50, "Ei": 2**60}
_DECIMAL = {"n": -9, "u": -6, "m": -3, "": 0, "k": 3, "M": 6, "G": 9, "T": 12, "P": 15, "E": 18}
_MAX_EXPONENT = 1000
_CLOUD_HOST = re.compile(r"^https://[a-zA-Z0-9\-]+\.")


def is_python(directory: str | os.PathLike) -> bool:
    """True if the directory holds a requirements.txt."""
    return os.path.exists(os.path.join(directory, "requirements.txt"))


def is_node(directory: str | os.PathLike) -> bool:
    """True if the directory holds a package.json."""
    return os.path.exists(os.path.join(directory, "package.json"))


def parse_quantity(text: str) -> Fraction:
    """Parse a resource quantity such as '500m', '1.5Gi' or '2e3' exactly."""
    match = _NUMBER.fullmatch(text)
    if not match:
        raise ValueError(
            "quantities must match the regular expression "
            "'^([+-]?[0-9.]+)([eEinumkKMGTP]*[-+]?[0-9]*)$'"
        )
    sign, number, suffix = match.groups()
    value = Fraction(Decimal(number))
    if suffix in _BINARY:
        value *= _BINARY[suffix]
    elif suffix in _DECIMAL:
        value *= Fraction(10) ** _DECIMAL[suffix]
    elif (exp := _EXPONENT.fullmatch(suffix)) is not None:
        power = int(exp.group(1))
        if abs(power) > _MAX_EXPONENT:
            raise ValueError("quantity exponent is out of range")
        value *= Fraction(10) ** power
    else:
        raise ValueError("unable to parse quantity's suffix")
    return -value if sign == "-" else value


def parse_cpu(cpu: str) -> float:
    """Return a CPU quantity as a number of cores, at millicore precision."""
    try:
        quantity = parse_quantity(cpu.strip())
    except ValueError as exc:
        raise ValueError(f"failed to parse CPU quantity: {exc}") from exc
    return math.ceil(quantity * 1000) / 1000


def parse_mem(mem: str, suffix: bool) -> str:
    """Return a memory quantity in GiB, formatted to two significant digits."""
    try:
        quantity = parse_quantity(mem.strip())
    except ValueError as exc:
        raise ValueError(f"failed to parse memory quantity: {exc}") from exc
    gigabytes = math.ceil(quantity) / (1024 * 1024 * 1024)
    text = f"{gigabytes:.2g}"
    return f"{text}GB" if suffix else text


def validate_settings_map(settings_map: Mapping[str, str], keys: Iterable[str]) -> None:
    """Raise ValueError for the first key missing from the client settings."""
    for key in keys:
        if key not in settings_map:
            raise ValueError(f"client setting {key} is required, please try again later")


def agents_url(project_url: str) -> str:
    """Return the hosted-agents service URL for a project URL.

    LK_AGENTS_URL overrides it; local servers are used as they are.
    """
    base = "http" + project_url[2:] if project_url.startswith("ws") else project_url
    override = os.environ.get("LK_AGENTS_URL")
    if override:
        return override
    if "localhost" not in base and "127.0.0.1" not in base:
        return _CLOUD_HOST.sub("https://agents.", base, count=1)
    return base