"""Project templates: the template index, sandboxes, .env files and task files."""

from __future__ import annotations

import os
import re
import shutil
import subprocess
import sys
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

import requests
import yaml
from dotenv import dotenv_values

TASK_FILE = "taskfile.yaml"
TEMPLATE_INDEX_FILE = "templates.yaml"
TEMPLATE_INDEX_ENV = "LK_TEMPLATE_INDEX_URL"
SANDBOX_TEMPLATE_ENDPOINT = "/api/sandbox/template"

# Files that are only needed while a template is being instantiated.
TEMPLATE_IGNORE_FILES = (
    ".git",
    "renovate.json",
    "taskfile.yaml",
    "TEMPLATE.md",
    "LICENSE",
    "LICENSE.md",
    "NOTICE",
)

_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1
_INTEGER = re.compile(r"[+-]?[0-9]+")
_DOUBLE_QUOTE_ESCAPES = (
    ("\\", "\\\\"),
    ("\n", "\\n"),
    ("\r", "\\r"),
    ('"', '\\"'),
    ("!", "\\!"),
    ("$", "\\$"),
    ("`", "\\`"),
)


class KnownTask(StrEnum):
    POST_CREATE = "post_create"
    INSTALL = "install"
    DEV = "dev"


class WebPackageManager(StrEnum):
    NPM = "npm"
    PNPM = "pnpm"
    YARN = "yarn"


def _str(value: Any) -> str:
    return "" if value is None else str(value)


def _str_list(value: Any) -> list[str]:
    return [_str(v) for v in value or []]


def _str_map(value: Any) -> dict[str, str]:
    return {str(k): _str(v) for k, v in (value or {}).items()}


@dataclass
class Template:
    """An entry of the template index."""

    name: str = ""
    desc: str = ""
    url: str = ""
    docs: str = ""
    image: str = ""
    tags: list[str] = field(default_factory=list)
    attrs: dict[str, str] = field(default_factory=dict)
    requires: list[str] = field(default_factory=list)
    is_sandbox: bool = False
    is_hidden: bool = False

    @classmethod
    def _from_index(cls, data: Mapping[str, Any]) -> Template:
        return cls(
            name=_str(data.get("name")),
            desc=_str(data.get("desc")),
            url=_str(data.get("url")),
            docs=_str(data.get("docs")),
            image=_str(data.get("image")),
            tags=_str_list(data.get("tags")),
            attrs=_str_map(data.get("attrs")),
            requires=_str_list(data.get("requires")),
            is_sandbox=bool(data.get("is_sandbox", False)),
            is_hidden=bool(data.get("is_hidden", False)),
        )

    @classmethod
    def _from_json(cls, data: Mapping[str, Any]) -> Template:
        return cls(
            name=_str(data.get("name")),
            desc=_str(data.get("description")),
            url=_str(data.get("url")),
            docs=_str(data.get("docs_url")),
            image=_str(data.get("image_ref")),
            tags=_str_list(data.get("tags")),
            attrs=_str_map(data.get("attrs")),
            requires=_str_list(data.get("requires")),
            is_sandbox=bool(data.get("is_sandbox", False)),
            is_hidden=bool(data.get("is_hidden", False)),
        )


@dataclass
class SandboxDetails:
    """A sandbox together with its template and child templates."""

    name: str = ""
    template: Template = field(default_factory=Template)
    child_templates: list[Template] = field(default_factory=list)


def new_header_with_token(token: str) -> dict[str, str]:
    """Return HTTP headers carrying ``token`` as a bearer credential."""
    return {"Authorization": "Bearer " + token}


def fetch_templates() -> list[Template]:
    """Download and parse the template index.

    The index location is read from the LK_TEMPLATE_INDEX_URL environment variable.
    """
    base = os.environ.get(TEMPLATE_INDEX_ENV)
    if not base:
        raise RuntimeError(f"template index URL is not configured; set {TEMPLATE_INDEX_ENV}")
    resp = requests.get(base.rstrip("/") + "/" + TEMPLATE_INDEX_FILE)
    data = yaml.safe_load(resp.text)
    if data is None:
        return []
    if not isinstance(data, list) or not all(isinstance(d, dict) for d in data):
        raise ValueError("template index must be a list of mappings")
    return [Template._from_index(d) for d in data]


def fetch_sandbox_details(sid: str, token: str, server_url: str) -> SandboxDetails:
    """Fetch the details of sandbox ``sid`` from the server."""
    resp = requests.get(
        server_url + SANDBOX_TEMPLATE_ENDPOINT,
        params={"id": sid},
        headers=new_header_with_token(token),
    )
    if resp.status_code == 404:
        raise LookupError(f"sandbox not found: {sid}")
    if resp.status_code != 200:
        raise RuntimeError(f"{resp.status_code} {resp.reason}".strip())
    data = resp.json()
    if not isinstance(data, dict):
        raise ValueError("sandbox details must be a JSON object")
    return SandboxDetails(
        name=_str(data.get("name")),
        template=Template._from_json(data.get("template") or {}),
        child_templates=[Template._from_json(t) for t in data.get("childTemplates") or []],
    )


def parse_taskfile(root_path: str | os.PathLike) -> dict[str, Any] | None:
    """Parse ``taskfile.yaml`` in ``root_path``; None when there is none."""
    path = os.path.join(root_path, TASK_FILE)
    try:
        with open(path, encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
    except FileNotFoundError:
        return None
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"{TASK_FILE} must hold a mapping")
    return data


PromptFunc = Callable[[str, str], str]


def instantiate_dot_env(
    root_dir: str | os.PathLike,
    example_file_path: str,
    substitutions: Mapping[str, str],
    prompt: PromptFunc,
) -> dict[str, str]:
    """Fill in the example .env file: substitute known keys, prompt for the rest.

    Without an example file the substitutions themselves are returned.
    """
    path = os.path.join(root_dir, example_file_path)
    try:
        os.stat(path)
    except FileNotFoundError:
        return dict(substitutions)
    if os.path.isdir(path):
        raise IsADirectoryError(".env.example file is a directory")

    env: dict[str, str] = {}
    for key, old_value in dotenv_values(path).items():
        if key in substitutions:
            env[key] = substitutions[key]
        else:
            env[key] = prompt(key, old_value or "")
    return env


def _int64(value: str) -> int | None:
    if not _INTEGER.fullmatch(value):
        return None
    number = int(value)
    return number if _INT64_MIN <= number <= _INT64_MAX else None


def _escape(value: str) -> str:
    for char, escaped in _DOUBLE_QUOTE_ESCAPES:
        value = value.replace(char, escaped)
    return value


def marshal_dot_env(env_map: Mapping[str, str]) -> str:
    """Render a map as sorted .env lines; integers bare, everything else quoted."""
    lines = []
    for key, value in env_map.items():
        number = _int64(value)
        if number is not None:
            lines.append(f"{key}={number}")
        else:
            lines.append(f'{key}="{_escape(value)}"')
    return "\n".join(sorted(lines))


def print_dot_env(env_map: Mapping[str, str]) -> None:
    """Print the map in .env format."""
    print(marshal_dot_env(env_map))


def write_dot_env(
    root_dir: str | os.PathLike, file_path: str, env_map: Mapping[str, str]
) -> None:
    """Write the map in .env format to ``root_dir/file_path``."""
    path = os.path.join(root_dir, file_path)
    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o700)
    with os.fdopen(fd, "w", encoding="utf-8") as fh:
        fh.write(marshal_dot_env(env_map) + "\n")


def clone_template(url: str, directory: str | os.PathLike) -> tuple[str, str]:
    """Shallow-clone ``url`` into ``directory``; return git's stdout and stderr."""
    args = ["git", "clone", "--depth=1", url, os.fspath(directory)]
    proc = subprocess.run(args, capture_output=True, text=True)
    if proc.returncode != 0:
        raise subprocess.CalledProcessError(proc.returncode, args, proc.stdout, proc.stderr)
    return proc.stdout, proc.stderr


def cleanup_template(directory: str | os.PathLike) -> None:
    """Remove the files only needed while instantiating a template."""
    for name in TEMPLATE_IGNORE_FILES:
        path = os.path.join(directory, name)
        if os.path.isdir(path) and not os.path.islink(path):
            shutil.rmtree(path)
        elif os.path.lexists(path):
            os.remove(path)


def command_exists(cmd: str) -> bool:
    """True if ``cmd`` is a program on PATH or a known alias."""
    return shutil.which(cmd) is not None or command_is_alias(cmd)


def command_is_alias(cmd: str) -> bool:
    """True if ``cmd`` is a known alias."""
    if sys.platform == "win32":
        return False
    try:
        proc = subprocess.run(["alias", cmd], capture_output=True, text=True)
    except OSError:
        return False
    if proc.returncode != 0:
        return False
    return proc.stdout.strip().startswith(cmd + "=")


def autodetect_web_package_managers() -> list[WebPackageManager]:
    """Return the installed web package managers, pnpm first."""
    found = [
        pm
        for pm in (WebPackageManager.PNPM, WebPackageManager.NPM, WebPackageManager.YARN)
        if command_exists(pm.value)
    ]
    if not found:
        raise LookupError("must have one of pnpm, npm, or yarn installed")
    return found