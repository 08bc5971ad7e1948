"""The CLI configuration file holding saved projects and their credentials."""

from __future__ import annotations

import os
import sys
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

import yaml

from lktool.console import accented
from lktool.strings import extract_subdomain


@dataclass
class ProjectConfig:
    """A saved project: its name, server URL and API credentials."""

    name: str = ""
    url: str = ""
    api_key: str = ""
    api_secret: str = ""

    @classmethod
    def _from_mapping(cls, data: Any) -> ProjectConfig:
        if not isinstance(data, dict):
            raise ValueError("project entry in config file must be a mapping")
        return cls(
            name=_text(data.get("name")),
            url=_text(data.get("url")),
            api_key=_text(data.get("api_key")),
            api_secret=_text(data.get("api_secret")),
        )


def _text(value: Any) -> str:
    return "" if value is None else str(value)


@dataclass
class CLIConfig:
    """The contents of the CLI config file, bound to the path it lives at."""

    default_project: str = ""
    projects: list[ProjectConfig] = field(default_factory=list)
    device_name: str = ""
    path: str | None = field(default=None, repr=False, compare=False)
    _has_persisted: bool = field(default=False, init=False, repr=False, compare=False)

    def project_exists(self, name: str) -> bool:
        """Return True if a project with ``name`` exists, ignoring case."""
        wanted = name.casefold()
        return any(p.name.casefold() == wanted for p in self.projects)

    def remove_project(self, name: str) -> None:
        """Remove the project called ``name`` and save the config."""
        self.projects = [p for p in self.projects if p.name != name]
        if self.default_project == name:
            self.default_project = ""
        self.persist_if_needed()
        print("Removed project", name)

    def persist_if_needed(self) -> None:
        """Write the config to disk unless it is empty and was never saved."""
        if not self.projects and not self._has_persisted:
            return
        path = self.path or config_location()
        os.makedirs(os.path.dirname(path) or ".", mode=0o700, exist_ok=True)
        document = {
            "default_project": self.default_project,
            "projects": [asdict(p) for p in self.projects],
            "device_name": self.device_name,
        }
        text = yaml.safe_dump(document, sort_keys=False, allow_unicode=True)
        fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            fh.write(text)
        print("Saved CLI config to", path)


def config_location() -> str:
    """Return the default config file path, ~/.livekit/cli-config.yaml."""
    return str(Path.home() / ".livekit" / "cli-config.yaml")


def load_or_create(config_path: str | os.PathLike | None = None) -> CLIConfig:
    """Load the config file, or return an empty config if it does not exist."""
    path = os.fspath(config_path) if config_path is not None else config_location()
    conf = CLIConfig(path=path)
    try:
        st = os.stat(path)
    except FileNotFoundError:
        return conf
    if st.st_mode & 0o077:
        # the file holds private keys; only its owner should be able to read it
        print(f"WARNING: config file {path} should have permissions 600", file=sys.stderr)

    with open(path, encoding="utf-8") as fh:
        data = yaml.safe_load(fh) or {}
    if not isinstance(data, dict):
        raise ValueError(f"config file {path} must hold a mapping")

    conf.default_project = _text(data.get("default_project"))
    conf.device_name = _text(data.get("device_name"))
    conf.projects = [ProjectConfig._from_mapping(p) for p in data.get("projects") or []]
    conf._has_persisted = True
    return conf


def load_default_project(config_path: str | os.PathLike | None = None) -> ProjectConfig:
    """Return the default project; raise LookupError if none is set."""
    conf = load_or_create(config_path)
    if conf.default_project:
        for project in conf.projects:
            if project.name == conf.default_project:
                return project
    raise LookupError("no default project set")


def load_project_by_subdomain(
    subdomain: str, config_path: str | os.PathLike | None = None
) -> ProjectConfig:
    """Return the project whose URL has the given subdomain."""
    conf = load_or_create(config_path)
    if not subdomain:
        raise ValueError("invalid URL")
    for project in conf.projects:
        if extract_subdomain(project.url) == subdomain:
            print(f"Using project [{accented(project.name)}]")
            return project
    raise LookupError("project not found")


def load_project(name: str, config_path: str | os.PathLike | None = None) -> ProjectConfig:
    """Return the project called ``name``."""
    conf = load_or_create(config_path)
    for project in conf.projects:
        if project.name == name:
            return project
    raise LookupError("project not found")