"""The per-project livekit.toml file."""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass, field
from typing import Any

import tomli_w

from lktool.console import accented

LIVEKIT_TOML_FILE = "livekit.toml"


class InvalidConfigError(ValueError):
    """Raised when a configuration file cannot be read as one."""


@dataclass
class LiveKitTOMLProjectConfig:
    subdomain: str = ""


@dataclass
class LiveKitTOMLAgentConfig:
    id: str = ""
    regions: list[str] = field(default_factory=list)


@dataclass
class LiveKitTOML:
    """The project section (required) and an optional agent section."""

    project: LiveKitTOMLProjectConfig | None = None
    agent: LiveKitTOMLAgentConfig | None = None

    @classmethod
    def for_subdomain(cls, subdomain: str) -> LiveKitTOML:
        """Create a config for the project with the given subdomain."""
        return cls(project=LiveKitTOMLProjectConfig(subdomain=subdomain))

    def with_default_agent(self) -> LiveKitTOML:
        """Attach an empty agent section and return self."""
        self.agent = LiveKitTOMLAgentConfig()
        return self

    def has_agent(self) -> bool:
        return self.agent is not None

    def _to_dict(self) -> dict[str, Any]:
        doc: dict[str, Any] = {}
        if self.project is not None:
            doc["project"] = {"subdomain": self.project.subdomain}
        if self.agent is not None:
            agent: dict[str, Any] = {"id": self.agent.id}
            if self.agent.regions:
                agent["regions"] = list(self.agent.regions)
            doc["agent"] = agent
        return doc

    def save(self, directory: str | os.PathLike, file_name: str = LIVEKIT_TOML_FILE) -> None:
        """Write the config as TOML to ``directory/file_name``."""
        path = os.path.join(directory, file_name)
        with open(path, "wb") as fh:
            tomli_w.dump(self._to_dict(), fh)
        print(f"Saving config file [{accented(file_name)}]")


def _string(table: dict[str, Any], key: str) -> str:
    value = table.get(key, "")
    if not isinstance(value, str):
        raise InvalidConfigError(f"invalid configuration file: {key} must be a string")
    return value


def _table(doc: dict[str, Any], key: str) -> dict[str, Any] | None:
    value = doc.get(key)
    if value is not None and not isinstance(value, dict):
        raise InvalidConfigError(f"invalid configuration file: {key} must be a table")
    return value


def load_toml_file(
    directory: str | os.PathLike, file_name: str = LIVEKIT_TOML_FILE
) -> tuple[LiveKitTOML | None, bool]:
    """Load a config file; return it and whether the file exists.

    A missing file gives ``(None, False)``. Files in the older layout, with a
    top-level ``project_subdomain``, are converted to the current one.
    """
    path = os.path.join(directory, file_name)
    try:
        os.stat(path)
    except FileNotFoundError:
        return None, False

    with open(path, "rb") as fh:
        try:
            doc = tomllib.load(fh)
        except tomllib.TOMLDecodeError as exc:
            raise InvalidConfigError(f"invalid configuration file: {exc}") from exc

    config = LiveKitTOML()
    project = _table(doc, "project")
    agent = _table(doc, "agent")
    if agent is not None:
        regions = agent.get("regions", [])
        if not isinstance(regions, list) or not all(isinstance(r, str) for r in regions):
            raise InvalidConfigError("invalid configuration file: regions must be a list of strings")
        config.agent = LiveKitTOMLAgentConfig(id=_string(agent, "id"), regions=regions)

    if project is not None:
        config.project = LiveKitTOMLProjectConfig(subdomain=_string(project, "subdomain"))
    else:
        config.project = LiveKitTOMLProjectConfig(subdomain=_string(doc, "project_subdomain"))
        config.agent = LiveKitTOMLAgentConfig()
    return config, True