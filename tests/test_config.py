import os

import pytest

from lktool.config import (
    CLIConfig,
    ProjectConfig,
    config_location,
    load_default_project,
    load_or_create,
    load_project,
    load_project_by_subdomain,
)


def _project(name, url="https://demo.livekit.cloud"):
    return ProjectConfig(name=name, url=url, api_key="placeholder", api_secret="secret")


@pytest.fixture
def saved(tmp_path):
    path = tmp_path / "cfg" / "cli-config.yaml"
    conf = CLIConfig(
        default_project="alpha",
        projects=[_project("alpha", "https://alpha.livekit.cloud"), _project("beta", "wss://beta.livekit.cloud")],
        path=str(path),
    )
    conf.persist_if_needed()
    return path


def test_config_location_under_home(tmp_path, monkeypatch):
    monkeypatch.setenv("HOME", str(tmp_path))
    assert config_location() == str(tmp_path / ".livekit" / "cli-config.yaml")


def test_missing_file_gives_empty_config(tmp_path):
    conf = load_or_create(tmp_path / "absent.yaml")
    assert conf.projects == []
    assert conf.default_project == ""


def test_empty_config_is_not_persisted(tmp_path):
    path = tmp_path / "absent.yaml"
    conf = load_or_create(path)
    conf.persist_if_needed()
    assert not path.exists()


def test_round_trip(saved, capsys):
    conf = load_or_create(saved)
    assert conf.default_project == "alpha"
    assert [p.name for p in conf.projects] == ["alpha", "beta"]
    assert conf.projects[0] == _project("alpha", "https://alpha.livekit.cloud")


def test_persist_prints_and_uses_yaml_keys(tmp_path, capsys):
    path = tmp_path / "c.yaml"
    CLIConfig(projects=[_project("x")], path=str(path)).persist_if_needed()
    assert "Saved CLI config to" in capsys.readouterr().out
    text = path.read_text()
    assert "api_key:" in text
    assert "default_project:" in text


def test_persisted_file_permissions(saved):
    assert os.stat(saved).st_mode & 0o777 == 0o600


def test_warns_on_open_permissions(saved, capsys):
    os.chmod(saved, 0o644)
    capsys.readouterr()
    load_or_create(saved)
    assert "WARNING" in capsys.readouterr().err


def test_project_exists_ignores_case():
    conf = CLIConfig(projects=[_project("Alpha")])
    assert conf.project_exists("alpha")
    assert not conf.project_exists("gamma")


def test_remove_project_clears_default_and_saves(saved):
    conf = load_or_create(saved)
    conf.remove_project("alpha")
    reloaded = load_or_create(saved)
    assert [p.name for p in reloaded.projects] == ["beta"]
    assert reloaded.default_project == ""


def test_removing_last_project_still_persists(saved):
    conf = load_or_create(saved)
    conf.remove_project("alpha")
    conf.remove_project("beta")
    assert load_or_create(saved).projects == []


def test_load_default_project(saved):
    assert load_default_project(saved).name == "alpha"


def test_load_default_project_missing(tmp_path):
    with pytest.raises(LookupError, match="no default project set"):
        load_default_project(tmp_path / "absent.yaml")


def test_load_project(saved):
    assert load_project("beta", saved).url == "wss://beta.livekit.cloud"
    with pytest.raises(LookupError, match="project not found"):
        load_project("gamma", saved)


def test_load_project_by_subdomain(saved, capsys):
    project = load_project_by_subdomain("beta", saved)
    assert project.name == "beta"
    assert "Using project" in capsys.readouterr().out


def test_load_project_by_subdomain_errors(saved):
    with pytest.raises(ValueError, match="invalid URL"):
        load_project_by_subdomain("", saved)
    with pytest.raises(LookupError, match="project not found"):
        load_project_by_subdomain("nothere", saved)