import pytest

from lktool.agentfs.secrets import KNOWN_ENV_FILES, detect_env_file, parse_env_file


def test_parse_env_file(tmp_path):
    path = tmp_path / "vars.env"
    path.write_text(
        "# a comment\n"
        "PLAIN=value\n"
        "  SPACED  =  spaced  \n"
        'QUOTED="quoted"\n'
        "SINGLE='single'\n"
        "INLINE=before#after\n"
        "URL=a=b\n"
        "no equals sign here\n"
    )
    env = parse_env_file(path)
    assert env == {
        "PLAIN": "value",
        "SPACED": "spaced",
        "QUOTED": "quoted",
        "SINGLE": "single",
        "INLINE": "before",
        "URL": "a=b",
    }


def test_parse_env_file_crlf(tmp_path):
    path = tmp_path / "crlf.env"
    path.write_bytes(b"KEY=value\r\n")
    assert parse_env_file(path) == {"KEY": "value"}


def test_parse_env_file_missing(tmp_path):
    with pytest.raises(FileNotFoundError):
        parse_env_file(tmp_path / "absent.env")


def test_detect_explicit_file(tmp_path):
    path = tmp_path / "custom.env"
    path.write_text("A=1\n")
    assert detect_env_file(str(path)) == (str(path), {"A": "1"})


def test_detect_none_found(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    assert detect_env_file(None) == (None, None)


def test_detect_offers_known_files_in_order(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    (tmp_path / ".env.local").write_text("L=local\n")
    (tmp_path / ".env").write_text("E=env\n")
    offered = []

    def choose(options):
        offered.extend(options)
        return options[-1]

    assert detect_env_file("", choose) == (".env.local", {"L": "local"})
    assert offered == [".env", ".env.local"]


def test_detect_choose_none(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    (tmp_path / ".env").write_text("E=env\n")
    assert detect_env_file(None, lambda options: "") == (None, None)


def test_detect_default_takes_first(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    (tmp_path / ".env").write_text("E=env\n")
    (tmp_path / ".env.production").write_text("P=prod\n")
    name, env = detect_env_file(None)
    assert name == KNOWN_ENV_FILES[0]
    assert env == {"P": "prod"}