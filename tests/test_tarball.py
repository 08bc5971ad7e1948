import builtins
import io
import os
import tarfile
from unittest import mock

import pytest
import responses

from lktool.agentfs.tarball import (
    DEFAULT_EXCLUDE_PATTERNS,
    build_tarball,
    collect_exclude_patterns,
    upload_tarball,
)

URL = "https://storage.example.com/upload"


def _members(data):
    with tarfile.open(fileobj=io.BytesIO(data), mode="r:gz") as tar:
        return {m.name: m for m in tar.getmembers()}


def _write(path, content):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)


def test_upload_tarball(tmp_path):
    sub = tmp_path / "subdir"
    sub.mkdir()
    for path in (sub / "normal1.txt", sub / "normal2.txt", tmp_path / "root.txt"):
        _write(path, "normal content")
    with open(tmp_path / "large.bin", "wb") as fh:
        fh.truncate(16 * 1024 * 1024)

    with responses.RequestsMock() as rsps:
        rsps.add(responses.PUT, URL, status=200)
        upload_tarball(tmp_path, URL, [])
        assert len(rsps.calls) == 1
        request = rsps.calls[0].request
        assert request.headers["Content-Type"] == "application/gzip"
        assert int(request.headers["Content-Length"]) > 0


def test_large_sparse_file_is_packed_whole(tmp_path):
    with open(tmp_path / "large.bin", "wb") as fh:
        fh.truncate(16 * 1024 * 1024)
    members = _members(build_tarball(tmp_path, []))
    assert members["large.bin"].size == 16 * 1024 * 1024


def test_upload_failure_status_raises(tmp_path):
    _write(tmp_path / "root.txt", "content")
    with responses.RequestsMock() as rsps:
        rsps.add(responses.PUT, URL, status=500, body="nope")
        with pytest.raises(RuntimeError, match="failed to upload tarball: 500: nope"):
            upload_tarball(tmp_path, URL, [])


def test_upload_tarball_file_permissions(tmp_path):
    sub = tmp_path / "subdir"
    sub.mkdir()
    for path in (sub / "normal1.txt", sub / "normal2.txt"):
        _write(path, "normal content")
    restricted = str(sub / "restricted.txt")
    _write(sub / "restricted.txt", "restricted content")

    real_open = builtins.open

    def fake_open(file, *args, **kwargs):
        if isinstance(file, (str, os.PathLike)) and os.fspath(file) == restricted:
            raise PermissionError(13, "Permission denied", file)
        return real_open(file, *args, **kwargs)

    with responses.RequestsMock(assert_all_requests_are_fired=False) as rsps:
        rsps.add(responses.PUT, URL, status=200)
        with mock.patch("builtins.open", fake_open):
            with pytest.raises(OSError, match="(?i)permission denied"):
                upload_tarball(tmp_path, URL, [])
        assert len(rsps.calls) == 0

        os.remove(restricted)
        upload_tarball(tmp_path, URL, [])
        assert len(rsps.calls) == 1


def test_upload_tarball_dotfiles(tmp_path):
    src = tmp_path / "src"
    src.mkdir()
    _write(tmp_path / "regular.txt", "regular file")
    _write(src / "code.go", "package main")
    _write(tmp_path / ".gitignore", "*.env\nnode_modules/")
    _write(tmp_path / ".env", "SECRET=123")
    _write(tmp_path / ".config", "config data")
    _write(src / ".DS_Store", "mac file")
    os.symlink(tmp_path / "regular.txt", tmp_path / "link_to_regular.txt")
    os.symlink(tmp_path / ".config", tmp_path / ".link_to_config")
    _write(tmp_path / "node_modules" / "package.json", "{}")

    members = _members(build_tarball(tmp_path, []))

    for name in ("regular.txt", "src/code.go", ".config", "link_to_regular.txt", ".link_to_config"):
        assert name in members, name

    assert members["link_to_regular.txt"].size == len("regular file")
    assert not members["link_to_regular.txt"].issym()
    assert members[".link_to_config"].size == len("config data")
    assert not members[".link_to_config"].issym()

    for name in (".env", ".gitignore", "node_modules", "node_modules/package.json", ".DS_Store"):
        assert name not in members, name


def test_upload_tarball_deep_directories(tmp_path):
    dirs = ["level1", "level1/level2", "level1/level2/level3", "level1/level2/level3/level4"]
    for d in dirs:
        (tmp_path / d).mkdir(parents=True, exist_ok=True)
        _write(tmp_path / d / "__init__.py", "")
    files = {
        "root.txt": "root file",
        "level1/level1.txt": "level 1 file",
        "level1/level2/level2.txt": "level 2 file",
        "level1/level2/level3/level3.txt": "level 3 file",
        "level1/level2/level3/level4/level4.txt": "level 4 file",
    }
    for rel, content in files.items():
        _write(tmp_path / rel, content)

    with responses.RequestsMock() as rsps:
        rsps.add(responses.PUT, URL, status=200)
        upload_tarball(tmp_path, URL, [])
        assert len(rsps.calls) == 1

    members = _members(build_tarball(tmp_path, []))
    for d in dirs:
        assert d in members and members[d].isdir(), d
    for rel, content in files.items():
        assert rel in members, rel
        assert members[rel].size == len(content)
        assert not members[rel].isdir()
    for d in dirs:
        init = f"{d}/__init__.py"
        assert init in members, init
        assert members[init].size == 0
        assert not members[init].isdir()


def test_collect_exclude_patterns(tmp_path):
    _write(tmp_path / ".gitignore", "  build/ \n*.log\n")
    _write(tmp_path / ".dockerignore", "secret.txt")
    patterns = collect_exclude_patterns(tmp_path, ["extra "])
    assert patterns[: len(DEFAULT_EXCLUDE_PATTERNS)] == list(DEFAULT_EXCLUDE_PATTERNS)
    for expected in ("extra", "build/", "*.log", "secret.txt"):
        assert expected in patterns
    assert all(p == p.strip() for p in patterns)


def test_collect_without_ignore_files(tmp_path):
    assert collect_exclude_patterns(tmp_path) == list(DEFAULT_EXCLUDE_PATTERNS)


def test_wildcard_does_not_cross_directories(tmp_path):
    _write(tmp_path / "app.log", "top")
    _write(tmp_path / "sub" / "app.log", "nested")
    members = _members(build_tarball(tmp_path, ["*.log"]))
    assert "app.log" not in members
    assert "sub/app.log" in members


def test_excluded_directory_is_skipped_entirely(tmp_path):
    _write(tmp_path / "build" / "out.bin", "x")
    _write(tmp_path / "keep.txt", "y")
    members = _members(build_tarball(tmp_path, ["build"]))
    assert "keep.txt" in members
    assert not any(name.startswith("build") for name in members)


def test_dockerfile_is_kept(tmp_path):
    _write(tmp_path / "Dockerfile", "FROM scratch")
    members = _members(build_tarball(tmp_path))
    assert "Dockerfile" in members
    assert "." in members and members["."].isdir()


def test_missing_directory_raises(tmp_path):
    with pytest.raises(OSError, match="failed to calculate total size"):
        build_tarball(tmp_path / "missing")