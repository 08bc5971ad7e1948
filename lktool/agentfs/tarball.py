"""Packing an agent project into a gzipped tarball and uploading it."""

from __future__ import annotations

import enum
import functools
import io
import os
import re
import stat
import tarfile
from collections.abc import Iterable, Iterator, Sequence

import requests
from tqdm import tqdm

DEFAULT_EXCLUDE_PATTERNS = (
    "Dockerfile",
    ".dockerignore",
    ".gitignore",
    ".git",
    "node_modules",
    "*.env",
)

IGNORE_FILES = (".gitignore", ".dockerignore")


class _Verdict(enum.Enum):
    INCLUDE = "include"
    EXCLUDE = "exclude"
    SKIP_DIR = "skip_dir"


def _reason(exc: OSError) -> str:
    return exc.strerror or str(exc)


def collect_exclude_patterns(
    directory: str | os.PathLike, exclude_files: Iterable[str] | None = None
) -> list[str]:
    """Return the default patterns, the given ones and those of the ignore files, stripped."""
    patterns = [*DEFAULT_EXCLUDE_PATTERNS, *(exclude_files or ())]
    for name in IGNORE_FILES:
        path = os.path.join(directory, name)
        if not os.path.exists(path):
            continue
        try:
            with open(path, encoding="utf-8", errors="replace") as fh:
                content = fh.read()
        except OSError as exc:
            raise OSError(f"failed to read {path}: {_reason(exc)}") from exc
        patterns.extend(content.split("\n"))
    return [p.strip() for p in patterns]


def _class_char(pattern: str, i: int) -> tuple[str, int]:
    if i >= len(pattern) or pattern[i] in "-]":
        raise ValueError("syntax error in pattern")
    if pattern[i] == "\\":
        i += 1
        if i >= len(pattern):
            raise ValueError("syntax error in pattern")
    return pattern[i], i + 1


def _translate_class(pattern: str, i: int) -> tuple[str, int]:
    negate = False
    if i < len(pattern) and pattern[i] == "^":
        negate = True
        i += 1
    ranges: list[tuple[str, str]] = []
    while True:
        if i >= len(pattern):
            raise ValueError("syntax error in pattern")
        if pattern[i] == "]" and ranges:
            i += 1
            break
        lo, i = _class_char(pattern, i)
        hi = lo
        if i < len(pattern) and pattern[i] == "-":
            hi, i = _class_char(pattern, i + 1)
        ranges.append((lo, hi))
    parts = [
        re.escape(lo) if lo == hi else f"{re.escape(lo)}-{re.escape(hi)}"
        for lo, hi in ranges
        if lo <= hi
    ]
    body = "".join(parts)
    if negate:
        return f"[^{body}/]", i
    return (f"[{body}]" if body else "(?!)"), i


@functools.lru_cache(maxsize=256)
def _compile(pattern: str) -> re.Pattern[str]:
    out: list[str] = []
    i = 0
    while i < len(pattern):
        c = pattern[i]
        if c == "*":
            out.append("[^/]*")
            i += 1
        elif c == "?":
            out.append("[^/]")
            i += 1
        elif c == "\\":
            if i + 1 >= len(pattern):
                raise ValueError("syntax error in pattern")
            out.append(re.escape(pattern[i + 1]))
            i += 2
        elif c == "[":
            cls, i = _translate_class(pattern, i + 1)
            out.append(cls)
        else:
            out.append(re.escape(c))
            i += 1
    return re.compile("".join(out), re.S)


def _match(pattern: str, name: str) -> bool:
    """Shell-style match where wildcards never cross a '/'; raises ValueError if malformed."""
    return _compile(pattern).fullmatch(name) is not None


def _verdict(rel: str, is_dir: bool, patterns: Sequence[str]) -> _Verdict:
    for pattern in patterns:
        if not pattern or "Dockerfile" in pattern:
            continue
        if is_dir and (rel.startswith(pattern + "/") or rel.startswith(pattern)):
            return _Verdict.SKIP_DIR
        try:
            matched = _match(pattern, rel)
        except ValueError:
            return _Verdict.EXCLUDE
        if matched:
            return _Verdict.EXCLUDE
    return _Verdict.INCLUDE


def _included_entries(
    directory: str | os.PathLike, patterns: Sequence[str]
) -> Iterator[tuple[str, str, os.stat_result]]:
    root = os.fspath(directory)

    def visit(path: str, rel: str) -> Iterator[tuple[str, str, os.stat_result]]:
        st = os.lstat(path)
        is_dir = stat.S_ISDIR(st.st_mode)
        verdict = _verdict(rel, is_dir, patterns)
        if verdict is _Verdict.SKIP_DIR:
            return
        if verdict is _Verdict.INCLUDE:
            yield path, rel, st
        if is_dir:
            for name in sorted(os.listdir(path)):
                child = os.path.join(path, name)
                yield from visit(child, os.path.relpath(child, root))

    yield from visit(root, ".")


class _ProgressReader:
    """A readable that reports what is read to a progress bar."""

    def __init__(self, raw: io.BufferedIOBase, bar: tqdm, length: int) -> None:
        self._raw = raw
        self._bar = bar
        self._length = length

    def read(self, size: int = -1) -> bytes:
        data = self._raw.read(size)
        self._bar.update(len(data))
        return data

    def __len__(self) -> int:
        return self._length


def _open(path: str):
    try:
        return open(path, "rb")
    except OSError as exc:
        raise OSError(f"failed to open file {path}: {_reason(exc)}") from exc


def _add_entry(
    tar: tarfile.TarFile, path: str, rel: str, st: os.stat_result, bar: tqdm
) -> None:
    mode = st.st_mode
    if stat.S_ISLNK(mode):
        # follow the link and store the target's contents under the link's name
        try:
            real = os.path.realpath(path, strict=True)
        except OSError as exc:
            raise OSError(f"failed to evaluate symlink {path}: {_reason(exc)}") from exc
        with _open(real) as fh:
            try:
                info = tar.gettarinfo(name=real, arcname=rel)
            except OSError as exc:
                raise OSError(
                    f"failed to create tar header for file {path}: {_reason(exc)}"
                ) from exc
            tar.addfile(info, fh)
        return

    if stat.S_ISDIR(mode):
        try:
            info = tar.gettarinfo(name=path, arcname=rel)
        except OSError as exc:
            raise OSError(
                f"failed to create tar header for directory {path}: {_reason(exc)}"
            ) from exc
        tar.addfile(info)
        return

    if not stat.S_ISREG(mode):
        return

    with _open(path) as fh:
        try:
            info = tar.gettarinfo(name=path, arcname=rel)
        except OSError as exc:
            raise OSError(
                f"failed to create tar header for file {path}: {_reason(exc)}"
            ) from exc
        tar.addfile(info, _ProgressReader(fh, bar, info.size))


def build_tarball(
    directory: str | os.PathLike, exclude_files: Iterable[str] | None = None
) -> bytes:
    """Return a gzipped tarball of ``directory`` without the excluded paths."""
    patterns = collect_exclude_patterns(directory, exclude_files)
    try:
        entries = list(_included_entries(directory, patterns))
    except OSError as exc:
        raise OSError(f"failed to calculate total size: {_reason(exc)}") from exc

    total = sum(st.st_size for _, _, st in entries if stat.S_ISREG(st.st_mode))
    buffer = io.BytesIO()
    with tqdm(
        total=total,
        desc="Compressing files",
        unit="B",
        unit_scale=True,
        ncols=80,
        disable=None,
    ) as bar, tarfile.open(fileobj=buffer, mode="w:gz") as tar:
        for path, rel, st in entries:
            try:
                _add_entry(tar, path, rel, st, bar)
            except OSError as exc:
                raise OSError(f"failed to walk directory: {exc}") from exc
    return buffer.getvalue()


def upload_tarball(
    directory: str | os.PathLike,
    presigned_url: str,
    exclude_files: Iterable[str] | None = None,
) -> None:
    """Pack ``directory`` and PUT the tarball to ``presigned_url``."""
    payload = build_tarball(directory, exclude_files)
    with tqdm(
        total=len(payload),
        desc="Uploading",
        unit="B",
        unit_scale=True,
        ncols=80,
        disable=None,
    ) as bar:
        body = _ProgressReader(io.BytesIO(payload), bar, len(payload))
        try:
            resp = requests.put(
                presigned_url,
                data=body,
                headers={"Content-Type": "application/gzip"},
            )
        except requests.RequestException as exc:
            raise ConnectionError(f"failed to upload tarball: {exc}") from exc

    if resp.status_code != 200:
        raise RuntimeError(f"failed to upload tarball: {resp.status_code}: {resp.text}")
    print()