"""Terminal styling, tables and JSON output."""

from __future__ import annotations

import dataclasses
import json
import re
from dataclasses import dataclass, field
from typing import Any

_ANSI = re.compile(r"\x1b\[[0-9;]*m")
_RESET = "\x1b[0m"


def _style(code: str, text: str) -> str:
    return f"\x1b[{code}m{text}{_RESET}"


def _visible_len(text: str) -> int:
    return len(_ANSI.sub("", text))


def accented(text: str) -> str:
    """Render ``text`` in the accent style (bold cyan)."""
    return _style("1;36", text)


def dimmed(text: str) -> str:
    """Render ``text`` in the dimmed style (grey)."""
    return _style("90", text)


@dataclass
class Table:
    """A bordered text table with a bold header row."""

    headers: list[str] = field(default_factory=list)
    rows: list[list[str]] = field(default_factory=list)

    def row(self, *args: str) -> Table:
        """Append a row of cells; returns the table for chaining."""
        self.rows.append([str(cell) for cell in args])
        return self

    def render(self) -> str:
        """Return the table as a multi-line string."""
        ncols = max([len(self.headers), *(len(r) for r in self.rows)])
        if ncols == 0:
            return ""

        def pad(cells: list[str]) -> list[str]:
            return cells + [""] * (ncols - len(cells))

        header = pad(list(self.headers)) if self.headers else None
        body = [pad(r) for r in self.rows]
        all_rows = ([header] if header else []) + body
        widths = [max(_visible_len(cell) for cell in column) for column in zip(*all_rows)]

        def line(left: str, mid: str, right: str) -> str:
            return left + mid.join("─" * (w + 2) for w in widths) + right

        def cells_line(cells: list[str], bold: bool) -> str:
            parts = []
            for cell, width in zip(cells, widths):
                fill = " " * (width - _visible_len(cell))
                text = _style("1", cell) if bold and cell else cell
                parts.append(f" {text}{fill} ")
            return "│" + "│".join(parts) + "│"

        out = [line("┌", "┬", "┐")]
        if header:
            out.append(cells_line(header, bold=True))
            if body:
                out.append(line("├", "┼", "┤"))
        out.extend(cells_line(r, bold=False) for r in body)
        out.append(line("└", "┴", "┘"))
        return "\n".join(out)

    def __str__(self) -> str:
        return self.render()


def create_table(*args: str) -> Table:
    """Create a table with the given column headers."""
    return Table(headers=[str(h) for h in args])


def _json_default(obj: Any) -> Any:
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return dataclasses.asdict(obj)
    if hasattr(obj, "__dict__"):
        return {k: v for k, v in vars(obj).items() if not k.startswith("_")}
    raise TypeError(f"{type(obj).__name__} is not JSON serializable")


def print_json(obj: Any) -> None:
    """Print ``obj`` as JSON indented by two spaces."""
    try:
        text = json.dumps(obj, indent=2, default=_json_default)
    except (TypeError, ValueError):
        text = ""
    print(text)