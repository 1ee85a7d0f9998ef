from __future__ import annotations

import sys
from typing import List, Optional, TextIO


class TablePrinter:
    """Aligned plain-text table.

    Integer cells are right-aligned, everything else is left-aligned::

        +----------+------+
        | FileName | Size |
        +----------+------+
        | a.txt    |    3 |
        +----------+------+
    """

    def __init__(self, *titles: str):
        self.titles = [str(t) for t in titles]
        self.widths = [len(t) for t in self.titles]
        self.rows: List[List[object]] = []

    def add_row(self, *values: object) -> None:
        if len(values) != len(self.titles):
            raise ValueError(
                f"Added row length [{len(values)}] is not equal to title row length [{len(self.titles)}]"
            )
        self.rows.append(list(values))
        for i, v in enumerate(values):
            self.widths[i] = max(self.widths[i], len(str(v)))

    def render(self) -> str:
        sep = "".join("+-" + "-" * w + "-" for w in self.widths) + "+"
        lines = [sep, self._line(self.titles), sep]
        lines.extend(self._line(row) for row in self.rows)
        lines.append(sep)
        return "\n".join(lines)

    def print(self, file: Optional[TextIO] = None) -> None:
        print(self.render(), file=file or sys.stdout)

    def _line(self, cells) -> str:
        out = ""
        for cell, w in zip(cells, self.widths):
            text = str(cell)
            if _is_integer(cell):
                out += "| " + text.rjust(w) + " "
            else:
                out += "| " + text.ljust(w) + " "
        return out + "|"


def _is_integer(cell: object) -> bool:
    if isinstance(cell, bool):
        return False
    if isinstance(cell, int):
        return True
    return str(cell).lstrip("+-").isdigit()
