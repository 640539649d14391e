"""
A1-notation helpers for addressing sheet ranges.

A range is "SHEET!A2:K" (open-ended rows), "SHEET!A5:K5" (one row) or
"SHEET!K5" (one cell). Columns and rows are 1-based, as in the sheet UI.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

_CELL_RE = re.compile(r"^([A-Z]+)(\d*)$")


def column_letter(n: int) -> str:
    if n < 1:
        raise ValueError(f"column index must be >= 1, got {n}")
    letters = ""
    while n:
        n, rem = divmod(n - 1, 26)
        letters = chr(ord("A") + rem) + letters
    return letters


def column_index(letters: str) -> int:
    letters = letters.strip().upper()
    if not letters or not letters.isalpha():
        raise ValueError(f"invalid column letters: {letters!r}")
    n = 0
    for ch in letters:
        n = n * 26 + (ord(ch) - ord("A") + 1)
    return n


@dataclass(frozen=True)
class A1Range:
    sheet: str
    start_col: int
    start_row: int
    end_col: int
    end_row: Optional[int]  # None = through the last populated row

    @property
    def width(self) -> int:
        return self.end_col - self.start_col + 1


def _parse_cell(ref: str) -> tuple[int, Optional[int]]:
    m = _CELL_RE.match(ref.strip().upper())
    if not m:
        raise ValueError(f"invalid cell reference: {ref!r}")
    col = column_index(m.group(1))
    row = int(m.group(2)) if m.group(2) else None
    return col, row


def parse_range(spec: str) -> A1Range:
    if "!" not in spec:
        raise ValueError(f"range must include a sheet name: {spec!r}")
    sheet, _, cells = spec.rpartition("!")
    sheet = sheet.strip("'")
    if not sheet:
        raise ValueError(f"range must include a sheet name: {spec!r}")

    start_ref, sep, end_ref = cells.partition(":")
    start_col, start_row = _parse_cell(start_ref)
    if not sep:
        if start_row is None:
            raise ValueError(f"single-cell range needs a row: {spec!r}")
        return A1Range(sheet, start_col, start_row, start_col, start_row)

    end_col, end_row = _parse_cell(end_ref)
    if end_col < start_col:
        raise ValueError(f"range columns are reversed: {spec!r}")
    return A1Range(sheet, start_col, start_row or 1, end_col, end_row)


@dataclass(frozen=True)
class Table:
    """
    A sheet tab used as a fixed-width table: header row(s) on top, one
    record per row below, column position as the only schema.
    """

    sheet: str
    width: int
    header_rows: int = 1

    @property
    def first_row(self) -> int:
        return self.header_rows + 1

    @property
    def last_col(self) -> str:
        return column_letter(self.width)

    def data_range(self) -> str:
        return f"{self.sheet}!A{self.first_row}:{self.last_col}"

    def key_range(self) -> str:
        return f"{self.sheet}!A{self.first_row}:A"

    def sheet_row(self, index: int) -> int:
        """Sheet row number for a 0-based position in data_range() output."""
        return index + self.first_row

    def row_range(self, index: int, first_col: int = 1, last_col: Optional[int] = None) -> str:
        row = self.sheet_row(index)
        start = column_letter(first_col)
        end = column_letter(last_col or self.width)
        return f"{self.sheet}!{start}{row}:{end}{row}"
