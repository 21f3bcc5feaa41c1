from __future__ import annotations

from typing import Sequence


def _cell_matches_header(cell: str, header: str) -> bool:
    c = cell.strip().casefold()
    h = header.strip().casefold()
    if not c or not h:
        return False
    return c == h or c in h or h in c


def count_header_matches(cells: Sequence[object], headers: Sequence[str]) -> int:
    matches = 0
    for i, header in enumerate(headers):
        if i >= len(cells):
            break
        cell = cells[i]
        if cell is None:
            continue
        if _cell_matches_header(str(cell), str(header or "")):
            matches += 1
    return matches


def is_header_echo(cells: Sequence[object], headers: Sequence[str]) -> bool:
    """Return True when a data row repeats the header row.

    A row is an echo when more than half of the headers match the cell in the
    same position, either exactly or as a substring in either direction
    (case-insensitive, trimmed). Blank cells never match.
    """

    if not headers:
        return False
    return count_header_matches(cells, headers) > len(headers) // 2
