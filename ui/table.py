"""
Plain-text table rendering for terminal output.

Styles
------
``"0"``  aligned columns only::

     User   Code
     alice  755224

``"1"``  aligned columns with a dashed rule under the header::

     User   Code
     -----  ------
     alice  755224

``"2"``  boxed grid (default)::

    +-------+--------+
    | User  | Code   |
    +-------+--------+
    | alice | 755224 |
    +-------+--------+
"""

from typing import List, Sequence

PLAIN = "0"
RULED = "1"
GRID = "2"
STYLES = (PLAIN, RULED, GRID)
DEFAULT_STYLE = GRID


def _column_widths(rows: Sequence[Sequence[str]], columns: int) -> List[int]:
    widths = [0] * columns
    for row in rows:
        for col, text in enumerate(row):
            widths[col] = max(widths[col], len(text))
    return widths


def _cells(row: Sequence[str], widths: List[int]) -> List[str]:
    """Pad each cell to its column width, with one space on the left."""
    cells = []
    for col, width in enumerate(widths):
        if col < len(row):
            text = row[col]
            cells.append(" " + text + " " * (1 + width - len(text)))
        else:
            cells.append(" " * (width + 2))
    return cells


def tabulify(rows: Sequence[Sequence[str]], style: str = DEFAULT_STYLE) -> str:
    """
    Render ``rows`` as a text table; the first row is the header.

    Rows may be ragged; missing cells render blank. Returns an empty string
    for no rows, rows without cells, or an unknown ``style``.
    """
    if not rows:
        return ""
    columns = max(len(row) for row in rows)
    if columns <= 0:
        return ""
    widths = _column_widths(rows, columns)

    if style == PLAIN:
        return "\n".join("".join(_cells(row, widths)) for row in rows)

    if style == RULED:
        rule = ["-" * width for width in widths]
        ruled_rows = [rows[0], rule, *rows[1:]]
        return "\n".join("".join(_cells(row, widths)) for row in ruled_rows)

    if style == GRID:
        sep = "+" + "".join("-" * (width + 2) + "+" for width in widths)
        output = [sep]
        for row in rows:
            output.append("|" + "".join(cell + "|" for cell in _cells(row, widths)))
            output.append(sep)
        return "\n".join(output)

    return ""
