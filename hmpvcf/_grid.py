from __future__ import annotations

from pathlib import Path
from typing import BinaryIO, Callable

import numpy as np
from numpy.typing import ArrayLike, NDArray

from ._errors import InvalidGridConfigError, TruncatedGridError
from ._types import OFFSET_DTYPE

Codec = Callable[[int], str]
"""Maps one raw byte of the grid to its allele symbol."""

GRID_ENCODING = "latin-1"


def int_to_char(code: int) -> str:
    """Default codec: every byte is a single latin-1 character."""
    return chr(code)


def cell_width(ploidy: int) -> int:
    """Bytes per cell: one per allele copy plus the trailing delimiter."""
    return ploidy + 1


def cell_offset(row: int, col: int, total_columns: int, ploidy: int) -> int:
    """Byte offset of a cell in a normalized grid.

    Parameters
    ----------
    row
        0-based row (marker) index.
    col
        0-based column (sample) index.
    total_columns
        Number of sample columns in every row of the grid.
    ploidy
        Number of allele characters per cell.

    Returns
    -------
        :code:`row * total_columns * (ploidy + 1) + col * (ploidy + 1)`

    Raises
    ------
    InvalidGridConfigError
        If the offset is negative, which means the row range, column count or ploidy is invalid.
    """
    width = cell_width(ploidy)
    offset = row * total_columns * width + col * width
    if offset < 0:
        raise InvalidGridConfigError(
            f"Negative byte offset {offset} for row {row}, column {col} with "
            f"{total_columns} columns and ploidy {ploidy}. "
            "Invalid row/column/ploidy configuration."
        )
    return offset


def cell_offsets(
    rows: ArrayLike, cols: ArrayLike, total_columns: int, ploidy: int
) -> NDArray[OFFSET_DTYPE]:
    """Vectorized :func:`cell_offset`. :code:`rows` and :code:`cols` are broadcast against each other,
    so e.g. :code:`cell_offsets(rows[:, None], cols[None, :], ...)` gives a :code:`(rows cols)` array.
    """
    rows = np.asarray(rows, OFFSET_DTYPE)
    cols = np.asarray(cols, OFFSET_DTYPE)
    width = OFFSET_DTYPE(cell_width(ploidy))
    offsets = rows * OFFSET_DTYPE(total_columns) * width + cols * width
    if (offsets < 0).any():
        raise InvalidGridConfigError(
            f"Negative byte offsets for {total_columns} columns and ploidy {ploidy}. "
            "Invalid row/column/ploidy configuration."
        )
    return offsets


def read_entry(
    grid: BinaryIO, offset: int, ploidy: int, codec: Codec = int_to_char
) -> str:
    """Seek to a cell and decode its :code:`ploidy` content bytes. The delimiter is never read.

    Raises
    ------
    TruncatedGridError
        If the grid ends before the cell does.
    """
    grid.seek(offset)
    raw = grid.read(ploidy)
    if len(raw) != ploidy:
        raise TruncatedGridError(
            f"Expected {ploidy} bytes at offset {offset} but the grid ended after {len(raw)}."
        )
    return "".join(codec(b) for b in raw)


def write_grid(
    path: str | Path, calls: ArrayLike, ploidy: int, delimiter: str = ","
) -> Path:
    """Write calls as a normalized fixed-width grid.

    Parameters
    ----------
    path
        Output path, overwritten if it exists.
    calls
        Shape: :code:`(rows columns)`. Genotype calls as strings, e.g. :code:`"AG"`.
        Calls shorter than :code:`ploidy` are right-padded with spaces.
    ploidy
        Number of characters per cell.
    delimiter
        Single character written after every cell.
    """
    if ploidy < 1:
        raise InvalidGridConfigError(f"Ploidy must be at least 1, got {ploidy}.")
    if len(delimiter) != 1:
        raise ValueError(f"Delimiter must be a single character, got {delimiter!r}.")

    calls = np.asarray(calls, dtype=np.str_)
    if calls.ndim != 2:
        raise ValueError(f"Expected a 2D array of calls, got shape {calls.shape}.")
    if calls.size > 0 and (too_long := np.char.str_len(calls) > ploidy).any():
        row, col = np.argwhere(too_long)[0]
        raise ValueError(
            f"Call {calls[row, col]!r} at row {row}, column {col} is longer than ploidy {ploidy}."
        )

    path = Path(path)
    padded = np.char.ljust(calls, ploidy)
    with open(path, "wb") as f:
        for row in padded:
            f.write("".join(f"{c}{delimiter}" for c in row).encode(GRID_ENCODING))
    return path
