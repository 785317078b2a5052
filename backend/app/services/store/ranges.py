"""
Row and column arithmetic for spreadsheet ranges.

Two index spaces meet here:
- array index: 0-based position in the rows returned by ``read_all``
  (index 0 is the header row)
- sheet row: 1-based row number used in A1 notation (row 1 is the header)

A row at array index ``i`` is sheet row ``i + 1``. Grid requests such as
deleteDimension/insertDimension use the array index directly.
"""
from dataclasses import dataclass
from typing import Iterable, Tuple

from app.core.errors import RangeMismatchError

MAX_COLUMNS = 26


def column_letter(index: int) -> str:
    """Return the column letter for a 0-based column index (0 -> A)."""
    if index < 0 or index >= MAX_COLUMNS:
        raise RangeMismatchError(
            f"Column index {index} is outside A-Z; tables wider than "
            f"{MAX_COLUMNS} columns are not supported"
        )
    return chr(ord("A") + index)


def a1_range(table: str, row_start: int, row_end: int, width: int) -> str:
    """
    Build an A1 range covering ``width`` columns from column A.

    Args:
        table: Sheet name
        row_start: First sheet row (1-indexed, inclusive)
        row_end: Last sheet row (1-indexed, inclusive)
        width: Number of columns

    Returns:
        Range string such as ``Clients!A2:F2``
    """
    if width < 1:
        raise RangeMismatchError(f"Range width must be at least 1, got {width}")
    if row_start < 1 or row_end < row_start:
        raise RangeMismatchError(f"Invalid row range {row_start}:{row_end}")
    last = column_letter(width - 1)
    return f"{table}!A{row_start}:{last}{row_end}"


def full_range(table: str) -> str:
    """Range covering every supported column of a table."""
    return f"{table}!A:{column_letter(MAX_COLUMNS - 1)}"


def header_range(table: str, width: int = MAX_COLUMNS) -> str:
    """Range covering the header row."""
    return a1_range(table, 1, 1, width)


def sheet_row(array_index: int) -> int:
    """Translate an array index into a 1-indexed sheet row."""
    return array_index + 1


def deletion_order(indices: Iterable[int]) -> Tuple[int, ...]:
    """Distinct row indices, highest first, so earlier deletions never shift later ones."""
    return tuple(sorted(set(indices), reverse=True))


@dataclass(frozen=True)
class ReplacementPlan:
    """
    Index plan for replacing a group of rows with a new block.

    The old rows are deleted highest first, then ``row_count`` empty rows are
    inserted at the lowest original index and filled in place.
    """
    delete_indices: Tuple[int, ...]
    insert_at: int
    row_count: int

    @property
    def row_start(self) -> int:
        return sheet_row(self.insert_at)

    @property
    def row_end(self) -> int:
        return sheet_row(self.insert_at + self.row_count - 1)


def plan_replacement(indices: Iterable[int], row_count: int) -> ReplacementPlan:
    """
    Compute the delete/insert/update plan for a row group replacement.

    Args:
        indices: Array indices of the rows being replaced (never the header)
        row_count: Number of replacement rows

    Returns:
        ReplacementPlan anchored at the minimum original index
    """
    ordered = deletion_order(indices)
    if not ordered:
        raise ValueError("Cannot plan a replacement without existing rows")
    if ordered[-1] < 1:
        raise ValueError("The header row cannot be replaced")
    if row_count < 1:
        raise ValueError("Replacement must contain at least one row")
    return ReplacementPlan(
        delete_indices=ordered,
        insert_at=ordered[-1],
        row_count=row_count,
    )
