"""
Tabular store contract.

The persistence core talks to the spreadsheet through this interface only.
Rows are lists of cell values; row positions are 0-based array indices where
index 0 is the header row.
"""
from abc import ABC, abstractmethod
from typing import Any, Iterable, List, Sequence

from app.services.store.ranges import plan_replacement

Row = List[Any]


def headers_match(existing: Sequence[Any], headers: Sequence[str]) -> bool:
    """Positional, case-insensitive header comparison."""
    if len(existing) != len(headers):
        return False
    return all(
        str(cell or "").lower() == header.lower()
        for cell, header in zip(existing, headers)
    )


class TabularStore(ABC):
    """Abstract row store addressed by table name."""

    async def open(self) -> None:
        """Acquire backend resources."""

    async def close(self) -> None:
        """Release backend resources."""

    async def __aenter__(self) -> "TabularStore":
        await self.open()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    @abstractmethod
    async def list_sheet_names(self) -> List[str]:
        """List table names."""
        pass

    @abstractmethod
    async def ensure_sheet(self, name: str) -> None:
        """Create the named table if it does not exist."""
        pass

    @abstractmethod
    async def ensure_headers(self, name: str, headers: Sequence[str]) -> bool:
        """
        Make the first row equal ``headers``.

        Returns:
            True if the header row was written, False if it already matched
        """
        pass

    @abstractmethod
    async def read_all(self, name: str) -> List[Row]:
        """Read every row of a table, header included."""
        pass

    @abstractmethod
    async def append_rows(self, name: str, rows: Sequence[Row]) -> None:
        """Append rows after the last row, preserving order."""
        pass

    @abstractmethod
    async def update_range(
        self,
        name: str,
        row_start: int,
        row_end: int,
        rows: Sequence[Row],
    ) -> None:
        """Overwrite the inclusive 1-indexed sheet rows ``row_start..row_end``."""
        pass

    @abstractmethod
    async def delete_rows(self, name: str, indices: Iterable[int]) -> None:
        """Delete the rows at the given array indices in one batch."""
        pass

    @abstractmethod
    async def insert_rows_at(self, name: str, position: int, count: int) -> None:
        """Insert ``count`` empty rows at array index ``position``."""
        pass

    async def replace_rows(self, name: str, indices: Iterable[int], rows: Sequence[Row]) -> None:
        """
        Replace a group of rows with a block of a possibly different size.

        Not atomic: a failure between steps leaves the table partially
        mutated. Backends that can batch the structural changes override this.
        """
        plan = plan_replacement(indices, len(rows))
        await self.delete_rows(name, plan.delete_indices)
        await self.insert_rows_at(name, plan.insert_at, plan.row_count)
        await self.update_range(name, plan.row_start, plan.row_end, rows)
