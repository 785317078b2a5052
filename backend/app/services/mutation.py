"""
Positional row mutation.

Entities are addressed by scanning a table for their id and acting on the
array indices found (index 0 is the header, index ``i`` is sheet row
``i + 1``). Nothing locks the table between the scan and the write, so a
concurrent writer can shift rows under a stale index.
"""
from dataclasses import dataclass
from typing import Any, List, Sequence

from app.core.errors import NotFoundError
from app.core.logging import get_logger
from app.services.store.base import Row, TabularStore
from app.services.store.ranges import sheet_row

logger = get_logger(__name__)

AVAILABLE_IDS_LIMIT = 10


def _cell(row: Sequence[Any], index: int) -> str:
    if not row or index >= len(row) or row[index] is None:
        return ""
    return str(row[index])


def locate_rows(
    rows: Sequence[Sequence[Any]],
    target_id: str,
    id_column: int = 0,
    first_only: bool = False,
) -> List[int]:
    """
    Find the array indices of rows whose id cell equals ``target_id``.

    The header row and rows with an empty id cell are skipped.
    """
    indices = []
    for index, row in enumerate(rows):
        if index == 0:
            continue
        value = _cell(row, id_column)
        if not value:
            continue
        if value == target_id:
            indices.append(index)
            if first_only:
                break
    return indices


def known_ids(rows: Sequence[Sequence[Any]], id_column: int = 0, limit: int = AVAILABLE_IDS_LIMIT) -> List[str]:
    """Distinct ids present in a table, in row order, at most ``limit``."""
    seen: List[str] = []
    for row in rows[1:]:
        value = _cell(row, id_column)
        if value and value not in seen:
            seen.append(value)
            if len(seen) >= limit:
                break
    return seen


@dataclass
class LocatedRows:
    """Result of an id scan: the rows read and the matching indices."""

    table: str
    rows: List[Row]
    indices: List[int]

    @property
    def first(self) -> int:
        return self.indices[0]

    def matching_rows(self) -> List[Row]:
        return [self.rows[index] for index in self.indices]


class RowMutationEngine:
    """
    Locate, rewrite, delete and replace rows in a tabular store.
    """

    def __init__(self, store: TabularStore):
        self.store = store

    async def locate(
        self,
        table: str,
        entity: str,
        target_id: str,
        id_column: int = 0,
        first_only: bool = False,
    ) -> LocatedRows:
        """
        Scan ``table`` for ``target_id``.

        Args:
            table: Sheet name
            entity: Entity label used in the not-found message ("Client")
            target_id: Id to look for
            id_column: Column holding the id
            first_only: Stop at the first match

        Returns:
            LocatedRows with at least one index

        Raises:
            NotFoundError: If no row matches
        """
        rows = await self.store.read_all(table)
        indices = locate_rows(rows, target_id, id_column, first_only)
        if not indices:
            raise NotFoundError(entity, target_id, known_ids(rows, id_column))
        return LocatedRows(table=table, rows=rows, indices=indices)

    async def rewrite_row(self, table: str, index: int, row: Row) -> None:
        """Overwrite the single row at array index ``index``."""
        row_number = sheet_row(index)
        await self.store.update_range(table, row_number, row_number, [row])

    async def delete(self, table: str, indices: Sequence[int]) -> None:
        """Delete rows at the given indices in one batch."""
        await self.store.delete_rows(table, indices)

    async def replace_group(self, table: str, indices: Sequence[int], rows: Sequence[Row]) -> None:
        """Replace a row group with ``rows``, anchored at the lowest original index."""
        await self.store.replace_rows(table, indices, rows)
        logger.debug(
            "Row group replaced",
            table=table,
            removed=len(indices),
            inserted=len(rows),
            anchor=min(indices),
        )

    async def delete_matching(self, table: str, column: int, value: str) -> int:
        """
        Delete every row whose ``column`` cell equals ``value``.

        Returns:
            Number of rows deleted (0 is not an error)
        """
        rows = await self.store.read_all(table)
        indices = locate_rows(rows, value, column)
        if not indices:
            return 0
        await self.store.delete_rows(table, indices)
        return len(indices)
