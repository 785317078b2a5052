"""
In-memory tabular store.

Keeps tables as lists of string rows and reproduces what the Sheets values
API returns: cells come back as strings, trailing empty cells and trailing
empty rows are trimmed. Used for local development and tests.
"""
import copy
from typing import Any, Dict, Iterable, List, Sequence

from app.core.errors import RangeMismatchError, TableNotFoundError
from app.core.logging import get_logger
from app.services.store.base import Row, TabularStore, headers_match
from app.services.store.ranges import MAX_COLUMNS, deletion_order

logger = get_logger(__name__)


def to_cell(value: Any) -> str:
    """Render a value the way the spreadsheet displays it."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _trim_row(row: Sequence[str]) -> List[str]:
    trimmed = list(row)
    while trimmed and trimmed[-1] == "":
        trimmed.pop()
    return trimmed


class InMemoryStore(TabularStore):
    """Tabular store backed by Python lists."""

    def __init__(self, tables: Dict[str, List[Row]] = None):
        self.tables: Dict[str, List[List[str]]] = {
            name: [[to_cell(c) for c in row] for row in rows]
            for name, rows in (tables or {}).items()
        }
        # Operation log, e.g. ("update_range", "Clients")
        self.calls: List[tuple] = []

    def _table(self, name: str) -> List[List[str]]:
        if name not in self.tables:
            raise TableNotFoundError(name, list(self.tables))
        return self.tables[name]

    async def list_sheet_names(self) -> List[str]:
        return list(self.tables)

    async def ensure_sheet(self, name: str) -> None:
        if name not in self.tables:
            self.tables[name] = []
            self.calls.append(("add_sheet", name))
            logger.info("Created sheet", sheet=name)

    async def ensure_headers(self, name: str, headers: Sequence[str]) -> bool:
        table = self._table(name)
        first_row = _trim_row(table[0]) if table else []
        if headers_match(first_row, headers):
            return False
        width = min(max(len(first_row), len(headers)), MAX_COLUMNS)
        await self.update_range(name, 1, 1, [list(headers) + [""] * (width - len(headers))])
        logger.info("Wrote headers", sheet=name, replaced=bool(first_row))
        return True

    async def read_all(self, name: str) -> List[Row]:
        rows = [_trim_row(row) for row in self._table(name)]
        while rows and not rows[-1]:
            rows.pop()
        return copy.deepcopy(rows)

    async def append_rows(self, name: str, rows: Sequence[Row]) -> None:
        table = self._table(name)
        # Sheets appends after the last non-empty row
        while table and not _trim_row(table[-1]):
            table.pop()
        table.extend([to_cell(c) for c in row] for row in rows)
        self.calls.append(("append_rows", name))

    async def update_range(
        self,
        name: str,
        row_start: int,
        row_end: int,
        rows: Sequence[Row],
    ) -> None:
        table = self._table(name)
        if not rows:
            raise RangeMismatchError(f"No rows given for range {name}!{row_start}:{row_end}")
        expected = row_end - row_start + 1
        if len(rows) != expected:
            raise RangeMismatchError(
                f"Range {name}!{row_start}:{row_end} spans {expected} rows, got {len(rows)}"
            )
        if any(len(row) > MAX_COLUMNS for row in rows):
            raise RangeMismatchError(f"Rows wider than {MAX_COLUMNS} columns are not supported")
        while len(table) < row_end:
            table.append([])
        for offset, row in enumerate(rows):
            index = row_start - 1 + offset
            current = table[index]
            cells = [to_cell(c) for c in row]
            table[index] = cells + current[len(cells):]
        self.calls.append(("update_range", name))

    async def delete_rows(self, name: str, indices: Iterable[int]) -> None:
        table = self._table(name)
        for index in deletion_order(indices):
            if index < len(table):
                del table[index]
        self.calls.append(("delete_rows", name))

    async def insert_rows_at(self, name: str, position: int, count: int) -> None:
        table = self._table(name)
        while len(table) < position:
            table.append([])
        for _ in range(count):
            table.insert(position, [])
        self.calls.append(("insert_rows_at", name))
