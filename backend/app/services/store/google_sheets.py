"""
Google Sheets tabular store.

Talks to the Sheets API through gspread's spreadsheet-level calls so ranges
use the absolute ``Sheet!A1:F1`` notation. gspread is blocking, so every call
runs in a worker thread.

Sheet structure:
- One tab per table ("Clients", "Workouts")
- Row 1 holds the headers, data starts at row 2
"""
import asyncio
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence

import gspread
from google.auth.exceptions import GoogleAuthError
from gspread.exceptions import APIError, GSpreadException, WorksheetNotFound

from app.core.credentials import build_credentials, require_spreadsheet_id
from app.core.errors import RangeMismatchError, StoreError, TableNotFoundError
from app.core.logging import get_logger, track_store_call
from app.services.store.base import Row, TabularStore, headers_match
from app.services.store.ranges import (
    MAX_COLUMNS,
    a1_range,
    deletion_order,
    full_range,
    header_range,
    plan_replacement,
)

logger = get_logger(__name__)

USER_ENTERED = {"valueInputOption": "USER_ENTERED"}


def _delete_request(sheet_id: int, index: int) -> Dict[str, Any]:
    return {
        "deleteDimension": {
            "range": {
                "sheetId": sheet_id,
                "dimension": "ROWS",
                "startIndex": index,
                "endIndex": index + 1,
            }
        }
    }


def _insert_request(sheet_id: int, position: int, count: int) -> Dict[str, Any]:
    return {
        "insertDimension": {
            "range": {
                "sheetId": sheet_id,
                "dimension": "ROWS",
                "startIndex": position,
                "endIndex": position + count,
            }
        }
    }


class GoogleSheetsStore(TabularStore):
    """
    Tabular store backed by one Google spreadsheet.

    The store is the session: ``open()`` authorizes and opens the
    spreadsheet, ``close()`` drops the handle. Pass ``client`` to reuse an
    already authorized gspread client.
    """

    def __init__(
        self,
        spreadsheet_id: str,
        service_account_key: str = "",
        client: Optional[gspread.Client] = None,
    ):
        self.spreadsheet_id = spreadsheet_id
        self.service_account_key = service_account_key
        self._client = client
        self._owns_client = client is None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None

    @property
    def spreadsheet(self) -> gspread.Spreadsheet:
        if self._spreadsheet is None:
            raise StoreError("Spreadsheet session is not open. Call open() first.")
        return self._spreadsheet

    async def open(self) -> None:
        if self._spreadsheet is not None:
            return
        spreadsheet_id = require_spreadsheet_id(self.spreadsheet_id)
        if self._client is None:
            self._client = gspread.authorize(build_credentials(self.service_account_key))
        self._spreadsheet = await self._call(
            "open_by_key", "", self._client.open_by_key, spreadsheet_id
        )
        logger.info("Spreadsheet opened", spreadsheet_id=spreadsheet_id)

    async def close(self) -> None:
        self._spreadsheet = None
        if self._owns_client:
            self._client = None
        logger.info("Spreadsheet session closed", spreadsheet_id=self.spreadsheet_id)

    async def _call(self, operation: str, sheet: str, func: Callable, *args, **kwargs) -> Any:
        """Run a blocking gspread call and translate its failures."""
        try:
            with track_store_call(logger, operation, sheet=sheet):
                return await asyncio.to_thread(func, *args, **kwargs)
        except WorksheetNotFound as e:
            raise TableNotFoundError(sheet, await self._sheet_names_or_empty()) from e
        except APIError as e:
            if sheet and "Unable to parse range" in str(e):
                raise TableNotFoundError(sheet, await self._sheet_names_or_empty()) from e
            raise StoreError(f"{operation} failed for sheet {sheet or '<spreadsheet>'}: {e}") from e
        except (GSpreadException, GoogleAuthError, OSError) as e:
            raise StoreError(f"{operation} failed for sheet {sheet or '<spreadsheet>'}: {e}") from e

    async def _sheet_names_or_empty(self) -> List[str]:
        try:
            return await self.list_sheet_names()
        except StoreError:
            return []

    async def _sheet_id(self, name: str) -> int:
        worksheet = await self._call("worksheet", name, self.spreadsheet.worksheet, name)
        return worksheet.id

    async def list_sheet_names(self) -> List[str]:
        worksheets = await self._call("worksheets", "", self.spreadsheet.worksheets)
        return [worksheet.title for worksheet in worksheets]

    async def ensure_sheet(self, name: str) -> None:
        if name in await self.list_sheet_names():
            return
        await self._call(
            "add_worksheet",
            name,
            self.spreadsheet.add_worksheet,
            title=name,
            rows=1000,
            cols=MAX_COLUMNS,
        )
        logger.info("Created sheet", sheet=name)

    async def ensure_headers(self, name: str, headers: Sequence[str]) -> bool:
        response = await self._call(
            "values_get", name, self.spreadsheet.values_get, header_range(name)
        )
        values = response.get("values") or [[]]
        first_row = values[0]
        if headers_match(first_row, headers):
            return False

        # Blank out stale cells past the new header so the next check matches
        width = max(len(first_row), len(headers))
        header_row = list(headers) + [""] * (width - len(headers))
        await self._call(
            "values_update",
            name,
            self.spreadsheet.values_update,
            a1_range(name, 1, 1, width),
            params=USER_ENTERED,
            body={"values": [header_row]},
        )
        if first_row:
            logger.info("Updated headers", sheet=name)
        else:
            logger.info("Added headers", sheet=name)
        return True

    async def read_all(self, name: str) -> List[Row]:
        response = await self._call(
            "values_get", name, self.spreadsheet.values_get, full_range(name)
        )
        return response.get("values", [])

    async def append_rows(self, name: str, rows: Sequence[Row]) -> None:
        if not rows:
            return
        await self._call(
            "values_append",
            name,
            self.spreadsheet.values_append,
            full_range(name),
            params={"valueInputOption": "USER_ENTERED", "insertDataOption": "INSERT_ROWS"},
            body={"values": [list(row) for row in rows]},
        )

    async def update_range(
        self,
        name: str,
        row_start: int,
        row_end: int,
        rows: Sequence[Row],
    ) -> None:
        if not rows:
            raise RangeMismatchError(f"No rows given for range {name}!{row_start}:{row_end}")
        expected = row_end - row_start + 1
        if len(rows) != expected:
            raise RangeMismatchError(
                f"Range {name}!{row_start}:{row_end} spans {expected} rows, got {len(rows)}"
            )
        width = max(len(row) for row in rows)
        await self._call(
            "values_update",
            name,
            self.spreadsheet.values_update,
            a1_range(name, row_start, row_end, width),
            params=USER_ENTERED,
            body={"values": [list(row) for row in rows]},
        )

    async def delete_rows(self, name: str, indices: Iterable[int]) -> None:
        ordered = deletion_order(indices)
        if not ordered:
            return
        sheet_id = await self._sheet_id(name)
        await self._call(
            "batch_update",
            name,
            self.spreadsheet.batch_update,
            {"requests": [_delete_request(sheet_id, index) for index in ordered]},
        )

    async def insert_rows_at(self, name: str, position: int, count: int) -> None:
        if count < 1:
            return
        sheet_id = await self._sheet_id(name)
        await self._call(
            "batch_update",
            name,
            self.spreadsheet.batch_update,
            {"requests": [_insert_request(sheet_id, position, count)]},
        )

    async def replace_rows(self, name: str, indices: Iterable[int], rows: Sequence[Row]) -> None:
        """
        Delete the old rows and open the new block in one batchUpdate, then
        write the values. The values write is a separate call; if it fails the
        group is left as empty rows.
        """
        plan = plan_replacement(indices, len(rows))
        sheet_id = await self._sheet_id(name)
        requests = [_delete_request(sheet_id, index) for index in plan.delete_indices]
        requests.append(_insert_request(sheet_id, plan.insert_at, plan.row_count))
        await self._call(
            "batch_update", name, self.spreadsheet.batch_update, {"requests": requests}
        )
        try:
            await self.update_range(name, plan.row_start, plan.row_end, rows)
        except StoreError:
            logger.error(
                "Row group left empty after partial replace",
                sheet=name,
                row_start=plan.row_start,
                row_end=plan.row_end,
            )
            raise
