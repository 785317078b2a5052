"""
Tests for the Google Sheets store.

The gspread client and spreadsheet are mocked - no real API calls.
"""

import pytest
from unittest.mock import Mock
from gspread.exceptions import APIError, WorksheetNotFound

from app.core.errors import CredentialsError, StoreError, TableNotFoundError
from app.services.mapping import CLIENT_HEADERS
from app.services.store.google_sheets import GoogleSheetsStore


def api_error(message, code=400):
    response = Mock()
    response.json.return_value = {"error": {"code": code, "message": message, "status": "FAILED"}}
    response.text = message
    return APIError(response)


def worksheet(title, sheet_id=0):
    ws = Mock()
    ws.title = title
    ws.id = sheet_id
    return ws


class TestGoogleSheetsStore:
    """Test suite for GoogleSheetsStore."""

    @pytest.fixture
    def spreadsheet(self):
        """Mocked gspread spreadsheet with Clients and Workouts tabs."""
        spreadsheet = Mock()
        spreadsheet.worksheets.return_value = [worksheet("Clients", 11), worksheet("Workouts", 22)]
        spreadsheet.worksheet.side_effect = lambda name: {
            "Clients": worksheet("Clients", 11),
            "Workouts": worksheet("Workouts", 22),
        }[name]
        spreadsheet.values_get.return_value = {}
        return spreadsheet

    @pytest.fixture
    def client(self, spreadsheet):
        client = Mock()
        client.open_by_key.return_value = spreadsheet
        return client

    @pytest.fixture
    def store(self, client, run):
        store = GoogleSheetsStore(spreadsheet_id="sheet-123", client=client)
        run(store.open())
        return store

    def test_open_uses_spreadsheet_id(self, store, client):
        client.open_by_key.assert_called_once_with("sheet-123")

    def test_open_requires_spreadsheet_id(self, client, run):
        with pytest.raises(CredentialsError):
            run(GoogleSheetsStore(spreadsheet_id="", client=client).open())

    def test_calls_before_open_fail(self, client, run):
        store = GoogleSheetsStore(spreadsheet_id="sheet-123", client=client)

        with pytest.raises(StoreError):
            run(store.read_all("Clients"))

    def test_close_drops_spreadsheet_handle(self, store, run):
        run(store.close())

        with pytest.raises(StoreError):
            run(store.list_sheet_names())

    def test_list_sheet_names(self, store, run):
        assert run(store.list_sheet_names()) == ["Clients", "Workouts"]

    def test_ensure_sheet_adds_missing_tab(self, store, spreadsheet, run):
        run(store.ensure_sheet("Archive"))

        spreadsheet.add_worksheet.assert_called_once_with(title="Archive", rows=1000, cols=26)

    def test_ensure_sheet_skips_existing_tab(self, store, spreadsheet, run):
        run(store.ensure_sheet("Clients"))

        spreadsheet.add_worksheet.assert_not_called()

    def test_ensure_headers_writes_missing_header(self, store, spreadsheet, run):
        assert run(store.ensure_headers("Clients", CLIENT_HEADERS)) is True

        spreadsheet.values_get.assert_called_once_with("Clients!A1:Z1")
        spreadsheet.values_update.assert_called_once_with(
            "Clients!A1:F1",
            params={"valueInputOption": "USER_ENTERED"},
            body={"values": [CLIENT_HEADERS]},
        )

    def test_ensure_headers_leaves_matching_header(self, store, spreadsheet, run):
        spreadsheet.values_get.return_value = {"values": [CLIENT_HEADERS]}

        assert run(store.ensure_headers("Clients", CLIENT_HEADERS)) is False
        spreadsheet.values_update.assert_not_called()

    def test_ensure_headers_blanks_extra_header_cells(self, store, spreadsheet, run):
        spreadsheet.values_get.return_value = {"values": [CLIENT_HEADERS + ["old", "older"]]}

        assert run(store.ensure_headers("Clients", CLIENT_HEADERS)) is True

        spreadsheet.values_update.assert_called_once_with(
            "Clients!A1:H1",
            params={"valueInputOption": "USER_ENTERED"},
            body={"values": [CLIENT_HEADERS + ["", ""]]},
        )

    def test_read_all_returns_values(self, store, spreadsheet, run):
        spreadsheet.values_get.return_value = {"values": [CLIENT_HEADERS, ["c1", "Ann"]]}

        assert run(store.read_all("Clients")) == [CLIENT_HEADERS, ["c1", "Ann"]]
        spreadsheet.values_get.assert_called_once_with("Clients!A:Z")

    def test_read_all_of_empty_sheet(self, store, run):
        assert run(store.read_all("Clients")) == []

    def test_append_rows(self, store, spreadsheet, run):
        run(store.append_rows("Clients", [["c1", "Ann"]]))

        spreadsheet.values_append.assert_called_once_with(
            "Clients!A:Z",
            params={"valueInputOption": "USER_ENTERED", "insertDataOption": "INSERT_ROWS"},
            body={"values": [["c1", "Ann"]]},
        )

    def test_append_nothing_is_a_no_op(self, store, spreadsheet, run):
        run(store.append_rows("Clients", []))

        spreadsheet.values_append.assert_not_called()

    def test_update_range_uses_row_width(self, store, spreadsheet, run):
        run(store.update_range("Clients", 4, 4, [["c3", "Cy", "", "", "", "t"]]))

        args, _ = spreadsheet.values_update.call_args
        assert args == ("Clients!A4:F4",)

    def test_delete_rows_in_one_batch_highest_first(self, store, spreadsheet, run):
        run(store.delete_rows("Workouts", [2, 5, 3]))

        spreadsheet.batch_update.assert_called_once()
        body = spreadsheet.batch_update.call_args[0][0]
        ranges = [request["deleteDimension"]["range"] for request in body["requests"]]
        assert [r["startIndex"] for r in ranges] == [5, 3, 2]
        assert all(r["endIndex"] == r["startIndex"] + 1 for r in ranges)
        assert all(r["sheetId"] == 22 and r["dimension"] == "ROWS" for r in ranges)

    def test_replace_rows_batches_structure_then_writes_values(self, store, spreadsheet, run):
        rows = [["w1", "c1", "2024-01-15", "Squat", 1, 5, 100, 500, "", "t"]] * 3

        run(store.replace_rows("Workouts", [2, 3], rows))

        body = spreadsheet.batch_update.call_args[0][0]
        requests = body["requests"]
        assert [next(iter(r)) for r in requests] == [
            "deleteDimension",
            "deleteDimension",
            "insertDimension",
        ]
        assert requests[2]["insertDimension"]["range"]["startIndex"] == 2
        assert requests[2]["insertDimension"]["range"]["endIndex"] == 5
        args, _ = spreadsheet.values_update.call_args
        assert args == ("Workouts!A3:J5",)

    def test_replace_rows_reports_failed_values_write(self, store, spreadsheet, run):
        spreadsheet.values_update.side_effect = api_error("Internal error", code=500)

        with pytest.raises(StoreError):
            run(store.replace_rows("Workouts", [2], [["w1", "c1"]]))
        spreadsheet.batch_update.assert_called_once()

    def test_unparseable_range_means_missing_table(self, store, spreadsheet, run):
        spreadsheet.values_get.side_effect = api_error("Unable to parse range: Archive!A:Z")

        with pytest.raises(TableNotFoundError) as exc_info:
            run(store.read_all("Archive"))

        assert exc_info.value.available == ["Clients", "Workouts"]

    def test_worksheet_not_found_means_missing_table(self, store, spreadsheet, run):
        spreadsheet.worksheet.side_effect = WorksheetNotFound("Archive")

        with pytest.raises(TableNotFoundError):
            run(store.delete_rows("Archive", [1]))

    def test_other_api_errors_become_store_errors(self, store, spreadsheet, run):
        spreadsheet.values_append.side_effect = api_error("Quota exceeded", code=429)

        with pytest.raises(StoreError) as exc_info:
            run(store.append_rows("Clients", [["c1", "Ann"]]))

        assert exc_info.value.code == "store_error"
        assert isinstance(exc_info.value.__cause__, APIError)
