"""
Tests for report export (CSV, printable HTML, Excel).

Covers:
  - generate_csv quotes every field and doubles embedded quotes
  - Simple ASCII rows survive a generate → parse round trip
  - No rows → empty CSV
  - HTML document escapes values and has one header row + one row per data row
  - Excel output is a valid workbook with the header on row 4
  - export_filename uses the ISO date
  - /api/v1/reports/<key>?format=xlsx|html downloads
"""

import io
from datetime import date

import pytest
from openpyxl import load_workbook

from fibertrack.services.export_service import (
    export_filename,
    generate_csv,
    generate_print_html,
    generate_report_xlsx,
    parse_csv_rows,
    render,
)

ROWS = [
    {"Date": "2024-03-01", "Completed": "2", "Total": "4"},
    {"Date": "2024-03-02", "Completed": "0", "Total": "1"},
]


@pytest.mark.unit
def test_csv_quotes_every_field():
    text = generate_csv([{"Name": 'Say "hi"', "Count": 3}])
    assert text.split("\n") == ['"Name","Count"', '"Say ""hi""","3"']


@pytest.mark.unit
def test_csv_round_trip_for_simple_values():
    assert parse_csv_rows(generate_csv(ROWS)) == ROWS


@pytest.mark.unit
def test_csv_of_no_rows_is_empty():
    assert generate_csv([]) == ""
    assert parse_csv_rows("") == []


@pytest.mark.unit
def test_print_html_escapes_and_has_table():
    doc = generate_print_html("Daily <Report>", [{"Location": "<b>1 Main</b>"}])
    assert "Daily &lt;Report&gt;" in doc
    assert "&lt;b&gt;1 Main&lt;/b&gt;" in doc
    assert doc.count("<th>") == 1
    assert doc.count("<tr>") == 2
    assert "@media print" in doc


@pytest.mark.unit
def test_print_html_without_rows():
    assert "No data for the selected filters." in generate_print_html("Empty", [])


@pytest.mark.unit
def test_xlsx_contains_header_and_rows():
    wb = load_workbook(io.BytesIO(generate_report_xlsx("Daily Migration Report", ROWS)))
    ws = wb.active
    assert ws["A1"].value == "Daily Migration Report"
    assert [c.value for c in ws[4]] == ["Date", "Completed", "Total"]
    assert ws["A5"].value == "2024-03-01"
    assert ws.max_row == 6


@pytest.mark.unit
def test_export_filename_uses_iso_date():
    assert export_filename("reconciliation", "csv", today=date(2024, 5, 1)) == "reconciliation-2024-05-01.csv"


@pytest.mark.unit
def test_render_dispatches_by_format():
    content, mimetype, ext = render("csv", "T", ROWS)
    assert ext == "csv" and mimetype == "text/csv"
    assert content.startswith('"Date"')


def test_reconciliation_xlsx_download(client, location):
    client.post("/api/v1/assets", json={"type": "fiber", "status": "active", "location_id": location["id"]})
    res = client.get("/api/v1/reports/reconciliation?format=xlsx")
    assert res.status_code == 200
    assert "spreadsheetml" in res.mimetype
    assert res.headers["Content-Disposition"].endswith(".xlsx")
    wb = load_workbook(io.BytesIO(res.data))
    assert wb.active["A4"].value == "Asset ID"


def test_work_order_html_download(client, location):
    client.post("/api/v1/work-orders", json={"location_id": location["id"], "status": "Assigned"})
    res = client.get("/api/v1/reports/work-orders?format=html")
    assert res.status_code == 200
    assert res.mimetype == "text/html"
    assert "Work Order Report" in res.get_data(as_text=True)
