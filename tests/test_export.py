import csv
import io
from datetime import date

from seva.export import EXPORT_COLUMNS, export_record, render_csv
from seva.models.catalog import SheetSummary
from seva.models.layout import DEVOTION_LAYOUT, SERVICE, SERVICE_LAYOUT
from seva.models.row import decode_row
from seva.models.sheet import parse_sheet
from tests.fakes import service_rows

SUMMARY = SheetSummary(
    document_id="d1",
    document_name="Seva Signups",
    sheet_title="Cleaning 2030-01-05",
    sheet_handle=1,
    date=date(2030, 1, 5),
)
PARSED = parse_sheet(service_rows(), SERVICE)
SIGNEE = decode_row(
    ["Sat, Jan/05/2030 10:00:00.000 AM", "Mops", "each", "2", "A", "555", "a@x.com", "wet"],
    SERVICE_LAYOUT,
    8,
)


def test_export_record_fields():
    record = export_record(SUMMARY, PARSED, SIGNEE)
    assert list(record) == EXPORT_COLUMNS
    assert record["date"] == "01/05/2030"
    assert record["title"] == "Cleaning"
    assert record["description"] == "Help clean"
    assert record["itemCount"] == 2
    assert record["phoneNumber"] == "555"
    assert record["signedUpOn"] == "Sat, Jan/05/2030 10:00:00.000 AM"


def test_count_less_rows_export_blank_count():
    signee = decode_row(["", "Bhajan", "A", "Om", "C", "", "", "a@x.com", "555", "", "t"], DEVOTION_LAYOUT, 5)
    record = export_record(SUMMARY, PARSED, signee)
    assert record["itemCount"] == ""
    assert record["quantity"] == ""


def test_render_csv_header_and_rows():
    body = render_csv([(SUMMARY, PARSED, SIGNEE)])
    rows = list(csv.reader(io.StringIO(body)))
    assert rows[0] == EXPORT_COLUMNS
    assert rows[1][:5] == ["01/05/2030", "Temple", "Cleaning", "Help clean", "Mops"]
    assert len(rows) == 2


def test_render_csv_with_no_records_is_header_only():
    assert render_csv([]).strip() == ",".join(EXPORT_COLUMNS)
