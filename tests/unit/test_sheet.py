from __future__ import annotations

import pytest
from openpyxl import Workbook

from ingest.sheet import TAG_END_HEADER, TAG_START_HEADER, build_row, read_rows, tag_range


HEADERS = ["File", "DOI", "PMID", TAG_START_HEADER, "Symptoms", TAG_END_HEADER, "Notes"]


def _write_workbook(path, rows, *, headers=HEADERS, extra_sheet=False):
    wb = Workbook()
    ws = wb.active
    ws.title = "papers"
    ws.append(headers)
    for r in rows:
        ws.append(r)
    if extra_sheet:
        wb.create_sheet("other").append(["File", "DOI"])
    wb.save(path)
    return path


def test_tag_range_inclusive_and_missing():
    assert tag_range(HEADERS) == range(3, 6)
    assert tag_range(["File", "DOI"]) is None
    # end before start is ignored
    assert tag_range([TAG_END_HEADER, TAG_START_HEADER]) is None


def test_build_row_folds_tags_and_skips_empty_cells():
    row = build_row(HEADERS, ["a.pdf", "10.1/x", 12345, "Peri", "  ", "CVD", "keep"], tag_range(HEADERS))

    assert row.file == "a.pdf"
    assert row.doi == "10.1/x"
    assert row.pmid == "12345"
    assert row.tags == [{TAG_START_HEADER: "Peri"}, {TAG_END_HEADER: "CVD"}]
    assert row.extra == {"Notes": "keep"}


def test_build_row_without_tag_range_keeps_columns():
    headers = ["File", "DOI", "Stage"]
    row = build_row(headers, ["a.pdf", "10.1/x", "Peri"], tag_range(headers))

    assert row.tags == []
    assert row.extra == {"Stage": "Peri"}
    assert row.pmid == ""


def test_read_rows_skips_blank_rows_and_normalizes_numbers(tmp_path):
    path = _write_workbook(
        tmp_path / "ingestion.xlsx",
        [
            ["a.pdf", "10.1/a", 111.0, "Peri", None, None, None],
            [None, None, None, None, None, None, None],
            ["b.pdf", "10.1/b", None, None, "Hot flashes", None, "n"],
        ],
    )

    rows = read_rows(path)

    assert [r.file for r in rows] == ["a.pdf", "b.pdf"]
    assert rows[0].pmid == "111"
    assert rows[0].tags == [{TAG_START_HEADER: "Peri"}]
    assert rows[1].tags == [{"Symptoms": "Hot flashes"}]
    assert rows[1].extra == {"Notes": "n"}


def test_read_rows_selects_sheet_by_index(tmp_path):
    path = _write_workbook(tmp_path / "w.xlsx", [["a.pdf", "10.1/a", None, None, None, None, None]], extra_sheet=True)

    assert read_rows(path, sheet_index=1) == []
    with pytest.raises(ValueError, match="Available sheets: papers, other"):
        read_rows(path, sheet_index=5)
