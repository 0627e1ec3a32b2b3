from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from openpyxl import load_workbook


TAG_START_HEADER = "Stage of Menopause"
TAG_END_HEADER = "Risk or Disease Associations"

FILE_COLUMN = "File"
DOI_COLUMN = "DOI"
PMID_COLUMN = "PMID"


@dataclass
class IngestionRow:
    file: Optional[str]
    doi: str
    pmid: str
    tags: List[Dict[str, Any]] = field(default_factory=list)
    extra: Dict[str, Any] = field(default_factory=dict)


def _is_empty(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value.strip() == "")


def _cell_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        # Numeric ids typed into Excel come back as floats
        return str(int(value))
    return str(value).strip()


def _json_value(value: Any) -> Any:
    if isinstance(value, (str, int, float, bool)):
        return value
    return str(value)


def tag_range(headers: Sequence[Any]) -> Optional[range]:
    """Column indexes folded into `tags`, or None when the range is absent."""
    try:
        start = list(headers).index(TAG_START_HEADER)
        end = list(headers).index(TAG_END_HEADER)
    except ValueError:
        return None
    if end < start:
        return None
    return range(start, end + 1)


def build_row(headers: Sequence[Any], values: Sequence[Any], tags_span: Optional[range]) -> IngestionRow:
    """
    Turn one sheet row into an IngestionRow.

    - Non-empty cells inside `tags_span` become `{header: value}` entries in
      `tags`, in column order; those columns are dropped from `extra`.
    - `File`, `DOI` and `PMID` are lifted out; every other column stays in
      `extra` unchanged.
    """
    record: Dict[str, Any] = {}
    tags: List[Dict[str, Any]] = []
    for idx, header in enumerate(headers):
        if header is None:
            continue
        value = values[idx] if idx < len(values) else None
        if tags_span is not None and idx in tags_span:
            if not _is_empty(value):
                tags.append({str(header): _json_value(value)})
            continue
        record[str(header)] = value

    file_value = record.pop(FILE_COLUMN, None)
    return IngestionRow(
        file=_cell_text(file_value) or None,
        doi=_cell_text(record.pop(DOI_COLUMN, None)),
        pmid=_cell_text(record.pop(PMID_COLUMN, None)),
        tags=tags,
        extra=record,
    )


def read_rows(path: os.PathLike[str] | str, *, sheet_index: int = 0) -> List[IngestionRow]:
    """Read every non-blank data row of the sheet at `sheet_index`; row 1 holds headers."""
    wb = load_workbook(path, read_only=True, data_only=True)
    try:
        if sheet_index < 0 or sheet_index >= len(wb.sheetnames):
            raise ValueError(
                f"Sheet index {sheet_index} not found. Available sheets: {', '.join(wb.sheetnames)}"
            )
        ws = wb.worksheets[sheet_index]
        rows = ws.iter_rows(values_only=True)
        headers = next(rows, None)
        if not headers:
            return []
        span = tag_range(headers)
        out: List[IngestionRow] = []
        for values in rows:
            if all(_is_empty(v) for v in values):
                continue
            out.append(build_row(headers, values, span))
        return out
    finally:
        wb.close()


__all__ = ["IngestionRow", "build_row", "read_rows", "tag_range"]
