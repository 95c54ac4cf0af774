"""
Row normalization: workbook bytes -> tabs of cell grids -> flat row dicts.

Rules (per tab):
- first row is the header row
- every following row becomes {header: value}
- empty cells (None or "") are omitted, not stored as null
- rows with no non-empty cell are dropped
- blank headers become __EMPTY, __EMPTY_1, ...; repeated headers get _1, _2 suffixes
"""

from __future__ import annotations

import csv
import datetime
import io
import logging
import zipfile
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Sequence

import openpyxl

from .exceptions import EmptyInputError

logger = logging.getLogger(__name__)

XLSX_MAGIC = b'PK\x03\x04'


@dataclass
class Sheet:
    name: str
    rows: List[List[Any]] = field(default_factory=list)


def read_workbook(data: bytes) -> List[Sheet]:
    """
    Parse workbook bytes into tabs.

    XLSX payloads yield one Sheet per worksheet in declared order; anything else
    is treated as CSV text and yields a single tab named Sheet1.
    """
    if data.startswith(XLSX_MAGIC):
        return _read_xlsx(data)
    return [_read_csv(data)]


def _read_xlsx(data: bytes) -> List[Sheet]:
    try:
        workbook = openpyxl.load_workbook(io.BytesIO(data), read_only=True, data_only=True)
    except (zipfile.BadZipFile, KeyError, OSError) as e:
        raise EmptyInputError(f'Could not read workbook: {e}') from e
    try:
        return [
            Sheet(name=ws.title, rows=[list(row) for row in ws.iter_rows(values_only=True)])
            for ws in workbook.worksheets
        ]
    finally:
        workbook.close()


def _read_csv(data: bytes) -> Sheet:
    text = data.decode('utf-8-sig', errors='replace')
    reader = csv.reader(io.StringIO(text))
    return Sheet(name='Sheet1', rows=[row for row in reader])


def _is_empty(value):
    return value is None or value == ''


def _cell_value(value):
    # Keep payloads JSON-serializable.
    if isinstance(value, (datetime.datetime, datetime.date, datetime.time)):
        return value.isoformat()
    return value


def _header_names(raw_headers: Sequence[Any]) -> List[str]:
    names = []
    used = set()
    counters: Dict[str, int] = {}
    for cell in raw_headers:
        base = '__EMPTY' if _is_empty(cell) else str(_cell_value(cell))
        name = base
        # A suffixed name may collide with a literal header; keep counting.
        while name in used:
            counters[base] = counters.get(base, 0) + 1
            name = f'{base}_{counters[base]}'
        used.add(name)
        names.append(name)
    return names


def normalize_sheet(sheet: Sheet) -> List[Dict[str, Any]]:
    """Turn one tab's grid into row dicts keyed by that tab's own headers."""
    if not sheet.rows:
        return []

    width = max(len(row) for row in sheet.rows)
    raw_headers = list(sheet.rows[0]) + [None] * (width - len(sheet.rows[0]))
    headers = _header_names(raw_headers)

    records = []
    for row in sheet.rows[1:]:
        payload = {
            header: _cell_value(value)
            for header, value in zip(headers, row)
            if not _is_empty(value)
        }
        if payload:
            records.append(payload)
    return records


def normalize_workbook(sheets: Iterable[Sheet]) -> List[Dict[str, Any]]:
    """
    Concatenate the rows of every tab, tab 1 first.
    Raises EmptyInputError when no tab yields a row.
    """
    all_rows: List[Dict[str, Any]] = []
    for sheet in sheets:
        rows = normalize_sheet(sheet)
        logger.debug('Tab %r: %d row(s)', sheet.name, len(rows))
        all_rows.extend(rows)

    if not all_rows:
        raise EmptyInputError()
    return all_rows
