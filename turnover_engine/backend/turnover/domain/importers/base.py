# backend/turnover/domain/importers/base.py
from __future__ import annotations

import csv
from io import StringIO
from typing import Optional, Union

from ...errors import ValidationError

# Rows are keyed by case-folded header so column lookups ignore export casing.
Row = dict[str, str]


def decode_csv(data: Union[bytes, str]) -> str:
    if isinstance(data, bytes):
        return data.decode("utf-8-sig", errors="replace")
    return data.removeprefix("\ufeff")


def _fold(header: Optional[str]) -> str:
    return (header or "").strip().casefold()


def parse_csv_bytes(data: Union[bytes, str]) -> tuple[list[str], list[Row]]:
    """
    Returns (headers, rows).

    headers keep their original spelling (stripped) for error messages; each
    row maps the folded header to its stripped cell. Short rows pad with "".
    Malformed input, including a cell past the csv module field size limit,
    raises ValidationError.
    """
    try:
        return _read_table(decode_csv(data))
    except csv.Error as e:
        raise ValidationError(f"CSV could not be read: {e}") from e


def _read_table(text: str) -> tuple[list[str], list[Row]]:
    reader = csv.reader(StringIO(text))
    raw_headers = next(reader, [])
    headers = [h.strip() for h in raw_headers]
    folded = [_fold(h) for h in raw_headers]

    rows: list[Row] = []
    for cells in reader:
        if not any(c.strip() for c in cells):
            continue
        padded = list(cells[: len(folded)]) + [""] * (len(folded) - len(cells))
        row: Row = {}
        for key, cell in zip(folded, padded):
            # duplicate headers: first non-empty cell wins
            if key and not row.get(key):
                row[key] = cell.strip()
        rows.append(row)
    return headers, rows


def has_column(headers: list[str], *keys: str) -> bool:
    present = {_fold(h) for h in headers}
    return any(_fold(k) in present for k in keys)


def required(row: Row, *keys: str) -> str:
    """First non-empty cell among the candidate columns, else ""."""
    for k in keys:
        v = row.get(_fold(k))
        if v:
            return v
    return ""


def optional_str(row: Row, *keys: str) -> Optional[str]:
    return required(row, *keys) or None
