"""
Tabular uploads (CSV or Excel) for bulk imports.

First row = headers. Headers are checked against the required set before any
row is looked at, and a file missing a required column is rejected wholesale.
"""
import csv
import io
from datetime import date, datetime
from typing import Dict, Iterable, List, Sequence, Tuple

from fastapi import UploadFile
from openpyxl import load_workbook

from app.core.exceptions import ValidationFailed

MAX_IMPORT_ROWS = 1000

Row = Dict[str, str]


def _norm(s) -> str:
    return (str(s).strip().lower() if s is not None else "").replace(" ", "_")


def _cell_str(value) -> str:
    if value is None:
        return ""
    if isinstance(value, datetime):
        # openpyxl gives datetime for date cells
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def _rows_from_csv(content: bytes) -> Tuple[List[str], List[List[str]]]:
    try:
        text = content.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise ValidationFailed("CSV file must be UTF-8 encoded") from e
    reader = csv.reader(io.StringIO(text))
    header = next(reader, None)
    if not header:
        raise ValidationFailed("File has no header row")
    return [_norm(h) for h in header], [r for r in reader]


def _rows_from_excel(content: bytes) -> Tuple[List[str], List[List[str]]]:
    try:
        wb = load_workbook(filename=io.BytesIO(content), read_only=True, data_only=True)
    except Exception as e:
        raise ValidationFailed(f"Invalid Excel file: {e}") from e
    try:
        ws = wb.active
        if ws is None:
            raise ValidationFailed("Excel file has no active sheet")
        rows_iter = ws.iter_rows(values_only=True)
        header = next(rows_iter, None)
        if not header:
            raise ValidationFailed("File has no header row")
        return [_norm(h) for h in header], [[_cell_str(c) for c in row] for row in rows_iter]
    finally:
        wb.close()


def check_headers(headers: Sequence[str], required: Iterable[str]) -> None:
    missing = [h for h in required if h not in headers]
    if missing:
        raise ValidationFailed(f"File is missing required column(s): {', '.join(missing)}")


def parse_table(filename: str, content: bytes, required: Sequence[str]) -> List[Tuple[int, Row]]:
    """
    Parse an upload into (row_number, {header: value}) pairs.
    Blank lines are skipped; row numbers count the header as row 1.
    """
    name = (filename or "").lower()
    if not content:
        raise ValidationFailed("File is empty")
    if name.endswith(".csv"):
        headers, raw_rows = _rows_from_csv(content)
    elif name.endswith((".xlsx", ".xlsm")):
        headers, raw_rows = _rows_from_excel(content)
    else:
        raise ValidationFailed("File must be a CSV (.csv) or Excel (.xlsx) file")

    check_headers(headers, required)

    rows: List[Tuple[int, Row]] = []
    for row_num, raw in enumerate(raw_rows, start=2):
        values = [_cell_str(c) for c in raw]
        if not any(values):
            continue
        rows.append((row_num, {h: (values[i] if i < len(values) else "") for i, h in enumerate(headers) if h}))
    if len(rows) > MAX_IMPORT_ROWS:
        raise ValidationFailed(f"Maximum {MAX_IMPORT_ROWS} data rows allowed")
    if not rows:
        raise ValidationFailed("File has no data rows")
    return rows


async def read_upload(file: UploadFile, required: Sequence[str]) -> List[Tuple[int, Row]]:
    content = await file.read()
    return parse_table(file.filename or "", content, required)


def csv_template(headers: Sequence[str], example: Sequence[str]) -> str:
    """CSV text with a header row and one example row."""
    out = io.StringIO()
    writer = csv.writer(out, lineterminator="\n")
    writer.writerow(headers)
    writer.writerow(example)
    return out.getvalue()


def format_row_errors(errors: List[Tuple[int, str]], limit: int = 20) -> str:
    shown = "; ".join(f"Row {n}: {msg}" for n, msg in errors[:limit])
    more = f" (and {len(errors) - limit} more)" if len(errors) > limit else ""
    return f"Import rejected, no rows were saved. {shown}{more}"
