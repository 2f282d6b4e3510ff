from __future__ import annotations
import csv
import logging
import zipfile
from io import BytesIO, StringIO
from pathlib import Path
from typing import Any, List, Optional, Union

import pandas as pd
from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException

from .utils import cell_text

logger = logging.getLogger(__name__)

SheetRef = Union[int, str, None]

EXCEL_SUFFIXES = (".xlsx", ".xlsm")


class GradebookLoadError(Exception):
    """The source table cannot be opened, or the requested sheet does not exist."""


def _trim_row(values: List[Any]) -> List[str]:
    # Excel pads every row to the sheet width; trailing blanks dropped so a short row stays short
    row = [cell_text(v) for v in values]
    while row and not row[-1].strip():
        row.pop()
    return row
# =========================

# Excel: sheet -> list of text rows
# =========================
def _open_workbook(src: Union[str, Path, BytesIO], label: str):
    try:
        return load_workbook(src, read_only=True, data_only=True)
    except FileNotFoundError as e:
        raise GradebookLoadError(f"File not found: {label}") from e
    except (InvalidFileException, zipfile.BadZipFile, KeyError, OSError) as e:
        raise GradebookLoadError(f"Cannot read workbook {label}: {e}") from e


def _pick_sheet(wb, sheet: SheetRef, label: str):
    names = wb.sheetnames
    if sheet is None:
        sheet = 0
    if isinstance(sheet, int):
        if sheet < 0 or sheet >= len(names):
            raise GradebookLoadError(f"{label}: no sheet at position {sheet} (workbook has {len(names)})")
        return wb[names[sheet]]
    if sheet not in names:
        raise GradebookLoadError(f"{label}: sheet {sheet!r} not found, available: {', '.join(names)}")
    return wb[sheet]


def _excel_rows(src: Union[str, Path, BytesIO], sheet: SheetRef, label: str) -> List[List[str]]:
    wb = _open_workbook(src, label)
    try:
        ws = _pick_sheet(wb, sheet, label)
        rows = [_trim_row(list(r)) for r in ws.iter_rows(values_only=True)]
    finally:
        wb.close()
    logger.info("Loaded %d rows from %s / %s", len(rows), label, ws.title)
    return rows
# =========================

# CSV: delimiter sniffing, everything kept as text
# =========================
def _guess_delimiter(sample_text: str) -> str:
    try:
        dialect = csv.Sniffer().sniff(sample_text, delimiters=";,\t|")
        if dialect.delimiter:
            return dialect.delimiter
    except csv.Error:
        pass

    # fallback by average count per line
    candidates = [",", ";", "\t", "|"]
    lines = [ln for ln in sample_text.splitlines() if ln.strip()][:20]
    if not lines:
        return ","
    scores = {d: sum(ln.count(d) for ln in lines) / len(lines) for d in candidates}
    best = max(scores.items(), key=lambda x: x[1])[0]
    return best if scores.get(best, 0) > 0 else ","


def _row_widths(text: str, delim: str) -> List[int]:
    # cells actually written on each line, blank lines included (0)
    return [len(r) for r in csv.reader(StringIO(text), delimiter=delim)]


def _csv_rows(data: bytes, label: str) -> List[List[str]]:
    last_err: Optional[Exception] = None
    for enc in ("utf-8-sig", "utf-8", "cp1252"):
        try:
            text = data.decode(enc)
        except UnicodeDecodeError as e:
            last_err = e
            continue
        delim = _guess_delimiter(text[:65536])
        try:
            widths = _row_widths(text, delim)
            if not any(widths):
                raise pd.errors.EmptyDataError("No columns to parse from file")
            # ragged rows: width of the widest line, not of the first one
            df = pd.read_csv(
                StringIO(text),
                header=None,
                names=range(max(widths)),
                sep=delim,
                dtype=str,
                keep_default_na=False,
                engine="python",
                skip_blank_lines=False,
            )
        except (csv.Error, pd.errors.ParserError, pd.errors.EmptyDataError) as e:
            last_err = e
            continue
        # spelled-out blank cells stay, only the padding pandas added goes
        rows = [[cell_text(v) for v in r[:n]] for r, n in zip(df.values.tolist(), widths) if n]
        logger.info("Loaded %d rows from %s (delimiter %r)", len(rows), label, delim)
        return rows
    raise GradebookLoadError(f"Cannot read CSV {label}: {last_err}")
# =========================

# Public entry points
# =========================
def load_rows(path: Union[str, Path], sheet: SheetRef = None) -> List[List[str]]:
    """
    Rows of one sheet as lists of cell text. The header row is returned too
    (index 0); the parse pass skips it. CSV files have a single sheet and
    ignore *sheet* unless it names a position other than 0.
    """
    p = Path(path)
    if not p.exists():
        raise GradebookLoadError(f"File not found: {p}")
    if not p.is_file():
        raise GradebookLoadError(f"Not a file: {p}")

    suffix = p.suffix.lower()
    if suffix in EXCEL_SUFFIXES:
        return _excel_rows(p, sheet, p.name)
    if suffix == ".csv":
        if isinstance(sheet, int) and sheet != 0:
            raise GradebookLoadError(f"{p.name}: CSV has only one sheet")
        try:
            data = p.read_bytes()
        except OSError as e:
            raise GradebookLoadError(f"Cannot read {p}: {e}") from e
        return _csv_rows(data, p.name)
    raise GradebookLoadError(f"Unsupported file type {suffix or '(none)'}: {p.name}")


def load_rows_from_bytes(data: bytes, filename: str, sheet: SheetRef = None) -> List[List[str]]:
    # uploads (Streamlit) arrive as bytes
    if filename.lower().endswith(".csv"):
        return _csv_rows(data, filename)
    if filename.lower().endswith(EXCEL_SUFFIXES):
        return _excel_rows(BytesIO(data), sheet, filename)
    raise GradebookLoadError(f"Unsupported file type: {filename}")


def sheet_names(data: bytes, filename: str) -> List[str]:
    if filename.lower().endswith(".csv"):
        return ["CSV"]
    wb = _open_workbook(BytesIO(data), filename)
    try:
        return list(wb.sheetnames)
    finally:
        wb.close()
