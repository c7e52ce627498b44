# app/utils/tabular_reader.py
import csv
import io
import logging
import zipfile
from pathlib import Path
from typing import List, Optional

from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException

from app.core.exceptions import ImportFileError

logger = logging.getLogger(__name__)

XLSX_SUFFIXES = {".xlsx", ".xlsm"}
CSV_SUFFIXES = {".csv", ".txt"}
XLSX_TYPES = {"application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"}
CSV_TYPES = {"text/csv", "application/csv", "text/plain"}
ZIP_MAGIC = b"PK\x03\x04"
OLE_MAGIC = b"\xd0\xcf\x11\xe0"  # legacy .xls


def _strip_trailing_empty(rows: List[list]) -> List[list]:
    """
    Drop empty lines at the end of the file.

    Blank rows in the middle (or rows of empty cells like ",,") are kept so
    the importer counts them as rejected rows.
    """
    end = len(rows)
    while end and all(c is None for c in rows[end - 1]):
        end -= 1
    return rows[:end]


def detect_format(data: bytes, filename: Optional[str] = None, content_type: Optional[str] = None) -> str:
    suffix = Path(filename).suffix.lower() if filename else ""
    if suffix in XLSX_SUFFIXES:
        return "xlsx"
    if suffix in CSV_SUFFIXES:
        return "csv"
    if suffix == ".xls" or data.startswith(OLE_MAGIC):
        raise ImportFileError("Legacy .xls workbooks are not supported, save the file as .xlsx or .csv")
    if content_type in XLSX_TYPES or data.startswith(ZIP_MAGIC):
        return "xlsx"
    if content_type in CSV_TYPES:
        return "csv"
    # unknown: treat as delimited text and let decoding decide
    return "csv"


def decode_text(data: bytes) -> str:
    for encoding in ("utf-8-sig", "cp1252"):
        try:
            return data.decode(encoding)
        except UnicodeDecodeError:
            continue
    raise ImportFileError("Could not decode file as text (expected UTF-8 or Windows-1252)")


def read_csv_rows(data: bytes) -> List[list]:
    text = decode_text(data)
    try:
        rows = list(csv.reader(io.StringIO(text, newline=""), delimiter=",", quotechar='"', doublequote=True))
    except csv.Error as e:
        raise ImportFileError(f"Invalid CSV file: {e}")
    return _strip_trailing_empty(rows)


def read_xlsx_rows(data: bytes) -> List[list]:
    """First sheet only; cells keep their native python types."""
    try:
        wb = load_workbook(io.BytesIO(data), read_only=True, data_only=True)
    except (InvalidFileException, zipfile.BadZipFile, KeyError, OSError, ValueError) as e:
        raise ImportFileError(f"Invalid spreadsheet file: {e}")
    try:
        if not wb.worksheets:
            raise ImportFileError("Spreadsheet has no sheets")
        ws = wb.worksheets[0]
        rows = [list(r) for r in ws.iter_rows(values_only=True)]
    finally:
        wb.close()
    return _strip_trailing_empty(rows)


def read_rows(data: bytes, filename: Optional[str] = None, content_type: Optional[str] = None) -> List[list]:
    """
    Decode an uploaded file into rows of cells.

    Only empty trailing lines are dropped. Raises ImportFileError when the payload
    can't be read as CSV or as an .xlsx workbook.
    """
    if not data:
        raise ImportFileError("Empty file")
    fmt = detect_format(data, filename, content_type)
    logger.debug("Reading %s as %s (%d bytes)", filename or "<upload>", fmt, len(data))
    if fmt == "xlsx":
        return read_xlsx_rows(data)
    return read_csv_rows(data)
