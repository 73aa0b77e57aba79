# screens/import_wizard/decoder.py
# -------------------------------------------------------------------
# Reads an uploaded spreadsheet (first sheet only) or delimited text
# file into headers + records. Never touches session state.
# -------------------------------------------------------------------
from __future__ import annotations

import io
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, BinaryIO, List, Optional, Union

import pandas as pd

from screens.import_wizard.errors import DecodeError, EmptyFileError
from screens.import_wizard.models import RawRecord

log = logging.getLogger(__name__)

WORKBOOK_EXTENSIONS = {"xlsx", "xlsm", "xls"}
DELIMITED_EXTENSIONS = {"csv": ",", "txt": ",", "tsv": "\t"}

_ZIP_MAGIC = b"PK\x03\x04"
_OLE_MAGIC = b"\xd0\xcf\x11\xe0"

# Only truly blank cells are NA; text such as "NA", "None" or "null" is data
_NA_OPTIONS = {"keep_default_na": False, "na_values": [""]}


@dataclass
class DecodedTable:
    headers: List[str] = field(default_factory=list)
    records: List[RawRecord] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.records)


def _read_bytes(data: Union[bytes, bytearray, BinaryIO, str, Path]) -> bytes:
    if isinstance(data, (bytes, bytearray)):
        return bytes(data)
    if isinstance(data, (str, Path)):
        try:
            return Path(data).read_bytes()
        except OSError as e:
            raise DecodeError(f"Cannot read file '{data}': {e}") from e
    # file-like (Streamlit UploadedFile, open file)
    if hasattr(data, "seek"):
        data.seek(0)
    raw = data.read()
    if isinstance(raw, str):
        raw = raw.encode("utf-8")
    return raw


def _extension(filename: Optional[str]) -> str:
    if not filename:
        return ""
    return Path(filename).suffix.lower().lstrip(".")


def detect_format(payload: bytes, filename: Optional[str] = None) -> str:
    """Return 'workbook', or the delimiter to use for text tables."""
    ext = _extension(filename)
    if ext in WORKBOOK_EXTENSIONS:
        return "workbook"
    if ext in DELIMITED_EXTENSIONS:
        return DELIMITED_EXTENSIONS[ext]
    if ext:
        raise DecodeError(f"Unsupported file type '.{ext}'. Upload .xlsx, .xls or .csv")
    if payload.startswith(_ZIP_MAGIC) or payload.startswith(_OLE_MAGIC):
        return "workbook"
    return ","


def _cell(value: Any) -> Any:
    if value is None:
        return None
    try:
        if pd.isna(value):
            return None
    except (TypeError, ValueError):
        # list-like cells have no single NA answer
        return value
    if isinstance(value, pd.Timestamp):
        return value.isoformat()
    return value


def _read_frame(payload: bytes, fmt: str) -> pd.DataFrame:
    buf = io.BytesIO(payload)
    if fmt == "workbook":
        return pd.read_excel(buf, sheet_name=0, **_NA_OPTIONS)
    try:
        return pd.read_csv(buf, sep=fmt, encoding="utf-8-sig", skip_blank_lines=True, **_NA_OPTIONS)
    except UnicodeDecodeError:
        # exports from older office suites
        buf.seek(0)
        return pd.read_csv(buf, sep=fmt, encoding="latin-1", skip_blank_lines=True, **_NA_OPTIONS)


def decode_table(
    data: Union[bytes, bytearray, BinaryIO, str, Path],
    filename: Optional[str] = None,
) -> DecodedTable:
    """
    Parse the first sheet / table of ``data`` using its first row as headers.

    Raises EmptyFileError when no data rows remain, DecodeError when the
    payload is not a readable table.
    """
    if filename is None:
        filename = getattr(data, "name", None) if not isinstance(data, (bytes, bytearray)) else None
        if isinstance(data, (str, Path)):
            filename = str(data)

    payload = _read_bytes(data)
    if not payload or not payload.strip():
        raise EmptyFileError("File is empty.")

    fmt = detect_format(payload, filename)

    try:
        df = _read_frame(payload, fmt)
    except pd.errors.EmptyDataError as e:
        raise EmptyFileError("File is empty.") from e
    except Exception as e:
        # openpyxl and xlrd raise their own error types for corrupt workbooks
        log.warning("Could not decode %s: %s", filename or "upload", e)
        raise DecodeError(f"Failed to process file: {e}") from e

    df = df.dropna(how="all")
    if df.empty:
        raise EmptyFileError("File is empty.")

    df.columns = [str(c) for c in df.columns]
    headers = list(df.columns)

    records: List[RawRecord] = []
    for row in df.astype(object).itertuples(index=False, name=None):
        records.append({h: _cell(v) for h, v in zip(headers, row)})

    log.info("Decoded %d records with %d columns from %s", len(records), len(headers), filename or "upload")
    return DecodedTable(headers=list(records[0].keys()), records=records)
