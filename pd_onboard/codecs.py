"""Spreadsheet codecs: XLSX (openpyxl) and CSV.

A codec turns file bytes into header-keyed row mappings and back. It knows
nothing about the enrichment schema beyond the column order it is handed.
"""

from __future__ import annotations

import csv
import io
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, List, Sequence, Union

from openpyxl import Workbook, load_workbook
from openpyxl.utils import get_column_letter
from openpyxl.utils.exceptions import IllegalCharacterError

from pd_onboard.errors import CodecError
from pd_onboard.schema import ColumnDefinition

RawRow = Dict[str, str]

SHEET_TITLE = "Service Data"


def _cell_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if hasattr(value, "isoformat"):
        return value.isoformat()
    return str(value)


def _rows_to_mappings(table: List[Sequence[Any]]) -> List[RawRow]:
    """First row is the header; later rows become ``{header: text}``."""
    if not table:
        raise CodecError("Spreadsheet is empty")
    headers = [_cell_text(h).strip() for h in table[0]]
    if not any(headers):
        raise CodecError("Spreadsheet has no header row")
    rows: List[RawRow] = []
    for raw in table[1:]:
        row: RawRow = {}
        for i, header in enumerate(headers):
            if not header or header in row:
                continue
            row[header] = _cell_text(raw[i]) if i < len(raw) else ""
        rows.append(row)
    return rows


class SpreadsheetCodec(ABC):
    """Base class for spreadsheet codecs."""

    extensions: tuple  # file extensions this codec handles

    def can_read(self, path: Union[str, Path]) -> bool:
        return Path(path).suffix.lower() in self.extensions

    @abstractmethod
    def decode(self, data: bytes) -> List[RawRow]: ...

    @abstractmethod
    def encode(self, columns: Sequence[ColumnDefinition], rows: Sequence[Dict[str, str]]) -> bytes: ...


# ── XLSX ──────────────────────────────────────────────────────────


class XlsxCodec(SpreadsheetCodec):
    """Reads the first worksheet; writes a single "Service Data" sheet."""

    extensions = (".xlsx", ".xlsm")

    def decode(self, data: bytes) -> List[RawRow]:
        try:
            wb = load_workbook(io.BytesIO(data), read_only=True, data_only=True)
        except Exception as e:
            raise CodecError(f"Failed to read workbook: {e}") from e
        try:
            if not wb.worksheets:
                raise CodecError("Workbook has no worksheets")
            table = [list(r) for r in wb.worksheets[0].iter_rows(values_only=True)]
        finally:
            wb.close()
        return _rows_to_mappings(table)

    def encode(self, columns: Sequence[ColumnDefinition], rows: Sequence[Dict[str, str]]) -> bytes:
        wb = Workbook()
        ws = wb.active
        ws.title = SHEET_TITLE
        try:
            ws.append([c.header for c in columns])
            for row in rows:
                ws.append([row.get(c.key, "") or "" for c in columns])
            for i, col in enumerate(columns, start=1):
                ws.column_dimensions[get_column_letter(i)].width = max(col.width // 7, 8)
        except (IllegalCharacterError, ValueError) as e:
            raise CodecError(f"Failed to write workbook: {e}") from e
        buf = io.BytesIO()
        try:
            wb.save(buf)
        except Exception as e:
            raise CodecError(f"Failed to write workbook: {e}") from e
        return buf.getvalue()


# ── CSV ───────────────────────────────────────────────────────────


class CsvCodec(SpreadsheetCodec):
    extensions = (".csv",)

    def __init__(self, encoding: str = "utf-8") -> None:
        self.encoding = encoding

    def decode(self, data: bytes) -> List[RawRow]:
        try:
            # utf-8-sig tolerates the BOM Excel prepends to exported CSVs
            text = data.decode("utf-8-sig" if self.encoding.lower() == "utf-8" else self.encoding)
            table = list(csv.reader(io.StringIO(text, newline="")))
        except (UnicodeDecodeError, csv.Error) as e:
            raise CodecError(f"Failed to read CSV: {e}") from e
        return _rows_to_mappings(table)

    def encode(self, columns: Sequence[ColumnDefinition], rows: Sequence[Dict[str, str]]) -> bytes:
        buf = io.StringIO(newline="")
        writer = csv.writer(buf)
        writer.writerow([c.header for c in columns])
        for row in rows:
            writer.writerow([row.get(c.key, "") or "" for c in columns])
        return buf.getvalue().encode(self.encoding)


_CODECS: List[SpreadsheetCodec] = [XlsxCodec(), CsvCodec()]


def codec_for_path(path: Union[str, Path]) -> SpreadsheetCodec:
    """Pick a codec by file extension."""
    for codec in _CODECS:
        if codec.can_read(path):
            return codec
    raise CodecError(f"Unsupported spreadsheet format: {Path(path).suffix or path}")
