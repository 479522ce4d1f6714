from __future__ import annotations

import io
import json
import logging
import warnings
from typing import Any, Dict, List, Optional

import pandas as pd

from casemap.errors import CodecUnavailable, MalformedSource

logger = logging.getLogger(__name__)

RawRecord = Dict[str, Any]


def _blank_to_none(df: pd.DataFrame) -> List[RawRecord]:
    df = df.astype(object)
    df = df.where(pd.notnull(df), None)
    return df.to_dict(orient="records")


class OpenpyxlCodec:
    """First-sheet reader for spreadsheet exports."""

    def __init__(self, openpyxl_module) -> None:
        self._openpyxl = openpyxl_module

    def _read_workbook(self, body: bytes) -> List[RawRecord]:
        wb = self._openpyxl.load_workbook(io.BytesIO(body), read_only=True, data_only=True)
        try:
            ws = wb.worksheets[0]
            rows_iter = ws.iter_rows(values_only=True)
            first = next(rows_iter, None)
            if first is None:
                return []
            header = [
                str(cell).strip() if cell is not None and str(cell).strip() else f"Unnamed: {idx}"
                for idx, cell in enumerate(first)
            ]
            records: List[RawRecord] = []
            for row in rows_iter:
                if all(cell is None or (isinstance(cell, str) and not cell.strip()) for cell in row):
                    continue
                record: RawRecord = {name: None for name in header}
                for col_name, val in zip(header, row):
                    record[col_name] = val
                records.append(record)
            return records
        finally:
            wb.close()

    def _read_frame(self, body: bytes) -> List[RawRecord]:
        df = pd.read_excel(io.BytesIO(body), sheet_name=0, header=0, dtype=object)
        df = df.dropna(how="all")
        df.columns = [str(c).strip() for c in df.columns]
        return _blank_to_none(df)

    def read_first_sheet(self, body: bytes) -> List[RawRecord]:
        try:
            return self._read_workbook(body)
        except Exception as exc:
            logger.info("Workbook decode failed (%s); retrying through pandas", exc)
        try:
            return self._read_frame(body)
        except Exception as exc:
            raise MalformedSource(f"Spreadsheet could not be decoded: {exc}") from exc


def load_codec() -> OpenpyxlCodec:
    try:
        import openpyxl
    except ImportError as exc:
        raise CodecUnavailable(f"Spreadsheet support is not installed: {exc}") from exc
    return OpenpyxlCodec(openpyxl)


def parse_row_list(body: bytes, name: str = "") -> List[RawRecord]:
    try:
        data = json.loads(body.decode("utf-8-sig"))
    except (UnicodeDecodeError, ValueError) as exc:
        raise MalformedSource(f"{name} is not valid JSON: {exc}") from exc
    if not isinstance(data, list):
        raise MalformedSource(f"{name} must contain a list of rows, got {type(data).__name__}")
    for idx, row in enumerate(data):
        if not isinstance(row, dict):
            raise MalformedSource(f"{name} row {idx} is not an object")
    return data


def parse_delimited(body: bytes, name: str = "") -> List[RawRecord]:
    try:
        text = body.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise MalformedSource(f"{name} is not UTF-8 text: {exc}") from exc
    if not text.strip():
        return []
    try:
        # Fields past the header width are dropped; the first column is never an index.
        with warnings.catch_warnings():
            warnings.simplefilter("ignore", pd.errors.ParserWarning)
            df = pd.read_csv(
                io.StringIO(text),
                dtype=str,
                keep_default_na=False,
                skip_blank_lines=True,
                index_col=False,
                engine="python",
            )
    except (pd.errors.ParserError, pd.errors.EmptyDataError) as exc:
        raise MalformedSource(f"{name} could not be parsed as CSV: {exc}") from exc
    df.columns = [str(c).strip() for c in df.columns]
    return _blank_to_none(df)


def parse(name: str, transport, codec: Optional[OpenpyxlCodec] = None) -> List[RawRecord]:
    lower = name.lower()
    if lower.endswith(".json"):
        rows = parse_row_list(transport.get(name), name)
    elif lower.endswith(".csv"):
        rows = parse_delimited(transport.get(name), name)
    else:
        if codec is None:
            codec = load_codec()
        body = transport.get(name)
        rows = codec.read_first_sheet(body)
    logger.info("Parsed %d rows from %s", len(rows), name)
    return rows
