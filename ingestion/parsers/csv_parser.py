"""
CSV parser: decodes base64 uploads and returns a ParsedDocument.
"""
import base64
import binascii
import io
import logging
from pathlib import Path
from typing import Union

import pandas as pd

from ingestion.parsers import ParsedDocument, detect_document_type
from utils.errors import InputFormatError

logger = logging.getLogger(__name__)

INVALID_CSV_MESSAGE = "Invalid CSV data"


def _decode_base64(payload: Union[str, bytes]) -> bytes:
    """
    Decode a base64 upload. Browser FileReader payloads arrive either bare or
    as a data URL ("data:text/csv;base64,...").
    """
    if payload is None:
        raise InputFormatError(INVALID_CSV_MESSAGE)

    if isinstance(payload, bytes):
        try:
            payload = payload.decode("ascii")
        except UnicodeDecodeError as e:
            raise InputFormatError(INVALID_CSV_MESSAGE) from e

    text = str(payload).strip()
    if text.startswith("data:") and "," in text:
        text = text.split(",", 1)[1]
    text = "".join(text.split())

    try:
        return base64.b64decode(text, validate=True)
    except (binascii.Error, ValueError) as e:
        logger.error("Error decoding base64 upload: %s", e)
        raise InputFormatError(INVALID_CSV_MESSAGE) from e


def _bytes_to_text(data: bytes) -> str:
    """Try utf-8 (BOM tolerant) then latin-1 encoding."""
    for enc in ("utf-8-sig", "latin-1"):
        try:
            return data.decode(enc)
        except UnicodeDecodeError:
            continue
    raise InputFormatError(INVALID_CSV_MESSAGE)


def _read_csv_strict(text: str) -> pd.DataFrame:
    """
    Parse CSV text with the first line as header. Every cell is kept as a
    trimmed string; blank lines are skipped.

    The file is first read without a header so that ragged rows surface:
    rows longer than the first line raise in the tokenizer, shorter rows
    come back padded with NaN. The python engine is used because the C
    engine pads short rows with "" when keep_default_na is off.

    A repeated header name keeps its last column.
    """
    if not text.strip():
        return pd.DataFrame()

    try:
        raw = pd.read_csv(
            io.StringIO(text),
            header=None,
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
            engine="python",
        )
    except (pd.errors.ParserError, pd.errors.EmptyDataError) as e:
        logger.error("Error parsing CSV: %s", e)
        raise InputFormatError(INVALID_CSV_MESSAGE) from e

    if raw.isna().to_numpy().any():
        logger.error("Error parsing CSV: inconsistent number of columns")
        raise InputFormatError(INVALID_CSV_MESSAGE)

    raw = raw.apply(lambda col: col.str.strip())
    header = [str(h) for h in raw.iloc[0].tolist()]
    df = raw.iloc[1:].reset_index(drop=True)
    duplicated = sorted({h for h in header if header.count(h) > 1})
    if duplicated:
        logger.warning("Duplicate CSV headers %s: last column wins", duplicated)

    df.columns = header
    return df


def decode_base64_csv(payload: Union[str, bytes], file_name: str = "upload.csv") -> ParsedDocument:
    """
    Decode a base64-encoded CSV upload into a ParsedDocument.

    Args:
        payload: Base64 text (optionally a data URL).
        file_name: Name used for document-type detection and messages.

    Raises:
        InputFormatError: Invalid base64, unbalanced quotes, or rows whose
            field count differs from the header.
    """
    text = _bytes_to_text(_decode_base64(payload))
    df = _read_csv_strict(text)
    logger.debug("Decoded %s: %d rows, %d columns", file_name, len(df), len(df.columns))

    return ParsedDocument(
        file_name=file_name,
        file_type="csv",
        raw_text=text,
        dataframe=df,
        document_type=detect_document_type(file_name, text[:2000]),
    )


def parse_csv(file_path: str) -> ParsedDocument:
    """
    Parse a CSV file from disk and return a ParsedDocument.

    Args:
        file_path: Path to the CSV file.

    Returns:
        ParsedDocument with dataframe, raw_text, and detected document_type.
    """
    path = Path(file_path)
    text = _bytes_to_text(path.read_bytes())
    df = _read_csv_strict(text)

    return ParsedDocument(
        file_name=path.name,
        file_type="csv",
        raw_text=text,
        dataframe=df,
        document_type=detect_document_type(path.name, text[:2000]),
    )


def encode_csv_file(file_path: str) -> str:
    """Base64-encode a local CSV the way the browser upload does."""
    return base64.b64encode(Path(file_path).read_bytes()).decode("ascii")
