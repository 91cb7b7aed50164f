"""
Upload payload loader - routes base64 fields of a merge request to the CSV decoder.
Returns (bool, str, Dict[str, ParsedDocument]) for callers that only need a
status message, and raises for the merge pipeline.
"""
import logging
from pathlib import Path
from typing import Dict, Mapping, Optional, Tuple

from ingestion.parsers import ParsedDocument
from ingestion.parsers.csv_parser import decode_base64_csv, encode_csv_file
from utils.errors import MergeError, MissingSourceError

logger = logging.getLogger(__name__)

COMBINED_FIELD = "combined"
SOURCE_FIELDS = ("delinquency", "rent_roll", "directory")

# Older clients send the directory upload under this name
FIELD_ALIASES = {"tenant_directory": "directory"}

MISSING_FILES_MESSAGE = "Missing required files"


class PayloadLoader:
    """
    Decodes a merge request payload: either {"combined": <b64>} or
    {"delinquency": <b64>, "rent_roll": <b64>, "directory": <b64>}.
    """

    @staticmethod
    def normalize_fields(payload: Mapping[str, object]) -> Dict[str, object]:
        """Apply field aliases and drop empty values"""
        fields: Dict[str, object] = {}
        for name, value in (payload or {}).items():
            name = FIELD_ALIASES.get(name, name)
            if value and name not in fields:
                fields[name] = value
        return fields

    def mode(self, payload: Mapping[str, object]) -> str:
        """ "combined" or "three_file"; raises MissingSourceError otherwise"""
        fields = self.normalize_fields(payload)
        if COMBINED_FIELD in fields:
            return "combined"
        if all(name in fields for name in SOURCE_FIELDS):
            return "three_file"
        raise MissingSourceError(MISSING_FILES_MESSAGE)

    def decode_payload(self, payload: Mapping[str, object]) -> Dict[str, ParsedDocument]:
        """
        Decode every source the payload's mode needs.

        Raises:
            MissingSourceError: Neither mode is satisfied.
            InputFormatError: A source is not valid base64 CSV.
        """
        fields = self.normalize_fields(payload)
        names = (COMBINED_FIELD,) if self.mode(fields) == "combined" else SOURCE_FIELDS

        documents = {}
        for name in names:
            documents[name] = decode_base64_csv(fields[name], file_name=f"{name}.csv")
            documents[name].document_type = name
            logger.info("Decoded %s upload: %d rows", name, len(documents[name]))
        return documents

    def load_payload(
        self, payload: Mapping[str, object]
    ) -> Tuple[bool, str, Optional[Dict[str, ParsedDocument]]]:
        """
        Decode a payload without raising.

        Returns:
            (success: bool, message: str, documents: Optional[dict])
        """
        try:
            documents = self.decode_payload(payload)
        except MergeError as e:
            return False, str(e), None

        rows = sum(len(doc) for doc in documents.values())
        return True, f"Successfully decoded {len(documents)} file(s), {rows} rows", documents

    @staticmethod
    def payload_from_files(paths: Mapping[str, str]) -> Dict[str, str]:
        """Build a request payload from local CSV paths keyed by field name"""
        payload = {}
        for name, path in paths.items():
            if not Path(path).exists():
                raise MissingSourceError(f"File not found: {path}")
            payload[FIELD_ALIASES.get(name, name)] = encode_csv_file(path)
        return payload
