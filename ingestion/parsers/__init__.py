"""
ingestion.parsers: CSV upload parsing returning ParsedDocument.
"""
from dataclasses import dataclass
from typing import Dict, Iterator, Optional
import pandas as pd

# A single CSV row: header -> trimmed cell text
RawRow = Dict[str, str]


@dataclass
class ParsedDocument:
    """Normalised result returned by every parser."""
    file_name: str
    file_type: str
    raw_text: str
    dataframe: Optional[pd.DataFrame] = None
    document_type: Optional[str] = None  # combined | rent_roll | delinquency | directory | unknown

    def rows(self) -> Iterator[RawRow]:
        """Yield rows as header-keyed dicts, in file order."""
        if self.dataframe is None or self.dataframe.empty:
            return
        for record in self.dataframe.to_dict(orient="records"):
            yield {str(k): ("" if v is None else str(v)) for k, v in record.items()}

    def __len__(self) -> int:
        return 0 if self.dataframe is None else len(self.dataframe)


def detect_document_type(file_name: str, content: str = "") -> str:
    """
    Heuristic document-type detection.

    Returns one of: "combined", "rent_roll", "delinquency", "directory", "unknown".
    """
    text = (file_name + " " + content).lower()
    if "combined" in text:
        return "combined"
    if "rent roll" in text or "rent_roll" in text or "rentroll" in text:
        return "rent_roll"
    if "delinquen" in text or "aging" in text:
        return "delinquency"
    if "directory" in text or "contact" in text:
        return "directory"
    return "unknown"
