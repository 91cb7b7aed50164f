"""
Merge engine - turns decoded uploads into one TenantRecord per tenant.

Two input modes:
  - combined report: filter rows, map 1:1 to records (dense serialization)
  - three files: rent roll is the source of truth for Current tenants and is
    left-joined with delinquency and directory lookups (sparse serialization)
"""
import logging
from datetime import date
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from config import settings
from engine.builder import build_from_combined, build_from_sources
from engine.matcher import (
    KeyedIndex,
    build_delinquency_map,
    build_directory_map,
    current_rent_roll_rows,
    filter_combined_rows,
)
from ingestion.loader import PayloadLoader
from ingestion.parsers import RawRow
from models.tenant import TenantRecord
from utils.errors import MergeError

logger = logging.getLogger(__name__)


def merge_combined(
    rows: Iterable[RawRow],
    policy: Optional[str] = None,
    today: Optional[date] = None,
) -> List[TenantRecord]:
    """Build records from a single combined report"""
    merged = KeyedIndex("combined", policy)
    for row in filter_combined_rows(rows):
        record = build_from_combined(row, today)
        merged.put(record.key, record)
    return merged.values()


def merge_sources(
    delinquency_rows: Iterable[RawRow],
    rent_roll_rows: Iterable[RawRow],
    directory_rows: Iterable[RawRow],
    policy: Optional[str] = None,
    today: Optional[date] = None,
) -> List[TenantRecord]:
    """Join the three exports on (property, unit, tenant name)"""
    delinquency = build_delinquency_map(delinquency_rows, policy)
    directory = build_directory_map(directory_rows, policy)

    merged = KeyedIndex("rent_roll", policy)
    for key, row, ident in current_rent_roll_rows(rent_roll_rows):
        record = build_from_sources(
            row,
            ident,
            delinquency=delinquency.get(key),
            contact=directory.get(key),
            today=today,
        )
        merged.put(key, record)

    records = merged.values()
    logger.info(
        "Joined %d rent roll records (%d with delinquency, %d with contact details)",
        len(records),
        sum(1 for r in records if r.key in delinquency),
        sum(1 for r in records if r.key in directory),
    )
    return records


def log_merge_summary(records: List[Dict[str, Any]]) -> None:
    def positive(name):
        return sum(1 for r in records if (r.get(name) or 0) > 0)

    logger.info(
        "Processed records summary: total=%d delinquentRent=%d aging30=%d "
        "aging60=%d aging90=%d agingOver90=%d",
        len(records),
        positive("delinquentRent"),
        positive("aging30"),
        positive("aging60"),
        positive("aging90"),
        positive("agingOver90"),
    )


def merge_records(
    payload: Mapping[str, object],
    policy: Optional[str] = None,
    today: Optional[date] = None,
) -> Tuple[str, List[TenantRecord]]:
    """
    Decode a request payload and merge it.

    Returns:
        (mode, records) where mode is "combined" or "three_file".
    """
    loader = PayloadLoader()
    documents = loader.decode_payload(payload)

    if "combined" in documents:
        return "combined", merge_combined(documents["combined"].rows(), policy, today)

    return "three_file", merge_sources(
        documents["delinquency"].rows(),
        documents["rent_roll"].rows(),
        documents["directory"].rows(),
        policy,
        today,
    )


def merge_data(
    payload: Mapping[str, object],
    policy: Optional[str] = None,
    today: Optional[date] = None,
) -> List[Dict[str, Any]]:
    """
    Merge uploads into JSON-ready tenant records.

    Three-file records drop non-positive aging buckets and delinquentRent
    (SPARSE_THREE_FILE_RECORDS); combined records keep every field.

    Raises:
        MissingSourceError, InputFormatError, JoinAmbiguityError
    """
    mode, records = merge_records(payload, policy, today)
    sparse = mode == "three_file" and settings.SPARSE_THREE_FILE_RECORDS
    result = [record.to_dict(sparse=sparse) for record in records]
    log_merge_summary(result)
    return result


def handle_merge_request(payload: Mapping[str, object]) -> Tuple[int, Any]:
    """
    HTTP-shaped entry point: (200, records) on success, (400, error body)
    when the payload cannot be merged.
    """
    try:
        return 200, merge_data(payload)
    except MergeError as e:
        logger.error("Error in merge request: %s", e)
        return 400, {"error": str(e), "details": settings.MERGE_ERROR_DETAILS}
