"""
Change detection between a freshly merged batch and the prior snapshot.

Unchanged tenants are skipped by the scoring step, so the comparison only
looks at the fields that feed the tenant score.
"""
import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Protocol, Union

from config import settings
from models.tenant import ChangeSummary, FieldChange, TenantKey, TenantRecord, diff_for
from utils.errors import ExternalFetchError
from utils.helpers import parse_currency

logger = logging.getLogger(__name__)

# Snapshot (snake_case) field -> TenantRecord attribute
NUMERIC_FIELDS = {
    "rent_amount": "rent_amount",
    "delinquent_rent": "delinquent_rent",
    "past_due": "past_due",
    "aging_30": "aging_30",
    "aging_60": "aging_60",
    "aging_90": "aging_90",
    "aging_over_90": "aging_over_90",
    "total_balance": "total_balance",
}
TEXT_FIELDS = {"delinquency_notes": "delinquency_notes"}

NewRecord = Union[TenantRecord, Mapping[str, Any]]


class SnapshotProvider(Protocol):
    """Read-only access to the last persisted batch of an account"""

    def fetch_prior_snapshot(self, account_key: str) -> List[Dict[str, Any]]:
        ...


def _as_record(record: NewRecord) -> TenantRecord:
    if isinstance(record, TenantRecord):
        return record
    return TenantRecord.from_dict(dict(record))


def snapshot_key(row: Mapping[str, Any]) -> TenantKey:
    """Key of a persisted insight row; accepts tenant_name or tenant"""
    return TenantKey.of(
        str(row.get("property") or ""),
        str(row.get("unit") or ""),
        str(row.get("tenant_name") or row.get("tenant") or ""),
    )


def index_snapshot(previous: Iterable[Mapping[str, Any]]) -> Dict[TenantKey, Mapping[str, Any]]:
    """Key the prior batch; a later row for the same key replaces an earlier one"""
    return {snapshot_key(row): row for row in previous or []}


def compare_record(record: TenantRecord, prior: Mapping[str, Any]) -> Dict[str, FieldChange]:
    """
    Field-level differences between a new record and its prior row.

    Numbers differ when abs(new - old) > CHANGE_TOLERANCE; text differs on
    trimmed inequality. total_balance is only compared when the prior row
    stored one.
    """
    changes: Dict[str, FieldChange] = {}

    for name, attr in NUMERIC_FIELDS.items():
        if name == "total_balance" and prior.get(name) is None:
            continue
        old = parse_currency(prior.get(name))
        new = getattr(record, attr)
        if abs(new - old) > settings.CHANGE_TOLERANCE:
            changes[name] = FieldChange(old=old, new=new)

    for name, attr in TEXT_FIELDS.items():
        old = str(prior.get(name) or "").strip()
        new = str(getattr(record, attr) or "").strip()
        if old != new:
            changes[name] = FieldChange(old=old, new=new)

    return changes


def analyze_data_changes(
    new_records: Iterable[NewRecord],
    previous_records: Optional[Iterable[Mapping[str, Any]]],
) -> ChangeSummary:
    """
    Classify each new record as new, changed or unchanged against the prior
    batch. New records count as changed but carry no field diff.
    """
    prior_by_key = index_snapshot(previous_records or [])
    summary = ChangeSummary()

    for raw in new_records:
        record = _as_record(raw)
        summary.total_rows += 1
        prior = prior_by_key.get(record.key)

        if prior is None:
            summary.new_rows += 1
            summary.changed_rows += 1
            summary.records_to_score.append(record)
            continue

        changes = compare_record(record, prior)
        if changes:
            summary.changed_rows += 1
            summary.changes.append(diff_for(record, changes))
            summary.records_to_score.append(record)
        else:
            summary.unchanged_rows += 1

    logger.info(
        "Change detection: total=%d changed=%d (new=%d) unchanged=%d",
        summary.total_rows, summary.changed_rows, summary.new_rows, summary.unchanged_rows,
    )
    return summary


def detect_changes_for_account(
    new_records: Iterable[NewRecord],
    provider: SnapshotProvider,
    account_key: str,
) -> ChangeSummary:
    """
    Diff against the account's prior snapshot. A failed fetch is treated as
    "no prior data", so every record comes back as new.
    """
    try:
        previous = provider.fetch_prior_snapshot(account_key)
    except ExternalFetchError as e:
        logger.warning("Could not fetch prior snapshot for %s: %s", account_key, e)
        previous = []
    return analyze_data_changes(new_records, previous)
