"""
Record matcher - row filters and keyed lookups used to join the source exports
"""
import logging
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple

import yaml

from config import settings
from ingestion.parsers import RawRow
from models.tenant import TenantKey
from utils.errors import JoinAmbiguityError, MissingRequiredFieldError
from utils.helpers import format_name_for_display, parse_currency

logger = logging.getLogger(__name__)

_DEFAULT_ALIASES = {
    "combined": {
        "tenant": ["Tenant"],
        "phone": ["Phone Numbers", "Phone"],
        "email": ["Emails", "Email"],
    },
    "rent_roll": {"tenant": ["Tenant"]},
    "delinquency": {"tenant": ["Name", "Tenant"]},
    "directory": {
        "tenant": ["Tenant"],
        "phone": ["Phone Numbers", "Phone"],
        "email": ["Emails", "Email"],
    },
}


def load_column_aliases() -> Dict[str, Dict[str, List[str]]]:
    """Load header aliases from YAML, falling back to built-in defaults"""
    aliases_path = Path(__file__).parent.parent / "config" / "column_aliases.yaml"
    try:
        with open(aliases_path, 'r') as f:
            return yaml.safe_load(f) or _DEFAULT_ALIASES
    except FileNotFoundError:
        return _DEFAULT_ALIASES


COLUMN_ALIASES = load_column_aliases()


class DuplicateKeyPolicy(str, Enum):
    """What to do when two rows of one source share a TenantKey"""
    LAST_WRITE_WINS = "last_write_wins"
    FIRST_WRITE_WINS = "first_write_wins"
    REJECT = "reject"


class KeyedIndex:
    """
    TenantKey -> value mapping with an explicit duplicate policy.
    Insertion order is kept; a replaced value keeps its first position.
    """

    def __init__(self, source: str, policy: Optional[str] = None):
        self.source = source
        self.policy = DuplicateKeyPolicy(policy or settings.DUPLICATE_KEY_POLICY)
        self.duplicates = 0
        self._entries: Dict[TenantKey, Any] = {}

    def put(self, key: TenantKey, value: Any) -> None:
        if key in self._entries:
            self.duplicates += 1
            if self.policy is DuplicateKeyPolicy.REJECT:
                raise JoinAmbiguityError(self.source, key)
            logger.warning(
                "Duplicate %s row for %s / %s / %s (%s)",
                self.source, key.property, key.unit, key.name, self.policy.value,
            )
            if self.policy is DuplicateKeyPolicy.FIRST_WRITE_WINS:
                return
        self._entries[key] = value

    def get(self, key: TenantKey, default: Any = None) -> Any:
        return self._entries.get(key, default)

    def values(self) -> List[Any]:
        return list(self._entries.values())

    def __contains__(self, key: TenantKey) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)


# ---------------------------------------------------------------------------
# Cell access
# ---------------------------------------------------------------------------

def cell(row: RawRow, *headers: str) -> str:
    """First non-empty trimmed value among the given headers"""
    for header in headers:
        value = row.get(header)
        if value is not None and str(value).strip():
            return str(value).strip()
    return ""


def alias_cell(row: RawRow, source: str, field_name: str) -> str:
    return cell(row, *COLUMN_ALIASES.get(source, {}).get(field_name, []))


def is_current(row: RawRow) -> bool:
    return cell(row, "Status") == settings.CURRENT_STATUS


def identity(row: RawRow, tenant: str) -> Tuple[str, str, str]:
    """
    Return (property, unit, tenant) or raise MissingRequiredFieldError.
    """
    property_name = cell(row, "Property")
    unit = cell(row, "Unit")
    if not tenant:
        raise MissingRequiredFieldError("Tenant")
    if not property_name:
        raise MissingRequiredFieldError("Property")
    if not unit:
        raise MissingRequiredFieldError("Unit")
    return property_name, unit, tenant


# ---------------------------------------------------------------------------
# Row filters
# ---------------------------------------------------------------------------

def is_summary_row(row: RawRow) -> bool:
    """
    Detect subtotal/summary lines that property-management exports place
    between property sections.
    """
    property_name = cell(row, "Property")
    unit = cell(row, "Unit")
    unit_lower = unit.lower()

    if "units" in unit_lower:
        return True
    if property_name and property_name == unit:
        return True
    if any(keyword in unit_lower for keyword in settings.SUMMARY_KEYWORDS):
        return True

    non_empty = sum(
        1 for key, value in row.items()
        if key != "Property" and value is not None and str(value).strip()
    )
    return non_empty <= 1


def filter_combined_rows(rows: Iterable[RawRow]) -> Iterator[RawRow]:
    """Keep Current, non-summary combined-report rows carrying all required fields"""
    for row in rows:
        if not all(cell(row, h) for h in ("Property", "Unit", "Tenant", "Rent")):
            logger.debug("Skipping combined row missing required fields: %s", row)
            continue
        if is_summary_row(row):
            logger.debug("Skipping summary row: %s", row)
            continue
        if not is_current(row):
            continue
        yield row


def current_rent_roll_rows(rows: Iterable[RawRow]) -> Iterator[Tuple[TenantKey, RawRow, Tuple[str, str, str]]]:
    """
    Rent roll rows that define the output batch: Current status, identity
    present and a non-zero rent. Yields (key, row, identity).
    """
    for row in rows:
        if not is_current(row):
            continue
        tenant = format_name_for_display(alias_cell(row, "rent_roll", "tenant"))
        try:
            ident = identity(row, tenant)
        except MissingRequiredFieldError as e:
            logger.debug("Skipping rent roll row: %s", e)
            continue
        if parse_currency(cell(row, "Rent")) == 0:
            continue
        yield TenantKey.of(*ident), row, ident


# ---------------------------------------------------------------------------
# Lookup maps
# ---------------------------------------------------------------------------

def build_delinquency_map(rows: Iterable[RawRow], policy: Optional[str] = None) -> KeyedIndex:
    """Index delinquency amounts by tenant key"""
    index = KeyedIndex("delinquency", policy)
    for row in rows:
        tenant = format_name_for_display(alias_cell(row, "delinquency", "tenant"))
        try:
            ident = identity(row, tenant)
        except MissingRequiredFieldError as e:
            logger.debug("Skipping delinquency row: %s", e)
            continue

        index.put(TenantKey.of(*ident), {
            "amount_receivable": parse_currency(row.get("Amount Receivable")),
            "delinquent_rent": parse_currency(row.get("Delinquent Rent")),
            "delinquency_notes": row.get("Delinquency Notes") or "",
            "aging_30": parse_currency(row.get("0-30")),
            "aging_60": parse_currency(row.get("30-60")),
            "aging_90": parse_currency(row.get("60-90")),
            "aging_over_90": parse_currency(row.get("90+")),
            "delinquent_subsidy_amount": parse_currency(row.get("Delinquent Subsidy Amount")),
        })
    return index


def directory_tenant_name(row: RawRow) -> str:
    """Tenant column, else First Name + Last Name, else Name"""
    tenant = alias_cell(row, "directory", "tenant")
    if tenant:
        return format_name_for_display(tenant)

    first, last = cell(row, "First Name"), cell(row, "Last Name")
    if first and last:
        return f"{first} {last}"

    return format_name_for_display(cell(row, "Name"))


def build_directory_map(rows: Iterable[RawRow], policy: Optional[str] = None) -> KeyedIndex:
    """Index contact details of Current tenants that have a phone or email"""
    index = KeyedIndex("directory", policy)
    for row in rows:
        if not is_current(row):
            continue
        try:
            ident = identity(row, directory_tenant_name(row))
        except MissingRequiredFieldError as e:
            logger.debug("Skipping directory row: %s", e)
            continue

        phone_numbers = alias_cell(row, "directory", "phone")
        emails = alias_cell(row, "directory", "email")
        if phone_numbers or emails:
            index.put(TenantKey.of(*ident), {
                "phone_numbers": phone_numbers,
                "emails": emails,
            })
    return index
