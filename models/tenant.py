"""
Data models for merged tenant records and change detection
"""
from dataclasses import dataclass, field, fields
from typing import Any, Dict, List, Optional

from config import settings
from utils.helpers import name_key, parse_currency


@dataclass(frozen=True)
class TenantKey:
    """Join/dedup key: one record per property, unit and tenant"""
    property: str
    unit: str
    name: str  # normalized for matching, never displayed

    @classmethod
    def of(cls, property_name: str, unit: str, tenant: str) -> "TenantKey":
        return cls(
            property=(property_name or "").strip(),
            unit=(unit or "").strip(),
            name=name_key(tenant),
        )


# camelCase serialized name for each TenantRecord attribute
_SERIALIZED_NAMES = {
    "property": "property",
    "unit": "unit",
    "tenant": "tenant",
    "rent_amount": "rentAmount",
    "market_rent": "marketRent",
    "past_due": "pastDue",
    "delinquent_rent": "delinquentRent",
    "amount_receivable": "amountReceivable",
    "aging_30": "aging30",
    "aging_60": "aging60",
    "aging_90": "aging90",
    "aging_over_90": "agingOver90",
    "delinquent_subsidy_amount": "delinquentSubsidyAmount",
    "delinquency_notes": "delinquencyNotes",
    "late_count": "lateCount",
    "tenure_months": "tenureMonths",
    "late_payment_rate": "latePaymentRate",
    "lease_end_date": "leaseEndDate",
    "move_in_date": "moveInDate",
    "phone_numbers": "phoneNumbers",
    "emails": "emails",
}


@dataclass
class TenantRecord:
    """Canonical tenant row produced by one merge call"""
    property: str
    unit: str
    tenant: str
    rent_amount: float = 0.0
    market_rent: float = 0.0
    past_due: float = 0.0
    delinquent_rent: float = 0.0
    amount_receivable: float = 0.0
    aging_30: float = 0.0
    aging_60: float = 0.0
    aging_90: float = 0.0
    aging_over_90: float = 0.0
    delinquent_subsidy_amount: float = 0.0
    delinquency_notes: str = ""
    late_count: int = 0
    tenure_months: int = 0
    late_payment_rate: float = 0.0
    lease_end_date: str = ""
    move_in_date: str = ""
    phone_numbers: str = ""
    emails: str = ""

    @property
    def key(self) -> TenantKey:
        return TenantKey.of(self.property, self.unit, self.tenant)

    @property
    def total_balance(self) -> float:
        return self.past_due + self.delinquent_rent

    def to_dict(self, sparse: bool = False) -> Dict[str, Any]:
        """
        Serialize with camelCase keys. With sparse=True, aging buckets and
        delinquentRent are omitted unless positive.
        """
        data = {}
        for attr, name in _SERIALIZED_NAMES.items():
            value = getattr(self, attr)
            if sparse and name in settings.SPARSE_ZERO_FIELDS:
                if not (isinstance(value, (int, float)) and value > 0):
                    continue
            data[name] = value
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TenantRecord":
        """Rebuild a record from its camelCase form; absent fields take defaults"""
        kwargs = {}
        for f in fields(cls):
            value = data.get(_SERIALIZED_NAMES[f.name])
            if value is None:
                continue
            if f.type is float:
                value = parse_currency(value)
            elif f.type is int:
                value = int(parse_currency(value))
            kwargs[f.name] = value
        kwargs.setdefault("property", "")
        kwargs.setdefault("unit", "")
        kwargs.setdefault("tenant", "")
        return cls(**kwargs)


@dataclass
class FieldChange:
    """Old/new pair for one compared field"""
    old: Any
    new: Any

    def to_dict(self) -> Dict[str, Any]:
        return {"old": self.old, "new": self.new}


@dataclass
class DiffRecord:
    """Field-level differences for one tenant present in both batches"""
    tenant: str
    property: str
    unit: str
    changes: Dict[str, FieldChange] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tenant": self.tenant,
            "property": self.property,
            "unit": self.unit,
            "changes": {name: change.to_dict() for name, change in self.changes.items()},
        }


@dataclass
class ChangeSummary:
    """Result of diffing a new batch against the prior snapshot"""
    total_rows: int = 0
    unchanged_rows: int = 0
    changed_rows: int = 0  # includes new_rows
    new_rows: int = 0
    changes: List[DiffRecord] = field(default_factory=list)
    records_to_score: List[TenantRecord] = field(default_factory=list)

    @property
    def has_changes(self) -> bool:
        return self.changed_rows > 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalRows": self.total_rows,
            "unchangedRows": self.unchanged_rows,
            "changedRows": self.changed_rows,
            "newRows": self.new_rows,
            "changes": [diff.to_dict() for diff in self.changes],
        }


def diff_for(record: TenantRecord, changes: Optional[Dict[str, FieldChange]] = None) -> DiffRecord:
    return DiffRecord(
        tenant=record.tenant,
        property=record.property,
        unit=record.unit,
        changes=changes or {},
    )
