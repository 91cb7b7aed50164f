"""
Tenant record builder - assembles TenantRecord objects from matched rows
"""
from datetime import date
from typing import Dict, Optional, Tuple

from engine.matcher import alias_cell, cell
from ingestion.parsers import RawRow
from models.tenant import TenantRecord
from utils.helpers import (
    format_name_for_display,
    late_payment_rate,
    parse_currency,
    tenure_months,
)

# Defaults for tenants with no delinquency row
EMPTY_DELINQUENCY: Dict[str, object] = {
    "amount_receivable": 0.0,
    "delinquent_rent": 0.0,
    "delinquency_notes": "",
    "aging_30": 0.0,
    "aging_60": 0.0,
    "aging_90": 0.0,
    "aging_over_90": 0.0,
    "delinquent_subsidy_amount": 0.0,
}

EMPTY_CONTACT: Dict[str, str] = {"phone_numbers": "", "emails": ""}


def _lease_fields(row: RawRow, today: Optional[date]) -> Dict[str, object]:
    """Rent roll columns shared by both input modes"""
    tenure = tenure_months(row.get("Move-in"), today)
    late_count = int(parse_currency(row.get("Late Count")))
    return {
        "rent_amount": parse_currency(row.get("Rent")),
        "market_rent": parse_currency(row.get("Market Rent")),
        "past_due": parse_currency(row.get("Past Due")),
        "lease_end_date": row.get("Lease To") or "",
        "move_in_date": row.get("Move-in") or "",
        "late_count": late_count,
        "tenure_months": tenure,
        "late_payment_rate": late_payment_rate(late_count, tenure),
    }


def build_from_combined(row: RawRow, today: Optional[date] = None) -> TenantRecord:
    """Map one filtered combined-report row to a TenantRecord"""
    return TenantRecord(
        property=cell(row, "Property"),
        unit=cell(row, "Unit"),
        tenant=format_name_for_display(alias_cell(row, "combined", "tenant")),
        delinquent_rent=parse_currency(row.get("Delinquent Rent")),
        amount_receivable=parse_currency(row.get("Amount Receivable")),
        aging_30=parse_currency(row.get("0-30")),
        aging_60=parse_currency(row.get("30-60")),
        aging_90=parse_currency(row.get("60-90")),
        aging_over_90=parse_currency(row.get("90+")),
        delinquent_subsidy_amount=parse_currency(row.get("Delinquent Subsidy Amount")),
        delinquency_notes=row.get("Delinquency Notes") or "",
        phone_numbers=alias_cell(row, "combined", "phone"),
        emails=alias_cell(row, "combined", "email"),
        **_lease_fields(row, today),
    )


def build_from_sources(
    rent_row: RawRow,
    ident: Tuple[str, str, str],
    delinquency: Optional[Dict[str, object]] = None,
    contact: Optional[Dict[str, str]] = None,
    today: Optional[date] = None,
) -> TenantRecord:
    """
    Left-join a rent roll row with its delinquency and directory entries.
    Missing amounts default to 0 and missing contact details to "".
    """
    property_name, unit, tenant = ident
    fields = dict(EMPTY_DELINQUENCY)
    fields.update(delinquency or {})
    fields.update(contact or EMPTY_CONTACT)
    fields.update(_lease_fields(rent_row, today))

    return TenantRecord(property=property_name, unit=unit, tenant=tenant, **fields)
