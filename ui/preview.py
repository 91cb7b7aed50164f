"""
Merged data preview and change summary
"""
import streamlit as st
import pandas as pd
from typing import Any, Dict, List

from models.tenant import ChangeSummary
from utils.helpers import format_currency, parse_emails, parse_phone_numbers

_CURRENCY_COLUMNS = [
    "rentAmount", "marketRent", "pastDue", "delinquentRent", "amountReceivable",
    "aging30", "aging60", "aging90", "agingOver90", "delinquentSubsidyAmount",
]


def records_to_frame(records: List[Dict[str, Any]]) -> pd.DataFrame:
    """Display frame: currency formatted, contact cells split into lists"""
    if not records:
        return pd.DataFrame()

    df = pd.DataFrame(records)
    for col in _CURRENCY_COLUMNS:
        if col in df.columns:
            df[col] = df[col].fillna(0).apply(format_currency)
    if "phoneNumbers" in df.columns:
        df["phoneNumbers"] = df["phoneNumbers"].apply(lambda v: ", ".join(parse_phone_numbers(v)))
    if "emails" in df.columns:
        df["emails"] = df["emails"].apply(lambda v: ", ".join(parse_emails(v)))
    if "latePaymentRate" in df.columns:
        df["latePaymentRate"] = df["latePaymentRate"].round(3)
    return df


def render_records_preview(records: List[Dict[str, Any]]) -> None:
    """Render the merged tenant table."""
    st.subheader("📋 Merged Tenant Records")

    if not records:
        st.info("No tenant records were produced. Check that the rent roll has Current tenants.")
        return

    col1, col2, col3 = st.columns(3)
    col1.metric("Tenants", len(records))
    col2.metric("Past Due", format_currency(sum(r.get("pastDue", 0) for r in records)))
    col3.metric("Delinquent Rent", format_currency(sum(r.get("delinquentRent", 0) for r in records)))

    st.dataframe(records_to_frame(records), use_container_width=True)


def render_change_summary(summary: ChangeSummary) -> None:
    """Render counts and field-level diffs against the last snapshot."""
    st.subheader("🔄 Changes Since Last Upload")

    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Total", summary.total_rows)
    col2.metric("Changed", summary.changed_rows)
    col3.metric("New", summary.new_rows)
    col4.metric("Unchanged", summary.unchanged_rows)

    if not summary.changes:
        st.caption("No field-level changes for existing tenants.")
        return

    rows = []
    for diff in summary.changes:
        for field_name, change in diff.changes.items():
            rows.append({
                "Property": diff.property,
                "Unit": diff.unit,
                "Tenant": diff.tenant,
                "Field": field_name,
                "Old": change.old,
                "New": change.new,
            })
    st.dataframe(pd.DataFrame(rows), use_container_width=True)
