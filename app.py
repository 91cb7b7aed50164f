"""
Tenant Insights Data Merge
Streamlit page: upload CSV exports, merge them, and review changes since the last upload
"""
import base64
from datetime import datetime
from typing import Dict

import streamlit as st

from engine.change_detector import detect_changes_for_account
from engine.merge import merge_data
from storage.snapshot_store import SnapshotStore
from ui.preview import render_change_summary, render_records_preview
from ui.session import initialize_session_state
from utils.errors import MergeError
from utils.logging_config import configure_logging
from config import settings

configure_logging()

# Page configuration
st.set_page_config(
    page_title=settings.APP_TITLE,
    page_icon=settings.APP_ICON,
    layout="wide",
)


# ---------------------------------------------------------------------------
# Upload helpers
# ---------------------------------------------------------------------------

def build_payload(uploads: Dict[str, object]) -> Dict[str, str]:
    """Base64-encode uploaded files under their request field names."""
    return {
        name: base64.b64encode(uf.getvalue()).decode("ascii")
        for name, uf in uploads.items()
        if uf is not None
    }


# ---------------------------------------------------------------------------
# Sidebar
# ---------------------------------------------------------------------------

def render_sidebar():
    """Render account and upload controls."""
    st.sidebar.title(f"{settings.APP_ICON} {settings.APP_TITLE}")
    st.sidebar.markdown("---")

    account_key = st.sidebar.text_input("Account", value="default")
    mode = st.sidebar.radio("Upload type", ["Combined report", "Separate files"])

    uploads: Dict[str, object] = {}
    if mode == "Combined report":
        uploads["combined"] = st.sidebar.file_uploader("Combined report", type=["csv"])
    else:
        uploads["rent_roll"] = st.sidebar.file_uploader("Rent roll", type=["csv"])
        uploads["delinquency"] = st.sidebar.file_uploader("Delinquency", type=["csv"])
        uploads["directory"] = st.sidebar.file_uploader("Tenant directory", type=["csv"])

    st.sidebar.markdown("---")
    ready = all(uf is not None for uf in uploads.values())
    merge_btn = st.sidebar.button("🔀 Merge Files", type="primary", disabled=not ready)

    return {"account_key": account_key, "uploads": uploads, "merge": merge_btn}


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------

def main():
    initialize_session_state(st.session_state)
    sidebar = render_sidebar()
    store: SnapshotStore = st.session_state.snapshot_store

    st.title(f"{settings.APP_ICON} {settings.APP_TITLE}")
    st.markdown("---")

    if sidebar["merge"]:
        with st.spinner("Merging uploaded files…"):
            try:
                records = merge_data(build_payload(sidebar["uploads"]))
            except MergeError as e:
                st.error(f"❌ {e}. {settings.MERGE_ERROR_DETAILS}")
                records = None

        if records is not None:
            st.session_state.merged_records = records
            st.session_state.change_summary = detect_changes_for_account(
                records, store, sidebar["account_key"]
            )
            st.success(f"✅ Successfully processed {len(records)} tenant records")

    records = st.session_state.merged_records
    summary = st.session_state.change_summary

    if not records and summary is None:
        st.info(
            "👆 **Get started:** upload a combined report, or the rent roll, delinquency "
            "and tenant directory exports, then click **Merge Files**."
        )
        return

    tab_records, tab_changes = st.tabs(["📋 Records", "🔄 Changes"])
    with tab_records:
        render_records_preview(records)
    with tab_changes:
        if summary is not None:
            render_change_summary(summary)
            if st.button("💾 Save as latest snapshot", disabled=not records):
                store.save_snapshot(sidebar["account_key"], records)
                st.success("Snapshot saved")

    st.markdown("---")
    st.caption(f"{settings.APP_TITLE} | {datetime.now().strftime('%Y-%m-%d %H:%M')}")


if __name__ == "__main__":
    main()
