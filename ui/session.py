"""
Streamlit session state defaults
"""
from typing import Any, Callable, Dict, MutableMapping

from storage.snapshot_store import SnapshotStore

# Session key -> factory; a factory only runs when its key is missing
SESSION_DEFAULTS: Dict[str, Callable[[], Any]] = {
    "snapshot_store": SnapshotStore,
    "merged_records": list,
    "change_summary": lambda: None,
}


def initialize_session_state(state: MutableMapping[str, Any]) -> None:
    """Fill missing session keys; existing values (and connections) are kept."""
    for key, factory in SESSION_DEFAULTS.items():
        if key not in state:
            state[key] = factory()
