"""
In-memory session storage.

One dataset and one chart configuration per session. Uploading replaces
both; nothing is persisted.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Optional

from .models import ChartConfiguration, Dataset


@dataclass
class SessionState:
    dataset: Optional[Dataset] = None
    meta: Optional[dict] = None
    config: Optional[ChartConfiguration] = None
    # bumped on every upload; queries started on an older generation are stale
    generation: int = 0
    query_in_flight: bool = False


SESSIONS: Dict[str, SessionState] = {}


def get_session(session_id: str) -> SessionState:
    if session_id not in SESSIONS:
        SESSIONS[session_id] = SessionState()
    return SESSIONS[session_id]


def replace_dataset(session_id: str, dataset: Dataset, meta: Optional[dict] = None) -> SessionState:
    """Install a new dataset, dropping the previous one and its configuration."""
    state = get_session(session_id)
    state.dataset = dataset
    state.config = None
    state.generation += 1
    state.meta = {
        **(meta or {}),
        "created_at": datetime.utcnow().isoformat() + "Z",
        "n_rows": dataset.row_count,
        "n_cols": len(dataset.headers),
        "columns": list(dataset.headers),
    }
    return state


def set_config(session_id: str, config: ChartConfiguration, generation: int) -> bool:
    """
    Store a configuration produced against dataset ``generation``.

    Returns False (and stores nothing) when a newer upload has landed since.
    """
    state = get_session(session_id)
    if state.generation != generation:
        return False
    state.config = config
    return True


def begin_query(session_id: str) -> Optional[int]:
    """Mark a query as in flight; None if one is already running."""
    state = get_session(session_id)
    if state.query_in_flight:
        return None
    state.query_in_flight = True
    return state.generation


def end_query(session_id: str) -> None:
    get_session(session_id).query_in_flight = False


def clear_sessions() -> None:
    SESSIONS.clear()
