"""Loading session data and turning it into the active billing window."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterable, Optional

from .scanner import SessionScanner
from .types import EntryWithProject, SessionBlock, SessionFile
from .window import (
    find_active_window_period,
    group_into_single_window_with_projects,
    is_window_active,
)


def _tag_entries(sessions: Iterable[SessionFile]) -> list[EntryWithProject]:
    return [
        EntryWithProject(entry=entry, project=session.project)
        for session in sessions
        for entry in session.entries
    ]


def load_and_group_sessions(
    scanner: Optional[SessionScanner] = None,
) -> Optional[SessionBlock]:
    """Load every recent session and group it into the account-wide window."""
    if scanner is None:
        scanner = SessionScanner()
    return group_into_single_window_with_projects(_tag_entries(scanner.load_sessions()))


def load_and_group_sessions_incremental(
    scanner: SessionScanner,
) -> Optional[SessionBlock]:
    """Read newly appended data; if it points to an active window, reload everything.

    With no new data the active window is recomputed from a full load, so
    the result always holds every project of the window.
    """
    new_sessions = scanner.load_sessions_incremental()
    if not new_sessions:
        return get_active_billing_window(scanner)

    new_entries = _tag_entries(new_sessions)
    if find_active_window_period(new_entries, datetime.now(timezone.utc)) is not None:
        return get_active_billing_window(scanner)
    return None


def get_active_billing_window(
    scanner: Optional[SessionScanner] = None,
) -> Optional[SessionBlock]:
    """The billing window active now, from a full load, or None."""
    window = load_and_group_sessions(scanner)
    if window is not None and is_window_active(window):
        return window
    return None


@dataclass
class ActiveWindowSummary:
    """Headline figures of the active window."""

    has_active_window: bool
    total_tokens: int
    burn_rate: float

    @classmethod
    def from_window(cls, window: Optional[SessionBlock]) -> "ActiveWindowSummary":
        if window is None:
            return cls(has_active_window=False, total_tokens=0, burn_rate=0.0)
        return cls(
            has_active_window=True,
            total_tokens=window.token_counts.total(),
            burn_rate=window.burn_rate(),
        )