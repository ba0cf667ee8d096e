"""Grouping usage entries into the account-wide five-hour billing window."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Iterable, Optional, Sequence

from .types import (
    EntryWithProject,
    ProjectUsage,
    SessionBlock,
    TokenCounts,
    UsageEntry,
    floor_to_hour,
    is_block_active,
)

SESSION_DURATION = timedelta(hours=5)
_LOOKBACK = SESSION_DURATION * 3

_MODEL_PROJECTS = {
    "claude-opus-4-20250514": "project-opus",
    "claude-sonnet-4-20250514": "project-sonnet",
}


def _model_project_name(entry: UsageEntry) -> str:
    """Project label derived from the model, for entries without a file path."""
    return _MODEL_PROJECTS.get(entry.message.model, "unknown")


def _build_block(
    start_time: datetime, tagged: Sequence[tuple[UsageEntry, str]]
) -> Optional[SessionBlock]:
    """Build a window from (entry, project) pairs; the last pair gives the last activity."""
    if not tagged:
        return None

    projects: dict[str, ProjectUsage] = {}
    total = TokenCounts()
    for entry, project_name in tagged:
        usage = entry.message.usage
        if usage is None:
            continue
        total.add_usage(usage)
        project = projects.setdefault(project_name, ProjectUsage(name=project_name))
        project.token_counts.add_usage(usage)
        project.entry_count += 1

    return SessionBlock(
        start_time=start_time,
        end_time=start_time + SESSION_DURATION,
        last_activity=tagged[-1][0].timestamp,
        projects=list(projects.values()),
        token_counts=total,
        is_active=False,
    )


def group_into_single_window(entries: Iterable[UsageEntry]) -> Optional[SessionBlock]:
    """Build one window starting at the hour of the earliest entry.

    Projects are labelled by model. Only entries within five hours of the
    window start are counted.
    """
    ordered = sorted(entries, key=lambda e: e.timestamp)
    if not ordered:
        return None

    window_start = floor_to_hour(ordered[0].timestamp)
    window_end = window_start + SESSION_DURATION
    in_window = [
        (entry, _model_project_name(entry))
        for entry in ordered
        if window_start <= entry.timestamp < window_end
    ]

    window = _build_block(window_start, in_window)
    if window is None:
        return None
    window.is_active = is_block_active(window, datetime.now(timezone.utc))
    return window


def is_window_active(window: SessionBlock) -> bool:
    """Whether the window was marked active."""
    return window.is_active


def find_active_window_period(
    entries: Sequence[EntryWithProject], now: datetime
) -> Optional[tuple[datetime, datetime]]:
    """Return (start, end) of the billing window active at ``now``, if any.

    Entries from the last fifteen hours are walked in time order; each entry
    five hours or more past the current window start opens a new window.
    """
    cutoff = now - _LOOKBACK
    recent = sorted(
        (e.entry.timestamp for e in entries if e.entry.timestamp >= cutoff)
    )
    if not recent:
        return None

    windows: list[tuple[datetime, datetime, datetime]] = []
    window_start = floor_to_hour(recent[0])
    last_activity = recent[0]
    for moment in recent[1:]:
        if moment - window_start < SESSION_DURATION:
            last_activity = moment
        else:
            windows.append((window_start, window_start + SESSION_DURATION, last_activity))
            window_start = floor_to_hour(moment)
            last_activity = moment
    windows.append((window_start, window_start + SESSION_DURATION, last_activity))

    five_hours_ago = now - SESSION_DURATION
    for start, end, last in reversed(windows):
        if last >= five_hours_ago and now < end:
            return start, end
    return None


def group_into_single_window_with_projects(
    entries: Iterable[EntryWithProject],
) -> Optional[SessionBlock]:
    """Build the window active now, attributing usage to each entry's project."""
    return group_into_single_window_with_projects_at_time(
        entries, datetime.now(timezone.utc)
    )


def group_into_single_window_with_projects_at_time(
    entries: Iterable[EntryWithProject], now: datetime
) -> Optional[SessionBlock]:
    """Build the window active at ``now``, or None if no window is active."""
    items = list(entries)
    if not items:
        return None

    period = find_active_window_period(items, now)
    if period is None:
        return None
    window_start, window_end = period

    in_window = [
        (item.entry, item.project)
        for item in items
        if window_start <= item.entry.timestamp < window_end
    ]
    window = _build_block(window_start, in_window)
    if window is None:
        return None
    window.is_active = is_block_active(window, now)
    return window