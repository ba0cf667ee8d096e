"""Terminal rendering of the active billing window."""

from __future__ import annotations

import math
import os
import sys
from datetime import datetime, timedelta, timezone
from pathlib import PurePosixPath
from typing import Iterable, Optional

from .types import SessionBlock

CYAN = "\x1b[36m"
GREEN = "\x1b[32m"
YELLOW = "\x1b[33m"
ORANGE = "\x1b[38;5;208m"
RED = "\x1b[31m"
DIM = "\x1b[2m"
RESET = "\x1b[0m"

DEFAULT_TERMINAL_WIDTH = 80
_PERCENT_COLUMN_WIDTH = 4
_GENERIC_PARENTS = ("src", "projects", "repos", "code", "git")
_U64_MAX = 2**64 - 1


def colors_enabled() -> bool:
    """False when NO_COLOR is set or the terminal is 'dumb'."""
    if "NO_COLOR" in os.environ:
        return False
    return os.environ.get("TERM") != "dumb"


def colorize(text: str, color: str) -> str:
    """Wrap text in a colour code if colours are enabled."""
    if colors_enabled():
        return f"{color}{text}{RESET}"
    return text


def get_terminal_width() -> int:
    """Columns of the terminal on stdout, or 80 if it is not a terminal."""
    stream = sys.stdout
    try:
        if stream is None or not stream.isatty():
            return DEFAULT_TERMINAL_WIDTH
        columns = os.get_terminal_size(stream.fileno()).columns
    except (AttributeError, OSError, ValueError):
        return DEFAULT_TERMINAL_WIDTH
    return columns if columns > 0 else DEFAULT_TERMINAL_WIDTH


def _home_dir() -> Optional[PurePosixPath]:
    home = os.environ.get("HOME")
    if home is None:
        home = os.environ.get("USERPROFILE")
    return None if home is None else PurePosixPath(home)


def _strip_prefix(
    path: PurePosixPath, prefix: PurePosixPath
) -> Optional[tuple[str, ...]]:
    """Remaining components of path after prefix, or None if it is not a prefix."""
    path_parts, prefix_parts = path.parts, prefix.parts
    if path_parts[: len(prefix_parts)] != prefix_parts:
        return None
    return path_parts[len(prefix_parts):]


def _join(parts: tuple[str, ...]) -> str:
    return str(PurePosixPath(*parts)) if parts else ""


def _home_relative(rest: tuple[str, ...]) -> str:
    return "~" if not rest else f"~/{_join(rest)}"


def _common_prefix(paths: list[PurePosixPath]) -> Optional[PurePosixPath]:
    first, *others = (p.parts for p in paths)
    common: list[str] = []
    for index, component in enumerate(first):
        if any(len(parts) <= index or parts[index] != component for parts in others):
            break
        common.append(component)
    return PurePosixPath(*common) if common else None


def _clean_single_path(path: PurePosixPath, home: Optional[PurePosixPath]) -> str:
    if path.name:
        return path.name
    if home is not None and path == home:
        return "~"
    return str(path)


def _clean_one(
    path: PurePosixPath,
    prefix: Optional[PurePosixPath],
    home: Optional[PurePosixPath],
    show_home_relative: bool,
) -> str:
    if show_home_relative and home is not None:
        rest = _strip_prefix(path, home)
        if rest is not None:
            return _home_relative(rest)

    if prefix is not None:
        rest = _strip_prefix(path, prefix)
        if rest:
            relative = _join(rest)
            if home is not None and prefix == home:
                return f"~/{relative}"
            return relative

    if home is not None:
        rest = _strip_prefix(path, home)
        if rest is not None:
            return _home_relative(rest)

    return str(path)


def clean_project_paths(paths: Iterable[str]) -> list[str]:
    """Shorten project paths by dropping their common prefix and abbreviating home.

    A single path is reduced to its last component.
    """
    raw = list(paths)
    if not raw:
        return []

    home = _home_dir()
    normalized = [PurePosixPath(p.replace("//", "/")) for p in raw]
    if len(normalized) == 1:
        return [_clean_single_path(normalized[0], home)]

    prefix = _common_prefix(normalized)
    show_home_relative = (
        home is not None
        and prefix is not None
        and _strip_prefix(prefix, home) is not None
        and prefix != home
    )
    return [_clean_one(p, prefix, home, show_home_relative) for p in normalized]


def format_duration(duration: timedelta) -> str:
    """Render as 'Xh Ym' or 'Ym', coloured by how little time is left."""
    total_minutes = duration // timedelta(minutes=1)
    if total_minutes <= 0:
        return "0m"

    hours, minutes = divmod(total_minutes, 60)
    text = f"{hours}h {minutes}m" if hours > 0 else f"{minutes}m"

    if total_minutes <= 30:
        return colorize(text, RED)
    if total_minutes <= 60:
        return colorize(text, YELLOW)
    if total_minutes > 120:
        return colorize(text, GREEN)
    return text


def format_number(num: int) -> str:
    """Integer with comma thousands separators."""
    return f"{num:,}"


def _as_unsigned(value: float) -> int:
    if math.isnan(value) or value <= 0:
        return 0
    if value >= _U64_MAX:
        return _U64_MAX
    return int(value)


def format_burn_rate(burn_rate: float) -> str:
    """Render tokens per minute, coloured by how high the rate is."""
    text = f"{format_number(_as_unsigned(burn_rate))} tokens/min"
    if burn_rate > 1_000_000.0:
        return colorize(text, RED)
    if burn_rate > 500_000.0:
        return colorize(text, ORANGE)
    if burn_rate > 100_000.0:
        return colorize(text, YELLOW)
    if burn_rate < 50_000.0:
        return colorize(text, GREEN)
    return text


def format_time(timestamp: datetime) -> str:
    """Local wall-clock time such as '2:00 PM'."""
    local = timestamp.astimezone()
    hour12 = local.hour % 12 or 12
    meridiem = "AM" if local.hour < 12 else "PM"
    return f"{hour12}:{local.minute:02d} {meridiem}"


def extract_display_name(project_path: str) -> str:
    """A short, meaningful name for a project path."""
    if "/" not in project_path:
        return project_path

    parts = project_path.split("/")
    if "Development" in parts:
        dev_pos = parts.index("Development")
        if dev_pos + 1 < len(parts):
            return "/".join(p for p in parts[dev_pos + 1:] if p)

    if len(parts) >= 2:
        parent, name = parts[-2], parts[-1]
        if len(parent.encode("utf-8")) > 2 and parent not in _GENERIC_PARENTS:
            return f"{parent}/{name}"

    return parts[-1]


def display_window(window: SessionBlock, now: datetime) -> None:
    """Print a billing window and its per-project usage."""
    remaining = window.time_remaining(now)
    remaining_text = (
        f"ends in {format_duration(remaining)}" if remaining > timedelta(0) else "ended"
    )
    print(f"Started {format_time(window.start_time)}, {remaining_text}")

    total_tokens = window.token_counts.total()
    print(
        f"Total: {format_number(total_tokens)} tokens "
        f"({format_burn_rate(window.burn_rate())})"
    )
    print()

    projects = sorted(window.projects, key=lambda p: p.token_counts.total(), reverse=True)
    terminal_width = get_terminal_width()

    rows = []
    for project in projects:
        tokens = project.token_counts.total()
        percentage = int(tokens / total_tokens * 100.0) if total_tokens > 0 else 0
        rows.append(
            (extract_display_name(project.name), f"{format_number(tokens)} tokens", percentage)
        )

    token_width = max((len(token_text) for _, token_text, _ in rows), default=0)

    for name, token_text, percentage in rows:
        stats = f"{f'{percentage}%':>{_PERCENT_COLUMN_WIDTH}}  {token_text:>{token_width}}"
        max_name_width = max(0, terminal_width - (len(stats) + 1))
        if len(name) > max_name_width:
            shown = name[: max(0, max_name_width - 3)] + "..."
        else:
            shown = name
        padding = max(0, max(0, terminal_width - len(shown)) - len(stats))
        print(f"{shown}{' ' * padding}{stats}")

    print()


def display_active_window(window: Optional[SessionBlock]) -> None:
    """Print the active window with a header, or a note that there is none."""
    if window is None:
        print("No active billing window")
        return

    print(colorize("Active billing window", CYAN))
    separator = "\u2500" * min(get_terminal_width(), 80)
    print(colorize(separator, DIM))
    print()
    display_window(window, datetime.now(timezone.utc))