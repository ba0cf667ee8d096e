"""Finding and loading session log files."""

from __future__ import annotations

import os
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Iterable, Optional, Union

from .parser import parse_file, parse_file_from_position
from .position_tracker import FilePositionTracker
from .types import SessionFile, UsageEntry

PathLike = Union[str, "os.PathLike[str]"]

DEFAULT_HOURS_BACK = 10


def default_claude_paths() -> list[Path]:
    """The directories that hold session logs under the user's home."""
    home = Path(os.environ.get("HOME", "/tmp"))
    return [home / ".claude", home / ".config" / "claude"]


class SessionScanner:
    """Locates recently modified session files and reads their entries."""

    def __init__(
        self,
        claude_paths: Optional[Iterable[PathLike]] = None,
        hours_back: int = DEFAULT_HOURS_BACK,
        position_tracker: Optional[FilePositionTracker] = None,
    ) -> None:
        self.claude_paths = (
            default_claude_paths()
            if claude_paths is None
            else [Path(p) for p in claude_paths]
        )
        self.hours_back = hours_back
        self.position_tracker = (
            FilePositionTracker() if position_tracker is None else position_tracker
        )

    def find_session_files(self) -> list[Path]:
        """All JSONL files under the projects directories modified recently."""
        cutoff = datetime.now(timezone.utc) - timedelta(hours=self.hours_back)
        files: list[Path] = []
        for base in self.claude_paths:
            projects_dir = base / "projects"
            if not projects_dir.exists():
                continue
            files.extend(find_jsonl_files(projects_dir, cutoff))
        return files

    def load_sessions(self) -> list[SessionFile]:
        """Read every recent session file in full."""
        files = self.find_session_files()
        self.position_tracker.cleanup()
        sessions: list[SessionFile] = []
        for path in files:
            try:
                entries = parse_file(path)
            except OSError as exc:
                print(f"Error parsing {path}: {exc}", file=sys.stderr)
                continue
            if entries:
                sessions.append(
                    SessionFile(
                        path=str(path),
                        project=extract_project_name(path),
                        session_id=extract_session_id(path),
                        last_read_position=0,
                        entries=entries,
                    )
                )
        return sessions

    def load_sessions_incremental(self) -> list[SessionFile]:
        """Read only what was appended since the last read of each file."""
        files = self.find_session_files()
        self.position_tracker.cleanup()
        sessions: list[SessionFile] = []
        for path in files:
            last_position = self.position_tracker.get_position(path)
            try:
                entries, new_position = parse_file_from_position(path, last_position)
            except OSError as exc:
                print(f"Error parsing {path}: {exc}", file=sys.stderr)
                continue
            self.position_tracker.set_position(path, new_position)
            if entries:
                sessions.append(
                    SessionFile(
                        path=str(path),
                        project=extract_project_name(path),
                        session_id=extract_session_id(path),
                        last_read_position=new_position,
                        entries=entries,
                    )
                )
        try:
            self.position_tracker.save()
        except OSError:
            pass
        return sessions

    def load_all_entries(self) -> list[UsageEntry]:
        """All entries of all recent sessions, flattened."""
        return [entry for session in self.load_sessions() for entry in session.entries]


def find_jsonl_files(directory: PathLike, cutoff_time: datetime) -> list[Path]:
    """Recursively find .jsonl files modified after ``cutoff_time``.

    Unreadable subdirectories are skipped; an unreadable top directory raises.
    """
    files: list[Path] = []
    with os.scandir(directory) as entries:
        for entry in entries:
            path = Path(entry.path)
            if entry.is_dir():
                try:
                    files.extend(find_jsonl_files(path, cutoff_time))
                except OSError:
                    pass
            elif path.suffix == ".jsonl":
                try:
                    mtime = entry.stat(follow_symlinks=False).st_mtime
                except OSError:
                    continue
                if datetime.fromtimestamp(mtime, tz=timezone.utc) > cutoff_time:
                    files.append(path)
    return files


def extract_project_name(path: PathLike) -> str:
    """Decoded project name from the directory holding a session file."""
    name = Path(path).parent.name
    return decode_project_name(name) if name else "unknown"


def extract_session_id(path: PathLike) -> str:
    """Session id: the file name without its extension."""
    return Path(path).stem or "unknown"


def decode_project_name(encoded: str) -> str:
    """Turn a directory name such as -Users-me-proj back into /Users/me/proj."""
    if encoded.startswith("-"):
        return "/" + encoded[1:].replace("-", "/")
    return encoded.replace("-", "/")