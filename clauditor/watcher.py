"""Watching session directories for changes to JSONL files."""

from __future__ import annotations

import os
import queue
from enum import Enum
from pathlib import Path
from types import TracebackType
from typing import Iterable, Optional, Union

from watchdog.events import (
    EVENT_TYPE_CREATED,
    EVENT_TYPE_MODIFIED,
    EVENT_TYPE_MOVED,
    FileSystemEvent,
    FileSystemEventHandler,
)
from watchdog.observers import Observer

from .scanner import default_claude_paths

PathLike = Union[str, bytes, "os.PathLike[str]"]


class FileEvent(Enum):
    """A change to a session file that calls for a reload."""

    MODIFIED = "modified"
    CREATED = "created"


_EVENT_KINDS = {
    EVENT_TYPE_MODIFIED: FileEvent.MODIFIED,
    EVENT_TYPE_MOVED: FileEvent.MODIFIED,
    EVENT_TYPE_CREATED: FileEvent.CREATED,
}


def is_jsonl_file(path: PathLike) -> bool:
    """True if the path has a .jsonl extension."""
    return Path(os.fsdecode(path)).suffix == ".jsonl"


def _filter_event(event: FileSystemEvent) -> Optional[FileEvent]:
    kind = _EVENT_KINDS.get(event.event_type)
    if kind is None:
        return None
    paths = (event.src_path, getattr(event, "dest_path", ""))
    if any(path and is_jsonl_file(path) for path in paths):
        return kind
    return None


class _Handler(FileSystemEventHandler):
    def __init__(self, sink: "queue.Queue[FileEvent]") -> None:
        super().__init__()
        self._sink = sink

    def on_any_event(self, event: FileSystemEvent) -> None:
        file_event = _filter_event(event)
        if file_event is not None:
            self._sink.put(file_event)


class SessionWatcher:
    """Watches the projects directories under the given bases for JSONL changes."""

    def __init__(self, paths: Iterable[PathLike]) -> None:
        self._events: "queue.Queue[FileEvent]" = queue.Queue()
        self._observer = Observer()
        self._closed = False
        handler = _Handler(self._events)
        for base in paths:
            projects_dir = Path(os.fsdecode(base)) / "projects"
            if projects_dir.exists():
                self._observer.schedule(handler, str(projects_dir), recursive=True)
        self._observer.start()

    @classmethod
    def with_default_paths(cls) -> "SessionWatcher":
        """Watch the default session directories under the home directory."""
        return cls(default_claude_paths())

    def poll_events(self) -> list[FileEvent]:
        """Drain and return pending events without blocking."""
        events: list[FileEvent] = []
        while True:
            try:
                events.append(self._events.get_nowait())
            except queue.Empty:
                return events

    def close(self) -> None:
        """Stop watching."""
        if self._closed:
            return
        self._closed = True
        self._observer.stop()
        self._observer.join()

    def __enter__(self) -> "SessionWatcher":
        return self

    def __exit__(
        self,
        exc_type: Optional[type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> None:
        self.close()