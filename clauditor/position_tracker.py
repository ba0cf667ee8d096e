"""Remembering how far each session file has been read."""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from types import TracebackType
from typing import Optional, Union

PathLike = Union[str, "os.PathLike[str]"]

DEFAULT_CACHE_NAME = "clauditor_positions.json"


def _key(path: PathLike) -> str:
    return os.fsdecode(path)


class FilePositionTracker:
    """Last read byte offsets of JSONL files, persisted to a JSON cache file.

    Used as a context manager, the positions are saved on exit.
    """

    def __init__(self, cache_file: Optional[PathLike] = None) -> None:
        if cache_file is None:
            self.cache_file = Path(tempfile.gettempdir()) / DEFAULT_CACHE_NAME
        else:
            self.cache_file = Path(cache_file)
        self.positions: dict[str, int] = {}
        try:
            self.load()
        except (OSError, ValueError):
            pass

    def get_position(self, path: PathLike) -> int:
        """Last read position for a file, 0 if unknown."""
        return self.positions.get(_key(path), 0)

    def set_position(self, path: PathLike, position: int) -> None:
        """Record the read position for a file."""
        self.positions[_key(path)] = position

    def validate_position(self, path: PathLike, current_size: int) -> int:
        """Stored position, or 0 if the file has shrunk below it."""
        stored = self.get_position(path)
        return 0 if stored > current_size else stored

    def save(self) -> None:
        """Write the positions to the cache file."""
        with self.cache_file.open("w", encoding="utf-8") as handle:
            json.dump(self.positions, handle, indent=2)

    def load(self) -> None:
        """Replace the positions with those in the cache file, if it exists."""
        if not self.cache_file.exists():
            return
        with self.cache_file.open("r", encoding="utf-8") as handle:
            try:
                data = json.load(handle)
            except ValueError as exc:
                raise ValueError(f"Failed to read position cache: {exc}") from exc
        if not isinstance(data, dict) or not all(
            isinstance(value, int) and not isinstance(value, bool) and value >= 0
            for value in data.values()
        ):
            raise ValueError("Failed to read position cache: unexpected content")
        self.positions = dict(data)

    def cleanup(self) -> None:
        """Forget files that no longer exist."""
        self.positions = {
            path: position
            for path, position in self.positions.items()
            if Path(path).exists()
        }

    def __enter__(self) -> "FilePositionTracker":
        return self

    def __exit__(
        self,
        exc_type: Optional[type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> None:
        try:
            self.save()
        except OSError:
            pass