"""Reading usage entries from JSONL session files."""

from __future__ import annotations

import json
import os
import sys
from pathlib import Path
from typing import BinaryIO, Iterable, Iterator, Optional, Union

from .types import UsageEntry

PathLike = Union[str, "os.PathLike[str]"]


def parse_line(line: str) -> Optional[UsageEntry]:
    """Parse one JSONL line; return None for blank, malformed or usage-less lines."""
    if not line.strip():
        return None
    try:
        entry = UsageEntry.from_dict(json.loads(line))
    except ValueError:
        return None
    return entry if entry.message.usage is not None else None


def _raw_lines(handle: BinaryIO) -> Iterator[bytes]:
    """Yield lines without their line ending, like a buffered line reader."""
    for raw in handle:
        if raw.endswith(b"\n"):
            raw = raw[:-1]
            if raw.endswith(b"\r"):
                raw = raw[:-1]
        yield raw


def parse_file(path: PathLike) -> list[UsageEntry]:
    """Parse every valid usage entry in a file, skipping unreadable lines."""
    path = Path(path)
    entries: list[UsageEntry] = []
    with path.open("rb") as handle:
        for number, raw in enumerate(_raw_lines(handle), start=1):
            try:
                text = raw.decode("utf-8")
            except UnicodeDecodeError as exc:
                print(f"Error reading line {number} in {path}: {exc}", file=sys.stderr)
                continue
            entry = parse_line(text)
            if entry is not None:
                entries.append(entry)
    return entries


def parse_file_from_position(
    path: PathLike, start_position: int
) -> tuple[list[UsageEntry], int]:
    """Parse entries from a byte offset; return them with the new offset.

    If the offset lies beyond the end of the file, the file is taken to have
    been replaced and is read from the start.
    """
    path = Path(path)
    entries: list[UsageEntry] = []
    with path.open("rb") as handle:
        size = os.fstat(handle.fileno()).st_size
        if start_position > size:
            return parse_file_with_position(path)
        handle.seek(start_position)
        position = start_position
        for raw in _raw_lines(handle):
            try:
                text = raw.decode("utf-8")
            except UnicodeDecodeError as exc:
                print(f"Error reading line in {path}: {exc}", file=sys.stderr)
                break
            position += len(raw) + 1
            entry = parse_line(text)
            if entry is not None:
                entries.append(entry)
    return entries, position


def parse_file_with_position(path: PathLike) -> tuple[list[UsageEntry], int]:
    """Parse a whole file; return its entries and its size in bytes."""
    path = Path(path)
    entries: list[UsageEntry] = []
    with path.open("rb") as handle:
        size = os.fstat(handle.fileno()).st_size
        for raw in _raw_lines(handle):
            try:
                text = raw.decode("utf-8")
            except UnicodeDecodeError as exc:
                print(f"Error reading line in {path}: {exc}", file=sys.stderr)
                break
            entry = parse_line(text)
            if entry is not None:
                entries.append(entry)
    return entries, size


def parse_files(paths: Iterable[PathLike]) -> list[UsageEntry]:
    """Parse several files, reporting and skipping those that cannot be opened."""
    all_entries: list[UsageEntry] = []
    for path in paths:
        try:
            all_entries.extend(parse_file(path))
        except OSError as exc:
            print(f"Error parsing file {path}: {exc}", file=sys.stderr)
    return all_entries