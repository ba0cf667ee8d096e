"""Data model for usage entries, token counts and billing windows."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Mapping, Optional

_FIVE_HOURS = timedelta(hours=5)

_TIMESTAMP_RE = re.compile(
    r"(\d{4})-(\d{2})-(\d{2})[Tt ](\d{2}):(\d{2}):(\d{2})"
    r"(?:\.(\d+))?"
    r"(?:([Zz])|([+-])(\d{2}):(\d{2}))\Z"
)


def _parse_timestamp(value: Any) -> datetime:
    """Parse an RFC 3339 timestamp into an aware UTC datetime."""
    if not isinstance(value, str):
        raise ValueError(f"timestamp must be a string, got {type(value).__name__}")
    match = _TIMESTAMP_RE.match(value.strip())
    if match is None:
        raise ValueError(f"invalid timestamp: {value!r}")
    year, month, day, hour, minute, second, fraction, zulu, sign, off_h, off_m = match.groups()
    microsecond = int(fraction[:6].ljust(6, "0")) if fraction else 0
    if zulu:
        tz = timezone.utc
    else:
        offset = timedelta(hours=int(off_h), minutes=int(off_m))
        tz = timezone(-offset if sign == "-" else offset)
    moment = datetime(
        int(year), int(month), int(day),
        int(hour), int(minute), int(second), microsecond,
        tzinfo=tz,
    )
    return moment.astimezone(timezone.utc)


def _format_timestamp(timestamp: datetime) -> str:
    """Render a datetime as an RFC 3339 UTC string ending in 'Z'."""
    moment = timestamp.astimezone(timezone.utc)
    text = moment.strftime("%Y-%m-%dT%H:%M:%S")
    if moment.microsecond:
        if moment.microsecond % 1000 == 0:
            text += f".{moment.microsecond // 1000:03d}"
        else:
            text += f".{moment.microsecond:06d}"
    return text + "Z"


def _require_mapping(data: Any, what: str) -> Mapping[str, Any]:
    if not isinstance(data, Mapping):
        raise ValueError(f"{what} must be an object")
    return data


def _uint(data: Mapping[str, Any], key: str, default: Optional[int] = None) -> int:
    if key not in data:
        if default is None:
            raise ValueError(f"missing field {key!r}")
        return default
    value = data[key]
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ValueError(f"field {key!r} must be a non-negative integer")
    return value


def _string(data: Mapping[str, Any], key: str) -> str:
    if key not in data:
        raise ValueError(f"missing field {key!r}")
    value = data[key]
    if not isinstance(value, str):
        raise ValueError(f"field {key!r} must be a string")
    return value


def _seconds_toward_zero(delta: timedelta) -> int:
    micros = (delta.days * 86_400 + delta.seconds) * 1_000_000 + delta.microseconds
    seconds = abs(micros) // 1_000_000
    return -seconds if micros < 0 else seconds


@dataclass
class TokenUsage:
    """Token usage reported for one assistant message."""

    input_tokens: int
    output_tokens: int
    cache_creation_input_tokens: int = 0
    cache_read_input_tokens: int = 0

    @classmethod
    def from_dict(cls, data: Any) -> "TokenUsage":
        mapping = _require_mapping(data, "usage")
        return cls(
            input_tokens=_uint(mapping, "input_tokens"),
            output_tokens=_uint(mapping, "output_tokens"),
            cache_creation_input_tokens=_uint(mapping, "cache_creation_input_tokens", 0),
            cache_read_input_tokens=_uint(mapping, "cache_read_input_tokens", 0),
        )

    def to_dict(self) -> dict[str, int]:
        return {
            "input_tokens": self.input_tokens,
            "output_tokens": self.output_tokens,
            "cache_creation_input_tokens": self.cache_creation_input_tokens,
            "cache_read_input_tokens": self.cache_read_input_tokens,
        }


@dataclass
class Message:
    """The message part of a session log entry."""

    id: str
    msg_type: str
    role: str
    model: str
    usage: Optional[TokenUsage] = None

    @classmethod
    def from_dict(cls, data: Any) -> "Message":
        mapping = _require_mapping(data, "message")
        raw_usage = mapping.get("usage")
        return cls(
            id=_string(mapping, "id"),
            msg_type=_string(mapping, "type"),
            role=_string(mapping, "role"),
            model=_string(mapping, "model"),
            usage=None if raw_usage is None else TokenUsage.from_dict(raw_usage),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": self.msg_type,
            "role": self.role,
            "model": self.model,
            "usage": None if self.usage is None else self.usage.to_dict(),
        }


@dataclass
class UsageEntry:
    """A single line of a session log file."""

    timestamp: datetime
    message: Message
    cost_usd: Optional[float]
    request_id: str
    version: str

    @classmethod
    def from_dict(cls, data: Any) -> "UsageEntry":
        mapping = _require_mapping(data, "entry")
        if "timestamp" not in mapping:
            raise ValueError("missing field 'timestamp'")
        if "message" not in mapping:
            raise ValueError("missing field 'message'")
        raw_cost = mapping.get("costUSD")
        if raw_cost is None:
            cost = None
        elif isinstance(raw_cost, bool) or not isinstance(raw_cost, (int, float)):
            raise ValueError("field 'costUSD' must be a number")
        else:
            cost = float(raw_cost)
        return cls(
            timestamp=_parse_timestamp(mapping["timestamp"]),
            message=Message.from_dict(mapping["message"]),
            cost_usd=cost,
            request_id=_string(mapping, "requestId"),
            version=_string(mapping, "version"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "timestamp": _format_timestamp(self.timestamp),
            "message": self.message.to_dict(),
            "costUSD": self.cost_usd,
            "requestId": self.request_id,
            "version": self.version,
        }


@dataclass
class TokenCounts:
    """Aggregated token counts."""

    input_tokens: int = 0
    output_tokens: int = 0
    cache_creation_tokens: int = 0
    cache_read_tokens: int = 0

    def total(self) -> int:
        """All token kinds combined."""
        return (
            self.input_tokens
            + self.output_tokens
            + self.cache_creation_tokens
            + self.cache_read_tokens
        )

    def add_usage(self, usage: TokenUsage) -> None:
        """Add the tokens of one usage record."""
        self.input_tokens += usage.input_tokens
        self.output_tokens += usage.output_tokens
        self.cache_creation_tokens += usage.cache_creation_input_tokens
        self.cache_read_tokens += usage.cache_read_input_tokens


@dataclass
class SessionFile:
    """A session log file and the entries read from it."""

    path: str
    project: str
    session_id: str
    last_read_position: int
    entries: list[UsageEntry] = field(default_factory=list)


@dataclass
class ProjectUsage:
    """Usage of one project within a billing window."""

    name: str
    token_counts: TokenCounts = field(default_factory=TokenCounts)
    entry_count: int = 0


@dataclass
class SessionBlock:
    """A five-hour billing window with its usage."""

    start_time: datetime
    end_time: datetime
    last_activity: datetime
    projects: list[ProjectUsage] = field(default_factory=list)
    token_counts: TokenCounts = field(default_factory=TokenCounts)
    is_active: bool = False

    def burn_rate(self) -> float:
        """Tokens per minute between window start and last activity."""
        minutes = _seconds_toward_zero(self.last_activity - self.start_time) / 60.0
        if minutes > 0.0:
            return self.token_counts.total() / minutes
        return 0.0

    def time_remaining(self, now: datetime) -> timedelta:
        """Time left until the window ends (negative once it has ended)."""
        return self.end_time - now


@dataclass
class EntryWithProject:
    """A usage entry paired with the project it came from."""

    entry: UsageEntry
    project: str


def floor_to_hour(timestamp: datetime) -> datetime:
    """Truncate a timestamp to the start of its hour."""
    return timestamp.replace(minute=0, second=0, microsecond=0)


def is_block_active(block: SessionBlock, now: datetime) -> bool:
    """True if the last activity was under five hours ago and the window has not ended."""
    return (now - block.last_activity) < _FIVE_HOURS and (block.end_time - now) > timedelta(0)