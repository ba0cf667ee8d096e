import json

import pytest

from clauditor.parser import (
    parse_file,
    parse_file_from_position,
    parse_file_with_position,
    parse_files,
    parse_line,
)


def line(msg_id, input_tokens, output_tokens=0, model="claude-opus-4-20250514",
         role="assistant", usage=True, timestamp="2025-01-12T16:03:28.593Z"):
    message = {"id": msg_id, "type": "message", "role": role, "model": model}
    if usage:
        message["usage"] = {"input_tokens": input_tokens, "output_tokens": output_tokens}
    return json.dumps({
        "timestamp": timestamp,
        "message": message,
        "requestId": f"req_{msg_id}",
        "version": "1.0.51",
    })


def test_parse_valid_line():
    json_line = """{
        "timestamp": "2025-01-12T16:03:28.593Z",
        "message": {
            "id": "msg_01QB3q4aPG1gsE54YVH185S9",
            "type": "message",
            "role": "assistant",
            "model": "claude-opus-4-20250514",
            "usage": {
                "input_tokens": 10,
                "output_tokens": 7,
                "cache_creation_input_tokens": 5174,
                "cache_read_input_tokens": 13568
            }
        },
        "costUSD": 0.0125,
        "requestId": "req_011CR3QAZByoJd2TpJFRxWLf",
        "version": "1.0.51"
    }"""
    entry = parse_line(json_line)
    assert entry.message.model == "claude-opus-4-20250514"
    assert entry.message.usage.input_tokens == 10
    assert entry.message.usage.output_tokens == 7
    assert entry.message.usage.cache_creation_input_tokens == 5174
    assert entry.message.usage.cache_read_input_tokens == 13568
    assert entry.cost_usd == 0.0125


def test_parse_line_without_usage():
    json_line = """{
        "timestamp": "2025-01-12T16:03:28.593Z",
        "message": {
            "id": "msg_01QB3q4aPG1gsE54YVH185S9",
            "type": "message",
            "role": "user",
            "model": "claude-opus-4-20250514"
        },
        "requestId": "req_011CR3QAZByoJd2TpJFRxWLf",
        "version": "1.0.51"
    }"""
    assert parse_line(json_line) is None


@pytest.mark.parametrize(
    "bad", ["not json at all", "{invalid json", "", "   ", '{"partial": "json', "[1, 2]"]
)
def test_parse_malformed_line(bad):
    assert parse_line(bad) is None


def test_parse_line_with_minimal_usage():
    json_line = """{
        "timestamp": "2025-01-12T16:03:28.593Z",
        "message": {
            "id": "msg_01QB3q4aPG1gsE54YVH185S9",
            "type": "message",
            "role": "assistant",
            "model": "claude-opus-4-20250514",
            "usage": {"input_tokens": 100, "output_tokens": 50}
        },
        "requestId": "req_011CR3QAZByoJd2TpJFRxWLf",
        "version": "1.0.51"
    }"""
    usage = parse_line(json_line).message.usage
    assert usage.input_tokens == 100
    assert usage.output_tokens == 50
    assert usage.cache_creation_input_tokens == 0
    assert usage.cache_read_input_tokens == 0


@pytest.fixture
def sample_file(tmp_path):
    lines = [
        line("msg_001", 100),
        line("msg_002", 150),
        line("msg_003", 200, model="claude-sonnet-4-20250514"),
        line("msg_004", 0, role="user", usage=False),
        "{malformed",
        line("msg_005", 300),
    ]
    path = tmp_path / "sample.jsonl"
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return path


def test_parse_file(sample_file):
    entries = parse_file(sample_file)
    assert len(entries) == 4
    assert entries[0].message.id == "msg_001"
    assert entries[0].message.usage.input_tokens == 100
    assert entries[3].message.id == "msg_005"
    assert entries[3].message.usage.input_tokens == 300
    assert entries[2].message.model == "claude-sonnet-4-20250514"


def test_parse_empty_and_malformed_files(tmp_path):
    empty = tmp_path / "empty.jsonl"
    empty.write_text("")
    malformed = tmp_path / "malformed.jsonl"
    malformed.write_text("nope\n{bad\n\n")
    assert parse_file(empty) == []
    assert parse_file(malformed) == []


def test_parse_file_missing_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        parse_file(tmp_path / "missing.jsonl")


def test_parse_file_skips_invalid_utf8(tmp_path, capsys):
    path = tmp_path / "mixed.jsonl"
    path.write_bytes(
        line("a", 1).encode() + b"\n" + b"\xff\xfe\n" + line("b", 2).encode() + b"\n"
    )
    entries = parse_file(path)
    assert [e.message.id for e in entries] == ["a", "b"]
    assert "Error reading line 2" in capsys.readouterr().err


def test_parse_file_with_position(sample_file):
    entries, position = parse_file_with_position(sample_file)
    assert len(entries) == 4
    assert position == sample_file.stat().st_size


def test_parse_file_from_position_incremental(tmp_path):
    path = tmp_path / "session.jsonl"
    path.write_text(line("a", 1) + "\n" + line("b", 2) + "\n")

    entries, position = parse_file_from_position(path, 0)
    assert [e.message.id for e in entries] == ["a", "b"]
    assert position == path.stat().st_size

    with path.open("a") as handle:
        handle.write(line("c", 3) + "\n")

    entries, new_position = parse_file_from_position(path, position)
    assert [e.message.id for e in entries] == ["c"]
    assert new_position == path.stat().st_size

    entries, same_position = parse_file_from_position(path, new_position)
    assert entries == []
    assert same_position == new_position


def test_parse_file_from_position_beyond_size_rereads(tmp_path):
    path = tmp_path / "session.jsonl"
    path.write_text(line("a", 1) + "\n")
    entries, position = parse_file_from_position(path, 10_000)
    assert [e.message.id for e in entries] == ["a"]
    assert position == path.stat().st_size


def test_parse_file_from_position_stops_at_invalid_utf8(tmp_path):
    path = tmp_path / "session.jsonl"
    first = line("a", 1).encode() + b"\n"
    path.write_bytes(first + b"\xff\n" + line("b", 2).encode() + b"\n")
    entries, position = parse_file_from_position(path, 0)
    assert [e.message.id for e in entries] == ["a"]
    assert position == len(first)


def test_parse_files_skips_missing(sample_file, tmp_path, capsys):
    entries = parse_files([sample_file, tmp_path / "missing.jsonl", sample_file])
    assert len(entries) == 8
    assert "Error parsing file" in capsys.readouterr().err