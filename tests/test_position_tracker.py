import json

import pytest

from clauditor.position_tracker import FilePositionTracker


@pytest.fixture
def tracker(tmp_path):
    return FilePositionTracker(tmp_path / "cache.json")


def test_position_tracking(tmp_path, tracker):
    test_file = tmp_path / "test.jsonl"
    assert tracker.get_position(test_file) == 0
    tracker.set_position(test_file, 1024)
    assert tracker.get_position(test_file) == 1024
    tracker.set_position(test_file, 2048)
    assert tracker.get_position(test_file) == 2048


def test_str_and_path_keys_match(tmp_path, tracker):
    test_file = tmp_path / "test.jsonl"
    tracker.set_position(str(test_file), 77)
    assert tracker.get_position(test_file) == 77


def test_validate_position(tmp_path, tracker):
    test_file = tmp_path / "test.jsonl"
    tracker.set_position(test_file, 1000)
    assert tracker.validate_position(test_file, 2000) == 1000
    assert tracker.validate_position(test_file, 1000) == 1000
    assert tracker.validate_position(test_file, 500) == 0


def test_persistence(tmp_path):
    cache_file = tmp_path / "test_cache.json"
    first = FilePositionTracker(cache_file)
    first.set_position("/test/file.jsonl", 12345)
    first.save()

    second = FilePositionTracker(cache_file)
    assert second.get_position("/test/file.jsonl") == 12345


def test_explicit_load_replaces_positions(tmp_path):
    cache_file = tmp_path / "cache.json"
    tracker = FilePositionTracker(cache_file)
    tracker.set_position("/a.jsonl", 5)
    cache_file.write_text(json.dumps({"/b.jsonl": 9}), encoding="utf-8")
    tracker.load()
    assert tracker.positions == {"/b.jsonl": 9}


def test_saved_file_is_json_mapping(tmp_path):
    cache_file = tmp_path / "cache.json"
    tracker = FilePositionTracker(cache_file)
    tracker.set_position("/x.jsonl", 42)
    tracker.save()
    assert json.loads(cache_file.read_text(encoding="utf-8")) == {"/x.jsonl": 42}


def test_corrupt_cache_is_ignored_on_construction(tmp_path):
    cache_file = tmp_path / "cache.json"
    cache_file.write_text("{not json", encoding="utf-8")
    tracker = FilePositionTracker(cache_file)
    assert tracker.positions == {}


def test_corrupt_cache_raises_on_load(tmp_path):
    cache_file = tmp_path / "cache.json"
    tracker = FilePositionTracker(cache_file)
    cache_file.write_text("[1, 2, 3]", encoding="utf-8")
    with pytest.raises(ValueError):
        tracker.load()


def test_context_manager_saves(tmp_path):
    cache_file = tmp_path / "cache.json"
    with FilePositionTracker(cache_file) as tracker:
        tracker.set_position("/y.jsonl", 7)
    assert FilePositionTracker(cache_file).get_position("/y.jsonl") == 7


def test_cleanup(tmp_path, tracker):
    existing_file = tmp_path / "exists.jsonl"
    existing_file.touch()
    missing_file = "/nonexistent/file.jsonl"

    tracker.set_position(existing_file, 100)
    tracker.set_position(missing_file, 200)
    assert len(tracker.positions) == 2

    tracker.cleanup()

    assert len(tracker.positions) == 1
    assert tracker.get_position(existing_file) == 100
    assert tracker.get_position(missing_file) == 0