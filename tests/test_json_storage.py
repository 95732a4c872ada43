"""
Tests for the JSON persistence adapter against temporary files.
"""
from __future__ import annotations

import json
import sys
from pathlib import Path

import pytest

# Keeps the users_api package importable when running tests from a checkout
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from users_api.repositories.json_storage import (  # noqa: E402
    JsonUserStorage,
    StorageIOError,
    StorageParseError,
)


@pytest.fixture()
def storage(tmp_path):
    return JsonUserStorage(tmp_path / "users.json")


def test_missing_file_loads_as_empty_collection(storage):
    assert storage.load() == []
    assert not storage.data_file.exists()


def test_blank_file_loads_as_empty_collection(storage):
    storage.data_file.write_text("  \n", encoding="utf-8")
    assert storage.load() == []


def test_save_writes_pretty_printed_array(storage):
    storage.save([{"id": 1, "name": "Alice"}])

    text = storage.data_file.read_text(encoding="utf-8")
    assert text == '[\n  {\n    "id": 1,\n    "name": "Alice"\n  }\n]'


def test_save_keeps_non_ascii_verbatim(storage):
    storage.save([{"id": 1, "name": "José"}])
    assert "José" in storage.data_file.read_text(encoding="utf-8")


def test_round_trip_preserves_order_and_fields(storage):
    records = [
        {"id": 3, "name": "Carol", "email": "carol@example.com"},
        {"id": 1, "name": "Alice", "tags": ["a", "b"]},
        {"id": 2, "name": "Bob", "meta": {"age": 30}},
    ]
    storage.save(records)
    storage.save(storage.load())

    assert storage.load() == records
    assert [r["id"] for r in storage.load()] == [3, 1, 2]


def test_save_leaves_no_temporary_files(storage, tmp_path):
    storage.save([{"id": 1, "name": "Alice"}])
    storage.save([{"id": 1, "name": "Alice"}, {"id": 2, "name": "Bob"}])

    assert sorted(p.name for p in tmp_path.iterdir()) == ["users.json"]


@pytest.mark.parametrize(
    "content",
    [
        b"{not json",
        b'{"id": 1, "name": "Alice"}',
        b'["Alice"]',
        b'[{"name": "Alice"}]',
        b'[{"id": "1", "name": "Alice"}]',
        b'[{"id": 1, "name": "Alice"}, {"id": 1, "name": "Bob"}]',
        b'[{"id": 1, "name": "\xff"}]',
        b'[{"id": 1, "name": "Alice", "score": NaN}]',
        b'[{"id": 1, "name": "Alice", "score": -Infinity}]',
        b'[{"id": 1, "name": "Alice", "score": 1e400}]',
    ],
)
def test_malformed_content_raises_parse_error(storage, content):
    storage.data_file.write_bytes(content)
    with pytest.raises(StorageParseError):
        storage.load()


@pytest.mark.parametrize("value", [float("nan"), float("inf"), float("-inf")])
def test_save_refuses_non_finite_numbers(storage, value):
    storage.save([{"id": 1, "name": "Alice"}])

    with pytest.raises(StorageParseError):
        storage.save([{"id": 1, "name": "Alice", "score": value}])

    assert storage.load() == [{"id": 1, "name": "Alice"}]


def test_unreadable_store_raises_io_error(tmp_path):
    target = tmp_path / "users.json"
    target.mkdir()
    storage = JsonUserStorage(target)

    with pytest.raises(StorageIOError):
        storage.load()
    with pytest.raises(StorageIOError):
        storage.save([{"id": 1, "name": "Alice"}])


def test_failed_save_removes_temporary_file(tmp_path):
    target = tmp_path / "users.json"
    target.mkdir()
    storage = JsonUserStorage(target, counter_file=tmp_path / "meta.json")

    with pytest.raises(StorageIOError):
        storage.save([{"id": 1, "name": "Alice"}])
    assert sorted(p.name for p in tmp_path.iterdir()) == ["users.json"]


def test_counter_defaults_to_one_and_round_trips(storage):
    assert storage.load_next_id() == 1

    storage.save_next_id(7)

    assert storage.load_next_id() == 7
    assert json.loads(storage.counter_file.read_text(encoding="utf-8")) == {"next_id": 7}
    assert storage.counter_file.name == "users.json.meta.json"


@pytest.mark.parametrize("content", ["[]", '{"next_id": 0}', '{"next_id": "3"}', "oops"])
def test_malformed_counter_raises_parse_error(storage, content):
    storage.counter_file.write_text(content, encoding="utf-8")
    with pytest.raises(StorageParseError):
        storage.load_next_id()
