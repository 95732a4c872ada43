"""Domain helpers for user record validation and lookups."""
from __future__ import annotations

from typing import Any, Iterable, Mapping

Record = dict[str, Any]


def has_valid_name(payload: Any) -> bool:
    """Return True when payload is a mapping carrying a non-empty string name."""
    if not isinstance(payload, Mapping):
        return False
    name = payload.get("name")
    return isinstance(name, str) and name != ""


def find_index(records: Iterable[Mapping[str, Any]], user_id: int) -> int | None:
    """Linear scan for the first record whose id equals user_id."""
    for idx, record in enumerate(records):
        if record.get("id") == user_id:
            return idx
    return None


def max_id(records: Iterable[Mapping[str, Any]]) -> int:
    return max((int(r["id"]) for r in records), default=0)


def build_record(user_id: int, payload: Mapping[str, Any]) -> Record:
    """New record with the assigned id first and the client's fields after it."""
    record: Record = {"id": user_id}
    for key, value in payload.items():
        if key == "id":
            continue
        record[key] = value
    return record
