"""
JSON-based persistence adapter.

The whole collection lives in one pretty-printed JSON array. Every save
rewrites the file through a temporary sibling followed by ``os.replace`` so a
crash mid-write never leaves a truncated document behind.

The id counter is kept in a sidecar document (``<data file>.meta.json``) so
the collection file stays a plain array.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any
import json
import logging
import math
import os
import tempfile

from users_api.domain.users import Record

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """Base exception for the persistence layer."""


class StorageParseError(StorageError):
    """Raised when the backing store exists but its content is malformed."""


class StorageIOError(StorageError):
    """Raised when the backing store cannot be read or written."""


def _reject_constant(token: str) -> Any:
    raise ValueError(f"{token} is not valid JSON")


def _finite_float(token: str) -> float:
    value = float(token)
    if not math.isfinite(value):
        raise ValueError(f"{token} is out of range")
    return value


def _atomic_write(path: Path, payload: Any) -> None:
    try:
        text = json.dumps(payload, ensure_ascii=False, indent=2, allow_nan=False)
    except (TypeError, ValueError) as exc:
        raise StorageParseError(f"Cannot serialize {path.name}: {exc}") from exc
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(text)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_name, path)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except FileNotFoundError:
            pass
        raise


def _read_json(path: Path) -> Any:
    """Return the decoded document, or None when the file is missing or blank."""
    try:
        raw = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return None
    except UnicodeDecodeError as exc:
        raise StorageParseError(f"{path} is not valid UTF-8: {exc}") from exc
    except OSError as exc:
        raise StorageIOError(f"Could not read {path}: {exc}") from exc
    if not raw.strip():
        return None
    try:
        return json.loads(raw, parse_constant=_reject_constant, parse_float=_finite_float)
    except ValueError as exc:
        raise StorageParseError(f"Malformed JSON in {path}: {exc}") from exc


class JsonUserStorage:
    """Reads/writes the user collection as a single JSON document."""

    def __init__(self, data_file: Path | str, counter_file: Path | str | None = None) -> None:
        self.data_file = Path(data_file)
        if counter_file is None:
            counter_file = self.data_file.with_name(self.data_file.name + ".meta.json")
        self.counter_file = Path(counter_file)

    def load(self) -> list[Record]:
        data = _read_json(self.data_file)
        if data is None:
            logger.info("No data file at %s, starting with an empty collection", self.data_file)
            return []
        if not isinstance(data, list):
            raise StorageParseError(f"{self.data_file} must contain a JSON array")
        seen: set[int] = set()
        for idx, record in enumerate(data):
            if not isinstance(record, dict):
                raise StorageParseError(f"Entry #{idx} in {self.data_file} is not an object")
            user_id = record.get("id")
            if isinstance(user_id, bool) or not isinstance(user_id, int):
                raise StorageParseError(f"Entry #{idx} in {self.data_file} has no integer id")
            if user_id in seen:
                raise StorageParseError(f"Duplicate id {user_id} in {self.data_file}")
            seen.add(user_id)
        return data

    def save(self, records: list[Record]) -> None:
        try:
            _atomic_write(self.data_file, list(records))
        except OSError as exc:
            raise StorageIOError(f"Could not write {self.data_file}: {exc}") from exc

    def load_next_id(self) -> int:
        """Next id to hand out, or 1 when no counter was persisted yet."""
        data = _read_json(self.counter_file)
        if data is None:
            return 1
        value = data.get("next_id") if isinstance(data, dict) else None
        if isinstance(value, bool) or not isinstance(value, int) or value < 1:
            raise StorageParseError(f"{self.counter_file} has no valid next_id")
        return value

    def save_next_id(self, next_id: int) -> None:
        try:
            _atomic_write(self.counter_file, {"next_id": next_id})
        except OSError as exc:
            raise StorageIOError(f"Could not write {self.counter_file}: {exc}") from exc
