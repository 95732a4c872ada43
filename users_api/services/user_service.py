"""User use cases (listing, lookup, create/update/delete with persistence)."""

from __future__ import annotations

import copy
import logging
import threading
from typing import Any

from users_api.domain.users import Record, build_record, find_index, has_valid_name, max_id
from users_api.repositories.json_storage import JsonUserStorage

logger = logging.getLogger(__name__)


class UserError(Exception):
    """Base exception for user workflow."""


class UserNotFoundError(UserError):
    """Raised when no record carries the requested id."""


class UserValidationError(UserError):
    """Raised when a payload lacks a non-empty name."""


class UserService:
    """Owns the in-memory collection and persists it after every mutation.

    All reads and writes go through one lock, held across the mutation and the
    storage call, so interleaved requests cannot lose updates.
    """

    def __init__(self, storage: JsonUserStorage) -> None:
        self.storage = storage
        self._records: list[Record] = []
        self._next_id = 1
        self._lock = threading.Lock()

    def load(self) -> int:
        """Populate the collection from storage. Returns the number of users loaded."""
        with self._lock:
            records = self.storage.load()
            persisted_next = self.storage.load_next_id()
            self._records = records
            self._next_id = max(persisted_next, max_id(records) + 1)
            return len(records)

    def list_all(self) -> list[Record]:
        with self._lock:
            return copy.deepcopy(self._records)

    def get_by_id(self, user_id: int) -> Record:
        with self._lock:
            idx = find_index(self._records, user_id)
            if idx is None:
                raise UserNotFoundError(f"User {user_id} not found")
            return copy.deepcopy(self._records[idx])

    def create(self, payload: Any) -> Record:
        if not has_valid_name(payload):
            raise UserValidationError("Name is a required field")
        with self._lock:
            new_id = self._next_id
            record = build_record(new_id, copy.deepcopy(payload))
            self._next_id = new_id + 1
            self._records.append(record)
            try:
                self.storage.save_next_id(self._next_id)
                self.storage.save(self._records)
            except Exception:
                self._records.pop()
                logger.exception("Could not persist new user %s", new_id)
                raise
            logger.info("Created user %s", new_id)
            return copy.deepcopy(record)

    def update(self, user_id: int, payload: Any) -> Record:
        with self._lock:
            idx = find_index(self._records, user_id)
            if idx is None:
                raise UserNotFoundError(f"User {user_id} not found")
            if not has_valid_name(payload):
                raise UserValidationError("Name is a required field")
            record = self._records[idx]
            had_name = "name" in record
            previous = record.get("name")
            record["name"] = payload["name"]
            try:
                self.storage.save(self._records)
            except Exception:
                if had_name:
                    record["name"] = previous
                else:
                    record.pop("name", None)
                logger.exception("Could not persist update of user %s", user_id)
                raise
            logger.info("Updated user %s", user_id)
            return copy.deepcopy(record)

    def delete(self, user_id: int) -> None:
        with self._lock:
            idx = find_index(self._records, user_id)
            if idx is None:
                raise UserNotFoundError(f"User {user_id} not found")
            removed = self._records.pop(idx)
            try:
                self.storage.save(self._records)
            except Exception:
                self._records.insert(idx, removed)
                logger.exception("Could not persist deletion of user %s", user_id)
                raise
            logger.info("Deleted user %s", user_id)
