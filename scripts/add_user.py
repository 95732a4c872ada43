#!/usr/bin/env python3
"""
Add a user directly to the JSON backing store (server should be stopped).

Usage:
  python scripts/add_user.py --name "Diana" [--field email=diana@example.com] [--data-file users.json]
"""
from __future__ import annotations

import argparse
from pathlib import Path

from users_api.core.config import get_settings
from users_api.repositories.json_storage import JsonUserStorage, StorageError
from users_api.services.user_service import UserService, UserValidationError


def parse_field(value: str) -> tuple[str, str]:
    key, sep, val = value.partition("=")
    if not sep or not key.strip():
        raise argparse.ArgumentTypeError(f"expected key=value, got '{value}'")
    return key.strip(), val


def main(argv: list[str] | None = None) -> None:
    settings = get_settings()
    ap = argparse.ArgumentParser(description="Add a user to the JSON store")
    ap.add_argument("--name", required=True, help="User name")
    ap.add_argument("--field", action="append", type=parse_field, default=[], help="Extra field as key=value (repeatable)")
    ap.add_argument("--data-file", type=Path, default=settings.data_file, help="JSON file holding the users")
    args = ap.parse_args(argv)

    payload = dict(args.field)
    payload["name"] = args.name

    svc = UserService(JsonUserStorage(args.data_file))
    try:
        svc.load()
        user = svc.create(payload)
    except UserValidationError as exc:
        raise SystemExit(str(exc))
    except StorageError as exc:
        raise SystemExit(f"Storage error: {exc}")
    print(f"OK: user {user['id']} ({user['name']}) saved to {args.data_file}")


if __name__ == "__main__":
    main()
