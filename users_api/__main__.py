"""
Run the Users API with uvicorn.

Usage:
  python -m users_api [--host 0.0.0.0] [--port 3000] [--data-file users.json]
"""
from __future__ import annotations

import argparse
import dataclasses
import logging
import sys
from pathlib import Path

import uvicorn

from users_api.app import create_app
from users_api.core.config import get_settings
from users_api.core.logging_config import setup_logging
from users_api.repositories.json_storage import StorageError

logger = logging.getLogger("users_api")


def main(argv: list[str] | None = None) -> int:
    settings = get_settings()
    ap = argparse.ArgumentParser(description="Users CRUD API server")
    ap.add_argument("--host", default=settings.host, help=f"bind address (default: {settings.host})")
    ap.add_argument("--port", type=int, default=settings.port, help=f"bind port (default: {settings.port})")
    ap.add_argument("--data-file", type=Path, default=settings.data_file, help="JSON file holding the users")
    args = ap.parse_args(argv)

    settings = dataclasses.replace(
        settings,
        host=args.host,
        port=args.port,
        data_file=args.data_file.resolve(),
    )
    setup_logging(settings.log_level, settings.log_file)

    try:
        app = create_app(settings)
    except StorageError:
        logger.exception("Failed to load initial data from %s", settings.data_file)
        return 1

    logger.info("Server is listening on http://%s:%d", settings.host, settings.port)
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())
    return 0


if __name__ == "__main__":
    sys.exit(main())
