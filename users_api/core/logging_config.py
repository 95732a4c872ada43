"""
Root logger setup for the Users API.

Both ``python -m users_api`` and ``create_app`` call ``setup_logging`` with the
level and optional log file from ``Settings``; whichever runs first wins. The
request-log middleware, the storage adapter and the user service all log
through module loggers that propagate to the handlers attached here.
"""

import logging
from pathlib import Path

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(level: str = "INFO", logfile: str | None = None) -> bool:
    """Attach console (and optional file) handlers to the root logger.

    Returns False without touching anything when the root logger already has
    handlers (uvicorn reloads, pytest's capture handler, a second app).
    """
    root = logging.getLogger()
    if root.handlers:
        return False

    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if logfile:
        handlers.append(logging.FileHandler(Path(logfile).resolve(), encoding="utf-8"))
    for handler in handlers:
        handler.setFormatter(formatter)
        root.addHandler(handler)
    return True
