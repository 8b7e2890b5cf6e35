"""Process-wide logging setup."""
from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Install a single stream handler on the package logger.

    Safe to call more than once (the app factory may run per test).
    """
    package_logger = logging.getLogger("garage_auth")
    package_logger.setLevel(level)
    if not any(getattr(h, "_garage_auth", False) for h in package_logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._garage_auth = True  # type: ignore[attr-defined]
        package_logger.addHandler(handler)
