"""Logging setup for the app process."""

from __future__ import annotations

import logging

_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Attach a single stream handler to the package logger (idempotent)."""
    root = logging.getLogger("scholarmind")
    root.setLevel(getattr(logging, (level or "INFO").upper(), logging.INFO))
    if any(getattr(h, "_scholarmind", False) for h in root.handlers):
        return
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(_FORMAT))
    handler._scholarmind = True  # type: ignore[attr-defined]
    root.addHandler(handler)
