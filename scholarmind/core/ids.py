"""Identifier allocation for Subject and Goal records."""

from __future__ import annotations

import secrets
import time
from typing import Collection

_DIGITS = "0123456789abcdefghijklmnopqrstuvwxyz"


def _base36(value: int) -> str:
    if value == 0:
        return "0"
    out = []
    while value:
        value, rem = divmod(value, 36)
        out.append(_DIGITS[rem])
    return "".join(reversed(out))


def new_id(taken: Collection[str] = ()) -> str:
    """
    Return a new opaque id: millisecond timestamp (base 36) plus random hex.

    Ids listed in ``taken`` are never returned.
    """
    while True:
        candidate = f"{_base36(time.time_ns() // 1_000_000)}{secrets.token_hex(5)}"
        if candidate not in taken:
            return candidate
