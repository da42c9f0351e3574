from __future__ import annotations

import os
import time
import uuid
from typing import Optional


def generate_uuid7(ts_ms: Optional[int] = None) -> str:
    """
    Generate a UUIDv7 string (time-ordered).

    Movement log rows use these as primary keys so that ordering by id
    follows insertion time.

    Layout:
    - 48-bit Unix timestamp in milliseconds
    - 4-bit version (0b0111)
    - 74-bit randomness
    """
    if ts_ms is None:
        ts_ms = int(time.time() * 1000)
    ts_bytes = ts_ms.to_bytes(6, "big", signed=False)
    rand_bytes = os.urandom(10)
    raw = bytearray(ts_bytes + rand_bytes)
    raw[6] = (raw[6] & 0x0F) | 0x70
    raw[8] = (raw[8] & 0x3F) | 0x80
    return str(uuid.UUID(bytes=bytes(raw)))


def uuid7_timestamp_ms(value: str) -> int:
    """Recover the millisecond timestamp embedded in a UUIDv7 string."""
    return int.from_bytes(uuid.UUID(value).bytes[:6], "big")
