from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True, slots=True)
class CacheEntry:
    """One stored payload and the monotonic time it was inserted."""

    key: str
    payload: Any
    inserted_at: float
