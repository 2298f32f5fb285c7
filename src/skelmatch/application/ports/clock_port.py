from __future__ import annotations

from datetime import datetime
from typing import Protocol


class Clock(Protocol):
    def now(self) -> datetime:  # pragma: no cover - interface
        """Current time, timezone-aware UTC."""
        ...

    def sleep(self, seconds: float) -> None:  # pragma: no cover - interface
        ...
