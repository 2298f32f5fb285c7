from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


@dataclass(frozen=True)
class Outcome(Generic[R]):
    index: int
    value: R | None = None
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def _run_one(index: int, item: T, fn: Callable[[T], R]) -> Outcome[R]:
    try:
        return Outcome(index=index, value=fn(item))
    except Exception as e:
        return Outcome(index=index, error=e)


def run_in_groups(
    items: Sequence[T],
    fn: Callable[[T], R],
    *,
    group_size: int,
    delay_seconds: float,
    sleep: Callable[[float], None],
) -> list[Outcome[R]]:
    """Apply ``fn`` to every item, ``group_size`` at a time, pausing between groups.

    Outcomes come back in input order whatever the completion order was. Exceptions
    raised by ``fn`` are captured per item and never abort the other items.
    """
    size = max(1, int(group_size))
    out: list[Outcome[R]] = []
    for start in range(0, len(items), size):
        if start > 0 and delay_seconds > 0:
            sleep(delay_seconds)
        group = list(enumerate(items[start : start + size], start))
        if size == 1:
            out.extend(_run_one(i, item, fn) for i, item in group)
            continue
        with ThreadPoolExecutor(max_workers=len(group)) as executor:
            futures = [executor.submit(_run_one, i, item, fn) for i, item in group]
            out.extend(f.result() for f in futures)
    return out
