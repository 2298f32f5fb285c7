from __future__ import annotations

from collections.abc import Iterable
from typing import Protocol

from skelmatch.domain.fingerprint import SentenceBankEntry


class SentenceBankStorePort(Protocol):
    """Append-only store of structural patterns, optionally scoped by owner."""

    def add(self, entry: SentenceBankEntry) -> SentenceBankEntry:  # pragma: no cover - interface
        ...

    def add_many(self, entries: Iterable[SentenceBankEntry]) -> int:  # pragma: no cover - interface
        ...

    def all(self) -> list[SentenceBankEntry]:  # pragma: no cover - interface
        ...

    def by_owner(self, owner: str | None) -> list[SentenceBankEntry]:  # pragma: no cover - interface
        """Entries of ``owner``; ``None`` returns the whole bank."""
        ...

    def count(self, owner: str | None = None) -> int:  # pragma: no cover - interface
        ...

    def existing_skeletons(
        self, owner: str | None, skeletons: Iterable[str]
    ) -> set[str]:  # pragma: no cover - interface
        """Subset of ``skeletons`` already stored for ``owner``."""
        ...
