from __future__ import annotations

from typing import Protocol

from skelmatch.domain.levels import TransformLevel


class RewriteOraclePort(Protocol):
    """Opaque text transformation, e.g. semantic bleaching into a placeholder skeleton.

    Implementations raise ``OracleTransientError`` for retryable trouble (rate limits,
    timeouts, connection errors) and ``OracleFatalError`` for unusable responses.
    """

    def rewrite(self, text: str, level: TransformLevel) -> str:  # pragma: no cover - interface
        ...
