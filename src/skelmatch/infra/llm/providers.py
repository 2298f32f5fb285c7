from __future__ import annotations

"""Rewrite oracle adapters implementing the RewriteOraclePort contract.

Adapters:
- DummyRewriteOracle: dependency-free, deterministic placeholder skeletons for tests and
  offline use.
- OpenAIRewriteOracle: wraps langchain-openai ChatOpenAI and maps client failures onto
  the transient/fatal oracle error split used by the retry policies.
"""

import logging  # noqa: E402
import re  # noqa: E402
from dataclasses import dataclass, field  # noqa: E402
from typing import Any  # noqa: E402

from skelmatch.application.ports.oracle_port import RewriteOraclePort  # noqa: E402
from skelmatch.domain.levels import TransformLevel  # noqa: E402
from skelmatch.domain.scoring import FUNCTION_WORDS  # noqa: E402
from skelmatch.exceptions import (  # noqa: E402
    ConfigurationError,
    OracleFatalError,
    OracleTransientError,
)
from skelmatch.infra.prompting.templates import build_bleach_prompt  # noqa: E402

logger = logging.getLogger(__name__)

_WORD_RE = re.compile(r"[A-Za-z][A-Za-z']*")
_LETTERS = "ABCDEFGHJKLMNOPQRSTUVWXYZ"

# Shortest word length replaced at each level
_MIN_LENGTH = {
    TransformLevel.LIGHT: 9,
    TransformLevel.MODERATE: 7,
    TransformLevel.MODERATE_HEAVY: 5,
    TransformLevel.HEAVY: 1,
    TransformLevel.VERY_HEAVY: 1,
}


def _suffix(word: str) -> tuple[str, int]:
    """Placeholder suffix and the number of trailing characters it stands for."""
    w = word.lower()
    if w.endswith("ing") and len(w) > 4:
        return "-ing", 3
    if w.endswith("ed") and len(w) > 3:
        return "-ed", 2
    if w.endswith("s") and not w.endswith("ss") and len(w) > 3:
        return "'s", 1
    return "", 0


@dataclass
class DummyRewriteOracle(RewriteOraclePort):
    """Replace content words with letter placeholders, keep everything else.

    The same word maps to the same placeholder within one call. Past Z the
    placeholders continue as Ω1, Ω2, ...
    """

    calls: int = field(default=0, init=False)

    def rewrite(self, text: str, level: TransformLevel) -> str:
        self.calls += 1
        min_len = _MIN_LENGTH[TransformLevel.parse(level)]
        mapping: dict[str, str] = {}

        def _placeholder(stem: str) -> str:
            if stem not in mapping:
                n = len(mapping)
                mapping[stem] = _LETTERS[n] if n < len(_LETTERS) else f"Ω{n - len(_LETTERS) + 1}"
            return mapping[stem]

        def _sub(m: re.Match[str]) -> str:
            word = m.group(0)
            if word.lower() in FUNCTION_WORDS or len(word) < min_len:
                return word
            suffix, cut = _suffix(word)
            stem = word.lower()[: len(word) - cut]
            return _placeholder(stem) + suffix

        return _WORD_RE.sub(_sub, text).strip()


def _classify(exc: Exception) -> Exception:
    """Map an OpenAI client error to OracleTransientError / OracleFatalError."""
    try:
        import openai
    except Exception:  # pragma: no cover - openai ships with langchain-openai
        return OracleFatalError(str(exc))

    transient = (
        openai.RateLimitError,
        openai.APITimeoutError,
        openai.APIConnectionError,
        openai.InternalServerError,
    )
    if isinstance(exc, transient):
        return OracleTransientError(f"{exc.__class__.__name__}: {exc}")
    if isinstance(exc, openai.APIStatusError) and getattr(exc, "status_code", 0) in (409, 429, 529):
        return OracleTransientError(f"{exc.__class__.__name__}: {exc}")
    if isinstance(exc, TimeoutError | ConnectionError):
        return OracleTransientError(str(exc) or exc.__class__.__name__)
    return OracleFatalError(f"{exc.__class__.__name__}: {exc}")


@dataclass
class OpenAIRewriteOracle(RewriteOraclePort):
    """OpenAI chat model used as the rewrite oracle.

    Retries are owned by the caller's RetryPolicy, so the client's own retry loop is
    disabled. The request timeout is enforced by the client.
    """

    model: str
    api_key: str | None = None
    base_url: str | None = None
    temperature: float = 0.0
    max_tokens: int | None = 2048
    timeout_seconds: float = 25.0
    _chat: Any = field(default=None, init=False, repr=False)

    def __post_init__(self) -> None:  # lazy import and instantiate client
        try:
            from langchain_openai import ChatOpenAI
        except Exception as e:  # pragma: no cover - import guarded
            raise ConfigurationError(
                "langchain-openai is required for OpenAIRewriteOracle.\n"
                "Install with: pip install langchain-openai openai"
            ) from e

        kwargs: dict[str, object] = {
            "model": self.model,
            "temperature": float(self.temperature),
            "timeout": float(self.timeout_seconds),
            "max_retries": 0,
        }
        if self.api_key:
            kwargs["api_key"] = self.api_key
        if self.base_url:
            kwargs["base_url"] = self.base_url
        if self.max_tokens is not None:
            kwargs["max_tokens"] = int(self.max_tokens)
        self._chat = ChatOpenAI(**kwargs)

    def rewrite(self, text: str, level: TransformLevel) -> str:
        from langchain_core.messages import HumanMessage, SystemMessage

        system, user = build_bleach_prompt(text, TransformLevel.parse(level))
        try:
            resp = self._chat.invoke([SystemMessage(content=system), HumanMessage(content=user)])
        except Exception as e:
            mapped = _classify(e)
            logger.warning("Oracle call failed (%s): %s", type(mapped).__name__, e)
            raise mapped from e

        content = getattr(resp, "content", None)
        if not isinstance(content, str):
            raise OracleFatalError("Unexpected response type from chat model")
        out = content.strip()
        if not out:
            raise OracleFatalError("Chat model returned an empty response")
        return out


__all__ = ["DummyRewriteOracle", "OpenAIRewriteOracle"]
