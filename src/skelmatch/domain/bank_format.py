from __future__ import annotations

"""Sentence bank file formats.

Two formats are understood:

- JSONL: one JSON object per line with the keys of ``SentenceBankEntry.to_record``.
  Files written by older tools use ``bleached`` (or ``structure``) instead of
  ``skeleton`` and arrow labels for ``clause_order``; both are accepted.
- TXT: the human-readable dump made of ``--- Pattern N ---`` blocks.

Parsing never raises on a bad line or block; problems are collected in
``ParsedBank.errors`` and the caller decides what to do with them.
"""

import json  # noqa: E402
import re  # noqa: E402
from collections.abc import Iterable, Mapping  # noqa: E402
from dataclasses import dataclass, field  # noqa: E402
from typing import Any  # noqa: E402

from .features import ClauseOrder, extract_features  # noqa: E402
from .fingerprint import SentenceBankEntry  # noqa: E402

_BLOCK_SPLIT_RE = re.compile(r"---\s*Pattern\s*\d+\s*---", re.IGNORECASE)
_ORIGINAL_RE = re.compile(r"Original:\s*(.+?)(?:\n|$)", re.IGNORECASE)
_SKELETON_RE = re.compile(r"(?:Skeleton|Bleached):\s*(.+?)(?:\n|$)", re.IGNORECASE)
_STATS_RE = re.compile(
    r"Chars:\s*(\d+)\s*\|\s*Tokens:\s*(\d+)\s*\|\s*Clauses:\s*(\d+)", re.IGNORECASE
)
_ORDER_RE = re.compile(r"Clause Order:\s*(.+?)(?:\n|$)", re.IGNORECASE)
_PUNCT_RE = re.compile(r"Punctuation:\s*(.+?)(?:\n|$)", re.IGNORECASE)

NO_PUNCTUATION = "(none)"
TXT_HEADER = "=== SENTENCE BANK ==="


@dataclass
class ParsedBank:
    format: str
    entries: list[SentenceBankEntry] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)


def detect_format(content: str) -> str:
    """Return "jsonl" when the content looks like JSON lines, else "txt"."""
    stripped = (content or "").strip()
    if stripped.startswith("{"):
        return "jsonl"
    for line in stripped.splitlines():
        line = line.strip()
        if not line:
            continue
        try:
            if isinstance(json.loads(line), dict):
                return "jsonl"
        except ValueError:
            continue
    return "txt"


def entry_from_record(record: Mapping[str, Any], owner: str | None = None) -> SentenceBankEntry:
    """Build an entry from a JSON record. Raises ValueError/TypeError when malformed."""
    original = record.get("original")
    skeleton = record.get("skeleton") or record.get("bleached") or record.get("structure")
    if not isinstance(original, str) or not original.strip():
        raise ValueError("missing 'original'")
    if not isinstance(skeleton, str) or not skeleton.strip():
        raise ValueError("missing 'skeleton'")
    # Absent numeric fields are recomputed from the original sentence
    derived = extract_features(original)
    order_raw = record.get("clause_order")
    clause_count = int(record.get("clause_count", derived.clause_count))
    if clause_count < 1:
        raise ValueError("clause_count must be >= 1")
    return SentenceBankEntry(
        original=original,
        skeleton=skeleton,
        char_length=int(record.get("char_length", derived.char_length)),
        token_length=int(record.get("token_length", derived.token_length)),
        clause_count=clause_count,
        clause_order=ClauseOrder.parse(order_raw) if order_raw else derived.clause_order,
        punctuation_pattern=str(record.get("punctuation_pattern", derived.punctuation_pattern)),
        owner=owner,
    )


def parse_jsonl(content: str, owner: str | None = None) -> ParsedBank:
    out = ParsedBank(format="jsonl")
    lines = [ln for ln in (content or "").splitlines() if ln.strip()]
    for i, line in enumerate(lines, 1):
        try:
            record = json.loads(line)
            if not isinstance(record, dict):
                raise ValueError("not a JSON object")
            if record.get("error"):
                raise ValueError("failed record")
            out.entries.append(entry_from_record(record, owner))
        except (ValueError, TypeError) as e:
            out.errors.append(f"Line {i}: Invalid entry ({e})")
    return out


def parse_txt(content: str, owner: str | None = None) -> ParsedBank:
    out = ParsedBank(format="txt")
    blocks = [b for b in _BLOCK_SPLIT_RE.split(content or "") if b.strip()]
    for i, block in enumerate(blocks, 1):
        original_m = _ORIGINAL_RE.search(block)
        skeleton_m = _SKELETON_RE.search(block)
        if not (original_m and skeleton_m):
            # The file header is split off as the first block
            if "SENTENCE BANK" not in block and "Total Patterns" not in block:
                out.errors.append(f"Block {i}: Missing Original or Skeleton field")
            continue
        original = original_m.group(1).strip()
        derived = extract_features(original)
        stats_m = _STATS_RE.search(block)
        order_m = _ORDER_RE.search(block)
        punct_m = _PUNCT_RE.search(block)
        try:
            order = ClauseOrder.parse(order_m.group(1)) if order_m else ClauseOrder.MAIN_FIRST
        except ValueError as e:
            out.errors.append(f"Block {i}: {e}")
            continue
        punct = punct_m.group(1).strip() if punct_m else ""
        out.entries.append(
            SentenceBankEntry(
                original=original,
                skeleton=skeleton_m.group(1).strip(),
                char_length=int(stats_m.group(1)) if stats_m else derived.char_length,
                token_length=int(stats_m.group(2)) if stats_m else derived.token_length,
                clause_count=max(1, int(stats_m.group(3))) if stats_m else 1,
                clause_order=order,
                punctuation_pattern="" if punct == NO_PUNCTUATION else punct,
                owner=owner,
            )
        )
    return out


def parse_bank(content: str, owner: str | None = None) -> ParsedBank:
    if detect_format(content) == "jsonl":
        return parse_jsonl(content, owner)
    return parse_txt(content, owner)


def to_jsonl(entries: Iterable[SentenceBankEntry]) -> str:
    return "\n".join(json.dumps(e.to_record(), ensure_ascii=False) for e in entries)


def to_txt(entries: Iterable[SentenceBankEntry]) -> str:
    items = list(entries)
    lines = [TXT_HEADER, f"Total Patterns: {len(items)}", ""]
    for n, e in enumerate(items, 1):
        lines.extend(
            [
                f"--- Pattern {n} ---",
                f"Original: {e.original}",
                f"Skeleton: {e.skeleton}",
                f"Chars: {e.char_length} | Tokens: {e.token_length} | Clauses: {e.clause_count}",
                f"Clause Order: {e.clause_order.value}",
                f"Punctuation: {e.punctuation_pattern or NO_PUNCTUATION}",
                "",
            ]
        )
    return "\n".join(lines)
