from __future__ import annotations

import json

from skelmatch.domain.bank_format import detect_format, parse_bank, parse_jsonl, to_jsonl, to_txt
from skelmatch.domain.features import ClauseOrder
from skelmatch.domain.fingerprint import build_fingerprint


def test_jsonl_accepts_legacy_keys_and_arrow_orders() -> None:
    line = json.dumps(
        {
            "original": "When it rains, we stay in.",
            "bleached": "When it A, we B in.",
            "char_length": 26,
            "token_length": 6,
            "clause_count": 1,
            "clause_order": "subordinate → main",
            "punctuation_pattern": ",.",
        },
        ensure_ascii=False,
    )
    parsed = parse_jsonl(line, owner="alice")
    assert parsed.errors == []
    (entry,) = parsed.entries
    assert entry.skeleton == "When it A, we B in."
    assert entry.clause_order is ClauseOrder.SUBORDINATE_FIRST
    assert entry.owner == "alice"


def test_jsonl_collects_bad_lines_and_skips_failed_records() -> None:
    good = json.dumps({"original": "The cat sat.", "skeleton": "The A B."})
    failed = json.dumps({"original": "Oops.", "skeleton": "[FAILED]", "error": True})
    parsed = parse_bank("\n".join([good, "{not json", failed, "[1, 2]"]))
    assert parsed.format == "jsonl"
    assert len(parsed.entries) == 1
    assert len(parsed.errors) == 3
    assert parsed.errors[0].startswith("Line 2")
    # Missing metadata is derived from the original sentence
    assert parsed.entries[0].char_length == 12
    assert parsed.entries[0].token_length == 3


def test_txt_dump_parses_back() -> None:
    entries = [
        build_fingerprint("When it rains, we stay in.", "When it A, we B in.").to_entry(),
        build_fingerprint("Stop", "A").to_entry(),
    ]
    text = to_txt(entries)
    assert text.startswith("=== SENTENCE BANK ===")
    assert "Punctuation: (none)" in text
    assert detect_format(text) == "txt"

    parsed = parse_bank(text)
    assert parsed.errors == []
    assert [e.to_record() for e in parsed.entries] == [e.to_record() for e in entries]


def test_txt_accepts_bleached_label_and_reports_broken_blocks() -> None:
    content = (
        "--- Pattern 1 ---\n"
        "Original: The cat sat.\n"
        "Bleached: The A B.\n"
        "Chars: 12 | Tokens: 3 | Clauses: 1\n"
        "Clause Order: main → subordinate\n"
        "Punctuation: .\n\n"
        "--- Pattern 2 ---\n"
        "Original: No skeleton here.\n"
    )
    parsed = parse_bank(content)
    assert parsed.format == "txt"
    assert [e.skeleton for e in parsed.entries] == ["The A B."]
    assert parsed.entries[0].clause_order is ClauseOrder.MAIN_FIRST
    assert parsed.errors == ["Block 2: Missing Original or Skeleton field"]


def test_jsonl_export_is_one_record_per_line() -> None:
    entries = [build_fingerprint("The cat sat.", "The A B.").to_entry()]
    lines = to_jsonl(entries).splitlines()
    assert json.loads(lines[0]) == {
        "original": "The cat sat.",
        "skeleton": "The A B.",
        "char_length": 12,
        "token_length": 3,
        "clause_count": 1,
        "clause_order": "main-first",
        "punctuation_pattern": ".",
    }
