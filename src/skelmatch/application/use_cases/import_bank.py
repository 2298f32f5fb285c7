from __future__ import annotations

import logging
from dataclasses import dataclass

from skelmatch.application.ports.bank_store_port import SentenceBankStorePort
from skelmatch.domain.bank_format import parse_bank, to_jsonl, to_txt
from skelmatch.exceptions import ValidationError

logger = logging.getLogger(__name__)


@dataclass
class ImportReport:
    format: str
    imported: int
    errors: list[str]
    bank_size: int


@dataclass
class ImportSentenceBankUseCase:
    bank: SentenceBankStorePort

    def execute(self, content: str, owner: str | None = None) -> ImportReport:
        """Parse a JSONL or TXT bank dump and append its entries.

        Bad lines are reported in ``errors``; an upload without any valid entry is
        rejected as a whole.
        """
        if not (content or "").strip():
            raise ValidationError("Bank file is empty")
        parsed = parse_bank(content, owner)
        if not parsed.entries:
            detail = "; ".join(parsed.errors[:5])
            raise ValidationError(
                "Could not parse any valid entries from the file" + (f": {detail}" if detail else "")
            )
        n = self.bank.add_many(parsed.entries)
        size = self.bank.count(owner)
        logger.info(
            "Imported %d entries (%s, %d errors). Bank size: %d",
            n,
            parsed.format,
            len(parsed.errors),
            size,
        )
        return ImportReport(format=parsed.format, imported=n, errors=parsed.errors, bank_size=size)


@dataclass
class ExportSentenceBankUseCase:
    bank: SentenceBankStorePort

    def execute(self, fmt: str = "jsonl", owner: str | None = None) -> str:
        key = (fmt or "").strip().lower()
        entries = self.bank.by_owner(owner)
        if key == "jsonl":
            return to_jsonl(entries)
        if key == "txt":
            return to_txt(entries)
        raise ValidationError(f"Unknown export format {fmt!r} (allowed: jsonl, txt)")
