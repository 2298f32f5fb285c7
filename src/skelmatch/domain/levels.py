from __future__ import annotations

from enum import Enum

from skelmatch.exceptions import ValidationError


class TransformLevel(str, Enum):
    """How aggressively the oracle replaces content words with placeholders."""

    LIGHT = "Light"
    MODERATE = "Moderate"
    MODERATE_HEAVY = "Moderate-Heavy"
    HEAVY = "Heavy"
    VERY_HEAVY = "Very Heavy"

    @classmethod
    def parse(cls, value: str | TransformLevel | None) -> TransformLevel:
        """Validate a caller-supplied level once, at the boundary.

        Accepts the display names ("Very Heavy") as well as slug forms
        ("very-heavy", "VERY_HEAVY"). ``None`` maps to the default, HEAVY.
        """
        if value is None:
            return cls.HEAVY
        if isinstance(value, cls):
            return value
        key = str(value).strip().lower().replace("_", "-").replace(" ", "-")
        for level in cls:
            if level.value.lower().replace(" ", "-") == key:
                return level
        allowed = ", ".join(lv.value for lv in cls)
        raise ValidationError(f"Unknown transform level {value!r} (allowed: {allowed})")
