from __future__ import annotations

from skelmatch.domain.levels import TransformLevel

SYSTEM_TEMPLATE = """\
You are a semantic bleaching engine. Replace content words with variable placeholders
and keep syntax, punctuation and grammatical structure exactly as they are.

RULES:
1. Mechanical substitution only. Never rephrase or reorder.
2. Every comma, period, dash, semicolon, parenthesis and quote stays where it is.
3. Keep grammatical form on the placeholder: "cats" -> "X's", "running" -> "X-ing",
   "jumped" -> "X-ed", "rationalization" -> "R-ation".
4. The same word always maps to the same placeholder within the text.
5. Never add or remove words.
"""

LEVEL_INSTRUCTIONS: dict[TransformLevel, str] = {
    TransformLevel.LIGHT: """\
LIGHT: replace only named entities ("Hume" -> "A", "Cartesian" -> "C-ian") and
domain-specific category nouns ("philosopher" -> "A-type").
Keep all common nouns, verbs, adjectives and adverbs.""",
    TransformLevel.MODERATE: """\
MODERATE: everything in LIGHT, plus key domain nouns ("mind" -> "Y-domain"),
key domain verbs ("doubt" -> "P") and key domain adjectives ("fearful" -> "T").
Keep common descriptive words, basic verbs and everyday nouns.""",
    TransformLevel.MODERATE_HEAVY: """\
MODERATE-HEAVY: everything in MODERATE, plus most technical and abstract nouns
and the verbs that govern them.
Keep everyday nouns, basic verbs, function words and connectives.""",
    TransformLevel.HEAVY: """\
HEAVY: everything in MODERATE, plus most content nouns ("person" -> "F"),
content adjectives ("primal" -> "E") and content verbs.
Keep only function words (articles, prepositions, conjunctions, pronouns),
basic copulas (is, are, being, have, has) and logical connectives.""",
    TransformLevel.VERY_HEAVY: """\
VERY HEAVY: replace virtually every word carrying meaning. When Latin capitals run
out, use Greek letters (α, β, γ, ...) and indexed Omegas (Ω1, Ω2, ...).
Keep only articles, prepositions, conjunctions, pronouns, copulas and auxiliaries,
quantifiers, discourse markers (however, therefore, thus) and deictics (here, there,
now, then).""",
}

USER_TEMPLATE = """\
LEVEL: {level}

{instructions}

INPUT TEXT:
\"\"\"
{text}
\"\"\"

OUTPUT: only the bleached text. No explanations, no commentary.
"""


def build_bleach_prompt(text: str, level: TransformLevel) -> tuple[str, str]:
    """Return (system, user) prompt contents for one rewrite call."""
    user = USER_TEMPLATE.format(
        level=level.value, instructions=LEVEL_INSTRUCTIONS[level], text=text
    )
    return SYSTEM_TEMPLATE, user
