"""Ingredient name normalization.

Normalized names are the join key used to merge regenerated grocery items
with the ones a customer already checked off. Changing how a name normalizes
can orphan a checked item, so the tables below are append-only: add entries
and bump NAME_TABLE_VERSION, never edit or remove existing ones.
"""

import re

from rapidfuzz import fuzz, process

NAME_TABLE_VERSION = 1

# Whole-word plurals the suffix rules get wrong
IRREGULAR_PLURALS: dict[str, str] = {
    "leaves": "leaf",
    "loaves": "loaf",
    "halves": "half",
    "knives": "knife",
    "cookies": "cookie",
    "brownies": "brownie",
    "calories": "calorie",
    "anchovies": "anchovy",
    "pies": "pie",
    "chilies": "chili",
    "mice": "mouse",
    "geese": "goose",
}

# Words that end like a plural but are not one
INVARIANT_WORDS: set[str] = {
    "asparagus",
    "couscous",
    "hummus",
    "molasses",
    "swiss",
    "bass",
    "grass",
    "hibiscus",
    "citrus",
    "octopus",
    "series",
    "species",
    "gas",
    "oats",
    "greens",
    "grits",
}

# Checked in order; first matching suffix wins
PLURAL_SUFFIXES: tuple[tuple[str, str], ...] = (
    ("ies", "y"),
    ("oes", "o"),
    ("ches", "ch"),
    ("shes", "sh"),
    ("sses", "ss"),
    ("xes", "x"),
    ("zes", "z"),
    ("s", ""),
)

# Endings that look plural under the bare "s" rule but are singular
_SINGULAR_ENDINGS = ("ss", "us", "is")


def singularize(word: str) -> str:
    """Collapse a single lowercase word to its singular form."""
    if word in IRREGULAR_PLURALS:
        return IRREGULAR_PLURALS[word]
    if word in INVARIANT_WORDS or len(word) <= 3:
        return word

    for suffix, replacement in PLURAL_SUFFIXES:
        if word.endswith(suffix):
            if suffix == "s" and word.endswith(_SINGULAR_ENDINGS):
                return word
            return word[: -len(suffix)] + replacement

    return word


def normalize_ingredient_name(name: str) -> str:
    """
    Normalize an ingredient name for matching.

    - Case-fold and trim
    - Remove parenthetical notes ("butter (softened)")
    - Collapse whitespace
    - Singularize the last word ("Cherry Tomatoes" -> "cherry tomato")
    """
    if not name:
        return ""

    normalized = name.casefold()
    normalized = re.sub(r"\([^)]*\)", " ", normalized)
    words = normalized.split()

    if not words:
        return ""

    words[-1] = singularize(words[-1])
    return " ".join(words)


class NameMatcher:
    """
    Optional fuzzy folding of near-identical normalized names.

    Names are visited alphabetically and each one folds onto the first
    already-seen representative whose token_sort_ratio reaches the
    threshold, so the mapping is deterministic for a given set of names.
    A threshold of 0 disables folding.
    """

    def __init__(self, threshold: int = 0):
        if not 0 <= threshold <= 100:
            raise ValueError("threshold must be between 0 and 100")
        self.threshold = threshold

    @property
    def enabled(self) -> bool:
        return self.threshold > 0

    def build_mapping(self, names: set[str] | list[str]) -> dict[str, str]:
        """Map every name onto its representative."""
        mapping: dict[str, str] = {}
        representatives: list[str] = []

        for name in sorted(set(names)):
            target = name
            if self.enabled and representatives:
                match = process.extractOne(
                    name,
                    representatives,
                    scorer=fuzz.token_sort_ratio,
                    score_cutoff=self.threshold,
                )
                if match is not None:
                    target = match[0]
            if target == name:
                representatives.append(name)
            mapping[name] = target

        return mapping
