"""Tokenization and edit-distance similarity for text search."""

import re
from typing import Set


_NON_WORD = re.compile(r"[^\w\s]")


def tokenize(text: str) -> Set[str]:
    """Split text into a set of lowercase tokens.

    Punctuation is replaced by spaces and tokens of a single character
    are dropped.
    """
    if not text:
        return set()
    cleaned = _NON_WORD.sub(" ", text.lower())
    return {token for token in cleaned.split() if len(token) > 1}


def levenshtein_distance(s1: str, s2: str) -> int:
    """Calculate Levenshtein distance between two strings."""
    if len(s1) < len(s2):
        return levenshtein_distance(s2, s1)

    if len(s2) == 0:
        return len(s1)

    previous_row = list(range(len(s2) + 1))
    for i, c1 in enumerate(s1):
        current_row = [i + 1]
        for j, c2 in enumerate(s2):
            insertions = previous_row[j + 1] + 1
            deletions = current_row[j] + 1
            substitutions = previous_row[j] + (c1 != c2)
            current_row.append(min(insertions, deletions, substitutions))
        previous_row = current_row

    return previous_row[-1]


def similarity(s1: str, s2: str) -> float:
    """Normalized Levenshtein similarity in [0, 1].

    Two empty strings are identical.
    """
    max_len = max(len(s1), len(s2))
    if max_len == 0:
        return 1.0
    return (max_len - levenshtein_distance(s1, s2)) / max_len
