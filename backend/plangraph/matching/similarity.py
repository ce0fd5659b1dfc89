"""
String similarity helpers used by node deduplication.
"""

import re
from typing import List

from plangraph.config import FUZZY_SIMILARITY_THRESHOLD


# Token separators: whitespace, hyphen, underscore, dot, slash
_TOKEN_SPLIT = re.compile(r"[\s\-_./]+")
_MIN_TOKEN_LENGTH = 2


def extract_keywords(label: str) -> List[str]:
    """Return lowercase tokens of 2+ characters from a label."""
    if not label:
        return []
    return [
        token
        for token in _TOKEN_SPLIT.split(label.lower())
        if len(token) >= _MIN_TOKEN_LENGTH
    ]


def levenshtein_distance(s1: str, s2: str) -> int:
    """Edit distance (insert, delete, substitute) between two strings."""
    if s1 == s2:
        return 0
    if not s1:
        return len(s2)
    if not s2:
        return len(s1)

    # Single rolling row over the shorter string
    if len(s1) < len(s2):
        s1, s2 = s2, s1

    previous = list(range(len(s2) + 1))
    for i, c1 in enumerate(s1, start=1):
        current = [i]
        for j, c2 in enumerate(s2, start=1):
            if c1 == c2:
                current.append(previous[j - 1])
            else:
                current.append(1 + min(
                    previous[j],       # deletion
                    current[j - 1],    # insertion
                    previous[j - 1],   # substitution
                ))
        previous = current
    return previous[-1]


def similarity(s1: str, s2: str) -> float:
    """1 - distance / longest length. Two empty strings are identical."""
    longest = max(len(s1), len(s2))
    if longest == 0:
        return 1.0
    return 1 - levenshtein_distance(s1, s2) / longest


def is_fuzzy_match(str1: str, str2: str, threshold: float = FUZZY_SIMILARITY_THRESHOLD) -> bool:
    """
    Return True when two strings name the same thing.

    Case-insensitive. Matches on equality, on one string containing the
    other, or on similarity above the threshold. Blank input never matches.
    """
    s1 = (str1 or "").strip().lower()
    s2 = (str2 or "").strip().lower()

    # An empty string is a substring of everything
    if not s1 or not s2:
        return False

    if s1 == s2:
        return True

    if s1 in s2 or s2 in s1:
        return True

    return similarity(s1, s2) > threshold


def normalize_label(label: str) -> str:
    """Lowercase, drop hyphens/underscores, collapse spaces, strip punctuation."""
    text = (label or "").strip().lower()
    text = re.sub(r"[-_]", "", text)
    text = re.sub(r"\s+", " ", text)
    return re.sub(r"[^\w\s]", "", text)
