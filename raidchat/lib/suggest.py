"""
Fuzzy matching for "Did you mean?" hints on dialogue replies.
"""

from difflib import SequenceMatcher
from typing import Iterable, Optional

# Below this ratio a reply is too far from every choice to hint at one
MIN_SIMILARITY = 0.6


def similarity(a: str, b: str) -> float:
    """Case-insensitive similarity ratio in [0, 1]."""
    return SequenceMatcher(None, a.lower(), b.lower()).ratio()


def find_similar(query: str, candidates: Iterable[str], threshold: float = MIN_SIMILARITY) -> Optional[str]:
    """Return the candidate closest to query, or None if none reaches threshold.

    Ties go to the earliest candidate.
    """
    if not query:
        return None

    scored = [(similarity(query, c), c) for c in candidates]
    if not scored:
        return None

    ratio, match = max(scored, key=lambda pair: pair[0])
    return match if ratio >= threshold else None


def did_you_mean(query: str, candidates: Iterable[str]) -> str:
    """Return a " Did you mean 'x'?" suffix, or "" when nothing is close."""
    match = find_similar(query.strip(), candidates)
    return f" Did you mean '{match}'?" if match else ""
