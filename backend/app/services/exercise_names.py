"""
Exercise name normalization.

Two distinct forms:
- normalized: lowercase, trimmed, single-spaced; only used for matching
- canonical: trimmed, single-spaced, each word capitalized; used for storage
"""
import re
from typing import Any

_WHITESPACE = re.compile(r"\s+")


def normalize_exercise_name(exercise_name: Any) -> str:
    """Lowercase, trimmed, whitespace-collapsed form for comparisons."""
    if not exercise_name or not isinstance(exercise_name, str):
        return ""
    return _WHITESPACE.sub(" ", exercise_name.strip().lower())


def canonicalize_exercise_name(exercise_name: Any) -> str:
    """Title-cased, trimmed, whitespace-collapsed form for storage and display."""
    if not exercise_name or not isinstance(exercise_name, str):
        return ""
    words = _WHITESPACE.sub(" ", exercise_name.strip()).split(" ")
    return " ".join(word[:1].upper() + word[1:].lower() for word in words)


def exercise_names_match(name1: Any, name2: Any) -> bool:
    """True if both names normalize to the same form."""
    return normalize_exercise_name(name1) == normalize_exercise_name(name2)
