"""
Utility functions
"""
import re
from typing import Optional


_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def parse_score_input(text: str) -> Optional[int]:
    """
    Parse a typed score, reading the leading integer

    Args:
        text: Raw input text

    Returns:
        Parsed integer, or None when the text does not start with a number

    Example:
        >>> parse_score_input(" 12")
        12
        >>> parse_score_input("7pts")
        7
        >>> parse_score_input("abc") is None
        True
    """
    match = _LEADING_INT.match(text or "")
    if not match:
        return None
    return int(match.group(1))


def clean_letter(letter: str) -> str:
    """Trim and upper-case a candidate letter, keeping one character"""
    return (letter or "").strip().upper()[:1]


def next_round_name(round_count: int) -> str:
    """Default name for a new round"""
    return f"Round {round_count + 1}"
