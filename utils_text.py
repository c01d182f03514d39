"""
Text Utilities
==============
- Whitespace normalization
- Word-safe truncation for listing copy
- Number parsing for prices written with Norwegian thousands separators
- Keyword matching on word boundaries
"""

import re
from typing import Iterable, Optional


def normalize_whitespace(s: str) -> str:
    """Normalizes whitespace in string"""
    if not s:
        return ""
    return re.sub(r"\s+", " ", s, flags=re.S).strip()


def truncate_text(text: str, max_len: int, suffix: str = "...") -> str:
    """
    Truncates text to max_len characters, cutting at a word boundary when possible.

    The suffix counts towards max_len.
    """
    text = normalize_whitespace(text)
    if len(text) <= max_len:
        return text
    if max_len <= len(suffix):
        return text[:max_len]

    cut = text[:max_len - len(suffix)]
    space = cut.rfind(" ")
    if space > max_len // 2:
        cut = cut[:space]
    return cut.rstrip(" ,.;:-") + suffix


def parse_amount(raw: str) -> Optional[int]:
    """
    Parses an amount like "7 000", "7.000", "7000,-" or "7k" into an int.

    Returns None if no digits are present.
    """
    if not raw:
        return None
    s = raw.strip().lower()

    k_match = re.fullmatch(r"(\d+(?:[.,]\d+)?)\s*k", s)
    if k_match:
        return int(round(float(k_match.group(1).replace(",", ".")) * 1000))

    s = re.sub(r",-$", "", s)
    # Thousands separators: space, non-breaking space, dot
    s = re.sub(r"(?<=\d)[\s .](?=\d{3}\b)", "", s)
    digits = re.search(r"\d+", s)
    return int(digits.group(0)) if digits else None


def contains_any(text: str, keywords: Iterable[str]) -> bool:
    """True if any keyword occurs in text as a whole word or phrase (case-insensitive)."""
    t = (text or "").lower()
    for kw in keywords:
        if re.search(r"(?<!\w)" + re.escape(kw.lower()) + r"(?!\w)", t):
            return True
    return False


def format_nok(amount: float) -> str:
    """Formats an amount Norwegian style: 12 500 NOK."""
    return f"{int(round(amount)):,}".replace(",", " ") + " NOK"
