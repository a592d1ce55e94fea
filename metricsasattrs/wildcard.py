"""Wildcard matching with '*' (any run of characters) and '?' (one character)."""

from __future__ import annotations


def wildcard_match(pattern: str, text: str) -> bool:
    """Return True when ``text`` matches ``pattern`` completely."""
    p = t = 0
    star_p = -1
    star_t = 0
    while t < len(text):
        if p < len(pattern) and (pattern[p] == "?" or pattern[p] == text[t]):
            p += 1
            t += 1
        elif p < len(pattern) and pattern[p] == "*":
            star_p = p
            star_t = t
            p += 1
        elif star_p != -1:
            p = star_p + 1
            star_t += 1
            t = star_t
        else:
            return False
    while p < len(pattern) and pattern[p] == "*":
        p += 1
    return p == len(pattern)