"""
Version Pattern Matching

A version pattern is either an exact version literal or a wildcard
expression where '*' matches any run of characters and '?' exactly one.
Matching ignores case and always covers the whole version string.
"""

import re
from functools import lru_cache
from typing import Optional, Pattern

WILDCARDS = ("*", "?")


def is_wildcard(pattern: str) -> bool:
    return any(ch in pattern for ch in WILDCARDS)


@lru_cache(maxsize=128)
def compile_pattern(pattern: str) -> Pattern[str]:
    """
    Compile a wildcard pattern into an anchored, case-insensitive regex.

    Every character other than '*' and '?' is matched literally, so '.' and
    '[' carry no special meaning.
    """
    parts = []
    for ch in pattern:
        if ch == "*":
            parts.append(".*")
        elif ch == "?":
            parts.append(".")
        else:
            parts.append(re.escape(ch))
    return re.compile("".join(parts), re.IGNORECASE | re.DOTALL)


def matches(version: str, pattern: Optional[str]) -> bool:
    """
    Check a version string against an optional pattern.

    Args:
        version: Exact version of a candidate
        pattern: Version literal or wildcard pattern; None or '' keeps everything

    Returns:
        True if the version is selected by the pattern
    """
    if not pattern:
        return True

    pattern = pattern.strip()
    if not is_wildcard(pattern):
        return version.casefold() == pattern.casefold()

    return compile_pattern(pattern).fullmatch(version) is not None
