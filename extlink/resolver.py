"""
Version Resolver

Picks one candidate out of a catalog result. Candidates already loaded in the
running process come first, in the order the catalog supplied them; the
remaining on-disk candidates follow, newest version first. An optional
version pattern narrows the ordered list before the first entry is taken.
"""

import logging
from typing import Iterable, List, Optional

from extlink.core.models import ModuleCandidate
from extlink.version_pattern import matches

logger = logging.getLogger(__name__)


def order_candidates(candidates: Iterable[ModuleCandidate]) -> List[ModuleCandidate]:
    """Loaded candidates in catalog order, then disk candidates by version descending."""
    loaded = []
    on_disk = []
    for candidate in candidates:
        if candidate.is_loaded:
            loaded.append(candidate)
        else:
            on_disk.append(candidate)

    # sorted() is stable under reverse=True, so equal versions keep catalog order
    on_disk = sorted(on_disk, key=lambda c: c.version_key, reverse=True)
    return loaded + on_disk


def filter_candidates(
    candidates: Iterable[ModuleCandidate],
    pattern: Optional[str] = None
) -> List[ModuleCandidate]:
    """Order the candidates and keep those whose version matches the pattern."""
    return [c for c in order_candidates(candidates) if matches(c.version, pattern)]


def resolve(
    candidates: Iterable[ModuleCandidate],
    pattern: Optional[str] = None
) -> Optional[ModuleCandidate]:
    """
    Select the candidate that should be activated.

    Args:
        candidates: Catalog result for a single module name
        pattern: Optional version literal or wildcard pattern

    Returns:
        The first candidate of the filtered, ordered sequence, or None when
        nothing is left
    """
    selected = filter_candidates(candidates, pattern)
    if not selected:
        logger.debug(f"No candidate matches version pattern {pattern!r}")
        return None

    choice = selected[0]
    logger.debug(
        f"Resolved {choice.name} {choice.version} at {choice.base_path} "
        f"(loaded={choice.is_loaded}, pattern={pattern!r})"
    )
    return choice
