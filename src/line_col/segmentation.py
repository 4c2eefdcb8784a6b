"""Grapheme-cluster segmentation used by cluster-mode column counting.

A segmenter is any callable taking a ``str`` and returning the ascending end
offsets (in code points) of each cluster in it. The last boundary of a
non-empty string is always ``len(text)``; ``""`` has no boundaries.
"""

from __future__ import annotations

from typing import Callable, Iterator, List, Sequence

import regex

Segmenter = Callable[[str], Sequence[int]]

_CLUSTER = regex.compile(r"\X")


def grapheme_boundaries(text: str) -> List[int]:
    """Split on Unicode extended grapheme cluster boundaries (UAX #29)."""

    return [match.end() for match in _CLUSTER.finditer(text)]


def codepoint_boundaries(text: str) -> List[int]:
    """Treat every code point as its own cluster."""

    return list(range(1, len(text) + 1))


def iter_clusters(
    text: str, segmenter: Segmenter = grapheme_boundaries
) -> Iterator[str]:
    start = 0
    for end in segmenter(text):
        yield text[start:end]
        start = end


__all__ = [
    "Segmenter",
    "codepoint_boundaries",
    "grapheme_boundaries",
    "iter_clusters",
]
