"""Offset to (line, column) lookup for text buffers."""

from .errors import InvalidTextError
from .lookup import ColumnMode, OffsetIndex, Position, Text, build
from .segmentation import (
    Segmenter,
    codepoint_boundaries,
    grapheme_boundaries,
    iter_clusters,
)

__all__ = [
    "ColumnMode",
    "InvalidTextError",
    "OffsetIndex",
    "Position",
    "Segmenter",
    "Text",
    "build",
    "codepoint_boundaries",
    "grapheme_boundaries",
    "iter_clusters",
]

__version__ = "0.1.0"
