"""Offset to (line, column) lookup tables."""

from __future__ import annotations

import operator
from bisect import bisect_right
from enum import Enum
from typing import NamedTuple, Optional, Tuple, Union

from line_col.runtime.telemetry import record_event, span

from .errors import InvalidTextError
from .segmentation import Segmenter, grapheme_boundaries

Text = Union[str, bytes, bytearray, memoryview]

_MAX_UTF8_WIDTH = 4


class ColumnMode(str, Enum):
    """How a query counts columns within a line."""

    UNITS = "units"  # bytes for binary buffers, code points for str
    CLUSTERS = "clusters"


class Position(NamedTuple):
    """1-based location of an offset."""

    line: int
    column: int


def _scan_line_starts(text: Text) -> Tuple[int, ...]:
    if isinstance(text, str):
        haystack, newline = text, "\n"
    else:
        haystack = text.tobytes() if isinstance(text, memoryview) else text
        newline = b"\n"

    starts = [0]
    pos = haystack.find(newline)
    while pos != -1:
        starts.append(pos + 1)
        pos = haystack.find(newline, pos + 1)
    return tuple(starts)


def _check_offset(offset: int) -> int:
    value = operator.index(offset)
    if value < 0:
        raise ValueError(f"offset must be non-negative, got {value}")
    return value


class OffsetIndex:
    """Pre-computed line starts for one text buffer.

    The index keeps a reference to ``text`` rather than a copy; the caller
    must not mutate a ``bytearray`` or ``memoryview`` while the index is in
    use. A contiguous ``memoryview`` is re-viewed as unsigned bytes over the
    same memory and a strided one is copied once with ``tobytes()``, so
    :attr:`text` is not always the caller's object.

    Construction scans the buffer once (O(n)); every query is a binary search
    over the line starts (O(log lines)), plus in cluster mode a walk from the
    line start to the offset.

    Columns are counted per query, either in raw units with :meth:`get` or in
    grapheme clusters with :meth:`get_by_cluster`. :meth:`lookup` picks one
    from a :class:`ColumnMode`.
    """

    __slots__ = ("_text", "_line_starts", "_segmenter")

    def __init__(self, text: Text, *, segmenter: Optional[Segmenter] = None) -> None:
        if isinstance(text, memoryview):
            text = text.cast("B") if text.c_contiguous else text.tobytes()
        elif not isinstance(text, (str, bytes, bytearray)):
            raise TypeError(
                f"expected str or a bytes-like buffer, got {type(text).__name__}"
            )

        with span(
            "lookup::build",
            metadata={"kind": type(text).__name__, "length": len(text)},
        ) as handle:
            self._text = text
            self._segmenter = segmenter or grapheme_boundaries
            self._line_starts = _scan_line_starts(text)
            handle.add_metadata("lines", len(self._line_starts))

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(kind={type(self._text).__name__}, "
            f"length={len(self._text)}, lines={self.line_count})"
        )

    @property
    def text(self) -> Text:
        return self._text

    @property
    def line_starts(self) -> Tuple[int, ...]:
        return self._line_starts

    @property
    def line_count(self) -> int:
        return len(self._line_starts)

    @property
    def segmenter(self) -> Segmenter:
        return self._segmenter

    def _locate(self, offset: int) -> Tuple[int, int]:
        """Return ``(line_index, line_start)`` for the line holding ``offset``."""

        index = bisect_right(self._line_starts, offset) - 1
        return index, self._line_starts[index]

    def _line_end(self, index: int) -> int:
        if index + 1 < len(self._line_starts):
            return self._line_starts[index + 1]
        return len(self._text)

    def get(self, offset: int) -> Position:
        """Return the position of ``offset`` counting columns in raw units.

        Offsets beyond the end of the text are allowed and continue counting
        on the last line, so ``get(len(text))`` is the end-of-text position.
        """

        offset = _check_offset(offset)
        index, line_start = self._locate(offset)
        return Position(index + 1, offset - line_start + 1)

    def get_by_cluster(self, offset: int) -> Position:
        """Return the position of ``offset`` counting columns in grapheme clusters.

        The column is one plus the number of clusters of the line that end at
        or before ``offset``; an offset inside a cluster reports that
        cluster's column. Units past the end of the text count one column
        each.

        Only the text between the line start and ``offset`` is segmented,
        plus the last cluster again with one following code point to tell
        whether the offset cuts it.

        Binary buffers are decoded as UTF-8. :class:`InvalidTextError` is
        raised when the bytes between the line start and ``offset`` do not
        decode; malformed bytes after ``offset`` are ignored.
        """

        offset = _check_offset(offset)
        index, line_start = self._locate(offset)
        line_end = self._line_end(index)
        overflow = max(offset - len(self._text), 0)
        target = min(offset, line_end) - line_start

        if isinstance(self._text, str):
            window = self._text[line_start : min(line_start + target + 1, line_end)]
            count = self._count_whole_clusters(window, target)
        else:
            window, cut = self._decode_prefix(
                offset, index, line_start, line_end, target
            )
            count = self._count_whole_clusters(window, cut)

        return Position(index + 1, count + overflow + 1)

    def _count_whole_clusters(self, window: str, cut: int) -> int:
        """Count the clusters of ``window`` that end at or before ``cut``.

        ``window`` starts at a line start; of what lies past ``cut`` only the
        first code point is consulted. Boundaries before ``cut`` do not depend
        on what follows it, so only the last cluster is segmented a second
        time, with that lookahead code point, to see whether it continues past
        ``cut``.
        """

        boundaries = self._segmenter(window[:cut])
        if not boundaries:
            return 0
        count = len(boundaries)
        last_start = boundaries[-2] if count > 1 else 0
        tail = self._segmenter(window[last_start : cut + 1])
        if tail and tail[0] > cut - last_start:
            count -= 1
        return count

    def _decode_prefix(
        self, offset: int, index: int, line_start: int, line_end: int, target: int
    ) -> Tuple[str, int]:
        """Decode the line up to ``target`` bytes plus one code point.

        Returns the decoded window and the number of its code points that end
        at or before ``target``.
        """

        stop = min(line_start + target + _MAX_UTF8_WIDTH, line_end)
        raw = bytes(self._text[line_start:stop])
        try:
            decoded = raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            if exc.start < target:
                record_event(
                    "lookup::invalid_text",
                    level="warning",
                    data={
                        "line": index + 1,
                        "offset": offset,
                        "error_at": line_start + exc.start,
                    },
                )
                raise InvalidTextError(
                    f"line {index + 1} is not valid UTF-8 "
                    f"at byte {line_start + exc.start}",
                    line=index + 1,
                    offset=offset,
                    reason=exc,
                ) from exc
            decoded = raw[: exc.start].decode("utf-8")

        # a code point cut by ``target`` is dropped here
        cut = len(raw[:target].decode("utf-8", "ignore"))
        return decoded, cut

    def lookup(
        self, offset: int, mode: Union[ColumnMode, str] = ColumnMode.UNITS
    ) -> Position:
        """Return the position of ``offset`` using the column policy ``mode``."""

        if ColumnMode(mode) is ColumnMode.CLUSTERS:
            return self.get_by_cluster(offset)
        return self.get(offset)


def build(text: Text, *, segmenter: Optional[Segmenter] = None) -> OffsetIndex:
    """Scan ``text`` once and return its :class:`OffsetIndex`."""

    return OffsetIndex(text, segmenter=segmenter)


__all__ = ["ColumnMode", "OffsetIndex", "Position", "Text", "build"]
