"""
chunked.py - Read-only byte view over a message split into transport chunks

A captured message is a flat buffer in which each transport chunk's body
occupies a range. Consecutive bodies are separated by the chunk framing
header, which is never part of the message payload. A Cursor walks the
payload: it tracks the flat offset and the index of the chunk it is in.

Usage:
    data, chunks = layout_chunks([b'\\x00\\x01', b'\\x02'])
    buf = ChunkedBuffer(data, chunks)
    cursor = Cursor(chunks[0].body.start, 0)
    buf.bounded_read(cursor, 3)    # b'\\x00\\x01\\x02'
"""

from dataclasses import dataclass
from typing import Iterable, List, Sequence, Tuple, Union

from .errors import NotEnoughData

# Bytes of framing between two consecutive chunk bodies
CHUNK_GAP = 4


@dataclass(frozen=True)
class Chunk:
    """A transport chunk; ``body`` is its payload range in the flat buffer."""
    body: range


@dataclass
class Cursor:
    """Position in a chunked message. Only moves forward."""
    data_offset: int = 0
    chunk_offset: int = 0

    def clone(self) -> 'Cursor':
        return Cursor(self.data_offset, self.chunk_offset)

    def following(self, length: int) -> range:
        """Flat range of ``length`` bytes starting at the cursor."""
        return range(self.data_offset, self.data_offset + length)


class ChunkedBuffer:
    """
    Bounded reads over a flat buffer and its chunk list.

    ``limit`` is the exclusive end of readable flat offsets. Bounded views
    made by bound_to() share ``data`` and ``chunks`` and only lower the
    limit, so a view must not outlive the call that created it.
    """

    def __init__(self, data: Union[bytes, bytearray, memoryview],
                 chunks: Sequence, limit: int = None):
        self.data = data if isinstance(data, memoryview) else memoryview(data)
        self.chunks = chunks
        self.limit = len(self.data) if limit is None else min(limit, len(self.data))

    def __repr__(self) -> str:
        return f"ChunkedBuffer(chunks={len(self.chunks)}, limit={self.limit})"

    def _clipped(self, index: int) -> Tuple[int, int]:
        """Body of chunk ``index`` clipped to the view limit."""
        body = self.chunks[index].body
        return body.start, min(body.stop, self.limit)

    def _take(self, cursor: Cursor, length: int) -> List[Tuple[int, int]]:
        """
        Advance ``cursor`` by ``length`` payload bytes.

        Returns the flat (start, end) segments covered. The cursor is only
        updated when the whole length could be taken.
        """
        _, end = self._clipped(cursor.chunk_offset)
        pos = cursor.data_offset
        have = max(0, end - pos)
        if have >= length:
            cursor.data_offset = pos + length
            return [(pos, pos + length)] if length else []

        segments = [(pos, end)] if have else []
        remaining = length - have
        index = cursor.chunk_offset
        while True:
            index += 1
            if index >= len(self.chunks):
                raise NotEnoughData(
                    f"need {length} bytes at offset {cursor.data_offset}, "
                    f"{length - remaining} reachable")
            start, end = self._clipped(index)
            have = max(0, end - start)
            if have >= remaining:
                if remaining:
                    segments.append((start, start + remaining))
                cursor.data_offset = start + remaining
                cursor.chunk_offset = index
                return segments
            if have:
                segments.append((start, end))
            remaining -= have

    def bounded_read(self, cursor: Cursor, length: int) -> bytes:
        """Read exactly ``length`` bytes, crossing chunk boundaries as needed."""
        segments = self._take(cursor, length)
        if len(segments) == 1:
            start, end = segments[0]
            return bytes(self.data[start:end])
        return b''.join(self.data[start:end] for start, end in segments)

    def skip(self, cursor: Cursor, length: int) -> None:
        """Advance like bounded_read without materializing the bytes."""
        self._take(cursor, length)

    def bound_to(self, cursor: Cursor, length: int) -> 'ChunkedBuffer':
        """
        View in which exactly ``length`` bytes are reachable from ``cursor``.

        The cursor itself is not moved.
        """
        remaining = length
        index = cursor.chunk_offset
        while index < len(self.chunks):
            start, end = self._clipped(index)
            start = max(cursor.data_offset, start)
            have = max(0, end - start)
            if remaining <= have:
                return ChunkedBuffer(self.data, self.chunks, start + remaining)
            remaining -= have
            index += 1
        raise NotEnoughData(
            f"cannot bound {length} bytes at offset {cursor.data_offset}, "
            f"{length - remaining} reachable")

    def available(self, cursor: Cursor) -> int:
        """
        Bytes reachable from ``cursor``.

        The first message of a connection always fits in one chunk, so while
        the cursor is in chunk 0 only that chunk counts. The same holds in the
        last chunk, where nothing follows.
        """
        _, end = self._clipped(cursor.chunk_offset)
        available = max(0, end - cursor.data_offset)
        if cursor.chunk_offset != 0 and len(self.chunks) - 1 > cursor.chunk_offset:
            for chunk in self.chunks[cursor.chunk_offset + 1:]:
                body = chunk.body
                if self.limit >= body.stop:
                    available += len(body)
                elif self.limit > body.start:
                    available += self.limit - body.start
        return available

    def empty(self, cursor: Cursor) -> bool:
        return self.available(cursor) == 0

    def span(self, start: Cursor, end: Cursor) -> int:
        """Payload bytes between two cursors, framing gaps excluded."""
        if start.chunk_offset == end.chunk_offset:
            return end.data_offset - start.data_offset
        _, first_end = self._clipped(start.chunk_offset)
        total = max(0, first_end - start.data_offset)
        for index in range(start.chunk_offset + 1, end.chunk_offset):
            body_start, body_end = self._clipped(index)
            total += max(0, body_end - body_start)
        return total + end.data_offset - self.chunks[end.chunk_offset].body.start


def layout_chunks(bodies: Iterable[bytes], gap: int = CHUNK_GAP,
                  filler: int = 0) -> Tuple[bytes, List[Chunk]]:
    """
    Lay chunk bodies out in one flat buffer with ``gap`` framing bytes
    between consecutive bodies.
    """
    data = bytearray()
    chunks = []
    for i, body in enumerate(bodies):
        if i:
            data.extend(bytes([filler]) * gap)
        start = len(data)
        data.extend(body)
        chunks.append(Chunk(range(start, len(data))))
    return bytes(data), chunks


def split_payload(payload: bytes, sizes: Iterable[int]) -> List[bytes]:
    """Cut a payload into chunk bodies of the given sizes; the rest forms a last body."""
    bodies = []
    pos = 0
    for size in sizes:
        bodies.append(payload[pos:pos + size])
        pos += size
    if pos < len(payload):
        bodies.append(payload[pos:])
    return bodies
