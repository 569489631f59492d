"""
Tests for the chunked buffer and cursor.

Chunk layout used by most tests (abcd fixture), 4-byte gaps between bodies:

    a * 12 at 0..12, b * 16 at 16..32, c * 24 at 36..60, d * 8 at 64..72
"""

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from tezos_dissector.chunked import (
    CHUNK_GAP, Chunk, ChunkedBuffer, Cursor, layout_chunks, split_payload,
)
from tezos_dissector.errors import NotEnoughData


class TestLayout:
    """Tests for laying chunk bodies out in a flat buffer."""

    def test_bodies_separated_by_gap(self, abcd_chunks):
        data, chunks = abcd_chunks
        assert [c.body for c in chunks] == [
            range(0, 12), range(16, 32), range(36, 60), range(64, 72)]
        assert len(data) == 72
        assert data[12:16] == b'\x00' * CHUNK_GAP

    def test_split_payload_keeps_rest(self):
        assert split_payload(b'abcdef', [2, 3]) == [b'ab', b'cde', b'f']
        assert split_payload(b'abcd', [2, 2]) == [b'ab', b'cd']
        assert split_payload(b'ab', []) == [b'ab']


class TestBoundedRead:
    """Tests for reads that cross chunk boundaries."""

    def test_read_across_chunks(self, abcd_buffer):
        cursor = Cursor(0, 0)

        assert abcd_buffer.bounded_read(cursor, 25) == b'a' * 12 + b'b' * 13
        assert cursor == Cursor(29, 1)

        assert abcd_buffer.bounded_read(cursor, 35) == b'b' * 3 + b'c' * 24 + b'd' * 8
        assert cursor == Cursor(72, 3)

    def test_read_within_chunk(self, abcd_buffer):
        cursor = Cursor(16, 1)
        assert abcd_buffer.bounded_read(cursor, 4) == b'bbbb'
        assert cursor == Cursor(20, 1)

    def test_zero_length_read_at_chunk_end(self, abcd_buffer):
        cursor = Cursor(12, 0)
        assert abcd_buffer.bounded_read(cursor, 0) == b''
        assert cursor == Cursor(12, 0)

    def test_read_from_chunk_end_moves_to_next_chunk(self, abcd_buffer):
        cursor = Cursor(12, 0)
        assert abcd_buffer.bounded_read(cursor, 2) == b'bb'
        assert cursor == Cursor(18, 1)

    def test_read_ending_on_chunk_boundary(self, abcd_buffer):
        cursor = Cursor(0, 0)
        assert abcd_buffer.bounded_read(cursor, 28) == b'a' * 12 + b'b' * 16
        assert cursor == Cursor(32, 1)
        assert abcd_buffer.bounded_read(cursor, 1) == b'c'

    def test_not_enough_data(self, abcd_buffer):
        cursor = Cursor(0, 0)
        with pytest.raises(NotEnoughData):
            abcd_buffer.bounded_read(cursor, 61)
        # failed reads leave the cursor where it was
        assert cursor == Cursor(0, 0)

    def test_skip_matches_read(self, abcd_buffer):
        read_cursor = Cursor(5, 0)
        skip_cursor = Cursor(5, 0)
        abcd_buffer.bounded_read(read_cursor, 40)
        abcd_buffer.skip(skip_cursor, 40)
        assert read_cursor == skip_cursor

    def test_truncated_last_chunk(self, abcd_chunks):
        data, chunks = abcd_chunks
        buf = ChunkedBuffer(data[:68], chunks)
        cursor = Cursor(60, 2)
        assert buf.bounded_read(cursor, 4) == b'dddd'
        with pytest.raises(NotEnoughData):
            buf.bounded_read(cursor, 1)

    @given(st.lists(st.binary(max_size=20), min_size=1, max_size=6), st.data())
    @settings(max_examples=300)
    def test_read_equals_concatenated_bodies(self, bodies, data):
        """Reads never include framing bytes between chunk bodies."""
        flat, chunks = layout_chunks(bodies, filler=0xEE)
        payload = b''.join(bodies)
        first = data.draw(st.integers(0, len(payload)))
        second = data.draw(st.integers(0, len(payload) - first))

        buf = ChunkedBuffer(flat, chunks)
        cursor = Cursor(0, 0)
        assert buf.bounded_read(cursor, first) == payload[:first]
        assert buf.bounded_read(cursor, second) == payload[first:first + second]
        assert buf.span(Cursor(0, 0), cursor) == first + second


class TestAvailable:
    """Tests for remaining byte counts."""

    def test_first_chunk_counts_only_itself(self, abcd_buffer):
        assert abcd_buffer.available(Cursor(0, 0)) == 12
        assert abcd_buffer.available(Cursor(10, 0)) == 2

    def test_middle_chunk_counts_following_chunks(self, abcd_buffer):
        assert abcd_buffer.available(Cursor(16, 1)) == 16 + 24 + 8
        assert abcd_buffer.available(Cursor(40, 2)) == 20 + 8

    def test_last_chunk(self, abcd_buffer):
        assert abcd_buffer.available(Cursor(64, 3)) == 8
        assert abcd_buffer.available(Cursor(72, 3)) == 0
        assert abcd_buffer.empty(Cursor(72, 3))

    def test_partially_present_chunk(self, abcd_chunks):
        data, chunks = abcd_chunks
        buf = ChunkedBuffer(data[:68], chunks)
        assert buf.available(Cursor(40, 2)) == 20 + 4


class TestBoundTo:
    """Tests for bounded views."""

    def test_view_limits_reads(self, abcd_buffer):
        cursor = Cursor(29, 1)
        view = abcd_buffer.bound_to(cursor, 10)

        assert cursor == Cursor(29, 1)
        assert view.limit == 43
        assert view.available(cursor) == 10
        assert view.bounded_read(cursor, 10) == b'bbb' + b'c' * 7
        with pytest.raises(NotEnoughData):
            view.bounded_read(cursor, 1)

    def test_view_shares_backing_data(self, abcd_buffer):
        view = abcd_buffer.bound_to(Cursor(0, 0), 5)
        assert view.data.obj is abcd_buffer.data.obj
        assert view.chunks is abcd_buffer.chunks

    def test_bound_from_chunk_end(self, abcd_buffer):
        view = abcd_buffer.bound_to(Cursor(12, 0), 3)
        assert view.bounded_read(Cursor(12, 0), 3) == b'bbb'

    def test_zero_length_bound(self, abcd_buffer):
        cursor = Cursor(20, 1)
        view = abcd_buffer.bound_to(cursor, 0)
        assert view.available(cursor) == 0

    def test_bound_too_long(self, abcd_buffer):
        with pytest.raises(NotEnoughData):
            abcd_buffer.bound_to(Cursor(64, 3), 9)

    def test_nested_bounds_never_grow(self, abcd_buffer):
        cursor = Cursor(16, 1)
        outer = abcd_buffer.bound_to(cursor, 20)
        with pytest.raises(NotEnoughData):
            outer.bound_to(cursor, 21)
        inner = outer.bound_to(cursor, 18)
        assert inner.limit < outer.limit


class TestSpan:
    """Tests for payload distance between cursors."""

    def test_span_excludes_gaps(self, abcd_buffer):
        start = Cursor(0, 0)
        cursor = start.clone()
        abcd_buffer.bounded_read(cursor, 25)
        assert cursor.data_offset - start.data_offset == 29
        assert abcd_buffer.span(start, cursor) == 25

    def test_span_over_several_chunks(self, abcd_buffer):
        assert abcd_buffer.span(Cursor(10, 0), Cursor(66, 3)) == 2 + 16 + 24 + 2

    def test_following(self):
        assert Cursor(7, 0).following(3) == range(7, 10)

    def test_chunk_is_a_body_range(self):
        assert Chunk(range(4, 9)).body == range(4, 9)
