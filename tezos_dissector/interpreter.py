"""
interpreter.py - Schema-driven decoder for chunked Tezos P2P messages

Walks an Encoding tree over a ChunkedBuffer and renders a tree of labeled,
range-tagged values. The same traversal measures a value: called without
an output node it only advances the cursor, and container nodes use such a
measuring walk on a cloned cursor to learn their size before their
children are rendered.

Usage:
    from tezos_dissector.interpreter import SchemaInterpreter

    interpreter = SchemaInterpreter()
    result = interpreter.decode(data, chunks, encoding, 'connection_message')
    print(result.tree.format())
"""

import logging
import struct
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import List, Optional, Sequence

from .bignum import read_mutez, read_z
from .chunked import Chunk, ChunkedBuffer, Cursor
from .config import DecoderConfig
from .encoding import (
    BOOL_SIZE, BYTES, FIXED_INTEGERS, FLOAT_SIZE, TIMESTAMP_SIZE, UINT32,
    Encoding, Kind, SchemaType,
)
from .errors import (
    DecodingError, NotEnoughData, TagNotFound, TagSizeNotSupported,
    UnexpectedOptionDiscriminant, UnresolvedLazyError,
)
from .path import read_path
from .tree import DecodedNode, TreeLeaf, intersect

logger = logging.getLogger(__name__)

# Obj member decoded with the Merkle path codec whatever its declared encoding
PATH_FIELD = 'operation_hashes_path'
PATH_COMPONENT = 'path_component'

DYNAMIC_PREFIX = 4
STRING_PREFIX = 4

_EPOCH = datetime(1970, 1, 1)


@dataclass
class DecodeResult:
    """Result of decoding one message."""
    tree: DecodedNode
    bytes_consumed: int
    errors: List[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return len(self.errors) == 0


def format_timestamp(seconds: int) -> str:
    try:
        return (_EPOCH + timedelta(seconds=seconds)).strftime('%Y-%m-%d %H:%M:%S')
    except OverflowError:
        return str(seconds)


class SchemaInterpreter:
    """
    Measure and render values described by an Encoding.

    The interpreter keeps no per-message state; cursors belong to callers.
    """

    def __init__(self, config: DecoderConfig = None):
        self.config = config or DecoderConfig()

    def measure(self, buf: ChunkedBuffer, cursor: Cursor, encoding: Encoding) -> int:
        """Advance ``cursor`` over one value; returns the payload bytes consumed."""
        start = cursor.clone()
        self._walk(buf, cursor, encoding, None, '', None)
        return buf.span(start, cursor)

    def render(self, buf: ChunkedBuffer, cursor: Cursor, encoding: Encoding,
               space: range, base: str, node) -> None:
        """Decode one value at ``cursor`` and add it to ``node`` labeled ``base``."""
        self._walk(buf, cursor, encoding, space, base, node)

    def decode(self, data: bytes, chunks: Sequence[Chunk], encoding: Encoding,
               name: str, space: range = None, cursor: Cursor = None) -> DecodeResult:
        """
        Render a whole message.

        Args:
            data: Flat buffer holding the chunk bodies
            chunks: Chunks of the message, in order
            encoding: Message schema
            name: Label of the message node
            space: Visible flat range; emitted ranges are clipped to it
            cursor: Start position, defaults to the first chunk body start

        Returns:
            DecodeResult; on a DecodingError the tree holds what was rendered
            before the failure and the error is listed in ``errors``.
        """
        if not chunks:
            raise ValueError("Message has no chunks")
        buf = ChunkedBuffer(data, chunks)
        if cursor is None:
            cursor = Cursor(chunks[0].body.start, 0)
        if space is None:
            space = range(0, len(data))
        start = cursor.clone()
        result = DecodeResult(tree=DecodedNode(), bytes_consumed=0)

        logger.debug("decoding %s: %d bytes in %d chunks", name, len(data), len(chunks))
        try:
            self.render(buf, cursor, encoding, space, name, result.tree)
        except DecodingError as e:
            logger.debug("decoding %s failed: %s", name, e)
            result.errors.append(f"Error decoding {name}: {e}")
        result.bytes_consumed = buf.span(start, cursor)
        return result

    def _read_int(self, buf: ChunkedBuffer, cursor: Cursor, size: int, signed: bool) -> int:
        return int.from_bytes(buf.bounded_read(cursor, size), 'big', signed=signed)

    def _leaf(self, node, space: range, base: str, item: range, leaf: TreeLeaf) -> None:
        if node is not None:
            node.add(base, intersect(space, item), leaf)

    def _container(self, buf: ChunkedBuffer, cursor: Cursor, encoding: Encoding,
                   space: range, base: str, node):
        """Add a node sized by measuring ``encoding`` ahead of ``cursor``."""
        if node is None:
            return None
        size = self.measure(buf, cursor.clone(), encoding)
        return node.add(base, intersect(space, cursor.following(size)), TreeLeaf.nothing())

    def _walk(self, buf: ChunkedBuffer, cursor: Cursor, encoding: Encoding,
              space: Optional[range], base: str, node) -> None:
        kind = encoding.kind

        if kind is Kind.UNIT:
            return

        if kind in FIXED_INTEGERS:
            size, signed = FIXED_INTEGERS[kind]
            item = cursor.following(size)
            value = self._read_int(buf, cursor, size, signed)
            self._leaf(node, space, base, item, TreeLeaf.dec(value))
            return

        if kind is Kind.ENUM:
            self._walk(buf, cursor, UINT32, space, base, node)
            return

        if kind is Kind.Z or kind is Kind.MUTEZ:
            start = cursor.data_offset
            value = read_z(buf, cursor) if kind is Kind.Z else read_mutez(buf, cursor)
            self._leaf(node, space, base, range(start, cursor.data_offset),
                       TreeLeaf.display(value))
            return

        if kind is Kind.FLOAT:
            item = cursor.following(FLOAT_SIZE)
            value = struct.unpack('>d', buf.bounded_read(cursor, FLOAT_SIZE))[0]
            self._leaf(node, space, base, item, TreeLeaf.floating(value))
            return

        if kind is Kind.BOOL:
            item = cursor.following(BOOL_SIZE)
            value = buf.bounded_read(cursor, BOOL_SIZE)[0] == 0xFF
            self._leaf(node, space, base, item, TreeLeaf.display('true' if value else 'false'))
            return

        if kind is Kind.TIMESTAMP:
            item = cursor.following(TIMESTAMP_SIZE)
            value = self._read_int(buf, cursor, TIMESTAMP_SIZE, True)
            self._leaf(node, space, base, item, TreeLeaf.display(format_timestamp(value)))
            return

        if kind is Kind.HASH:
            item = cursor.following(encoding.hash_type.size)
            digest = buf.bounded_read(cursor, encoding.hash_type.size)
            self._leaf(node, space, base, item, TreeLeaf.display(digest.hex()))
            return

        if kind is Kind.STRING:
            start = cursor.data_offset
            length = self._read_int(buf, cursor, STRING_PREFIX, False)
            raw = buf.bounded_read(cursor, length)
            if node is not None:
                try:
                    text = raw.decode('utf-8')
                except UnicodeDecodeError:
                    return
                node.add(base, intersect(space, range(start, cursor.data_offset)),
                         TreeLeaf.display(text))
            return

        if kind is Kind.BYTES:
            item = cursor.following(buf.available(cursor))
            raw = buf.bounded_read(cursor, len(item))
            self._leaf(node, space, base, item, TreeLeaf.display(raw.hex()))
            return

        if kind is Kind.LIST:
            if encoding.inner.kind is Kind.UINT8:
                self._walk(buf, cursor, BYTES, space, base, node)
                return
            while not buf.empty(cursor):
                before = cursor.clone()
                self._walk(buf, cursor, encoding.inner, space, base, node)
                if cursor == before:
                    # zero-width elements would repeat forever
                    break
            return

        if kind is Kind.OPTION or kind is Kind.OPTIONAL_FIELD:
            flag = buf.bounded_read(cursor, 1)[0]
            if flag == 0:
                return
            if flag == 1:
                self._walk(buf, cursor, encoding.inner, space, base, node)
                return
            raise UnexpectedOptionDiscriminant(f"{flag} at '{base}'")

        if kind is Kind.TAGS:
            self._walk_tags(buf, cursor, encoding, space, base, node)
            return

        if kind is Kind.OBJ:
            sub_node = self._container(buf, cursor, encoding, space, base, node)
            for member in encoding.fields:
                if member.name == PATH_FIELD:
                    self._walk_path(buf, cursor, space, member.name, sub_node)
                else:
                    self._walk(buf, cursor, member.encoding, space, member.name, sub_node)
            return

        if kind is Kind.TUP:
            sub_node = self._container(buf, cursor, encoding, space, base, node)
            for i, element in enumerate(encoding.elements):
                self._walk(buf, cursor, element, space, str(i), sub_node)
            return

        if kind is Kind.DYNAMIC:
            length = self._read_int(buf, cursor, DYNAMIC_PREFIX, False)
            available = buf.available(cursor)
            if length > available:
                if self.config.skip_truncated_dynamic:
                    logger.warning("dynamic field '%s' declares %d bytes, %d available; skipped",
                                   base, length, available)
                    return
                raise NotEnoughData(
                    f"dynamic field '{base}' declares {length} bytes, {available} available")
            self._walk_bounded(buf, cursor, length, encoding.inner, space, base, node)
            return

        if kind is Kind.SIZED:
            self._walk_bounded(buf, cursor, encoding.size, encoding.inner, space, base, node)
            return

        if kind is Kind.GREEDY:
            self._walk_bounded(buf, cursor, buf.available(cursor), encoding.inner,
                               space, base, node)
            return

        if kind is Kind.SPLIT:
            self._walk(buf, cursor, encoding.resolve(SchemaType.BINARY), space, base, node)
            return

        if kind is Kind.LAZY:
            raise UnresolvedLazyError(base)

        raise ValueError(f"Unknown encoding kind: {kind}")

    def _walk_tags(self, buf: ChunkedBuffer, cursor: Cursor, encoding: Encoding,
                   space: Optional[range], base: str, node) -> None:
        tag_size = encoding.size
        if tag_size not in (1, 2):
            logger.warning("unsupported tag size %d at '%s'", tag_size, base)
            raise TagSizeNotSupported(f"{tag_size} bytes at '{base}'")
        tag_id = self._read_int(buf, cursor, tag_size, False)
        tag = encoding.tags.find_by_id(tag_id)
        if tag is None:
            raise TagNotFound(f"id {tag_id} at '{base}'")
        # the variant node spans the variant body, not the discriminant
        sub_node = self._container(buf, cursor, tag.encoding, space, base, node)
        self._walk(buf, cursor, tag.encoding, space, tag.variant, sub_node)

    def _walk_path(self, buf: ChunkedBuffer, cursor: Cursor, space: Optional[range],
                   base: str, node) -> None:
        start = cursor.data_offset
        components = read_path(buf, cursor)
        if node is None:
            return
        path_node = node.add(base, intersect(space, range(start, cursor.data_offset)),
                             TreeLeaf.nothing())
        for component in reversed(components):
            path_node.add(PATH_COMPONENT, range(0, 0), TreeLeaf.display(component))

    def _walk_bounded(self, buf: ChunkedBuffer, cursor: Cursor, length: int,
                      inner: Encoding, space: Optional[range], base: str, node) -> None:
        """Decode ``inner`` within the next ``length`` bytes, then step past them."""
        view = buf.bound_to(cursor, length)
        start = cursor.clone()
        self._walk(view, cursor, inner, space, base, node)
        rest = length - view.span(start, cursor)
        if rest > 0:
            view.skip(cursor, rest)


def decode_message(encoding: Encoding, data: bytes, chunks: Sequence[Chunk] = None,
                   name: str = 'message', config: DecoderConfig = None) -> DecodedNode:
    """Convenience function: render a message, raising ValueError on failure."""
    if chunks is None:
        chunks = [Chunk(range(0, len(data)))]
    result = SchemaInterpreter(config).decode(data, chunks, encoding, name)
    if not result.success:
        raise ValueError(f"Decode errors: {result.errors}")
    return result.tree
