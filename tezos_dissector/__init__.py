"""
tezos_dissector - Schema-driven decoder for chunked Tezos P2P messages

Usage:
    from tezos_dissector import SchemaInterpreter, layout_chunks, message_schema

    data, chunks = layout_chunks([payload])
    result = SchemaInterpreter().decode(data, chunks,
                                        message_schema('connection_message'),
                                        'connection_message')
"""

from .chunked import Chunk, ChunkedBuffer, Cursor, layout_chunks
from .config import DecoderConfig, load_config
from .encoding import Encoding, Field, HashType, Kind, SchemaType, Tag, unwind
from .errors import (
    BadPathTag, DecodingError, NotEnoughData, SchemaError, TagNotFound,
    TagSizeNotSupported, UnexpectedOptionDiscriminant, UnresolvedLazyError,
)
from .fields import FieldDescriptor, FieldKind, enumerate_fields
from .interpreter import DecodeResult, SchemaInterpreter, decode_message
from .messages import message_schema
from .schema_loader import load_schema, parse_schema
from .tree import DecodedNode, TreeLeaf

__version__ = '1.0.0'
