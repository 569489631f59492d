"""
messages.py - Schemas of the Tezos P2P messages

connection_message and metadata_message are plain documents bundled under
schemas/. peer_message needs a split (fitness) and a recursive path type,
which schema documents cannot express, so it is built here.
"""

from pathlib import Path
from typing import Callable, Dict

from .encoding import (
    BYTES, INT8, INT16, INT32, STRING, TIMESTAMP, UINT8, UNIT,
    Encoding, Field, HashType, SchemaType, Tag,
)
from .schema_loader import load_schema

SCHEMA_DIR = Path(__file__).parent / 'schemas'

CONNECTION_MESSAGE = 'connection_message'
METADATA_MESSAGE = 'metadata_message'
PEER_MESSAGE = 'peer_message'

BLOCK_HASH = Encoding.hashed(HashType.BLOCK_HASH)
CHAIN_ID = Encoding.hashed(HashType.CHAIN_ID)
OPERATION_HASH = Encoding.hashed(HashType.OPERATION_HASH)
OPERATION_LIST_LIST_HASH = Encoding.hashed(HashType.OPERATION_LIST_LIST_HASH)


def _fitness(schema_type: SchemaType) -> Encoding:
    if schema_type is SchemaType.BINARY:
        return Encoding.dynamic(Encoding.list_of(Encoding.dynamic(Encoding.list_of(UINT8))))
    return Encoding.list_of(BYTES)


def path_encoding() -> Encoding:
    """Declared type of operation_hashes_path (decoded by the path codec)."""
    path = Encoding.lazy(path_encoding)
    return Encoding.tagged(1, [
        Tag(0xF0, 'left', Encoding.obj(Field('path', path),
                                       Field('right', OPERATION_LIST_LIST_HASH))),
        Tag(0x0F, 'right', Encoding.obj(Field('left', OPERATION_LIST_LIST_HASH),
                                        Field('path', path))),
        Tag(0x00, 'op', UNIT),
    ])


BLOCK_HEADER = Encoding.obj(
    Field('level', INT32),
    Field('proto', UINT8),
    Field('predecessor', BLOCK_HASH),
    Field('timestamp', TIMESTAMP),
    Field('validation_pass', UINT8),
    Field('operations_hash', OPERATION_LIST_LIST_HASH),
    Field('fitness', Encoding.split(_fitness)),
    Field('context', Encoding.hashed(HashType.CONTEXT_HASH)),
    Field('protocol_data', Encoding.list_of(UINT8)),
)

OPERATION = Encoding.obj(
    Field('branch', BLOCK_HASH),
    Field('data', Encoding.list_of(UINT8)),
)

OPERATIONS_FOR_BLOCK = Encoding.obj(
    Field('hash', BLOCK_HASH),
    Field('validation_pass', INT8),
)

MEMPOOL = Encoding.obj(
    Field('known_valid', Encoding.dynamic(Encoding.list_of(OPERATION_HASH))),
    Field('pending', Encoding.dynamic(Encoding.dynamic(Encoding.list_of(OPERATION_HASH)))),
)

PROTOCOL_COMPONENT = Encoding.obj(
    Field('name', STRING),
    Field('interface', Encoding.optional_field(STRING)),
    Field('implementation', STRING),
)

SWAP = Encoding.obj(
    Field('point', STRING),
    Field('peer_id', Encoding.hashed(HashType.CRYPTOBOX_PUBLIC_KEY_HASH)),
)


def _hash_list(name: str, hash_encoding: Encoding) -> Encoding:
    return Encoding.obj(Field(name, Encoding.dynamic(Encoding.list_of(hash_encoding))))


PEER_MESSAGE_VARIANTS = Encoding.tagged(2, [
    Tag(0x01, 'disconnect', UNIT),
    Tag(0x02, 'bootstrap', UNIT),
    Tag(0x03, 'advertise', Encoding.obj(Field('id', Encoding.list_of(STRING)))),
    Tag(0x04, 'swap_request', SWAP),
    Tag(0x05, 'swap_ack', SWAP),
    Tag(0x10, 'get_current_branch', Encoding.obj(Field('chain_id', CHAIN_ID))),
    Tag(0x11, 'current_branch', Encoding.obj(
        Field('chain_id', CHAIN_ID),
        Field('current_branch', Encoding.obj(
            Field('current_head', Encoding.dynamic(BLOCK_HEADER)),
            Field('history', Encoding.list_of(BLOCK_HASH)),
        )),
    )),
    Tag(0x12, 'deactivate', Encoding.obj(Field('deactivate', CHAIN_ID))),
    Tag(0x13, 'get_current_head', Encoding.obj(Field('chain_id', CHAIN_ID))),
    Tag(0x14, 'current_head', Encoding.obj(
        Field('chain_id', CHAIN_ID),
        Field('current_block_header', Encoding.dynamic(BLOCK_HEADER)),
        Field('current_mempool', MEMPOOL),
    )),
    Tag(0x20, 'get_block_headers', _hash_list('get_block_headers', BLOCK_HASH)),
    Tag(0x21, 'block_header', Encoding.obj(Field('block_header', Encoding.dynamic(BLOCK_HEADER)))),
    Tag(0x30, 'get_operations', _hash_list('get_operations', OPERATION_HASH)),
    Tag(0x31, 'operation', Encoding.obj(Field('operation', OPERATION))),
    Tag(0x40, 'get_protocols', _hash_list('get_protocols', Encoding.hashed(HashType.PROTOCOL_HASH))),
    Tag(0x41, 'protocol', Encoding.obj(Field('protocol', Encoding.obj(
        Field('expected_env_version', INT16),
        Field('components', Encoding.dynamic(Encoding.list_of(PROTOCOL_COMPONENT))),
    )))),
    Tag(0x60, 'get_operations_for_blocks', Encoding.obj(Field(
        'get_operations_for_blocks', Encoding.dynamic(Encoding.list_of(OPERATIONS_FOR_BLOCK))))),
    Tag(0x61, 'operations_for_blocks', Encoding.obj(
        Field('operations_for_block', OPERATIONS_FOR_BLOCK),
        Field('operation_hashes_path', Encoding.lazy(path_encoding)),
        Field('operations', Encoding.list_of(Encoding.dynamic(OPERATION))),
    )),
])

PEER_MESSAGE_RESPONSE = Encoding.obj(
    Field('messages', Encoding.dynamic(Encoding.list_of(PEER_MESSAGE_VARIANTS))),
)


def _bundled(name: str) -> Callable[[], Encoding]:
    return lambda: load_schema(SCHEMA_DIR / f'{name}.yaml').message(name)[1]


_FACTORIES: Dict[str, Callable[[], Encoding]] = {
    CONNECTION_MESSAGE: _bundled(CONNECTION_MESSAGE),
    METADATA_MESSAGE: _bundled(METADATA_MESSAGE),
    PEER_MESSAGE: lambda: PEER_MESSAGE_RESPONSE,
}
_cache: Dict[str, Encoding] = {}


def message_names():
    return list(_FACTORIES)


def message_schema(name: str) -> Encoding:
    """Schema of a named P2P message."""
    if name not in _FACTORIES:
        raise KeyError(f"Unknown message: {name} (known: {', '.join(_FACTORIES)})")
    if name not in _cache:
        _cache[name] = _FACTORIES[name]()
    return _cache[name]
