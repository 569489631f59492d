"""
encoding.py - Schema node model for Tezos P2P binary encodings

A schema is a tree of Encoding nodes drawn from a closed set of kinds.
The interpreter and the field enumerator dispatch on Encoding.kind; no
other node shapes exist.

Usage:
    from tezos_dissector.encoding import Encoding, Field, Tag, UINT16, STRING

    version = Encoding.obj(
        Field('chain_name', STRING),
        Field('distributed_db_version', UINT16),
        Field('p2p_version', UINT16),
    )
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Callable, Dict, Iterable, Iterator, Optional, Tuple


class Kind(Enum):
    """Schema node kinds. Values double as type names in schema documents."""
    UNIT = 'unit'
    INT8 = 'int8'
    UINT8 = 'uint8'
    INT16 = 'int16'
    UINT16 = 'uint16'
    INT31 = 'int31'
    INT32 = 'int32'
    UINT32 = 'uint32'
    INT64 = 'int64'
    Z = 'z'
    MUTEZ = 'mutez'
    FLOAT = 'float'
    BOOL = 'bool'
    STRING = 'string'
    BYTES = 'bytes'
    ENUM = 'enum'
    TIMESTAMP = 'timestamp'
    HASH = 'hash'
    LIST = 'list'
    OPTION = 'option'
    OPTIONAL_FIELD = 'optional_field'
    OBJ = 'obj'
    TUP = 'tup'
    TAGS = 'tags'
    DYNAMIC = 'dynamic'
    SIZED = 'sized'
    GREEDY = 'greedy'
    SPLIT = 'split'
    LAZY = 'lazy'


class SchemaType(Enum):
    """Format context handed to Split selectors."""
    BINARY = 'binary'
    JSON = 'json'


class HashType(Enum):
    """Fixed-size hashes and keys, with their encoded size in bytes."""
    CHAIN_ID = ('chain_id', 4)
    BLOCK_HASH = ('block_hash', 32)
    BLOCK_METADATA_HASH = ('block_metadata_hash', 32)
    CONTEXT_HASH = ('context_hash', 32)
    PROTOCOL_HASH = ('protocol_hash', 32)
    OPERATION_HASH = ('operation_hash', 32)
    OPERATION_LIST_LIST_HASH = ('operation_list_list_hash', 32)
    OPERATION_METADATA_HASH = ('operation_metadata_hash', 32)
    OPERATION_METADATA_LIST_LIST_HASH = ('operation_metadata_list_list_hash', 32)
    CRYPTOBOX_PUBLIC_KEY_HASH = ('cryptobox_public_key_hash', 16)
    CONTRACT_KT1_HASH = ('contract_kt1_hash', 20)
    CONTRACT_TZ1_HASH = ('contract_tz1_hash', 20)
    CONTRACT_TZ2_HASH = ('contract_tz2_hash', 20)
    CONTRACT_TZ3_HASH = ('contract_tz3_hash', 20)
    PUBLIC_KEY_ED25519 = ('public_key_ed25519', 32)
    PUBLIC_KEY_SECP256K1 = ('public_key_secp256k1', 33)
    PUBLIC_KEY_P256 = ('public_key_p256', 33)
    SIGNATURE = ('signature', 64)

    def __init__(self, label: str, size: int):
        self.label = label
        self.size = size

    @classmethod
    def from_label(cls, label: str) -> 'HashType':
        for hash_type in cls:
            if hash_type.label == label:
                return hash_type
        raise ValueError(f"Unknown hash type: {label}")


# (size_bytes, signed) for fixed-width integer kinds, all big-endian
FIXED_INTEGERS = {
    Kind.INT8: (1, True),
    Kind.UINT8: (1, False),
    Kind.INT16: (2, True),
    Kind.UINT16: (2, False),
    Kind.INT31: (4, True),
    Kind.INT32: (4, True),
    Kind.UINT32: (4, False),
    Kind.INT64: (8, True),
}

FLOAT_SIZE = 8
TIMESTAMP_SIZE = 8
BOOL_SIZE = 1


@dataclass(frozen=True)
class Encoding:
    """One schema node.

    Only the attributes relevant to ``kind`` are set:
    ``inner`` for list/option/optional_field/dynamic/sized/greedy,
    ``size`` for tags (discriminant width) and sized (byte length),
    ``tags`` for tags, ``fields`` for obj, ``elements`` for tup,
    ``hash_type`` for hash, ``func`` for split and lazy.
    """
    kind: Kind
    inner: Optional['Encoding'] = None
    size: int = 0
    tags: Optional['TagMap'] = None
    fields: Tuple['Field', ...] = ()
    elements: Tuple['Encoding', ...] = ()
    hash_type: Optional[HashType] = None
    func: Optional[Callable] = field(default=None, compare=False)

    @classmethod
    def obj(cls, *fields: 'Field') -> 'Encoding':
        return cls(Kind.OBJ, fields=tuple(fields))

    @classmethod
    def tup(cls, *elements: 'Encoding') -> 'Encoding':
        return cls(Kind.TUP, elements=tuple(elements))

    @classmethod
    def tagged(cls, tag_size: int, tags: Iterable['Tag']) -> 'Encoding':
        return cls(Kind.TAGS, size=tag_size, tags=TagMap(tags))

    @classmethod
    def list_of(cls, inner: 'Encoding') -> 'Encoding':
        return cls(Kind.LIST, inner=inner)

    @classmethod
    def option(cls, inner: 'Encoding') -> 'Encoding':
        return cls(Kind.OPTION, inner=inner)

    @classmethod
    def optional_field(cls, inner: 'Encoding') -> 'Encoding':
        return cls(Kind.OPTIONAL_FIELD, inner=inner)

    @classmethod
    def dynamic(cls, inner: 'Encoding') -> 'Encoding':
        return cls(Kind.DYNAMIC, inner=inner)

    @classmethod
    def sized(cls, size: int, inner: 'Encoding') -> 'Encoding':
        return cls(Kind.SIZED, inner=inner, size=size)

    @classmethod
    def greedy(cls, inner: 'Encoding') -> 'Encoding':
        return cls(Kind.GREEDY, inner=inner)

    @classmethod
    def hashed(cls, hash_type: HashType) -> 'Encoding':
        return cls(Kind.HASH, hash_type=hash_type)

    @classmethod
    def split(cls, selector: Callable[[SchemaType], 'Encoding']) -> 'Encoding':
        return cls(Kind.SPLIT, func=selector)

    @classmethod
    def lazy(cls, resolver: Callable[[], 'Encoding']) -> 'Encoding':
        return cls(Kind.LAZY, func=resolver)

    def resolve(self, schema_type: SchemaType = SchemaType.BINARY) -> 'Encoding':
        """Evaluate a split or lazy node once."""
        if self.kind is Kind.SPLIT:
            return self.func(schema_type)
        if self.kind is Kind.LAZY:
            return self.func()
        return self


@dataclass(frozen=True)
class Field:
    """Named member of an obj encoding."""
    name: str
    encoding: Encoding


@dataclass(frozen=True)
class Tag:
    """Variant of a tags encoding."""
    id: int
    variant: str
    encoding: Encoding


class TagMap:
    """Discriminant id to variant lookup."""

    def __init__(self, tags: Iterable[Tag] = ()):
        self._by_id: Dict[int, Tag] = {}
        for tag in tags:
            if tag.id in self._by_id:
                raise ValueError(f"Duplicate tag id {tag.id} ({tag.variant})")
            self._by_id[tag.id] = tag

    def find_by_id(self, tag_id: int) -> Optional[Tag]:
        return self._by_id.get(tag_id)

    def __iter__(self) -> Iterator[Tag]:
        return iter(self._by_id.values())

    def __len__(self) -> int:
        return len(self._by_id)

    def __eq__(self, other) -> bool:
        if not isinstance(other, TagMap):
            return NotImplemented
        return self._by_id == other._by_id

    def __repr__(self) -> str:
        variants = ', '.join(f"{t.id}:{t.variant}" for t in self)
        return f"TagMap({variants})"


UNIT = Encoding(Kind.UNIT)
INT8 = Encoding(Kind.INT8)
UINT8 = Encoding(Kind.UINT8)
INT16 = Encoding(Kind.INT16)
UINT16 = Encoding(Kind.UINT16)
INT31 = Encoding(Kind.INT31)
INT32 = Encoding(Kind.INT32)
UINT32 = Encoding(Kind.UINT32)
INT64 = Encoding(Kind.INT64)
Z = Encoding(Kind.Z)
MUTEZ = Encoding(Kind.MUTEZ)
FLOAT = Encoding(Kind.FLOAT)
BOOL = Encoding(Kind.BOOL)
STRING = Encoding(Kind.STRING)
BYTES = Encoding(Kind.BYTES)
ENUM = Encoding(Kind.ENUM)
TIMESTAMP = Encoding(Kind.TIMESTAMP)

_WRAPPERS = (Kind.LIST, Kind.OPTION, Kind.OPTIONAL_FIELD,
             Kind.DYNAMIC, Kind.SIZED, Kind.GREEDY)


def unwind(encoding: Encoding, depth: int) -> Encoding:
    """
    Expand Lazy nodes up to ``depth`` levels of nesting.

    Lazy nodes below that depth are left in place; the interpreter raises
    UnresolvedLazyError if a message actually reaches one. Split nodes are
    kept but their result is unwound with the remaining depth.
    """
    kind = encoding.kind
    if kind is Kind.LAZY:
        if depth <= 0:
            return encoding
        return unwind(encoding.func(), depth - 1)
    if kind is Kind.SPLIT:
        selector = encoding.func
        return Encoding.split(lambda schema_type: unwind(selector(schema_type), depth))
    if kind in _WRAPPERS:
        return replace(encoding, inner=unwind(encoding.inner, depth))
    if kind is Kind.OBJ:
        return replace(encoding, fields=tuple(
            Field(f.name, unwind(f.encoding, depth)) for f in encoding.fields))
    if kind is Kind.TUP:
        return replace(encoding, elements=tuple(
            unwind(e, depth) for e in encoding.elements))
    if kind is Kind.TAGS:
        return replace(encoding, tags=TagMap(
            Tag(t.id, t.variant, unwind(t.encoding, depth)) for t in encoding.tags))
    return encoding
