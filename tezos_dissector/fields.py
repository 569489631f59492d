"""
fields.py - Static field registration for a message schema

Lists every addressable field of a schema without looking at any message,
so a host can register display columns once. Each descriptor carries a
display name, a dotted path and the display kind of its values.

Tagged unions are enumerated by probing every possible discriminant;
tag maps are small and this runs once per schema. Lazy nodes are unwound
a fixed number of times, after which the branch is cut off, so
self-referential schemas still produce a finite list.
"""

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from .config import DEFAULT_FIELD_PREFIX, DEFAULT_LAZY_DEPTH
from .encoding import FIXED_INTEGERS, Encoding, Kind, SchemaType


class FieldKind(Enum):
    NOTHING = 'none'
    STRING = 'string'
    INT_DEC = 'integer'


@dataclass(frozen=True)
class FieldDescriptor:
    name: str
    abbrev: str
    kind: FieldKind


# Kinds rendered as display strings
_STRING_KINDS = {
    Kind.Z, Kind.MUTEZ, Kind.FLOAT, Kind.BOOL, Kind.STRING, Kind.BYTES,
    Kind.ENUM, Kind.HASH, Kind.TIMESTAMP,
}

# Kinds that add no path component of their own
_TRANSPARENT = {
    Kind.OPTION, Kind.OPTIONAL_FIELD, Kind.DYNAMIC, Kind.SIZED, Kind.GREEDY,
}


def display_name(component: str) -> str:
    """'chain_name' -> 'Chain name'"""
    if not component:
        return component
    return (component[0].upper() + component[1:]).replace('_', ' ')


def to_descriptor(base: str, component: str, kind: FieldKind) -> FieldDescriptor:
    return FieldDescriptor(display_name(component), f"{base}.{component}", kind)


def _field_kind(encoding: Encoding) -> Optional[FieldKind]:
    kind = encoding.kind
    if kind in FIXED_INTEGERS:
        return FieldKind.INT_DEC
    if kind in _STRING_KINDS:
        return FieldKind.STRING
    if kind is Kind.LIST and encoding.inner.kind is Kind.UINT8:
        return FieldKind.STRING
    if kind in (Kind.OBJ, Kind.TUP, Kind.TAGS):
        return FieldKind.NOTHING
    return None


def _recursive(base: str, name: str, encoding: Encoding, depth: int) -> List[FieldDescriptor]:
    new_base = f"{base}.{name}"
    kind = encoding.kind
    more: List[FieldDescriptor] = []

    if kind is Kind.TAGS:
        # probe every id the discriminant can hold
        for tag_id in range(1 << (8 * encoding.size)):
            tag = encoding.tags.find_by_id(tag_id)
            if tag is not None:
                more.extend(_recursive(new_base, tag.variant, tag.encoding, depth))
    elif kind is Kind.OBJ:
        for member in encoding.fields:
            more.extend(_recursive(new_base, member.name, member.encoding, depth))
    elif kind is Kind.TUP:
        for i, element in enumerate(encoding.elements):
            more.extend(_recursive(new_base, str(i), element, depth))
    elif kind is Kind.LIST and encoding.inner.kind is not Kind.UINT8:
        more.extend(_recursive(base, name, encoding.inner, depth))
    elif kind in _TRANSPARENT:
        more.extend(_recursive(base, name, encoding.inner, depth))
    elif kind is Kind.SPLIT:
        more.extend(_recursive(base, name, encoding.resolve(SchemaType.BINARY), depth))
    elif kind is Kind.LAZY:
        if depth > 0:
            more.extend(_recursive(base, name, encoding.resolve(), depth - 1))

    field_kind = _field_kind(encoding)
    if field_kind is None:
        return more
    return [to_descriptor(base, name, field_kind)] + more


def enumerate_fields(name: str, encoding: Encoding, base: str = DEFAULT_FIELD_PREFIX,
                     depth: int = DEFAULT_LAZY_DEPTH) -> List[FieldDescriptor]:
    """
    All field descriptors of a message schema.

    Args:
        name: Message name, the first path component under ``base``
        encoding: Message schema
        base: Path prefix shared by all fields
        depth: Number of Lazy nodes unwound along any branch

    Returns:
        Descriptors in schema order, parents before their children
    """
    return _recursive(base, name, encoding, depth)
