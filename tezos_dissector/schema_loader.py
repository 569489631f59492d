"""
schema_loader.py - Build Encoding trees from YAML/JSON schema documents

Document layout:

    name: connection
    definitions:
      version:
        type: obj
        fields:
          - {name: chain_name, type: string}
          - {name: p2p_version, type: uint16}
    messages:
      connection_message:
        type: obj
        fields:
          - {name: port, type: uint16}
          - {name: versions, type: list, of: {$ref: '#/definitions/version'}}

A document may use a top-level ``fields`` list instead of ``messages``; it
then describes one obj message called ``name``.

Node types are the Kind values (uint8, z, string, obj, tags, ...) plus the
usual short aliases (u8, s16, i32, f64). Wrappers take their inner node
from ``of``; ``sized`` also takes ``size``; ``hash`` takes ``hash`` (a
HashType label); ``tags`` takes ``tag_size`` and ``cases`` mapping ids to
nodes with a ``variant`` name. A ``$ref`` to a definition that is already
being expanded becomes a Lazy node, so recursive schemas are allowed.

Usage:
    from tezos_dissector.schema_loader import load_schema

    document = load_schema('schemas/connection_message.yaml')
    name, encoding = document.message()
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

import yaml

from .encoding import (
    BOOL, BYTES, ENUM, FLOAT, INT8, INT16, INT31, INT32, INT64, MUTEZ, STRING,
    TIMESTAMP, UINT8, UINT16, UINT32, UNIT, Z, Encoding, Field, HashType, Kind, Tag,
)
from .errors import SchemaError

SIMPLE_TYPES = {
    'unit': UNIT,
    'int8': INT8, 'i8': INT8, 's8': INT8,
    'uint8': UINT8, 'u8': UINT8,
    'int16': INT16, 'i16': INT16, 's16': INT16,
    'uint16': UINT16, 'u16': UINT16,
    'int31': INT31, 'i31': INT31,
    'int32': INT32, 'i32': INT32, 's32': INT32,
    'uint32': UINT32, 'u32': UINT32,
    'int64': INT64, 'i64': INT64, 's64': INT64,
    'z': Z,
    'mutez': MUTEZ,
    'float': FLOAT, 'f64': FLOAT, 'double': FLOAT,
    'bool': BOOL,
    'string': STRING,
    'bytes': BYTES,
    'enum': ENUM,
    'timestamp': TIMESTAMP,
}

WRAPPER_TYPES = {
    'list': Encoding.list_of,
    'option': Encoding.option,
    'optional_field': Encoding.optional_field,
    'dynamic': Encoding.dynamic,
    'greedy': Encoding.greedy,
}


@dataclass
class SchemaDocument:
    """Parsed schema document."""
    name: str
    messages: Dict[str, Encoding] = field(default_factory=dict)

    def message(self, name: Optional[str] = None) -> Tuple[str, Encoding]:
        """Select a message by name; without a name the document must hold one."""
        if name is None:
            if len(self.messages) != 1:
                raise SchemaError(
                    f"Schema '{self.name}' has {len(self.messages)} messages, "
                    f"choose one of: {', '.join(self.messages)}")
            return next(iter(self.messages.items()))
        if name not in self.messages:
            raise SchemaError(f"No message '{name}' in schema '{self.name}'")
        return name, self.messages[name]


class SchemaLoader:
    """Turns one schema document into Encoding trees."""

    def __init__(self, document: Dict[str, Any]):
        if not isinstance(document, dict):
            raise SchemaError("Schema document must be a mapping")
        self.document = document
        self.name = document.get('name', 'unknown')
        self.definitions = document.get('definitions', {}) or {}
        self._cache: Dict[str, Encoding] = {}
        self._resolving: List[str] = []

    def load(self) -> SchemaDocument:
        result = SchemaDocument(name=self.name)
        messages = self.document.get('messages')
        if messages:
            for msg_name, node in messages.items():
                result.messages[msg_name] = self.parse(node)
        elif 'fields' in self.document:
            result.messages[self.name] = self._parse_obj(self.document['fields'])
        else:
            raise SchemaError(f"Schema '{self.name}' has neither 'messages' nor 'fields'")
        return result

    def _resolve_ref(self, ref: str) -> Encoding:
        """
        Resolve a $ref reference to its definition.

        Supports: #/definitions/name format (local references)
        """
        if not isinstance(ref, str) or not ref.startswith('#/definitions/'):
            raise SchemaError(f"Unsupported $ref format: {ref}")
        def_name = ref.split('/')[-1]
        if def_name not in self.definitions:
            raise SchemaError(f"Definition not found: {def_name}")
        if def_name in self._resolving:
            return Encoding.lazy(lambda: self._definition(def_name))
        return self._definition(def_name)

    def _definition(self, def_name: str) -> Encoding:
        if def_name not in self._cache:
            self._resolving.append(def_name)
            try:
                self._cache[def_name] = self.parse(self.definitions[def_name])
            finally:
                self._resolving.pop()
        return self._cache[def_name]

    def parse(self, node: Any) -> Encoding:
        """Parse one node; a bare string is shorthand for ``{type: <string>}``."""
        if isinstance(node, str):
            node = {'type': node}
        if not isinstance(node, dict):
            raise SchemaError(f"Schema node must be a mapping, got {node!r}")
        if '$ref' in node:
            return self._resolve_ref(node['$ref'])

        node_type = node.get('type')
        if node_type is None:
            raise SchemaError(f"Schema node without type: {node!r}")
        node_type = str(node_type).lower()

        if node_type in SIMPLE_TYPES:
            return SIMPLE_TYPES[node_type]
        if node_type in WRAPPER_TYPES:
            return WRAPPER_TYPES[node_type](self.parse(self._require(node, 'of')))
        if node_type == 'sized':
            return Encoding.sized(self._int(node, 'size'), self.parse(self._require(node, 'of')))
        if node_type == 'hash':
            try:
                return Encoding.hashed(HashType.from_label(self._require(node, 'hash')))
            except ValueError as e:
                raise SchemaError(str(e)) from e
        if node_type == 'obj':
            return self._parse_obj(self._require(node, 'fields'))
        if node_type == 'tup':
            elements = self._require(node, 'elements')
            return Encoding.tup(*(self.parse(e) for e in elements))
        if node_type == 'tags':
            return self._parse_tags(node)
        if node_type in (Kind.SPLIT.value, Kind.LAZY.value):
            raise SchemaError(f"'{node_type}' nodes cannot be written in a schema document")
        raise SchemaError(f"Unknown type: {node_type}")

    def _parse_obj(self, fields: List[Dict[str, Any]]) -> Encoding:
        members = []
        for field_def in fields:
            if not isinstance(field_def, dict) or 'name' not in field_def:
                raise SchemaError(f"Obj field needs a name: {field_def!r}")
            body = {k: v for k, v in field_def.items() if k != 'name'}
            members.append(Field(str(field_def['name']), self.parse(body)))
        return Encoding.obj(*members)

    def _parse_tags(self, node: Dict[str, Any]) -> Encoding:
        tag_size = self._int(node, 'tag_size', 1)
        tags = []
        for case_key, case_def in self._require(node, 'cases').items():
            tag_id = int(case_key, 0) if isinstance(case_key, str) else int(case_key)
            if not isinstance(case_def, dict) or 'variant' not in case_def:
                raise SchemaError(f"Tag {case_key} needs a variant name")
            body = {k: v for k, v in case_def.items() if k != 'variant'}
            encoding = self.parse(body) if body else UNIT
            tags.append(Tag(tag_id, str(case_def['variant']), encoding))
        try:
            return Encoding.tagged(tag_size, tags)
        except ValueError as e:
            raise SchemaError(str(e)) from e

    def _require(self, node: Dict[str, Any], key: str) -> Any:
        if key not in node:
            raise SchemaError(f"'{node.get('type')}' node needs '{key}'")
        return node[key]

    def _int(self, node: Dict[str, Any], key: str, default: int = None) -> int:
        value = node.get(key, default)
        if value is None:
            raise SchemaError(f"'{node.get('type')}' node needs '{key}'")
        try:
            return int(value)
        except (TypeError, ValueError) as e:
            raise SchemaError(f"'{key}' must be an integer, got {value!r}") from e


def parse_schema(document: Dict[str, Any]) -> SchemaDocument:
    return SchemaLoader(document).load()


def load_schema(path: Union[str, Path]) -> SchemaDocument:
    """Load a YAML (or JSON) schema document from ``path``."""
    with open(path, encoding='utf-8') as f:
        document = yaml.safe_load(f)
    return parse_schema(document)
