#!/usr/bin/env python3
"""
cli.py - Command line front end

Usage:
    tezos-dissector decode --message connection_message 1f90...
    tezos-dissector decode --schema my_schema.yaml --chunk 12 --chunk 16 0a0b...
    tezos-dissector fields --message peer_message
    tezos-dissector --log-file decode.log decode --message metadata_message ff00
"""

import argparse
import json
import logging
import sys
from typing import List, Optional, Tuple

import yaml

from .chunked import layout_chunks, split_payload
from .config import DecoderConfig, load_config
from .encoding import Encoding, unwind
from .errors import SchemaError
from .fields import enumerate_fields
from .interpreter import SchemaInterpreter
from .logging_utils import setup_logging
from .messages import message_names, message_schema
from .schema_loader import load_schema

logger = logging.getLogger(__name__)


def _select_schema(args) -> Tuple[str, Encoding]:
    if args.schema:
        document = load_schema(args.schema)
        return document.message(args.message)
    name = args.message or 'peer_message'
    return name, message_schema(name)


def _read_payload(text: str) -> bytes:
    if text == '-':
        text = sys.stdin.read()
    return bytes.fromhex(''.join(text.split()))


def cmd_decode(args, config: DecoderConfig) -> int:
    name, encoding = _select_schema(args)
    # documents express recursion with $ref, which loads as Lazy; the field
    # enumerator unwinds on its own, so only decoding expands it here
    encoding = unwind(encoding, config.lazy_depth)
    payload = _read_payload(args.payload)
    data, chunks = layout_chunks(split_payload(payload, args.chunk or []))
    if not chunks:
        chunks = layout_chunks([b''])[1]

    result = SchemaInterpreter(config).decode(data, chunks, encoding, name)
    if args.json:
        print(json.dumps({
            'tree': [c.to_dict() for c in result.tree.children],
            'bytes_consumed': result.bytes_consumed,
            'errors': result.errors,
        }, indent=2))
    else:
        print(result.tree.format())
        print(f"\nBytes consumed: {result.bytes_consumed} of {len(payload)}")
        for error in result.errors:
            print(f"Error: {error}", file=sys.stderr)
    return 0 if result.success else 1


def cmd_fields(args, config: DecoderConfig) -> int:
    name, encoding = _select_schema(args)
    descriptors = enumerate_fields(name, encoding, config.field_prefix, config.lazy_depth)
    if args.json:
        print(json.dumps([
            {'name': d.name, 'abbrev': d.abbrev, 'kind': d.kind.value}
            for d in descriptors
        ], indent=2))
    else:
        for d in descriptors:
            print(f"{d.abbrev:<80} {d.kind.value:<8} {d.name}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='tezos-dissector',
        description='Decode chunked Tezos P2P messages against a schema')
    parser.add_argument('--config', help='Path to decoder config YAML')
    parser.add_argument('-v', '--verbose', action='store_true',
                        help='Log debug output to stderr')
    parser.add_argument('--log-file', metavar='PATH',
                        help='Also write debug output to this file')
    sub = parser.add_subparsers(dest='command', required=True)

    def add_schema_args(p):
        p.add_argument('--message', help=f"Message name ({', '.join(message_names())})")
        p.add_argument('--schema', help='Schema YAML document instead of a built-in message')
        p.add_argument('--json', action='store_true', help='Output as JSON')

    decode = sub.add_parser('decode', help='Decode a hex payload')
    add_schema_args(decode)
    decode.add_argument('payload', help="Payload as hex, or '-' for stdin")
    decode.add_argument('--chunk', type=int, action='append', metavar='SIZE',
                        help='Body size of the next chunk; repeat, the rest forms the last chunk')
    decode.set_defaults(func=cmd_decode)

    fields = sub.add_parser('fields', help='List field descriptors of a schema')
    add_schema_args(fields)
    fields.set_defaults(func=cmd_fields)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        config = load_config(args.config)
    except (OSError, ValueError, yaml.YAMLError) as e:
        print(f"Error loading config: {e}", file=sys.stderr)
        return 1
    setup_logging(console_level=logging.DEBUG if args.verbose else config.log_level,
                  file_path=args.log_file)

    try:
        return args.func(args, config)
    except (OSError, SchemaError, KeyError, ValueError, yaml.YAMLError) as e:
        logger.debug("command failed", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == '__main__':
    sys.exit(main())
