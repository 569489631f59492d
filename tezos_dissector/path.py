"""
path.py - Merkle path of an operation list inside a block

Wire format, one tag byte per step:

    0x00                      end of path
    0xf0 <path> <hash>        left step, hash read after the rest of the path
    0x0f <hash> <path>        right step, hash read before the rest

Components are collected innermost first: "left: <hex>" / "right: <hex>".
"""

from typing import List, Optional, Sequence, Tuple

from .chunked import ChunkedBuffer, Cursor
from .encoding import HashType
from .errors import BadPathTag

PATH_END = 0x00
PATH_LEFT = 0xF0
PATH_RIGHT = 0x0F

PATH_HASH = HashType.OPERATION_LIST_LIST_HASH


def read_path(buf: ChunkedBuffer, cursor: Cursor) -> List[str]:
    """Decode a path at ``cursor``; returns components innermost first."""
    size = PATH_HASH.size
    components = []
    # pending steps, outermost first; right steps already hold their hash
    pending: List[Tuple[str, Optional[str]]] = []
    while True:
        tag = buf.bounded_read(cursor, 1)[0]
        if tag == PATH_END:
            break
        if tag == PATH_LEFT:
            pending.append(('left', None))
        elif tag == PATH_RIGHT:
            pending.append(('right', buf.bounded_read(cursor, size).hex()))
        else:
            raise BadPathTag(f"0x{tag:02x}")
    while pending:
        side, digest = pending.pop()
        if digest is None:
            digest = buf.bounded_read(cursor, size).hex()
        components.append(f"{side}: {digest}")
    return components


def encode_path(steps: Sequence[Tuple[str, bytes]]) -> bytes:
    """Encode ``(side, hash)`` steps, outermost first, into wire bytes."""
    if not steps:
        return bytes([PATH_END])
    (side, digest), rest = steps[0], steps[1:]
    if len(digest) != PATH_HASH.size:
        raise ValueError(f"Path hash must be {PATH_HASH.size} bytes, got {len(digest)}")
    if side == 'left':
        return bytes([PATH_LEFT]) + encode_path(rest) + digest
    if side == 'right':
        return bytes([PATH_RIGHT]) + digest + encode_path(rest)
    raise ValueError(f"Unknown path side: {side}")
