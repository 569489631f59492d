"""
tree.py - Output tree for rendered messages

The interpreter only calls ``node.add(label, range, leaf)`` on its sink and
uses the returned object as the sink for children, so any host widget
adapter exposing that method can replace DecodedNode.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Union


class LeafKind(Enum):
    NOTHING = 'nothing'
    DISPLAY = 'display'
    DEC = 'dec'
    FLOAT = 'float'


@dataclass(frozen=True)
class TreeLeaf:
    """Value carried by a tree node."""
    kind: LeafKind
    value: Union[None, str, int, float] = None

    @classmethod
    def nothing(cls) -> 'TreeLeaf':
        return cls(LeafKind.NOTHING)

    @classmethod
    def display(cls, value: Any) -> 'TreeLeaf':
        return cls(LeafKind.DISPLAY, str(value))

    @classmethod
    def dec(cls, value: int) -> 'TreeLeaf':
        return cls(LeafKind.DEC, int(value))

    @classmethod
    def floating(cls, value: float) -> 'TreeLeaf':
        return cls(LeafKind.FLOAT, float(value))


def intersect(space: range, item: range) -> range:
    """Clip ``item`` to the visible ``space``; no overlap gives range(0, 0)."""
    start = max(space.start, item.start)
    stop = min(space.stop, item.stop)
    if start >= stop:
        return range(0, 0)
    return range(start, stop)


@dataclass
class DecodedNode:
    """In-memory tree node."""
    label: str = ''
    byte_range: range = range(0, 0)
    leaf: TreeLeaf = field(default_factory=TreeLeaf.nothing)
    children: List['DecodedNode'] = field(default_factory=list)

    def add(self, label: str, item: range, leaf: TreeLeaf) -> 'DecodedNode':
        child = DecodedNode(label, item, leaf)
        self.children.append(child)
        return child

    @property
    def value(self):
        return self.leaf.value

    def child(self, label: str) -> Optional['DecodedNode']:
        """First direct child with ``label``."""
        for node in self.children:
            if node.label == label:
                return node
        return None

    def find(self, dotted: str) -> Optional['DecodedNode']:
        """Follow a dotted label path, e.g. ``'versions.chain_name'``."""
        node = self
        for label in dotted.split('.'):
            node = node.child(label)
            if node is None:
                return None
        return node

    def walk(self, depth: int = 0) -> Iterator[tuple]:
        """Yield (depth, node) for every descendant, pre-order."""
        for node in self.children:
            yield depth, node
            yield from node.walk(depth + 1)

    def to_dict(self) -> Dict[str, Any]:
        result = {
            'label': self.label,
            'range': [self.byte_range.start, self.byte_range.stop],
        }
        if self.leaf.kind is not LeafKind.NOTHING:
            result['value'] = self.leaf.value
        if self.children:
            result['children'] = [c.to_dict() for c in self.children]
        return result

    def format(self, indent: str = '  ') -> str:
        """Indented text rendering of the descendants."""
        lines = []
        for depth, node in self.walk():
            text = f"{indent * depth}{node.label}"
            if node.leaf.kind is not LeafKind.NOTHING:
                text += f": {node.leaf.value}"
            if len(node.byte_range):
                text += f"  [{node.byte_range.start}..{node.byte_range.stop})"
            lines.append(text)
        return '\n'.join(lines)
