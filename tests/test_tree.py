"""
Tests for the decoded output tree.
"""

from tezos_dissector.tree import DecodedNode, LeafKind, TreeLeaf, intersect


def sample_tree():
    root = DecodedNode()
    message = root.add('msg', range(0, 6), TreeLeaf.nothing())
    message.add('port', range(0, 2), TreeLeaf.dec(9732))
    version = message.add('version', range(2, 6), TreeLeaf.nothing())
    version.add('name', range(2, 6), TreeLeaf.display('abcd'))
    return root


class TestIntersect:

    def test_overlap(self):
        assert intersect(range(0, 10), range(5, 15)) == range(5, 10)
        assert intersect(range(4, 8), range(0, 20)) == range(4, 8)

    def test_disjoint(self):
        assert intersect(range(0, 4), range(4, 8)) == range(0, 0)
        assert intersect(range(10, 20), range(0, 2)) == range(0, 0)

    def test_empty_item(self):
        assert intersect(range(0, 10), range(3, 3)) == range(0, 0)


class TestDecodedNode:

    def test_leaves(self):
        assert TreeLeaf.display(12).value == '12'
        assert TreeLeaf.dec(True).value == 1
        assert TreeLeaf.floating(1).kind is LeafKind.FLOAT

    def test_find(self):
        root = sample_tree()
        assert root.find('msg.port').value == 9732
        assert root.find('msg.version.name').value == 'abcd'
        assert root.find('msg.missing') is None

    def test_walk_is_preorder(self):
        labels = [(depth, node.label) for depth, node in sample_tree().walk()]
        assert labels == [(0, 'msg'), (1, 'port'), (1, 'version'), (2, 'name')]

    def test_to_dict(self):
        assert sample_tree().children[0].to_dict() == {
            'label': 'msg',
            'range': [0, 6],
            'children': [
                {'label': 'port', 'range': [0, 2], 'value': 9732},
                {'label': 'version', 'range': [2, 6], 'children': [
                    {'label': 'name', 'range': [2, 6], 'value': 'abcd'},
                ]},
            ],
        }

    def test_format(self):
        assert sample_tree().format() == '\n'.join([
            'msg  [0..6)',
            '  port: 9732  [0..2)',
            '  version  [2..6)',
            '    name: abcd  [2..6)',
        ])

    def test_format_omits_empty_range(self):
        root = DecodedNode()
        root.add('path_component', range(0, 0), TreeLeaf.display('left: 00'))
        assert root.format() == 'path_component: left: 00'
