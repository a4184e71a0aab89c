"""
Unit tests for move_tree.py module.

Tests:
- Pointer transitions: add_move, previous_step, next_step, clear
- Branching and switch_to_node
- Node lookup and traversal
- Board projection
- Serialization round-trip and malformed input
"""

import json
import random

import pytest
import sys
from pathlib import Path

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from go_record.board import Color, Point, Stone, create_empty_board
from go_record.capture import CaptureService
from go_record.errors import MalformedTreeError, NodeNotInTreeError
from go_record.groups import Group
from go_record.move_tree import ROOT_NODE_ID, MoveTree


def black(x, y):
    return Stone(x, y, Color.BLACK)


def white(x, y):
    return Stone(x, y, Color.WHITE)


def assert_depth_invariant(tree):
    for node in tree.iter_nodes():
        expected = node.parent_node.current_move_number + 1 if node.parent_node else 0
        assert node.current_move_number == expected


def snapshot(tree):
    """Everything the round-trip must preserve, as plain data."""
    nodes = {}
    for node in tree.iter_nodes():
        nodes[node.id] = (
            node.x, node.y, node.color, node.current_move_number,
            [g.to_dict() for g in node.captured_groups],
            node.parent_node.id if node.parent_node else None,
            [c.id for c in node.children_nodes],
        )
    return {
        'root': tree.root_node.id,
        'nodes': nodes,
        'pointer': (
            tree.pointer.current_node.id,
            tree.pointer.current_move_number,
            tree.pointer.total_move_number,
        ),
    }


@pytest.fixture
def tree():
    return MoveTree()


class TestInitialState:
    """Tests for a fresh MoveTree."""

    def test_root(self, tree):
        root = tree.root_node
        assert root.id == ROOT_NODE_ID
        assert (root.x, root.y) == (-1, -1)
        assert root.color == Color.EMPTY
        assert root.parent_node is None

    def test_pointer(self, tree):
        assert tree.pointer.current_node is tree.root_node
        assert tree.pointer.current_move_number == 0
        assert tree.pointer.total_move_number == 0

    def test_navigation_flags(self, tree):
        assert not tree.can_previous
        assert not tree.can_next
        assert tree.next_color == Color.BLACK


class TestAddMove:
    """Tests for MoveTree.add_move."""

    def test_add_move_advances_pointer(self, tree):
        node = tree.add_move(black(3, 3), [])

        assert tree.pointer.current_node is node
        assert tree.pointer.current_move_number == 1
        assert tree.pointer.total_move_number == 1
        assert node.parent_node is tree.root_node
        assert (node.x, node.y, node.color) == (3, 3, Color.BLACK)

    def test_ids_are_unique_and_distinct_from_root(self, tree):
        ids = {tree.root_node.id}
        for i in range(5):
            ids.add(tree.add_move(black(i, 0), []).id)
            tree.previous_step()

        assert len(ids) == 6

    def test_captured_groups_attached(self, tree):
        group = Group(stones=[Point(0, 0)], liberties=[], color=Color.WHITE)

        node = tree.add_move(black(1, 0), [group])

        assert node.captured_groups == [group]

    def test_next_color_alternates(self, tree):
        tree.add_move(black(3, 3), [])
        assert tree.next_color == Color.WHITE
        tree.add_move(white(4, 4), [])
        assert tree.next_color == Color.BLACK


class TestNavigation:
    """Tests for previous_step / next_step."""

    def test_previous_at_root(self, tree):
        assert tree.previous_step() is False
        assert tree.pointer.current_node is tree.root_node

    def test_next_at_leaf(self, tree):
        tree.add_move(black(3, 3), [])
        pointer = tree.pointer

        assert tree.next_step() is False
        assert tree.pointer == pointer

    def test_previous_keeps_total(self, tree):
        tree.add_move(black(3, 3), [])
        tree.add_move(white(4, 4), [])

        assert tree.previous_step() is True
        assert tree.pointer.current_move_number == 1
        assert tree.pointer.total_move_number == 2

    def test_undo_redo_inverse(self, tree):
        service = CaptureService(19)
        moves = [black(1, 0), white(0, 0), black(0, 1), white(5, 5), black(6, 6)]
        for stone in moves:
            board = tree.get_board_state()
            tree.add_move(stone, service.get_captured_groups(stone, board))

        final_node = tree.pointer.current_node
        final_board = tree.get_board_state()

        for _ in moves:
            assert tree.previous_step()
        assert tree.pointer.current_node is tree.root_node
        assert tree.get_board_state() == create_empty_board(19)

        for _ in moves:
            assert tree.next_step()
        assert tree.pointer.current_node is final_node
        assert tree.get_board_state() == final_board


class TestBranching:
    """Tests for variations and switch_to_node."""

    def test_branch_creation(self, tree):
        tree.add_move(black(3, 3), [])
        ancestor = tree.pointer.current_node
        a = tree.add_move(white(4, 4), [])
        tree.previous_step()
        b = tree.add_move(white(5, 5), [])

        assert ancestor.children_nodes == [a, b]
        assert a.current_move_number == b.current_move_number == 2

        tree.switch_to_node(ancestor)
        assert tree.next_step()
        assert tree.pointer.current_node is a

        tree.switch_to_node(b)
        assert tree.pointer.current_node is b
        assert tree.pointer.current_move_number == 2

    def test_switch_keeps_total(self, tree):
        first = tree.add_move(black(3, 3), [])
        tree.add_move(white(4, 4), [])

        tree.switch_to_node(first)

        assert tree.pointer.total_move_number == 2
        assert tree.pointer.current_move_number == 1

    def test_switch_to_root(self, tree):
        tree.add_move(black(3, 3), [])
        tree.switch_to_node(tree.root_node)
        assert tree.pointer.current_move_number == 0

    def test_switch_to_stale_node_rejected(self, tree):
        stale = tree.add_move(black(3, 3), [])
        tree.clear()

        with pytest.raises(NodeNotInTreeError):
            tree.switch_to_node(stale)
        assert tree.pointer.current_node is tree.root_node

    def test_switch_to_node_of_other_tree_rejected(self, tree):
        other = MoveTree()
        foreign = other.add_move(black(3, 3), [])

        with pytest.raises(NodeNotInTreeError):
            tree.switch_to_node(foreign)

    def test_main_line(self, tree):
        a = tree.add_move(black(3, 3), [])
        b = tree.add_move(white(4, 4), [])
        tree.previous_step()
        tree.add_move(white(5, 5), [])

        assert tree.get_main_line() == [tree.root_node, a, b]


class TestClear:
    """Tests for MoveTree.clear."""

    def test_clear(self, tree):
        old_root = tree.root_node
        tree.add_move(black(3, 3), [])
        tree.add_move(white(4, 4), [])

        tree.clear()

        assert tree.pointer.current_node is tree.root_node
        assert tree.root_node is not old_root
        assert tree.root_node.id == ROOT_NODE_ID
        assert tree.pointer.current_move_number == 0
        assert tree.pointer.total_move_number == 0
        assert tree.root_node.children_nodes == []
        assert len(tree) == 1

    def test_ids_restart_after_clear(self, tree):
        tree.add_move(black(3, 3), [])
        tree.clear()

        node = tree.add_move(black(4, 4), [])

        assert node.id == "1"


class TestLookup:
    """Tests for get_node_by_id and traversal."""

    def test_get_node_by_id_all_branches(self, tree):
        tree.add_move(black(3, 3), [])
        tree.add_move(white(4, 4), [])
        tree.previous_step()
        branch = tree.add_move(white(5, 5), [])

        assert tree.get_node_by_id(branch.id) is branch
        assert tree.get_node_by_id(ROOT_NODE_ID) is tree.root_node

    def test_get_node_by_id_miss(self, tree):
        assert tree.get_node_by_id("42") is None

    def test_iter_nodes_pre_order(self, tree):
        a = tree.add_move(black(3, 3), [])
        a1 = tree.add_move(white(4, 4), [])
        tree.previous_step()
        a2 = tree.add_move(white(5, 5), [])
        tree.switch_to_node(tree.root_node)
        b = tree.add_move(black(6, 6), [])

        assert list(tree.iter_nodes()) == [tree.root_node, a, a1, a2, b]

    def test_path_to_current(self, tree):
        a = tree.add_move(black(3, 3), [])
        b = tree.add_move(white(4, 4), [])

        assert tree.get_path_to_current() == [tree.root_node, a, b]


class TestBoardProjection:
    """Tests for get_board_state."""

    def test_single_capture_scenario(self, tree):
        service = CaptureService(19)
        for stone in (black(1, 0), white(0, 0), black(0, 1)):
            board = tree.get_board_state()
            assert service.is_legal_move(stone, board)
            tree.add_move(stone, service.get_captured_groups(stone, board))

        board = tree.get_board_state()

        assert board[0][0] == Color.EMPTY
        assert board[0][1] == Color.BLACK
        assert board[1][0] == Color.BLACK

    def test_capture_undone_by_previous_step(self, tree):
        service = CaptureService(19)
        for stone in (black(1, 0), white(0, 0), black(0, 1)):
            tree.add_move(stone, service.get_captured_groups(stone, tree.get_board_state()))

        tree.previous_step()

        assert tree.get_board_state()[0][0] == Color.WHITE

    def test_branch_projection(self, tree):
        tree.add_move(black(3, 3), [])
        tree.add_move(white(4, 4), [])
        tree.previous_step()
        tree.add_move(white(5, 5), [])

        board = tree.get_board_state()

        assert board[4][4] == Color.EMPTY
        assert board[5][5] == Color.WHITE

    def test_small_board(self, tree):
        tree.add_move(black(8, 8), [])
        board = tree.get_board_state(9)
        assert len(board) == 9
        assert board[8][8] == Color.BLACK

    def test_move_outside_board_raises(self, tree):
        tree.add_move(black(15, 15), [])
        with pytest.raises(ValueError, match="outside"):
            tree.get_board_state(9)

    def test_captured_stone_outside_board_raises(self, tree):
        tree.add_move(white(0, 0), [])
        group = Group(stones=[Point(19, 19)], liberties=[], color=Color.WHITE)
        tree.add_move(black(1, 0), [group])

        with pytest.raises(ValueError):
            tree.get_board_state(19)


class TestSerialize:
    """Tests for MoveTree.serialize."""

    def test_empty_tree(self, tree):
        data = json.loads(tree.serialize())

        assert data['rootNodeId'] == tree.root_node.id
        assert data['pointer'] == {
            'currentNodeId': tree.root_node.id,
            'currentMoveNumber': 0,
            'totalMoveNumber': 0,
        }
        assert len(data['nodes']) == 1

    def test_top_level_keys(self, tree):
        assert list(json.loads(tree.serialize())) == ['nodes', 'rootNodeId', 'pointer']

    def test_compact_separators(self, tree):
        tree.add_move(black(3, 3), [])
        text = tree.serialize()

        assert text.startswith('{"nodes":{"0":{"id":"0","x":-1,"y":-1,')
        assert ", " not in text
        assert ": " not in text

    def test_all_branches_serialized(self, tree):
        tree.add_move(black(3, 3), [])
        tree.add_move(white(4, 4), [])
        tree.previous_step()
        tree.add_move(white(5, 5), [])

        data = json.loads(tree.serialize())

        assert len(data['nodes']) == 4
        assert data['pointer']['currentNodeId'] == tree.pointer.current_node.id
        root = data['nodes'][data['rootNodeId']]
        assert root['parentId'] is None
        assert len(data['nodes'][root['childrenIds'][0]]['childrenIds']) == 2


class TestDeserialize:
    """Tests for MoveTree.deserialize."""

    def test_deserialize_fixture(self):
        data = {
            'nodes': {
                '1': {
                    'id': '1', 'x': -1, 'y': -1, 'color': 0, 'currentMoveNumber': 0,
                    'capturedGroups': [], 'parentId': None, 'childrenIds': ['2'],
                },
                '2': {
                    'id': '2', 'x': 3, 'y': 3, 'color': 1, 'currentMoveNumber': 1,
                    'capturedGroups': [], 'parentId': '1', 'childrenIds': ['3'],
                },
                '3': {
                    'id': '3', 'x': 4, 'y': 4, 'color': 2, 'currentMoveNumber': 2,
                    'capturedGroups': [], 'parentId': '2', 'childrenIds': [],
                },
            },
            'rootNodeId': '1',
            'pointer': {'currentNodeId': '3', 'currentMoveNumber': 2, 'totalMoveNumber': 2},
        }

        tree = MoveTree.deserialize(json.dumps(data))

        assert isinstance(tree, MoveTree)
        assert tree.root_node.id == '1'
        assert tree.pointer.current_node.id == '3'
        assert tree.pointer.current_move_number == 2
        assert tree.pointer.total_move_number == 2

        node1 = tree.root_node.children_nodes[0]
        assert node1.id == '2'
        assert node1.parent_node is tree.root_node
        node2 = node1.children_nodes[0]
        assert node2.id == '3'
        assert node2.parent_node is node1

    def test_roundtrip_with_branches_and_captures(self):
        tree = MoveTree()
        service = CaptureService(19)
        for stone in (black(1, 0), white(0, 0), black(0, 1), white(5, 5)):
            tree.add_move(stone, service.get_captured_groups(stone, tree.get_board_state()))
        tree.previous_step()
        tree.previous_step()
        tree.add_move(black(9, 9), [])
        tree.switch_to_node(tree.root_node.children_nodes[0])

        restored = MoveTree.deserialize(tree.serialize())

        assert snapshot(restored) == snapshot(tree)
        assert restored.serialize() == tree.serialize()
        assert restored.get_board_state() == tree.get_board_state()

    def test_roundtrip_random_sequences(self):
        rng = random.Random(7)
        for _ in range(20):
            tree = MoveTree()
            for _ in range(40):
                op = rng.random()
                if op < 0.5:
                    color = rng.choice([Color.BLACK, Color.WHITE])
                    tree.add_move(Stone(rng.randrange(19), rng.randrange(19), color), [])
                elif op < 0.7:
                    tree.previous_step()
                elif op < 0.85:
                    tree.next_step()
                else:
                    nodes = list(tree.iter_nodes())
                    tree.switch_to_node(rng.choice(nodes))

            restored = MoveTree.deserialize(tree.serialize())

            assert snapshot(restored) == snapshot(tree)
            assert_depth_invariant(restored)

    def test_restored_tree_keeps_issuing_unique_ids(self):
        tree = MoveTree()
        tree.add_move(black(3, 3), [])
        tree.previous_step()

        restored = MoveTree.deserialize(tree.serialize())
        node = restored.add_move(black(4, 4), [])

        assert node.id == "2"
        assert len({n.id for n in restored.iter_nodes()}) == 3

    def test_persisted_move_number_kept(self):
        data = json.loads(MoveTree().serialize())
        data['nodes']['0']['currentMoveNumber'] = 5

        tree = MoveTree.deserialize(json.dumps(data))

        assert tree.root_node.current_move_number == 5


class TestDeserializeMalformed:
    """Malformed data must fail loudly, never build a partial tree."""

    @pytest.fixture
    def data(self):
        tree = MoveTree()
        tree.add_move(black(3, 3), [])
        tree.add_move(white(4, 4), [])
        return json.loads(tree.serialize())

    def test_invalid_json(self):
        with pytest.raises(MalformedTreeError):
            MoveTree.deserialize("{not json")

    def test_not_an_object(self):
        with pytest.raises(MalformedTreeError):
            MoveTree.deserialize("[]")

    @pytest.mark.parametrize("key", ["nodes", "rootNodeId", "pointer"])
    def test_missing_top_level_key(self, data, key):
        del data[key]
        with pytest.raises(MalformedTreeError):
            MoveTree.deserialize(json.dumps(data))

    def test_unknown_root(self, data):
        data['rootNodeId'] = "99"
        with pytest.raises(MalformedTreeError, match="root"):
            MoveTree.deserialize(json.dumps(data))

    def test_unknown_child(self, data):
        data['nodes']['2']['childrenIds'] = ['99']
        with pytest.raises(MalformedTreeError, match="unknown child"):
            MoveTree.deserialize(json.dumps(data))

    def test_unknown_parent(self, data):
        data['nodes']['2']['parentId'] = '99'
        with pytest.raises(MalformedTreeError):
            MoveTree.deserialize(json.dumps(data))

    def test_parent_child_disagree(self, data):
        data['nodes']['1']['childrenIds'] = []
        with pytest.raises(MalformedTreeError):
            MoveTree.deserialize(json.dumps(data))

    def test_unknown_pointer_node(self, data):
        data['pointer']['currentNodeId'] = '99'
        with pytest.raises(MalformedTreeError, match="pointer"):
            MoveTree.deserialize(json.dumps(data))

    def test_key_id_mismatch(self, data):
        data['nodes']['5'] = data['nodes'].pop('2')
        with pytest.raises(MalformedTreeError):
            MoveTree.deserialize(json.dumps(data))

    def test_cycle(self, data):
        # 1 <-> 2 detached from the root
        data['nodes']['0']['childrenIds'] = []
        data['nodes']['1']['parentId'] = '2'
        data['nodes']['2']['childrenIds'] = ['1']
        data['pointer']['currentNodeId'] = '0'
        with pytest.raises(MalformedTreeError):
            MoveTree.deserialize(json.dumps(data))

    def test_root_with_parent(self, data):
        data['nodes']['0']['parentId'] = '2'
        data['nodes']['2']['childrenIds'] = ['0']
        with pytest.raises(MalformedTreeError):
            MoveTree.deserialize(json.dumps(data))

    def test_child_listed_twice(self, data):
        data['nodes']['0']['childrenIds'] = ['1', '1']
        with pytest.raises(MalformedTreeError):
            MoveTree.deserialize(json.dumps(data))

    def test_bad_pointer_numbers(self, data):
        data['pointer']['totalMoveNumber'] = "2"
        with pytest.raises(MalformedTreeError):
            MoveTree.deserialize(json.dumps(data))

    @pytest.mark.parametrize("child_id", [["1"], {"id": "1"}, 1, None])
    def test_non_string_child_id(self, data, child_id):
        data['nodes']['0']['childrenIds'] = [child_id]
        with pytest.raises(MalformedTreeError, match="childrenIds"):
            MoveTree.deserialize(json.dumps(data))

    def test_negative_move_coordinates(self, data):
        data['nodes']['2']['x'] = -1
        with pytest.raises(MalformedTreeError, match="negative"):
            MoveTree.deserialize(json.dumps(data))

    def test_negative_captured_point(self, data):
        data['nodes']['2']['capturedGroups'] = [
            {'stones': [{'x': -1, 'y': -1}], 'liberties': [], 'color': 1}
        ]
        with pytest.raises(MalformedTreeError, match="off the board"):
            MoveTree.deserialize(json.dumps(data))


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
