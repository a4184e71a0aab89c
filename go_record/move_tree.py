"""
MoveTree: the branching history of a game.

The tree owns the root node and a pointer (cursor) to the current
position. Moves are only ever appended; undo/redo/jump just move the
pointer. The whole tree, pointer included, serializes to a single JSON
string:

    {
      "nodes": {"<id>": {...serialized MoveNode...}, ...},
      "rootNodeId": "<id>",
      "pointer": {"currentNodeId", "currentMoveNumber", "totalMoveNumber"}
    }
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional, Set

from .board import BOARD_SIZE, Board, Color, Stone, create_empty_board, is_on_board
from .errors import MalformedTreeError, NodeNotInTreeError
from .groups import Group
from .move_node import MoveNode

logger = logging.getLogger(__name__)

# Fixed id of every root node. Move ids are str(total_move_number + 1) >= "1".
ROOT_NODE_ID = "0"

DEFAULT_TOTAL_MOVE_NUMBER = 0


@dataclass
class GamePointer:
    """Cursor into the tree."""
    current_node: MoveNode
    current_move_number: int
    total_move_number: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            'currentNodeId': self.current_node.id,
            'currentMoveNumber': self.current_move_number,
            'totalMoveNumber': self.total_move_number,
        }


def _create_root() -> MoveNode:
    root = MoveNode(
        x=-1,
        y=-1,
        color=Color.EMPTY,
        parent_node=None,
        total_move_number=DEFAULT_TOTAL_MOVE_NUMBER,
    )
    root.set_id(ROOT_NODE_ID)
    return root


def _check_on_board(node: MoveNode, x: int, y: int, board_size: int) -> None:
    if not is_on_board(x, y, board_size):
        raise ValueError(
            f"Node {node.id}: point ({x}, {y}) is outside a {board_size}x{board_size} board"
        )


class MoveTree:
    """
    Game history with an undo/redo/jump cursor.

    Usage:
        tree = MoveTree()
        tree.add_move(Stone(3, 3, Color.BLACK), [])
        tree.previous_step()          # back to the root
        tree.add_move(Stone(15, 3, Color.BLACK), [])   # a variation
        tree.next_step()              # not possible: at a leaf
        data = tree.serialize()
        same = MoveTree.deserialize(data)
    """

    def __init__(self):
        self.root_node = _create_root()
        self.pointer = GamePointer(
            current_node=self.root_node,
            current_move_number=0,
            total_move_number=DEFAULT_TOTAL_MOVE_NUMBER,
        )

    # ------------------------------------------------------------------
    # Pointer transitions
    # ------------------------------------------------------------------

    def add_move(self, stone: Stone, captured_groups: Optional[List[Group]] = None) -> MoveNode:
        """
        Append a move as a child of the current node and move to it.

        Legality is the caller's responsibility. Existing children are
        never replaced; a differing move becomes another variation.
        """
        new_node = MoveNode(
            x=stone.x,
            y=stone.y,
            color=stone.color,
            parent_node=self.pointer.current_node,
            total_move_number=self.pointer.total_move_number,
            captured_groups=captured_groups,
        )
        self.pointer = GamePointer(
            current_node=new_node,
            current_move_number=new_node.current_move_number,
            total_move_number=self.pointer.total_move_number + 1,
        )
        return new_node

    def previous_step(self) -> bool:
        """Move to the parent. False (no change) at the root."""
        parent = self.pointer.current_node.parent_node
        if parent is None:
            return False

        self._move_pointer(parent)
        return True

    def next_step(self) -> bool:
        """Move to the first child (main line). False (no change) at a leaf."""
        children = self.pointer.current_node.children_nodes
        if not children:
            return False

        self._move_pointer(children[0])
        return True

    def clear(self) -> None:
        """Discard the whole tree and start again from a fresh root."""
        self.root_node = _create_root()
        self.pointer = GamePointer(
            current_node=self.root_node,
            current_move_number=0,
            total_move_number=DEFAULT_TOTAL_MOVE_NUMBER,
        )

    def switch_to_node(self, node: MoveNode) -> None:
        """
        Jump to any node of this tree.

        Raises:
            NodeNotInTreeError: If the node does not belong to this tree
                (e.g. a node kept from before ``clear()``)
        """
        if not self.contains(node):
            raise NodeNotInTreeError(f"Node {node.id} is not part of this move tree")
        self._move_pointer(node)

    def _move_pointer(self, node: MoveNode) -> None:
        self.pointer = GamePointer(
            current_node=node,
            current_move_number=node.current_move_number,
            total_move_number=self.pointer.total_move_number,
        )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def contains(self, node: MoveNode) -> bool:
        """True if following parent links from ``node`` reaches this root."""
        seen: Set[int] = set()
        current: Optional[MoveNode] = node
        while current is not None:
            if current is self.root_node:
                return True
            if id(current) in seen:
                return False
            seen.add(id(current))
            current = current.parent_node
        return False

    def iter_nodes(self) -> Iterator[MoveNode]:
        """Pre-order, depth-first traversal over every branch."""
        stack = [self.root_node]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children_nodes))

    def get_node_by_id(self, node_id: str) -> Optional[MoveNode]:
        """First node with this id in depth-first order, or None."""
        for node in self.iter_nodes():
            if node.id == node_id:
                return node
        return None

    def get_path_to_current(self) -> List[MoveNode]:
        """Nodes from the root to the current node, inclusive."""
        path = []
        node: Optional[MoveNode] = self.pointer.current_node
        while node is not None:
            path.append(node)
            node = node.parent_node
        path.reverse()
        return path

    def get_main_line(self) -> List[MoveNode]:
        """Nodes from the root following each first child."""
        line = [self.root_node]
        while line[-1].children_nodes:
            line.append(line[-1].children_nodes[0])
        return line

    @property
    def current_node(self) -> MoveNode:
        return self.pointer.current_node

    @property
    def can_previous(self) -> bool:
        return self.pointer.current_node.parent_node is not None

    @property
    def can_next(self) -> bool:
        return len(self.pointer.current_node.children_nodes) > 0

    @property
    def next_color(self) -> Color:
        """Color to play: white after a black stone, otherwise black."""
        if self.pointer.current_node.color == Color.BLACK:
            return Color.WHITE
        return Color.BLACK

    def get_board_state(self, board_size: int = BOARD_SIZE) -> Board:
        """
        Project the board at the current node.

        Replays root -> current: each node first clears the stones it
        captured, then places its own stone.

        Raises:
            ValueError: If a move or captured stone on the path does not fit
                a board of ``board_size``
        """
        board = create_empty_board(board_size)
        for node in self.get_path_to_current():
            if node.is_root:
                continue
            for group in node.captured_groups:
                for point in group.stones:
                    _check_on_board(node, point.x, point.y, board_size)
                    board[point.y][point.x] = Color.EMPTY
            _check_on_board(node, node.x, node.y, board_size)
            board[node.y][node.x] = node.color
        return board

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        """Serialized tree as a plain dictionary."""
        return {
            'nodes': {node.id: node.serialize() for node in self.iter_nodes()},
            'rootNodeId': self.root_node.id,
            'pointer': self.pointer.to_dict(),
        }

    def serialize(self) -> str:
        """Serialize the whole tree and pointer to a JSON string."""
        return json.dumps(self.to_dict(), separators=(',', ':'))

    @classmethod
    def deserialize(cls, data: str) -> 'MoveTree':
        """
        Rebuild a tree from ``serialize()`` output.

        Raises:
            MalformedTreeError: If the data is not valid JSON or does not
                describe a single well-formed tree
        """
        try:
            parsed = json.loads(data)
        except (TypeError, json.JSONDecodeError) as e:
            raise MalformedTreeError(f"Serialized move tree is not valid JSON: {e}")
        return cls.from_dict(parsed)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'MoveTree':
        """Rebuild a tree from ``to_dict()`` output. See ``deserialize``."""
        if not isinstance(data, dict):
            raise MalformedTreeError("Serialized move tree must be a JSON object")
        for key in ('nodes', 'rootNodeId', 'pointer'):
            if key not in data:
                raise MalformedTreeError(f"Serialized move tree is missing '{key}'")

        raw_nodes = data['nodes']
        pointer_data = data['pointer']
        if not isinstance(raw_nodes, dict) or not raw_nodes:
            raise MalformedTreeError("'nodes' must be a non-empty object")
        if not isinstance(pointer_data, dict):
            raise MalformedTreeError("'pointer' must be an object")

        # Build every node first so all ids exist before linking.
        nodes: Dict[str, MoveNode] = {}
        for key, raw in raw_nodes.items():
            node = MoveNode.deserialize(raw)
            if node.id != key:
                raise MalformedTreeError(f"Node stored under '{key}' has id '{node.id}'")
            nodes[key] = node

        listed_as_child: Set[str] = set()
        for node_id, raw in raw_nodes.items():
            parent = nodes[node_id]
            for child_id in raw['childrenIds']:
                child = nodes.get(child_id)
                if child is None:
                    raise MalformedTreeError(f"Node {node_id} lists unknown child '{child_id}'")
                if child_id in listed_as_child:
                    raise MalformedTreeError(f"Node '{child_id}' is listed as a child more than once")
                if raw_nodes[child_id]['parentId'] != node_id:
                    raise MalformedTreeError(
                        f"Node '{child_id}' is listed under {node_id} "
                        f"but has parent {raw_nodes[child_id]['parentId']!r}"
                    )
                listed_as_child.add(child_id)
                child.parent_node = parent
                parent.add_child(child)

        root_id = data['rootNodeId']
        root = nodes.get(root_id) if isinstance(root_id, str) else None
        if root is None:
            raise MalformedTreeError(f"Unknown root node id {root_id!r}")
        if raw_nodes[root_id]['parentId'] is not None:
            raise MalformedTreeError(f"Root node {root_id} must not have a parent")

        for node_id, raw in raw_nodes.items():
            parent_id = raw['parentId']
            if parent_id is not None and node_id not in listed_as_child:
                if parent_id not in nodes:
                    raise MalformedTreeError(f"Node {node_id} references unknown parent '{parent_id}'")
                raise MalformedTreeError(f"Node {node_id} is missing from the children of '{parent_id}'")

        # Every child has exactly one parent here, so reaching all nodes
        # from the root also rules out cycles.
        reached = 0
        stack = [root]
        while stack:
            node = stack.pop()
            reached += 1
            if reached > len(nodes):
                raise MalformedTreeError("Serialized move tree contains a cycle")
            stack.extend(node.children_nodes)
        if reached != len(nodes):
            raise MalformedTreeError(
                f"{len(nodes) - reached} node(s) are not reachable from root {root_id}"
            )

        current_id = pointer_data.get('currentNodeId')
        current = nodes.get(current_id) if isinstance(current_id, str) else None
        if current is None:
            raise MalformedTreeError(f"Unknown pointer node id {current_id!r}")
        for key in ('currentMoveNumber', 'totalMoveNumber'):
            value = pointer_data.get(key)
            if not isinstance(value, int) or isinstance(value, bool):
                raise MalformedTreeError(f"Pointer '{key}' must be an integer")

        tree = cls()
        tree.root_node = root
        tree.pointer = GamePointer(
            current_node=current,
            current_move_number=pointer_data['currentMoveNumber'],
            total_move_number=pointer_data['totalMoveNumber'],
        )
        logger.debug("Deserialized move tree with %d nodes", len(nodes))
        return tree

    def __len__(self) -> int:
        return sum(1 for _ in self.iter_nodes())

    def __repr__(self) -> str:
        return (
            f"MoveTree(nodes={len(self)}, "
            f"current={self.pointer.current_node.id}, "
            f"move={self.pointer.current_move_number}, "
            f"total={self.pointer.total_move_number})"
        )
