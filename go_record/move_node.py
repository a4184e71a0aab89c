"""
MoveNode: one ply of a game record.

Nodes form a tree through ``parent_node`` / ``children_nodes``. The first
child of a node is its main line; later children are variations.
"""

from typing import Any, Dict, List, Optional

from .board import Color
from .errors import MalformedTreeError
from .groups import Group

SERIALIZED_NODE_KEYS = (
    'id', 'x', 'y', 'color', 'currentMoveNumber',
    'capturedGroups', 'parentId', 'childrenIds',
)


class MoveNode:
    """
    A placed stone (or the empty root) plus the enemy groups it captured.

    Attributes:
        id: Stable string id, ``str(total_move_number + 1)`` at creation
        x, y: Coordinates, negative for the root
        color: Stone color, Color.EMPTY for the root
        parent_node: Parent node, None for the root
        children_nodes: Children in the order they were added
        captured_groups: Groups removed from the board by this move
        current_move_number: Depth from the root (root = 0)
    """

    def __init__(
        self,
        x: int,
        y: int,
        color: Color,
        parent_node: Optional['MoveNode'],
        total_move_number: int,
        captured_groups: Optional[List[Group]] = None,
    ):
        self.x = x
        self.y = y
        self.color = Color(color)
        self.parent_node = parent_node
        self.children_nodes: List['MoveNode'] = []
        self.captured_groups: List[Group] = list(captured_groups or [])

        if parent_node is not None:
            self._current_move_number = parent_node.current_move_number + 1
        else:
            self._current_move_number = 0

        self._id = str(total_move_number + 1)

        if parent_node is not None:
            parent_node.add_child(self)

    @property
    def id(self) -> str:
        return self._id

    def set_id(self, node_id: str) -> None:
        self._id = node_id

    @property
    def current_move_number(self) -> int:
        return self._current_move_number

    def set_current_move_number(self, move_number: int) -> None:
        self._current_move_number = move_number

    @property
    def is_root(self) -> bool:
        return self.parent_node is None

    def add_child(self, node: 'MoveNode') -> None:
        """Append a child; adding the same node twice is a no-op."""
        if not any(child is node for child in self.children_nodes):
            self.children_nodes.append(node)

    def remove_child(self, node: 'MoveNode') -> None:
        """Remove a child; removing a non-member is a no-op."""
        self.children_nodes = [child for child in self.children_nodes if child is not node]

    def serialize(self) -> Dict[str, Any]:
        """Flat, reference-free record safe for JSON transport."""
        return {
            'id': self.id,
            'x': self.x,
            'y': self.y,
            'color': int(self.color),
            'currentMoveNumber': self.current_move_number,
            'capturedGroups': [g.to_dict() for g in self.captured_groups],
            'parentId': self.parent_node.id if self.parent_node is not None else None,
            'childrenIds': [child.id for child in self.children_nodes],
        }

    @classmethod
    def deserialize(cls, data: Dict[str, Any]) -> 'MoveNode':
        """
        Rebuild a node from its flat record.

        The node comes back unlinked (no parent, no children); the tree
        deserializer relinks nodes once all of them exist. The persisted
        ``currentMoveNumber`` is kept as-is.

        Raises:
            MalformedTreeError: If a field is missing or has the wrong type
        """
        if not isinstance(data, dict):
            raise MalformedTreeError(f"Serialized node must be an object, got {type(data).__name__}")

        missing = [key for key in SERIALIZED_NODE_KEYS if key not in data]
        if missing:
            raise MalformedTreeError(f"Serialized node is missing fields: {', '.join(missing)}")

        node_id = data['id']
        if not isinstance(node_id, str):
            raise MalformedTreeError(f"Node id must be a string, got {node_id!r}")
        for key in ('x', 'y', 'currentMoveNumber'):
            if not isinstance(data[key], int) or isinstance(data[key], bool):
                raise MalformedTreeError(f"Node {node_id}: '{key}' must be an integer")
        children_ids = data['childrenIds']
        if not isinstance(children_ids, list) or not all(isinstance(c, str) for c in children_ids):
            raise MalformedTreeError(f"Node {node_id}: 'childrenIds' must be a list of strings")
        if data['parentId'] is not None and not isinstance(data['parentId'], str):
            raise MalformedTreeError(f"Node {node_id}: 'parentId' must be a string or null")

        try:
            color = Color(data['color'])
            groups = [Group.from_dict(g) for g in data['capturedGroups']]
        except (KeyError, TypeError, ValueError) as e:
            raise MalformedTreeError(f"Node {node_id}: invalid color or captured groups ({e})")

        # Only the root sentinel sits off the board.
        if data['parentId'] is not None and (data['x'] < 0 or data['y'] < 0):
            raise MalformedTreeError(f"Node {node_id}: negative coordinates ({data['x']}, {data['y']})")
        for group in groups:
            for point in group.stones + group.liberties:
                if point.x < 0 or point.y < 0:
                    raise MalformedTreeError(
                        f"Node {node_id}: captured group point ({point.x}, {point.y}) is off the board"
                    )

        node = cls(
            x=data['x'],
            y=data['y'],
            color=color,
            parent_node=None,
            total_move_number=0,
            captured_groups=groups,
        )
        node.set_id(node_id)
        node.set_current_move_number(data['currentMoveNumber'])
        return node

    def __repr__(self) -> str:
        return (
            f"MoveNode(id={self.id}, "
            f"({self.x}, {self.y}), "
            f"{self.color.name}, "
            f"move={self.current_move_number}, "
            f"children={len(self.children_nodes)})"
        )
