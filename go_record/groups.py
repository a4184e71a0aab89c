"""
Group analysis (flood fill) over a Go board.

A group is a maximal set of same-colored, 4-adjacent stones together with
its liberties: the empty points adjacent to any stone of the group.
Nothing here mutates the board it is given.
"""

from collections import deque
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Set

from .board import Board, Color, Point


@dataclass
class Group:
    """A connected group of stones and its liberties."""
    stones: List[Point] = field(default_factory=list)
    liberties: List[Point] = field(default_factory=list)
    color: Color = Color.EMPTY

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            'stones': [p.to_dict() for p in self.stones],
            'liberties': [p.to_dict() for p in self.liberties],
            'color': int(self.color),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Group':
        """Create from dictionary."""
        return cls(
            stones=[Point.from_dict(p) for p in data['stones']],
            liberties=[Point.from_dict(p) for p in data['liberties']],
            color=Color(data['color']),
        )

    @property
    def is_captured(self) -> bool:
        return len(self.liberties) == 0

    def __repr__(self) -> str:
        return (
            f"Group({self.color.name}, "
            f"stones={len(self.stones)}, "
            f"liberties={len(self.liberties)})"
        )


def get_adjacent_points(point: Point, board_size: int) -> List[Point]:
    """
    Return the on-board 4-neighbors of a point (up, down, left, right).

    Corners have 2 neighbors and edges 3; off-board points are never
    generated.
    """
    x, y = point.x, point.y
    adjacent = []

    if y > 0:
        adjacent.append(Point(x, y - 1))
    if y < board_size - 1:
        adjacent.append(Point(x, y + 1))
    if x > 0:
        adjacent.append(Point(x - 1, y))
    if x < board_size - 1:
        adjacent.append(Point(x + 1, y))

    return adjacent


def find_group(start: Point, color: Color, board: Board) -> Group:
    """
    Breadth-first flood fill from ``start`` over stones of ``color``.

    Stones are returned in visit order and liberties in first-seen order.
    If ``start`` is not of ``color`` the group is empty.
    """
    board_size = len(board)
    stones: List[Point] = []
    liberties: Dict[Point, None] = {}
    visited: Set[Point] = set()
    queue = deque([start])

    while queue:
        point = queue.popleft()
        if point in visited:
            continue
        visited.add(point)

        if board[point.y][point.x] != color:
            continue
        stones.append(point)

        for adj in get_adjacent_points(point, board_size):
            adj_color = board[adj.y][adj.x]
            if adj_color == Color.EMPTY:
                liberties[adj] = None
            elif adj_color == color and adj not in visited:
                queue.append(adj)

    return Group(stones=stones, liberties=list(liberties), color=color)


def find_groups(seeds: Iterable[Point], color: Color, board: Board) -> List[Group]:
    """
    Find the groups of ``color`` touched by any of the seed points.

    Seeds that are not ``color`` contribute nothing, and a seed already
    claimed by a group found earlier in this call is skipped, so each
    connected component appears once.
    """
    groups: List[Group] = []
    claimed: Set[Point] = set()

    for seed in seeds:
        if seed in claimed or board[seed.y][seed.x] != color:
            continue
        group = find_group(seed, color, board)
        claimed.update(group.stones)
        groups.append(group)

    return groups
