"""
Capture and legality rules.

CaptureService answers, for a candidate stone on a given board:
- which enemy groups the move would capture,
- whether the move is suicide,
- whether the move is legal at all.

All answers are pure functions of (stone, board). The caller's board is
copied before any simulated placement, and bad coordinates resolve to
"illegal" / "no captures" rather than raising.
"""

from typing import List, Optional

from .board import BOARD_SIZE, Board, Color, Point, Stone, copy_board, is_on_board
from .groups import Group, find_groups, get_adjacent_points


class CaptureService:
    """
    Capture/suicide analysis for one board size.

    Usage:
        service = CaptureService(19)
        if service.is_legal_move(stone, board):
            captured = service.get_captured_groups(stone, board)
            tree.add_move(stone, captured)
    """

    def __init__(self, board_size: int = BOARD_SIZE):
        self.board_size = board_size

    def get_adjacent_points(self, point: Point) -> List[Point]:
        return get_adjacent_points(point, self.board_size)

    def _size_for(self, board: Board) -> int:
        # A board smaller than the service size bounds the check.
        return min(self.board_size, len(board))

    def _placeable(self, stone: Optional[Stone], board: Board) -> bool:
        return (
            stone is not None
            and stone.color in (Color.BLACK, Color.WHITE)
            and is_on_board(stone.x, stone.y, self._size_for(board))
        )

    def _simulate(self, stone: Stone, board: Board) -> Board:
        moved = copy_board(board)
        moved[stone.y][stone.x] = stone.color
        return moved

    def get_captured_groups(self, stone: Stone, board: Board) -> List[Group]:
        """
        Enemy groups removed by placing ``stone``.

        Args:
            stone: Candidate placement
            board: Current board (not modified)

        Returns:
            Groups of the opposite color left with no liberties once the
            stone is placed. Empty for off-board or None coordinates.
        """
        if not self._placeable(stone, board):
            return []

        moved = self._simulate(stone, board)
        point = Point(stone.x, stone.y)
        enemy_groups = find_groups(
            get_adjacent_points(point, self._size_for(board)), stone.color.opposite, moved
        )
        return [group for group in enemy_groups if group.is_captured]

    def is_suicide(self, stone: Stone, board: Board) -> bool:
        """
        True if placing ``stone`` leaves its own group without liberties
        and captures nothing.

        A move that captures at least one enemy group is never suicide.
        Off-board or None coordinates are not suicide (there is nothing to
        place); ``is_legal_move`` rejects them on its own.
        """
        if not self._placeable(stone, board):
            return False

        if self.get_captured_groups(stone, board):
            return False

        moved = self._simulate(stone, board)
        own_groups = find_groups([Point(stone.x, stone.y)], stone.color, moved)
        return own_groups[0].is_captured

    def is_legal_move(self, stone: Optional[Stone], board: Board) -> bool:
        """
        True iff the stone is on the board, the point is empty and the
        move is not suicide.
        """
        if not self._placeable(stone, board):
            return False
        if board[stone.y][stone.x] != Color.EMPTY:
            return False
        return not self.is_suicide(stone, board)


def _service_for(board: Board, board_size: Optional[int]) -> CaptureService:
    return CaptureService(board_size if board_size is not None else len(board))


def is_legal_move(stone: Optional[Stone], board: Board, board_size: Optional[int] = None) -> bool:
    """Module-level shortcut for CaptureService.is_legal_move."""
    return _service_for(board, board_size).is_legal_move(stone, board)


def captured_groups(stone: Stone, board: Board, board_size: Optional[int] = None) -> List[Group]:
    """Module-level shortcut for CaptureService.get_captured_groups."""
    return _service_for(board, board_size).get_captured_groups(stone, board)


def is_suicide(stone: Stone, board: Board, board_size: Optional[int] = None) -> bool:
    """Module-level shortcut for CaptureService.is_suicide."""
    return _service_for(board, board_size).is_suicide(stone, board)
