"""
GameSession: a move tree driven by the capture rules.

This is the composition every front end needs: check a candidate move,
compute its captures, append it to the tree and re-project the board.
"""

import logging
from typing import Dict, List, Optional

from .board import BOARD_SIZE, Board, Color, Stone, validate_board_size
from .capture import CaptureService
from .groups import Group
from .move_tree import MoveTree

logger = logging.getLogger(__name__)


class GameSession:
    """
    One game being played or reviewed.

    Usage:
        session = GameSession(board_size=19)
        session.play(3, 3)       # black
        session.play(15, 15)     # white
        session.previous()
        print(session.board)
    """

    def __init__(self, board_size: int = BOARD_SIZE, tree: Optional[MoveTree] = None):
        self.board_size = validate_board_size(board_size)
        self.tree = tree if tree is not None else MoveTree()
        self.capture_service = CaptureService(self.board_size)
        self.board: Board = self.tree.get_board_state(self.board_size)

    def _refresh(self) -> None:
        self.board = self.tree.get_board_state(self.board_size)

    @property
    def next_color(self) -> Color:
        return self.tree.next_color

    def is_legal(self, x: Optional[int], y: Optional[int], color: Optional[Color] = None) -> bool:
        """Hover check: would the stone be legal at (x, y)?"""
        stone = Stone(x, y, color if color is not None else self.next_color)
        return self.capture_service.is_legal_move(stone, self.board)

    def play(self, x: int, y: int, color: Optional[Color] = None) -> bool:
        """
        Play at (x, y) with ``color`` (default: the side to move).

        Returns:
            False, with nothing changed, if the move is illegal
        """
        return self.play_stone(Stone(x, y, color if color is not None else self.next_color))

    def play_stone(self, stone: Stone) -> bool:
        if not self.capture_service.is_legal_move(stone, self.board):
            logger.debug("Rejected illegal move %s", stone)
            return False

        captured = self.capture_service.get_captured_groups(stone, self.board)
        self.tree.add_move(stone, captured)
        self._refresh()
        if captured:
            logger.debug(
                "Move %s captured %d stone(s)",
                stone, sum(len(g.stones) for g in captured),
            )
        return True

    def previous(self) -> bool:
        if self.tree.previous_step():
            self._refresh()
            return True
        return False

    def next(self) -> bool:
        if self.tree.next_step():
            self._refresh()
            return True
        return False

    def clear(self) -> None:
        self.tree.clear()
        self._refresh()

    def switch_to(self, node_id: str) -> None:
        """
        Jump to a node by id.

        Raises:
            KeyError: If no node has this id
        """
        node = self.tree.get_node_by_id(node_id)
        if node is None:
            raise KeyError(node_id)
        self.tree.switch_to_node(node)
        self._refresh()

    @property
    def captures(self) -> Dict[Color, int]:
        """Stones captured by each color along the current line."""
        counts = {Color.BLACK: 0, Color.WHITE: 0}
        for node in self.tree.get_path_to_current():
            if node.color in counts:
                counts[node.color] += sum(len(g.stones) for g in node.captured_groups)
        return counts

    def last_captured(self) -> List[Group]:
        return list(self.tree.current_node.captured_groups)

    def __repr__(self) -> str:
        return (
            f"GameSession(size={self.board_size}, "
            f"move={self.tree.pointer.current_move_number}, "
            f"next={self.next_color.name})"
        )
