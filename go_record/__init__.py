"""
Go Game Record - rules engine and branching move history

Capture/suicide analysis on a Go board plus a navigable, serializable tree
of moves.
"""

__version__ = "0.1.0"

from .board import BOARD_SIZE, Board, Color, Point, Stone, create_empty_board
from .capture import CaptureService, captured_groups, is_legal_move, is_suicide
from .errors import GoRecordError, MalformedTreeError, NodeNotInTreeError
from .groups import Group, find_groups
from .move_node import MoveNode
from .move_tree import ROOT_NODE_ID, GamePointer, MoveTree
from .session import GameSession

__all__ = [
    "BOARD_SIZE",
    "Board",
    "Color",
    "Point",
    "Stone",
    "create_empty_board",
    "CaptureService",
    "captured_groups",
    "is_legal_move",
    "is_suicide",
    "GoRecordError",
    "MalformedTreeError",
    "NodeNotInTreeError",
    "Group",
    "find_groups",
    "MoveNode",
    "ROOT_NODE_ID",
    "GamePointer",
    "MoveTree",
    "GameSession",
]
