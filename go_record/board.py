"""
Board primitives for the Go game record engine.

Provides:
- Color: stone colors (also the root node's placeholder color)
- Point / Stone: intersections and candidate placements
- Board helpers: empty boards, copies, bounds checks
- GTP coordinate conversion and ASCII rendering (used by the CLI)

Boards are plain nested lists indexed ``board[y][x]`` with ``y = 0`` at the
top edge.
"""

from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Dict, List, Optional

# Default board size
BOARD_SIZE = 19

MIN_BOARD_SIZE = 2
MAX_BOARD_SIZE = 25

# GTP column letters (I is skipped in Go)
GTP_COLUMNS = "ABCDEFGHJKLMNOPQRSTUVWXYZ"


class Color(IntEnum):
    """Stone color. Serialized as its integer value."""
    EMPTY = 0
    BLACK = 1
    WHITE = 2

    @property
    def opposite(self) -> 'Color':
        if self == Color.BLACK:
            return Color.WHITE
        if self == Color.WHITE:
            return Color.BLACK
        return Color.EMPTY

    @property
    def symbol(self) -> str:
        return {Color.EMPTY: '.', Color.BLACK: 'X', Color.WHITE: 'O'}[self]


@dataclass(frozen=True)
class Point:
    """A board intersection."""
    x: int
    y: int

    def to_dict(self) -> Dict[str, int]:
        return {'x': self.x, 'y': self.y}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Point':
        return cls(x=int(data['x']), y=int(data['y']))


@dataclass(frozen=True)
class Stone:
    """
    A candidate placement.

    ``x`` and ``y`` may be None to represent "no position" (e.g. the
    pointer is off the board); such a stone is never a legal move.
    """
    x: Optional[int]
    y: Optional[int]
    color: Color

    @property
    def point(self) -> Optional[Point]:
        if self.x is None or self.y is None:
            return None
        return Point(self.x, self.y)


Board = List[List[Color]]


def validate_board_size(size: int) -> int:
    """
    Check a board size.

    Raises:
        ValueError: If size is outside the supported range
    """
    if not isinstance(size, int) or not (MIN_BOARD_SIZE <= size <= MAX_BOARD_SIZE):
        raise ValueError(
            f"Board size must be {MIN_BOARD_SIZE}-{MAX_BOARD_SIZE}, got {size}"
        )
    return size


def create_empty_board(size: int = BOARD_SIZE) -> Board:
    """Create a size x size board filled with Color.EMPTY."""
    validate_board_size(size)
    return [[Color.EMPTY for _ in range(size)] for _ in range(size)]


def copy_board(board: Board) -> Board:
    """Return a row-by-row copy so the caller's board is never mutated."""
    return [list(row) for row in board]


def is_on_board(x: Optional[int], y: Optional[int], size: int) -> bool:
    """True if (x, y) are both integers within [0, size)."""
    if x is None or y is None:
        return False
    return 0 <= x < size and 0 <= y < size


# ============================================================================
# Coordinate Conversion
# ============================================================================

def gtp_to_point(gtp_coord: str, board_size: int = BOARD_SIZE) -> Point:
    """
    Convert GTP coordinate (e.g., "Q16") to a Point.

    In GTP:
    - Columns are A-T (I is skipped), left to right
    - Rows are 1-19, bottom to top

    Boards here are indexed top-down, so GTP row ``board_size`` is y = 0.

    Args:
        gtp_coord: GTP coordinate string (e.g., "Q16", "D4")
        board_size: Size of the board

    Returns:
        Point on the board

    Raises:
        ValueError: If coordinate is invalid
    """
    if not gtp_coord or len(gtp_coord) < 2:
        raise ValueError(f"Invalid GTP coordinate: {gtp_coord}")

    col = gtp_coord[0].upper()
    try:
        row = int(gtp_coord[1:])
    except ValueError:
        raise ValueError(f"Invalid GTP coordinate: {gtp_coord}")

    if col not in GTP_COLUMNS:
        raise ValueError(f"Invalid column letter: {col}")

    x = GTP_COLUMNS.index(col)
    y = board_size - row

    if not is_on_board(x, y, board_size):
        raise ValueError(f"Coordinate {gtp_coord} out of bounds for {board_size}x{board_size}")

    return Point(x, y)


def point_to_gtp(point: Point, board_size: int = BOARD_SIZE) -> str:
    """
    Convert a Point to a GTP string.

    Args:
        point: Board intersection
        board_size: Size of the board

    Returns:
        GTP coordinate string (e.g., "Q16")
    """
    return f"{GTP_COLUMNS[point.x]}{board_size - point.y}"


def format_board(board: Board) -> str:
    """
    Render a board as ASCII text.

    Black is ``X``, white is ``O``, empty points are ``.``. Column letters
    and row numbers follow GTP.
    """
    size = len(board)
    header = "   " + " ".join(GTP_COLUMNS[:size])
    lines = [header]
    for y, row in enumerate(board):
        label = size - y
        cells = " ".join(Color(c).symbol for c in row)
        lines.append(f"{label:>2} {cells} {label}")
    lines.append(header)
    return "\n".join(lines)
