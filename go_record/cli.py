"""
Command-line interface for the Go game record engine.

Usage:
    # Play some moves and show the board
    python -m go_record.cli --moves D4 Q16 C3

    # Undo the last two moves
    python -m go_record.cli --moves D4 Q16 C3 --undo 2

    # Save as a draft, list drafts, reload one
    python -m go_record.cli --moves D4 Q16 --save "Opening study"
    python -m go_record.cli --list
    python -m go_record.cli --load <draft-id> --moves R4
"""

import argparse
import logging
import sys
from typing import List, Optional

from .board import Color, format_board, gtp_to_point
from .config import AppConfig, load_config, setup_logging
from .drafts import DraftStore
from .errors import MalformedTreeError
from .session import GameSession

logger = logging.getLogger(__name__)


def parse_args(args: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="go-record",
        description="Record and replay Go games with capture and suicide rules",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Black and white alternate, starting with black
  %(prog)s --moves D4 Q16 C3

  # Step back two moves
  %(prog)s --moves D4 Q16 C3 --undo 2

  # Save / list / load / delete drafts
  %(prog)s --moves D4 Q16 --save "Opening study"
  %(prog)s --list
  %(prog)s --load <draft-id> --moves R4
  %(prog)s --delete <draft-id>
        """
    )

    parser.add_argument(
        "--size", "-s",
        type=int,
        default=None,
        help="Board size (default: from config, usually 19)"
    )

    parser.add_argument(
        "--moves", "-m",
        nargs="+",
        default=[],
        help="Moves in GTP coordinates, played alternately, e.g. D4 Q16"
    )

    parser.add_argument(
        "--undo", "-u",
        type=int,
        default=0,
        metavar="N",
        help="Step back N moves after playing"
    )

    parser.add_argument(
        "--load", "-l",
        type=str,
        default=None,
        metavar="ID",
        help="Start from a stored draft"
    )

    parser.add_argument(
        "--save",
        type=str,
        default=None,
        metavar="TITLE",
        help="Save the result as a draft (overwrites the draft given by --load)"
    )

    parser.add_argument(
        "--list",
        action="store_true",
        help="List stored drafts"
    )

    parser.add_argument(
        "--delete",
        type=str,
        default=None,
        metavar="ID",
        help="Delete a stored draft"
    )

    parser.add_argument(
        "--config", "-c",
        type=str,
        default=None,
        help="Path to config.yaml file"
    )

    parser.add_argument(
        "--json",
        action="store_true",
        help="Output the serialized move tree as JSON"
    )

    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Verbose output"
    )

    return parser.parse_args(args)


def show_drafts(store: DraftStore) -> None:
    """Display stored drafts."""
    drafts = store.list_drafts()

    if not drafts:
        print("No drafts stored.")
        return

    print("=" * 60)
    print(f"{'ID':<38} {'Updated':<20} Title")
    print("=" * 60)
    for draft in drafts:
        print(f"{draft.id:<38} {draft.updated_at[:19]:<20} {draft.title}")


def show_session(session: GameSession) -> None:
    """Display the board and position info."""
    pointer = session.tree.pointer
    captures = session.captures

    print(format_board(session.board))
    print()
    print(f"Move: {pointer.current_move_number}  "
          f"(node {pointer.current_node.id}, {pointer.total_move_number} moves recorded)")
    print(f"Next: {session.next_color.name.lower()}")
    print(f"Captures: black {captures[Color.BLACK]}, white {captures[Color.WHITE]}")


def run_moves(session: GameSession, moves: List[str]) -> int:
    """Play GTP moves in order; illegal or invalid moves are reported and skipped."""
    status = 0
    for coord in moves:
        try:
            point = gtp_to_point(coord, session.board_size)
        except ValueError as e:
            print(f"Error: {e}", file=sys.stderr)
            status = 1
            continue

        color = session.next_color
        if not session.play(point.x, point.y):
            print(f"Illegal move: {color.name.lower()} {coord.upper()}", file=sys.stderr)
            status = 1
    return status


def main(args: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parsed = parse_args(args)

    # Load config
    try:
        config = load_config(parsed.config)
    except FileNotFoundError as e:
        if parsed.config:
            print(f"Error: {e}", file=sys.stderr)
            return 1
        config = AppConfig()
    except Exception as e:
        print(f"Config error: {e}", file=sys.stderr)
        return 1

    setup_logging(config, level="DEBUG" if parsed.verbose else None)

    store = DraftStore(config=config)

    if parsed.list:
        show_drafts(store)
        return 0

    if parsed.delete:
        if store.delete_draft(parsed.delete):
            print(f"Deleted draft {parsed.delete}.")
            return 0
        print(f"Error: draft {parsed.delete} not found", file=sys.stderr)
        return 1

    board_size = parsed.size or config.board.size
    try:
        if parsed.load:
            tree = store.load_draft(parsed.load)
            if tree is None:
                print(f"Error: draft {parsed.load} not found", file=sys.stderr)
                return 1
            logger.debug("Loaded draft %s", parsed.load)
            session = GameSession(board_size=board_size, tree=tree)
        else:
            session = GameSession(board_size=board_size)
    except (MalformedTreeError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    status = run_moves(session, parsed.moves)

    for _ in range(parsed.undo):
        if not session.previous():
            break

    if parsed.save:
        draft_id = store.save_draft(session.tree, parsed.save, parsed.load)
        print(f"Saved draft {draft_id}.")

    if parsed.json:
        print(session.tree.serialize())
    else:
        show_session(session)

    return status


if __name__ == "__main__":
    sys.exit(main())
