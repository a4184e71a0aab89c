"""
SQLite draft store for the Go game record engine.

Keeps serialized move trees keyed by an opaque draft id, together with a
title and timestamps. Trees go in through ``MoveTree.serialize`` and come
back through ``MoveTree.deserialize``, so a stored draft is always a valid
tree.
"""

import json
import logging
import sqlite3
import uuid
from dataclasses import dataclass, asdict
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from .config import AppConfig, get_db_path
from .move_tree import MoveTree

logger = logging.getLogger(__name__)


# ============================================================================
# Data Classes
# ============================================================================

@dataclass
class DraftMetadata:
    """Listing entry for a stored draft."""
    id: str
    title: str
    created_at: str     # ISO timestamp
    updated_at: str     # ISO timestamp

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return asdict(self)


@dataclass
class Draft(DraftMetadata):
    """A stored draft including its serialized move tree."""
    game_tree: str = ""

    @property
    def metadata(self) -> DraftMetadata:
        return DraftMetadata(
            id=self.id,
            title=self.title,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )

    def load_tree(self) -> MoveTree:
        return MoveTree.deserialize(self.game_tree)

    def game_tree_dict(self) -> Dict[str, Any]:
        return json.loads(self.game_tree)


# ============================================================================
# Database Schema
# ============================================================================

CREATE_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS drafts (
    id TEXT PRIMARY KEY,
    title TEXT NOT NULL,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    game_tree TEXT NOT NULL
);
"""

CREATE_INDEX_SQL = """
CREATE INDEX IF NOT EXISTS idx_drafts_updated_at ON drafts(updated_at);
"""


# ============================================================================
# Store Class
# ============================================================================

class DraftStore:
    """
    SQLite-backed store of serialized move trees.

    Usage:
        store = DraftStore(config)

        draft_id = store.save_draft(tree, "Lesson 3")
        tree = store.load_draft(draft_id)
        for meta in store.list_drafts():
            print(meta.title, meta.updated_at)
    """

    def __init__(self, config: Optional[AppConfig] = None, db_path: Optional[str] = None):
        """
        Initialize the store.

        Args:
            config: Application configuration (used to get db path)
            db_path: Direct path to database file (overrides config)
        """
        if db_path:
            self.db_path = Path(db_path)
        elif config:
            self.db_path = get_db_path(config)
        else:
            raise ValueError("Either config or db_path must be provided")

        # Ensure parent directory exists
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        self._init_db()

    def _init_db(self) -> None:
        """Initialize database schema."""
        with self._get_connection() as conn:
            conn.execute(CREATE_TABLE_SQL)
            conn.execute(CREATE_INDEX_SQL)
            conn.commit()
        logger.debug("Draft store ready at %s", self.db_path)

    def _get_connection(self) -> sqlite3.Connection:
        """Get a database connection."""
        conn = sqlite3.connect(str(self.db_path))
        conn.row_factory = sqlite3.Row
        return conn

    @staticmethod
    def _row_to_draft(row: sqlite3.Row) -> Draft:
        return Draft(
            id=row['id'],
            title=row['title'],
            created_at=row['created_at'],
            updated_at=row['updated_at'],
            game_tree=row['game_tree'],
        )

    def save_draft(self, tree: MoveTree, title: str, draft_id: Optional[str] = None) -> str:
        """
        Store a snapshot of ``tree``.

        Args:
            tree: Move tree to serialize
            title: Display title
            draft_id: Id to overwrite; a new uuid is generated if None

        Returns:
            The draft id
        """
        return self._write(tree.serialize(), title, draft_id)

    def save_game_tree(self, game_tree: str, title: str, draft_id: Optional[str] = None) -> str:
        """
        Store an already serialized tree after validating it.

        Raises:
            MalformedTreeError: If ``game_tree`` is not a valid serialized tree
        """
        # Normalize through the tree so the stored text is canonical.
        return self._write(MoveTree.deserialize(game_tree).serialize(), title, draft_id)

    def _write(self, game_tree: str, title: str, draft_id: Optional[str]) -> str:
        now = datetime.now().isoformat()
        if not draft_id:
            draft_id = str(uuid.uuid4())

        with self._get_connection() as conn:
            existing = conn.execute(
                "SELECT created_at FROM drafts WHERE id = ?", (draft_id,)
            ).fetchone()
            created_at = existing['created_at'] if existing else now

            conn.execute("""
                INSERT OR REPLACE INTO drafts
                (id, title, created_at, updated_at, game_tree)
                VALUES (?, ?, ?, ?, ?)
            """, (draft_id, title, created_at, now, game_tree))
            conn.commit()

        logger.info("Saved draft %s (%s)", draft_id, "updated" if existing else "created")
        return draft_id

    def get_draft(self, draft_id: str) -> Optional[Draft]:
        """Return the stored draft, or None if the id is unknown."""
        with self._get_connection() as conn:
            row = conn.execute(
                "SELECT id, title, created_at, updated_at, game_tree FROM drafts WHERE id = ?",
                (draft_id,),
            ).fetchone()

        if row is None:
            return None
        return self._row_to_draft(row)

    def load_draft(self, draft_id: str) -> Optional[MoveTree]:
        """
        Load a stored tree.

        Returns:
            MoveTree if found, None otherwise

        Raises:
            MalformedTreeError: If the stored data is corrupt
        """
        draft = self.get_draft(draft_id)
        if draft is None:
            return None
        return draft.load_tree()

    def list_drafts(self, limit: Optional[int] = None, offset: int = 0) -> List[DraftMetadata]:
        """
        List draft metadata, most recently updated first.

        Args:
            limit: Maximum number of entries (all if None)
            offset: Number of entries to skip
        """
        query = """
            SELECT id, title, created_at, updated_at
            FROM drafts
            ORDER BY updated_at DESC, id ASC
            LIMIT ? OFFSET ?
        """
        with self._get_connection() as conn:
            rows = conn.execute(query, (limit if limit is not None else -1, offset)).fetchall()

        return [
            DraftMetadata(
                id=row['id'],
                title=row['title'],
                created_at=row['created_at'],
                updated_at=row['updated_at'],
            )
            for row in rows
        ]

    def delete_draft(self, draft_id: str) -> bool:
        """
        Delete a draft.

        Returns:
            True if the draft was deleted, False if not found
        """
        with self._get_connection() as conn:
            cursor = conn.execute("DELETE FROM drafts WHERE id = ?", (draft_id,))
            conn.commit()
            deleted = cursor.rowcount > 0

        if deleted:
            logger.info("Deleted draft %s", draft_id)
        return deleted

    def count(self) -> int:
        """Get the total number of stored drafts."""
        with self._get_connection() as conn:
            return conn.execute("SELECT COUNT(*) FROM drafts").fetchone()[0]

    def get_stats(self) -> Dict[str, Any]:
        """
        Get store statistics.

        Returns:
            Dictionary with store statistics
        """
        with self._get_connection() as conn:
            count = conn.execute("SELECT COUNT(*) FROM drafts").fetchone()[0]
            last = conn.execute("SELECT MAX(updated_at) FROM drafts").fetchone()[0]

        db_size = self.db_path.stat().st_size if self.db_path.exists() else 0

        return {
            'total_drafts': count,
            'last_updated': last,
            'db_size_bytes': db_size,
            'db_path': str(self.db_path),
        }

    def __repr__(self) -> str:
        return f"DraftStore(db_path={self.db_path}, drafts={self.count()})"
