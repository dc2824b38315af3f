"""
FILE: taskly/core/repository.py
PURPOSE: Database operations and SQLite connection management
EXPORTS:
  - get_connection() -> Connection
  - init_database(conn) -> None
  - transaction() -> context manager yielding a Connection
  - read_transaction() -> context manager for consistent multi-query reads
  - list_backlog_items(tutorial) -> List[BacklogItem]
  - get_backlog_item(item_id) -> BacklogItem | None
  - list_children(parent_id) -> List[BacklogItem]
  - list_items_in_sprint(sprint_id) -> List[BacklogItem]
  - count_backlog_items(tutorial) -> int
  - create_backlog_item(title, item_type, ...) -> BacklogItem
  - update_backlog_item(item) -> BacklogItem
  - delete_backlog_item(item_id) -> None
  - get_active_sprint(tutorial) -> Sprint | None
  - list_sprints(tutorial) -> List[Sprint]
  - get_sprint(sprint_id) -> Sprint | None
  - create_sprint(name, start_date, end_date, ...) -> Sprint
  - update_sprint(sprint) -> Sprint
  - delete_sprint(sprint_id) -> None
  - delete_all(tutorial_only) -> None
  - get_revision() -> int
  - local_commit_count() -> int
DEPENDENCIES:
  - sqlite3 (stdlib)
  - pathlib (stdlib)
  - datetime (stdlib)
  - json (stdlib, sprint item_ids column)
  - logging (stdlib)
  - taskly.core.models (BacklogItem, Sprint)
  - taskly.core.exceptions (ItemNotFoundError, SprintNotFoundError, StoreError)
NOTES:
  - Database stored at ~/.taskly/taskly.db (TASKLY_HOME overrides the directory)
  - Auto-creates directory and initializes schema on first run
  - Returns domain objects (BacklogItem, Sprint), never raw dicts
  - Every function takes an optional `conn`; pass the one from transaction()
    to make several calls commit or roll back together
  - Every write transaction bumps meta.revision (see taskly.sync.watcher)
  - sqlite3 errors surface as StoreError
"""

import json
import logging
import os
import sqlite3
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Iterator, List, Optional

from .models import BacklogItem, Sprint
from .exceptions import ItemNotFoundError, SprintNotFoundError, StoreError


logger = logging.getLogger(__name__)

# Database file location (cross-platform)
DB_DIR = Path(os.environ.get("TASKLY_HOME", Path.home() / ".taskly"))
DB_PATH = DB_DIR / "taskly.db"

# Schema file location (shipped beside this module)
SCHEMA_PATH = Path(__file__).parent / "schema.sql"

# Write transactions committed by this process (see taskly.sync.watcher)
_local_commits = 0


def _note_local_commit() -> None:
    global _local_commits
    _local_commits += 1


def local_commit_count() -> int:
    """Number of write transactions this process has committed."""
    return _local_commits


def get_connection() -> sqlite3.Connection:
    """
    Get SQLite connection to Taskly database.

    Creates the database directory if it doesn't exist.
    Enables row_factory for dict-like row access.
    Enables foreign key constraints.
    Initializes database schema on first connection.

    Raises:
        StoreError: If the database can't be opened
    """
    try:
        DB_DIR.mkdir(parents=True, exist_ok=True)

        conn = sqlite3.connect(DB_PATH)
        conn.row_factory = sqlite3.Row

        # Required for ON DELETE SET NULL on parent_id / sprint_id
        conn.execute("PRAGMA foreign_keys = ON")

        init_database(conn)
    except (sqlite3.Error, OSError) as e:
        raise StoreError(str(e)) from e

    return conn


def init_database(conn: sqlite3.Connection) -> None:
    """
    Initialize database schema if tables don't exist.

    Executes schema.sql to create tables and default data.
    Safe to call multiple times (uses CREATE TABLE IF NOT EXISTS).
    """
    cursor = conn.execute(
        "SELECT name FROM sqlite_master WHERE type='table' AND name='backlog_items'"
    )
    tables_exist = cursor.fetchone() is not None

    if not tables_exist:
        logger.debug("Initializing schema at %s", DB_PATH)
        with open(SCHEMA_PATH, "r") as f:
            schema_sql = f.read()

        conn.executescript(schema_sql)
        conn.commit()


@contextmanager
def transaction() -> Iterator[sqlite3.Connection]:
    """
    Run a block of writes as one SQLite transaction.

    Commits on success, rolls back on any exception. The write lock is
    taken up front (BEGIN IMMEDIATE) so the reads that decide a cascade
    see the same state the writes apply to.

    Raises:
        StoreError: If SQLite fails inside the block (after rollback)

    Example:
        with repository.transaction() as conn:
            repository.update_backlog_item(story, conn=conn)
            repository.update_sprint(sprint, conn=conn)
    """
    conn = get_connection()
    try:
        conn.execute("BEGIN IMMEDIATE")
        yield conn
        conn.execute(
            "UPDATE meta SET value = value + 1 WHERE key = 'revision'"
        )
        conn.commit()
        _note_local_commit()
    except sqlite3.Error as e:
        conn.rollback()
        logger.debug("Transaction rolled back: %s", e)
        raise StoreError(str(e)) from e
    except BaseException:
        conn.rollback()
        logger.debug("Transaction rolled back")
        raise
    finally:
        conn.close()


@contextmanager
def read_transaction() -> Iterator[sqlite3.Connection]:
    """
    Run several reads against one consistent state of the database.

    Used by view caches so items and sprints are loaded from the same
    committed state. Nothing is written; the transaction is rolled back.
    """
    conn = get_connection()
    try:
        conn.execute("BEGIN")
        yield conn
    except sqlite3.Error as e:
        raise StoreError(str(e)) from e
    finally:
        conn.rollback()
        conn.close()


@contextmanager
def _writer(conn: Optional[sqlite3.Connection]) -> Iterator[sqlite3.Connection]:
    # Join the caller's transaction, or open a new one
    if conn is not None:
        yield conn
    else:
        with transaction() as own:
            yield own


@contextmanager
def _reader(conn: Optional[sqlite3.Connection]) -> Iterator[sqlite3.Connection]:
    if conn is not None:
        yield conn
        return

    own = get_connection()
    try:
        yield own
    except sqlite3.Error as e:
        raise StoreError(str(e)) from e
    finally:
        own.close()


def _now() -> str:
    return datetime.now().isoformat()


# --- Backlog Item Operations ---


def list_backlog_items(
    tutorial: Optional[bool] = False,
    conn: Optional[sqlite3.Connection] = None,
) -> List[BacklogItem]:
    """
    List backlog items in a partition.

    Args:
        tutorial: Partition filter (False = main data, True = tutorial,
                  None = both)

    Returns:
        Items ordered by id
    """
    with _reader(conn) as c:
        if tutorial is None:
            rows = c.execute("SELECT * FROM backlog_items ORDER BY id").fetchall()
        else:
            rows = c.execute(
                "SELECT * FROM backlog_items WHERE is_tutorial = ? ORDER BY id",
                (int(tutorial),),
            ).fetchall()

    return [BacklogItem.from_row(row) for row in rows]


def get_backlog_item(
    item_id: int,
    conn: Optional[sqlite3.Connection] = None,
) -> Optional[BacklogItem]:
    """
    Fetch single backlog item by ID.

    Returns:
        BacklogItem if found, None otherwise
    """
    with _reader(conn) as c:
        row = c.execute(
            "SELECT * FROM backlog_items WHERE id = ?", (item_id,)
        ).fetchone()

    return BacklogItem.from_row(row) if row else None


def list_children(
    parent_id: int,
    conn: Optional[sqlite3.Connection] = None,
) -> List[BacklogItem]:
    """List items whose parent_id is `parent_id`, ordered by id."""
    with _reader(conn) as c:
        rows = c.execute(
            "SELECT * FROM backlog_items WHERE parent_id = ? ORDER BY id",
            (parent_id,),
        ).fetchall()

    return [BacklogItem.from_row(row) for row in rows]


def list_items_in_sprint(
    sprint_id: int,
    conn: Optional[sqlite3.Connection] = None,
) -> List[BacklogItem]:
    """List items whose sprint_id is `sprint_id` (members and their children)."""
    with _reader(conn) as c:
        rows = c.execute(
            "SELECT * FROM backlog_items WHERE sprint_id = ? ORDER BY id",
            (sprint_id,),
        ).fetchall()

    return [BacklogItem.from_row(row) for row in rows]


def count_backlog_items(
    tutorial: bool = False,
    conn: Optional[sqlite3.Connection] = None,
) -> int:
    with _reader(conn) as c:
        row = c.execute(
            "SELECT COUNT(*) FROM backlog_items WHERE is_tutorial = ?",
            (int(tutorial),),
        ).fetchone()

    return row[0]


def create_backlog_item(
    title: str,
    item_type: str,
    description: str = "",
    story_points: int = 1,
    priority: int = 0,
    status: str = "Backlog",
    sprint_id: Optional[int] = None,
    parent_id: Optional[int] = None,
    is_tutorial: bool = False,
    conn: Optional[sqlite3.Connection] = None,
) -> BacklogItem:
    """
    Insert a new backlog item.

    Returns:
        Newly created BacklogItem with its allocated id

    Note:
        Sets created_at and updated_at automatically.
        No validation here; see taskly.core.service.create_item.
    """
    now = _now()

    with _writer(conn) as c:
        cursor = c.execute(
            """
            INSERT INTO backlog_items (
                title, description, story_points, priority, status, type,
                sprint_id, parent_id, is_tutorial, created_at, updated_at
            )
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                title,
                description,
                story_points,
                priority,
                str(status),
                str(item_type),
                sprint_id,
                parent_id,
                int(is_tutorial),
                now,
                now,
            ),
        )
        item = get_backlog_item(cursor.lastrowid, conn=c)

    if not item:
        raise ItemNotFoundError(cursor.lastrowid)

    logger.debug("Created %s #%s", item.type, item.id)
    return item


def update_backlog_item(
    item: BacklogItem,
    conn: Optional[sqlite3.Connection] = None,
) -> BacklogItem:
    """
    Update existing backlog item (all mutable fields).

    Returns:
        The item as stored, with a fresh updated_at

    Raises:
        ItemNotFoundError: If the item doesn't exist
    """
    with _writer(conn) as c:
        cursor = c.execute(
            """
            UPDATE backlog_items
            SET title = ?,
                description = ?,
                story_points = ?,
                priority = ?,
                status = ?,
                type = ?,
                sprint_id = ?,
                parent_id = ?,
                updated_at = ?
            WHERE id = ?
            """,
            (
                item.title,
                item.description,
                item.story_points,
                item.priority,
                str(item.status),
                str(item.type),
                item.sprint_id,
                item.parent_id,
                _now(),
                item.id,
            ),
        )
        if cursor.rowcount == 0:
            raise ItemNotFoundError(item.id)

        updated = get_backlog_item(item.id, conn=c)

    return updated


def delete_backlog_item(
    item_id: int,
    conn: Optional[sqlite3.Connection] = None,
) -> None:
    """
    Delete backlog item by ID.

    Raises:
        ItemNotFoundError: If item doesn't exist

    Note:
        Children get parent_id = NULL through the foreign key; sprint
        cleanup is the caller's job (taskly.core.cascade.on_item_deleted).
    """
    with _writer(conn) as c:
        cursor = c.execute("DELETE FROM backlog_items WHERE id = ?", (item_id,))
        if cursor.rowcount == 0:
            raise ItemNotFoundError(item_id)


# --- Sprint Operations ---


def get_active_sprint(
    tutorial: bool = False,
    conn: Optional[sqlite3.Connection] = None,
) -> Optional[Sprint]:
    """
    Fetch the non-archived sprint of a partition.

    Returns:
        Sprint if one is active, None otherwise
    """
    with _reader(conn) as c:
        row = c.execute(
            """
            SELECT * FROM sprints
            WHERE is_archived = 0 AND is_tutorial = ?
            ORDER BY id DESC
            LIMIT 1
            """,
            (int(tutorial),),
        ).fetchone()

    return Sprint.from_row(row) if row else None


def list_sprints(
    tutorial: bool = False,
    conn: Optional[sqlite3.Connection] = None,
) -> List[Sprint]:
    """
    List all sprints (active and archived) in a partition.

    Returns:
        Sprints ordered by id; callers filter archived/active
    """
    with _reader(conn) as c:
        rows = c.execute(
            "SELECT * FROM sprints WHERE is_tutorial = ? ORDER BY id",
            (int(tutorial),),
        ).fetchall()

    return [Sprint.from_row(row) for row in rows]


def get_sprint(
    sprint_id: int,
    conn: Optional[sqlite3.Connection] = None,
) -> Optional[Sprint]:
    with _reader(conn) as c:
        row = c.execute(
            "SELECT * FROM sprints WHERE id = ?", (sprint_id,)
        ).fetchone()

    return Sprint.from_row(row) if row else None


def create_sprint(
    name: str,
    start_date: str,
    end_date: str,
    goal: str = "",
    is_tutorial: bool = False,
    item_ids: Optional[List[int]] = None,
    is_archived: bool = False,
    conn: Optional[sqlite3.Connection] = None,
) -> Sprint:
    """
    Insert a new sprint.

    Returns:
        Newly created Sprint object

    Note:
        No active-sprint check here; see taskly.core.lifecycle.create_sprint.
    """
    now = _now()

    with _writer(conn) as c:
        cursor = c.execute(
            """
            INSERT INTO sprints (
                name, start_date, end_date, goal, item_ids,
                is_archived, is_tutorial, created_at, updated_at
            )
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                name,
                start_date,
                end_date,
                goal,
                json.dumps(sorted(set(item_ids or []))),
                int(is_archived),
                int(is_tutorial),
                now,
                now,
            ),
        )
        sprint = get_sprint(cursor.lastrowid, conn=c)

    if not sprint:
        raise SprintNotFoundError(cursor.lastrowid)

    return sprint


def update_sprint(
    sprint: Sprint,
    conn: Optional[sqlite3.Connection] = None,
) -> Sprint:
    """
    Update existing sprint (fields, item_ids and the archive flag).

    Raises:
        SprintNotFoundError: If the sprint doesn't exist
    """
    with _writer(conn) as c:
        cursor = c.execute(
            """
            UPDATE sprints
            SET name = ?,
                start_date = ?,
                end_date = ?,
                goal = ?,
                item_ids = ?,
                is_archived = ?,
                updated_at = ?
            WHERE id = ?
            """,
            (
                sprint.name,
                sprint.start_date,
                sprint.end_date,
                sprint.goal,
                json.dumps(sorted(set(sprint.item_ids))),
                int(sprint.is_archived),
                _now(),
                sprint.id,
            ),
        )
        if cursor.rowcount == 0:
            raise SprintNotFoundError(sprint.id)

        updated = get_sprint(sprint.id, conn=c)

    return updated


def delete_sprint(
    sprint_id: int,
    conn: Optional[sqlite3.Connection] = None,
) -> None:
    """
    Delete sprint by ID.

    Raises:
        SprintNotFoundError: If sprint doesn't exist
    """
    with _writer(conn) as c:
        cursor = c.execute("DELETE FROM sprints WHERE id = ?", (sprint_id,))
        if cursor.rowcount == 0:
            raise SprintNotFoundError(sprint_id)


# --- Bulk Operations ---


def delete_all(
    tutorial_only: bool = False,
    conn: Optional[sqlite3.Connection] = None,
) -> None:
    """
    Delete every backlog item and sprint.

    Args:
        tutorial_only: Only wipe the tutorial partition

    Note:
        Used by "clean" and by restarting the introduction.
    """
    with _writer(conn) as c:
        if tutorial_only:
            c.execute("DELETE FROM backlog_items WHERE is_tutorial = 1")
            c.execute("DELETE FROM sprints WHERE is_tutorial = 1")
        else:
            c.execute("DELETE FROM backlog_items")
            c.execute("DELETE FROM sprints")

    logger.info("Deleted all %s", "tutorial data" if tutorial_only else "data")


def get_revision(conn: Optional[sqlite3.Connection] = None) -> int:
    """Current write counter; changes whenever any process commits a write."""
    with _reader(conn) as c:
        row = c.execute("SELECT value FROM meta WHERE key = 'revision'").fetchone()

    return row[0] if row else 0
