import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path

from .schema import SCHEMA_SQL, INDEXES_SQL, SEED_SQL, SCHEMA_VERSION

logger = logging.getLogger(__name__)

CONFIG_DIR = Path.home() / ".homeschool"
DB_PATH = CONFIG_DIR / "homeschool.db"

def init_db():
    """Initialize the database by creating tables and indexes if they don't exist."""
    CONFIG_DIR.mkdir(parents=True, exist_ok=True)
    with get_conn() as conn:
        conn.executescript(SCHEMA_SQL)
        conn.executescript(INDEXES_SQL)
        conn.executescript(SEED_SQL)
        ensure_package_story_text(conn)
        ensure_assignment_display_order(conn)
        ensure_child_wallets(conn)
        ensure_schema_version(conn)
        conn.commit()
    logger.info("Database ready at %s (schema v%s)", DB_PATH, SCHEMA_VERSION)

def _table_columns(conn: sqlite3.Connection, table: str) -> set:
    cursor = conn.cursor()
    cursor.execute(f"PRAGMA table_info({table})")
    return {row[1] for row in cursor.fetchall()}

def ensure_package_story_text(conn: sqlite3.Connection) -> None:
    """Ensure packages table has story_text column for themed reading packages."""
    if "story_text" not in _table_columns(conn, "packages"):
        conn.execute("ALTER TABLE packages ADD COLUMN story_text TEXT")

def ensure_assignment_display_order(conn: sqlite3.Connection) -> None:
    """Ensure assignments table has display_order column for parent reordering."""
    if "display_order" not in _table_columns(conn, "assignments"):
        conn.execute("ALTER TABLE assignments ADD COLUMN display_order INTEGER")

def ensure_child_wallets(conn: sqlite3.Connection) -> None:
    """Ensure every child has a wallet row."""
    conn.execute(
        """
        INSERT OR IGNORE INTO child_coins (child_id, balance, total_earned, current_streak)
        SELECT id, 0, 0, 0 FROM children
        """
    )

def get_schema_version(conn: sqlite3.Connection) -> int:
    """Read the SQLite schema version from PRAGMA user_version."""
    cursor = conn.cursor()
    cursor.execute("PRAGMA user_version")
    row = cursor.fetchone()
    return int(row[0]) if row else 0

def set_schema_version(conn: sqlite3.Connection, version: int) -> None:
    """Set the SQLite schema version via PRAGMA user_version."""
    conn.execute(f"PRAGMA user_version = {int(version)}")

def ensure_schema_version(conn: sqlite3.Connection) -> None:
    """Ensure the current schema version is written to the database."""
    current = get_schema_version(conn)
    if current != SCHEMA_VERSION:
        set_schema_version(conn, SCHEMA_VERSION)

@contextmanager
def get_conn():
    """Context manager for SQLite connection, using row_factory for dict-like rows."""
    conn = sqlite3.connect(DB_PATH, check_same_thread=False)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    try:
        yield conn
    finally:
        conn.close()

@contextmanager
def transaction(conn: sqlite3.Connection):
    """Run a block of writes atomically: commit on success, roll back on any error."""
    conn.execute("BEGIN IMMEDIATE")
    try:
        yield conn
    except BaseException:
        conn.rollback()
        raise
    else:
        conn.commit()

def get_db():
    """FastAPI dependency that yields a DB connection and closes it afterwards."""
    with get_conn() as conn:
        yield conn
