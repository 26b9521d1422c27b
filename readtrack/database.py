import logging
import sqlite3
from typing import Optional

from readtrack.config import settings

logger = logging.getLogger(__name__)


def get_db_connection(db_file: Optional[str] = None) -> sqlite3.Connection:
    """Establishes a connection to the SQLite database."""
    conn = sqlite3.connect(db_file or settings.database_file)
    conn.row_factory = sqlite3.Row
    return conn


def create_tables(db_file: Optional[str] = None) -> None:
    """Creates the books table if it doesn't exist."""
    conn = get_db_connection(db_file)
    try:
        conn.execute("""
            CREATE TABLE IF NOT EXISTS books (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                title TEXT NOT NULL,
                author TEXT NOT NULL,
                description TEXT
            )
        """)
        conn.commit()
    finally:
        conn.close()


def check_connection(db_file: Optional[str] = None) -> bool:
    """Run a trivial query; used by the health endpoint."""
    try:
        conn = get_db_connection(db_file)
        try:
            conn.execute("SELECT 1")
        finally:
            conn.close()
    except sqlite3.Error:
        logger.warning("Database connectivity check failed", exc_info=True)
        return False
    return True


def initialize_database(db_file: Optional[str] = None) -> None:
    """Initializes the database, creating tables if needed."""
    create_tables(db_file)
    logger.debug("Database ready at %s", db_file or settings.database_file)
