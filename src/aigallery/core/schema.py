"""SQLite schema for users, albums and images."""

import logging
import sqlite3
from pathlib import Path

logger = logging.getLogger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS users (
    username TEXT PRIMARY KEY,
    password TEXT NOT NULL
) STRICT;

CREATE TABLE IF NOT EXISTS albums (
    id INTEGER PRIMARY KEY,
    name TEXT NOT NULL CHECK (length(trim(name)) BETWEEN 1 AND 100),
    username TEXT NOT NULL REFERENCES users (username) ON DELETE CASCADE,
    UNIQUE (name, username)
) STRICT;

CREATE TABLE IF NOT EXISTS images (
    id INTEGER PRIMARY KEY,
    prompt TEXT NOT NULL CHECK (length(trim(prompt)) BETWEEN 1 AND 100),
    url TEXT NOT NULL,
    album_id INTEGER NOT NULL REFERENCES albums (id) ON DELETE CASCADE,
    username TEXT NOT NULL,
    created_at TEXT NOT NULL DEFAULT (strftime('%Y-%m-%d %H:%M:%f', 'now'))
) STRICT;

CREATE INDEX IF NOT EXISTS idx_images_album_created
ON images (album_id, username, created_at DESC);

CREATE INDEX IF NOT EXISTS idx_images_username
ON images (username);
"""


def initialize_database(db_path: Path) -> None:
    """Create the gallery tables if they don't exist.

    Safe to call on every startup.

    Args:
        db_path: Path to SQLite database file
    """
    db_path = Path(db_path)
    db_path.parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(db_path)
    try:
        conn.executescript(SCHEMA)
        conn.commit()
    finally:
        conn.close()

    logger.info(f"Initialized gallery database at {db_path}")
