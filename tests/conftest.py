"""Shared pytest fixtures for AI Gallery tests."""

import shutil
import sqlite3
import tempfile
from pathlib import Path
from typing import Callable, Generator

import pytest

from aigallery.core.gallery_store import GalleryStore
from aigallery.core.schema import initialize_database
from aigallery.core.security import hash_password

# Plaintext passwords for the seeded users.
USERS = {
    "alice": "alice-password",
    "bob": "bob-password",
}


@pytest.fixture
def anyio_backend() -> str:
    """Run async tests on asyncio only."""
    return "asyncio"


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files.

    Yields:
        Path to temporary directory

    Cleanup:
        Directory is removed after test completes
    """
    temp_path = Path(tempfile.mkdtemp())
    try:
        yield temp_path
    finally:
        shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def db_path(temp_dir: Path) -> Path:
    """Create an initialized database with the users from ``USERS``.

    Passwords are hashed with the minimum bcrypt cost to keep tests fast.

    Returns:
        Path to the SQLite database file
    """
    path = temp_dir / "gallery.db"
    initialize_database(path)

    conn = sqlite3.connect(path)
    try:
        conn.executemany(
            "INSERT INTO users (username, password) VALUES (?, ?)",
            [(username, hash_password(password, rounds=4)) for username, password in USERS.items()],
        )
        conn.commit()
    finally:
        conn.close()

    return path


@pytest.fixture
def make_store(db_path: Path) -> Callable[[str | None], GalleryStore]:
    """Factory for stores bound to the test database."""

    def _make(username: str | None) -> GalleryStore:
        return GalleryStore(username, db_path=db_path)

    return _make


@pytest.fixture
def alice_store(make_store) -> GalleryStore:
    return make_store("alice")


@pytest.fixture
def bob_store(make_store) -> GalleryStore:
    return make_store("bob")


@pytest.fixture
def insert_image(db_path: Path) -> Callable[..., int]:
    """Insert an image row directly, with an explicit ``created_at``.

    Store-assigned timestamps can collide within a test, so ordering tests
    seed rows through this helper instead.

    Returns:
        Function returning the new image id
    """

    def _insert(album_id: int, username: str, prompt: str, created_at: str, url: str = "https://img/x.png") -> int:
        conn = sqlite3.connect(db_path)
        try:
            cursor = conn.execute(
                """
                INSERT INTO images (prompt, url, album_id, username, created_at)
                VALUES (?, ?, ?, ?, ?)
                """,
                (prompt, url, album_id, username, created_at),
            )
            conn.commit()
            return cursor.lastrowid
        finally:
            conn.close()

    return _insert


@pytest.fixture
def count_rows(db_path: Path) -> Callable[[str, str], int]:
    """Count rows of ``table`` owned by ``username``."""

    def _count(table: str, username: str) -> int:
        conn = sqlite3.connect(db_path)
        try:
            row = conn.execute(f"SELECT COUNT(*) FROM {table} WHERE username = ?", (username,)).fetchone()
            return row[0]
        finally:
            conn.close()

    return _count


@pytest.fixture
def user_passwords() -> dict[str, str]:
    """Plaintext passwords of the seeded users."""
    return dict(USERS)
