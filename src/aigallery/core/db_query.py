"""Single-statement query execution against the gallery database.

Every call to :func:`db_query` opens its own SQLite connection, logs the
statement, executes it, commits, and closes the connection again.  There is
no pooling and no connection shared between calls, so a stuck connection can
only ever affect the statement that opened it.

Statements use SQLite's numbered positional placeholders (``?1``, ``?2``,
...), bound from ``params`` in order.  The same placeholder may appear more
than once in a statement.

Every connection registers ``unicode_lower(text)``, a Unicode-aware
counterpart of ``LOWER()`` that folds case exactly like ``str.lower``.

Errors raised by the driver propagate unmodified.  Classifying them is the
job of :mod:`aigallery.core.gallery_store`.
"""

from __future__ import annotations

import asyncio
import logging
import sqlite3
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any

from aigallery.core.config import config

logger = logging.getLogger(__name__)


@dataclass
class QueryResult:
    """Outcome of one executed statement.

    ``rowcount`` is the number of returned rows for statements that produce
    rows (``SELECT`` or ``... RETURNING``), otherwise the number of rows the
    statement changed.
    """

    rowcount: int
    rows: list[dict[str, Any]] = field(default_factory=list)


def _unicode_lower(value: Any) -> Any:
    return value.lower() if isinstance(value, str) else value


def _log_query(statement: str, params: tuple) -> None:
    timestamp = datetime.now().strftime("%b %d %Y %H:%M:%S")
    logger.debug(f"{timestamp} {statement} {list(params)}")


def _execute(db_path: Path, statement: str, params: tuple) -> QueryResult:
    """Run ``statement`` on a fresh connection and close it afterwards."""
    conn = sqlite3.connect(db_path)
    try:
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        # SQLite's LOWER() only folds ASCII; ordering must match str.lower().
        conn.create_function("unicode_lower", 1, _unicode_lower, deterministic=True)

        _log_query(statement, params)
        cursor = conn.execute(statement, params)

        # Rows must be drained before commit for RETURNING statements.
        rows = [dict(row) for row in cursor.fetchall()]
        conn.commit()

        if cursor.description is not None:
            return QueryResult(rowcount=len(rows), rows=rows)
        return QueryResult(rowcount=cursor.rowcount, rows=rows)
    finally:
        conn.close()


async def db_query(statement: str, *params: Any, db_path: Path | None = None) -> QueryResult:
    """Execute one parameterized statement and return its result.

    The blocking driver call runs in a worker thread so the event loop stays
    free while the database works.

    Args:
        statement: SQL using ``?1``-style positional placeholders.
        *params: Values bound to the placeholders, in order.
        db_path: Database file to use.  Defaults to ``config.database_path``.

    Returns:
        :class:`QueryResult` with the row count and returned rows.

    Raises:
        sqlite3.Error: Any failure reported by the driver, unmodified.
    """
    path = Path(db_path) if db_path is not None else config.database_path
    return await asyncio.to_thread(_execute, path, statement, params)
