"""Per-user persistence for albums and images.

:class:`GalleryStore` is the domain-facing storage API.  One instance is
constructed per request, bound to the username of the signed-in user, and
every statement that touches ``albums`` or ``images`` filters on that
username.  A store bound to ``None`` (an anonymous request) sees no rows at
all: reads come back empty, writes report ``False``, and page counts are 1.

Return conventions:

- load operations return the model or ``None`` when no visible row matches
- write operations return ``True`` when a row changed and ``False`` otherwise
- create/rename operations also return ``False`` when the new name collides
  with an existing one for the same user
- every other driver error propagates to the caller

Pagination
----------
Album listings and album pages are paginated independently
(``albums_per_page`` and ``images_per_page``).  Page counts never drop
below one, so "page 1 of an empty collection" is always a valid request.

The album listing is ordered by image count (descending) and then by name
(case-insensitive).  SQL picks the page; after images are joined onto the
page's albums the same order is reapplied with :func:`album_sort_key`, which
makes the ordering checkable without relying on the database's ``ORDER BY``.
"""

from __future__ import annotations

import asyncio
import logging
import sqlite3
from pathlib import Path

from aigallery.core.config import config
from aigallery.core.db_query import db_query
from aigallery.core.models import Album, AuthResult, AuthStatus, Image, TransientImage
from aigallery.core.security import verify_password

logger = logging.getLogger(__name__)

# SQLite extended result codes (https://www.sqlite.org/rescode.html).  Not
# every interpreter build exposes all of them as sqlite3 module constants.
SQLITE_TOOBIG = 18
SQLITE_MISMATCH = 20
SQLITE_CONSTRAINT_CHECK = 275
SQLITE_CONSTRAINT_FOREIGNKEY = 787
SQLITE_CONSTRAINT_NOTNULL = 1299
SQLITE_CONSTRAINT_PRIMARYKEY = 1555
SQLITE_CONSTRAINT_UNIQUE = 2067
SQLITE_CONSTRAINT_DATATYPE = 3091

UNIQUE_VIOLATION_CODES = frozenset({SQLITE_CONSTRAINT_PRIMARYKEY, SQLITE_CONSTRAINT_UNIQUE})
INVALID_INPUT_CODES = frozenset(
    {
        SQLITE_CONSTRAINT_CHECK,
        SQLITE_CONSTRAINT_DATATYPE,
        SQLITE_CONSTRAINT_FOREIGNKEY,
        SQLITE_CONSTRAINT_NOTNULL,
        SQLITE_MISMATCH,
        SQLITE_TOOBIG,
    }
)


def is_unique_constraint_violation(error: BaseException) -> bool:
    """Return whether ``error`` is a uniqueness conflict raised by the store."""
    if not isinstance(error, sqlite3.Error):
        return False
    return getattr(error, "sqlite_errorcode", None) in UNIQUE_VIOLATION_CODES


def is_invalid_input(error: BaseException) -> bool:
    """Return whether ``error`` means the store rejected a value's shape.

    Covers constraint failures on value shape (length checks, column types,
    missing or dangling references) and driver-side binding failures such
    as unsupported parameter types, a wrong number of parameters, or an
    integer outside SQLite's 64-bit range (raised as ``OverflowError``).
    """
    if isinstance(error, (sqlite3.ProgrammingError, sqlite3.InterfaceError, OverflowError)):
        return True
    if not isinstance(error, sqlite3.Error):
        return False
    return getattr(error, "sqlite_errorcode", None) in INVALID_INPUT_CODES


def count_pages(total: int, per_page: int) -> int:
    """Number of pages needed for ``total`` items, never less than one."""
    return (total + per_page - 1) // per_page if total > 0 else 1


def page_offset(page_number: int, per_page: int) -> int:
    """Row offset of a one-based page.  Pages below 1 resolve to page 1."""
    return (max(page_number, 1) - 1) * per_page


def album_sort_key(album: Album) -> tuple:
    """Total order for album listings.

    Most images first, then case-insensitive name, then id so that albums
    whose names differ only by case still have a stable position.
    """
    return (-album.image_count, album.name.lower(), album.id)


class GalleryStore:
    """Album and image storage scoped to a single user.

    Args:
        username: Signed-in user, or ``None`` for an anonymous request.
        db_path: Database file.  Defaults to ``config.database_path``.
        albums_per_page: Albums per listing page.  Defaults to config.
        images_per_page: Images per album page.  Defaults to config.
    """

    def __init__(
        self,
        username: str | None,
        *,
        db_path: Path | None = None,
        albums_per_page: int | None = None,
        images_per_page: int | None = None,
    ):
        self.username = username
        self.db_path = Path(db_path) if db_path is not None else config.database_path
        self.albums_per_page = albums_per_page or config.albums_per_page
        self.images_per_page = images_per_page or config.images_per_page

    async def _query(self, statement: str, *params):
        return await db_query(statement, *params, db_path=self.db_path)

    # ------------------------------------------------------------------
    # Authentication
    # ------------------------------------------------------------------

    async def authenticate_user(self, username: str, password: str) -> AuthResult:
        """Check a username/password pair against the ``users`` table.

        Args:
            username: Username supplied at sign-in
            password: Plaintext password supplied at sign-in

        Returns:
            AuthResult with status NO_SUCH_USER, PASSWORD_MISMATCH or
            AUTHENTICATED
        """
        find_user = """
            SELECT password
            FROM users
            WHERE username = ?1
        """

        result = await self._query(find_user, username)
        if not result.rowcount:
            logger.debug(f"Sign-in attempt for unknown user: {username}")
            return AuthResult(AuthStatus.NO_SUCH_USER)

        # bcrypt is deliberately slow; keep it off the event loop.
        password_hash = result.rows[0]["password"]
        matches = await asyncio.to_thread(verify_password, password, password_hash)
        if not matches:
            logger.debug(f"Password mismatch for user: {username}")
            return AuthResult(AuthStatus.PASSWORD_MISMATCH)

        return AuthResult(AuthStatus.AUTHENTICATED)

    # ------------------------------------------------------------------
    # Pagination
    # ------------------------------------------------------------------

    async def count_album_pages(self) -> int:
        """Number of album listing pages for this user (at least 1)."""
        count_albums = """
            SELECT COUNT(id) AS total
            FROM albums
            WHERE username = ?1
        """

        result = await self._query(count_albums, self.username)
        return count_pages(result.rows[0]["total"], self.albums_per_page)

    async def count_image_pages(self, album_id: int) -> int:
        """Number of image pages in an album (at least 1).

        A missing album also reports one page, so this cannot be used to
        detect whether the album exists.
        """
        count_images = """
            SELECT COUNT(id) AS total
            FROM images
            WHERE album_id = ?1
              AND username = ?2
        """

        result = await self._query(count_images, album_id, self.username)
        return count_pages(result.rows[0]["total"], self.images_per_page)

    async def sorted_albums(self, page_number: int = 1) -> list[Album]:
        """Return one page of this user's albums with their images attached.

        Args:
            page_number: One-based page number

        Returns:
            Albums ordered by image count (descending), then name
            (case-insensitive, ascending)
        """
        albums_page = """
            SELECT *
            FROM albums
            WHERE username = ?1
            ORDER BY (
                SELECT COUNT(id)
                FROM images
                WHERE album_id = albums.id
                  AND username = ?1
            ) DESC,
            unicode_lower(name) ASC,
            id ASC
            LIMIT ?2
            OFFSET ?3
        """

        all_images = """
            SELECT *
            FROM images
            WHERE username = ?1
            ORDER BY id ASC
        """

        offset = page_offset(page_number, self.albums_per_page)

        album_result, image_result = await asyncio.gather(
            self._query(albums_page, self.username, self.albums_per_page, offset),
            self._query(all_images, self.username),
        )

        images_by_album: dict[int, list[Image]] = {}
        for row in image_result.rows:
            image = Image.from_row(row)
            images_by_album.setdefault(image.album_id, []).append(image)

        albums = [
            Album.from_row(row, images_by_album.get(row["id"], []))
            for row in album_result.rows
        ]
        return sorted(albums, key=album_sort_key)

    async def sorted_images(self, album_id: int, page_number: int = 1) -> list[Image]:
        """Return one page of an album's images, newest first.

        Args:
            album_id: Album to list
            page_number: One-based page number

        Returns:
            Images ordered by creation time (descending)
        """
        images_page = """
            SELECT *
            FROM images
            WHERE album_id = ?1
              AND username = ?2
            ORDER BY created_at DESC, id DESC
            LIMIT ?3
            OFFSET ?4
        """

        offset = page_offset(page_number, self.images_per_page)
        result = await self._query(
            images_page, album_id, self.username, self.images_per_page, offset
        )
        return [Image.from_row(row) for row in result.rows]

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    async def load_album(self, album_id: int) -> Album | None:
        """Load an album with all of its images, or ``None`` if not visible."""
        find_album = """
            SELECT *
            FROM albums
            WHERE id = ?1
              AND username = ?2
        """

        find_images = """
            SELECT *
            FROM images
            WHERE album_id = ?1
              AND username = ?2
            ORDER BY id ASC
        """

        album_result, image_result = await asyncio.gather(
            self._query(find_album, album_id, self.username),
            self._query(find_images, album_id, self.username),
        )

        if not album_result.rowcount:
            return None

        images = [Image.from_row(row) for row in image_result.rows]
        return Album.from_row(album_result.rows[0], images)

    async def load_image(self, album_id: int, image_id: int) -> Image | None:
        """Load one image, or ``None`` if not visible in that album."""
        find_image = """
            SELECT *
            FROM images
            WHERE album_id = ?1
              AND id = ?2
              AND username = ?3
        """

        result = await self._query(find_image, album_id, image_id, self.username)
        if not result.rowcount:
            return None
        return Image.from_row(result.rows[0])

    async def exists_album_name(self, name: str) -> bool:
        """Check whether this user already has an album called ``name``."""
        find_name = """
            SELECT 1
            FROM albums
            WHERE name = ?1
              AND username = ?2
        """

        result = await self._query(find_name, name, self.username)
        return result.rowcount > 0

    # ------------------------------------------------------------------
    # Albums
    # ------------------------------------------------------------------

    async def create_album(self, name: str) -> bool:
        """Create an album.

        Returns:
            True if created, False if the name is already taken (or the
            store is anonymous)

        Raises:
            sqlite3.Error: Any failure other than a name conflict
        """
        insert_album = """
            INSERT INTO albums (name, username)
            VALUES (?1, ?2)
        """

        if self.username is None:
            return False

        try:
            result = await self._query(insert_album, name, self.username)
        except sqlite3.Error as e:
            if is_unique_constraint_violation(e):
                logger.debug(f"Album name already taken for {self.username}: {name}")
                return False
            raise

        created = result.rowcount > 0
        if created:
            logger.info(f"Created album {name!r} for {self.username}")
        return created

    async def set_album_name(self, album_id: int, name: str) -> bool:
        """Rename an album.

        Returns:
            True if renamed, False if the album isn't visible or the name is
            already taken

        Raises:
            sqlite3.Error: Any failure other than a name conflict
        """
        update_album = """
            UPDATE albums
            SET name = ?2
            WHERE id = ?1
              AND username = ?3
        """

        try:
            result = await self._query(update_album, album_id, name, self.username)
        except sqlite3.Error as e:
            if is_unique_constraint_violation(e):
                logger.debug(f"Album name already taken for {self.username}: {name}")
                return False
            raise

        return result.rowcount > 0

    async def delete_album(self, album_id: int) -> bool:
        """Delete an album.  Its images are removed by the schema's cascade.

        Returns:
            True if a row was removed, False otherwise
        """
        remove_album = """
            DELETE FROM albums
            WHERE id = ?1
              AND username = ?2
        """

        result = await self._query(remove_album, album_id, self.username)
        deleted = result.rowcount > 0
        if deleted:
            logger.info(f"Deleted album {album_id} for {self.username}")
        return deleted

    # ------------------------------------------------------------------
    # Images
    # ------------------------------------------------------------------

    async def add_image_to_album(self, album_id: int, image: TransientImage) -> bool:
        """Save a generated image into one of this user's albums.

        The insert selects from the user's own album row, so nothing is
        written when the album is missing or belongs to someone else, even
        if it disappears between an earlier check and this call.

        Returns:
            True if saved, False if the album isn't visible
        """
        insert_image = """
            INSERT INTO images (prompt, url, album_id, username)
            SELECT ?1, ?2, id, username
            FROM albums
            WHERE id = ?3
              AND username = ?4
        """

        if self.username is None:
            return False

        result = await self._query(insert_image, image.prompt, image.url, album_id, self.username)
        saved = result.rowcount > 0
        if saved:
            logger.info(f"Saved image to album {album_id} for {self.username}")
        else:
            logger.debug(f"Album {album_id} not found for {self.username}")
        return saved

    async def set_image_caption(self, album_id: int, image_id: int, caption: str) -> bool:
        """Change an image's caption.

        Returns:
            True if updated, False if the image isn't visible or the caption
            conflicts with a uniqueness rule

        Raises:
            sqlite3.Error: Any other failure
        """
        update_image = """
            UPDATE images
            SET prompt = ?3
            WHERE album_id = ?1
              AND id = ?2
              AND username = ?4
        """

        try:
            result = await self._query(update_image, album_id, image_id, caption, self.username)
        except sqlite3.Error as e:
            if is_unique_constraint_violation(e):
                return False
            raise

        return result.rowcount > 0

    async def delete_image(self, album_id: int, image_id: int) -> bool:
        """Delete an image.

        Returns:
            True if a row was removed, False otherwise
        """
        remove_image = """
            DELETE FROM images
            WHERE album_id = ?1
              AND id = ?2
              AND username = ?3
        """

        result = await self._query(remove_image, album_id, image_id, self.username)
        deleted = result.rowcount > 0
        if deleted:
            logger.info(f"Deleted image {image_id} from album {album_id} for {self.username}")
        return deleted

    # ------------------------------------------------------------------
    # Error classification
    # ------------------------------------------------------------------

    def is_invalid_input(self, error: BaseException) -> bool:
        return is_invalid_input(error)

    def is_unique_constraint_violation(self, error: BaseException) -> bool:
        return is_unique_constraint_violation(error)
