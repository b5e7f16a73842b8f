"""Core persistence layer for AI Gallery.

Architecture Overview
---------------------
1. **Configuration** (config.py):
   - Environment-based configuration using Pydantic Settings
   - All settings prefixed with AIGALLERY_ in .env files

2. **Query Executor** (db_query.py):
   - One connection per statement, opened and closed around each call
   - Statement logging at DEBUG level

3. **Gallery Store** (gallery_store.py):
   - Album and image operations scoped to one username
   - Pagination (5 albums per page, 3 images per page by default)
   - Constraint-violation classification by SQLite result code

4. **Support Utilities**:
   - schema.py: Table definitions and database bootstrap
   - security.py: bcrypt password hashing
   - image_generator.py: OpenAI image generation client
   - models.py: Album, Image, TransientImage and AuthResult

Usage Example
-------------
    from aigallery.core import GalleryStore

    store = GalleryStore("alice")
    if await store.create_album("Landscapes"):
        albums = await store.sorted_albums(page_number=1)
"""

from aigallery.core.config import GalleryConfig, config
from aigallery.core.db_query import QueryResult
from aigallery.core.gallery_store import GalleryStore
from aigallery.core.models import Album, AuthResult, AuthStatus, Image, TransientImage

__all__ = [
    "Album",
    "AuthResult",
    "AuthStatus",
    "GalleryConfig",
    "GalleryStore",
    "Image",
    "QueryResult",
    "TransientImage",
    "config",
]
