"""AI Gallery — FastAPI Application.

This module defines the FastAPI ``app`` instance, all REST API routes, and
the ``main()`` CLI function that launches the uvicorn server.

Architecture
------------
- **Sessions** are signed cookies (Starlette ``SessionMiddleware``).  The
  session holds the signed-in ``username`` and the clipboard: the most
  recently generated image, kept until it is saved into an album or
  replaced by a newer one.
- **Persistence** goes through one :class:`~aigallery.core.gallery_store.GalleryStore`
  per request, scoped to the session's username.
- **Image generation** is delegated to
  :class:`~aigallery.core.image_generator.ImageGenerator`.  Generated images
  are not persisted until ``POST /api/save_image``.

Every route except ``/health``, sign-in and sign-out requires a signed-in
session and answers 401 otherwise.

Endpoints
---------
========  ==============================================  ===========================
Method    Path                                            Purpose
========  ==============================================  ===========================
GET       ``/health``                                     Liveness check
POST      ``/api/sign_in``                                Start a session
POST      ``/api/sign_out``                               End the session
POST      ``/api/generate``                               Generate an image
POST      ``/api/save_image``                             Save clipboard to an album
GET       ``/api/albums``                                 Paginated album listing
POST      ``/api/albums``                                 Create an album
GET       ``/api/albums/{album_id}``                      Album with paginated images
PATCH     ``/api/albums/{album_id}``                      Rename an album
DELETE    ``/api/albums/{album_id}``                      Delete an album
GET       ``/api/albums/{album_id}/images/{image_id}``    Single image
PATCH     ``/api/albums/{album_id}/images/{image_id}``    Change an image caption
DELETE    ``/api/albums/{album_id}/images/{image_id}``    Delete an image
========  ==============================================  ===========================

Usage
-----
CLI (installed entry point)::

    aigallery

Direct invocation::

    python -m aigallery.api.main
"""

from __future__ import annotations

import asyncio
import logging
import sqlite3
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from functools import lru_cache
from pathlib import Path

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.middleware.sessions import SessionMiddleware

from aigallery import __version__
from aigallery.api.models import (
    AlbumNameRequest,
    CaptionRequest,
    GenerateRequest,
    SaveImageRequest,
    SignInRequest,
)
from aigallery.api.validation import (
    ValidationError,
    validate_album_name,
    validate_caption,
    validate_prompt,
)
from aigallery.core.config import config
from aigallery.core.gallery_store import GalleryStore, is_invalid_input
from aigallery.core.image_generator import ImageGenerationError, ImageGenerator
from aigallery.core.models import TransientImage
from aigallery.core.schema import initialize_database

logger = logging.getLogger(__name__)

ERROR_MSG = {
    "bad_request": "Bad request.",
    "not_found": "Page not found.",
    "server_error": "Something went wrong.",
    "sign_in_required": "You must sign in to access the page.",
}

CLIPBOARD_KEY = "temp_image"


# ---------------------------------------------------------------------------
# Application lifecycle.
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Create the database tables on startup.

    Args:
        app: The FastAPI application instance.

    Yields:
        Control back to the application for the duration of its lifetime.
    """
    initialize_database(config.database_path)
    yield


app = FastAPI(
    title="AI Gallery",
    description="Generate images from prompts and organise them into albums.",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    SessionMiddleware,
    secret_key=config.session_secret,
    session_cookie="ai-gallery",
    max_age=config.session_max_age_days * 86400,
    same_site="lax",
    https_only=False,
)


# ---------------------------------------------------------------------------
# Dependencies.
# ---------------------------------------------------------------------------


def get_database_path() -> Path:
    """Database file used by request-scoped stores."""
    return config.database_path


@lru_cache
def get_image_generator() -> ImageGenerator:
    """Shared image generator built from the global configuration."""
    return ImageGenerator.from_config(config)


def require_username(request: Request) -> str:
    """Return the signed-in username or answer 401."""
    username = request.session.get("username")
    if not request.session.get("signed_in") or not username:
        raise HTTPException(status_code=401, detail=ERROR_MSG["sign_in_required"])
    return username


def get_store(
    username: str = Depends(require_username),
    db_path: Path = Depends(get_database_path),
) -> GalleryStore:
    """One store per request, scoped to the signed-in user."""
    return GalleryStore(username, db_path=db_path)


def _not_found() -> HTTPException:
    return HTTPException(status_code=404, detail=ERROR_MSG["not_found"])


# ---------------------------------------------------------------------------
# Error handlers.
# ---------------------------------------------------------------------------


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    return JSONResponse(status_code=400, content={"detail": str(exc)})


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(status_code=400, content={"detail": ERROR_MSG["bad_request"]})


@app.exception_handler(ImageGenerationError)
async def image_generation_handler(request: Request, exc: ImageGenerationError) -> JSONResponse:
    return JSONResponse(status_code=502, content={"detail": str(exc)})


@app.exception_handler(sqlite3.Error)
@app.exception_handler(OverflowError)
async def store_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Map store failures to a client or server error without leaking details.

    ``OverflowError`` is what the driver raises when binding an integer id
    outside SQLite's 64-bit range.
    """
    if is_invalid_input(exc):
        logger.warning(f"Invalid input rejected by store on {request.url.path}: {exc}")
        return JSONResponse(status_code=400, content={"detail": ERROR_MSG["bad_request"]})

    logger.error(f"Unhandled store error on {request.url.path}", exc_info=exc)
    return JSONResponse(status_code=500, content={"detail": ERROR_MSG["server_error"]})


@app.exception_handler(Exception)
async def server_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(f"Unhandled error on {request.url.path}", exc_info=exc)
    return JSONResponse(status_code=500, content={"detail": ERROR_MSG["server_error"]})


# ---------------------------------------------------------------------------
# Session routes.
# ---------------------------------------------------------------------------


@app.get("/health")
async def health() -> dict:
    return {"status": "ok"}


@app.post("/api/sign_in")
async def sign_in(
    req: SignInRequest,
    request: Request,
    db_path: Path = Depends(get_database_path),
) -> dict:
    """Authenticate and start a session.

    Raises:
        HTTPException: 401 with "Invalid username." or "Invalid password."
    """
    store = GalleryStore(None, db_path=db_path)
    result = await store.authenticate_user(req.username, req.password)

    if not result.exists:
        raise HTTPException(status_code=401, detail="Invalid username.")
    if not result.password_matches:
        raise HTTPException(status_code=401, detail="Invalid password.")

    request.session["username"] = req.username
    request.session["signed_in"] = True
    logger.info(f"User signed in: {req.username}")

    return {"success": True, "username": req.username}


@app.post("/api/sign_out")
async def sign_out(request: Request) -> dict:
    request.session.clear()
    return {"success": True}


# ---------------------------------------------------------------------------
# Generation routes.
# ---------------------------------------------------------------------------


@app.post("/api/generate")
async def generate_image(
    req: GenerateRequest,
    request: Request,
    store: GalleryStore = Depends(get_store),
    generator: ImageGenerator = Depends(get_image_generator),
) -> dict:
    """Generate an image and place it in the session clipboard.

    The response also carries the first page of albums so the client can
    offer a destination for saving.

    Returns:
        Dictionary with ``success``, ``message``, ``image`` and ``albums``.

    Raises:
        ValidationError: (400) if the prompt is empty or too long.
        ImageGenerationError: (502) if the external API fails.
    """
    prompt = validate_prompt(req.prompt)
    url = await generator.generate_url(prompt)

    image = TransientImage(prompt=prompt, url=url)
    request.session[CLIPBOARD_KEY] = image.to_dict()

    albums = await store.sorted_albums()
    return {
        "success": True,
        "message": "Your image was generated successfully!",
        "image": image.to_dict(),
        "albums": [album.to_dict() for album in albums],
    }


@app.post("/api/save_image")
async def save_image(
    req: SaveImageRequest,
    request: Request,
    store: GalleryStore = Depends(get_store),
) -> dict:
    """Save the clipboard image into one of the user's albums.

    Raises:
        HTTPException: 400 if the clipboard is empty, 404 if the album is
            not visible to the user.
    """
    clipboard = request.session.get(CLIPBOARD_KEY)
    if not clipboard:
        raise HTTPException(status_code=400, detail="Generate an image before saving it.")

    album = await store.load_album(req.album_id)
    if album is None:
        raise _not_found()

    saved = await store.add_image_to_album(req.album_id, TransientImage.from_dict(clipboard))
    if not saved:
        raise _not_found()

    del request.session[CLIPBOARD_KEY]
    return {"success": True, "message": f'Your image was added to "{album.name}".'}


# ---------------------------------------------------------------------------
# Album routes.
# ---------------------------------------------------------------------------


@app.get("/api/albums")
async def list_albums(page: int = 1, store: GalleryStore = Depends(get_store)) -> dict:
    """Return one page of the user's albums, most images first.

    Raises:
        HTTPException: 404 if ``page`` is below 1 or past the last page.
    """
    page_count = await store.count_album_pages()
    if page < 1 or page > page_count:
        raise _not_found()

    albums = await store.sorted_albums(page)
    return {
        "albums": [album.to_dict() for album in albums],
        "page": page,
        "page_count": page_count,
    }


@app.post("/api/albums", status_code=201)
async def create_album(req: AlbumNameRequest, store: GalleryStore = Depends(get_store)) -> dict:
    """Create an album.

    Raises:
        ValidationError: (400) if the name is empty or too long.
        HTTPException: 409 if the user already has an album with that name.
    """
    name = validate_album_name(req.name)

    if await store.exists_album_name(name):
        raise HTTPException(status_code=409, detail="Album name must be unique.")

    if not await store.create_album(name):
        raise HTTPException(status_code=409, detail="Album name must be unique.")

    return {"success": True, "message": f'Album "{name}" was successfully created!'}


@app.get("/api/albums/{album_id}")
async def get_album(album_id: int, page: int = 1, store: GalleryStore = Depends(get_store)) -> dict:
    """Return an album and one page of its images, newest first.

    Raises:
        HTTPException: 404 if the album is missing or ``page`` is out of range.
    """
    page_count = await store.count_image_pages(album_id)
    if page < 1 or page > page_count:
        raise _not_found()

    album, images = await asyncio.gather(
        store.load_album(album_id),
        store.sorted_images(album_id, page),
    )
    if album is None:
        raise _not_found()

    return {
        "album": album.to_dict(),
        "images": [image.to_dict() for image in images],
        "page": page,
        "page_count": page_count,
    }


@app.patch("/api/albums/{album_id}")
async def rename_album(
    album_id: int,
    req: AlbumNameRequest,
    store: GalleryStore = Depends(get_store),
) -> dict:
    """Rename an album.

    Raises:
        ValidationError: (400) if the name is empty or too long.
        HTTPException: 404 if the album is missing, 409 if the name is taken.
    """
    name = validate_album_name(req.name)

    if await store.load_album(album_id) is None:
        raise _not_found()

    if await store.exists_album_name(name):
        raise HTTPException(status_code=409, detail="Album name must be unique.")

    if not await store.set_album_name(album_id, name):
        raise HTTPException(status_code=409, detail="Album name must be unique.")

    return {"success": True, "message": f'Album name changed to "{name}".'}


@app.delete("/api/albums/{album_id}")
async def delete_album(album_id: int, store: GalleryStore = Depends(get_store)) -> dict:
    """Delete an album and, through the schema cascade, its images.

    Raises:
        HTTPException: 404 if the album is missing.
    """
    album = await store.load_album(album_id)
    if album is None:
        raise _not_found()

    # A concurrent delete between the load and this call surfaces as 404.
    if not await store.delete_album(album_id):
        raise _not_found()

    return {"success": True, "message": f'Album "{album.name}" was successfully deleted.'}


# ---------------------------------------------------------------------------
# Image routes.
# ---------------------------------------------------------------------------


@app.get("/api/albums/{album_id}/images/{image_id}")
async def get_image(album_id: int, image_id: int, store: GalleryStore = Depends(get_store)) -> dict:
    """Return a single image.

    Raises:
        HTTPException: 404 if the image is not in that album for this user.
    """
    image = await store.load_image(album_id, image_id)
    if image is None:
        raise _not_found()
    return image.to_dict()


@app.patch("/api/albums/{album_id}/images/{image_id}")
async def set_caption(
    album_id: int,
    image_id: int,
    req: CaptionRequest,
    store: GalleryStore = Depends(get_store),
) -> dict:
    """Change an image caption.

    Raises:
        ValidationError: (400) if the caption is empty or too long.
        HTTPException: 404 if the image is missing.
    """
    caption = validate_caption(req.caption)

    if not await store.set_image_caption(album_id, image_id, caption):
        raise _not_found()

    return {"success": True, "message": f'Image name changed to "{caption}".'}


@app.delete("/api/albums/{album_id}/images/{image_id}")
async def delete_image(album_id: int, image_id: int, store: GalleryStore = Depends(get_store)) -> dict:
    """Delete an image.

    Raises:
        HTTPException: 404 if the image is missing.
    """
    image = await store.load_image(album_id, image_id)
    if image is None:
        raise _not_found()

    if not await store.delete_image(album_id, image_id):
        raise _not_found()

    return {"success": True, "message": f'"{image.prompt}" was successfully deleted!'}


# ---------------------------------------------------------------------------
# CLI entry point.
# ---------------------------------------------------------------------------


def main() -> None:
    """Launch the uvicorn ASGI server.

    Reads host, port and log level from :data:`~aigallery.core.config.config`
    (``AIGALLERY_SERVER_HOST``, ``AIGALLERY_SERVER_PORT``,
    ``AIGALLERY_LOG_LEVEL``).

    This function is registered as the ``aigallery`` console script in
    ``pyproject.toml``.
    """
    import uvicorn

    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    uvicorn.run(
        "aigallery.api.main:app",
        host=config.server_host,
        port=config.server_port,
        reload=False,
    )


if __name__ == "__main__":
    main()
