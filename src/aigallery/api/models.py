"""Pydantic request models for the AI Gallery API.

Field values arrive raw.  Sanitising, trimming and length checks happen in
:mod:`aigallery.api.validation` so that failures can carry the exact
user-facing message for each field.

Models
------
SignInRequest
    Payload for ``POST /api/sign_in``.
GenerateRequest
    Payload for ``POST /api/generate``.
AlbumNameRequest
    Payload for ``POST /api/albums`` and ``PATCH /api/albums/{id}``.
CaptionRequest
    Payload for ``PATCH /api/albums/{id}/images/{image_id}``.
SaveImageRequest
    Payload for ``POST /api/save_image``.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class SignInRequest(BaseModel):
    """Request body for ``POST /api/sign_in``."""

    username: str = Field(..., description="Username to sign in as.")
    password: str = Field(..., description="Plaintext password.")


class GenerateRequest(BaseModel):
    """Request body for ``POST /api/generate``.

    Attributes:
        prompt: Text description of the image to generate (1–100 characters
            after sanitising).
    """

    prompt: str = Field(default="", description="Image prompt.")


class AlbumNameRequest(BaseModel):
    """Request body for creating or renaming an album."""

    name: str = Field(default="", description="Album name (1–100 characters).")


class CaptionRequest(BaseModel):
    """Request body for changing an image caption."""

    caption: str = Field(default="", description="Image caption (1–100 characters).")


class SaveImageRequest(BaseModel):
    """Request body for ``POST /api/save_image``.

    Attributes:
        album_id: Album that receives the image currently held in the
            session clipboard.
    """

    album_id: int = Field(..., description="Destination album id.")
