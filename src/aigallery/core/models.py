"""Data models for albums, images and authentication results."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any


@dataclass
class Image:
    """A persisted image belonging to exactly one album."""

    id: int
    prompt: str
    url: str
    album_id: int
    username: str
    created_at: str

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> Image:
        return cls(
            id=row["id"],
            prompt=row["prompt"],
            url=row["url"],
            album_id=row["album_id"],
            username=row["username"],
            created_at=row["created_at"],
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class Album:
    """A named, per-user collection of images.

    ``images`` is built at read time from the ``images`` table and is never
    persisted as part of the album row.
    """

    id: int
    name: str
    username: str
    images: list[Image] = field(default_factory=list)

    @classmethod
    def from_row(cls, row: dict[str, Any], images: list[Image] | None = None) -> Album:
        return cls(
            id=row["id"],
            name=row["name"],
            username=row["username"],
            images=list(images or []),
        )

    @property
    def image_count(self) -> int:
        return len(self.images)

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["image_count"] = self.image_count
        return data


@dataclass
class TransientImage:
    """A generated image that has not been saved into an album yet.

    This is what the session clipboard holds between generation and saving.
    """

    prompt: str
    url: str

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TransientImage:
        return cls(prompt=data["prompt"], url=data["url"])

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class AuthStatus(Enum):
    NO_SUCH_USER = "no_such_user"
    PASSWORD_MISMATCH = "password_mismatch"
    AUTHENTICATED = "authenticated"


@dataclass(frozen=True)
class AuthResult:
    """Outcome of a sign-in attempt.

    Every caller receives the same three-state result, readable either
    through ``status`` or the ``exists`` / ``password_matches`` flags.
    """

    status: AuthStatus

    @property
    def exists(self) -> bool:
        return self.status is not AuthStatus.NO_SUCH_USER

    @property
    def password_matches(self) -> bool:
        return self.status is AuthStatus.AUTHENTICATED

    @property
    def authenticated(self) -> bool:
        return self.status is AuthStatus.AUTHENTICATED
