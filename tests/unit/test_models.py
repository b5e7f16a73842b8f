"""Unit tests for aigallery.core.models and aigallery.core.security."""

from aigallery.core.models import Album, AuthResult, AuthStatus, Image, TransientImage
from aigallery.core.security import hash_password, verify_password


def _image(image_id: int = 1) -> Image:
    return Image(
        id=image_id,
        prompt="a fox",
        url="https://img/fox.png",
        album_id=10,
        username="alice",
        created_at="2024-01-01 00:00:00.000",
    )


class TestImage:
    """Tests for Image."""

    def test_from_row(self):
        row = {
            "id": 3,
            "prompt": "p",
            "url": "u",
            "album_id": 7,
            "username": "bob",
            "created_at": "2024-02-02 10:00:00.000",
        }
        image = Image.from_row(row)
        assert image.id == 3
        assert image.album_id == 7
        assert image.to_dict() == row


class TestAlbum:
    """Tests for Album."""

    def test_defaults_to_no_images(self):
        album = Album(id=1, name="Empty", username="alice")
        assert album.images == []
        assert album.image_count == 0

    def test_from_row_ignores_extra_columns(self):
        album = Album.from_row({"id": 1, "name": "Trips", "username": "alice", "extra": 1}, [_image()])
        assert album.name == "Trips"
        assert album.image_count == 1

    def test_to_dict_includes_images_and_count(self):
        album = Album(id=1, name="Trips", username="alice", images=[_image(1), _image(2)])
        data = album.to_dict()
        assert data["image_count"] == 2
        assert [image["id"] for image in data["images"]] == [1, 2]


class TestTransientImage:
    """Tests for TransientImage."""

    def test_dict_round_trip(self):
        image = TransientImage(prompt="a fox", url="https://img/fox.png")
        assert TransientImage.from_dict(image.to_dict()) == image


class TestAuthResult:
    """Each status maps to one combination of flags."""

    def test_no_such_user(self):
        result = AuthResult(AuthStatus.NO_SUCH_USER)
        assert (result.exists, result.password_matches, result.authenticated) == (False, False, False)

    def test_password_mismatch(self):
        result = AuthResult(AuthStatus.PASSWORD_MISMATCH)
        assert (result.exists, result.password_matches, result.authenticated) == (True, False, False)

    def test_authenticated(self):
        result = AuthResult(AuthStatus.AUTHENTICATED)
        assert (result.exists, result.password_matches, result.authenticated) == (True, True, True)


class TestPasswords:
    """Tests for bcrypt helpers."""

    def test_hash_and_verify(self):
        hashed = hash_password("hunter2", rounds=4)
        assert hashed != "hunter2"
        assert verify_password("hunter2", hashed)
        assert not verify_password("hunter3", hashed)

    def test_hashes_are_salted(self):
        assert hash_password("same", rounds=4) != hash_password("same", rounds=4)

    def test_malformed_hash_is_mismatch(self):
        assert verify_password("anything", "not-a-bcrypt-hash") is False
