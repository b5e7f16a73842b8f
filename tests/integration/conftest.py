"""Fixtures for API integration tests.

The FastAPI app runs against the temporary test database, and image
generation is served by :class:`FakeImageGenerator` so no network access
occurs.
"""

from __future__ import annotations

from typing import Generator

import pytest
from fastapi.testclient import TestClient

from aigallery.api.main import app, get_database_path, get_image_generator
from aigallery.core.image_generator import ImageGenerationError


class FakeImageGenerator:
    """Stand-in for ImageGenerator that records prompts."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.prompts: list[str] = []

    async def generate_url(self, prompt: str) -> str:
        if self.fail:
            raise ImageGenerationError("Image generation failed.")
        self.prompts.append(prompt)
        return f"https://images.example/{len(self.prompts)}.png"


@pytest.fixture
def fake_generator() -> FakeImageGenerator:
    return FakeImageGenerator()


@pytest.fixture
def test_client(db_path, fake_generator) -> Generator[TestClient, None, None]:
    """Anonymous client wired to the test database and fake generator."""
    app.dependency_overrides[get_database_path] = lambda: db_path
    app.dependency_overrides[get_image_generator] = lambda: fake_generator
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def _sign_in(client: TestClient, username: str, password: str) -> TestClient:
    resp = client.post("/api/sign_in", json={"username": username, "password": password})
    assert resp.status_code == 200
    return client


@pytest.fixture
def alice_client(test_client, user_passwords) -> TestClient:
    """Client with a session signed in as alice."""
    return _sign_in(test_client, "alice", user_passwords["alice"])


@pytest.fixture
def bob_client(test_client, user_passwords) -> TestClient:
    """Separate client (own cookie jar) signed in as bob."""
    return _sign_in(TestClient(app), "bob", user_passwords["bob"])
