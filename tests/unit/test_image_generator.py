"""Unit tests for aigallery.core.image_generator.

The OpenAI client is replaced with mocks so no network access occurs.
"""

from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import openai
import pytest

from aigallery.core.config import GalleryConfig
from aigallery.core.image_generator import ImageGenerationError, ImageGenerator


def _generator_with_client(generate: AsyncMock) -> ImageGenerator:
    generator = ImageGenerator(api_key="sk-test", model="dall-e-2", size="512x512")
    client = MagicMock()
    client.images.generate = generate
    generator._client = client
    return generator


@pytest.mark.anyio
class TestImageGenerator:
    """Test generate_url."""

    async def test_returns_url(self):
        generate = AsyncMock(
            return_value=SimpleNamespace(data=[SimpleNamespace(url="https://img/cat.png")])
        )
        generator = _generator_with_client(generate)

        url = await generator.generate_url("a cat")

        assert url == "https://img/cat.png"
        generate.assert_awaited_once_with(model="dall-e-2", prompt="a cat", size="512x512", n=1)

    async def test_missing_api_key(self):
        generator = ImageGenerator(api_key=None)
        with pytest.raises(ImageGenerationError, match="not configured"):
            await generator.generate_url("a cat")

    async def test_api_error_is_wrapped(self):
        generate = AsyncMock(side_effect=openai.OpenAIError("quota exceeded"))
        generator = _generator_with_client(generate)

        with pytest.raises(ImageGenerationError, match="Image generation failed.") as exc_info:
            await generator.generate_url("a cat")
        assert isinstance(exc_info.value.__cause__, openai.OpenAIError)

    async def test_empty_response(self):
        generate = AsyncMock(return_value=SimpleNamespace(data=[]))
        generator = _generator_with_client(generate)

        with pytest.raises(ImageGenerationError):
            await generator.generate_url("a cat")


class TestFromConfig:
    """Test construction from configuration."""

    def test_from_config(self, temp_dir):
        cfg = GalleryConfig(
            database_path=temp_dir / "gallery.db",
            openai_api_key="sk-config",
            image_model="dall-e-3",
            image_size="1024x1024",
            _env_file=None,
        )
        generator = ImageGenerator.from_config(cfg)
        assert generator.api_key == "sk-config"
        assert generator.model == "dall-e-3"
        assert generator.size == "1024x1024"
