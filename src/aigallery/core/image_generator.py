"""Image generation through the OpenAI Images API.

Generation never touches the database.  The returned URL is wrapped in a
:class:`~aigallery.core.models.TransientImage` by the caller and kept in the
session until the user saves it into an album.
"""

import logging

import openai

from aigallery.core.config import GalleryConfig, config

logger = logging.getLogger(__name__)


class ImageGenerationError(Exception):
    """The external image API could not produce an image.

    The message is safe to show to the user.
    """

    pass


class ImageGenerator:
    """Thin wrapper around the OpenAI image generation endpoint.

    The client is created on first use so the application can start (and
    browse existing albums) without an API key configured.
    """

    def __init__(self, api_key: str | None, model: str = "dall-e-2", size: str = "512x512"):
        self.api_key = api_key
        self.model = model
        self.size = size
        self._client: openai.AsyncOpenAI | None = None

    @classmethod
    def from_config(cls, cfg: GalleryConfig = config) -> "ImageGenerator":
        return cls(api_key=cfg.openai_api_key, model=cfg.image_model, size=cfg.image_size)

    def _get_client(self) -> openai.AsyncOpenAI:
        if not self.api_key:
            raise ImageGenerationError("Image generation is not configured.")
        if self._client is None:
            self._client = openai.AsyncOpenAI(api_key=self.api_key)
            logger.info("OpenAI client created")
        return self._client

    async def generate_url(self, prompt: str) -> str:
        """Generate one image for ``prompt`` and return its URL.

        Raises:
            ImageGenerationError: If no API key is set, the API call fails,
                or the response carries no URL
        """
        client = self._get_client()

        logger.info(f"Requesting {self.size} image from {self.model}")
        try:
            response = await client.images.generate(
                model=self.model,
                prompt=prompt,
                size=self.size,
                n=1,
            )
        except openai.OpenAIError as e:
            logger.error(f"Image generation failed: {type(e).__name__}: {e}")
            raise ImageGenerationError("Image generation failed.") from e

        url = response.data[0].url if response.data else None
        if not url:
            raise ImageGenerationError("Image generation failed.")
        return url
