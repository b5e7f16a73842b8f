"""AI Gallery - generate images from prompts and organise them into albums."""

__version__ = "0.1.0"

from aigallery.core.config import GalleryConfig, config
from aigallery.core.gallery_store import GalleryStore

__all__ = [
    "GalleryConfig",
    "GalleryStore",
    "config",
]
