"""
Render coordinator.

Recomputes the displayed output from the current image source and
pipeline. Holds references only; every render replays the full chain.
"""

import logging
from typing import Callable, Optional

from PIL import Image

import processors
from errors import EncodeError
from image_source import ImageSource
from pipeline import Pipeline

logger = logging.getLogger(__name__)

DEFAULT_FORMAT = 'JPEG'
DEFAULT_QUALITY = 90


class RenderCoordinator:
    """Produces the unedited and edited previews for the UI."""

    def __init__(self, source_getter: Callable[[], Optional[ImageSource]], pipeline: Pipeline,
                 fmt: str = DEFAULT_FORMAT, quality: int = DEFAULT_QUALITY):
        self._source_getter = source_getter
        self.pipeline = pipeline
        self.format = fmt
        self.quality = quality

    def preview_base(self) -> Optional[Image.Image]:
        source = self._source_getter()
        return None if source is None else source.preview

    def render_output(self) -> Optional[Image.Image]:
        base = self.preview_base()
        if base is None:
            return None
        return self.pipeline.apply(base)

    def encode(self, img: Image.Image, fmt: Optional[str] = None, quality: Optional[int] = None) -> bytes:
        fmt = fmt or self.format
        quality = self.quality if quality is None else quality
        try:
            return processors.encode_image(img, fmt, quality)
        except (OSError, ValueError, KeyError) as e:
            logger.error(f"Failed to encode {img.mode} {img.size} image as {fmt}: {e}")
            raise EncodeError(f"failed to encode image as {fmt}: {e}") from e

    def encoded_preview(self) -> Optional[bytes]:
        img = self.preview_base()
        return None if img is None else self.encode(img)

    def encoded_output(self) -> Optional[bytes]:
        img = self.render_output()
        return None if img is None else self.encode(img)
