"""
Image source manager.

Decodes uploaded JPEG/PNG bytes and builds the fixed-width preview that
every effect renders against.
"""

import binascii
import base64
import io
import logging
import math
from dataclasses import dataclass
from typing import Optional

from PIL import Image, UnidentifiedImageError

import processors
from errors import DecodeError, InvalidDimensionsError, UnsupportedFormatError

logger = logging.getLogger(__name__)

DEFAULT_PREVIEW_WIDTH = 200

MAGIC_NUMBERS = (
    (b'\xff\xd8\xff', 'JPEG'),
    (b'\x89PNG\r\n\x1a\n', 'PNG'),
)

DATA_URL_FORMATS = {prefix: fmt for fmt, prefix in processors.DATA_URL_PREFIXES.items()}

MIME_FORMATS = {
    'image/jpeg': 'JPEG',
    'image/jpg': 'JPEG',
    'image/pjpeg': 'JPEG',
    'image/png': 'PNG',
}


@dataclass(frozen=True)
class ImageSource:
    """Decoded upload plus its preview-resolution copy."""
    original: Image.Image
    preview: Image.Image
    format: str


def sniff_format(data: bytes) -> str:
    """Identify the encoding from its leading magic bytes."""
    for magic, fmt in MAGIC_NUMBERS:
        if data.startswith(magic):
            return fmt
    raise UnsupportedFormatError("unrecognized image format")


def preview_size(width: int, height: int, target_width: int = DEFAULT_PREVIEW_WIDTH):
    """Target width with the height rounded up to keep the aspect ratio."""
    if width <= 0 or height <= 0:
        raise InvalidDimensionsError(f"cannot preview a {width}x{height} image")
    if target_width <= 0:
        raise InvalidDimensionsError(f"preview width must be positive, got {target_width}")
    return target_width, math.ceil(target_width * height / width)


class ImageSourceManager:
    """Turns uploads into ImageSource objects."""

    def __init__(self, target_width: int = DEFAULT_PREVIEW_WIDTH, resample: str = 'bilinear'):
        if resample not in processors.RESAMPLE_FILTERS:
            raise ValueError(f"unknown resampling filter: {resample}")
        self.target_width = target_width
        self.resample = resample

    def load(self, data: bytes, mime_hint: Optional[str] = None) -> ImageSource:
        """
        Decode an encoded image and build its preview.

        Args:
            data: Raw JPEG or PNG bytes
            mime_hint: Content type reported by the client, only used for logging

        Returns:
            A complete ImageSource; nothing is returned on failure
        """
        fmt = sniff_format(data)
        if mime_hint and MIME_FORMATS.get(mime_hint.lower()) != fmt:
            logger.warning(f"Upload declared as {mime_hint} but looks like {fmt}")

        try:
            img = Image.open(io.BytesIO(data), formats=[fmt])
            img.load()
        except (UnidentifiedImageError, OSError, EOFError, SyntaxError, ValueError) as e:
            raise DecodeError(f"failed to decode {fmt} image: {e}") from e

        width, height = preview_size(img.width, img.height, self.target_width)
        preview = processors.resize(img.convert('RGB'), width, height, self.resample)

        logger.info(f"Loaded {fmt} image {img.width}x{img.height}, preview {width}x{height}")
        return ImageSource(original=img, preview=preview, format=fmt)

    def load_data_url(self, data_url: str) -> ImageSource:
        """Load a ``data:image/...;base64,`` string as produced by FileReader."""
        for prefix, fmt in DATA_URL_FORMATS.items():
            if data_url.startswith(prefix):
                payload = data_url[len(prefix):]
                break
        else:
            raise UnsupportedFormatError("unrecognized image format")

        try:
            # FileReader output may be wrapped across lines
            data = base64.b64decode("".join(payload.split()), validate=True)
        except (binascii.Error, ValueError) as e:
            raise DecodeError(f"invalid base64 payload: {e}") from e

        return self.load(data, mime_hint=prefix[len('data:'):prefix.index(';')])
