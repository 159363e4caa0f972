import io
import base64
import logging
from PIL import Image, ImageEnhance, ImageFilter

logger = logging.getLogger(__name__)

RESAMPLE_FILTERS = {
    'nearest': Image.Resampling.NEAREST,
    'bilinear': Image.Resampling.BILINEAR,
    'bicubic': Image.Resampling.BICUBIC,
    'lanczos': Image.Resampling.LANCZOS,
}

DATA_URL_PREFIXES = {
    'JPEG': 'data:image/jpeg;base64,',
    'PNG': 'data:image/png;base64,',
}


def _as_rgb(img):
    if img.mode != 'RGB':
        return img.convert('RGB')
    return img


def brightness(img, delta):
    """Shift brightness; 0 leaves the image as is, -1 turns it black."""
    if delta == 0:
        return img.copy()
    factor = max(0.0, 1.0 + delta)
    return ImageEnhance.Brightness(_as_rgb(img)).enhance(factor)


def contrast(img, delta):
    """Stretch contrast around the mean grey; 0 is the identity."""
    if delta == 0:
        return img.copy()
    factor = max(0.0, 1.0 + delta)
    return ImageEnhance.Contrast(_as_rgb(img)).enhance(factor)


def edge_detection(img, radius):
    """Laplacian-style edge filter whose kernel grows with the radius."""
    if radius <= 0:
        return img.copy()
    # Pillow kernels are limited to 3x3 and 5x5
    size = 3 if radius <= 1 else 5
    weights = [-1] * (size * size)
    weights[len(weights) // 2] = size * size - 1
    return _as_rgb(img).filter(ImageFilter.Kernel((size, size), weights, scale=1))


def resize(img, width, height, resample='bilinear'):
    """Resize to an exact size with a named resampling filter."""
    return img.resize((width, height), RESAMPLE_FILTERS[resample])


def encode_image(img, fmt='JPEG', quality=90):
    """Encode a PIL Image into bytes."""
    buf = io.BytesIO()
    if fmt == 'JPEG':
        img = _as_rgb(img)
        img.save(buf, format=fmt, quality=quality)
    else:
        img.save(buf, format=fmt)
    return buf.getvalue()


def to_data_url(data, fmt='JPEG'):
    """Wrap encoded bytes into a base64 data-URL for the browser."""
    return DATA_URL_PREFIXES[fmt] + base64.b64encode(data).decode('utf-8')
