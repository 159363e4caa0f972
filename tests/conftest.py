import base64
import io

import pytest
from PIL import Image

from app import create_app
from config import get_default_config
from session import EditorSession


def make_image(width, height, mode='RGB'):
    """Diagonal gradient so brightness, contrast and edges all change pixels."""
    img = Image.new('RGB', (width, height))
    img.putdata([
        ((x * 255) // max(width - 1, 1), (y * 255) // max(height - 1, 1), ((x + y) * 7) % 256)
        for y in range(height) for x in range(width)
    ])
    return img.convert(mode) if mode != 'RGB' else img


def encode(img, fmt='PNG'):
    buf = io.BytesIO()
    img.save(buf, format=fmt)
    return buf.getvalue()


def data_url(data, mime='image/png'):
    return f"data:{mime};base64," + base64.b64encode(data).decode('utf-8')


@pytest.fixture
def png_bytes():
    return encode(make_image(100, 100), 'PNG')


@pytest.fixture
def jpeg_400x300():
    return encode(make_image(400, 300), 'JPEG')


@pytest.fixture
def editor_session():
    return EditorSession()


@pytest.fixture
def app():
    app = create_app(get_default_config())
    app.config['TESTING'] = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()
