"""
Tests for the render coordinator.
"""

import io

import pytest
from PIL import Image

from errors import EncodeError
from image_source import ImageSourceManager
from pipeline import Pipeline
from render import RenderCoordinator


@pytest.fixture
def source(png_bytes):
    return ImageSourceManager().load(png_bytes)


class TestRenderCoordinator:

    def test_nothing_to_render_without_source(self):
        renderer = RenderCoordinator(lambda: None, Pipeline())
        assert renderer.preview_base() is None
        assert renderer.render_output() is None
        assert renderer.encoded_output() is None

    def test_preview_base_is_unmodified(self, source):
        pipeline = Pipeline()
        pipeline.append('brightness', 1)
        renderer = RenderCoordinator(lambda: source, pipeline)
        assert renderer.preview_base() is source.preview

    def test_render_output_replays_pipeline(self, source):
        pipeline = Pipeline()
        renderer = RenderCoordinator(lambda: source, pipeline)
        assert renderer.render_output() is source.preview

        pipeline.append('contrast', 1)
        assert renderer.render_output().tobytes() == pipeline.apply(source.preview).tobytes()

    def test_follows_replaced_source(self, png_bytes, jpeg_400x300):
        holder = {'source': ImageSourceManager().load(png_bytes)}
        renderer = RenderCoordinator(lambda: holder['source'], Pipeline())
        assert renderer.preview_base().size == (200, 200)
        holder['source'] = ImageSourceManager().load(jpeg_400x300)
        assert renderer.preview_base().size == (200, 150)

    def test_encode_jpeg(self, source):
        renderer = RenderCoordinator(lambda: source, Pipeline())
        data = renderer.encode(source.preview)
        assert data.startswith(b'\xff\xd8\xff')
        assert Image.open(io.BytesIO(data)).size == (200, 200)

    def test_encoded_bytes_are_deterministic(self, source):
        pipeline = Pipeline()
        pipeline.append('contrast', 1.0)
        pipeline.append('edge-detection', 1.5)
        renderer = RenderCoordinator(lambda: source, pipeline)
        assert renderer.encoded_output() == renderer.encoded_output()

    def test_encoder_failure(self, source):
        renderer = RenderCoordinator(lambda: source, Pipeline())
        with pytest.raises(EncodeError):
            renderer.encode(source.preview, fmt='NOT-A-FORMAT')

    def test_png_output(self, source):
        renderer = RenderCoordinator(lambda: source, Pipeline(), fmt='PNG')
        assert renderer.encoded_preview().startswith(b'\x89PNG')
