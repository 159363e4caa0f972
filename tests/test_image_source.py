"""
Tests for decoding uploads and building previews.
"""

import logging

import pytest

from errors import DecodeError, InvalidDimensionsError, UnsupportedFormatError
from image_source import ImageSourceManager, preview_size, sniff_format
from tests.conftest import data_url, encode, make_image


@pytest.fixture
def manager():
    return ImageSourceManager()


class TestSniffFormat:

    def test_jpeg_and_png(self, png_bytes, jpeg_400x300):
        assert sniff_format(jpeg_400x300) == 'JPEG'
        assert sniff_format(png_bytes) == 'PNG'

    @pytest.mark.parametrize("data", [b'', b'GIF89a....', b'\xff\xd8', b'BM\x00\x00'])
    def test_unknown_prefix(self, data):
        with pytest.raises(UnsupportedFormatError):
            sniff_format(data)


class TestPreviewSize:

    @pytest.mark.parametrize("size,expected", [
        ((400, 300), (200, 150)),
        ((100, 100), (200, 200)),
        ((300, 101), (200, 68)),
        ((1000, 1), (200, 1)),
    ])
    def test_ratio_preserved_height_rounded_up(self, size, expected):
        assert preview_size(*size) == expected

    @pytest.mark.parametrize("size", [(0, 10), (10, 0), (-5, 5)])
    def test_degenerate_dimensions(self, size):
        with pytest.raises(InvalidDimensionsError):
            preview_size(*size)


class TestLoad:

    def test_jpeg_data_url_preview_is_200x150(self, manager, jpeg_400x300):
        source = manager.load_data_url(data_url(jpeg_400x300, 'image/jpeg'))
        assert source.format == 'JPEG'
        assert source.original.size == (400, 300)
        assert source.preview.size == (200, 150)

    def test_png_bytes(self, manager, png_bytes):
        source = manager.load(png_bytes, 'image/png')
        assert source.format == 'PNG'
        assert source.preview.size == (200, 200)

    def test_preview_is_rgb(self, manager):
        source = manager.load(encode(make_image(50, 20, 'RGBA'), 'PNG'))
        assert source.original.mode == 'RGBA'
        assert source.preview.mode == 'RGB'
        assert source.preview.size == (200, 80)

    def test_custom_target_width(self, jpeg_400x300):
        source = ImageSourceManager(target_width=100).load(jpeg_400x300)
        assert source.preview.size == (100, 75)

    def test_unknown_resample_filter(self):
        with pytest.raises(ValueError):
            ImageSourceManager(resample='sinc')

    def test_mime_hint_mismatch_is_logged_not_trusted(self, manager, png_bytes, caplog):
        with caplog.at_level(logging.WARNING):
            source = manager.load(png_bytes, 'image/jpeg')
        assert source.format == 'PNG'
        assert 'image/jpeg' in caplog.text

    def test_truncated_image(self, manager, png_bytes):
        with pytest.raises(DecodeError):
            manager.load(png_bytes[:60])

    def test_garbage_after_magic(self, manager):
        with pytest.raises(DecodeError):
            manager.load(b'\xff\xd8\xff' + b'\x00' * 64)


class TestLoadDataUrl:

    def test_unrecognized_prefix(self, manager, png_bytes):
        with pytest.raises(UnsupportedFormatError):
            manager.load_data_url(data_url(png_bytes, 'image/gif'))

    def test_plain_string(self, manager):
        with pytest.raises(UnsupportedFormatError):
            manager.load_data_url('not an image')

    def test_invalid_base64(self, manager):
        with pytest.raises(DecodeError):
            manager.load_data_url('data:image/png;base64,@@@not-base64@@@')

    def test_line_wrapped_payload(self, manager, png_bytes):
        url = data_url(png_bytes)
        prefix, payload = url[:len('data:image/png;base64,')], url[len('data:image/png;base64,'):]
        wrapped = '\r\n'.join(payload[i:i + 76] for i in range(0, len(payload), 76))
        source = manager.load_data_url(prefix + wrapped)
        assert source.preview.size == (200, 200)

    def test_prefix_disagreeing_with_content(self, manager, png_bytes):
        # The payload decides, as with raw uploads
        source = manager.load_data_url(data_url(png_bytes, 'image/jpeg'))
        assert source.format == 'PNG'
