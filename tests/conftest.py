import io

import pytest
from PIL import Image

from paintvisualizer.api.multimodal.file_input_manager import encode_data_url

RESULT_BYTES = b"generated-image-bytes"


def make_image_bytes(fmt="PNG", size=(4, 4), color=(200, 180, 160)):
    buffer = io.BytesIO()
    Image.new("RGB", size, color).save(buffer, format=fmt)
    return buffer.getvalue()


@pytest.fixture
def png_bytes():
    return make_image_bytes("PNG")


@pytest.fixture
def jpeg_bytes():
    return make_image_bytes("JPEG")


@pytest.fixture
def png_data_url(png_bytes):
    return encode_data_url(png_bytes, "image/png")


@pytest.fixture
def result_data_url():
    return encode_data_url(RESULT_BYTES, "image/png")
