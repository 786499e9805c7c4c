import base64
import io

import pytest

from paintvisualizer.api.multimodal import file_input_manager
from paintvisualizer.api.multimodal.file_input_manager import (
    decode_data_url,
    encode_data_url,
    read_upload,
    resolve_mime_type,
    sniff_mime_type,
    validate_upload,
)
from paintvisualizer.core.errors import ValidationError
from tests.conftest import make_image_bytes


def test_encode_data_url_matches_browser_format():
    assert encode_data_url(b"abc", "image/png") == "data:image/png;base64,YWJj"


def test_decode_data_url_returns_mime_and_bytes(png_bytes):
    mime_type, data = decode_data_url(encode_data_url(png_bytes, "image/png"))

    assert mime_type == "image/png"
    assert data == png_bytes


def test_decode_data_url_accepts_extra_parameters():
    payload = base64.b64encode(b"xyz").decode()

    assert decode_data_url(f"data:image/webp;charset=binary;base64,{payload}") == ("image/webp", b"xyz")


@pytest.mark.parametrize(
    "value",
    [
        "",
        "https://example.com/room.png",
        "data:image/png,plain-not-base64",
        "data:image/png;base64,***",
    ],
)
def test_decode_data_url_rejects_invalid_input(value):
    with pytest.raises(ValidationError):
        decode_data_url(value)


def test_read_upload_from_named_file_object(tmp_path, png_bytes):
    path = tmp_path / "bedroom.png"
    path.write_bytes(png_bytes)

    with open(path, "rb") as f:
        data, filename = read_upload(f)

    assert data == png_bytes
    assert filename == "bedroom.png"


def test_read_upload_missing_path_raises(tmp_path):
    with pytest.raises(ValidationError):
        read_upload(str(tmp_path / "nope.png"))


@pytest.mark.parametrize(
    ("fmt", "expected"),
    [("PNG", "image/png"), ("JPEG", "image/jpeg"), ("WEBP", "image/webp")],
)
def test_sniff_mime_type_identifies_common_formats(fmt, expected):
    assert sniff_mime_type(make_image_bytes(fmt)) == expected


def test_sniff_mime_type_returns_none_for_non_images():
    assert sniff_mime_type(b"%PDF-1.7 not an image") is None


def test_resolve_mime_type_trusts_content_over_declared_value(png_bytes):
    assert resolve_mime_type(png_bytes, "image/jpeg", "room.jpg") == "image/png"


def test_resolve_mime_type_unidentified_bytes_are_generic():
    assert resolve_mime_type(b"this is plain text, not an image", "image/png", "notes.png") == "application/octet-stream"


def test_mislabelled_text_file_is_rejected():
    data = b"this is plain text, not an image"

    with pytest.raises(ValidationError) as exc:
        validate_upload(data, resolve_mime_type(data, "image/png", "notes.png"))

    assert str(exc.value) == file_input_manager.UNSUPPORTED_TYPE_MESSAGE


def test_resolve_mime_type_prefers_declared_value_without_limits(monkeypatch, png_bytes):
    monkeypatch.setattr(file_input_manager, "ENFORCE_UPLOAD_LIMITS", False)

    assert resolve_mime_type(png_bytes, "image/jpeg; charset=binary") == "image/jpeg"
    assert resolve_mime_type(png_bytes, "application/octet-stream") == "image/png"


def test_resolve_mime_type_falls_back_to_filename_without_limits(monkeypatch):
    monkeypatch.setattr(file_input_manager, "ENFORCE_UPLOAD_LIMITS", False)

    assert resolve_mime_type(b"garbage", None, "photo.jpg") == "image/jpeg"


def test_validate_upload_rejects_empty_even_without_limits(monkeypatch):
    monkeypatch.setattr(file_input_manager, "ENFORCE_UPLOAD_LIMITS", False)

    with pytest.raises(ValidationError) as exc:
        validate_upload(b"", "image/png")

    assert str(exc.value) == file_input_manager.EMPTY_FILE_MESSAGE


def test_validate_upload_size_limit_is_inclusive(monkeypatch):
    monkeypatch.setattr(file_input_manager, "MAX_UPLOAD_SIZE_BYTES", 4)

    validate_upload(b"1234", "image/png")
    with pytest.raises(ValidationError):
        validate_upload(b"12345", "image/png")


def test_default_limit_is_five_megabytes():
    assert file_input_manager.MAX_UPLOAD_SIZE_BYTES == 5 * 1024 * 1024


def test_validate_upload_accepts_jpeg_stream(jpeg_bytes):
    data, _ = read_upload(io.BytesIO(jpeg_bytes))

    validate_upload(data, "image/jpeg")
