"""
Upload preprocessing utilities for the controller and API adapters.

Architectural role:
- Turn a user-selected file into an in-memory data URL plus MIME type.
- Enforce type/size constraints before anything is stored in session state.
- Decode data URLs back into bytes for provider clients and downloads.

Processing lifecycle:
1. Read raw bytes from `bytes`, a binary file object, or a local path.
2. Resolve the MIME type (Pillow header sniffing; declared value and filename
   guess only when limits are off).
3. Validate emptiness, size and type (size/type checks are configurable).
4. Encode the bytes as `data:<mime>;base64,<payload>`.

Error handling strategy:
- Every rejection raises `ValidationError` with a user-presentable message.
- With limits enforced, bytes Pillow cannot identify resolve to
  `application/octet-stream` and are rejected as an unsupported type.
  With limits off the MIME type falls back to the caller's value or the
  filename.

Side effects:
- Reads local files when given a path. No temporary files are written.
"""

import base64
import binascii
import io
import mimetypes
import os
from typing import BinaryIO, Optional, Tuple, Union

from dotenv import load_dotenv
from PIL import Image, UnidentifiedImageError

from paintvisualizer.core.errors import ValidationError

load_dotenv()


# ============================================================
# CONFIG
# ============================================================

MAX_UPLOAD_SIZE_MB = float(os.getenv("MAX_UPLOAD_SIZE_MB", "5"))
MAX_UPLOAD_SIZE_BYTES = int(MAX_UPLOAD_SIZE_MB * 1024 * 1024)
# "false" reproduces the picker-hint-only behaviour: any file is accepted.
ENFORCE_UPLOAD_LIMITS = os.getenv("ENFORCE_UPLOAD_LIMITS", "true").lower() != "false"
ALLOWED_MIME_TYPES = {"image/png", "image/jpeg", "image/webp"}
DEFAULT_MIME_TYPE = "application/octet-stream"

# Pillow format name -> MIME type for the formats we care about.
PIL_FORMAT_MIME_TYPES = {
    "PNG": "image/png",
    "JPEG": "image/jpeg",
    "WEBP": "image/webp",
    "GIF": "image/gif",
    "BMP": "image/bmp",
    "TIFF": "image/tiff",
}

EMPTY_FILE_MESSAGE = "Tệp ảnh trống. Vui lòng chọn ảnh khác."
FILE_TOO_LARGE_MESSAGE = "Ảnh vượt quá dung lượng cho phép (tối đa {limit:g}MB)."
UNSUPPORTED_TYPE_MESSAGE = "Định dạng ảnh không được hỗ trợ. Vui lòng dùng JPG hoặc PNG."
INVALID_DATA_URL_MESSAGE = "Dữ liệu ảnh không hợp lệ."

FileInput = Union[bytes, bytearray, BinaryIO, str, os.PathLike]


# ============================================================
# PUBLIC ENTRYPOINTS
# ============================================================

def read_upload(file: FileInput) -> Tuple[bytes, Optional[str]]:
    """
    Read raw bytes and a best-known filename from an upload source.

    Supported inputs:
    - `bytes`/`bytearray` (filename unknown)
    - binary file objects (filename taken from `.name` when present)
    - local filesystem paths
    """
    if isinstance(file, (bytes, bytearray)):
        return bytes(file), None

    if isinstance(file, (str, os.PathLike)):
        path = os.path.realpath(os.path.expanduser(os.fspath(file)))
        if not os.path.isfile(path):
            raise ValidationError("Không tìm thấy tệp ảnh.")
        with open(path, "rb") as f:
            return f.read(), os.path.basename(path)

    data = file.read()
    name = getattr(file, "name", None)
    filename = os.path.basename(name) if isinstance(name, str) else None
    return data, filename


def resolve_mime_type(
    data: bytes,
    declared: Optional[str] = None,
    filename: Optional[str] = None,
) -> str:
    """
    Pick the MIME type recorded for an upload.

    With `ENFORCE_UPLOAD_LIMITS` on, only the bytes count: the format Pillow
    identifies from the header, else `application/octet-stream` (which
    `validate_upload` rejects). A declared label never overrides the content.

    With limits off, resolution order is:
    1. Explicit `declared` value (what the file picker reported), unless it
       is the generic `application/octet-stream`.
    2. Format identified from the image header by Pillow.
    3. Guess from the filename extension.
    4. `application/octet-stream`.
    """
    sniffed = sniff_mime_type(data)
    if ENFORCE_UPLOAD_LIMITS:
        return sniffed or DEFAULT_MIME_TYPE

    declared = (declared or "").split(";", 1)[0].strip().lower()
    if declared and declared != DEFAULT_MIME_TYPE:
        return declared

    if sniffed:
        return sniffed

    if filename:
        guessed, _ = mimetypes.guess_type(filename)
        if guessed:
            return guessed

    return DEFAULT_MIME_TYPE


def sniff_mime_type(data: bytes) -> Optional[str]:
    """Return the MIME type Pillow identifies from the header, or `None`."""
    try:
        with Image.open(io.BytesIO(data)) as img:
            return PIL_FORMAT_MIME_TYPES.get(img.format or "")
    except (UnidentifiedImageError, OSError):
        return None


def validate_upload(data: bytes, mime_type: str) -> None:
    """
    Enforce upload constraints.

    Validation behavior:
    - Rejects empty payloads (always).
    - Rejects payloads larger than `MAX_UPLOAD_SIZE_BYTES`.
    - Rejects MIME types outside `ALLOWED_MIME_TYPES`.
    Size and type checks are skipped when `ENFORCE_UPLOAD_LIMITS` is off.
    """
    if not data:
        raise ValidationError(EMPTY_FILE_MESSAGE)

    if not ENFORCE_UPLOAD_LIMITS:
        return

    if len(data) > MAX_UPLOAD_SIZE_BYTES:
        raise ValidationError(FILE_TOO_LARGE_MESSAGE.format(limit=MAX_UPLOAD_SIZE_MB))

    if mime_type not in ALLOWED_MIME_TYPES:
        raise ValidationError(UNSUPPORTED_TYPE_MESSAGE)


# ============================================================
# DATA URLS
# ============================================================

def encode_data_url(data: bytes, mime_type: str) -> str:
    """Encode raw bytes as a base64 data URL."""
    encoded = base64.b64encode(data).decode("ascii")
    return f"data:{mime_type};base64,{encoded}"


def decode_data_url(data_url: str) -> Tuple[str, bytes]:
    """
    Split a base64 data URL into `(mime_type, raw_bytes)`.

    Raises `ValidationError` for anything that is not a base64 data URL.
    """
    if not data_url or not data_url.startswith("data:") or "," not in data_url:
        raise ValidationError(INVALID_DATA_URL_MESSAGE)

    header, encoded = data_url.split(",", 1)
    params = header[len("data:"):].split(";")
    if "base64" not in params[1:]:
        raise ValidationError(INVALID_DATA_URL_MESSAGE)

    mime_type = params[0] or DEFAULT_MIME_TYPE
    try:
        return mime_type, base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError):
        raise ValidationError(INVALID_DATA_URL_MESSAGE)
