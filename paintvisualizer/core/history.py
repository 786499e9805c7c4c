"""Download helpers for generated results.

The history itself lives in `SessionState.results`; this module only turns one
`PaintResult` into a named file for the HTTP download response.
"""

import mimetypes

from paintvisualizer.api.multimodal.file_input_manager import decode_data_url
from paintvisualizer.core.state import PaintResult

FILENAME_PREFIX = "paint-result-"
# `mimetypes` maps image/jpeg to ".jpg" only on some platforms.
PREFERRED_EXTENSIONS = {"image/jpeg": ".jpg", "image/png": ".png", "image/webp": ".webp"}


def download_filename(result: PaintResult, mime_type: str = "image/png") -> str:
    """Return the generated filename, for example `paint-result-1700000000000.png`."""
    extension = PREFERRED_EXTENSIONS.get(mime_type) or mimetypes.guess_extension(mime_type) or ".png"
    return f"{FILENAME_PREFIX}{result.id}{extension}"


def result_mime_type(result: PaintResult) -> str:
    """Read the MIME type from the result data URL header without decoding."""
    header = result.result_url.split(",", 1)[0]
    if not header.startswith("data:"):
        return "image/png"
    return header[len("data:"):].split(";", 1)[0] or "image/png"


def result_file(result: PaintResult) -> tuple[str, str, bytes]:
    """Decode a result into `(filename, mime_type, bytes)`."""
    mime_type, data = decode_data_url(result.result_url)
    return download_filename(result, mime_type), mime_type, data
