"""OpenAI-specific image-edit client.

Processing flow:
    1. Read endpoint/model configuration.
    2. Build a multipart submission with the source image and the prompt.
    3. Submit one `images/edits` request.
    4. Return the first `b64_json` image.

Error handling strategy:
    - Missing API key -> `AuthenticationError`.
    - HTTP-layer failures are mapped by `client.raise_for_provider_status`.
    - Responses without image data -> `EmptyResponseError`.

Performance characteristics:
    Uses one synchronous HTTP request without timeout; callers run it off the
    event loop.
"""

import logging
import mimetypes

from paintvisualizer.core.errors import AuthenticationError, EmptyResponseError
from paintvisualizer.image.client import decode_image_payload, post_to_provider, raise_for_provider_status
from paintvisualizer.image.provider_config import IMAGE_MODEL, IMAGE_PROVIDER, IMAGE_PROVIDERS, load_key

logger = logging.getLogger(__name__)


def send_openai_edit_request(
    image_bytes: bytes,
    mime_type: str,
    prompt: str,
    model: str | None = None,
) -> tuple[str, bytes]:
    """Submit an OpenAI image edit and return `(mime_type, bytes)`.

    Args:
        image_bytes: Raw source photo.
        mime_type: MIME type of the source photo.
        prompt: Instruction text.
        model: Model override; defaults to `IMAGE_MODEL` when OpenAI is the
            active provider.
    """
    provider_config = IMAGE_PROVIDERS["openai"]
    api_key = load_key(provider_config.get("key_file"))
    if not api_key:
        raise AuthenticationError(provider="openai")

    if not model:
        model = IMAGE_MODEL if IMAGE_PROVIDER == "openai" else provider_config["default_model"]

    extension = mimetypes.guess_extension(mime_type) or ".png"
    files = {"image": (f"room{extension}", image_bytes, mime_type)}
    data = {"model": model, "prompt": prompt}
    headers = {"Authorization": f"Bearer {api_key}"}

    logger.info("Sending OpenAI image edit request model=%s source_bytes=%d", model, len(image_bytes))
    response = post_to_provider("openai", provider_config["url"], data=data, files=files, headers=headers)
    raise_for_provider_status("openai", response)

    try:
        body = response.json()
    except ValueError as err:
        raise EmptyResponseError(provider="openai") from err

    items = body.get("data") if isinstance(body, dict) else None
    encoded = items[0].get("b64_json") if items else None
    if not encoded:
        raise EmptyResponseError(provider="openai")

    output_format = body.get("output_format") or "png"
    return f"image/{output_format}", decode_image_payload("openai", encoded)
